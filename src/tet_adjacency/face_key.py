"""Module defining FaceKey, the orientation-aware identity of a triangle.

A key stores the three vertex indices of an oriented triangle rotated so the
smallest index comes first. Cyclic rotations of the same triangle share a key,
while the reversed triangle maps to a different key, its flip.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

from .errors import RepeatedVertexError


@dataclass(frozen=True, order=True)
class FaceKey:
    """Canonical key of an oriented triangle.

    Use `FaceKey.of` to build a key from vertex indices in any cyclic
    rotation; the dataclass fields always hold the canonical form.

    Attributes:
        a (int): Smallest vertex index.
        b (int): Vertex following `a` in the triangle's cyclic order.
        c (int): Vertex following `b`.
    """

    a: int
    b: int
    c: int

    @classmethod
    def of(cls, a: int, b: int, c: int) -> FaceKey:
        """Return the key of the oriented triangle (a, b, c).

        Raises:
            RepeatedVertexError: If two of the indices are equal.
        """
        a, b, c = int(a), int(b), int(c)
        if a == b or b == c or a == c:
            raise RepeatedVertexError((a, b, c))
        if a < b and a < c:
            return cls(a, b, c)
        if b < c:
            return cls(b, c, a)
        return cls(c, a, b)

    def ordered(self) -> bool:
        """Return True for exactly one of {key, key.flip()}."""
        return self.b < self.c

    def flip(self) -> FaceKey:
        """Return the key of the reverse-oriented triangle."""
        return FaceKey(self.a, self.c, self.b)

    @property
    def vertices(self) -> Tuple[int, int, int]:
        return (self.a, self.b, self.c)

    def __iter__(self) -> Iterator[int]:
        return iter(self.vertices)

    def __repr__(self) -> str:
        return f"FaceKey({self.a}, {self.b}, {self.c})"
