"""Exception types raised while reading a tetrahedral mesh or building its faces.

Every failure is fatal for the build in progress: the builder either returns a
fully validated mesh or raises one of these. Each exception keeps the data
needed to locate the problem in the input as attributes.
"""
from __future__ import annotations

from typing import Optional, Sequence, Tuple


class MeshError(Exception):
    """Base class for all mesh construction errors."""


class IncompatibleMeshError(MeshError, ValueError):
    """The reader reports an unsupported file version or spatial dimension."""

    def __init__(self, version: int, dimension: int, filename: Optional[str] = None):
        self.version = version
        self.dimension = dimension
        self.filename = filename
        where = f" in '{filename}'" if filename else ""
        super().__init__(
            f"Incompatible mesh{where}: version={version}, dimension={dimension}"
        )


class RepeatedVertexError(MeshError, ValueError):
    """A triangle names the same vertex more than once."""

    def __init__(self, vertices: Sequence[int]):
        self.vertices = tuple(int(v) for v in vertices)
        super().__init__(f"Triangle {self.vertices} has repeated vertices")


class DuplicateFaceError(MeshError, ValueError):
    """Two tetrahedra produce the same oriented face."""

    def __init__(self, vertices: Sequence[int], element: int, existing: int):
        self.vertices = tuple(int(v) for v in vertices)
        self.element = element
        self.existing = existing
        super().__init__(
            f"Duplicate face {self.vertices} in element {element} "
            f"(already registered by element {existing}). "
            "Tet orientation may be inconsistent"
        )


class OrientationMismatchError(MeshError, ValueError):
    """A boundary triangle does not match the faces implied by the tetrahedra."""

    def __init__(self, vertices: Sequence[int], label: int, pos: int, neg: int):
        self.vertices = tuple(int(v) for v in vertices)
        self.label = label
        self.pos = pos
        self.neg = neg
        super().__init__(
            f"Tet faces and boundary faces orientation mismatch for triangle "
            f"{self.vertices}: pos = {pos}, neg = {neg}, lab = {label}"
        )


class LabelMismatchError(MeshError, ValueError):
    """The two orientations of a face carry different labels."""

    def __init__(self, vertices: Sequence[int], labels: Tuple[int, int]):
        self.vertices = tuple(int(v) for v in vertices)
        self.labels = labels
        super().__init__(
            f"Label of flipped face mismatch face label for {self.vertices}: "
            f"{labels[0]} != {labels[1]}"
        )


class DegenerateFaceError(MeshError, ValueError):
    """A face has the same tetrahedron on both sides."""

    def __init__(self, vertices: Sequence[int], element: int):
        self.vertices = tuple(int(v) for v in vertices)
        self.element = element
        super().__init__(
            f"Elements on the left and on the right of face {self.vertices} "
            f"are the same ({element})"
        )


class MissingFlipError(MeshError, RuntimeError):
    """The reverse orientation of a registered face is absent from the table."""

    def __init__(self, vertices: Sequence[int]):
        self.vertices = tuple(int(v) for v in vertices)
        super().__init__(
            f"No entry for the flip of face {self.vertices}; "
            "a boundary triangle may be missing"
        )
