"""Module defining the face adjacency table used while building a mesh.

The table maps every oriented face (`FaceKey`) to a `FaceProperty`: the
tetrahedron lying on that side of the face (or `NO_ELEMENT`) and the face
label (or `NO_LABEL` while the face is not known to be a labelled boundary).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Tuple

from .errors import DuplicateFaceError, MissingFlipError
from .face_key import FaceKey

_LOGGER = logging.getLogger(__name__)

NO_ELEMENT = -1
NO_LABEL = -1


@dataclass
class FaceProperty:
    """Owner element and label of one oriented face.

    Attributes:
        element (int): Index of the tetrahedron on this side, or `NO_ELEMENT`.
        label (int): Boundary label, or `NO_LABEL`.
    """

    element: int = NO_ELEMENT
    label: int = NO_LABEL


class AdjacencyTable:
    """Mapping from oriented faces to their properties.

    Owned by a single build: filled from the tetrahedra, updated from the
    boundary triangles and finally consumed by consolidation.
    """

    def __init__(self) -> None:
        self._faces: Dict[FaceKey, FaceProperty] = {}

    def insert_unique(self, key: FaceKey, prop: FaceProperty) -> None:
        """Insert `prop` under `key`.

        Raises:
            DuplicateFaceError: If `key` is already present.
        """
        existing = self._faces.get(key)
        if existing is not None:
            _LOGGER.error(
                "Duplicate face %s from element %d (registered by element %d)",
                key.vertices,
                prop.element,
                existing.element,
            )
            raise DuplicateFaceError(key.vertices, prop.element, existing.element)
        self._faces[key] = prop

    def get(self, key: FaceKey) -> FaceProperty:
        """Return the property stored under `key`.

        Raises:
            MissingFlipError: If `key` is absent.
        """
        try:
            return self._faces[key]
        except KeyError:
            _LOGGER.error("No adjacency entry for face %s", key.vertices)
            raise MissingFlipError(key.vertices) from None

    def set_label(self, key: FaceKey, label: int) -> None:
        """Set the label of an existing entry, leaving its element untouched."""
        self.get(key).label = label

    def __contains__(self, key: object) -> bool:
        return key in self._faces

    def __len__(self) -> int:
        return len(self._faces)

    def items(self) -> Iterator[Tuple[FaceKey, FaceProperty]]:
        """Iterate over (key, property) pairs in insertion order."""
        return iter(self._faces.items())
