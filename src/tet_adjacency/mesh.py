"""Module defining the tetrahedral Mesh and the builder that derives its faces.

This module provides:
  - Tetrahedron and Face records.
  - The build phases: vertices, tetrahedra (four oriented faces each),
    boundary triangles (outer and slit boundaries) and consolidation into one
    Face per geometric triangle with the tetrahedra on both sides.
  - The immutable Mesh with array views, face classification, element
    adjacency and VTK/VTU export.

Every inconsistency in the input raises a `MeshError` subclass; a Mesh is
only returned when all checks pass.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union
from pathlib import Path
from numpy.typing import NDArray

import numpy as np
import meshio
import scipy.sparse as sp

from utils.medit_reader import ArrayMeshReader, Keyword, MeditReader, MeshReader
from utils.vtk_writer import VTKWriter

from .adjacency import NO_ELEMENT, NO_LABEL, AdjacencyTable, FaceProperty
from .config import config
from .errors import (
    DegenerateFaceError,
    IncompatibleMeshError,
    LabelMismatchError,
    MissingFlipError,
    OrientationMismatchError,
)
from .face_key import FaceKey

_LOGGER = logging.getLogger(__name__)

# Local vertex triples of the four outward faces of a tetrahedron (v0, v1, v2, v3).
TET_FACES = ((0, 1, 2), (1, 0, 3), (2, 3, 0), (3, 2, 1))

OUTER = "outer"
SLIT = "slit"

# Only files of this version and spatial dimension can be built.
REQUIRED_VERSION = 2
REQUIRED_DIMENSION = 3


@dataclass(frozen=True)
class Tetrahedron:
    """A tetrahedron given by 0-based vertex indices and a material label."""

    vertices: Tuple[int, int, int, int]
    label: int


@dataclass(frozen=True)
class Face:
    """One geometric triangle of the mesh with the elements on each side.

    Attributes:
        vertices (Tuple[int, int, int]): Vertex indices in canonical orientation.
        label (int): Boundary label, or `NO_LABEL`.
        left (int): Element on the side of `vertices`' orientation, or `NO_ELEMENT`.
        right (int): Element on the opposite side, or `NO_ELEMENT`.
        normal (Optional[Tuple[float, float, float]]): Reserved; not computed.
    """

    vertices: Tuple[int, int, int]
    label: int
    left: int
    right: int
    normal: Optional[Tuple[float, float, float]] = None

    @property
    def is_boundary(self) -> bool:
        """True if exactly one side of the face has an element."""
        return (self.left == NO_ELEMENT) != (self.right == NO_ELEMENT)

    @property
    def is_interior(self) -> bool:
        """True if both sides of the face have an element."""
        return self.left != NO_ELEMENT and self.right != NO_ELEMENT

    @property
    def is_slit(self) -> bool:
        """True for an interior face that carries a boundary label."""
        return self.is_interior and self.label != NO_LABEL


# -----------------------------------------------------------------------------
# Build phases operating on an explicitly passed AdjacencyTable
# -----------------------------------------------------------------------------
def register_tetrahedron(
    table: AdjacencyTable, element: int, vertices: Sequence[int]
) -> None:
    """Insert the four oriented faces of tetrahedron `element` into `table`.

    Raises:
        DuplicateFaceError: If one of the faces is already registered.
        RepeatedVertexError: If the tetrahedron repeats a vertex.
    """
    for i, j, k in TET_FACES:
        key = FaceKey.of(vertices[i], vertices[j], vertices[k])
        table.insert_unique(key, FaceProperty(element, NO_LABEL))


def classify_boundary_triangle(
    table: AdjacencyTable, vertices: Sequence[int], label: int
) -> str:
    """Apply boundary triangle (v0, v1, v2) with `label` to `table`.

    The forward key is absent and its flip present for an outer boundary: the
    forward side gets an element-less entry and both sides take `label`.
    Both keys present marks a slit boundary: both sides take `label` and keep
    their elements.

    Returns:
        `OUTER` or `SLIT`.

    Raises:
        OrientationMismatchError: For any other combination.
    """
    v0, v1, v2 = vertices
    forward = FaceKey.of(v0, v1, v2)
    flip = forward.flip()
    pos = int(forward in table)
    neg = int(flip in table)

    if not pos and neg:
        table.insert_unique(forward, FaceProperty(NO_ELEMENT, label))
        table.set_label(flip, label)
        return OUTER

    if pos and neg:
        table.set_label(forward, label)
        table.set_label(flip, label)
        return SLIT

    _LOGGER.error(
        "Boundary triangle %s (label %d) does not match tet faces: pos=%d neg=%d",
        tuple(vertices),
        label,
        pos,
        neg,
    )
    raise OrientationMismatchError(vertices, label, pos, neg)


def consolidate(table: AdjacencyTable) -> List[Face]:
    """Emit one Face per geometric triangle registered in `table`.

    The `ordered()` key of each flip pair is the representative: its element
    is the left side and the flip's element the right side.

    Raises:
        MissingFlipError: If a key has no flip entry.
        LabelMismatchError: If the two sides carry different labels.
        DegenerateFaceError: If the same element lies on both sides.
    """
    faces: List[Face] = []
    for key, prop in table.items():
        flip = key.flip()
        if not key.ordered():
            # Non-representative keys are checked too, not only looked up
            # from their ordered() partner.
            if flip not in table:
                _LOGGER.error("Face %s has no flip entry", key.vertices)
                raise MissingFlipError(key.vertices)
            continue

        other = table.get(flip)
        if prop.label != other.label:
            _LOGGER.error(
                "Face %s labels differ: %d != %d", key.vertices, prop.label, other.label
            )
            raise LabelMismatchError(key.vertices, (prop.label, other.label))
        # Possible for some boundary conditions, but not for this mesh format.
        if prop.element != NO_ELEMENT and prop.element == other.element:
            _LOGGER.error(
                "Face %s has element %d on both sides", key.vertices, prop.element
            )
            raise DegenerateFaceError(key.vertices, prop.element)

        faces.append(Face(key.vertices, prop.label, prop.element, other.element))
    return faces


class MeshBuilder:
    """Build a `Mesh` from a `MeshReader`, one phase at a time.

    Args:
        reader (MeshReader): Source of vertex, tetrahedron and triangle records.
        fortran_numbering (bool): Accepted for interface compatibility. Indices
            read from `reader` are always treated as 1-based.

    Attributes:
        points (NDArray[Any]): Vertex coordinates, shape (n_points, 3).
        tetrahedra (List[Tetrahedron]): Tetrahedra in file order.
        table (AdjacencyTable): Oriented faces seen so far.
        n_outer (int): Number of outer boundary triangles applied.
        n_slit (int): Number of slit boundary triangles applied.
    """

    def __init__(self, reader: MeshReader, fortran_numbering: bool = True) -> None:
        self.reader = reader
        self.fortran_numbering = fortran_numbering
        if not fortran_numbering:
            _LOGGER.debug(
                "fortran_numbering=False has no effect; indices are read 1-based"
            )
        self.points: NDArray[Any] = np.empty((0, 3), dtype=float)
        self.tetrahedra: List[Tetrahedron] = []
        self.table = AdjacencyTable()
        self.n_outer = 0
        self.n_slit = 0

    def check_compatible(self) -> None:
        """Reject readers whose version or dimension is not supported.

        Raises:
            IncompatibleMeshError: If the version or dimension differs from
                `REQUIRED_VERSION` and `REQUIRED_DIMENSION`.
        """
        version = self.reader.version
        dimension = self.reader.dimension
        if version != REQUIRED_VERSION or dimension != REQUIRED_DIMENSION:
            filename = getattr(self.reader, "filename", None)
            _LOGGER.error(
                "Incompatible mesh %s: version=%d dimension=%d (need %d, %d)",
                filename or "<reader>",
                version,
                dimension,
                REQUIRED_VERSION,
                REQUIRED_DIMENSION,
            )
            raise IncompatibleMeshError(version, dimension, filename)

    def read_vertices(self) -> NDArray[Any]:
        """Read all vertex records into `points`."""
        n = self.reader.stat_kwd(Keyword.VERTICES)
        points = np.empty((n, 3), dtype=float)
        self.reader.goto_kwd(Keyword.VERTICES)
        for i in range(n):
            x, y, z, _ = self.reader.get_lin(Keyword.VERTICES)
            points[i] = (x, y, z)
        self.points = points
        _LOGGER.info("Read %d vertices", n)
        return points

    def read_tetrahedra(self) -> List[Tetrahedron]:
        """Read all tetrahedra and register their faces.

        Raises:
            DuplicateFaceError: If two tetrahedra produce the same oriented face.
        """
        n = self.reader.stat_kwd(Keyword.TETRAHEDRA)
        self.reader.goto_kwd(Keyword.TETRAHEDRA)
        for i in range(n):
            *verts, label = self.reader.get_lin(Keyword.TETRAHEDRA)
            vertices = tuple(int(v) - 1 for v in verts)
            register_tetrahedron(self.table, i, vertices)
            self.tetrahedra.append(Tetrahedron(vertices, int(label)))
        _LOGGER.info("Read %d tetrahedra (%d oriented faces)", n, len(self.table))
        return self.tetrahedra

    def read_boundary_triangles(self) -> Tuple[int, int]:
        """Read all boundary triangles and apply them to the table.

        Returns:
            Tuple[int, int]: Number of outer and slit boundary triangles.

        Raises:
            OrientationMismatchError: If a triangle does not fit the tet faces.
        """
        n = self.reader.stat_kwd(Keyword.TRIANGLES)
        self.reader.goto_kwd(Keyword.TRIANGLES)
        for _ in range(n):
            *verts, label = self.reader.get_lin(Keyword.TRIANGLES)
            vertices = tuple(int(v) - 1 for v in verts)
            kind = classify_boundary_triangle(self.table, vertices, int(label))
            if kind == OUTER:
                self.n_outer += 1
            else:
                self.n_slit += 1
            _LOGGER.debug("Boundary triangle %s label=%d: %s", vertices, label, kind)
        _LOGGER.info(
            "Read %d boundary triangles (%d outer, %d slit)",
            n,
            self.n_outer,
            self.n_slit,
        )
        return self.n_outer, self.n_slit

    def build(self) -> Mesh:
        """Run all phases and return the validated mesh."""
        self.check_compatible()
        self.read_vertices()
        self.read_tetrahedra()
        self.read_boundary_triangles()
        faces = consolidate(self.table)
        _LOGGER.info("Consolidated %d faces", len(faces))
        return Mesh(self.points, self.tetrahedra, faces, self.fortran_numbering)


# -----------------------------------------------------------------------------
# Mesh
# -----------------------------------------------------------------------------
class Mesh:
    """Tetrahedral volume mesh with its face adjacency.

    Instances are read-only once built; use `from_file`, `from_reader` or
    `from_arrays` to construct one.

    Args:
        points (NDArray[Any]): Vertex coordinates, shape (n_points, 3).
        tetrahedra (Sequence[Tetrahedron]): Tetrahedra in input order.
        faces (Sequence[Face]): One entry per geometric triangle.
        fortran_numbering (bool): Flag the mesh was built with.

    Attributes:
        points (NDArray[Any]): Read-only vertex array.
        tetrahedra (Tuple[Tetrahedron, ...]): Tetrahedra.
        faces (Tuple[Face, ...]): Faces with left/right elements.
        fortran_numbering (bool): Flag the mesh was built with.
    """

    def __init__(
        self,
        points: NDArray[Any],
        tetrahedra: Sequence[Tetrahedron],
        faces: Sequence[Face],
        fortran_numbering: bool = True,
    ) -> None:
        self.points = np.array(points, dtype=float).reshape(-1, 3)
        self.points.flags.writeable = False
        self.tetrahedra: Tuple[Tetrahedron, ...] = tuple(tetrahedra)
        self.faces: Tuple[Face, ...] = tuple(faces)
        self.fortran_numbering = fortran_numbering

        _LOGGER.info(
            "Mesh initialized with %d points, %d tetrahedra and %d faces",
            self.points.shape[0],
            len(self.tetrahedra),
            len(self.faces),
        )

    # ------------------------------------------------------------ constructors
    @classmethod
    def from_reader(cls, reader: MeshReader, fortran_numbering: bool = True) -> Mesh:
        """Build a mesh from any `MeshReader`. The reader is left open."""
        return MeshBuilder(reader, fortran_numbering).build()

    @classmethod
    def from_file(
        cls, filename: Union[str, Path], fortran_numbering: Optional[bool] = None
    ) -> Mesh:
        """Read a ``.mesh``/``.meshb`` file and build its mesh.

        Args:
            filename: Path to the mesh file.
            fortran_numbering: Defaults to `config.fortran_numbering`.
        """
        if fortran_numbering is None:
            fortran_numbering = config.fortran_numbering
        with MeditReader(filename) as reader:
            return cls.from_reader(reader, fortran_numbering)

    @classmethod
    def from_arrays(
        cls,
        points: Any,
        tetrahedra: Any,
        tet_labels: Any = None,
        triangles: Any = None,
        tri_labels: Any = None,
    ) -> Mesh:
        """Build a mesh from 0-based in-memory arrays."""
        with ArrayMeshReader(
            points, tetrahedra, tet_labels, triangles, tri_labels
        ) as reader:
            return cls.from_reader(reader)

    # -------------------------------------------------------------- array views
    @property
    def tet_connectivity(self) -> NDArray[Any]:
        """Tetrahedron vertex indices, shape (n_tets, 4)."""
        return np.array([t.vertices for t in self.tetrahedra], dtype=int).reshape(-1, 4)

    @property
    def tet_labels(self) -> NDArray[Any]:
        """Tetrahedron labels, shape (n_tets,)."""
        return np.array([t.label for t in self.tetrahedra], dtype=int)

    @property
    def face_connectivity(self) -> NDArray[Any]:
        """Face vertex indices, shape (n_faces, 3)."""
        return np.array([f.vertices for f in self.faces], dtype=int).reshape(-1, 3)

    @property
    def face_labels(self) -> NDArray[Any]:
        """Face labels, shape (n_faces,)."""
        return np.array([f.label for f in self.faces], dtype=int)

    @property
    def face_elements(self) -> NDArray[Any]:
        """Left and right element of each face, shape (n_faces, 2)."""
        return np.array([(f.left, f.right) for f in self.faces], dtype=int).reshape(
            -1, 2
        )

    # ------------------------------------------------------------------ queries
    def boundary_faces(self, label: Optional[int] = None) -> List[Face]:
        """Faces with an element on one side only, optionally with `label`."""
        return [
            f
            for f in self.faces
            if f.is_boundary and (label is None or f.label == label)
        ]

    def interior_faces(self) -> List[Face]:
        """Faces with an element on both sides, slit faces included."""
        return [f for f in self.faces if f.is_interior]

    def slit_faces(self) -> List[Face]:
        """Interior faces carrying a boundary label."""
        return [f for f in self.faces if f.is_slit]

    def element_adjacency(self) -> sp.csr_matrix:
        """Return the symmetric tetrahedron-to-tetrahedron adjacency matrix.

        Entry (i, j) is 1 when tetrahedra i and j share a face.
        """
        n = len(self.tetrahedra)
        pairs = np.array(
            [(f.left, f.right) for f in self.faces if f.is_interior], dtype=int
        ).reshape(-1, 2)
        rows = np.concatenate([pairs[:, 0], pairs[:, 1]])
        cols = np.concatenate([pairs[:, 1], pairs[:, 0]])
        data = np.ones(rows.shape[0], dtype=int)
        return sp.csr_matrix((data, (rows, cols)), shape=(n, n))

    # ------------------------------------------------------------------- export
    def writeVTK(self, filename: str) -> None:
        """Export tetrahedra then faces as a legacy VTK file with scalar ``mat``."""
        VTKWriter.write_unstructured_grid(
            self.points.tolist(),
            self.tet_connectivity.tolist(),
            self.tet_labels.tolist(),
            self.face_connectivity.tolist(),
            self.face_labels.tolist(),
            filename,
        )

    def writeVTU(self, filename: str) -> None:
        """Export tetrahedra and faces in VTU format via meshio.

        Cell data: ``mat`` (labels), ``left`` and ``right`` (face elements,
        `NO_ELEMENT` for tetrahedra).

        Raises:
            Exception: If the underlying mesh writer fails.
        """
        try:
            n_tets = len(self.tetrahedra)
            elems = self.face_elements
            no_elem = np.full(n_tets, NO_ELEMENT, dtype=int)
            m = meshio.Mesh(
                points=np.asarray(self.points),
                cells=[
                    ("tetra", self.tet_connectivity),
                    ("triangle", self.face_connectivity),
                ],
                cell_data={
                    "mat": [self.tet_labels, self.face_labels],
                    "left": [no_elem, elems[:, 0]],
                    "right": [no_elem, elems[:, 1]],
                },
            )
            m.write(filename)
            _LOGGER.info(
                "VTU written to '%s' (points=%d, tets=%d, faces=%d)",
                filename,
                self.points.shape[0],
                n_tets,
                len(self.faces),
            )
        except Exception:
            _LOGGER.exception("writeVTU failed for '%s'.", filename)
            raise

    def __repr__(self) -> str:
        return (
            f"Mesh(points={self.points.shape[0]}, tetrahedra={len(self.tetrahedra)}, "
            f"faces={len(self.faces)})"
        )
