"""The tet_adjacency package derives face adjacency for tetrahedral meshes.

This package offers:
  - Orientation-aware triangle keys and the face adjacency table.
  - A builder that reads vertices, tetrahedra and boundary triangles and
    reconstructs every face with the tetrahedra on both of its sides.
  - Validation of the input topology through typed errors.

Submodules:
  - adjacency: FaceProperty and AdjacencyTable.
  - cli: Command line interface (check, convert).
  - config: Logging level and build defaults.
  - errors: Exception hierarchy.
  - face_key: FaceKey canonical triangle identity.
  - mesh: Tetrahedron, Face, MeshBuilder and Mesh.

Classes:
  AdjacencyTable, Face, FaceKey, FaceProperty, Mesh, MeshBuilder, Tetrahedron

Utilities:
  MeditReader, ArrayMeshReader, VTKWriter
"""

from .config import (
    config,
    configure,
    use,
    set_log_level,
)

from tet_adjacency.adjacency import NO_ELEMENT, NO_LABEL, AdjacencyTable, FaceProperty
from tet_adjacency.errors import (
    DegenerateFaceError,
    DuplicateFaceError,
    IncompatibleMeshError,
    LabelMismatchError,
    MeshError,
    MissingFlipError,
    OrientationMismatchError,
    RepeatedVertexError,
)
from tet_adjacency.face_key import FaceKey
from tet_adjacency.mesh import Face, Mesh, MeshBuilder, Tetrahedron

from utils.medit_reader import ArrayMeshReader, Keyword, MeditReader, MeshFormatError
from utils.vtk_writer import VTKWriter

__all__ = [
    # Core classes
    "AdjacencyTable",
    "Face",
    "FaceKey",
    "FaceProperty",
    "Mesh",
    "MeshBuilder",
    "Tetrahedron",
    "NO_ELEMENT",
    "NO_LABEL",
    # Errors
    "MeshError",
    "IncompatibleMeshError",
    "DuplicateFaceError",
    "OrientationMismatchError",
    "LabelMismatchError",
    "DegenerateFaceError",
    "MissingFlipError",
    "RepeatedVertexError",
    "MeshFormatError",
    # Utilities
    "ArrayMeshReader",
    "Keyword",
    "MeditReader",
    "VTKWriter",
    # Configuration
    "config",
    "configure",
    "use",
    "set_log_level",
]
