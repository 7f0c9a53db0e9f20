"""The utils package contains mesh file readers and writers used by tet_adjacency.

Submodules:
  - medit_reader: MeditReader for MEDIT .mesh/.meshb files, ArrayMeshReader.
  - vtk_writer: VTKWriter for legacy VTK unstructured grids.

Utilities:
  MeditReader, ArrayMeshReader, VTKWriter
"""

from utils.medit_reader import (
    ArrayMeshReader,
    Keyword,
    MeditReader,
    MeshFormatError,
    MeshReader,
)
from utils.vtk_writer import VTKWriter

__all__ = [
    "ArrayMeshReader",
    "Keyword",
    "MeditReader",
    "MeshFormatError",
    "MeshReader",
    "VTKWriter",
]
