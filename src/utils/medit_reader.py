"""Module providing readers for MEDIT / GMF tetrahedral mesh files.

The readers expose keyed, sequential record access: the number of records of a
keyword, a cursor positioned at the first record of a keyword, and the next
record as a tuple of numbers (coordinates or 1-based vertex indices followed
by an integer label).

`MeditReader` handles ASCII ``.mesh`` and binary ``.meshb`` files. The header
(version and dimension) is read on construction; the records are parsed with
meshio on first access. `ArrayMeshReader` serves in-memory arrays through the
same interface.
"""
from __future__ import annotations

import logging
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Protocol, Tuple, Union
from typing import runtime_checkable

import meshio
import numpy as np
from numpy.typing import NDArray

_LOGGER = logging.getLogger(__name__)


class MeshFormatError(ValueError):
    """The mesh file cannot be parsed or a record is requested out of range."""


class Keyword(IntEnum):
    """GMF keyword codes used by tetrahedral meshes."""

    DIMENSION = 3
    VERTICES = 4
    TRIANGLES = 6
    TETRAHEDRA = 8
    END = 54


# Vertex indices per record for element keywords; a label follows each record.
_ELEMENT_SIZE = {
    Keyword.TRIANGLES: 3,
    Keyword.TETRAHEDRA: 4,
}

_MESHIO_CELL_TYPES = {
    Keyword.TRIANGLES: "triangle",
    Keyword.TETRAHEDRA: "tetra",
}

_ASCII_HEADER = ("MeshVersionFormatted", "Dimension")

Record = Tuple[Union[int, float], ...]


@runtime_checkable
class MeshReader(Protocol):
    """Keyed sequential access to the records of a mesh description."""

    version: int
    dimension: int

    def stat_kwd(self, keyword: Keyword) -> int: ...

    def goto_kwd(self, keyword: Keyword) -> None: ...

    def get_lin(self, keyword: Keyword) -> Record: ...

    def close(self) -> None: ...


class _KeywordReader:
    """Record storage and cursors shared by the concrete readers.

    Each keyword holds a pair ``(values, labels)``: ``values`` is an array of
    shape (n, k) (float coordinates for vertices, int indices for elements)
    and ``labels`` an int array of shape (n,).
    """

    version: int
    dimension: int

    def __init__(self) -> None:
        self._blocks: Dict[Keyword, Tuple[NDArray[Any], NDArray[Any]]] = {}
        self._cursor: Dict[Keyword, int] = {}
        self._closed = False

    def _load(self) -> None:
        """Fill `_blocks`; called before any record access."""

    def stat_kwd(self, keyword: Keyword) -> int:
        """Return the number of records stored under `keyword` (0 if absent)."""
        self._load()
        block = self._blocks.get(Keyword(keyword))
        return 0 if block is None else int(block[1].shape[0])

    def goto_kwd(self, keyword: Keyword) -> None:
        """Position the cursor of `keyword` at its first record."""
        self._check_open()
        self._load()
        self._cursor[Keyword(keyword)] = 0

    def get_lin(self, keyword: Keyword) -> Record:
        """Return the next record of `keyword` and advance its cursor.

        Raises:
            MeshFormatError: If `goto_kwd` was not called for `keyword` or
                all of its records were already read.
        """
        self._check_open()
        keyword = Keyword(keyword)
        if keyword not in self._cursor:
            raise MeshFormatError(f"goto_kwd({keyword.name}) was not called")
        i = self._cursor[keyword]
        if i >= self.stat_kwd(keyword):
            raise MeshFormatError(
                f"No record {i + 1} for {keyword.name} "
                f"({self.stat_kwd(keyword)} available)"
            )
        self._cursor[keyword] = i + 1
        values, labels = self._blocks[keyword]
        return (*values[i].tolist(), int(labels[i]))

    def close(self) -> None:
        """Release all stored records."""
        self._blocks.clear()
        self._cursor.clear()
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise MeshFormatError("Reader is closed")

    def __enter__(self) -> _KeywordReader:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class MeditReader(_KeywordReader):
    """Read an ASCII (``.mesh``) or binary (``.meshb``) MEDIT file.

    Only the header is read on construction, so that `version` and
    `dimension` can be checked before the body is parsed. The records are
    loaded with `meshio` on the first `stat_kwd` or `goto_kwd`.

    Args:
        filename (str): Path to the mesh file. The ``.meshb`` extension
            selects the binary format, anything else the ASCII one.

    Attributes:
        filename (str): Path the reader was opened with.
        version (int): ``MeshVersionFormatted`` value of the file.
        dimension (int): Spatial dimension declared by the file.

    Raises:
        MeshFormatError: If the file is missing or its header is malformed.
            A malformed body raises on first record access.
    """

    def __init__(self, filename: Union[str, Path]) -> None:
        super().__init__()
        self.filename = str(filename)
        self._path = Path(filename)
        self._loaded = False
        if not self._path.is_file():
            raise MeshFormatError(f"Mesh file '{self.filename}' not found")

        # meshio picks the binary reader by the same extension
        if self._path.suffix == ".meshb":
            self.version, self.dimension = self._read_binary_header()
        else:
            self.version, self.dimension = self._read_ascii_header()

        _LOGGER.info(
            "Opened '%s' (version=%d, dimension=%d)",
            self.filename,
            self.version,
            self.dimension,
        )

    def _read_ascii_header(self) -> Tuple[int, int]:
        header: Dict[str, int] = {}
        with open(self._path) as f:
            tokens = (tok for line in f for tok in line.split("#", 1)[0].split())
            for tok in tokens:
                if tok not in _ASCII_HEADER:
                    break
                value = next(tokens, "")
                try:
                    header[tok] = int(value)
                except ValueError:
                    raise MeshFormatError(
                        f"Malformed '{tok}' in '{self.filename}': {value!r}"
                    ) from None
                if len(header) == len(_ASCII_HEADER):
                    break

        if len(header) != len(_ASCII_HEADER):
            raise MeshFormatError(
                f"'{self.filename}' lacks MeshVersionFormatted or Dimension"
            )
        return header["MeshVersionFormatted"], header["Dimension"]

    def _read_binary_header(self) -> Tuple[int, int]:
        # code, version, then the Dimension keyword, its next-block position
        # (int32 below version 3, int64 from 3 on) and the dimension itself
        with open(self._path, "rb") as f:
            head = f.read(24)
        if len(head) < 8:
            raise MeshFormatError(f"'{self.filename}' is too short for a meshb header")

        if int(np.frombuffer(head, dtype="<i4", count=1)[0]) == 1:
            key_t = np.dtype("<i4")
        elif int(np.frombuffer(head, dtype=">i4", count=1)[0]) == 1:
            key_t = np.dtype(">i4")
        else:
            raise MeshFormatError(f"'{self.filename}' has an invalid endianness code")

        version = int(np.frombuffer(head, dtype=key_t, count=1, offset=4)[0])
        if not 1 <= version <= 4:
            raise MeshFormatError(f"'{self.filename}' has unsupported version {version}")

        dim_offset = 12 + (8 if version >= 3 else 4)
        if (
            len(head) < dim_offset + 4
            or int(np.frombuffer(head, dtype=key_t, count=1, offset=8)[0])
            != Keyword.DIMENSION
        ):
            raise MeshFormatError(f"'{self.filename}' lacks a Dimension keyword")
        dimension = int(np.frombuffer(head, dtype=key_t, count=1, offset=dim_offset)[0])
        return version, dimension

    def _load(self) -> None:
        if self._loaded or self._closed:
            return
        try:
            mesh = meshio.medit.read(self.filename)
        except (meshio.ReadError, ValueError, KeyError, IndexError) as exc:
            _LOGGER.error("Cannot parse '%s': %s", self.filename, exc)
            raise MeshFormatError(f"Cannot parse '{self.filename}': {exc}") from exc

        n_points = len(mesh.points)
        refs = mesh.point_data.get("medit:ref", np.zeros(n_points))
        self._blocks[Keyword.VERTICES] = (
            np.asarray(mesh.points, dtype=np.float64),
            np.asarray(refs, dtype=np.int64),
        )
        for keyword, cell_type in _MESHIO_CELL_TYPES.items():
            blocks = [
                (block.data, ref)
                for block, ref in zip(mesh.cells, mesh.cell_data["medit:ref"])
                if block.type == cell_type
            ]
            if not blocks:
                continue
            conn = np.concatenate([data for data, _ in blocks]).astype(np.int64)
            labels = np.concatenate([ref for _, ref in blocks]).astype(np.int64)
            # meshio shifts indices to 0-based; records are served 1-based
            self._blocks[keyword] = (conn + 1, labels)
        self._loaded = True

        _LOGGER.info(
            "Loaded '%s': %d vertices, %d triangles, %d tetrahedra",
            self.filename,
            self.stat_kwd(Keyword.VERTICES),
            self.stat_kwd(Keyword.TRIANGLES),
            self.stat_kwd(Keyword.TETRAHEDRA),
        )


class ArrayMeshReader(_KeywordReader):
    """Serve in-memory mesh arrays through the `MeshReader` interface.

    Indices are given 0-based and are returned 1-based by `get_lin`, matching
    what a file reader produces.

    Args:
        points: Vertex coordinates, shape (n_points, 3).
        tetrahedra: Tetrahedron vertex indices, shape (n_tets, 4).
        tet_labels: Tetrahedron labels, shape (n_tets,). Defaults to zeros.
        triangles: Boundary triangle vertex indices, shape (n_tris, 3).
        tri_labels: Boundary triangle labels, shape (n_tris,). Defaults to zeros.
        version: Version reported by the reader.
        dimension: Dimension reported by the reader.
    """

    def __init__(
        self,
        points: Any,
        tetrahedra: Any,
        tet_labels: Any = None,
        triangles: Any = None,
        tri_labels: Any = None,
        version: int = 2,
        dimension: int = 3,
    ) -> None:
        super().__init__()
        self.version = version
        self.dimension = dimension

        pts = np.asarray(points, dtype=float).reshape(-1, dimension)
        self._blocks[Keyword.VERTICES] = (pts, np.zeros(len(pts), dtype=np.int64))
        self._add_elements(Keyword.TETRAHEDRA, tetrahedra, tet_labels)
        self._add_elements(Keyword.TRIANGLES, triangles, tri_labels)

        _LOGGER.debug(
            "ArrayMeshReader: %d vertices, %d triangles, %d tetrahedra",
            self.stat_kwd(Keyword.VERTICES),
            self.stat_kwd(Keyword.TRIANGLES),
            self.stat_kwd(Keyword.TETRAHEDRA),
        )

    def _add_elements(self, keyword: Keyword, conn: Any, labels: Any) -> None:
        size = _ELEMENT_SIZE[keyword]
        if conn is None:
            conn = np.empty((0, size), dtype=np.int64)
        conn = np.asarray(conn, dtype=np.int64).reshape(-1, size)
        if labels is None:
            labels = np.zeros(len(conn), dtype=np.int64)
        labels = np.asarray(labels, dtype=np.int64).ravel()
        if labels.shape[0] != conn.shape[0]:
            raise ValueError(
                f"{keyword.name}: {labels.shape[0]} labels for {conn.shape[0]} records"
            )
        self._blocks[keyword] = (conn + 1, labels)
