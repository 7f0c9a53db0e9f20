"""Command line entry points for tet-adjacency.

Subcommands:
  - check: build the face adjacency of a mesh file and print a summary.
  - convert: write a mesh file as legacy VTK (tetrahedra then triangles).
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from utils.medit_reader import Keyword, MeditReader, MeshFormatError
from utils.vtk_writer import VTKWriter

from .config import set_log_level
from .errors import IncompatibleMeshError, MeshError
from .mesh import REQUIRED_DIMENSION, REQUIRED_VERSION, Mesh

_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INCOMPATIBLE = 2
EXIT_INVALID = 3


def _check(args: argparse.Namespace) -> int:
    mesh = Mesh.from_file(args.mesh)
    print(f"points:      {mesh.points.shape[0]}")
    print(f"tetrahedra:  {len(mesh.tetrahedra)}")
    print(f"faces:       {len(mesh.faces)}")
    print(f"  boundary:  {len(mesh.boundary_faces())}")
    print(f"  interior:  {len(mesh.interior_faces())}")
    print(f"  slit:      {len(mesh.slit_faces())}")
    return EXIT_OK


def _read_records(reader: MeditReader, keyword: Keyword) -> List[tuple]:
    reader.goto_kwd(keyword)
    return [reader.get_lin(keyword) for _ in range(reader.stat_kwd(keyword))]


def _convert(args: argparse.Namespace) -> int:
    if args.faces:
        mesh = Mesh.from_file(args.input)
        mesh.writeVTK(args.output)
        return EXIT_OK

    with MeditReader(args.input) as reader:
        print(f"Version = {reader.version}, Dimension = {reader.dimension}")
        if (
            reader.version != REQUIRED_VERSION
            or reader.dimension != REQUIRED_DIMENSION
        ):
            _LOGGER.error(
                "Cannot convert '%s': version=%d dimension=%d",
                args.input,
                reader.version,
                reader.dimension,
            )
            raise IncompatibleMeshError(reader.version, reader.dimension, args.input)

        vertices = _read_records(reader, Keyword.VERTICES)
        triangles = _read_records(reader, Keyword.TRIANGLES)
        tetrahedra = _read_records(reader, Keyword.TETRAHEDRA)

    print(f"#V/F/T = {len(vertices)} / {len(triangles)} / {len(tetrahedra)}")
    VTKWriter.write_unstructured_grid(
        [rec[:3] for rec in vertices],
        [[int(v) - 1 for v in rec[:4]] for rec in tetrahedra],
        [int(rec[4]) for rec in tetrahedra],
        [[int(v) - 1 for v in rec[:3]] for rec in triangles],
        [int(rec[3]) for rec in triangles],
        args.output,
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser of the ``tet-adjacency`` command."""
    parser = argparse.ArgumentParser(
        prog="tet-adjacency",
        description="Face adjacency of tetrahedral MEDIT meshes (.mesh/.meshb)",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="INFO, or DEBUG if repeated"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_check = sub.add_parser("check", help="build and validate the face adjacency")
    p_check.add_argument("mesh", help="input .mesh or .meshb file")
    p_check.set_defaults(func=_check)

    p_convert = sub.add_parser("convert", help="write a legacy VTK file")
    p_convert.add_argument("input", help="input .mesh or .meshb file")
    p_convert.add_argument("output", help="output .vtk file")
    p_convert.add_argument(
        "--faces",
        action="store_true",
        help="write the reconstructed faces instead of the stored triangles",
    )
    p_convert.set_defaults(func=_convert)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line interface and return its exit code."""
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
        set_log_level(logging.DEBUG if args.verbose > 1 else logging.INFO)

    try:
        return args.func(args)
    except IncompatibleMeshError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INCOMPATIBLE
    except (MeshError, MeshFormatError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
