"""Module defining VTKWriter for exporting tetrahedral meshes to legacy VTK.

This module provides VTKWriter, a utility class with a static method to write
points, tetrahedra and triangles as an ASCII legacy VTK unstructured grid
(``.vtk``), with one integer cell scalar ``mat`` holding the labels.
"""

import logging
from typing import Dict, Optional, Sequence, Tuple

_LOGGER = logging.getLogger(__name__)

VTK_TRIANGLE = 5
VTK_TETRA = 10


class VTKWriter:
    """Utility class for writing tetrahedral meshes to legacy VTK format.

    Cells are written tetrahedra first, then triangles; every cell scalar
    follows the same order.
    """

    @staticmethod
    def write_unstructured_grid(
        points: Sequence[Tuple[float, float, float]],
        tetrahedra: Sequence[Sequence[int]],
        tet_labels: Sequence[int],
        triangles: Sequence[Sequence[int]],
        tri_labels: Sequence[int],
        filename: str,
        extra_cell_data: Optional[Dict[str, Sequence[int]]] = None,
        title: str = "nocomments",
    ) -> None:
        """Write a tetrahedral mesh with triangles to a legacy VTK file.

        Args:
            points (Sequence[Tuple[float, float, float]]): (x, y, z) of each point.
            tetrahedra (Sequence[Sequence[int]]): 0-based vertex indices, 4 per cell.
            tet_labels (Sequence[int]): Label of each tetrahedron.
            triangles (Sequence[Sequence[int]]): 0-based vertex indices, 3 per cell.
            tri_labels (Sequence[int]): Label of each triangle.
            filename (str): Path to the output .vtk file.
            extra_cell_data (Optional[Dict[str, Sequence[int]]]): Further integer
                cell scalars, one value per tetrahedron then per triangle.
            title (str): Header comment line.

        Raises:
            ValueError: If a label or scalar array does not match its cells.
        """
        n_tets = len(tetrahedra)
        n_tris = len(triangles)
        n_cells = n_tets + n_tris
        if len(tet_labels) != n_tets or len(tri_labels) != n_tris:
            raise ValueError(
                f"labels ({len(tet_labels)}, {len(tri_labels)}) do not match "
                f"cells ({n_tets}, {n_tris})"
            )
        scalars: Dict[str, Sequence[int]] = {
            "mat": list(tet_labels) + list(tri_labels)
        }
        for name, values in (extra_cell_data or {}).items():
            if len(values) != n_cells:
                raise ValueError(
                    f"cell scalar '{name}' has {len(values)} values for {n_cells} cells"
                )
            scalars[name] = values

        lines = [
            "# vtk DataFile Version 3.0",
            title,
            "ASCII",
            "DATASET UNSTRUCTURED_GRID",
            f"POINTS {len(points)} float",
        ]
        lines.extend(f"{x} {y} {z}" for x, y, z in points)

        lines.append(f"CELLS {n_cells} {5 * n_tets + 4 * n_tris}")
        lines.extend("4 " + " ".join(str(int(v)) for v in tet) for tet in tetrahedra)
        lines.extend("3 " + " ".join(str(int(v)) for v in tri) for tri in triangles)

        lines.append(f"CELL_TYPES {n_cells}")
        lines.extend([str(VTK_TETRA)] * n_tets)
        lines.extend([str(VTK_TRIANGLE)] * n_tris)

        lines.append(f"CELL_DATA {n_cells}")
        for name, values in scalars.items():
            lines.append(f"SCALARS {name} int")
            lines.append("LOOKUP_TABLE default")
            lines.extend(str(int(v)) for v in values)

        with open(filename, "w") as f:
            f.write("\n".join(lines) + "\n")

        _LOGGER.info(
            "VTK written to '%s' (points=%d, tets=%d, triangles=%d)",
            filename,
            len(points),
            n_tets,
            n_tris,
        )
