from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Optional

import numpy as np
import pytest


@pytest.fixture
def single_tet() -> Dict[str, Any]:
    """
    One tetrahedron (0, 1, 2, 3) and its four boundary triangles.

    Each boundary triangle lists the vertices of a tet face in reverse order,
    so its forward key is new and its flip is the tet face. Labels 10..13.
    """
    return {
        "points": np.array(
            [
                [0.0, 0.0, 0.0],
                [1.0, 0.0, 0.0],
                [0.0, 1.0, 0.0],
                [0.0, 0.0, 1.0],
            ]
        ),
        "tetrahedra": np.array([[0, 1, 2, 3]]),
        "tet_labels": np.array([1]),
        "triangles": np.array([[0, 2, 1], [1, 3, 0], [2, 0, 3], [3, 1, 2]]),
        "tri_labels": np.array([10, 11, 12, 13]),
    }


@pytest.fixture
def two_tets() -> Dict[str, Any]:
    """
    Tetrahedra (0, 1, 2, 3) and (1, 2, 3, 4) sharing face {1, 2, 3}.

    The six outer boundary triangles carry labels 1..6; the shared face has
    no boundary triangle.
    """
    return {
        "points": np.array(
            [
                [0.0, 0.0, 0.0],
                [1.0, 0.0, 0.0],
                [0.0, 1.0, 0.0],
                [0.0, 0.0, 1.0],
                [1.0, 1.0, 1.0],
            ]
        ),
        "tetrahedra": np.array([[0, 1, 2, 3], [1, 2, 3, 4]]),
        "tet_labels": np.array([1, 2]),
        "triangles": np.array(
            [[0, 2, 1], [1, 3, 0], [2, 0, 3], [2, 4, 1], [3, 1, 4], [4, 2, 3]]
        ),
        "tri_labels": np.array([1, 2, 3, 4, 5, 6]),
    }


@pytest.fixture
def write_medit(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper writing an ASCII .mesh file from 0-based arrays."""

    def _write(
        points: Any,
        tetrahedra: Any,
        tet_labels: Any,
        triangles: Any,
        tri_labels: Any,
        name: str = "mesh.mesh",
        version: int = 2,
        dimension: int = 3,
        extra: Optional[str] = None,
    ) -> Path:
        lines = [
            "# written by the test suite",
            f"MeshVersionFormatted {version}",
            "",
            f"Dimension {dimension}",
            "",
            "Vertices",
            str(len(points)),
        ]
        lines += [" ".join(str(c) for c in p) + " 0" for p in points]
        if extra:
            lines.append(extra)
        lines += ["Triangles", str(len(triangles))]
        lines += [
            " ".join(str(v + 1) for v in tri) + f" {lab}"
            for tri, lab in zip(triangles, tri_labels)
        ]
        lines += ["Tetrahedra", str(len(tetrahedra))]
        lines += [
            " ".join(str(v + 1) for v in tet) + f" {lab}"
            for tet, lab in zip(tetrahedra, tet_labels)
        ]
        lines.append("End")
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write
