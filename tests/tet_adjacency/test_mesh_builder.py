"""Tests for the build phases of MeshBuilder.

Covers face reconstruction for one and two tetrahedra, slit boundaries, and
every error raised for inconsistent input.
"""
from __future__ import annotations

import numpy as np
import pytest

from tet_adjacency.adjacency import NO_ELEMENT, NO_LABEL, AdjacencyTable, FaceProperty
from tet_adjacency.errors import (
    DegenerateFaceError,
    DuplicateFaceError,
    IncompatibleMeshError,
    LabelMismatchError,
    MissingFlipError,
    OrientationMismatchError,
    RepeatedVertexError,
)
from tet_adjacency.face_key import FaceKey
from tet_adjacency.mesh import (
    OUTER,
    SLIT,
    Face,
    Mesh,
    MeshBuilder,
    classify_boundary_triangle,
    consolidate,
    register_tetrahedron,
)
from utils.medit_reader import ArrayMeshReader


def _faces_by_vertex_set(mesh):
    return {frozenset(f.vertices): f for f in mesh.faces}


# -----------------------------------------------------------------------------
# Successful builds
# -----------------------------------------------------------------------------
def test_single_tet_has_four_labelled_boundary_faces(single_tet):
    mesh = Mesh.from_arrays(**single_tet)

    assert len(mesh.faces) == 4
    assert set(mesh.faces) == {
        Face((0, 1, 2), 10, 0, NO_ELEMENT),
        Face((0, 1, 3), 11, NO_ELEMENT, 0),
        Face((0, 2, 3), 12, 0, NO_ELEMENT),
        Face((1, 2, 3), 13, NO_ELEMENT, 0),
    }
    for face in mesh.faces:
        assert {face.left, face.right} == {0, NO_ELEMENT}
        assert face.is_boundary
        assert face.normal is None


def test_single_tet_points_and_tetrahedra(single_tet):
    mesh = Mesh.from_arrays(**single_tet)

    np.testing.assert_allclose(mesh.points, single_tet["points"])
    assert len(mesh.tetrahedra) == 1
    assert mesh.tetrahedra[0].vertices == (0, 1, 2, 3)
    assert mesh.tetrahedra[0].label == 1


def test_two_tets_share_one_interior_face(two_tets):
    mesh = Mesh.from_arrays(**two_tets)

    assert len(mesh.faces) == 7
    interior = mesh.interior_faces()
    assert len(interior) == 1
    shared = interior[0]
    assert shared == Face((1, 2, 3), NO_LABEL, 1, 0)
    assert shared.left != shared.right
    assert not shared.is_slit

    boundary = mesh.boundary_faces()
    assert len(boundary) == 6
    assert sorted(f.label for f in boundary) == [1, 2, 3, 4, 5, 6]


def test_slit_boundary_keeps_both_elements(two_tets):
    two_tets["triangles"] = np.vstack([two_tets["triangles"], [[1, 2, 3]]])
    two_tets["tri_labels"] = np.append(two_tets["tri_labels"], 7)

    with ArrayMeshReader(**two_tets) as reader:
        builder = MeshBuilder(reader)
        mesh = builder.build()

    assert (builder.n_outer, builder.n_slit) == (6, 1)
    assert len(mesh.faces) == 7
    shared = _faces_by_vertex_set(mesh)[frozenset({1, 2, 3})]
    assert shared.label == 7
    assert {shared.left, shared.right} == {0, 1}
    assert mesh.slit_faces() == [shared]


def test_slit_boundary_in_either_orientation(two_tets):
    two_tets["triangles"] = np.vstack([two_tets["triangles"], [[3, 2, 1]]])
    two_tets["tri_labels"] = np.append(two_tets["tri_labels"], 9)

    mesh = Mesh.from_arrays(**two_tets)
    shared = _faces_by_vertex_set(mesh)[frozenset({1, 2, 3})]
    assert shared.label == 9
    assert shared.is_slit


def test_fortran_numbering_flag_does_not_change_result(two_tets):
    meshes = []
    for flag in (True, False):
        with ArrayMeshReader(**two_tets) as reader:
            meshes.append(Mesh.from_reader(reader, fortran_numbering=flag))

    assert meshes[0].fortran_numbering is True
    assert meshes[1].fortran_numbering is False
    assert meshes[0].faces == meshes[1].faces
    assert meshes[0].tetrahedra == meshes[1].tetrahedra
    np.testing.assert_array_equal(meshes[0].points, meshes[1].points)


def test_phases_can_run_one_by_one(single_tet):
    with ArrayMeshReader(**single_tet) as reader:
        builder = MeshBuilder(reader)
        builder.check_compatible()
        points = builder.read_vertices()
        assert points.shape == (4, 3)
        builder.read_tetrahedra()
        assert len(builder.table) == 4
        assert builder.read_boundary_triangles() == (4, 0)
        assert len(builder.table) == 8
        assert len(consolidate(builder.table)) == 4


# -----------------------------------------------------------------------------
# Input errors
# -----------------------------------------------------------------------------
@pytest.mark.parametrize("version,dimension", [(1, 3), (3, 3), (2, 2)])
def test_incompatible_reader(single_tet, version, dimension):
    single_tet["points"] = np.zeros((4, dimension))
    reader = ArrayMeshReader(**single_tet, version=version, dimension=dimension)

    with pytest.raises(IncompatibleMeshError) as exc_info:
        Mesh.from_reader(reader)
    assert exc_info.value.version == version
    assert exc_info.value.dimension == dimension


def test_duplicate_oriented_face(single_tet):
    single_tet["points"] = np.vstack([single_tet["points"], [[1.0, 1.0, 1.0]]])
    single_tet["tetrahedra"] = np.array([[0, 1, 2, 3], [0, 1, 2, 4]])
    single_tet["tet_labels"] = np.array([1, 1])

    with pytest.raises(DuplicateFaceError) as exc_info:
        Mesh.from_arrays(**single_tet)
    assert exc_info.value.vertices == (0, 1, 2)
    assert exc_info.value.element == 1
    assert exc_info.value.existing == 0


def test_boundary_triangle_with_tet_orientation(single_tet):
    # Same orientation as the tet face: forward present, flip absent.
    single_tet["triangles"][0] = [0, 1, 2]

    with pytest.raises(OrientationMismatchError) as exc_info:
        Mesh.from_arrays(**single_tet)
    err = exc_info.value
    assert (err.pos, err.neg) == (1, 0)
    assert err.label == 10


def test_boundary_triangle_not_in_mesh(two_tets):
    two_tets["triangles"][0] = [0, 1, 4]

    with pytest.raises(OrientationMismatchError) as exc_info:
        Mesh.from_arrays(**two_tets)
    assert (exc_info.value.pos, exc_info.value.neg) == (0, 0)
    assert exc_info.value.vertices == (0, 1, 4)


def test_boundary_triangle_given_twice(single_tet):
    single_tet["triangles"] = np.vstack([single_tet["triangles"], [[0, 2, 1]]])
    single_tet["tri_labels"] = np.append(single_tet["tri_labels"], 10)

    with ArrayMeshReader(**single_tet) as reader:
        builder = MeshBuilder(reader)
        mesh = builder.build()

    # The second copy finds both orientations and is applied as a slit.
    assert (builder.n_outer, builder.n_slit) == (4, 1)
    assert len(mesh.faces) == 4
    assert Face((0, 1, 2), 10, 0, NO_ELEMENT) in mesh.faces


@pytest.mark.parametrize("dropped", [0, 3])
def test_missing_boundary_triangle(single_tet, dropped):
    keep = [i for i in range(4) if i != dropped]
    single_tet["triangles"] = single_tet["triangles"][keep]
    single_tet["tri_labels"] = single_tet["tri_labels"][keep]

    with pytest.raises(MissingFlipError):
        Mesh.from_arrays(**single_tet)


def test_repeated_vertex_in_boundary_triangle(single_tet):
    single_tet["triangles"][1] = [1, 1, 0]

    with pytest.raises(RepeatedVertexError):
        Mesh.from_arrays(**single_tet)


def test_repeated_vertex_in_tetrahedron(single_tet):
    single_tet["tetrahedra"] = np.array([[0, 1, 1, 3]])

    with pytest.raises(RepeatedVertexError):
        Mesh.from_arrays(**single_tet)


# -----------------------------------------------------------------------------
# Phase functions on hand-made tables
# -----------------------------------------------------------------------------
def test_register_tetrahedron_inserts_outward_faces():
    table = AdjacencyTable()
    register_tetrahedron(table, 5, (0, 1, 2, 3))

    keys = {k for k, _ in table.items()}
    assert keys == {
        FaceKey.of(0, 1, 2),
        FaceKey.of(1, 0, 3),
        FaceKey.of(2, 3, 0),
        FaceKey.of(3, 2, 1),
    }
    assert all(p == FaceProperty(5, NO_LABEL) for _, p in table.items())


def test_classify_outer_and_slit():
    table = AdjacencyTable()
    table.insert_unique(FaceKey.of(0, 1, 2), FaceProperty(0))
    assert classify_boundary_triangle(table, (0, 2, 1), 4) == OUTER
    assert table.get(FaceKey.of(0, 2, 1)) == FaceProperty(NO_ELEMENT, 4)
    assert table.get(FaceKey.of(0, 1, 2)) == FaceProperty(0, 4)

    table.insert_unique(FaceKey.of(1, 2, 3), FaceProperty(0))
    table.insert_unique(FaceKey.of(1, 3, 2), FaceProperty(1))
    assert classify_boundary_triangle(table, (1, 2, 3), 8) == SLIT
    assert table.get(FaceKey.of(1, 2, 3)) == FaceProperty(0, 8)
    assert table.get(FaceKey.of(1, 3, 2)) == FaceProperty(1, 8)


def test_consolidate_label_mismatch():
    table = AdjacencyTable()
    table.insert_unique(FaceKey.of(0, 1, 2), FaceProperty(0, 1))
    table.insert_unique(FaceKey.of(0, 2, 1), FaceProperty(1, 2))

    with pytest.raises(LabelMismatchError) as exc_info:
        consolidate(table)
    assert exc_info.value.labels == (1, 2)


def test_consolidate_same_element_on_both_sides():
    table = AdjacencyTable()
    table.insert_unique(FaceKey.of(0, 1, 2), FaceProperty(5))
    table.insert_unique(FaceKey.of(0, 2, 1), FaceProperty(5))

    with pytest.raises(DegenerateFaceError) as exc_info:
        consolidate(table)
    assert exc_info.value.element == 5


@pytest.mark.parametrize("verts", [(0, 1, 2), (0, 2, 1)])
def test_consolidate_missing_flip(verts):
    table = AdjacencyTable()
    table.insert_unique(FaceKey.of(*verts), FaceProperty(0))

    with pytest.raises(MissingFlipError):
        consolidate(table)


def test_consolidate_uses_ordered_key_as_representative():
    table = AdjacencyTable()
    table.insert_unique(FaceKey.of(3, 2, 1), FaceProperty(0, 4))
    table.insert_unique(FaceKey.of(1, 2, 3), FaceProperty(NO_ELEMENT, 4))

    assert consolidate(table) == [Face((1, 2, 3), 4, NO_ELEMENT, 0)]
