"""Build the face adjacency of two tetrahedra and export it.

Run from the repository root:
    python examples/build_adjacency.py
"""
import logging

import numpy as np

import tet_adjacency as ta

logging.basicConfig(level=logging.INFO)
ta.set_log_level("INFO")

points = np.array(
    [
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
        [1.0, 1.0, 1.0],
    ]
)
tetrahedra = np.array([[0, 1, 2, 3], [1, 2, 3, 4]])
# Outer boundary triangles point away from their tetrahedron; the last one
# marks the shared face as a slit (material interface) with label 7.
triangles = np.array(
    [[0, 2, 1], [1, 3, 0], [2, 0, 3], [2, 4, 1], [3, 1, 4], [4, 2, 3], [1, 2, 3]]
)
tri_labels = np.array([1, 1, 1, 2, 2, 2, 7])

mesh = ta.Mesh.from_arrays(points, tetrahedra, [1, 2], triangles, tri_labels)

for face in mesh.faces:
    print(face.vertices, "label", face.label, "left", face.left, "right", face.right)

print("slit faces:", mesh.slit_faces())
print("element adjacency:\n", mesh.element_adjacency().toarray())

mesh.writeVTK("two_tets.vtk")
mesh.writeVTU("two_tets.vtu")
