import numpy as np
import pytest

from sphere_testdata.geometry.mesh import Mesh, merge_coincident_nodes, xyz_from_lonlat


def make_cubed_sphere(n):
    """Equiangular cubed-sphere quadrilateral mesh with n x n elements per panel."""
    c = np.tan(np.linspace(-0.25 * np.pi, 0.25 * np.pi, n + 1))
    U, V = np.meshgrid(c, c, indexing="ij")

    points = []
    faces = []
    for axis in range(3):
        for sign in (-1.0, 1.0):
            others = [a for a in range(3) if a != axis]
            panel = np.zeros((n + 1, n + 1, 3))
            panel[..., axis] = sign
            panel[..., others[0]] = U
            panel[..., others[1]] = V
            offset = len(points) * (n + 1) ** 2
            points.append(panel.reshape(-1, 3))
            for i in range(n):
                for j in range(n):
                    k = offset + i * (n + 1) + j
                    faces.append((k, k + n + 1, k + n + 2, k + 1))

    points = np.concatenate(points)
    points /= np.linalg.norm(points, axis=-1, keepdims=True)
    nodes, inverse = merge_coincident_nodes(points)
    faces = [tuple(int(inverse[v]) for v in face) for face in faces]
    return Mesh(nodes=nodes, faces=faces)


def make_octahedron():
    nodes = np.array([
        [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [-1.0, 0.0, 0.0],
        [0.0, -1.0, 0.0], [0.0, 0.0, 1.0], [0.0, 0.0, -1.0],
    ])
    faces = []
    for i in range(4):
        ip = (i + 1) % 4
        faces.append((i, ip, 4))
        faces.append((ip, i, 5))
    return Mesh(nodes=nodes, faces=faces)


def make_dart(scale=0.01):
    """
    Concave quadrilateral near (0, 0) with planar area scale**2, listed
    from a corner whose fan triangles overlap.
    """
    lonlat = np.array([[2.0, -1.0], [1.0, 0.0], [2.0, 1.0], [0.0, 0.0]]) * scale
    nodes = xyz_from_lonlat(lonlat[:, 0], lonlat[:, 1])
    return Mesh(nodes=nodes, faces=[(0, 1, 2, 3)])


@pytest.fixture
def cubed_sphere():
    return make_cubed_sphere


@pytest.fixture
def octahedron():
    return make_octahedron()


@pytest.fixture
def dart():
    return make_dart()
