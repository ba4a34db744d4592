import logging
import numpy as np
from sphere_testdata.samplers.base import BaseSampler, SamplingConfig, TestData
from sphere_testdata.geometry.mesh import Mesh, lonlat_from_xyz, spherical_triangle_area
from sphere_testdata.geometry.rectilinear import OutputLayout
from sphere_testdata.numerics.triangle import triangular_quadrature

logger = logging.getLogger(__name__)

class FiniteVolumeSampler(BaseSampler):
    """
    Cell averages of an analytic field.

    Every face is split into a fan of triangles around its first node. Each
    triangle is integrated with a triangular quadrature rule whose points are
    interpolated between the corners and projected back onto the sphere.
    """
    def __init__(self, config: SamplingConfig):
        super().__init__(config)
        self.G, self.W = triangular_quadrature(config.tri_order)
        logger.info("Using triangular quadrature of order %d", config.tri_order)

    def sample(self, mesh: Mesh, layout: OutputLayout) -> TestData:
        self.validate_mesh(mesh)

        if mesh.face_areas is None:
            mesh.calculate_face_areas(self.cfg.concave)

        # 1. Sub-triangles of every face
        tri_face, tri_nodes = mesh.sub_triangles()
        corners = mesh.nodes[tri_nodes]                  # (T, 3, 3)
        tri_area = spherical_triangle_area(corners[:, 0], corners[:, 1], corners[:, 2], signed=self.cfg.concave)

        # 2. Quadrature points: barycentric blend, projected onto the sphere
        points = np.einsum('kc,tcd->tkd', self.G, corners)   # (T, nq, 3)
        points /= np.linalg.norm(points, axis=-1, keepdims=True)
        lon, lat = lonlat_from_xyz(points[..., 0], points[..., 1], points[..., 2])

        # 3. Integrate over each triangle and gather per face
        samples = self.field(lon, lat)
        tri_total = (samples @ self.W) * tri_area
        face_total = np.bincount(tri_face, weights=tri_total, minlength=mesh.n_faces)
        if self.cfg.concave:
            # Signed fan sums follow the orientation of each face
            orientation = np.sign(np.bincount(tri_face, weights=tri_area, minlength=mesh.n_faces))
            face_total = face_total * orientation

        # 4. Cell average written through the output index map
        index_map = layout.face_index_map(mesh.n_faces)
        values = np.zeros(layout.size)
        values[index_map] = face_total / mesh.face_areas

        return TestData(values=values, layout=layout, face_index_map=index_map)
