import logging
import numpy as np
from typing import Tuple
from sphere_testdata.samplers.base import BaseSampler, SamplingConfig, TestData, NodalAccumulator
from sphere_testdata.geometry.mesh import Mesh, lonlat_from_xyz
from sphere_testdata.geometry.rectilinear import OutputLayout, finite_element_layout
from sphere_testdata.geometry.finite_element import (
    apply_local_map, local_jacobian, generate_metadata, sample_gll_finite_element, quad_corners
)
from sphere_testdata.numerics.spectral import lg_nodes_weights, lgl_nodes_weights

logger = logging.getLogger(__name__)

class _FiniteElementSampler(BaseSampler):
    """Shared setup for samplers on continuous GLL finite elements."""

    def sample(self, mesh: Mesh, layout: OutputLayout) -> TestData:
        self.validate_mesh(mesh)
        if layout.flip:
            logger.warning("Rectilinear flip does not apply to finite-element output; ignored")

        corners = quad_corners(mesh)
        gll_nodes, gll_jacobian = generate_metadata(mesh, self.cfg.n_p)
        n_nodes = int(gll_nodes.max())
        out_layout = finite_element_layout(layout, n_nodes)

        # Zero-based global index per (face, q, p)
        index = np.moveaxis(gll_nodes, -1, 0) - 1

        data = self._sample_nodes(corners, index, gll_jacobian, n_nodes)
        data.layout = out_layout
        return data

    def _gll_points(self, corners: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Longitude/latitude (radians) at the GLL points, shaped (n_faces, n_p, n_p)."""
        g, _ = lgl_nodes_weights(0.0, 1.0, self.cfg.n_p)
        BB, AA = np.meshgrid(g, g, indexing="ij")
        node, _, _ = apply_local_map(corners[:, np.newaxis, np.newaxis], AA, BB)
        return lonlat_from_xyz(node[..., 0], node[..., 1], node[..., 2])

    def _sample_nodes(self, corners, index, gll_jacobian, n_nodes) -> TestData:
        raise NotImplementedError("Subclasses must implement _sample_nodes")

class GLLPointwiseSampler(_FiniteElementSampler):
    """
    Field values at the continuous GLL nodes of every quadrilateral element.
    Nodes shared between elements map to the same physical point, so repeated
    writes carry the same value.
    """
    def _sample_nodes(self, corners, index, gll_jacobian, n_nodes) -> TestData:
        lon, lat = self._gll_points(corners)
        samples = self.field(lon, lat)

        values = np.zeros(n_nodes)
        values[index] = samples

        data = TestData(values=values, layout=None)
        if self.cfg.level:
            data.lat = np.zeros(n_nodes)
            data.lon = np.zeros(n_nodes)
            data.lat[index] = np.rad2deg(lat)
            data.lon[index] = np.rad2deg(lon)

            area = NodalAccumulator(n_nodes)
            jac = np.moveaxis(gll_jacobian, -1, 0)
            area.accumulate(index.ravel(), None, jac.ravel())
            data.area = area.area
        return data

class GLLIntegratedSampler(_FiniteElementSampler):
    """
    Galerkin projection of the field onto the GLL nodal basis.

    Each element is integrated with an n_gauss x n_gauss Gauss rule; the
    weighted samples and weights are accumulated per global node and divided
    by the accumulated nodal area.
    """
    def __init__(self, config: SamplingConfig):
        super().__init__(config)
        self.gauss_g, self.gauss_w = lg_nodes_weights(0.0, 1.0, config.n_gauss)

    def _sample_nodes(self, corners, index, gll_jacobian, n_nodes) -> TestData:
        n_p = self.cfg.n_p

        # Quadrature grid [p, q] -> alpha = g[p], beta = g[q]
        AA, BB = np.meshgrid(self.gauss_g, self.gauss_g, indexing="ij")
        W = np.outer(self.gauss_w, self.gauss_w)

        node, dx1, dx2 = apply_local_map(corners[:, np.newaxis, np.newaxis], AA, BB)
        jacobian = local_jacobian(dx1, dx2)                   # (F, nG, nG)
        lon, lat = lonlat_from_xyz(node[..., 0], node[..., 1], node[..., 2])
        samples = self.field(lon, lat)

        # Basis coefficients [p, q, j, i] at every quadrature point
        coeff = sample_gll_finite_element(n_p, AA, BB)

        nodal_area = np.einsum('fpq,pqji->fji', jacobian * W, coeff)
        nodal_value = np.einsum('fpq,pqji->fji', samples * jacobian * W, coeff)

        acc = NodalAccumulator(n_nodes)
        acc.accumulate(index.ravel(), nodal_value.ravel(), nodal_area.ravel())
        values = acc.normalize()

        data = TestData(values=values, layout=None)
        if self.cfg.level:
            gll_lon, gll_lat = self._gll_points(corners)
            data.lat = np.zeros(n_nodes)
            data.lon = np.zeros(n_nodes)
            data.lat[index] = np.rad2deg(gll_lat)
            data.lon[index] = np.rad2deg(gll_lon)
            data.area = acc.area
        return data
