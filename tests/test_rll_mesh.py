import unittest
import numpy as np
import pytest
from sphere_testdata.geometry.mesh import GridMetadata
from sphere_testdata.geometry.rll import (
    RLLMeshConfig, build_rll_mesh, generate_rll_mesh, edges_from_range,
    lon_edges_from_nodes, lat_edges_from_nodes, is_periodic_span,
)


def _rll(n_lon, n_lat, lon=(0.0, 360.0), lat=(-90.0, 90.0), flip=False):
    return build_rll_mesh(RLLMeshConfig(
        n_lon=n_lon, n_lat=n_lat,
        lon_begin=lon[0], lon_end=lon[1], lat_begin=lat[0], lat_end=lat[1],
        flip=flip,
    ))


class TestRLLMesh(unittest.TestCase):

    def test_periodic_band(self):
        mesh = _rll(8, 4, lat=(-60.0, 60.0))
        self.assertEqual(mesh.n_nodes, 40)
        self.assertEqual(mesh.n_faces, 32)
        self.assertTrue(mesh.is_quadrilateral())

    def test_regional_band(self):
        mesh = _rll(8, 4, lon=(0.0, 180.0), lat=(-60.0, 60.0))
        self.assertEqual(mesh.n_nodes, 45)
        self.assertEqual(mesh.n_faces, 32)

    def test_both_poles(self):
        mesh = _rll(4, 2)
        self.assertEqual(mesh.n_nodes, 6)
        self.assertEqual(mesh.n_faces, 8)

        mesh = _rll(12, 6)
        self.assertEqual(mesh.n_nodes, 62)
        self.assertEqual(mesh.n_faces, 72)

    def test_pole_nodes(self):
        mesh = _rll(12, 6)
        np.testing.assert_allclose(mesh.nodes[0], [0.0, 0.0, -1.0])
        np.testing.assert_allclose(mesh.nodes[-1], [0.0, 0.0, 1.0])
        np.testing.assert_allclose(np.linalg.norm(mesh.nodes, axis=1), 1.0, atol=1e-15)

    def test_polar_fans(self):
        """Polar faces repeat the pole node; interior faces have four distinct nodes."""
        n_lon, n_lat = 12, 6
        mesh = _rll(n_lon, n_lat)
        pole_s, pole_n = 0, mesh.n_nodes - 1
        for i in range(n_lon):
            south = mesh.faces[i]
            north = mesh.faces[(n_lat - 1) * n_lon + i]
            self.assertEqual((south[0], south[3]), (pole_s, pole_s))
            self.assertEqual((north[0], north[3]), (pole_n, pole_n))
        for face in mesh.faces[n_lon:(n_lat - 1) * n_lon]:
            self.assertEqual(len(set(face)), 4)

    def test_south_pole_only(self):
        mesh = _rll(6, 3, lat=(-90.0, 0.0))
        self.assertEqual(mesh.n_nodes, 19)
        self.assertEqual(mesh.n_faces, 18)
        self.assertEqual(sum(1 for f in mesh.faces if f[0] == f[3] == 0), 6)

    def test_no_duplicate_nodes(self):
        mesh = _rll(16, 8)
        d = np.linalg.norm(mesh.nodes[:, None, :] - mesh.nodes[None, :, :], axis=-1)
        np.fill_diagonal(d, 1.0)
        self.assertGreater(d.min(), 1e-6)

    def test_every_face_used_node(self):
        mesh = _rll(10, 5)
        used = np.unique(np.concatenate([np.array(f) for f in mesh.faces]))
        np.testing.assert_array_equal(used, np.arange(mesh.n_nodes))

    def test_flip_ordering(self):
        n_lon, n_lat = 6, 4
        plain = _rll(n_lon, n_lat)
        flipped = _rll(n_lon, n_lat, flip=True)
        for i in range(n_lon):
            for j in range(n_lat):
                self.assertEqual(flipped.faces[i * n_lat + j], plain.faces[j * n_lon + i])
        np.testing.assert_array_equal(flipped.nodes, plain.nodes)

    def test_rectilinear_metadata(self):
        self.assertEqual(_rll(6, 4).metadata,
                         GridMetadata(rectilinear=True, dim_sizes=(4, 6), dim_names=("lat", "lon")))
        self.assertEqual(_rll(6, 4, flip=True).metadata,
                         GridMetadata(rectilinear=True, dim_sizes=(6, 4), dim_names=("lon", "lat")))

    def test_total_area(self):
        mesh = _rll(36, 18)
        self.assertAlmostEqual(np.sum(mesh.calculate_face_areas()), 4.0 * np.pi, places=12)


class TestEdges(unittest.TestCase):

    def test_edges_from_range(self):
        edges = edges_from_range(0.0, 360.0, 4)
        np.testing.assert_allclose(edges, [0.0, 0.5 * np.pi, np.pi, 1.5 * np.pi, 2.0 * np.pi])

    def test_periodic_span(self):
        self.assertTrue(is_periodic_span(edges_from_range(0.0, 360.0, 7)))
        self.assertTrue(is_periodic_span(edges_from_range(-180.0, 180.0, 7)))
        self.assertFalse(is_periodic_span(edges_from_range(0.0, 180.0, 7)))

    def test_lon_edges_periodic(self):
        lon = np.arange(0.0, 360.0, 10.0)
        edges, periodic = lon_edges_from_nodes(lon)
        self.assertTrue(periodic)
        self.assertEqual(len(edges), 37)
        self.assertAlmostEqual(edges[0], -5.0)
        self.assertAlmostEqual(edges[-1], -5.0)
        np.testing.assert_allclose(edges[1:-1], lon[:-1] + 5.0)

    def test_lon_edges_regional(self):
        edges, periodic = lon_edges_from_nodes(np.array([0.0, 10.0, 20.0]))
        self.assertFalse(periodic)
        np.testing.assert_allclose(edges, [-5.0, 5.0, 15.0, 25.0])

        edges, periodic = lon_edges_from_nodes(np.array([0.0, 10.0, 20.0]), force_global=True)
        self.assertTrue(periodic)
        self.assertAlmostEqual(edges[0], edges[-1])

    def test_lat_edges_clamped(self):
        edges = lat_edges_from_nodes(np.array([-80.0, 0.0, 80.0]))
        np.testing.assert_allclose(edges, [-90.0, -40.0, 40.0, 90.0])

    def test_node_arrays_validated(self):
        with self.assertRaises(ValueError):
            lon_edges_from_nodes(np.array([10.0]))
        with self.assertRaises(ValueError):
            lat_edges_from_nodes(np.array([10.0, 0.0]))


def test_both_poles_need_two_latitudes():
    lon = edges_from_range(0.0, 360.0, 4)
    lat = edges_from_range(-90.0, 90.0, 1)
    with pytest.raises(ValueError, match="both poles"):
        generate_rll_mesh(lon, lat)


@pytest.mark.parametrize("kwargs, match", [
    (dict(lat_begin=10.0, lat_end=-10.0), "lat_begin"),
    (dict(lon_begin=90.0, lon_end=90.0), "lon_begin"),
    (dict(n_lon=0), "resolution"),
    (dict(lat_begin=-100.0), "within"),
])
def test_config_validation(kwargs, match):
    with pytest.raises(ValueError, match=match):
        build_rll_mesh(RLLMeshConfig(**kwargs))
