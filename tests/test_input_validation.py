import numpy as np
import pytest

from sphere_testdata.geometry.mesh import Mesh
from sphere_testdata.geometry.rll import RLLMeshConfig
from sphere_testdata.geometry.rectilinear import OutputLayout
from sphere_testdata.numerics.spectral import lgl_nodes_weights, lg_nodes_weights
from sphere_testdata.numerics.triangle import triangular_quadrature
from sphere_testdata.samplers import SamplingConfig, FiniteVolumeSampler


def test_exclusive_gll_modes():
    with pytest.raises(ValueError, match="exclusive"):
        SamplingConfig(gll=True, gll_integrate=True).validate()


def test_bad_point_counts():
    with pytest.raises(ValueError, match="n_p"):
        SamplingConfig(n_p=0).validate()
    with pytest.raises(ValueError, match="n_gauss"):
        SamplingConfig(n_gauss=0).validate()


def test_bad_test_index():
    with pytest.raises(ValueError, match="out of range"):
        FiniteVolumeSampler(SamplingConfig(test=0))


def test_bad_quadrature_sizes():
    with pytest.raises(ValueError):
        lgl_nodes_weights(0.0, 1.0, 0)
    with pytest.raises(ValueError):
        lg_nodes_weights(0.0, 1.0, 0)
    with pytest.raises(ValueError, match="order"):
        triangular_quadrature(-1)


def test_empty_mesh():
    sampler = FiniteVolumeSampler(SamplingConfig())
    layout = OutputLayout(dim_sizes=(0,), dim_names=("ncol",))
    with pytest.raises(ValueError, match="no faces"):
        sampler.sample(Mesh(nodes=np.zeros((0, 3)), faces=[]), layout)


def test_inverted_ranges():
    with pytest.raises(ValueError, match="positive interval"):
        RLLMeshConfig(lon_begin=10.0, lon_end=0.0).validate()
    with pytest.raises(ValueError, match="positive interval"):
        RLLMeshConfig(lat_begin=0.0, lat_end=0.0).validate()


def test_valid_config_passes():
    # Should not raise
    SamplingConfig(test=3, gll_integrate=True, n_p=6).validate()
    RLLMeshConfig(n_lon=3, n_lat=1, lat_begin=-10.0, lat_end=10.0).validate()


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__]))
