from .numerics import lgl_nodes_weights, lg_nodes_weights, triangular_quadrature
from .geometry import Mesh, GridMetadata, RLLMeshConfig, build_rll_mesh, generate_rll_mesh, resolve_output_layout
from .physics import AnalyticField
from .samplers import SamplingConfig, TestData, FiniteVolumeSampler, GLLPointwiseSampler, GLLIntegratedSampler
from .pipeline import generate_test_data
