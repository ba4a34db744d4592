from .spectral import lg_nodes_weights, lgl_nodes_weights, lagrange_basis
from .triangle import triangular_quadrature
