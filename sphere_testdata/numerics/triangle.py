"""Quadrature on triangles expressed in barycentric coordinates."""

import numpy as np
from typing import Tuple
from sphere_testdata.numerics.spectral import lg_nodes_weights


def triangular_quadrature(order: int = 10) -> Tuple[np.ndarray, np.ndarray]:
    """
    Collapsed Gauss-Legendre product rule on a triangle.

    The square [0, 1]^2 is mapped onto the reference triangle by
    x = u, y = v (1 - u), whose Jacobian (1 - u) is folded into the weights.
    With n points per direction the rule integrates polynomials of total
    degree 2n - 2 exactly, so n = ceil(order / 2) + 1.

    Args:
        order: Polynomial degree the rule must integrate exactly.

    Returns:
        G: Barycentric coordinates of the points, shape (n*n, 3).
        W: Weights, shape (n*n,), summing to 1 (i.e. normalised by area).
    """
    if order < 0:
        raise ValueError(f"Triangular quadrature order must be >= 0; got {order}.")

    n = order // 2 + 1
    u, wu = lg_nodes_weights(0.0, 1.0, n)
    v, wv = lg_nodes_weights(0.0, 1.0, n)

    UU, VV = np.meshgrid(u, v, indexing="ij")
    x = UU.ravel()
    y = (VV * (1.0 - UU)).ravel()

    # Reference triangle has area 1/2
    W = 2.0 * (np.outer(wu, wv) * (1.0 - UU)).ravel()

    G = np.stack([1.0 - x - y, x, y], axis=-1)
    return G, W
