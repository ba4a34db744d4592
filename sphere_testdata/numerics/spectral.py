import numpy as np
from numpy.polynomial.legendre import Legendre
from typing import Tuple

def lg_nodes_weights(a: float, b: float, N: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute Legendre-Gauss (LG) nodes and weights on interval [a, b].

    Parameters
    ----------
    a, b : float
        Interval endpoints.
    N : int
        Number of quadrature nodes.
    """
    if N < 1:
        raise ValueError("Gauss quadrature requires N >= 1")

    xi, wi = np.polynomial.legendre.leggauss(N)
    c = 0.5 * (b - a)
    m = 0.5 * (b + a)
    # Linear map from [-1, 1] to [a, b]
    nodes = c * xi + m
    weights = c * wi
    return nodes, weights

def lgl_nodes_weights(a: float, b: float, N: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Legendre-Gauss-Lobatto (LGL) nodes and weights on [a, b].
    Nodes include endpoints for N >= 2. A single node (N = 1) sits at the
    midpoint and carries the full interval length, giving a one-node element.
    """
    if N < 1:
        raise ValueError("LGL requires N >= 1")

    if N == 1:
        return np.array([0.5 * (a + b)]), np.array([b - a], dtype=float)

    # Use Legendre polynomial of degree N-1, denoted as P_{N-1}
    P = Legendre.basis(N - 1)
    dP = P.deriv()

    # Interior nodes are roots of P'_{N-1}
    x_int = np.sort(dP.roots()) if N > 2 else np.array([], dtype=float)

    # Concatenate endpoints -1 and 1
    x = np.concatenate(([-1.0], x_int, [1.0]))

    # Compute weights on reference interval [-1, 1]
    # Formula: w_j = 2 / (N * (N-1) * [P_{N-1}(x_j)]^2)
    PN1_vals = P(x)
    w = 2.0 / (N * (N - 1) * (PN1_vals ** 2))

    # Linear map to [a, b]
    c = 0.5 * (b - a)
    m = 0.5 * (b + a)
    nodes = c * x + m
    weights = c * w
    return nodes, weights

def lagrange_basis(nodes: np.ndarray, x: np.ndarray) -> np.ndarray:
    """
    Evaluate the Lagrange cardinal polynomials of `nodes` at the points `x`.

    Uses the barycentric form. Points that coincide with a node return the
    exact Kronecker row.

    Returns
    -------
    np.ndarray
        Shape x.shape + (len(nodes),); entry [..., p] is L_p(x).
    """
    nodes = np.asarray(nodes, dtype=float)
    x = np.asarray(x, dtype=float)
    n = len(nodes)

    if n == 1:
        return np.ones(x.shape + (1,))

    # Barycentric weights: lambda_p = 1 / prod_{m != p} (x_p - x_m)
    delta = nodes[:, np.newaxis] - nodes[np.newaxis, :]
    np.fill_diagonal(delta, 1.0)
    bary = 1.0 / np.prod(delta, axis=1)

    diff = x[..., np.newaxis] - nodes
    exact = np.isclose(diff, 0.0, rtol=0.0, atol=1e-15)
    hit = np.any(exact, axis=-1)

    # Temporarily move coincident points off the node to avoid division by zero
    safe = np.where(exact, 1.0, diff)
    terms = bary / safe
    L = terms / np.sum(terms, axis=-1, keepdims=True)

    # Kronecker rows where x lands on a node
    return np.where(hit[..., np.newaxis], exact.astype(float), L)
