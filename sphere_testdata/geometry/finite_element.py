"""
Finite-element metadata for quadrilateral meshes on the sphere.

Each face is treated as a spectral element with n_p x n_p Gauss-Lobatto
points on the parameter square [0, 1]^2. The parameter alpha runs along the
edge face[0] -> face[1] and beta along face[0] -> face[3].
"""

import logging
import numpy as np
from typing import Dict, Tuple, Hashable
from sphere_testdata.geometry.mesh import Mesh
from sphere_testdata.numerics.spectral import lgl_nodes_weights, lagrange_basis

logger = logging.getLogger(__name__)

def apply_local_map(corners: np.ndarray, alpha: np.ndarray, beta: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Map parameter coordinates of a quadrilateral onto the sphere.

    The four corners are blended bilinearly and the result is projected
    radially onto the unit sphere.

    Parameters
    ----------
    corners : np.ndarray
        (..., 4, 3) corner coordinates.
    alpha, beta : np.ndarray
        Parameter coordinates in [0, 1]; broadcast against corners[..., 0, 0].

    Returns
    -------
    node : np.ndarray
        (..., 3) point on the unit sphere.
    dx_dalpha, dx_dbeta : np.ndarray
        (..., 3) tangent vectors of the projected map.
    """
    corners = np.asarray(corners, dtype=float)
    a = np.asarray(alpha, dtype=float)[..., np.newaxis]
    b = np.asarray(beta, dtype=float)[..., np.newaxis]

    n0 = corners[..., 0, :]
    n1 = corners[..., 1, :]
    n2 = corners[..., 2, :]
    n3 = corners[..., 3, :]

    # Bilinear blend and its parametric derivatives
    ref = (1.0 - a) * (1.0 - b) * n0 + a * (1.0 - b) * n1 + a * b * n2 + (1.0 - a) * b * n3
    d_ref_da = (1.0 - b) * (n1 - n0) + b * (n2 - n3)
    d_ref_db = (1.0 - a) * (n3 - n0) + a * (n2 - n1)

    # Radial projection x = ref / |ref|
    r = np.linalg.norm(ref, axis=-1, keepdims=True)
    node = ref / r

    # dx = (d_ref - x (x . d_ref)) / r
    dx_dalpha = (d_ref_da - node * np.sum(node * d_ref_da, axis=-1, keepdims=True)) / r
    dx_dbeta = (d_ref_db - node * np.sum(node * d_ref_db, axis=-1, keepdims=True)) / r

    return node, dx_dalpha, dx_dbeta

def local_jacobian(dx_dalpha: np.ndarray, dx_dbeta: np.ndarray) -> np.ndarray:
    """Magnitude of the cross product of the two tangent vectors."""
    return np.linalg.norm(np.cross(dx_dalpha, dx_dbeta), axis=-1)

def sample_gll_finite_element(n_p: int, alpha: np.ndarray, beta: np.ndarray) -> np.ndarray:
    """
    Coefficients of the GLL nodal basis at (alpha, beta).

    Returns
    -------
    np.ndarray
        Shape alpha.shape + (n_p, n_p); entry [..., q, p] = L_p(alpha) * L_q(beta).
    """
    g, _ = lgl_nodes_weights(0.0, 1.0, n_p)
    La = lagrange_basis(g, alpha)
    Lb = lagrange_basis(g, beta)
    return Lb[..., :, np.newaxis] * La[..., np.newaxis, :]

def quad_corners(mesh: Mesh) -> np.ndarray:
    """
    Corner coordinates of every face as an (n_faces, 4, 3) array.
    Raises ValueError if any face is not a quadrilateral.
    """
    for k, face in enumerate(mesh.faces):
        if len(face) != 4:
            raise ValueError(
                f"Non-quadrilateral face detected (face {k} has {len(face)} nodes); "
                "incompatible with finite-element sampling."
            )
    connect = np.array(mesh.faces, dtype=int).reshape(-1, 4)
    return mesh.nodes[connect]

class _GlobalIndex:
    """Assigns 1-based global indices to hashable keys on first sight."""
    def __init__(self):
        self._index: Dict[Hashable, int] = {}
        self.count = 0

    def new(self) -> int:
        self.count += 1
        return self.count

    def __getitem__(self, key: Hashable) -> int:
        if key not in self._index:
            self._index[key] = self.new()
        return self._index[key]

def generate_metadata(mesh: Mesh, n_p: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build continuous GLL node numbering and nodal Jacobians.

    Args:
        mesh: Quadrilateral mesh.
        n_p: Number of GLL points per element edge.

    Returns:
        gll_nodes: int array (n_p, n_p, n_faces); gll_nodes[q, p, k] is the
            1-based global index of the point (alpha=g[p], beta=g[q]) of face k.
        gll_jacobian: float array (n_p, n_p, n_faces); local Jacobian times
            the GLL weights w[p] * w[q].
    """
    if n_p < 1:
        raise ValueError(f"Number of GLL points must be >= 1; got {n_p}.")

    corners = quad_corners(mesh)
    n_faces = mesh.n_faces
    last = n_p - 1

    index = _GlobalIndex()
    gll_nodes = np.zeros((n_p, n_p, n_faces), dtype=int)

    def corner_key(node):
        return ("node", node)

    def edge_key(a, b, t):
        # Points on a collapsed edge coincide with its single node
        if a == b:
            return corner_key(a)
        if a < b:
            return ("edge", a, b, t)
        return ("edge", b, a, last - t)

    for k, face in enumerate(mesh.faces):
        n0, n1, n2, n3 = face
        for q in range(n_p):
            for p in range(n_p):
                if n_p == 1:
                    gll_nodes[q, p, k] = index.new()
                    continue

                on_left, on_right = (p == 0), (p == last)
                on_bottom, on_top = (q == 0), (q == last)

                if on_bottom and on_left:
                    key = corner_key(n0)
                elif on_bottom and on_right:
                    key = corner_key(n1)
                elif on_top and on_right:
                    key = corner_key(n2)
                elif on_top and on_left:
                    key = corner_key(n3)
                elif on_bottom:
                    key = edge_key(n0, n1, p)
                elif on_right:
                    key = edge_key(n1, n2, q)
                elif on_top:
                    key = edge_key(n3, n2, p)
                elif on_left:
                    key = edge_key(n0, n3, q)
                else:
                    gll_nodes[q, p, k] = index.new()
                    continue

                gll_nodes[q, p, k] = index[key]

    # Jacobian at every GLL point, weighted by the tensor-product weights
    g, w = lgl_nodes_weights(0.0, 1.0, n_p)
    BB, AA = np.meshgrid(g, g, indexing="ij")        # [q, p]
    _, dx1, dx2 = apply_local_map(corners[:, np.newaxis, np.newaxis, :, :], AA, BB)
    jac = local_jacobian(dx1, dx2) * np.outer(w, w)   # (n_faces, n_p, n_p)
    gll_jacobian = np.moveaxis(jac, 0, -1)

    logger.debug("Generated %d unique GLL nodes for %d elements (n_p=%d)",
                 index.count, n_faces, n_p)
    return gll_nodes, gll_jacobian
