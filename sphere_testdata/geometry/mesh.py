import logging
import dataclasses
import numpy as np
from typing import NamedTuple, Tuple, List, Optional
from scipy.spatial import cKDTree

logger = logging.getLogger(__name__)

class GridMetadata(NamedTuple):
    """Immutable record of the dimension hints stored alongside a mesh."""
    # SCRIP convention: grid_dims variable
    grid_dims: Optional[Tuple[int, ...]] = None

    # Exodus convention: global rectilinear attributes
    rectilinear: bool = False
    dim_sizes: Tuple[int, ...] = ()
    dim_names: Tuple[str, ...] = ()

def lonlat_from_xyz(X: np.ndarray, Y: np.ndarray, Z: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert Cartesian (X, Y, Z) to Spherical (Lambda, Theta).
    Longitude is normalised into [0, 2*pi).
    """
    lam = np.arctan2(Y, X)
    lam = np.where(lam < 0.0, lam + 2.0 * np.pi, lam)
    r = np.sqrt(X**2 + Y**2 + Z**2)
    theta = np.arcsin(np.clip(Z / r, -1.0, 1.0))
    return lam, theta

def xyz_from_lonlat(lam: np.ndarray, theta: np.ndarray) -> np.ndarray:
    """Unit vectors for longitude/latitude in radians, stacked on the last axis."""
    lam = np.asarray(lam, dtype=float)
    theta = np.asarray(theta, dtype=float)
    return np.stack([np.cos(theta) * np.cos(lam),
                     np.cos(theta) * np.sin(lam),
                     np.sin(theta)], axis=-1)

def merge_coincident_nodes(points: np.ndarray, tol: float = 1.0e-10) -> Tuple[np.ndarray, np.ndarray]:
    """
    Merge points closer than `tol` into shared nodes.

    Returns
    -------
    nodes : np.ndarray
        (n_nodes, 3) unique points, in order of first appearance.
    inverse : np.ndarray
        (n_points,) node index of every input point.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    tree = cKDTree(points)
    neighbours = tree.query_ball_point(points, r=tol)
    representative = np.array([min(nbrs) for nbrs in neighbours], dtype=int)
    unique_rep, inverse = np.unique(representative, return_inverse=True)
    return points[unique_rep], inverse.ravel()

def spherical_triangle_area(a: np.ndarray, b: np.ndarray, c: np.ndarray, signed: bool = False) -> np.ndarray:
    """
    Area of the great-circle triangle with unit-vector corners a, b, c.

    Uses the Van Oosterom-Strackee form of the spherical excess:
        tan(E / 2) = a.(b x c) / (1 + a.b + b.c + c.a)
    Inputs broadcast over leading axes (last axis has length 3). With
    signed=True the sign follows the orientation of the corners.
    """
    triple = np.einsum('...i,...i->...', a, np.cross(b, c))
    denom = (1.0
             + np.einsum('...i,...i->...', a, b)
             + np.einsum('...i,...i->...', b, c)
             + np.einsum('...i,...i->...', c, a))
    if signed:
        # Keep atan2 in (-pi, pi] for either orientation
        return 2.0 * np.sign(triple) * np.arctan2(np.abs(triple), denom)
    return 2.0 * np.arctan2(np.abs(triple), denom)

@dataclasses.dataclass
class Mesh:
    """
    Spherical mesh: unit-sphere nodes and faces given as ordered node lists.
    """
    nodes: np.ndarray                     # (n_nodes, 3)
    faces: List[Tuple[int, ...]]
    metadata: GridMetadata = GridMetadata()
    face_areas: Optional[np.ndarray] = None

    def __post_init__(self):
        self.nodes = np.asarray(self.nodes, dtype=float).reshape(-1, 3)
        self.faces = [tuple(int(n) for n in face) for face in self.faces]

    @property
    def n_nodes(self) -> int:
        return self.nodes.shape[0]

    @property
    def n_faces(self) -> int:
        return len(self.faces)

    def validate(self) -> None:
        """Check that every face has >= 3 nodes and valid node offsets."""
        for k, face in enumerate(self.faces):
            if len(face) < 3:
                raise ValueError(f"Face {k} has {len(face)} nodes; at least 3 required.")
            if min(face) < 0 or max(face) >= self.n_nodes:
                raise ValueError(
                    f"Face {k} references node outside [0, {self.n_nodes}): {face}"
                )

    def sub_triangles(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Fan decomposition of every face around its first node.

        Returns
        -------
        tri_face : np.ndarray
            (n_tri,) index of the face each triangle belongs to.
        tri_nodes : np.ndarray
            (n_tri, 3) node indices (face[0], face[j+1], face[j+2]).
        """
        tri_face = []
        tri_nodes = []
        for k, face in enumerate(self.faces):
            for j in range(len(face) - 2):
                tri_face.append(k)
                tri_nodes.append((face[0], face[j + 1], face[j + 2]))
        return (np.array(tri_face, dtype=int),
                np.array(tri_nodes, dtype=int).reshape(-1, 3))

    def calculate_face_areas(self, concave: bool = False) -> np.ndarray:
        """
        Compute and store the spherical area of every face.

        Convex faces sum the areas of their fan triangles. With concave=True
        the signed fan areas are summed instead, which is exact for
        non-convex polygons as well.
        """
        tri_face, tri_nodes = self.sub_triangles()
        a = self.nodes[tri_nodes[:, 0]]
        b = self.nodes[tri_nodes[:, 1]]
        c = self.nodes[tri_nodes[:, 2]]

        tri_area = spherical_triangle_area(a, b, c, signed=concave)
        areas = np.bincount(tri_face, weights=tri_area, minlength=self.n_faces)
        if concave:
            areas = np.abs(areas)

        self.face_areas = areas
        logger.debug("Total mesh area %.15e", float(np.sum(areas)))
        return areas

    def is_quadrilateral(self) -> bool:
        return all(len(face) == 4 for face in self.faces)
