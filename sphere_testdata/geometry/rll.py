"""
Regular longitude-latitude (RLL) mesh generation on the unit sphere.

Cell edges are either derived from an explicit range or from the cell
centres of an imported grid. Latitude edges reaching +/-90 degrees collapse
onto a single pole node, producing a ring of degenerate quadrilaterals.
"""

import logging
import dataclasses
import numpy as np
from typing import Optional, Tuple, List
from sphere_testdata.geometry.mesh import Mesh, GridMetadata

logger = logging.getLogger(__name__)

# Tolerance for periodicity and pole detection
EDGE_TOL = 1.0e-12

@dataclasses.dataclass
class RLLMeshConfig:
    n_lon: int = 128           # Number of longitudes
    n_lat: int = 64            # Number of latitudes
    lon_begin: float = 0.0     # Degrees
    lon_end: float = 360.0
    lat_begin: float = -90.0
    lat_end: float = 90.0
    flip: bool = False         # Longitude-major face ordering
    in_file: Optional[str] = None
    in_global: bool = False    # Force periodic longitudes for imported grids
    verbose: bool = False

    def validate(self) -> None:
        if self.lat_begin >= self.lat_end:
            raise ValueError("lat_begin and lat_end must specify a positive interval")
        if self.lon_begin >= self.lon_end:
            raise ValueError("lon_begin and lon_end must specify a positive interval")
        if self.in_file is None:
            if self.n_lon < 1 or self.n_lat < 1:
                raise ValueError(
                    f"Mesh resolution must be positive; got [{self.n_lon}, {self.n_lat}]"
                )
            if self.lat_begin < -90.0 or self.lat_end > 90.0:
                raise ValueError("Latitude range must lie within [-90, 90]")

def edges_from_range(begin: float, end: float, count: int) -> np.ndarray:
    """
    Evenly spaced cell edges (radians) for a range given in degrees.
    """
    begin_rad = np.deg2rad(begin)
    end_rad = np.deg2rad(end)
    frac = np.arange(count + 1, dtype=float) / float(count)
    return (end_rad - begin_rad) * frac + begin_rad

def _check_monotone(name: str, nodes: np.ndarray) -> None:
    if nodes.ndim != 1:
        raise ValueError(f"{name} must be 1D; got shape {nodes.shape}.")
    if len(nodes) < 2:
        raise ValueError(f"At least two {name} required in input file")
    if np.any(np.diff(nodes) < 0.0):
        raise ValueError(f"{name.capitalize()} must be monotone increasing")

def lon_edges_from_nodes(lon_nodes: np.ndarray, force_global: bool = False) -> Tuple[np.ndarray, bool]:
    """
    Cell edges (degrees) for longitude cell centres (degrees).

    Interior edges are midpoints; boundary edges extrapolate half a cell.
    When the spacing across the 360 degree seam matches the first spacing the
    grid is treated as periodic and both boundary edges coincide.

    Returns:
        (edges, periodic)
    """
    lon = np.asarray(lon_nodes, dtype=float)
    _check_monotone("longitudes", lon)

    first_delta = lon[1] - lon[0]
    second_last_delta = lon[-1] - lon[-2]
    last_delta = lon[0] - (lon[-1] - 360.0)

    periodic = bool(force_global)
    if abs(first_delta - last_delta) < EDGE_TOL:
        logger.info("Mesh assumed periodic in longitude")
        periodic = True

    edges = np.empty(len(lon) + 1)
    edges[1:-1] = 0.5 * (lon[:-1] + lon[1:])
    if periodic:
        edges[0] = 0.5 * (lon[0] + lon[-1] - 360.0)
        edges[-1] = edges[0]
    else:
        edges[0] = lon[0] - 0.5 * first_delta
        edges[-1] = lon[-1] + 0.5 * second_last_delta

    return edges, periodic

def lat_edges_from_nodes(lat_nodes: np.ndarray) -> np.ndarray:
    """
    Cell edges (degrees) for latitude cell centres (degrees), clamped to the poles.
    """
    lat = np.asarray(lat_nodes, dtype=float)
    _check_monotone("latitudes", lat)

    edges = np.empty(len(lat) + 1)
    edges[1:-1] = 0.5 * (lat[:-1] + lat[1:])
    edges[0] = max(lat[0] - 0.5 * (lat[1] - lat[0]), -90.0)
    edges[-1] = min(lat[-1] + 0.5 * (lat[-1] - lat[-2]), 90.0)
    return edges

def is_periodic_span(lon_edges: np.ndarray) -> bool:
    """True if the longitude edges cover a whole number of turns (including zero)."""
    span = float(lon_edges[-1] - lon_edges[0])
    rem = np.fmod(span, 2.0 * np.pi)
    return bool(rem < EDGE_TOL or (2.0 * np.pi - rem) < EDGE_TOL)

def generate_rll_mesh(lon_edges: np.ndarray, lat_edges: np.ndarray, flip: bool = False) -> Mesh:
    """
    Build the RLL mesh for the given cell edges (radians).

    Parameters
    ----------
    lon_edges : np.ndarray
        (n_lon + 1,) increasing longitude edges.
    lat_edges : np.ndarray
        (n_lat + 1,) increasing latitude edges in [-pi/2, pi/2].
    flip : bool
        Emit faces longitude-major instead of latitude-major.

    Returns
    -------
    Mesh
        Mesh with rectilinear metadata attached.
    """
    lon_edges = np.asarray(lon_edges, dtype=float)
    lat_edges = np.asarray(lat_edges, dtype=float)
    if len(lon_edges) < 2:
        raise ValueError("Invalid array of longitudes")
    if len(lat_edges) < 2:
        raise ValueError("Invalid array of latitudes")

    n_lon = len(lon_edges) - 1
    n_lat = len(lat_edges) - 1

    wrap = is_periodic_span(lon_edges)
    south = abs(lat_edges[0] + 0.5 * np.pi) < EDGE_TOL
    north = abs(lat_edges[-1] - 0.5 * np.pi) < EDGE_TOL

    if south and north and n_lat < 2:
        raise ValueError("A mesh containing both poles requires at least two latitudes")

    south_offset = 1 if south else 0
    lat_ring_begin = 1 if south else 0
    lat_ring_end = n_lat - 1 if north else n_lat

    n_lon_nodes = n_lon if wrap else n_lon + 1

    # 1. Nodes: south pole, latitude rings, north pole
    ring_lat = lat_edges[lat_ring_begin:lat_ring_end + 1]
    ring_lon = lon_edges[:n_lon_nodes]
    PHI, LAM = np.meshgrid(ring_lat, ring_lon, indexing="ij")
    ring_nodes = np.stack([np.cos(PHI) * np.cos(LAM),
                           np.cos(PHI) * np.sin(LAM),
                           np.sin(PHI)], axis=-1).reshape(-1, 3)

    parts = []
    if south:
        parts.append(np.array([[0.0, 0.0, -1.0]]))
    parts.append(ring_nodes)
    if north:
        parts.append(np.array([[0.0, 0.0, 1.0]]))
    nodes = np.concatenate(parts, axis=0)

    faces: List[Tuple[int, ...]] = []
    lon_index = np.arange(n_lon)
    lon_next = (lon_index + 1) % n_lon_nodes

    # 2. South polar fan
    if south:
        for i, ip in zip(lon_index, lon_next):
            faces.append((0, ip + 1, i + 1, 0))

    # 3. Interior quadrilaterals
    for j in range(lat_ring_begin, lat_ring_end):
        jx = j - lat_ring_begin
        this_ring = jx * n_lon_nodes + south_offset
        next_ring = (jx + 1) * n_lon_nodes + south_offset
        for i, ip in zip(lon_index, lon_next):
            faces.append((this_ring + ip, next_ring + ip, next_ring + i, this_ring + i))

    # 4. North polar fan
    if north:
        jx = n_lat - lat_ring_begin - 1
        this_ring = jx * n_lon_nodes + south_offset
        pole = len(nodes) - 1
        for i, ip in zip(lon_index, lon_next):
            faces.append((pole, this_ring + i, this_ring + ip, pole))

    # 5. Reorder faces longitude-major
    if flip:
        faces = [faces[j * n_lon + i] for i in range(n_lon) for j in range(n_lat)]
        metadata = GridMetadata(rectilinear=True, dim_sizes=(n_lon, n_lat), dim_names=("lon", "lat"))
    else:
        metadata = GridMetadata(rectilinear=True, dim_sizes=(n_lat, n_lon), dim_names=("lat", "lon"))

    return Mesh(nodes=nodes, faces=faces, metadata=metadata)

def build_rll_mesh(config: RLLMeshConfig) -> Mesh:
    """
    Generate an RLL mesh from an explicit range or from an imported grid file.
    """
    config.validate()

    if config.in_file:
        from sphere_testdata.utils.io import read_lonlat_nodes

        logger.info("Generating mesh from input datafile \"%s\"", config.in_file)
        lon_nodes, lat_nodes = read_lonlat_nodes(config.in_file)

        lon_deg, _ = lon_edges_from_nodes(lon_nodes, force_global=config.in_global)
        lat_deg = lat_edges_from_nodes(lat_nodes)

        logger.debug("Longitudes: %s", ", ".join(f"{v:g}" for v in lon_deg))
        logger.debug("Latitudes: %s", ", ".join(f"{v:g}" for v in lat_deg))

        lon_edges = np.deg2rad(lon_deg)
        lat_edges = np.deg2rad(lat_deg)
    else:
        lon_edges = edges_from_range(config.lon_begin, config.lon_end, config.n_lon)
        lat_edges = edges_from_range(config.lat_begin, config.lat_end, config.n_lat)

    # Bounds are taken from the longitude edges for longitude and the
    # latitude edges for latitude
    lon_begin, lon_end = np.rad2deg(lon_edges[0]), np.rad2deg(lon_edges[-1])
    lat_begin, lat_end = np.rad2deg(lat_edges[0]), np.rad2deg(lat_edges[-1])

    logger.info("Generating mesh with resolution [%d, %d]", len(lon_edges) - 1, len(lat_edges) - 1)
    logger.info("Longitudes in range [%g, %g]", lon_begin, lon_end)
    logger.info("Latitudes in range [%g, %g]", lat_begin, lat_end)

    return generate_rll_mesh(lon_edges, lat_edges, flip=config.flip)
