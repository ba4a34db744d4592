import logging
import numpy as np
import netCDF4 as nc
from typing import Tuple, List, Dict, Any
from sphere_testdata.geometry.mesh import Mesh, GridMetadata, xyz_from_lonlat, merge_coincident_nodes
from sphere_testdata.samplers.base import TestData

logger = logging.getLogger(__name__)

# Corners closer than this (chord length on the unit sphere) are merged
SCRIP_MERGE_TOL = 1.0e-10

def _require(ds: nc.Dataset, dims: List[str] = (), variables: List[str] = ()) -> None:
    for name in dims:
        if name not in ds.dimensions:
            raise ValueError(f"Input file missing dimension \"{name}\"")
    for name in variables:
        if name not in ds.variables:
            raise ValueError(f"Input file missing variable \"{name}\"")

def _as_int(value: Any) -> int:
    return int(np.asarray(value).ravel()[0])

def _as_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode()
    return str(value)

def read_lonlat_nodes(filename: str) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read 1D longitude and latitude cell centres (degrees) from a netCDF file
    with dimensions and variables named "lon" and "lat".
    """
    with nc.Dataset(filename, 'r') as ds:
        ds.set_auto_mask(False)
        _require(ds, dims=["lon", "lat"], variables=["lon", "lat"])
        lon = np.array(ds.variables['lon'][:], dtype=float)
        lat = np.array(ds.variables['lat'][:], dtype=float)
    return lon, lat

def read_grid_metadata(ds: nc.Dataset) -> GridMetadata:
    """Collect the SCRIP and Exodus dimension hints stored in an open dataset."""
    grid_dims = None
    if 'grid_dims' in ds.variables:
        grid_dims = tuple(int(v) for v in np.asarray(ds.variables['grid_dims'][:]).ravel())

    rectilinear = 'rectilinear' in ds.ncattrs()
    dim_sizes: Tuple[int, ...] = ()
    dim_names: Tuple[str, ...] = ()
    if rectilinear:
        dim_sizes = (_as_int(ds.getncattr('rectilinear_dim0_size')),
                     _as_int(ds.getncattr('rectilinear_dim1_size')))
        dim_names = (_as_str(ds.getncattr('rectilinear_dim0_name')),
                     _as_str(ds.getncattr('rectilinear_dim1_name')))

    return GridMetadata(grid_dims=grid_dims, rectilinear=rectilinear,
                        dim_sizes=dim_sizes, dim_names=dim_names)

def _face_blocks(faces: List[Tuple[int, ...]]) -> List[List[Tuple[int, ...]]]:
    """Split faces into consecutive runs of equal node count."""
    blocks: List[List[Tuple[int, ...]]] = []
    for face in faces:
        if blocks and len(blocks[-1][0]) == len(face):
            blocks[-1].append(face)
        else:
            blocks.append([face])
    return blocks

def write_mesh(filename: str, mesh: Mesh) -> None:
    """
    Write `mesh` as an Exodus-style netCDF file.

    Faces are stored in element blocks of equal node count, in order, with
    1-based connectivity. Rectilinear metadata becomes global attributes.
    """
    blocks = _face_blocks(mesh.faces)

    with nc.Dataset(filename, 'w') as ds:
        ds.setncattr('api_version', np.float32(5.0))
        ds.setncattr('version', np.float32(5.0))
        ds.setncattr('floating_point_word_size', np.int32(8))
        ds.setncattr('file_size', np.int32(0))
        ds.setncattr('title', 'sphere_testdata mesh')

        ds.createDimension('len_string', 33)
        ds.createDimension('len_line', 81)
        ds.createDimension('four', 4)
        ds.createDimension('time_step', None)
        ds.createDimension('num_dim', 3)
        ds.createDimension('num_nodes', mesh.n_nodes)
        ds.createDimension('num_elem', mesh.n_faces)
        ds.createDimension('num_el_blk', len(blocks))

        ds.createVariable('time_whole', 'f8', ('time_step',))

        eb_status = ds.createVariable('eb_status', 'i4', ('num_el_blk',))
        eb_status[:] = np.ones(len(blocks), dtype=np.int32)
        eb_prop1 = ds.createVariable('eb_prop1', 'i4', ('num_el_blk',))
        eb_prop1.setncattr('name', 'ID')
        eb_prop1[:] = np.arange(1, len(blocks) + 1, dtype=np.int32)

        for b, block in enumerate(blocks, start=1):
            n_per = len(block[0])
            ds.createDimension(f'num_el_in_blk{b}', len(block))
            ds.createDimension(f'num_nod_per_el{b}', n_per)
            connect = ds.createVariable(f'connect{b}', 'i4', (f'num_el_in_blk{b}', f'num_nod_per_el{b}'))
            connect.setncattr('elem_type', f'SHELL{n_per}' if n_per <= 4 else 'nSIDED')
            connect[:, :] = np.array(block, dtype=np.int32) + 1

        coord = ds.createVariable('coord', 'f8', ('num_dim', 'num_nodes'))
        coord[:, :] = mesh.nodes.T

        meta = mesh.metadata
        if meta.grid_dims is not None:
            ds.createDimension('grid_rank', len(meta.grid_dims))
            grid_dims = ds.createVariable('grid_dims', 'i4', ('grid_rank',))
            grid_dims[:] = np.array(meta.grid_dims, dtype=np.int32)

        if meta.rectilinear:
            ds.setncattr('rectilinear', 'true')
            ds.setncattr('rectilinear_dim0_size', np.int32(meta.dim_sizes[0]))
            ds.setncattr('rectilinear_dim1_size', np.int32(meta.dim_sizes[1]))
            ds.setncattr('rectilinear_dim0_name', meta.dim_names[0])
            ds.setncattr('rectilinear_dim1_name', meta.dim_names[1])

    logger.info("Wrote mesh (%d nodes, %d faces) to %s", mesh.n_nodes, mesh.n_faces, filename)

def _read_exodus(ds: nc.Dataset) -> Tuple[np.ndarray, List[Tuple[int, ...]]]:
    if 'coord' in ds.variables:
        nodes = np.array(ds.variables['coord'][:], dtype=float).T
    else:
        _require(ds, variables=['coordx', 'coordy', 'coordz'])
        nodes = np.stack([np.array(ds.variables[name][:], dtype=float)
                          for name in ('coordx', 'coordy', 'coordz')], axis=-1)

    _require(ds, dims=['num_el_blk'])
    faces: List[Tuple[int, ...]] = []
    for b in range(1, ds.dimensions['num_el_blk'].size + 1):
        _require(ds, variables=[f'connect{b}'])
        connect = np.array(ds.variables[f'connect{b}'][:], dtype=int) - 1
        faces.extend(tuple(row) for row in connect)
    return nodes, faces

def _read_scrip(ds: nc.Dataset, tol: float = SCRIP_MERGE_TOL) -> Tuple[np.ndarray, List[Tuple[int, ...]]]:
    _require(ds, variables=['grid_corner_lat', 'grid_corner_lon'])
    lat_var = ds.variables['grid_corner_lat']
    lon_var = ds.variables['grid_corner_lon']
    corner_lat = np.array(lat_var[:], dtype=float)
    corner_lon = np.array(lon_var[:], dtype=float)

    units = _as_str(lat_var.getncattr('units')) if 'units' in lat_var.ncattrs() else 'degrees'
    if not units.lower().startswith('rad'):
        corner_lat = np.deg2rad(corner_lat)
        corner_lon = np.deg2rad(corner_lon)

    n_cells, n_corners = corner_lat.shape
    points = xyz_from_lonlat(corner_lon, corner_lat).reshape(-1, 3)

    # 1. Merge coincident corners into shared nodes
    nodes, node_of_corner = merge_coincident_nodes(points, tol)
    node_of_corner = node_of_corner.reshape(n_cells, n_corners)

    # 2. Drop repeated consecutive corners (padding of low-order cells)
    faces: List[Tuple[int, ...]] = []
    for k in range(n_cells):
        face: List[int] = []
        for n in node_of_corner[k]:
            if not face or face[-1] != n:
                face.append(int(n))
        while len(face) > 1 and face[-1] == face[0]:
            face.pop()
        if len(face) < 3:
            raise ValueError(f"SCRIP cell {k} has fewer than three distinct corners")
        faces.append(tuple(face))
    return nodes, faces

def read_mesh(filename: str) -> Mesh:
    """
    Load a mesh from an Exodus-style or SCRIP netCDF file, together with any
    stored grid metadata.
    """
    with nc.Dataset(filename, 'r') as ds:
        ds.set_auto_mask(False)
        if 'grid_corner_lat' in ds.variables:
            logger.info("Loading SCRIP grid %s", filename)
            nodes, faces = _read_scrip(ds)
        else:
            logger.info("Loading Exodus mesh %s", filename)
            nodes, faces = _read_exodus(ds)
        metadata = read_grid_metadata(ds)

    mesh = Mesh(nodes=nodes, faces=faces, metadata=metadata)
    mesh.validate()
    return mesh

def write_test_data(filename: str, data: TestData, var_name: str = "Psi") -> None:
    """
    Write sampled data with the dimensions of its layout. Nodal latitude,
    longitude and area are written along the first dimension when present.
    """
    layout = data.layout
    with nc.Dataset(filename, 'w') as ds:
        for name, size in zip(layout.dim_names, layout.dim_sizes):
            ds.createDimension(name, size)

        if data.lat is not None:
            node_dim = (layout.dim_names[0],)
            for name, arr in (('lat', data.lat), ('lon', data.lon), ('area', data.area)):
                var = ds.createVariable(name, 'f8', node_dim)
                var[:] = arr

        var = ds.createVariable(var_name, 'f8', tuple(layout.dim_names))
        var[:] = data.reshaped()

    logger.info("Wrote %s %s to %s", var_name, layout.shape, filename)

def read_test_data(filename: str, var_name: str = "Psi") -> Tuple[np.ndarray, Dict[str, int]]:
    """Read a sampled variable and its dimension sizes back from a test data file."""
    with nc.Dataset(filename, 'r') as ds:
        ds.set_auto_mask(False)
        _require(ds, variables=[var_name])
        var = ds.variables[var_name]
        dims = {name: ds.dimensions[name].size for name in var.dimensions}
        values = np.array(var[:], dtype=float)
    return values, dims
