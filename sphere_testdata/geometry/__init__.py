from .mesh import Mesh, GridMetadata, lonlat_from_xyz, xyz_from_lonlat, spherical_triangle_area, merge_coincident_nodes
from .rll import RLLMeshConfig, build_rll_mesh, generate_rll_mesh
from .rectilinear import OutputLayout, resolve_output_layout, flip_index
