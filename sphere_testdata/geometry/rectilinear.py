"""
Output layout resolution for sampled fields.

The layout (dimension sizes and names, structured or not) is decided once
from the metadata stored with a mesh and then consumed unchanged by the
samplers and the file writer.
"""

import logging
import numpy as np
from typing import NamedTuple, Tuple, Optional, Callable, List
from sphere_testdata.geometry.mesh import GridMetadata

logger = logging.getLogger(__name__)

class OutputLayout(NamedTuple):
    """Immutable description of the output array."""
    dim_sizes: Tuple[int, ...]
    dim_names: Tuple[str, ...]
    rectilinear: bool = False
    flip: bool = False
    level: bool = False

    @property
    def size(self) -> int:
        return int(np.prod(self.dim_sizes))

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(self.dim_sizes)

    def face_index_map(self, n_faces: int) -> np.ndarray:
        """
        Output offset of every face, computed once per run.

        Without flip this is the identity. With flip the linear face index
        i is transposed: i0 = i mod dim0, i1 = i div dim0, iv = i0*dim1 + i1.
        """
        i = np.arange(n_faces)
        if not self.flip:
            return i
        return flip_index(i, self.dim_sizes[0], self.dim_sizes[1])

def flip_index(i: np.ndarray, dim0: int, dim1: int) -> np.ndarray:
    """Transpose row-major linear indices of a (dim1, dim0) grid to (dim0, dim1)."""
    i = np.asarray(i)
    i0 = i % dim0
    i1 = i // dim0
    return i0 * dim1 + i1

# A rule returns (sizes, names, rectilinear) or None when it does not apply
_Rule = Callable[[GridMetadata, int], Optional[Tuple[Tuple[int, ...], Tuple[str, ...], bool]]]

def _rule_grid_dims(metadata: GridMetadata, n_faces: int):
    if metadata.grid_dims is None:
        return None
    sizes = tuple(int(s) for s in metadata.grid_dims)
    if len(sizes) == 1:
        return sizes, ("num_elem",), False
    if len(sizes) == 2:
        return sizes, ("lon", "lat"), True
    raise ValueError(f"Source grid grid_rank must be < 3; got {len(sizes)}")

def _rule_rectilinear_attribute(metadata: GridMetadata, n_faces: int):
    if not metadata.rectilinear:
        return None
    if len(metadata.dim_sizes) != 2 or len(metadata.dim_names) != 2:
        raise ValueError("Rectilinear mesh must store two dimension sizes and names")
    sizes = tuple(int(s) for s in metadata.dim_sizes)
    return sizes, tuple(metadata.dim_names), True

def _rule_unstructured(metadata: GridMetadata, n_faces: int):
    return (n_faces,), ("ncol",), False

# Evaluated in order; the first rule that applies wins
LAYOUT_RULES: List[_Rule] = [
    _rule_grid_dims,
    _rule_rectilinear_attribute,
    _rule_unstructured,
]

def resolve_output_layout(
    metadata: GridMetadata,
    n_faces: int,
    flip: bool = False,
    level: bool = False,
    gll: bool = False,
    gll_integrate: bool = False,
) -> OutputLayout:
    """
    Decide the output dimensions for a mesh with the given stored metadata.

    Args:
        metadata: Dimension hints stored with the mesh.
        n_faces: Number of faces in the mesh.
        flip: Transpose rectilinear output.
        level: Append a size-1 "lev" dimension.
        gll: Pointwise GLL sampling requested.
        gll_integrate: Integrated GLL sampling requested.

    Raises:
        ValueError: On conflicting options or inconsistent metadata.
    """
    if gll and gll_integrate:
        raise ValueError("gll and gllint are exclusive arguments")

    for rule in LAYOUT_RULES:
        result = rule(metadata, n_faces)
        if result is not None:
            sizes, names, rectilinear = result
            break

    if rectilinear:
        logger.info("Rectilinear grid detected")
    else:
        logger.info("Non-rectilinear grid detected")

    if flip and not rectilinear:
        raise ValueError("fliprectilinear cannot be used with non-rectilinear grids")
    if gll and rectilinear:
        raise ValueError("gll cannot be used with rectilinear grids")

    if rectilinear and not (gll or gll_integrate) and sizes[0] * sizes[1] != n_faces:
        raise ValueError(
            f"Rectilinear dimensions {sizes} do not match the face count {n_faces}"
        )

    if level:
        sizes = sizes + (1,)
        names = names + ("lev",)

    return OutputLayout(dim_sizes=sizes, dim_names=names,
                        rectilinear=rectilinear, flip=flip, level=level)

def finite_element_layout(layout: OutputLayout, n_nodes: int) -> OutputLayout:
    """
    Layout for nodal output: the global node count replaces the horizontal
    dimension(s). Rectilinear grids fall back to a single "ncol" dimension.
    """
    if layout.rectilinear:
        sizes, names = (n_nodes,), ("ncol",)
    else:
        sizes, names = (n_nodes,), (layout.dim_names[0],)

    if layout.level:
        sizes = sizes + (1,)
        names = names + ("lev",)

    return layout._replace(dim_sizes=sizes, dim_names=names, flip=False)
