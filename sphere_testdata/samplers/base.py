from abc import ABC, abstractmethod
import logging
import dataclasses
import numpy as np
from typing import Dict, Any, Optional
from sphere_testdata.geometry.mesh import Mesh
from sphere_testdata.geometry.rectilinear import OutputLayout
from sphere_testdata.physics.analytic_fields import AnalyticField

logger = logging.getLogger(__name__)

@dataclasses.dataclass
class SamplingConfig:
    test: int = 1                   # AnalyticField index
    gll: bool = False               # Pointwise sampling at GLL nodes
    gll_integrate: bool = False     # Galerkin integration against GLL basis
    n_p: int = 4                    # GLL points per element edge
    level: bool = False             # Append "lev" dimension (HOMME format)
    var: str = "Psi"                # Output variable name
    flip_rectilinear: bool = False
    concave: bool = False           # Mesh contains concave faces
    tri_order: int = 10             # Triangular quadrature order
    n_gauss: int = 10               # Gauss points per direction (gllint)

    def validate(self) -> None:
        if self.gll and self.gll_integrate:
            raise ValueError("gll and gllint are exclusive arguments")
        if self.n_p < 1:
            raise ValueError(f"n_p must be >= 1; got {self.n_p}")
        if self.n_gauss < 1:
            raise ValueError(f"n_gauss must be >= 1; got {self.n_gauss}")
        AnalyticField.from_index(self.test)

@dataclasses.dataclass
class TestData:
    """Sampled field plus the layout it is written with."""
    __test__ = False  # not a pytest class

    values: np.ndarray                  # flat, length layout.size
    layout: OutputLayout
    lat: Optional[np.ndarray] = None    # degrees, per global node
    lon: Optional[np.ndarray] = None
    area: Optional[np.ndarray] = None
    face_index_map: Optional[np.ndarray] = None

    def reshaped(self) -> np.ndarray:
        return self.values.reshape(self.layout.shape)

class NodalAccumulator:
    """
    Owns a value array and a parallel area array for scatter-add reductions.
    Written only through accumulate(); finalised through normalize().
    """
    def __init__(self, n: int):
        self.values = np.zeros(n)
        self.area = np.zeros(n)

    def accumulate(self, index: np.ndarray, values: Optional[np.ndarray], area: np.ndarray) -> None:
        # Unbuffered: repeated indices all contribute
        if values is not None:
            np.add.at(self.values, index, values)
        np.add.at(self.area, index, area)

    def normalize(self) -> np.ndarray:
        zero = self.area == 0.0
        if np.any(zero):
            raise ValueError(f"{int(np.count_nonzero(zero))} nodes have zero accumulated area; cannot normalize")
        return self.values / self.area

class BaseSampler(ABC):
    """
    Abstract base class for samplers of analytic fields on spherical meshes.
    """

    def __init__(self, config: SamplingConfig):
        config.validate()
        self.cfg = config
        self.config: Dict[str, Any] = dataclasses.asdict(config)
        self.field = AnalyticField.from_index(config.test)

    @abstractmethod
    def sample(self, mesh: Mesh, layout: OutputLayout) -> TestData:
        """Evaluate the configured field over `mesh` using `layout` for output."""
        pass

    def validate_mesh(self, mesh: Mesh) -> None:
        """Check the mesh before sampling."""
        if mesh.n_faces == 0:
            raise ValueError("Mesh contains no faces")
        mesh.validate()
