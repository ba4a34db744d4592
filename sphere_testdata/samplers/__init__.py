from .base import BaseSampler, SamplingConfig, TestData, NodalAccumulator
from .finite_volume import FiniteVolumeSampler
from .finite_element import GLLPointwiseSampler, GLLIntegratedSampler
