"""
Analytic scalar fields on the sphere used as remapping reference data.

All fields take longitude/latitude arrays in radians and are selected by
their integer index through AnalyticField.
"""

import enum
import numpy as np
from typing import Tuple

class AnalyticField(enum.IntEnum):
    Y2B2 = 1        # Smooth low-order harmonic
    Y16B32 = 2      # High-frequency harmonic
    VORTEX = 3      # Stationary vortex
    CONSTANT = 4    # f = 1

    @classmethod
    def from_index(cls, index: int) -> "AnalyticField":
        try:
            return cls(int(index))
        except ValueError:
            valid = [m.value for m in cls]
            raise ValueError(f"Test index {index} out of range; expected one of {valid}") from None

    def __call__(self, lon: np.ndarray, lat: np.ndarray) -> np.ndarray:
        return evaluate(self, lon, lat)

def rotated_sphere_coord(lon_c: float, lat_c: float, lon: np.ndarray, lat: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Longitude/latitude of (lon, lat) on a sphere rotated so its pole sits at
    (lon_c, lat_c). Returned longitude lies in [0, 2*pi).
    """
    sin_c, cos_c = np.sin(lat_c), np.cos(lat_c)
    cos_t, sin_t = np.cos(lat), np.sin(lat)

    trm = cos_t * np.cos(lon - lon_c)
    X = sin_c * trm - cos_c * sin_t
    Y = cos_t * np.sin(lon - lon_c)
    Z = sin_c * sin_t + cos_c * trm

    lon_t = np.arctan2(Y, X)
    lon_t = np.where(lon_t < 0.0, lon_t + 2.0 * np.pi, lon_t)
    lat_t = np.arcsin(np.clip(Z, -1.0, 1.0))
    return lon_t, lat_t

def _y2b2(lon, lat):
    return 2.0 + np.cos(lat)**2 * np.cos(2.0 * lon)

def _y16b32(lon, lat):
    return 2.0 + np.sin(2.0 * lat)**16 * np.cos(16.0 * lon)

def _vortex(lon, lat, lon0=0.0, lat0=0.6, r0=3.0, d=5.0, t=6.0):
    lon_r, lat_r = rotated_sphere_coord(lon0, lat0, lon, lat)

    rho = r0 * np.cos(lat_r)
    vt = 3.0 * np.sqrt(3.0) / 2.0 / np.cosh(rho)**2 * np.tanh(rho)

    # Angular velocity vanishes at the vortex centre
    omega = np.divide(vt, rho, out=np.zeros_like(rho), where=(rho != 0.0))

    return 1.0 - np.tanh(rho / d * np.sin(lon_r - omega * t))

def _constant(lon, lat):
    return np.ones(np.broadcast(lon, lat).shape)

def evaluate(field: AnalyticField, lon: np.ndarray, lat: np.ndarray) -> np.ndarray:
    """Evaluate `field` at longitude/latitude in radians."""
    lon = np.asarray(lon, dtype=float)
    lat = np.asarray(lat, dtype=float)

    if field == AnalyticField.Y2B2:
        return _y2b2(lon, lat)
    elif field == AnalyticField.Y16B32:
        return _y16b32(lon, lat)
    elif field == AnalyticField.VORTEX:
        return _vortex(lon, lat)
    elif field == AnalyticField.CONSTANT:
        return _constant(lon, lat)
    else:
        raise ValueError(f"Unknown analytic field: {field}")
