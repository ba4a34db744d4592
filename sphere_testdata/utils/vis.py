import numpy as np
import matplotlib.pyplot as plt
import matplotlib.colors as colors
from matplotlib.colors import LinearSegmentedColormap
from typing import Optional, Any, Tuple
from sphere_testdata.geometry.mesh import Mesh, lonlat_from_xyz
from sphere_testdata.samplers.base import TestData

# Define custom colormap
COLORS_LIST = [
    (0.0, "green"),
    (0.5, "yellow"),
    (1.0, "red"),
]
GREEN_RED_CMAP = LinearSegmentedColormap.from_list("green_red", COLORS_LIST)

def face_centroids(mesh: Mesh) -> Tuple[np.ndarray, np.ndarray]:
    """Longitude/latitude (degrees) of the projected mean of each face's corners."""
    centre = np.array([mesh.nodes[list(face)].mean(axis=0) for face in mesh.faces])
    lam, theta = lonlat_from_xyz(centre[:, 0], centre[:, 1], centre[:, 2])
    return np.rad2deg(lam), np.rad2deg(theta)

def sample_locations(mesh: Mesh, data: TestData) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Longitude, latitude (degrees) and value for every output sample.

    Finite-volume values are paired with face centroids through the face
    index map; nodal values need the recorded lat/lon arrays.
    """
    if data.face_index_map is not None:
        lon, lat = face_centroids(mesh)
        return lon, lat, data.values[data.face_index_map]
    if data.lat is None:
        raise ValueError("Nodal test data has no coordinates; sample with level output enabled")
    return data.lon, data.lat, data.values

def plot_test_data(
    mesh: Mesh,
    data: TestData,
    title: str = "Sampled test data",
    cmap: Any = GREEN_RED_CMAP,
    vmin: Optional[float] = None,
    vmax: Optional[float] = None,
    filename: Optional[str] = None,
):
    """
    Scatter plot of sampled values in the longitude-latitude plane.

    Parameters
    ----------
    mesh : Mesh
        Mesh the data was sampled on.
    data : TestData
        Output of a sampler.
    title : str
        Plot title.
    cmap : Colormap
        Matplotlib colormap.
    vmin, vmax : float (Optional)
        Colorbar range. If None, min/max of the data will be used.
    filename : str (Optional)
        Save the figure here instead of showing it.
    """
    lon, lat, values = sample_locations(mesh, data)

    if vmin is None: vmin = np.min(values)
    if vmax is None: vmax = np.max(values)
    norm = colors.Normalize(vmin=vmin, vmax=vmax)

    fig, ax = plt.subplots(figsize=(10, 5))
    sc = ax.scatter(lon, lat, c=values, cmap=cmap, norm=norm, s=8, linewidths=0)

    cbar = fig.colorbar(sc, ax=ax, shrink=0.8, pad=0.02)
    cbar.set_label("Value")

    ax.set_xlim(0.0, 360.0)
    ax.set_ylim(-90.0, 90.0)
    ax.set_xlabel("Longitude (deg)")
    ax.set_ylabel("Latitude (deg)")
    ax.set_title(title)

    fig.tight_layout()
    if filename is not None:
        fig.savefig(filename)
        plt.close(fig)
    else:
        plt.show()
    return fig
