"""
Demo script: build a global lon-lat mesh, sample every analytic test field
as cell averages and plot one of them.
Requirements: matplotlib, numpy, netCDF4
"""
import numpy as np
import sys
import os

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

import matplotlib
matplotlib.use("Agg")

from sphere_testdata import RLLMeshConfig, build_rll_mesh, SamplingConfig, AnalyticField, generate_test_data
from sphere_testdata.utils.io import write_mesh, write_test_data
from sphere_testdata.utils.vis import plot_test_data

def main():
    print("--- Running RLL Test Data Demo ---")

    # 1. Mesh (72 x 36 cells, poles included)
    mesh = build_rll_mesh(RLLMeshConfig(n_lon=72, n_lat=36))
    print(f"Mesh: {mesh.n_nodes} nodes, {mesh.n_faces} faces")
    write_mesh("demo_rll.g", mesh)

    # 2. Cell averages of each field; the area-weighted sum is the global integral
    for field in AnalyticField:
        data = generate_test_data(mesh, SamplingConfig(test=int(field)))
        total = np.sum(data.values * mesh.face_areas)
        print(f"{field.name:>8s}: min {data.values.min():.4f} max {data.values.max():.4f} integral {total:.6f}")

    # 3. Write and plot the vortex
    data = generate_test_data(mesh, SamplingConfig(test=AnalyticField.VORTEX, var="Psi"))
    write_test_data("demo_vortex.nc", data, "Psi")

    output_file = "demo_vortex.png"
    plot_test_data(mesh, data, title="Stationary vortex (72 x 36)", filename=output_file)
    print(f"Saved {output_file}")

if __name__ == "__main__":
    main()
