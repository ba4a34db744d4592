import numpy as np
import pytest

from sphere_testdata import cli
from sphere_testdata.utils.io import read_mesh, read_test_data


def test_generate_mesh_and_sample(tmp_path):
    mesh_file = str(tmp_path / "rll.g")
    out_file = str(tmp_path / "psi.nc")
    plot_file = tmp_path / "psi.png"

    assert cli.rll_mesh_main(["--lon", "16", "--lat", "8", "--file", mesh_file]) == 0
    mesh = read_mesh(mesh_file)
    assert mesh.n_faces == 128
    assert mesh.metadata.dim_sizes == (8, 16)

    assert cli.testdata_main(["--mesh", mesh_file, "--test", "2", "--out", out_file,
                              "--plot", str(plot_file)]) == 0
    values, dims = read_test_data(out_file)
    assert dims == {"lat": 8, "lon": 16}
    assert np.all(np.isfinite(values))
    assert plot_file.exists()


def test_flipped_output(tmp_path):
    mesh_file = str(tmp_path / "rll.g")
    out_file = str(tmp_path / "psi.nc")

    assert cli.rll_mesh_main(["--lon", "6", "--lat", "4", "--flip", "--file", mesh_file]) == 0
    assert cli.testdata_main(["--mesh", mesh_file, "--fliprectilinear", "--homme",
                              "--var", "T", "--out", out_file]) == 0
    values, dims = read_test_data(out_file, "T")
    assert dims == {"lon": 6, "lat": 4, "lev": 1}


def test_gllint_output(tmp_path):
    mesh_file = str(tmp_path / "rll.g")
    out_file = str(tmp_path / "psi.nc")

    assert cli.rll_mesh_main(["--lon", "8", "--lat", "4", "--file", mesh_file]) == 0
    assert cli.testdata_main(["--mesh", mesh_file, "--gllint", "--np", "2", "--out", out_file]) == 0
    values, dims = read_test_data(out_file)
    assert dims == {"ncol": 2 + 3 * 8}


@pytest.mark.parametrize("argv", [
    ["--lat_begin", "30", "--lat_end", "-30"],
    ["--lon", "0"],
])
def test_mesh_errors(tmp_path, argv):
    assert cli.rll_mesh_main(argv + ["--file", str(tmp_path / "bad.g")]) == -1


def test_sampling_errors(tmp_path):
    mesh_file = str(tmp_path / "rll.g")
    out_file = str(tmp_path / "psi.nc")
    assert cli.rll_mesh_main(["--lon", "8", "--lat", "4", "--file", mesh_file]) == 0

    # Pointwise GLL sampling is not defined on rectilinear output
    assert cli.testdata_main(["--mesh", mesh_file, "--gll", "--out", out_file]) == -1
    assert cli.testdata_main(["--mesh", mesh_file, "--gll", "--gllint", "--out", out_file]) == -1
    assert cli.testdata_main(["--mesh", mesh_file, "--test", "9", "--out", out_file]) == -1
    assert cli.testdata_main(["--mesh", str(tmp_path / "absent.g"), "--out", out_file]) == -1
