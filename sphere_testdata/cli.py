"""
Command-line entry points.

    sphere-rll-mesh   Generate a regular longitude-latitude mesh.
    sphere-testdata   Sample an analytic field on a mesh.

Both return 0 on success, -1 on input or configuration errors and -2 on
any other failure.
"""

import argparse
import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

BANNER = "=" * 57

def _setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
    )

def rll_mesh_main(argv: Optional[List[str]] = None) -> int:
    from sphere_testdata.geometry.rll import RLLMeshConfig, build_rll_mesh
    from sphere_testdata.utils.io import write_mesh

    parser = argparse.ArgumentParser(description="Generate a regular longitude-latitude mesh")
    parser.add_argument("--lon", type=int, default=128, help="Number of longitudes")
    parser.add_argument("--lat", type=int, default=64, help="Number of latitudes")
    parser.add_argument("--lon_begin", type=float, default=0.0, help="First longitude edge (degrees)")
    parser.add_argument("--lon_end", type=float, default=360.0, help="Last longitude edge (degrees)")
    parser.add_argument("--lat_begin", type=float, default=-90.0, help="First latitude edge (degrees)")
    parser.add_argument("--lat_end", type=float, default=90.0, help="Last latitude edge (degrees)")
    parser.add_argument("--flip", action="store_true", help="Order faces longitude-major")
    parser.add_argument("--in_file", type=str, default="", help="netCDF file with lon/lat cell centres")
    parser.add_argument("--in_global", action="store_true", help="Treat the input grid as periodic")
    parser.add_argument("--verbose", action="store_true", help="Log edge arrays")
    parser.add_argument("--file", type=str, default="outRLLMesh.g", help="Output mesh file")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    try:
        config = RLLMeshConfig(
            n_lon=args.lon, n_lat=args.lat,
            lon_begin=args.lon_begin, lon_end=args.lon_end,
            lat_begin=args.lat_begin, lat_end=args.lat_end,
            flip=args.flip, in_file=args.in_file or None,
            in_global=args.in_global, verbose=args.verbose,
        )
        logger.info(BANNER)
        mesh = build_rll_mesh(config)
        logger.info("Writing mesh to file [%s]", args.file)
        write_mesh(args.file, mesh)
        logger.info("..Mesh generator exited successfully")
        logger.info(BANNER)
        return 0

    except (ValueError, OSError) as e:
        logger.error("%s", e)
        return -1
    except Exception:
        logger.exception("Unexpected failure")
        return -2

def testdata_main(argv: Optional[List[str]] = None) -> int:
    from sphere_testdata.samplers import SamplingConfig
    from sphere_testdata.pipeline import generate_test_data
    from sphere_testdata.utils.io import read_mesh, write_test_data

    parser = argparse.ArgumentParser(description="Sample an analytic field on a spherical mesh")
    parser.add_argument("--mesh", type=str, required=True, help="Input mesh file")
    parser.add_argument("--test", type=int, default=1, help="Test function index [1-4]")
    parser.add_argument("--gll", action="store_true", help="Sample at GLL nodes")
    parser.add_argument("--gllint", action="store_true", help="Integrate against the GLL basis")
    parser.add_argument("--np", type=int, default=4, dest="n_p", help="GLL points per element edge")
    parser.add_argument("--homme", action="store_true", help="Append a level dimension")
    parser.add_argument("--var", type=str, default="Psi", help="Output variable name")
    parser.add_argument("--out", type=str, default="testdata.nc", help="Output file")
    parser.add_argument("--fliprectilinear", action="store_true", help="Transpose rectilinear output")
    parser.add_argument("--concave", action="store_true", help="Mesh contains concave faces")
    parser.add_argument("--plot", type=str, default="", help="Save a quick-look plot to this file")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    try:
        config = SamplingConfig(
            test=args.test, gll=args.gll, gll_integrate=args.gllint,
            n_p=args.n_p, level=args.homme, var=args.var,
            flip_rectilinear=args.fliprectilinear, concave=args.concave,
        )
        config.validate()

        logger.info(BANNER)
        logger.info("Loading Mesh")
        mesh = read_mesh(args.mesh)

        data = generate_test_data(mesh, config)

        logger.info("Writing results")
        write_test_data(args.out, data, config.var)

        if args.plot:
            import matplotlib
            matplotlib.use("Agg")
            from sphere_testdata.utils.vis import plot_test_data
            plot_test_data(mesh, data, title=f"{config.var} (test {config.test})", filename=args.plot)

        logger.info(BANNER)
        return 0

    except (ValueError, OSError) as e:
        logger.error("%s", e)
        return -1
    except Exception:
        logger.exception("Unexpected failure")
        return -2

def run_rll_mesh():
    raise SystemExit(rll_mesh_main())

def run_testdata():
    raise SystemExit(testdata_main())
