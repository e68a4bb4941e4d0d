"""
Batch computation of Halo orbit tables for the named CR3BP systems.

For every system in ``NAMED_SYSTEMS`` the L1 and L2 northern Halo families
are swept over a grid of z-amplitudes and written to one CSV file per
system, ``<output>/<system>-halos.csv``, alongside a README describing the
columns.

Run with ``python -m halos.main`` or the ``halos-sweep`` console script.
"""

import argparse
import logging
import os
from concurrent.futures import ThreadPoolExecutor

from halos.algorithms.orbits.family import HALO_TABLE_COLUMNS, sweep_halos, write_halo_table
from halos.config import SweepConfig
from halos.logging_config import setup_logging
from halos.models.system import NAMED_SYSTEMS


logger = logging.getLogger(__name__)

README = """\
# How are the Halo CSV files formatted?
* The columns from left to right are:
  1. Nondimensional mass parameter
  2. Lagrange point (1 or 2)
  3. Nondimensional Z amplitude
  4. Jacobi Constant
  5. Nondimensional orbital period
  6. Nondimensional X
  7. Nondimensional Y
  8. Nondimensional Z
  9. Nondimensional X velocity
  10. Nondimensional Y velocity
  11. Nondimensional Z velocity
* Header names: {columns}
"""


def table_path(output_dir, name):
    return os.path.join(output_dir, f"{name.lower()}-halos.csv")


def write_readme(output_dir):
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "README.md")
    with open(path, "w") as f:
        f.write(README.format(columns=", ".join(HALO_TABLE_COLUMNS)))
    return path


def process_system(name, config, output_dir):
    """Sweep one named system and write its table."""
    system = NAMED_SYSTEMS[name]
    df = sweep_halos(system, config)
    path = table_path(output_dir, name)
    write_halo_table(df, path)
    logger.info("Finished processing %s Halos (%d orbits)", name, len(df))
    return path


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--output", default=os.path.join("data", "exp_pro", "halos"),
                        help="directory receiving the CSV tables")
    parser.add_argument("--systems", nargs="+", default=list(NAMED_SYSTEMS),
                        choices=list(NAMED_SYSTEMS), metavar="NAME",
                        help="named systems to process (default: all)")
    parser.add_argument("--az-stop", type=float, default=0.01)
    parser.add_argument("--az-step", type=float, default=1e-6)
    parser.add_argument("--max-failures", type=int, default=10,
                        help="consecutive rejected amplitudes before a sweep stops")
    parser.add_argument("--workers", type=int, default=1,
                        help="number of systems processed concurrently")
    parser.add_argument("--progress", action="store_true", help="show progress bars")
    parser.add_argument("--log-dir", default="logs")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, log_dir=args.log_dir)

    config = SweepConfig(az_stop=args.az_stop, az_step=args.az_step,
                         max_consecutive_failures=args.max_failures,
                         show_progress=args.progress)

    write_readme(args.output)

    if args.workers > 1:
        with ThreadPoolExecutor(max_workers=args.workers) as ex:
            paths = list(ex.map(lambda name: process_system(name, config, args.output), args.systems))
    else:
        paths = [process_system(name, config, args.output) for name in args.systems]

    logger.info("Wrote %d Halo tables to %s", len(paths), args.output)
    return paths


if __name__ == "__main__":
    main()
