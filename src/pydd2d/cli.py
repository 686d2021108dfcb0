"""> pydd2d: Entry points and argument handling for command line tools.

All CLI handlers should be registered in the `CLI_HANDLERS` namedtuple,
which ensures that they will be installed as executable scripts alongside the package.

"""

import argparse
import os
from collections import namedtuple

import numpy as np

from pydd2d import exceptions as _err
from pydd2d import io as _io
from pydd2d import logger as _log
from pydd2d import run as _run
from pydd2d import utils as _utils


class CliTool:
    """Base class for CLI tools defining the required interface."""

    def __call__(self):
        return NotImplementedError

    def _get_args(self) -> argparse.Namespace | type[NotImplementedError]:
        return NotImplementedError


class Simulator(CliTool):
    """pydd2d script to run a dislocation dynamics simulation.

    The CONFIG file is a TOML file with [parameters], [input] and [output] sections,
    see the documentation of `pydd2d.io.parse_config`. Outputs are written to the
    configured output directory: defect snapshots, step statistics (SCSV) and,
    if requested, dislocation histories (HDF5).

    """

    def __call__(self, argv=None):
        args = self._get_args(argv)
        if args.ncpus is None:
            ncpus = 1
        elif args.ncpus == 0:
            ncpus = _utils.default_ncpus()
        else:
            ncpus = args.ncpus
        with _io.log_cli_level(args.log_level):
            try:
                config = _io.parse_config(args.config)
                _, results = _run.simulate(config, ncpus=ncpus, progress=not args.quiet)
            except (_err.ConfigError, _err.InputError, _err.IterationError) as e:
                _log.error("%s", e)
                return 1
        if results:
            _log.info(
                "final state: %d dislocations at t = %s s",
                results[-1].n_dislocations,
                results[-1].time,
            )
        return 0

    def _get_args(self, argv=None) -> argparse.Namespace:
        assert self.__doc__ is not None, f"missing docstring for {self}"
        description, epilog = self.__doc__.split(os.linesep + os.linesep, 1)
        parser = argparse.ArgumentParser(description=description, epilog=epilog)
        parser.add_argument("config", help="simulation configuration file (.toml)")
        parser.add_argument(
            "-n",
            "--ncpus",
            type=int,
            default=None,
            help="number of processes for stress evaluation (0: automatic)",
        )
        parser.add_argument(
            "-l",
            "--log-level",
            default="INFO",
            choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
            help="console logging level (default: INFO)",
        )
        parser.add_argument(
            "-q", "--quiet", action="store_true", help="hide the progress bar"
        )
        return parser.parse_args(argv)


class HistoryInspector(CliTool):
    """pydd2d script to show information about saved dislocation histories.

    Lists every dislocation in the INPUT file (HDF5) with the number of recorded
    iterations, and optionally prints the recorded velocities of one dislocation.

    """

    def __call__(self, argv=None):
        args = self._get_args(argv)
        histories = _io.load_history(args.input)
        print(f"HDF5 file with {len(histories)} dislocation histories:")
        for defect_id, record in sorted(histories.items()):
            iterations = record["iterations"]
            span = f"{iterations[0]}-{iterations[-1]}" if len(iterations) else "-"
            print(
                f" - dislocation {defect_id}: grain {record['grain']},"
                + f" slip plane {record['slip_plane']},"
                + f" {len(iterations)} iterations ({span})"
            )
        if args.defect_id is not None:
            try:
                record = histories[args.defect_id]
            except KeyError:
                _log.error(
                    "no history for dislocation %d in '%s'", args.defect_id, args.input
                )
                return 1
            with np.printoptions(precision=6):
                for iteration, velocity in zip(
                    record["iterations"], record["velocities"]
                ):
                    print(f"{iteration}: {velocity}")
        return 0

    def _get_args(self, argv=None) -> argparse.Namespace:
        assert self.__doc__ is not None, f"missing docstring for {self}"
        description, epilog = self.__doc__.split(os.linesep + os.linesep, 1)
        parser = argparse.ArgumentParser(description=description, epilog=epilog)
        parser.add_argument("input", help="input file (.h5)")
        parser.add_argument(
            "-d",
            "--defect-id",
            type=int,
            default=None,
            help="print the recorded velocities of the dislocation with this id",
        )
        return parser.parse_args(argv)


# These are not the final names of the executables (those are set in pyproject.toml).
_CLI_HANDLERS = namedtuple(
    "_CLI_HANDLERS",
    (
        "simulator",
        "history_inspector",
    ),
)
CLI_HANDLERS = _CLI_HANDLERS(
    simulator=Simulator(),
    history_inspector=HistoryInspector(),
)
