"""> pydd2d: Logging for simulations and command line tools.

.. note:: Log messages use printf style arguments, e.g.
    `pydd2d.logger.debug("moved %d dislocations", n)`, so that the string is only built
    if the message is actually emitted. Simulations log once per step at DEBUG level.

pydd2d logs through a single package logger named "pydd2d"
(`pydd2d.logger.LOGGER`). It accepts every level and forwards messages to its
handlers, which do the filtering. The console handler
(`pydd2d.logger.CONSOLE_LOGGER`) writes to `sys.stderr` at `INFO` level.

>>> import logging
>>> import pydd2d
>>> pydd2d_logger = logging.getLogger("pydd2d")
>>> pydd2d_logger.level == logging.DEBUG
True
>>> # ELLIPSIS is <stderr> except in test session.
>>> pydd2d_logger.handlers  # doctest: +ELLIPSIS
[<StreamHandler ... (INFO)>]

In the examples below, the console handler is pointed to `sys.stdout` and colors are
switched off (`...` represents a timestamp).

>>> import sys
>>> cli_handler = pydd2d_logger.handlers[0]
>>> _ = cli_handler.setStream(sys.stdout)  # Doctests don't check stderr.
>>> cli_handler.formatter.color_enabled = False
>>> warning("dislocation %d is pinned", 7)  # doctest: +ELLIPSIS
WARNING [...] pydd2d: dislocation 7 is pinned
>>> debug("not shown on the console")
>>> with pydd2d.io.log_cli_level(logging.DEBUG, cli_handler):
...     debug("shown on the console")  # doctest: +ELLIPSIS
DEBUG [...] pydd2d: shown on the console
>>> cli_handler.level == logging.INFO
True
>>> _ = cli_handler.setStream(sys.stderr)
>>> cli_handler.formatter.color_enabled = True

The `pydd2d.io.logfile_enable` context manager adds a handler for a log file. Its
level is independent of the console level, and it also accepts an open text stream:

>>> import io
>>> stream = io.StringIO()
>>> with pydd2d.io.logfile_enable(stream, level=logging.DEBUG):
...     debug("step %d completed", 3)
>>> print(stream.getvalue(), end="")  # doctest: +ELLIPSIS
DEBUG [...] pydd2d: step 3 completed

Use `quiet_aliens` to silence the loggers of other packages (e.g. numba).

"""

import functools as ft
import logging
import sys

import numpy as np

# NOTE: Do NOT import any pydd2d submodules here to avoid cyclical imports.

np.set_printoptions(
    formatter={
        "float_kind": np.format_float_scientific,
        "object": ft.partial(np.array2string, separator=", "),
    },
    linewidth=1000,
)

PLAIN_FORMAT = "%(levelname)s [%(asctime)s] %(name)s: %(message)s"
"""Format of log records without terminal color codes."""


class ConsoleFormatter(logging.Formatter):
    """Log formatter that highlights the level name and timestamp with colors.

    Set `color_enabled` to `False` to get plain `PLAIN_FORMAT` output.

    """

    color_enabled = True
    level_colors = {
        logging.CRITICAL: "1;31",
        logging.ERROR: "31",
        logging.WARNING: "33",
        logging.INFO: "32",
        logging.DEBUG: "34",
    }

    def format(self, record):
        if self.color_enabled:
            code = self.level_colors.get(record.levelno, "0")
            self._style._fmt = (
                f"\033[{code}m%(levelname)s [%(asctime)s]\033[m"
                + " \033[1m%(name)s:\033[m %(message)s"
            )
        else:
            self._style._fmt = PLAIN_FORMAT
        return super().format(record)


LOGGER = logging.getLogger("pydd2d")
# Handlers filter by level, the logger itself passes everything.
LOGGER.setLevel(logging.DEBUG)
CONSOLE_LOGGER = logging.StreamHandler()
CONSOLE_LOGGER.setFormatter(ConsoleFormatter(datefmt="%H:%M"))
CONSOLE_LOGGER.setLevel(logging.INFO)
LOGGER.addHandler(CONSOLE_LOGGER)


def handle_exception(exec_type, exec_value, exec_traceback):
    """Log uncaught exceptions, except for `KeyboardInterrupt`."""
    if issubclass(exec_type, KeyboardInterrupt):
        sys.__excepthook__(exec_type, exec_value, exec_traceback)
        return
    LOGGER.exception(
        "uncaught exception", exc_info=(exec_type, exec_value, exec_traceback)
    )


sys.excepthook = handle_exception


def critical(msg, *args, **kwargs):
    """Log a CRITICAL message in pydd2d."""
    LOGGER.critical(msg, *args, **kwargs)


def error(msg, *args, **kwargs):
    """Log an ERROR message in pydd2d."""
    LOGGER.error(msg, *args, **kwargs)


def warning(msg, *args, **kwargs):
    """Log a WARNING message in pydd2d."""
    LOGGER.warning(msg, *args, **kwargs)


def info(msg, *args, **kwargs):
    """Log an INFO message in pydd2d."""
    LOGGER.info(msg, *args, **kwargs)


def debug(msg, *args, **kwargs):
    """Log a DEBUG message in pydd2d."""
    LOGGER.debug(msg, *args, **kwargs)


def exception(msg, *args, **kwargs):
    """Log an ERROR message with the traceback of the exception being handled."""
    LOGGER.exception(msg, *args, **kwargs)


def quiet_aliens(root_level=logging.WARNING, level=logging.CRITICAL):
    """Set the level of the root logger and of all loggers except "pydd2d".

    Mostly useful in the test suite, where numba and meshio would otherwise flood the
    captured logs.

    """
    logging.getLogger().setLevel(root_level)
    for name in logging.Logger.manager.loggerDict.keys():
        if name != "pydd2d":
            logging.getLogger(name).setLevel(level)
