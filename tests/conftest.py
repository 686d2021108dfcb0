"""> Configuration and fixtures for pydd2d tests."""

import numpy as np
import pytest
from _pytest.logging import LoggingPlugin, _LiveLoggingStreamHandler

from pydd2d import io as _io
from pydd2d import logger as _log
from pydd2d import mock as _mock

_log.quiet_aliens()  # Stop imported modules from spamming the logs.


# Set up custom pytest CLI arguments.
def pytest_addoption(parser):
    parser.addoption(
        "--outdir",
        metavar="DIR",
        default=None,
        help="output directory in which to store pydd2d simulation outputs/logs",
    )
    parser.addoption(
        "--ncpus",
        default=2,
        type=int,
        help="number of CPUs to use for tests that support multiprocessing",
    )


# The default pytest logging plugin always creates its own handlers...
class PytestConsoleLogger(LoggingPlugin):
    """Pytest plugin that allows linking up a custom console logger."""

    name = "pytest-console-logger"

    def __init__(self, config, *args, **kwargs):
        super().__init__(config, *args, **kwargs)
        terminal_reporter = config.pluginmanager.get_plugin("terminalreporter")
        capture_manager = config.pluginmanager.get_plugin("capturemanager")
        handler = _LiveLoggingStreamHandler(terminal_reporter, capture_manager)
        handler.setFormatter(_log.CONSOLE_LOGGER.formatter)
        handler.setLevel(_log.CONSOLE_LOGGER.level)
        self.log_cli_handler = handler

    # Override original, which tries to delete some silly globals that we aren't
    # using anymore, this might break the (already quite broken) -s/--capture.
    @pytest.hookimpl(hookwrapper=True)
    def pytest_runtest_teardown(self, item):
        self.log_cli_handler.set_when("teardown")
        yield from self._runtest_for(item, "teardown")


@pytest.hookimpl(trylast=True)
def pytest_configure(config):
    # Hook up our logging plugin last,
    # it relies on terminalreporter and capturemanager.
    if config.option.verbose > 0:
        config.pluginmanager.register(
            PytestConsoleLogger(config), PytestConsoleLogger.name
        )


@pytest.fixture(scope="session")
def verbose(request):
    return request.config.option.verbose


@pytest.fixture(scope="session")
def outdir(request):
    return request.config.getoption("--outdir")


@pytest.fixture(scope="session")
def ncpus(request):
    return max(1, request.config.getoption("--ncpus"))


@pytest.fixture
def params_aluminium():
    return _mock.PARAMS_ALUMINIUM


@pytest.fixture
def params_unit_shear():
    return _mock.PARAMS_UNIT_SHEAR


@pytest.fixture(scope="session")
def data_specs():
    return _io.data("specs")


@pytest.fixture(scope="session")
def seed():
    """Default seed for test RNG."""
    return 8816


@pytest.fixture
def rng(seed):
    return np.random.default_rng(seed)
