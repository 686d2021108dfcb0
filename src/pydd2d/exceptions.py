"""> pydd2d: Custom exceptions (subclasses of `pydd2d.Error`)."""

# <https://docs.python.org/3.11/tutorial/errors.html#user-defined-exceptions>


class Error(Exception):
    """Base class for exceptions in pydd2d."""


class ConfigError(Error):
    """Exception raised for errors in the input configuration.

    Attributes:
        message: explanation of the error

    """

    def __init__(self, message):  # pylint: disable=super-init-not-called
        self.message = message

    def __str__(self):
        return self.message


class InputError(Error):
    """Exception raised when a slip plane, orientation or tessellation file is unusable.

    The simulation cannot recover from this error, partially constructed objects must
    be discarded.

    Attributes:
        message: explanation of the error

    """

    def __init__(self, message):  # pylint: disable=super-init-not-called
        self.message = message

    def __str__(self):
        return self.message


class IterationError(Error):
    """Exception raised for errors in the time stepping scheme.

    Attributes:
        message: explanation of the error

    """

    def __init__(self, message):  # pylint: disable=super-init-not-called
        self.message = message

    def __str__(self):
        return self.message


class SCSVError(Error):
    """Exception raised for errors in SCSV file I/O.

    Attributes:
    - message: explanation of the error

    """

    def __init__(self, message):  # pylint: disable=super-init-not-called
        self.message = message

    def __str__(self):
        return self.message
