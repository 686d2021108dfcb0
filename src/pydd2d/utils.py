"""> pydd2d: Miscellaneous utility methods."""

import os
import platform
import subprocess

from pydd2d import logger as _log


def import_proc_pool():
    """Import either `ray.util.multiprocessing.Pool` or `multiprocessing.Pool`.

    Import a process `Pool` object either from Ray of from Python's stdlib.
    Both offer the same API, the Ray implementation will be preferred if available.
    Using the `Pool` provided by Ray allows for distributed memory multiprocessing.

    Returns a tuple containing the `Pool` object and a boolean flag which is `True` if
    Ray is available.

    """
    try:
        from ray.util.multiprocessing import Pool

        has_ray = True
    except ImportError:
        from multiprocessing import Pool

        has_ray = False
    return Pool, has_ray


def default_ncpus():
    """Get a safe default number of CPUs available for multiprocessing.

    On Linux platforms that support it, the method `os.sched_getaffinity()` is used.
    On Mac OS, the command `sysctl -n hw.ncpu` is used.
    On Windows, the environment variable `NUMBER_OF_PROCESSORS` is queried.
    One CPU is left free for the main process, but at least 1 is always returned.
    If any of these fail, a fallback of 1 is used and a warning is logged.

    """
    try:
        match platform.system():
            case "Linux":
                ncpus = len(os.sched_getaffinity(0)) - 1  # May raise AttributeError.
            case "Darwin":
                # May raise CalledProcessError.
                out = subprocess.run(
                    ["sysctl", "-n", "hw.ncpu"], capture_output=True, check=True
                )
                ncpus = int(out.stdout.strip()) - 1
            case "Windows":
                ncpus = int(os.environ["NUMBER_OF_PROCESSORS"]) - 1
            case _:
                ncpus = 1
    except (AttributeError, subprocess.CalledProcessError, KeyError, ValueError):
        _log.warning("unable to determine number of available CPU cores, using 1")
        return 1
    return max(ncpus, 1)


def split_evenly(n_items, n_chunks):
    """Get (start, stop) index pairs that split `n_items` into at most `n_chunks`.

    >>> split_evenly(5, 2)
    [(0, 3), (3, 5)]
    >>> split_evenly(1, 4)
    [(0, 1)]
    >>> split_evenly(0, 2)
    []

    """
    n_chunks = max(min(n_chunks, n_items), 1)
    size, extra = divmod(n_items, n_chunks)
    bounds = []
    start = 0
    for i in range(n_chunks):
        stop = start + size + (1 if i < extra else 0)
        if stop > start:
            bounds.append((start, stop))
        start = stop
    return bounds
