"""> pydd2d: Sparse per-iteration storage of defect state.

Values are stored by the (shared) iteration number of the simulation.
Lookups of iterations that were never recorded return `None`.

>>> history = History()
>>> history.record(3, [1.0, 2.0, 3.0])
>>> history.get(3).tolist()
[1.0, 2.0, 3.0]
>>> history.get(4) is None
True

"""

from collections import OrderedDict

import numpy as np


class History:
    """Mapping of iteration numbers to read-only NumPy arrays.

    If `maxlen` is given, only the most recent `maxlen` records are kept.

    """

    def __init__(self, maxlen=None):
        if maxlen is not None and maxlen < 1:
            raise ValueError(f"history length must be positive, not {maxlen}")
        self.maxlen = maxlen
        self._records = OrderedDict()

    def __len__(self):
        return len(self._records)

    def __contains__(self, iteration):
        return iteration in self._records

    def __repr__(self):
        return f"{self.__class__.__qualname__}(n_records={len(self)}, maxlen={self.maxlen})"

    def record(self, iteration, value):
        """Store a copy of `value` for the given iteration, replacing older records."""
        stored = np.array(value, dtype=np.float64)
        stored.flags.writeable = False
        if iteration in self._records:
            del self._records[iteration]
        self._records[iteration] = stored
        if self.maxlen is not None:
            while len(self._records) > self.maxlen:
                self._records.popitem(last=False)

    def get(self, iteration):
        """Get the value recorded at `iteration`, or `None` if there is no record."""
        return self._records.get(iteration)

    def latest(self):
        """Get the most recently recorded (iteration, value) pair, or `None`."""
        if not self._records:
            return None
        return next(reversed(self._records.items()))

    def iterations(self):
        """Get an array of all recorded iteration numbers, in recording order."""
        return np.fromiter(self._records.keys(), dtype=np.int64, count=len(self))

    def values(self):
        """Get the recorded values stacked into a single array.

        The first axis of the returned array corresponds to `iterations()`.

        """
        if not self._records:
            return np.empty((0,))
        return np.stack(list(self._records.values()))

    def clear(self):
        self._records.clear()
