"""> pydd2d: Slip planes, i.e. straight lines that carry dislocations and sources.

In the two-dimensional cross-section of a grain, a slip plane is a straight segment
between two extremities. Dislocations on the slip plane glide along the segment and
are kept sorted by their signed coordinate along the line direction (measured from the
first extremity towards the second). The extremities act as impenetrable obstacles,
e.g. grain boundaries.

All positions and vectors are expressed in the coordinate system of the owning grain.

>>> import numpy as np
>>> from pydd2d.defects import Dislocation
>>> slip_plane = SlipPlane([[-1e-6, 0, 0], [1e-6, 0, 0]])
>>> slip_plane.insert_dislocation(
...     Dislocation([1, 0, 0], [0, 0, 1], [2e-7, 0, 0], bmag=2.5e-10)
... )
>>> slip_plane.insert_dislocation(
...     Dislocation([-1, 0, 0], [0, 0, 1], [-2e-7, 0, 0], bmag=2.5e-10)
... )
>>> slip_plane.is_sorted()
True
>>> np.round(slip_plane.defect_positions() * 1e6, 6).tolist()
[0.8, 1.2]

"""

import numpy as np

from pydd2d import core as _core
from pydd2d import logger as _log
from pydd2d import tensors as _tensors

_HELD_TOLERANCE = 1e-6
"""Relative tolerance for dislocations held at `min_distance` from an extremity."""


class SlipPlane:
    """Line segment carrying an ordered sequence of dislocations and their sources.

    Attributes:
    - `extremities` (array): the two end points, with shape (2, 3)
    - `normal` (array): normal vector of the slip plane
    - `position` (array): reference position of the slip plane

    The extremities can also be set after initialisation using `set_extremities`,
    which is required before any defects are inserted.

    """

    def __init__(self, extremities=None, normal=None, position=None):
        self._extremities = None
        self._dislocations = []
        self._sources = []
        if extremities is not None:
            self.set_extremities(*extremities)
        self.set_normal(np.array([0.0, 1.0, 0.0]) if normal is None else normal)
        self.set_position(np.zeros(3) if position is None else position)

    def __repr__(self):
        return (
            f"{self.__class__.__qualname__}(extremities="
            + f"{None if self._extremities is None else self._extremities.tolist()},"
            + f" n_dislocations={len(self._dislocations)},"
            + f" n_sources={len(self._sources)})"
        )

    def set_extremities(self, first, second):
        _first = _tensors.as_vector(first)
        _second = _tensors.as_vector(second)
        if np.allclose(_first, _second, rtol=0, atol=0):
            raise ValueError(f"slip plane extremities must not coincide, but got {first}")
        self._extremities = np.vstack((_first, _second))
        self._direction = _tensors.unit(_second - _first)
        self._length = np.linalg.norm(_second - _first)
        self._sort()

    def set_normal(self, normal):
        self.normal = _tensors.unit(normal)

    def set_position(self, position):
        self.position = _tensors.as_vector(position)

    @property
    def extremities(self):
        self._check_extremities()
        return self._extremities.copy()

    @property
    def direction(self):
        """Unit vector pointing from the first extremity to the second."""
        self._check_extremities()
        return self._direction.copy()

    @property
    def length(self):
        self._check_extremities()
        return self._length

    @property
    def dislocations(self):
        return tuple(self._dislocations)

    @property
    def sources(self):
        return tuple(self._sources)

    def defects(self):
        """Get all dislocations followed by all dislocation sources."""
        return (*self._dislocations, *self._sources)

    def _check_extremities(self):
        if self._extremities is None:
            raise ValueError("slip plane extremities have not been set")

    def line_coordinate(self, point):
        """Get the signed coordinate of `point` along the slip plane."""
        self._check_extremities()
        return float(
            np.dot(_tensors.as_vector(point) - self._extremities[0], self._direction)
        )

    def _sort(self):
        if self._extremities is not None:
            self._dislocations.sort(key=lambda d: self.line_coordinate(d.position))

    def is_sorted(self):
        """Check that the dislocations are sorted by their line coordinates."""
        return bool(np.all(np.diff(self.defect_positions()) >= 0))

    def defect_positions(self):
        """Get the line coordinates of all dislocations, in order."""
        return np.array([self.line_coordinate(d.position) for d in self._dislocations])

    def insert_dislocation(self, dislocation):
        self._check_extremities()
        self._dislocations.append(dislocation)
        self._sort()

    def insert_source(self, source):
        self._check_extremities()
        self._sources.append(source)
        self._sources.sort(key=lambda s: self.line_coordinate(s.position))

    def total_stress_at(self, point, mu, nu, excluding=None, background=None):
        """Get the stress at `point` from all defects on this slip plane.

        The stress field of the `excluding` defect is skipped, and the `background`
        stress (if given) is added to the result.

        """
        _point = _tensors.as_vector(point)
        stress = np.zeros((3, 3)) if background is None else _tensors.as_stress(background)
        for defect in self.defects():
            if defect is excluding:
                continue
            stress += defect.stress_field(_point, mu, nu)
        return stress

    def calculate_dislocation_velocities(self, drag_coefficient, tau_crss, iteration=None):
        """Calculate forces and glide velocities of all dislocations.

        The force on each dislocation is the Peach-Koehler force from its recorded
        total stress. Velocities follow the overdamped mobility law $v = f / B$,
        projected onto the slip plane direction. Pinned dislocations do not move.

        """
        for dislocation in self._dislocations:
            force = dislocation.force_peach_koehler(dislocation.total_stress, tau_crss)
            dislocation.set_total_force(force, iteration)
            if dislocation.is_mobile:
                glide = np.dot(force, self._direction) / drag_coefficient
                velocity = glide * self._direction
            else:
                velocity = np.zeros(3)
            dislocation.set_velocity(velocity, iteration)

    def held_dislocations(self, min_distance):
        """Get a boolean mask of the dislocations held in place for the next move.

        A dislocation is held if it is already within `min_distance` of an extremity
        or of a neighbour and still moving towards it. Holding one dislocation can
        stop the next one in a pile-up, so neighbours are checked until no more
        dislocations are held.

        """
        n_dislocations = len(self._dislocations)
        held = np.zeros(n_dislocations, dtype=bool)
        if n_dislocations == 0:
            return held
        reach = min_distance * (1 + _HELD_TOLERANCE)
        coordinates = self.defect_positions()
        glide = np.array(
            [np.dot(d.velocity, self._direction) for d in self._dislocations]
        )
        if coordinates[0] <= reach and glide[0] < 0:
            held[0] = True
        if self._length - coordinates[-1] <= reach and glide[-1] > 0:
            held[-1] = True
        glide[held] = 0.0
        changed = True
        while changed:
            changed = False
            for i in range(n_dislocations - 1):
                if coordinates[i + 1] - coordinates[i] > reach:
                    continue
                if glide[i] > 0 and glide[i] > glide[i + 1]:
                    held[i], glide[i], changed = True, 0.0, True
                if glide[i + 1] < 0 and glide[i + 1] < glide[i]:
                    held[i + 1], glide[i + 1], changed = True, 0.0, True
        return held

    def ideal_time_increment(self, min_distance):
        """Get the largest time increment that keeps all dislocations separated.

        Considers every pair of neighbouring dislocations, as well as the extremities
        for the first and last dislocation. Dislocations that are held in place (see
        `held_dislocations`) are treated as stationary, because `move_dislocations`
        does not move them.

        """
        dt = _core.TIME_INCREMENT_UNBOUNDED
        if not self._dislocations:
            return dt
        held = self.held_dislocations(min_distance)
        velocities = [
            np.zeros(3) if is_held else d.velocity
            for d, is_held in zip(self._dislocations, held)
        ]
        for k, extremity in ((0, self._extremities[0]), (-1, self._extremities[1])):
            offset = extremity - self._dislocations[k].position
            if np.linalg.norm(offset) > min_distance * (1 + _HELD_TOLERANCE):
                dt = min(dt, _core.time_increment(offset, -velocities[k], min_distance))
        for i, (first, second) in enumerate(
            zip(self._dislocations[:-1], self._dislocations[1:])
        ):
            dt = min(
                dt,
                _core.time_increment(
                    second.position - first.position,
                    velocities[i + 1] - velocities[i],
                    min_distance,
                ),
            )
        return dt

    def _line_bounds(self, min_distance):
        if self._length > 2 * min_distance:
            return min_distance, self._length - min_distance
        return 0.0, self._length

    def move_dislocations(self, dt, min_distance=0.0):
        """Move all mobile dislocations with their velocities for a time `dt`.

        Dislocations are not moved past the extremities, nor closer to them than
        `min_distance` (unless the slip plane is too short). Held dislocations (see
        `held_dislocations`) stay in place.

        """
        lower, upper = self._line_bounds(min_distance)
        held = self.held_dislocations(min_distance)
        for dislocation, is_held in zip(self._dislocations, held):
            if is_held or not dislocation.is_mobile:
                continue
            start = self.line_coordinate(dislocation.position)
            end = start + np.dot(dislocation.velocity, self._direction) * dt
            if end > start:
                end = min(end, max(upper, start))
            elif end < start:
                end = max(end, min(lower, start))
            dislocation.position = dislocation.position + (end - start) * self._direction
        self._sort()

    def check_local_reactions(self, reaction_radius):
        """Annihilate pairs of opposite dislocations within `reaction_radius`.

        Returns the number of removed dislocations.

        """
        coordinates = self.defect_positions()
        removed = set()
        for i, first in enumerate(self._dislocations):
            if i in removed:
                continue
            for j in range(i + 1, len(self._dislocations)):
                if coordinates[j] - coordinates[i] > reaction_radius:
                    break
                if j in removed:
                    continue
                second = self._dislocations[j]
                if (
                    first.is_opposite(second)
                    and np.linalg.norm(second.position - first.position)
                    <= reaction_radius
                ):
                    _log.debug(
                        "annihilated dislocations %d and %d",
                        first.defect_id,
                        second.defect_id,
                    )
                    removed.update((i, j))
                    break
        if removed:
            self._dislocations = [
                d for k, d in enumerate(self._dislocations) if k not in removed
            ]
            self._sort()
        return len(removed)

    def _is_free(self, point, min_distance, source):
        coordinate = self.line_coordinate(point)
        if coordinate < 0 or coordinate > self._length:
            return False
        for defect in self.defects():
            if defect is source:
                continue
            if np.linalg.norm(defect.position - point) < min_distance:
                return False
        return True

    def check_sources(
        self, dt, mu, nu, min_distance, history_length=None, reaction_radius=0.0
    ):
        """Update all dislocation sources and nucleate dipoles where possible.

        A dipole is only inserted if both new dislocations lie on the slip plane and
        keep `min_distance` from every other defect, otherwise the source stays ready.
        New dipoles are longer than `reaction_radius`, see
        `pydd2d.defects.DislocationSource.dipole_length`.
        Returns the number of nucleated dislocations.

        """
        n_nucleated = 0
        for source in self._sources:
            source.update(dt)
            if not source.is_ready:
                continue
            positions = source.dipole_positions(
                self._direction, mu, nu, min_distance, reaction_radius
            )
            if not all(self._is_free(p, min_distance, source) for p in positions):
                _log.debug("nucleation blocked at source %s", source.position)
                continue
            for dislocation in source.create_dipole(
                self._direction, mu, nu, min_distance, history_length, reaction_radius
            ):
                self._dislocations.append(dislocation)
            source.reset()
            n_nucleated += 2
        self._sort()
        return n_nucleated
