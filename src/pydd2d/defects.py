"""> pydd2d: Crystal defects that live on slip planes.

Two kinds of defects are supported, see `pydd2d.core.DefectKind`:
- `Dislocation`: straight dislocation that glides along its slip plane
- `DislocationSource`: nucleation site that emits dislocation dipoles

Both implement the `Defect.stress_field` method, so that containers can superpose the
stress contributions of all their defects without distinguishing between them.
Positions, Burgers vectors and line vectors of defects are expressed in the
coordinate system of the grain that owns their slip plane.

>>> import numpy as np
>>> dislocation = Dislocation(
...     burgers=[1, 0, 0], line=[0, 0, 1], position=[0, 0, 0], bmag=2.5e-10
... )
>>> dislocation.is_mobile
True
>>> stress = dislocation.stress_field([1e-8, 1e-8, 0], mu=80e9, nu=0.3)
>>> np.allclose(stress, stress.transpose())
True
>>> dislocation.total_stress_at_iteration(0) is None
True

"""

import itertools as it

import numpy as np

from pydd2d import core as _core
from pydd2d import history as _history
from pydd2d import logger as _log
from pydd2d import tensors as _tensors

_DEFECT_IDS = it.count()
_DIPOLE_MARGIN = 1e-6
"""Relative margin between the length of a new dipole and the reaction radius."""


class Defect:
    """Base class for defects with a position and a stress field."""

    kind = None

    def __init__(self, position):
        self.position = position

    @property
    def position(self):
        return self._position

    @position.setter
    def position(self, value):
        self._position = _tensors.as_vector(value)

    def stress_field(self, point, mu, nu):
        """Get the stress tensor at `point` caused by this defect."""
        raise NotImplementedError


def _validate_bmag(bmag):
    if not bmag > 0:
        raise ValueError(f"Burgers vector magnitude must be positive, not {bmag}")
    return float(bmag)


class Dislocation(Defect):
    """Straight dislocation.

    Mixed dislocations are allowed, but only the edge component of the Burgers vector
    (perpendicular to the line) takes part in the elastic interactions, see
    `edge_bmag`. Pure screw dislocations are rejected.

    Attributes:
    - `defect_id` (int): unique identifier, shared by no other dislocation in the
      running process
    - `burgers` (array): Burgers vector, only its direction is used
    - `line` (array): line vector, only its direction is used
    - `bmag` (float): magnitude of the Burgers vector
    - `rotation` (array): rotation matrix into the local frame of the dislocation,
      with the x-axis along the edge component of the Burgers vector and the z-axis
      along the line vector
    - `is_mobile` (bool): whether the dislocation is allowed to glide
    - `total_stress`, `total_force`, `velocity` (array): most recent values of the
      stress at the dislocation, the Peach-Koehler force and the glide velocity

    The optional `history_length` limits the number of recorded iterations.

    """

    kind = _core.DefectKind.dislocation

    def __init__(
        self, burgers, line, position, bmag, mobile=True, history_length=None
    ):
        super().__init__(position)
        self.defect_id = next(_DEFECT_IDS)
        self.bmag = _validate_bmag(bmag)
        self._burgers = _tensors.as_vector(burgers)
        self._line = _tensors.as_vector(line)
        self.calculate_rotation_matrix()
        self.is_mobile = bool(mobile)
        self.total_stress = np.zeros((3, 3))
        self.total_force = np.zeros(3)
        self.velocity = np.zeros(3)
        self._stresses = _history.History(history_length)
        self._forces = _history.History(history_length)
        self._velocities = _history.History(history_length)
        _log.debug(
            "created dislocation %d at %s (mobile: %s)",
            self.defect_id,
            self.position,
            self.is_mobile,
        )

    def __repr__(self):
        return (
            f"{self.__class__.__qualname__}(defect_id={self.defect_id},"
            + f" burgers={self.burgers.tolist()}, line={self.line.tolist()},"
            + f" position={self.position.tolist()}, bmag={self.bmag},"
            + f" mobile={self.is_mobile})"
        )

    @property
    def burgers(self):
        return self._burgers.copy()

    @burgers.setter
    def burgers(self, value):
        self._burgers = _tensors.as_vector(value)
        self.calculate_rotation_matrix()

    @property
    def line(self):
        return self._line.copy()

    @line.setter
    def line(self, value):
        self._line = _tensors.as_vector(value)
        self.calculate_rotation_matrix()

    @property
    def edge_bmag(self):
        """Magnitude of the edge component of the Burgers vector."""
        return self.bmag * self._edge_fraction

    def calculate_rotation_matrix(self):
        """Recalculate the local frame from the line vector and Burgers vector."""
        self.rotation = _tensors.rotation_from_axes(self._line, self._burgers)
        self._edge_fraction = _tensors.edge_fraction(self._line, self._burgers)

    def set_mobile(self):
        self.is_mobile = True

    def set_pinned(self):
        self.is_mobile = False

    def stress_field(self, point, mu, nu):
        """Get the stress tensor at `point` caused by this dislocation.

        The stress vanishes inside the dislocation core,
        see `pydd2d.core.CORE_RADIUS_FACTOR`.

        """
        return _core.stress_field(
            _tensors.as_vector(point),
            self.position,
            self.rotation,
            self.edge_bmag,
            mu,
            nu,
        )

    def force_peach_koehler(self, stress, tau_crss):
        """Get the glide force per unit length caused by the given `stress` tensor.

        The force is exactly zero if the resolved shear stress is below `tau_crss`.

        """
        return _core.force_peach_koehler(
            _tensors.as_stress(stress), self.rotation, self.edge_bmag, tau_crss
        )

    def ideal_time_increment(self, min_distance, other, other_velocity=None):
        """Get the largest time increment that keeps `other` out of `min_distance`.

        Both this dislocation and the `other` defect (or point) are assumed to move
        with constant velocity. If `other_velocity` is not given, `other` is treated
        as stationary. See `pydd2d.core.time_increment` for the special cases.

        """
        other_position = other.position if isinstance(other, Defect) else other
        _other_velocity = (
            np.zeros(3)
            if other_velocity is None
            else _tensors.as_vector(other_velocity)
        )
        return _core.time_increment(
            _tensors.as_vector(other_position) - self.position,
            _other_velocity - self.velocity,
            min_distance,
        )

    def set_total_stress(self, stress, iteration=None):
        self.total_stress = _tensors.as_stress(stress)
        if iteration is not None:
            self._stresses.record(iteration, self.total_stress)

    def set_total_force(self, force, iteration=None):
        self.total_force = _tensors.as_vector(force)
        if iteration is not None:
            self._forces.record(iteration, self.total_force)

    def set_velocity(self, velocity, iteration=None):
        self.velocity = _tensors.as_vector(velocity)
        if iteration is not None:
            self._velocities.record(iteration, self.velocity)

    def total_stress_at_iteration(self, iteration):
        return self._stresses.get(iteration)

    def total_force_at_iteration(self, iteration):
        return self._forces.get(iteration)

    def velocity_at_iteration(self, iteration):
        return self._velocities.get(iteration)

    def histories(self):
        """Get the recorded stress, force and velocity histories, keyed by name."""
        return {
            "stresses": self._stresses,
            "forces": self._forces,
            "velocities": self._velocities,
        }

    def is_opposite(self, other):
        """Check whether `other` has a Burgers vector of opposite sign."""
        return bool(np.dot(self._burgers, other._burgers) < 0)


class DislocationSource(Defect):
    """Nucleation site for dislocation dipoles.

    A source accumulates the number of consecutive iterations in which the resolved
    shear stress on its template dislocation is at least `tau_crit` (in magnitude).
    Once `n_iterations` consecutive iterations have been reached, the source is
    ready to emit a dipole of two dislocations with opposite Burgers vectors.
    The time spent above the threshold is tracked in `time_above_threshold`.

    Sources do not contribute to the stress field.

    >>> source = DislocationSource(
    ...     burgers=[1, 0, 0],
    ...     line=[0, 0, 1],
    ...     position=[0, 0, 0],
    ...     bmag=2.5e-10,
    ...     tau_crit=1e6,
    ...     n_iterations=2,
    ... )
    >>> source.set_total_stress([0, 0, 0, 0, 0, 2e6], iteration=0)
    >>> source.update(1e-10)
    >>> source.is_ready
    False
    >>> source.update(1e-10)
    >>> source.is_ready
    True
    >>> source.set_total_stress([0, 0, 0, 0, 0, 0], iteration=1)
    >>> source.update(1e-10)
    >>> source.count, source.time_above_threshold
    (0, 0.0)

    """

    kind = _core.DefectKind.source

    def __init__(
        self,
        burgers,
        line,
        position,
        bmag,
        tau_crit,
        n_iterations,
        history_length=None,
    ):
        super().__init__(position)
        self.bmag = _validate_bmag(bmag)
        if n_iterations < 0:
            raise ValueError(
                f"number of nucleation iterations must not be negative, not {n_iterations}"
            )
        if tau_crit < 0:
            raise ValueError(f"critical shear stress must not be negative, not {tau_crit}")
        self._burgers = _tensors.as_vector(burgers)
        self._line = _tensors.as_vector(line)
        self.calculate_rotation_matrix()
        self.tau_crit = float(tau_crit)
        self.n_iterations = int(n_iterations)
        self.count = 0
        self.time_above_threshold = 0.0
        self.total_stress = np.zeros((3, 3))
        self._stresses = _history.History(history_length)

    def __repr__(self):
        return (
            f"{self.__class__.__qualname__}(position={self.position.tolist()},"
            + f" tau_crit={self.tau_crit}, n_iterations={self.n_iterations},"
            + f" count={self.count})"
        )

    @property
    def burgers(self):
        return self._burgers.copy()

    @burgers.setter
    def burgers(self, value):
        self._burgers = _tensors.as_vector(value)
        self.calculate_rotation_matrix()

    @property
    def line(self):
        return self._line.copy()

    @line.setter
    def line(self, value):
        self._line = _tensors.as_vector(value)
        self.calculate_rotation_matrix()

    def calculate_rotation_matrix(self):
        """Recalculate the frame of the template dislocation."""
        self.rotation = _tensors.rotation_from_axes(self._line, self._burgers)

    def stress_field(self, point, mu, nu):
        return np.zeros((3, 3))

    def set_total_stress(self, stress, iteration=None):
        self.total_stress = _tensors.as_stress(stress)
        if iteration is not None:
            self._stresses.record(iteration, self.total_stress)

    def total_stress_at_iteration(self, iteration):
        return self._stresses.get(iteration)

    def resolved_shear_stress(self, stress=None):
        """Get the shear stress resolved on the template dislocation's slip system."""
        _stress = self.total_stress if stress is None else _tensors.as_stress(stress)
        return _tensors.rotate_tensor(_stress, self.rotation)[0, 1]

    def update(self, dt):
        """Advance the nucleation counter by one iteration of duration `dt`."""
        if np.abs(self.resolved_shear_stress()) >= self.tau_crit:
            self.count += 1
            self.time_above_threshold += dt
        else:
            self.reset()

    @property
    def is_ready(self):
        """Whether the stress was above the threshold for long enough to nucleate."""
        return self.count > 0 and self.count >= self.n_iterations

    def reset(self):
        self.count = 0
        self.time_above_threshold = 0.0

    def dipole_length(self, mu, nu, min_distance, reaction_radius=0.0):
        """Get the separation of a newly nucleated dipole.

        This is the equilibrium length $L = μb / [2π(1 - ν) τ_{crit}]$ of a dipole under
        the critical shear stress, but never less than `min_distance`. It is also kept
        just beyond `reaction_radius`, so that the new dislocations do not annihilate
        each other immediately.

        """
        length = min_distance
        if self.tau_crit > 0:
            length = max(
                mu * self.bmag / (2 * np.pi * (1 - nu) * self.tau_crit), min_distance
            )
        return max(length, reaction_radius * (1 + _DIPOLE_MARGIN))

    def dipole_positions(self, direction, mu, nu, min_distance, reaction_radius=0.0):
        """Get the positions along and against `direction` of a new dipole."""
        length = self.dipole_length(mu, nu, min_distance, reaction_radius)
        offset = 0.5 * length * _tensors.unit(direction)
        return self.position + offset, self.position - offset

    def create_dipole(
        self,
        direction,
        mu,
        nu,
        min_distance,
        history_length=None,
        reaction_radius=0.0,
    ):
        """Create the two dislocations of a new dipole, centered on the source.

        Returns a tuple of the dislocation placed along `direction` and the one placed
        against it. The dislocation that is pushed along `direction` by the current
        stress on the source is placed on the positive side.

        """
        _direction = _tensors.unit(direction)
        ahead, behind = self.dipole_positions(
            _direction, mu, nu, min_distance, reaction_radius
        )
        positive = Dislocation(
            self.burgers, self.line, ahead, self.bmag, history_length=history_length
        )
        negative = Dislocation(
            -self.burgers, self.line, behind, self.bmag, history_length=history_length
        )
        force = positive.force_peach_koehler(self.total_stress, 0.0)
        if np.dot(force, _direction) < 0:
            positive.position, negative.position = negative.position, positive.position
            positive, negative = negative, positive
        return positive, negative
