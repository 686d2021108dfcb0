"""> pydd2d: Polycrystals and the synchronous simulation step.

A `Polycrystal` owns a list of `pydd2d.grain.Grain` objects, each with its own
coordinate system defined relative to the base coordinate system of the polycrystal.
The applied stress is given in the base frame and projected into each grain frame.

One call to `Polycrystal.step` performs the following operations:
1. project the applied stress into the grain frames
2. evaluate the total stress at every defect, from all dislocations in all grains,
   using a frozen `FieldSnapshot` of the dislocation state
3. calculate Peach-Koehler forces and glide velocities of all dislocations
4. choose a single time increment for all grains
5. move all mobile dislocations
6. nucleate dislocation dipoles at sources that are ready
7. annihilate pairs of opposite dislocations that are close enough
8. write the defect positions to the snapshot writer, if one is attached

The iteration counter of the polycrystal is shared by all defects, and is used to
index their stress, force and velocity histories.

"""

from dataclasses import dataclass

import numpy as np

from pydd2d import core as _core
from pydd2d import exceptions as _err
from pydd2d import geometry as _geo
from pydd2d import grain as _grain
from pydd2d import logger as _log
from pydd2d import tensors as _tensors
from pydd2d import utils as _utils


@dataclass(frozen=True)
class StepResult:
    """Summary of a single simulation step."""

    iteration: int
    """Iteration number of the step (histories are recorded at this index)."""
    time: float
    """Simulation time at the end of the step."""
    dt: float
    """Time increment of the step."""
    n_dislocations: int
    """Number of dislocations at the end of the step."""
    n_nucleated: int
    """Number of dislocations nucleated during the step."""
    n_annihilated: int
    """Number of dislocations annihilated during the step."""


@dataclass
class FieldSnapshot:
    """Frozen copy of the dislocation state, used to evaluate stresses in parallel.

    All arrays are expressed in the base frame. Query points are listed for every
    dislocation (in grain order) followed by every dislocation source.

    """

    positions: np.ndarray
    """Dislocation positions, shape (N, 3)."""
    rotations: np.ndarray
    """Rotation matrices from the base frame into the dislocation frames, shape (N, 3, 3)."""
    bmags: np.ndarray
    """Burgers vector magnitudes, shape (N,)."""
    points: np.ndarray
    """Query points, shape (M, 3)."""
    exclude: np.ndarray
    """Index of the dislocation to skip for each query point, shape (M,)."""
    targets: tuple
    """Pairs of (grain index, defect) for each query point."""

    @classmethod
    def from_polycrystal(cls, polycrystal):
        positions, rotations, bmags, points, exclude, targets = [], [], [], [], [], []
        sources = []
        for g, grain in enumerate(polycrystal.grains):
            system = grain.coordinate_system
            base_rotation = system.base_rotation
            for dislocation in grain.dislocations:
                position = system.point_to_base(dislocation.position)
                exclude.append(len(positions))
                positions.append(position)
                rotations.append(_tensors.compose(dislocation.rotation, base_rotation))
                bmags.append(dislocation.edge_bmag)
                points.append(position)
                targets.append((g, dislocation))
            for source in grain.sources:
                sources.append((g, source, system.point_to_base(source.position)))
        for g, source, position in sources:
            exclude.append(-1)
            points.append(position)
            targets.append((g, source))
        return cls(
            positions=np.reshape(np.array(positions, dtype=np.float64), (-1, 3)),
            rotations=np.reshape(np.array(rotations, dtype=np.float64), (-1, 3, 3)),
            bmags=np.array(bmags, dtype=np.float64),
            points=np.reshape(np.array(points, dtype=np.float64), (-1, 3)),
            exclude=np.array(exclude, dtype=np.int64),
            targets=tuple(targets),
        )

    def evaluate(self, mu, nu, ncpus=1, pool=None):
        """Evaluate the dislocation stress fields at all query points (base frame).

        If `ncpus` is larger than 1 or a `pool` is given, the query points are split
        into chunks that are evaluated in a process pool.

        """
        if len(self.points) == 0:
            return np.empty((0, 3, 3))
        if pool is None and ncpus <= 1:
            return _core.superpose_stress(
                self.points,
                self.exclude,
                self.positions,
                self.rotations,
                self.bmags,
                mu,
                nu,
            )
        chunks = [
            (
                self.points[start:stop],
                self.exclude[start:stop],
                self.positions,
                self.rotations,
                self.bmags,
                mu,
                nu,
            )
            for start, stop in _utils.split_evenly(len(self.points), max(ncpus, 1))
        ]
        if pool is None:
            Pool, _ = _utils.import_proc_pool()
            with Pool(processes=ncpus) as _pool:
                results = _pool.map(_core.superpose_stress_chunk, chunks)
        else:
            results = pool.map(_core.superpose_stress_chunk, chunks)
        return np.concatenate(results)


class Polycrystal:
    """Collection of grains, with the global applied stress and simulation time.

    Attributes:
    - `coordinate_system` (`pydd2d.geometry.CoordinateSystem`): base frame
    - `applied_stress` (array): applied stress tensor in the base frame
    - `iteration` (int): shared iteration counter, incremented by `step`
    - `time` (float): simulation time
    - `snapshot_writer`: object with a `write(time, positions)` method that receives
      the defect positions after every step (see `pydd2d.io.DefectSnapshotWriter`)
    - `history_length` (int or None): maximum number of iterations recorded in the
      histories of nucleated dislocations

    >>> from pydd2d.defects import Dislocation
    >>> from pydd2d.slipplane import SlipPlane
    >>> polycrystal = Polycrystal(applied_stress=[0, 0, 0, 0, 0, 1e8])
    >>> polycrystal.initialize_grain_vector(1)
    >>> slip_plane = SlipPlane([[-1e-6, 0, 0], [1e-6, 0, 0]])
    >>> slip_plane.insert_dislocation(Dislocation([1, 0, 0], [0, 0, 1], [0, 0, 0], 2.5e-10))
    >>> polycrystal.grains[0].insert_slip_plane(slip_plane)
    >>> result = polycrystal.step(
    ...     {
    ...         "mu": 80e9,
    ...         "nu": 0.3,
    ...         "drag_coefficient": 1e-4,
    ...         "tau_crss": 0.0,
    ...         "min_distance": 1e-9,
    ...         "reaction_radius": 2e-9,
    ...         "max_time_increment": 1e-12,
    ...     }
    ... )
    >>> result.iteration, result.n_dislocations, result.dt
    (0, 1, 1e-12)
    >>> slip_plane.defect_positions()[0] > 1e-6
    True

    """

    def __init__(self, applied_stress=None, history_length=None):
        self.coordinate_system = _geo.CoordinateSystem()
        self.tessellation = None
        self.orientations = None
        self.applied_stress = np.zeros((3, 3))
        self.iteration = 0
        self.time = 0.0
        self.snapshot_writer = None
        self.history_length = history_length
        self._grains = []
        if applied_stress is not None:
            self.set_applied_stress(applied_stress)

    def __repr__(self):
        return (
            f"{self.__class__.__qualname__}(n_grains={len(self._grains)},"
            + f" iteration={self.iteration}, time={self.time})"
        )

    @property
    def grains(self):
        return tuple(self._grains)

    @property
    def dislocations(self):
        return tuple(d for g in self._grains for d in g.dislocations)

    def set_tessellation(self, polygons):
        """Set the grain boundary polygons (list of vertex arrays, base frame)."""
        self.tessellation = [np.asarray(p, dtype=np.float64) for p in polygons]

    def set_orientations(self, orientations):
        """Set the grain orientations (array of Bunge Euler angles, degrees)."""
        _orientations = np.asarray(orientations, dtype=np.float64)
        if _orientations.ndim != 2 or _orientations.shape[1] != 3:
            raise ValueError(
                "orientations must be an array with shape (n_grains, 3),"
                + f" not {_orientations.shape}"
            )
        self.orientations = _orientations

    def initialize_grain_vector(self, n_grains=None):
        """Create `n_grains` new grains, replacing any existing grains.

        If `n_grains` is not given, one grain is created for every polygon of the
        tessellation.

        """
        if n_grains is None:
            if self.tessellation is None:
                raise ValueError("number of grains required when there is no tessellation")
            n_grains = len(self.tessellation)
        self._grains = [
            _grain.Grain(parent=self.coordinate_system) for _ in range(n_grains)
        ]
        _log.debug("initialised %d grains", n_grains)

    def insert_grain(self, grain):
        grain.coordinate_system.parent = self.coordinate_system
        self._grains.append(grain)

    def _check_grain_count(self, values, name):
        if values is None:
            raise ValueError(f"{name} have not been set")
        if len(values) != len(self._grains):
            raise ValueError(
                f"number of {name} ({len(values)}) does not match"
                + f" the number of grains ({len(self._grains)})"
            )

    def set_grain_boundaries(self):
        """Assign the tessellation polygons to the grains, in order."""
        self._check_grain_count(self.tessellation, "tessellation polygons")
        for grain, polygon in zip(self._grains, self.tessellation):
            grain.set_boundary(polygon)

    def set_grain_orientations(self):
        """Assign the orientations to the grains, in order."""
        self._check_grain_count(self.orientations, "orientations")
        for grain, orientation in zip(self._grains, self.orientations):
            grain.set_orientation(orientation)

    def locate_grain(self, point):
        """Get the index of the grain that contains a point (base frame), or `None`."""
        for g, grain in enumerate(self._grains):
            if grain.boundary is not None and grain.contains(point):
                return g
        return None

    def set_applied_stress(self, stress):
        """Set the applied stress from a tensor (or 6 components) in the base frame."""
        self.applied_stress = _tensors.as_stress(stress)

    def calculate_grain_applied_stress(self):
        for grain in self._grains:
            grain.calculate_applied_stress(self.applied_stress)

    def total_stress(self, point, mu, nu):
        """Get the stress at a point (base frame) from all defects and the applied stress.

        The returned tensor is expressed in the base frame.

        """
        stress = self.applied_stress.copy()
        for grain in self._grains:
            system = grain.coordinate_system
            local_point = system.point_from_base(point)
            local_stress = np.zeros((3, 3))
            for slip_plane in grain.slip_planes:
                local_stress += slip_plane.total_stress_at(local_point, mu, nu)
            stress += system.stress_to_base(local_stress)
        return stress

    def calculate_all_stresses(self, mu, nu, ncpus=1, pool=None):
        """Record the total stress at every defect for the current iteration.

        Every stress is evaluated from the same frozen snapshot of the dislocations, so
        the result does not depend on the order of evaluation. The recorded stresses
        are expressed in the grain frames and include the grain applied stress.

        """
        snapshot = FieldSnapshot.from_polycrystal(self)
        stresses = snapshot.evaluate(mu, nu, ncpus=ncpus, pool=pool)
        for (g, defect), stress in zip(snapshot.targets, stresses):
            grain = self._grains[g]
            defect.set_total_stress(
                grain.coordinate_system.stress_from_base(stress) + grain.applied_stress,
                self.iteration,
            )

    def calculate_dislocation_velocities(self, drag_coefficient, tau_crss):
        for grain in self._grains:
            grain.calculate_dislocation_velocities(
                drag_coefficient, tau_crss, self.iteration
            )

    def ideal_time_increment(self, min_distance, max_time_increment=None):
        """Get the global time increment, the minimum over all grains.

        If `max_time_increment` is given, the result is capped at this value.

        """
        dt = min(
            (g.ideal_time_increment(min_distance) for g in self._grains),
            default=_core.TIME_INCREMENT_UNBOUNDED,
        )
        if max_time_increment is not None:
            dt = min(dt, max_time_increment)
        return dt

    def move_all_dislocations(self, dt, min_distance=0.0):
        for grain in self._grains:
            grain.move_dislocations(dt, min_distance)

    def check_dislocation_sources(self, dt, mu, nu, min_distance, reaction_radius=0.0):
        """Nucleate dipoles at ready sources, returns the number of new dislocations."""
        return sum(
            g.check_sources(
                dt, mu, nu, min_distance, self.history_length, reaction_radius
            )
            for g in self._grains
        )

    def check_polycrystal_local_reactions(self, reaction_radius):
        """Annihilate close opposite dislocations, returns the number of removals.

        Reactions are only checked within each slip plane.

        """
        return sum(g.check_local_reactions(reaction_radius) for g in self._grains)

    def defect_positions(self):
        """Get line coordinates of all dislocations (grain, slip plane, line order)."""
        return np.array(
            [
                coordinate
                for grain in self._grains
                for slip_plane in grain.slip_planes
                for coordinate in slip_plane.defect_positions()
            ]
        )

    def step(self, params, ncpus=1, pool=None):
        """Perform one synchronous simulation step.

        The `params` dictionary must contain the keys of `pydd2d.core.DefaultParams`
        except for `n_iterations` and `applied_stress`, which are not used here.
        Returns a `StepResult`.

        """
        mu, nu = params["mu"], params["nu"]
        min_distance = params["min_distance"]
        iteration = self.iteration

        self.calculate_grain_applied_stress()
        self.calculate_all_stresses(mu, nu, ncpus=ncpus, pool=pool)
        self.calculate_dislocation_velocities(
            params["drag_coefficient"], params["tau_crss"]
        )
        dt = self.ideal_time_increment(min_distance, params["max_time_increment"])
        if not np.isfinite(dt):
            raise _err.IterationError(
                f"unbounded time increment at iteration {iteration},"
                + " set a finite maximum time increment"
            )
        self.move_all_dislocations(dt, min_distance)
        n_nucleated = self.check_dislocation_sources(
            dt, mu, nu, min_distance, params["reaction_radius"]
        )
        n_annihilated = self.check_polycrystal_local_reactions(params["reaction_radius"])
        self.time += dt

        if self.snapshot_writer is not None:
            self.snapshot_writer.write(self.time, self.defect_positions())

        self.iteration += 1
        result = StepResult(
            iteration=iteration,
            time=self.time,
            dt=float(dt),
            n_dislocations=len(self.dislocations),
            n_nucleated=n_nucleated,
            n_annihilated=n_annihilated,
        )
        _log.debug("completed step %s", result)
        return result
