"""> pydd2d: Grains, i.e. crystals with a single orientation and several slip planes.

A grain owns a local coordinate system, which is a child of the polycrystal's base
coordinate system. Its origin is the centroid of the grain boundary polygon and its
axes are the crystal axes given by the grain orientation (Bunge Euler angles, in
degrees). Slip planes and their defects are defined in the grain coordinate system.

"""

import numpy as np

from pydd2d import core as _core
from pydd2d import geometry as _geo
from pydd2d import logger as _log
from pydd2d import tensors as _tensors


class Grain:
    """Crystal grain with a list of slip planes.

    Attributes:
    - `coordinate_system` (`pydd2d.geometry.CoordinateSystem`): local frame of the
      grain, with the frame of `parent` as its parent frame
    - `orientation` (array): Bunge Euler angles of the crystal axes, in degrees
    - `boundary` (`pydd2d.geometry.ConvexPolygon` or None): grain boundary polygon
    - `applied_stress` (array): applied stress tensor in the grain frame

    >>> import numpy as np
    >>> grain = Grain(orientation=[90, 0, 0])
    >>> grain.calculate_applied_stress([0, 0, 0, 0, 0, 1e6])
    >>> np.allclose(grain.applied_stress[0, 1], -1e6)
    True

    """

    def __init__(self, parent=None, orientation=None, boundary=None):
        self.coordinate_system = _geo.CoordinateSystem(parent=parent)
        self.boundary = None
        self.applied_stress = np.zeros((3, 3))
        self._slip_planes = []
        self.set_orientation(np.zeros(3) if orientation is None else orientation)
        if boundary is not None:
            self.set_boundary(boundary)

    def __repr__(self):
        return (
            f"{self.__class__.__qualname__}(orientation={self.orientation.tolist()},"
            + f" n_slip_planes={len(self._slip_planes)},"
            + f" has_boundary={self.boundary is not None})"
        )

    @property
    def slip_planes(self):
        return tuple(self._slip_planes)

    @property
    def dislocations(self):
        """All dislocations of the grain, in slip plane order then line order."""
        return tuple(d for s in self._slip_planes for d in s.dislocations)

    @property
    def sources(self):
        return tuple(src for s in self._slip_planes for src in s.sources)

    def insert_slip_plane(self, slip_plane):
        self._slip_planes.append(slip_plane)

    def set_orientation(self, orientation):
        """Set the crystal orientation from Bunge Euler angles (degrees)."""
        self.orientation = _tensors.as_vector(orientation)
        self.coordinate_system.axes = _geo.orientation_matrix(self.orientation)

    def set_boundary(self, vertices):
        """Set the grain boundary polygon, given in the parent frame.

        The origin of the grain coordinate system is moved to the polygon centroid.

        """
        self.boundary = _geo.ConvexPolygon(vertices)
        self.coordinate_system.origin = self.boundary.centroid
        _log.debug(
            "set grain boundary with %d vertices, centroid %s",
            len(self.boundary),
            self.boundary.centroid,
        )

    def contains(self, point):
        """Check whether a point given in the parent frame is inside the grain."""
        if self.boundary is None:
            raise ValueError("cannot locate points in a grain without a boundary")
        return self.boundary.contains(point)

    def calculate_applied_stress(self, stress):
        """Set the applied stress from a tensor (or 6 components) in the base frame."""
        self.applied_stress = self.coordinate_system.stress_from_base(stress)

    def total_stress_at(self, point, mu, nu, excluding=None):
        """Get the stress at a point in the grain frame from all defects in the grain.

        The applied stress is included, and the stress field of the `excluding` defect
        is skipped.

        """
        stress = self.applied_stress.copy()
        for slip_plane in self._slip_planes:
            stress += slip_plane.total_stress_at(point, mu, nu, excluding=excluding)
        return stress

    def calculate_dislocation_velocities(self, drag_coefficient, tau_crss, iteration=None):
        for slip_plane in self._slip_planes:
            slip_plane.calculate_dislocation_velocities(
                drag_coefficient, tau_crss, iteration
            )

    def ideal_time_increment(self, min_distance):
        """Get the minimum ideal time increment over all slip planes."""
        return min(
            (s.ideal_time_increment(min_distance) for s in self._slip_planes),
            default=_core.TIME_INCREMENT_UNBOUNDED,
        )

    def move_dislocations(self, dt, min_distance=0.0):
        for slip_plane in self._slip_planes:
            slip_plane.move_dislocations(dt, min_distance)

    def check_sources(
        self, dt, mu, nu, min_distance, history_length=None, reaction_radius=0.0
    ):
        """Check all dislocation sources, returns the number of new dislocations."""
        return sum(
            s.check_sources(dt, mu, nu, min_distance, history_length, reaction_radius)
            for s in self._slip_planes
        )

    def check_local_reactions(self, reaction_radius):
        """Check all slip planes for annihilations, returns the number of removals."""
        return sum(s.check_local_reactions(reaction_radius) for s in self._slip_planes)
