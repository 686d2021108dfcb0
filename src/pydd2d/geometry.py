"""> pydd2d: Coordinate systems and grain boundary polygon geometry."""

import numpy as np
from scipy.spatial import Delaunay
from scipy.spatial.transform import Rotation

from pydd2d import tensors as _tensors


class CoordinateSystem:
    """Cartesian coordinate system defined relative to an (optional) parent system.

    The `origin` is given in the coordinates of the parent system and the `axes` are
    stored as the rows of a rotation matrix, also expressed in the parent system.
    A coordinate system without a parent is the base (root) system of the simulation.

    Points, directions and stress tensors can be converted to and from the base system,
    passing through every parent in the chain.

    >>> import numpy as np
    >>> parent = CoordinateSystem(origin=[1, 0, 0])
    >>> child = CoordinateSystem(axes=orientation_matrix([90, 0, 0]), parent=parent)
    >>> np.allclose(child.point_to_base([1, 0, 0]), [1, 1, 0])
    True
    >>> np.allclose(child.point_from_base([1, 1, 0]), [1, 0, 0])
    True

    """

    def __init__(self, origin=None, axes=None, parent=None):
        self.origin = np.zeros(3) if origin is None else _tensors.as_vector(origin)
        self.axes = np.eye(3) if axes is None else axes
        self.parent = parent

    def __repr__(self):
        return (
            f"{self.__class__.__qualname__}(origin={self.origin.tolist()},"
            + f" axes={self.axes.tolist()}, has_parent={self.parent is not None})"
        )

    @property
    def axes(self):
        return self._axes

    @axes.setter
    def axes(self, value):
        _axes = np.array(value, dtype=np.float64)
        if not _tensors.is_rotation(_axes):
            raise ValueError(f"coordinate axes must form a rotation matrix, not {value}")
        self._axes = _axes

    @property
    def base_rotation(self):
        """Rotation matrix that rotates directly from the base system into this one."""
        if self.parent is None:
            return self.axes.copy()
        return _tensors.compose(self.axes, self.parent.base_rotation)

    def point_to_base(self, point):
        """Convert a point from this system to the base system."""
        in_parent = self.origin + _tensors.unrotate_vector(
            _tensors.as_vector(point), self.axes
        )
        if self.parent is None:
            return in_parent
        return self.parent.point_to_base(in_parent)

    def point_from_base(self, point):
        """Convert a point from the base system to this system."""
        _point = _tensors.as_vector(point)
        in_parent = _point if self.parent is None else self.parent.point_from_base(_point)
        return _tensors.rotate_vector(in_parent - self.origin, self.axes)

    def vector_to_base(self, vector):
        """Convert a direction (free vector) from this system to the base system."""
        return _tensors.unrotate_vector(_tensors.as_vector(vector), self.base_rotation)

    def vector_from_base(self, vector):
        """Convert a direction (free vector) from the base system to this system."""
        return _tensors.rotate_vector(_tensors.as_vector(vector), self.base_rotation)

    def stress_to_base(self, stress):
        """Convert a stress tensor from this system to the base system."""
        return _tensors.unrotate_tensor(_tensors.as_stress(stress), self.base_rotation)

    def stress_from_base(self, stress):
        """Convert a stress tensor from the base system to this system."""
        return _tensors.rotate_tensor(_tensors.as_stress(stress), self.base_rotation)


def orientation_matrix(euler_angles):
    """Get the axes of a crystal frame from Bunge Euler angles in degrees.

    The returned matrix stores the crystal axes as rows, expressed in the sample frame,
    which is the inverse of the active rotation described by the angles.

    >>> import numpy as np
    >>> np.allclose(orientation_matrix([0, 0, 0]), np.eye(3))
    True
    >>> np.allclose(orientation_matrix([90, 0, 0]) @ [0, 1, 0], [1, 0, 0])
    True

    """
    angles = _tensors.as_vector(euler_angles)
    return Rotation.from_euler("ZXZ", angles, degrees=True).inv().as_matrix()


def polygon_centroid(vertices):
    """Get the area centroid of a simple polygon given by its (x, y[, z]) vertices.

    The z-coordinate of the returned point is always zero.
    For degenerate (zero area) polygons, the mean of the vertices is returned.

    >>> polygon_centroid([[0, 0], [2, 0], [2, 2], [0, 2]]).tolist()
    [1.0, 1.0, 0.0]

    """
    xy = np.asarray(vertices, dtype=np.float64)[:, :2]
    x, y = xy[:, 0], xy[:, 1]
    x_next, y_next = np.roll(x, -1), np.roll(y, -1)
    cross = x * y_next - x_next * y
    area = cross.sum() / 2
    if np.isclose(area, 0.0, rtol=0, atol=1e-300):
        return np.array([x.mean(), y.mean(), 0.0])
    cx = ((x + x_next) * cross).sum() / (6 * area)
    cy = ((y + y_next) * cross).sum() / (6 * area)
    return np.array([cx, cy, 0.0])


class ConvexPolygon:
    """Grain boundary polygon with point containment queries.

    Cells of a Voronoi tessellation are convex, so containment is tested with a Delaunay
    triangulation of the vertices. Only the (x, y) coordinates are used.

    >>> square = ConvexPolygon([[0, 0], [1, 0], [1, 1], [0, 1]])
    >>> square.contains([0.5, 0.5, 0.0])
    True
    >>> square.contains([1.5, 0.5, 0.0])
    False

    """

    def __init__(self, vertices):
        _vertices = np.asarray(vertices, dtype=np.float64)
        if _vertices.ndim != 2 or _vertices.shape[0] < 3 or _vertices.shape[1] < 2:
            raise ValueError(
                f"a polygon needs at least 3 vertices with (x, y) coordinates,"
                + f" not an array with shape {_vertices.shape}"
            )
        self.vertices = _vertices[:, :2]
        self.centroid = polygon_centroid(self.vertices)
        self._triangulation = Delaunay(self.vertices)

    def __len__(self):
        return len(self.vertices)

    def contains(self, point):
        """Check whether the (x, y) coordinates of `point` lie inside the polygon."""
        _point = np.asarray(point, dtype=np.float64).ravel()[:2]
        return bool(self._triangulation.find_simplex(_point) >= 0)
