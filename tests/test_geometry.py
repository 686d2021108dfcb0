"""> pydd2d: Tests for coordinate systems and grain boundary polygons."""

import numpy as np
import pytest
from numpy import testing as nt
from scipy.spatial.transform import Rotation

from pydd2d import geometry as _geo
from pydd2d import tensors as _tensors


class TestCoordinateSystem:
    """Tests for conversions between nested coordinate systems."""

    def test_base_identity(self):
        system = _geo.CoordinateSystem()
        point = np.array([1.0, -2.0, 3.0])
        nt.assert_array_equal(system.point_to_base(point), point)
        nt.assert_array_equal(system.point_from_base(point), point)
        nt.assert_array_equal(system.base_rotation, np.eye(3))

    def test_invalid_axes(self):
        with pytest.raises(ValueError):
            _geo.CoordinateSystem(axes=np.diag([1.0, 1.0, -1.0]))
        system = _geo.CoordinateSystem()
        with pytest.raises(ValueError):
            system.axes = 2 * np.eye(3)

    def test_nested_roundtrip(self, seed, rng):
        """Test that conversions through a chain of frames are invertible."""
        r1, r2 = Rotation.random(2, seed).as_matrix()
        outer = _geo.CoordinateSystem(origin=[1e-6, 2e-6, 0], axes=r1)
        inner = _geo.CoordinateSystem(origin=[-3e-7, 5e-7, 0], axes=r2, parent=outer)
        nt.assert_allclose(inner.base_rotation, r2 @ r1, atol=1e-14)
        for _ in range(10):
            point = rng.normal(scale=1e-6, size=3)
            nt.assert_allclose(
                inner.point_from_base(inner.point_to_base(point)), point, atol=1e-18
            )
            vector = rng.normal(size=3)
            nt.assert_allclose(
                inner.vector_from_base(inner.vector_to_base(vector)),
                vector,
                atol=1e-12,
            )
            stress = _tensors.stress_from_components(rng.normal(scale=1e8, size=6))
            nt.assert_allclose(
                inner.stress_from_base(inner.stress_to_base(stress)), stress, atol=1e-4
            )

    def test_translation_only(self):
        parent = _geo.CoordinateSystem(origin=[1.0, 2.0, 0.0])
        child = _geo.CoordinateSystem(origin=[1.0, 0.0, 0.0], parent=parent)
        nt.assert_allclose(child.point_to_base([0, 0, 0]), [2, 2, 0])
        # Free vectors are not affected by the origins.
        nt.assert_allclose(child.vector_to_base([0, 1, 0]), [0, 1, 0])

    def test_stress_invariants(self, seed):
        """Test that the trace of a stress tensor is unchanged by frame changes."""
        system = _geo.CoordinateSystem(
            axes=Rotation.random(None, seed).as_matrix()
        )
        stress = _tensors.stress_from_components([1e6, -2e6, 3e5, 0, 4e5, 5e7])
        in_local = system.stress_from_base(stress)
        nt.assert_allclose(np.trace(in_local), np.trace(stress), atol=1e-6)
        nt.assert_allclose(
            np.linalg.eigvalsh(in_local), np.linalg.eigvalsh(stress), atol=1e-6
        )


def test_orientation_matrix():
    """Test crystal axes from Bunge Euler angles."""
    nt.assert_allclose(_geo.orientation_matrix([0, 0, 0]), np.eye(3), atol=1e-15)
    axes = _geo.orientation_matrix([30, 0, 0])
    assert _tensors.is_rotation(axes)
    # The first crystal axis is the sample x-axis rotated by 30° about z.
    angle = np.deg2rad(30)
    nt.assert_allclose(axes[0], [np.cos(angle), np.sin(angle), 0], atol=1e-15)
    # Rotations about z keep the crystal z-axis in the plane normal.
    nt.assert_allclose(axes[2], [0, 0, 1], atol=1e-15)


def test_polygon_centroid():
    """Test area centroid of simple polygons."""
    # Counter-clockwise and clockwise orientations give the same result.
    triangle = np.array([[0.0, 0.0], [3.0, 0.0], [0.0, 3.0]])
    nt.assert_allclose(_geo.polygon_centroid(triangle), [1, 1, 0])
    nt.assert_allclose(_geo.polygon_centroid(triangle[::-1]), [1, 1, 0])
    # Non-uniform vertex distribution, the vertex mean would be wrong.
    pentagon = [[0, 0], [1, 0], [2, 0], [2, 2], [0, 2]]
    nt.assert_allclose(_geo.polygon_centroid(pentagon), [1, 1, 0])
    # Degenerate polygon.
    nt.assert_allclose(_geo.polygon_centroid([[0, 0], [1, 0], [2, 0]]), [1, 0, 0])


def test_convex_polygon():
    """Test point containment in convex grain boundary polygons."""
    polygon = _geo.ConvexPolygon(
        [[-2e-6, -1e-6, 0], [0, -1e-6, 0], [0, 1e-6, 0], [-2e-6, 1e-6, 0]]
    )
    assert len(polygon) == 4
    nt.assert_allclose(polygon.centroid, [-1e-6, 0, 0], atol=1e-20)
    assert polygon.contains([-1e-6, 0, 0])
    assert polygon.contains([-1.9e-6, 0.9e-6, 5.0])  # The z-coordinate is ignored.
    assert not polygon.contains([1e-6, 0, 0])
    assert not polygon.contains([-1e-6, 1.1e-6, 0])
    with pytest.raises(ValueError):
        _geo.ConvexPolygon([[0, 0], [1, 1]])
