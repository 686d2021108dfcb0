"""> pydd2d: Tests for vector, rotation and stress tensor operations."""

import numpy as np
import pytest
from numpy import testing as nt
from scipy.spatial.transform import Rotation

from pydd2d import tensors as _tensors


def test_stress_components():
    """Test symmetric tensor <-> 6 component (Voigt order) conversions."""
    stress = np.array([[1.0, 6.0, 5.0], [6.0, 2.0, 4.0], [5.0, 4.0, 3.0]])
    nt.assert_array_equal(_tensors.stress_components(stress), [1, 2, 3, 4, 5, 6])
    nt.assert_array_equal(_tensors.stress_from_components([1, 2, 3, 4, 5, 6]), stress)
    nt.assert_array_equal(_tensors.as_stress([1, 2, 3, 4, 5, 6]), stress)
    nt.assert_array_equal(_tensors.as_stress(stress), stress)


def test_as_stress_invalid():
    """Test that malformed stress tensors are rejected."""
    with pytest.raises(ValueError):
        _tensors.as_stress([1, 2, 3])
    with pytest.raises(ValueError):
        _tensors.as_stress([[1, 2, 0], [0, 1, 0], [0, 0, 1]])


def test_unit():
    """Test vector normalisation."""
    nt.assert_allclose(_tensors.unit([0, 0, 2]), [0, 0, 1])
    with pytest.raises(ValueError):
        _tensors.unit([0, 0, 0])
    with pytest.raises(ValueError):
        _tensors.as_vector([1, 2])


def test_is_rotation():
    """Test detection of proper rotation matrices."""
    assert _tensors.is_rotation(np.eye(3))
    assert not _tensors.is_rotation(np.diag([1, 1, -1]))  # Reflection.
    assert not _tensors.is_rotation(2 * np.eye(3))
    assert not _tensors.is_rotation(np.eye(2))


def test_rotation_from_axes():
    """Test local frames of edge dislocations."""
    rotation = _tensors.rotation_from_axes([0, 0, 1], [0, 2, 0])
    assert _tensors.is_rotation(rotation)
    nt.assert_allclose(rotation[0], [0, 1, 0])
    nt.assert_allclose(rotation[1], [-1, 0, 0])
    nt.assert_allclose(rotation[2], [0, 0, 1])
    # Local frame maps Burgers vector direction to x and line direction to z.
    nt.assert_allclose(_tensors.rotate_vector(np.array([0.0, 1.0, 0.0]), rotation), [1, 0, 0])


def test_rotation_from_axes_mixed():
    """Test local frames of mixed dislocations, which use the edge component."""
    line = [0.5, 0, np.sqrt(3) / 2]  # 60° from the Burgers vector.
    rotation = _tensors.rotation_from_axes(line, [1, 0, 0])
    assert _tensors.is_rotation(rotation)
    nt.assert_allclose(rotation[2], line)
    nt.assert_allclose(rotation[0], [np.sqrt(3) / 2, 0, -0.5], atol=1e-15)
    nt.assert_allclose(rotation[1], [0, 1, 0], atol=1e-15)
    assert _tensors.edge_fraction(line, [1, 0, 0]) == pytest.approx(np.sqrt(3) / 2)


def test_rotation_from_axes_invalid():
    """Test that Burgers vectors must not be parallel to the line vector."""
    with pytest.raises(ValueError):
        _tensors.rotation_from_axes([0, 0, 1], [0, 0, 1])
    with pytest.raises(ValueError):
        _tensors.rotation_from_axes([0, 0, 1], [0, 0, -2])
    with pytest.raises(ValueError):
        _tensors.rotation_from_axes([0, 0, 0], [1, 0, 0])


def test_rotate_roundtrip(seed):
    """Test that rotating vectors and tensors to a local frame and back is lossless."""
    rng = np.random.default_rng(seed)
    rotations = Rotation.random(50, seed).as_matrix()
    for rotation in rotations:
        vector = rng.normal(size=3)
        nt.assert_allclose(
            _tensors.unrotate_vector(_tensors.rotate_vector(vector, rotation), rotation),
            vector,
            atol=1e-12,
        )
        stress = _tensors.stress_from_components(rng.normal(size=6))
        rotated = _tensors.rotate_tensor(stress, rotation)
        nt.assert_allclose(rotated, rotated.transpose(), rtol=0, atol=1e-15)
        nt.assert_allclose(
            _tensors.unrotate_tensor(rotated, rotation), stress, atol=1e-12
        )
        nt.assert_allclose(rotated, rotation @ stress @ rotation.transpose(), atol=1e-12)


def test_compose(seed):
    """Test composition of rotations."""
    inner, outer = Rotation.random(2, seed).as_matrix()
    composed = _tensors.compose(inner, outer)
    nt.assert_allclose(composed, inner @ outer, atol=1e-14)
    assert _tensors.is_rotation(composed)
