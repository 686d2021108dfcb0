"""> pydd2d: Vector, rotation and stress tensor operations.

Vectors are NumPy arrays with shape (3,) and second order tensors are symmetric NumPy
arrays with shape (3, 3). A rotation matrix `R` stores the axes of a local frame as its
rows, so that vectors and tensors are rotated into the local frame with
$v' = R v$ and $σ' = R σ Rᵀ$ and back with $v = Rᵀ v'$ and $σ = Rᵀ σ' R$.

For the 6-component representation of symmetric tensors the Voigt order
(xx, yy, zz, yz, xz, xy) is used, i.e. the three principal components first and the
three shear components last.

"""

import numba as nb
import numpy as np

_ORTHONORMAL_TOLERANCE = 1e-8


def as_vector(vector):
    """Return a float64 copy of a 3-component vector.

    Raises a `ValueError` if the input does not have exactly three components.

    >>> as_vector([1, 0, 0]).tolist()
    [1.0, 0.0, 0.0]

    """
    out = np.array(vector, dtype=np.float64).ravel()
    if out.shape != (3,):
        raise ValueError(f"expected a vector with 3 components, not {np.shape(vector)}")
    return out


def unit(vector):
    """Return the unit vector parallel to `vector`.

    Raises a `ValueError` for a zero-length vector.

    >>> unit([3, 0, 4]).tolist()
    [0.6, 0.0, 0.8]

    """
    _vector = as_vector(vector)
    magnitude = np.linalg.norm(_vector)
    if magnitude == 0:
        raise ValueError("cannot normalise a vector of zero length")
    return _vector / magnitude


def as_stress(stress):
    """Return a symmetric float64 (3, 3) array from either 6 components or a matrix.

    Raises a `ValueError` if a matrix is given that is not symmetric.

    """
    _stress = np.array(stress, dtype=np.float64)
    if _stress.shape == (6,):
        return stress_from_components(_stress)
    if _stress.shape != (3, 3):
        raise ValueError(
            "stress must be given as 6 components or a 3x3 matrix,"
            + f" not an array with shape {_stress.shape}"
        )
    if not np.allclose(_stress, _stress.transpose(), rtol=1e-12, atol=0):
        raise ValueError(f"stress tensor must be symmetric, not {_stress}")
    return (_stress + _stress.transpose()) / 2


def stress_from_components(components):
    """Create a symmetric tensor from its 6 independent components.

    The components must be given in the Voigt order (xx, yy, zz, yz, xz, xy).

    >>> stress_from_components([1, 2, 3, 4, 5, 6]).tolist()
    [[1.0, 6.0, 5.0], [6.0, 2.0, 4.0], [5.0, 4.0, 3.0]]

    """
    xx, yy, zz, yz, xz, xy = np.asarray(components, dtype=np.float64)
    return np.array([[xx, xy, xz], [xy, yy, yz], [xz, yz, zz]])


def stress_components(stress):
    """Get the 6 independent components of a symmetric tensor in Voigt order.

    >>> stress_components(stress_from_components([1, 2, 3, 4, 5, 6])).tolist()
    [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]

    """
    _stress = np.asarray(stress, dtype=np.float64)
    return np.array(
        [
            _stress[0, 0],
            _stress[1, 1],
            _stress[2, 2],
            _stress[1, 2],
            _stress[0, 2],
            _stress[0, 1],
        ]
    )


def is_rotation(matrix, tol=_ORTHONORMAL_TOLERANCE):
    """Check that `matrix` is a proper rotation (orthonormal, determinant +1)."""
    _matrix = np.asarray(matrix, dtype=np.float64)
    if _matrix.shape != (3, 3):
        return False
    return bool(
        np.allclose(_matrix @ _matrix.transpose(), np.eye(3), rtol=0, atol=tol)
        and np.isclose(np.linalg.det(_matrix), 1.0, rtol=0, atol=tol)
    )


def rotation_from_axes(line, burgers):
    """Get the rotation matrix of a dislocation's local frame.

    The local z-axis is the line direction, the local x-axis is the Burgers vector
    direction after removing its component along the line (i.e. the direction of the
    edge component) and the local y-axis completes the right-handed frame (y = z × x).
    Raises a `ValueError` if the Burgers vector is parallel to the line (pure screw).

    >>> rotation_from_axes([0, 0, 1], [1, 0, 0]).tolist()
    [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
    >>> rotation_from_axes([0, 0, 1], [1, 0, 1]).tolist()
    [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]

    """
    z_axis = unit(line)
    direction = unit(burgers)
    edge = direction - np.dot(direction, z_axis) * z_axis
    if np.linalg.norm(edge) < 1e-6:
        raise ValueError(
            "the Burgers vector must not be parallel to the line vector (screw"
            + f" dislocation), but b = {burgers} and t = {line}"
        )
    x_axis = unit(edge)
    y_axis = np.cross(z_axis, x_axis)
    return np.vstack((x_axis, y_axis, z_axis))


def edge_fraction(line, burgers):
    """Get the length of the edge component of the unit Burgers vector.

    This is the sine of the angle between the line and Burgers vectors, so 1 for a
    pure edge dislocation and 0 for a pure screw dislocation.

    >>> edge_fraction([0, 0, 1], [3, 0, 0])
    1.0
    >>> round(edge_fraction([0, 0, 1], [1, 0, 1]) ** 2, 12)
    0.5

    """
    z_axis = unit(line)
    direction = unit(burgers)
    return float(np.linalg.norm(direction - np.dot(direction, z_axis) * z_axis))


@nb.njit(fastmath=True)
def rotate_vector(vector, rotation):
    """Rotate a vector into the local frame described by `rotation` ($v' = R v$)."""
    out = np.zeros(3)
    for i in range(3):
        for k in range(3):
            out[i] += rotation[i, k] * vector[k]
    return out


@nb.njit(fastmath=True)
def unrotate_vector(vector, rotation):
    """Rotate a vector out of the local frame described by `rotation` ($v = Rᵀ v'$)."""
    out = np.zeros(3)
    for i in range(3):
        for k in range(3):
            out[i] += rotation[k, i] * vector[k]
    return out


@nb.njit(fastmath=True)
def rotate_tensor(tensor, rotation):
    """Rotate a symmetric tensor into the local frame ($σ' = R σ Rᵀ$).

    The result is explicitly symmetrised to remove round-off asymmetry.

    """
    out = np.zeros((3, 3))
    for i in range(3):
        for j in range(3):
            for k in range(3):
                for L in range(3):
                    out[i, j] += rotation[i, k] * tensor[k, L] * rotation[j, L]
    return 0.5 * (out + out.transpose())


@nb.njit(fastmath=True)
def unrotate_tensor(tensor, rotation):
    """Rotate a symmetric tensor out of the local frame ($σ = Rᵀ σ' R$).

    The result is explicitly symmetrised to remove round-off asymmetry.

    """
    out = np.zeros((3, 3))
    for i in range(3):
        for j in range(3):
            for k in range(3):
                for L in range(3):
                    out[i, j] += rotation[k, i] * tensor[k, L] * rotation[L, j]
    return 0.5 * (out + out.transpose())


@nb.njit(fastmath=True)
def compose(inner, outer):
    """Compose two rotations: the frame of `inner` given relative to that of `outer`.

    Returns the matrix that rotates directly from the frame in which `outer` is
    expressed into the frame of `inner`, i.e. `inner @ outer`.

    """
    out = np.zeros((3, 3))
    for i in range(3):
        for j in range(3):
            for k in range(3):
                out[i, j] += inner[i, k] * outer[k, j]
    return out
