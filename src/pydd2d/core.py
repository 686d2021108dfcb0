r"""> pydd2d: Core dislocation dynamics kernels and default parameters.

The kernels in this module implement the elastic interaction of straight edge
dislocations in an isotropic medium under plane strain conditions.
All kernels operate on plain NumPy arrays and are compiled with `numba`.

The stress field of an edge dislocation with Burgers vector magnitude $b$ along the
local x-axis and line direction along the local z-axis is
(see e.g. [Hirth & Lothe, 1982, Theory of Dislocations, eq. 3-43]):

$$
\begin{align*}
σ_{xx} &= -D \frac{y (3x² + y²)}{(x² + y²)²} \\\\
σ_{yy} &= D \frac{y (x² - y²)}{(x² + y²)²} \\\\
σ_{xy} &= D \frac{x (x² - y²)}{(x² + y²)²} \\\\
σ_{zz} &= ν (σ_{xx} + σ_{yy})
\end{align*}
$$

where $D = μb / [2π(1 - ν)]$, $μ$ is the shear modulus and $ν$ the Poisson ratio.
Mixed dislocations enter these kernels with the magnitude of their edge component,
see `pydd2d.defects.Dislocation.edge_bmag`.

**Acronyms:**
- CRSS = Critical Resolved Shear Stress,
    i.e. threshold shear stress required to move a dislocation on its slip plane

"""

from dataclasses import asdict, dataclass
from enum import IntEnum, unique

import numba as nb
import numpy as np

from pydd2d import tensors as _tensors

CORE_RADIUS_FACTOR = 1.0
"""Radius of the dislocation core, in multiples of the Burgers vector magnitude.

The stress field of a dislocation is zero inside its core.

"""

TIME_INCREMENT_UNBOUNDED = np.inf
"""Time increment returned for pairs of defects that never approach each other."""


@unique
class DefectKind(IntEnum):
    """Variants of crystal defects that can be placed on a slip plane."""

    dislocation = 0
    """Mobile or pinned straight edge dislocation."""
    source = 1
    """Frank-Read type source that nucleates dislocation dipoles."""


@dataclass(frozen=True)
class DefaultParams:
    mu: float = 80e9
    """Shear modulus of the (isotropic) crystal, in Pa."""
    nu: float = 0.3
    """Poisson ratio of the crystal, dimensionless."""
    drag_coefficient: float = 1e-4
    """Drag coefficient $B$ in the overdamped mobility law $v = f / B$, in Pa·s."""
    tau_crss: float = 0.0
    """CRSS below which dislocations do not glide, in Pa."""
    min_distance: float = 1e-9
    """Minimum allowed separation between two defects, in m."""
    reaction_radius: float = 2e-9
    """Separation below which opposite dislocations annihilate, in m.

    Should not be smaller than `min_distance`, otherwise approaching dislocations of
    opposite sign are stopped before they can annihilate.

    """
    max_time_increment: float = 1e-9
    """Upper bound for the time increment of a single step, in s."""
    n_iterations: int = 100
    """Number of time steps to run in a simulation."""
    applied_stress: tuple = (0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    """Applied stress in the base frame (xx, yy, zz, yz, xz, xy), in Pa."""

    def as_dict(self):
        """Return mutable copy of default arguments as a dictionary."""
        return asdict(self)


@nb.njit(fastmath=True)
def stress_field_local(x, y, bmag, mu, nu):
    """Get the stress tensor at local coordinates (x, y) of an edge dislocation.

    Returns a zero tensor for points inside the dislocation core.

    """
    stress = np.zeros((3, 3))
    r2 = x**2 + y**2
    if r2 < (CORE_RADIUS_FACTOR * bmag) ** 2:
        return stress
    prefactor = mu * bmag / (2 * np.pi * (1 - nu))
    r4 = r2**2
    stress[0, 0] = -prefactor * y * (3 * x**2 + y**2) / r4
    stress[1, 1] = prefactor * y * (x**2 - y**2) / r4
    stress[0, 1] = prefactor * x * (x**2 - y**2) / r4
    stress[1, 0] = stress[0, 1]
    stress[2, 2] = nu * (stress[0, 0] + stress[1, 1])
    return stress


@nb.njit(fastmath=True)
def stress_field(point, position, rotation, bmag, mu, nu):
    """Get the stress tensor at `point` caused by a dislocation at `position`.

    The `rotation` matrix rotates vectors into the local frame of the dislocation and
    both `point` and `position` are given in the frame that `rotation` rotates from.
    The returned tensor is expressed in the same frame.

    """
    local = _tensors.rotate_vector(point - position, rotation)
    return _tensors.unrotate_tensor(
        stress_field_local(local[0], local[1], bmag, mu, nu), rotation
    )


@nb.njit(fastmath=True)
def superpose_stress(points, exclude, positions, rotations, bmags, mu, nu):
    """Get the stress tensors at `points` caused by a set of dislocations.

    - `points`: array with shape (M, 3) of query points
    - `exclude`: integer array with shape (M,) of the dislocation index to skip for
      each query point (use -1 to include all dislocations)
    - `positions`: array with shape (N, 3) of dislocation positions
    - `rotations`: array with shape (N, 3, 3) of dislocation rotation matrices
    - `bmags`: array with shape (N,) of Burgers vector magnitudes
    - `mu`, `nu`: shear modulus and Poisson ratio

    All coordinates and the returned (M, 3, 3) tensors are in the same frame.

    """
    out = np.zeros((len(points), 3, 3))
    for m in range(len(points)):
        for n in range(len(positions)):
            if n == exclude[m]:
                continue
            out[m] += stress_field(
                points[m], positions[n], rotations[n], bmags[n], mu, nu
            )
    return out


def superpose_stress_chunk(args):
    """Unpack arguments for `superpose_stress` (process pool entry point)."""
    return superpose_stress(*args)


@nb.njit(fastmath=True)
def force_peach_koehler(stress, rotation, bmag, tau_crss):
    """Get the Peach-Koehler glide force per unit length on an edge dislocation.

    The `stress` and the returned force are expressed in the frame that `rotation`
    rotates from. If the resolved shear stress on the dislocation is smaller (in
    magnitude) than `tau_crss`, the force is exactly zero.

    """
    local = _tensors.rotate_tensor(stress, rotation)
    if np.abs(local[0, 1]) < tau_crss:
        return np.zeros(3)
    # (σ·b) × t with b = (bmag, 0, 0) and t = (0, 0, 1) in the local frame.
    force = np.array([bmag * local[0, 1], -bmag * local[0, 0], 0.0])
    return _tensors.unrotate_vector(force, rotation)


@nb.njit
def time_increment(separation, relative_velocity, min_distance):
    """Get the time until two linearly moving points come within `min_distance`.

    - `separation`: position of the second point relative to the first
    - `relative_velocity`: velocity of the second point relative to the first

    Returns `TIME_INCREMENT_UNBOUNDED` if the points are stationary relative to each
    other, separating or never closer than `min_distance`, and zero if they are
    already closer than `min_distance` and approaching.

    """
    a = np.sum(relative_velocity**2)
    b = 2 * np.sum(separation * relative_velocity)
    c = np.sum(separation**2) - min_distance**2
    if a == 0 or b >= 0:
        return TIME_INCREMENT_UNBOUNDED
    if c <= 0:
        return 0.0
    discriminant = b**2 - 4 * a * c
    if discriminant < 0:
        return TIME_INCREMENT_UNBOUNDED
    # Smallest root of a t² + b t + c = 0, in the cancellation-free form.
    return 2 * c / (-b + np.sqrt(discriminant))
