r"""
#### Simulate two-dimensional dislocation dynamics in polycrystals

---

.. warning::
    **This software is currently in early development (alpha)
    and therefore subject to breaking changes without notice.**

## Introduction

Plastic deformation of crystalline materials is carried by the motion of line
defects called dislocations. pydd2d simulates the glide of straight edge
dislocations in a two-dimensional cross-section of a polycrystal. Dislocations are
confined to slip planes, which are straight segments inside the grains, and move in
response to the stress fields of all other dislocations and an applied stress.
**These are some of the main features of pydd2d:**

- **JIT-compiled elastic kernels** for the stress field of straight edge dislocations
  in an isotropic medium and the Peach-Koehler force, see `pydd2d.core`

- **Hierarchical coordinate systems**: every grain has its own crystal orientation,
  given by Bunge Euler angles, and the stress fields of dislocations act across grain
  boundaries

- **Adaptive time stepping**, which prevents dislocations from approaching each other
  closer than a minimum distance within a single step

- **Nucleation of dislocation dipoles** at sources under sustained shear stress,
  and **annihilation** of dislocations with opposite Burgers vectors

- **Double-buffered stress evaluation**, optionally distributed over a process pool
  (using Ray if it is installed)

## The simulation step

The dislocation structure is organised as `pydd2d.polycrystal.Polycrystal` →
`pydd2d.grain.Grain` → `pydd2d.slipplane.SlipPlane` →
`pydd2d.defects.Dislocation` and `pydd2d.defects.DislocationSource`.
In each step, the total stress at every defect is first evaluated from a frozen
snapshot of all dislocations. Forces follow from the Peach-Koehler formula
$f = (σ · b) × t$, where $b$ is the Burgers vector and $t$ the line direction, and
velocities from the overdamped mobility law

$$
v = \frac{f}{B}
$$

where $B$ is the drag coefficient. Only the glide component along the slip plane
is retained, and dislocations do not move if the resolved shear stress is below the
critical resolved shear stress. A single time increment is then chosen for the whole
polycrystal, dislocations are moved, sources are checked for nucleation and pairs of
opposite dislocations within the reaction radius are annihilated.
For an overview of available parameters, see `pydd2d.core.DefaultParams`.

Simulations can be run from a TOML configuration file using the `pydd2d-run` command,
see `pydd2d.io.parse_config` and `pydd2d.run`.

"""

# Set up the top-level pydd2d namespace for convenient usage.
# To keep it clean, we don't want every single symbol here, especially not those from
# `utils` or `io`, which should be explicitly imported instead.
import pydd2d.io  # Required by the logger doctests.
from pydd2d.core import (
    CORE_RADIUS_FACTOR,
    TIME_INCREMENT_UNBOUNDED,
    DefaultParams,
    DefectKind,
)
from pydd2d.defects import Defect, Dislocation, DislocationSource
from pydd2d.geometry import CoordinateSystem, ConvexPolygon, orientation_matrix
from pydd2d.grain import Grain
from pydd2d.history import History
from pydd2d.polycrystal import FieldSnapshot, Polycrystal, StepResult
from pydd2d.slipplane import SlipPlane
