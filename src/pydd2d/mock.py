"""> pydd2d: Mock objects for testing and reproducibility."""

from dataclasses import dataclass

from pydd2d.core import DefaultParams


@dataclass(frozen=True)
class ParamsAluminium(DefaultParams):
    """Isotropic elastic constants and a typical Burgers vector scale for aluminium."""

    mu: float = 26e9
    nu: float = 0.347
    drag_coefficient: float = 1e-4
    tau_crss: float = 0.0
    min_distance: float = 2.5e-9
    reaction_radius: float = 5e-9
    max_time_increment: float = 1e-10


@dataclass(frozen=True)
class ParamsUnitShear(DefaultParams):
    """Dimensionless parameters for analytical checks."""

    mu: float = 1.0
    nu: float = 0.25
    drag_coefficient: float = 1.0
    tau_crss: float = 0.0
    min_distance: float = 0.1
    reaction_radius: float = 0.2
    max_time_increment: float = 1.0
    n_iterations: int = 10


PARAMS_ALUMINIUM = ParamsAluminium().as_dict()
PARAMS_UNIT_SHEAR = ParamsUnitShear().as_dict()
