"""State vectors and topocentric look angles."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np
from numpy.typing import NDArray

from orbitsim.dynamics.constants import EarthConstants
from orbitsim.dynamics.time_system import Epoch


class Frame(str, Enum):
    """Reference frame of a state vector."""

    TEME = "teme"  # True equator, mean equinox (SGP4 inertial output)
    ECEF = "ecef"  # Pseudo Earth-fixed (TEME rotated by GMST)


def _frozen_vector(values) -> NDArray[np.float64]:
    arr = np.array(values, dtype=np.float64).reshape(3)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class StateVector:
    """Position and velocity valid at an epoch in a named frame."""
    frame: Frame
    position: NDArray[np.float64]  # [km]
    velocity: NDArray[np.float64]  # [km/s]
    epoch: Epoch

    def __post_init__(self):
        object.__setattr__(self, "position", _frozen_vector(self.position))
        object.__setattr__(self, "velocity", _frozen_vector(self.velocity))

    @property
    def radius(self) -> float:
        """Distance from Earth's center [km]."""
        return float(np.linalg.norm(self.position))

    @property
    def speed(self) -> float:
        """Velocity magnitude [km/s]."""
        return float(np.linalg.norm(self.velocity))

    def altitude(self, constants: EarthConstants) -> float:
        """Height above a spherical Earth of equatorial radius [km]."""
        return self.radius - constants.radius_km

    def with_velocity(self, velocity) -> "StateVector":
        return StateVector(self.frame, self.position, velocity, self.epoch)

    def isclose(self, other: "StateVector", pos_tol: float = 1e-6, vel_tol: float = 1e-9) -> bool:
        """Same frame and epoch, position and velocity within tolerance."""
        return (
            self.frame == other.frame
            and self.epoch == other.epoch
            and bool(np.all(np.abs(self.position - other.position) <= pos_tol))
            and bool(np.all(np.abs(self.velocity - other.velocity) <= vel_tol))
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "frame": self.frame.value,
            "position": self.position.tolist(),
            "velocity": self.velocity.tolist(),
        }


@dataclass(frozen=True)
class LookAngles:
    """Satellite direction as seen from a ground station."""
    range_km: float  # Slant range [km]
    azimuth_deg: float  # Clockwise from north [deg, 0-360)
    elevation_deg: float  # Above local horizon [deg]
    range_rate_km_s: float  # Positive when receding [km/s]
