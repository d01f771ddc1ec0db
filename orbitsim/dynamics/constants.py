"""Earth reference constants for propagation and frame conversions.

The three gravity models match the constant sets used by SGP4
implementations (Vallado et al., "Revisiting Spacetrack Report #3", 2006).
Instances are immutable and are passed explicitly to every component that
needs them.
"""

from dataclasses import dataclass
import math


@dataclass(frozen=True)
class EarthConstants:
    """Earth gravity and shape constants."""
    name: str
    mu: float  # Gravitational parameter [km^3/s^2]
    radius_km: float  # Equatorial radius [km]
    xke: float  # sqrt(mu) in Earth radii^1.5 / min
    j2: float
    j3: float
    j4: float
    flattening: float = 1.0 / 298.257223563
    rotation_rate: float = 7.292115146706979e-5  # [rad/s]

    @property
    def tumin(self) -> float:
        """Minutes per canonical time unit."""
        return 1.0 / self.xke

    @property
    def j3oj2(self) -> float:
        return self.j3 / self.j2

    @property
    def eccentricity_squared(self) -> float:
        """First eccentricity squared of the reference ellipsoid."""
        f = self.flattening
        return 2 * f - f * f


def _xke(mu: float, radius_km: float) -> float:
    return 60.0 / math.sqrt(radius_km**3 / mu)


WGS72OLD = EarthConstants(
    name="wgs72old",
    mu=398600.79964,
    radius_km=6378.135,
    xke=0.0743669161,
    j2=0.001082616,
    j3=-0.00000253881,
    j4=-0.00000165597,
    flattening=1.0 / 298.26,
)

WGS72 = EarthConstants(
    name="wgs72",
    mu=398600.8,
    radius_km=6378.135,
    xke=_xke(398600.8, 6378.135),
    j2=0.001082616,
    j3=-0.00000253881,
    j4=-0.00000165597,
    flattening=1.0 / 298.26,
)

WGS84 = EarthConstants(
    name="wgs84",
    mu=398600.5,
    radius_km=6378.137,
    xke=_xke(398600.5, 6378.137),
    j2=0.00108262998905,
    j3=-0.00000253215306,
    j4=-0.00000161098761,
)

GRAVITY_MODELS = {c.name: c for c in (WGS72OLD, WGS72, WGS84)}


def get_gravity_model(name: str) -> EarthConstants:
    """Look up a constant set by name.

    Args:
        name: One of "wgs72old", "wgs72", "wgs84" (case-insensitive)

    Returns:
        The matching EarthConstants

    Raises:
        ValueError: If the name is unknown
    """
    try:
        return GRAVITY_MODELS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown gravity model '{name}'. "
            f"Expected one of: {', '.join(sorted(GRAVITY_MODELS))}"
        ) from None
