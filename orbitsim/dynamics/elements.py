"""SGP4 mean element set."""

from dataclasses import dataclass, replace
import math
from typing import Any

from orbitsim.dynamics.time_system import Epoch
from orbitsim.errors import PropagationError, PropagationErrorKind

MINUTES_PER_DAY = 1440.0


@dataclass(frozen=True)
class MeanElementSet:
    """SGP4 mean orbital elements at a reference epoch.

    Angles are radians and mean motion is the Kozai mean motion in rad/min,
    the form SGP4 consumes. Instances are immutable; a maneuver yields a new
    set.

    Raises:
        PropagationError: INVALID_ELEMENTS if a value is out of range
    """
    epoch: Epoch
    inclination: float  # [rad]
    raan: float  # Right ascension of ascending node [rad]
    eccentricity: float
    arg_perigee: float  # [rad]
    mean_anomaly: float  # [rad]
    mean_motion: float  # Kozai mean motion [rad/min]
    bstar: float = 0.0  # Drag term [1/earth radii]
    ndot: float = 0.0  # First derivative of mean motion [rad/min^2]
    nddot: float = 0.0  # Second derivative of mean motion [rad/min^3]
    satnum: str = ""

    def __post_init__(self):
        values = (
            self.inclination,
            self.raan,
            self.eccentricity,
            self.arg_perigee,
            self.mean_anomaly,
            self.mean_motion,
            self.bstar,
        )
        if not all(math.isfinite(v) for v in values):
            self._reject("element values must be finite")
        if not 0.0 <= self.eccentricity < 1.0:
            self._reject(f"eccentricity {self.eccentricity} outside [0, 1)")
        if not 0.0 <= self.inclination <= math.pi:
            self._reject(f"inclination {self.inclination} rad outside [0, pi]")
        if self.mean_motion <= 0.0:
            self._reject(f"mean motion {self.mean_motion} rad/min must be positive")

    def _reject(self, reason: str) -> None:
        label = f" for satellite {self.satnum}" if self.satnum else ""
        raise PropagationError(
            PropagationErrorKind.INVALID_ELEMENTS,
            f"Invalid mean elements{label}: {reason}",
        )

    @classmethod
    def from_degrees(
        cls,
        epoch: Epoch,
        inclination_deg: float,
        raan_deg: float,
        eccentricity: float,
        arg_perigee_deg: float,
        mean_anomaly_deg: float,
        revs_per_day: float,
        bstar: float = 0.0,
        satnum: str = "",
    ) -> "MeanElementSet":
        """Build from TLE-style units (degrees and revolutions per day)."""
        return cls(
            epoch=epoch,
            inclination=math.radians(inclination_deg),
            raan=math.radians(raan_deg),
            eccentricity=eccentricity,
            arg_perigee=math.radians(arg_perigee_deg),
            mean_anomaly=math.radians(mean_anomaly_deg),
            mean_motion=revs_per_day * 2 * math.pi / MINUTES_PER_DAY,
            bstar=bstar,
            satnum=satnum,
        )

    @property
    def period_minutes(self) -> float:
        """Period from the Kozai mean motion [min]."""
        return 2 * math.pi / self.mean_motion

    @property
    def revs_per_day(self) -> float:
        return self.mean_motion * MINUTES_PER_DAY / (2 * math.pi)

    def with_changes(self, **changes: Any) -> "MeanElementSet":
        """Copy with some fields replaced; the copy is validated again."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict (degrees, rev/day)."""
        return {
            "satnum": self.satnum,
            "epoch": self.epoch.isoformat(),
            "epochJd": self.epoch.jd,
            "epochFraction": self.epoch.fraction,
            "inclination": math.degrees(self.inclination),
            "raan": math.degrees(self.raan),
            "eccentricity": self.eccentricity,
            "argPerigee": math.degrees(self.arg_perigee),
            "meanAnomaly": math.degrees(self.mean_anomaly),
            "meanMotion": self.revs_per_day,
            "bstar": self.bstar,
        }
