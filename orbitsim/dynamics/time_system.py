"""Epoch representation and Earth rotation angle.

Epochs are stored as a Julian date split into a midnight day number and a
fraction of day, the same split used by ``sgp4.api.jday``, so adding small
offsets to a large day count keeps sub-second precision.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
import math
from typing import Union

from astropy.time import Time
from astropy.utils.iers import conf as iers_conf
from sgp4.api import jday

from orbitsim.dynamics.constants import EarthConstants, WGS72

# Use built-in IERS data to avoid network downloads and timeouts
iers_conf.auto_download = False

SECONDS_PER_DAY = 86400.0
J2000_JD = 2451545.0
TWO_PI = 2.0 * math.pi


@dataclass(frozen=True, order=True)
class Epoch:
    """Julian date split into midnight day and fraction of day.

    ``jd`` always ends in .5 and ``fraction`` is in [0, 1), so two epochs
    compare and subtract without cancellation.
    """
    jd: float
    fraction: float = 0.0

    def __post_init__(self):
        whole = math.floor(self.jd - 0.5) + 0.5
        frac = self.fraction + (self.jd - whole)
        carry = math.floor(frac)
        object.__setattr__(self, "jd", whole + carry)
        object.__setattr__(self, "fraction", frac - carry)

    @classmethod
    def from_datetime(cls, dt: datetime) -> "Epoch":
        """Create an epoch from a datetime (naive values are taken as UTC)."""
        if dt.tzinfo is not None:
            dt = dt.astimezone(timezone.utc)
        jd, fr = jday(
            dt.year,
            dt.month,
            dt.day,
            dt.hour,
            dt.minute,
            dt.second + dt.microsecond / 1e6,
        )
        return cls(jd, fr)

    @classmethod
    def from_iso(cls, text: str) -> "Epoch":
        """Parse an ISO-8601 UTC timestamp such as ``2024-01-01T12:00:00``."""
        t = Time(text, scale="utc")
        return cls(float(t.jd1), float(t.jd2))

    @property
    def julian_date(self) -> float:
        """Single-float Julian date (loses sub-millisecond precision)."""
        return self.jd + self.fraction

    def plus_seconds(self, seconds: float) -> "Epoch":
        return Epoch(self.jd, self.fraction + seconds / SECONDS_PER_DAY)

    def plus_minutes(self, minutes: float) -> "Epoch":
        return Epoch(self.jd, self.fraction + minutes / 1440.0)

    def seconds_since(self, other: "Epoch") -> float:
        """Elapsed seconds from ``other`` to this epoch."""
        days = (self.jd - other.jd) + (self.fraction - other.fraction)
        return days * SECONDS_PER_DAY

    def to_datetime(self) -> datetime:
        """Convert to a timezone-aware UTC datetime."""
        t = Time(self.jd, self.fraction, format="jd", scale="utc")
        return t.to_datetime(timezone=timezone.utc)

    def isoformat(self) -> str:
        return self.to_datetime().isoformat()


def gstime(jdut1: float) -> float:
    """Greenwich mean sidereal time (IAU-82).

    Args:
        jdut1: Julian date (UT1)

    Returns:
        GMST [rad] in [0, 2*pi)
    """
    tut1 = (jdut1 - J2000_JD) / 36525.0
    return _gmst_from_centuries(tut1)


def _gmst_from_centuries(tut1: float) -> float:
    gmst_sec = (
        67310.54841
        + (876600.0 * 3600 + 8640184.812866) * tut1
        + 0.093104 * tut1**2
        - 6.2e-6 * tut1**3
    )
    theta = math.fmod(math.radians(gmst_sec / 240.0), TWO_PI)
    if theta < 0.0:
        theta += TWO_PI
    return theta


class TimeSystem:
    """Time conversions and Earth rotation for one constant set.

    Stateless after construction; safe to share between threads.
    """

    def __init__(self, constants: EarthConstants = WGS72):
        """Initialize time system.

        Args:
            constants: Reference constants providing the rotation rate
        """
        self._constants = constants

    @property
    def constants(self) -> EarthConstants:
        return self._constants

    @property
    def rotation_rate(self) -> float:
        """Earth rotation rate [rad/s]."""
        return self._constants.rotation_rate

    def offset(self, epoch: Epoch, seconds: float) -> Epoch:
        """Epoch ``seconds`` after ``epoch``."""
        return epoch.plus_seconds(seconds)

    def seconds_between(self, start: Epoch, end: Epoch) -> float:
        return end.seconds_since(start)

    def to_epoch(self, value: Union[Epoch, datetime, str]) -> Epoch:
        """Coerce a datetime, ISO string or Epoch into an Epoch."""
        if isinstance(value, Epoch):
            return value
        if isinstance(value, datetime):
            return Epoch.from_datetime(value)
        if isinstance(value, str):
            return Epoch.from_iso(value)
        raise TypeError(f"Cannot convert {type(value).__name__} to Epoch")

    def earth_rotation_angle(self, epoch: Epoch) -> float:
        """Earth rotation angle (GMST) at ``epoch`` [rad].

        Centuries since J2000 are formed from the split date so the day
        fraction is not rounded away.
        """
        tut1 = ((epoch.jd - J2000_JD) + epoch.fraction) / 36525.0
        return _gmst_from_centuries(tut1)
