"""Low-precision analytic solar ephemeris.

Vallado / Astronomical Almanac algorithm, accurate to about 0.01 deg over
1950-2050, which is sufficient for eclipse and illumination analysis.
The result is in the mean-of-date equatorial frame and is used directly
as a TEME direction.
"""

import math

import numpy as np
from numpy.typing import NDArray

from orbitsim.dynamics.time_system import Epoch, J2000_JD

AU_KM = 149597870.7  # Astronomical unit [km]
SUN_RADIUS_KM = 695700.0


def sun_position_km(epoch: Epoch) -> NDArray[np.float64]:
    """Geocentric Sun position [km] at ``epoch``."""
    t = ((epoch.jd - J2000_JD) + epoch.fraction) / 36525.0

    mean_longitude = (280.460 + 36000.771 * t) % 360.0  # [deg]
    mean_anomaly = math.radians((357.5291092 + 35999.05034 * t) % 360.0)
    ecliptic_longitude = math.radians(
        mean_longitude
        + 1.914666471 * math.sin(mean_anomaly)
        + 0.019994643 * math.sin(2.0 * mean_anomaly)
    )
    obliquity = math.radians(23.439291 - 0.0130042 * t)
    r_au = (
        1.000140612
        - 0.016708617 * math.cos(mean_anomaly)
        - 0.000139589 * math.cos(2.0 * mean_anomaly)
    )

    r_km = r_au * AU_KM
    return np.array([
        r_km * math.cos(ecliptic_longitude),
        r_km * math.cos(obliquity) * math.sin(ecliptic_longitude),
        r_km * math.sin(obliquity) * math.sin(ecliptic_longitude),
    ])


def sun_direction(epoch: Epoch) -> NDArray[np.float64]:
    """Unit vector toward the Sun."""
    sun = sun_position_km(epoch)
    return sun / np.linalg.norm(sun)
