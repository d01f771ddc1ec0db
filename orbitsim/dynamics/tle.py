"""TLE loading.

Parsing is delegated to the ``sgp4`` package; this module only maps its
satellite record onto a MeanElementSet.
"""

from sgp4.api import Satrec, WGS72, WGS72OLD, WGS84

from orbitsim.dynamics.constants import EarthConstants, WGS72 as WGS72_CONSTANTS
from orbitsim.dynamics.elements import MeanElementSet
from orbitsim.dynamics.time_system import Epoch
from orbitsim.errors import PropagationError

_SGP4_GRAVITY = {"wgs72old": WGS72OLD, "wgs72": WGS72, "wgs84": WGS84}

# Sample TLEs
ISS_TLE = (
    "1 25544U 98067A   20194.88612269 -.00002218  00000-0 -31515-4 0  9992",
    "2 25544  51.6461 221.2784 0001413  89.1723 280.4612 15.49507896236008",
)
CANX5_TLE = (
    "1 40056U 14034D   25209.55901054  .00000935  00000+0  13011-3 0  9999",
    "2 40056  98.3577  67.3174 0012454 336.2296  23.8338 14.80323878587440",
)


def elements_from_tle(
    line1: str,
    line2: str,
    constants: EarthConstants = WGS72_CONSTANTS,
) -> MeanElementSet:
    """Parse a two-line element set.

    Args:
        line1: First line of TLE
        line2: Second line of TLE
        constants: Gravity model used to interpret the mean motion

    Returns:
        MeanElementSet with angles in radians and mean motion in rad/min

    Raises:
        ValueError: If the TLE cannot be parsed or holds invalid elements
    """
    try:
        satellite = Satrec.twoline2rv(line1.rstrip(), line2.rstrip(), _SGP4_GRAVITY[constants.name])
    except Exception as e:
        raise ValueError(f"Invalid TLE: {e}") from e

    # Satrec reports parse failures through its error code
    if satellite.error != 0:
        raise ValueError(f"Invalid TLE: SGP4 error code {satellite.error}")

    try:
        return MeanElementSet(
            epoch=Epoch(satellite.jdsatepoch, satellite.jdsatepochF),
            inclination=satellite.inclo,
            raan=satellite.nodeo,
            eccentricity=satellite.ecco,
            arg_perigee=satellite.argpo,
            mean_anomaly=satellite.mo,
            mean_motion=satellite.no_kozai,
            bstar=satellite.bstar,
            ndot=satellite.ndot,
            nddot=satellite.nddot,
            satnum=f"{satellite.satnum:05d}",
        )
    except PropagationError as e:
        raise ValueError(f"Invalid TLE: {e}") from e
