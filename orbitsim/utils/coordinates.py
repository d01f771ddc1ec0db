"""Frame transformations between TEME, Earth-fixed and topocentric frames.

Coordinate Frames:
- TEME: True Equator Mean Equinox, the inertial output frame of SGP4
- ECEF: Pseudo Earth-fixed frame, TEME rotated about Z by GMST
- Geodetic: lat/lon/alt on the reference ellipsoid of the constant set
- Topocentric: East-North-Up at a ground station

Polar motion is ignored, which is the usual convention for SGP4 output.
"""

import math
from typing import TYPE_CHECKING, Optional

from astropy import units as u
from astropy.coordinates import EarthLocation
import numpy as np
from numpy.typing import NDArray

from orbitsim.dynamics.constants import EarthConstants, WGS72
from orbitsim.dynamics.state import Frame, LookAngles, StateVector
from orbitsim.dynamics.time_system import Epoch, TimeSystem
from orbitsim.environment.eclipse import EclipseType, ShadowModel, shadow_margin, shadow_state
from orbitsim.environment.sun import sun_direction, sun_position_km

if TYPE_CHECKING:
    from orbitsim.prediction.models import GroundStation

# Astropy reference ellipsoid for each constant set
ELLIPSOIDS = {"wgs72old": "WGS72", "wgs72": "WGS72", "wgs84": "WGS84"}


def dcm_teme_to_ecef(gmst: float) -> NDArray[np.float64]:
    """Rotation matrix from TEME to ECEF.

    Args:
        gmst: Greenwich mean sidereal time [rad]

    Returns:
        3x3 direction cosine matrix
    """
    c = math.cos(gmst)
    s = math.sin(gmst)
    return np.array([
        [c, s, 0.0],
        [-s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])


def teme_to_ecef(
    position: NDArray[np.float64],
    velocity: NDArray[np.float64],
    gmst: float,
    rotation_rate: float,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Rotate a TEME state into the Earth-fixed frame.

    Velocity is corrected for the frame rotation (v - omega x r).
    """
    dcm = dcm_teme_to_ecef(gmst)
    r_ecef = dcm @ position
    omega = np.array([0.0, 0.0, rotation_rate])
    v_ecef = dcm @ velocity - np.cross(omega, r_ecef)
    return r_ecef, v_ecef


def geodetic_to_ecef(
    lat_deg: float,
    lon_deg: float,
    alt_km: float,
    constants: EarthConstants = WGS72,
) -> NDArray[np.float64]:
    """Convert geodetic coordinates to ECEF using Astropy.

    Args:
        lat_deg: Latitude in degrees (-90 to 90)
        lon_deg: Longitude in degrees
        alt_km: Height above the ellipsoid in km
        constants: Constant set whose reference ellipsoid is used

    Returns:
        ECEF position in km [x, y, z]
    """
    location = EarthLocation.from_geodetic(
        lon=lon_deg * u.deg,
        lat=lat_deg * u.deg,
        height=alt_km * u.km,
        ellipsoid=ELLIPSOIDS[constants.name],
    )

    x = location.x.to(u.km).value
    y = location.y.to(u.km).value
    z = location.z.to(u.km).value

    return np.array([x, y, z], dtype=np.float64)


def ecef_to_geodetic(
    position: NDArray[np.float64],
    constants: EarthConstants = WGS72,
) -> tuple[float, float, float]:
    """Convert an ECEF position to geodetic coordinates.

    Args:
        position: ECEF position [km]
        constants: Reference ellipsoid

    Returns:
        (latitude, longitude, altitude) in (deg, deg, km)
    """
    a = constants.radius_km
    e2 = constants.eccentricity_squared
    x, y, z = (float(c) for c in position)

    longitude = math.degrees(math.atan2(y, x))

    # Iterative calculation for latitude (geodetic from geocentric)
    p = math.hypot(x, y)
    lat = math.atan2(z, p)
    for _ in range(10):
        sin_lat = math.sin(lat)
        N = a / math.sqrt(1 - e2 * sin_lat**2)
        lat_new = math.atan2(z + e2 * N * sin_lat, p)
        if abs(lat_new - lat) < 1e-12:
            lat = lat_new
            break
        lat = lat_new

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    N = a / math.sqrt(1 - e2 * sin_lat**2)
    if abs(cos_lat) > 1e-10:
        altitude = p / cos_lat - N
    else:
        altitude = abs(z) - N * (1 - e2)

    return math.degrees(lat), longitude, altitude


def dcm_ecef_to_enu(lat_deg: float, lon_deg: float) -> NDArray[np.float64]:
    """Rotation from ECEF to local East-North-Up axes."""
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)
    sl, cl = math.sin(lat), math.cos(lat)
    so, co = math.sin(lon), math.cos(lon)
    return np.array([
        [-so, co, 0.0],
        [-sl * co, -sl * so, cl],
        [cl * co, cl * so, sl],
    ])


def look_angles(
    position_ecef: NDArray[np.float64],
    velocity_ecef: NDArray[np.float64],
    station_ecef: NDArray[np.float64],
    lat_deg: float,
    lon_deg: float,
) -> LookAngles:
    """Range, azimuth, elevation and range rate of a satellite from a site.

    Args:
        position_ecef: Satellite ECEF position [km]
        velocity_ecef: Satellite ECEF velocity [km/s]
        station_ecef: Station ECEF position [km]
        lat_deg: Station geodetic latitude [deg]
        lon_deg: Station longitude [deg]
    """
    rho = position_ecef - station_ecef
    range_km = float(np.linalg.norm(rho))
    east, north, up = dcm_ecef_to_enu(lat_deg, lon_deg) @ rho
    azimuth = math.degrees(math.atan2(east, north)) % 360.0
    elevation = math.degrees(math.asin(max(-1.0, min(1.0, up / range_km))))
    range_rate = float(np.dot(rho, velocity_ecef)) / range_km
    return LookAngles(
        range_km=range_km,
        azimuth_deg=azimuth,
        elevation_deg=elevation,
        range_rate_km_s=range_rate,
    )


class FrameTransforms:
    """Frame conversions bound to one time system and constant set.

    Station positions are cached per station. The cache only ever gains
    identical entries, so a single instance can serve several threads.
    """

    def __init__(
        self,
        time_system: Optional[TimeSystem] = None,
        constants: Optional[EarthConstants] = None,
    ):
        """Initialize frame transforms.

        Args:
            time_system: Source of Earth rotation angle (built from constants if None)
            constants: Reference constants (taken from time_system, else WGS72)
        """
        if constants is None:
            constants = time_system.constants if time_system is not None else WGS72
        self._constants = constants
        self._time_system = time_system or TimeSystem(constants)
        self._station_positions: dict["GroundStation", NDArray[np.float64]] = {}

    @property
    def constants(self) -> EarthConstants:
        return self._constants

    @property
    def time_system(self) -> TimeSystem:
        return self._time_system

    def to_earth_fixed(self, state: StateVector) -> StateVector:
        """Convert a TEME state to ECEF at the state's epoch."""
        if state.frame == Frame.ECEF:
            return state
        gmst = self._time_system.earth_rotation_angle(state.epoch)
        r_ecef, v_ecef = teme_to_ecef(
            state.position, state.velocity, gmst, self._time_system.rotation_rate
        )
        return StateVector(Frame.ECEF, r_ecef, v_ecef, state.epoch)

    def station_position(self, station: "GroundStation") -> NDArray[np.float64]:
        """ECEF position of a station's antenna [km], computed once per station."""
        position = self._station_positions.get(station)
        if position is None:
            position = geodetic_to_ecef(
                station.latitude_deg,
                station.longitude_deg,
                station.height_km,
                constants=self._constants,
            )
            position.flags.writeable = False
            self._station_positions[station] = position
        return position

    def to_topocentric(self, state: StateVector, station: "GroundStation") -> LookAngles:
        """Look angles of the satellite from a station at the state's epoch."""
        ecef = self.to_earth_fixed(state)
        return look_angles(
            ecef.position,
            ecef.velocity,
            self.station_position(station),
            station.latitude_deg,
            station.longitude_deg,
        )

    def subpoint(self, state: StateVector) -> tuple[float, float, float]:
        """Geodetic sub-satellite point (deg, deg, km)."""
        return ecef_to_geodetic(self.to_earth_fixed(state).position, self._constants)

    def sun_vector(self, epoch: Epoch) -> NDArray[np.float64]:
        """Unit vector from Earth's center toward the Sun in TEME."""
        return sun_direction(epoch)

    def shadow(
        self,
        state: StateVector,
        model: ShadowModel = ShadowModel.CYLINDRICAL,
    ) -> EclipseType:
        """Shadow state of a TEME state at its epoch."""
        return shadow_state(
            state.position, sun_position_km(state.epoch), self._constants.radius_km, model
        )

    def is_in_shadow(
        self,
        state: StateVector,
        model: ShadowModel = ShadowModel.CYLINDRICAL,
    ) -> bool:
        """True when the satellite is in umbra or penumbra."""
        return self.shadow(state, model) != EclipseType.NONE

    def illumination_margin(
        self,
        state: StateVector,
        model: ShadowModel = ShadowModel.CYLINDRICAL,
    ) -> float:
        """Signed distance from the shadow boundary [km], positive when sunlit."""
        return shadow_margin(
            state.position, sun_position_km(state.epoch), self._constants.radius_km, model
        )
