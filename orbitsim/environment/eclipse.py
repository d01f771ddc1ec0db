"""Earth shadow models for satellite illumination."""

from enum import Enum

import numpy as np
from numpy.typing import NDArray

from orbitsim.environment.sun import SUN_RADIUS_KM


class ShadowModel(str, Enum):
    """Geometry of Earth's shadow."""

    CYLINDRICAL = "cylindrical"  # Umbra only, parallel solar rays
    CONICAL = "conical"  # Umbra and penumbra cones


class EclipseType(str, Enum):
    NONE = "none"
    PENUMBRA = "penumbra"
    UMBRA = "umbra"


def _shadow_geometry(
    sat_pos: NDArray[np.float64],
    sun_pos: NDArray[np.float64],
) -> tuple[float, float, float]:
    """Project the satellite onto the Earth-Sun line.

    Returns:
        (projection toward the Sun [km], distance from the axis [km], Sun distance [km])
    """
    sun_dist = float(np.linalg.norm(sun_pos))
    sun_dir = sun_pos / sun_dist
    proj = float(np.dot(sat_pos, sun_dir))
    perpendicular = sat_pos - proj * sun_dir
    return proj, float(np.linalg.norm(perpendicular)), sun_dist


def _shadow_radii(
    behind: float, earth_radius_km: float, sun_dist: float, model: ShadowModel
) -> tuple[float, float]:
    """Umbra and penumbra radii at ``behind`` km down the shadow axis."""
    if model == ShadowModel.CYLINDRICAL:
        return earth_radius_km, earth_radius_km
    # Similar triangles (Montenbruck & Gill)
    umbra = earth_radius_km - behind * (SUN_RADIUS_KM - earth_radius_km) / sun_dist
    penumbra = earth_radius_km + behind * (SUN_RADIUS_KM + earth_radius_km) / sun_dist
    return umbra, penumbra


def shadow_state(
    sat_pos: NDArray[np.float64],
    sun_pos: NDArray[np.float64],
    earth_radius_km: float,
    model: ShadowModel = ShadowModel.CYLINDRICAL,
) -> EclipseType:
    """Classify a satellite position as sunlit, penumbra or umbra.

    Args:
        sat_pos: Satellite position [km]
        sun_pos: Sun position in the same frame [km]
        earth_radius_km: Radius of the shadowing Earth
        model: Shadow geometry

    Returns:
        EclipseType (the cylindrical model never reports PENUMBRA)
    """
    proj, perp_dist, sun_dist = _shadow_geometry(np.asarray(sat_pos, dtype=np.float64), sun_pos)

    if proj >= 0:
        # Sun side of the terminator plane
        return EclipseType.NONE

    umbra, penumbra = _shadow_radii(-proj, earth_radius_km, sun_dist, model)
    if perp_dist < umbra:
        return EclipseType.UMBRA
    if perp_dist < penumbra:
        return EclipseType.PENUMBRA
    return EclipseType.NONE


def is_in_shadow(
    sat_pos: NDArray[np.float64],
    sun_pos: NDArray[np.float64],
    earth_radius_km: float,
    model: ShadowModel = ShadowModel.CYLINDRICAL,
) -> bool:
    """True if the satellite is in umbra or penumbra.

    Only the direction of ``sun_pos`` matters for the cylindrical model, so a
    unit Sun vector may be passed there.
    """
    return shadow_state(sat_pos, sun_pos, earth_radius_km, model) != EclipseType.NONE


def shadow_margin(
    sat_pos: NDArray[np.float64],
    sun_pos: NDArray[np.float64],
    earth_radius_km: float,
    model: ShadowModel = ShadowModel.CYLINDRICAL,
) -> float:
    """Signed distance outside the outer shadow boundary [km].

    Positive when sunlit and negative inside the shadow (the penumbra cone
    for the conical model), with the sign matching ``is_in_shadow``. On the
    Sun side the projection onto the Sun line is added so the value stays
    positive and continuous across the terminator plane.
    """
    proj, perp_dist, sun_dist = _shadow_geometry(np.asarray(sat_pos, dtype=np.float64), sun_pos)
    if proj >= 0:
        return perp_dist - earth_radius_km + proj
    _, penumbra = _shadow_radii(-proj, earth_radius_km, sun_dist, model)
    return perp_dist - penumbra
