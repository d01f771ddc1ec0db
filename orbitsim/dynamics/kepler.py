"""Two-body Keplerian element conversions."""

from dataclasses import dataclass
import math

import numpy as np
from numpy.typing import NDArray

from orbitsim.errors import PropagationError, PropagationErrorKind

TWO_PI = 2.0 * math.pi
SMALL = 1.0e-10


@dataclass(frozen=True)
class KeplerianElements:
    """Osculating two-body elements. Angles in radians."""
    semi_major_axis: float  # [km], negative for hyperbolic orbits
    eccentricity: float
    inclination: float
    raan: float
    arg_perigee: float
    true_anomaly: float
    mean_anomaly: float  # NaN for unbound orbits

    @property
    def is_bound(self) -> bool:
        return self.eccentricity < 1.0 and self.semi_major_axis > 0.0


def solve_kepler(
    mean_anomaly: float,
    eccentricity: float,
    max_iterations: int = 10,
    tolerance: float = 1e-12,
) -> float:
    """Solve Kepler's equation M = E - e sin E for E.

    Args:
        mean_anomaly: Mean anomaly [rad]
        eccentricity: Eccentricity in [0, 1)
        max_iterations: Newton iteration cap
        tolerance: Convergence threshold on the correction [rad]

    Returns:
        Eccentric anomaly [rad]

    Raises:
        PropagationError: KEPLER_NON_CONVERGENCE if the cap is reached
    """
    m = math.fmod(mean_anomaly, TWO_PI)
    ecc_anom = m if eccentricity < 0.8 else math.pi
    for _ in range(max_iterations):
        f = ecc_anom - eccentricity * math.sin(ecc_anom) - m
        step = f / (1.0 - eccentricity * math.cos(ecc_anom))
        ecc_anom -= step
        if abs(step) < tolerance:
            return ecc_anom
    raise PropagationError(
        PropagationErrorKind.KEPLER_NON_CONVERGENCE,
        f"Kepler's equation did not converge in {max_iterations} iterations "
        f"(M={mean_anomaly:.6f} rad, e={eccentricity:.6f})",
    )


def true_from_eccentric(ecc_anom: float, eccentricity: float) -> float:
    beta = math.sqrt(1.0 - eccentricity * eccentricity)
    return math.atan2(beta * math.sin(ecc_anom), math.cos(ecc_anom) - eccentricity)


def coe_to_rv(
    semi_major_axis: float,
    eccentricity: float,
    inclination: float,
    raan: float,
    arg_perigee: float,
    true_anomaly: float,
    mu: float,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Convert classical elements to an inertial state.

    Args:
        semi_major_axis: [km]
        eccentricity: [-]
        inclination, raan, arg_perigee, true_anomaly: [rad]
        mu: Gravitational parameter [km^3/s^2]

    Returns:
        (position [km], velocity [km/s])
    """
    p = semi_major_axis * (1.0 - eccentricity * eccentricity)
    cos_nu = math.cos(true_anomaly)
    sin_nu = math.sin(true_anomaly)
    r = p / (1.0 + eccentricity * cos_nu)
    r_pf = np.array([r * cos_nu, r * sin_nu, 0.0])
    k = math.sqrt(mu / p)
    v_pf = np.array([-k * sin_nu, k * (eccentricity + cos_nu), 0.0])

    co, so = math.cos(raan), math.sin(raan)
    ci, si = math.cos(inclination), math.sin(inclination)
    cw, sw = math.cos(arg_perigee), math.sin(arg_perigee)
    rot = np.array([
        [co * cw - so * sw * ci, -co * sw - so * cw * ci, so * si],
        [so * cw + co * sw * ci, -so * sw + co * cw * ci, -co * si],
        [sw * si, cw * si, ci],
    ])
    return rot @ r_pf, rot @ v_pf


def rv_to_coe(
    position: NDArray[np.float64],
    velocity: NDArray[np.float64],
    mu: float,
) -> KeplerianElements:
    """Convert an inertial state to osculating classical elements.

    Equatorial orbits get a zero node and circular orbits a zero argument
    of perigee, so the remaining angle carries the full position.

    Args:
        position: [km]
        velocity: [km/s]
        mu: Gravitational parameter [km^3/s^2]

    Returns:
        KeplerianElements (``is_bound`` is False for e >= 1)
    """
    r_vec = np.asarray(position, dtype=np.float64)
    v_vec = np.asarray(velocity, dtype=np.float64)
    r = float(np.linalg.norm(r_vec))
    v2 = float(np.dot(v_vec, v_vec))
    h_vec = np.cross(r_vec, v_vec)
    h = float(np.linalg.norm(h_vec))
    w = h_vec / h

    inclination = math.atan2(math.hypot(w[0], w[1]), w[2])
    if math.hypot(w[0], w[1]) > SMALL:
        raan = math.atan2(w[0], -w[1])
        arg_lat = math.atan2(r_vec[2], -r_vec[0] * w[1] + r_vec[1] * w[0])
    else:
        raan = 0.0
        arg_lat = math.atan2(math.copysign(1.0, w[2]) * r_vec[1], r_vec[0])

    energy = 0.5 * v2 - mu / r
    e_vec = ((v2 - mu / r) * r_vec - float(np.dot(r_vec, v_vec)) * v_vec) / mu
    eccentricity = float(np.linalg.norm(e_vec))
    semi_major_axis = -mu / (2.0 * energy) if energy != 0.0 else math.inf

    if eccentricity >= 1.0 or semi_major_axis <= 0.0:
        nu = math.atan2(float(np.dot(np.cross(e_vec, r_vec), w)), float(np.dot(e_vec, r_vec)))
        return KeplerianElements(
            semi_major_axis=semi_major_axis,
            eccentricity=eccentricity,
            inclination=inclination,
            raan=raan % TWO_PI,
            arg_perigee=(arg_lat - nu) % TWO_PI,
            true_anomaly=nu % TWO_PI,
            mean_anomaly=math.nan,
        )

    if eccentricity < SMALL:
        ecc_anom = arg_lat
        nu = arg_lat
        arg_perigee = 0.0
        eccentricity = 0.0
    else:
        e_cos = 1.0 - r / semi_major_axis
        e_sin = float(np.dot(r_vec, v_vec)) / math.sqrt(mu * semi_major_axis)
        ecc_anom = math.atan2(e_sin, e_cos)
        nu = true_from_eccentric(ecc_anom, eccentricity)
        arg_perigee = arg_lat - nu

    mean_anomaly = ecc_anom - eccentricity * math.sin(ecc_anom)
    return KeplerianElements(
        semi_major_axis=semi_major_axis,
        eccentricity=eccentricity,
        inclination=inclination,
        raan=raan % TWO_PI,
        arg_perigee=arg_perigee % TWO_PI,
        true_anomaly=nu % TWO_PI,
        mean_anomaly=mean_anomaly % TWO_PI,
    )
