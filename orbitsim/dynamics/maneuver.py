"""Impulsive maneuvers.

A maneuver changes velocity instantaneously at a fixed position. The
post-burn state is converted to osculating Keplerian elements, which are
then used as the new SGP4 mean elements at the maneuver epoch. SGP4 mean
elements are not osculating elements, so propagation after a maneuver
carries a short-period offset (tens of km in LEO); this is an accepted
limitation of the model.
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
import math
from typing import Iterable, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from orbitsim.dynamics.constants import EarthConstants, WGS72
from orbitsim.dynamics.elements import MeanElementSet
from orbitsim.dynamics.kepler import rv_to_coe
from orbitsim.dynamics.state import Frame, StateVector
from orbitsim.errors import ManeuverError, ManeuverErrorKind

logger = logging.getLogger(__name__)


class ManeuverFrame(str, Enum):
    """Frame a delta-v is expressed in."""

    INERTIAL = "inertial"  # TEME axes
    VNC = "vnc"  # Velocity, orbit normal, co-normal (V x N)
    RSW = "rsw"  # Radial, along-track, cross-track


@dataclass(frozen=True)
class Maneuver:
    """Impulsive burn.

    Attributes:
        time: Burn epoch [s since mission epoch]
        delta_v: Velocity change [km/s] in ``frame`` axes
        frame: Axes of ``delta_v``
        label: Optional name used in logs and error messages
    """
    time: float
    delta_v: tuple[float, float, float]
    frame: ManeuverFrame = ManeuverFrame.VNC
    label: str = ""

    def __post_init__(self):
        dv = tuple(float(x) for x in self.delta_v)
        if len(dv) != 3:
            raise ValueError(f"delta_v must have 3 components, got {len(dv)}")
        if not all(math.isfinite(x) for x in dv) or not math.isfinite(self.time):
            raise ValueError("maneuver time and delta_v must be finite")
        object.__setattr__(self, "delta_v", dv)
        object.__setattr__(self, "frame", ManeuverFrame(self.frame))

    @property
    def magnitude(self) -> float:
        """Delta-v magnitude [km/s]."""
        return math.sqrt(sum(x * x for x in self.delta_v))

    def describe(self) -> str:
        return f"'{self.label}'" if self.label else f"at t={self.time:+.1f} s"


def local_to_inertial(state: StateVector, frame: ManeuverFrame) -> NDArray[np.float64]:
    """Rotation matrix whose columns are the local axes in inertial coordinates.

    Args:
        state: Inertial state defining the local frame
        frame: Local frame

    Returns:
        3x3 matrix mapping local components to inertial components
    """
    if frame == ManeuverFrame.INERTIAL:
        return np.eye(3)

    r = state.position
    v = state.velocity
    h = np.cross(r, v)
    h_norm = np.linalg.norm(h)
    if h_norm == 0.0:
        raise ValueError("local frame undefined for a rectilinear state")
    w = h / h_norm

    if frame == ManeuverFrame.VNC:
        v_hat = v / np.linalg.norm(v)
        c_hat = np.cross(v_hat, w)
        return np.column_stack([v_hat, w, c_hat])

    r_hat = r / np.linalg.norm(r)
    s_hat = np.cross(w, r_hat)
    return np.column_stack([r_hat, s_hat, w])


def apply_impulse(
    state: StateVector,
    delta_v: Sequence[float],
    frame: ManeuverFrame = ManeuverFrame.VNC,
) -> StateVector:
    """Add a velocity change to an inertial state, holding position fixed.

    Args:
        state: Pre-burn state (TEME)
        delta_v: Velocity change [km/s] in ``frame`` axes
        frame: Axes of ``delta_v``

    Returns:
        Post-burn state at the same epoch

    Raises:
        ValueError: If the state is not inertial
    """
    if state.frame != Frame.TEME:
        raise ValueError(f"impulses apply to inertial states, got {state.frame.value}")
    dv_inertial = local_to_inertial(state, frame) @ np.asarray(delta_v, dtype=np.float64)
    return state.with_velocity(state.velocity + dv_inertial)


def state_to_elements(
    state: StateVector,
    constants: EarthConstants = WGS72,
    template: Optional[MeanElementSet] = None,
    time: Optional[float] = None,
) -> MeanElementSet:
    """Derive a new mean element set from an inertial state.

    Osculating elements are used directly as mean elements. Mean motion is
    formed with the constant set's ``xke`` so the result is consistent with
    the propagator using the same constants.

    Args:
        state: Post-maneuver TEME state
        constants: Gravity model
        template: Element set whose drag terms and satellite number carry over
        time: Mission time of the state [s], used in error reports

    Returns:
        MeanElementSet valid at ``state.epoch``

    Raises:
        ManeuverError: UNBOUND_ORBIT if e >= 1 or the semi-major axis is not positive
    """
    coe = rv_to_coe(state.position, state.velocity, constants.mu)
    if not coe.is_bound:
        raise ManeuverError(
            ManeuverErrorKind.UNBOUND_ORBIT,
            f"post-maneuver orbit is unbound (e={coe.eccentricity:.6f}, "
            f"a={coe.semi_major_axis:.3f} km)",
            time=time,
        )

    a_er = coe.semi_major_axis / constants.radius_km
    mean_motion = constants.xke / a_er**1.5  # [rad/min]
    return MeanElementSet(
        epoch=state.epoch,
        inclination=coe.inclination,
        raan=coe.raan,
        eccentricity=coe.eccentricity,
        arg_perigee=coe.arg_perigee,
        mean_anomaly=coe.mean_anomaly,
        mean_motion=mean_motion,
        bstar=template.bstar if template else 0.0,
        ndot=template.ndot if template else 0.0,
        nddot=template.nddot if template else 0.0,
        satnum=template.satnum if template else "",
    )


def validate_schedule(maneuvers: Iterable[Maneuver]) -> list[Maneuver]:
    """Check that maneuver epochs are strictly increasing.

    Returns:
        The maneuvers as a list

    Raises:
        ManeuverError: UNORDERED_SCHEDULE on a duplicate or out-of-order epoch
    """
    schedule = list(maneuvers)
    for prev, cur in zip(schedule, schedule[1:]):
        if cur.time <= prev.time:
            problem = "duplicates" if cur.time == prev.time else "precedes"
            raise ManeuverError(
                ManeuverErrorKind.UNORDERED_SCHEDULE,
                f"maneuver {cur.describe()} at t={cur.time:+.3f} s {problem} "
                f"maneuver {prev.describe()} at t={prev.time:+.3f} s",
                time=cur.time,
            )
    return schedule


@dataclass
class ManeuverModel:
    """Applies maneuvers and re-derives elements for one constant set."""
    constants: EarthConstants = field(default=WGS72)

    def execute(
        self,
        state: StateVector,
        maneuver: Maneuver,
        elements: MeanElementSet,
    ) -> tuple[StateVector, MeanElementSet]:
        """Apply a maneuver to the state it occurs at.

        Args:
            state: Pre-burn TEME state at the maneuver epoch
            maneuver: Burn to apply
            elements: Element set in force before the burn

        Returns:
            (post-burn state, new element set)

        Raises:
            ManeuverError: UNBOUND_ORBIT
        """
        post = apply_impulse(state, maneuver.delta_v, maneuver.frame)
        new_elements = state_to_elements(post, self.constants, elements, maneuver.time)
        logger.info(
            "Maneuver %s applied: |dv|=%.4f km/s, period %.2f -> %.2f min, e %.5f -> %.5f",
            maneuver.describe(),
            maneuver.magnitude,
            elements.period_minutes,
            new_elements.period_minutes,
            elements.eccentricity,
            new_elements.eccentricity,
        )
        return post, new_elements
