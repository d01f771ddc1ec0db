"""Typed failures raised by the propagation, maneuver and detection layers.

Each error carries a ``kind`` so callers can branch on the failure mode
without parsing messages.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from orbitsim.simulation.trajectory import Trajectory


class PropagationErrorKind(str, Enum):
    """Ways an SGP4 propagation can fail."""

    INVALID_ELEMENTS = "invalid_elements"
    KEPLER_NON_CONVERGENCE = "kepler_non_convergence"
    DECAYED = "decayed"


class ManeuverErrorKind(str, Enum):
    """Ways a maneuver or maneuver schedule can be rejected."""

    UNBOUND_ORBIT = "unbound_orbit"
    UNORDERED_SCHEDULE = "unordered_schedule"


class DetectionErrorKind(str, Enum):
    """Precondition violations reported by the event detector."""

    UNSORTED_TRAJECTORY = "unsorted_trajectory"


class OrbitSimError(Exception):
    """Base class for all orbitsim errors."""

    pass


class PropagationError(OrbitSimError):
    """SGP4 could not produce a physical state."""

    def __init__(
        self,
        kind: PropagationErrorKind,
        message: str,
        tsince_minutes: Optional[float] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.tsince_minutes = tsince_minutes


class ManeuverError(OrbitSimError):
    """A maneuver produced an unusable orbit or the schedule is invalid."""

    def __init__(
        self,
        kind: ManeuverErrorKind,
        message: str,
        time: Optional[float] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.time = time  # Maneuver epoch [s since mission epoch]


class DetectionError(OrbitSimError):
    """Malformed input handed to the event detector."""

    def __init__(self, kind: DetectionErrorKind, message: str):
        super().__init__(message)
        self.kind = kind


def format_mission_time(seconds: float) -> str:
    """Format a mission-relative time for error messages.

    Offsets of a day or more are shown in days (``t=+3.000 d``), shorter
    ones in seconds.
    """
    if abs(seconds) >= 86400.0:
        return f"t={seconds / 86400.0:+.3f} d"
    return f"t={seconds:+.1f} s"


class SimulationAborted(OrbitSimError):
    """A simulation run hit a terminal error.

    Carries the trajectory computed up to the failure so callers can see how
    far the mission plan stayed valid.

    Attributes:
        cause: The underlying PropagationError or ManeuverError
        time: Failing time [s since mission epoch]
        trajectory: Samples computed before the failure
    """

    def __init__(
        self,
        cause: OrbitSimError,
        time: float,
        trajectory: "Trajectory",
        maneuver_label: Optional[str] = None,
    ):
        self.cause = cause
        self.time = time
        self.trajectory = trajectory
        self.maneuver_label = maneuver_label
        super().__init__(self._describe())

    @property
    def kind(self) -> Enum:
        """Kind of the underlying error."""
        return self.cause.kind  # type: ignore[attr-defined]

    def _describe(self) -> str:
        when = format_mission_time(self.time)
        kind = self.kind
        if kind == ManeuverErrorKind.UNBOUND_ORBIT:
            name = f" '{self.maneuver_label}'" if self.maneuver_label else ""
            return f"maneuver{name} at {when} produced an unbound orbit"
        if kind == PropagationErrorKind.DECAYED:
            return f"orbit decayed at {when}: {self.cause}"
        if kind == PropagationErrorKind.KEPLER_NON_CONVERGENCE:
            return f"Kepler solve did not converge at {when}: {self.cause}"
        return f"simulation aborted at {when} ({kind.value}): {self.cause}"
