"""Time-ordered trajectory produced by one simulation run."""

from bisect import bisect_right
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from orbitsim.dynamics.constants import EarthConstants, WGS72
from orbitsim.dynamics.elements import MeanElementSet
from orbitsim.dynamics.state import Frame, StateVector
from orbitsim.dynamics.time_system import Epoch

if TYPE_CHECKING:
    from orbitsim.dynamics.maneuver import Maneuver
    from orbitsim.dynamics.sgp4 import Sgp4Propagator


@dataclass(frozen=True)
class ElementSegment:
    """Interval over which one mean element set is in force.

    Attributes:
        start: First mission time the elements apply [s]
        end: Last mission time the elements apply [s]
        elements: Mean elements for the interval
        propagator: Propagator built from ``elements``
        element_offset: Element epoch relative to the mission epoch [s]
        maneuver: Maneuver that produced the elements (None for the initial set)
        initial_state: Post-burn state at ``start`` when ``maneuver`` is set
    """
    start: float
    end: float
    elements: MeanElementSet
    propagator: "Sgp4Propagator"
    element_offset: float
    maneuver: Optional["Maneuver"] = None
    initial_state: Optional[StateVector] = None

    def state_at(self, t: float) -> StateVector:
        """Propagate the segment's elements to mission time ``t``."""
        return self.propagator.propagate((t - self.element_offset) / 60.0)

    def truncated(self, end: float) -> "ElementSegment":
        return ElementSegment(
            start=self.start,
            end=min(self.end, end),
            elements=self.elements,
            propagator=self.propagator,
            element_offset=self.element_offset,
            maneuver=self.maneuver,
            initial_state=self.initial_state,
        )


def _hermite(t0, t1, s0: StateVector, s1: StateVector, t: float) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Cubic Hermite interpolation of position and velocity."""
    h = t1 - t0
    x = (t - t0) / h
    x2 = x * x
    x3 = x2 * x
    h00 = 2 * x3 - 3 * x2 + 1
    h10 = x3 - 2 * x2 + x
    h01 = -2 * x3 + 3 * x2
    h11 = x3 - x2
    position = h00 * s0.position + h10 * h * s0.velocity + h01 * s1.position + h11 * h * s1.velocity
    d00 = (6 * x2 - 6 * x) / h
    d10 = 3 * x2 - 4 * x + 1
    d01 = (-6 * x2 + 6 * x) / h
    d11 = 3 * x2 - 2 * x
    velocity = d00 * s0.position + d10 * s0.velocity + d01 * s1.position + d11 * s1.velocity
    return position, velocity


class Trajectory:
    """Read-only sequence of states sampled over a mission horizon.

    ``times`` holds each sample's time in seconds since ``epoch``. Samples
    are expected to be strictly increasing in time; the event detector
    checks this on entry.
    """

    def __init__(
        self,
        epoch: Epoch,
        times: Sequence[float],
        states: Sequence[StateVector],
        segments: Sequence[ElementSegment] = (),
        constants: EarthConstants = WGS72,
        deorbit_time: Optional[float] = None,
        resampler: Optional[Callable[[float], StateVector]] = None,
    ):
        """Initialize trajectory.

        Args:
            epoch: Mission epoch that sample times are relative to
            times: Sample times [s since epoch]
            states: TEME states, one per time
            segments: Element segments for re-propagation between samples
            constants: Constants the states were produced with
            deorbit_time: Time the run stopped on reaching the deorbit altitude
            resampler: Callable giving the state at any time, used when there
                are no segments

        Raises:
            ValueError: If times and states differ in length
        """
        if len(times) != len(states):
            raise ValueError(f"{len(times)} times but {len(states)} states")
        self._epoch = epoch
        self._times = np.array(times, dtype=np.float64)
        self._times.flags.writeable = False
        self._states = tuple(states)
        self._segments = tuple(segments)
        self._segment_starts = [s.start for s in self._segments]
        self._constants = constants
        self._deorbit_time = deorbit_time
        self._resampler = resampler

    @classmethod
    def from_states(
        cls,
        epoch: Epoch,
        states: Sequence[StateVector],
        constants: EarthConstants = WGS72,
    ) -> "Trajectory":
        """Build a trajectory from states alone; times come from their epochs."""
        times = [s.epoch.seconds_since(epoch) for s in states]
        return cls(epoch, times, states, constants=constants)

    @property
    def epoch(self) -> Epoch:
        return self._epoch

    @property
    def times(self) -> NDArray[np.float64]:
        """Sample times [s since epoch] (read-only)."""
        return self._times

    @property
    def states(self) -> tuple[StateVector, ...]:
        return self._states

    @property
    def segments(self) -> tuple[ElementSegment, ...]:
        return self._segments

    @property
    def constants(self) -> EarthConstants:
        return self._constants

    @property
    def deorbit_time(self) -> Optional[float]:
        return self._deorbit_time

    @property
    def start_time(self) -> float:
        return float(self._times[0])

    @property
    def end_time(self) -> float:
        return float(self._times[-1])

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[tuple[float, StateVector]]:
        return zip(self._times.tolist(), self._states)

    def __getitem__(self, index: int) -> StateVector:
        return self._states[index]

    def is_empty(self) -> bool:
        return len(self._states) == 0

    def is_sorted(self) -> bool:
        """True if sample times are strictly increasing."""
        return bool(np.all(np.diff(self._times) > 0.0))

    def state_at(self, t: float) -> StateVector:
        """State at any mission time within the sampled span.

        Re-propagates with the element segment in force at ``t`` (the
        post-maneuver segment at a maneuver epoch), else calls the
        resampler. Without either, the bracketing samples are interpolated
        with a cubic Hermite spline.

        Raises:
            ValueError: If ``t`` lies outside the sampled span
        """
        if self.is_empty() or not self.start_time <= t <= self.end_time:
            raise ValueError(f"t={t} s outside trajectory span")

        if self._segments:
            index = max(bisect_right(self._segment_starts, t) - 1, 0)
            return self._segments[index].state_at(t)
        if self._resampler is not None:
            return self._resampler(t)

        i = int(np.searchsorted(self._times, t, side="right")) - 1
        if i >= len(self._states) - 1 or self._times[i] == t:
            return self._states[i]
        position, velocity = _hermite(
            float(self._times[i]), float(self._times[i + 1]), self._states[i], self._states[i + 1], t
        )
        return StateVector(Frame.TEME, position, velocity, self._epoch.plus_seconds(t))

    def to_dict_list(self) -> list[dict[str, Any]]:
        """Samples as JSON-serializable dicts (km, km/s, s)."""
        radius = self._constants.radius_km
        return [
            {
                "time": t,
                "position": state.position.tolist(),
                "velocity": state.velocity.tolist(),
                "altitude": state.radius - radius,
                "speed": state.speed,
            }
            for t, state in self
        ]
