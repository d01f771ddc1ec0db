"""Ground station link and sunlight window detection.

Scans the sampled trajectory for sign changes of a scalar signal, then
refines each crossing by re-evaluating the trajectory between samples:
1. Linear interpolation between the bracketing samples gives a seed time
2. The seed is accepted if the signal brackets it at +/- tolerance/2
3. Otherwise bisection narrows the crossing to the time tolerance
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
import math
from typing import Callable, Iterable, Optional

from orbitsim.config import Config, get_config
from orbitsim.dynamics.constants import EarthConstants
from orbitsim.dynamics.state import StateVector
from orbitsim.dynamics.time_system import TimeSystem
from orbitsim.environment.eclipse import ShadowModel
from orbitsim.errors import DetectionError, DetectionErrorKind
from orbitsim.prediction.models import GroundStation, Window, WindowKind
from orbitsim.simulation.trajectory import Trajectory
from orbitsim.utils.coordinates import FrameTransforms

logger = logging.getLogger(__name__)

Signal = Callable[[StateVector], float]

GOLDEN_RATIO = (math.sqrt(5) - 1) / 2


@dataclass(frozen=True)
class _Interval:
    """Stretch of the trajectory over which the signal keeps one sign."""
    start: float
    end: float
    inside: bool
    start_detected: bool
    end_detected: bool


class EventDetector:
    """Finds link and sunlight windows on a sampled trajectory.

    Results depend only on the trajectory and the detector settings; the
    detector keeps no state between calls.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        constants: Optional[EarthConstants] = None,
        time_system: Optional[TimeSystem] = None,
    ):
        """Initialize event detector.

        Args:
            config: Configuration object (uses global config if None)
            constants: Reference constants (defaults to the time system's,
                else the configured gravity model)
            time_system: Source of Earth rotation angle

        Raises:
            ValueError: If the time tolerance is not positive or the iteration
                budget is below one
        """
        self._config = config or get_config()
        if constants is None:
            constants = time_system.constants if time_system is not None else self._config.constants()
        self._transforms = FrameTransforms(time_system or TimeSystem(constants), constants)

        detection = self._config.detection
        if not detection.time_tolerance > 0.0:
            raise ValueError(f"time_tolerance must be positive, got {detection.time_tolerance}")
        if detection.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {detection.max_iterations}")
        self._tolerance = detection.time_tolerance
        self._max_iterations = detection.max_iterations
        self._shadow_model = ShadowModel(detection.shadow_model)
        self._max_workers = detection.max_workers

    @property
    def transforms(self) -> FrameTransforms:
        return self._transforms

    def elevation_margin(self, state: StateVector, station: GroundStation) -> float:
        """Elevation above the station mask [deg]."""
        look = self._transforms.to_topocentric(state, station)
        return look.elevation_deg - station.min_elevation_deg

    def illumination_margin(self, state: StateVector) -> float:
        """Distance outside the Earth's shadow [km], negative in shadow."""
        return self._transforms.illumination_margin(state, self._shadow_model)

    def find_link_windows(self, trajectory: Trajectory, station: GroundStation) -> list[Window]:
        """Find intervals where the station sees the satellite above its mask.

        Args:
            trajectory: Time-ordered trajectory
            station: Ground station

        Returns:
            Link windows in time order, each with maximum elevation and
            AOS/LOS azimuths

        Raises:
            DetectionError: If trajectory times are not strictly increasing
        """
        self._check(trajectory)

        def signal(state: StateVector) -> float:
            return self.elevation_margin(state, station)

        windows = []
        for interval in self._intervals(trajectory, signal):
            if not interval.inside:
                continue
            max_elev, max_elev_time = self._find_max_elevation(
                trajectory, station, interval.start, interval.end
            )
            aos = self._transforms.to_topocentric(trajectory.state_at(interval.start), station)
            los = self._transforms.to_topocentric(trajectory.state_at(interval.end), station)
            windows.append(Window(
                kind=WindowKind.LINK,
                start=interval.start,
                end=interval.end,
                station=station.name,
                start_detected=interval.start_detected,
                end_detected=interval.end_detected,
                max_elevation_deg=max_elev,
                max_elevation_time=max_elev_time,
                aos_azimuth_deg=aos.azimuth_deg,
                los_azimuth_deg=los.azimuth_deg,
            ))

        logger.debug("%d link windows for %s", len(windows), station.name)
        return windows

    def find_all_link_windows(
        self,
        trajectory: Trajectory,
        stations: Iterable[GroundStation],
        max_workers: Optional[int] = None,
    ) -> dict[str, list[Window]]:
        """Link windows for several stations, searched in parallel.

        Returns:
            Mapping of station name to its windows, in the given station order

        Raises:
            ValueError: Two stations share a name
        """
        self._check(trajectory)
        stations = list(stations)
        names = [station.name for station in stations]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate ground station names: {duplicates}")
        workers = max_workers or self._max_workers

        if workers > 1 and len(stations) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(
                    lambda station: self.find_link_windows(trajectory, station), stations
                ))
        else:
            results = [self.find_link_windows(trajectory, station) for station in stations]

        return {station.name: windows for station, windows in zip(stations, results)}

    def find_sunlight_windows(self, trajectory: Trajectory) -> list[Window]:
        """Partition the trajectory span into alternating sunlit and eclipse windows.

        Penumbra counts as eclipse under the conical shadow model.

        Raises:
            DetectionError: If trajectory times are not strictly increasing
        """
        self._check(trajectory)
        return [
            Window(
                kind=WindowKind.SUNLIT if interval.inside else WindowKind.ECLIPSE,
                start=interval.start,
                end=interval.end,
                start_detected=interval.start_detected,
                end_detected=interval.end_detected,
            )
            for interval in self._intervals(trajectory, self.illumination_margin)
        ]

    def find_eclipse_windows(self, trajectory: Trajectory) -> list[Window]:
        """Eclipse windows only."""
        return [
            window
            for window in self.find_sunlight_windows(trajectory)
            if window.kind == WindowKind.ECLIPSE
        ]

    def _check(self, trajectory: Trajectory) -> None:
        if not trajectory.is_sorted():
            raise DetectionError(
                DetectionErrorKind.UNSORTED_TRAJECTORY,
                "trajectory sample times must be strictly increasing",
            )

    def _intervals(self, trajectory: Trajectory, signal: Signal) -> list[_Interval]:
        """Split the trajectory span at each refined sign change of ``signal``.

        The signal counts as inside when it is >= 0.
        """
        if trajectory.is_empty():
            return []

        times = trajectory.times.tolist()
        values = [signal(state) for state in trajectory.states]

        intervals = []
        inside = values[0] >= 0.0
        start = times[0]
        start_detected = False

        for i in range(1, len(times)):
            now = values[i] >= 0.0
            if now == inside:
                continue
            crossing = self._refine_crossing(
                trajectory, signal, times[i - 1], times[i], values[i - 1], values[i]
            )
            intervals.append(_Interval(start, crossing, inside, start_detected, True))
            start = crossing
            start_detected = True
            inside = now

        intervals.append(_Interval(start, times[-1], inside, start_detected, False))
        return intervals

    def _refine_crossing(
        self,
        trajectory: Trajectory,
        signal: Signal,
        low_time: float,
        high_time: float,
        low_value: float,
        high_value: float,
    ) -> float:
        """Locate a sign change of ``signal`` between two samples.

        Args:
            trajectory: Trajectory used to re-evaluate states between samples
            signal: Scalar signal, inside when >= 0
            low_time: Sample time before the crossing
            high_time: Sample time after the crossing
            low_value: Signal at low_time
            high_value: Signal at high_time

        Returns:
            Time of the first inside state after an outside one, or the last
            inside state before an outside one, within the tolerance
        """
        tolerance = self._tolerance
        low_inside = low_value >= 0.0

        def is_inside(t: float) -> bool:
            return signal(trajectory.state_at(t)) >= 0.0

        if high_time - low_time <= tolerance:
            return (low_time + high_time) / 2

        # Linear interpolation seed
        seed = low_time + (high_time - low_time) * low_value / (low_value - high_value)
        before = max(low_time, seed - tolerance / 2)
        after = min(high_time, seed + tolerance / 2)
        before_ok = is_inside(before) == low_inside
        after_ok = is_inside(after) != low_inside
        if before_ok and after_ok:
            return seed

        # Narrow the bracket with whichever check failed
        if not before_ok:
            high_time = before
        else:
            low_time = after

        iterations = 0
        while high_time - low_time > tolerance:
            if iterations >= self._max_iterations:
                logger.warning(
                    "Crossing refinement stopped after %d iterations at [%.3f, %.3f] s",
                    iterations,
                    low_time,
                    high_time,
                )
                break
            mid_time = (low_time + high_time) / 2
            if is_inside(mid_time) == low_inside:
                low_time = mid_time
            else:
                high_time = mid_time
            iterations += 1

        return (low_time + high_time) / 2

    def _find_max_elevation(
        self,
        trajectory: Trajectory,
        station: GroundStation,
        start_time: float,
        end_time: float,
        num_samples: int = 20,
    ) -> tuple[float, float]:
        """Find maximum elevation and its time during a link window.

        Uses sampling followed by golden section search.

        Returns:
            (max_elevation [deg], max_elevation_time [s]) tuple
        """

        def elevation(t: float) -> float:
            return self._transforms.to_topocentric(trajectory.state_at(t), station).elevation_deg

        if end_time <= start_time:
            return elevation(start_time), start_time

        best_elev = -90.0
        best_time = start_time

        dt = (end_time - start_time) / num_samples
        for i in range(num_samples + 1):
            t = start_time + i * dt
            elev = elevation(t)
            if elev > best_elev:
                best_elev = elev
                best_time = t

        # Refine with golden section search around best sample
        low = max(start_time, best_time - dt)
        high = min(end_time, best_time + dt)

        iterations = 0
        while high - low > self._tolerance:
            if iterations >= self._max_iterations:
                logger.warning(
                    "Max elevation search stopped after %d iterations at [%.3f, %.3f] s",
                    iterations,
                    low,
                    high,
                )
                break
            mid1 = high - GOLDEN_RATIO * (high - low)
            mid2 = low + GOLDEN_RATIO * (high - low)

            if elevation(mid1) > elevation(mid2):
                high = mid2
            else:
                low = mid1
            iterations += 1

        final_time = (low + high) / 2
        final_elev = elevation(final_time)
        if final_elev < best_elev:
            return best_elev, best_time
        return final_elev, final_time
