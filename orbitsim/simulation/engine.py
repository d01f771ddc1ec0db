"""Simulation engine.

Samples a satellite's state over a mission horizon on a fixed time grid,
applying impulsive maneuvers at their epochs.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging
import math
from typing import Iterable, Optional

from orbitsim.config import Config, get_config
from orbitsim.dynamics.constants import EarthConstants
from orbitsim.dynamics.elements import MeanElementSet
from orbitsim.dynamics.maneuver import Maneuver, ManeuverModel, validate_schedule
from orbitsim.dynamics.sgp4 import Sgp4Propagator
from orbitsim.dynamics.state import StateVector
from orbitsim.dynamics.time_system import Epoch
from orbitsim.errors import ManeuverError, OrbitSimError, PropagationError, SimulationAborted
from orbitsim.simulation.trajectory import ElementSegment, Trajectory

logger = logging.getLogger(__name__)

# Grid points this close to a maneuver epoch merge into its boundary sample [s]
BOUNDARY_EPS = 1e-6


def build_time_grid(start: float, end: float, step: float) -> list[float]:
    """Sample times start, start + step, ... plus ``end``.

    Args:
        start: First sample time [s]
        end: Last sample time [s]
        step: Grid spacing [s]

    Returns:
        Increasing list of times that always includes ``start`` and ``end``

    Raises:
        ValueError: If step is not positive or end precedes start
    """
    if not step > 0.0 or not math.isfinite(step):
        raise ValueError(f"sample step must be positive, got {step}")
    if end < start:
        raise ValueError(f"end time {end} precedes start time {start}")

    count = int(math.floor((end - start) / step + 1e-9))
    times = [start + k * step for k in range(count + 1)]
    if end - times[-1] > BOUNDARY_EPS:
        times.append(end)
    else:
        times[-1] = end
    return times


@dataclass
class _SegmentJob:
    """Sampling work for one element segment."""
    segment: ElementSegment
    times: list[float]
    include_initial: bool
    # Planning failure at the segment's end (propagating to or applying the next maneuver)
    failure: Optional[tuple[OrbitSimError, float, Optional[Maneuver]]] = None
    states: list[StateVector] = field(default_factory=list)
    error: Optional[tuple[OrbitSimError, float]] = None


class SimulationEngine:
    """Runs SGP4 propagation over a time grid with a maneuver schedule.

    Each run is independent; the engine keeps no state between runs.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        constants: Optional[EarthConstants] = None,
        max_workers: Optional[int] = None,
    ):
        """Initialize simulation engine.

        Args:
            config: Configuration object (uses global config if None)
            constants: Gravity model (overrides config)
            max_workers: Worker threads for segment sampling (overrides config)
        """
        self._config = config or get_config()
        self._constants = constants or self._config.constants()
        self._max_workers = max_workers or self._config.simulation.max_workers
        self._maneuver_model = ManeuverModel(self._constants)

    @property
    def constants(self) -> EarthConstants:
        return self._constants

    def propagator(self, elements: MeanElementSet) -> Sgp4Propagator:
        """Build a propagator with the configured SGP4 options."""
        prop = self._config.propagation
        return Sgp4Propagator(
            elements,
            constants=self._constants,
            opsmode=prop.opsmode,
            kepler_max_iterations=prop.kepler_max_iterations,
        )

    def run(
        self,
        elements: MeanElementSet,
        maneuvers: Iterable[Maneuver] = (),
        start: float = 0.0,
        end: Optional[float] = None,
        step: Optional[float] = None,
        epoch: Optional[Epoch] = None,
    ) -> Trajectory:
        """Propagate over [start, end] applying maneuvers in order.

        Every maneuver inside the horizon is represented by exactly one
        sample: the post-burn state at its epoch. Maneuvers before ``start``
        are applied but not sampled and maneuvers after ``end`` are ignored.

        Args:
            elements: Initial mean elements
            maneuvers: Maneuvers with strictly increasing times
            start: Horizon start [s since mission epoch]
            end: Horizon end [s] (defaults to start + configured horizon)
            step: Sample spacing [s] (defaults to configured step)
            epoch: Mission epoch (defaults to the element epoch)

        Returns:
            Trajectory of TEME states. If the altitude falls below the
            configured deorbit altitude the run stops at that sample and
            ``deorbit_time`` is set.

        Raises:
            ManeuverError: UNORDERED_SCHEDULE if maneuver times do not increase
            SimulationAborted: If propagation or a maneuver fails; carries the
                trajectory up to the failure
            ValueError: If the horizon or step is invalid
        """
        sim = self._config.simulation
        epoch = epoch or elements.epoch
        end = start + sim.horizon if end is None else end
        step = sim.sample_step if step is None else step
        grid = build_time_grid(start, end, step)
        schedule = [m for m in validate_schedule(maneuvers) if m.time <= end + BOUNDARY_EPS]

        logger.info(
            "Simulation run: [%.1f, %.1f] s, step %.1f s, %d maneuvers",
            start,
            end,
            step,
            len(schedule),
        )

        jobs = self._plan(elements, schedule, epoch, start, end, grid)
        if self._max_workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                jobs = list(executor.map(self._sample, jobs))
        else:
            jobs = [self._sample(job) for job in jobs]

        return self._merge(jobs, epoch)

    def _plan(
        self,
        elements: MeanElementSet,
        schedule: list[Maneuver],
        epoch: Epoch,
        start: float,
        end: float,
        grid: list[float],
    ) -> list[_SegmentJob]:
        """Walk the maneuvers in order, deriving each segment's elements.

        Stops at the first maneuver that cannot be reached or applied; the
        failure is attached to the segment it ends.
        """
        jobs: list[_SegmentJob] = []
        current = elements
        seg_start = min(start, schedule[0].time) if schedule else start
        opening: Optional[Maneuver] = None
        initial_state: Optional[StateVector] = None

        def make_segment(seg_end: float) -> ElementSegment:
            return ElementSegment(
                start=seg_start,
                end=seg_end,
                elements=current,
                propagator=self.propagator(current),
                element_offset=current.epoch.seconds_since(epoch),
                maneuver=opening,
                initial_state=initial_state,
            )

        for maneuver in schedule:
            segment = make_segment(maneuver.time)
            job = self._job(segment, grid, start, last=False)
            jobs.append(job)
            try:
                pre = segment.state_at(maneuver.time)
                post, new_elements = self._maneuver_model.execute(pre, maneuver, current)
            except (PropagationError, ManeuverError) as e:
                job.failure = (e, maneuver.time, maneuver)
                return jobs
            current = new_elements
            seg_start = maneuver.time
            opening = maneuver
            initial_state = post

        jobs.append(self._job(make_segment(end), grid, start, last=True))
        return jobs

    @staticmethod
    def _job(segment: ElementSegment, grid: list[float], start: float, last: bool) -> _SegmentJob:
        """Select the grid times a segment is responsible for."""
        has_boundary = segment.maneuver is not None and segment.start >= start - BOUNDARY_EPS
        if has_boundary:
            lower = segment.start + BOUNDARY_EPS
        else:
            lower = max(segment.start, start) - BOUNDARY_EPS
        if last:
            times = [t for t in grid if t >= lower and t <= segment.end + BOUNDARY_EPS]
        else:
            times = [t for t in grid if t >= lower and t < segment.end - BOUNDARY_EPS]
        return _SegmentJob(segment=segment, times=times, include_initial=has_boundary)

    @staticmethod
    def _sample(job: _SegmentJob) -> _SegmentJob:
        """Propagate a segment at its sample times, stopping at the first error."""
        segment = job.segment
        if job.include_initial:
            job.states.append(segment.initial_state)
        for t in job.times:
            try:
                job.states.append(segment.state_at(t))
            except PropagationError as e:
                job.error = (e, t)
                break
        return job

    def _merge(self, jobs: list[_SegmentJob], epoch: Epoch) -> Trajectory:
        """Join segment samples in time order and apply stop conditions."""
        deorbit_altitude = self._config.simulation.deorbit_altitude_km
        radius = self._constants.radius_km
        times: list[float] = []
        states: list[StateVector] = []
        segments: list[ElementSegment] = []

        for job in jobs:
            segment = job.segment
            segments.append(segment)
            job_times = ([segment.start] if job.include_initial else []) + job.times

            for t, state in zip(job_times, job.states):
                times.append(t)
                states.append(state)
                if deorbit_altitude is not None and state.radius - radius < deorbit_altitude:
                    logger.info(
                        "Deorbit at t=%.1f s: altitude %.1f km below %.1f km",
                        t,
                        state.radius - radius,
                        deorbit_altitude,
                    )
                    segments[-1] = segment.truncated(t)
                    return Trajectory(epoch, times, states, segments, self._constants, deorbit_time=t)

            failure = None
            if job.error is not None:
                failure = (job.error[0], job.error[1], None)
            elif job.failure is not None:
                failure = job.failure
            if failure is not None:
                cause, t_fail, maneuver = failure
                segments[-1] = segment.truncated(t_fail)
                partial = Trajectory(epoch, times, states, segments, self._constants)
                aborted = SimulationAborted(
                    cause,
                    t_fail,
                    partial,
                    maneuver_label=maneuver.label if maneuver else None,
                )
                logger.warning("Simulation aborted: %s", aborted)
                raise aborted from cause

        logger.info("Simulation complete: %d samples", len(states))
        return Trajectory(epoch, times, states, segments, self._constants)
