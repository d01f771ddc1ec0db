"""Tests for link and sunlight window detection."""

from datetime import datetime, timezone
import logging
import math

import numpy as np
import pytest

from orbitsim.config import Config, DetectionConfig
from orbitsim.dynamics.constants import WGS72
from orbitsim.dynamics.state import Frame, StateVector
from orbitsim.dynamics.time_system import Epoch, TimeSystem
from orbitsim.dynamics.tle import ISS_TLE, elements_from_tle
from orbitsim.errors import DetectionError, DetectionErrorKind
from orbitsim.prediction.event_detector import EventDetector
from orbitsim.prediction.models import GroundStation, WindowKind
from orbitsim.simulation.engine import SimulationEngine
from orbitsim.simulation.trajectory import Trajectory
from orbitsim.utils.coordinates import dcm_teme_to_ecef

EPOCH = Epoch.from_datetime(datetime(2024, 3, 20, 0, 0, tzinfo=timezone.utc))
TIME_SYSTEM = TimeSystem(WGS72)
EQUATOR_STATION = GroundStation("equator", 0.0, 0.0, min_elevation_deg=10.0)


class EquatorialOrbit:
    """Circular orbit in the equatorial plane, described in the Earth-fixed frame.

    The satellite's Earth-fixed longitude is ``phase0 + rate * t``, so the
    elevation seen from a station on the equator is known in closed form.
    """

    def __init__(self, altitude_km: float, phase0: float, rate: float = None):
        self.radius = WGS72.radius_km + altitude_km
        self.phase0 = phase0
        mean_motion = math.sqrt(WGS72.mu / self.radius**3)
        self.rate = rate if rate is not None else mean_motion - WGS72.rotation_rate

    def state(self, t: float) -> StateVector:
        phase = self.phase0 + self.rate * t
        r_ecef = self.radius * np.array([math.cos(phase), math.sin(phase), 0.0])
        v_ecef = self.radius * self.rate * np.array([-math.sin(phase), math.cos(phase), 0.0])
        epoch = EPOCH.plus_seconds(t)
        dcm = dcm_teme_to_ecef(TIME_SYSTEM.earth_rotation_angle(epoch))
        omega = np.array([0.0, 0.0, WGS72.rotation_rate])
        return StateVector(
            Frame.TEME,
            dcm.T @ r_ecef,
            dcm.T @ (v_ecef + np.cross(omega, r_ecef)),
            epoch,
        )

    def trajectory(self, end: float, step: float = 60.0) -> Trajectory:
        times = list(np.arange(0.0, end, step)) + [end]
        return Trajectory(
            EPOCH, times, [self.state(t) for t in times], constants=WGS72, resampler=self.state
        )

    def crossing_angle(self, mask_deg: float) -> float:
        """Central angle at which the elevation equals the mask."""
        m = math.radians(mask_deg)
        return math.acos(WGS72.radius_km * math.cos(m) / self.radius) - m


@pytest.fixture
def detector() -> EventDetector:
    return EventDetector(Config(), time_system=TIME_SYSTEM)


class TestLinkWindowsAnalytic:
    """Link windows against closed-form crossing times."""

    @pytest.fixture
    def orbit(self) -> EquatorialOrbit:
        return EquatorialOrbit(altitude_km=500.0, phase0=-1.0)

    def test_single_pass_refined_to_tolerance(self, detector, orbit):
        """One pass yields one window at the true crossing times."""
        trajectory = orbit.trajectory(end=2.0 / orbit.rate)
        windows = detector.find_link_windows(trajectory, EQUATOR_STATION)

        lam = orbit.crossing_angle(EQUATOR_STATION.min_elevation_deg)
        aos = (-lam - orbit.phase0) / orbit.rate
        los = (lam - orbit.phase0) / orbit.rate

        assert len(windows) == 1
        window = windows[0]
        assert window.kind == WindowKind.LINK
        assert window.station == "equator"
        assert window.start == pytest.approx(aos, abs=1.0)
        assert window.end == pytest.approx(los, abs=1.0)
        assert window.start_detected and window.end_detected

    def test_boundaries_not_on_sample_grid(self, detector, orbit):
        """Refined times fall between samples."""
        trajectory = orbit.trajectory(end=2.0 / orbit.rate)
        window = detector.find_link_windows(trajectory, EQUATOR_STATION)[0]
        assert window.start % 60.0 != 0.0

    def test_max_elevation_at_overhead(self, detector, orbit):
        """The pass goes through zenith halfway between AOS and LOS."""
        trajectory = orbit.trajectory(end=2.0 / orbit.rate)
        window = detector.find_link_windows(trajectory, EQUATOR_STATION)[0]
        overhead = -orbit.phase0 / orbit.rate
        assert window.max_elevation_deg > 89.0
        assert window.max_elevation_time == pytest.approx(overhead, abs=1.0)
        assert window.start <= window.max_elevation_time <= window.end

    def test_aos_los_azimuths(self, detector, orbit):
        """An eastward pass rises in the west and sets in the east."""
        trajectory = orbit.trajectory(end=2.0 / orbit.rate)
        window = detector.find_link_windows(trajectory, EQUATOR_STATION)[0]
        assert window.aos_azimuth_deg == pytest.approx(270.0, abs=0.01)
        assert window.los_azimuth_deg == pytest.approx(90.0, abs=0.01)

    def test_tighter_tolerance(self, orbit):
        """The tolerance setting controls crossing accuracy."""
        config = Config(detection=DetectionConfig(time_tolerance=0.01))
        detector = EventDetector(config, time_system=TIME_SYSTEM)
        trajectory = orbit.trajectory(end=2.0 / orbit.rate)
        window = detector.find_link_windows(trajectory, EQUATOR_STATION)[0]
        aos = (-orbit.crossing_angle(10.0) - orbit.phase0) / orbit.rate
        assert window.start == pytest.approx(aos, abs=0.01)

    def test_open_start(self, detector, orbit):
        """A trajectory starting inside a pass has an undetected start."""
        overhead = -orbit.phase0 / orbit.rate
        full = orbit.trajectory(end=2.0 / orbit.rate)
        times = [t for t in full.times.tolist() if t >= overhead]
        trajectory = Trajectory(
            EPOCH, times, [orbit.state(t) for t in times], resampler=orbit.state
        )
        windows = detector.find_link_windows(trajectory, EQUATOR_STATION)
        assert len(windows) == 1
        assert not windows[0].start_detected
        assert windows[0].start == times[0]
        assert windows[0].end_detected

    def test_open_end(self, detector, orbit):
        """A pass still in progress at the end is reported open-ended."""
        overhead = -orbit.phase0 / orbit.rate
        full = orbit.trajectory(end=2.0 / orbit.rate)
        times = [t for t in full.times.tolist() if t <= overhead]
        trajectory = Trajectory(
            EPOCH, times, [orbit.state(t) for t in times], resampler=orbit.state
        )
        window = detector.find_link_windows(trajectory, EQUATOR_STATION)[0]
        assert window.start_detected
        assert not window.end_detected
        assert window.end == times[-1]


class TestDetectorSettings:
    """Refinement settings and iteration budgets."""

    @pytest.mark.parametrize(
        "detection",
        [
            DetectionConfig(time_tolerance=0.0),
            DetectionConfig(time_tolerance=-0.5),
            DetectionConfig(time_tolerance=float("nan")),
            DetectionConfig(max_iterations=0),
        ],
    )
    def test_invalid_settings_rejected(self, detection):
        with pytest.raises(ValueError):
            EventDetector(Config(detection=detection), time_system=TIME_SYSTEM)

    def test_tolerance_below_float_resolution_terminates(self, caplog):
        """Refinement stops at the iteration budget when the tolerance cannot be met."""
        config = Config(detection=DetectionConfig(time_tolerance=1e-15, max_iterations=60))
        detector = EventDetector(config, time_system=TIME_SYSTEM)
        orbit = EquatorialOrbit(altitude_km=500.0, phase0=-1.0)
        trajectory = orbit.trajectory(end=2.0 / orbit.rate)

        with caplog.at_level(logging.WARNING, logger="orbitsim.prediction.event_detector"):
            windows = detector.find_link_windows(trajectory, EQUATOR_STATION)

        aos = (-orbit.crossing_angle(10.0) - orbit.phase0) / orbit.rate
        assert len(windows) == 1
        assert windows[0].start == pytest.approx(aos, abs=1e-3)
        assert windows[0].max_elevation_deg > 89.0
        assert "Max elevation search stopped after 60 iterations" in caplog.text


class TestLinkWindowEdgeCases:
    """Edge cases of link detection."""

    def test_entirely_inside_single_window(self, detector):
        """A satellite fixed above the station gives one open window."""
        geostationary = EquatorialOrbit(altitude_km=35786.0, phase0=0.0, rate=0.0)
        trajectory = geostationary.trajectory(end=7200.0)
        windows = detector.find_link_windows(trajectory, EQUATOR_STATION)
        assert len(windows) == 1
        assert windows[0].start == 0.0
        assert windows[0].end == 7200.0
        assert not windows[0].start_detected
        assert not windows[0].end_detected

    def test_never_visible(self, detector):
        """A satellite on the far side produces no windows."""
        far_side = EquatorialOrbit(altitude_km=35786.0, phase0=math.pi, rate=0.0)
        assert detector.find_link_windows(far_side.trajectory(end=3600.0), EQUATOR_STATION) == []

    def test_empty_trajectory(self, detector):
        """An empty trajectory yields no events."""
        empty = Trajectory(EPOCH, [], [])
        assert detector.find_link_windows(empty, EQUATOR_STATION) == []
        assert detector.find_sunlight_windows(empty) == []

    def test_unsorted_trajectory_raises(self, detector):
        """Unsorted input is rejected once at entry."""
        orbit = EquatorialOrbit(altitude_km=500.0, phase0=0.0)
        times = [0.0, 120.0, 60.0]
        trajectory = Trajectory(EPOCH, times, [orbit.state(t) for t in times])
        with pytest.raises(DetectionError) as exc_info:
            detector.find_link_windows(trajectory, EQUATOR_STATION)
        assert exc_info.value.kind == DetectionErrorKind.UNSORTED_TRAJECTORY
        with pytest.raises(DetectionError):
            detector.find_sunlight_windows(trajectory)


class TestSunlightWindows:
    """Sunlight and eclipse windows on a propagated ISS trajectory."""

    @pytest.fixture(scope="class")
    def trajectory(self) -> Trajectory:
        elements = elements_from_tle(*ISS_TLE)
        return SimulationEngine(Config()).run(elements, end=86400.0, step=60.0)

    def test_windows_partition_span(self, detector, trajectory):
        """Sunlit and eclipse windows alternate and cover the whole span."""
        windows = detector.find_sunlight_windows(trajectory)
        assert windows[0].start == trajectory.start_time
        assert windows[-1].end == trajectory.end_time
        for a, b in zip(windows, windows[1:]):
            assert a.end == b.start
            assert a.kind != b.kind

    def test_eclipse_durations(self, detector, trajectory):
        """No ISS eclipse outlasts 40 minutes."""
        for window in detector.find_eclipse_windows(trajectory):
            assert window.kind == WindowKind.ECLIPSE
            assert 0.0 < window.duration() < 40 * 60.0

    def test_window_kind_matches_shadow(self, detector, trajectory):
        """The midpoint of each window is in the matching illumination state."""
        for window in detector.find_sunlight_windows(trajectory):
            state = trajectory.state_at((window.start + window.end) / 2)
            in_shadow = detector.transforms.is_in_shadow(state)
            assert in_shadow == (window.kind == WindowKind.ECLIPSE)

    def test_idempotent(self, detector, trajectory):
        """Detection is a pure function of the trajectory."""
        assert detector.find_sunlight_windows(trajectory) == detector.find_sunlight_windows(trajectory)

    def test_conical_model_eclipses_longer(self, trajectory):
        """Counting penumbra as shadow never shortens the total eclipse time."""
        cylindrical = EventDetector(Config(), time_system=TIME_SYSTEM)
        conical = EventDetector(
            Config(detection=DetectionConfig(shadow_model="conical")), time_system=TIME_SYSTEM
        )
        total_cylindrical = sum(w.duration() for w in cylindrical.find_eclipse_windows(trajectory))
        total_conical = sum(w.duration() for w in conical.find_eclipse_windows(trajectory))
        assert total_conical >= total_cylindrical


class TestMultipleStations:
    """Per-station parallel search."""

    def test_parallel_matches_individual(self, detector):
        """Parallel search gives the same windows as one station at a time."""
        elements = elements_from_tle(*ISS_TLE)
        trajectory = SimulationEngine(Config()).run(elements, end=43200.0, step=60.0)
        stations = [
            GroundStation("Makinohara", 34.74, 138.22),
            GroundStation("Svalbard", 78.23, 15.39, min_elevation_deg=0.0),
            GroundStation("Santiago", -33.15, -70.67),
        ]
        combined = detector.find_all_link_windows(trajectory, stations, max_workers=3)
        assert list(combined) == ["Makinohara", "Svalbard", "Santiago"]
        for station in stations:
            assert combined[station.name] == detector.find_link_windows(trajectory, station)

    def test_duplicate_names_rejected(self, detector):
        """Results are keyed by name, so two stations may not share one."""
        elements = elements_from_tle(*ISS_TLE)
        trajectory = SimulationEngine(Config()).run(elements, end=600.0, step=60.0)
        stations = [
            GroundStation("Makinohara", 34.74, 138.22),
            GroundStation("Makinohara", -33.15, -70.67),
        ]
        with pytest.raises(ValueError, match="Duplicate ground station names"):
            detector.find_all_link_windows(trajectory, stations)
