"""Tests for trajectories and element segments."""

import numpy as np
import pytest

from orbitsim.dynamics.sgp4 import Sgp4Propagator
from orbitsim.dynamics.state import Frame, StateVector
from orbitsim.dynamics.tle import ISS_TLE, elements_from_tle
from orbitsim.simulation.trajectory import ElementSegment, Trajectory


@pytest.fixture
def elements():
    return elements_from_tle(*ISS_TLE)


@pytest.fixture
def propagator(elements) -> Sgp4Propagator:
    return Sgp4Propagator(elements)


def sampled(propagator: Sgp4Propagator, times) -> list[StateVector]:
    return [propagator.propagate(t / 60.0) for t in times]


class TestElementSegment:
    """Tests for ElementSegment."""

    def test_state_at_applies_offset(self, elements, propagator):
        """Mission time is shifted by the element epoch offset."""
        segment = ElementSegment(0.0, 600.0, elements, propagator, element_offset=-120.0)
        expected = propagator.propagate(2.0 + 5.0)
        assert segment.state_at(300.0).isclose(expected, pos_tol=0.0, vel_tol=0.0)

    def test_truncated_shortens_end(self, elements, propagator):
        segment = ElementSegment(0.0, 600.0, elements, propagator, element_offset=0.0)
        assert segment.truncated(300.0).end == 300.0
        assert segment.truncated(900.0).end == 600.0


class TestTrajectory:
    """Tests for Trajectory container behavior."""

    @pytest.fixture
    def trajectory(self, elements, propagator) -> Trajectory:
        times = [0.0, 60.0, 120.0, 180.0]
        return Trajectory(elements.epoch, times, sampled(propagator, times))

    def test_length_and_iteration(self, trajectory):
        """Iteration yields (time, state) pairs in order."""
        assert len(trajectory) == 4
        times = [t for t, _ in trajectory]
        assert times == [0.0, 60.0, 120.0, 180.0]
        assert trajectory.start_time == 0.0
        assert trajectory.end_time == 180.0

    def test_times_read_only(self, trajectory):
        """The times array cannot be modified."""
        with pytest.raises(ValueError):
            trajectory.times[0] = 5.0

    def test_mismatched_lengths_raise(self, elements, propagator):
        with pytest.raises(ValueError):
            Trajectory(elements.epoch, [0.0, 60.0], sampled(propagator, [0.0]))

    def test_is_sorted(self, elements, propagator):
        """is_sorted detects non-increasing times."""
        times = [0.0, 120.0, 60.0]
        unsorted = Trajectory(elements.epoch, times, sampled(propagator, times))
        assert not unsorted.is_sorted()
        duplicate = Trajectory(elements.epoch, [0.0, 0.0], sampled(propagator, [0.0, 0.0]))
        assert not duplicate.is_sorted()

    def test_empty(self, elements):
        empty = Trajectory(elements.epoch, [], [])
        assert empty.is_empty()
        assert empty.is_sorted()
        assert empty.to_dict_list() == []

    def test_hermite_interpolation_close_to_propagation(self, trajectory, propagator):
        """Without segments, states between samples are interpolated."""
        interpolated = trajectory.state_at(90.0)
        exact = propagator.propagate(1.5)
        assert np.linalg.norm(interpolated.position - exact.position) < 0.01
        assert np.linalg.norm(interpolated.velocity - exact.velocity) < 1e-4
        assert interpolated.frame == Frame.TEME

    def test_state_at_sample_returns_sample(self, trajectory):
        assert trajectory.state_at(60.0) is trajectory[1]
        assert trajectory.state_at(180.0) is trajectory[3]

    def test_state_at_outside_span_raises(self, trajectory):
        with pytest.raises(ValueError):
            trajectory.state_at(-1.0)
        with pytest.raises(ValueError):
            trajectory.state_at(181.0)

    def test_segments_used_for_resampling(self, elements, propagator):
        """With segments, state_at re-propagates exactly."""
        times = [0.0, 60.0]
        segment = ElementSegment(0.0, 60.0, elements, propagator, element_offset=0.0)
        trajectory = Trajectory(elements.epoch, times, sampled(propagator, times), [segment])
        assert trajectory.state_at(30.0).isclose(propagator.propagate(0.5), pos_tol=0.0, vel_tol=0.0)

    def test_resampler_used_without_segments(self, elements, propagator):
        """A supplied resampler takes over from interpolation."""
        times = [0.0, 60.0]
        trajectory = Trajectory(
            elements.epoch,
            times,
            sampled(propagator, times),
            resampler=lambda t: propagator.propagate(t / 60.0),
        )
        assert trajectory.state_at(30.0).isclose(propagator.propagate(0.5), pos_tol=0.0, vel_tol=0.0)

    def test_from_states_derives_times(self, elements, propagator):
        """Times come from the state epochs."""
        states = sampled(propagator, [0.0, 90.0])
        trajectory = Trajectory.from_states(elements.epoch, states)
        np.testing.assert_allclose(trajectory.times, [0.0, 90.0], atol=1e-5)

    def test_to_dict_list(self, trajectory):
        """Samples serialize with altitude and speed."""
        rows = trajectory.to_dict_list()
        assert len(rows) == 4
        assert rows[1]["time"] == 60.0
        assert 300.0 < rows[1]["altitude"] < 500.0
        assert len(rows[1]["position"]) == 3
