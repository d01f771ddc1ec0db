"""Tests for the analytic solar ephemeris."""

from datetime import datetime, timezone
import math

import numpy as np
import pytest
from astropy import units as u
from astropy.coordinates import get_sun
from astropy.time import Time
from astropy.utils.iers import conf as iers_conf

from orbitsim.dynamics.time_system import Epoch
from orbitsim.environment.sun import AU_KM, sun_direction, sun_position_km

# Use built-in IERS data to avoid network downloads and timeouts
iers_conf.auto_download = False

DATES = [
    datetime(2000, 1, 1, 12, tzinfo=timezone.utc),
    datetime(2020, 7, 12, 21, 16, tzinfo=timezone.utc),
    datetime(2024, 3, 20, 3, 6, tzinfo=timezone.utc),
    datetime(2025, 12, 21, 15, 3, tzinfo=timezone.utc),
]


class TestSunPosition:
    """Tests for sun_position_km and sun_direction."""

    @pytest.mark.parametrize("dt", DATES)
    def test_direction_matches_astropy(self, dt):
        """Direction agrees with astropy within the precession of date."""
        sun = get_sun(Time(dt))
        expected = sun.cartesian.xyz.to_value(u.km)
        expected = expected / np.linalg.norm(expected)
        actual = sun_direction(Epoch.from_datetime(dt))
        angle = math.degrees(math.acos(min(1.0, float(np.dot(actual, expected)))))
        assert angle < 0.5

    @pytest.mark.parametrize("dt", DATES)
    def test_distance_matches_astropy(self, dt):
        """Distance agrees with astropy to 0.1%."""
        sun = get_sun(Time(dt))
        expected = float(np.linalg.norm(sun.cartesian.xyz.to_value(u.km)))
        actual = float(np.linalg.norm(sun_position_km(Epoch.from_datetime(dt))))
        assert actual == pytest.approx(expected, rel=1e-3)

    def test_distance_near_one_au(self):
        """The Sun is always within 2% of 1 AU."""
        epoch = Epoch.from_datetime(DATES[0])
        for day in range(0, 366, 30):
            r = np.linalg.norm(sun_position_km(epoch.plus_seconds(day * 86400.0)))
            assert 0.98 * AU_KM < r < 1.02 * AU_KM

    def test_march_equinox_direction(self):
        """Near the March equinox the Sun lies close to +X."""
        direction = sun_direction(Epoch.from_datetime(DATES[2]))
        assert direction[0] > 0.999
        assert abs(direction[2]) < 0.01

    def test_june_solstice_declination(self):
        """Near the June solstice the declination is about +23.44 deg."""
        direction = sun_direction(Epoch.from_datetime(datetime(2024, 6, 20, 20, 51, tzinfo=timezone.utc)))
        assert math.degrees(math.asin(direction[2])) == pytest.approx(23.44, abs=0.05)
