"""Tests for Earth shadow models."""

import math

import numpy as np
import pytest
from hypothesis import assume, given, strategies as st

from orbitsim.environment.eclipse import (
    EclipseType,
    ShadowModel,
    is_in_shadow,
    shadow_margin,
    shadow_state,
)
from orbitsim.environment.sun import AU_KM

EARTH_RADIUS = 6378.135
SUN = np.array([AU_KM, 0.0, 0.0])


class TestShadowState:
    """Tests for shadow classification."""

    @pytest.mark.parametrize("model", list(ShadowModel))
    def test_sun_side_is_sunlit(self, model):
        """A satellite between Earth and Sun is sunlit."""
        assert shadow_state(np.array([7000.0, 0.0, 0.0]), SUN, EARTH_RADIUS, model) == EclipseType.NONE

    @pytest.mark.parametrize("model", list(ShadowModel))
    def test_behind_earth_is_umbra(self, model):
        """A satellite directly behind Earth is in umbra."""
        assert shadow_state(np.array([-7000.0, 0.0, 0.0]), SUN, EARTH_RADIUS, model) == EclipseType.UMBRA

    @pytest.mark.parametrize("model", list(ShadowModel))
    def test_night_side_far_off_axis_is_sunlit(self, model):
        """Night-side points outside the shadow are sunlit."""
        sat = np.array([-7000.0, 7000.0, 0.0])
        assert shadow_state(sat, SUN, EARTH_RADIUS, model) == EclipseType.NONE

    def test_penumbra_only_in_conical_model(self):
        """Points just outside the Earth's radius are in penumbra for the conical model."""
        sat = np.array([-7000.0, 6400.0, 0.0])
        assert shadow_state(sat, SUN, EARTH_RADIUS, ShadowModel.CYLINDRICAL) == EclipseType.NONE
        assert shadow_state(sat, SUN, EARTH_RADIUS, ShadowModel.CONICAL) == EclipseType.PENUMBRA

    def test_penumbra_counts_as_shadow(self):
        sat = np.array([-7000.0, 6400.0, 0.0])
        assert is_in_shadow(sat, SUN, EARTH_RADIUS, ShadowModel.CONICAL)
        assert not is_in_shadow(sat, SUN, EARTH_RADIUS, ShadowModel.CYLINDRICAL)

    def test_unit_sun_vector_for_cylinder(self):
        """The cylindrical test only needs the Sun direction."""
        sat = np.array([-7000.0, 100.0, 0.0])
        assert is_in_shadow(sat, np.array([1.0, 0.0, 0.0]), EARTH_RADIUS)


class TestShadowMargin:
    """Tests for the signed illumination margin."""

    def test_margin_negative_in_umbra(self):
        margin = shadow_margin(np.array([-7000.0, 0.0, 0.0]), SUN, EARTH_RADIUS)
        assert margin == pytest.approx(-EARTH_RADIUS)

    def test_margin_positive_on_sun_side(self):
        assert shadow_margin(np.array([7000.0, 0.0, 0.0]), SUN, EARTH_RADIUS) > 0.0

    def test_margin_measures_distance_to_cylinder(self):
        """Behind the Earth the margin is the distance from the cylinder wall."""
        margin = shadow_margin(np.array([-7000.0, 6500.0, 0.0]), SUN, EARTH_RADIUS)
        assert margin == pytest.approx(6500.0 - EARTH_RADIUS)

    def test_margin_continuous_across_terminator(self):
        """The margin has no jump at the terminator plane."""
        before = shadow_margin(np.array([1e-6, 6500.0, 0.0]), SUN, EARTH_RADIUS)
        after = shadow_margin(np.array([-1e-6, 6500.0, 0.0]), SUN, EARTH_RADIUS)
        assert before == pytest.approx(after, abs=1e-5)

    @given(
        x=st.floats(min_value=-50000.0, max_value=50000.0),
        y=st.floats(min_value=-50000.0, max_value=50000.0),
        z=st.floats(min_value=-50000.0, max_value=50000.0),
        conical=st.booleans(),
    )
    def test_sign_matches_classification(self, x, y, z, conical):
        """Margin < 0 exactly when the satellite is in shadow."""
        sat = np.array([x, y, z])
        assume(math.sqrt(x * x + y * y + z * z) > EARTH_RADIUS + 100.0)
        model = ShadowModel.CONICAL if conical else ShadowModel.CYLINDRICAL
        margin = shadow_margin(sat, SUN, EARTH_RADIUS, model)
        assume(abs(margin) > 1e-6)
        assert (margin < 0.0) == is_in_shadow(sat, SUN, EARTH_RADIUS, model)
