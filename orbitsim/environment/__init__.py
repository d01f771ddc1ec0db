"""Space environment models: solar ephemeris and Earth shadow."""

from orbitsim.environment.eclipse import (
    EclipseType,
    ShadowModel,
    is_in_shadow,
    shadow_margin,
    shadow_state,
)
from orbitsim.environment.sun import sun_direction, sun_position_km

__all__ = [
    "EclipseType",
    "ShadowModel",
    "is_in_shadow",
    "shadow_margin",
    "shadow_state",
    "sun_direction",
    "sun_position_km",
]
