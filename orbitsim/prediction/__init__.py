"""Link and sunlight window prediction."""

from orbitsim.prediction.event_detector import EventDetector
from orbitsim.prediction.models import MAKINOHARA, GroundStation, Window, WindowKind

__all__ = ["EventDetector", "GroundStation", "MAKINOHARA", "Window", "WindowKind"]
