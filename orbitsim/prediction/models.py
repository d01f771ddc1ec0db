"""Data models for ground stations and event windows."""

from dataclasses import dataclass
from enum import Enum
import math
from typing import Any, Optional


@dataclass(frozen=True)
class GroundStation:
    """Ground station definition."""

    name: str
    latitude_deg: float
    longitude_deg: float
    altitude_m: float = 0.0  # Site elevation above the ellipsoid [m]
    antenna_height_m: float = 0.0  # Antenna height above the site [m]
    min_elevation_deg: float = 5.0  # Visibility mask [deg]

    def __post_init__(self):
        if not -90.0 <= self.latitude_deg <= 90.0:
            raise ValueError(f"latitude {self.latitude_deg} outside [-90, 90] deg")
        if not -90.0 <= self.min_elevation_deg <= 90.0:
            raise ValueError(f"elevation mask {self.min_elevation_deg} outside [-90, 90] deg")

    @property
    def latitude_rad(self) -> float:
        return math.radians(self.latitude_deg)

    @property
    def longitude_rad(self) -> float:
        return math.radians(self.longitude_deg)

    @property
    def height_km(self) -> float:
        """Antenna height above the ellipsoid [km]."""
        return (self.altitude_m + self.antenna_height_m) / 1000.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "latitude": self.latitude_deg,
            "longitude": self.longitude_deg,
            "altitude": self.altitude_m,
            "antennaHeight": self.antenna_height_m,
            "minElevation": self.min_elevation_deg,
        }


# Predefined ground stations
MAKINOHARA = GroundStation(
    name="Makinohara",
    latitude_deg=34.74,
    longitude_deg=138.22,
    altitude_m=0.0,
    min_elevation_deg=5.0,
)


class WindowKind(str, Enum):
    """Kinds of event window."""

    LINK = "link"
    SUNLIT = "sunlit"
    ECLIPSE = "eclipse"


@dataclass(frozen=True)
class Window:
    """Half-open interval [start, end) during which a condition holds.

    Times are seconds since the mission epoch. ``start_detected`` is False
    when the condition already held at the first trajectory sample, and
    ``end_detected`` is False when it still held at the last one; the
    corresponding bound is then the trajectory's first or last time.
    """

    kind: WindowKind
    start: float
    end: float
    station: Optional[str] = None  # Owning ground station (LINK only)
    start_detected: bool = True
    end_detected: bool = True
    max_elevation_deg: Optional[float] = None  # LINK only
    max_elevation_time: Optional[float] = None  # LINK only
    aos_azimuth_deg: Optional[float] = None  # LINK only
    los_azimuth_deg: Optional[float] = None  # LINK only

    def duration(self) -> float:
        """Get window duration in seconds."""
        return self.end - self.start

    def contains(self, t: float) -> bool:
        return self.start <= t < self.end

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "startTime": self.start,
            "endTime": self.end,
            "startDetected": self.start_detected,
            "endDetected": self.end_detected,
            "duration": self.duration(),
        }
        if self.kind == WindowKind.LINK:
            d.update({
                "groundStationName": self.station,
                "maxElevation": self.max_elevation_deg,
                "maxElevationTime": self.max_elevation_time,
                "aosAzimuth": self.aos_azimuth_deg,
                "losAzimuth": self.los_azimuth_deg,
            })
        return d
