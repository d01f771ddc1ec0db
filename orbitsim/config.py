"""Propagation, simulation and event-detection configuration.

Defaults are defined here and can be overridden via config file.
"""

from dataclasses import dataclass, field
from pathlib import Path
import json
from typing import Optional

from orbitsim.dynamics.constants import EarthConstants, get_gravity_model


@dataclass
class PropagationConfig:
    """SGP4 parameters."""
    gravity_model: str = "wgs72"  # wgs72old, wgs72 or wgs84
    opsmode: str = "i"  # "i" improved, "a" AFSPC compatibility
    kepler_max_iterations: int = 10


@dataclass
class SimulationConfig:
    """Simulation run parameters."""
    sample_step: float = 60.0  # Sample grid spacing [s]
    horizon: float = 86400.0  # Default run length [s]
    # Runs stop when altitude drops below this [km]; None disables
    deorbit_altitude_km: Optional[float] = 100.0
    max_workers: int = 1  # Worker threads for segment sampling


@dataclass
class DetectionConfig:
    """Event detection parameters."""
    time_tolerance: float = 1.0  # Crossing time accuracy [s]
    max_iterations: int = 60  # Bisection iteration budget per crossing
    shadow_model: str = "cylindrical"  # cylindrical or conical
    max_workers: int = 1  # Worker threads for per-station link search


@dataclass
class LoggingConfig:
    """Logging parameters."""
    level: str = "INFO"


@dataclass
class Config:
    """Root configuration."""
    propagation: PropagationConfig = field(default_factory=PropagationConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def constants(self) -> EarthConstants:
        """Gravity model selected by ``propagation.gravity_model``."""
        return get_gravity_model(self.propagation.gravity_model)


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration from JSON file or return defaults.

    Args:
        path: Path to config JSON file. If None, returns defaults.

    Returns:
        Configuration object

    Raises:
        ValueError: If the file names an unknown gravity model or a
            non-positive detection tolerance or iteration budget
    """
    if path is None or not path.exists():
        return Config()

    with open(path) as f:
        data = json.load(f)

    # Build config from nested dict
    config = Config()

    if "propagation" in data:
        prop = data["propagation"]
        config.propagation.gravity_model = prop.get(
            "gravity_model", config.propagation.gravity_model
        )
        config.propagation.opsmode = prop.get("opsmode", config.propagation.opsmode)
        config.propagation.kepler_max_iterations = prop.get(
            "kepler_max_iterations", config.propagation.kepler_max_iterations
        )

    if "simulation" in data:
        sim = data["simulation"]
        config.simulation.sample_step = sim.get("sample_step", config.simulation.sample_step)
        config.simulation.horizon = sim.get("horizon", config.simulation.horizon)
        config.simulation.deorbit_altitude_km = sim.get(
            "deorbit_altitude_km", config.simulation.deorbit_altitude_km
        )
        config.simulation.max_workers = sim.get("max_workers", config.simulation.max_workers)

    if "detection" in data:
        det = data["detection"]
        config.detection.time_tolerance = det.get(
            "time_tolerance", config.detection.time_tolerance
        )
        config.detection.max_iterations = det.get(
            "max_iterations", config.detection.max_iterations
        )
        config.detection.shadow_model = det.get("shadow_model", config.detection.shadow_model)
        config.detection.max_workers = det.get("max_workers", config.detection.max_workers)

    if "logging" in data:
        config.logging.level = data["logging"].get("level", config.logging.level)

    # Fail on load rather than on first run
    config.constants()
    if not config.detection.time_tolerance > 0.0:
        raise ValueError(
            f"detection.time_tolerance must be positive, got {config.detection.time_tolerance}"
        )
    if config.detection.max_iterations < 1:
        raise ValueError(
            f"detection.max_iterations must be at least 1, got {config.detection.max_iterations}"
        )
    return config


# Default config file path
CONFIG_FILE = Path(__file__).parent.parent / "config.json"

# Global state
_config: Optional[Config] = None


def get_config() -> Config:
    """Get global configuration instance.

    Auto-loads from config.json if it exists.
    """
    global _config

    if _config is None:
        _config = load_config(CONFIG_FILE)

    return _config


def set_config(config: Config) -> None:
    """Set global configuration instance."""
    global _config
    _config = config


def reload_config() -> Config:
    """Force reload configuration from file."""
    global _config
    _config = load_config(CONFIG_FILE)
    return _config
