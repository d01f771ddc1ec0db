"""REST API endpoints for mission runs."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from orbitsim.config import get_config
from orbitsim.dynamics.maneuver import Maneuver
from orbitsim.dynamics.time_system import Epoch
from orbitsim.dynamics.tle import elements_from_tle
from orbitsim.errors import ManeuverError, SimulationAborted
from orbitsim.prediction.event_detector import EventDetector
from orbitsim.prediction.models import GroundStation
from orbitsim.simulation.engine import SimulationEngine


router = APIRouter(prefix="/api/mission", tags=["mission"])


class TLERequest(BaseModel):
    """TLE request."""
    # TLE lines are typically 69 characters but can vary slightly
    line1: str = Field(..., min_length=60, max_length=80)
    line2: str = Field(..., min_length=60, max_length=80)


class ManeuverRequest(BaseModel):
    """Impulsive maneuver."""
    time: float = Field(..., description="Burn time [s since mission epoch]")
    deltaV: list[float] = Field(..., min_length=3, max_length=3, description="Delta-v [km/s]")
    frame: str = "vnc"
    label: str = ""


class GroundStationRequest(BaseModel):
    """Ground station definition."""
    name: str
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=360)
    altitude: float = 0.0
    antennaHeight: float = 0.0
    minElevation: float = Field(5.0, ge=-90, le=90)


class RunRequest(TLERequest):
    """Mission run request."""
    epoch: Optional[str] = Field(None, description="Mission epoch (ISO 8601, defaults to TLE epoch)")
    start: float = 0.0
    end: Optional[float] = None
    step: Optional[float] = Field(None, gt=0)
    maneuvers: list[ManeuverRequest] = []
    groundStations: list[GroundStationRequest] = []


@router.post("/elements")
async def parse_elements(request: TLERequest):
    """Parse a TLE into mean elements."""
    try:
        elements = elements_from_tle(request.line1, request.line2, get_config().constants())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"status": "ok", "elements": elements.to_dict()}


@router.post("/run")
async def run_mission(request: RunRequest):
    """Propagate a TLE with maneuvers and detect link and sunlight windows."""
    config = get_config()
    try:
        elements = elements_from_tle(request.line1, request.line2, config.constants())
        epoch = Epoch.from_iso(request.epoch) if request.epoch else elements.epoch
        maneuvers = [
            Maneuver(m.time, tuple(m.deltaV), frame=m.frame, label=m.label)
            for m in request.maneuvers
        ]
        stations = [
            GroundStation(
                name=s.name,
                latitude_deg=s.latitude,
                longitude_deg=s.longitude,
                altitude_m=s.altitude,
                antenna_height_m=s.antennaHeight,
                min_elevation_deg=s.minElevation,
            )
            for s in request.groundStations
        ]
        names = [s.name for s in stations]
        if len(set(names)) != len(names):
            raise ValueError(f"Ground station names must be unique: {names}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    engine = SimulationEngine(config)
    try:
        trajectory = engine.run(
            elements,
            maneuvers,
            start=request.start,
            end=request.end,
            step=request.step,
            epoch=epoch,
        )
    except (ValueError, ManeuverError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SimulationAborted as e:
        logging.error(f"Mission run aborted: {e}", exc_info=True)
        return {
            "status": "aborted",
            "epoch": epoch.isoformat(),
            "error": {
                "kind": e.kind.value,
                "time": e.time,
                "message": str(e),
            },
            "samples": e.trajectory.to_dict_list(),
        }

    detector = EventDetector(config, constants=engine.constants)
    link_windows = detector.find_all_link_windows(trajectory, stations)
    sunlight_windows = detector.find_sunlight_windows(trajectory)

    return {
        "status": "ok",
        "epoch": epoch.isoformat(),
        "elements": elements.to_dict(),
        "samples": trajectory.to_dict_list(),
        "deorbitTime": trajectory.deorbit_time,
        "linkWindows": {
            name: [w.to_dict() for w in windows] for name, windows in link_windows.items()
        },
        "sunlightWindows": [w.to_dict() for w in sunlight_windows],
    }
