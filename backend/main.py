"""FastAPI entry point - thin layer over the domain."""

import dataclasses
import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from core.models import DeviceKind, DeviceStatus
from services import SimulationEngine
from simulation.config_builder import DeviceConfig, EnvironmentOverrides, RoomConfig, SubstrateConfig, build_room
from simulation.errors import InvalidConfigurationError, ScenarioNotFoundError, SimulationTimeoutError
from simulation.events import EventCategory
from simulation.scenarios import ScenarioType, SimulationMode, SimulationScenario

logging.basicConfig(level=logging.WARNING, format="%(name)s | %(message)s")
logging.getLogger("services.engine").setLevel(logging.INFO)
logging.getLogger("services.event_log").setLevel(logging.INFO)

app = FastAPI(title="Grow Room Simulation API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- module-level state, initialised at import time ---
engine = SimulationEngine()


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


@app.exception_handler(ScenarioNotFoundError)
async def _not_found(request: Request, exc: ScenarioNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidConfigurationError)
async def _invalid(request: Request, exc: InvalidConfigurationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(SimulationTimeoutError)
async def _timeout(request: Request, exc: SimulationTimeoutError) -> JSONResponse:
    return JSONResponse(status_code=504, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class DeviceIn(BaseModel):
    id: str | None = None
    kind: DeviceKind = DeviceKind.SENSOR
    status: DeviceStatus = DeviceStatus.OFF
    power_watts: float = 0.0
    effect_rate: float = 0.0


class SubstrateIn(BaseModel):
    type: str | None = None
    mass_kg: float | None = None
    moisture_percent: float | None = None
    co2_production_rate: float | None = None
    heat_production_rate: float | None = None


class EnvironmentIn(BaseModel):
    temperature_c: float | None = None
    humidity_percent: float | None = None
    co2_ppm: float | None = None
    airflow_cfm: float | None = None
    light_lux: float | None = None


class RoomIn(BaseModel):
    id: str
    name: str
    species: str | None = None
    stage: str | None = None
    volume_m3: float | None = None
    devices: list[DeviceIn] = Field(default_factory=list)
    substrate: SubstrateIn | None = None
    initial_environment: EnvironmentIn | None = None

    def to_config(self) -> RoomConfig:
        return RoomConfig(
            id=self.id,
            name=self.name,
            species=self.species,
            stage=self.stage,
            volume_m3=self.volume_m3,
            devices=[DeviceConfig(**d.model_dump()) for d in self.devices],
            substrate=SubstrateConfig(**self.substrate.model_dump()) if self.substrate else None,
            initial_environment=(
                EnvironmentOverrides(**self.initial_environment.model_dump()) if self.initial_environment else None
            ),
        )


class ScenarioCreate(BaseModel):
    name: str
    description: str = ""
    type: ScenarioType = ScenarioType.WHAT_IF
    mode: SimulationMode = SimulationMode.TIME_SERIES
    duration_minutes: float = 60.0
    rooms: list[RoomIn] = Field(default_factory=list)
    parameters: dict[str, Any] = Field(default_factory=dict)


class BaselineRequest(BaseModel):
    facility_name: str | None = None


# ---------------------------------------------------------------------------
# Scenarios and reports
# ---------------------------------------------------------------------------


def _scenario_payload(scenario: SimulationScenario) -> dict[str, Any]:
    """JSON-ready scenario. The read-only parameter view is copied out as a plain dict."""
    payload = {f.name: getattr(scenario, f.name) for f in dataclasses.fields(scenario)}
    payload["rooms"] = [dataclasses.asdict(room) for room in scenario.rooms]
    payload["parameters"] = dict(scenario.parameters)
    return payload


@app.post("/scenarios", status_code=201)
def create_scenario(body: ScenarioCreate) -> dict[str, Any]:
    scenario = engine.create_scenario(
        name=body.name,
        description=body.description,
        type=body.type,
        mode=body.mode,
        duration_minutes=body.duration_minutes,
        rooms=[build_room(r.to_config()) for r in body.rooms],
        parameters=body.parameters,
    )
    return _scenario_payload(scenario)


@app.get("/scenarios")
def list_scenarios() -> list[dict[str, Any]]:
    return [_scenario_payload(s) for s in engine.list_scenarios()]


@app.get("/scenarios/{scenario_id}")
def get_scenario(scenario_id: str) -> dict[str, Any]:
    scenario = engine.get_scenario(scenario_id)
    if scenario is None:
        raise HTTPException(status_code=404, detail=f"Scenario {scenario_id} not found")
    return _scenario_payload(scenario)


@app.post("/scenarios/{scenario_id}/run")
def run_scenario(scenario_id: str, timeout_s: float | None = None) -> dict[str, Any]:
    """Run a scenario and return the new report."""
    report = engine.run_simulation(scenario_id, timeout_s=timeout_s)
    return dataclasses.asdict(report)


@app.get("/reports")
def list_reports() -> list[dict[str, Any]]:
    return [dataclasses.asdict(r) for r in engine.list_reports()]


@app.get("/reports/{report_id}")
def get_report(report_id: str) -> dict[str, Any]:
    report = engine.get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"Report {report_id} not found")
    return dataclasses.asdict(report)


@app.post("/baseline")
def run_baseline(body: BaselineRequest | None = None) -> dict[str, Any]:
    """Mirror the sample facility and run a one-hour baseline."""
    report = engine.run_baseline_simulation(body.facility_name if body else None)
    return dataclasses.asdict(report)


# ---------------------------------------------------------------------------
# Event log
# ---------------------------------------------------------------------------


@app.get("/log")
def get_log(category: EventCategory | None = None, limit: int = 100) -> list[dict[str, Any]]:
    entries = engine.log.entries(category)
    return [dataclasses.asdict(e) for e in entries[-limit:]] if limit > 0 else []


@app.get("/log/export")
def export_log(category: EventCategory | None = None) -> Response:
    return Response(content=engine.log.export_json(category), media_type="application/json")
