"""Simulation engine - runs scenarios end-to-end and produces reports.

The engine owns its store and event log; callers only ever hold scenario and
report ids or the immutable values returned to them.
"""

import copy
import logging
import math
import uuid
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from core.models import Room
from core.targets import get_target_environment
from simulation.config import DEFAULT, SimConfig
from simulation.config_builder import mirror_facility_configuration
from simulation.contamination import ContaminationModel, ContaminationRiskMap
from simulation.control import ControlStrategy, LoopConfig, LoopSimulator, LoopStabilityReport, Tolerances
from simulation.environment import EnvironmentalCurve, EnvironmentalModel
from simulation.errors import InvalidConfigurationError, ScenarioNotFoundError
from simulation.events import Deadline, EventCategory
from simulation.scenarios import ScenarioType, SimulationMode, SimulationReport, SimulationScenario
from services.event_log import SimulationLog
from services.store import SimulationStore

logger = logging.getLogger(__name__)

DISCLAIMER = "All outputs are model-based projections, not real-world guarantees."


@dataclass
class _RoomResult:
    """Everything one room contributes to a report."""

    curve: EnvironmentalCurve | None = None
    risk: ContaminationRiskMap | None = None
    loop: LoopStabilityReport | None = None
    warnings: list[str] = field(default_factory=list)


class SimulationEngine:
    """Scenario registry plus orchestration of the environmental, contamination and loop models."""

    def __init__(
        self,
        config: SimConfig = DEFAULT,
        store: SimulationStore | None = None,
        log: SimulationLog | None = None,
        max_workers: int = 1,
    ) -> None:
        self.config = config
        self.store = store or SimulationStore()
        self.log = log or SimulationLog(max_entries=config.log_max_entries)
        self.max_workers = max_workers

        self.environment = EnvironmentalModel(config, self.log)
        self.contamination = ContaminationModel(config, self.log)
        self.loops = LoopSimulator(config, self.log)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def create_scenario(
        self,
        name: str,
        description: str,
        type: ScenarioType | str,
        mode: SimulationMode | str,
        duration_minutes: float,
        rooms: Iterable[Room],
        parameters: dict[str, Any] | None = None,
    ) -> SimulationScenario:
        """Validate and register a scenario. Invalid input never reaches the store."""
        try:
            scenario_type = ScenarioType(type)
            scenario_mode = SimulationMode(mode)
        except ValueError as e:
            raise InvalidConfigurationError(str(e)) from e

        rooms = tuple(rooms)
        params = copy.deepcopy(dict(parameters or {}))
        self._validate(duration_minutes, rooms, params)

        scenario = SimulationScenario(
            id=f"scenario-{uuid.uuid4().hex[:12]}",
            name=name,
            description=description,
            type=scenario_type,
            mode=scenario_mode,
            duration_minutes=duration_minutes,
            rooms=rooms,
            parameters=params,
        )
        self.store.add_scenario(scenario)

        self.log.add(
            EventCategory.SIMULATION,
            f"Scenario created: {scenario.name}",
            {"scenario_id": scenario.id, "type": scenario.type, "mode": scenario.mode},
        )
        return scenario

    def _validate(self, duration_minutes: float, rooms: tuple[Room, ...], params: dict[str, Any]) -> None:
        if duration_minutes <= 0:
            raise InvalidConfigurationError(f"Scenario duration must be > 0 minutes (got {duration_minutes})")

        seen: set[str] = set()
        for room in rooms:
            if room.volume_m3 <= 0:
                raise InvalidConfigurationError(f"Room {room.id} volume must be > 0 (got {room.volume_m3})")
            if room.id in seen:
                raise InvalidConfigurationError(f"Duplicate room id {room.id}")
            seen.add(room.id)

        strategy = params.get("control_strategy")
        if strategy is not None and (not isinstance(strategy, str) or strategy not in set(ControlStrategy)):
            raise InvalidConfigurationError(f"Unknown control strategy {strategy!r}")
        for key in ("temp_tolerance", "humidity_tolerance", "co2_tolerance"):
            if key not in params:
                continue
            value = params[key]
            if isinstance(value, bool) or not isinstance(value, int | float):
                raise InvalidConfigurationError(f"{key} must be a number (got {value!r})")
            if not math.isfinite(value) or value <= 0:
                raise InvalidConfigurationError(f"{key} must be > 0 (got {value!r})")

    def list_scenarios(self) -> list[SimulationScenario]:
        return self.store.list_scenarios()

    def get_scenario(self, scenario_id: str) -> SimulationScenario | None:
        return self.store.get_scenario(scenario_id)

    def list_reports(self) -> list[SimulationReport]:
        return self.store.list_reports()

    def get_report(self, report_id: str) -> SimulationReport | None:
        return self.store.get_report(report_id)

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def run_simulation(self, scenario_id: str, timeout_s: float | None = None) -> SimulationReport:
        """Run every room of a scenario and store one new report.

        Raises ``ScenarioNotFoundError`` for unknown ids and
        ``SimulationTimeoutError`` when ``timeout_s`` elapses; neither stores
        a report.
        """
        scenario = self.store.get_scenario(scenario_id)
        if scenario is None:
            raise ScenarioNotFoundError(scenario_id)

        deadline = Deadline(timeout_s) if timeout_s is not None else None

        self.log.add(
            EventCategory.SIMULATION,
            f"Starting simulation for scenario: {scenario.name}",
            {"scenario_id": scenario.id, "type": scenario.type, "rooms": len(scenario.rooms)},
        )

        def run_room(room: Room) -> _RoomResult:
            return self._run_room(scenario, room, deadline)

        # Executor.map yields in submission order, so reports stay reproducible
        if self.max_workers > 1 and len(scenario.rooms) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(run_room, scenario.rooms))
        else:
            results = [run_room(room) for room in scenario.rooms]

        curves = tuple(r.curve for r in results if r.curve is not None)
        risks = tuple(r.risk for r in results if r.risk is not None)
        loops = tuple(r.loop for r in results if r.loop is not None)
        warnings = tuple(w for r in results for w in r.warnings)
        energy = sum(c.energy_usage_kwh for c in curves) + sum(lp.energy_usage_kwh for lp in loops)

        report = SimulationReport(
            id=f"report-{uuid.uuid4().hex[:12]}",
            scenario_id=scenario.id,
            scenario_name=scenario.name,
            timestamp=datetime.now(),
            duration_minutes=scenario.duration_minutes,
            room_ids=tuple(room.id for room in scenario.rooms),
            environmental_curves=curves,
            contamination_risks=risks,
            loop_stability=loops,
            energy_usage_kwh=round(energy, 3),
            summary=self.generate_summary(scenario, curves, risks, loops),
            warnings=warnings,
            recommendations=tuple(self._scenario_recommendations(scenario, risks)),
        )
        self.store.add_report(report)

        high_risk = sum(1 for r in risks if r.overall_risk == "high")
        self.log.add(
            EventCategory.SIMULATION,
            f"Simulation completed: {scenario.name}",
            {
                "report_id": report.id,
                "warnings": len(warnings),
                "energy_kwh": report.energy_usage_kwh,
                "high_risk_rooms": high_risk,
            },
        )
        return report

    def _run_room(self, scenario: SimulationScenario, room: Room, deadline: Deadline | None) -> _RoomResult:
        result = _RoomResult()

        if scenario.mode.runs_environment:
            curve = self.environment.simulate_time_series(room, scenario.duration_minutes, deadline=deadline)
            result.curve = curve
            if curve.stability != "stable":
                result.warnings.append(f"{room.name}: Environmental instability detected ({curve.stability})")
            result.risk = self.contamination.assess_contamination_risk(room, curve.data_points)
        else:
            result.risk = self.contamination.assess_contamination_risk(room)

        if result.risk.overall_risk == "high":
            result.warnings.append(f"{room.name}: High contamination risk (score: {result.risk.score})")

        if scenario.mode.runs_control_loop:
            loop_config = self._loop_config(scenario, room)
            if loop_config is not None:
                result.loop = self.loops.run_closed_loop_simulation(room, loop_config, deadline=deadline)
                if result.loop.stability != "stable":
                    result.warnings.append(f"{room.name}: Loop instability detected ({result.loop.stability})")
            else:
                logger.debug("Room %s: no complete target, skipping loop evaluation", room.id)

        return result

    def _loop_config(self, scenario: SimulationScenario, room: Room) -> LoopConfig | None:
        """Loop settings for a room, or None when its species/stage target is incomplete."""
        target = get_target_environment(room.species, room.stage)
        if not target.is_complete:
            return None

        cfg = self.config
        params = scenario.parameters
        return LoopConfig(
            room_id=room.id,
            duration_minutes=min(scenario.duration_minutes, cfg.loop_duration_cap_min),
            strategy=ControlStrategy(params.get("control_strategy", cfg.default_control_strategy)),
            target=target,
            tolerances=Tolerances(
                temperature=params.get("temp_tolerance", cfg.default_temp_tolerance_c),
                humidity=params.get("humidity_tolerance", cfg.default_humidity_tolerance_pct),
                co2=params.get("co2_tolerance", cfg.default_co2_tolerance_ppm),
            ),
            step_minutes=cfg.loop_step_min,
        )

    def _scenario_recommendations(
        self,
        scenario: SimulationScenario,
        risks: tuple[ContaminationRiskMap, ...],
    ) -> list[str]:
        recommendations: list[str] = []
        match scenario.type:
            case ScenarioType.OPTIMIZATION:
                recommendations.append("Review loop stability reports to tune control parameters")
                recommendations.append("Consider device scheduling to reduce energy consumption")
            case ScenarioType.CONTAMINATION:
                high_risk = sum(1 for r in risks if r.overall_risk == "high")
                if high_risk:
                    recommendations.append(f"{high_risk} room(s) require contamination mitigation measures")
            case _:
                pass
        return recommendations

    @staticmethod
    def generate_summary(
        scenario: SimulationScenario,
        curves: tuple[EnvironmentalCurve, ...],
        risks: tuple[ContaminationRiskMap, ...],
        loops: tuple[LoopStabilityReport, ...],
    ) -> str:
        parts = [
            f"Simulated {len(scenario.rooms)} room(s) over {scenario.duration_minutes:g} minutes "
            f"in {scenario.mode} mode."
        ]
        if curves:
            stable = sum(1 for c in curves if c.stability == "stable")
            parts.append(f"{stable}/{len(curves)} rooms showed stable environmental conditions.")
        if risks:
            high_risk = sum(1 for r in risks if r.overall_risk == "high")
            parts.append(f"{high_risk} room(s) flagged with high contamination risk.")
        if loops:
            stable = sum(1 for lp in loops if lp.stability == "stable")
            parts.append(f"{stable}/{len(loops)} control loops achieved stability.")
        parts.append(DISCLAIMER)
        return " ".join(parts)

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    def run_baseline_simulation(self, facility_name: str | None = None) -> SimulationReport:
        """Mirror the sample facility and run a one-hour time-series baseline."""
        snapshot = mirror_facility_configuration(facility_name, events=self.log)
        scenario = self.create_scenario(
            name="Baseline Facility Simulation",
            description="Current state simulation across all rooms",
            type=ScenarioType.BASELINE,
            mode=SimulationMode.TIME_SERIES,
            duration_minutes=60,
            rooms=snapshot.rooms,
        )
        return self.run_simulation(scenario.id)
