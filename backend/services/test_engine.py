"""Scenario orchestration end to end."""

import dataclasses
from datetime import datetime

import pytest

from core.models import Device, DeviceKind, DeviceStatus, EnvironmentalState, Room, Substrate
from data import sample_room_configs
from services.engine import DISCLAIMER, SimulationEngine
from simulation.config_builder import build_room
from simulation.errors import InvalidConfigurationError, ScenarioNotFoundError, SimulationTimeoutError
from simulation.events import EventCategory
from simulation.scenarios import ScenarioType, SimulationMode

NOW = datetime(2025, 3, 1, 8, 0, 0)


def make_room(
    room_id: str = "room-e",
    temperature: float = 20.0,
    humidity: float = 60.0,
    co2: float = 800.0,
    airflow: float = 100.0,
    devices: tuple[Device, ...] = (),
    substrate: Substrate | None = None,
) -> Room:
    return Room(
        id=room_id,
        name=f"Room {room_id}",
        volume_m3=50.0,
        environmental_state=EnvironmentalState(
            temperature_c=temperature,
            humidity_percent=humidity,
            co2_ppm=co2,
            airflow_cfm=airflow,
            light_lux=0.0,
            timestamp=NOW,
        ),
        devices=devices,
        substrate=substrate,
    )


def strong_heater() -> Device:
    return Device(id="heater-1", kind=DeviceKind.HEATER, status=DeviceStatus.ON, power_watts=2000, effect_rate=60.0)


def high_risk_room() -> Room:
    return make_room(
        humidity=95.0,
        temperature=24.0,
        airflow=30.0,
        co2=4000.0,
        substrate=Substrate("straw", 15.0, 80.0, 60.0, 25.0),
    )


def sample_rooms() -> list[Room]:
    return [build_room(c, NOW) for c in sample_room_configs()]


def create(engine: SimulationEngine, mode: SimulationMode, rooms: list[Room], **kwargs):
    defaults = {"name": "Test", "description": "", "type": ScenarioType.WHAT_IF, "duration_minutes": 30}
    return engine.create_scenario(mode=mode, rooms=rooms, **(defaults | kwargs))


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------


def test_create_scenario_stores_and_logs() -> None:
    engine = SimulationEngine()
    scenario = create(engine, SimulationMode.SNAPSHOT, [make_room()])

    assert scenario.id.startswith("scenario-")
    assert engine.get_scenario(scenario.id) == scenario
    assert engine.list_scenarios() == [scenario]
    assert [e.message for e in engine.log.entries(EventCategory.SIMULATION)] == ["Scenario created: Test"]


def test_string_type_and_mode_are_accepted() -> None:
    scenario = SimulationEngine().create_scenario("S", "", "optimization", "stress-test", 10, [make_room()])
    assert scenario.type is ScenarioType.OPTIMIZATION
    assert scenario.mode is SimulationMode.STRESS_TEST


@pytest.mark.parametrize(
    "kwargs",
    [
        {"duration_minutes": 0},
        {"duration_minutes": -5},
        {"type": "unknown"},
        {"parameters": {"control_strategy": "fuzzy"}},
        {"parameters": {"temp_tolerance": 0}},
        {"parameters": {"temp_tolerance": "abc"}},
        {"parameters": {"co2_tolerance": None}},
        {"parameters": {"humidity_tolerance": True}},
        {"parameters": {"temp_tolerance": float("nan")}},
        {"parameters": {"control_strategy": ["pid"]}},
    ],
)
def test_invalid_scenarios_are_rejected(kwargs: dict) -> None:
    engine = SimulationEngine()
    with pytest.raises(InvalidConfigurationError):
        create(engine, SimulationMode.TIME_SERIES, [make_room()], **kwargs)
    assert engine.list_scenarios() == []


def test_invalid_rooms_are_rejected() -> None:
    engine = SimulationEngine()
    zero_volume = Room("z", "Z", 0.0, make_room().environmental_state)
    with pytest.raises(InvalidConfigurationError):
        create(engine, SimulationMode.SNAPSHOT, [zero_volume])
    with pytest.raises(InvalidConfigurationError):
        create(engine, SimulationMode.SNAPSHOT, [make_room("dup"), make_room("dup")])
    with pytest.raises(InvalidConfigurationError):
        create(engine, "hourly", [make_room()])


def test_scenario_parameters_are_read_only() -> None:
    engine = SimulationEngine()
    params = {"control_strategy": "pid", "temp_tolerance": 1.0}
    scenario = create(engine, SimulationMode.STRESS_TEST, sample_rooms()[:1], parameters=params)

    params["control_strategy"] = "fuzzy"
    params["temp_tolerance"] = "abc"
    assert dict(engine.get_scenario(scenario.id).parameters) == {"control_strategy": "pid", "temp_tolerance": 1.0}
    with pytest.raises(TypeError):
        scenario.parameters["control_strategy"] = "fuzzy"  # type: ignore[index]

    (loop,) = engine.run_simulation(scenario.id).loop_stability
    assert loop.id == "loop-room-1-pid"


def test_unknown_ids() -> None:
    engine = SimulationEngine()
    assert engine.get_scenario("scenario-missing") is None
    assert engine.get_report("report-missing") is None


# -----------------------------------------------------------------------------
# Runs
# -----------------------------------------------------------------------------


def test_run_unknown_scenario() -> None:
    engine = SimulationEngine()
    with pytest.raises(ScenarioNotFoundError, match="Scenario nope not found"):
        engine.run_simulation("nope")
    assert engine.list_reports() == []


def test_snapshot_and_time_series_use_different_inputs() -> None:
    engine = SimulationEngine()
    rooms = [make_room(devices=(strong_heater(),))]
    snapshot = engine.run_simulation(create(engine, SimulationMode.SNAPSHOT, rooms).id)
    series = engine.run_simulation(create(engine, SimulationMode.TIME_SERIES, rooms).id)

    assert snapshot.environmental_curves == ()
    assert snapshot.loop_stability == ()
    assert snapshot.contamination_risks[0].factors.temperature_fluctuation == 0.0
    assert snapshot.energy_usage_kwh == 0.0

    (curve,) = series.environmental_curves
    assert len(curve.data_points) == 31
    assert series.contamination_risks[0].factors.temperature_fluctuation > 5.0
    assert series.energy_usage_kwh == pytest.approx(1.0)


def test_every_run_appends_a_new_report() -> None:
    engine = SimulationEngine()
    scenario = create(engine, SimulationMode.TIME_SERIES, [make_room()])
    first = engine.run_simulation(scenario.id)
    second = engine.run_simulation(scenario.id)

    assert first.id != second.id
    assert engine.list_reports() == [second, first]
    assert engine.get_report(first.id) == first
    assert engine.store.reports_for(scenario.id) == [second, first]
    # Same inputs, same projection
    assert first.environmental_curves == second.environmental_curves
    assert first.contamination_risks == second.contamination_risks


def test_optimization_runs_capped_control_loops() -> None:
    engine = SimulationEngine()
    scenario = create(
        engine, SimulationMode.OPTIMIZATION, sample_rooms(), type=ScenarioType.OPTIMIZATION, duration_minutes=180
    )
    report = engine.run_simulation(scenario.id)

    assert [lp.id for lp in report.loop_stability] == ["loop-room-1-pid", "loop-room-2-pid"]
    assert all(lp.duration_minutes == 120 for lp in report.loop_stability)
    assert all(len(c.data_points) == 181 for c in report.environmental_curves)
    assert report.recommendations == (
        "Review loop stability reports to tune control parameters",
        "Consider device scheduling to reduce energy consumption",
    )
    expected = sum(c.energy_usage_kwh for c in report.environmental_curves) + sum(
        lp.energy_usage_kwh for lp in report.loop_stability
    )
    assert report.energy_usage_kwh == pytest.approx(expected, abs=1e-3)
    assert "control loops achieved stability" in report.summary


def test_loop_parameters_come_from_scenario() -> None:
    engine = SimulationEngine()
    scenario = create(
        engine,
        SimulationMode.STRESS_TEST,
        sample_rooms()[:1],
        parameters={"control_strategy": "bang-bang", "temp_tolerance": 2.0},
        duration_minutes=20,
    )
    (loop,) = engine.run_simulation(scenario.id).loop_stability
    assert loop.id == "loop-room-1-bang-bang"
    assert loop.duration_minutes == 20


def test_rooms_without_target_skip_the_loop() -> None:
    engine = SimulationEngine()
    report = engine.run_simulation(create(engine, SimulationMode.STRESS_TEST, [make_room()]).id)

    assert len(report.environmental_curves) == 1
    assert report.loop_stability == ()


def test_contamination_scenario_flags_high_risk_rooms() -> None:
    engine = SimulationEngine()
    scenario = create(
        engine,
        SimulationMode.SNAPSHOT,
        [high_risk_room(), make_room("room-ok", airflow=150.0)],
        type=ScenarioType.CONTAMINATION,
    )
    report = engine.run_simulation(scenario.id)

    assert [r.overall_risk for r in report.contamination_risks] == ["high", "low"]
    assert report.warnings == ("Room room-e: High contamination risk (score: 83)",)
    assert report.recommendations == ("1 room(s) require contamination mitigation measures",)
    assert "1 room(s) flagged with high contamination risk." in report.summary


def test_summary_always_ends_with_disclaimer() -> None:
    engine = SimulationEngine()
    report = engine.run_simulation(create(engine, SimulationMode.TIME_SERIES, [make_room()]).id)

    assert report.summary.startswith("Simulated 1 room(s) over 30 minutes in time-series mode.")
    assert "1/1 rooms showed stable environmental conditions." in report.summary
    assert report.summary.endswith(DISCLAIMER)


def test_unstable_curve_is_warned() -> None:
    engine = SimulationEngine()
    report = engine.run_simulation(create(engine, SimulationMode.TIME_SERIES, [make_room(devices=(strong_heater(),))]).id)

    assert report.environmental_curves[0].stability != "stable"
    assert report.warnings[0].startswith("Room room-e: Environmental instability detected")


def test_unstable_loop_is_warned() -> None:
    # Fruiting oyster target is far above 12 C and nothing in the room can heat
    cold_room = dataclasses.replace(make_room(temperature=12.0), species="oyster", stage="fruiting")
    engine = SimulationEngine()
    report = engine.run_simulation(create(engine, SimulationMode.STRESS_TEST, [cold_room]).id)

    (loop,) = report.loop_stability
    assert loop.stability != "stable"
    assert f"Room room-e: Loop instability detected ({loop.stability})" in report.warnings
    assert "0/1 control loops achieved stability." in report.summary


def test_timeout_stores_nothing() -> None:
    engine = SimulationEngine()
    scenario = create(engine, SimulationMode.TIME_SERIES, [make_room()])
    with pytest.raises(SimulationTimeoutError):
        engine.run_simulation(scenario.id, timeout_s=0.0)
    assert engine.list_reports() == []


def test_parallel_run_preserves_room_order() -> None:
    rooms = [make_room(f"r{i}", temperature=15.0 + i) for i in range(6)]

    serial = SimulationEngine()
    parallel = SimulationEngine(max_workers=4)
    expected = serial.run_simulation(create(serial, SimulationMode.TIME_SERIES, rooms).id)
    report = parallel.run_simulation(create(parallel, SimulationMode.TIME_SERIES, rooms).id)

    assert report.room_ids == tuple(f"r{i}" for i in range(6))
    assert [c.room_id for c in report.environmental_curves] == list(report.room_ids)
    assert report.environmental_curves == expected.environmental_curves
    assert report.contamination_risks == expected.contamination_risks


def test_run_logs_start_and_completion() -> None:
    engine = SimulationEngine()
    report = engine.run_simulation(create(engine, SimulationMode.TIME_SERIES, [make_room()]).id)

    messages = [e.message for e in engine.log.entries(EventCategory.SIMULATION)]
    assert messages[-2:] == ["Starting simulation for scenario: Test", "Simulation completed: Test"]
    assert engine.log.entries(EventCategory.SIMULATION)[-1].context["report_id"] == report.id
    assert len(engine.log.entries(EventCategory.ENVIRONMENTAL)) == 1
    assert len(engine.log.entries(EventCategory.CONTAMINATION)) == 1


def test_baseline_simulation() -> None:
    engine = SimulationEngine()
    report = engine.run_baseline_simulation()

    scenario = engine.get_scenario(report.scenario_id)
    assert scenario is not None
    assert scenario.type is ScenarioType.BASELINE
    assert scenario.mode is SimulationMode.TIME_SERIES
    assert report.duration_minutes == 60
    assert report.room_ids == ("room-1", "room-2")
    assert len(report.environmental_curves) == 2
    assert engine.log.entries(EventCategory.TWIN_GENERATION)
