"""Append-only store ordering."""

from datetime import datetime

from services.store import SimulationStore
from simulation.scenarios import ScenarioType, SimulationMode, SimulationReport, SimulationScenario


def scenario(scenario_id: str) -> SimulationScenario:
    return SimulationScenario(
        id=scenario_id,
        name=scenario_id,
        description="",
        type=ScenarioType.BASELINE,
        mode=SimulationMode.SNAPSHOT,
        duration_minutes=10,
        rooms=(),
    )


def report(report_id: str, scenario_id: str) -> SimulationReport:
    return SimulationReport(
        id=report_id,
        scenario_id=scenario_id,
        scenario_name=scenario_id,
        timestamp=datetime(2025, 3, 1),
        duration_minutes=10,
        room_ids=(),
        environmental_curves=(),
        contamination_risks=(),
        loop_stability=(),
        energy_usage_kwh=0.0,
        summary="",
    )


def test_listings_are_newest_first() -> None:
    store = SimulationStore()
    for sid in ("s1", "s2", "s3"):
        store.add_scenario(scenario(sid))

    assert [s.id for s in store.list_scenarios()] == ["s3", "s2", "s1"]
    assert store.get_scenario("s2") == scenario("s2")
    assert store.get_scenario("missing") is None


def test_reports_by_scenario() -> None:
    store = SimulationStore()
    store.add_report(report("r1", "s1"))
    store.add_report(report("r2", "s2"))
    store.add_report(report("r3", "s1"))

    assert [r.id for r in store.list_reports()] == ["r3", "r2", "r1"]
    assert [r.id for r in store.reports_for("s1")] == ["r3", "r1"]
    assert store.get_report("r2") is not None
    assert store.get_report("r9") is None
