"""Append-only scenario and report store owned by the simulation engine."""

import threading

from simulation.scenarios import SimulationReport, SimulationScenario


class SimulationStore:
    """Scenarios and reports in insertion order. Nothing is updated in place."""

    def __init__(self) -> None:
        self._scenarios: list[SimulationScenario] = []
        self._reports: list[SimulationReport] = []
        self._lock = threading.Lock()

    def add_scenario(self, scenario: SimulationScenario) -> None:
        with self._lock:
            self._scenarios.append(scenario)

    def add_report(self, report: SimulationReport) -> None:
        with self._lock:
            self._reports.append(report)

    def get_scenario(self, scenario_id: str) -> SimulationScenario | None:
        return next((s for s in self._scenarios if s.id == scenario_id), None)

    def get_report(self, report_id: str) -> SimulationReport | None:
        return next((r for r in self._reports if r.id == report_id), None)

    def list_scenarios(self) -> list[SimulationScenario]:
        """Newest first."""
        with self._lock:
            return list(reversed(self._scenarios))

    def list_reports(self) -> list[SimulationReport]:
        """Newest first."""
        with self._lock:
            return list(reversed(self._reports))

    def reports_for(self, scenario_id: str) -> list[SimulationReport]:
        return [r for r in self.list_reports() if r.scenario_id == scenario_id]
