"""Services - scenario orchestration, storage and the event log."""

from services.engine import SimulationEngine
from services.event_log import LogEntry, SimulationLog
from services.store import SimulationStore

__all__ = ["LogEntry", "SimulationEngine", "SimulationLog", "SimulationStore"]
