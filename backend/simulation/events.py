"""Event sink protocol and run deadlines shared by the simulation models."""

import time
from enum import StrEnum
from typing import Any, Protocol

from simulation.errors import SimulationTimeoutError


class EventCategory(StrEnum):
    SIMULATION = "simulation"
    TWIN_GENERATION = "twin-generation"
    ENVIRONMENTAL = "environmental"
    CONTAMINATION = "contamination"
    LOOP = "loop"
    EXPORT = "export"


class EventSink(Protocol):
    """Anything that accepts structured simulation events.

    The models only write events; they never read them back.
    """

    def add(self, category: EventCategory, message: str, context: dict[str, Any] | None = None) -> None:
        """Record one event."""
        ...


class Deadline:
    """Wall-clock deadline checked between simulation steps."""

    __slots__ = ("_expires_at", "timeout_s")

    def __init__(self, timeout_s: float) -> None:
        self.timeout_s = timeout_s
        self._expires_at = time.monotonic() + timeout_s

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self._expires_at

    def check(self) -> None:
        if self.expired:
            raise SimulationTimeoutError(f"Simulation exceeded {self.timeout_s:.1f}s deadline")
