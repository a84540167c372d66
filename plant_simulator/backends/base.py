"""Collaborator interfaces the simulation runner talks to.

Provides:
- ``Backend``        - lifecycle hooks (``connect`` / ``close``) shared by all.
- ``DeviceRegistry`` - source of device records, receives battery updates.
- ``EventSink``      - append-only destination for :class:`SensorEvent`.
- ``PatternSink``    - append-only destination for :class:`AnomalyPattern`.

A single concrete class may implement several interfaces (e.g. a database
store acting as registry and both sinks).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from plant_simulator.models import AnomalyPattern, Device, SensorEvent, SensorType

__all__ = ["Backend", "DeviceRegistry", "EventSink", "PatternSink"]


class Backend:
    """Lifecycle hooks.  Both are no-ops unless a backend holds resources."""

    async def connect(self) -> None:
        """Establish connection / open resources."""

    async def close(self) -> None:
        """Release resources / close connections."""


class DeviceRegistry(Backend, ABC):
    """Registry of simulated devices."""

    @abstractmethod
    async def get_random_device(self, type_filter: SensorType | None = None) -> Device | None:
        """Return a random device (optionally of one type), or ``None`` if there is none."""

    @abstractmethod
    async def update_battery(self, device_id: str, battery_level: float) -> None:
        """Store a new battery level for ``device_id``."""

    async def check_connection(self) -> bool:
        """Return ``True`` when the registry is reachable."""
        return True


class EventSink(Backend, ABC):
    """Destination for telemetry events."""

    @abstractmethod
    async def insert_event(self, event: SensorEvent) -> Any:
        """Persist ``event`` and return its inserted id (``None`` means not inserted)."""


class PatternSink(Backend, ABC):
    """Destination for detected anomaly patterns."""

    @abstractmethod
    async def insert_pattern(self, pattern: AnomalyPattern) -> None:
        """Persist ``pattern``."""
