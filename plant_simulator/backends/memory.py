"""In-memory backend – registry and sinks backed by plain lists.

Handy for tests, demos and for feeding a fixed device fleet from a YAML
config::

    registry:
      type: memory
      devices:
        - device_id: press_1_vib
          type: vibration
          sensor_range: 0-16g amplitude
"""

from __future__ import annotations

import logging
import random
from typing import Any

from plant_simulator.backends.base import DeviceRegistry, EventSink, PatternSink
from plant_simulator.models import AnomalyPattern, Device, SensorEvent, SensorType

__all__ = ["MemoryStore"]

logger = logging.getLogger("plant_simulator.backends.memory")


class MemoryStore(DeviceRegistry, EventSink, PatternSink):
    """Keeps devices, events and patterns in memory.

    Parameters:
        devices: Initial fleet, as :class:`Device` objects or plain dicts.
        rng: Random source used to pick devices.
    """

    def __init__(
        self,
        *,
        devices: list[Device | dict[str, Any]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._rng = rng or random.Random()
        self.devices: dict[str, Device] = {}
        self.events: list[SensorEvent] = []
        self.patterns: list[AnomalyPattern] = []
        self.add_devices(devices or [])

    def add_devices(self, devices: list[Device | dict[str, Any]]) -> None:
        for item in devices:
            device = item if isinstance(item, Device) else Device.model_validate(item)
            self.devices[device.device_id] = device

    # -- DeviceRegistry --

    async def get_random_device(self, type_filter: SensorType | None = None) -> Device | None:
        candidates = [
            d for d in self.devices.values() if type_filter is None or d.type == type_filter.value
        ]
        if not candidates:
            return None
        return self._rng.choice(candidates).model_copy(deep=True)

    async def update_battery(self, device_id: str, battery_level: float) -> None:
        device = self.devices.get(device_id)
        if device is None:
            raise KeyError(f"Device not found: {device_id}")
        device.battery_level = battery_level

    # -- sinks --

    async def insert_event(self, event: SensorEvent) -> int:
        self.events.append(event)
        return len(self.events)

    async def insert_pattern(self, pattern: AnomalyPattern) -> None:
        self.patterns.append(pattern)
