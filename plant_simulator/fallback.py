"""Fallback device generator – synthesises plausible devices locally.

Used by the runner whenever the device registry is disabled, empty or
unreachable.
"""

from __future__ import annotations

import random

from plant_simulator.models import Device, SensorType

__all__ = ["DEFAULT_RANGES", "DEFAULT_UNITS", "FallbackDeviceGenerator"]

DEFAULT_RANGES: dict[SensorType, str] = {
    SensorType.TEMPERATURE: "-40°C to +80°C",
    SensorType.VIBRATION: "0-10g amplitude",
    SensorType.GAS: "0-1000 ppm",
    SensorType.HUMIDITY: "0-100%",
    SensorType.PRESSURE: "0-100 PSI",
    SensorType.MOTION: "Binary detection",
    SensorType.DOOR: "Open/Closed state",
    SensorType.CARD: "Card ID numbers",
    SensorType.SMOKE: "1-10 concentration",
}

DEFAULT_UNITS: dict[SensorType, str] = {
    SensorType.TEMPERATURE: "celsius",
    SensorType.VIBRATION: "g",
    SensorType.GAS: "ppm",
    SensorType.HUMIDITY: "percent",
    SensorType.PRESSURE: "psi",
    SensorType.MOTION: "boolean",
    SensorType.DOOR: "boolean",
    SensorType.CARD: "numeric",
    SensorType.SMOKE: "concentration",
}

MANUFACTURERS: tuple[str, ...] = (
    "Acme Sensors",
    "IoTCo",
    "TechDevices",
    "SmartSensor Inc",
    "ConnectedTech",
)

LOCATIONS: dict[SensorType, tuple[str, ...]] = {
    SensorType.TEMPERATURE: ("Server Room", "Furnace Line 2", "Cold Storage", "Data Center", "Paint Shop"),
    SensorType.VIBRATION: ("Press Line 1", "Compressor Bay", "Conveyor B", "Pump House", "CNC Cell 4"),
    SensorType.GAS: ("Boiler Room", "Chemical Storage", "Loading Dock", "Welding Bay", "Tank Farm"),
    SensorType.HUMIDITY: ("Clean Room", "Warehouse Zone A", "Archive Room", "Laboratory", "Production Floor"),
    SensorType.PRESSURE: ("Hydraulic Station", "Air Receiver", "Steam Header", "Filter Skid", "Pump House"),
    SensorType.MOTION: ("Hallway A", "Loading Dock", "Stairwell 1", "Parking Lot", "Main Corridor"),
    SensorType.DOOR: ("Main Entrance", "Emergency Exit", "Storage Access", "Lab Entrance", "Loading Bay"),
    SensorType.CARD: ("Main Scanner", "Security Gate", "Lab Access", "Executive Floor", "R&D Wing"),
    SensorType.SMOKE: ("Electrical Panel", "Workshop", "Kitchen Area", "Boiler Room", "Equipment Bay"),
}


class FallbackDeviceGenerator:
    """Creates :class:`Device` records without any external registry.

    Device ids are drawn from a small pool per type (``fallback_<type>_<n>``
    with ``n < id_pool_size``) so repeated calls hit the same ids and the
    runner's sensor cache gets reused.
    """

    def __init__(self, rng: random.Random | None = None, id_pool_size: int = 1000) -> None:
        self._rng = rng or random.Random()
        self._id_pool_size = id_pool_size

    def generate(self, type_filter: SensorType | str | None = None) -> Device:
        """Return a new device of ``type_filter`` (or of a random supported type)."""
        if type_filter is not None:
            sensor_type = SensorType(type_filter)
        else:
            sensor_type = self._rng.choice(list(SensorType))

        number = self._rng.randrange(self._id_pool_size)
        return Device(
            device_id=f"fallback_{sensor_type.value}_{number}",
            type=sensor_type.value,
            display_name=f"{sensor_type.value.capitalize()} Sensor {number:03d}",
            location_name=self._rng.choice(LOCATIONS[sensor_type]),
            manufacturer_name=self._rng.choice(MANUFACTURERS),
            battery_level=round(50 + self._rng.uniform(0, 50), 1),
            sensor_range=DEFAULT_RANGES[sensor_type],
            unit=DEFAULT_UNITS[sensor_type],
        )
