"""Sensor factory – maps a device's type tag to its sensor variant.

Also provides :class:`SensorCache`, the per-run store of live sensor
instances keyed by device id.
"""

from __future__ import annotations

import logging
import random

from plant_simulator.errors import UnsupportedSensorType
from plant_simulator.models import Device, SensorType
from plant_simulator.sensors.base import Sensor
from plant_simulator.sensors.basic import (
    CardSensor,
    DoorSensor,
    HumiditySensor,
    MotionSensor,
    PressureSensor,
    SmokeSensor,
)
from plant_simulator.sensors.gas import GasSensor
from plant_simulator.sensors.temperature import TemperatureSensor
from plant_simulator.sensors.vibration import VibrationSensor

__all__ = ["SensorCache", "create_sensor", "supported_types"]

logger = logging.getLogger("plant_simulator.sensors.factory")

_SENSOR_CLASSES: dict[SensorType, type[Sensor]] = {
    SensorType.TEMPERATURE: TemperatureSensor,
    SensorType.VIBRATION: VibrationSensor,
    SensorType.GAS: GasSensor,
    SensorType.HUMIDITY: HumiditySensor,
    SensorType.PRESSURE: PressureSensor,
    SensorType.MOTION: MotionSensor,
    SensorType.DOOR: DoorSensor,
    SensorType.CARD: CardSensor,
    SensorType.SMOKE: SmokeSensor,
}


def supported_types() -> tuple[SensorType, ...]:
    """Return the supported type tags in their canonical order."""
    return tuple(SensorType)


def create_sensor(device: Device, *, rng: random.Random | None = None) -> Sensor:
    """Create the sensor variant matching ``device.type``.

    Raises:
        UnsupportedSensorType: if the type tag is not one of :func:`supported_types`.
    """
    type_name = device.type.lower().strip()
    try:
        sensor_type = SensorType(type_name)
    except ValueError:
        raise UnsupportedSensorType(device.type) from None

    cls = _SENSOR_CLASSES[sensor_type]
    logger.debug("Creating %s for device %s", cls.__name__, device.device_id)
    return cls(device, rng=rng)


class SensorCache:
    """Live sensor instances for one simulation run, keyed by device id.

    A sensor is created on the first reference to a device id and reused
    afterwards, so its operating state and battery carry over between
    iterations.  Each run owns its own cache.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng
        self._sensors: dict[str, Sensor] = {}

    def get_or_create(self, device: Device) -> Sensor:
        """Return the cached sensor for ``device``, creating it if needed.

        Raises:
            UnsupportedSensorType: propagated from :func:`create_sensor`.
        """
        sensor = self._sensors.get(device.device_id)
        if sensor is None:
            sensor = create_sensor(device, rng=self._rng)
            self._sensors[device.device_id] = sensor
        return sensor

    def get(self, device_id: str) -> Sensor | None:
        return self._sensors.get(device_id)

    def clear(self) -> None:
        self._sensors.clear()

    def __len__(self) -> int:
        return len(self._sensors)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._sensors
