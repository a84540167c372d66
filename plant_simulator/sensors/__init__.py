"""Sensor variants for every supported device type.

Create sensors through the factory rather than the classes directly::

    from plant_simulator.sensors import create_sensor
    sensor = create_sensor(device)
    event = sensor.generate_event()
"""

from __future__ import annotations

from plant_simulator.sensors.base import AnomalyDetectingSensor, Sensor, system_health
from plant_simulator.sensors.basic import (
    CardSensor,
    DoorSensor,
    HumiditySensor,
    MotionSensor,
    PressureSensor,
    SmokeSensor,
)
from plant_simulator.sensors.factory import SensorCache, create_sensor, supported_types
from plant_simulator.sensors.gas import GasSensor, LeakDynamics, LeakState
from plant_simulator.sensors.temperature import TemperatureSensor, TrendDynamics
from plant_simulator.sensors.vibration import EquipmentDynamics, EquipmentState, VibrationSensor

__all__ = [
    "AnomalyDetectingSensor",
    "CardSensor",
    "DoorSensor",
    "EquipmentDynamics",
    "EquipmentState",
    "GasSensor",
    "HumiditySensor",
    "LeakDynamics",
    "LeakState",
    "MotionSensor",
    "PressureSensor",
    "Sensor",
    "SensorCache",
    "SmokeSensor",
    "TemperatureSensor",
    "TrendDynamics",
    "VibrationSensor",
    "create_sensor",
    "supported_types",
    "system_health",
]
