"""Plant IoT simulator - simulate industrial sensors, stream their telemetry
to pluggable backends and detect anomaly patterns on the fly.

Quick start::

    from plant_simulator import RunnerOptions, SensorType, SimulationRunner
    from plant_simulator.backends import ConsoleSink

    sink = ConsoleSink()
    runner = SimulationRunner(
        RunnerOptions(iterations=30, delay_ms=600, device_type_filter=SensorType.VIBRATION, use_registry=False),
        event_sink=sink,
        pattern_sink=sink,
    )
    stats = runner.run()
"""

from __future__ import annotations

from plant_simulator.errors import (
    InitializationError,
    NoDeviceAvailable,
    SimulatorError,
    SinkError,
    UnsupportedSensorType,
)
from plant_simulator.fallback import FallbackDeviceGenerator
from plant_simulator.models import AnomalyPattern, Device, SensorEvent, SensorType, Severity, SystemHealth
from plant_simulator.profiles import DEVICE_PROFILES, DeviceTypeProfile, get_profile, run_device_types
from plant_simulator.runner import RunnerOptions, RunState, RunStatistics, SimulationRunner
from plant_simulator.sensors import SensorCache, create_sensor, supported_types

__all__ = [
    "DEVICE_PROFILES",
    "AnomalyPattern",
    "Device",
    "DeviceTypeProfile",
    "FallbackDeviceGenerator",
    "InitializationError",
    "NoDeviceAvailable",
    "RunState",
    "RunStatistics",
    "RunnerOptions",
    "SensorCache",
    "SensorEvent",
    "SensorType",
    "Severity",
    "SimulationRunner",
    "SimulatorError",
    "SinkError",
    "SystemHealth",
    "UnsupportedSensorType",
    "create_sensor",
    "get_profile",
    "run_device_types",
    "supported_types",
]

__version__ = "0.1.0"
