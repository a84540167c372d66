"""Per-device-type run profiles and the multi-type batch runner.

Each sensor type has a recommended iteration count and delay that suit its
dynamics: fast binary sensors (motion, card) get many short iterations,
slow analogue ones (humidity, gas) fewer and longer ones.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from collections.abc import Iterable

from pydantic import BaseModel

from plant_simulator.backends.base import Backend, DeviceRegistry, EventSink, PatternSink
from plant_simulator.errors import InitializationError
from plant_simulator.models import SensorType
from plant_simulator.runner import RunnerOptions, RunStatistics, SimulationRunner

__all__ = ["DEVICE_PROFILES", "GENERIC_PROFILE", "DeviceTypeProfile", "get_profile", "run_device_types"]

logger = logging.getLogger("plant_simulator.profiles")


class DeviceTypeProfile(BaseModel):
    """Recommended run shape for one device type."""

    model_config = {"frozen": True}

    iterations: int
    delay_ms: int
    description: str


DEVICE_PROFILES: dict[SensorType, DeviceTypeProfile] = {
    SensorType.TEMPERATURE: DeviceTypeProfile(
        iterations=25, delay_ms=800, description="Temperature trends, overheat and freeze detection"
    ),
    SensorType.VIBRATION: DeviceTypeProfile(
        iterations=30, delay_ms=600, description="Equipment wear, misalignment and bearing failure"
    ),
    SensorType.GAS: DeviceTypeProfile(
        iterations=20, delay_ms=1000, description="Gas leaks, buildup and ventilation failure"
    ),
    SensorType.HUMIDITY: DeviceTypeProfile(iterations=15, delay_ms=1200, description="Relative humidity"),
    SensorType.PRESSURE: DeviceTypeProfile(iterations=20, delay_ms=800, description="Line pressure"),
    SensorType.MOTION: DeviceTypeProfile(iterations=40, delay_ms=300, description="Motion detection"),
    SensorType.DOOR: DeviceTypeProfile(iterations=25, delay_ms=600, description="Door open/closed state"),
    SensorType.CARD: DeviceTypeProfile(iterations=35, delay_ms=400, description="Access card reads"),
    SensorType.SMOKE: DeviceTypeProfile(iterations=20, delay_ms=700, description="Smoke concentration"),
}

GENERIC_PROFILE = DeviceTypeProfile(iterations=20, delay_ms=500, description="Mixed device types")


def get_profile(sensor_type: SensorType | str | None) -> DeviceTypeProfile:
    """Return the profile for *sensor_type*, or the generic one."""
    if sensor_type is None:
        return GENERIC_PROFILE
    try:
        return DEVICE_PROFILES[SensorType(str(sensor_type).lower().strip())]
    except ValueError:
        return GENERIC_PROFILE


async def run_device_types(
    types: Iterable[SensorType] | None = None,
    *,
    event_sink: EventSink,
    registry: DeviceRegistry | None = None,
    pattern_sink: PatternSink | None = None,
    options: RunnerOptions | None = None,
    iterations: int | None = None,
    delay_ms: int | None = None,
    scale: float = 0.7,
    pause_s: float = 2.0,
    concurrent: bool = False,
) -> dict[str, RunStatistics]:
    """Run one independent simulation per device type.

    Every type gets its own :class:`SimulationRunner` (own sensor cache,
    statistics and random source) over the shared backends, which are
    connected once up front and closed at the end.

    Parameters:
        types: Device types to run (default: all supported types).
        options: Base options; the type filter, iterations and delay are
            overridden per type.
        iterations: Fixed iteration count per type.  Defaults to the
            profile's count, scaled by *scale* in sequential mode.
        delay_ms: Fixed delay per type (default: the profile's delay).
        scale: Iteration scale factor for sequential runs.
        pause_s: Pause between types in sequential mode.
        concurrent: Run all types at the same time instead of one by one.

    Returns:
        Statistics per type value.  Types whose run failed to initialise
        are logged and left out.
    """
    selected = list(types) if types is not None else list(SensorType)
    base = options or RunnerOptions()
    stop_event = asyncio.Event()

    backends: dict[int, Backend] = {}
    for backend in (registry, event_sink, pattern_sink):
        if backend is not None:
            backends.setdefault(id(backend), backend)

    def _make_runner(sensor_type: SensorType) -> SimulationRunner:
        profile = get_profile(sensor_type)
        if iterations is not None:
            count = iterations
        elif concurrent:
            count = profile.iterations
        else:
            count = max(1, int(profile.iterations * scale))
        opts = base.model_copy(
            update={
                "device_type_filter": sensor_type,
                "iterations": count,
                "delay_ms": delay_ms if delay_ms is not None else profile.delay_ms,
            }
        )
        return SimulationRunner(
            opts,
            registry=registry,
            event_sink=event_sink,
            pattern_sink=pattern_sink,
            manage_backends=False,
        )

    async def _run_one(sensor_type: SensorType) -> RunStatistics:
        logger.info("Running %s simulation (%s)", sensor_type.value, get_profile(sensor_type).description)
        return await _make_runner(sensor_type).run_async(stop_event, handle_signals=False)

    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
            loop.add_signal_handler(sig, stop_event.set)
            installed.append(sig)

    results: dict[str, RunStatistics] = {}
    try:
        for backend in backends.values():
            try:
                await backend.connect()
            except Exception as exc:
                raise InitializationError(f"{type(backend).__name__} failed to connect: {exc}") from exc

        if concurrent:
            outcomes = await asyncio.gather(*(_run_one(t) for t in selected), return_exceptions=True)
            for sensor_type, outcome in zip(selected, outcomes):
                if isinstance(outcome, BaseException):
                    logger.error("%s simulation failed: %s", sensor_type.value, outcome)
                else:
                    results[sensor_type.value] = outcome
        else:
            for index, sensor_type in enumerate(selected):
                if stop_event.is_set():
                    logger.info("Stop requested - skipping remaining device types")
                    break
                try:
                    results[sensor_type.value] = await _run_one(sensor_type)
                except InitializationError as exc:
                    logger.error("%s simulation failed: %s", sensor_type.value, exc)
                if index < len(selected) - 1 and pause_s > 0:
                    with contextlib.suppress(TimeoutError):
                        await asyncio.wait_for(stop_event.wait(), timeout=pause_s)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        for backend in backends.values():
            try:
                await backend.close()
            except Exception as exc:
                logger.warning("%s failed to close: %s", type(backend).__name__, exc)

    logger.info(
        "Device type runs finished: %d/%d types, %d events total",
        len(results),
        len(selected),
        sum(s.total_events for s in results.values()),
    )
    return results
