"""Simulation runner - drives iterations over devices, sensors and backends.

One :class:`SimulationRunner` performs exactly one run.  It owns the sensor
cache, the random source and the :class:`RunStatistics` for that run, so
several runners can share a process (sequentially or concurrently) without
sharing state.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
import signal
import threading
from enum import StrEnum

from pydantic import BaseModel, Field

from plant_simulator.backends.base import Backend, DeviceRegistry, EventSink, PatternSink
from plant_simulator.errors import InitializationError, NoDeviceAvailable, SimulatorError, SinkError
from plant_simulator.fallback import FallbackDeviceGenerator
from plant_simulator.models import Device, SensorEvent, SensorType
from plant_simulator.sensors.base import AnomalyDetectingSensor, Sensor
from plant_simulator.sensors.factory import SensorCache

__all__ = ["RunState", "RunStatistics", "RunnerOptions", "SimulationRunner"]

logger = logging.getLogger("plant_simulator.runner")


class RunState(StrEnum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    LOOPING = "looping"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class RunnerOptions(BaseModel):
    """Options for a single simulation run.

    Attributes:
        iterations: Number of events to attempt.
        delay_ms: Pause between iterations (not after the last one).
        device_type_filter: Restrict devices to one type.
        pattern_detection_enabled: Run anomaly detection on supporting sensors.
        use_registry: Draw devices from the device registry.
        fallback_enabled: Synthesise a device when the registry has none.
        seed: Seed for the run's random source (``None`` = unseeded).
    """

    iterations: int = Field(default=20, gt=0)
    delay_ms: int = Field(default=500, ge=0)
    device_type_filter: SensorType | None = None
    pattern_detection_enabled: bool = True
    use_registry: bool = True
    fallback_enabled: bool = True
    seed: int | None = None


class RunStatistics(BaseModel):
    """Counters collected by the runner during one run."""

    total_events: int = 0
    successful_events: int = 0
    failed_events: int = 0
    pattern_events: int = 0
    pattern_failures: int = 0
    iterations_completed: int = 0
    active_sensors: int = 0
    cancelled: bool = False
    sensor_type_counts: dict[str, int] = Field(default_factory=dict)
    device_counts: dict[str, int] = Field(default_factory=dict)
    failure_counts: dict[str, int] = Field(default_factory=dict)

    def record_success(self, sensor_type: str, device_id: str) -> None:
        self.successful_events += 1
        self.sensor_type_counts[sensor_type] = self.sensor_type_counts.get(sensor_type, 0) + 1
        self.device_counts[device_id] = self.device_counts.get(device_id, 0) + 1

    def record_failure(self, kind: str) -> None:
        self.failed_events += 1
        self.failure_counts[kind] = self.failure_counts.get(kind, 0) + 1

    @property
    def success_rate(self) -> float:
        """Successful events as a percentage of all attempted events."""
        if not self.total_events:
            return 0.0
        return self.successful_events / self.total_events * 100


class SimulationRunner:
    """Runs the device -> sensor -> event -> pattern loop.

    Example::

        from plant_simulator import RunnerOptions, SimulationRunner
        from plant_simulator.backends import ConsoleSink

        sink = ConsoleSink()
        runner = SimulationRunner(
            RunnerOptions(iterations=10, delay_ms=200, use_registry=False),
            event_sink=sink,
            pattern_sink=sink,
        )
        stats = runner.run()

    Parameters:
        options: Run options (defaults to :class:`RunnerOptions`).
        registry: Device registry, required when ``options.use_registry``.
        event_sink: Destination for telemetry events.
        pattern_sink: Destination for anomaly patterns (optional).
        fallback: Device generator used when the registry has no device.
        rng: Random source shared by the fallback generator and all
            sensors of this run (defaults to ``random.Random(options.seed)``).
        manage_backends: Connect the backends before and close them after
            the run.  Disable when the caller manages their lifecycle.
    """

    def __init__(
        self,
        options: RunnerOptions | None = None,
        *,
        registry: DeviceRegistry | None = None,
        event_sink: EventSink | None = None,
        pattern_sink: PatternSink | None = None,
        fallback: FallbackDeviceGenerator | None = None,
        rng: random.Random | None = None,
        manage_backends: bool = True,
    ) -> None:
        self.options = options or RunnerOptions()
        self._rng = rng or random.Random(self.options.seed)
        self.registry = registry
        self.event_sink = event_sink
        self.pattern_sink = pattern_sink
        self.fallback = fallback or FallbackDeviceGenerator(rng=self._rng)
        self.sensors = SensorCache(rng=self._rng)
        self.stats = RunStatistics()
        self.state = RunState.IDLE
        self._manage_backends = manage_backends
        self._stop_event = asyncio.Event()

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> RunStatistics:
        """Blocking entry point - runs the simulation in its own event loop.

        Works inside environments that already have a running event loop
        (Jupyter, IPython) by running on a dedicated background thread.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None and loop.is_running():
            exc: list[BaseException | None] = [None]

            def _target() -> None:
                try:
                    asyncio.run(self.run_async(handle_signals=False))
                except BaseException as e:
                    exc[0] = e

            t = threading.Thread(target=_target, daemon=True)
            t.start()
            t.join()
            if exc[0] is not None:
                raise exc[0]
        else:
            asyncio.run(self.run_async())
        return self.stats

    def stop(self) -> None:
        """Request cancellation; observed at the next iteration boundary."""
        self._stop_event.set()

    async def run_async(
        self,
        stop_event: asyncio.Event | None = None,
        *,
        handle_signals: bool = True,
    ) -> RunStatistics:
        """Async entry point.

        Parameters:
            stop_event: External cancellation flag, checked between
                iterations (in addition to :meth:`stop` and SIGINT/SIGTERM).
            handle_signals: Install SIGINT/SIGTERM handlers for the run.

        Raises:
            InitializationError: the run could not start; no iteration ran.
        """
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"SimulationRunner can only run once (state={self.state.value})")
        if stop_event is not None:
            self._stop_event = stop_event

        self.state = RunState.INITIALIZING
        try:
            await self._initialize()
        except InitializationError as exc:
            self.state = RunState.FAILED
            logger.error("Simulation failed to initialise: %s", exc)
            await self._close_backends()
            raise

        self.state = RunState.LOOPING
        loop = asyncio.get_running_loop()
        installed: list[signal.Signals] = []
        if handle_signals:
            # NotImplementedError: Windows.  RuntimeError: not the main thread.
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
                    loop.add_signal_handler(sig, self.stop)
                    installed.append(sig)

        total = self.options.iterations
        delay_s = self.options.delay_ms / 1000
        try:
            for index in range(total):
                if self._stop_event.is_set():
                    logger.info("Stop requested - ending run after %d/%d iterations", index, total)
                    self.stats.cancelled = True
                    break

                await self._run_iteration(index)
                self.stats.iterations_completed += 1

                if index < total - 1 and delay_s > 0:
                    await self._sleep(delay_s)
        except asyncio.CancelledError:
            logger.info("Simulation cancelled")
            self.stats.cancelled = True
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            self.stats.active_sensors = len(self.sensors)
            await self._close_backends()

        self.state = RunState.CANCELLED if self.stats.cancelled else RunState.COMPLETED
        logger.info(
            "Simulation %s: %d events, %d successful, %d failed, %d patterns, %d sensors",
            self.state.value,
            self.stats.total_events,
            self.stats.successful_events,
            self.stats.failed_events,
            self.stats.pattern_events,
            self.stats.active_sensors,
        )
        return self.stats

    # ------------------------------------------------------------------
    # Initialisation / shutdown
    # ------------------------------------------------------------------

    def _backends(self) -> list[Backend]:
        unique: dict[int, Backend] = {}
        for backend in (self.registry, self.event_sink, self.pattern_sink):
            if backend is not None:
                unique.setdefault(id(backend), backend)
        return list(unique.values())

    async def _initialize(self) -> None:
        opts = self.options
        logger.info(
            "Starting simulation: %d iterations, %dms delay, type=%s, registry=%s, patterns=%s",
            opts.iterations,
            opts.delay_ms,
            opts.device_type_filter.value if opts.device_type_filter else "any",
            "on" if opts.use_registry else "off",
            "on" if opts.pattern_detection_enabled else "off",
        )

        if self.event_sink is None:
            raise InitializationError("No event sink configured")
        if opts.use_registry and self.registry is None:
            raise InitializationError("use_registry is set but no device registry was given")

        if self._manage_backends:
            for backend in self._backends():
                try:
                    await backend.connect()
                except Exception as exc:
                    raise InitializationError(f"{type(backend).__name__} failed to connect: {exc}") from exc

        if opts.use_registry:
            try:
                reachable = await self.registry.check_connection()
            except Exception as exc:
                raise InitializationError(f"Device registry unreachable: {exc}") from exc
            if not reachable:
                raise InitializationError("Device registry unreachable")

    async def _close_backends(self) -> None:
        if not self._manage_backends:
            return
        for backend in self._backends():
            try:
                await backend.close()
            except Exception as exc:
                logger.warning("%s failed to close: %s", type(backend).__name__, exc)

    async def _sleep(self, seconds: float) -> None:
        """Sleep between iterations, waking early if a stop is requested."""
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    async def _run_iteration(self, index: int) -> None:
        self.stats.total_events += 1
        try:
            device = await self._obtain_device()
            sensor = self.sensors.get_or_create(device)
            event = sensor.generate_event()
            await self._insert_event(event)
        except asyncio.CancelledError:
            # total == successful + failed, even for an interrupted event
            self.stats.record_failure("CancelledError")
            raise
        except SimulatorError as exc:
            self.stats.record_failure(type(exc).__name__)
            logger.warning("Iteration %d/%d failed: %s", index + 1, self.options.iterations, exc)
            return
        except Exception as exc:
            self.stats.record_failure(type(exc).__name__)
            logger.exception("Iteration %d/%d failed unexpectedly: %s", index + 1, self.options.iterations, exc)
            return

        self.stats.record_success(event.type, device.device_id)
        await self._sync_battery(device, event)

        if self.options.pattern_detection_enabled:
            await self._detect_patterns(sensor, event)

    async def _obtain_device(self) -> Device:
        type_filter = self.options.device_type_filter

        if self.options.use_registry and self.registry is not None:
            try:
                device = await self.registry.get_random_device(type_filter)
            except Exception as exc:
                logger.warning("Device registry lookup failed: %s", exc)
                device = None
            if device is not None:
                return device
            logger.debug("Registry returned no device (type=%s)", type_filter)

        if not self.options.fallback_enabled:
            raise NoDeviceAvailable(type_filter.value if type_filter else None)
        return self.fallback.generate(type_filter)

    async def _insert_event(self, event: SensorEvent) -> None:
        try:
            inserted_id = await self.event_sink.insert_event(event)
        except Exception as exc:
            raise SinkError("insert_event", str(exc)) from exc
        if inserted_id is None:
            raise SinkError("insert_event", f"no id returned for {event.device_id}")

        logger.debug(
            "Event %s: %s %s=%s (%s, battery %s%%)",
            inserted_id,
            event.device_id,
            event.type,
            event.value,
            event.status,
            event.metadata.get("battery_level"),
        )

    async def _sync_battery(self, device: Device, event: SensorEvent) -> None:
        """Push a lowered battery level back to the registry (best effort)."""
        level = event.metadata.get("battery_level")
        if level is None or level >= device.battery_level:
            return
        device.battery_level = level

        if self.options.use_registry and self.registry is not None:
            try:
                await self.registry.update_battery(device.device_id, level)
            except Exception as exc:
                logger.warning("Battery update for %s failed: %s", device.device_id, exc)

    async def _detect_patterns(self, sensor: Sensor, event: SensorEvent) -> None:
        if self.pattern_sink is None or not isinstance(sensor, AnomalyDetectingSensor):
            return

        try:
            patterns = sensor.detect_anomalies(event.value)
        except Exception as exc:
            self.stats.pattern_failures += 1
            logger.warning("Pattern detection failed for %s: %s", event.device_id, exc)
            return

        for pattern in patterns:
            try:
                await self.pattern_sink.insert_pattern(pattern)
            except Exception as exc:
                self.stats.pattern_failures += 1
                logger.warning("%s", SinkError("insert_pattern", f"{pattern.pattern_type}: {exc}"))
                continue
            self.stats.pattern_events += 1
            logger.debug(
                "Pattern detected on %s: %s (confidence: %.2f, %s)",
                pattern.device_id,
                pattern.pattern_type,
                pattern.confidence_score,
                pattern.severity.value,
            )
