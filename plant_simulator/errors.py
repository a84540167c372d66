"""Exception types raised by the simulator.

Everything except :class:`InitializationError` is handled per iteration by
the runner: the iteration is counted as failed and the loop moves on.
"""

from __future__ import annotations

__all__ = [
    "InitializationError",
    "NoDeviceAvailable",
    "SimulatorError",
    "SinkError",
    "UnsupportedSensorType",
]


class SimulatorError(Exception):
    """Base class for all simulator errors."""


class UnsupportedSensorType(SimulatorError, ValueError):
    """The sensor factory has no variant for a device's type tag."""

    def __init__(self, type_name: str) -> None:
        super().__init__(f"Unknown sensor type: {type_name!r}")
        self.type_name = type_name


class NoDeviceAvailable(SimulatorError):
    """Neither the registry nor the fallback generator produced a device."""

    def __init__(self, type_filter: str | None = None) -> None:
        suffix = f" for type: {type_filter}" if type_filter else ""
        super().__init__(f"No devices available{suffix}")
        self.type_filter = type_filter


class SinkError(SimulatorError):
    """Inserting an event or a pattern into a sink failed."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class InitializationError(SimulatorError):
    """A run could not start (e.g. the device registry is unreachable)."""
