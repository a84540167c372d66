"""Collaborator backends for the plant simulator.

Import any backend you need directly from this package::

    from plant_simulator.backends import ConsoleSink, MemoryStore

Backends that need optional extras are loaded lazily::

    from plant_simulator.backends import DatabaseStore   # needs [database]
    from plant_simulator.backends import RestStore       # needs [rest]
"""

from __future__ import annotations

import importlib
from typing import Any

from plant_simulator.backends.base import Backend, DeviceRegistry, EventSink, PatternSink
from plant_simulator.backends.callback import CallbackSink
from plant_simulator.backends.console import ConsoleSink
from plant_simulator.backends.memory import MemoryStore

__all__ = [
    "Backend",
    "CallbackSink",
    "ConsoleSink",
    "DeviceRegistry",
    "EventSink",
    "MemoryStore",
    "PatternSink",
]


def __getattr__(name: str) -> Any:
    """Lazy-import backends that require optional dependencies."""
    _lazy = {
        "DatabaseStore": "plant_simulator.backends.database",
        "RestStore": "plant_simulator.backends.rest",
    }
    if name in _lazy:
        mod = importlib.import_module(_lazy[name])
        return getattr(mod, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
