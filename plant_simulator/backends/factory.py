"""Backend factory – creates registries and sinks from configuration dicts.

Used by the config-driven (YAML) mode to instantiate backends declaratively::

    registry:
      type: database
      connection_string: sqlite+aiosqlite:///plant.db
    event_sink:
      type: database
      connection_string: sqlite+aiosqlite:///plant.db
    pattern_sink:
      type: console
      fmt: json
"""

from __future__ import annotations

import importlib
import json
import logging
from typing import Any

from plant_simulator.backends.base import Backend, DeviceRegistry, EventSink, PatternSink

__all__ = ["BACKEND_REGISTRY", "build_backends", "create_backend", "register_backend"]

logger = logging.getLogger("plant_simulator.backends.factory")

# Registry of type names → (module_path, class_name)
BACKEND_REGISTRY: dict[str, tuple[str, str]] = {
    "memory": ("plant_simulator.backends.memory", "MemoryStore"),
    "console": ("plant_simulator.backends.console", "ConsoleSink"),
    "callback": ("plant_simulator.backends.callback", "CallbackSink"),
    "database": ("plant_simulator.backends.database", "DatabaseStore"),
    "rest": ("plant_simulator.backends.rest", "RestStore"),
}


def create_backend(config: dict[str, Any]) -> Backend:
    """Create a backend instance from a configuration dict.

    The dict must contain a ``"type"`` key matching a registered backend
    name.  All other keys are forwarded as keyword arguments to the
    backend constructor.

    Returns:
        A fully-constructed backend (not yet connected).
    """
    config = dict(config)  # shallow copy
    backend_type = config.pop("type", None)

    if backend_type is None:
        raise ValueError("Backend config must include a 'type' key")

    backend_type = str(backend_type).lower().strip()

    if backend_type not in BACKEND_REGISTRY:
        raise ValueError(
            f"Unknown backend type '{backend_type}'.  "
            f"Available: {sorted(BACKEND_REGISTRY)}"
        )

    module_path, class_name = BACKEND_REGISTRY[backend_type]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)

    logger.debug("Creating %s with config: %s", class_name, config)
    return cls(**config)


def register_backend(name: str, module_path: str, class_name: str) -> None:
    """Register a custom backend type for config-driven instantiation."""
    BACKEND_REGISTRY[name.lower().strip()] = (module_path, class_name)


def build_backends(
    registry_config: dict[str, Any] | None,
    event_sink_config: dict[str, Any] | None,
    pattern_sink_config: dict[str, Any] | None,
) -> tuple[DeviceRegistry | None, EventSink | None, PatternSink | None]:
    """Create the three collaborators, sharing one instance between identical sections.

    Raises:
        TypeError: if a backend does not implement the role it was configured for.
    """
    built: dict[str, Backend] = {}

    def _build(config: dict[str, Any] | None, role: type, role_name: str) -> Any:
        if not config:
            return None
        key = json.dumps(config, sort_keys=True, default=str)
        if key not in built:
            built[key] = create_backend(config)
        backend = built[key]
        if not isinstance(backend, role):
            raise TypeError(f"{type(backend).__name__} cannot be used as {role_name}")
        return backend

    registry = _build(registry_config, DeviceRegistry, "registry")
    event_sink = _build(event_sink_config, EventSink, "event_sink")
    pattern_sink = _build(pattern_sink_config, PatternSink, "pattern_sink")
    return registry, event_sink, pattern_sink
