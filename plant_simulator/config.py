"""Configuration loader for the YAML run format.

Parses YAML files with the following top-level sections::

    simulator:      # run options (iterations, delay_ms, device_type, …)
    registry:       # optional device registry backend
    event_sink:     # backend receiving telemetry events
    pattern_sink:   # optional backend receiving anomaly patterns

Example:

.. code-block:: yaml

    simulator:
      iterations: 50
      delay_ms: 250
      device_type: vibration
      seed: 42

    registry:
      type: database
      connection_string: sqlite+aiosqlite:///plant.db

    event_sink:
      type: database
      connection_string: sqlite+aiosqlite:///plant.db

    pattern_sink:
      type: console
      fmt: json

Backend sections that are identical share one backend instance (see
:func:`plant_simulator.backends.factory.build_backends`).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from plant_simulator.models import SensorType
from plant_simulator.runner import RunnerOptions

__all__ = ["SimulatorYAMLConfig", "load_yaml_config"]

logger = logging.getLogger("plant_simulator.config")


class SimulatorYAMLConfig(BaseModel):
    """Parsed representation of the full YAML configuration.

    Attributes:
        options: Run options for :class:`SimulationRunner`.
        registry_config: Raw dict for the device registry backend.
        event_sink_config: Raw dict for the event sink backend.
        pattern_sink_config: Raw dict for the pattern sink backend.
        log_level: Logging level string.
    """

    options: RunnerOptions = Field(default_factory=RunnerOptions)
    registry_config: dict[str, Any] | None = None
    event_sink_config: dict[str, Any] | None = None
    pattern_sink_config: dict[str, Any] | None = None
    log_level: str = "INFO"


def load_yaml_config(path: str | Path) -> SimulatorYAMLConfig:
    """Load and validate a YAML configuration file.

    An empty file yields the defaults.  Raises :class:`FileNotFoundError`
    for a missing file and :class:`ValueError` for an unknown
    ``device_type``.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    # --- simulator section ---
    sim_section = raw.get("simulator") or {}
    options = RunnerOptions(
        iterations=int(sim_section.get("iterations", 20)),
        delay_ms=int(sim_section.get("delay_ms", 500)),
        device_type_filter=_parse_device_type(sim_section.get("device_type")),
        pattern_detection_enabled=_as_bool(sim_section.get("pattern_detection", True)),
        use_registry=_as_bool(sim_section.get("use_registry", True)),
        fallback_enabled=_as_bool(sim_section.get("fallback", True)),
        seed=sim_section.get("seed"),
    )

    config = SimulatorYAMLConfig(
        options=options,
        registry_config=raw.get("registry") or None,
        event_sink_config=raw.get("event_sink") or None,
        pattern_sink_config=raw.get("pattern_sink") or None,
        log_level=str(sim_section.get("log_level", "INFO")).upper(),
    )

    logger.info(
        "Loaded config: %d iterations, type=%s, registry=%s, event_sink=%s, pattern_sink=%s",
        options.iterations,
        options.device_type_filter.value if options.device_type_filter else "any",
        _backend_name(config.registry_config),
        _backend_name(config.event_sink_config),
        _backend_name(config.pattern_sink_config),
    )
    return config


def _parse_device_type(raw: Any) -> SensorType | None:
    if raw is None or raw == "":
        return None
    try:
        return SensorType(str(raw).lower().strip())
    except ValueError:
        valid = ", ".join(t.value for t in SensorType)
        raise ValueError(f"Unknown device_type '{raw}'. Available: {valid}") from None


def _as_bool(val: Any, default: bool = True) -> bool:
    # an empty YAML key loads as None
    if val is None:
        return default
    return val if isinstance(val, bool) else str(val).lower() in ("true", "1", "yes")


def _backend_name(section: dict[str, Any] | None) -> str:
    return str(section.get("type", "?")) if section else "-"
