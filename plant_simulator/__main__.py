"""CLI entry point for the plant IoT simulator.

Usage::

    plant-simulator run --type vibration --iterations 30 --delay 600
    plant-simulator run --config simulator.yaml
    plant-simulator run-all --parallel
    plant-simulator list-types
    plant-simulator init-config --output simulator.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import textwrap

from plant_simulator.models import SensorType

_LOG_FORMAT = "%(asctime)s %(name)-30s %(levelname)-7s %(message)s"

# ---------------------------------------------------------------------------
# Sample YAML config template for init-config
# ---------------------------------------------------------------------------
_SAMPLE_CONFIG = """\
# Plant IoT simulator configuration

simulator:
  iterations: 20                      # events to attempt per run
  delay_ms: 500                       # pause between iterations
  # device_type: vibration            # optional: restrict to one type (run 'plant-simulator list-types')
  pattern_detection: true             # anomaly detection on temperature / vibration / gas
  use_registry: true                  # draw devices from the registry below
  fallback: true                      # synthesise devices when the registry has none
  # seed: 42                          # optional: reproducible runs
  # log_level: INFO                   # DEBUG, INFO, WARNING, ERROR

# Device registry. Identical backend sections share one instance.
registry:
  type: memory
  devices:
    - device_id: press_line_1_vib
      type: vibration
      display_name: Press Line 1 Vibration
      location_name: Production Line A
      sensor_range: 0-16g amplitude
      battery_level: 92
    - device_id: boiler_room_temp
      type: temperature
      location_name: Boiler Room
      sensor_range: 20°C to 60°C

  # type: database
  # connection_string: sqlite+aiosqlite:///plant_simulator.db

  # type: rest                        # PostgREST / Supabase
  # url: https://xyz.supabase.co      # or SUPABASE_URL
  # api_key: ...                      # or SUPABASE_ANON_KEY

event_sink:
  type: console
  fmt: text                           # text or json

pattern_sink:
  type: console
  fmt: text
"""


# ======================================================================
# Main entry point
# ======================================================================


def main(argv: list[str] | None = None) -> None:
    epilog = textwrap.dedent("""\
        examples:
          plant-simulator run --type vibration --iterations 30
          plant-simulator run --config simulator.yaml
          plant-simulator run-all --iterations 10 --delay 100
          plant-simulator run-all --parallel --config simulator.yaml
          plant-simulator list-types
          plant-simulator init-config --output simulator.yaml
    """)

    parser = argparse.ArgumentParser(
        prog="plant-simulator",
        description="Simulate industrial IoT sensors and detect anomaly patterns.",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", title="commands")

    # -- run ---------------------------------------------------------------
    run_parser = subparsers.add_parser(
        "run",
        help="Run one simulation.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              plant-simulator run --type gas --iterations 20 --delay 1000
              plant-simulator run --config simulator.yaml --iterations 100
        """),
    )
    run_parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML config file. Without it, fallback devices and console sinks are used.",
    )
    run_parser.add_argument(
        "--type",
        "-t",
        type=str,
        default=None,
        dest="device_type",
        help="Restrict devices to one type (run 'list-types'). Default: any.",
    )
    run_parser.add_argument(
        "--iterations",
        "-n",
        type=int,
        default=None,
        help="Number of events (default: profile for --type, else 20).",
    )
    run_parser.add_argument(
        "--delay",
        "-d",
        type=int,
        default=None,
        help="Delay between events in ms (default: profile for --type, else 500).",
    )
    run_parser.add_argument(
        "--no-registry",
        action="store_true",
        help="Ignore the configured registry and use fallback devices only.",
    )
    run_parser.add_argument(
        "--no-patterns",
        action="store_true",
        help="Disable anomaly pattern detection.",
    )
    run_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for reproducible runs.",
    )
    run_parser.add_argument(
        "--format",
        type=str,
        default="text",
        choices=["text", "json"],
        help="Console sink output format (default: text).",
    )
    run_parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )

    # -- run-all -----------------------------------------------------------
    all_parser = subparsers.add_parser(
        "run-all",
        help="Run one simulation per device type.",
    )
    all_parser.add_argument("--config", "-c", type=str, default=None, help="Path to YAML config file.")
    all_parser.add_argument(
        "--iterations",
        "-n",
        type=int,
        default=None,
        help="Events per type (default: each type's profile).",
    )
    all_parser.add_argument(
        "--delay",
        "-d",
        type=int,
        default=None,
        help="Delay between events in ms (default: each type's profile).",
    )
    all_parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run all device types concurrently instead of one after another.",
    )
    all_parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO).",
    )

    # -- list-types --------------------------------------------------------
    subparsers.add_parser(
        "list-types",
        help="List supported device types and their run profiles.",
    )

    # -- init-config -------------------------------------------------------
    init_parser = subparsers.add_parser(
        "init-config",
        help="Generate a sample YAML configuration file.",
    )
    init_parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Write config to this file instead of stdout.",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    # -- Dispatch ----------------------------------------------------------
    if args.command == "run":
        _cmd_run(args)
    elif args.command == "run-all":
        _cmd_run_all(args)
    elif args.command == "list-types":
        _cmd_list_types()
    elif args.command == "init-config":
        _cmd_init_config(args.output)
    else:
        parser.print_help()


# ======================================================================
# Command implementations
# ======================================================================


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=_LOG_FORMAT,
        datefmt="%H:%M:%S",
    )


def _parse_type(raw: str | None) -> SensorType | None:
    if raw is None:
        return None
    try:
        return SensorType(raw.lower().strip())
    except ValueError:
        valid = ", ".join(t.value for t in SensorType)
        print(f"Error: unknown device type '{raw}'.")
        print(f"Available types: {valid}")
        sys.exit(1)


def _load_backends(config_path: str | None, fmt: str = "text"):
    """Return ``(config, registry, event_sink, pattern_sink)``.

    Without a config file, a single console sink serves events and patterns
    and no registry is used.
    """
    from plant_simulator.backends.console import ConsoleSink
    from plant_simulator.backends.factory import build_backends
    from plant_simulator.config import SimulatorYAMLConfig, load_yaml_config

    if not config_path:
        sink = ConsoleSink(fmt=fmt)
        return SimulatorYAMLConfig(), None, sink, sink

    try:
        cfg = load_yaml_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: cannot load config '{config_path}': {exc}")
        sys.exit(1)
    logging.getLogger().setLevel(getattr(logging, cfg.log_level, logging.INFO))
    registry, event_sink, pattern_sink = build_backends(
        cfg.registry_config, cfg.event_sink_config, cfg.pattern_sink_config
    )
    if event_sink is None:
        event_sink = ConsoleSink(fmt=fmt)
        pattern_sink = pattern_sink or event_sink
    return cfg, registry, event_sink, pattern_sink


def _cmd_run(args: argparse.Namespace) -> None:
    """Execute one simulation run."""
    from plant_simulator.errors import InitializationError
    from plant_simulator.profiles import get_profile
    from plant_simulator.runner import SimulationRunner

    _configure_logging(args.log_level)
    device_type = _parse_type(args.device_type)

    cfg, registry, event_sink, pattern_sink = _load_backends(args.config, args.format)
    opts = cfg.options

    update: dict = {}
    if device_type is not None:
        profile = get_profile(device_type)
        update["device_type_filter"] = device_type
        update["iterations"] = profile.iterations
        update["delay_ms"] = profile.delay_ms
    if args.iterations is not None:
        update["iterations"] = args.iterations
    if args.delay is not None:
        update["delay_ms"] = args.delay
    if args.seed is not None:
        update["seed"] = args.seed
    if args.no_patterns:
        update["pattern_detection_enabled"] = False
    if args.no_registry or registry is None:
        update["use_registry"] = False
    opts = opts.model_copy(update=update)

    runner = SimulationRunner(
        opts,
        registry=registry,
        event_sink=event_sink,
        pattern_sink=pattern_sink,
    )
    try:
        stats = runner.run()
    except InitializationError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    title = f"{device_type.value} simulation" if device_type else "Simulation"
    _print_summary(title, stats)


def _cmd_run_all(args: argparse.Namespace) -> None:
    """Run every device type, sequentially or in parallel."""
    from plant_simulator.errors import InitializationError
    from plant_simulator.profiles import run_device_types

    _configure_logging(args.log_level)
    cfg, registry, event_sink, pattern_sink = _load_backends(args.config)
    opts = cfg.options
    if registry is None:
        opts = opts.model_copy(update={"use_registry": False})

    try:
        results = asyncio.run(
            run_device_types(
                registry=registry,
                event_sink=event_sink,
                pattern_sink=pattern_sink,
                options=opts,
                iterations=args.iterations,
                delay_ms=args.delay,
                concurrent=args.parallel,
            )
        )
    except InitializationError as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    for type_name, stats in results.items():
        _print_summary(f"{type_name} simulation", stats)

    total = sum(s.total_events for s in results.values())
    ok = sum(s.successful_events for s in results.values())
    patterns = sum(s.pattern_events for s in results.values())
    print(f"All types: {len(results)} runs, {ok}/{total} events successful, {patterns} patterns")


def _print_summary(title, stats) -> None:
    print(f"\n{title} {'cancelled' if stats.cancelled else 'completed'}")
    print("-" * 40)
    print(f"{'Total events':<22} {stats.total_events:>8}")
    print(f"{'Successful':<22} {stats.successful_events:>8}")
    print(f"{'Failed':<22} {stats.failed_events:>8}")
    print(f"{'Success rate':<22} {stats.success_rate:>7.1f}%")
    print(f"{'Patterns detected':<22} {stats.pattern_events:>8}")
    if stats.pattern_failures:
        print(f"{'Pattern failures':<22} {stats.pattern_failures:>8}")
    print(f"{'Active sensors':<22} {stats.active_sensors:>8}")
    if stats.sensor_type_counts:
        print("Events by type:")
        for name, count in sorted(stats.sensor_type_counts.items()):
            print(f"  {name:<20} {count:>8}")
    if stats.failure_counts:
        print("Failures:")
        for name, count in sorted(stats.failure_counts.items()):
            print(f"  {name:<20} {count:>8}")
    print()


# -- list-types -------------------------------------------------------------


def _cmd_list_types() -> None:
    from plant_simulator.fallback import DEFAULT_RANGES
    from plant_simulator.profiles import DEVICE_PROFILES, GENERIC_PROFILE

    print(f"\n{'Type':<13} {'Iterations':>10} {'Delay ms':>9}  {'Default range':<20} Description")
    print("-" * 100)
    for sensor_type in SensorType:
        profile = DEVICE_PROFILES[sensor_type]
        print(
            f"{sensor_type.value:<13} {profile.iterations:>10} {profile.delay_ms:>9}  "
            f"{DEFAULT_RANGES[sensor_type]:<20} {profile.description}"
        )
    print("-" * 100)
    print(f"{'(any)':<13} {GENERIC_PROFILE.iterations:>10} {GENERIC_PROFILE.delay_ms:>9}  {'':<20} "
          f"{GENERIC_PROFILE.description}")
    print()


# -- init-config ------------------------------------------------------------


def _cmd_init_config(output_path: str | None) -> None:
    if output_path:
        from pathlib import Path

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_text(_SAMPLE_CONFIG, encoding="utf-8")
        print(f"Sample config written to {output_path}")
    else:
        print(_SAMPLE_CONFIG)


# ======================================================================
if __name__ == "__main__":
    main()
