from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import List, Optional

import jsonschema
from dotenv import load_dotenv

from storm_reporter.common.errors import MalformedIdentifierError
from storm_reporter.common.logging import setup_logging
from storm_reporter.common.settings import (
    DEFAULT_SCHEMA_PATH,
    load_settings,
    load_yaml,
    validate_config,
)
from storm_reporter.metrics.registry import MetricRegistry
from storm_reporter.metrics.types import Gauge
from storm_reporter.naming.identifier import parse_metric
from storm_reporter.reporter.config import ReporterConfig, SenderConfig
from storm_reporter.reporter.publisher import PrometheusReporter
from storm_reporter.reporter.sender import PlaintextSender


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Storm worker metrics reporter")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Parse worker metric identifiers")
    parse_cmd.add_argument("identifiers", nargs="+", help="storm.worker.* metric identifiers")

    validate_cmd = subparsers.add_parser("validate-config", help="Validate settings YAML")
    validate_cmd.add_argument("--config", required=True, help="Path to settings YAML")
    validate_cmd.add_argument(
        "--schema",
        default=str(DEFAULT_SCHEMA_PATH),
        help="Path to schema.json (default: the schema shipped with the package)",
    )

    run_cmd = subparsers.add_parser("run", help="Report metrics until interrupted")
    run_cmd.add_argument("--config", required=True, help="Path to settings YAML")
    run_cmd.add_argument(
        "--schema",
        default=str(DEFAULT_SCHEMA_PATH),
        help="Path to schema.json (default: the schema shipped with the package)",
    )
    run_cmd.add_argument(
        "--interval-sec",
        type=float,
        default=None,
        help="Reporting interval in seconds (overrides config)",
    )
    args = parser.parse_args(argv)
    if getattr(args, "interval_sec", None) is not None and args.interval_sec <= 0:
        raise SystemExit("--interval-sec must be > 0")
    return args


def _cmd_parse(args: argparse.Namespace) -> int:
    for identifier in args.identifiers:
        try:
            parsed = parse_metric(identifier)
        except MalformedIdentifierError as exc:
            print(f"[PARSE][FAIL] {exc}", file=sys.stderr)
            return 1
        print(json.dumps({"name": parsed.name, "grouping_key": parsed.grouping_key}))
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    config_path = Path(args.config)
    schema_path = Path(args.schema)
    if not config_path.exists():
        raise SystemExit(f"Config file not found: {config_path}")
    if not schema_path.exists():
        raise SystemExit(f"Schema file not found: {schema_path}")
    try:
        validate_config(load_yaml(config_path), schema_path)
    except jsonschema.ValidationError as exc:
        print(f"[CONFIG][FAIL] {exc.message}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"[CONFIG][FAIL] {exc}", file=sys.stderr)
        return 1
    print("OK")
    return 0


def _register_self_metrics(registry: MetricRegistry, reporter: PrometheusReporter) -> None:
    registry.register(
        "storm_reporter.cycles_completed", Gauge(lambda: reporter.completed_cycles)
    )
    registry.register("storm_reporter.cycles_failed", Gauge(lambda: reporter.failed_cycles))


def _cmd_run(args: argparse.Namespace) -> int:
    settings = load_settings(Path(args.config), Path(args.schema))
    logger = setup_logging(settings.app_log_path, settings.log_level)
    reporter_config = ReporterConfig.from_settings(settings.raw)
    sender_config = SenderConfig.from_settings(settings.raw)
    logger.info(
        "boot_complete",
        extra={
            "config_version": settings.config_version,
            "config_hash": settings.config_hash,
            "host": sender_config.host,
            "port": sender_config.port,
        },
    )

    registry = MetricRegistry()
    reporter = (
        PrometheusReporter.for_registry(registry)
        .with_config(reporter_config)
        .build(PlaintextSender.from_config(sender_config, logger=logger), logger=logger)
    )
    _register_self_metrics(registry, reporter)

    with reporter:
        reporter.start(args.interval_sec)
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("shutdown_requested")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.command == "parse":
        return _cmd_parse(args)
    if args.command == "validate-config":
        return _cmd_validate(args)
    load_dotenv()
    return _cmd_run(args)


if __name__ == "__main__":
    raise SystemExit(main())
