from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema
import yaml

# Shipped inside the package so installed copies validate without a checkout.
DEFAULT_SCHEMA_PATH = Path(__file__).resolve().with_name("schema.json")


@dataclass(frozen=True)
class Settings:
    config_version: str
    environment: str
    app_log_path: Optional[str]
    log_level: str
    config_path: Path
    config_hash: str
    raw: Dict[str, Any]


def config_digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def parse_yaml(data: bytes | str, source: Path) -> Dict[str, Any]:
    """Parse a settings document; an empty file is an empty mapping, a scalar or list is rejected."""
    config = yaml.safe_load(data)
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"{source}: top level must be a mapping, got {type(config).__name__}")
    return config


def load_yaml(path: Path) -> Dict[str, Any]:
    return parse_yaml(path.read_bytes(), path)


@lru_cache(maxsize=None)
def _validator(schema_path: Path) -> jsonschema.Draft7Validator:
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    jsonschema.Draft7Validator.check_schema(schema)
    return jsonschema.Draft7Validator(schema)


def validate_config(config: Dict[str, Any], schema_path: Path = DEFAULT_SCHEMA_PATH) -> None:
    """Raise the most relevant :class:`jsonschema.ValidationError`, if any."""
    error = jsonschema.exceptions.best_match(_validator(schema_path.resolve()).iter_errors(config))
    if error is not None:
        raise error


def load_settings(config_path: Path, schema_path: Path = DEFAULT_SCHEMA_PATH) -> Settings:
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_path}")

    data = config_path.read_bytes()
    config = parse_yaml(data, config_path)
    validate_config(config, schema_path)

    app_log_path = config.get("app_log_path")
    return Settings(
        config_version=str(config["config_version"]),
        environment=str(config["environment"]),
        app_log_path=str(app_log_path) if app_log_path else None,
        log_level=str(config.get("log_level", "INFO")),
        config_path=config_path,
        config_hash=config_digest(data),
        raw=config,
    )
