from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_FIELD_SPECS,
    AppConfig,
    BackendConfig,
    CreateConfig,
    DatabaseConfig,
    FieldSpec,
    SheetLayoutConfig,
    StatusRules,
)

"""Config loader.

Responsibilities:
- Load the YAML config (config/gratmap.yml by default)
- Validate it against gratmap/config/config_schema.json
- Overlay the values on the built-in defaults; field specs are merged per field
  so a config only has to name the columns it changes
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "build_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/gratmap.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation.
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _field_spec(raw: dict[str, Any]) -> FieldSpec:
    candidates = tuple(c if isinstance(c, str) else tuple(c) for c in raw["candidates"])
    return FieldSpec.of(*candidates, exact=raw.get("exact", False), fallback_index=raw.get("fallback_index"))


def _phrases(raw: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(raw[key]) if key in raw else default


def build_config(data: dict[str, Any]) -> AppConfig:
    """Build an AppConfig from already validated data."""
    layout_raw = data.get("layout", {})
    base_layout = SheetLayoutConfig()
    fields = dict(DEFAULT_FIELD_SPECS)
    for name, spec in layout_raw.get("fields", {}).items():
        fields[name] = _field_spec(spec)
    layout = SheetLayoutConfig(
        start_column=layout_raw.get("start_column", base_layout.start_column),
        anchor=layout_raw.get("anchor", base_layout.anchor),
        default_header_row=layout_raw.get("default_header_row", base_layout.default_header_row),
        scan_window=layout_raw.get("scan_window", base_layout.scan_window),
        fields=fields,
        locked_fields=tuple(layout_raw.get("locked_fields", base_layout.locked_fields)),
    )

    rules_raw = data.get("status_rules", {})
    base_rules = StatusRules()
    rules = StatusRules(
        authorized=_phrases(rules_raw, "authorized", base_rules.authorized),
        pending=_phrases(rules_raw, "pending", base_rules.pending),
        canceled=_phrases(rules_raw, "canceled", base_rules.canceled),
    )

    create = CreateConfig(**data.get("create", {}))
    backend = BackendConfig(**data.get("backend", {}))
    database = DatabaseConfig(**data.get("database", {}))
    return AppConfig(
        layout=layout,
        status_rules=rules,
        create=create,
        backend=backend,
        database=database,
        error_log_dir=data.get("error_log_dir", "logs"),
    )


def load_config(path: Path | None = None) -> AppConfig:
    """Load and validate a config file.

    Without ``path`` the default location is used when it exists, otherwise the
    built-in defaults are returned. An explicit path that does not exist is an
    error.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return AppConfig()
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)
    return build_config(data)
