"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``inventory_config.schema.InventoryConfig``.  Callers should go through
``inventory_config.get_active_config()``; the functions here are the
building blocks it uses and are exposed for tests.

Architecture position
---------------------
**Config layer** -- sits above ``inventory_kernel`` (it builds kernel
``ItemStockConfig`` values) and below ``inventory_services``.  The kernel
never imports this package at runtime.

Invariants enforced
-------------------
* Every parse problem raises ``ConfigurationError`` naming the source file
  and the offending key; there are no silent defaults for required fields.
* Item ids are unique within a configuration set.
* Unit costs go through ``to_decimal``: YAML floats never reach the
  domain as binary floats.
* ``compute_checksum`` is a deterministic SHA-256 of the raw parsed
  mapping, for change detection.

Failure modes
-------------
* Missing file, malformed YAML, wrong top-level type, missing or invalid
  keys  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import LOG_LEVELS, InventoryConfig
from inventory_kernel.domain.stock import DEFAULT_UNIT, ItemStockConfig
from inventory_kernel.domain.values import to_decimal
from inventory_kernel.exceptions import ConfigurationError, ValidationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML file and return its top-level mapping.

    Raises:
        ConfigurationError: missing file, invalid YAML, or a top level that
            is not a mapping.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(str(path), "file not found") from None
    except yaml.YAMLError as exc:
        raise ConfigurationError(str(path), f"invalid YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def _optional_int(data: dict[str, Any], key: str, source: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(source, f"{key} must be an integer, got {value!r}")
    return value


def parse_item(data: dict[str, Any], source: str) -> ItemStockConfig:
    """Parse one entry of the ``items`` list."""
    if not isinstance(data, dict):
        raise ConfigurationError(source, f"item entry must be a mapping, got {data!r}")
    if "id" not in data:
        raise ConfigurationError(source, "item entry is missing 'id'")
    item_id = str(data["id"])
    min_stock = _optional_int(data, "min_stock", source)
    if min_stock is None:
        raise ConfigurationError(source, f"item {item_id} is missing 'min_stock'")
    try:
        return ItemStockConfig(
            item_id=item_id,
            min_stock=min_stock,
            name=data.get("name"),
            category=data.get("category"),
            max_stock=_optional_int(data, "max_stock", source),
            unit=data.get("unit") or DEFAULT_UNIT,
            unit_cost=to_decimal(data.get("unit_cost", 0), "unit_cost"),
            location=data.get("location"),
            supplier=data.get("supplier"),
        )
    except ValidationError as exc:
        raise ConfigurationError(source, f"item {item_id}: {exc}") from exc


def parse_config(data: dict[str, Any], source: str = "<memory>") -> InventoryConfig:
    """
    Build an InventoryConfig from a parsed YAML mapping.

    Raises:
        ConfigurationError: missing ``config_id``, bad value types,
            duplicate item ids, or an unknown log level.
    """
    if "config_id" not in data:
        raise ConfigurationError(source, "missing 'config_id'")

    ledger = data.get("ledger") or {}
    reporting = data.get("reporting") or {}
    database = data.get("database") or {}
    logging_section = data.get("logging") or {}
    for name, section in (
        ("ledger", ledger),
        ("reporting", reporting),
        ("database", database),
        ("logging", logging_section),
    ):
        if not isinstance(section, dict):
            raise ConfigurationError(source, f"'{name}' must be a mapping")

    period_days = _optional_int(reporting, "period_days", source)
    if period_days is None:
        period_days = 30
    if period_days < 1:
        raise ConfigurationError(source, f"reporting.period_days must be >= 1, got {period_days}")

    log_level = str(logging_section.get("level", "INFO")).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigurationError(source, f"logging.level {log_level!r} is not a log level")

    raw_items = data.get("items") or []
    if not isinstance(raw_items, list):
        raise ConfigurationError(source, "'items' must be a list")
    items = tuple(parse_item(entry, source) for entry in raw_items)
    seen: set[str] = set()
    for item in items:
        if item.item_id in seen:
            raise ConfigurationError(source, f"duplicate item id {item.item_id!r}")
        seen.add(item.item_id)

    return InventoryConfig(
        config_id=str(data["config_id"]),
        version=_optional_int(data, "version", source) or 1,
        default_unit=ledger.get("default_unit") or DEFAULT_UNIT,
        reporting_period_days=period_days,
        database_url=database.get("url"),
        log_level=log_level,
        items=items,
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> InventoryConfig:
    return parse_config(load_yaml_file(path), source=str(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data`` (sorted keys)."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
