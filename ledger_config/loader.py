"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a ``LedgerSettings``.  The
single public entry point for runtime config is
``ledger_config.get_active_settings()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import LedgerSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    return data


def parse_decimal(value: Any, name: str) -> Decimal:
    """Parse a Decimal from YAML.  Strings and ints only; floats are inexact."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValueError(
            f"{name} must be a quoted decimal string, got {value!r}"
        )
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name} is not a decimal: {value!r}") from None


def parse_settings(
    data: dict[str, Any],
    base: LedgerSettings | None = None,
) -> LedgerSettings:
    """
    Overlay ``data`` on ``base`` (or the defaults) and validate.

    Raises:
        ValueError: on unknown keys or invalid values.
    """
    unknown = set(data) - LedgerSettings.field_names()
    if unknown:
        raise ValueError(f"Unknown ledger settings: {sorted(unknown)}")

    values = dict(vars(base or LedgerSettings()))
    values.update(data)
    if "deposit_cap_ratio" in data:
        values["deposit_cap_ratio"] = parse_decimal(
            data["deposit_cap_ratio"], "deposit_cap_ratio"
        )
    return LedgerSettings(**values)


def load_settings(path: Path, base: LedgerSettings | None = None) -> LedgerSettings:
    """Load and validate settings from a YAML file."""
    return parse_settings(load_yaml_file(path), base)
