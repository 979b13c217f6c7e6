"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``.  Resolution order: dataclass defaults, the
    YAML file named by ``LEDGER_CONFIG`` (or the packaged ``defaults.yaml``),
    then the ``LEDGER_DATABASE_URL`` override.

Architecture position:
    Configuration -- sits beside ``ledger_kernel``.  The kernel's domain and
    services take plain values (or a ``LedgerSettings``) and never read files
    or environment variables themselves.

Failure modes:
    - ``FileNotFoundError`` -- LEDGER_CONFIG names a missing file.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from ledger_config.loader import load_settings, parse_settings
from ledger_config.schema import LedgerSettings

_logger = logging.getLogger("ledger_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

CONFIG_PATH_ENV = "LEDGER_CONFIG"
DATABASE_URL_ENV = "LEDGER_DATABASE_URL"


def get_active_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerSettings:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to ``$LEDGER_CONFIG`` or
            the packaged defaults.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Validated ``LedgerSettings``.
    """
    env = os.environ if environ is None else environ
    path = config_path or Path(env.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)

    settings = load_settings(path)

    url_override = env.get(DATABASE_URL_ENV)
    if url_override:
        settings = parse_settings({"database_url": url_override}, base=settings)

    _logger.info(
        "ledger_config_loaded",
        extra={
            "config_path": str(path),
            "database_url": settings.redacted_url(),
            "deposit_cap_ratio": str(settings.deposit_cap_ratio),
        },
    )
    return settings


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "LedgerSettings",
    "get_active_settings",
    "load_settings",
]
