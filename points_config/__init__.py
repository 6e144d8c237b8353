"""
points_config -- single public entrypoint for ledger settings.

Responsibility:
    ``get_active_settings()`` is the only way components obtain deployment
    settings (database URL, timezone, retry bounds).  No other module reads
    settings files or environment variables.

Architecture position:
    Configuration.  Sits above ``points_kernel`` and below
    ``points_services``.  The kernel MUST NEVER import from this package.

Lookup order:
    1. explicit ``path`` argument
    2. ``POINTS_LEDGER_CONFIG`` environment variable
    3. packaged ``defaults.yaml``

    ``DATABASE_URL``, when set, replaces ``database.url``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from points_config.loader import compute_checksum, load_yaml_file, parse_settings
from points_config.schema import DatabaseSettings, LedgerSettings, RetrySettings

_logger = logging.getLogger("points_kernel.config")

CONFIG_ENV_VAR = "POINTS_LEDGER_CONFIG"
DATABASE_URL_ENV_VAR = "DATABASE_URL"

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_settings(path: Path | str | None = None) -> LedgerSettings:
    """Load and validate the active settings.

    Raises:
        FileNotFoundError: the selected file does not exist.
        KeyError / ValueError: the file is incomplete or invalid.
    """
    if path is not None:
        source = Path(path)
    elif os.environ.get(CONFIG_ENV_VAR):
        source = Path(os.environ[CONFIG_ENV_VAR])
    else:
        source = _DEFAULT_CONFIG_PATH

    settings = parse_settings(load_yaml_file(source))

    database_url = os.environ.get(DATABASE_URL_ENV_VAR)
    if database_url:
        settings = replace(settings, database=replace(settings.database, url=database_url))

    _logger.info(
        "POINTS_CONFIG_TRACE",
        extra={
            "trace_type": "POINTS_CONFIG_TRACE",
            "source": str(source),
            "checksum": settings.checksum,
            "timezone": settings.timezone,
            "url_from_env": bool(database_url),
        },
    )
    return settings


__all__ = [
    "CONFIG_ENV_VAR",
    "DATABASE_URL_ENV_VAR",
    "DatabaseSettings",
    "LedgerSettings",
    "RetrySettings",
    "compute_checksum",
    "get_active_settings",
]
