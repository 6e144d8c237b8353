"""
Settings loader (``points_config.loader``).

Responsibility
--------------
Loads the YAML settings file and parses it into the frozen dataclasses of
``points_config.schema``.  Callers use ``points_config.get_active_settings()``
rather than calling this module directly.

Invariants enforced
-------------------
* Missing required keys raise ``KeyError``; out-of-range values raise
  ``ValueError``.  Nothing falls back silently.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from points_config.schema import DatabaseSettings, LedgerSettings, RetrySettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_retry(data: dict[str, Any]) -> RetrySettings:
    retry = RetrySettings(
        max_attempts=int(data.get("max_attempts", 5)),
        base_delay=float(data.get("base_delay", 0.02)),
        max_delay=float(data.get("max_delay", 1.0)),
        attempt_timeout=float(data.get("attempt_timeout", 10.0)),
        jitter=float(data.get("jitter", 0.5)),
    )
    if retry.max_attempts < 1:
        raise ValueError(f"retry.max_attempts must be >= 1, got {retry.max_attempts}")
    if retry.attempt_timeout <= 0:
        raise ValueError(f"retry.attempt_timeout must be positive, got {retry.attempt_timeout}")
    if not 0 <= retry.jitter <= 1:
        raise ValueError(f"retry.jitter must be within [0, 1], got {retry.jitter}")
    return retry


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    return DatabaseSettings(
        url=data["url"],
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
        pool_timeout=int(data.get("pool_timeout", 30)),
        pool_recycle=int(data.get("pool_recycle", 1800)),
        sqlite_busy_timeout=float(data.get("sqlite_busy_timeout", 15.0)),
    )


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    """
    Parse ``LedgerSettings`` from the loaded YAML dict.

    Preconditions:
        - ``data`` contains a ``database`` mapping with a ``url``.
    Raises:
        KeyError: if required keys are missing.
        ValueError: if a value is out of range or the timezone is unknown.
    """
    tz_name = data.get("timezone", "UTC")
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name!r}") from None

    base = data.get("default_allowance_base", 1000)
    if isinstance(base, bool) or not isinstance(base, int) or base < 0:
        raise ValueError(f"default_allowance_base must be a non-negative integer, got {base!r}")

    return LedgerSettings(
        database=parse_database(data["database"]),
        timezone=tz_name,
        default_allowance_base=base,
        log_level=str(data.get("log_level", "INFO")).upper(),
        retry=parse_retry(data.get("retry", {})),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
