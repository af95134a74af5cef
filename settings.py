from __future__ import annotations

import os
import re
from dataclasses import dataclass
from functools import lru_cache


_PROMETHEUS_HOST_ENV = "PROMETHEUS_HOST"
_PROMETHEUS_TIMEOUT_ENV = "PROMETHEUS_TIMEOUT_SECONDS"
_METRIC_NAME_ENV = "ENERGY_METRIC_NAME"
_LOOKBACK_ENV = "QUERY_LOOKBACK"
_SERVER_HOST_ENV = "SERVER_HOST"
_SERVER_PORT_ENV = "SERVER_PORT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_METRIC_NAME_PATTERN = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
_DURATION_PATTERN = re.compile(r"^(\d+(ms|s|m|h|d|w|y))+$")


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or unusable."""


@dataclass(frozen=True)
class Settings:
    prometheus_url: str
    prometheus_timeout: float
    metric_name: str
    lookback: str
    server_host: str
    server_port: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_prometheus_url() -> str:
    value = (os.getenv(_PROMETHEUS_HOST_ENV) or "").strip()
    if not value:
        raise ConfigurationError(f"`{_PROMETHEUS_HOST_ENV}` not set")
    if "://" not in value:
        value = f"http://{value}"
    return value.rstrip("/")


def _read_timeout(default: float) -> float:
    value = os.getenv(_PROMETHEUS_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_port(default: int) -> int:
    value = os.getenv(_SERVER_PORT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if 0 < parsed < 65536 else default


def _read_metric_name(default: str) -> str:
    candidate = _read_str_env(_METRIC_NAME_ENV, default)
    if not _METRIC_NAME_PATTERN.match(candidate):
        raise ConfigurationError(f"Invalid metric name {candidate!r} in `{_METRIC_NAME_ENV}`.")
    return candidate


def _read_lookback(default: str) -> str:
    candidate = _read_str_env(_LOOKBACK_ENV, default)
    if not _DURATION_PATTERN.match(candidate):
        raise ConfigurationError(f"Invalid duration {candidate!r} in `{_LOOKBACK_ENV}`.")
    return candidate


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        prometheus_url=_read_prometheus_url(),
        prometheus_timeout=_read_timeout(5.0),
        metric_name=_read_metric_name("energy"),
        lookback=_read_lookback("10m"),
        server_host=_read_str_env(_SERVER_HOST_ENV, "0.0.0.0"),
        server_port=_read_port(9118),
        log_level=_read_log_level("INFO"),
    )
