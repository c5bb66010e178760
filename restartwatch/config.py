"""Configuration loading from environment variables."""

from __future__ import annotations

import json
import os

from restartwatch.errors import ConfigError
from restartwatch.models.config import (
    APIConfig,
    DiscordStyle,
    FetchFailurePolicy,
    LogConfig,
    NotificationConfig,
    PollerConfig,
    RestartWatchConfig,
)

# Variable read by earlier deployments; used when no prefixed URL is set.
_LEGACY_DISCORD_ENV = "DISCORD_WEBHOOK_URL"


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"RESTARTWATCH_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = _env(key, str(default))
    try:
        val = int(raw)
    except ValueError as exc:
        raise ConfigError(f"RESTARTWATCH_{key} must be an integer, got {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None) -> float:
    raw = _env(key, str(default))
    try:
        val = float(raw)
    except ValueError as exc:
        raise ConfigError(f"RESTARTWATCH_{key} must be a number, got {raw!r}") from exc
    if min_val is not None:
        val = max(val, min_val)
    return val


def _env_list(key: str) -> list[str]:
    return [item.strip() for item in _env(key).split(",") if item.strip()]


def _env_headers(key: str) -> dict[str, str]:
    """Parse a JSON object of header name -> value, e.g. {"Authorization": "Bearer x"}."""
    raw = _env(key)
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"RESTARTWATCH_{key} must be a JSON object: {exc}") from exc
    if not isinstance(parsed, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in parsed.items()
    ):
        raise ConfigError(f"RESTARTWATCH_{key} must map header names to string values")
    return parsed


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ConfigError(f"Invalid log level: {value}. Must be one of {sorted(valid)}")
    return value.lower()


def _validate_policy(value: str) -> FetchFailurePolicy:
    try:
        return FetchFailurePolicy(value.lower())
    except ValueError as exc:
        raise ConfigError(f"Invalid fetch failure policy: {value}. Must be 'skip' or 'fatal'") from exc


def _validate_style(value: str) -> DiscordStyle:
    try:
        return DiscordStyle(value.lower())
    except ValueError as exc:
        raise ConfigError(f"Invalid Discord style: {value}. Must be 'embed' or 'content'") from exc


def load_config() -> RestartWatchConfig:
    """Load configuration from RESTARTWATCH_* environment variables.

    Raises:
        ConfigError: a value is malformed, or no notification destination
            is configured at all.
    """
    discord_urls = _env_list("DISCORD_WEBHOOK_URLS")
    if not discord_urls:
        legacy = os.environ.get(_LEGACY_DISCORD_ENV, "").strip()
        if legacy:
            discord_urls = [legacy]

    notifications = NotificationConfig(
        discord_webhook_urls=discord_urls,
        discord_style=_validate_style(_env("DISCORD_STYLE", "embed")),
        webhook_urls=_env_list("WEBHOOK_URLS"),
        webhook_headers=_env_headers("WEBHOOK_HEADERS"),
        delivery_timeout=_env_float("DELIVERY_TIMEOUT", 10.0, min_val=1.0),
    )
    if not notifications.has_destination:
        raise ConfigError(
            "No notification destination configured: set RESTARTWATCH_DISCORD_WEBHOOK_URLS, "
            f"RESTARTWATCH_WEBHOOK_URLS or {_LEGACY_DISCORD_ENV}"
        )

    return RestartWatchConfig(
        notifications=notifications,
        poller=PollerConfig(
            interval_seconds=_env_float("POLL_INTERVAL", 60.0, min_val=1.0),
            fetch_timeout=_env_float("FETCH_TIMEOUT", 30.0, min_val=1.0),
            fetch_failure_policy=_validate_policy(_env("FETCH_FAILURE_POLICY", "skip")),
            namespace=_env("NAMESPACE", ""),
            include_init_containers=_env_bool("INCLUDE_INIT_CONTAINERS", False),
            prune_missing=_env_bool("PRUNE_MISSING", False),
        ),
        api=APIConfig(
            enabled=_env_bool("API_ENABLED", True),
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
