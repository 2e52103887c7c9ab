"""
Runtime settings for the dashboard.

Values come from `DASHBOARD_*` environment variables; anything unset falls
back to the defaults below.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class DashboardSettings:
    config_url: str = "config.json"
    fetch_retries: int = 2
    fetch_retry_delay_ms: int = 1000
    fetch_timeout_s: float = 10.0
    slide_interval_desktop_ms: int = 10_000
    slide_interval_mobile_ms: int = 6_000
    reminder_check_interval_ms: int = 60_000
    log_level: str = "INFO"


def load_settings(env: Mapping[str, str] | None = None) -> DashboardSettings:
    """Build settings from the environment (or an explicit mapping, for tests)."""
    env = os.environ if env is None else env
    defaults = DashboardSettings()
    return DashboardSettings(
        config_url=env.get("DASHBOARD_CONFIG_URL", defaults.config_url),
        fetch_retries=_int(env, "DASHBOARD_FETCH_RETRIES", defaults.fetch_retries),
        fetch_retry_delay_ms=_int(env, "DASHBOARD_FETCH_RETRY_DELAY_MS", defaults.fetch_retry_delay_ms),
        fetch_timeout_s=_float(env, "DASHBOARD_FETCH_TIMEOUT_S", defaults.fetch_timeout_s),
        slide_interval_desktop_ms=_int(env, "DASHBOARD_SLIDE_INTERVAL_DESKTOP_MS", defaults.slide_interval_desktop_ms),
        slide_interval_mobile_ms=_int(env, "DASHBOARD_SLIDE_INTERVAL_MOBILE_MS", defaults.slide_interval_mobile_ms),
        reminder_check_interval_ms=_int(
            env, "DASHBOARD_REMINDER_CHECK_INTERVAL_MS", defaults.reminder_check_interval_ms
        ),
        log_level=env.get("DASHBOARD_LOG_LEVEL", defaults.log_level).upper(),
    )


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name}: expected integer, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name}: expected non-negative integer, got {value}")
    return value


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name}: expected number, got {raw!r}") from exc
