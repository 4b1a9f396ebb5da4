"""Configuration constants, .env parsing, and dispatcher settings."""

from __future__ import annotations

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def read_env_file(keys: list[str]) -> dict[str, str]:
    """Parse .env file and return values for requested keys.

    Does NOT load into os.environ; callers decide what to do with values.
    This keeps SMTP credentials out of the process environment.
    """
    env_file = Path.cwd() / ".env"
    try:
        content = env_file.read_text()
    except OSError:
        return {}

    result: dict[str, str] = {}
    wanted = set(keys)

    for line in content.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        eq_idx = trimmed.find("=")
        if eq_idx == -1:
            continue
        key = trimmed[:eq_idx].strip()
        if key not in wanted:
            continue
        value = trimmed[eq_idx + 1 :].strip()
        if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
            value = value[1:-1]
        if value:
            result[key] = value

    return result


_ENV_KEYS = [
    "FAST_TICK_INTERVAL",
    "SLOW_TICK_CRON",
    "MIN_RENOTIFY_GAP",
    "IN_FLIGHT_RELEASE_DELAY",
    "REPOSITORY_TIMEOUT",
    "NOTIFY_TIMEOUT",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "SMTP_SECURE",
    "SMTP_FROM",
]

# Read config values from .env (os.environ wins).
_env_config = read_env_file(_ENV_KEYS)


def _get(key: str, default: str = "") -> str:
    return os.environ.get(key) or _env_config.get(key, default)


def _get_seconds(key: str, default: float) -> float:
    raw = _get(key)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


FAST_TICK_INTERVAL: float = max(1.0, _get_seconds("FAST_TICK_INTERVAL", 60.0))
SLOW_TICK_CRON: str = _get("SLOW_TICK_CRON", "0 9 * * *")
MIN_RENOTIFY_GAP: float = _get_seconds("MIN_RENOTIFY_GAP", 120.0)
IN_FLIGHT_RELEASE_DELAY: float = _get_seconds("IN_FLIGHT_RELEASE_DELAY", 5.0)
REPOSITORY_TIMEOUT: float = _get_seconds("REPOSITORY_TIMEOUT", 10.0)
NOTIFY_TIMEOUT: float = _get_seconds("NOTIFY_TIMEOUT", 30.0)

SMTP_HOST: str = _get("SMTP_HOST")
SMTP_PORT: int = int(_get("SMTP_PORT", "587") or "587")
SMTP_USER: str = _get("SMTP_USER")
SMTP_PASS: str = _get("SMTP_PASS")
SMTP_SECURE: bool = _get("SMTP_SECURE") == "true"
SMTP_FROM: str = _get("SMTP_FROM") or SMTP_USER

# Absolute paths
PROJECT_ROOT: Path = Path.cwd()
STORE_DIR: Path = (PROJECT_ROOT / "store").resolve()


def _resolve_timezone() -> str:
    tz = os.environ.get("TZ", "")
    if not tz:
        try:
            tz_file = Path("/etc/timezone")
            if tz_file.exists():
                tz = tz_file.read_text().strip()
            else:
                # e.g. /usr/share/zoneinfo/Europe/Berlin
                parts = Path("/etc/localtime").resolve().parts
                if "zoneinfo" in parts:
                    tz = "/".join(parts[parts.index("zoneinfo") + 1 :])
        except OSError:
            tz = ""

    if not tz:
        return "UTC"

    try:
        ZoneInfo(tz)
        return tz
    except (ZoneInfoNotFoundError, KeyError, ValueError):
        return "UTC"


TIMEZONE: str = _resolve_timezone()


class DispatchConfig:
    """Timing knobs shared by the dispatch loop and the scheduler."""

    def __init__(
        self,
        fast_tick_interval: float = FAST_TICK_INTERVAL,
        slow_tick_cron: str = SLOW_TICK_CRON,
        min_renotify_gap: float = MIN_RENOTIFY_GAP,
        in_flight_release_delay: float = IN_FLIGHT_RELEASE_DELAY,
        repository_timeout: float = REPOSITORY_TIMEOUT,
        notify_timeout: float = NOTIFY_TIMEOUT,
        timezone: str = TIMEZONE,
    ) -> None:
        if fast_tick_interval <= 0:
            raise ValueError(f"Invalid fast tick interval: {fast_tick_interval}")
        self.fast_tick_interval = fast_tick_interval
        self.slow_tick_cron = slow_tick_cron
        self.min_renotify_gap = min_renotify_gap
        self.in_flight_release_delay = in_flight_release_delay
        self.repository_timeout = repository_timeout
        self.notify_timeout = notify_timeout
        self.timezone = timezone

    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
