"""App settings, read from ``settings.ROSTER`` with defaults filled in."""

from datetime import timedelta
from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "DEFAULT_CAPACITY": 8,
    "SIGNUP_CUTOFF": timedelta(0),
    "REMINDER_LEAD": timedelta(hours=2),
    "MAX_QUANTITY": 10,
    "QUANTITY_POLICY": "additive",
    "CONFLICT_RETRIES": 3,
    "NOTIFIER": "roster.notifiers.LoggingNotifier",
    "CACHE_TIMEOUT": 30,
}

QUANTITY_POLICIES = ("additive", "absolute")


def roster_setting(name: str) -> Any:
    if name not in DEFAULTS:
        raise KeyError(f"Unknown roster setting: {name}")
    overrides = getattr(settings, "ROSTER", {})
    return overrides.get(name, DEFAULTS[name])
