"""Configuration models and helpers for the tracker."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from .errors import ValidationError


# An open entry untouched for longer than this is presumed abandoned.
EXPIRATION_WINDOW = timedelta(minutes=10)

# Rows examined when summing the current continuous run.
ACTIVE_RUN_LOOKBACK = 100

_DURATION_PATTERN = re.compile(
    r"^(?P<sign>-)?(?:(?P<h>\d+)h)?(?:(?P<m>\d+)m)?(?:(?P<s>\d+)s)?$"
)


def parse_duration(value: str) -> timedelta:
    """Parse ``1h10m``, ``90s``, ``5m`` or a bare number of seconds."""
    text = value.strip().lower()
    try:
        return timedelta(seconds=float(text))
    except (ValueError, OverflowError):
        pass

    match = _DURATION_PATTERN.match(text)
    if not text or not match or not any(match.group(unit) for unit in "hms"):
        raise ValidationError(f"invalid duration {value!r} (expected e.g. 10m, 1m30s)")
    result = timedelta(
        hours=int(match.group("h") or 0),
        minutes=int(match.group("m") or 0),
        seconds=int(match.group("s") or 0),
    )
    return -result if match.group("sign") else result


@dataclass(slots=True)
class DaemonSettings:
    """Runtime configuration for the background daemon."""

    update_interval: timedelta = timedelta(seconds=30)
    break_interval: timedelta = timedelta(minutes=80)
    repeat_interval: timedelta = timedelta(minutes=10)
    tick_interval: timedelta = timedelta(seconds=1)
    hook: Optional[str] = None

    @classmethod
    def from_strings(
        cls,
        update_interval: str,
        break_interval: str,
        repeat_interval: str,
        hook: Optional[str] = None,
    ) -> "DaemonSettings":
        settings = cls(
            update_interval=parse_duration(update_interval),
            break_interval=parse_duration(break_interval),
            repeat_interval=parse_duration(repeat_interval),
            hook=hook or None,
        )
        for label, interval in (
            ("update interval", settings.update_interval),
            ("break interval", settings.break_interval),
            ("repeat interval", settings.repeat_interval),
        ):
            if interval < timedelta(0):
                raise ValidationError(f"{label} cannot be negative")
        return settings
