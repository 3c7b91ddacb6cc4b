"""Render the current activity as a short status line."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass
from datetime import timedelta
from string import Formatter
from typing import Optional

from .errors import TemplateError
from .models import Activity, timestamp


DEFAULT_TEMPLATE = "{mark} {label}"


class OutputStyle(str, enum.Enum):
    """How the active flag is spelled in ``mark`` and ``state``."""

    SYMBOL = "symbol"
    TEXT = "text"

    @property
    def marks(self) -> tuple[str, str]:
        if self is OutputStyle.SYMBOL:
            return "☭", "☯"
        return "ON", "OFF"


@dataclass(frozen=True, slots=True)
class DisplayFields:
    """Values available to a template, computed once per render."""

    name: str
    label: str
    elapsed: str
    duration: str
    active: bool
    mark: str
    state: str


FIELD_NAMES = frozenset(DisplayFields.__dataclass_fields__)


def format_duration(duration: timedelta) -> str:
    """Render as ``HH:MM``, truncating seconds."""
    total_minutes = max(int(duration.total_seconds()), 0) // 60
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def display_fields(
    activity: Activity,
    style: OutputStyle = OutputStyle.SYMBOL,
    now: Optional[float] = None,
) -> DisplayFields:
    now_ts = timestamp(now)
    active = activity.active(now_ts)
    elapsed = format_duration(activity.time_since(now_ts))
    on_mark, off_mark = style.marks
    return DisplayFields(
        name=activity.name,
        label=f"{elapsed} {activity.name if active else 'OFF'}",
        elapsed=elapsed,
        duration=format_duration(activity.elapsed(now_ts)),
        active=active,
        mark=on_mark if active else off_mark,
        state="ON" if active else "OFF",
    )


def render(fields: DisplayFields, template: str) -> str:
    """Fill ``template`` (``str.format`` syntax) with plain field names only."""
    for field_name in _field_names(template):
        if field_name not in FIELD_NAMES:
            known = ", ".join(sorted(FIELD_NAMES))
            raise TemplateError(
                f"unknown template field {field_name!r} (available: {known})"
            )

    try:
        text = template.format_map(asdict(fields)).strip()
    except (ValueError, KeyError, IndexError) as exc:
        raise TemplateError(f"cannot format activity: {exc}") from exc
    if not text:
        raise TemplateError("template produced empty output")
    return text


def _field_names(template: str) -> list[str]:
    """Every replacement field, including those nested in format specs."""
    try:
        parsed = list(Formatter().parse(template))
    except ValueError as exc:
        raise TemplateError(f"failed to parse template: {exc}") from exc

    names: list[str] = []
    for _, field_name, format_spec, _ in parsed:
        if field_name is None:
            continue
        names.append(field_name)
        if format_spec:
            names.extend(_field_names(format_spec))
    return names


def format_activity(
    activity: Activity,
    template: str = DEFAULT_TEMPLATE,
    style: OutputStyle = OutputStyle.SYMBOL,
    now: Optional[float] = None,
) -> str:
    return render(display_fields(activity, style, now), template)
