# requests_core/workflows/history.py
"""
Read-side presentation of a request's deadline history.

Stored order is append order (oldest first). Everything here returns the
newest change first and never mutates its input.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from django.utils import timezone
from django.utils.dateformat import format as date_format

DATE_FORMAT = "M j, Y"
DATETIME_FORMAT = "M j, Y, g:i A"


def _local(value):
    if value is None:
        return None
    if timezone.is_aware(value):
        return timezone.localtime(value)
    return value


def format_date(value) -> str:
    value = _local(value)
    return date_format(value, DATE_FORMAT) if value else ""


def format_datetime(value) -> str:
    value = _local(value)
    return date_format(value, DATETIME_FORMAT) if value else ""


def ordered_for_display(entries: Iterable[Any]) -> List[Any]:
    """
    Newest first by timestamp. sorted() is stable, so entries sharing a
    timestamp keep their reversed append order.
    """
    return sorted(list(entries)[::-1], key=lambda e: e.timestamp, reverse=True)


def latest_change_summary(entries: Iterable[Any]) -> Optional[str]:
    ordered = ordered_for_display(entries)
    if not ordered:
        return None

    latest = ordered[0]
    return (
        f"{format_date(latest.timestamp)}: Changed from "
        f"{format_date(latest.old_deadline)} to {format_date(latest.new_deadline)}"
    )


def render_entry(entry) -> Dict[str, Any]:
    return {
        "old_deadline": entry.old_deadline.isoformat() if entry.old_deadline else None,
        "new_deadline": entry.new_deadline.isoformat(),
        "old_deadline_display": format_date(entry.old_deadline),
        "new_deadline_display": format_date(entry.new_deadline),
        "reason": entry.reason,
        "changed_by_name": entry.changed_by_name,
        "timestamp": entry.timestamp.isoformat(),
        "timestamp_display": format_datetime(entry.timestamp),
    }


def present_history(entries: Iterable[Any]) -> Dict[str, Any]:
    entries = list(entries)
    count = len(entries)
    ordered = ordered_for_display(entries)

    return {
        "count": count,
        "count_label": f"{count} {'change' if count == 1 else 'changes'}",
        "summary": latest_change_summary(ordered),
        "entries": [render_entry(e) for e in ordered],
    }
