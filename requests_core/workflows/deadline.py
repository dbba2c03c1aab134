# requests_core/workflows/deadline.py
"""
Required-by deadline edit lock.

A request's deadline can be moved while production is still open. Self
pickup locks one step earlier than delivery: once a self-pickup sample is
ready the client has been told to collect it, while a delivered sample can
still be re-scheduled until it is dispatched.

This module holds the pure policy (can_edit, lock_reason, propose_edit).
Persistence goes through a DeadlineStore, see workflows/store.py.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from typing import Dict, FrozenSet, Optional, Union

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from requests_core.choices import PickupMethod, RequestStatus
from requests_core.workflows.errors import EditLocked, MissingReason, NoChange

logger = logging.getLogger(__name__)


DEFAULT_ACTOR_LABEL = "Coordinator"

_OPEN_STATUSES = (
    RequestStatus.PENDING_APPROVAL,
    RequestStatus.APPROVED,
    RequestStatus.ASSIGNED,
    RequestStatus.IN_PRODUCTION,
)

SELF_PICKUP_EDITABLE: FrozenSet[str] = frozenset(_OPEN_STATUSES)
DELIVERY_EDITABLE: FrozenSet[str] = frozenset(_OPEN_STATUSES + (RequestStatus.READY,))

# Keyed by "self_pickup" and "delivery" (every other pickup method), in
# lifecycle order.
EDITABLE_STATUSES: Dict[str, tuple] = {
    method: tuple(s for s in RequestStatus if s in allowed)
    for method, allowed in (
        (PickupMethod.SELF_PICKUP, SELF_PICKUP_EDITABLE),
        ("delivery", DELIVERY_EDITABLE),
    )
}

LOCKED_READY_SELF_PICKUP = (
    "Deadline cannot be changed because the sample is ready for self pickup. "
    "The client has been notified."
)
LOCKED_RECEIVED = "Deadline cannot be changed because the sample has been received."
LOCKED_DISPATCHED = "Deadline cannot be changed because the sample has been dispatched."
LOCKED_GENERIC = "Deadline cannot be changed at this stage."

DeadlineInput = Union[datetime, str]


@dataclass(frozen=True)
class DeadlineEntry:
    """One committed deadline change, as recorded in the history."""

    old_deadline: datetime
    new_deadline: datetime
    reason: str
    changed_by_name: str
    timestamp: datetime

    @classmethod
    def from_row(cls, row) -> "DeadlineEntry":
        return cls(
            old_deadline=row.old_deadline,
            new_deadline=row.new_deadline,
            reason=row.reason,
            changed_by_name=row.changed_by_name,
            timestamp=row.timestamp,
        )


# ===============================================================
# Policy
# ===============================================================
def _is_self_pickup(method: Optional[str]) -> bool:
    return str(method or "").strip().lower() == PickupMethod.SELF_PICKUP


def editable_statuses(method: Optional[str]) -> FrozenSet[str]:
    return SELF_PICKUP_EDITABLE if _is_self_pickup(method) else DELIVERY_EDITABLE


def can_edit(status: Optional[str], method: Optional[str]) -> bool:
    return str(status or "").strip().lower() in editable_statuses(method)


def lock_reason(status: Optional[str], method: Optional[str]) -> Optional[str]:
    """
    Human-readable reason the deadline is locked, or None if it is editable.
    """
    if can_edit(status, method):
        return None

    status = str(status or "").strip().lower()

    if status == RequestStatus.RECEIVED:
        return LOCKED_RECEIVED
    if _is_self_pickup(method) and status == RequestStatus.READY:
        return LOCKED_READY_SELF_PICKUP
    if not _is_self_pickup(method) and status == RequestStatus.DISPATCHED:
        return LOCKED_DISPATCHED
    return LOCKED_GENERIC


# ===============================================================
# Canonical instants
# ===============================================================
def normalize_deadline(value: DeadlineInput) -> datetime:
    """
    Canonical instant for comparison and storage: aware, UTC, millisecond
    precision. Naive values are read in the current time zone.

    Raises ValueError on unparseable input.
    """
    if isinstance(value, str):
        parsed = parse_datetime(value.strip())
        if parsed is None:
            raise ValueError(f"Invalid deadline: {value!r}")
        value = parsed

    if not isinstance(value, datetime):
        raise ValueError(f"Invalid deadline: {value!r}")

    if timezone.is_naive(value):
        value = timezone.make_aware(value, timezone.get_current_timezone())

    value = value.astimezone(dt_timezone.utc)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


# ===============================================================
# Edit proposal
# ===============================================================
def propose_edit(
    request,
    new_deadline: DeadlineInput,
    reason: Optional[str],
    actor_name: Optional[str],
    now: Optional[datetime] = None,
) -> DeadlineEntry:
    """
    Validate a deadline edit against the request as currently held and build
    the history entry for it. Does not touch the request or the database.

    Checks run in order and the first failure wins:
      1. status must be editable for the pickup method -> EditLocked
      2. reason must be non-blank                      -> MissingReason
      3. new deadline must differ from the current one -> NoChange
    """
    status = getattr(request, "status", None)
    method = getattr(request, "pickup_responsibility", None)

    if not can_edit(status, method):
        raise EditLocked(lock_reason(status, method))

    reason = (reason or "").strip()
    if not reason:
        raise MissingReason()

    new_value = normalize_deadline(new_deadline)
    current = request.required_by
    if current is not None and normalize_deadline(current) == new_value:
        raise NoChange()

    return DeadlineEntry(
        old_deadline=current,
        new_deadline=new_value,
        reason=reason,
        changed_by_name=(actor_name or "").strip() or DEFAULT_ACTOR_LABEL,
        timestamp=now or timezone.now(),
    )


def commit_edit(request, new_deadline: DeadlineInput, reason: Optional[str], actor, store=None) -> DeadlineEntry:
    """
    Propose an edit and hand it to the store as one atomic append + update.

    On success `request.required_by` is refreshed in memory. On any failure
    nothing is written and the request object is left as it was.
    """
    from requests_core.workflows.store import DjangoDeadlineStore

    store = store or DjangoDeadlineStore()
    actor_name = getattr(actor, "display_name", None)

    entry = propose_edit(request, new_deadline, reason, actor_name)

    store.append_history_and_update_deadline(
        request.pk,
        entry,
        entry.new_deadline,
        actor=actor,
    )

    request.required_by = entry.new_deadline
    logger.info(
        "Deadline for %s moved %s -> %s by %s",
        getattr(request, "request_number", request.pk),
        entry.old_deadline.isoformat() if entry.old_deadline else None,
        entry.new_deadline.isoformat(),
        entry.changed_by_name,
    )
    return entry
