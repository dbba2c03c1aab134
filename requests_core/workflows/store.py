# requests_core/workflows/store.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from django.db import DatabaseError, transaction
from django.utils import timezone

from requests_core.models import RequiredByChange, SampleRequest
from requests_core.workflows.deadline import (
    DeadlineEntry,
    can_edit,
    lock_reason,
    normalize_deadline,
)
from requests_core.workflows.errors import EditLocked, StoreFailure

logger = logging.getLogger(__name__)


class DeadlineStore(Protocol):
    def append_history_and_update_deadline(
        self,
        request_id,
        entry: DeadlineEntry,
        new_deadline: datetime,
        actor=None,
    ) -> None:
        ...


class DjangoDeadlineStore:
    """
    Writes a deadline change as one transaction:
      1) lock the request row
      2) re-check the stored status and deadline against the entry
      3) append RequiredByChange
      4) update SampleRequest.required_by

    Step 2 turns a stale client copy into an error instead of a silent
    overwrite: a status that moved past the lock raises EditLocked, a deadline
    changed by someone else raises StoreFailure.
    """

    def append_history_and_update_deadline(
        self,
        request_id,
        entry: DeadlineEntry,
        new_deadline: datetime,
        actor=None,
    ) -> None:
        user = getattr(actor, "user", None)

        try:
            with transaction.atomic():
                try:
                    obj = SampleRequest.objects.select_for_update().get(pk=request_id)
                except SampleRequest.DoesNotExist:
                    raise StoreFailure("Request not found or you do not have permission to access it.")

                if not can_edit(obj.status, obj.pickup_responsibility):
                    raise EditLocked(lock_reason(obj.status, obj.pickup_responsibility))

                stored = normalize_deadline(obj.required_by) if obj.required_by else None
                expected = normalize_deadline(entry.old_deadline) if entry.old_deadline else None
                if stored != expected:
                    raise StoreFailure(
                        "The deadline was modified by someone else. Reload the request and try again."
                    )

                RequiredByChange.objects.create(
                    request_id=obj.pk,
                    old_deadline=obj.required_by,
                    new_deadline=new_deadline,
                    reason=entry.reason,
                    changed_by_name=entry.changed_by_name,
                    changed_by=user if getattr(user, "is_authenticated", False) else None,
                    timestamp=entry.timestamp,
                )

                # .update() bypasses save-level write guards
                SampleRequest.objects.filter(pk=obj.pk).update(
                    required_by=new_deadline,
                    updated_at=timezone.now(),
                )
        except DatabaseError as exc:
            logger.exception("Deadline update failed for request %s", request_id)
            raise StoreFailure() from exc
