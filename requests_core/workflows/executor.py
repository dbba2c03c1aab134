# requests_core/workflows/executor.py

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from rest_framework.exceptions import PermissionDenied, ValidationError

from requests_core.choices import RequestStatus, Role
from requests_core.models import SampleRequest, StatusChange, UserRole
from requests_core.workflows import (
    allowed_next_states,
    normalize_status,
    validate_transition,
    validate_transition_with_role,
)

logger = logging.getLogger(__name__)


# Lifecycle stamps written alongside the status.
STATUS_TIMESTAMPS = {
    RequestStatus.READY: "completed_at",
    RequestStatus.DISPATCHED: "dispatched_at",
    RequestStatus.RECEIVED: "received_at",
}


def _check_ownership(instance, target: str, actor) -> None:
    """
    Non-staff roles only act on their own requests:
      - requesters on requests they created
      - makers on requests assigned to them
    """
    if actor.has_role(Role.ADMIN, Role.COORDINATOR):
        return

    user_id = getattr(actor.user, "pk", None)

    if actor.has_role(Role.REQUESTER) and instance.created_by_id == user_id:
        return
    if actor.has_role(Role.MAKER) and instance.assigned_to_id == user_id:
        return
    if actor.has_role(Role.DISPATCHER) and target == RequestStatus.DISPATCHED:
        return

    raise PermissionDenied("You can only update requests you own or are assigned to.")


def execute_transition(
    *,
    instance: SampleRequest,
    new_status: str,
    actor,
    notes: str = "",
    received_by: str = "",
    assigned_to=None,
) -> dict:
    current = normalize_status(getattr(instance, "status", None))
    target = normalize_status(new_status)
    method = instance.pickup_responsibility

    # 1) Terminal state lock
    if not allowed_next_states(current, method):
        raise ValidationError(
            {"status": f"Request is in terminal state '{current}' and cannot be modified."}
        )

    # 2) Validate transition legality (must be field-shaped)
    try:
        validate_transition(current, target, method)
    except ValueError as e:
        raise ValidationError({"status": str(e)})

    # No-op transition
    if current == target:
        return {"changed": False, "from_status": current, "to_status": target}

    # 3) Role enforcement
    if actor is None:
        raise PermissionDenied("Authentication required.")

    try:
        validate_transition_with_role(current, target, actor.roles, method)
    except PermissionError as e:
        raise PermissionDenied(str(e))

    _check_ownership(instance, target, actor)

    # 4) Transition-specific payload
    updates = {"status": target, "updated_at": timezone.now()}

    if target == RequestStatus.ASSIGNED:
        if assigned_to is None:
            raise ValidationError({"assigned_to": "A maker is required to assign a request."})
        if not UserRole.objects.filter(user=assigned_to, role=Role.MAKER).exists():
            raise ValidationError({"assigned_to": "Requests can only be assigned to a maker."})
        updates["assigned_to"] = assigned_to

    if target == RequestStatus.RECEIVED:
        updates["received_by"] = (received_by or "").strip() or actor.display_name

    if target in (RequestStatus.APPROVED, RequestStatus.REJECTED) and notes:
        updates["coordinator_message"] = notes

    if target == RequestStatus.DISPATCHED and notes:
        updates["dispatch_notes"] = notes

    stamp = STATUS_TIMESTAMPS.get(target)
    if stamp:
        updates[stamp] = updates["updated_at"]

    # 5) Apply transition + timeline atomically
    with transaction.atomic():
        locked = SampleRequest.objects.select_for_update().get(pk=instance.pk)
        if normalize_status(locked.status) != current:
            raise ValidationError(
                {"status": f"Request status changed to '{locked.status}'. Reload and try again."}
            )

        SampleRequest.objects.filter(pk=instance.pk).update(**updates)

        change = StatusChange.objects.create(
            request=instance,
            from_status=current,
            to_status=target,
            performed_by=actor.user if getattr(actor.user, "is_authenticated", False) else None,
            notes=notes or "",
        )

    logger.info(
        "Request %s: %s -> %s by %s",
        instance.request_number,
        current,
        target,
        actor.display_name,
    )

    return {
        "changed": True,
        "from_status": current,
        "to_status": target,
        "status_change_id": change.pk,
    }
