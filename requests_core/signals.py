# requests_core/signals.py
from __future__ import annotations

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from requests_core import notifications
from requests_core.models import AuditLog, RequiredByChange, SampleRequest, StatusChange


# ===============================================================
# CREATE audit (requests)
# ===============================================================
@receiver(post_save, sender=SampleRequest)
def audit_request_created(sender, instance: SampleRequest, created: bool, **kwargs):
    if not created:
        return

    AuditLog.objects.create(
        user=instance.created_by,
        action=f"CREATE {instance.request_number}",
        details={
            "request_id": instance.pk,
            "status": instance.status,
            "required_by": instance.required_by.isoformat() if instance.required_by else None,
        },
    )


# ===============================================================
# WORKFLOW TRANSITIONS
# ===============================================================
@receiver(post_save, sender=StatusChange)
def audit_status_change(sender, instance: StatusChange, created: bool, **kwargs):
    """
    Audit log entry for every status transition; notification once the
    executor's transaction commits.
    """
    if not created:
        return

    AuditLog.objects.create(
        user=instance.performed_by,
        action=(
            f"WORKFLOW {instance.request.request_number}: "
            f"{instance.from_status} -> {instance.to_status}"
        ),
        details={
            "request_id": instance.request_id,
            "from": instance.from_status,
            "to": instance.to_status,
            "notes": instance.notes,
        },
    )

    transaction.on_commit(lambda: notifications.status_changed(instance))


# ===============================================================
# DEADLINE CHANGES
# ===============================================================
@receiver(post_save, sender=RequiredByChange)
def audit_deadline_change(sender, instance: RequiredByChange, created: bool, **kwargs):
    if not created:
        return

    AuditLog.objects.create(
        user=instance.changed_by,
        action=f"DEADLINE {instance.request.request_number}",
        details={
            "request_id": instance.request_id,
            "old": instance.old_deadline.isoformat(),
            "new": instance.new_deadline.isoformat(),
            "reason": instance.reason,
            "changed_by_name": instance.changed_by_name,
        },
    )

    transaction.on_commit(lambda: notifications.deadline_changed(instance.request, instance))
