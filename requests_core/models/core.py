# requests_core/models/core.py

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from requests_core.choices import (
    ACTIVE_STATUSES,
    PickupMethod,
    Priority,
    RequestStatus,
    Role,
)
from requests_core.workflows.guards import WorkflowWriteGuardMixin


# ============================================================
# Base
# ============================================================
class TimeStampedModel(models.Model):
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# ============================================================
# Roles
# ============================================================
class UserRole(TimeStampedModel):
    """Application role held by a user (a user may hold more than one)."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="request_roles",
    )
    role = models.CharField(max_length=32, choices=Role.choices)

    class Meta:
        ordering = ["user__username", "role"]
        unique_together = [("user", "role")]

    def __str__(self):
        return f"{self.user.get_username()} - {self.role}"


# ============================================================
# Sample request
# ============================================================
class SampleRequestQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status__in=ACTIVE_STATUSES)

    def overdue(self, now=None):
        """
        Requests whose deadline has passed while they are still in flight.
        """
        now = now or timezone.now()
        return self.active().filter(required_by__isnull=False, required_by__lt=now)

    def visible_to(self, actor):
        """
        Role scoping for listings:
          - admin / coordinator: everything except other users' drafts
          - dispatcher: field boy requests from ready onwards
          - maker: requests assigned to them
          - requester: their own requests
        """
        if actor is None:
            return self.none()

        if actor.has_role(Role.ADMIN, Role.COORDINATOR):
            return self.exclude(Q(status=RequestStatus.DRAFT) & ~Q(created_by=actor.user))

        scope = Q()
        matched = False

        if actor.has_role(Role.DISPATCHER):
            scope |= Q(
                pickup_responsibility=PickupMethod.FIELD_BOY,
                status__in=[
                    RequestStatus.READY,
                    RequestStatus.DISPATCHED,
                    RequestStatus.RECEIVED,
                ],
            )
            matched = True

        if actor.has_role(Role.MAKER):
            scope |= Q(assigned_to=actor.user)
            matched = True

        if actor.has_role(Role.REQUESTER):
            scope |= Q(created_by=actor.user)
            matched = True

        if not matched:
            return self.none()

        return self.filter(scope)


def _new_request_number() -> str:
    today = timezone.localdate()
    return f"SR-{today:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


class SampleRequest(WorkflowWriteGuardMixin, TimeStampedModel):
    """A request for physical product samples, tracked from draft to receipt."""

    WORKFLOW_FIELDS = ("status", "required_by")

    request_number = models.CharField(max_length=32, unique=True, editable=False)

    status = models.CharField(
        max_length=32,
        choices=RequestStatus.choices,
        default=RequestStatus.DRAFT,
        db_index=True,
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="sample_requests",
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_sample_requests",
    )

    # Requester details
    department = models.CharField(max_length=64, blank=True)
    mobile_no = models.CharField(max_length=32, blank=True)
    pickup_responsibility = models.CharField(
        max_length=32,
        choices=PickupMethod.choices,
        default=PickupMethod.COURIER,
    )
    pickup_remarks = models.TextField(blank=True)
    delivery_address = models.TextField(blank=True)
    required_by = models.DateTimeField(db_index=True)
    priority = models.CharField(
        max_length=16,
        choices=Priority.choices,
        default=Priority.NORMAL,
        db_index=True,
    )

    # Client details
    client_contact_name = models.CharField(max_length=255, blank=True)
    client_phone = models.CharField(max_length=32, blank=True)
    firm_name = models.CharField(max_length=255, blank=True)
    site_location = models.CharField(max_length=255, blank=True)

    # Messages
    requester_message = models.TextField(blank=True)
    coordinator_message = models.TextField(blank=True)
    dispatch_notes = models.TextField(blank=True)

    # Lifecycle stamps (set by the workflow executor)
    completed_at = models.DateTimeField(null=True, blank=True)
    dispatched_at = models.DateTimeField(null=True, blank=True)
    received_at = models.DateTimeField(null=True, blank=True)
    received_by = models.CharField(max_length=255, blank=True)

    objects = SampleRequestQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "required_by"], name="request_status_deadline_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self.request_number:
            self.request_number = _new_request_number()
        return super().save(*args, **kwargs)

    @property
    def is_self_pickup(self) -> bool:
        return self.pickup_responsibility == PickupMethod.SELF_PICKUP

    def __str__(self):
        return f"{self.request_number} ({self.status})"


# ============================================================
# Audit
# ============================================================
class AuditLog(TimeStampedModel):
    """Track actions for compliance and traceability."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    action = models.CharField(max_length=255, db_index=True)
    details = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["action", "created_at"], name="audit_action_time_idx"),
        ]

    def __str__(self):
        who = self.user.get_username() if self.user else "system"
        return f"{self.created_at} - {who} - {self.action}"
