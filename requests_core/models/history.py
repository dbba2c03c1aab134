# requests_core/models/history.py

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from requests_core.choices import RequestStatus
from requests_core.workflows.guards import AppendOnlyMixin, AppendOnlyQuerySet


class RequiredByChange(AppendOnlyMixin, models.Model):
    """
    Immutable audit record of one change to a request's required-by deadline.

    Rows are appended by the deadline service only. Append order (pk) is
    chronological; display code sorts by timestamp, newest first.
    """

    request = models.ForeignKey(
        "requests_core.SampleRequest",
        on_delete=models.CASCADE,
        related_name="deadline_history",
    )

    old_deadline = models.DateTimeField()
    new_deadline = models.DateTimeField()
    reason = models.TextField()

    changed_by_name = models.CharField(max_length=255)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="deadline_changes",
    )

    timestamp = models.DateTimeField(db_index=True)

    objects = AppendOnlyQuerySet.as_manager()

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                name="deadline_change_reason_not_blank",
                condition=~Q(reason=""),
            ),
            models.CheckConstraint(
                name="deadline_change_not_noop",
                condition=~Q(old_deadline=F("new_deadline")),
            ),
        ]

    def __str__(self):
        return (
            f"{self.request_id}: {self.old_deadline:%Y-%m-%d %H:%M} -> "
            f"{self.new_deadline:%Y-%m-%d %H:%M} by {self.changed_by_name}"
        )


class StatusChange(AppendOnlyMixin, models.Model):
    """
    Immutable status timeline entry, written by the workflow executor.
    """

    request = models.ForeignKey(
        "requests_core.SampleRequest",
        on_delete=models.CASCADE,
        related_name="status_history",
    )

    from_status = models.CharField(max_length=32, choices=RequestStatus.choices)
    to_status = models.CharField(max_length=32, choices=RequestStatus.choices)

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="status_changes",
    )
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = AppendOnlyQuerySet.as_manager()

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["request", "created_at"], name="status_change_req_time_idx"),
        ]

    def __str__(self):
        return f"{self.request_id}: {self.from_status} → {self.to_status}"
