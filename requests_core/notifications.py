# requests_core/notifications.py
"""
Fire-and-forget notification sink.

Every event is logged. When WORKFLOW_EMAIL_NOTIFICATIONS is on, an email is
queued through Celery to WORKFLOW_NOTIFY_EMAILS. Failures here are logged and
never reach the caller: the workflow change they describe is already
committed.
"""

from __future__ import annotations

import logging

from django.conf import settings

logger = logging.getLogger(__name__)


def _email_enabled() -> bool:
    return bool(
        getattr(settings, "WORKFLOW_EMAIL_NOTIFICATIONS", False)
        and getattr(settings, "WORKFLOW_NOTIFY_EMAILS", None)
    )


def _queue_email(subject: str, body: str) -> None:
    if not _email_enabled():
        return

    from requests_core.tasks import send_workflow_email

    try:
        send_workflow_email.delay(subject, body, list(settings.WORKFLOW_NOTIFY_EMAILS))
    except Exception:
        logger.exception("Could not queue notification email: %s", subject)


def deadline_changed(request, entry) -> None:
    logger.info(
        "Deadline updated for %s: %s -> %s (%s)",
        request.request_number,
        entry.old_deadline,
        entry.new_deadline,
        entry.reason,
    )

    subject = f"[SampleTrack] Deadline changed for {request.request_number}"
    body = "\n".join(
        [
            "Required-by deadline updated.",
            "",
            f"Request: {request.request_number}",
            f"From: {entry.old_deadline}",
            f"To: {entry.new_deadline}",
            f"Reason: {entry.reason}",
            f"By: {entry.changed_by_name}",
            f"At: {entry.timestamp}",
        ]
    )
    _queue_email(subject, body)


def deadline_change_failed(request, error) -> None:
    logger.warning(
        "Deadline update rejected for %s: %s (%s)",
        getattr(request, "request_number", request),
        error.code,
        error.message,
    )


def status_changed(change) -> None:
    request = change.request
    logger.info(
        "Status updated for %s: %s -> %s",
        request.request_number,
        change.from_status,
        change.to_status,
    )

    subject = (
        f"[SampleTrack] {request.request_number} "
        f"{change.from_status} -> {change.to_status}"
    )
    body = "\n".join(
        [
            "Request status changed.",
            "",
            f"Request: {request.request_number}",
            f"From: {change.from_status}",
            f"To: {change.to_status}",
            f"Notes: {change.notes or '-'}",
            f"At: {change.created_at}",
        ]
    )
    _queue_email(subject, body)
