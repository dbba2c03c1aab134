# requests_core/tasks.py
from __future__ import annotations

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from requests_core.overdue import record_overdue_requests


@shared_task
def scan_overdue_requests() -> int:
    return record_overdue_requests()


@shared_task(ignore_result=True)
def send_workflow_email(subject: str, body: str, recipients: list[str]) -> int:
    return send_mail(
        subject=subject,
        message=body,
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=recipients,
        fail_silently=False,
    )
