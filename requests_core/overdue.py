# requests_core/overdue.py
from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from requests_core.models import AuditLog, SampleRequest

logger = logging.getLogger(__name__)


def record_overdue_requests(*, now=None) -> int:
    """
    Scan in-flight requests whose required-by deadline has passed and record
    one OVERDUE audit entry per request per local day.

    Returns:
        int: number of newly recorded overdue entries
    """
    now = now or timezone.now()
    day = timezone.localtime(now).date().isoformat()
    created_count = 0

    qs = SampleRequest.objects.overdue(now).only("id", "request_number", "status", "required_by")

    for obj in qs.iterator():
        action = f"OVERDUE {obj.request_number} {day}"

        with transaction.atomic():
            _, created = AuditLog.objects.get_or_create(
                action=action,
                defaults={
                    "details": {
                        "request_id": obj.pk,
                        "request_number": obj.request_number,
                        "status": obj.status,
                        "required_by": obj.required_by.isoformat(),
                        "detected_at": now.isoformat(),
                    },
                },
            )

        if created:
            created_count += 1

    if created_count:
        logger.warning("%d request(s) newly overdue on %s", created_count, day)

    return created_count
