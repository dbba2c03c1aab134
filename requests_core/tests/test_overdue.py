# requests_core/tests/test_overdue.py

from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from requests_core.choices import RequestStatus
from requests_core.models import AuditLog, SampleRequest
from requests_core.overdue import record_overdue_requests
from requests_core.tasks import scan_overdue_requests


pytestmark = pytest.mark.django_db


def _past(days=1):
    return timezone.now() - timedelta(days=days)


def _overdue_logs():
    return AuditLog.objects.filter(action__startswith="OVERDUE ")


def test_overdue_queryset_only_counts_in_flight_requests(request_factory):
    late = request_factory(status=RequestStatus.IN_PRODUCTION, required_by=_past())
    request_factory(status=RequestStatus.RECEIVED, required_by=_past())
    request_factory(status=RequestStatus.REJECTED, required_by=_past())
    request_factory(status=RequestStatus.DRAFT, required_by=_past())
    request_factory(status=RequestStatus.APPROVED)

    assert list(SampleRequest.objects.overdue()) == [late]


def test_scan_records_each_request_once_per_day(request_factory):
    late = request_factory(status=RequestStatus.READY, required_by=_past())
    request_factory(status=RequestStatus.DISPATCHED, required_by=_past(3))

    assert record_overdue_requests() == 2
    assert record_overdue_requests() == 0
    assert _overdue_logs().count() == 2

    log = _overdue_logs().get(details__request_id=late.pk)
    assert log.details["status"] == "ready"


def test_scan_records_again_on_a_new_day(request_factory):
    request_factory(status=RequestStatus.APPROVED, required_by=_past())

    now = timezone.now()
    assert record_overdue_requests(now=now) == 1
    assert record_overdue_requests(now=now + timedelta(days=1)) == 1
    assert _overdue_logs().count() == 2


def test_scan_with_nothing_overdue(request_factory):
    request_factory(status=RequestStatus.APPROVED)

    assert record_overdue_requests() == 0
    assert not _overdue_logs().exists()


def test_celery_task_runs_the_scan(request_factory):
    request_factory(status=RequestStatus.ASSIGNED, required_by=_past())

    assert scan_overdue_requests() == 1


def test_management_command(request_factory):
    request_factory(status=RequestStatus.ASSIGNED, required_by=_past())
    out = StringIO()

    call_command("check_overdue_requests", stdout=out)

    assert "1 newly overdue" in out.getvalue()
