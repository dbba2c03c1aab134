# requests_core/tests/test_deadline_commit.py

from datetime import timedelta

import pytest
from django.core.exceptions import PermissionDenied
from django.db import DatabaseError
from django.utils import timezone

from requests_core import notifications
from requests_core.choices import RequestStatus
from requests_core.models import AuditLog, RequiredByChange, SampleRequest
from requests_core.workflows import store as store_module
from requests_core.workflows.deadline import commit_edit, normalize_deadline
from requests_core.workflows.errors import EditLocked, MissingReason, NoChange, StoreFailure


pytestmark = pytest.mark.django_db


def _later(req, days=3):
    return normalize_deadline(req.required_by + timedelta(days=days))


# ------------------------------------------------------------------
# Round trip
# ------------------------------------------------------------------
def test_commit_appends_history_and_moves_deadline(request_factory, coordinator_actor):
    req = request_factory(status=RequestStatus.READY)
    before = req.required_by
    new = _later(req)

    entry = commit_edit(req, new, "client requested extension", coordinator_actor)

    req.refresh_from_db()
    assert req.required_by == new
    assert req.deadline_history.count() == 1

    last = req.deadline_history.order_by("id").last()
    assert last.old_deadline == before
    assert last.new_deadline == new
    assert last.reason == "client requested extension"
    assert last.changed_by_name == "Coordinator"
    assert last.changed_by == coordinator_actor.user
    assert entry.new_deadline == new


def test_required_by_tracks_latest_entry(request_factory, coordinator_actor):
    req = request_factory(status=RequestStatus.APPROVED)
    first = _later(req, 2)
    second = _later(req, 5)

    commit_edit(req, first, "first move", coordinator_actor)
    commit_edit(req, second, "second move", coordinator_actor)

    req.refresh_from_db()
    rows = list(req.deadline_history.order_by("id"))
    assert [r.new_deadline for r in rows] == [first, second]
    assert rows[1].old_deadline == rows[0].new_deadline
    assert req.required_by == rows[-1].new_deadline


def test_commit_refreshes_request_in_memory(request_factory, coordinator_actor):
    req = request_factory(status=RequestStatus.ASSIGNED)
    new = _later(req)

    commit_edit(req, new, "client asked", coordinator_actor)

    assert req.required_by == new


def test_commit_without_actor_uses_default_label(request_factory):
    req = request_factory(status=RequestStatus.APPROVED)

    commit_edit(req, _later(req), "client asked", None)

    row = req.deadline_history.get()
    assert row.changed_by_name == "Coordinator"
    assert row.changed_by is None


def test_commit_writes_audit_log(request_factory, coordinator_actor):
    req = request_factory(status=RequestStatus.APPROVED)

    commit_edit(req, _later(req), "client asked", coordinator_actor)

    log = AuditLog.objects.get(action=f"DEADLINE {req.request_number}")
    assert log.user == coordinator_actor.user
    assert log.details["reason"] == "client asked"


def test_commit_notifies_after_transaction(
    request_factory, coordinator_actor, monkeypatch, django_capture_on_commit_callbacks
):
    calls = []
    monkeypatch.setattr(notifications, "deadline_changed", lambda r, e: calls.append((r.pk, e.reason)))
    req = request_factory(status=RequestStatus.APPROVED)

    with django_capture_on_commit_callbacks(execute=True):
        commit_edit(req, _later(req), "client asked", coordinator_actor)

    assert calls == [(req.pk, "client asked")]


# ------------------------------------------------------------------
# Precondition failures leave no trace
# ------------------------------------------------------------------
@pytest.mark.parametrize(
    "status, reason, same_date, error",
    [
        (RequestStatus.DISPATCHED, "valid reason", False, EditLocked),
        (RequestStatus.APPROVED, "   ", False, MissingReason),
        (RequestStatus.APPROVED, "valid reason", True, NoChange),
    ],
)
def test_failed_precondition_writes_nothing(
    request_factory, coordinator_actor, status, reason, same_date, error
):
    req = request_factory(status=status)
    before = req.required_by
    new = req.required_by if same_date else _later(req)

    with pytest.raises(error):
        commit_edit(req, new, reason, coordinator_actor)

    req.refresh_from_db()
    assert req.required_by == before
    assert RequiredByChange.objects.filter(request=req).count() == 0


# ------------------------------------------------------------------
# Store failures
# ------------------------------------------------------------------
class _FailingStore:
    def append_history_and_update_deadline(self, request_id, entry, new_deadline, actor=None):
        raise StoreFailure()


def test_store_failure_propagates_and_leaves_request_untouched(request_factory, coordinator_actor):
    req = request_factory(status=RequestStatus.APPROVED)
    before = req.required_by

    with pytest.raises(StoreFailure) as exc:
        commit_edit(req, _later(req), "client asked", coordinator_actor, store=_FailingStore())

    assert exc.value.retryable is True
    assert req.required_by == before
    assert not RequiredByChange.objects.filter(request=req).exists()


class _BrokenClock:
    @staticmethod
    def now():
        raise DatabaseError("connection lost")


def test_database_error_rolls_back_both_writes(request_factory, coordinator_actor, monkeypatch):
    req = request_factory(status=RequestStatus.APPROVED)
    before = req.required_by

    # History row is written, then the deadline update blows up.
    monkeypatch.setattr(store_module, "timezone", _BrokenClock)

    with pytest.raises(StoreFailure) as exc:
        commit_edit(req, _later(req), "client asked", coordinator_actor)

    assert "connection lost" not in exc.value.message
    assert not RequiredByChange.objects.filter(request=req).exists()
    assert SampleRequest.objects.get(pk=req.pk).required_by == before
    assert req.required_by == before


def test_deleted_request_is_store_failure(request_factory, coordinator_actor):
    req = request_factory(status=RequestStatus.APPROVED)
    stale = SampleRequest.objects.get(pk=req.pk)
    SampleRequest.objects.filter(pk=req.pk).delete()

    with pytest.raises(StoreFailure):
        commit_edit(stale, _later(stale), "client asked", coordinator_actor)


# ------------------------------------------------------------------
# Stale copies
# ------------------------------------------------------------------
def test_status_moved_on_server_is_edit_locked(request_factory, coordinator_actor):
    req = request_factory(status=RequestStatus.READY)
    SampleRequest.objects.filter(pk=req.pk).update(status=RequestStatus.DISPATCHED)

    # req still believes it is ready
    with pytest.raises(EditLocked):
        commit_edit(req, _later(req), "client asked", coordinator_actor)

    assert not RequiredByChange.objects.filter(request=req).exists()


def test_deadline_changed_by_someone_else_is_rejected(request_factory, coordinator_actor):
    req = request_factory(status=RequestStatus.APPROVED)
    SampleRequest.objects.filter(pk=req.pk).update(required_by=req.required_by + timedelta(days=1))

    with pytest.raises(StoreFailure) as exc:
        commit_edit(req, _later(req, 5), "client asked", coordinator_actor)

    assert "someone else" in exc.value.message
    assert not RequiredByChange.objects.filter(request=req).exists()


# ------------------------------------------------------------------
# History immutability
# ------------------------------------------------------------------
def test_history_rows_cannot_be_edited_or_deleted(request_factory, coordinator_actor):
    req = request_factory(status=RequestStatus.APPROVED)
    commit_edit(req, _later(req), "client asked", coordinator_actor)
    row = req.deadline_history.get()

    row.reason = "rewritten"
    with pytest.raises(PermissionDenied):
        row.save()

    with pytest.raises(PermissionDenied):
        row.delete()

    row.refresh_from_db()
    assert row.reason == "client asked"


def test_history_rows_cannot_be_rewritten_in_bulk(request_factory, coordinator_actor):
    req = request_factory(status=RequestStatus.APPROVED)
    commit_edit(req, _later(req), "client asked", coordinator_actor)

    with pytest.raises(PermissionDenied):
        RequiredByChange.objects.filter(request=req).update(reason="rewritten")
    with pytest.raises(PermissionDenied):
        RequiredByChange.objects.filter(request=req).delete()
    with pytest.raises(PermissionDenied):
        req.deadline_history.all().delete()

    assert req.deadline_history.get().reason == "client asked"


def test_history_goes_with_its_request(request_factory, coordinator_actor):
    req = request_factory(status=RequestStatus.APPROVED)
    commit_edit(req, _later(req), "client asked", coordinator_actor)

    SampleRequest.objects.filter(pk=req.pk).delete()

    assert not RequiredByChange.objects.filter(request_id=req.pk).exists()


def test_required_by_cannot_be_saved_directly(request_factory):
    req = request_factory(status=RequestStatus.APPROVED)
    req.required_by = timezone.now() + timedelta(days=30)

    with pytest.raises(PermissionDenied):
        req.save()
