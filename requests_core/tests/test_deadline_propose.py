# requests_core/tests/test_deadline_propose.py

from datetime import datetime, timedelta, timezone as dt_timezone
from types import SimpleNamespace

import pytest

from requests_core.workflows.deadline import (
    DEFAULT_ACTOR_LABEL,
    LOCKED_READY_SELF_PICKUP,
    normalize_deadline,
    propose_edit,
)
from requests_core.workflows.errors import EditLocked, MissingReason, NoChange


UTC = dt_timezone.utc
CURRENT = datetime(2025, 3, 1, 10, 0, tzinfo=UTC)
LATER = datetime(2025, 3, 10, 10, 0, tzinfo=UTC)
NOW = datetime(2025, 2, 20, 9, 30, tzinfo=UTC)


def _request(status="approved", method="courier", required_by=CURRENT):
    return SimpleNamespace(
        pk=1,
        request_number="SR-TEST",
        status=status,
        pickup_responsibility=method,
        required_by=required_by,
    )


# ------------------------------------------------------------------
# Scenarios
# ------------------------------------------------------------------
def test_ready_delivery_edit_succeeds():
    req = _request(status="ready", method="courier")

    entry = propose_edit(req, LATER, "client requested extension", "Priya", now=NOW)

    assert entry.old_deadline == CURRENT
    assert entry.new_deadline == LATER
    assert entry.reason == "client requested extension"
    assert entry.changed_by_name == "Priya"
    assert entry.timestamp == NOW


def test_ready_self_pickup_edit_is_locked():
    req = _request(status="ready", method="self_pickup")

    with pytest.raises(EditLocked) as exc:
        propose_edit(req, LATER, "client requested extension", "Priya")

    assert exc.value.message == LOCKED_READY_SELF_PICKUP
    assert exc.value.retryable is False


def test_pending_approval_blank_reason_is_rejected():
    req = _request(status="pending_approval")

    with pytest.raises(MissingReason) as exc:
        propose_edit(req, LATER, "", "Priya")

    assert exc.value.retryable is True
    assert req.required_by == CURRENT


def test_same_instant_in_another_representation_is_no_change():
    req = _request(status="approved")

    with pytest.raises(NoChange):
        propose_edit(req, "2025-03-01T15:30:00+05:30", "no real change", "Priya")


# ------------------------------------------------------------------
# Preconditions, each failing on its own
# ------------------------------------------------------------------
def test_locked_status_with_otherwise_valid_input():
    req = _request(status="dispatched")

    with pytest.raises(EditLocked):
        propose_edit(req, LATER, "valid reason", "Priya")

    assert req.required_by == CURRENT


@pytest.mark.parametrize("reason", ["", "   ", None, "\n\t"])
def test_missing_reason_with_otherwise_valid_input(reason):
    req = _request(status="assigned")

    with pytest.raises(MissingReason):
        propose_edit(req, LATER, reason, "Priya")

    assert req.required_by == CURRENT


def test_no_change_with_otherwise_valid_input():
    req = _request(status="in_production")

    with pytest.raises(NoChange):
        propose_edit(req, CURRENT, "valid reason", "Priya")

    assert req.required_by == CURRENT


def test_first_failing_check_wins():
    locked = _request(status="received")
    with pytest.raises(EditLocked):
        propose_edit(locked, CURRENT, "", "Priya")

    editable = _request(status="approved")
    with pytest.raises(MissingReason):
        propose_edit(editable, CURRENT, "  ", "Priya")


# ------------------------------------------------------------------
# Entry construction
# ------------------------------------------------------------------
def test_success_does_not_touch_the_request():
    req = _request(status="approved")

    propose_edit(req, LATER, "client asked", "Priya")

    assert req.required_by == CURRENT
    assert req.status == "approved"


def test_reason_is_trimmed():
    entry = propose_edit(_request(), LATER, "  moved by client  ", "Priya")
    assert entry.reason == "moved by client"


@pytest.mark.parametrize("actor_name", [None, "", "   "])
def test_missing_actor_name_falls_back_to_default_label(actor_name):
    entry = propose_edit(_request(), LATER, "client asked", actor_name)
    assert entry.changed_by_name == DEFAULT_ACTOR_LABEL


def test_string_deadline_is_normalized():
    entry = propose_edit(_request(), "2025-03-10T15:30:00+05:30", "client asked", "Priya")
    assert entry.new_deadline == LATER
    assert entry.new_deadline.tzinfo == UTC


def test_sub_millisecond_difference_is_no_change():
    req = _request(required_by=CURRENT.replace(microsecond=123456))

    with pytest.raises(NoChange):
        propose_edit(req, CURRENT.replace(microsecond=123999), "client asked", "Priya")


def test_timestamp_defaults_to_now():
    before = datetime.now(UTC)
    entry = propose_edit(_request(), LATER, "client asked", "Priya")
    assert before - timedelta(seconds=1) <= entry.timestamp <= datetime.now(UTC)


def test_entry_is_immutable():
    entry = propose_edit(_request(), LATER, "client asked", "Priya")
    with pytest.raises(AttributeError):
        entry.reason = "changed"


# ------------------------------------------------------------------
# normalize_deadline
# ------------------------------------------------------------------
def test_normalize_rejects_garbage():
    with pytest.raises(ValueError):
        normalize_deadline("next tuesday")
    with pytest.raises(ValueError):
        normalize_deadline(12345)


def test_normalize_reads_naive_values_in_current_timezone(settings):
    settings.TIME_ZONE = "Asia/Kolkata"
    assert normalize_deadline(datetime(2025, 3, 1, 15, 30)) == CURRENT
