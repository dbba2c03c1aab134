# requests_core/tests/test_visibility.py

from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework import status

from requests_core.choices import PickupMethod, Priority, RequestStatus


pytestmark = pytest.mark.django_db


@pytest.fixture
def seeded(request_factory, make_user, maker):
    other_requester = make_user("requester")
    return {
        "own_draft": request_factory(status=RequestStatus.DRAFT),
        "own_pending": request_factory(status=RequestStatus.PENDING_APPROVAL, priority=Priority.URGENT),
        "other_draft": request_factory(status=RequestStatus.DRAFT, created_by=other_requester),
        "other_assigned": request_factory(
            status=RequestStatus.ASSIGNED,
            created_by=other_requester,
            assigned_to=maker,
        ),
        "field_ready": request_factory(
            status=RequestStatus.READY,
            pickup_responsibility=PickupMethod.FIELD_BOY,
            created_by=other_requester,
        ),
        "courier_ready": request_factory(
            status=RequestStatus.READY,
            pickup_responsibility=PickupMethod.COURIER,
            created_by=other_requester,
        ),
    }


def _ids(resp):
    assert resp.status_code == status.HTTP_200_OK
    return {row["id"] for row in resp.data["results"]}


def test_requester_sees_own_requests(api_client, requester, seeded):
    api_client.force_authenticate(user=requester)

    assert _ids(api_client.get("/api/requests/")) == {
        seeded["own_draft"].pk,
        seeded["own_pending"].pk,
    }


def test_coordinator_sees_everything_but_foreign_drafts(api_client, coordinator, seeded):
    api_client.force_authenticate(user=coordinator)

    ids = _ids(api_client.get("/api/requests/"))

    assert seeded["own_draft"].pk not in ids
    assert seeded["other_draft"].pk not in ids
    assert seeded["own_pending"].pk in ids
    assert seeded["courier_ready"].pk in ids


def test_maker_sees_assigned_requests(api_client, maker, seeded):
    api_client.force_authenticate(user=maker)

    assert _ids(api_client.get("/api/requests/")) == {seeded["other_assigned"].pk}


def test_dispatcher_sees_field_boy_requests_from_ready(api_client, dispatcher, seeded):
    api_client.force_authenticate(user=dispatcher)

    assert _ids(api_client.get("/api/requests/")) == {seeded["field_ready"].pk}


def test_user_without_role_sees_nothing(api_client, make_user, seeded):
    api_client.force_authenticate(user=make_user())

    assert _ids(api_client.get("/api/requests/")) == set()


def test_detail_outside_scope_is_404(api_client, requester, seeded):
    api_client.force_authenticate(user=requester)

    resp = api_client.get(f"/api/requests/{seeded['courier_ready'].pk}/")

    assert resp.status_code == status.HTTP_404_NOT_FOUND


# --------------------------------------------------
# Filters
# --------------------------------------------------

def test_status_filter_accepts_comma_list(api_client, coordinator, seeded):
    api_client.force_authenticate(user=coordinator)

    ids = _ids(api_client.get("/api/requests/", {"status": "pending_approval,assigned"}))

    assert ids == {seeded["own_pending"].pk, seeded["other_assigned"].pk}


def test_priority_filter(api_client, coordinator, seeded):
    api_client.force_authenticate(user=coordinator)

    ids = _ids(api_client.get("/api/requests/", {"priority": "urgent"}))

    assert ids == {seeded["own_pending"].pk}


def test_overdue_filter(api_client, coordinator, request_factory, seeded):
    late = request_factory(
        status=RequestStatus.IN_PRODUCTION,
        required_by=timezone.now() - timedelta(days=1),
    )
    request_factory(status=RequestStatus.RECEIVED, required_by=timezone.now() - timedelta(days=1))
    api_client.force_authenticate(user=coordinator)

    ids = _ids(api_client.get("/api/requests/", {"overdue": "true"}))

    assert ids == {late.pk}


def test_search_filter(api_client, coordinator, request_factory):
    match = request_factory(status=RequestStatus.APPROVED, firm_name="Granite Works")
    request_factory(status=RequestStatus.APPROVED, firm_name="Tile House")
    api_client.force_authenticate(user=coordinator)

    ids = _ids(api_client.get("/api/requests/", {"search": "granite"}))

    assert ids == {match.pk}
