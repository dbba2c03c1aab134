# requests_core/tests/test_duplicates.py

from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework import status

from requests_core.choices import RequestStatus
from requests_core.duplicates import CLIENT_MATCH, EXACT_MATCH, check_for_duplicates
from requests_core.models import RequestItem


pytestmark = pytest.mark.django_db


PRODUCT = {"quality": "Statuario", "sample_size": "300x300", "thickness": "18mm", "quantity": 2}


@pytest.fixture
def client_request(request_factory):
    def _factory(status=RequestStatus.PENDING_APPROVAL, **overrides):
        req = request_factory(
            status=status,
            client_contact_name="Asha Rao",
            client_phone="98450 12345",
        )
        RequestItem.objects.create(
            request=req,
            item_index=0,
            product_type="marble",
            **dict(PRODUCT, **overrides),
        )
        return req

    return _factory


def _check(items=(PRODUCT,), **kwargs):
    params = {"client_name": "Asha Rao", "client_phone": "98450 12345", "items": items}
    params.update(kwargs)
    return check_for_duplicates(**params)


def test_same_client_and_products_is_exact_match(client_request):
    existing = client_request()

    result = _check(
        client_name="  asha RAO ",
        items=[{"quality": "statuario ", "sample_size": "300X300", "thickness": "18mm", "quantity": 2}],
    )

    assert result["is_duplicate"] is True
    assert result["duplicate_type"] == EXACT_MATCH
    assert result["existing_request"]["request_number"] == existing.request_number
    assert result["existing_request"]["quality"] == "Statuario"


def test_same_client_other_products_is_client_match(client_request):
    existing = client_request(quality="Carrara")

    result = _check()

    assert result["duplicate_type"] == CLIENT_MATCH
    assert result["existing_request"]["request_number"] == existing.request_number


def test_quantity_difference_is_only_a_client_match(client_request):
    client_request(quantity=5)

    assert _check()["duplicate_type"] == CLIENT_MATCH


def test_exact_match_beats_newer_client_match(client_request):
    exact = client_request()
    client_request(quality="Carrara")

    result = _check()

    assert result["duplicate_type"] == EXACT_MATCH
    assert result["existing_request"]["request_number"] == exact.request_number


@pytest.mark.parametrize("ignored", [RequestStatus.DRAFT, RequestStatus.REJECTED])
def test_drafts_and_rejected_requests_are_ignored(client_request, ignored):
    client_request(status=ignored)

    result = _check()

    assert result == {"is_duplicate": False, "duplicate_type": None, "existing_request": None}


def test_requests_older_than_two_weeks_are_ignored(client_request):
    client_request()

    assert _check(now=timezone.now() + timedelta(days=13))["is_duplicate"] is True
    assert _check(now=timezone.now() + timedelta(days=15))["is_duplicate"] is False


def test_phone_must_match_too(client_request):
    client_request()

    assert _check(client_phone="11111 22222")["is_duplicate"] is False


def test_blank_client_never_matches(client_request):
    client_request()

    assert _check(client_name="  ")["is_duplicate"] is False


def test_request_under_edit_can_be_excluded(client_request):
    existing = client_request()

    assert _check(exclude_pk=existing.pk)["is_duplicate"] is False


# ------------------------------------------------------------------
# HTTP
# ------------------------------------------------------------------
def test_duplicate_endpoint(api_client, make_user, client_request):
    existing = client_request()
    api_client.force_authenticate(user=make_user("requester"))

    resp = api_client.post(
        "/api/requests/check-duplicates/",
        {"client_contact_name": "Asha Rao", "client_phone": "98450 12345", "items": [PRODUCT]},
        format="json",
    )

    assert resp.status_code == status.HTTP_200_OK
    assert resp.data["is_duplicate"] is True
    assert resp.data["duplicate_type"] == "exact_match"
    assert resp.data["existing_request"]["request_number"] == existing.request_number
    assert resp.data["existing_request"]["requester_name"] == "requester"


def test_duplicate_endpoint_without_items_checks_client_only(api_client, requester, client_request):
    client_request()
    api_client.force_authenticate(user=requester)

    resp = api_client.post(
        "/api/requests/check-duplicates/",
        {"client_contact_name": "Asha Rao", "client_phone": "98450 12345"},
        format="json",
    )

    assert resp.status_code == status.HTTP_200_OK
    assert resp.data["duplicate_type"] == "client_match"


def test_duplicate_endpoint_requires_login(api_client):
    resp = api_client.post(
        "/api/requests/check-duplicates/",
        {"client_contact_name": "Asha Rao", "client_phone": "98450 12345"},
        format="json",
    )

    assert resp.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
