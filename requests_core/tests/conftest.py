# requests_core/tests/conftest.py

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any, Callable

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from requests_core.choices import PickupMethod, RequestStatus, Role
from requests_core.models import SampleRequest, UserRole
from requests_core.workflows.session import actor_for


def _rand(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def make_user(db) -> Callable[..., Any]:
    """
    make_user("coordinator") -> user holding that role (roles are optional).
    """
    User = get_user_model()

    def _factory(*roles: str, username: str | None = None, **extra: Any):
        user = User.objects.create_user(
            username=username or _rand("user"),
            password="pass123",
            **extra,
        )
        for role in roles:
            UserRole.objects.create(user=user, role=role)
        return user

    return _factory


@pytest.fixture
def requester(make_user):
    return make_user(Role.REQUESTER, username="requester")


@pytest.fixture
def coordinator(make_user):
    return make_user(Role.COORDINATOR, username="coordinator")


@pytest.fixture
def maker(make_user):
    return make_user(Role.MAKER, username="maker")


@pytest.fixture
def dispatcher(make_user):
    return make_user(Role.DISPATCHER, username="dispatcher")


@pytest.fixture
def admin_user(make_user):
    return make_user(Role.ADMIN, username="admin")


@pytest.fixture
def coordinator_actor(coordinator):
    return actor_for(coordinator)


@pytest.fixture
def request_factory(db, requester) -> Callable[..., SampleRequest]:
    """
    Factory for sample requests in any status. Creation is not guarded, so
    requests can be placed directly into a mid-lifecycle status.
    """

    def _factory(
        *,
        status: str = RequestStatus.PENDING_APPROVAL,
        pickup_responsibility: str = PickupMethod.COURIER,
        required_by=None,
        created_by=None,
        **extra: Any,
    ) -> SampleRequest:
        return SampleRequest.objects.create(
            status=status,
            pickup_responsibility=pickup_responsibility,
            required_by=required_by or timezone.now() + timedelta(days=7),
            created_by=created_by or requester,
            firm_name=extra.pop("firm_name", _rand("Firm")),
            **extra,
        )

    return _factory
