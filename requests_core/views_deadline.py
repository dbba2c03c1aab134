# requests_core/views_deadline.py
"""
Required-by deadline endpoint.

GET  /api/requests/<pk>/deadline/
POST /api/requests/<pk>/deadline/   {"required_by": "...", "reason": "..."}

Engine errors come back as field-shaped bodies with a `code` and a
`retryable` flag. Store failures are 503, everything else 400.
"""

from __future__ import annotations

from django.shortcuts import get_object_or_404

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from requests_core import notifications
from requests_core.models import SampleRequest
from requests_core.permissions import CanEditDeadline
from requests_core.serializers import DeadlineEditSerializer
from requests_core.workflows.deadline import (
    DeadlineEntry,
    can_edit,
    commit_edit,
    lock_reason,
)
from requests_core.workflows.errors import DeadlineEditError, StoreFailure
from requests_core.workflows.history import present_history
from requests_core.workflows.session import actor_for


def _deadline_payload(obj: SampleRequest) -> dict:
    entries = [DeadlineEntry.from_row(row) for row in obj.deadline_history.all()]
    return {
        "request_id": obj.pk,
        "request_number": obj.request_number,
        "status": obj.status,
        "pickup_responsibility": obj.pickup_responsibility,
        "required_by": obj.required_by.isoformat() if obj.required_by else None,
        "can_edit": can_edit(obj.status, obj.pickup_responsibility),
        "lock_reason": lock_reason(obj.status, obj.pickup_responsibility),
        "history": present_history(entries),
    }


class RequestDeadlineView(APIView):
    permission_classes = [IsAuthenticated, CanEditDeadline]

    def get_object(self, pk):
        actor = actor_for(self.request.user)
        return get_object_or_404(SampleRequest.objects.visible_to(actor), pk=pk)

    @extend_schema(tags=["Deadline"])
    def get(self, request, pk: int):
        return Response(_deadline_payload(self.get_object(pk)))

    @extend_schema(tags=["Deadline"], request=DeadlineEditSerializer)
    def post(self, request, pk: int):
        obj = self.get_object(pk)

        serializer = DeadlineEditSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            commit_edit(
                obj,
                serializer.validated_data["required_by"],
                serializer.validated_data.get("reason"),
                actor_for(request.user),
            )
        except StoreFailure as e:
            notifications.deadline_change_failed(obj, e)
            return Response(e.as_dict(), status=status.HTTP_503_SERVICE_UNAVAILABLE)
        except DeadlineEditError as e:
            notifications.deadline_change_failed(obj, e)
            return Response(e.as_dict(), status=status.HTTP_400_BAD_REQUEST)

        obj.refresh_from_db()
        return Response(_deadline_payload(obj))
