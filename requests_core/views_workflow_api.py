# requests_core/views_workflow_api.py

from __future__ import annotations

from django.shortcuts import get_object_or_404

from drf_spectacular.utils import extend_schema
from rest_framework.exceptions import NotAuthenticated
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from requests_core.models import SampleRequest
from requests_core.serializers import StatusChangeSerializer, TransitionSerializer
from requests_core.workflows import allowed_transitions, workflow_definition
from requests_core.workflows.executor import execute_transition
from requests_core.workflows.session import actor_for


# =============================================================
# Helpers
# =============================================================

def _require_actor(user):
    """
    Enforce authentication in a way that returns DRF's normal 401/403
    instead of Django login redirects (302) under session-based setups.
    """
    if not user or not getattr(user, "is_authenticated", False):
        raise NotAuthenticated("Authentication credentials were not provided.")
    return actor_for(user)


def _get_visible(actor, pk) -> SampleRequest:
    return get_object_or_404(SampleRequest.objects.visible_to(actor), pk=pk)


# =============================================================
# API: Workflow definition
# =============================================================

class WorkflowDefinitionView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(tags=["Workflow"])
    def get(self, request):
        return Response(workflow_definition())


# =============================================================
# API: Allowed transitions
# =============================================================

class WorkflowAllowedView(APIView):
    """
    GET /api/requests/<pk>/workflow/allowed/

    Returns:
    - current state
    - allowed next states (role and pickup-method aware)
    - user roles considered
    """
    permission_classes = [AllowAny]

    @extend_schema(tags=["Workflow"])
    def get(self, request, pk: int):
        actor = _require_actor(request.user)
        instance = _get_visible(actor, pk)

        allowed = allowed_transitions(
            instance.status,
            actor.roles,
            instance.pickup_responsibility,
        )

        return Response(
            {
                "object_id": instance.pk,
                "current": instance.status,
                "pickup_responsibility": instance.pickup_responsibility,
                "allowed": allowed,
                "roles": sorted(actor.roles),
            }
        )


# =============================================================
# API: Execute workflow transition (AUTHORITATIVE)
# =============================================================

class WorkflowTransitionView(APIView):
    """
    POST /api/requests/<pk>/workflow/transition/

    Body:
        {"to_status": "approved", "notes": "..."}
        {"to_status": "assigned", "assigned_to": <maker user id>}
        {"to_status": "received", "received_by": "..."}

    The only API entry point that moves a request's status.
    """
    permission_classes = [AllowAny]

    @extend_schema(tags=["Workflow"], request=TransitionSerializer)
    def post(self, request, pk: int):
        actor = _require_actor(request.user)
        instance = _get_visible(actor, pk)

        payload = {k: request.data.get(k) for k in (request.data or {})}
        if "to_status" not in payload and "status" in payload:
            payload["to_status"] = payload["status"]

        serializer = TransitionSerializer(data=payload)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = execute_transition(
            instance=instance,
            new_status=data["to_status"],
            actor=actor,
            notes=data.get("notes") or "",
            received_by=data.get("received_by") or "",
            assigned_to=data.get("assigned_to"),
        )

        instance.refresh_from_db()

        return Response(
            {
                "object_id": instance.pk,
                "changed": result["changed"],
                "from_status": result["from_status"],
                "current": instance.status,
                "allowed": allowed_transitions(
                    instance.status,
                    actor.roles,
                    instance.pickup_responsibility,
                ),
            }
        )


# =============================================================
# API: Status timeline
# =============================================================

class WorkflowTimelineView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(tags=["Workflow"])
    def get(self, request, pk: int):
        actor = _require_actor(request.user)
        instance = _get_visible(actor, pk)

        events = instance.status_history.select_related("performed_by").order_by("created_at", "id")

        return Response(
            {
                "object_id": instance.pk,
                "current": instance.status,
                "timeline": StatusChangeSerializer(events, many=True).data,
            }
        )
