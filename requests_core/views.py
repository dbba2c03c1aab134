# requests_core/views.py
from __future__ import annotations

import logging

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotAuthenticated, PermissionDenied, ValidationError
from rest_framework.filters import OrderingFilter
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from requests_core.choices import RequestStatus, Role
from requests_core.duplicates import check_for_duplicates
from requests_core.filters import SampleRequestFilter
from requests_core.models import AuditLog, ProductTemplate, SampleRequest
from requests_core.permissions import IsRoleAllowedOrReadOnly
from requests_core.products import apply_template
from requests_core.serializers import (
    AuditLogSerializer,
    DuplicateCheckSerializer,
    ProductTemplateSerializer,
    RequestItemSerializer,
    SampleRequestSerializer,
    TemplateLoadSerializer,
)
from requests_core.workflows.session import actor_for

logger = logging.getLogger(__name__)


# ===============================================================
# Utilities
# ===============================================================
SERVER_CONTROLLED = ["request_number", "created_by"]
WORKFLOW_CONTROLLED = ["status", "required_by"]
COORDINATOR_ONLY_FIELDS = ["coordinator_message"]
STAFF_EDITABLE_FIELDS = ["priority", "coordinator_message"]


def _deny_if_payload_has(request, fields: list[str], message: str):
    incoming = getattr(request, "data", {}) or {}
    blocked = [f for f in fields if f in incoming]
    if blocked:
        raise ValidationError({f: message for f in blocked})


def _require_actor(request):
    user = getattr(request, "user", None)
    if not user or not user.is_authenticated:
        raise NotAuthenticated("Authentication credentials were not provided.")
    return actor_for(user)


def _is_own_draft(instance: SampleRequest, actor) -> bool:
    return instance.status == RequestStatus.DRAFT and instance.created_by_id == actor.user.pk


# ===============================================================
# Health
# ===============================================================
class HealthCheckView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(tags=["System"])
    def get(self, request):
        return Response({"status": "ok", "service": "SampleTrack"})


# ===============================================================
# Sample requests
# ===============================================================
class SampleRequestViewSet(viewsets.ModelViewSet):
    """
    Role-scoped CRUD for sample requests.

    Drafts belong to their creator, who may change any detail (deadline
    included) or delete them. Once submitted, status and required-by move
    through /workflow/transition/ and /deadline/ only; coordinators may still
    adjust the coordinator fields.
    """

    serializer_class = SampleRequestSerializer
    permission_classes = [IsAuthenticated, IsRoleAllowedOrReadOnly]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = SampleRequestFilter
    ordering_fields = ["created_at", "required_by", "priority", "status"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        actor = actor_for(self.request.user)
        return (
            SampleRequest.objects.visible_to(actor)
            .select_related("created_by", "assigned_to")
            .prefetch_related("items")
            .order_by("-created_at", "-id")
        )

    def perform_create(self, serializer):
        _deny_if_payload_has(self.request, SERVER_CONTROLLED, "This field is server-controlled.")
        _deny_if_payload_has(self.request, COORDINATOR_ONLY_FIELDS, "This field is set by the coordinator.")
        serializer.save(created_by=self.request.user)

    def perform_update(self, serializer):
        _deny_if_payload_has(self.request, SERVER_CONTROLLED, "This field cannot be modified.")

        actor = _require_actor(self.request)
        instance = serializer.instance

        if _is_own_draft(instance, actor):
            _deny_if_payload_has(self.request, COORDINATOR_ONLY_FIELDS, "This field is set by the coordinator.")
            instance._workflow_bypass = True
            serializer.save()
            logger.info("Draft %s updated by %s", instance.request_number, actor.user.get_username())
            return

        _deny_if_payload_has(
            self.request,
            WORKFLOW_CONTROLLED,
            "This field can only be changed through its workflow endpoint.",
        )

        if not actor.has_role(Role.ADMIN, Role.COORDINATOR):
            if instance.created_by_id == actor.user.pk:
                raise PermissionDenied(
                    "Only drafts can be edited. Submitted requests change through the workflow."
                )
            raise PermissionDenied("Only the requester or a coordinator can edit request details.")

        extra = [f for f in (getattr(self.request, "data", {}) or {}) if f not in STAFF_EDITABLE_FIELDS]
        _deny_if_payload_has(self.request, extra, "Coordinators can only change coordinator fields.")

        serializer.save()

    def perform_destroy(self, instance):
        actor = _require_actor(self.request)
        if not _is_own_draft(instance, actor):
            raise PermissionDenied("Only your own drafts can be deleted.")

        number = instance.request_number
        obj_id = instance.pk
        instance.delete()

        AuditLog.objects.create(
            user=actor.user,
            action=f"DELETE {number}",
            details={"request_id": obj_id},
        )
        logger.info("Draft %s deleted by %s", number, actor.user.get_username())

    @extend_schema(
        tags=["Requests"],
        request=DuplicateCheckSerializer,
        summary="Look for a recent request for the same client before submitting",
    )
    @action(detail=False, methods=["post"], url_path="check-duplicates")
    def check_duplicates(self, request):
        _require_actor(request)

        ser = DuplicateCheckSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        result = check_for_duplicates(
            client_name=data["client_contact_name"],
            client_phone=data["client_phone"],
            items=data["items"],
            exclude_pk=data["exclude"],
        )
        return Response(result)


# ===============================================================
# Product templates
# ===============================================================
class ProductTemplateViewSet(viewsets.ModelViewSet):
    """
    A user's own product templates. Other users' templates are invisible.
    """

    serializer_class = ProductTemplateSerializer
    permission_classes = [IsAuthenticated]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        return ProductTemplate.objects.filter(owner=self.request.user).order_by("-created_at", "-id")

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)

    @extend_schema(tags=["Templates"], request=TemplateLoadSerializer)
    @action(detail=True, methods=["post"])
    def load(self, request, pk=None):
        """
        Load this template's products into one of the caller's drafts,
        replacing (default) or appending to its current products.
        """
        template = self.get_object()
        actor = _require_actor(request)

        ser = TemplateLoadSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        target = ser.validated_data["request"]

        if not _is_own_draft(target, actor):
            raise PermissionDenied("Templates can only be loaded into your own drafts.")

        items = apply_template(
            template=template,
            sample_request=target,
            mode=ser.validated_data["mode"],
        )
        return Response(
            {
                "request": target.pk,
                "mode": ser.validated_data["mode"],
                "items": RequestItemSerializer(items, many=True).data,
            }
        )


# ===============================================================
# Audit logs (READ-ONLY)
# ===============================================================
class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = AuditLogSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        actor = actor_for(self.request.user)
        if actor is None or not actor.has_role(Role.ADMIN, Role.COORDINATOR):
            return AuditLog.objects.none()
        return AuditLog.objects.select_related("user").order_by("-created_at", "-id")
