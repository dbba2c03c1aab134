from __future__ import annotations

from typing import Any, Dict, List, Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone
from rest_framework import serializers

from requests_core.choices import ACTIVE_STATUSES, FINISHLESS_PRODUCTS, ProductType, RequestStatus
from requests_core.models import (
    AuditLog,
    ProductTemplate,
    RequestItem,
    SampleRequest,
    StatusChange,
)
from requests_core.products import LOAD_MODES, MODE_REPLACE, clean_template_items, replace_items
from requests_core.workflows import allowed_next_states
from requests_core.workflows.deadline import can_edit, lock_reason

User = get_user_model()


# ===============================================================
# Helpers
# ===============================================================

class ImmutableFieldsMixin:
    """
    Blocks updates to selected fields if they appear in incoming validated data.
    """
    immutable_fields: tuple[str, ...] = ()

    def get_immutable_fields(self) -> tuple[str, ...]:
        return self.immutable_fields

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        if self.instance is not None:
            for field in self.get_immutable_fields():
                if field in attrs:
                    raise serializers.ValidationError(
                        {field: "This field is immutable."}
                    )
        return super().validate(attrs)


class UserSlimSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ("id", "username", "email")
        read_only_fields = fields


# ===============================================================
# Sample request
# ===============================================================

CREATE_STATUSES = (RequestStatus.DRAFT, RequestStatus.PENDING_APPROVAL)


class RequestItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = RequestItem
        fields = (
            "id",
            "item_index",
            "product_type",
            "quality",
            "quality_custom",
            "sample_size",
            "sample_size_remarks",
            "thickness",
            "thickness_remarks",
            "finish",
            "finish_remarks",
            "quantity",
            "image_url",
        )
        read_only_fields = ("id", "item_index")
        extra_kwargs = {"quantity": {"min_value": 1}}

    def validate(self, attrs):
        if attrs.get("product_type") in FINISHLESS_PRODUCTS:
            attrs["finish"] = ""
            attrs["finish_remarks"] = ""
        return attrs


class SampleRequestSerializer(ImmutableFieldsMixin, serializers.ModelSerializer):
    """
    Items are written with the request and replace the stored list as a
    whole; their order in the payload becomes item_index.
    """

    created_by = UserSlimSerializer(read_only=True)
    assigned_to = UserSlimSerializer(read_only=True)
    items = RequestItemSerializer(many=True, required=False)

    status = serializers.ChoiceField(
        choices=[(s.value, s.label) for s in CREATE_STATUSES],
        required=False,
    )

    allowed_next_states = serializers.SerializerMethodField()
    can_edit_deadline = serializers.SerializerMethodField()
    deadline_lock_reason = serializers.SerializerMethodField()
    is_overdue = serializers.SerializerMethodField()

    immutable_fields = ("status", "required_by")

    class Meta:
        model = SampleRequest
        fields = (
            "id",
            "request_number",
            "status",
            "allowed_next_states",
            "created_by",
            "assigned_to",
            "department",
            "mobile_no",
            "pickup_responsibility",
            "pickup_remarks",
            "delivery_address",
            "required_by",
            "can_edit_deadline",
            "deadline_lock_reason",
            "is_overdue",
            "priority",
            "client_contact_name",
            "client_phone",
            "firm_name",
            "site_location",
            "requester_message",
            "coordinator_message",
            "dispatch_notes",
            "items",
            "completed_at",
            "dispatched_at",
            "received_at",
            "received_by",
            "created_at",
            "updated_at",
        )
        read_only_fields = (
            "id",
            "request_number",
            "created_by",
            "assigned_to",
            "dispatch_notes",
            "completed_at",
            "dispatched_at",
            "received_at",
            "received_by",
            "created_at",
            "updated_at",
        )

    def _is_draft(self) -> bool:
        return self.instance is not None and self.instance.status == RequestStatus.DRAFT

    def get_immutable_fields(self):
        # A draft has no deadline history yet, so its date is still free.
        if self._is_draft():
            return ("status",)
        return self.immutable_fields

    def validate_required_by(self, value):
        if (self.instance is None or self._is_draft()) and value <= timezone.now():
            raise serializers.ValidationError("Required-by date must be in the future.")
        return value

    def validate(self, attrs):
        attrs = super().validate(attrs)
        if (
            self.instance is None
            and attrs.get("status") == RequestStatus.PENDING_APPROVAL
            and not attrs.get("items")
        ):
            raise serializers.ValidationError(
                {"items": "Add at least one product before submitting."}
            )
        return attrs

    def create(self, validated_data):
        items = validated_data.pop("items", None)
        with transaction.atomic():
            instance = super().create(validated_data)
            if items:
                replace_items(instance, items)
        return instance

    def update(self, instance, validated_data):
        items = validated_data.pop("items", None)
        with transaction.atomic():
            instance = super().update(instance, validated_data)
            if items is not None:
                replace_items(instance, items)
        return instance

    def get_allowed_next_states(self, obj: SampleRequest) -> List[str]:
        return allowed_next_states(obj.status, obj.pickup_responsibility)

    def get_can_edit_deadline(self, obj: SampleRequest) -> bool:
        return can_edit(obj.status, obj.pickup_responsibility)

    def get_deadline_lock_reason(self, obj: SampleRequest) -> Optional[str]:
        return lock_reason(obj.status, obj.pickup_responsibility)

    def get_is_overdue(self, obj: SampleRequest) -> bool:
        return bool(
            obj.required_by
            and obj.status in ACTIVE_STATUSES
            and obj.required_by < timezone.now()
        )


class DuplicateSpecSerializer(serializers.Serializer):
    quality = serializers.CharField(allow_blank=True, required=False, default="")
    sample_size = serializers.CharField(allow_blank=True, required=False, default="")
    thickness = serializers.CharField(allow_blank=True, required=False, default="")
    quantity = serializers.IntegerField(min_value=1, required=False, default=1)


class DuplicateCheckSerializer(serializers.Serializer):
    client_contact_name = serializers.CharField(allow_blank=True)
    client_phone = serializers.CharField(allow_blank=True)
    items = DuplicateSpecSerializer(many=True, required=False, default=list)
    exclude = serializers.IntegerField(required=False, allow_null=True, default=None)


# ===============================================================
# Product templates
# ===============================================================

class TemplateItemSerializer(serializers.Serializer):
    product_type = serializers.ChoiceField(choices=ProductType.choices)
    selected_qualities = serializers.ListField(
        child=serializers.CharField(), required=False, default=list
    )
    quality = serializers.CharField(allow_blank=True, required=False, default="")
    sample_size = serializers.CharField()
    sample_size_custom = serializers.CharField(allow_blank=True, required=False, default="")
    thickness = serializers.CharField()
    thickness_custom = serializers.CharField(allow_blank=True, required=False, default="")
    finish = serializers.CharField(allow_blank=True, required=False, default="")
    finish_custom = serializers.CharField(allow_blank=True, required=False, default="")
    quantity = serializers.IntegerField(min_value=1, required=False, default=1)

    def validate(self, attrs):
        if not attrs.get("selected_qualities") and not attrs.get("quality", "").strip():
            raise serializers.ValidationError({"quality": "Pick at least one quality."})
        return attrs


class ProductTemplateSerializer(serializers.ModelSerializer):
    items = TemplateItemSerializer(many=True)
    item_count = serializers.SerializerMethodField()

    class Meta:
        model = ProductTemplate
        fields = ("id", "name", "items", "item_count", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")

    def validate_name(self, value: str) -> str:
        name = value.strip()
        if not name:
            raise serializers.ValidationError("Template name is required.")

        owner = self.context["request"].user
        clash = ProductTemplate.objects.filter(owner=owner, name=name)
        if self.instance is not None:
            clash = clash.exclude(pk=self.instance.pk)
        if clash.exists():
            raise serializers.ValidationError(
                "A template with this name already exists. Please choose a different name."
            )
        return name

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("A template needs at least one product.")
        return clean_template_items(value)

    def get_item_count(self, obj: ProductTemplate) -> int:
        return len(obj.items or [])

    def create(self, validated_data):
        return ProductTemplate.objects.create(**validated_data)

    def update(self, instance, validated_data):
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        return instance


class TemplateLoadSerializer(serializers.Serializer):
    request = serializers.PrimaryKeyRelatedField(queryset=SampleRequest.objects.all())
    mode = serializers.ChoiceField(choices=LOAD_MODES, default=MODE_REPLACE)


# ===============================================================
# Deadline edit
# ===============================================================

class DeadlineEditSerializer(serializers.Serializer):
    """
    Input shape only. Blank reasons and unchanged dates pass through here and
    are rejected by the deadline engine, which owns those rules.
    """

    required_by = serializers.DateTimeField()
    reason = serializers.CharField(allow_blank=True, required=False, default="", trim_whitespace=False)


# ===============================================================
# Status timeline
# ===============================================================

class StatusChangeSerializer(serializers.ModelSerializer):
    performed_by_username = serializers.CharField(
        source="performed_by.username", read_only=True, default=None
    )

    class Meta:
        model = StatusChange
        fields = (
            "id",
            "request",
            "from_status",
            "to_status",
            "performed_by",
            "performed_by_username",
            "notes",
            "created_at",
        )
        read_only_fields = fields


class TransitionSerializer(serializers.Serializer):
    to_status = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    received_by = serializers.CharField(required=False, allow_blank=True, default="")
    assigned_to = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(),
        required=False,
        allow_null=True,
        default=None,
    )


# ===============================================================
# AuditLog (READ-ONLY)
# ===============================================================

class AuditLogSerializer(serializers.ModelSerializer):
    user_username = serializers.CharField(source="user.username", read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = ("id", "user", "user_username", "action", "details", "created_at")
        read_only_fields = fields
