# requests_core/admin.py

from django.contrib import admin

from .models import (
    AuditLog,
    ProductTemplate,
    RequestItem,
    RequiredByChange,
    SampleRequest,
    StatusChange,
    UserRole,
)


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =============================================================
# History (READ-ONLY AUDIT LOG)
# =============================================================

class RequiredByChangeInline(admin.TabularInline):
    model = RequiredByChange
    extra = 0
    can_delete = False
    readonly_fields = [f.name for f in RequiredByChange._meta.fields]

    def has_add_permission(self, request, obj=None):
        return False


class StatusChangeInline(admin.TabularInline):
    model = StatusChange
    extra = 0
    can_delete = False
    readonly_fields = [f.name for f in StatusChange._meta.fields]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(RequiredByChange)
class RequiredByChangeAdmin(ReadOnlyAdmin):
    list_display = ("request", "old_deadline", "new_deadline", "changed_by_name", "timestamp")
    search_fields = ("request__request_number", "changed_by_name", "reason")
    ordering = ("-timestamp",)
    readonly_fields = [f.name for f in RequiredByChange._meta.fields]


@admin.register(StatusChange)
class StatusChangeAdmin(ReadOnlyAdmin):
    list_display = ("request", "from_status", "to_status", "performed_by", "created_at")
    list_filter = ("from_status", "to_status")
    search_fields = ("request__request_number", "performed_by__username")
    ordering = ("-created_at",)
    readonly_fields = [f.name for f in StatusChange._meta.fields]


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyAdmin):
    list_display = ("created_at", "user", "action")
    search_fields = ("action", "user__username")
    ordering = ("-created_at",)
    readonly_fields = [f.name for f in AuditLog._meta.fields]


# =============================================================
# Products
# =============================================================

class RequestItemInline(admin.TabularInline):
    model = RequestItem
    extra = 0
    ordering = ("item_index",)
    fields = ("item_index", "product_type", "quality", "sample_size", "thickness", "finish", "quantity")


@admin.register(ProductTemplate)
class ProductTemplateAdmin(admin.ModelAdmin):
    list_display = ("name", "owner", "created_at", "updated_at")
    search_fields = ("name", "owner__username")
    ordering = ("owner__username", "name")


# =============================================================
# Requests and roles
# =============================================================

@admin.register(SampleRequest)
class SampleRequestAdmin(admin.ModelAdmin):
    """
    Status and required-by are read-only here; they change through the
    workflow and deadline endpoints so history is always written.
    """

    list_display = (
        "request_number",
        "status",
        "priority",
        "pickup_responsibility",
        "required_by",
        "created_by",
        "assigned_to",
        "created_at",
    )
    list_filter = ("status", "priority", "pickup_responsibility")
    search_fields = ("request_number", "firm_name", "client_contact_name")
    ordering = ("-created_at",)
    readonly_fields = (
        "request_number",
        "completed_at",
        "dispatched_at",
        "received_at",
        "received_by",
        "created_at",
        "updated_at",
    )
    inlines = [RequestItemInline, StatusChangeInline, RequiredByChangeInline]

    def get_readonly_fields(self, request, obj=None):
        fields = tuple(super().get_readonly_fields(request, obj))
        if obj is not None:
            fields += ("status", "required_by")
        return fields


@admin.register(UserRole)
class UserRoleAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "created_at")
    list_filter = ("role",)
    search_fields = ("user__username",)
