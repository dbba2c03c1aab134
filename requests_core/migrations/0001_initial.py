# requests_core/migrations/0001_initial.py

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


STATUS_CHOICES = [
    ("draft", "Draft"),
    ("pending_approval", "Pending approval"),
    ("approved", "Approved"),
    ("assigned", "Assigned"),
    ("in_production", "In production"),
    ("ready", "Ready"),
    ("dispatched", "Dispatched"),
    ("received", "Received"),
    ("rejected", "Rejected"),
]

PICKUP_CHOICES = [
    ("self_pickup", "Self pickup"),
    ("courier", "Courier"),
    ("company_vehicle", "Company vehicle"),
    ("field_boy", "Field boy"),
    ("3rd_party", "3rd party"),
    ("other", "Other"),
]

PRIORITY_CHOICES = [("urgent", "Urgent"), ("normal", "Normal")]

ROLE_CHOICES = [
    ("admin", "Admin"),
    ("coordinator", "Coordinator"),
    ("requester", "Requester"),
    ("maker", "Maker"),
    ("dispatcher", "Dispatcher"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="UserRole",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("role", models.CharField(choices=ROLE_CHOICES, max_length=32)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="request_roles",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["user__username", "role"],
                "unique_together": {("user", "role")},
            },
        ),
        migrations.CreateModel(
            name="SampleRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("request_number", models.CharField(editable=False, max_length=32, unique=True)),
                (
                    "status",
                    models.CharField(choices=STATUS_CHOICES, db_index=True, default="draft", max_length=32),
                ),
                ("department", models.CharField(blank=True, max_length=64)),
                ("mobile_no", models.CharField(blank=True, max_length=32)),
                (
                    "pickup_responsibility",
                    models.CharField(choices=PICKUP_CHOICES, default="courier", max_length=32),
                ),
                ("pickup_remarks", models.TextField(blank=True)),
                ("delivery_address", models.TextField(blank=True)),
                ("required_by", models.DateTimeField(db_index=True)),
                (
                    "priority",
                    models.CharField(choices=PRIORITY_CHOICES, db_index=True, default="normal", max_length=16),
                ),
                ("client_contact_name", models.CharField(blank=True, max_length=255)),
                ("client_phone", models.CharField(blank=True, max_length=32)),
                ("firm_name", models.CharField(blank=True, max_length=255)),
                ("site_location", models.CharField(blank=True, max_length=255)),
                ("requester_message", models.TextField(blank=True)),
                ("coordinator_message", models.TextField(blank=True)),
                ("dispatch_notes", models.TextField(blank=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("dispatched_at", models.DateTimeField(blank=True, null=True)),
                ("received_at", models.DateTimeField(blank=True, null=True)),
                ("received_by", models.CharField(blank=True, max_length=255)),
                (
                    "assigned_to",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assigned_sample_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sample_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "required_by"], name="request_status_deadline_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("action", models.CharField(db_index=True, max_length=255)),
                ("details", models.JSONField(blank=True, default=dict)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["action", "created_at"], name="audit_action_time_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="RequiredByChange",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("old_deadline", models.DateTimeField()),
                ("new_deadline", models.DateTimeField()),
                ("reason", models.TextField()),
                ("changed_by_name", models.CharField(max_length=255)),
                ("timestamp", models.DateTimeField(db_index=True)),
                (
                    "changed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="deadline_changes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="deadline_history",
                        to="requests_core.samplerequest",
                    ),
                ),
            ],
            options={
                "ordering": ["id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("reason", ""), _negated=True),
                        name="deadline_change_reason_not_blank",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("old_deadline", models.F("new_deadline")), _negated=True),
                        name="deadline_change_not_noop",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StatusChange",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("from_status", models.CharField(choices=STATUS_CHOICES, max_length=32)),
                ("to_status", models.CharField(choices=STATUS_CHOICES, max_length=32)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="status_changes",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_history",
                        to="requests_core.samplerequest",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["request", "created_at"], name="status_change_req_time_idx"),
                ],
            },
        ),
    ]
