# requests_core/migrations/0002_request_items_and_templates.py

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


PRODUCT_TYPE_CHOICES = [
    ("marble", "Marble"),
    ("tile", "Tile"),
    ("magro_stone", "Magro stone"),
    ("terrazzo", "Terrazzo"),
    ("quartz", "Quartz"),
]


class Migration(migrations.Migration):

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("requests_core", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="RequestItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("item_index", models.PositiveIntegerField(default=0)),
                ("product_type", models.CharField(choices=PRODUCT_TYPE_CHOICES, max_length=32)),
                ("quality", models.CharField(max_length=255)),
                ("quality_custom", models.CharField(blank=True, max_length=255)),
                ("sample_size", models.CharField(max_length=64)),
                ("sample_size_remarks", models.CharField(blank=True, max_length=255)),
                ("thickness", models.CharField(max_length=64)),
                ("thickness_remarks", models.CharField(blank=True, max_length=255)),
                ("finish", models.CharField(blank=True, max_length=64)),
                ("finish_remarks", models.CharField(blank=True, max_length=255)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("image_url", models.URLField(blank=True, max_length=500)),
                (
                    "request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="requests_core.samplerequest",
                    ),
                ),
            ],
            options={
                "ordering": ["request_id", "item_index", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("request", "item_index"),
                        name="request_item_unique_index",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gt", 0)),
                        name="request_item_quantity_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProductTemplate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=120)),
                ("items", models.JSONField(blank=True, default=list)),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="product_templates",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("owner", "name"),
                        name="product_template_unique_name_per_owner",
                    ),
                ],
            },
        ),
    ]
