# requests_core/models/catalog.py

from django.conf import settings
from django.db import models
from django.db.models import Q

from requests_core.choices import ProductType
from .core import TimeStampedModel


class RequestItem(TimeStampedModel):
    """
    One product line on a sample request. A request carries one or more
    items, ordered by item_index (0-based).
    """

    request = models.ForeignKey(
        "requests_core.SampleRequest",
        on_delete=models.CASCADE,
        related_name="items",
    )
    item_index = models.PositiveIntegerField(default=0)

    product_type = models.CharField(max_length=32, choices=ProductType.choices)
    quality = models.CharField(max_length=255)
    quality_custom = models.CharField(max_length=255, blank=True)
    sample_size = models.CharField(max_length=64)
    sample_size_remarks = models.CharField(max_length=255, blank=True)
    thickness = models.CharField(max_length=64)
    thickness_remarks = models.CharField(max_length=255, blank=True)
    # Blank for terrazzo and quartz
    finish = models.CharField(max_length=64, blank=True)
    finish_remarks = models.CharField(max_length=255, blank=True)
    quantity = models.PositiveIntegerField(default=1)

    image_url = models.URLField(max_length=500, blank=True)

    class Meta:
        ordering = ["request_id", "item_index", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["request", "item_index"],
                name="request_item_unique_index",
            ),
            models.CheckConstraint(
                name="request_item_quantity_positive",
                condition=Q(quantity__gt=0),
            ),
        ]

    def __str__(self):
        return f"{self.request_id}#{self.item_index}: {self.product_type} {self.quality} x{self.quantity}"


class ProductTemplate(TimeStampedModel):
    """
    A named, reusable list of product specifications owned by one user.

    items holds plain product dicts (no images), see
    requests_core.products.clean_template_items.
    """

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="product_templates",
    )
    name = models.CharField(max_length=120)
    items = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "name"],
                name="product_template_unique_name_per_owner",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({len(self.items or [])} items)"
