# requests_core/products.py
"""
Product lines on a request, and the reusable templates they can be loaded from.

Templates store plain specifications (no images). Loading a template into a
draft either replaces its current products or appends after them.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

from django.db import transaction
from django.db.models import Max

from requests_core.choices import FINISHLESS_PRODUCTS
from requests_core.models import ProductTemplate, RequestItem, SampleRequest

logger = logging.getLogger(__name__)


MODE_APPEND = "append"
MODE_REPLACE = "replace"
LOAD_MODES = (MODE_APPEND, MODE_REPLACE)


def _text(value) -> str:
    return str(value or "").strip()


def clean_template_items(items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Reduce incoming product dicts to the stored template shape. Unknown keys
    (images, client-side ids) are dropped; missing ones get empty defaults.
    """
    cleaned = []
    for item in items or []:
        qualities = [_text(q) for q in (item.get("selected_qualities") or []) if _text(q)]
        cleaned.append(
            {
                "product_type": _text(item.get("product_type")),
                "selected_qualities": qualities,
                "quality": _text(item.get("quality")),
                "sample_size": _text(item.get("sample_size")),
                "sample_size_custom": _text(item.get("sample_size_custom")),
                "thickness": _text(item.get("thickness")),
                "thickness_custom": _text(item.get("thickness_custom")),
                "finish": _text(item.get("finish")),
                "finish_custom": _text(item.get("finish_custom")),
                "quantity": int(item.get("quantity") or 1),
            }
        )
    return cleaned


def hydrate_template_items(items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Expand stored template products into RequestItem field dicts.

    A product with several selected qualities becomes one item per quality.
    Custom size/thickness/finish text lands in the matching remarks field.
    """
    hydrated = []
    for product in clean_template_items(items):
        qualities = product["selected_qualities"] or [product["quality"]]
        finishless = product["product_type"] in FINISHLESS_PRODUCTS

        for quality in qualities:
            hydrated.append(
                {
                    "product_type": product["product_type"],
                    "quality": quality,
                    "sample_size": product["sample_size"],
                    "sample_size_remarks": product["sample_size_custom"],
                    "thickness": product["thickness"],
                    "thickness_remarks": product["thickness_custom"],
                    "finish": "" if finishless else product["finish"],
                    "finish_remarks": "" if finishless else product["finish_custom"],
                    "quantity": product["quantity"],
                }
            )
    return hydrated


# ===============================================================
# Writing items
# ===============================================================
def _next_index(sample_request: SampleRequest) -> int:
    top = sample_request.items.aggregate(top=Max("item_index"))["top"]
    return 0 if top is None else top + 1


def _build(sample_request: SampleRequest, rows: Iterable[Dict[str, Any]], start: int) -> List[RequestItem]:
    return [
        RequestItem(request=sample_request, item_index=start + offset, **row)
        for offset, row in enumerate(rows)
    ]


@transaction.atomic
def replace_items(sample_request: SampleRequest, rows: Iterable[Dict[str, Any]]) -> List[RequestItem]:
    """
    Swap the request's products for rows, re-indexed from 0 in the given order.
    """
    sample_request.items.all().delete()
    return RequestItem.objects.bulk_create(_build(sample_request, rows, 0))


@transaction.atomic
def append_items(sample_request: SampleRequest, rows: Iterable[Dict[str, Any]]) -> List[RequestItem]:
    return RequestItem.objects.bulk_create(
        _build(sample_request, rows, _next_index(sample_request))
    )


@transaction.atomic
def apply_template(*, template: ProductTemplate, sample_request: SampleRequest, mode: str = MODE_REPLACE) -> List[RequestItem]:
    """
    Load a template's products into a request. Returns the request's full,
    ordered item list afterwards.
    """
    if mode not in LOAD_MODES:
        raise ValueError(f"Unknown load mode: {mode!r}")

    locked = SampleRequest.objects.select_for_update().get(pk=sample_request.pk)
    rows = hydrate_template_items(template.items)

    if mode == MODE_REPLACE:
        replace_items(locked, rows)
    else:
        append_items(locked, rows)

    logger.info(
        "Template %s loaded into %s (%s, %d item(s))",
        template.pk,
        locked.request_number,
        mode,
        len(rows),
    )
    return list(locked.items.order_by("item_index", "id"))
