# requests_core/duplicates.py
"""
Pre-submission duplicate check.

Looks back over recently created requests (drafts and rejected ones excluded)
for the same client, matched on name and phone ignoring case and surrounding
whitespace:

  exact_match   same client and an item with the same quality, sample size,
                thickness and quantity
  client_match  same client, different products

The newest matching request wins; an exact match beats a client match. The
search spans every requester, not just the caller's own requests.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Iterable, Optional

from django.db.models import Q
from django.db.models.functions import Lower, Trim
from django.utils import timezone

from requests_core.choices import RequestStatus
from requests_core.models import RequestItem, SampleRequest


LOOKBACK = timedelta(days=14)

EXACT_MATCH = "exact_match"
CLIENT_MATCH = "client_match"

EXCLUDED_STATUSES = (RequestStatus.DRAFT, RequestStatus.REJECTED)


def _key(value) -> str:
    return str(value or "").strip().lower()


def _recent_for_client(client_name: str, client_phone: str, *, now=None, exclude_pk=None):
    cutoff = (now or timezone.now()) - LOOKBACK
    qs = (
        SampleRequest.objects.exclude(status__in=EXCLUDED_STATUSES)
        .filter(created_at__gte=cutoff)
        .annotate(
            _client_key=Lower(Trim("client_contact_name")),
            _phone_key=Lower(Trim("client_phone")),
        )
        .filter(_client_key=_key(client_name), _phone_key=_key(client_phone))
    )
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs


def _product_q(product: Dict[str, Any]) -> Q:
    return Q(
        _quality_key=_key(product.get("quality")),
        _size_key=_key(product.get("sample_size")),
        _thickness_key=_key(product.get("thickness")),
        quantity=product.get("quantity"),
    )


def _describe(sample_request: SampleRequest, item: Optional[RequestItem]) -> Dict[str, Any]:
    creator = sample_request.created_by
    return {
        "id": sample_request.pk,
        "request_number": sample_request.request_number,
        "created_at": sample_request.created_at.isoformat(),
        "requester_name": creator.get_full_name() or creator.get_username(),
        "status": sample_request.status,
        "client_contact_name": sample_request.client_contact_name,
        "product_type": item.product_type if item else None,
        "quality": item.quality if item else None,
        "sample_size": item.sample_size if item else None,
        "thickness": item.thickness if item else None,
        "quantity": item.quantity if item else None,
    }


def check_for_duplicates(
    *,
    client_name: str,
    client_phone: str,
    items: Iterable[Dict[str, Any]] = (),
    now=None,
    exclude_pk=None,
) -> Dict[str, Any]:
    """
    Returns {"is_duplicate", "duplicate_type", "existing_request"}.

    items are products with quality, sample_size, thickness and
    quantity. exclude_pk leaves out the request being submitted.
    """
    if not _key(client_name) or not _key(client_phone):
        return {"is_duplicate": False, "duplicate_type": None, "existing_request": None}

    candidates = _recent_for_client(client_name, client_phone, now=now, exclude_pk=exclude_pk)

    wanted = [p for p in items or [] if p]
    if wanted:
        product_q = Q()
        for product in wanted:
            product_q |= _product_q(product)

        item = (
            RequestItem.objects.filter(request__in=candidates.values("pk"))
            .annotate(
                _quality_key=Lower(Trim("quality")),
                _size_key=Lower(Trim("sample_size")),
                _thickness_key=Lower(Trim("thickness")),
            )
            .filter(product_q)
            .select_related("request__created_by")
            .order_by("-request__created_at", "-request_id", "item_index")
            .first()
        )
        if item is not None:
            return {
                "is_duplicate": True,
                "duplicate_type": EXACT_MATCH,
                "existing_request": _describe(item.request, item),
            }

    match = candidates.select_related("created_by").order_by("-created_at", "-id").first()
    if match is not None:
        first_item = match.items.order_by("item_index", "id").first()
        return {
            "is_duplicate": True,
            "duplicate_type": CLIENT_MATCH,
            "existing_request": _describe(match, first_item),
        }

    return {"is_duplicate": False, "duplicate_type": None, "existing_request": None}
