"""Ranking engine for community-suggested group products.

Products are ordered pinned first, then by score (upvotes minus downvotes),
then by most recent activity. The first ``maxActiveProducts`` entries of that
order are ``active``; the rest wait as ``requested``. Every function here
works on plain dicts so the service layer decides when to persist.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from freshshare.core.constants import (
    DEFAULT_MAX_ACTIVE_PRODUCTS,
    MAX_ACTIVE_PRODUCTS_LIMIT,
    PRODUCT_NAME_MAX_LENGTH,
    PRODUCT_STATUS_ACTIVE,
    PRODUCT_STATUS_REQUESTED,
    PRODUCT_TEXT_MAX_LENGTH,
    VOTE_CLEAR,
    VOTE_DOWN,
    VOTE_UP,
)
from freshshare.group.models import ProductListResponse, RankedProduct
from freshshare.utils import as_datetime, utcnow

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _clip(value: Any, limit: int) -> str:
    return str(value or "").strip()[:limit]


def clamp_max_active(value: Any, default: int = DEFAULT_MAX_ACTIVE_PRODUCTS) -> int:
    """Return ``value`` as an int in [0, 200], or ``default`` when unusable."""
    try:
        cap = int(value)
    except (TypeError, ValueError):
        cap = int(default)
    return max(0, min(MAX_ACTIVE_PRODUCTS_LIMIT, cap))


def normalize_name(name: Any) -> str:
    """Key used for duplicate detection: the stored name, case-folded."""
    return _clip(name, PRODUCT_NAME_MAX_LENGTH).lower()


def make_product(
    name: str,
    created_by: str | None,
    note: str = "",
    image_url: str = "",
    product_url: str = "",
    starter: bool = False,
    now: datetime | None = None,
) -> RankedProduct:
    """Build a new ranked product.

    A suggestion starts with the creator's own upvote. A starter product
    (seeded when a group is set up) starts with no voters at all.
    """
    now = now or utcnow()
    upvoters = [] if starter or not created_by else [created_by]
    return {
        "id": uuid.uuid4().hex,
        "name": _clip(name, PRODUCT_NAME_MAX_LENGTH),
        "note": _clip(note, PRODUCT_TEXT_MAX_LENGTH),
        "imageUrl": _clip(image_url, PRODUCT_TEXT_MAX_LENGTH),
        "productUrl": _clip(product_url, PRODUCT_TEXT_MAX_LENGTH),
        "createdBy": created_by,
        "status": PRODUCT_STATUS_REQUESTED,
        "score": len(upvoters),
        "upvoters": upvoters,
        "downvoters": [],
        "pinned": False,
        "lastActivityAt": now,
        "createdAt": now,
        "updatedAt": now,
    }


def find_product(products: list[RankedProduct], product_id: str) -> int:
    """Return the index of ``product_id`` in ``products``, or -1."""
    for index, product in enumerate(products):
        if str(product.get("id")) == str(product_id):
            return index
    return -1


def touch(product: RankedProduct, now: datetime | None = None) -> None:
    """Bump a product's activity timestamp."""
    now = now or utcnow()
    product["lastActivityAt"] = now
    product["updatedAt"] = now


def apply_vote(
    product: RankedProduct, user_id: str, vote: str, now: datetime | None = None
) -> None:
    """Record ``vote`` (up, down or clear) for ``user_id`` on ``product``.

    Set semantics: repeating a vote leaves the voter sets unchanged, and a
    user is never in both sets at once.
    """
    if vote not in (VOTE_UP, VOTE_DOWN, VOTE_CLEAR):
        raise ValueError(f"Unknown vote: {vote!r}")

    upvoters = [uid for uid in product.get("upvoters") or [] if uid != user_id]
    downvoters = [uid for uid in product.get("downvoters") or [] if uid != user_id]
    if vote == VOTE_UP:
        upvoters.append(user_id)
    elif vote == VOTE_DOWN:
        downvoters.append(user_id)

    product["upvoters"] = upvoters
    product["downvoters"] = downvoters
    product["score"] = len(upvoters) - len(downvoters)
    touch(product, now)


def _sort_key(product: RankedProduct) -> tuple[bool, int, float]:
    activity = as_datetime(product.get("lastActivityAt")) or _EPOCH
    return (
        not product.get("pinned"),
        -int(product.get("score") or 0),
        -activity.timestamp(),
    )


def recalculate_product_ranks(
    products: list[RankedProduct],
    max_active: Any = DEFAULT_MAX_ACTIVE_PRODUCTS,
    now: datetime | None = None,
) -> bool:
    """Recompute scores, re-sort ``products`` in place and assign statuses.

    Returns True when a score, a backfilled timestamp, a status or the order
    changed, so the caller knows whether the list needs saving. Running it
    twice in a row reports no change the second time.
    """
    changed = False
    fallback_now = now or utcnow()

    for product in products:
        upvotes = len(product.get("upvoters") or [])
        score = upvotes - len(product.get("downvoters") or [])
        if product.get("score") != score:
            product["score"] = score
            changed = True
        if as_datetime(product.get("lastActivityAt")) is None:
            product["lastActivityAt"] = (
                as_datetime(product.get("updatedAt"))
                or as_datetime(product.get("createdAt"))
                or fallback_now
            )
            changed = True

    before = [product.get("id") for product in products]
    products.sort(key=_sort_key)
    if [product.get("id") for product in products] != before:
        changed = True

    cap = clamp_max_active(max_active)
    for index, product in enumerate(products):
        status = PRODUCT_STATUS_ACTIVE if index < cap else PRODUCT_STATUS_REQUESTED
        if product.get("status") != status:
            product["status"] = status
            changed = True

    return changed


def _iso(value: Any) -> str | None:
    moment = as_datetime(value)
    return moment.isoformat() if moment else None


def serialize_product(product: RankedProduct, viewer_id: str | None) -> dict[str, Any]:
    """Project a product for API consumption from ``viewer_id``'s point of view."""
    upvoters = product.get("upvoters") or []
    downvoters = product.get("downvoters") or []
    my_vote = None
    if viewer_id and viewer_id in upvoters:
        my_vote = VOTE_UP
    elif viewer_id and viewer_id in downvoters:
        my_vote = VOTE_DOWN

    return {
        "id": product.get("id"),
        "name": product.get("name", ""),
        "note": product.get("note", ""),
        "imageUrl": product.get("imageUrl", ""),
        "productUrl": product.get("productUrl", ""),
        "status": product.get("status", PRODUCT_STATUS_REQUESTED),
        "score": product.get("score", 0),
        "upvotes": len(upvoters),
        "downvotes": len(downvoters),
        "myVote": my_vote,
        "isMine": bool(viewer_id) and product.get("createdBy") == viewer_id,
        "pinned": bool(product.get("pinned")),
        "createdBy": product.get("createdBy"),
        "lastActivityAt": _iso(product.get("lastActivityAt")),
        "createdAt": _iso(product.get("createdAt")),
    }


def compose_product_response(
    products: list[RankedProduct],
    max_active: Any,
    viewer_id: str | None,
) -> ProductListResponse:
    """Serialize an already-ranked list with 1-based ranks and metrics."""
    cap = clamp_max_active(max_active)
    serialized = []
    for index, product in enumerate(products):
        item = serialize_product(product, viewer_id)
        item["rank"] = index + 1
        item["isActiveWithinCap"] = index < cap
        serialized.append(item)

    active_ids = [
        item["id"] for item in serialized if item["status"] == PRODUCT_STATUS_ACTIVE
    ]
    return {
        "products": serialized,
        "metrics": {
            "total": len(serialized),
            "active": len(active_ids),
            "requested": sum(
                1 for item in serialized if item["status"] == PRODUCT_STATUS_REQUESTED
            ),
            "pinned": sum(1 for item in serialized if item["pinned"]),
            "maxActiveProducts": cap,
            "activeProductIds": active_ids,
        },
    }
