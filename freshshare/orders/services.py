"""Service layer for quick checkout and reorder."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flask import current_app

from freshshare.core.constants import (
    DEFAULT_CASE_SIZE,
    PIECES_ERROR,
    PIECES_MISSING,
    PIECES_SKIPPED,
    QUICK_ORDER_SUBMITTED,
    QUICK_ORDERS_COLLECTION,
)
from freshshare.errors import (
    AccessDenied,
    ConfigurationError,
    NotFoundError,
    ValidationError,
)
from freshshare.marketplace.case_reservation import PieceResult
from freshshare.marketplace.services import ListingService
from freshshare.utils import to_number, utcnow

from .models import QuickOrder, QuickOrderContact, QuickOrderItem, ReorderResult

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

CONTACT_FIELDS = ("phone", "street", "city", "state", "zip")


class OrderNotFound(NotFoundError):
    """Exception raised when a quick order does not exist."""

    def __init__(self, message="Order not found"):
        """Initialize the error."""
        super().__init__(message)


def _normalize_item(item: dict[str, Any]) -> QuickOrderItem:
    pieces = to_number(item.get("pieces"))
    unit_price = to_number(item.get("unitPrice"))
    return {
        "listingId": str(item["listingId"]) if item.get("listingId") else None,
        "title": str(item.get("title") or "Listing"),
        "pieces": pieces,
        "unitPrice": unit_price,
        "lineTotal": max(0.0, pieces * unit_price),
    }


class QuickOrderService:
    """Handles quick checkout orders and their replay as reservations."""

    @staticmethod
    def build_order(
        payload: dict[str, Any], user_id: str | None = None
    ) -> QuickOrder:
        """Validate a checkout payload and return the order document to store."""
        contact = payload.get("contact")
        items = payload.get("items")
        if not isinstance(contact, dict):
            raise ValidationError("Missing contact info")
        if not isinstance(items, list):
            raise ValidationError("Missing items array")

        name = str(contact.get("name") or "").strip()
        email = str(contact.get("email") or "").strip()
        if not name or not email:
            raise ValidationError("Name and email are required")

        normalized = [_normalize_item(it) for it in items if isinstance(it, dict)]
        computed_total = sum(it["lineTotal"] for it in normalized)
        raw_total = payload.get("total")
        total = computed_total
        if raw_total is not None and not isinstance(raw_total, bool):
            try:
                total = float(raw_total)
            except (TypeError, ValueError):
                total = computed_total

        order_contact: QuickOrderContact = {"name": name, "email": email}
        for field in CONTACT_FIELDS:
            order_contact[field] = str(contact.get(field) or "")

        return {
            "userId": user_id,
            "contact": order_contact,
            "items": normalized,
            "total": total,
            "status": QUICK_ORDER_SUBMITTED,
            "createdAt": utcnow(),
        }

    @staticmethod
    def quick_checkout(
        db: Client, payload: dict[str, Any], user_id: str | None = None
    ) -> str:
        """Store a quick order and return its id."""
        order = QuickOrderService.build_order(payload, user_id)
        _, order_ref = db.collection(QUICK_ORDERS_COLLECTION).add(order)
        current_app.logger.info(
            f"Quick order {order_ref.id} saved for "
            f"{user_id or 'guest'} (total {order['total']:.2f})"
        )
        return order_ref.id

    @staticmethod
    def _reserve_item(
        db: Client,
        item: dict[str, Any],
        user_id: str,
        auto_enable: bool,
        default_case_size: int,
    ) -> PieceResult:
        listing_id = item.get("listingId")
        title = item.get("title") or "Listing"
        requested = to_number(item.get("pieces"))
        result = PieceResult(
            listing_id=str(listing_id) if listing_id else None,
            title=title,
            requested_pieces=requested,
        )
        if not listing_id or int(requested) <= 0:
            result.status = PIECES_SKIPPED
            return result

        try:
            reservation = ListingService.set_pieces(
                db,
                str(listing_id),
                user_id,
                int(requested),
                auto_enable,
                default_case_size,
            )
        except NotFoundError:
            result.status = PIECES_MISSING
        except ConfigurationError as e:
            result.status = e.status
            result.error = e.message
        except Exception as e:
            current_app.logger.error(
                f"Error reserving pieces of listing {listing_id}: {e}"
            )
            result.status = PIECES_ERROR
            result.error = str(e)
        else:
            result.title = reservation.get("title") or title
            result.reserved_pieces = reservation["reservedPieces"]
            result.status = reservation["status"]
        return result

    @staticmethod
    def reorder_from_past(
        db: Client,
        order_id: str,
        user_id: str,
        auto_enable: bool = True,
        default_case_size: int = DEFAULT_CASE_SIZE,
    ) -> ReorderResult:
        """Replay a past order's lines as piece reservations for ``user_id``.

        Items are processed one after another; a failing item is recorded in
        its result and never stops the rest.
        """
        snapshot = db.collection(QUICK_ORDERS_COLLECTION).document(order_id).get()
        if not snapshot.exists:
            raise OrderNotFound()
        order = snapshot.to_dict() or {}
        if order.get("userId") != user_id:
            raise AccessDenied("You are not allowed to reorder this purchase")

        results = [
            QuickOrderService._reserve_item(
                db, item, user_id, auto_enable, default_case_size
            )
            for item in order.get("items") or []
            if isinstance(item, dict)
        ]
        total_reserved = sum(max(0, r.reserved_pieces) for r in results)
        current_app.logger.info(
            f"Reorder of {order_id} by {user_id} reserved {total_reserved} pieces "
            f"across {len(results)} items"
        )
        return {
            "totalReserved": total_reserved,
            "items": [r.to_dict() for r in results],
        }
