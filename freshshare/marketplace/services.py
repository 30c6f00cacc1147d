"""Service layer for per-piece reservations and group buys on listings."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore
from flask import current_app

from freshshare.core.constants import (
    DEFAULT_CASE_SIZE,
    LISTINGS_COLLECTION,
    PIECES_OK,
)
from freshshare.errors import NotFoundError
from freshshare.utils import utcnow

from . import group_buy
from .case_reservation import CaseLedger

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from .models import Listing


class ListingNotFound(NotFoundError):
    """Exception raised when a listing does not exist."""

    def __init__(self, message="Listing not found"):
        """Initialize the error."""
        super().__init__(message)


def _load_listing(snapshot: Any) -> Listing:
    if not snapshot.exists:
        raise ListingNotFound()
    listing = snapshot.to_dict() or {}
    listing["id"] = snapshot.id
    return listing


class ListingService:
    """Handles piece ordering and group buy state on marketplace listings."""

    @staticmethod
    def _reserve_transaction(
        transaction: Transaction,
        listing_ref: DocumentReference,
        user_id: str,
        requested: int,
        auto_enable: bool,
        default_case_size: int,
        now: datetime,
    ) -> dict[str, Any]:
        """Set the user's pieces in the listing's current case."""
        listing = _load_listing(listing_ref.get(transaction=transaction))
        ledger = CaseLedger.from_listing(listing, auto_enable, default_case_size)

        case_number = ledger.current_case_number
        reserved = ledger.set_pieces(user_id, requested, now)
        transaction.update(
            listing_ref,
            {
                "caseSize": ledger.case_size,
                "pieceOrdering": ledger.to_dict(),
                "updatedAt": now,
            },
        )
        return {
            "listingId": listing["id"],
            "title": listing.get("title", "Listing"),
            "reservedPieces": reserved,
            "status": PIECES_OK,
            "caseClosed": ledger.current_case_number != case_number,
            **ledger.status_for(user_id),
        }

    @staticmethod
    def _commit_group_buy_transaction(
        transaction: Transaction,
        listing_ref: DocumentReference,
        user_id: str,
        cases: int | None,
        now: datetime,
    ) -> dict[str, Any]:
        """Set (or, with ``cases`` None, withdraw) the user's group buy commitment."""
        listing = _load_listing(listing_ref.get(transaction=transaction))
        state = listing.get("groupBuy") or {}
        if cases is None:
            group_buy.withdraw(state, user_id)
        else:
            group_buy.commit(state, user_id, cases, now)
        transaction.update(listing_ref, {"groupBuy": state, "updatedAt": now})
        return group_buy.summarize(state, listing.get("caseSize"), user_id)

    @staticmethod
    def _run(db: Client, body: Any, listing_id: str, *args: Any) -> Any:
        listing_ref = db.collection(LISTINGS_COLLECTION).document(listing_id)
        transactional_body = firestore.transactional(body)
        return transactional_body(db.transaction(), listing_ref, *args)

    @staticmethod
    def set_pieces(
        db: Client,
        listing_id: str,
        user_id: str,
        pieces: int,
        auto_enable: bool = True,
        default_case_size: int = DEFAULT_CASE_SIZE,
    ) -> dict[str, Any]:
        """Reserve ``pieces`` of the listing's current case for the user.

        Raises ListingNotFound or ConfigurationError.
        """
        result = ListingService._run(
            db,
            ListingService._reserve_transaction,
            listing_id,
            user_id,
            pieces,
            auto_enable,
            default_case_size,
            utcnow(),
        )
        if result["caseClosed"]:
            current_app.logger.info(
                f"Listing {listing_id} closed case "
                f"{result['currentCaseNumber'] - 1}; case "
                f"{result['currentCaseNumber']} is now filling"
            )
        return result

    @staticmethod
    def cancel_pieces(
        db: Client,
        listing_id: str,
        user_id: str,
        auto_enable: bool = True,
        default_case_size: int = DEFAULT_CASE_SIZE,
    ) -> dict[str, Any]:
        """Release the user's pieces in the current case."""
        return ListingService.set_pieces(
            db, listing_id, user_id, 0, auto_enable, default_case_size
        )

    @staticmethod
    def piece_status(db: Client, listing_id: str, user_id: str) -> dict[str, Any]:
        """Describe the listing's current case and the user's share of it."""
        snapshot = db.collection(LISTINGS_COLLECTION).document(listing_id).get()
        listing = _load_listing(snapshot)
        if not (listing.get("pieceOrdering") or {}).get("enabled"):
            return {
                "enabled": False,
                "caseSize": listing.get("caseSize"),
                "userPieces": 0,
            }
        return CaseLedger.from_listing(listing).status_for(user_id)

    @staticmethod
    def commit_group_buy(
        db: Client, listing_id: str, user_id: str, cases: int
    ) -> dict[str, Any]:
        """Commit the user to ``cases`` whole cases of the listing's group buy."""
        return ListingService._run(
            db,
            ListingService._commit_group_buy_transaction,
            listing_id,
            user_id,
            cases,
            utcnow(),
        )

    @staticmethod
    def withdraw_group_buy(db: Client, listing_id: str, user_id: str) -> dict[str, Any]:
        """Remove the user's group buy commitment."""
        return ListingService._run(
            db,
            ListingService._commit_group_buy_transaction,
            listing_id,
            user_id,
            None,
            utcnow(),
        )

    @staticmethod
    def group_buy_status(db: Client, listing_id: str, user_id: str) -> dict[str, Any]:
        """Describe the listing's group buy progress for the user."""
        snapshot = db.collection(LISTINGS_COLLECTION).document(listing_id).get()
        listing = _load_listing(snapshot)
        return group_buy.summarize(
            listing.get("groupBuy"), listing.get("caseSize"), user_id
        )
