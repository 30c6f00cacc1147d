"""Data models for quick orders."""

from __future__ import annotations

from typing import TypedDict

from freshshare.core.types import FirestoreDocument


class QuickOrderContact(TypedDict, total=False):
    """Buyer contact details captured at checkout."""

    name: str
    email: str
    phone: str
    street: str
    city: str
    state: str
    zip: str


class QuickOrderItem(TypedDict, total=False):
    """One line of a quick order."""

    listingId: str | None
    title: str
    unitPrice: float
    pieces: float
    lineTotal: float


class QuickOrder(FirestoreDocument, total=False):
    """A quick order document in Firestore."""

    userId: str | None
    contact: QuickOrderContact
    items: list[QuickOrderItem]
    total: float
    status: str


class ReorderResult(TypedDict):
    """Outcome of replaying a past order as fresh piece reservations."""

    totalReserved: int
    items: list[dict]
