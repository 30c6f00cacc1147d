"""Data models for the group blueprint."""

from __future__ import annotations

from datetime import datetime
from typing import Any, TypedDict

from freshshare.core.types import FirestoreDocument


class Member(TypedDict, total=False):
    """Represents a group member."""

    userId: str
    role: str
    joinedAt: datetime


class RankedProduct(TypedDict, total=False):
    """A community-suggested product embedded in a group document."""

    id: str
    name: str
    note: str
    imageUrl: str
    productUrl: str
    createdBy: str | None
    status: str
    score: int
    upvoters: list[str]
    downvoters: list[str]
    pinned: bool
    lastActivityAt: datetime
    createdAt: datetime
    updatedAt: datetime


class Group(FirestoreDocument, total=False):
    """A group document in Firestore."""

    name: str
    description: str
    ownerId: str
    members: list[Member]
    maxActiveProducts: int
    products: list[RankedProduct]


class ProductMetrics(TypedDict):
    """Aggregate counts returned alongside a ranked product list."""

    total: int
    active: int
    requested: int
    pinned: int
    maxActiveProducts: int
    activeProductIds: list[str]


class ProductListResponse(TypedDict):
    """Serialized ranking plus metrics for the API."""

    products: list[dict[str, Any]]
    metrics: ProductMetrics
