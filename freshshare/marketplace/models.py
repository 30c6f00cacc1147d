"""Data models for marketplace listings."""

from __future__ import annotations

from datetime import datetime
from typing import TypedDict

from freshshare.core.types import FirestoreDocument


class ReservationRecord(TypedDict, total=False):
    """A user's pieces in one case, as stored on the listing."""

    userId: str
    caseNumber: int
    pieces: int
    status: str
    reservedAt: datetime


class PieceOrdering(TypedDict, total=False):
    """Rolling per-piece case state embedded in a listing."""

    enabled: bool
    currentCaseNumber: int
    currentCaseRemaining: int
    casesFulfilled: int
    reservations: list[ReservationRecord]


class GroupBuyParticipant(TypedDict, total=False):
    """One user's whole-case commitment to a group buy."""

    userId: str
    cases: int
    committedAt: datetime


class GroupBuy(TypedDict, total=False):
    """Group buy configuration and commitments embedded in a listing."""

    enabled: bool
    minCases: int
    targetCases: int
    deadline: datetime
    committedCases: int
    participants: list[GroupBuyParticipant]


class Listing(FirestoreDocument, total=False):
    """A marketplace listing document in Firestore."""

    title: str
    description: str
    price: float
    casePrice: float
    caseSize: int
    sellerId: str
    groupId: str
    pieceOrdering: PieceOrdering
    groupBuy: GroupBuy
