"""Rolling case reservations for per-piece ordering.

A listing sells whole cases of ``caseSize`` pieces. Members reserve pieces of
the case that is currently filling; when the last piece of that case is taken
the case closes, every reservation in it becomes ``fulfilled`` and the next
case opens with full capacity. At all times::

    currentCaseRemaining + sum(filling pieces in current case) == caseSize
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from freshshare.core.constants import (
    DEFAULT_CASE_SIZE,
    PIECES_INVALID_CASE_SIZE,
    PIECES_OK,
    PIECES_PO_DISABLED,
    RESERVATION_FILLING,
    RESERVATION_FULFILLED,
)
from freshshare.errors import ConfigurationError
from freshshare.marketplace.models import Listing, PieceOrdering, ReservationRecord


def _positive_int(value: Any) -> int | None:
    """Return ``value`` as an int >= 1, or None if it is not one."""
    if isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    if number != value and not isinstance(value, str):
        # Reject fractional case sizes such as 2.5
        return None
    return number if number >= 1 else None


@dataclass
class Reservation:
    """A user's pieces in one case."""

    user_id: str
    case_number: int
    pieces: int
    status: str = RESERVATION_FILLING
    reserved_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: ReservationRecord) -> Reservation:
        """Build a reservation from its stored form."""
        return cls(
            user_id=str(data.get("userId")),
            case_number=int(data.get("caseNumber") or 1),
            pieces=max(0, int(data.get("pieces") or 0)),
            status=data.get("status") or RESERVATION_FILLING,
            reserved_at=data.get("reservedAt"),
        )

    def to_dict(self) -> ReservationRecord:
        """Return the stored form of the reservation."""
        return {
            "userId": self.user_id,
            "caseNumber": self.case_number,
            "pieces": self.pieces,
            "status": self.status,
            "reservedAt": self.reserved_at,
        }


@dataclass
class CaseLedger:
    """Piece ordering state for one listing.

    Reservations are keyed by ``(user_id, case_number)``; a user holds at most
    one reservation per case.
    """

    case_size: int
    current_case_number: int = 1
    current_case_remaining: int = 0
    cases_fulfilled: int = 0
    reservations: dict[tuple[str, int], Reservation] = field(default_factory=dict)

    @classmethod
    def fresh(cls, case_size: int) -> CaseLedger:
        """Start piece ordering at case 1 with the whole case available."""
        return cls(case_size=case_size, current_case_remaining=case_size)

    @classmethod
    def from_listing(
        cls,
        listing: Listing,
        auto_enable: bool = True,
        default_case_size: int = DEFAULT_CASE_SIZE,
    ) -> CaseLedger:
        """Load the ledger stored on ``listing``.

        A listing without piece ordering is switched on with its case size,
        or ``default_case_size`` when it has none, unless ``auto_enable`` is
        off.
        """
        po: PieceOrdering = listing.get("pieceOrdering") or {}
        if not po.get("enabled"):
            if not auto_enable:
                raise ConfigurationError(
                    "Piece ordering is not enabled for this listing",
                    status=PIECES_PO_DISABLED,
                )
            case_size = _positive_int(listing.get("caseSize")) or _positive_int(
                default_case_size
            )
            if case_size is None:
                raise ConfigurationError(
                    "Listing has no usable case size",
                    status=PIECES_INVALID_CASE_SIZE,
                )
            return cls.fresh(case_size)

        case_size = _positive_int(listing.get("caseSize"))
        if case_size is None:
            raise ConfigurationError(
                "Listing has an invalid case size", status=PIECES_INVALID_CASE_SIZE
            )

        ledger = cls(
            case_size=case_size,
            current_case_number=_positive_int(po.get("currentCaseNumber")) or 1,
            cases_fulfilled=max(0, int(po.get("casesFulfilled") or 0)),
        )
        for record in po.get("reservations") or []:
            reservation = Reservation.from_dict(record)
            ledger.reservations[(reservation.user_id, reservation.case_number)] = (
                reservation
            )
        # Remaining capacity is derived from the reservations so stale
        # counters cannot break conservation.
        ledger.current_case_remaining = max(0, case_size - ledger.filling_total())
        return ledger

    def to_dict(self) -> PieceOrdering:
        """Return the stored ``pieceOrdering`` form."""
        return {
            "enabled": True,
            "currentCaseNumber": self.current_case_number,
            "currentCaseRemaining": self.current_case_remaining,
            "casesFulfilled": self.cases_fulfilled,
            "reservations": [r.to_dict() for r in self.reservations.values()],
        }

    def _current(self, user_id: str) -> Reservation | None:
        reservation = self.reservations.get((user_id, self.current_case_number))
        if reservation and reservation.status == RESERVATION_FILLING:
            return reservation
        return None

    def filling_total(self) -> int:
        """Pieces reserved in the case that is currently filling."""
        return sum(
            r.pieces
            for (_, case_number), r in self.reservations.items()
            if case_number == self.current_case_number
            and r.status == RESERVATION_FILLING
        )

    def pieces_for(self, user_id: str) -> int:
        """Pieces ``user_id`` holds in the current case."""
        reservation = self._current(user_id)
        return reservation.pieces if reservation else 0

    def set_pieces(
        self, user_id: str, requested: int, now: datetime | None = None
    ) -> int:
        """Set ``user_id``'s pieces in the current case and return the amount held.

        The request is capped at the case size and at what is still free
        (the user's own pieces plus the remaining capacity). Lowering a
        reservation returns the released pieces to the case.
        """
        reservation = self._current(user_id)
        previous = reservation.pieces if reservation else 0
        desired = min(
            max(0, int(requested)),
            self.case_size,
            previous + self.current_case_remaining,
        )
        if reservation is None and desired == 0:
            return 0

        self.current_case_remaining -= desired - previous
        if reservation is None:
            reservation = Reservation(
                user_id=user_id,
                case_number=self.current_case_number,
                pieces=desired,
                reserved_at=now or datetime.now(timezone.utc),
            )
            self.reservations[(user_id, self.current_case_number)] = reservation
        else:
            reservation.pieces = desired

        if self.current_case_remaining == 0:
            self.advance_case()
        return desired

    def cancel(self, user_id: str) -> int:
        """Release ``user_id``'s pieces in the current case; return how many."""
        released = self.pieces_for(user_id)
        self.set_pieces(user_id, 0)
        return released

    def advance_case(self) -> None:
        """Close the current case and open the next one."""
        closed = self.current_case_number
        for (_, case_number), reservation in self.reservations.items():
            if case_number == closed and reservation.status == RESERVATION_FILLING:
                reservation.status = RESERVATION_FULFILLED
        self.cases_fulfilled += 1
        self.current_case_number = closed + 1
        self.current_case_remaining = self.case_size

    def status_for(self, user_id: str) -> dict[str, Any]:
        """Summarize the ledger for ``user_id``."""
        return {
            "enabled": True,
            "caseSize": self.case_size,
            "currentCaseNumber": self.current_case_number,
            "currentCaseRemaining": self.current_case_remaining,
            "casesFulfilled": self.cases_fulfilled,
            "userPieces": self.pieces_for(user_id),
        }


@dataclass
class PieceResult:
    """Outcome of reserving pieces for one listing."""

    listing_id: str | None
    title: str
    requested_pieces: float
    reserved_pieces: int = 0
    status: str = PIECES_OK
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the API form of the result."""
        data: dict[str, Any] = {
            "listingId": self.listing_id,
            "title": self.title,
            "requestedPieces": self.requested_pieces,
            "reservedPieces": self.reserved_pieces,
            "status": self.status,
        }
        if self.error:
            data["error"] = self.error
        return data
