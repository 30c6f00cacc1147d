"""Whole-case group buy commitments."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from freshshare.errors import ConfigurationError, ValidationError
from freshshare.marketplace.models import GroupBuy
from freshshare.utils import as_datetime


def _recount(group_buy: GroupBuy) -> None:
    group_buy["committedCases"] = sum(
        int(p.get("cases") or 0) for p in group_buy.get("participants") or []
    )


def commit(
    group_buy: GroupBuy, user_id: str, cases: int, now: datetime | None = None
) -> int:
    """Set ``user_id``'s commitment to ``cases`` whole cases."""
    now = now or datetime.now(timezone.utc)
    if not group_buy.get("enabled"):
        raise ConfigurationError(
            "Group buy is not enabled for this listing", status="gb-disabled"
        )
    deadline = as_datetime(group_buy.get("deadline"))
    if deadline and deadline < now:
        raise ValidationError("The group buy deadline has passed")
    if cases < 1:
        raise ValidationError("You must commit to at least one case")

    participants = [
        p for p in group_buy.get("participants") or [] if p.get("userId") != user_id
    ]
    participants.append({"userId": user_id, "cases": cases, "committedAt": now})
    group_buy["participants"] = participants
    _recount(group_buy)
    return group_buy["committedCases"]


def withdraw(group_buy: GroupBuy, user_id: str) -> bool:
    """Remove ``user_id``'s commitment; return whether one existed."""
    participants = group_buy.get("participants") or []
    remaining = [p for p in participants if p.get("userId") != user_id]
    group_buy["participants"] = remaining
    _recount(group_buy)
    return len(remaining) != len(participants)


def summarize(
    group_buy: GroupBuy | None, case_size: Any, user_id: str
) -> dict[str, Any]:
    """Progress of a group buy as seen by ``user_id``."""
    group_buy = group_buy or {}
    participants = group_buy.get("participants") or []
    committed = sum(int(p.get("cases") or 0) for p in participants)
    target = int(group_buy.get("targetCases") or 0)
    minimum = int(group_buy.get("minCases") or 1)
    progress = 0
    if target > 0:
        progress = max(0, min(100, round(committed / target * 100)))
    deadline = as_datetime(group_buy.get("deadline"))
    user_commit = next(
        (int(p.get("cases") or 0) for p in participants if p.get("userId") == user_id),
        0,
    )
    return {
        "enabled": bool(group_buy.get("enabled")),
        "committedCases": committed,
        "targetCases": target or None,
        "minCases": minimum,
        "minReached": committed >= minimum,
        "deadline": deadline.isoformat() if deadline else None,
        "caseSize": case_size,
        "userCommit": user_commit,
        "participantCount": len(participants),
        "progressPercent": progress,
    }
