"""Tests for the ranked product engine."""

from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from freshshare.group.services.ranking import (
    apply_vote,
    clamp_max_active,
    compose_product_response,
    make_product,
    recalculate_product_ranks,
    serialize_product,
)

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _product(pid, score=0, pinned=False, minutes=0, **extra):
    """Build a product whose score comes from anonymous voters."""
    upvoters = [f"up{i}" for i in range(max(score, 0))]
    downvoters = [f"down{i}" for i in range(max(-score, 0))]
    product = {
        "id": pid,
        "name": pid,
        "upvoters": upvoters,
        "downvoters": downvoters,
        "score": score,
        "pinned": pinned,
        "status": "requested",
        "lastActivityAt": T0 + timedelta(minutes=minutes),
    }
    product.update(extra)
    return product


class TestRecalculateProductRanks(unittest.TestCase):
    """Sorting, capping and change detection."""

    def test_ties_break_on_most_recent_activity(self) -> None:
        """Equal scores order most recently active first; cap of 2 applies."""
        products = []
        for minute, name in enumerate(["X", "Y", "Z"]):
            now = T0 + timedelta(minutes=minute)
            products.append(make_product(name, f"user-{name}", now=now))
            recalculate_product_ranks(products, 2, now=now)

        self.assertEqual([p["name"] for p in products], ["Z", "Y", "X"])
        self.assertEqual([p["score"] for p in products], [1, 1, 1])
        statuses = [p["status"] for p in products]
        self.assertEqual(statuses, ["active", "active", "requested"])

    def test_pinned_product_outranks_higher_score(self) -> None:
        """A pinned product with a negative score still takes the only slot."""
        popular = _product("P", score=3)
        pinned = _product("Q", score=-1, pinned=True)
        products = [popular, pinned]

        recalculate_product_ranks(products, 1)

        self.assertEqual([p["id"] for p in products], ["Q", "P"])
        self.assertEqual(pinned["status"], "active")
        self.assertEqual(popular["status"], "requested")

    def test_pinned_with_minus_five_beats_any_unpinned(self) -> None:
        products = [_product("a", score=50), _product("b", score=-5, pinned=True)]
        recalculate_product_ranks(products, 20)
        self.assertEqual(products[0]["id"], "b")

    def test_second_run_reports_no_change(self) -> None:
        """Recalculation is idempotent."""
        products = [
            _product("a", score=1, minutes=1),
            _product("b", score=4),
            _product("c", score=1, minutes=5, pinned=True),
        ]
        self.assertTrue(recalculate_product_ranks(products, 2))
        snapshot = [dict(p) for p in products]

        self.assertFalse(recalculate_product_ranks(products, 2))
        self.assertEqual(products, snapshot)

    def test_score_is_recomputed_from_voters(self) -> None:
        product = _product("a")
        product["upvoters"] = ["u1", "u2", "u3"]
        product["downvoters"] = ["u4"]
        product["score"] = 17

        changed = recalculate_product_ranks([product], 20)

        self.assertTrue(changed)
        self.assertEqual(product["score"], 2)

    def test_active_count_never_exceeds_cap(self) -> None:
        products = [_product(str(i), score=i % 4, minutes=i) for i in range(30)]
        for cap in (0, 1, 7, 30, 500):
            recalculate_product_ranks(products, cap)
            active = [p for p in products if p["status"] == "active"]
            self.assertEqual(len(active), min(cap, 30, 200))
            self.assertEqual(active, products[: len(active)])

    def test_missing_activity_is_backfilled(self) -> None:
        """updatedAt wins over createdAt, which wins over now."""
        updated = T0 - timedelta(days=1)
        created = T0 - timedelta(days=2)
        a = _product("a", updatedAt=updated, createdAt=created)
        b = _product("b", createdAt=created)
        c = _product("c")
        for product in (a, b, c):
            del product["lastActivityAt"]

        self.assertTrue(recalculate_product_ranks([a, b, c], 20, now=T0))

        self.assertEqual(a["lastActivityAt"], updated)
        self.assertEqual(b["lastActivityAt"], created)
        self.assertEqual(c["lastActivityAt"], T0)

    def test_string_timestamps_are_understood(self) -> None:
        older = _product("older", lastActivityAt="2024-01-01T00:00:00Z")
        newer = _product("newer", lastActivityAt="2024-02-01T00:00:00+00:00")
        products = [older, newer]
        recalculate_product_ranks(products, 20)
        self.assertEqual([p["id"] for p in products], ["newer", "older"])

    def test_clamp_max_active(self) -> None:
        self.assertEqual(clamp_max_active(-4), 0)
        self.assertEqual(clamp_max_active(999), 200)
        self.assertEqual(clamp_max_active("12"), 12)
        self.assertEqual(clamp_max_active(None), 20)
        self.assertEqual(clamp_max_active("lots", default=5), 5)


class TestVoting(unittest.TestCase):
    """Vote set semantics."""

    def test_up_twice_then_clear(self) -> None:
        product = _product("P")

        apply_vote(product, "alice", "up", T0)
        self.assertEqual(product["score"], 1)
        apply_vote(product, "alice", "up", T0)
        self.assertEqual(product["score"], 1)
        self.assertEqual(product["upvoters"], ["alice"])
        apply_vote(product, "alice", "clear", T0)
        self.assertEqual(product["score"], 0)
        self.assertEqual(product["upvoters"], [])

    def test_switching_vote_moves_between_sets(self) -> None:
        product = _product("P")
        apply_vote(product, "alice", "up", T0)
        apply_vote(product, "alice", "down", T0)

        self.assertNotIn("alice", product["upvoters"])
        self.assertEqual(product["downvoters"], ["alice"])
        self.assertEqual(product["score"], -1)

    def test_vote_bumps_activity(self) -> None:
        product = _product("P")
        later = T0 + timedelta(hours=3)
        apply_vote(product, "bob", "down", later)
        self.assertEqual(product["lastActivityAt"], later)

    def test_unknown_vote_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            apply_vote(_product("P"), "bob", "sideways")


class TestProductFactory(unittest.TestCase):
    """New suggestions and starter products."""

    def test_suggestion_starts_with_creator_upvote(self) -> None:
        product = make_product("  Oat milk  ", "alice", note="barista", now=T0)
        self.assertEqual(product["name"], "Oat milk")
        self.assertEqual(product["score"], 1)
        self.assertEqual(product["upvoters"], ["alice"])
        self.assertEqual(product["status"], "requested")
        self.assertFalse(product["pinned"])

    def test_starter_product_has_no_voters(self) -> None:
        product = make_product("Rice", "owner", starter=True, now=T0)
        self.assertEqual(product["score"], 0)
        self.assertEqual(product["upvoters"], [])

    def test_text_fields_are_capped(self) -> None:
        product = make_product(
            "n" * 300, "alice", note="x" * 900, product_url="u" * 600
        )
        self.assertEqual(len(product["name"]), 120)
        self.assertEqual(len(product["note"]), 500)
        self.assertEqual(len(product["productUrl"]), 500)


class TestSerialization(unittest.TestCase):
    """API projections of ranked products."""

    def test_serialize_product_for_viewer(self) -> None:
        product = make_product("Honey", "alice", now=T0)
        apply_vote(product, "bob", "down", T0)

        as_alice = serialize_product(product, "alice")
        as_bob = serialize_product(product, "bob")
        as_carol = serialize_product(product, "carol")

        self.assertEqual(as_alice["myVote"], "up")
        self.assertTrue(as_alice["isMine"])
        self.assertEqual(as_bob["myVote"], "down")
        self.assertFalse(as_bob["isMine"])
        self.assertIsNone(as_carol["myVote"])
        self.assertEqual(as_carol["upvotes"], 1)
        self.assertEqual(as_carol["downvotes"], 1)
        self.assertEqual(as_carol["lastActivityAt"], T0.isoformat())

    def test_compose_response_ranks_and_metrics(self) -> None:
        products = [
            _product("a", score=5),
            _product("b", score=2, pinned=True),
            _product("c", score=1),
        ]
        products[2]["createdBy"] = "viewer"
        recalculate_product_ranks(products, 2)

        response = compose_product_response(products, 2, "viewer")

        ranked = response["products"]
        self.assertEqual([p["id"] for p in ranked], ["b", "a", "c"])
        self.assertEqual([p["rank"] for p in ranked], [1, 2, 3])
        self.assertEqual(
            [p["isActiveWithinCap"] for p in ranked], [True, True, False]
        )
        self.assertTrue(ranked[2]["isMine"])
        self.assertEqual(
            response["metrics"],
            {
                "total": 3,
                "active": 2,
                "requested": 1,
                "pinned": 1,
                "maxActiveProducts": 2,
                "activeProductIds": ["b", "a"],
            },
        )


if __name__ == "__main__":
    unittest.main()
