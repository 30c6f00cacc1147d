"""Tests for quick checkout and reorder."""

from __future__ import annotations

import unittest
from unittest.mock import patch

from freshshare.errors import ValidationError
from freshshare.orders.services import QuickOrderService
from tests.helpers import BaseTestCase

CONTACT = {"name": "Dana", "email": "dana@example.com"}


class BuildOrderTestCase(unittest.TestCase):
    """Validation and normalization of checkout payloads."""

    def test_missing_sections(self) -> None:
        cases = [
            ({"items": []}, "Missing contact info"),
            ({"contact": CONTACT}, "Missing items array"),
            ({"contact": {"name": "Dana"}, "items": []}, "Name and email are required"),
            ({"contact": {"name": " ", "email": "x@y.z"}, "items": []}, None),
        ]
        for payload, message in cases:
            with self.assertRaises(ValidationError) as ctx:
                QuickOrderService.build_order(payload)
            if message:
                self.assertEqual(ctx.exception.message, message)

    def test_normalizes_items_and_contact(self) -> None:
        order = QuickOrderService.build_order(
            {
                "contact": {**CONTACT, "city": "Portland", "zip": 97201},
                "items": [
                    {"listingId": 42, "title": "Eggs", "pieces": "3", "unitPrice": 0.5},
                    {"pieces": "many", "unitPrice": None},
                    "not an item",
                ],
            },
            "alice",
        )

        self.assertEqual(order["userId"], "alice")
        self.assertEqual(order["status"], "submitted")
        self.assertEqual(order["contact"]["zip"], "97201")
        self.assertEqual(order["contact"]["phone"], "")
        self.assertEqual(len(order["items"]), 2)
        first, second = order["items"]
        self.assertEqual(first["listingId"], "42")
        self.assertEqual(first["lineTotal"], 1.5)
        self.assertIsNone(second["listingId"])
        self.assertEqual(second["title"], "Listing")
        self.assertEqual(second["pieces"], 0)
        self.assertEqual(order["total"], 1.5)

    def test_client_total_is_kept_when_numeric(self) -> None:
        payload = {"contact": CONTACT, "items": [], "total": "12.75"}
        self.assertEqual(QuickOrderService.build_order(payload)["total"], 12.75)

        payload["total"] = "free"
        self.assertEqual(QuickOrderService.build_order(payload)["total"], 0)


class QuickCheckoutRoutesTestCase(BaseTestCase):
    def test_guest_checkout(self) -> None:
        response = self.client.post(
            "/orders/quick-checkout",
            json={
                "contact": CONTACT,
                "items": [{"listingId": "eggs", "pieces": 2, "unitPrice": 3}],
            },
        )

        self.assertEqual(response.status_code, 201)
        order_id = response.get_json()["orderId"]
        order = self.db.collection("quick_orders").document(order_id).get().to_dict()
        self.assertIsNone(order["userId"])
        self.assertEqual(order["total"], 6)

    def test_member_checkout_records_user(self) -> None:
        self.login("alice")
        response = self.client.post(
            "/orders/quick-checkout", json={"contact": CONTACT, "items": []}
        )
        order_id = response.get_json()["orderId"]
        order = self.db.collection("quick_orders").document(order_id).get().to_dict()
        self.assertEqual(order["userId"], "alice")

    def test_invalid_payload(self) -> None:
        response = self.client.post("/orders/quick-checkout", json=["nope"])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["message"], "Missing contact info")


class ReorderTestCase(BaseTestCase):
    """Replaying a past order as piece reservations."""

    def setUp(self) -> None:
        super().setUp()
        self.db.collection("listings").document("L2").set(
            {"title": "Goat Cheese", "caseSize": 6}
        )
        self.db.collection("quick_orders").document("order1").set(
            {
                "userId": "alice",
                "contact": CONTACT,
                "items": [
                    {"listingId": "L1", "title": "Gone", "pieces": 2},
                    {"listingId": "L2", "title": "Goat Cheese", "pieces": 3},
                    {"listingId": None, "title": "Delivery", "pieces": 1},
                    {"listingId": "L2", "title": "Goat Cheese", "pieces": 0},
                ],
                "status": "submitted",
            }
        )
        self.login("alice")

    def test_reorder_reports_each_item(self) -> None:
        response = self.client.post("/orders/order1/reorder")

        self.assertEqual(response.status_code, 200)
        data = response.get_json()["data"]
        self.assertEqual(data["totalReserved"], 3)
        self.assertEqual(
            [item["status"] for item in data["items"]],
            ["missing", "ok", "skipped", "skipped"],
        )
        self.assertEqual(data["items"][0]["reservedPieces"], 0)
        self.assertEqual(data["items"][1]["reservedPieces"], 3)
        self.assertEqual(data["items"][1]["requestedPieces"], 3)

        listing = self.db.collection("listings").document("L2").get().to_dict()
        self.assertEqual(listing["pieceOrdering"]["currentCaseRemaining"], 3)

    def test_reorder_is_clamped_by_capacity(self) -> None:
        self.db.collection("listings").document("L2").set(
            {
                "title": "Goat Cheese",
                "caseSize": 6,
                "pieceOrdering": {
                    "enabled": True,
                    "currentCaseNumber": 1,
                    "reservations": [
                        {"userId": "bob", "caseNumber": 1, "pieces": 5},
                    ],
                },
            }
        )
        data = self.client.post("/orders/order1/reorder").get_json()["data"]
        self.assertEqual(data["items"][1]["reservedPieces"], 1)
        self.assertEqual(data["totalReserved"], 1)

    def test_one_failing_item_does_not_stop_the_rest(self) -> None:
        self.db.collection("listings").document("L1").set(
            {"title": "Broken", "caseSize": -1, "pieceOrdering": {"enabled": True}}
        )
        data = self.client.post("/orders/order1/reorder").get_json()["data"]
        self.assertEqual(data["items"][0]["status"], "invalid-case-size")
        self.assertIn("error", data["items"][0])
        self.assertEqual(data["items"][1]["status"], "ok")

    def test_unexpected_error_is_recorded(self) -> None:
        with patch(
            "freshshare.orders.services.ListingService.set_pieces",
            side_effect=RuntimeError("boom"),
        ):
            data = self.client.post("/orders/order1/reorder").get_json()["data"]
        self.assertEqual(data["items"][1]["status"], "error")
        self.assertEqual(data["items"][1]["error"], "boom")
        self.assertEqual(data["totalReserved"], 0)

    def test_fractional_pieces_are_reported_as_stored(self) -> None:
        self.db.collection("quick_orders").document("order2").set(
            {
                "userId": "alice",
                "contact": CONTACT,
                "items": [
                    {"listingId": "L2", "title": "Goat Cheese", "pieces": 2.5},
                    {"listingId": "L2", "title": "Goat Cheese", "pieces": 0.5},
                ],
            }
        )
        data = self.client.post("/orders/order2/reorder").get_json()["data"]

        first, second = data["items"]
        self.assertEqual(first["requestedPieces"], 2.5)
        self.assertEqual(first["reservedPieces"], 2)
        self.assertEqual(second["requestedPieces"], 0.5)
        self.assertEqual(second["status"], "skipped")
        self.assertEqual(second["reservedPieces"], 0)
        self.assertEqual(data["totalReserved"], 2)

        listing = self.db.collection("listings").document("L2").get().to_dict()
        self.assertEqual(listing["pieceOrdering"]["currentCaseRemaining"], 4)

    def test_someone_elses_order(self) -> None:
        self.login("bob")
        response = self.client.post("/orders/order1/reorder")
        self.assertEqual(response.status_code, 403)

    def test_unknown_order(self) -> None:
        response = self.client.post("/orders/nope/reorder")
        self.assertEqual(response.status_code, 404)

    def test_reorder_requires_login(self) -> None:
        self.logout()
        response = self.client.post("/orders/order1/reorder")
        self.assertEqual(response.status_code, 401)
