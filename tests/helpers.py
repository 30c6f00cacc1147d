"""Shared base class for route tests backed by mockfirestore."""

from __future__ import annotations

import unittest
from typing import Any
from unittest.mock import patch

from mockfirestore import MockFirestore

from freshshare import create_app
from tests.conftest import mock_firestore_module, patch_mockfirestore

patch_mockfirestore()

# Every module that calls firestore.client() or firestore.transactional()
FIRESTORE_TARGETS = (
    "freshshare.firestore",
    "freshshare.group.routes.firestore",
    "freshshare.group.services.product_service.firestore",
    "freshshare.marketplace.routes.firestore",
    "freshshare.marketplace.services.firestore",
    "freshshare.orders.routes.firestore",
)


class BaseTestCase(unittest.TestCase):
    """Flask test client wired to an in-memory Firestore."""

    config: dict[str, Any] = {}

    def setUp(self) -> None:
        self.db = MockFirestore()
        self.mock_firestore = mock_firestore_module(self.db)
        for target in FIRESTORE_TARGETS:
            patcher = patch(target, new=self.mock_firestore)
            patcher.start()
            self.addCleanup(patcher.stop)

        self.app = create_app(
            {"TESTING": True, "WTF_CSRF_ENABLED": False, **self.config}
        )
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()

    def tearDown(self) -> None:
        self.app_context.pop()
        self.db.reset()

    def create_user(self, user_id: str, name: str = "Test User") -> None:
        """Store a user document."""
        self.db.collection("users").document(user_id).set(
            {"name": name, "email": f"{user_id}@example.com"}
        )

    def login(self, user_id: str, is_admin: bool = False) -> None:
        """Sign in as ``user_id``, creating the user document if needed."""
        if not self.db.collection("users").document(user_id).get().exists:
            self.create_user(user_id)
        with self.client.session_transaction() as sess:
            sess["user_id"] = user_id
            sess["is_admin"] = is_admin

    def logout(self) -> None:
        with self.client.session_transaction() as sess:
            sess.clear()
