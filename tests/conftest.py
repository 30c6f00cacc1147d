"""Common utilities for tests."""

from __future__ import annotations

import unittest.mock
from typing import Any

from mockfirestore import MockFirestore
from mockfirestore.document import DocumentReference


class MockTransaction:
    """Stand-in for a Firestore transaction that applies writes immediately."""

    def __init__(self) -> None:
        self.writes: list[tuple[Any, Any]] = []

    def update(self, ref: Any, data: dict[str, Any]) -> None:
        self.writes.append((ref, data))
        ref.update(data)


def patch_mockfirestore() -> None:
    """Apply monkeypatches to mockfirestore to support transactional reads."""

    def doc_ref_eq(self: Any, other: Any) -> bool:
        if not isinstance(other, DocumentReference):
            return False
        return self._path == other._path

    if not hasattr(DocumentReference, "_orig_eq"):
        DocumentReference._orig_eq = DocumentReference.__eq__
        DocumentReference.__eq__ = doc_ref_eq
        DocumentReference.__hash__ = lambda self: hash(tuple(self._path))

    # Patch DocumentReference.get to handle transaction argument
    if not hasattr(DocumentReference, "_orig_get"):
        DocumentReference._orig_get = DocumentReference.get

        def doc_ref_get(self: Any, transaction: Any = None) -> Any:
            return self._orig_get()

        DocumentReference.get = doc_ref_get


def mock_firestore_module(db: MockFirestore) -> unittest.mock.MagicMock:
    """Return a stand-in for ``firebase_admin.firestore`` backed by ``db``.

    ``transactional`` runs the wrapped body directly with a MockTransaction,
    so writes land in ``db`` straight away.
    """
    db.transaction = unittest.mock.MagicMock(side_effect=MockTransaction)
    module = unittest.mock.MagicMock()
    module.client.return_value = db
    module.transactional = lambda func: func
    return module
