"""
Seed a group's ranked product list with starter products.

Usage:
    SERVICE_ACCOUNT_KEY_PATH=key.json python scripts/seed_starter_products.py \
        <group_id> "Rolled oats" "Olive oil" ...
"""

from __future__ import annotations

import os
import sys

import firebase_admin
from firebase_admin import credentials, firestore

from freshshare.group.services.product_service import GroupProductService


def initialize_app() -> firebase_admin.App:
    """Initializes Firebase from SERVICE_ACCOUNT_KEY_PATH or default credentials."""
    key_path = os.environ.get("SERVICE_ACCOUNT_KEY_PATH")
    cred = (
        credentials.Certificate(key_path)
        if key_path
        else credentials.ApplicationDefault()
    )
    return firebase_admin.initialize_app(cred)


def main() -> None:
    """Main entry point for the seeding script."""
    if len(sys.argv) < 3:
        print("Usage: seed_starter_products.py <group_id> <product name> [...]")
        sys.exit(1)

    group_id, names = sys.argv[1], sys.argv[2:]
    try:
        initialize_app()
        db = firestore.client()
        added = GroupProductService.seed_starter_products(db, group_id, names)
    except Exception as e:
        print(f"\nAn error occurred while seeding: {e}")
        sys.exit(1)

    if added:
        print(f"Added {len(added)} starter products to {group_id}:")
        for name in added:
            print(f"  - {name}")
    else:
        print("No new starter products were added.")


if __name__ == "__main__":
    main()
