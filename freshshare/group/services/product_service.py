"""Service layer for a group's ranked product list."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from freshshare.core.constants import (
    DEFAULT_MAX_ACTIVE_PRODUCTS,
    GROUPS_COLLECTION,
    ROLE_ADMIN,
    ROLE_MEMBER,
)
from freshshare.errors import AccessDenied, DuplicateResourceError, NotFoundError
from freshshare.group.services.ranking import (
    apply_vote,
    compose_product_response,
    find_product,
    make_product,
    normalize_name,
    recalculate_product_ranks,
    touch,
)
from freshshare.utils import utcnow

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from freshshare.group.models import Group, ProductListResponse


class GroupNotFound(NotFoundError):
    """Exception raised when a group is not found."""

    def __init__(self, message="Group not found"):
        """Initialize the error."""
        super().__init__(message)


class ProductNotFound(NotFoundError):
    """Exception raised when a product is not in the group's list."""

    def __init__(self, message="Product not found"):
        """Initialize the error."""
        super().__init__(message)


def _load_group(snapshot: Any) -> Group:
    if not snapshot.exists:
        raise GroupNotFound()
    group = snapshot.to_dict() or {}
    group["id"] = snapshot.id
    return group


def _member_role(group: Group, user_id: str) -> str | None:
    """Return the member role of ``user_id`` in ``group``, or None."""
    for member in group.get("members") or []:
        if isinstance(member, dict) and member.get("userId") == user_id:
            return member.get("role") or ROLE_MEMBER
        if member == user_id:
            return ROLE_MEMBER
    if group.get("ownerId") == user_id:
        return ROLE_ADMIN
    return None


def is_group_admin(group: Group, user_id: str, is_site_admin: bool = False) -> bool:
    """Check whether the user may administer the group."""
    return is_site_admin or _member_role(group, user_id) == ROLE_ADMIN


def is_group_member(group: Group, user_id: str, is_site_admin: bool = False) -> bool:
    """Check whether the user belongs to the group (admins always do)."""
    return is_site_admin or _member_role(group, user_id) is not None


def _require_member(group: Group, user_id: str, is_site_admin: bool) -> None:
    if not is_group_member(group, user_id, is_site_admin):
        raise AccessDenied("You must be a member of this group")


def _require_admin(group: Group, user_id: str, is_site_admin: bool) -> None:
    if not is_group_admin(group, user_id, is_site_admin):
        raise AccessDenied("Only group admins can manage products")


class GroupProductService:
    """Service class for ranked product operations on a group."""

    @staticmethod
    def _max_active(group: Group, default_cap: int) -> Any:
        return group.get("maxActiveProducts", default_cap)

    @staticmethod
    def _commit(
        transaction: Transaction,
        group_ref: DocumentReference,
        group: Group,
        now: datetime,
    ) -> None:
        transaction.update(
            group_ref, {"products": group.get("products", []), "updatedAt": now}
        )

    @staticmethod
    def _list_transaction(
        transaction: Transaction,
        group_ref: DocumentReference,
        user_id: str,
        is_site_admin: bool,
        default_cap: int,
        now: datetime,
    ) -> ProductListResponse:
        """Rank the group's products, saving them only if the ranks were stale."""
        group = _load_group(group_ref.get(transaction=transaction))
        _require_member(group, user_id, is_site_admin)

        products = group.setdefault("products", [])
        cap = GroupProductService._max_active(group, default_cap)
        if recalculate_product_ranks(products, cap, now=now):
            GroupProductService._commit(transaction, group_ref, group, now)
        return compose_product_response(products, cap, user_id)

    @staticmethod
    def _suggest_transaction(
        transaction: Transaction,
        group_ref: DocumentReference,
        user_id: str,
        is_site_admin: bool,
        fields: dict[str, str],
        default_cap: int,
        now: datetime,
    ) -> tuple[dict[str, Any], ProductListResponse]:
        """Append a suggestion with the creator's upvote and re-rank."""
        group = _load_group(group_ref.get(transaction=transaction))
        _require_member(group, user_id, is_site_admin)

        products = group.setdefault("products", [])
        wanted = normalize_name(fields.get("name"))
        if any(normalize_name(p.get("name")) == wanted for p in products):
            raise DuplicateResourceError(
                "A product with this name has already been suggested"
            )

        product = make_product(
            fields.get("name", ""),
            user_id,
            note=fields.get("note", ""),
            image_url=fields.get("imageUrl", ""),
            product_url=fields.get("productUrl", ""),
            now=now,
        )
        products.append(product)
        cap = GroupProductService._max_active(group, default_cap)
        recalculate_product_ranks(products, cap, now=now)
        GroupProductService._commit(transaction, group_ref, group, now)

        response = compose_product_response(products, cap, user_id)
        created = response["products"][find_product(products, product["id"])]
        return created, response

    @staticmethod
    def _vote_transaction(
        transaction: Transaction,
        group_ref: DocumentReference,
        product_id: str,
        user_id: str,
        is_site_admin: bool,
        vote: str,
        default_cap: int,
        now: datetime,
    ) -> tuple[dict[str, Any], ProductListResponse]:
        """Apply a member's vote and re-rank."""
        group = _load_group(group_ref.get(transaction=transaction))
        _require_member(group, user_id, is_site_admin)

        products = group.setdefault("products", [])
        index = find_product(products, product_id)
        if index < 0:
            raise ProductNotFound()

        apply_vote(products[index], user_id, vote, now)
        cap = GroupProductService._max_active(group, default_cap)
        recalculate_product_ranks(products, cap, now=now)
        GroupProductService._commit(transaction, group_ref, group, now)

        response = compose_product_response(products, cap, user_id)
        return response["products"][find_product(products, product_id)], response

    @staticmethod
    def _pin_transaction(
        transaction: Transaction,
        group_ref: DocumentReference,
        product_id: str,
        user_id: str,
        is_site_admin: bool,
        pinned: bool,
        default_cap: int,
        now: datetime,
    ) -> tuple[dict[str, Any], ProductListResponse]:
        """Pin or unpin a product (admins only) and re-rank."""
        group = _load_group(group_ref.get(transaction=transaction))
        _require_admin(group, user_id, is_site_admin)

        products = group.setdefault("products", [])
        index = find_product(products, product_id)
        if index < 0:
            raise ProductNotFound()

        products[index]["pinned"] = bool(pinned)
        touch(products[index], now)
        cap = GroupProductService._max_active(group, default_cap)
        recalculate_product_ranks(products, cap, now=now)
        GroupProductService._commit(transaction, group_ref, group, now)

        response = compose_product_response(products, cap, user_id)
        return response["products"][find_product(products, product_id)], response

    @staticmethod
    def _remove_transaction(
        transaction: Transaction,
        group_ref: DocumentReference,
        product_id: str,
        user_id: str,
        is_site_admin: bool,
        default_cap: int,
        now: datetime,
    ) -> ProductListResponse:
        """Remove a product (admins only); the freed slot may promote another."""
        group = _load_group(group_ref.get(transaction=transaction))
        _require_admin(group, user_id, is_site_admin)

        products = group.setdefault("products", [])
        index = find_product(products, product_id)
        if index < 0:
            raise ProductNotFound()

        products.pop(index)
        cap = GroupProductService._max_active(group, default_cap)
        recalculate_product_ranks(products, cap, now=now)
        GroupProductService._commit(transaction, group_ref, group, now)
        return compose_product_response(products, cap, user_id)

    @staticmethod
    def _seed_transaction(
        transaction: Transaction,
        group_ref: DocumentReference,
        names: list[str],
        default_cap: int,
        now: datetime,
    ) -> list[str]:
        """Add starter products owned by the group owner, skipping known names."""
        group = _load_group(group_ref.get(transaction=transaction))
        products = group.setdefault("products", [])
        seen = {normalize_name(p.get("name")) for p in products}

        added = []
        for name in names:
            key = normalize_name(name)
            if not key or key in seen:
                continue
            seen.add(key)
            product = make_product(name, group.get("ownerId"), starter=True, now=now)
            products.append(product)
            added.append(product["name"])

        if added:
            cap = GroupProductService._max_active(group, default_cap)
            recalculate_product_ranks(products, cap, now=now)
            GroupProductService._commit(transaction, group_ref, group, now)
        return added

    @staticmethod
    def _run(db: Client, body: Any, group_id: str, *args: Any) -> Any:
        group_ref = db.collection(GROUPS_COLLECTION).document(group_id)
        transactional_body = firestore.transactional(body)
        return transactional_body(db.transaction(), group_ref, *args)

    @staticmethod
    def list_products(
        db: Client,
        group_id: str,
        user_id: str,
        is_site_admin: bool = False,
        default_cap: int = DEFAULT_MAX_ACTIVE_PRODUCTS,
    ) -> ProductListResponse:
        """Fetch the group's ranked products and metrics."""
        return GroupProductService._run(
            db,
            GroupProductService._list_transaction,
            group_id,
            user_id,
            is_site_admin,
            default_cap,
            utcnow(),
        )

    @staticmethod
    def suggest_product(
        db: Client,
        group_id: str,
        user_id: str,
        fields: dict[str, str],
        is_site_admin: bool = False,
        default_cap: int = DEFAULT_MAX_ACTIVE_PRODUCTS,
    ) -> tuple[dict[str, Any], ProductListResponse]:
        """Suggest a new product for the group."""
        return GroupProductService._run(
            db,
            GroupProductService._suggest_transaction,
            group_id,
            user_id,
            is_site_admin,
            fields,
            default_cap,
            utcnow(),
        )

    @staticmethod
    def vote(
        db: Client,
        group_id: str,
        product_id: str,
        user_id: str,
        vote: str,
        is_site_admin: bool = False,
        default_cap: int = DEFAULT_MAX_ACTIVE_PRODUCTS,
    ) -> tuple[dict[str, Any], ProductListResponse]:
        """Cast, change or clear a vote on a product."""
        return GroupProductService._run(
            db,
            GroupProductService._vote_transaction,
            group_id,
            product_id,
            user_id,
            is_site_admin,
            vote,
            default_cap,
            utcnow(),
        )

    @staticmethod
    def set_pinned(
        db: Client,
        group_id: str,
        product_id: str,
        user_id: str,
        pinned: bool,
        is_site_admin: bool = False,
        default_cap: int = DEFAULT_MAX_ACTIVE_PRODUCTS,
    ) -> tuple[dict[str, Any], ProductListResponse]:
        """Pin or unpin a product."""
        return GroupProductService._run(
            db,
            GroupProductService._pin_transaction,
            group_id,
            product_id,
            user_id,
            is_site_admin,
            pinned,
            default_cap,
            utcnow(),
        )

    @staticmethod
    def remove_product(
        db: Client,
        group_id: str,
        product_id: str,
        user_id: str,
        is_site_admin: bool = False,
        default_cap: int = DEFAULT_MAX_ACTIVE_PRODUCTS,
    ) -> ProductListResponse:
        """Remove a product from the group's list."""
        return GroupProductService._run(
            db,
            GroupProductService._remove_transaction,
            group_id,
            product_id,
            user_id,
            is_site_admin,
            default_cap,
            utcnow(),
        )

    @staticmethod
    def seed_starter_products(
        db: Client,
        group_id: str,
        names: list[str],
        default_cap: int = DEFAULT_MAX_ACTIVE_PRODUCTS,
    ) -> list[str]:
        """Seed a group with starter products and return the names added."""
        return GroupProductService._run(
            db,
            GroupProductService._seed_transaction,
            group_id,
            names,
            default_cap,
            utcnow(),
        )
