"""Routes for the group blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify, request

from freshshare.auth.decorators import login_required
from freshshare.core.constants import PRODUCT_STATUSES
from freshshare.errors import ValidationError
from freshshare.forms import validate_or_raise

from . import bp
from .forms import ProductSuggestionForm, VoteForm
from .services.product_service import GroupProductService

_TRUE_VALUES = ("true", "1", "yes")
_FALSE_VALUES = ("false", "0", "no")


def _viewer():
    """Return (user id, site admin flag) for the signed-in user."""
    return g.user["uid"], bool(g.user.get("isSiteAdmin"))


def _default_cap():
    return current_app.config["DEFAULT_MAX_ACTIVE_PRODUCTS"]


def _parse_flag(name):
    """Parse an optional true/false query parameter."""
    raw = (request.args.get(name) or "").strip().lower()
    if not raw:
        return None
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValidationError(f"Invalid value for '{name}'")


@bp.route("/<string:group_id>/products", methods=["GET"])
@login_required
def list_products(group_id):
    """List the group's ranked products, optionally filtered."""
    status = (request.args.get("status") or "").strip().lower()
    if status and status not in PRODUCT_STATUSES:
        raise ValidationError("status must be 'active' or 'requested'")
    mine = _parse_flag("mine")
    pinned = _parse_flag("pinned")

    user_id, is_site_admin = _viewer()
    db = firestore.client()
    response = GroupProductService.list_products(
        db, group_id, user_id, is_site_admin, _default_cap()
    )

    products = response["products"]
    if status:
        products = [p for p in products if p["status"] == status]
    if mine:
        products = [p for p in products if p["isMine"]]
    if pinned is not None:
        products = [p for p in products if p["pinned"] == pinned]

    return jsonify(
        {"success": True, "products": products, "metrics": response["metrics"]}
    )


@bp.route("/<string:group_id>/products", methods=["POST"])
@login_required
def suggest_product(group_id):
    """Suggest a new product for the group."""
    form = validate_or_raise(ProductSuggestionForm())
    user_id, is_site_admin = _viewer()
    db = firestore.client()
    product, response = GroupProductService.suggest_product(
        db,
        group_id,
        user_id,
        {
            "name": form.name.data,
            "note": form.note.data or "",
            "imageUrl": form.imageUrl.data or "",
            "productUrl": form.productUrl.data or "",
        },
        is_site_admin,
        _default_cap(),
    )
    current_app.logger.info(
        f"User {user_id} suggested product {product['id']} in group {group_id}"
    )
    return (
        jsonify(
            {"success": True, "product": product, "metrics": response["metrics"]}
        ),
        201,
    )


@bp.route("/<string:group_id>/products/<string:product_id>/vote", methods=["POST"])
@login_required
def vote_on_product(group_id, product_id):
    """Vote up, down or clear a vote on a product."""
    form = validate_or_raise(VoteForm())
    user_id, is_site_admin = _viewer()
    db = firestore.client()
    product, response = GroupProductService.vote(
        db,
        group_id,
        product_id,
        user_id,
        form.vote.data,
        is_site_admin,
        _default_cap(),
    )
    current_app.logger.info(
        f"User {user_id} voted {form.vote.data} on product {product_id}"
    )
    return jsonify(
        {"success": True, "product": product, "metrics": response["metrics"]}
    )


@bp.route("/<string:group_id>/products/<string:product_id>", methods=["PATCH"])
@login_required
def update_product_status(group_id, product_id):
    """Pin or unpin a product (group admins only)."""
    payload = request.get_json(silent=True) or {}
    pinned = payload.get("pinned")
    if not isinstance(pinned, bool):
        raise ValidationError("pinned must be true or false")

    user_id, is_site_admin = _viewer()
    db = firestore.client()
    product, response = GroupProductService.set_pinned(
        db, group_id, product_id, user_id, pinned, is_site_admin, _default_cap()
    )
    current_app.logger.info(
        f"User {user_id} set pinned={pinned} on product {product_id}"
    )
    return jsonify(
        {"success": True, "product": product, "metrics": response["metrics"]}
    )


@bp.route("/<string:group_id>/products/<string:product_id>", methods=["DELETE"])
@login_required
def remove_product(group_id, product_id):
    """Remove a product from the group (group admins only)."""
    user_id, is_site_admin = _viewer()
    db = firestore.client()
    response = GroupProductService.remove_product(
        db, group_id, product_id, user_id, is_site_admin, _default_cap()
    )
    current_app.logger.info(
        f"User {user_id} removed product {product_id} from group {group_id}"
    )
    return jsonify(
        {
            "success": True,
            "products": response["products"],
            "metrics": response["metrics"],
        }
    )
