"""Routes for the orders blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify, request

from freshshare.auth.decorators import login_required

from . import bp
from .services import QuickOrderService


@bp.route("/quick-checkout", methods=["POST"])
def quick_checkout():
    """Place a quick order as a guest or signed-in member."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    user_id = g.user["uid"] if g.get("user") else None
    db = firestore.client()
    order_id = QuickOrderService.quick_checkout(db, payload, user_id)
    return jsonify({"success": True, "orderId": order_id}), 201


@bp.route("/<string:order_id>/reorder", methods=["POST"])
@login_required
def reorder(order_id):
    """Reserve the pieces of a past order again."""
    db = firestore.client()
    result = QuickOrderService.reorder_from_past(
        db,
        order_id,
        g.user["uid"],
        current_app.config["PIECE_ORDERING_AUTO_ENABLE"],
        current_app.config["DEFAULT_CASE_SIZE"],
    )
    return jsonify({"success": True, "data": result})
