"""Routes for the marketplace blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify

from freshshare.auth.decorators import login_required
from freshshare.forms import validate_or_raise

from . import bp
from .forms import GroupBuyCommitForm, PiecesForm
from .services import ListingService


def _piece_settings():
    return (
        current_app.config["PIECE_ORDERING_AUTO_ENABLE"],
        current_app.config["DEFAULT_CASE_SIZE"],
    )


@bp.route("/<string:listing_id>/pieces", methods=["POST"])
@login_required
def set_pieces(listing_id):
    """Set the caller's pieces in the listing's current case."""
    form = validate_or_raise(PiecesForm())
    user_id = g.user["uid"]
    db = firestore.client()
    result = ListingService.set_pieces(
        db, listing_id, user_id, form.pieces.data, *_piece_settings()
    )
    current_app.logger.info(
        f"User {user_id} holds {result['reservedPieces']} pieces of listing "
        f"{listing_id}"
    )
    return jsonify({"success": True, "data": result})


@bp.route("/<string:listing_id>/pieces", methods=["DELETE"])
@login_required
def cancel_pieces(listing_id):
    """Release the caller's pieces in the listing's current case."""
    user_id = g.user["uid"]
    db = firestore.client()
    result = ListingService.cancel_pieces(
        db, listing_id, user_id, *_piece_settings()
    )
    current_app.logger.info(f"User {user_id} released pieces of listing {listing_id}")
    return jsonify({"success": True, "data": result})


@bp.route("/<string:listing_id>/pieces/status", methods=["GET"])
@login_required
def piece_status(listing_id):
    """Show the current case and the caller's pieces in it."""
    db = firestore.client()
    status = ListingService.piece_status(db, listing_id, g.user["uid"])
    return jsonify({"success": True, "data": status})


@bp.route("/<string:listing_id>/groupbuy/commit", methods=["POST"])
@login_required
def commit_group_buy(listing_id):
    """Commit the caller to whole cases of the listing's group buy."""
    form = validate_or_raise(GroupBuyCommitForm())
    user_id = g.user["uid"]
    db = firestore.client()
    summary = ListingService.commit_group_buy(
        db, listing_id, user_id, form.cases.data
    )
    current_app.logger.info(
        f"User {user_id} committed {form.cases.data} cases to listing {listing_id}"
    )
    return jsonify({"success": True, "data": summary})


@bp.route("/<string:listing_id>/groupbuy/commit", methods=["DELETE"])
@login_required
def withdraw_group_buy(listing_id):
    """Withdraw the caller's group buy commitment."""
    user_id = g.user["uid"]
    db = firestore.client()
    summary = ListingService.withdraw_group_buy(db, listing_id, user_id)
    current_app.logger.info(
        f"User {user_id} withdrew from the group buy on listing {listing_id}"
    )
    return jsonify({"success": True, "data": summary})


@bp.route("/<string:listing_id>/groupbuy/status", methods=["GET"])
@login_required
def group_buy_status(listing_id):
    """Show group buy progress and the caller's commitment."""
    db = firestore.client()
    summary = ListingService.group_buy_status(db, listing_id, g.user["uid"])
    return jsonify({"success": True, "data": summary})
