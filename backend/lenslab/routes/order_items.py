# Overview: Flask API routes for order items and their notes; parses input and returns JSON responses.

"""
Order Item Routes

PATCH drives the status lifecycle: a status change validates the
transition, applies the payment gate and moves operator stock in the same
transaction. Notes record the caller from the X-User-Id header.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import with_actor, paging_args, paging_meta
from ..services import order_item_service
from ..validation import DomainError


order_items_bp = Blueprint("order_items", __name__, url_prefix="/api/order-items")


@order_items_bp.get("")
def list_order_items_route():
    """
    List order items newest first.

    Query parameters:
    - status: one of the item statuses
    - order_id: restrict to one order
    - page, limit: pagination
    """
    skip, take = paging_args()
    try:
        rows, total, amount_sum = order_item_service.list_order_items(
            skip=skip,
            take=take,
            status=request.args.get("status") or None,
            order_id=request.args.get("order_id", type=int),
        )
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    return jsonify({
        "items": [r.to_dict() for r in rows],
        "total_amount_sum": amount_sum,
        "pagination": paging_meta(skip, take, total),
    })


@order_items_bp.get("/<int:order_item_id>")
def get_order_item_route(order_item_id: int):
    try:
        return jsonify(order_item_service.get_order_item(order_item_id).to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@order_items_bp.patch("/<int:order_item_id>")
@with_actor
def update_order_item_route(order_item_id: int):
    """
    Update status and/or editable fields of a line.

    Request body:
    {
        "status": "Printed",    // optional
        "description": "...",   // optional
        "discount": 10.0        // optional
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        line = order_item_service.update_order_item(order_item_id, data)
        if "status" in data:
            current_app.logger.info(
                "Order item %s status set to %s by %s", order_item_id, line.status, g.actor_id or "anonymous"
            )
        return jsonify(line.to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update order item %s", order_item_id)
        return jsonify({"error": "Internal server error"}), 500


@order_items_bp.post("/<int:order_item_id>/notes")
@with_actor
def add_note_route(order_item_id: int):
    data = request.get_json(silent=True) or {}
    try:
        note = order_item_service.add_note(order_item_id, data, author_id=g.actor_id)
        return jsonify(note.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add note to order item %s", order_item_id)
        return jsonify({"error": "Internal server error"}), 500


@order_items_bp.get("/<int:order_item_id>/notes")
def list_notes_route(order_item_id: int):
    try:
        notes = order_item_service.list_notes(order_item_id)
        return jsonify({"items": [n.to_dict() for n in notes]})
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
