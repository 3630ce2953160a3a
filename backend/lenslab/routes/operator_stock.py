# Overview: Flask API routes for operator stock; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import paging_args, paging_meta
from ..services import operator_stock_service
from ..validation import DomainError


operator_stock_bp = Blueprint("operator_stock", __name__, url_prefix="/api/operator-stock")


@operator_stock_bp.get("")
def list_stock_route():
    """
    List stock rows by item name.

    Query parameters:
    - search: item name, item code or description
    - page, limit: pagination
    """
    skip, take = paging_args()
    rows, total = operator_stock_service.list_stock(skip=skip, take=take, search=request.args.get("search"))
    return jsonify({
        "items": [r.to_dict() for r in rows],
        "pagination": paging_meta(skip, take, total),
    })


@operator_stock_bp.post("")
def create_stock_route():
    """
    Open a stock row for an item.

    Request body:
    {
        "item_id": 1,      // required, one row per item
        "uom_id": 1,       // required
        "quantity": 20,    // required, >= 0; recorded as an OPENING movement
        "unit": 20,
        "description": "..."
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        stock = operator_stock_service.create_stock(data)
        return jsonify(stock.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create operator stock")
        return jsonify({"error": "Internal server error"}), 500


@operator_stock_bp.get("/<int:stock_id>")
def get_stock_route(stock_id: int):
    try:
        return jsonify(operator_stock_service.get_stock(stock_id).to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@operator_stock_bp.patch("/<int:stock_id>")
def update_stock_route(stock_id: int):
    data = request.get_json(silent=True) or {}
    try:
        stock = operator_stock_service.update_stock(stock_id, data)
        return jsonify(stock.to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update operator stock %s", stock_id)
        return jsonify({"error": "Internal server error"}), 500


@operator_stock_bp.delete("/<int:stock_id>")
def delete_stock_route(stock_id: int):
    try:
        operator_stock_service.remove_stock(stock_id)
        return jsonify({"deleted": True, "id": stock_id})
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete operator stock %s", stock_id)
        return jsonify({"error": "Internal server error"}), 500
