# Overview: Flask API routes for pricing rows; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import paging_args, paging_meta
from ..services import pricing_service
from ..validation import DomainError


pricing_bp = Blueprint("pricing", __name__, url_prefix="/api/pricing")


@pricing_bp.get("")
def list_pricing_route():
    """
    List pricing rows.

    Query parameters:
    - item_id: restrict to one item
    - page, limit: pagination
    """
    skip, take = paging_args()
    rows, total = pricing_service.list_pricing(
        skip=skip, take=take, item_id=request.args.get("item_id", type=int)
    )
    return jsonify({
        "items": [r.to_dict() for r in rows],
        "pagination": paging_meta(skip, take, total),
    })


@pricing_bp.post("")
def create_pricing_route():
    """
    Create a pricing row.

    Request body:
    {
        "item_id": 1,                 // required
        "item_base_id": 2,            // optional
        "service_id": 3,              // optional, exclusive with non_stock_service_id
        "non_stock_service_id": null,
        "selling_price": 120.0,
        "cost_price": 80.0,
        "base_uom_id": 1,
        "constant": false, "width": null, "height": null
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        row = pricing_service.create_pricing(data)
        return jsonify(row.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create pricing")
        return jsonify({"error": "Internal server error"}), 500


@pricing_bp.get("/<int:pricing_id>")
def get_pricing_route(pricing_id: int):
    try:
        return jsonify(pricing_service.get_pricing(pricing_id).to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@pricing_bp.patch("/<int:pricing_id>")
def update_pricing_route(pricing_id: int):
    data = request.get_json(silent=True) or {}
    try:
        row = pricing_service.update_pricing(pricing_id, data)
        return jsonify(row.to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update pricing %s", pricing_id)
        return jsonify({"error": "Internal server error"}), 500


@pricing_bp.delete("/<int:pricing_id>")
def delete_pricing_route(pricing_id: int):
    try:
        pricing_service.delete_pricing(pricing_id)
        return jsonify({"deleted": True, "id": pricing_id})
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete pricing %s", pricing_id)
        return jsonify({"error": "Internal server error"}), 500
