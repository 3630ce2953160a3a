# Overview: Flask API routes for fixed costs; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services import fixed_cost_service
from ..validation import DomainError


fixed_costs_bp = Blueprint("fixed_costs", __name__, url_prefix="/api/fixed-costs")


@fixed_costs_bp.get("")
def list_fixed_costs_route():
    rows = fixed_cost_service.list_fixed_costs()
    return jsonify({
        "items": [r.to_dict() for r in rows],
        "daily_fixed_cost_sum": fixed_cost_service.daily_fixed_cost_sum(),
    })


@fixed_costs_bp.post("")
def create_fixed_cost_route():
    """
    Create a fixed cost.

    Request body:
    {
        "description": "Rent",       // required, unique
        "monthly_fixed_cost": 3000,
        "daily_fixed_cost": 100
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        row = fixed_cost_service.create_fixed_cost(data)
        return jsonify(row.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create fixed cost")
        return jsonify({"error": "Internal server error"}), 500


@fixed_costs_bp.get("/<int:fixed_cost_id>")
def get_fixed_cost_route(fixed_cost_id: int):
    try:
        return jsonify(fixed_cost_service.get_fixed_cost(fixed_cost_id).to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@fixed_costs_bp.patch("/<int:fixed_cost_id>")
def update_fixed_cost_route(fixed_cost_id: int):
    data = request.get_json(silent=True) or {}
    try:
        row = fixed_cost_service.update_fixed_cost(fixed_cost_id, data)
        return jsonify(row.to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update fixed cost %s", fixed_cost_id)
        return jsonify({"error": "Internal server error"}), 500


@fixed_costs_bp.delete("/<int:fixed_cost_id>")
def delete_fixed_cost_route(fixed_cost_id: int):
    try:
        fixed_cost_service.delete_fixed_cost(fixed_cost_id)
        return jsonify({"deleted": True, "id": fixed_cost_id})
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete fixed cost %s", fixed_cost_id)
        return jsonify({"error": "Internal server error"}), 500
