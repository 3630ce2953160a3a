# Overview: Flask API routes for lab tools and base-curve availability; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import paging_args, paging_meta
from ..services import lab_tool_service
from ..validation import DomainError


lab_tools_bp = Blueprint("lab_tools", __name__, url_prefix="/api/lab-tools")


@lab_tools_bp.get("")
def list_lab_tools_route():
    skip, take = paging_args()
    rows, total = lab_tool_service.list_lab_tools(skip=skip, take=take)
    return jsonify({
        "items": [r.to_dict() for r in rows],
        "pagination": paging_meta(skip, take, total),
    })


@lab_tools_bp.get("/check")
def check_base_curves_route():
    """
    Report which base curves no in-stock tool covers.

    Query parameters:
    - baseCurves: comma-separated numbers (repeated params also accepted)

    Returns:
        {missing: float[]}
    """
    raw = []
    for value in request.args.getlist("baseCurves"):
        raw.extend(part.strip() for part in value.split(",") if part.strip())
    return jsonify(lab_tool_service.check_availability_for_base_curves(raw))


@lab_tools_bp.post("")
def create_lab_tool_route():
    """
    Create a lab tool.

    Request body:
    {
        "code": "T-4",             // optional
        "base_curve_min": 4.0,     // required
        "base_curve_max": 4.5,     // required, >= base_curve_min
        "quantity": 1              // defaults to 1
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        tool = lab_tool_service.create_lab_tool(data)
        return jsonify(tool.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create lab tool")
        return jsonify({"error": "Internal server error"}), 500


@lab_tools_bp.get("/<int:tool_id>")
def get_lab_tool_route(tool_id: int):
    try:
        return jsonify(lab_tool_service.get_lab_tool(tool_id).to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@lab_tools_bp.patch("/<int:tool_id>")
def update_lab_tool_route(tool_id: int):
    data = request.get_json(silent=True) or {}
    try:
        tool = lab_tool_service.update_lab_tool(tool_id, data)
        return jsonify(tool.to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update lab tool %s", tool_id)
        return jsonify({"error": "Internal server error"}), 500


@lab_tools_bp.delete("/<int:tool_id>")
def delete_lab_tool_route(tool_id: int):
    try:
        lab_tool_service.remove_lab_tool(tool_id)
        return jsonify({"deleted": True, "id": tool_id})
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete lab tool %s", tool_id)
        return jsonify({"error": "Internal server error"}), 500
