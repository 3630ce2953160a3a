# Overview: Flask API routes for the bincard stock ledger (read-only).

from flask import Blueprint, jsonify

from ..decorators import paging_args, paging_meta
from ..services import bincard_service
from ..validation import DomainError


bincard_bp = Blueprint("bincard", __name__, url_prefix="/api/bincard")


@bincard_bp.get("/item/<int:item_id>")
def item_bincard_route(item_id: int):
    """Ledger rows for one item, newest first."""
    skip, take = paging_args()
    rows, total = bincard_service.find_by_item_id(item_id, skip=skip, take=take)
    return jsonify({
        "items": [r.to_dict() for r in rows],
        "pagination": paging_meta(skip, take, total),
    })


@bincard_bp.get("/<int:entry_id>")
def get_bincard_entry_route(entry_id: int):
    try:
        return jsonify(bincard_service.find_one(entry_id).to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
