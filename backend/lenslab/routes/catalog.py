# Overview: Flask API routes for the item/unit catalog and customer directories; parses input and returns JSON responses.

"""
Catalog Routes

Unit categories own UOMs (one base unit each); items belong to a unit
category and carry item bases (base curve + add power) used for pricing.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import paging_args, paging_meta
from ..services import catalog_service
from ..validation import DomainError


catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/catalog")


def _error(e: DomainError):
    return jsonify({"error": str(e)}), e.status_code


# =============================================================================
# UNIT CATEGORIES & UOMS
# =============================================================================

@catalog_bp.get("/unit-categories")
def list_unit_categories_route():
    """List unit categories with their UOMs."""
    return jsonify({"items": [c.to_dict() for c in catalog_service.list_unit_categories()]})


@catalog_bp.post("/unit-categories")
def create_unit_category_route():
    data = request.get_json(silent=True) or {}
    try:
        category = catalog_service.create_unit_category(data)
        return jsonify(category.to_dict()), 201
    except DomainError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to create unit category")
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.post("/uoms")
def create_uom_route():
    """
    Create a UOM.

    Request body:
    {
        "unit_category_id": 1,   // required
        "name": "Meter",         // required
        "abbreviation": "m",     // required
        "conversion_rate": 1.0,  // > 0; forced to 1 for a base unit
        "base_unit": true
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        uom = catalog_service.create_uom(data)
        return jsonify(uom.to_dict()), 201
    except DomainError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to create UOM")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# ITEMS & ITEM BASES
# =============================================================================

@catalog_bp.get("/items")
def list_items_route():
    """
    List items.

    Query parameters:
    - search: matches name or item code
    - page, limit: pagination
    """
    skip, take = paging_args()
    items, total = catalog_service.list_items(skip=skip, take=take, search=request.args.get("search"))
    return jsonify({
        "items": [i.to_dict() for i in items],
        "pagination": paging_meta(skip, take, total),
    })


@catalog_bp.post("/items")
def create_item_route():
    data = request.get_json(silent=True) or {}
    try:
        item = catalog_service.create_item(data)
        return jsonify(item.to_dict()), 201
    except DomainError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to create item")
        return jsonify({"error": "Internal server error"}), 500


@catalog_bp.get("/items/<int:item_id>")
def get_item_route(item_id: int):
    try:
        return jsonify(catalog_service.get_item(item_id).to_dict())
    except DomainError as e:
        return _error(e)


@catalog_bp.post("/items/<int:item_id>/bases")
def create_item_base_route(item_id: int):
    data = request.get_json(silent=True) or {}
    try:
        base = catalog_service.create_item_base(item_id, data)
        return jsonify(base.to_dict()), 201
    except DomainError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to create item base")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# SERVICES
# =============================================================================

@catalog_bp.get("/services", defaults={"non_stock": False})
@catalog_bp.get("/non-stock-services", defaults={"non_stock": True})
def list_services_route(non_stock: bool):
    rows = catalog_service.list_services(non_stock=non_stock)
    return jsonify({"items": [r.to_dict() for r in rows]})


@catalog_bp.post("/services", defaults={"non_stock": False})
@catalog_bp.post("/non-stock-services", defaults={"non_stock": True})
def create_service_route(non_stock: bool):
    data = request.get_json(silent=True) or {}
    try:
        row = catalog_service.create_service(data, non_stock=non_stock)
        return jsonify(row.to_dict()), 201
    except DomainError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to create service")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CUSTOMERS & SALES PARTNERS
# =============================================================================

@catalog_bp.get("/customers", defaults={"sales_partner": False})
@catalog_bp.get("/sales-partners", defaults={"sales_partner": True})
def list_parties_route(sales_partner: bool):
    rows = catalog_service.list_parties(
        sales_partner=sales_partner,
        search=request.args.get("search"),
    )
    return jsonify({"items": [r.to_dict() for r in rows]})


@catalog_bp.post("/customers", defaults={"sales_partner": False})
@catalog_bp.post("/sales-partners", defaults={"sales_partner": True})
def create_party_route(sales_partner: bool):
    data = request.get_json(silent=True) or {}
    try:
        row = catalog_service.create_party(data, sales_partner=sales_partner)
        return jsonify(row.to_dict()), 201
    except DomainError as e:
        return _error(e)
    except Exception:
        current_app.logger.exception("Failed to create party")
        return jsonify({"error": "Internal server error"}), 500
