# Overview: Flask API routes for orders, profit and the company report; parses input and returns JSON responses.

"""
Order Routes

An order is written as one aggregate: header, lines, optional payment term
(with transactions) and optional commission (with transactions). Line
status changes go through /api/order-items.

Filter query parameters shared by the list, filtered-profit and report
endpoints:
- search: series, customer name/phone, line description, transaction references, sales partner
- start_date / end_date (or startDate / endDate): ISO dates, inclusive
- item1, item2, item3: item name fragments
- status, customer_id
"""

from flask import Blueprint, Response, request, jsonify, current_app

from ..decorators import paging_args, paging_meta
from ..services import order_service, profit_service, report_export
from ..validation import DomainError


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@orders_bp.post("")
def create_order_route():
    """
    Create an order aggregate.

    Request body:
    {
        "series": "ORD-0001",          // required
        "customer_id": 1,              // required
        "order_items": [{...}],        // at least one; each new line starts at Received
        "payment_term": {              // optional
            "force_payment": false,
            "transactions": [{"payment_method": "Cash", "amount": 200, "status": "Paid"}]
        },
        "commission": {                // optional
            "sales_partner_id": 2,
            "transactions": [{"amount": 25}]
        }
    }

    Returns:
        The created order with lines, payment term and commission
    """
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.create_order(data)
        return jsonify(order.to_dict()), 201
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
def list_orders_route():
    """
    List orders newest first.

    Returns:
        {items: Order[], grand_total_sum: float, pagination: {...}}
    """
    skip, take = paging_args()
    try:
        filters = order_service.parse_order_filters(request.args)
        orders, total, grand_total_sum = order_service.list_orders(skip=skip, take=take, filters=filters)
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    return jsonify({
        "items": [o.to_dict(include_lines=False) for o in orders],
        "grand_total_sum": grand_total_sum,
        "pagination": paging_meta(skip, take, total),
    })


@orders_bp.get("/<int:order_id>")
def get_order_route(order_id: int):
    try:
        return jsonify(order_service.get_order(order_id).to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@orders_bp.patch("/<int:order_id>")
def update_order_route(order_id: int):
    """
    Update an order aggregate.

    Lines carrying an id are updated, lines without one are added, and
    existing lines missing from "order_items" are removed (Received lines only).
    Sending "payment_term": null or "commission": null deletes it.
    """
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.update_order(order_id, data)
        return jsonify(order.to_dict())
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/<int:order_id>")
def delete_order_route(order_id: int):
    try:
        order_service.remove_order(order_id)
        return jsonify({"deleted": True, "id": order_id})
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# PROFIT & REPORTS
# =============================================================================

@orders_bp.get("/<int:order_id>/profit")
def order_profit_route(order_id: int):
    try:
        return jsonify(profit_service.calculate_order_profit(order_id))
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to calculate profit for order %s", order_id)
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/profit/filtered")
def filtered_profit_route():
    try:
        filters = order_service.parse_order_filters(request.args)
        return jsonify(profit_service.calculate_filtered_orders_profit(filters))
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to calculate filtered profit")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/report/company")
def company_report_route():
    """
    Per-line company report.

    Returns:
        {rows: [...], totals: {...}, pagination: {...}}
    """
    skip, take = paging_args()
    try:
        filters = order_service.parse_order_filters(request.args)
        return jsonify(profit_service.generate_company_report(skip=skip, take=take, filters=filters))
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to generate company report")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/report/company/export")
def company_report_export_route():
    """Company report (all matching rows) as an .xlsx download."""
    try:
        filters = order_service.parse_order_filters(request.args)
        content = report_export.company_report_workbook(filters)
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to export company report")
        return jsonify({"error": "Internal server error"}), 500

    return Response(
        content,
        mimetype=XLSX_MIMETYPE,
        headers={"Content-Disposition": "attachment; filename=company-report.xlsx"},
    )
