# Overview: Service-layer operations for profit reporting; commission and fixed-cost allocation.

"""
Profit rules:

- Commission per line = line.sales / order_sales * order_commission (0 when the order has no sales).
- Pre-fixed-cost profit per line = max(sales - total_cost - commission, 0).
- Fixed cost is split across lines by the largest-remainder method in cents,
  weighted by pre-fixed-cost profit (equal split when every weight is 0), so
  the allocations always add up to the period figure exactly.
- Every reported profit is floored at zero.
"""

from __future__ import annotations

import math

from sqlalchemy import func

from ..extensions import db
from ..models import Order, OrderItem, Commission, CommissionTransaction
from ..time_utils import inclusive_day_count, to_iso_date
from . import fixed_cost_service
from .order_service import OrderFilters, order_filter_clauses, item_name_clause, get_order


def allocate_fixed_cost(amount: float, weights: list[float]) -> list[float]:
    """
    Split `amount` across len(weights) shares proportionally, in whole cents.
    Leftover cents go to the largest fractional remainders (ties: lowest index).
    """
    n = len(weights)
    if n == 0:
        return []
    total_cents = int(round(max(amount, 0.0) * 100))
    clean = [max(float(w), 0.0) for w in weights]
    weight_sum = sum(clean)
    if weight_sum <= 0:
        clean = [1.0] * n
        weight_sum = float(n)

    raw = [total_cents * w / weight_sum for w in clean]
    cents = [math.floor(r) for r in raw]
    leftover = total_cents - sum(cents)
    by_remainder = sorted(range(n), key=lambda i: (-(raw[i] - cents[i]), i))
    for i in by_remainder[:leftover]:
        cents[i] += 1
    return [c / 100 for c in cents]


def _commission_totals(order_ids: list[int]) -> dict[int, float]:
    if not order_ids:
        return {}
    rows = (
        db.session.query(Commission.order_id, func.coalesce(func.sum(CommissionTransaction.amount), 0.0))
        .join(CommissionTransaction, CommissionTransaction.commission_id == Commission.id)
        .filter(Commission.order_id.in_(order_ids))
        .group_by(Commission.order_id)
        .all()
    )
    return {order_id: float(total or 0) for order_id, total in rows}


def _order_sales_totals(order_ids: list[int]) -> dict[int, float]:
    if not order_ids:
        return {}
    rows = (
        db.session.query(OrderItem.order_id, func.coalesce(func.sum(OrderItem.sales), 0.0))
        .filter(OrderItem.order_id.in_(order_ids))
        .group_by(OrderItem.order_id)
        .all()
    )
    return {order_id: float(total or 0) for order_id, total in rows}


def _line_commissions(lines: list[OrderItem]) -> list[float]:
    order_ids = sorted({line.order_id for line in lines})
    commissions = _commission_totals(order_ids)
    sales = _order_sales_totals(order_ids)
    result = []
    for line in lines:
        order_sales = sales.get(line.order_id, 0.0)
        if order_sales <= 0:
            result.append(0.0)
            continue
        result.append(float(line.sales or 0) / order_sales * commissions.get(line.order_id, 0.0))
    return result


def _line_rows(lines: list[OrderItem], fixed_cost: float) -> tuple[list[dict], dict]:
    commissions = _line_commissions(lines)
    pre_profits = [
        max(float(line.sales or 0) - float(line.total_cost or 0) - commission, 0.0)
        for line, commission in zip(lines, commissions)
    ]
    allocations = allocate_fixed_cost(fixed_cost, pre_profits)

    rows = []
    for line, commission, pre, alloc in zip(lines, commissions, pre_profits, allocations):
        rows.append({
            "order_item_id": line.id,
            "order_id": line.order_id,
            "item_id": line.item_id,
            "sales": float(line.sales or 0),
            "total_cost": float(line.total_cost or 0),
            "commission": commission,
            "profit_before_fixed_cost": pre,
            "fixed_cost": alloc,
            "profit": max(pre - alloc, 0.0),
        })

    total_sales = sum(r["sales"] for r in rows)
    total_cost = sum(r["total_cost"] for r in rows)
    total_commission = sum(commissions)
    totals = {
        "total_sales": total_sales,
        "total_cost": total_cost,
        "total_commission": total_commission,
        "total_fixed_cost": fixed_cost,
        "total_profit": max(total_sales - total_cost - total_commission - fixed_cost, 0.0),
    }
    return rows, totals


def calculate_order_profit(order_id: int) -> dict:
    """Profit for one order against the global daily fixed cost."""
    order = get_order(order_id)
    lines = db.session.query(OrderItem).filter_by(order_id=order.id).order_by(OrderItem.id).all()
    daily_fixed = fixed_cost_service.daily_fixed_cost_sum()
    rows, totals = _line_rows(lines, daily_fixed)
    return {
        "order_id": order.id,
        "series": order.series,
        "daily_fixed_cost": daily_fixed,
        **totals,
        "items": rows,
    }


def _filtered_lines(filters: OrderFilters) -> list[OrderItem]:
    q = (
        db.session.query(OrderItem)
        .join(Order, Order.id == OrderItem.order_id)
        .filter(*order_filter_clauses(filters))
    )
    name_clause = item_name_clause(filters)
    if name_clause is not None:
        q = q.filter(name_clause)
    return q.order_by(Order.order_date.desc(), Order.id.desc(), OrderItem.id.asc()).all()


def _span_days(filters: OrderFilters) -> int:
    if filters.has_range:
        return inclusive_day_count(filters.start_date, filters.end_date)
    return 1


def calculate_filtered_orders_profit(filters: OrderFilters | None = None) -> dict:
    """
    Profit over every line matching the filters.

    With a start/end range the fixed cost covers the inclusive day span;
    without one it is a single day's global daily figure.
    """
    filters = filters or OrderFilters()
    lines = _filtered_lines(filters)
    days = _span_days(filters)
    if filters.has_range:
        fixed_cost = fixed_cost_service.period_fixed_cost(days)
    else:
        fixed_cost = fixed_cost_service.daily_fixed_cost_sum()

    rows, totals = _line_rows(lines, fixed_cost)
    return {
        "start_date": to_iso_date(filters.start_date),
        "end_date": to_iso_date(filters.end_date),
        "number_of_days": days,
        "orders_count": len({line.order_id for line in lines}),
        "items_count": len(lines),
        **totals,
        "items": rows,
    }


def _abbr(uom) -> str | None:
    return uom.abbreviation if uom else None


def generate_company_report(*, skip: int = 0, take: int = 10, filters: OrderFilters | None = None) -> dict:
    """
    Per-line company report, newest first, paginated after full aggregation.

    daily_fixed_cost_per_day is shown on every row but not subtracted there;
    the period total (daily sum x days) is subtracted once from the totals.
    """
    filters = filters or OrderFilters()
    lines = [line for line in _filtered_lines(filters) if line.pricing is not None]
    commissions = _line_commissions(lines)
    daily_fixed = fixed_cost_service.daily_fixed_cost_sum()

    rows = []
    for line, commission in zip(lines, commissions):
        order = line.order
        sales = float(line.sales or 0)
        cost = float(line.total_cost or 0)
        service = line.service or line.non_stock_service
        rows.append({
            "date": to_iso_date(order.order_date),
            "order_id": order.id,
            "series": order.series,
            "order_item_id": line.id,
            "customer": order.customer.full_name if order.customer else None,
            "item": line.item.name if line.item else None,
            "service": service.name if service else None,
            "unit": float(line.unit or 0),
            "quantity": float(line.quantity or 0),
            "cost_price": float(line.pricing.cost_price or 0),
            "selling_price": float(line.pricing.selling_price or 0),
            "total_cost": cost,
            "sales": sales,
            "commission": commission,
            "daily_fixed_cost_per_day": daily_fixed,
            "profit_before_fixed_cost": max(sales - cost - commission, 0.0),
            "uom": _abbr(line.uom),
            "base_uom": _abbr(line.base_uom),
        })

    days = _span_days(filters)
    total_daily_fixed = daily_fixed * days
    total_sales = sum(r["sales"] for r in rows)
    total_cost = sum(r["total_cost"] for r in rows)
    total_commission = sum(commissions)

    total_items = len(rows)
    take = max(int(take), 1)
    skip = max(int(skip), 0)
    total_pages = math.ceil(total_items / take) if total_items else 0
    page = skip // take + 1

    return {
        "rows": rows[skip:skip + take],
        "totals": {
            "total_sales": total_sales,
            "total_cost": total_cost,
            "total_commission": total_commission,
            "constant_daily_fixed_cost": daily_fixed,
            "number_of_days": days,
            "total_daily_fixed_cost": total_daily_fixed,
            "total_profit": max(total_sales - total_cost - total_commission - total_daily_fixed, 0.0),
            "orders_count": len({r["order_id"] for r in rows}),
            "items_count": total_items,
        },
        "pagination": {
            "page": page,
            "limit": take,
            "total_items": total_items,
            "total_pages": total_pages,
            "has_next_page": page < total_pages,
            "has_previous_page": page > 1,
        },
    }
