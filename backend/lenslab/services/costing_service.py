# Overview: Service-layer operations for line costing; combines UOM conversion and pricing.

"""
Line costing.

One pipeline, two ways to derive `unit`:
- LENS (UOM) line: unit = quantity * rate
      total_cost = unit * cost_price, sales = unit * selling_price
- AREA line (constant category with width and height supplied):
      unit = (width * rate) * (height * rate) * quantity
      total_cost = unit * cost_price / (pricing.width * pricing.height)
      sales      = unit * selling_price / (pricing.width * pricing.height)

No pricing row means zero figures with base_uom_id = uom_id.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import Pricing
from ..validation import ValidationError
from . import uom_service
from .pricing_service import resolve_pricing


LINE_KIND_LENS = "LENS"
LINE_KIND_AREA = "AREA"


@dataclass(frozen=True)
class LineCosting:
    line_kind: str
    unit: float
    base_uom_id: int
    unit_price: float
    cost_price: float
    total_cost: float
    sales: float
    pricing_id: int | None


def _is_area_line(item_id: int, width, height) -> bool:
    if width is None or height is None:
        return False
    return uom_service.is_area_category(item_id)


def calculate_line(
    item_id: int,
    uom_id: int,
    quantity: float,
    *,
    item_base_id: int | None = None,
    service_id: int | None = None,
    non_stock_service_id: int | None = None,
    width: float | None = None,
    height: float | None = None,
    pricing: Pricing | None = None,
) -> LineCosting:
    if pricing is None:
        pricing = resolve_pricing(
            item_id,
            item_base_id=item_base_id,
            service_id=service_id,
            non_stock_service_id=non_stock_service_id,
        )

    area = _is_area_line(item_id, width, height)
    kind = LINE_KIND_AREA if area else LINE_KIND_LENS

    if pricing is None:
        return LineCosting(
            line_kind=kind,
            unit=0.0,
            base_uom_id=uom_id,
            unit_price=0.0,
            cost_price=0.0,
            total_cost=0.0,
            sales=0.0,
            pricing_id=None,
        )

    selling = float(pricing.selling_price or 0)
    cost = float(pricing.cost_price or 0)

    if area:
        divisor = float(pricing.width or 0) * float(pricing.height or 0)
        if divisor == 0:
            raise ValidationError(
                f"Pricing {pricing.id} has zero width x height; cannot price an area line"
            )
        res = uom_service.resolve_area_unit(item_id, uom_id, width, height, quantity)
        total_cost = res.unit * cost / divisor
        sales = res.unit * selling / divisor
    else:
        res = uom_service.resolve_unit(item_id, uom_id, quantity)
        total_cost = res.unit * cost
        sales = res.unit * selling

    return LineCosting(
        line_kind=kind,
        unit=res.unit,
        base_uom_id=res.base_uom_id,
        unit_price=selling,
        cost_price=cost,
        total_cost=total_cost,
        sales=sales,
        pricing_id=pricing.id,
    )


def calculate_total_cost(item_id: int, uom_id: int, quantity: float, **kwargs) -> float:
    return calculate_line(item_id, uom_id, quantity, **kwargs).total_cost


def calculate_sales(item_id: int, uom_id: int, quantity: float, **kwargs) -> float:
    return calculate_line(item_id, uom_id, quantity, **kwargs).sales
