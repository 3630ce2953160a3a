# Overview: Service-layer operations for UOM conversion; pure lookups over the unit catalog.

"""
UOM conversion rules:

- Every item belongs to exactly one unit category.
- A category has one base UOM; every other UOM converts into it via conversion_rate.
- unit = raw_quantity * uom.conversion_rate is the canonical quantity that
  pricing multiplies and stock moves by.
- Nothing here writes to the database.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..extensions import db
from ..models import Item, UOM, UnitCategory
from ..validation import NotFoundError, ValidationError


@dataclass(frozen=True)
class UnitResolution:
    unit: float
    base_uom_id: int
    conversion_rate: float
    constant: bool


def _load_category(item_id: int) -> UnitCategory:
    item = db.session.get(Item, item_id)
    if not item:
        raise NotFoundError(f"Item {item_id} not found")
    category = db.session.get(UnitCategory, item.unit_category_id) if item.unit_category_id else None
    if not category:
        raise NotFoundError(f"Unit category for item {item_id} not found")
    return category


def _category_uoms(category_id: int) -> list[UOM]:
    return db.session.query(UOM).filter_by(unit_category_id=category_id).all()


def _pick(uoms: list[UOM], uom_id: int) -> tuple[UOM, UOM]:
    uom = next((u for u in uoms if u.id == uom_id), None)
    if not uom:
        raise NotFoundError(f"UOM {uom_id} not found in the item's unit category")
    base = next((u for u in uoms if u.base_unit), None)
    if not base:
        raise ValidationError("Unit category has no base unit configured")
    return uom, base


def resolve_unit(item_id: int, uom_id: int, raw_quantity: float) -> UnitResolution:
    """Convert raw_quantity in uom_id into base units of the item's category."""
    category = _load_category(item_id)
    uom, base = _pick(_category_uoms(category.id), uom_id)
    rate = float(uom.conversion_rate)
    return UnitResolution(
        unit=float(raw_quantity) * rate,
        base_uom_id=base.id,
        conversion_rate=rate,
        constant=bool(category.constant),
    )


def resolve_area_unit(item_id: int, uom_id: int, width: float, height: float, quantity: float) -> UnitResolution:
    """
    Area variant: both dimensions are converted separately, then multiplied.
    unit = (width * rate) * (height * rate) * quantity
    """
    category = _load_category(item_id)
    uom, base = _pick(_category_uoms(category.id), uom_id)
    rate = float(uom.conversion_rate)
    converted_w = float(width) * rate
    converted_h = float(height) * rate
    return UnitResolution(
        unit=converted_w * converted_h * float(quantity),
        base_uom_id=base.id,
        conversion_rate=rate,
        constant=bool(category.constant),
    )


def is_area_category(item_id: int) -> bool:
    return bool(_load_category(item_id).constant)
