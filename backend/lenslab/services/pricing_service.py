# Overview: Service-layer operations for pricing; lookup precedence plus uniqueness-checked writes.

"""
Pricing lookup precedence:

1. service_id given            -> (item, service_id, is_non_stock_service=False)
2. non_stock_service_id given  -> (item, non_stock_service_id, is_non_stock_service=True)
3. item-only                   -> (item, item_base_id, no service), then (item, no base, no service)

A missing row is not an error for costing (callers fall back to zero figures).
The key (item, base-or-null, service-or-non-stock-or-null) is unique; since SQL
unique indexes treat NULLs as distinct, the check lives here.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Pricing, Item, ItemBase
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_non_negative,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from .concurrency import run_in_transaction


PRICING_POLICY = ModelValidationPolicy(
    writable_fields={
        "item_id", "item_base_id", "service_id", "non_stock_service_id", "is_non_stock_service",
        "selling_price", "cost_price", "base_uom_id", "constant", "width", "height",
    },
    required_on_create={"item_id", "selling_price", "cost_price"},
)


def resolve_pricing(
    item_id: int,
    *,
    item_base_id: int | None = None,
    service_id: int | None = None,
    non_stock_service_id: int | None = None,
) -> Pricing | None:
    """Find the applicable price row, or None."""
    q = db.session.query(Pricing).filter(Pricing.item_id == item_id)

    if service_id:
        return q.filter(
            Pricing.service_id == service_id,
            Pricing.is_non_stock_service.is_(False),
        ).first()

    if non_stock_service_id:
        return q.filter(
            Pricing.non_stock_service_id == non_stock_service_id,
            Pricing.is_non_stock_service.is_(True),
        ).first()

    item_only = q.filter(Pricing.service_id.is_(None), Pricing.non_stock_service_id.is_(None))
    if item_base_id:
        row = item_only.filter(Pricing.item_base_id == item_base_id).first()
        if row:
            return row
    return item_only.filter(Pricing.item_base_id.is_(None)).first()


def _normalize_service_flags(patch: dict) -> None:
    service_id = patch.get("service_id")
    nss_id = patch.get("non_stock_service_id")
    if service_id and nss_id:
        raise ValidationError("service_id and non_stock_service_id are mutually exclusive")
    flag = patch.get("is_non_stock_service")
    if flag is not None and bool(flag) != bool(nss_id):
        raise ValidationError("is_non_stock_service must be true exactly when non_stock_service_id is set")
    patch["is_non_stock_service"] = bool(nss_id)


def _find_key_collision(patch: dict, *, exclude_id: int | None = None) -> Pricing | None:
    q = db.session.query(Pricing).filter(Pricing.item_id == patch["item_id"])

    for col in ("item_base_id", "service_id", "non_stock_service_id"):
        value = patch.get(col)
        column = getattr(Pricing, col)
        q = q.filter(column.is_(None) if value is None else column == value)

    if exclude_id is not None:
        q = q.filter(Pricing.id != exclude_id)
    return q.first()


def _check_references(patch: dict) -> None:
    item = db.session.get(Item, patch["item_id"])
    if not item:
        raise NotFoundError(f"Item {patch['item_id']} not found")
    base_id = patch.get("item_base_id")
    if base_id:
        base = db.session.get(ItemBase, base_id)
        if not base:
            raise NotFoundError(f"Item base {base_id} not found")
        if base.item_id != item.id:
            raise ValidationError(f"Item base {base_id} does not belong to item {item.id}")


def create_pricing(payload: dict) -> Pricing:
    patch = validate_payload(model=Pricing, payload=payload, policy=PRICING_POLICY, partial=False)
    require_non_negative(patch, "selling_price", "cost_price", "width", "height")
    _normalize_service_flags(patch)

    def _op():
        _check_references(patch)
        dup = _find_key_collision(patch)
        if dup:
            raise ConflictError(
                f"Pricing already exists for this item/base/service combination (pricing {dup.id})"
            )
        pricing = Pricing(**patch)
        db.session.add(pricing)
        db.session.flush()
        current_app.logger.info("Created pricing %s for item %s", pricing.id, pricing.item_id)
        return pricing

    return run_in_transaction(_op)


def get_pricing(pricing_id: int) -> Pricing:
    pricing = db.session.get(Pricing, pricing_id)
    if not pricing:
        raise NotFoundError(f"Pricing {pricing_id} not found")
    return pricing


def update_pricing(pricing_id: int, payload: dict) -> Pricing:
    patch = validate_payload(model=Pricing, payload=payload, policy=PRICING_POLICY, partial=True)
    require_non_negative(patch, "selling_price", "cost_price", "width", "height")

    def _op():
        pricing = get_pricing(pricing_id)
        merged = {
            "item_id": pricing.item_id,
            "item_base_id": pricing.item_base_id,
            "service_id": pricing.service_id,
            "non_stock_service_id": pricing.non_stock_service_id,
        }
        merged.update({k: v for k, v in patch.items() if k in merged})
        if "is_non_stock_service" in patch:
            merged["is_non_stock_service"] = patch["is_non_stock_service"]
        _normalize_service_flags(merged)
        _check_references(merged)

        dup = _find_key_collision(merged, exclude_id=pricing.id)
        if dup:
            raise ConflictError(
                f"Pricing already exists for this item/base/service combination (pricing {dup.id})"
            )

        for k, v in patch.items():
            setattr(pricing, k, v)
        pricing.is_non_stock_service = merged["is_non_stock_service"]
        db.session.flush()
        return pricing

    return run_in_transaction(_op)


def delete_pricing(pricing_id: int) -> None:
    def _op():
        pricing = get_pricing(pricing_id)
        db.session.delete(pricing)
        db.session.flush()

    run_in_transaction(_op)


def list_pricing(*, skip: int = 0, take: int = 50, item_id: int | None = None) -> tuple[list[Pricing], int]:
    q = db.session.query(Pricing)
    if item_id:
        q = q.filter(Pricing.item_id == item_id)
    total = q.count()
    rows = q.order_by(Pricing.id.desc()).offset(skip).limit(take).all()
    return rows, total
