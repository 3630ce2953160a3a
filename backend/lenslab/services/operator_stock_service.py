# Overview: Service-layer operations for operator stock; every quantity change writes a bincard row.

"""
Operator stock rules:

- One stock row per item.
- Quantity never goes negative: reduce is a single conditional UPDATE
  (quantity = quantity - n WHERE quantity >= n); zero affected rows means
  insufficient stock and nothing is written.
- Each committed quantity change has exactly one bincard row with
  quantity = |delta| and balance_after = new quantity.
- Non-stock-service lines never move stock.
- commit=False runs inside the caller's transaction (the order paths use this).
"""

from __future__ import annotations

from typing import Iterable

from flask import current_app
from sqlalchemy import or_, update

from ..extensions import db
from ..models import OperatorStock, Item, UOM
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_non_negative,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
)
from . import bincard_service
from .concurrency import run_in_transaction, lock_for_update, begin_immediate_if_sqlite


STATUS_AVAILABLE = "Available"
STATUS_OUT_OF_STOCK = "Out of Stock"

STOCK_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"item_id", "uom_id", "base_uom_id", "quantity", "unit", "description"},
    required_on_create={"item_id", "uom_id", "quantity"},
)

STOCK_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"uom_id", "base_uom_id", "quantity", "unit", "description"},
)


def stock_status_for(quantity: float) -> str:
    return STATUS_OUT_OF_STOCK if quantity == 0 else STATUS_AVAILABLE


def get_stock(stock_id: int) -> OperatorStock:
    stock = db.session.get(OperatorStock, stock_id)
    if not stock:
        raise NotFoundError(f"Operator stock {stock_id} not found")
    return stock


def find_by_item_id(item_id: int) -> OperatorStock | None:
    return db.session.query(OperatorStock).filter_by(item_id=item_id).first()


def list_stock(*, skip: int = 0, take: int = 50, search: str | None = None) -> tuple[list[OperatorStock], int]:
    q = db.session.query(OperatorStock).join(Item, Item.id == OperatorStock.item_id)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Item.name.ilike(like), Item.item_code.ilike(like), OperatorStock.description.ilike(like)))
    total = q.count()
    rows = q.order_by(Item.name.asc()).offset(skip).limit(take).all()
    return rows, total


def create_stock(payload: dict, *, commit: bool = True) -> OperatorStock:
    """Insert a stock row; a positive opening quantity is recorded as OPENING."""
    patch = validate_payload(model=OperatorStock, payload=payload, policy=STOCK_CREATE_POLICY, partial=False)
    require_non_negative(patch, "quantity")

    def _op():
        if not db.session.get(Item, patch["item_id"]):
            raise NotFoundError(f"Item {patch['item_id']} not found")
        if not db.session.get(UOM, patch["uom_id"]):
            raise NotFoundError(f"UOM {patch['uom_id']} not found")
        if find_by_item_id(patch["item_id"]):
            raise ConflictError(f"Operator stock already exists for item {patch['item_id']}")

        stock = OperatorStock(**patch)
        stock.status = stock_status_for(stock.quantity)
        db.session.add(stock)
        db.session.flush()

        if stock.quantity > 0:
            bincard_service.record_movement(
                item_id=stock.item_id,
                movement_type=bincard_service.MOVEMENT_IN,
                quantity=stock.quantity,
                balance_after=stock.quantity,
                reference_type=bincard_service.REF_OPENING,
                reference_id=stock.id,
                description="Opening balance",
                uom_id=stock.uom_id,
            )
        return stock

    return run_in_transaction(_op, commit=commit)


def update_stock(stock_id: int, payload: dict, *, commit: bool = True) -> OperatorStock:
    """Apply a patch; a quantity change is recorded as an ADJUSTMENT movement."""
    patch = validate_payload(model=OperatorStock, payload=payload, policy=STOCK_UPDATE_POLICY, partial=True)
    require_non_negative(patch, "quantity")

    def _op():
        stock = lock_for_update(db.session.query(OperatorStock).filter_by(id=stock_id)).first()
        if not stock:
            raise NotFoundError(f"Operator stock {stock_id} not found")

        previous = stock.quantity
        for k, v in patch.items():
            setattr(stock, k, v)
        stock.status = stock_status_for(stock.quantity)
        db.session.flush()

        delta = stock.quantity - previous
        if delta != 0:
            bincard_service.record_movement(
                item_id=stock.item_id,
                movement_type=bincard_service.MOVEMENT_IN if delta > 0 else bincard_service.MOVEMENT_OUT,
                quantity=abs(delta),
                balance_after=stock.quantity,
                reference_type=bincard_service.REF_ADJUSTMENT,
                reference_id=stock.id,
                description=patch.get("description") or "Manual adjustment",
                uom_id=stock.uom_id,
            )
        return stock

    return run_in_transaction(_op, commit=commit)


def remove_stock(stock_id: int) -> None:
    def _op():
        stock = get_stock(stock_id)
        db.session.delete(stock)
        db.session.flush()

    run_in_transaction(_op)


def _reduce_one(stock: OperatorStock, amount: float, *, reference_id, description: str | None) -> OperatorStock:
    stmt = (
        update(OperatorStock)
        .where(OperatorStock.id == stock.id, OperatorStock.quantity >= amount)
        .values(quantity=OperatorStock.quantity - amount)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    if result.rowcount == 0:
        db.session.refresh(stock)
        item_name = stock.item.name if stock.item else stock.item_id
        raise InsufficientStockError(
            f"Insufficient stock for item: {item_name}. Available: {stock.quantity}, Required: {amount}",
            available=stock.quantity,
            required=amount,
        )

    db.session.refresh(stock)
    stock.status = stock_status_for(stock.quantity)
    db.session.flush()

    bincard_service.record_movement(
        item_id=stock.item_id,
        movement_type=bincard_service.MOVEMENT_OUT,
        quantity=amount,
        balance_after=stock.quantity,
        reference_type=bincard_service.REF_ORDER,
        reference_id=reference_id,
        description=description,
        uom_id=stock.uom_id,
    )
    return stock


def _restore_one(stock: OperatorStock, amount: float, *, reference_id, description: str | None) -> OperatorStock:
    stmt = (
        update(OperatorStock)
        .where(OperatorStock.id == stock.id)
        .values(quantity=OperatorStock.quantity + amount)
        .execution_options(synchronize_session=False)
    )
    db.session.execute(stmt)
    db.session.refresh(stock)
    stock.status = stock_status_for(stock.quantity)
    db.session.flush()

    bincard_service.record_movement(
        item_id=stock.item_id,
        movement_type=bincard_service.MOVEMENT_IN,
        quantity=amount,
        balance_after=stock.quantity,
        reference_type=bincard_service.REF_ORDER,
        reference_id=reference_id,
        description=description,
        uom_id=stock.uom_id,
    )
    return stock


def reduce_stock_for_order(
    items: Iterable,
    *,
    reference_id=None,
    description: str | None = None,
    commit: bool = False,
) -> list[OperatorStock]:
    """
    Reduce stock by each line's canonical `unit`.

    Lines need item_id, unit and is_non_stock_service attributes.
    Raises NotFoundError for a missing stock row and InsufficientStockError
    (a ConflictError) when the balance cannot cover the line.
    """
    lines = list(items)

    def _op():
        if commit:
            begin_immediate_if_sqlite()
        touched = []
        for line in lines:
            if getattr(line, "is_non_stock_service", False):
                continue
            amount = float(line.unit or 0)
            if amount <= 0:
                continue
            stock = lock_for_update(db.session.query(OperatorStock).filter_by(item_id=line.item_id)).first()
            if not stock:
                raise NotFoundError(f"Operator stock for item {line.item_id} not found")
            touched.append(_reduce_one(stock, amount, reference_id=reference_id, description=description))
        return touched

    return run_in_transaction(_op, commit=commit)


def restore_stock_for_order(
    items: Iterable,
    *,
    reference_id=None,
    description: str | None = None,
    commit: bool = False,
) -> list[OperatorStock]:
    """Mirror of reduce; lines without a stock row are skipped."""
    lines = list(items)

    def _op():
        touched = []
        for line in lines:
            if getattr(line, "is_non_stock_service", False):
                continue
            amount = float(line.unit or 0)
            if amount <= 0:
                continue
            stock = lock_for_update(db.session.query(OperatorStock).filter_by(item_id=line.item_id)).first()
            if not stock:
                current_app.logger.info("No operator stock for item %s; restore skipped", line.item_id)
                continue
            touched.append(_restore_one(stock, amount, reference_id=reference_id, description=description))
        return touched

    return run_in_transaction(_op, commit=commit)
