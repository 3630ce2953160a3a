# Overview: Service-layer operations for order items; status updates with stock and payment side effects.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Order, OrderItem, OrderItemNote, PaymentTerm
from ..models.orders import LENS_FIELDS
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_non_negative,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from . import order_item_lifecycle as lifecycle
from . import operator_stock_service
from .concurrency import run_in_transaction, lock_for_update, begin_immediate_if_sqlite
from .order_service import recompute_order_totals, apply_line_total


# Costing inputs (item, uom, quantity, pricing) change through order_service.update_order
ORDER_ITEM_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "status", "description", "discount", "is_discounted", "level", "admin_approval",
        *LENS_FIELDS,
    },
)

NOTE_POLICY = ModelValidationPolicy(
    writable_fields={"text"},
    required_on_create={"text"},
)


def get_order_item(order_item_id: int) -> OrderItem:
    line = db.session.get(OrderItem, order_item_id)
    if not line:
        raise NotFoundError("Order item not found")
    return line


def list_order_items(
    *,
    skip: int = 0,
    take: int = 10,
    status: str | None = None,
    order_id: int | None = None,
) -> tuple[list[OrderItem], int, float]:
    """Return (items newest first, total count, sum of total_amount over all matches)."""
    clauses = []
    if status:
        lifecycle.validate_status(status)
        clauses.append(OrderItem.status == status)
    if order_id:
        clauses.append(OrderItem.order_id == order_id)

    q = db.session.query(OrderItem).filter(*clauses)
    total = q.count()
    amount_sum = db.session.query(func.coalesce(func.sum(OrderItem.total_amount), 0.0)).filter(*clauses).scalar()
    rows = q.order_by(OrderItem.id.desc()).offset(skip).limit(take).all()
    return rows, total, float(amount_sum or 0)


def update_order_item(order_item_id: int, payload: dict) -> OrderItem:
    """
    Update a line; a status change runs the lifecycle side effects.

    One transaction covers: transition check, payment gate, stock move
    (+ bincard), the line write, and the order status recompute.

    Raises:
        NotFoundError: line does not exist
        ValidationError: unknown status or field
        ConflictError: illegal transition, payment gate, missing or insufficient stock
    """
    patch = validate_payload(model=OrderItem, payload=payload, policy=ORDER_ITEM_UPDATE_POLICY, partial=True)
    require_non_negative(patch, "discount")
    if "status" in patch:
        lifecycle.validate_status(patch["status"])

    def _op():
        begin_immediate_if_sqlite()
        line = lock_for_update(db.session.query(OrderItem).filter_by(id=order_item_id)).first()
        if not line:
            raise NotFoundError("Order item not found")

        old_status = line.status
        new_status = patch.get("status", old_status)
        lifecycle.assert_transition(old_status, new_status)

        term = db.session.query(PaymentTerm).filter_by(order_id=line.order_id).first()
        lifecycle.check_payment_gate(term, old_status, new_status)

        effect = lifecycle.stock_effect(old_status, new_status, is_non_stock_service=line.is_non_stock_service)
        description = f"Order item {line.id}: {old_status} -> {new_status}"
        if effect == lifecycle.STOCK_REDUCE:
            if not operator_stock_service.find_by_item_id(line.item_id):
                item_name = line.item.name if line.item else line.item_id
                raise ConflictError(f"Please make a request for item {item_name} before trying to print")
            operator_stock_service.reduce_stock_for_order(
                [line], reference_id=line.order_id, description=description, commit=False
            )
        elif effect == lifecycle.STOCK_RESTORE:
            operator_stock_service.restore_stock_for_order(
                [line], reference_id=line.order_id, description=description, commit=False
            )

        for k, v in patch.items():
            setattr(line, k, v)
        if "discount" in patch:
            apply_line_total(line)
        db.session.flush()

        order = lock_for_update(db.session.query(Order).filter_by(id=line.order_id)).first()
        lines = db.session.query(OrderItem).filter_by(order_id=order.id).all()
        recompute_order_totals(order, lines)
        db.session.flush()

        if old_status != new_status:
            current_app.logger.info(
                "Order item %s moved %s -> %s (stock: %s); order %s is now %s",
                line.id, old_status, new_status, effect, order.id, order.status,
            )
        return line.id

    run_in_transaction(_op)
    db.session.expire_all()
    return get_order_item(order_item_id)


def update_order_item_status(order_item_id: int, status: str) -> OrderItem:
    return update_order_item(order_item_id, {"status": status})


# =============================================================================
# NOTES
# =============================================================================

def add_note(order_item_id: int, payload: dict, *, author_id: str | None = None) -> OrderItemNote:
    patch = validate_payload(model=OrderItemNote, payload=payload, policy=NOTE_POLICY, partial=False)
    if not patch["text"]:
        raise ValidationError("text cannot be blank")

    def _op():
        get_order_item(order_item_id)
        note = OrderItemNote(order_item_id=order_item_id, text=patch["text"], author_id=author_id)
        db.session.add(note)
        db.session.flush()
        return note

    return run_in_transaction(_op)


def list_notes(order_item_id: int) -> list[OrderItemNote]:
    get_order_item(order_item_id)
    return (
        db.session.query(OrderItemNote)
        .filter_by(order_item_id=order_item_id)
        .order_by(OrderItemNote.created_at.asc(), OrderItemNote.id.asc())
        .all()
    )
