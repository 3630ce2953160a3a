# Overview: Service-layer operations for the bincard; append-only stock movement ledger.

from __future__ import annotations

from ..extensions import db
from ..models import Bincard
from ..validation import NotFoundError, ValidationError

"""
Bincard invariants (authoritative)

- Append-only: this module exposes no update or delete.
- Entries are written inside the same DB transaction as the stock change they record.
- No balance validation here; the caller guarantees balance_after is correct and >= 0.
- Reads are newest-first.
"""

MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
VALID_MOVEMENTS = {MOVEMENT_IN, MOVEMENT_OUT}

REF_OPENING = "OPENING"
REF_ORDER = "ORDER"
REF_SALE = "SALE"
REF_PURCHASE = "PURCHASE"
REF_ADJUSTMENT = "ADJUSTMENT"
VALID_REFERENCES = {REF_OPENING, REF_ORDER, REF_SALE, REF_PURCHASE, REF_ADJUSTMENT}

DEFAULT_TAKE = 50


def record_movement(
    *,
    item_id: int,
    movement_type: str,
    quantity: float,
    balance_after: float,
    reference_type: str,
    uom_id: int | None,
    reference_id: str | int | None = None,
    description: str | None = None,
) -> Bincard:
    """
    Append one movement row and flush it.

    Does not commit: the surrounding stock operation owns the transaction.
    """
    if movement_type not in VALID_MOVEMENTS:
        raise ValidationError(f"Invalid movement_type '{movement_type}'")
    if reference_type not in VALID_REFERENCES:
        raise ValidationError(f"Invalid reference_type '{reference_type}'")

    entry = Bincard(
        item_id=item_id,
        movement_type=movement_type,
        quantity=quantity,
        balance_after=balance_after,
        reference_type=reference_type,
        reference_id=str(reference_id) if reference_id is not None else None,
        description=description,
        uom_id=uom_id,
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def find_by_item_id(item_id: int, *, skip: int = 0, take: int = DEFAULT_TAKE) -> tuple[list[Bincard], int]:
    q = db.session.query(Bincard).filter(Bincard.item_id == item_id)
    total = q.count()
    rows = (
        q.order_by(Bincard.created_at.desc(), Bincard.id.desc())
        .offset(skip)
        .limit(take)
        .all()
    )
    return rows, total


def find_one(entry_id: int) -> Bincard:
    entry = db.session.get(Bincard, entry_id)
    if not entry:
        raise NotFoundError(f"Bincard entry {entry_id} not found")
    return entry
