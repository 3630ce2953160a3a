from __future__ import annotations

from ..extensions import db
from lenslab.time_utils import to_utc_z, utcnow


class OperatorStock(db.Model):
    """
    Live on-hand balance per item for order fulfilment.

    Distinct from Item.quantity. Every change to quantity is paired with one
    Bincard row in the same transaction (see operator_stock_service).
    """
    __tablename__ = "operator_stock"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_operator_stock_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, unique=True)
    uom_id = db.Column(db.Integer, db.ForeignKey("uoms.id"), nullable=False)
    base_uom_id = db.Column(db.Integer, db.ForeignKey("uoms.id"), nullable=True)

    quantity = db.Column(db.Float, nullable=False, default=0)
    unit = db.Column(db.Float, nullable=True)
    status = db.Column(db.String(32), nullable=False, default="Available")
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    item = db.relationship("Item")
    uom = db.relationship("UOM", foreign_keys=[uom_id])
    base_uom = db.relationship("UOM", foreign_keys=[base_uom_id])

    def __repr__(self) -> str:
        return f"<OperatorStock id={self.id} item={self.item_id} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item.name if self.item else None,
            "uom_id": self.uom_id,
            "base_uom_id": self.base_uom_id,
            "quantity": self.quantity,
            "unit": self.unit,
            "status": self.status,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Bincard(db.Model):
    """
    Append-only stock movement ledger.

    INVARIANTS:
    - Rows are inserted, never updated or deleted
    - quantity is the absolute size of the movement (always > 0)
    - balance_after equals the OperatorStock quantity right after the movement
    """
    __tablename__ = "bincard"
    __table_args__ = (
        db.Index("ix_bincard_item_created", "item_id", "created_at"),
        db.CheckConstraint("movement_type IN ('IN','OUT')", name="ck_bincard_movement_type"),
        db.CheckConstraint(
            "reference_type IN ('OPENING','ORDER','SALE','PURCHASE','ADJUSTMENT')",
            name="ck_bincard_reference_type",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)
    movement_type = db.Column(db.String(8), nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    balance_after = db.Column(db.Float, nullable=False)
    reference_type = db.Column(db.String(16), nullable=False)
    reference_id = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)
    uom_id = db.Column(db.Integer, db.ForeignKey("uoms.id"), nullable=True)

    # Python-side default keeps ordering stable within one transaction
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    item = db.relationship("Item")
    uom = db.relationship("UOM")

    def __repr__(self) -> str:
        return (
            f"<Bincard id={self.id} item={self.item_id} {self.movement_type} "
            f"{self.quantity} -> {self.balance_after}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "movement_type": self.movement_type,
            "quantity": self.quantity,
            "balance_after": self.balance_after,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "description": self.description,
            "uom_id": self.uom_id,
            "created_at": to_utc_z(self.created_at),
        }
