from __future__ import annotations

from ..extensions import db
from lenslab.time_utils import to_utc_z


class UnitCategory(db.Model):
    """
    Groups UOMs that convert into each other (e.g. "Pieces", "Area").

    constant=True marks area-priced categories: lines in these categories may
    carry width/height and are costed by area instead of plain conversion.
    """
    __tablename__ = "unit_categories"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    constant = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "constant": self.constant,
            "uoms": [u.to_dict() for u in self.uoms],
            "created_at": to_utc_z(self.created_at),
        }


class UOM(db.Model):
    """
    Unit of measure inside a category.

    conversion_rate: how many base units one of this unit equals.
    At most one UOM per category is the base unit (enforced in catalog_service).
    """
    __tablename__ = "uoms"
    __table_args__ = (
        db.UniqueConstraint("name", "abbreviation", "unit_category_id", name="uq_uoms_name_abbr_category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    unit_category_id = db.Column(db.Integer, db.ForeignKey("unit_categories.id"), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    abbreviation = db.Column(db.String(16), nullable=False)
    conversion_rate = db.Column(db.Float, nullable=False, default=1.0)
    base_unit = db.Column(db.Boolean, nullable=False, default=False)

    unit_category = db.relationship("UnitCategory", backref=db.backref("uoms", lazy=True, order_by="UOM.id"))

    def __repr__(self) -> str:
        return f"<UOM id={self.id} {self.abbreviation!r} rate={self.conversion_rate} base={self.base_unit}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "unit_category_id": self.unit_category_id,
            "name": self.name,
            "abbreviation": self.abbreviation,
            "conversion_rate": self.conversion_rate,
            "base_unit": self.base_unit,
        }


class Item(db.Model):
    """
    Sellable/purchasable item (lens blank, material).

    quantity is the denormalized running stock used by sale/purchase flows; the
    authoritative fulfilment balance lives in OperatorStock.
    """
    __tablename__ = "items"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    item_code = db.Column(db.String(64), nullable=True, unique=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    unit_category_id = db.Column(db.Integer, db.ForeignKey("unit_categories.id"), nullable=False, index=True)
    default_uom_id = db.Column(db.Integer, db.ForeignKey("uoms.id"), nullable=True)
    purchase_uom_id = db.Column(db.Integer, db.ForeignKey("uoms.id"), nullable=True)

    quantity = db.Column(db.Float, nullable=False, default=0)
    reorder_level = db.Column(db.Float, nullable=False, default=0)

    lens_material = db.Column(db.String(64), nullable=True)
    lens_index = db.Column(db.String(16), nullable=True)
    lens_type = db.Column(db.String(64), nullable=True)

    can_be_sold = db.Column(db.Boolean, nullable=False, default=True)
    can_be_purchased = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    unit_category = db.relationship("UnitCategory")
    default_uom = db.relationship("UOM", foreign_keys=[default_uom_id])
    purchase_uom = db.relationship("UOM", foreign_keys=[purchase_uom_id])

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_code": self.item_code,
            "name": self.name,
            "description": self.description,
            "unit_category_id": self.unit_category_id,
            "default_uom_id": self.default_uom_id,
            "purchase_uom_id": self.purchase_uom_id,
            "quantity": self.quantity,
            "reorder_level": self.reorder_level,
            "lens_material": self.lens_material,
            "lens_index": self.lens_index,
            "lens_type": self.lens_type,
            "can_be_sold": self.can_be_sold,
            "can_be_purchased": self.can_be_purchased,
            "item_bases": [b.to_dict() for b in self.item_bases],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ItemBase(db.Model):
    """Lens-blank sub-variant of an item: base curve code plus add power."""
    __tablename__ = "item_bases"
    __table_args__ = (
        db.UniqueConstraint("item_id", "base_code", "add_power", name="uq_item_bases_item_code_add"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    base_code = db.Column(db.String(32), nullable=False)
    add_power = db.Column(db.String(16), nullable=False, default="")

    item = db.relationship("Item", backref=db.backref("item_bases", lazy=True, order_by="ItemBase.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "base_code": self.base_code,
            "add_power": self.add_power,
        }


class Service(db.Model):
    __tablename__ = "services"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}


class NonStockService(db.Model):
    """Billable work with no physical inventory behind it (cut-only, print-only)."""
    __tablename__ = "non_stock_services"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}


class Pricing(db.Model):
    """
    Price row for (item, optional item base, optional service XOR non-stock service).

    KEY UNIQUENESS:
    At most one row per (item_id, item_base_id-or-null, service_id-or-non_stock_service_id-or-null).
    NULLs never collide in a SQL unique index, so the rule is checked in
    pricing_service on every create/update.

    AREA PRICING:
    width/height describe the area the prices refer to; area-costed lines divide
    by width * height.
    """
    __tablename__ = "pricing"
    __table_args__ = (
        db.Index("ix_pricing_item_base", "item_id", "item_base_id"),
        db.Index("ix_pricing_item_service", "item_id", "service_id"),
        db.Index("ix_pricing_item_nss", "item_id", "non_stock_service_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)
    item_base_id = db.Column(db.Integer, db.ForeignKey("item_bases.id"), nullable=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=True)
    non_stock_service_id = db.Column(db.Integer, db.ForeignKey("non_stock_services.id"), nullable=True)
    is_non_stock_service = db.Column(db.Boolean, nullable=False, default=False)

    selling_price = db.Column(db.Float, nullable=False, default=0)
    cost_price = db.Column(db.Float, nullable=False, default=0)
    base_uom_id = db.Column(db.Integer, db.ForeignKey("uoms.id"), nullable=True)

    constant = db.Column(db.Boolean, nullable=False, default=False)
    width = db.Column(db.Float, nullable=True)
    height = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    item = db.relationship("Item")
    item_base = db.relationship("ItemBase")
    service = db.relationship("Service")
    non_stock_service = db.relationship("NonStockService")
    base_uom = db.relationship("UOM")

    def __repr__(self) -> str:
        return (
            f"<Pricing id={self.id} item={self.item_id} base={self.item_base_id} "
            f"svc={self.service_id} nss={self.non_stock_service_id}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_base_id": self.item_base_id,
            "service_id": self.service_id,
            "non_stock_service_id": self.non_stock_service_id,
            "is_non_stock_service": self.is_non_stock_service,
            "selling_price": self.selling_price,
            "cost_price": self.cost_price,
            "base_uom_id": self.base_uom_id,
            "constant": self.constant,
            "width": self.width,
            "height": self.height,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
