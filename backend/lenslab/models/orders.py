from __future__ import annotations

from ..extensions import db
from lenslab.time_utils import to_utc_z, to_iso_date, utcnow


def _today():
    return utcnow().date()


class Order(db.Model):
    """
    Sales order aggregate root.

    STATUS:
    Derived from the line statuses after every write (see order_item_lifecycle);
    never taken from client input.

    OWNERSHIP:
    - many OrderItem
    - at most one PaymentTerm (unique order_id)
    - at most one Commission (unique order_id)
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_order_date", "order_date"),
        db.Index("ix_orders_customer", "customer_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    series = db.Column(db.String(64), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    status = db.Column(db.String(32), nullable=False, default="Pending")
    order_source = db.Column(db.String(64), nullable=True)

    order_date = db.Column(db.Date, nullable=False, default=_today)
    delivery_date = db.Column(db.Date, nullable=True)

    total_amount = db.Column(db.Float, nullable=False, default=0)
    tax = db.Column(db.Float, nullable=False, default=0)
    grand_total = db.Column(db.Float, nullable=False, default=0)
    total_quantity = db.Column(db.Float, nullable=False, default=0)

    internal_note = db.Column(db.Text, nullable=True)
    # Stored verbatim; the files themselves live elsewhere
    file_names = db.Column(db.JSON, nullable=False, default=list)
    admin_approval = db.Column(db.Boolean, nullable=False, default=False)

    sales_partner_id = db.Column(db.Integer, db.ForeignKey("sales_partners.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    sales_partner = db.relationship("SalesPartner", backref=db.backref("orders", lazy=True))

    def __repr__(self) -> str:
        return f"<Order id={self.id} series={self.series!r} status={self.status!r}>"

    def to_dict(self, *, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "series": self.series,
            "customer_id": self.customer_id,
            "customer": self.customer.to_dict() if self.customer else None,
            "status": self.status,
            "order_source": self.order_source,
            "order_date": to_iso_date(self.order_date),
            "delivery_date": to_iso_date(self.delivery_date),
            "total_amount": self.total_amount,
            "tax": self.tax,
            "grand_total": self.grand_total,
            "total_quantity": self.total_quantity,
            "internal_note": self.internal_note,
            "file_names": list(self.file_names or []),
            "admin_approval": self.admin_approval,
            "sales_partner_id": self.sales_partner_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_lines:
            data["order_items"] = [i.to_dict() for i in self.items]
            data["payment_term"] = self.payment_term.to_dict() if self.payment_term else None
            data["commission"] = self.commission.to_dict() if self.commission else None
        return data


LENS_FIELDS = (
    "sphere_right", "sphere_left",
    "cylinder_right", "cylinder_left",
    "axis_right", "axis_left",
    "prism_right", "prism_left",
    "add_right", "add_left",
    "pd", "pd_monocular_right", "pd_monocular_left",
    "lens_type", "lens_material", "lens_coating", "lens_index",
    "base_curve", "diameter", "tint_color",
)

AREA_FIELDS = ("width", "height")


class OrderItem(db.Model):
    """
    One order line.

    LINE KINDS:
    - LENS: prescription payload; unit comes from UOM conversion only
    - AREA: width/height payload; unit is converted width x height x quantity

    Shared columns (order, pricing, quantity/unit/cost/sales, status) are the
    same for both kinds so the costing pipeline stays single.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.Index("ix_order_items_order", "order_id"),
        db.Index("ix_order_items_item_status", "item_id", "status"),
        db.CheckConstraint("line_kind IN ('LENS','AREA')", name="ck_order_items_line_kind"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False)

    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False)
    item_base_id = db.Column(db.Integer, db.ForeignKey("item_bases.id"), nullable=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=True)
    non_stock_service_id = db.Column(db.Integer, db.ForeignKey("non_stock_services.id"), nullable=True)
    is_non_stock_service = db.Column(db.Boolean, nullable=False, default=False)

    line_kind = db.Column(db.String(8), nullable=False, default="LENS")

    pricing_id = db.Column(db.Integer, db.ForeignKey("pricing.id"), nullable=True)
    uom_id = db.Column(db.Integer, db.ForeignKey("uoms.id"), nullable=False)
    base_uom_id = db.Column(db.Integer, db.ForeignKey("uoms.id"), nullable=True)

    quantity = db.Column(db.Float, nullable=False, default=0)
    # Canonical (base-unit) measurement; what stock moves by
    unit = db.Column(db.Float, nullable=False, default=0)
    unit_price = db.Column(db.Float, nullable=False, default=0)
    total_amount = db.Column(db.Float, nullable=False, default=0)
    total_cost = db.Column(db.Float, nullable=False, default=0)
    sales = db.Column(db.Float, nullable=False, default=0)
    discount = db.Column(db.Float, nullable=False, default=0)
    is_discounted = db.Column(db.Boolean, nullable=False, default=False)
    level = db.Column(db.Integer, nullable=True)
    admin_approval = db.Column(db.Boolean, nullable=False, default=False)
    description = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(32), nullable=False, default="Received")

    # LENS payload
    sphere_right = db.Column(db.Float, nullable=True)
    sphere_left = db.Column(db.Float, nullable=True)
    cylinder_right = db.Column(db.Float, nullable=True)
    cylinder_left = db.Column(db.Float, nullable=True)
    axis_right = db.Column(db.Integer, nullable=True)
    axis_left = db.Column(db.Integer, nullable=True)
    prism_right = db.Column(db.Float, nullable=True)
    prism_left = db.Column(db.Float, nullable=True)
    add_right = db.Column(db.Float, nullable=True)
    add_left = db.Column(db.Float, nullable=True)
    pd = db.Column(db.Float, nullable=True)
    pd_monocular_right = db.Column(db.Float, nullable=True)
    pd_monocular_left = db.Column(db.Float, nullable=True)
    lens_type = db.Column(db.String(64), nullable=True)
    lens_material = db.Column(db.String(64), nullable=True)
    lens_coating = db.Column(db.String(64), nullable=True)
    lens_index = db.Column(db.String(16), nullable=True)
    base_curve = db.Column(db.Float, nullable=True)
    diameter = db.Column(db.Float, nullable=True)
    tint_color = db.Column(db.String(64), nullable=True)

    # AREA payload
    width = db.Column(db.Float, nullable=True)
    height = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    order = db.relationship("Order", backref=db.backref("items", lazy=True, order_by="OrderItem.id"))
    item = db.relationship("Item")
    item_base = db.relationship("ItemBase")
    service = db.relationship("Service")
    non_stock_service = db.relationship("NonStockService")
    pricing = db.relationship("Pricing")
    uom = db.relationship("UOM", foreign_keys=[uom_id])
    base_uom = db.relationship("UOM", foreign_keys=[base_uom_id])

    def __repr__(self) -> str:
        return f"<OrderItem id={self.id} order={self.order_id} item={self.item_id} status={self.status!r}>"

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "order_id": self.order_id,
            "item_id": self.item_id,
            "item_name": self.item.name if self.item else None,
            "item_base_id": self.item_base_id,
            "service_id": self.service_id,
            "non_stock_service_id": self.non_stock_service_id,
            "is_non_stock_service": self.is_non_stock_service,
            "line_kind": self.line_kind,
            "pricing_id": self.pricing_id,
            "uom_id": self.uom_id,
            "base_uom_id": self.base_uom_id,
            "quantity": self.quantity,
            "unit": self.unit,
            "unit_price": self.unit_price,
            "total_amount": self.total_amount,
            "total_cost": self.total_cost,
            "sales": self.sales,
            "discount": self.discount,
            "is_discounted": self.is_discounted,
            "level": self.level,
            "admin_approval": self.admin_approval,
            "description": self.description,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        payload_fields = LENS_FIELDS if self.line_kind == "LENS" else AREA_FIELDS
        for f in payload_fields:
            data[f] = getattr(self, f)
        return data


class OrderItemNote(db.Model):
    """Free-text note on a line; author_id is the opaque actor id of the writer."""
    __tablename__ = "order_item_notes"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    order_item_id = db.Column(db.Integer, db.ForeignKey("order_items.id"), nullable=False, index=True)
    text = db.Column(db.Text, nullable=False)
    author_id = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order_item = db.relationship(
        "OrderItem",
        backref=db.backref("notes", lazy=True, order_by="OrderItemNote.id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_item_id": self.order_item_id,
            "text": self.text,
            "author_id": self.author_id,
            "created_at": to_utc_z(self.created_at),
        }


class PaymentTerm(db.Model):
    """
    Payment schedule for one order.

    status is derived from remaining_amount vs total_amount.
    force_payment gates status moves on the order's lines.
    """
    __tablename__ = "payment_terms"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, unique=True)
    total_amount = db.Column(db.Float, nullable=False, default=0)
    remaining_amount = db.Column(db.Float, nullable=False, default=0)
    status = db.Column(db.String(32), nullable=False, default="Not Paid")
    force_payment = db.Column(db.Boolean, nullable=False, default=False)

    order = db.relationship("Order", backref=db.backref("payment_term", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "total_amount": self.total_amount,
            "remaining_amount": self.remaining_amount,
            "status": self.status,
            "force_payment": self.force_payment,
            "transactions": [t.to_dict() for t in self.transactions],
        }


class PaymentTransaction(db.Model):
    __tablename__ = "payment_transactions"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    payment_term_id = db.Column(db.Integer, db.ForeignKey("payment_terms.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, default=_today)
    payment_method = db.Column(db.String(32), nullable=False)
    reference = db.Column(db.String(128), nullable=True)
    amount = db.Column(db.Float, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="Pending")
    description = db.Column(db.Text, nullable=True)

    payment_term = db.relationship(
        "PaymentTerm",
        backref=db.backref("transactions", lazy=True, order_by="PaymentTransaction.id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "payment_method": self.payment_method,
            "reference": self.reference,
            "amount": self.amount,
            "status": self.status,
            "description": self.description,
        }


class Commission(db.Model):
    __tablename__ = "commissions"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, unique=True)
    sales_partner_id = db.Column(db.Integer, db.ForeignKey("sales_partners.id"), nullable=False, index=True)
    total_amount = db.Column(db.Float, nullable=False, default=0)
    paid_amount = db.Column(db.Float, nullable=False, default=0)

    order = db.relationship("Order", backref=db.backref("commission", uselist=False, lazy=True))
    sales_partner = db.relationship("SalesPartner")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "sales_partner_id": self.sales_partner_id,
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "transactions": [t.to_dict() for t in self.transactions],
        }


class CommissionTransaction(db.Model):
    __tablename__ = "commission_transactions"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    commission_id = db.Column(db.Integer, db.ForeignKey("commissions.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, default=_today)
    amount = db.Column(db.Float, nullable=False, default=0)
    percentage = db.Column(db.Float, nullable=True)
    payment_method = db.Column(db.String(32), nullable=False)
    reference = db.Column(db.String(128), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="Pending")
    description = db.Column(db.Text, nullable=True)

    commission = db.relationship(
        "Commission",
        backref=db.backref("transactions", lazy=True, order_by="CommissionTransaction.id"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "amount": self.amount,
            "percentage": self.percentage,
            "payment_method": self.payment_method,
            "reference": self.reference,
            "status": self.status,
            "description": self.description,
        }
