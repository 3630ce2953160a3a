# Overview: Service-layer operations for orders; the order aggregate is written as one unit of work.

"""
Order aggregate: Order + OrderItems + optional PaymentTerm (+ transactions)
+ optional Commission (+ transactions).

================================================================================
RULES:
1. Input shape is validated before any transaction opens (ValidationError)
2. create/update/remove each run in ONE transaction; any failure rolls back all of it
3. Line cost/sales come from costing_service; a line with no resolvable price
   rejects the whole order
4. Order status is derived from line statuses, never taken from input
5. Line status only moves through order_item_service.update_order_item
6. Update deletes only Received lines; consumed stock is only released by
   status transitions
7. PaymentTerm / Commission transactions are replaced wholesale on update
8. remove() requires every line to be Received
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from flask import current_app
from sqlalchemy import or_, select, func

from ..extensions import db
from ..models import (
    Order,
    OrderItem,
    PaymentTerm,
    PaymentTransaction,
    Commission,
    CommissionTransaction,
    Pricing,
    Customer,
    SalesPartner,
    Item,
    ItemBase,
)
from ..models.orders import LENS_FIELDS, AREA_FIELDS
from ..time_utils import parse_date
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_non_negative,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from . import costing_service
from . import order_item_lifecycle as lifecycle
from .concurrency import run_in_transaction, lock_for_update
from .pricing_service import resolve_pricing


# =============================================================================
# PAYMENT STATUS CONSTANTS
# =============================================================================

PAYMENT_NOT_PAID = "Not Paid"
PAYMENT_PARTIALLY_PAID = "Partially Paid"
PAYMENT_FULLY_PAID = "Fully Paid"

TXN_PAID = "Paid"
TXN_PENDING = "Pending"
_TXN_STATUS_ALIASES = {"paid": TXN_PAID, "pending": TXN_PENDING}


# =============================================================================
# INPUT POLICIES
# =============================================================================

ORDER_POLICY = ModelValidationPolicy(
    writable_fields={
        "series", "customer_id", "order_source", "order_date", "delivery_date",
        "tax", "internal_note", "file_names", "admin_approval", "sales_partner_id",
    },
    required_on_create={"series", "customer_id"},
)

ORDER_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "item_id", "item_base_id", "service_id", "non_stock_service_id", "is_non_stock_service",
        "uom_id", "quantity", "pricing_id",
        "discount", "is_discounted", "level", "admin_approval", "description", "status",
        *LENS_FIELDS,
        *AREA_FIELDS,
    },
    required_on_create={"item_id", "uom_id", "quantity"},
)

PAYMENT_TERM_POLICY = ModelValidationPolicy(
    writable_fields={"total_amount", "remaining_amount", "force_payment"},
)

PAYMENT_TXN_POLICY = ModelValidationPolicy(
    writable_fields={"date", "payment_method", "reference", "amount", "status", "description"},
    required_on_create={"payment_method", "amount"},
)

COMMISSION_POLICY = ModelValidationPolicy(
    writable_fields={"sales_partner_id", "total_amount", "paid_amount"},
    required_on_create={"sales_partner_id"},
)

COMMISSION_TXN_POLICY = ModelValidationPolicy(
    writable_fields={"date", "amount", "percentage", "payment_method", "reference", "status", "description"},
    required_on_create={"payment_method", "amount"},
)

# Echoed back by clients that round-trip to_dict(); ignored on input
_ORDER_READ_ONLY = {
    "id", "status", "total_amount", "grand_total", "total_quantity",
    "customer", "created_at", "updated_at",
}
_ITEM_READ_ONLY = {
    "order_id", "item_name", "line_kind", "unit", "base_uom_id", "unit_price",
    "total_amount", "total_cost", "sales", "created_at", "updated_at",
}
_TERM_READ_ONLY = {"id", "order_id", "status"}
_COMMISSION_READ_ONLY = {"id", "order_id"}
_TXN_READ_ONLY = {"id"}

# Fields that decide how much stock a line consumes
_LOCKED_AFTER_RECEIVED = (
    "item_id", "item_base_id", "service_id", "non_stock_service_id", "uom_id", "quantity", "width", "height",
)


@dataclass
class OrderInput:
    header: dict
    items: list[dict] | None
    payment_term: dict | None
    payment_transactions: list[dict]
    has_payment_term: bool
    commission: dict | None
    commission_transactions: list[dict]
    has_commission: bool


# =============================================================================
# VALIDATION (runs before any transaction)
# =============================================================================

def _strip(payload: dict, read_only: set[str]) -> dict:
    return {k: v for k, v in payload.items() if k not in read_only}


def _as_list(value, name: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{name} must be a list")
    return value


def normalize_txn_status(status) -> str:
    if status is None or status == "":
        return TXN_PENDING
    normalized = _TXN_STATUS_ALIASES.get(str(status).strip().lower())
    if not normalized:
        raise ValidationError(f"Invalid transaction status '{status}'. Must be Paid or Pending")
    return normalized


def derive_payment_status(total_amount: float, remaining_amount: float) -> str:
    if remaining_amount == 0:
        return PAYMENT_FULLY_PAID
    if 0 < remaining_amount < total_amount:
        return PAYMENT_PARTIALLY_PAID
    return PAYMENT_NOT_PAID


def _validate_item(raw: dict, index: int, *, partial: bool) -> dict:
    if not isinstance(raw, dict):
        raise ValidationError(f"order_items[{index}] must be an object")
    line_id = raw.get("id")
    patch = validate_payload(
        model=OrderItem,
        payload=_strip(raw, _ITEM_READ_ONLY | {"id"}),
        policy=ORDER_ITEM_POLICY,
        partial=partial,
    )
    require_non_negative(patch, "discount", "width", "height")
    if "quantity" in patch and patch["quantity"] is not None and patch["quantity"] <= 0:
        raise ValidationError(f"order_items[{index}].quantity must be > 0")

    service_id = patch.get("service_id")
    nss_id = patch.get("non_stock_service_id")
    if service_id and nss_id:
        raise ValidationError(
            f"order_items[{index}] cannot reference both service_id and non_stock_service_id"
        )
    if "is_non_stock_service" in patch:
        if patch["is_non_stock_service"] and not nss_id:
            raise ValidationError(
                f"order_items[{index}].is_non_stock_service is true but no non_stock_service_id is set"
            )
        if not patch["is_non_stock_service"] and nss_id:
            raise ValidationError(
                f"order_items[{index}].is_non_stock_service is false but non_stock_service_id is set"
            )
    if "status" in patch:
        lifecycle.validate_status(patch["status"])

    if line_id is not None:
        if isinstance(line_id, bool) or not isinstance(line_id, int):
            raise ValidationError(f"order_items[{index}].id must be an integer")
        patch["id"] = line_id
    elif "status" in patch and patch["status"] != lifecycle.INITIAL_STATUS:
        raise ValidationError(f"New order items must start in {lifecycle.INITIAL_STATUS}")
    return patch


def _validate_transactions(raw_list, policy: ModelValidationPolicy, name: str) -> list[dict]:
    cleaned = []
    for i, raw in enumerate(_as_list(raw_list, name)):
        if not isinstance(raw, dict):
            raise ValidationError(f"{name}[{i}] must be an object")
        model = PaymentTransaction if policy is PAYMENT_TXN_POLICY else CommissionTransaction
        patch = validate_payload(model=model, payload=_strip(raw, _TXN_READ_ONLY), policy=policy, partial=False)
        if not patch.get("payment_method"):
            raise ValidationError(f"{name}[{i}].payment_method is required")
        require_non_negative(patch, "amount", "percentage")
        patch["status"] = normalize_txn_status(patch.get("status"))
        cleaned.append(patch)
    return cleaned


def _validate_file_names(header: dict) -> None:
    if "file_names" not in header:
        return
    names = header["file_names"]
    if names is None:
        header["file_names"] = []
        return
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise ValidationError("file_names must be a list of strings")


def validate_order_input(dto: dict, *, partial: bool) -> OrderInput:
    """
    Check shape and cross-field rules for create (partial=False) or update.
    Raises ValidationError; never touches the database.
    """
    if dto is None or not isinstance(dto, dict):
        raise ValidationError("Invalid JSON payload")
    dto = dict(dto)

    raw_items = dto.pop("order_items", None)
    has_term = "payment_term" in dto
    raw_term = dto.pop("payment_term", None)
    has_comm = "commission" in dto
    raw_comm = dto.pop("commission", None)

    header = validate_payload(model=Order, payload=_strip(dto, _ORDER_READ_ONLY), policy=ORDER_POLICY, partial=partial)
    require_non_negative(header, "tax")
    _validate_file_names(header)
    if not partial and not header.get("series"):
        raise ValidationError("series is required")

    items = None
    if raw_items is not None or not partial:
        raw_items = _as_list(raw_items, "order_items")
        if not raw_items:
            raise ValidationError("An order needs at least one order item")
        items = []
        for i, raw in enumerate(raw_items):
            is_existing = partial and isinstance(raw, dict) and raw.get("id") is not None
            items.append(_validate_item(raw, i, partial=is_existing))
        if not partial and any("id" in p for p in items):
            raise ValidationError("order_items on a new order cannot carry ids")

    term = None
    term_txns: list[dict] = []
    if raw_term is not None:
        if not isinstance(raw_term, dict):
            raise ValidationError("payment_term must be an object")
        raw_term = dict(raw_term)
        term_txns = _validate_transactions(raw_term.pop("transactions", None), PAYMENT_TXN_POLICY, "payment_term.transactions")
        term = validate_payload(
            model=PaymentTerm, payload=_strip(raw_term, _TERM_READ_ONLY), policy=PAYMENT_TERM_POLICY, partial=False
        )
        require_non_negative(term, "total_amount", "remaining_amount")

    comm = None
    comm_txns: list[dict] = []
    if raw_comm is not None:
        if not isinstance(raw_comm, dict):
            raise ValidationError("commission must be an object")
        raw_comm = dict(raw_comm)
        comm_txns = _validate_transactions(raw_comm.pop("transactions", None), COMMISSION_TXN_POLICY, "commission.transactions")
        comm = validate_payload(
            model=Commission, payload=_strip(raw_comm, _COMMISSION_READ_ONLY), policy=COMMISSION_POLICY, partial=False
        )
        require_non_negative(comm, "total_amount", "paid_amount")

    return OrderInput(
        header=header,
        items=items,
        payment_term=term,
        payment_transactions=term_txns,
        has_payment_term=has_term,
        commission=comm,
        commission_transactions=comm_txns,
        has_commission=has_comm,
    )


# =============================================================================
# LINE BUILDING
# =============================================================================

def _resolve_line_pricing(patch: dict) -> Pricing:
    item_id = patch["item_id"]
    item_base_id = patch.get("item_base_id")
    service_id = patch.get("service_id")
    nss_id = patch.get("non_stock_service_id")

    pricing_id = patch.get("pricing_id")
    if pricing_id:
        pricing = db.session.get(Pricing, pricing_id)
        if not pricing:
            raise NotFoundError(f"Pricing {pricing_id} not found")
        if pricing.item_id != item_id:
            raise ValidationError(f"Pricing {pricing_id} does not belong to item {item_id}")
        if pricing.item_base_id is not None and pricing.item_base_id != item_base_id:
            raise ValidationError(f"Pricing {pricing_id} does not match item base {item_base_id}")
        if pricing.service_id != service_id or pricing.non_stock_service_id != nss_id:
            raise ValidationError(f"Pricing {pricing_id} does not match the line's service")
        return pricing

    pricing = resolve_pricing(
        item_id, item_base_id=item_base_id, service_id=service_id, non_stock_service_id=nss_id
    )
    if not pricing:
        raise ValidationError(f"No pricing found for item {item_id}; the order cannot be priced")
    return pricing


def _check_item_base(line: OrderItem) -> None:
    if not line.item_base_id:
        return
    base = db.session.get(ItemBase, line.item_base_id)
    if not base:
        raise NotFoundError(f"Item base {line.item_base_id} not found")
    if base.item_id != line.item_id:
        raise ValidationError(f"Item base {line.item_base_id} does not belong to item {line.item_id}")


def _cost_line(line: OrderItem) -> None:
    """(Re)compute pricing, unit, cost and sales on a line from its current fields."""
    _check_item_base(line)
    pricing = _resolve_line_pricing({
        "item_id": line.item_id,
        "item_base_id": line.item_base_id,
        "service_id": line.service_id,
        "non_stock_service_id": line.non_stock_service_id,
        "pricing_id": line.pricing_id,
    })
    costing = costing_service.calculate_line(
        line.item_id,
        line.uom_id,
        line.quantity,
        item_base_id=line.item_base_id,
        service_id=line.service_id,
        non_stock_service_id=line.non_stock_service_id,
        width=line.width,
        height=line.height,
        pricing=pricing,
    )
    line.pricing_id = costing.pricing_id
    line.line_kind = costing.line_kind
    line.unit = costing.unit
    line.base_uom_id = costing.base_uom_id
    line.unit_price = costing.unit_price
    line.total_cost = costing.total_cost
    line.sales = costing.sales
    apply_line_total(line)


def apply_line_total(line: OrderItem) -> None:
    discount = float(line.discount or 0)
    line.total_amount = max(float(line.sales or 0) - discount, 0.0)
    line.is_discounted = discount > 0


def _assign_line_fields(line: OrderItem, patch: dict) -> None:
    for k, v in patch.items():
        if k == "id":
            continue
        setattr(line, k, v)
    if line.service_id and line.non_stock_service_id:
        raise ValidationError(
            f"Order item {line.id} cannot reference both service {line.service_id} "
            f"and non-stock service {line.non_stock_service_id}"
        )
    line.is_non_stock_service = bool(line.non_stock_service_id)
    if line.line_kind is None:
        line.line_kind = costing_service.LINE_KIND_LENS


def _build_line(order: Order, patch: dict) -> OrderItem:
    line = OrderItem(order_id=order.id, status=lifecycle.INITIAL_STATUS)
    _assign_line_fields(line, {k: v for k, v in patch.items() if k != "status"})
    _cost_line(line)
    db.session.add(line)
    return line


def recompute_order_totals(order: Order, lines: list[OrderItem]) -> None:
    order.total_amount = sum(float(i.total_amount or 0) for i in lines)
    order.total_quantity = sum(float(i.quantity or 0) for i in lines)
    order.grand_total = order.total_amount + float(order.tax or 0)
    order.status = lifecycle.derive_order_status(i.status for i in lines)


# =============================================================================
# PAYMENT TERM / COMMISSION
# =============================================================================

def _delete_payment_term(order: Order) -> None:
    """Mark the term and its transactions deleted; the caller flushes."""
    term = db.session.query(PaymentTerm).filter_by(order_id=order.id).first()
    if not term:
        return
    for txn in term.transactions:
        db.session.delete(txn)
    db.session.delete(term)


def _write_payment_term(order: Order, term_patch: dict, txns: list[dict]) -> PaymentTerm:
    term = db.session.query(PaymentTerm).filter_by(order_id=order.id).first()
    if term:
        for txn in term.transactions:
            db.session.delete(txn)
        db.session.flush()
    else:
        term = PaymentTerm(order_id=order.id)
        db.session.add(term)

    paid = sum(float(t["amount"] or 0) for t in txns if t["status"] == TXN_PAID)
    total = term_patch.get("total_amount")
    if total is None:
        total = float(order.grand_total or 0)
    remaining = term_patch.get("remaining_amount")
    if remaining is None:
        remaining = max(total - paid, 0.0)

    term.total_amount = total
    term.remaining_amount = remaining
    term.force_payment = bool(term_patch.get("force_payment", term.force_payment or False))
    term.status = derive_payment_status(total, remaining)
    db.session.flush()

    for t in txns:
        db.session.add(PaymentTransaction(payment_term_id=term.id, **t))
    db.session.flush()
    db.session.expire(term, ["transactions"])
    return term


def _delete_commission(order: Order) -> None:
    """Mark the commission and its transactions deleted; the caller flushes."""
    comm = db.session.query(Commission).filter_by(order_id=order.id).first()
    if not comm:
        return
    for txn in comm.transactions:
        db.session.delete(txn)
    db.session.delete(comm)


def _write_commission(order: Order, comm_patch: dict, txns: list[dict]) -> Commission:
    comm = db.session.query(Commission).filter_by(order_id=order.id).first()
    if comm:
        for txn in comm.transactions:
            db.session.delete(txn)
        db.session.flush()
    else:
        comm = Commission(order_id=order.id)
        db.session.add(comm)

    comm.sales_partner_id = comm_patch["sales_partner_id"]
    comm.total_amount = comm_patch.get("total_amount") or 0.0
    paid = comm_patch.get("paid_amount")
    if paid is None:
        paid = sum(float(t["amount"] or 0) for t in txns if t["status"] == TXN_PAID)
    comm.paid_amount = paid
    db.session.flush()

    for t in txns:
        db.session.add(CommissionTransaction(commission_id=comm.id, **t))
    db.session.flush()
    db.session.expire(comm, ["transactions"])
    return comm


# =============================================================================
# PUBLIC OPERATIONS
# =============================================================================

def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def create_order(dto: dict) -> Order:
    """
    Create an order with its lines, payment term and commission atomically.

    Raises:
        ValidationError: bad shape, or a line whose price cannot be resolved
        NotFoundError: a supplied pricing_id / UOM / item does not exist
        ConflictError: duplicate key or dangling reference at write time
    """
    data = validate_order_input(dto, partial=False)

    def _op():
        order = Order(**data.header)
        order.status = lifecycle.ORDER_PENDING
        db.session.add(order)
        db.session.flush()

        lines = [_build_line(order, patch) for patch in data.items]
        db.session.flush()
        recompute_order_totals(order, lines)
        db.session.flush()

        if data.payment_term is not None:
            _write_payment_term(order, data.payment_term, data.payment_transactions)
        if data.commission is not None:
            _write_commission(order, data.commission, data.commission_transactions)
        return order.id

    order_id = run_in_transaction(_op)
    current_app.logger.info("Created order %s", order_id)
    return get_order(order_id)


def _update_existing_line(line: OrderItem, patch: dict, index: int) -> None:
    if "status" in patch and patch["status"] != line.status:
        raise ValidationError(
            f"order_items[{index}].status cannot change here; update the order item status instead"
        )
    patch = {k: v for k, v in patch.items() if k not in ("status", "id")}

    if line.status != lifecycle.RECEIVED:
        changed = [f for f in _LOCKED_AFTER_RECEIVED if f in patch and patch[f] != getattr(line, f)]
        if changed:
            raise ConflictError(
                f"Order item {line.id} is {line.status}; cannot change {', '.join(changed)}"
            )
        pricing_changed = "pricing_id" in patch and patch["pricing_id"] != line.pricing_id
        if pricing_changed:
            raise ConflictError(f"Order item {line.id} is {line.status}; cannot change pricing_id")
        _assign_line_fields(line, patch)
        apply_line_total(line)
        return

    key_changed = any(f in patch and patch[f] != getattr(line, f) for f in ("item_id", "item_base_id", "service_id", "non_stock_service_id"))
    if key_changed and "pricing_id" not in patch:
        # Old pricing no longer applies; re-resolve
        patch["pricing_id"] = None
    _assign_line_fields(line, patch)
    _cost_line(line)


def update_order(order_id: int, dto: dict) -> Order:
    """
    Update header fields, diff lines, and replace payment/commission transactions.

    Lines absent from order_items are deleted (Received only). Lines with an id
    are updated; lines without one are created.
    """
    data = validate_order_input(dto, partial=True)

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        for k, v in data.header.items():
            setattr(order, k, v)

        existing = {line.id: line for line in order.items}
        if data.items is not None:
            incoming_ids = {p["id"] for p in data.items if "id" in p}
            unknown = incoming_ids - set(existing)
            if unknown:
                raise NotFoundError(
                    f"Order items {sorted(unknown)} do not belong to order {order_id}"
                )

            for line_id in sorted(set(existing) - incoming_ids):
                line = existing[line_id]
                if line.status != lifecycle.RECEIVED:
                    raise ConflictError(
                        f"Order item {line_id} is {line.status}; only Received items can be removed from an order"
                    )
                for note in line.notes:
                    db.session.delete(note)
                db.session.delete(line)
            db.session.flush()

            for index, patch in enumerate(data.items):
                if "id" in patch:
                    _update_existing_line(existing[patch["id"]], patch, index)
                else:
                    _build_line(order, patch)
            db.session.flush()
            db.session.expire(order, ["items"])

        lines = db.session.query(OrderItem).filter_by(order_id=order.id).order_by(OrderItem.id).all()
        recompute_order_totals(order, lines)
        db.session.flush()

        if data.has_payment_term:
            if data.payment_term is None:
                _delete_payment_term(order)
            else:
                _write_payment_term(order, data.payment_term, data.payment_transactions)
        if data.has_commission:
            if data.commission is None:
                _delete_commission(order)
            else:
                _write_commission(order, data.commission, data.commission_transactions)
        return order.id

    run_in_transaction(_op)
    db.session.expire_all()
    return get_order(order_id)


def remove_order(order_id: int) -> None:
    """Delete an order that has not started fulfilment, children first."""
    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if not order:
            raise NotFoundError(f"Order {order_id} not found")

        started = [i for i in order.items if i.status != lifecycle.RECEIVED]
        if started:
            raise ConflictError(
                f"Order {order_id} has items in progress ({', '.join(sorted({i.status for i in started}))}); "
                "only orders whose items are all Received can be deleted"
            )

        _delete_commission(order)
        _delete_payment_term(order)
        for line in order.items:
            for note in line.notes:
                db.session.delete(note)
            db.session.delete(line)
        db.session.delete(order)
        db.session.flush()

    run_in_transaction(_op)
    db.session.expire_all()
    current_app.logger.info("Deleted order %s", order_id)


# =============================================================================
# FILTERING / LISTING
# =============================================================================

@dataclass
class OrderFilters:
    search: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    item_names: list[str] = field(default_factory=list)
    status: str | None = None
    customer_id: int | None = None

    @property
    def has_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None


def parse_order_filters(args) -> OrderFilters:
    """Build filters from a query-string mapping (search, start_date, end_date, item1..item3)."""
    try:
        start = parse_date(args.get("start_date") or args.get("startDate"))
        end = parse_date(args.get("end_date") or args.get("endDate"))
    except ValueError:
        raise ValidationError("start_date/end_date must be ISO-8601 dates")
    if start and end and start > end:
        raise ValidationError("start_date must be on or before end_date")

    names = []
    for key in ("item1", "item2", "item3"):
        value = (args.get(key) or "").strip()
        if value:
            names.append(value)

    customer_id = args.get("customer_id")
    if customer_id is not None and customer_id != "":
        try:
            customer_id = int(customer_id)
        except (TypeError, ValueError):
            raise ValidationError("customer_id must be an integer")
    else:
        customer_id = None

    return OrderFilters(
        search=(args.get("search") or "").strip() or None,
        start_date=start,
        end_date=end,
        item_names=names,
        status=(args.get("status") or "").strip() or None,
        customer_id=customer_id,
    )


def item_name_clause(filters: OrderFilters):
    if not filters.item_names:
        return None
    return OrderItem.item_id.in_(
        select(Item.id).where(or_(*[Item.name.ilike(f"%{n}%") for n in filters.item_names]))
    )


def order_filter_clauses(filters: OrderFilters) -> list:
    clauses = []
    if filters.search:
        like = f"%{filters.search}%"
        clauses.append(or_(
            Order.series.ilike(like),
            Order.customer_id.in_(
                select(Customer.id).where(or_(Customer.full_name.ilike(like), Customer.phone.ilike(like)))
            ),
            Order.id.in_(select(OrderItem.order_id).where(OrderItem.description.ilike(like))),
            Order.id.in_(
                select(PaymentTerm.order_id)
                .join(PaymentTransaction, PaymentTransaction.payment_term_id == PaymentTerm.id)
                .where(PaymentTransaction.reference.ilike(like))
            ),
            Order.id.in_(
                select(Commission.order_id)
                .join(CommissionTransaction, CommissionTransaction.commission_id == Commission.id)
                .where(CommissionTransaction.reference.ilike(like))
            ),
            Order.sales_partner_id.in_(select(SalesPartner.id).where(SalesPartner.full_name.ilike(like))),
        ))
    if filters.start_date:
        clauses.append(Order.order_date >= filters.start_date)
    if filters.end_date:
        clauses.append(Order.order_date <= filters.end_date)
    if filters.status:
        clauses.append(Order.status == filters.status)
    if filters.customer_id:
        clauses.append(Order.customer_id == filters.customer_id)
    name_clause = item_name_clause(filters)
    if name_clause is not None:
        clauses.append(Order.id.in_(select(OrderItem.order_id).where(name_clause)))
    return clauses


def list_orders(*, skip: int = 0, take: int = 10, filters: OrderFilters | None = None) -> tuple[list[Order], int, float]:
    """Return (orders newest first, total count, sum of grand_total over all matches)."""
    filters = filters or OrderFilters()
    clauses = order_filter_clauses(filters)

    q = db.session.query(Order).filter(*clauses)
    total = q.count()
    grand_total_sum = db.session.query(func.coalesce(func.sum(Order.grand_total), 0.0)).filter(*clauses).scalar()
    rows = (
        q.order_by(Order.order_date.desc(), Order.id.desc())
        .offset(skip)
        .limit(take)
        .all()
    )
    return rows, total, float(grand_total_sum or 0)
