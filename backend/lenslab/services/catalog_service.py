# Overview: Service-layer operations for the item/unit catalog; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import UnitCategory, UOM, Item, ItemBase, Service, NonStockService, Customer, SalesPartner
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_non_negative,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from .concurrency import run_in_transaction


UNIT_CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "constant"},
    required_on_create={"name"},
)

UOM_POLICY = ModelValidationPolicy(
    writable_fields={"unit_category_id", "name", "abbreviation", "conversion_rate", "base_unit"},
    required_on_create={"unit_category_id", "name", "abbreviation"},
)

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "item_code", "name", "description",
        "unit_category_id", "default_uom_id", "purchase_uom_id",
        "quantity", "reorder_level",
        "lens_material", "lens_index", "lens_type",
        "can_be_sold", "can_be_purchased",
    },
    required_on_create={"name", "unit_category_id"},
)

ITEM_BASE_POLICY = ModelValidationPolicy(
    writable_fields={"base_code", "add_power"},
    required_on_create={"base_code"},
)

DIRECTORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)


# =============================================================================
# UNIT CATEGORIES & UOMS
# =============================================================================

def create_unit_category(payload: dict) -> UnitCategory:
    patch = validate_payload(model=UnitCategory, payload=payload, policy=UNIT_CATEGORY_POLICY, partial=False)

    def _op():
        if db.session.query(UnitCategory).filter_by(name=patch["name"]).first():
            raise ConflictError(f"Unit category '{patch['name']}' already exists")
        category = UnitCategory(**patch)
        db.session.add(category)
        db.session.flush()
        return category

    return run_in_transaction(_op)


def list_unit_categories() -> list[UnitCategory]:
    return db.session.query(UnitCategory).order_by(UnitCategory.name.asc()).all()


def create_uom(payload: dict) -> UOM:
    """
    Create a UOM in a category.

    - A second base unit in the same category is a conflict.
    - Re-creating an identical (name, abbreviation, category) returns the existing row.
    """
    patch = validate_payload(model=UOM, payload=payload, policy=UOM_POLICY, partial=False)
    if patch.get("conversion_rate") is not None and patch["conversion_rate"] <= 0:
        raise ValidationError("conversion_rate must be > 0")

    def _op():
        category = db.session.get(UnitCategory, patch["unit_category_id"])
        if not category:
            raise NotFoundError(f"Unit category {patch['unit_category_id']} not found")

        existing = db.session.query(UOM).filter_by(
            name=patch["name"],
            abbreviation=patch["abbreviation"],
            unit_category_id=category.id,
        ).first()
        if existing:
            return existing

        if patch.get("base_unit"):
            base = db.session.query(UOM).filter_by(unit_category_id=category.id, base_unit=True).first()
            if base:
                raise ConflictError(f"Unit category '{category.name}' already has a base unit ({base.abbreviation})")
            # A base unit converts to itself
            patch["conversion_rate"] = 1.0

        uom = UOM(**patch)
        db.session.add(uom)
        db.session.flush()
        return uom

    return run_in_transaction(_op)


# =============================================================================
# ITEMS & ITEM BASES
# =============================================================================

def create_item(payload: dict) -> Item:
    patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
    require_non_negative(patch, "quantity", "reorder_level")

    def _op():
        if not db.session.get(UnitCategory, patch["unit_category_id"]):
            raise NotFoundError(f"Unit category {patch['unit_category_id']} not found")
        if db.session.query(Item).filter_by(name=patch["name"]).first():
            raise ConflictError(f"Item with name '{patch['name']}' already exists")
        if patch.get("item_code") and db.session.query(Item).filter_by(item_code=patch["item_code"]).first():
            raise ConflictError(f"Item with code '{patch['item_code']}' already exists")
        item = Item(**patch)
        db.session.add(item)
        db.session.flush()
        return item

    return run_in_transaction(_op)


def get_item(item_id: int) -> Item:
    item = db.session.get(Item, item_id)
    if not item:
        raise NotFoundError(f"Item {item_id} not found")
    return item


def list_items(*, skip: int = 0, take: int = 50, search: str | None = None) -> tuple[list[Item], int]:
    q = db.session.query(Item)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Item.name.ilike(like), Item.item_code.ilike(like)))
    total = q.count()
    rows = q.order_by(Item.name.asc()).offset(skip).limit(take).all()
    return rows, total


def create_item_base(item_id: int, payload: dict) -> ItemBase:
    patch = validate_payload(model=ItemBase, payload=payload, policy=ITEM_BASE_POLICY, partial=False)
    patch.setdefault("add_power", "")
    if patch["add_power"] is None:
        patch["add_power"] = ""

    def _op():
        get_item(item_id)
        dup = db.session.query(ItemBase).filter_by(
            item_id=item_id, base_code=patch["base_code"], add_power=patch["add_power"]
        ).first()
        if dup:
            raise ConflictError(
                f"Item base {patch['base_code']}/{patch['add_power'] or '-'} already exists for item {item_id}"
            )
        base = ItemBase(item_id=item_id, **patch)
        db.session.add(base)
        db.session.flush()
        return base

    return run_in_transaction(_op)


# =============================================================================
# SERVICE DIRECTORIES
# =============================================================================

def create_service(payload: dict, *, non_stock: bool = False):
    model = NonStockService if non_stock else Service
    patch = validate_payload(model=model, payload=payload, policy=DIRECTORY_POLICY, partial=False)

    def _op():
        if db.session.query(model).filter_by(name=patch["name"]).first():
            raise ConflictError(f"Service '{patch['name']}' already exists")
        row = model(**patch)
        db.session.add(row)
        db.session.flush()
        return row

    return run_in_transaction(_op)


def list_services(*, non_stock: bool = False):
    model = NonStockService if non_stock else Service
    return db.session.query(model).order_by(model.name.asc()).all()


# =============================================================================
# PARTIES
# =============================================================================

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"full_name", "phone", "email"},
    required_on_create={"full_name"},
)

SALES_PARTNER_POLICY = ModelValidationPolicy(
    writable_fields={"full_name", "phone"},
    required_on_create={"full_name"},
)


def create_party(payload: dict, *, sales_partner: bool = False):
    model = SalesPartner if sales_partner else Customer
    policy = SALES_PARTNER_POLICY if sales_partner else CUSTOMER_POLICY
    patch = validate_payload(model=model, payload=payload, policy=policy, partial=False)
    if not patch["full_name"].strip():
        raise ValidationError("full_name cannot be blank")

    def _op():
        row = model(**patch)
        db.session.add(row)
        db.session.flush()
        return row

    return run_in_transaction(_op)


def list_parties(*, sales_partner: bool = False, search: str | None = None):
    model = SalesPartner if sales_partner else Customer
    q = db.session.query(model)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(model.full_name.ilike(like), model.phone.ilike(like)))
    return q.order_by(model.full_name.asc(), model.id.asc()).all()
