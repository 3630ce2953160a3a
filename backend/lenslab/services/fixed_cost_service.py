# Overview: Service-layer operations for fixed costs; CRUD plus period totals used by profit reports.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import FixedCost
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_non_negative,
    ConflictError,
    NotFoundError,
)
from .concurrency import run_in_transaction


FIXED_COST_POLICY = ModelValidationPolicy(
    writable_fields={"description", "monthly_fixed_cost", "daily_fixed_cost"},
    required_on_create={"description"},
)


def create_fixed_cost(payload: dict) -> FixedCost:
    patch = validate_payload(model=FixedCost, payload=payload, policy=FIXED_COST_POLICY, partial=False)
    require_non_negative(patch, "monthly_fixed_cost", "daily_fixed_cost")

    def _op():
        if db.session.query(FixedCost).filter_by(description=patch["description"]).first():
            raise ConflictError(f"Fixed cost '{patch['description']}' already exists")
        row = FixedCost(**patch)
        db.session.add(row)
        db.session.flush()
        return row

    return run_in_transaction(_op)


def get_fixed_cost(fixed_cost_id: int) -> FixedCost:
    row = db.session.get(FixedCost, fixed_cost_id)
    if not row:
        raise NotFoundError(f"Fixed cost {fixed_cost_id} not found")
    return row


def update_fixed_cost(fixed_cost_id: int, payload: dict) -> FixedCost:
    patch = validate_payload(model=FixedCost, payload=payload, policy=FIXED_COST_POLICY, partial=True)
    require_non_negative(patch, "monthly_fixed_cost", "daily_fixed_cost")

    def _op():
        row = get_fixed_cost(fixed_cost_id)
        new_desc = patch.get("description")
        if new_desc and new_desc != row.description:
            if db.session.query(FixedCost).filter_by(description=new_desc).first():
                raise ConflictError(f"Fixed cost '{new_desc}' already exists")
        for k, v in patch.items():
            setattr(row, k, v)
        db.session.flush()
        return row

    return run_in_transaction(_op)


def delete_fixed_cost(fixed_cost_id: int) -> None:
    def _op():
        db.session.delete(get_fixed_cost(fixed_cost_id))
        db.session.flush()

    run_in_transaction(_op)


def list_fixed_costs() -> list[FixedCost]:
    return db.session.query(FixedCost).order_by(FixedCost.description.asc()).all()


def daily_fixed_cost_sum() -> float:
    """Global per-day figure: sum of daily_fixed_cost (monthly ignored)."""
    total = db.session.query(func.coalesce(func.sum(FixedCost.daily_fixed_cost), 0.0)).scalar()
    return float(total or 0)


def period_fixed_cost(days: int) -> float:
    """
    Fixed cost for a span of `days`, summed over rows:
    monthly / DAYS_PER_MONTH * days when monthly > 0, else daily * days.
    """
    days_per_month = current_app.config.get("DAYS_PER_MONTH", 30)
    total = 0.0
    for row in db.session.query(FixedCost).all():
        monthly = float(row.monthly_fixed_cost or 0)
        if monthly > 0:
            total += monthly / days_per_month * days
        else:
            total += float(row.daily_fixed_cost or 0) * days
    return total
