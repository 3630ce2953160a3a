# Overview: Service-layer operations for lab tools; base-curve coverage checks.

from __future__ import annotations

import math

from ..extensions import db
from ..models import LabTool
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_non_negative,
    NotFoundError,
    ValidationError,
)
from .concurrency import run_in_transaction


LAB_TOOL_POLICY = ModelValidationPolicy(
    writable_fields={"code", "base_curve_min", "base_curve_max", "quantity"},
    required_on_create={"base_curve_min", "base_curve_max"},
)


def _check_range(base_curve_min: float, base_curve_max: float) -> None:
    if base_curve_min > base_curve_max:
        raise ValidationError("base_curve_min cannot be greater than base_curve_max")


def create_lab_tool(payload: dict) -> LabTool:
    patch = validate_payload(model=LabTool, payload=payload, policy=LAB_TOOL_POLICY, partial=False)
    require_non_negative(patch, "quantity")
    _check_range(patch["base_curve_min"], patch["base_curve_max"])
    if patch.get("quantity") is None:
        patch["quantity"] = 1

    def _op():
        tool = LabTool(**patch)
        db.session.add(tool)
        db.session.flush()
        return tool

    return run_in_transaction(_op)


def get_lab_tool(tool_id: int) -> LabTool:
    tool = db.session.get(LabTool, tool_id)
    if not tool:
        raise NotFoundError(f"Lab tool {tool_id} not found")
    return tool


def update_lab_tool(tool_id: int, payload: dict) -> LabTool:
    patch = validate_payload(model=LabTool, payload=payload, policy=LAB_TOOL_POLICY, partial=True)
    require_non_negative(patch, "quantity")

    def _op():
        tool = get_lab_tool(tool_id)
        _check_range(
            patch.get("base_curve_min", tool.base_curve_min),
            patch.get("base_curve_max", tool.base_curve_max),
        )
        for k, v in patch.items():
            setattr(tool, k, v)
        db.session.flush()
        return tool

    return run_in_transaction(_op)


def remove_lab_tool(tool_id: int) -> None:
    def _op():
        db.session.delete(get_lab_tool(tool_id))
        db.session.flush()

    run_in_transaction(_op)


def list_lab_tools(*, skip: int = 0, take: int = 50) -> tuple[list[LabTool], int]:
    q = db.session.query(LabTool)
    total = q.count()
    rows = (
        q.order_by(LabTool.base_curve_min.asc(), LabTool.base_curve_max.asc(), LabTool.id.asc())
        .offset(skip)
        .limit(take)
        .all()
    )
    return rows, total


def find_available_for_base_curve(base_curve: float) -> LabTool | None:
    """Narrowest in-stock tool whose [min, max] covers base_curve."""
    return (
        db.session.query(LabTool)
        .filter(
            LabTool.base_curve_min <= base_curve,
            LabTool.base_curve_max >= base_curve,
            LabTool.quantity > 0,
        )
        .order_by((LabTool.base_curve_max - LabTool.base_curve_min).asc(), LabTool.id.asc())
        .first()
    )


def _clean_base_curves(values) -> list[float]:
    seen = set()
    cleaned = []
    for value in values or []:
        if value is None or isinstance(value, bool):
            continue
        try:
            num = float(value)
        except (TypeError, ValueError):
            continue
        if math.isnan(num) or num in seen:
            continue
        seen.add(num)
        cleaned.append(num)
    return cleaned


def check_availability_for_base_curves(values) -> dict:
    """
    Dedupe the requested base curves (input order kept; None/NaN/non-numeric
    dropped) and return the ones no in-stock tool covers.
    """
    missing = [bc for bc in _clean_base_curves(values) if find_available_for_base_curve(bc) is None]
    return {"missing": missing}
