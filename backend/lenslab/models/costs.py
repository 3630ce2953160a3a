from __future__ import annotations

from ..extensions import db
from lenslab.time_utils import to_utc_z


class FixedCost(db.Model):
    """
    Period cost (rent, salaries) amortized into profit reports.

    daily_fixed_cost is authoritative for single-day figures; range reports use
    monthly_fixed_cost / DAYS_PER_MONTH when monthly is set.
    """
    __tablename__ = "fixed_costs"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False, unique=True)
    monthly_fixed_cost = db.Column(db.Float, nullable=False, default=0)
    daily_fixed_cost = db.Column(db.Float, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "monthly_fixed_cost": self.monthly_fixed_cost,
            "daily_fixed_cost": self.daily_fixed_cost,
            "created_at": to_utc_z(self.created_at),
        }


class LabTool(db.Model):
    """Surfacing tool covering the inclusive base-curve range [min, max]."""
    __tablename__ = "lab_tools"
    __table_args__ = (
        db.Index("ix_lab_tools_range", "base_curve_min", "base_curve_max"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), nullable=True)
    base_curve_min = db.Column(db.Float, nullable=False)
    base_curve_max = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<LabTool id={self.id} [{self.base_curve_min}-{self.base_curve_max}] qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "base_curve_min": self.base_curve_min,
            "base_curve_max": self.base_curve_max,
            "quantity": self.quantity,
            "created_at": to_utc_z(self.created_at),
        }
