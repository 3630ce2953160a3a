"""
Tests for fixed costs.
"""

import pytest

from lenslab.services import fixed_cost_service
from lenslab.validation import ConflictError, NotFoundError, ValidationError


class TestFixedCosts:
    def test_daily_sum_ignores_monthly(self, db_session):
        fixed_cost_service.create_fixed_cost({"description": "Rent", "daily_fixed_cost": 100, "monthly_fixed_cost": 3000})
        fixed_cost_service.create_fixed_cost({"description": "Power", "daily_fixed_cost": 50})
        assert fixed_cost_service.daily_fixed_cost_sum() == 150

    def test_period_prefers_monthly_figure(self, db_session):
        fixed_cost_service.create_fixed_cost({"description": "Rent", "daily_fixed_cost": 100, "monthly_fixed_cost": 3000})
        fixed_cost_service.create_fixed_cost({"description": "Power", "daily_fixed_cost": 50})
        # Rent: 3000 / 30 * 2, Power: 50 * 2
        assert fixed_cost_service.period_fixed_cost(2) == pytest.approx(300)

    def test_empty_table(self, db_session):
        assert fixed_cost_service.daily_fixed_cost_sum() == 0
        assert fixed_cost_service.period_fixed_cost(7) == 0

    def test_duplicate_description_conflicts(self, db_session):
        fixed_cost_service.create_fixed_cost({"description": "Rent"})
        with pytest.raises(ConflictError):
            fixed_cost_service.create_fixed_cost({"description": "Rent"})

    def test_rename_into_existing_conflicts(self, db_session):
        fixed_cost_service.create_fixed_cost({"description": "Rent"})
        power = fixed_cost_service.create_fixed_cost({"description": "Power"})
        with pytest.raises(ConflictError):
            fixed_cost_service.update_fixed_cost(power.id, {"description": "Rent"})

    def test_negative_amount_rejected(self, db_session):
        with pytest.raises(ValidationError):
            fixed_cost_service.create_fixed_cost({"description": "Refund", "daily_fixed_cost": -5})

    def test_delete(self, db_session):
        row = fixed_cost_service.create_fixed_cost({"description": "Rent"})
        fixed_cost_service.delete_fixed_cost(row.id)
        with pytest.raises(NotFoundError):
            fixed_cost_service.get_fixed_cost(row.id)
