"""
Tests for pricing writes and lookup precedence.
"""

import pytest

from lenslab.services import catalog_service, pricing_service
from lenslab.validation import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def services(catalog):
    tint = catalog_service.create_service({"name": "Tinting"})
    edging = catalog_service.create_service({"name": "Edging"}, non_stock=True)
    return tint, edging


class TestPricingUniqueness:
    def test_duplicate_item_only_key_conflicts(self, catalog):
        with pytest.raises(ConflictError):
            pricing_service.create_pricing({"item_id": catalog.item.id, "selling_price": 90, "cost_price": 50})

    def test_service_row_is_a_different_key(self, catalog, services):
        tint, _ = services
        row = pricing_service.create_pricing({
            "item_id": catalog.item.id, "service_id": tint.id, "selling_price": 130, "cost_price": 70,
        })
        assert row.is_non_stock_service is False

    def test_update_into_existing_key_conflicts(self, catalog, services):
        tint, _ = services
        row = pricing_service.create_pricing({
            "item_id": catalog.item.id, "service_id": tint.id, "selling_price": 130, "cost_price": 70,
        })
        with pytest.raises(ConflictError):
            pricing_service.update_pricing(row.id, {"service_id": None})

    def test_unknown_item_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            pricing_service.create_pricing({"item_id": 999999, "selling_price": 1, "cost_price": 1})

    def test_negative_price_rejected(self, catalog, services):
        tint, _ = services
        with pytest.raises(ValidationError):
            pricing_service.create_pricing({
                "item_id": catalog.item.id, "service_id": tint.id, "selling_price": -1, "cost_price": 0,
            })


class TestServiceFlags:
    def test_both_service_ids_rejected(self, catalog, services):
        tint, edging = services
        with pytest.raises(ValidationError, match="mutually exclusive"):
            pricing_service.create_pricing({
                "item_id": catalog.item.id, "service_id": tint.id, "non_stock_service_id": edging.id,
                "selling_price": 1, "cost_price": 1,
            })

    def test_flag_set_from_non_stock_service_id(self, catalog, services):
        _, edging = services
        row = pricing_service.create_pricing({
            "item_id": catalog.item.id, "non_stock_service_id": edging.id, "selling_price": 20, "cost_price": 5,
        })
        assert row.is_non_stock_service is True

    def test_flag_disagreeing_with_ids_rejected(self, catalog, services):
        tint, _ = services
        with pytest.raises(ValidationError, match="is_non_stock_service"):
            pricing_service.create_pricing({
                "item_id": catalog.item.id, "service_id": tint.id, "is_non_stock_service": True,
                "selling_price": 1, "cost_price": 1,
            })


class TestResolvePricing:
    def test_item_only(self, catalog):
        assert pricing_service.resolve_pricing(catalog.item.id).id == catalog.pricing.id

    def test_item_base_row_wins_then_falls_back(self, catalog):
        base_a = catalog_service.create_item_base(catalog.item.id, {"base_code": "B4", "add_power": "+2.00"})
        base_b = catalog_service.create_item_base(catalog.item.id, {"base_code": "B6"})
        base_row = pricing_service.create_pricing({
            "item_id": catalog.item.id, "item_base_id": base_a.id, "selling_price": 120, "cost_price": 70,
        })

        assert pricing_service.resolve_pricing(catalog.item.id, item_base_id=base_a.id).id == base_row.id
        assert pricing_service.resolve_pricing(catalog.item.id, item_base_id=base_b.id).id == catalog.pricing.id

    def test_service_lookup_does_not_fall_back(self, catalog, services):
        tint, _ = services
        assert pricing_service.resolve_pricing(catalog.item.id, service_id=tint.id) is None

        row = pricing_service.create_pricing({
            "item_id": catalog.item.id, "service_id": tint.id, "selling_price": 130, "cost_price": 70,
        })
        assert pricing_service.resolve_pricing(catalog.item.id, service_id=tint.id).id == row.id

    def test_non_stock_service_lookup(self, catalog, services):
        _, edging = services
        row = pricing_service.create_pricing({
            "item_id": catalog.item.id, "non_stock_service_id": edging.id, "selling_price": 20, "cost_price": 5,
        })
        assert pricing_service.resolve_pricing(catalog.item.id, non_stock_service_id=edging.id).id == row.id

    def test_unpriced_item_returns_none(self, catalog):
        other = catalog_service.create_item({"name": "Hi-index 1.74", "unit_category_id": catalog.category.id})
        assert pricing_service.resolve_pricing(other.id) is None
