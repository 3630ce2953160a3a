"""
Tests for the unit catalog and UOM conversion.
"""

import pytest

from lenslab.services import catalog_service, uom_service
from lenslab.validation import ConflictError, NotFoundError, ValidationError


class TestUnitCatalog:
    def test_base_unit_always_converts_at_one(self, db_session):
        category = catalog_service.create_unit_category({"name": "Pairs"})
        base = catalog_service.create_uom({
            "unit_category_id": category.id, "name": "Pair", "abbreviation": "pr",
            "base_unit": True, "conversion_rate": 5,
        })
        assert base.conversion_rate == 1.0

    def test_second_base_unit_conflicts(self, catalog):
        with pytest.raises(ConflictError):
            catalog_service.create_uom({
                "unit_category_id": catalog.category.id, "name": "Each", "abbreviation": "ea", "base_unit": True,
            })

    def test_recreating_same_uom_returns_existing_row(self, catalog):
        again = catalog_service.create_uom({
            "unit_category_id": catalog.category.id, "name": "Box", "abbreviation": "box", "conversion_rate": 2,
        })
        assert again.id == catalog.box.id

    def test_conversion_rate_must_be_positive(self, catalog):
        with pytest.raises(ValidationError):
            catalog_service.create_uom({
                "unit_category_id": catalog.category.id, "name": "Crate", "abbreviation": "cr", "conversion_rate": 0,
            })

    def test_duplicate_item_name_conflicts(self, catalog):
        with pytest.raises(ConflictError):
            catalog_service.create_item({"name": "CR-39 1.50 SV", "unit_category_id": catalog.category.id})

    def test_unknown_field_rejected(self, catalog):
        with pytest.raises(ValidationError, match="Field not allowed"):
            catalog_service.create_item({
                "name": "Poly 1.59", "unit_category_id": catalog.category.id, "price": 10,
            })


class TestResolveUnit:
    def test_base_uom_is_identity(self, catalog):
        res = uom_service.resolve_unit(catalog.item.id, catalog.pcs.id, 3)
        assert res.unit == 3
        assert res.base_uom_id == catalog.pcs.id
        assert res.constant is False

    def test_larger_uom_multiplies(self, catalog):
        res = uom_service.resolve_unit(catalog.item.id, catalog.box.id, 3)
        assert res.unit == 6
        assert res.conversion_rate == 2
        assert res.base_uom_id == catalog.pcs.id

    def test_uom_from_other_category_not_found(self, catalog, area_catalog):
        with pytest.raises(NotFoundError):
            uom_service.resolve_unit(catalog.item.id, area_catalog.cm.id, 1)

    def test_unknown_item_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            uom_service.resolve_unit(999999, 1, 1)

    def test_category_without_base_unit(self, db_session):
        category = catalog_service.create_unit_category({"name": "Loose"})
        uom = catalog_service.create_uom({
            "unit_category_id": category.id, "name": "Dozen", "abbreviation": "dz", "conversion_rate": 12,
        })
        item = catalog_service.create_item({"name": "Nose pads", "unit_category_id": category.id})

        with pytest.raises(ValidationError, match="no base unit"):
            uom_service.resolve_unit(item.id, uom.id, 1)

    def test_area_converts_each_dimension(self, area_catalog):
        res = uom_service.resolve_area_unit(area_catalog.item.id, area_catalog.cm.id, 200, 100, 2)
        assert res.unit == pytest.approx(4.0)
        assert res.base_uom_id == area_catalog.meter.id
        assert res.constant is True
