"""
Pytest fixtures for lenslab backend tests.

Provides test database setup, a small lens catalog, and the test client.
"""

from types import SimpleNamespace

import pytest
from lenslab import create_app
from lenslab.extensions import db
from lenslab.services import catalog_service, pricing_service, order_service, operator_stock_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def catalog(db_session):
    """
    "Pieces" category with pcs (base) and box (= 2 pcs), one lens blank
    priced per piece at 100 selling / 60 cost.
    """
    category = catalog_service.create_unit_category({"name": "Pieces"})
    pcs = catalog_service.create_uom({
        "unit_category_id": category.id, "name": "Piece", "abbreviation": "pcs", "base_unit": True,
    })
    box = catalog_service.create_uom({
        "unit_category_id": category.id, "name": "Box", "abbreviation": "box", "conversion_rate": 2,
    })
    item = catalog_service.create_item({
        "name": "CR-39 1.50 SV", "item_code": "CR39-150", "unit_category_id": category.id, "default_uom_id": pcs.id,
    })
    pricing = pricing_service.create_pricing({
        "item_id": item.id, "selling_price": 100, "cost_price": 60, "base_uom_id": pcs.id,
    })
    return SimpleNamespace(category=category, pcs=pcs, box=box, item=item, pricing=pricing)


@pytest.fixture(scope='function')
def area_catalog(db_session):
    """Area category in meters (cm = 0.01 m); tint film priced per 1 m x 1 m at 50 / 20."""
    category = catalog_service.create_unit_category({"name": "Area", "constant": True})
    meter = catalog_service.create_uom({
        "unit_category_id": category.id, "name": "Meter", "abbreviation": "m", "base_unit": True,
    })
    cm = catalog_service.create_uom({
        "unit_category_id": category.id, "name": "Centimeter", "abbreviation": "cm", "conversion_rate": 0.01,
    })
    item = catalog_service.create_item({"name": "Tint film", "unit_category_id": category.id})
    pricing = pricing_service.create_pricing({
        "item_id": item.id, "selling_price": 50, "cost_price": 20, "constant": True, "width": 1, "height": 1,
    })
    return SimpleNamespace(category=category, meter=meter, cm=cm, item=item, pricing=pricing)


@pytest.fixture(scope='function')
def customer(db_session):
    return catalog_service.create_party({"full_name": "Abebe Kebede", "phone": "0911000000"})


@pytest.fixture(scope='function')
def sales_partner(db_session):
    return catalog_service.create_party({"full_name": "Vision Partners", "phone": "0922000000"}, sales_partner=True)


@pytest.fixture(scope='function')
def stock(catalog):
    """Operator stock of 10 pcs for the catalog item."""
    return operator_stock_service.create_stock({
        "item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 10,
    })


@pytest.fixture(scope='function')
def make_order(catalog, customer):
    """Factory: an order with one line of the catalog item (quantity in pcs)."""
    def _make(quantity=5, *, series="ORD-0001", lines=None, **extra):
        dto = {
            "series": series,
            "customer_id": customer.id,
            "order_items": lines or [
                {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": quantity},
            ],
        }
        dto.update(extra)
        return order_service.create_order(dto)

    return _make
