"""
Tests for operator stock and its bincard ledger.
"""

from types import SimpleNamespace

import pytest

from lenslab.models import Bincard, OperatorStock
from lenslab.services import bincard_service, operator_stock_service
from lenslab.validation import ConflictError, InsufficientStockError, NotFoundError, ValidationError


def _line(item_id, unit, *, non_stock=False):
    return SimpleNamespace(item_id=item_id, unit=unit, is_non_stock_service=non_stock)


def _ledger(db_session, item_id):
    return db_session.query(Bincard).filter_by(item_id=item_id).order_by(Bincard.id).all()


class TestCreateAndAdjust:
    def test_opening_balance_recorded(self, db_session, catalog, stock):
        assert stock.quantity == 10
        assert stock.status == operator_stock_service.STATUS_AVAILABLE

        entries = _ledger(db_session, catalog.item.id)
        assert len(entries) == 1
        assert entries[0].movement_type == bincard_service.MOVEMENT_IN
        assert entries[0].reference_type == bincard_service.REF_OPENING
        assert entries[0].quantity == 10
        assert entries[0].balance_after == 10

    def test_zero_opening_writes_no_movement(self, db_session, catalog):
        row = operator_stock_service.create_stock({
            "item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 0,
        })
        assert row.status == operator_stock_service.STATUS_OUT_OF_STOCK
        assert _ledger(db_session, catalog.item.id) == []

    def test_one_row_per_item(self, catalog, stock):
        with pytest.raises(ConflictError):
            operator_stock_service.create_stock({
                "item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 3,
            })

    def test_negative_quantity_rejected(self, catalog):
        with pytest.raises(ValidationError):
            operator_stock_service.create_stock({
                "item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": -1,
            })

    def test_adjustment_records_delta(self, db_session, catalog, stock):
        operator_stock_service.update_stock(stock.id, {"quantity": 7})

        entries = _ledger(db_session, catalog.item.id)
        assert len(entries) == 2
        assert entries[-1].reference_type == bincard_service.REF_ADJUSTMENT
        assert entries[-1].movement_type == bincard_service.MOVEMENT_OUT
        assert entries[-1].quantity == 3
        assert entries[-1].balance_after == 7

    def test_unchanged_quantity_writes_nothing(self, db_session, catalog, stock):
        operator_stock_service.update_stock(stock.id, {"quantity": 10, "description": "recount"})
        assert len(_ledger(db_session, catalog.item.id)) == 1


class TestReduceAndRestore:
    def test_reduce_writes_order_movement(self, db_session, catalog, stock):
        operator_stock_service.reduce_stock_for_order(
            [_line(catalog.item.id, 4)], reference_id=42, description="print", commit=True,
        )

        assert db_session.get(OperatorStock, stock.id).quantity == 6
        entry = _ledger(db_session, catalog.item.id)[-1]
        assert entry.movement_type == bincard_service.MOVEMENT_OUT
        assert entry.reference_type == bincard_service.REF_ORDER
        assert entry.reference_id == "42"
        assert entry.quantity == 4
        assert entry.balance_after == 6

    def test_insufficient_stock_changes_nothing(self, db_session, catalog, stock):
        with pytest.raises(InsufficientStockError, match="Available: 10.0, Required: 12.0") as exc_info:
            operator_stock_service.reduce_stock_for_order([_line(catalog.item.id, 12)], commit=True)

        assert exc_info.value.available == 10
        assert db_session.get(OperatorStock, stock.id).quantity == 10
        assert len(_ledger(db_session, catalog.item.id)) == 1

    def test_quantity_never_goes_negative(self, db_session, catalog, stock):
        operator_stock_service.reduce_stock_for_order([_line(catalog.item.id, 10)], commit=True)
        row = db_session.get(OperatorStock, stock.id)
        assert row.quantity == 0
        assert row.status == operator_stock_service.STATUS_OUT_OF_STOCK

        with pytest.raises(InsufficientStockError):
            operator_stock_service.reduce_stock_for_order([_line(catalog.item.id, 1)], commit=True)
        assert db_session.get(OperatorStock, stock.id).quantity == 0

    def test_missing_stock_row_on_reduce(self, catalog):
        with pytest.raises(NotFoundError):
            operator_stock_service.reduce_stock_for_order([_line(catalog.item.id, 1)], commit=True)

    def test_non_stock_lines_skipped(self, db_session, catalog, stock):
        operator_stock_service.reduce_stock_for_order([_line(catalog.item.id, 5, non_stock=True)], commit=True)
        assert db_session.get(OperatorStock, stock.id).quantity == 10
        assert len(_ledger(db_session, catalog.item.id)) == 1

    def test_restore_without_stock_row_is_skipped(self, catalog):
        assert operator_stock_service.restore_stock_for_order([_line(catalog.item.id, 3)], commit=True) == []

    def test_ledger_replays_to_current_quantity(self, db_session, catalog, stock):
        operator_stock_service.reduce_stock_for_order([_line(catalog.item.id, 4)], commit=True)
        operator_stock_service.restore_stock_for_order([_line(catalog.item.id, 2)], commit=True)
        operator_stock_service.update_stock(stock.id, {"quantity": 15})
        operator_stock_service.reduce_stock_for_order([_line(catalog.item.id, 5)], commit=True)

        balance = 0.0
        for entry in _ledger(db_session, catalog.item.id):
            balance += entry.quantity if entry.movement_type == bincard_service.MOVEMENT_IN else -entry.quantity
            assert entry.balance_after == balance
        assert balance == db_session.get(OperatorStock, stock.id).quantity == 10


class TestBincardReads:
    def test_newest_first_with_total(self, catalog, stock):
        operator_stock_service.update_stock(stock.id, {"quantity": 8})
        rows, total = bincard_service.find_by_item_id(catalog.item.id)
        assert total == 2
        assert rows[0].reference_type == bincard_service.REF_ADJUSTMENT

    def test_invalid_reference_type_rejected(self, catalog):
        with pytest.raises(ValidationError):
            bincard_service.record_movement(
                item_id=catalog.item.id, movement_type="IN", quantity=1, balance_after=1,
                reference_type="GIFT", uom_id=None,
            )

    def test_missing_entry(self, db_session):
        with pytest.raises(NotFoundError):
            bincard_service.find_one(999999)
