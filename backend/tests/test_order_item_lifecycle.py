"""
Tests for order-item status changes: transitions, stock moves, payment gate.
"""

import pytest

from lenslab.models import Bincard, OperatorStock, OrderItem
from lenslab.services import catalog_service, order_item_service, pricing_service
from lenslab.services import order_item_lifecycle as lifecycle
from lenslab.validation import ConflictError, InsufficientStockError, ValidationError


def _quantity(db_session, stock):
    return db_session.get(OperatorStock, stock.id).quantity


def _order_movements(db_session, item_id):
    return (
        db_session.query(Bincard)
        .filter_by(item_id=item_id, reference_type="ORDER")
        .order_by(Bincard.id)
        .all()
    )


class TestTransitionRules:
    @pytest.mark.parametrize("src,dst", [
        ("Received", "Processing"),
        ("Received", "Printed"),
        ("Printed", "Delivered"),
        ("Completed", "Void"),
        ("Void", "Received"),
    ])
    def test_allowed(self, src, dst):
        lifecycle.assert_transition(src, dst)

    @pytest.mark.parametrize("src,dst", [
        ("Delivered", "Void"),
        ("Delivered", "Received"),
        ("Received", "Completed"),
        ("Void", "Printed"),
    ])
    def test_rejected(self, src, dst):
        with pytest.raises(lifecycle.TransitionError):
            lifecycle.assert_transition(src, dst)

    def test_same_status_is_a_no_op(self):
        lifecycle.assert_transition("Delivered", "Delivered")
        assert lifecycle.stock_effect("Printed", "Printed", is_non_stock_service=False) == lifecycle.STOCK_NONE

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            lifecycle.assert_transition("Received", "Shipped")

    def test_stock_effects(self):
        effect = lifecycle.stock_effect
        assert effect("Received", "Printed", is_non_stock_service=False) == lifecycle.STOCK_REDUCE
        assert effect("Processing", "Void", is_non_stock_service=False) == lifecycle.STOCK_REDUCE
        assert effect("Printed", "Void", is_non_stock_service=False) == lifecycle.STOCK_NONE
        assert effect("Printed", "Processing", is_non_stock_service=False) == lifecycle.STOCK_RESTORE
        assert effect("Void", "Received", is_non_stock_service=False) == lifecycle.STOCK_RESTORE
        assert effect("Received", "Printed", is_non_stock_service=True) == lifecycle.STOCK_NONE

    def test_order_status_aggregation(self):
        derive = lifecycle.derive_order_status
        assert derive([]) == "Pending"
        assert derive(["Received", "Received"]) == "Pending"
        assert derive(["Printed", "Printed"]) == "Printed"
        assert derive(["Delivered"]) == "Delivered"
        assert derive(["Printed", "Completed"]) == "Processing"
        assert derive(["Void"]) == "Processing"


class TestStatusUpdates:
    def test_print_then_deliver_then_void(self, db_session, catalog, stock, make_order):
        order = make_order(5)
        line_id = order.items[0].id

        line = order_item_service.update_order_item_status(line_id, "Printed")
        assert line.status == "Printed"
        assert line.order.status == "Printed"
        assert _quantity(db_session, stock) == 5
        moves = _order_movements(db_session, catalog.item.id)
        assert len(moves) == 1
        assert moves[0].movement_type == "OUT"
        assert moves[0].quantity == 5
        assert moves[0].balance_after == 5
        assert moves[0].reference_id == str(order.id)

        order_item_service.update_order_item_status(line_id, "Delivered")
        assert _quantity(db_session, stock) == 5
        assert len(_order_movements(db_session, catalog.item.id)) == 1

        with pytest.raises(ConflictError):
            order_item_service.update_order_item_status(line_id, "Void")
        assert _quantity(db_session, stock) == 5
        assert db_session.get(OrderItem, line_id).status == "Delivered"

    def test_insufficient_stock_leaves_line_received(self, db_session, catalog, stock, make_order):
        order = make_order(12)
        line_id = order.items[0].id

        with pytest.raises(InsufficientStockError):
            order_item_service.update_order_item_status(line_id, "Printed")

        assert _quantity(db_session, stock) == 10
        assert db_session.query(Bincard).filter_by(item_id=catalog.item.id).count() == 1
        assert db_session.get(OrderItem, line_id).status == "Received"

    def test_missing_stock_row_asks_for_request(self, catalog, make_order):
        order = make_order(1)
        with pytest.raises(ConflictError, match="Please make a request for item CR-39 1.50 SV"):
            order_item_service.update_order_item_status(order.items[0].id, "Printed")

    def test_back_to_processing_restores(self, db_session, catalog, stock, make_order):
        order = make_order(4)
        line_id = order.items[0].id

        order_item_service.update_order_item_status(line_id, "Printed")
        order_item_service.update_order_item_status(line_id, "Processing")

        assert _quantity(db_session, stock) == 10
        moves = _order_movements(db_session, catalog.item.id)
        assert [m.movement_type for m in moves] == ["OUT", "IN"]
        assert moves[-1].balance_after == 10

    def test_void_consumes_and_reopen_restores(self, db_session, stock, make_order):
        order = make_order(3)
        line_id = order.items[0].id

        order_item_service.update_order_item_status(line_id, "Void")
        assert _quantity(db_session, stock) == 7

        order_item_service.update_order_item_status(line_id, "Received")
        assert _quantity(db_session, stock) == 10

    def test_printed_to_void_does_not_double_count(self, db_session, stock, make_order):
        order = make_order(3)
        line_id = order.items[0].id

        order_item_service.update_order_item_status(line_id, "Printed")
        order_item_service.update_order_item_status(line_id, "Void")
        assert _quantity(db_session, stock) == 7

    def test_non_stock_service_line_never_moves_stock(self, db_session, catalog, stock, make_order):
        edging = catalog_service.create_service({"name": "Edging"}, non_stock=True)
        pricing_service.create_pricing({
            "item_id": catalog.item.id, "non_stock_service_id": edging.id, "selling_price": 20, "cost_price": 5,
        })
        order = make_order(lines=[
            {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 2, "non_stock_service_id": edging.id},
        ])
        line = order.items[0]
        assert line.is_non_stock_service is True
        assert line.sales == 40

        order_item_service.update_order_item_status(line.id, "Printed")
        assert _quantity(db_session, stock) == 10

    def test_mixed_lines_make_order_processing(self, catalog, stock, make_order):
        order = make_order(lines=[
            {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 1},
            {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 1},
        ])
        first, second = order.items[0].id, order.items[1].id

        line = order_item_service.update_order_item_status(first, "Printed")
        assert line.order.status == "Processing"

        line = order_item_service.update_order_item_status(second, "Printed")
        assert line.order.status == "Printed"

    def test_non_status_fields_update(self, make_order):
        order = make_order(2)
        line = order_item_service.update_order_item(order.items[0].id, {"discount": 50, "description": "rush"})
        assert line.total_amount == 150
        assert line.description == "rush"
        assert line.order.total_amount == 150

    def test_costing_fields_not_writable_here(self, make_order):
        order = make_order(2)
        with pytest.raises(ValidationError):
            order_item_service.update_order_item(order.items[0].id, {"quantity": 4})


class TestPaymentGate:
    def test_nothing_paid_blocks_any_change(self, make_order):
        order = make_order(5, payment_term={"force_payment": True})
        with pytest.raises(ConflictError, match="no payment has been made"):
            order_item_service.update_order_item_status(order.items[0].id, "Processing")

    def test_partial_payment_allows_work_but_not_delivery(self, db_session, stock, make_order):
        order = make_order(5, payment_term={
            "force_payment": True,
            "transactions": [{"payment_method": "Cash", "amount": 200, "status": "Paid"}],
        })
        line_id = order.items[0].id

        order_item_service.update_order_item_status(line_id, "Printed")
        assert _quantity(db_session, stock) == 5

        with pytest.raises(ConflictError, match="outstanding payment"):
            order_item_service.update_order_item_status(line_id, "Delivered")
        assert db_session.get(OrderItem, line_id).status == "Printed"

    def test_fully_paid_can_deliver(self, stock, make_order):
        order = make_order(5, payment_term={
            "force_payment": True,
            "transactions": [{"payment_method": "Cash", "amount": 500, "status": "Paid"}],
        })
        line_id = order.items[0].id

        order_item_service.update_order_item_status(line_id, "Printed")
        line = order_item_service.update_order_item_status(line_id, "Delivered")
        assert line.status == "Delivered"

    def test_gate_off_without_force_payment(self, make_order):
        order = make_order(5, payment_term={})
        line = order_item_service.update_order_item_status(order.items[0].id, "Processing")
        assert line.status == "Processing"


class TestNotes:
    def test_notes_keep_author_and_order(self, make_order):
        order = make_order(1)
        line_id = order.items[0].id

        order_item_service.add_note(line_id, {"text": "Customer wants anti-glare"}, author_id="u-7")
        order_item_service.add_note(line_id, {"text": "Checked axis"})

        notes = order_item_service.list_notes(line_id)
        assert [n.text for n in notes] == ["Customer wants anti-glare", "Checked axis"]
        assert notes[0].author_id == "u-7"
        assert notes[1].author_id is None

    def test_blank_note_rejected(self, make_order):
        order = make_order(1)
        with pytest.raises(ValidationError):
            order_item_service.add_note(order.items[0].id, {"text": "   "})

    def test_list_by_status(self, make_order):
        order = make_order(lines=None)
        order_item_service.update_order_item_status(order.items[0].id, "Processing")

        rows, total, amount_sum = order_item_service.list_order_items(status="Processing")
        assert total == 1
        assert amount_sum == 500
        assert rows[0].status == "Processing"
