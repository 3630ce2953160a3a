"""
Tests for the order aggregate (create / update / remove / list).
"""

from datetime import date

import pytest

from lenslab.models import Commission, OperatorStock, Order, OrderItem, PaymentTerm, PaymentTransaction
from lenslab.services import catalog_service, order_item_service, order_service, pricing_service
from lenslab.validation import ConflictError, NotFoundError, ValidationError


class TestCreateOrder:
    def test_lines_are_costed_and_totals_derived(self, catalog, make_order):
        order = make_order(5, tax=15)

        assert len(order.items) == 1
        line = order.items[0]
        assert line.status == "Received"
        assert line.unit == 5
        assert line.sales == 500
        assert line.total_cost == 300
        assert line.total_amount == 500
        assert line.pricing_id == catalog.pricing.id
        assert line.base_uom_id == catalog.pcs.id

        assert order.status == "Pending"
        assert order.total_amount == 500
        assert order.total_quantity == 5
        assert order.grand_total == 515

    def test_discount_reduces_line_total(self, catalog, make_order):
        order = make_order(lines=[
            {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 2, "discount": 30},
        ])
        line = order.items[0]
        assert line.sales == 200
        assert line.total_amount == 170
        assert line.is_discounted is True

    def test_order_needs_lines(self, customer):
        with pytest.raises(ValidationError, match="at least one"):
            order_service.create_order({"series": "ORD-1", "customer_id": customer.id, "order_items": []})

    def test_new_lines_cannot_start_past_received(self, catalog, make_order):
        with pytest.raises(ValidationError):
            make_order(lines=[
                {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 1, "status": "Printed"},
            ])

    def test_unpriced_line_rejects_whole_order(self, db_session, catalog, customer):
        unpriced = catalog_service.create_item({"name": "Blank 1.67", "unit_category_id": catalog.category.id})

        with pytest.raises(ValidationError, match="No pricing"):
            order_service.create_order({
                "series": "ORD-1",
                "customer_id": customer.id,
                "order_items": [
                    {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 1},
                    {"item_id": unpriced.id, "uom_id": catalog.pcs.id, "quantity": 1},
                ],
            })
        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderItem).count() == 0

    def test_unknown_pricing_id(self, catalog, make_order):
        with pytest.raises(NotFoundError):
            make_order(lines=[
                {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 1, "pricing_id": 999999},
            ])

    def test_unknown_customer_conflicts(self, db_session, catalog):
        with pytest.raises(ConflictError):
            order_service.create_order({
                "series": "ORD-1",
                "customer_id": 999999,
                "order_items": [{"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 1}],
            })
        assert db_session.query(Order).count() == 0

    def test_payment_term_derives_remaining_and_status(self, make_order):
        order = make_order(5, payment_term={
            "transactions": [
                {"payment_method": "Cash", "amount": 200, "status": "paid"},
                {"payment_method": "Bank", "amount": 100},
            ],
        })
        term = order.payment_term
        assert term.total_amount == 500
        assert term.remaining_amount == 300
        assert term.status == order_service.PAYMENT_PARTIALLY_PAID
        assert sorted(t.status for t in term.transactions) == ["Paid", "Pending"]

    def test_fully_paid_term(self, make_order):
        order = make_order(5, payment_term={"transactions": [{"payment_method": "Cash", "amount": 500, "status": "Paid"}]})
        assert order.payment_term.remaining_amount == 0
        assert order.payment_term.status == order_service.PAYMENT_FULLY_PAID

    def test_invalid_transaction_status(self, make_order):
        with pytest.raises(ValidationError, match="Paid or Pending"):
            make_order(payment_term={"transactions": [{"payment_method": "Cash", "amount": 1, "status": "Refunded"}]})

    def test_commission_paid_amount_from_paid_transactions(self, make_order, sales_partner):
        order = make_order(5, commission={
            "sales_partner_id": sales_partner.id,
            "transactions": [
                {"payment_method": "Cash", "amount": 20, "status": "Paid"},
                {"payment_method": "Cash", "amount": 5},
            ],
        })
        assert order.commission.sales_partner_id == sales_partner.id
        assert order.commission.paid_amount == 20
        assert len(order.commission.transactions) == 2

    def test_failure_after_lines_leaves_nothing_behind(self, db_session, monkeypatch, make_order):
        def _boom(*args, **kwargs):
            raise RuntimeError("payment gateway down")

        monkeypatch.setattr(order_service, "_write_payment_term", _boom)

        with pytest.raises(RuntimeError):
            make_order(5, payment_term={"transactions": [{"payment_method": "Cash", "amount": 100}]})

        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderItem).count() == 0
        assert db_session.query(PaymentTerm).count() == 0
        assert db_session.query(PaymentTransaction).count() == 0


class TestUpdateOrder:
    def test_received_line_quantity_recomputed(self, make_order):
        order = make_order(5)
        line_id = order.items[0].id

        updated = order_service.update_order(order.id, {"order_items": [{"id": line_id, "quantity": 3}]})
        assert updated.items[0].sales == 300
        assert updated.total_amount == 300

    def test_lines_without_id_are_added(self, catalog, make_order):
        order = make_order(5)
        updated = order_service.update_order(order.id, {"order_items": [
            {"id": order.items[0].id},
            {"item_id": catalog.item.id, "uom_id": catalog.box.id, "quantity": 1},
        ]})
        assert len(updated.items) == 2
        assert updated.total_amount == 700

    def test_missing_received_line_is_deleted(self, db_session, catalog, make_order):
        order = make_order(lines=[
            {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 1},
            {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 2},
        ])
        keep = order.items[1].id

        updated = order_service.update_order(order.id, {"order_items": [{"id": keep}]})
        assert [i.id for i in updated.items] == [keep]
        assert updated.total_amount == 200
        assert db_session.query(OrderItem).count() == 1

    def test_missing_line_in_progress_conflicts(self, db_session, catalog, make_order):
        order = make_order(lines=[
            {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 1},
            {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 2},
        ])
        first, second = order.items[0].id, order.items[1].id
        order_item_service.update_order_item_status(first, "Processing")

        with pytest.raises(ConflictError, match="only Received"):
            order_service.update_order(order.id, {"order_items": [{"id": second}]})
        assert db_session.query(OrderItem).count() == 2

    def test_quantity_locked_once_in_progress(self, make_order):
        order = make_order(5)
        line_id = order.items[0].id
        order_item_service.update_order_item_status(line_id, "Processing")

        with pytest.raises(ConflictError, match="quantity"):
            order_service.update_order(order.id, {"order_items": [{"id": line_id, "quantity": 1}]})

    def test_status_cannot_change_through_order(self, make_order):
        order = make_order(5)
        with pytest.raises(ValidationError):
            order_service.update_order(order.id, {"order_items": [{"id": order.items[0].id, "status": "Processing"}]})

    def test_line_from_other_order_not_found(self, make_order):
        first = make_order(1, series="ORD-A")
        second = make_order(1, series="ORD-B")
        with pytest.raises(NotFoundError):
            order_service.update_order(first.id, {"order_items": [{"id": second.items[0].id}]})

    def test_null_payment_term_deletes_it(self, db_session, make_order):
        order = make_order(5, payment_term={"transactions": [{"payment_method": "Cash", "amount": 100, "status": "Paid"}]})

        order_service.update_order(order.id, {"payment_term": None})
        assert db_session.query(PaymentTerm).count() == 0
        assert db_session.query(PaymentTransaction).count() == 0

    def test_transactions_replaced_wholesale(self, db_session, make_order):
        order = make_order(5, payment_term={"transactions": [{"payment_method": "Cash", "amount": 100, "status": "Paid"}]})

        updated = order_service.update_order(order.id, {"payment_term": {
            "transactions": [{"payment_method": "Bank", "amount": 500, "status": "Paid"}],
        }})
        assert [t.payment_method for t in updated.payment_term.transactions] == ["Bank"]
        assert updated.payment_term.status == order_service.PAYMENT_FULLY_PAID
        assert db_session.query(PaymentTransaction).count() == 1

    def test_unknown_order(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.update_order(999999, {"internal_note": "x"})

    def test_clearing_discount_clears_flag(self, catalog, make_order):
        order = make_order(lines=[
            {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 2, "discount": 30},
        ])
        line_id = order.items[0].id

        updated = order_service.update_order(order.id, {"order_items": [{"id": line_id, "discount": 0}]})
        assert updated.items[0].total_amount == 200
        assert updated.items[0].is_discounted is False


class TestLineServiceSwitch:
    @pytest.fixture
    def edged_order(self, catalog, make_order):
        tint = catalog_service.create_service({"name": "Tinting"})
        edging = catalog_service.create_service({"name": "Edging"}, non_stock=True)
        pricing_service.create_pricing({
            "item_id": catalog.item.id, "service_id": tint.id, "selling_price": 130, "cost_price": 70,
        })
        pricing_service.create_pricing({
            "item_id": catalog.item.id, "non_stock_service_id": edging.id, "selling_price": 20, "cost_price": 5,
        })
        order = make_order(lines=[
            {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 2, "non_stock_service_id": edging.id},
        ])
        return order, tint, edging

    def test_adding_service_to_non_stock_line_rejected(self, db_session, edged_order):
        order, tint, edging = edged_order
        line_id = order.items[0].id

        with pytest.raises(ValidationError, match="both service"):
            order_service.update_order(order.id, {"order_items": [{"id": line_id, "service_id": tint.id}]})

        line = db_session.get(OrderItem, line_id)
        assert line.service_id is None
        assert line.non_stock_service_id == edging.id
        assert line.is_non_stock_service is True

    def test_switch_to_stock_service_moves_stock_on_print(self, db_session, stock, edged_order):
        order, tint, _ = edged_order
        line_id = order.items[0].id

        updated = order_service.update_order(order.id, {"order_items": [
            {"id": line_id, "service_id": tint.id, "non_stock_service_id": None},
        ]})
        line = updated.items[0]
        assert line.is_non_stock_service is False
        assert line.sales == 260

        order_item_service.update_order_item_status(line_id, "Printed")
        assert db_session.get(OperatorStock, stock.id).quantity == 8


class TestLineItemBase:
    @pytest.fixture
    def foreign_base(self, catalog):
        other = catalog_service.create_item({"name": "Poly 1.59", "unit_category_id": catalog.category.id})
        return catalog_service.create_item_base(other.id, {"base_code": "B4"})

    def test_base_of_another_item_rejected_on_create(self, db_session, catalog, make_order, foreign_base):
        with pytest.raises(ValidationError, match="does not belong"):
            make_order(lines=[
                {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 1, "item_base_id": foreign_base.id},
            ])
        assert db_session.query(Order).count() == 0

    def test_unknown_base_not_found(self, catalog, make_order):
        with pytest.raises(NotFoundError):
            make_order(lines=[
                {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 1, "item_base_id": 999999},
            ])

    def test_base_of_another_item_rejected_on_update(self, db_session, make_order, foreign_base):
        order = make_order(1)
        line_id = order.items[0].id

        with pytest.raises(ValidationError, match="does not belong"):
            order_service.update_order(order.id, {"order_items": [{"id": line_id, "item_base_id": foreign_base.id}]})
        assert db_session.get(OrderItem, line_id).item_base_id is None

    def test_own_base_accepted(self, catalog, make_order):
        base = catalog_service.create_item_base(catalog.item.id, {"base_code": "B6"})
        order = make_order(lines=[
            {"item_id": catalog.item.id, "uom_id": catalog.pcs.id, "quantity": 1, "item_base_id": base.id},
        ])
        assert order.items[0].item_base_id == base.id
        assert order.items[0].sales == 100


class TestRemoveOrder:
    def test_received_order_removed_with_children(self, db_session, make_order, sales_partner):
        order = make_order(
            5,
            payment_term={"transactions": [{"payment_method": "Cash", "amount": 100}]},
            commission={"sales_partner_id": sales_partner.id, "transactions": [{"payment_method": "Cash", "amount": 10}]},
        )
        order_service.remove_order(order.id)

        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderItem).count() == 0
        assert db_session.query(PaymentTerm).count() == 0
        assert db_session.query(Commission).count() == 0

    def test_order_in_progress_cannot_be_removed(self, db_session, make_order):
        order = make_order(5)
        order_item_service.update_order_item_status(order.items[0].id, "Processing")

        with pytest.raises(ConflictError):
            order_service.remove_order(order.id)
        assert db_session.query(Order).count() == 1

    def test_unknown_order(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.remove_order(999999)


class TestListOrders:
    def test_filters_and_grand_total_sum(self, make_order):
        make_order(1, series="ORD-JAN", order_date="2026-01-05")
        make_order(2, series="ORD-FEB", order_date="2026-02-05")

        rows, total, grand_total_sum = order_service.list_orders()
        assert total == 2
        assert [o.series for o in rows] == ["ORD-FEB", "ORD-JAN"]
        assert grand_total_sum == 300

        filters = order_service.OrderFilters(start_date=date(2026, 2, 1), end_date=date(2026, 2, 28))
        rows, total, grand_total_sum = order_service.list_orders(filters=filters)
        assert [o.series for o in rows] == ["ORD-FEB"]
        assert grand_total_sum == 200

    def test_search_matches_customer_and_item_name(self, make_order):
        make_order(1, series="ORD-1")

        by_customer = order_service.OrderFilters(search="Abebe")
        assert order_service.list_orders(filters=by_customer)[1] == 1

        by_item = order_service.OrderFilters(item_names=["cr-39"])
        assert order_service.list_orders(filters=by_item)[1] == 1

        nothing = order_service.OrderFilters(item_names=["polycarbonate"])
        assert order_service.list_orders(filters=nothing)[1] == 0

    def test_parse_filters_rejects_inverted_range(self):
        with pytest.raises(ValidationError):
            order_service.parse_order_filters({"start_date": "2026-03-01", "end_date": "2026-02-01"})

    def test_parse_filters_accepts_camel_case_dates(self):
        filters = order_service.parse_order_filters({"startDate": "2026-03-01", "endDate": "2026-03-03", "item1": " CR "})
        assert filters.has_range
        assert filters.item_names == ["CR"]
