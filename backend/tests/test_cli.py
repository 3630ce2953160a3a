"""
Tests for the flask CLI command groups.
"""

from lenslab.models import Item
from lenslab.services import operator_stock_service


class TestStockCommands:
    def test_list_empty(self, app, db_session):
        result = app.test_cli_runner().invoke(args=['stock', 'list'])
        assert result.exit_code == 0
        assert 'No stock rows found.' in result.output

    def test_list_rows(self, app, catalog, stock):
        result = app.test_cli_runner().invoke(args=['stock', 'list', '--search', 'CR-39'])
        assert result.exit_code == 0
        assert 'CR-39 1.50 SV' in result.output
        assert 'Showing 1 of 1 rows' in result.output

    def test_bincard(self, app, catalog, stock):
        operator_stock_service.update_stock(stock.id, {'quantity': 6})

        result = app.test_cli_runner().invoke(args=['stock', 'bincard', '--item-id', str(catalog.item.id)])
        assert result.exit_code == 0
        assert 'ADJUSTMENT' in result.output
        assert 'OPENING' in result.output
        assert 'Showing 2 of 2 entries' in result.output

    def test_bincard_empty(self, app, catalog):
        result = app.test_cli_runner().invoke(args=['stock', 'bincard', '--item-id', str(catalog.item.id)])
        assert f'No bincard entries for item {catalog.item.id}.' in result.output


class TestSystemCommands:
    def test_init_db_is_idempotent(self, app, db_session):
        result = app.test_cli_runner().invoke(args=['system', 'init-db'])
        assert result.exit_code == 0
        assert 'PASS' in result.output

    def test_reset_db_requires_confirmation(self, app, db_session, catalog):
        result = app.test_cli_runner().invoke(args=['system', 'reset-db'], input='n\n')
        assert result.exit_code != 0
        assert db_session.query(Item).count() == 1

    def test_reset_db_clears_data(self, app, db_session, catalog):
        db_session.commit()
        result = app.test_cli_runner().invoke(args=['system', 'reset-db', '--yes'])
        assert result.exit_code == 0
        assert 'Database reset complete.' in result.output
        assert db_session.query(Item).count() == 0
