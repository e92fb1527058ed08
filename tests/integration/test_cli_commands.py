"""
Integration tests for the catalog CLI commands.
"""

from decimal import Decimal

from order_desk.models import Customer, Product


class TestCatalogCommands:
    """Tests for add-product, set-packing and add-customer."""

    def test_add_product(self, app, session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            'add-product', '--code', 'TILE-300', '--name', 'Wall tile',
            '--pieces-per-unit', '20', '--weight', '0.8'
        ])
        assert 'Product created: TILE-300' in result.output

        product = session.query(Product).filter_by(code='TILE-300').one()
        assert product.unit == 'box'
        assert product.pieces_per_unit == 20
        assert product.weight == Decimal('0.8')

    def test_duplicate_code(self, app, tile):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['add-product', '--code', 'TILE-600', '--name', 'Copy'])
        assert 'already exists' in result.output

    def test_set_packing(self, app, session, tile):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['set-packing', 'TILE-600', '--pieces-per-unit', '8'])
        assert 'Packing updated for TILE-600' in result.output

        product = session.query(Product).filter_by(code='TILE-600').one()
        assert product.pieces_per_unit == 8
        assert product.weight == Decimal('2.5')

    def test_set_packing_rejects_non_positive_ratio(self, app, tile):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['set-packing', 'TILE-600', '--pieces-per-unit', '0'])
        assert 'must be a positive integer' in result.output

    def test_add_customer(self, app, session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['add-customer', '--name', 'Northwind', '--phone', '555-0199'])
        assert 'Customer created: Northwind' in result.output
        assert session.query(Customer).filter_by(name='Northwind').one().phone == '555-0199'
