"""
Flask CLI commands for catalog setup.

Commands:
- flask init-db: Create database tables
- flask add-product: Register a catalog product
- flask set-packing: Change a product's pieces per unit and weight
- flask add-customer: Register a customer
"""

import click
from decimal import Decimal
from order_desk.database import create_tables, get_session
from order_desk.models import Customer, Product
from order_desk.services.catalog_service import invalidate_product


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all database tables."""
        create_tables()
        click.echo(click.style('Database tables created.', fg='green'))

    @app.cli.command('add-product')
    @click.option('--code', required=True, help='Unique product code')
    @click.option('--name', required=True, help='Product name')
    @click.option('--specification', default=None, help='Size or other specification, e.g. 600x600')
    @click.option('--unit', default='box', show_default=True, help='Pack label')
    @click.option('--pieces-per-unit', type=int, default=None, help='Pieces in one pack')
    @click.option('--weight', type=str, default=None, help='Kilograms per piece')
    def add_product(code, name, specification, unit, pieces_per_unit, weight):
        """Register a catalog product."""
        db_session = get_session()

        if db_session.query(Product).filter_by(code=code).first():
            click.echo(click.style(f'A product with code {code} already exists.', fg='red'))
            return

        if pieces_per_unit is not None and pieces_per_unit <= 0:
            click.echo(click.style('Pieces per unit must be a positive integer.', fg='red'))
            return

        try:
            product = Product(
                code=code,
                name=name,
                specification=specification,
                unit=unit,
                pieces_per_unit=pieces_per_unit,
                weight=Decimal(weight) if weight else None,
                active=True
            )
            db_session.add(product)
            db_session.commit()
            click.echo(click.style(f'Product created: {product.code} (ID {product.id})', fg='green'))
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'Error creating product: {str(e)}', fg='red'))

    @app.cli.command('set-packing')
    @click.argument('code')
    @click.option('--pieces-per-unit', type=int, default=None, help='Pieces in one pack')
    @click.option('--weight', type=str, default=None, help='Kilograms per piece')
    def set_packing(code, pieces_per_unit, weight):
        """Change a product's pieces per unit and/or weight."""
        db_session = get_session()

        product = db_session.query(Product).filter_by(code=code).first()
        if not product:
            click.echo(click.style(f'No product with code {code}.', fg='red'))
            return

        if pieces_per_unit is not None:
            if pieces_per_unit <= 0:
                click.echo(click.style('Pieces per unit must be a positive integer.', fg='red'))
                return
            product.pieces_per_unit = pieces_per_unit
        if weight is not None:
            product.weight = Decimal(weight)

        db_session.commit()
        invalidate_product(product.id)
        click.echo(click.style(f'Packing updated for {product.code}.', fg='green'))

    @app.cli.command('add-customer')
    @click.option('--name', required=True, help='Customer name')
    @click.option('--phone', default=None, help='Phone number')
    @click.option('--address', default=None, help='Address')
    def add_customer(name, phone, address):
        """Register a customer."""
        db_session = get_session()
        try:
            customer = Customer(name=name, phone=phone, address=address, active=True)
            db_session.add(customer)
            db_session.commit()
            click.echo(click.style(f'Customer created: {customer.name} (ID {customer.id})', fg='green'))
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'Error creating customer: {str(e)}', fg='red'))
