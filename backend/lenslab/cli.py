# Overview: Flask CLI command groups for database bootstrap and stock inspection.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to the app factory (e.g. FLASK_APP="lenslab:create_app").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Stock inspection:
# - python -m flask stock list [--search "1.56"]
#   List operator stock rows with quantity and status.
# - python -m flask stock bincard --item-id 1 [--limit 50]
#   Show the stock ledger for one item, newest first.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import operator_stock_service, bincard_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (existing tables are left alone)."""
    db.create_all()
    click.echo("PASS Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('stock')
def stock_group():
    """Operator stock inspection commands."""


@stock_group.command('list')
@click.option('--search', default=None, help='Filter by item name, code or description')
@click.option('--limit', default=100, type=int, help='Maximum rows to show')
@with_appcontext
def list_stock_cli(search, limit):
    """
    List operator stock rows.

    Example:
        flask stock list
        flask stock list --search "CR-39"
    """
    rows, total = operator_stock_service.list_stock(skip=0, take=limit, search=search)

    if not rows:
        click.echo("No stock rows found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Item':<35} {'Quantity':>12} {'UOM':<8} {'Status'}")
    click.echo("="*90)

    for stock in rows:
        item_name = stock.item.name if stock.item else f"#{stock.item_id}"
        uom = stock.uom.abbreviation if stock.uom else "-"
        click.echo(f"{stock.id:<5} {item_name[:35]:<35} {stock.quantity:>12.2f} {uom:<8} {stock.status}")

    click.echo("="*90)
    click.echo(f"Showing {len(rows)} of {total} rows\n")


@stock_group.command('bincard')
@click.option('--item-id', required=True, type=int, help='Item ID')
@click.option('--limit', default=bincard_service.DEFAULT_TAKE, type=int, help='Maximum rows to show')
@with_appcontext
def bincard_cli(item_id, limit):
    """
    Show the stock ledger for one item, newest first.

    Example:
        flask stock bincard --item-id 1
    """
    rows, total = bincard_service.find_by_item_id(item_id, skip=0, take=limit)

    if not rows:
        click.echo(f"No bincard entries for item {item_id}.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<6} {'When':<20} {'Move':<5} {'Qty':>10} {'Balance':>10} {'Reference':<12} {'Ref ID':<8} {'Description'}")
    click.echo("="*100)

    for entry in rows:
        when = entry.created_at.strftime("%Y-%m-%d %H:%M:%S") if entry.created_at else "-"
        click.echo(
            f"{entry.id:<6} {when:<20} {entry.movement_type:<5} {entry.quantity:>10.2f} "
            f"{entry.balance_after:>10.2f} {entry.reference_type:<12} {entry.reference_id or '-':<8} "
            f"{entry.description or ''}"
        )

    click.echo("="*100)
    click.echo(f"Showing {len(rows)} of {total} entries\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stock_group)
