# Overview: Flask CLI command groups for bootstrap, operators, catalog import and ledger exports.

# backend/invenpro/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, the owner and manager operators, and the starter partners.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes
#   Clear catalog, ledgers, partners and sessions but keep operators.
#
# Operators:
# - python -m flask operators list
# - python -m flask operators create --username owner2 --display-name "Asha Rao" --role Owner
#
# Catalog:
# - python -m flask catalog import-csv path/to/items.csv
# - python -m flask catalog template > invenpro_template.csv
#
# Ledgers:
# - python -m flask ledger export billing|audit|movements [--output file.csv]
# - python -m flask ledger snapshot-export [--output snapshot.json]
# - python -m flask ledger snapshot-restore snapshot.json --yes

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import (
    AuditLogEntry,
    DocumentLine,
    DocumentRecord,
    DocumentSequence,
    Operator,
    Partner,
    Product,
    SessionToken,
    StockMovement,
)
from .models.auth import OPERATOR_ROLES
from .services.auth_service import create_operator
from .services.partner_service import seed_starter_partners
from .services import (
    audit_service,
    document_service,
    export_service,
    import_service,
    inventory_service,
    snapshot_service,
)
from .validation import ConflictError, ValidationError


DEFAULT_OPERATORS = (
    ("owner", "System Owner", "Owner"),
    ("manager", "Store Manager", "Manager"),
)

# Meets password requirements; change immediately outside development
DEFAULT_PASSWORD = "Password123!"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize InvenPro: tables, default operators and starter partners.

    Creates:
    - Operators: owner (Owner) and manager (Manager), password "Password123!"
    - Two starter partners, if the directory is empty

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing InvenPro...")
    db.create_all()

    for username, display_name, role in DEFAULT_OPERATORS:
        if db.session.query(Operator).filter_by(username=username).first():
            click.echo(f"WARN  Operator '{username}' already exists, skipping...")
            continue
        create_operator(username, display_name, DEFAULT_PASSWORD, role)
        click.echo(f"PASS Created operator: {username} ({role})")

    if current_app.config.get("SEED_PARTNERS_ENABLED", True):
        created = seed_starter_partners()
        click.echo(f"PASS Starter partners created: {created}")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for username, _, role in DEFAULT_OPERATORS:
        click.echo(f"   {username:<8} -> {DEFAULT_PASSWORD}  ({role})")
    click.echo("")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def wipe_data(yes):
    """
    Clear catalog, movements, documents, partners, audit log and sessions.

    Keeps operators.
    """
    if not yes:
        click.confirm("WARN This will DELETE all business data. Are you sure?", abort=True)

    for model in (
        DocumentLine,
        DocumentRecord,
        DocumentSequence,
        StockMovement,
        Product,
        Partner,
        AuditLogEntry,
        SessionToken,
    ):
        deleted = db.session.query(model).delete(synchronize_session=False)
        click.echo(f"DELETE  {model.__tablename__}: {deleted}")
    db.session.commit()
    click.echo("PASS Wipe complete.")


# =============================================================================
# OPERATORS
# =============================================================================

@click.group('operators')
def operators_group():
    """Operator account commands."""


@operators_group.command('list')
@with_appcontext
def list_operators():
    operators = db.session.query(Operator).order_by(Operator.id.asc()).all()
    if not operators:
        click.echo("No operators found. Run 'python -m flask system init'.")
        return

    click.echo("\n" + "=" * 64)
    click.echo(f"{'ID':<5} {'Username':<16} {'Display Name':<24} {'Role':<8} {'Active'}")
    click.echo("=" * 64)
    for op in operators:
        click.echo(f"{op.id:<5} {op.username:<16} {op.display_name:<24} {op.role:<8} {'Yes' if op.is_active else 'No'}")
    click.echo("=" * 64 + "\n")


@operators_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--display-name', prompt=True, help='Name shown in the audit log')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(OPERATOR_ROLES)), prompt=True, help='Role')
@with_appcontext
def create_operator_cli(username, display_name, password, role):
    """
    Password must meet strength requirements:
    8+ chars, uppercase, lowercase, digit, special char.
    """
    try:
        op = create_operator(username, display_name, password, role)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created operator: {op.username} ({op.actor_label})")


# =============================================================================
# CATALOG
# =============================================================================

@click.group('catalog')
def catalog_group():
    """Catalog maintenance commands."""


@catalog_group.command('import-csv')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_csv_cli(path):
    """Bulk-import products (Name, SKU, Category, SellingPrice, Quantity, HSNCode)."""
    with open(path, "rb") as fh:
        text = import_service.decode_upload(fh.read())

    result = import_service.import_products_csv(
        text,
        warehouse_id=current_app.config.get("DEFAULT_WAREHOUSE_ID", "WH-001"),
    )
    click.echo(f"PASS Imported {result.imported} items, skipped {result.skipped}.")


@catalog_group.command('template')
def template_cli():
    """Print the bulk-import CSV template."""
    click.echo(import_service.template_csv())


# =============================================================================
# LEDGERS
# =============================================================================

@click.group('ledger')
def ledger_group():
    """Ledger export and snapshot commands."""


def _write_or_echo(text: str, output: str | None) -> None:
    if output:
        with open(output, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        click.echo(f"PASS Wrote {output}")
    else:
        click.echo(text, nl=False)


@ledger_group.command('export')
@click.argument('store', type=click.Choice(['billing', 'audit', 'movements']))
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='File to write (default: stdout)')
@with_appcontext
def export_ledger(store, output):
    """Export a ledger as CSV."""
    if store == 'billing':
        text = export_service.billing_history_csv(document_service.list_documents()["items"])
    elif store == 'audit':
        text = export_service.audit_log_csv(audit_service.list_audit_entries())
    else:
        text = export_service.movements_csv(inventory_service.list_movements())
    _write_or_echo(text, output)


@ledger_group.command('snapshot-export')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='File to write (default: stdout)')
@with_appcontext
def snapshot_export_cli(output):
    """Dump the namespaced store blobs as one JSON object."""
    _write_or_echo(json.dumps(snapshot_service.export_snapshot(), indent=2) + "\n", output)


@ledger_group.command('snapshot-restore')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def snapshot_restore_cli(path, yes):
    """Replace every store present in the snapshot file."""
    if not yes:
        click.confirm("WARN Stores present in the file will be REPLACED. Continue?", abort=True)

    with open(path, encoding="utf-8") as fh:
        blobs = json.load(fh)

    try:
        restored = snapshot_service.restore_snapshot(blobs)
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    for store, count in restored.items():
        click.echo(f"PASS {store}: {count}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(operators_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(ledger_group)
