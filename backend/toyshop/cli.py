# Overview: Flask CLI command groups for bootstrap and staff accounts.

# backend/toyshop/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--no-sample-data]
#   Idempotent bootstrap: creates tables, the admin user, the default tax
#   percentage and a small sample catalog.
#
# Staff accounts:
# - python -m flask users list
#   List all users with role and status.
# - python -m flask users create --username cashier1 --password secret1 --role cashier
#   Create a user (prompts if options are omitted).

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import PosError
from .extensions import db
from .models import Category, Product, User
from .services import auth_service, catalog_service, settings_service


DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"

SAMPLE_CATEGORY = ("Action Figures", "Superhero and robot figures")

# (barcode, name, price_cents, purchase_price_cents, initial quantity)
SAMPLE_PRODUCTS = [
    ("PROD001", "Robot Hero", 2999, 1800, 50),
    ("PROD002", "Dinosaur Set", 3999, 2400, 35),
    ("PROD003", "Building Blocks", 4999, 3000, 20),
]


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--no-sample-data', is_flag=True, help='Skip the sample category and products')
@with_appcontext
def init_system(no_sample_data):
    """
    Initialize the toy shop database.

    Creates:
    - All tables (if missing)
    - User: admin / admin123 with role 'admin'
    - Setting: tax_percentage (DEFAULT_TAX_PERCENTAGE)
    - Sample category 'Action Figures' with three products

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing toy shop...")

    db.create_all()
    click.echo("PASS Tables ready")

    # 1. Admin user
    existing = db.session.query(User).filter_by(username=DEFAULT_ADMIN_USERNAME).first()
    if existing:
        click.echo(f"WARN  User '{DEFAULT_ADMIN_USERNAME}' already exists, skipping...")
    else:
        auth_service.create_user(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD, role="admin")
        click.echo(f"PASS Created user: {DEFAULT_ADMIN_USERNAME} with role 'admin'")

    # 2. Tax rate
    if settings_service.get_value(settings_service.TAX_PERCENTAGE_KEY) is None:
        tax = current_app.config.get("DEFAULT_TAX_PERCENTAGE", "10")
        settings_service.set_value(settings_service.TAX_PERCENTAGE_KEY, tax)
        click.echo(f"PASS Default tax percentage set to {tax}%")
    else:
        click.echo("WARN  tax_percentage already set, skipping...")

    # 3. Sample catalog
    if not no_sample_data:
        _seed_sample_catalog()

    click.echo("\n" + "=" * 60)
    click.echo("DONE Toy shop initialized")
    click.echo("=" * 60)
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   {DEFAULT_ADMIN_USERNAME} / {DEFAULT_ADMIN_PASSWORD}")
    click.echo("")


def _seed_sample_catalog():
    name, description = SAMPLE_CATEGORY
    category = db.session.query(Category).filter_by(name=name).first()
    if category is None:
        category = catalog_service.create_category(name, description)
        click.echo(f"PASS Created category: {category.name}")

    for barcode, product_name, price, cost, quantity in SAMPLE_PRODUCTS:
        if db.session.query(Product.id).filter_by(barcode=barcode).first():
            click.echo(f"WARN  Product '{barcode}' already exists, skipping...")
            continue
        catalog_service.create_product(
            initial_quantity=quantity,
            barcode=barcode,
            name=product_name,
            category_id=category.id,
            price_cents=price,
            purchase_price_cents=cost,
        )
        click.echo(f"PASS Created product: {barcode} {product_name} (qty {quantity})")


@click.group('users')
def users_group():
    """Staff account commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with role and status."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found. Run 'python -m flask system init' first.")
        return
    for user in users:
        click.echo(f"{user.id:>4}  {user.username:<20} {user.role:<8} {user.status}")


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', default=None, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['admin', 'cashier']), prompt=True, help='Role')
@with_appcontext
def create_user_cli(username, email, password, role):
    """
    Create a new user.

    Password must be at least 6 characters.
    """
    try:
        user = auth_service.create_user(username=username, password=password, role=role, email=email)
        click.echo(f"PASS Created user: {user.username} with role '{user.role}'")
        click.echo("SECURITY Password securely hashed with bcrypt")
    except PosError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
        raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
