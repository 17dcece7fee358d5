# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for managed schemas).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Add a few categories and products for local development.
#
# User inspection/bootstrap:
# - python -m flask users list [--role admin]
#   List users with role and status.
# - python -m flask users create-admin --username admin --email admin@shop.local --password "secret123"
#   Create an admin account (prompts if options are omitted).
#
# Permission inspection:
# - python -m flask perms list [--role staff]
#   Show the permission table, optionally for one role.
# - python -m flask perms show CANCEL_ANY_ORDER
#   Describe one permission and the roles that hold it.

from decimal import Decimal

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Category, Product, User
from .models.auth import USER_ROLES
from .permissions import DEFAULT_ROLE_PERMISSIONS, PERMISSION_DEFINITIONS, get_permission_definition
from .services.auth_service import create_user
from .services.concurrency import atomic
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables."""
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """Drop and recreate all tables. Deletes all data."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Idempotently add demo categories and products."""
    catalog = {
        "Clothing": [("T-shirt", "39.00", 25), ("Hoodie", "89.00", 10)],
        "Accessories": [("Cap", "25.00", 2), ("Tote bag", "19.50", 40)],
    }
    created = 0
    with atomic():
        for category_name, products in catalog.items():
            category = db.session.query(Category).filter_by(name=category_name, parent_id=None).first()
            if not category:
                category = Category(name=category_name)
                db.session.add(category)
                db.session.flush()
            for name, price, stock in products:
                if db.session.query(Product).filter_by(name=name).first():
                    continue
                db.session.add(Product(name=name, price=Decimal(price), stock_quantity=stock, category_id=category.id))
                created += 1
    click.echo(f"PASS Seeded {created} products")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@click.option('--role', type=click.Choice(USER_ROLES), default=None)
@with_appcontext
def list_users(role):
    query = db.session.query(User).order_by(User.id.asc())
    if role:
        query = query.filter(User.role == role)
    for user in query.all():
        click.echo(f"{user.id:>5}  {user.username:<20} {user.email:<32} {user.role:<9} {user.status}")


@users_group.command('create-admin')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_admin(username, email, password):
    try:
        with atomic():
            user = create_user(username=username, email=email, password=password, role="admin")
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created admin {user.username} (ID: {user.id})")


@click.group('perms')
def perms_group():
    """Permission table inspection."""


@perms_group.command('list')
@click.option('--role', type=click.Choice(USER_ROLES), default=None)
@with_appcontext
def list_permissions(role):
    roles = [role] if role else list(USER_ROLES)
    for code, name, _description, category in PERMISSION_DEFINITIONS:
        holders = [r for r in roles if code in DEFAULT_ROLE_PERMISSIONS.get(r, ())]
        if role and not holders:
            continue
        click.echo(f"{category:<14} {code:<26} {name:<28} {', '.join(holders)}")


@perms_group.command('show')
@click.argument('code')
@with_appcontext
def show_permission(code):
    definition = get_permission_definition(code.upper())
    if definition is None:
        click.echo(f"FAIL Unknown permission {code}")
        raise SystemExit(1)
    holders = [r for r in USER_ROLES if definition["code"] in DEFAULT_ROLE_PERMISSIONS.get(r, ())]
    click.echo(f"{definition['code']} ({definition['category']})")
    click.echo(f"  {definition['name']}: {definition['description']}")
    click.echo(f"  Roles: {', '.join(holders)}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
