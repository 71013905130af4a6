# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# supercashier/cli.py
# Commands Legend:
# Prereqs:
# - Set FLASK_APP to wsgi.py (or pass --app wsgi).
# - Use: flask <group> <command> [options]
#
# System bootstrap/repair:
# - flask system init
#   Idempotent bootstrap: creates roles and default users.
# - flask system seed-categories
#   Create the starter categories (Makanan, Minuman, ATK) if missing.
# - flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - flask system cleanup-sessions [--days 30]
#   Delete expired/revoked session tokens older than the window.
#
# Users:
# - flask users list
# - flask users create --name "Ani" --username ani --email ani@supercashier.local --password "Password123!" --role cashier
#
# Sales maintenance:
# - flask sales release-stale [--hours 24]
#   Cancel draft sales older than the window and return their reserved stock.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import ValidationError
from .extensions import db
from .models import Role, User
from .services import auth_service, category_service, sales_service, session_service, user_service
from .services.permission_service import ROLE_PERMISSIONS

DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = [
    ("Administrator", "admin", "admin@supercashier.local", "admin"),
    ("Cashier", "cashier", "cashier@supercashier.local", "cashier"),
    ("Warehouse", "warehouse", "warehouse@supercashier.local", "warehouse"),
]

DEFAULT_CATEGORIES = [
    ("Makanan", "Berbagai jenis makanan"),
    ("Minuman", "Minuman dingin & panas"),
    ("ATK", "Alat tulis kantor"),
]


def _format_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{field}: {', '.join(messages)}" for field, messages in (exc.errors or {}).items()
    ) or exc.message


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize roles and default users.

    Users: admin, cashier, warehouse (password "Password123!").
    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing SuperCashier...")

    roles = {role.name: role for role in auth_service.create_default_roles()}
    click.echo(f"PASS Roles ready: {', '.join(sorted(roles))}")

    for name, username, email, role_name in DEFAULT_USERS:
        if db.session.query(User).filter_by(username=username).first():
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        try:
            user_service.create_user({
                "name": name,
                "username": username,
                "email": email,
                "password": DEFAULT_PASSWORD,
                "role_id": roles[role_name].id,
            })
        except ValidationError as e:
            db.session.rollback()
            click.echo(f"FAIL Failed to create user '{username}': {_format_errors(e)}")
            continue
        click.echo(f"PASS Created user: {username} ({email}) with role '{role_name}'")

    click.echo("\nDONE SuperCashier initialized.")
    click.echo(f"Default password for all users: {DEFAULT_PASSWORD} (CHANGE IN PRODUCTION!)")


@system_group.command('seed-categories')
@with_appcontext
def seed_categories():
    """Create the starter categories."""
    created = category_service.ensure_categories(DEFAULT_CATEGORIES)
    click.echo(f"PASS Created {len(created)} categories")


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

    click.echo("PASS Database reset complete. Run 'flask system init' to initialize.")


@system_group.command('cleanup-sessions')
@click.option('--days', type=int, default=30, show_default=True, help='Retention window in days')
@with_appcontext
def cleanup_sessions(days):
    """Delete expired or revoked session tokens."""
    deleted = session_service.cleanup_expired_sessions(older_than_days=days)
    click.echo(f"PASS Deleted {deleted} session(s)")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(ROLE_PERMISSIONS)), prompt=True, help='Role')
@click.option('--phone', default=None, help='Phone number')
@with_appcontext
def create_user_cli(name, username, email, password, role, phone):
    """Create a user."""
    role_obj = db.session.query(Role).filter_by(name=role).first()
    if role_obj is None:
        raise click.ClickException(f"Role '{role}' not found. Run 'flask system init' first.")

    try:
        user = user_service.create_user({
            "name": name,
            "username": username,
            "email": email,
            "phone": phone,
            "password": password,
            "role_id": role_obj.id,
        })
    except ValidationError as e:
        raise click.ClickException(_format_errors(e))

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<35} {'Active':<8} {'Role'}")
    click.echo("="*90)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<35} {active_str:<8} {user.role_name or 'none'}")

    click.echo("="*90 + "\n")


@click.group('sales')
def sales_group():
    """Sales maintenance commands."""


@sales_group.command('release-stale')
@click.option('--hours', type=int, default=None, help='Age threshold in hours (default: STALE_DRAFT_HOURS)')
@with_appcontext
def release_stale(hours):
    """Cancel abandoned draft sales and return their reserved stock."""
    if hours is None:
        hours = current_app.config["STALE_DRAFT_HOURS"]
    if hours < 0:
        raise click.BadParameter("hours must be >= 0", param_hint="--hours")

    released = sales_service.cancel_stale_drafts(hours)
    click.echo(f"PASS Released {len(released)} stale draft sale(s)")
    for sale_id in released:
        click.echo(f"  - sale {sale_id}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(sales_group)
