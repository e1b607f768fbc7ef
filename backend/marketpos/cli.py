# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/marketpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and one default user per role.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --username admin2 --full-name "Second Admin" --password "secret1" --role admin
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .errors import PosError
from .extensions import db
from .models import User
from .permissions import Role
from .services import user_service


DEFAULT_PASSWORD = "123456"

DEFAULT_USERS = [
    ("admin", "Administrator", Role.ADMIN.value),
    ("staff", "Warehouse Staff", Role.STAFF.value),
    ("cashier", "Cashier", Role.CASHIER.value),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables (if missing) and the default users.

    Users: admin / staff / cashier, all with password "123456".

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing MarketPOS...")
    db.create_all()
    click.echo("PASS Tables ready")

    click.echo("\nUSERS Creating default users...")
    for username, full_name, role in DEFAULT_USERS:
        if db.session.query(User).filter_by(username=username).first():
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        try:
            user_service.create_user({
                "username": username,
                "full_name": full_name,
                "role": role,
                "password": DEFAULT_PASSWORD,
            })
            click.echo(f"PASS Created user: {username} with role '{role}'")
        except PosError as e:
            click.echo(f"FAIL Failed to create user '{username}': {e.message}")

    click.echo("\n" + "="*60)
    click.echo("DONE MarketPOS Initialized Successfully!")
    click.echo("="*60)
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for username, _, _ in DEFAULT_USERS:
        click.echo(f"   {username:<8} / {DEFAULT_PASSWORD}")
    click.echo("")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm dropping all data')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--full-name', prompt=True, help='Display name')
@click.option('--email', default=None, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(Role.values()), prompt=True, help='Role')
@with_appcontext
def create_user_cli(username, full_name, email, password, role):
    """Create a new user (password: at least 6 characters)."""
    try:
        user = user_service.create_user({
            "username": username,
            "full_name": full_name,
            "email": email,
            "role": role,
            "password": password,
        })
    except PosError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@with_appcontext
def list_users_cli():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*72)
    click.echo(f"{'ID':<5} {'Username':<20} {'Name':<25} {'Role':<10} {'Active'}")
    click.echo("="*72)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.full_name:<25} {user.role:<10} {active_str}")
    click.echo("="*72 + "\n")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
