# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/layup/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --name admin --role admin --password "..."
#   Create a user (prompts if options are omitted).
# - python -m flask users list
#   List all users with roles and active status.
# - python -m flask users set-password anna
#   Set or reset a user's password (prompts).
#
# Permission inspection:
# - python -m flask perms list [--role worker]
#   List permission codes (optionally what one role is granted).
# - python -m flask perms check worker log:void
#   Check whether a role has a permission.

import click
from flask.cli import with_appcontext

from .errors import LayupError
from .extensions import db
from .permissions import KNOWN_ROLES, PERMISSION_DEFINITIONS, normalize_code
from .services import auth_service, user_service
from .services.permission_service import get_access_policy


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    from . import models  # noqa: F401

    db.create_all()
    click.echo("PASS Database schema is up to date")


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

    from . import models  # noqa: F401

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("BUILD Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset complete")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='User name (unique)')
@click.option('--role', type=click.Choice(sorted(KNOWN_ROLES)), prompt=True, help='Role')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--group', 'user_group', default=None, help='User group')
@with_appcontext
def create_user_cli(name, role, password, user_group):
    """
    Create a new user.

    Runs with admin authority, so the first admin and manager can be
    bootstrapped here. The single-active-admin/manager rule still applies.
    """
    try:
        user = user_service.create_user("admin", name, role, password=password, user_group=user_group)
    except LayupError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.name} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@with_appcontext
def list_users_cli():
    """List all users."""
    users = user_service.list_users()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*72)
    click.echo(f"{'ID':<5} {'Name':<24} {'Role':<15} {'Active':<8} {'Group'}")
    click.echo("="*72)
    for user in users:
        active_str = "yes" if user.is_active else "no"
        click.echo(f"{user.id:<5} {user.name:<24} {user.role:<15} {active_str:<8} {user.user_group or '-'}")
    click.echo("")


@users_group.command('set-password')
@click.argument('name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='New password')
@with_appcontext
def set_password_cli(name, password):
    """Set a user's password without the old one."""
    user = user_service.get_user_by_name(name)
    if user is None:
        click.echo(f"FAIL User '{name}' not found")
        raise SystemExit(1)

    try:
        auth_service.set_initial_password(user.id, password)
    except LayupError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS Password updated for '{user.name}'")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', default=None, help='Show what this role is granted')
@with_appcontext
def list_perms(role):
    """List permission codes, or a role's grants."""
    policy = get_access_policy()

    if role:
        if policy.is_super_role(role):
            click.echo(f"{normalize_code(role)}: all permissions")
            return
        grants = sorted(policy.permissions_for(role))
        if not grants:
            click.echo(f"{normalize_code(role)}: no permissions")
            return
        for code in grants:
            click.echo(code)
        return

    current_module = None
    for code, name, description, module in PERMISSION_DEFINITIONS:
        if module != current_module:
            click.echo(f"\n[{module}]")
            current_module = module
        click.echo(f"  {code:<24} {description}")
    click.echo("")


@perms_group.command('check')
@click.argument('role')
@click.argument('permission')
@with_appcontext
def check_perm(role, permission):
    """Check whether ROLE has PERMISSION."""
    allowed = get_access_policy().has_permission(role, permission)
    status = "PASS" if allowed else "FAIL"
    verb = "has" if allowed else "does not have"
    click.echo(f"{status} {normalize_code(role)} {verb} {normalize_code(permission)}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
