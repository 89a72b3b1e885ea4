import click
from flask import current_app
from flask.cli import with_appcontext
from gfm.extensions import db
from gfm.models import User, RoleEnum


def seed_admin(username=None, password=None):
    """
    Creates the default administrator if no user with that username exists.
    Safe to run on every start; returns True only when a user was created.
    """
    username = username or current_app.config["DEFAULT_ADMIN_USERNAME"]
    password = password or current_app.config["DEFAULT_ADMIN_PASSWORD"]

    if User.query.filter_by(username=username).first():
        return False

    admin = User(
        username=username,
        role=RoleEnum.admin,
        display_name="Administrator",
        is_active=True,
    )
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()

    current_app.logger.info("Seeded default admin (username: %s)", username)
    return True


@click.command("seed-admin")
@click.option("--username", default=None, help="Defaults to DEFAULT_ADMIN_USERNAME")
@click.option("--password", default=None, help="Defaults to DEFAULT_ADMIN_PASSWORD")
@with_appcontext
def seed_admin_command(username, password):
    """Creates the default admin user if it does not exist"""
    if seed_admin(username, password):
        click.echo("Default admin created")
    else:
        click.echo("Admin already exists, nothing to do")
