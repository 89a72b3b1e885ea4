import os
import click
from flask.cli import with_appcontext
from flask_migrate import init, migrate, upgrade
from gfm import create_app
from gfm.seed import seed_admin

app = create_app()

@app.cli.command("db-init")
@with_appcontext
def db_init():
    """Creates the migrations directory"""
    init()

@app.cli.command("db-migrate")
@click.option("-m", "--message", default=None, help="Revision message")
@with_appcontext
def db_migrate(message):
    """Autogenerates a revision from the current models"""
    migrate(message=message)

@app.cli.command("db-upgrade")
@click.argument("revision", default="head")
@with_appcontext
def db_upgrade(revision):
    """Upgrades the schema to REVISION (default: head)"""
    upgrade(revision=revision)


if __name__ == "__main__":
    with app.app_context():
        if seed_admin():
            click.echo("Default admin created; change its password after first login")
    app.run(host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "4000")))
