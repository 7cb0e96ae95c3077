import click

from ..config import Settings
from . import Database
from .migrations import migrate_db


@click.group(name="db", help="Database related commands")
def cli() -> None:
    pass


@cli.command(help="Apply missing migrations to the database")
async def migrate() -> None:
    click.echo("Migrating the database")
    async with Database.from_settings(Settings.from_env()) as database:
        applied = await migrate_db(database)
    for name in applied:
        click.echo(f"Applied {name}")
    click.echo("Done migrating the database")
