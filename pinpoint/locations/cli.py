import click

from ..config import Settings
from .exceptions import StorageError
from .gateway import DEFAULT_LIMIT, LocationGateway
from .stores import create_store


@click.group(name="locations", help="Inspect stored locations")
def cli() -> None:
    pass


@cli.command(name="list", help="List the most recently stored locations")
@click.option(
    "--limit", type=click.IntRange(min=1), default=DEFAULT_LIMIT, show_default=True
)
async def list_locations(limit: int) -> None:
    gateway = LocationGateway(create_store(Settings.from_env()))
    await gateway.connect()
    try:
        records = await gateway.list_recent(limit)
    except StorageError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        await gateway.close()

    if not records:
        click.echo("No locations stored")
        return

    rows: list[tuple[str, str, str, str]] = [
        ("ID", "Latitude", "Longitude", "Created at")
    ]
    rows.extend(
        (
            str(record.id),
            str(record.latitude),
            str(record.longitude),
            record.created_at.isoformat(),
        )
        for record in records
    )

    column_lengths = [
        max(len(row[column]) for row in rows) for column in range(len(rows[0]))
    ]
    for columns in rows:
        click.echo(
            " | ".join(
                column.ljust(column_lengths[i]) for i, column in enumerate(columns)
            )
        )
