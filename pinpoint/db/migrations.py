"""
Helpers to set up the database
"""

from __future__ import annotations

from pathlib import Path

import asyncpg
import structlog

from . import Database

logger = structlog.get_logger()

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


async def migrate_db(database: Database) -> list[str]:
    """
    Apply all bundled migrations that have not been applied yet.

    Returns the names of the migrations applied by this call.
    """

    applied: list[str] = []

    async with database.connection() as con:
        await create_migrations_table(con=con)
        applied_migrations = await get_applied_migrations(con=con)
        for migrations_file in sorted(MIGRATIONS_DIR.glob("*.sql")):
            if migrations_file.stem not in applied_migrations:
                await apply_migration(path=migrations_file, con=con)
                applied.append(migrations_file.stem)

    return applied


async def create_migrations_table(*, con: asyncpg.Connection) -> None:
    await con.execute(
        """
        create table if not exists migrations (
            name varchar primary key,
            applied_at timestamp with time zone not null
        );
        """
    )


async def get_applied_migrations(*, con: asyncpg.Connection) -> list[str]:
    return [row["name"] for row in await con.fetch("SELECT name FROM migrations")]


async def apply_migration(*, path: Path, con: asyncpg.Connection) -> None:
    name = path.stem

    logger.info("Applying migration", name=name)

    async with con.transaction():
        await con.execute(
            "INSERT INTO migrations (name, applied_at) VALUES ($1, now())", name
        )
        await con.execute(path.read_text())
