"""Database commands."""

import typer

from github_org_sync.cli.common import console, require_configuration, run_async_command
from github_org_sync.config import get_settings
from github_org_sync.db import Database

app = typer.Typer(help="Database management")


@app.command("init")
def init() -> None:
    """Create all tables (use `alembic upgrade head` for managed schemas)."""
    settings = get_settings()
    require_configuration(settings, github=False)

    async def _init() -> None:
        async with Database.from_settings(settings) as database:
            await database.create_tables()

    run_async_command(_init(), error_prefix="Database init failed")
    console.print("[green]Database tables created.[/green]")
