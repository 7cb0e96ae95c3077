import asyncio
import inspect
from importlib import import_module
from pathlib import Path

import click
import uvicorn

from .config import Settings
from .utils import configure_logging


class AsyncAwareContext(click.Context):
    """
    A click context that invokes async functions with asyncio.run.
    """

    def invoke(self, *args, **kwargs):
        r = super().invoke(*args, **kwargs)
        if inspect.isawaitable(r):
            return asyncio.run(r)
        else:
            return r


click.Command.context_class = AsyncAwareContext


@click.group()
def cli() -> None:
    try:
        settings = Settings.from_env()
    except ValueError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc

    configure_logging(settings.log_level)


@cli.command(help="Run the HTTP server")
@click.option("--host", help="Interface to bind to, defaults to $HOST")
@click.option("--port", type=int, help="Port to bind to, defaults to $PORT")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    settings = Settings.from_env()
    uvicorn.run(
        "pinpoint.server:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


def load_apps(path: Path) -> None:
    for cli_module in path.glob("*/cli*.py"):

        # Construct the name of the module
        relative_path = cli_module.relative_to(Path(__file__).parent)
        module_path = ".".join(p.name for p in reversed(relative_path.parents))
        module_name = f"{module_path}.{cli_module.stem}"

        # Register the module
        module = import_module(module_name, package="pinpoint")
        if command := getattr(module, "cli", None):
            cli.add_command(command)


load_apps(Path(__file__).parent)
