from __future__ import annotations

import typer

from alrpub import __version__
from alrpub.cli.commands.monitor import monitor
from alrpub.cli.commands.prepare import prepare


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
)

app.command()(prepare)
app.command()(monitor)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)


def main() -> None:
    app()


def prepare_main() -> None:
    """Entry point for the standalone ``alr-publish-multi`` script."""
    typer.run(prepare)


def monitor_main() -> None:
    """Entry point for the standalone ``alr-publish-monitor`` script."""
    typer.run(monitor)
