from __future__ import annotations

import typer

from relwatch import __version__
from relwatch.cli.commands.deploy_cmd import deploy
from relwatch.cli.commands.release_cmd import release
from relwatch.cli.commands.render_cmd import render_message

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(deploy)
app.command()(release)
app.command("render")(render_message)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_show_version,
        is_eager=True,
    ),
) -> None:
    del version


def main() -> None:
    app()
