#!/usr/bin/env python3
"""
sbctl - Service binding CLI

Main entrypoint for the sbctl command-line tool.
"""

import typer
from rich.console import Console
from rich.table import Table

from binding_engine.core import BINDING_API_VERSION
from cli.commands import mapping, render

app = typer.Typer(
    name="sbctl",
    help="Service binding tooling: render and inspect bindings offline",
    add_completion=False,
)

console = Console()

app.command(name="render")(render.render_command)
app.command(name="mapping")(mapping.mapping_command)


@app.command()
def version():
    """Show version information."""
    from cli import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]sbctl[/bold]", f"v{__version__}")
    table.add_row("API", BINDING_API_VERSION)

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
