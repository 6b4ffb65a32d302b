"""Main CLI application module.

This module provides the main entry point for the edge-deployer CLI.

Commands:
- install: Install or upgrade the Construct-X Edge Helm release
- uninstall: Remove the release, optionally with secrets or namespace
"""

import typer

from .commands import install, uninstall
from .context import build_cli_context

# Create the main CLI application
app = typer.Typer(
    help="🚀 Construct-X Edge deployer - Helm install and uninstall tool",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def _callback(ctx: typer.Context) -> None:
    if ctx.obj is None:
        ctx.obj = build_cli_context()


app.command("install")(install)
app.command("uninstall")(uninstall)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
