"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click
import typer

from edge_deployer.constants import DeploymentConstants
from edge_deployer.shared.console import CLIConsole, Confirmer, ConsoleConfirmer, console
from edge_deployer.shell_commands import ShellCommands


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands."""

    console: CLIConsole
    working_dir: Path
    commands: ShellCommands
    constants: DeploymentConstants
    confirm: Confirmer


def build_cli_context(working_dir: Path | None = None) -> CLIContext:
    """Build a fresh CLIContext."""
    working_dir = working_dir or Path.cwd()

    return CLIContext(
        console=console,
        working_dir=working_dir,
        commands=ShellCommands(working_dir),
        constants=DeploymentConstants(),
        confirm=ConsoleConfirmer(console),
    )


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext from Typer, falling back to a new instance."""
    context = ctx or click.get_current_context(silent=True)
    if context and isinstance(context.obj, CLIContext):
        return context.obj
    return build_cli_context()
