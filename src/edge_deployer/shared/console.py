"""Shared utilities for CLI output.

This module provides console output, the confirmation capability used
before destructive actions, and the error-handling decorator applied to
every command.
"""

from collections.abc import Callable
from enum import Enum
from functools import wraps
from typing import Protocol

import typer
from rich.console import Console, ConsoleRenderable
from rich.panel import Panel
from rich.status import Status

from edge_deployer.errors import DeploymentError, UserCancelled


class PromptKind(str, Enum):
    """Which destructive action a confirmation covers.

    Ordered from least to most destructive; the prompt shown is the one
    for the most destructive action requested.
    """

    RELEASE = "release"
    RELEASE_AND_SECRETS = "release-and-secrets"
    NAMESPACE = "namespace"


class Confirmer(Protocol):
    """Capability that asks the operator to approve a destructive action."""

    def __call__(self, kind: PromptKind, description: str) -> bool: ...


class CLIConsole:
    """Operator-facing output.

    Colored info/ok/warn/error lines on top of a rich Console, plus the
    confirmation panel and the fatal-error diagnostic.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        self.console.print(msg if msg is not None else "")

    def status(self, status: str) -> Status:
        return self.console.status(status)

    def info(self, msg: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan]  {msg}")

    def ok(self, msg: str) -> None:
        self.console.print(f"[green]✅[/green] {msg}")

    def error(self, msg: str) -> None:
        self.console.print(f"[red]❌[/red] {msg}")

    def warn(self, msg: str) -> None:
        self.console.print(f"[yellow]⚠️[/yellow]  {msg}")

    def confirm_action(
        self,
        action: str,
        details: str | None = None,
        extra_warning: str | None = None,
        force: bool = False,
    ) -> bool:
        """Ask the operator to type yes before a destructive step.

        Args:
            action: Headline of the destructive step
            details: What the step will touch
            extra_warning: Highlighted caveat shown under the details
            force: Approve without asking

        Returns:
            True only for an explicit "y" or "yes"; EOF and Ctrl-C decline
        """
        if force:
            return True

        body = "\n\n".join(
            part
            for part in (
                f"[bold red]⚠️  {action}[/bold red]",
                details,
                f"[yellow]{extra_warning}[/yellow]" if extra_warning else None,
            )
            if part
        )
        self.console.print(Panel(body, title="Confirmation Required", border_style="red"))

        try:
            answer = self.console.input("\n[bold]Are you sure?[/bold] \\[yes/no]: ")
        except (KeyboardInterrupt, EOFError):
            self.console.print("\n[dim]Cancelled.[/dim]")
            return False
        return answer.strip().lower() in ("y", "yes")

    def handle_error(self, error: DeploymentError, exit_code: int = 1) -> None:
        """Print a diagnostic naming the failed stage, then exit."""
        self.error(
            f"[bold red]{error.message}[/bold red] "
            f"[dim](failed stage: {error.stage.value})[/dim]"
        )
        if error.details:
            self.console.print(Panel(error.details, title="Details", border_style="red"))
        raise typer.Exit(exit_code)

    def print_header(self, title: str, style: str = "blue") -> None:
        self.console.print(Panel.fit(f"[bold {style}]{title}[/bold {style}]", border_style=style))


class ConsoleConfirmer:
    """Interactive Confirmer backed by a CLIConsole."""

    _ACTIONS = {
        PromptKind.RELEASE: "Remove the Helm release (secrets will be preserved)",
        PromptKind.RELEASE_AND_SECRETS: "Remove the Helm release and managed secrets",
        PromptKind.NAMESPACE: "Remove the ENTIRE namespace and ALL its resources",
    }

    def __init__(self, cli_console: "CLIConsole") -> None:
        self.console = cli_console

    def __call__(self, kind: PromptKind, description: str) -> bool:
        extra_warning = None
        if kind is PromptKind.NAMESPACE:
            extra_warning = (
                "Every object in the namespace is deleted, including resources "
                "not created by this release. This cannot be undone."
            )
        return self.console.confirm_action(
            self._ACTIONS[kind],
            details=description,
            extra_warning=extra_warning,
        )


def with_error_handling(func: Callable[..., None]) -> Callable[..., None]:
    """Map the outcome of a command onto its exit code.

    A DeploymentError exits 1 after naming the failed stage, a declined
    confirmation exits 0 and Ctrl-C exits 130. Anything else propagates.
    """

    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except DeploymentError as e:
            console.handle_error(e)
        except UserCancelled:
            console.info("Operation cancelled by user")
            raise typer.Exit(0) from None
        except KeyboardInterrupt:
            console.print("\n[dim]Operation cancelled by user.[/dim]")
            raise typer.Exit(130) from None

    return wrapper


# Process-wide console used by the commands and the error handler
console = CLIConsole()
