"""Release lifecycle commands.

This module provides the install and uninstall commands. Both build the
invocation settings once, then hand off to the ReleaseOrchestrator.
"""

from pathlib import Path
from typing import Annotated

import typer

from edge_deployer.config import DeployerSettings, load_settings
from edge_deployer.context import CLIContext, get_cli_context
from edge_deployer.deployment import InstallOptions, ReleaseOrchestrator, TeardownOptions
from edge_deployer.shared.console import with_error_handling
from edge_deployer.shared.log_setup import configure_logging

# ---------------------------------------------------------------------------
# Shared Options
# ---------------------------------------------------------------------------

NamespaceOption = Annotated[
    str | None,
    typer.Option(
        "--namespace",
        "-n",
        help="Kubernetes namespace (default: edc)",
    ),
]
ReleaseNameOption = Annotated[
    str | None,
    typer.Option(
        "--release-name",
        "-r",
        help="Helm release name (default: construct-x-edge)",
    ),
]
DryRunOption = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        help="Show what would be done without making changes",
    ),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML settings file with a top-level 'config:' key",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Log every shell command and its exit code",
    ),
]


# ---------------------------------------------------------------------------
# Orchestrator Factory
# ---------------------------------------------------------------------------


def _get_orchestrator(cli_ctx: CLIContext, settings: DeployerSettings) -> ReleaseOrchestrator:
    """Get a release orchestrator wired to the CLI context.

    Args:
        cli_ctx: Runtime dependencies
        settings: Invocation settings

    Returns:
        ReleaseOrchestrator for this invocation
    """
    return ReleaseOrchestrator(
        settings,
        cli_ctx.console,
        cli_ctx.commands,
        confirm=cli_ctx.confirm,
        constants=cli_ctx.constants,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@with_error_handling
def install(
    ctx: typer.Context,
    namespace: NamespaceOption = None,
    release_name: ReleaseNameOption = None,
    values_file: Annotated[
        Path | None,
        typer.Option(
            "--values-file",
            "-f",
            help="Values overlay passed to helm (default: values.yaml)",
        ),
    ] = None,
    chart_path: Annotated[
        Path | None,
        typer.Option(
            "--chart-path",
            help="Path to the umbrella chart (default: current directory)",
        ),
    ] = None,
    timeout: Annotated[
        str | None,
        typer.Option(
            "--timeout",
            help="How long helm waits for the release to become ready (e.g. 10m)",
        ),
    ] = None,
    skip_secrets: Annotated[
        bool,
        typer.Option(
            "--skip-secrets",
            help="Skip creation of the managed secrets",
        ),
    ] = False,
    skip_dependencies: Annotated[
        bool,
        typer.Option(
            "--skip-dependencies",
            help="Skip helm dependency update",
        ),
    ] = False,
    dry_run: DryRunOption = False,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Install or upgrade the Construct-X Edge release.

    Checks prerequisites, updates chart dependencies, validates the chart,
    ensures the managed secrets, then installs (or upgrades) atomically
    and waits for the pods to become ready.

    Examples:
        edge-deployer install
        edge-deployer install -n my-namespace -f my-values.yaml
        edge-deployer install --dry-run
    """
    configure_logging(verbose)
    cli_ctx = get_cli_context(ctx)
    cli_ctx.console.print_header("Installing Construct-X Edge")

    settings = load_settings(
        config_file,
        namespace=namespace,
        release_name=release_name,
        values_file=values_file,
        chart_path=chart_path,
        helm_timeout=timeout,
    )
    _get_orchestrator(cli_ctx, settings).install(
        InstallOptions(
            skip_secrets=skip_secrets,
            skip_dependencies=skip_dependencies,
            dry_run=dry_run,
        )
    )


@with_error_handling
def uninstall(
    ctx: typer.Context,
    namespace: NamespaceOption = None,
    release_name: ReleaseNameOption = None,
    remove_secrets: Annotated[
        bool,
        typer.Option(
            "--remove-secrets",
            help="Also remove the managed secrets",
        ),
    ] = False,
    remove_namespace: Annotated[
        bool,
        typer.Option(
            "--remove-namespace",
            help="Remove the entire namespace (implies removing everything in it)",
        ),
    ] = False,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Skip the confirmation prompt",
        ),
    ] = False,
    dry_run: DryRunOption = False,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Uninstall the Construct-X Edge release.

    By default only the Helm release and its labeled resources are
    removed; managed secrets and the namespace are preserved.

    Examples:
        edge-deployer uninstall
        edge-deployer uninstall --remove-secrets
        edge-deployer uninstall --remove-namespace --force
        edge-deployer uninstall --dry-run
    """
    configure_logging(verbose)
    cli_ctx = get_cli_context(ctx)
    cli_ctx.console.print_header("Uninstalling Construct-X Edge", style="red")

    settings = load_settings(
        config_file,
        namespace=namespace,
        release_name=release_name,
    )
    _get_orchestrator(cli_ctx, settings).uninstall(
        TeardownOptions(
            remove_secrets=remove_secrets,
            remove_namespace=remove_namespace,
            force=force,
            dry_run=dry_run,
        )
    )
