"""Rich rendering of plans, statuses and summaries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ..constants import DeploymentConstants
from ..shell_commands import ClusterQueryError

if TYPE_CHECKING:
    from ..config import DeployerSettings
    from ..shared.console import CLIConsole
    from ..shell_commands import HelmRelease, ShellCommands
    from .plan import RemovalPlan
    from .poller import PollResult
    from .secret_manager import SecretBatchResult
    from .teardown import TeardownResult


class StatusDisplay:
    """Renders deployment state for the operator."""

    def __init__(
        self,
        console: CLIConsole,
        commands: ShellCommands,
        constants: DeploymentConstants | None = None,
    ) -> None:
        self.console = console
        self.commands = commands
        self.constants = constants or DeploymentConstants()

    def _release_table(self, releases: list[HelmRelease]) -> Table:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Release")
        table.add_column("Namespace")
        table.add_column("Revision", justify="right")
        table.add_column("Status")
        table.add_column("Chart")
        for release in releases:
            color = "green" if release.is_deployed else "yellow"
            table.add_row(
                release.name,
                release.namespace,
                str(release.revision),
                f"[{color}]{release.status.value}[/{color}]",
                release.chart,
            )
        return table

    def show_rendered(self, manifest: str) -> None:
        """Print a rendered manifest with YAML highlighting."""
        self.console.print(Syntax(manifest, "yaml", theme="ansi_dark", word_wrap=True))

    def show_pods(self, poll: PollResult) -> None:
        """Print the last observed pod readiness snapshot."""
        if not poll.pods:
            self.console.print("  [dim]No pods matched the release selector[/dim]")
            return
        table = Table(show_header=True, header_style="bold")
        table.add_column("Pod")
        table.add_column("Phase")
        table.add_column("Ready")
        table.add_column("Restarts", justify="right")
        for pod in poll.pods:
            ready = "[green]yes[/green]" if pod.ready else "[yellow]no[/yellow]"
            table.add_row(pod.name, pod.phase, ready, str(pod.restarts))
        self.console.print(table)

    def show_removal_plan(self, plan: RemovalPlan) -> None:
        """Print what an uninstall would remove."""
        self.console.info(
            f"Uninstallation plan for release '{plan.release_name}' in namespace '{plan.namespace}':"
        )

        self.console.print("\n📋 [bold]Helm Release Information:[/bold]")
        if plan.release is not None:
            self.console.print(self._release_table([plan.release]))
        else:
            self.console.print("  [dim]Release not found[/dim]")

        self.console.print("\n🏗️  [bold]Resources to be removed:[/bold]")
        if plan.resources:
            for ref in plan.resources:
                self.console.print(f"  {ref}")
        else:
            self.console.print("  [dim]No labeled resources found[/dim]")

        self.console.print("\n🔐 [bold]Secrets that can be removed (with --remove-secrets):[/bold]")
        if plan.secrets_present:
            for name in plan.secrets_present:
                self.console.print(f"  secret/{name}")
        else:
            self.console.print("  [dim]No managed secrets found[/dim]")
        self.console.print()

    def show_secret_summary(self, batch: SecretBatchResult) -> None:
        """Print one line per secret outcome."""
        for name in batch.created:
            self.console.print(f"  [green]created[/green]          secret/{name}")
        for name in batch.already_present:
            self.console.print(f"  [dim]already present[/dim]  secret/{name}")
        for name in batch.removed:
            self.console.print(f"  [green]removed[/green]          secret/{name}")
        for name in batch.not_found:
            self.console.print(f"  [dim]not found[/dim]        secret/{name}")
        for error in batch.errors:
            self.console.print(f"  [red]failed[/red]           secret/{error.secret_name}: {error.message}")

    def show_install_info(self, settings: DeployerSettings) -> None:
        """Post-installation information and next steps."""
        namespace = settings.namespace
        self.console.info("Post-installation information:")

        self.console.print("\n📋 [bold]Release Information:[/bold]")
        try:
            self.console.print(self._release_table(self.commands.helm.list_releases(namespace)))
        except ClusterQueryError as e:
            self.console.warn(f"Could not list releases: {e}")

        self.console.print("\n🏗️  [bold]Deployed Resources:[/bold]")
        resources = self.commands.kubectl.list_resources(namespace, settings.label_selector)
        for ref in resources:
            self.console.print(f"  {ref}")
        if not resources:
            self.console.print("  [dim]No labeled resources found[/dim]")

        self.console.print("\n🔐 [bold]Secrets:[/bold]")
        try:
            present = [
                name
                for name in self.constants.managed_secret_names
                if self.commands.kubectl.secret_exists(name, namespace)
            ]
        except ClusterQueryError as e:
            self.console.warn(f"Could not check managed secrets: {e}")
        else:
            for name in present:
                self.console.print(f"  secret/{name}")
            if not present:
                self.console.print("  [dim]No managed secrets found[/dim]")

        selector = settings.label_selector
        self.console.print(
            Panel(
                "1. Update secrets with production values:\n"
                f"   kubectl edit secret {self.constants.PRIMARY_CONFIG_SECRET} -n {namespace}\n"
                f"   kubectl edit secret {self.constants.SECONDARY_CONFIG_SECRET} -n {namespace}\n\n"
                "2. Configure ingress if enabled:\n"
                f"   kubectl get ingress -n {namespace}\n\n"
                "3. Check logs:\n"
                f"   kubectl logs -n {namespace} -l {selector}\n\n"
                "4. Access services:\n"
                f"   kubectl port-forward -n {namespace} svc/<service-name> <local-port>:<service-port>",
                title="📝 Next Steps",
                border_style="cyan",
            )
        )

    def show_cleanup_info(self, settings: DeployerSettings, result: TeardownResult) -> None:
        """Post-uninstall summary of what was removed or preserved."""
        namespace = settings.namespace
        lines: list[str] = []
        if result.namespace_removed:
            lines.append(f"• Namespace '{namespace}' removed (including release and secrets)")
        else:
            lines.append(
                f"• Helm release '{settings.release_name}' removed from namespace '{namespace}'"
            )
            if result.secrets is not None:
                lines.append("• Managed secrets removed")
            else:
                lines.append("• Secrets preserved (use --remove-secrets to remove them)")
            lines.append(f"• Namespace '{namespace}' preserved")

        for warning in result.warnings:
            lines.append(f"[yellow]⚠ {warning.message}[/yellow]")
            lines.extend(f"    [dim]{ref}[/dim]" for ref in warning.resources)

        self.console.print(Panel("\n".join(lines), title="✅ Uninstallation Summary", border_style="green"))

        if result.secrets is not None:
            self.show_secret_summary(result.secrets)

        if not result.namespace_removed:
            secrets = " ".join(self.constants.managed_secret_names)
            self.console.print(
                Panel(
                    "1. To remove remaining secrets:\n"
                    f"   kubectl delete secret {secrets} -n {namespace}\n\n"
                    "2. To remove the namespace entirely:\n"
                    f"   kubectl delete namespace {namespace}\n\n"
                    "3. To reinstall:\n"
                    f"   edge-deployer install -n {namespace}",
                    title="💡 Next Steps",
                    border_style="cyan",
                )
            )
