"""Selective, confirmation-gated teardown.

Teardown favors eventual convergence over strict atomicity: once the
release is uninstalled, failures while sweeping leftovers are reported
as warnings and a re-run (or manual cleanup) finishes the job.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from ..constants import DeploymentConstants
from ..errors import DeploymentError, ResidualResourceWarning, Stage
from ..shared.console import PromptKind
from ..shell_commands import ClusterQueryError
from .plan import RemovalPlan, TeardownOptions

if TYPE_CHECKING:
    from ..config import DeployerSettings
    from ..shared.console import CLIConsole, Confirmer
    from ..shell_commands import ResourceRef, ShellCommands
    from .secret_manager import SecretBatchResult, SecretLifecycleManager
    from .status_display import StatusDisplay


class TeardownOutcome(str, Enum):
    NOTHING_TO_DO = "nothing-to-do"
    PLAN_ONLY = "plan-only"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass
class TeardownResult:
    """What teardown did.

    Attributes:
        outcome: Terminal state of the teardown
        plan: The removal plan it acted on
        namespace_removed: The whole namespace was deleted
        release_removed: The release was uninstalled
        secrets: Per-secret outcome when secrets were removed
        warnings: Non-fatal residual warnings
    """

    outcome: TeardownOutcome
    plan: RemovalPlan
    namespace_removed: bool = False
    release_removed: bool = False
    secrets: SecretBatchResult | None = None
    warnings: list[ResidualResourceWarning] = field(default_factory=list)


class TeardownCoordinator:
    """Plans and executes release removal.

    Handles:
    - Read-only enumeration of release, labeled resources and secrets
    - Confirmation scoped to the most destructive action requested
    - Namespace deletion, which supersedes discrete removal
    - Release uninstall, optional secret removal, residual sweep
    - Post-removal verification
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        secrets: SecretLifecycleManager,
        confirm: Confirmer,
        display: StatusDisplay,
        constants: DeploymentConstants | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the teardown coordinator.

        Args:
            commands: Shell command executor
            console: CLI console for output
            secrets: Managed secret lifecycle
            confirm: Confirmation capability for destructive actions
            display: Renders the removal plan
            constants: Optional deployment constants
            sleep: Sleep function used for the residual settle delay
        """
        self.commands = commands
        self.console = console
        self.secrets = secrets
        self.confirm = confirm
        self.display = display
        self.constants = constants or DeploymentConstants()
        self._sleep = sleep

    # =========================================================================
    # Planning
    # =========================================================================

    def plan(self, settings: DeployerSettings) -> RemovalPlan:
        """Enumerate what exists; issues no mutating call.

        Raises:
            DeploymentError: If a lookup fails for a reason other than
                NotFound (stage: teardown)
        """
        self.console.info("Verifying targets for uninstallation...")
        try:
            return self._enumerate(settings)
        except ClusterQueryError as e:
            raise DeploymentError(
                "Could not determine what is installed",
                details=f"{e}\n\nNothing was removed. Re-run uninstall once the cluster answers.",
                stage=Stage.TEARDOWN,
            ) from e

    def _enumerate(self, settings: DeployerSettings) -> RemovalPlan:
        namespace = settings.namespace
        if not self.commands.kubectl.namespace_exists(namespace):
            return RemovalPlan(
                namespace=namespace,
                release_name=settings.release_name,
                label_selector=settings.label_selector,
                namespace_exists=False,
            )

        return RemovalPlan(
            namespace=namespace,
            release_name=settings.release_name,
            label_selector=settings.label_selector,
            namespace_exists=True,
            release=self.commands.helm.get_release(settings.release_name, namespace),
            resources=tuple(
                self.commands.kubectl.list_resources(namespace, settings.label_selector)
            ),
            secrets_present=tuple(
                self.secrets.present(self.constants.managed_secret_names, namespace)
            ),
        )

    # =========================================================================
    # Execution
    # =========================================================================

    def _describe(self, plan: RemovalPlan, kind: PromptKind) -> str:
        if kind is PromptKind.NAMESPACE:
            return f"Namespace '{plan.namespace}' and everything in it will be deleted."
        lines = [
            f"Release '{plan.release_name}' in namespace '{plan.namespace}'",
            f"  • {len(plan.resources)} labeled resource(s)",
        ]
        if kind is PromptKind.RELEASE_AND_SECRETS:
            present = ", ".join(plan.secrets_present) or "none present"
            lines.append(f"  • managed secrets: {present}")
        else:
            lines.append("  • managed secrets are preserved")
        return "\n".join(lines)

    def execute(
        self,
        plan: RemovalPlan,
        settings: DeployerSettings,
        options: TeardownOptions,
    ) -> TeardownResult:
        """Carry out a removal plan.

        Raises:
            DeploymentError: If the namespace deletion or release uninstall
                fails (stage: teardown)
        """
        if not plan.namespace_exists:
            self.console.warn(f"Namespace '{plan.namespace}' does not exist - nothing to uninstall")
            return TeardownResult(TeardownOutcome.NOTHING_TO_DO, plan)

        if plan.release is None:
            self.console.warn(
                f"Helm release '{plan.release_name}' does not exist in namespace '{plan.namespace}'"
            )
            return TeardownResult(TeardownOutcome.NOTHING_TO_DO, plan)

        self.console.ok(f"Found release '{plan.release_name}' in namespace '{plan.namespace}'")
        self.display.show_removal_plan(plan)

        if options.dry_run:
            self.console.info("Dry run completed - no changes made")
            return TeardownResult(TeardownOutcome.PLAN_ONLY, plan)

        kind = options.prompt_kind
        if not options.force and not self.confirm(kind, self._describe(plan, kind)):
            logger.info("Teardown declined at {} confirmation", kind.value)
            return TeardownResult(TeardownOutcome.CANCELLED, plan)

        if options.remove_namespace:
            self._remove_namespace(settings)
            return TeardownResult(TeardownOutcome.COMPLETED, plan, namespace_removed=True)

        result = TeardownResult(TeardownOutcome.COMPLETED, plan)
        self._remove_release(settings)
        result.release_removed = True

        if options.remove_secrets:
            result.secrets = self.secrets.remove(self.constants.managed_secret_names, settings.namespace)

        sweep_warning = self.sweep(settings)
        if sweep_warning is not None:
            result.warnings.append(sweep_warning)
        result.warnings.extend(self.verify(settings))
        return result

    def _remove_namespace(self, settings: DeployerSettings) -> None:
        namespace = settings.namespace
        self.console.info(f"Removing namespace '{namespace}'...")
        self.console.warn(f"This will remove ALL resources in namespace '{namespace}'")
        with self.console.status(f"[bold red]Deleting namespace {namespace}..."):
            result = self.commands.kubectl.delete_namespace(namespace, timeout=settings.namespace_timeout)
        if not result.success:
            raise DeploymentError(
                f"Failed to delete namespace '{namespace}'",
                details=result.output,
                stage=Stage.TEARDOWN,
            )
        self.console.ok(f"Namespace '{namespace}' removed")

    def _remove_release(self, settings: DeployerSettings) -> None:
        self.console.info(f"Removing Helm release '{settings.release_name}'...")
        with self.console.status(f"[bold red]helm uninstall {settings.release_name}..."):
            result = self.commands.helm.uninstall(
                settings.release_name,
                settings.namespace,
                timeout=settings.helm_timeout,
            )
        if not result.success:
            raise DeploymentError(
                f"Failed to uninstall release '{settings.release_name}'",
                details=result.output,
                stage=Stage.TEARDOWN,
            )
        self.console.ok(f"Helm release '{settings.release_name}' removed successfully")

    def _residual(self, settings: DeployerSettings) -> list[ResourceRef]:
        return self.commands.kubectl.list_resources(settings.namespace, settings.label_selector)

    def sweep(self, settings: DeployerSettings) -> ResidualResourceWarning | None:
        """Bulk delete labeled leftovers; never raises.

        Returns:
            A warning naming what survived, or None when clean
        """
        self.console.info("Cleaning up any remaining resources...")
        remaining = self._residual(settings)
        if not remaining:
            self.console.ok("No remaining resources found")
            return None

        self.console.warn(f"Found {len(remaining)} remaining resources, attempting cleanup...")
        result = self.commands.kubectl.delete_resources(
            settings.namespace,
            settings.label_selector,
            timeout=settings.sweep_timeout,
        )
        if not result.success:
            logger.warning("Residual delete failed: {}", result.output)

        self._sleep(settings.settle_delay)
        remaining = self._residual(settings)
        if remaining:
            self.console.warn("Some resources may still exist. Manual cleanup may be required:")
            for ref in remaining:
                self.console.print(f"  [dim]{ref}[/dim]")
            return ResidualResourceWarning(
                f"{len(remaining)} labeled resource(s) survived the sweep", remaining
            )

        self.console.ok("All labeled resources cleaned up")
        return None

    def verify(self, settings: DeployerSettings) -> list[ResidualResourceWarning]:
        """Confirm the release record and labeled resources are gone."""
        self.console.info("Verifying uninstallation...")
        warnings: list[ResidualResourceWarning] = []

        try:
            if self.commands.helm.release_exists(settings.release_name, settings.namespace):
                warnings.append(
                    ResidualResourceWarning(
                        f"Release '{settings.release_name}' still exists after uninstallation"
                    )
                )
        except ClusterQueryError as e:
            warnings.append(ResidualResourceWarning(f"Could not confirm the release record is gone: {e}"))

        remaining = self._residual(settings)
        if remaining:
            warnings.append(
                ResidualResourceWarning("Some resources with release labels still exist", remaining)
            )

        for warning in warnings:
            self.console.warn(warning.message)
        if not warnings:
            self.console.ok("Uninstallation verification completed successfully")
        return warnings
