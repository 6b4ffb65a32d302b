"""Helm release reconciliation.

This module decides install-vs-upgrade, resolves chart dependencies,
validates the rendered output, and performs the atomic apply.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from ..constants import DeploymentConstants
from ..errors import ApplyError, DependencyResolutionError, PreconditionFailure, Stage, ValidationError
from ..shell_commands import ClusterQueryError
from .plan import ApplyAction, InstallOptions, OperationPlan

if TYPE_CHECKING:
    from ..config import DeployerSettings
    from ..shared.console import CLIConsole
    from ..shell_commands import HelmRelease, ShellCommands


@dataclass
class ApplyResult:
    """A successful atomic apply.

    Attributes:
        action: Whether the release was installed or upgraded
        revision: Revision now deployed
        previous_revision: Revision deployed before the apply, if any
    """

    action: ApplyAction
    revision: int
    previous_revision: int | None = None


class ReleaseReconciler:
    """Manages the Helm release for an install invocation.

    Handles:
    - Release lookup and install-vs-upgrade decision
    - Chart dependency resolution
    - Lint and full template render before mutation
    - Atomic install or upgrade
    - Post-apply status check
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        constants: DeploymentConstants | None = None,
    ) -> None:
        """Initialize the release reconciler.

        Args:
            commands: Shell command executor
            console: CLI console for output
            constants: Optional deployment constants
        """
        self.commands = commands
        self.console = console
        self.constants = constants or DeploymentConstants()

    # =========================================================================
    # Planning
    # =========================================================================

    def plan(self, settings: DeployerSettings, options: InstallOptions) -> OperationPlan:
        """Look up the release and resolve the actions for this invocation.

        No mutating call is issued here.

        Raises:
            PreconditionFailure: If the release store could not be queried
        """
        try:
            existing = self.commands.helm.get_release(settings.release_name, settings.namespace)
        except ClusterQueryError as e:
            raise PreconditionFailure(
                f"Could not look up release '{settings.release_name}'",
                details=e.result.output or str(e),
            ) from e
        if existing is None:
            action = ApplyAction.INSTALL
            current_revision = None
        else:
            action = ApplyAction.UPGRADE
            current_revision = existing.revision
            if not existing.is_deployed:
                self.console.warn(
                    f"Release '{existing.name}' is in '{existing.status.value}' state; "
                    "the upgrade may be rejected"
                )

        secrets: tuple[str, ...] = ()
        if not options.skip_secrets and not options.dry_run:
            secrets = self.constants.managed_secret_names

        plan = OperationPlan(
            settings=settings,
            action=action,
            current_revision=current_revision,
            secrets=secrets,
            skip_dependencies=options.skip_dependencies,
            dry_run=options.dry_run,
        )
        logger.info(
            "Plan: {} {} (revision {}), secrets={}, dry_run={}",
            plan.action.value,
            settings.release_name,
            current_revision,
            list(plan.secrets),
            plan.dry_run,
        )
        return plan

    # =========================================================================
    # Preparation
    # =========================================================================

    def resolve_dependencies(self, settings: DeployerSettings, *, skip: bool = False) -> None:
        """Fetch and package all sub-charts declared by the bundle."""
        if skip:
            self.console.warn("Skipping dependency update")
            return

        self.console.info("Updating Helm chart dependencies...")
        with self.console.status("[cyan]helm dependency update[/cyan]"):
            result = self.commands.helm.dependency_update(settings.chart_path)
        if not result.success:
            raise DependencyResolutionError(
                "Helm dependency update failed",
                details=(
                    f"{result.output}\n\n"
                    "Common causes:\n"
                    "  • A chart repository is unreachable\n"
                    "  • A dependency version in Chart.yaml does not exist\n"
                    "  • Repository credentials are missing"
                ),
            )
        self.console.ok("Helm dependencies updated")

    def validate(self, settings: DeployerSettings) -> str:
        """Lint the chart and render it against the values file.

        Returns:
            The rendered manifest

        Raises:
            ValidationError: If the values file is missing, lint fails,
                or the templates do not render
        """
        self.console.info("Validating Helm chart...")

        if not settings.values_file.exists():
            raise ValidationError(
                f"Values file not found: {settings.values_file}",
                details="Pass --values-file with the path to your values overlay.",
            )

        lint = self.commands.helm.lint(settings.chart_path, values_file=settings.values_file)
        if not lint.success:
            raise ValidationError("Helm chart validation failed", details=lint.output)

        self.console.info("Testing template rendering...")
        rendered = self.commands.helm.template(
            settings.release_name,
            settings.chart_path,
            settings.namespace,
            settings.values_file,
        )
        if not rendered.success:
            raise ValidationError("Template rendering failed", details=rendered.output)

        self.console.ok("Chart validation passed")
        return rendered.stdout

    def prepare(self, settings: DeployerSettings, *, skip_dependencies: bool = False) -> str:
        """Resolve dependencies then validate; returns the rendered manifest."""
        self.resolve_dependencies(settings, skip=skip_dependencies)
        return self.validate(settings)

    # =========================================================================
    # Apply
    # =========================================================================

    def apply(self, plan: OperationPlan) -> ApplyResult:
        """Submit the release atomically.

        Installs when no release was found, otherwise upgrades. Helm
        blocks until workloads are ready or the timeout elapses and rolls
        back on failure, so a failure here leaves the previous revision in
        place.

        Raises:
            ApplyError: On timeout, readiness failure or admission rejection
        """
        if plan.dry_run:
            raise ValueError("apply() called on a dry-run plan")

        settings = plan.settings
        helm = self.commands.helm
        submit = helm.install if plan.action is ApplyAction.INSTALL else helm.upgrade

        if plan.action is ApplyAction.INSTALL:
            self.console.info(f"Installing new release '{settings.release_name}'...")
        else:
            self.console.info(
                f"Release '{settings.release_name}' already exists, upgrading..."
            )

        with self.console.status(
            f"[cyan]Waiting up to {settings.helm_timeout} for the release to become ready...[/cyan]"
        ):
            result = submit(
                settings.release_name,
                settings.chart_path,
                settings.namespace,
                settings.values_file,
                timeout=settings.helm_timeout,
            )

        if not result.success:
            logger.info("{} failed with exit code {}", plan.action.value, result.returncode)
            raise ApplyError(
                f"Helm {plan.action.value} failed",
                details=(
                    f"{result.output}\n\n"
                    "The release was rolled back; the previously deployed "
                    "revision (if any) is unchanged.\n\n"
                    "Recovery steps:\n"
                    f"  1. Check pod status: kubectl get pods -n {settings.namespace}\n"
                    f"  2. View events: kubectl get events -n {settings.namespace} --sort-by=.lastTimestamp\n"
                    "  3. Fix the values overlay and re-run install"
                ),
            )

        revision = helm.parse_revision(result)
        if revision is None:
            try:
                release = helm.get_release(settings.release_name, settings.namespace)
            except ClusterQueryError as e:
                logger.warning("Could not re-read release revision: {}", e)
                release = None
            revision = release.revision if release else 0

        verb = "installed" if plan.action is ApplyAction.INSTALL else "upgraded"
        self.console.ok(f"Chart {verb} successfully (revision {revision})")
        return ApplyResult(
            action=plan.action,
            revision=revision,
            previous_revision=plan.current_revision,
        )

    def reconcile(self, plan: OperationPlan) -> ApplyResult:
        """Resolve dependencies, validate and apply a resolved plan."""
        self.prepare(plan.settings, skip_dependencies=plan.skip_dependencies)
        return self.apply(plan)

    def verify_deployed(self, settings: DeployerSettings) -> HelmRelease:
        """Re-read the release record and require the deployed state.

        Raises:
            ApplyError: If the release record is unreadable or not deployed
        """
        self.console.info("Verifying installation...")
        try:
            release = self.commands.helm.get_release(settings.release_name, settings.namespace)
        except ClusterQueryError as e:
            raise ApplyError(
                "Could not read the release record after apply",
                details=e.result.output or str(e),
                stage=Stage.VERIFICATION,
            ) from e
        if release is None or not release.is_deployed:
            state = release.status.value if release else "missing"
            raise ApplyError(
                "Release is not in deployed state",
                details=f"helm reports '{settings.release_name}' as {state}",
                stage=Stage.VERIFICATION,
            )
        return release
