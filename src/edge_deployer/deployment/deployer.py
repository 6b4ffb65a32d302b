"""Release lifecycle orchestration.

This module provides the ReleaseOrchestrator which drives the install
and uninstall flows, delegating to specialized components:

    install:   preflight → plan → dependencies → validation → secrets
               → atomic apply → status check → readiness poll → summary
    uninstall: preflight → removal plan → confirmation → namespace
               deletion, or release + secrets + residual sweep
               → verification → summary
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..constants import DeploymentConstants
from ..errors import UserCancelled
from ..shared.console import ConsoleConfirmer
from .plan import InstallOptions, OperationPlan, TeardownOptions
from .poller import PollResult, VerificationPoller
from .preflight import PreflightChecker
from .release import ApplyResult, ReleaseReconciler
from .secret_manager import ConfiguredSecretSource, SecretBatchResult, SecretLifecycleManager, SecretSource
from .status_display import StatusDisplay
from .teardown import TeardownCoordinator, TeardownOutcome, TeardownResult

if TYPE_CHECKING:
    from ..config import DeployerSettings
    from ..shared.console import CLIConsole, Confirmer
    from ..shell_commands import ShellCommands


@dataclass
class InstallResult:
    """Everything an install invocation produced.

    Attributes:
        plan: The resolved operation plan
        rendered: Manifest rendered during validation
        apply: Apply outcome (None on dry-run)
        secrets: Secret batch outcome (None when skipped or dry-run)
        poll: Readiness poll outcome (None on dry-run)
    """

    plan: OperationPlan
    rendered: str
    apply: ApplyResult | None = None
    secrets: SecretBatchResult | None = None
    poll: PollResult | None = None


class ReleaseOrchestrator:
    """Installs, upgrades and tears down one release.

    Attributes:
        settings: Immutable invocation settings
        preflight: Tool, cluster and namespace checks
        reconciler: Install-vs-upgrade, validation and atomic apply
        secret_manager: Managed secret lifecycle
        poller: Post-apply readiness poller
        teardown: Removal planning and execution
        display: Status and summary rendering
    """

    def __init__(
        self,
        settings: DeployerSettings,
        console: CLIConsole,
        commands: ShellCommands,
        *,
        confirm: Confirmer | None = None,
        secret_source: SecretSource | None = None,
        constants: DeploymentConstants | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the orchestrator and its components.

        Args:
            settings: Invocation settings
            console: CLI console for output
            commands: Shell command executor
            confirm: Confirmation capability (default: interactive prompt)
            secret_source: Secret value source (default: from settings)
            constants: Optional deployment constants
            clock: Monotonic time source for polling
            sleep: Sleep function for polling and settle delays
        """
        self.settings = settings
        self.console = console
        self.commands = commands
        self.constants = constants or DeploymentConstants()

        self.display = StatusDisplay(console, commands, self.constants)
        self.preflight = PreflightChecker(commands, console, self.constants)
        self.reconciler = ReleaseReconciler(commands, console, self.constants)
        self.secret_manager = SecretLifecycleManager(
            commands,
            console,
            secret_source or ConfiguredSecretSource(settings, self.constants),
        )
        self.poller = VerificationPoller(
            commands,
            console,
            interval=settings.poll_interval,
            clock=clock,
            sleep=sleep,
        )
        self.teardown = TeardownCoordinator(
            commands,
            console,
            self.secret_manager,
            confirm or ConsoleConfirmer(console),
            self.display,
            self.constants,
            sleep=sleep,
        )

    def _announce(self, verb: str, dry_run: bool) -> None:
        self.console.info(f"Starting Construct-X Edge {verb}...")
        self.console.info(f"Target namespace: {self.settings.namespace}")
        self.console.info(f"Release name: {self.settings.release_name}")
        if dry_run:
            self.console.warn("Running in DRY RUN mode - no changes will be made")

    # =========================================================================
    # Install
    # =========================================================================

    def install(self, options: InstallOptions) -> InstallResult:
        """Install or upgrade the release.

        Raises:
            PreconditionFailure: Tool, cluster or namespace missing, or the
                release lookup went unanswered
            DependencyResolutionError: Chart dependencies failed
            ValidationError: Lint or render failed
            ApplyError: Atomic apply failed or release not deployed after it
        """
        settings = self.settings
        self._announce("installation", options.dry_run)
        self.console.info(f"Values file: {settings.values_file}")

        self.preflight.check(settings).raise_for_failure()

        rendered = self.reconciler.prepare(settings, skip_dependencies=options.skip_dependencies)
        plan = self.reconciler.plan(settings, options)
        result = InstallResult(plan=plan, rendered=rendered)

        if plan.dry_run:
            self.console.warn("Skipping secret creation")
            self.console.info(
                f"Dry run completed - chart would be {plan.action.value}ed with current configuration"
            )
            self.display.show_rendered(rendered)
            return result

        if plan.secrets:
            result.secrets = self.secret_manager.ensure(plan.secrets, settings.namespace)
        else:
            self.console.warn("Skipping secret creation")

        result.apply = self.reconciler.apply(plan)
        self.reconciler.verify_deployed(settings)

        self.console.info("Waiting for pods to be ready...")
        result.poll = self.poller.await_healthy(
            settings.namespace, settings.label_selector, settings.ready_timeout
        )
        if not result.poll.healthy:
            waiting = ", ".join(result.poll.not_ready) or "no pods matched yet"
            self.console.warn(
                f"Pods not ready after {settings.ready_timeout:.0f}s ({waiting}); "
                "the release itself is deployed"
            )

        self.console.info("Deployment status:")
        self.display.show_pods(result.poll)
        self.console.ok("Installation verification completed")
        self.display.show_install_info(settings)

        if result.secrets is not None and not result.secrets.ok:
            self.console.warn(f"{len(result.secrets.errors)} managed secret(s) could not be created:")
            self.display.show_secret_summary(result.secrets)

        self.console.ok("Installation process completed!")
        return result

    # =========================================================================
    # Uninstall
    # =========================================================================

    def uninstall(self, options: TeardownOptions) -> TeardownResult:
        """Remove the release according to the teardown options.

        Raises:
            PreconditionFailure: Tool or cluster missing
            DeploymentError: A target lookup, the namespace deletion or the
                release uninstall failed
            UserCancelled: The confirmation was declined
        """
        settings = self.settings
        self._announce("uninstallation", options.dry_run)

        self.preflight.check(settings, require_namespace=False).raise_for_failure()

        plan = self.teardown.plan(settings)
        result = self.teardown.execute(plan, settings, options)

        if result.outcome is TeardownOutcome.NOTHING_TO_DO:
            self.console.info("Nothing to uninstall")
            return result
        if result.outcome is TeardownOutcome.PLAN_ONLY:
            return result
        if result.outcome is TeardownOutcome.CANCELLED:
            raise UserCancelled()

        self.display.show_cleanup_info(settings, result)
        self.console.ok("Uninstallation process completed!")
        return result
