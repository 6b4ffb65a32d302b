"""Read-only checks run before any mutating action.

Checks run in order and stop at the first failure:
1. required client tools are on PATH
2. the cluster answers a lightweight liveness query
3. the target namespace exists (skipped for uninstall, where an absent
   namespace simply means there is nothing to remove)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from ..constants import DeploymentConstants
from ..errors import ClusterUnreachable, MissingTool, NamespaceAbsent, PreconditionFailure
from ..shell_commands import ClusterQueryError

if TYPE_CHECKING:
    from ..config import DeployerSettings
    from ..shared.console import CLIConsole
    from ..shell_commands import ShellCommands


@dataclass
class PreflightResult:
    """Outcome of the preflight checks.

    Attributes:
        failure: The first failed precondition, or None when ready
    """

    failure: PreconditionFailure | None = None

    @property
    def ready(self) -> bool:
        return self.failure is None

    def raise_for_failure(self) -> None:
        """Raise the recorded failure, if any."""
        if self.failure is not None:
            raise self.failure


class PreflightChecker:
    """Verifies tools, cluster reachability and namespace presence."""

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        constants: DeploymentConstants | None = None,
    ) -> None:
        """Initialize the preflight checker.

        Args:
            commands: Shell command executor
            console: CLI console for output
            constants: Optional deployment constants
        """
        self.commands = commands
        self.console = console
        self.constants = constants or DeploymentConstants()

    def check(self, settings: DeployerSettings, *, require_namespace: bool = True) -> PreflightResult:
        """Run the checks, short-circuiting on the first failure.

        Args:
            settings: Invocation settings
            require_namespace: Treat a missing namespace as a failure

        Returns:
            PreflightResult; never raises for a failed check
        """
        self.console.info("Checking prerequisites...")

        for tool in self.constants.REQUIRED_TOOLS:
            if not self.commands.tool_available(tool):
                logger.info("Preflight: {} not found on PATH", tool)
                return PreflightResult(
                    MissingTool(
                        f"{tool} is not installed or not in PATH",
                        details=f"Install {tool} and make sure it is on your PATH.",
                    )
                )

        result = self.commands.kubectl.cluster_info()
        if not result.success:
            logger.info("Preflight: cluster-info exited {}", result.returncode)
            return PreflightResult(
                ClusterUnreachable(
                    "Cannot connect to Kubernetes cluster",
                    details=result.output or "kubectl cluster-info failed",
                )
            )

        self.console.ok("Prerequisites check passed")

        if not require_namespace:
            return PreflightResult()

        namespace = settings.namespace
        self.console.info(f"Verifying namespace '{namespace}' exists...")
        try:
            exists = self.commands.kubectl.namespace_exists(namespace)
        except ClusterQueryError as e:
            logger.info("Preflight: namespace lookup failed: {}", e)
            return PreflightResult(
                ClusterUnreachable(
                    f"Could not look up namespace '{namespace}'",
                    details=e.result.output or str(e),
                )
            )
        if not exists:
            return PreflightResult(
                NamespaceAbsent(
                    f"Namespace '{namespace}' does not exist",
                    details=f"Create it first:\n  kubectl create namespace {namespace}",
                )
            )

        self.console.ok(f"Namespace '{namespace}' exists")
        return PreflightResult()
