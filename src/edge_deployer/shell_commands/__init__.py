"""Shell command abstractions for Kubernetes/Helm operations.

This package is the only place that talks to the cluster. It is
organized into specialized modules for each tool:

- helm: chart preparation and Helm release management
- kubectl: Kubernetes resource management

Usage:
    from edge_deployer.shell_commands import ShellCommands

    commands = ShellCommands()
    if commands.helm.release_exists("my-release", "my-namespace"):
        ...
"""

from pathlib import Path

from .helm import HelmCommands
from .kubectl import KubectlCommands
from .runner import CommandRunner
from .types import ClusterQueryError, CommandResult, HelmRelease, PodStatus, ReleaseStatus, ResourceRef


class ShellCommands:
    """Unified interface for all shell command operations.

    Attributes:
        helm: Helm-related commands
        kubectl: Kubernetes kubectl commands
    """

    def __init__(self, working_dir: Path | None = None) -> None:
        """Initialize the shell commands executor.

        Args:
            working_dir: Directory commands are executed from
        """
        self._runner = CommandRunner(working_dir)
        self.helm = HelmCommands(self._runner)
        self.kubectl = KubectlCommands(self._runner)

    def tool_available(self, tool: str) -> bool:
        """Check whether an executable is resolvable on PATH."""
        return self._runner.which(tool) is not None


__all__ = [
    "ShellCommands",
    "ClusterQueryError",
    "CommandResult",
    "HelmRelease",
    "ReleaseStatus",
    "ResourceRef",
    "PodStatus",
    "HelmCommands",
    "KubectlCommands",
    "CommandRunner",
]
