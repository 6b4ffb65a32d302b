"""Data types for shell command results.

This module contains all dataclasses and type definitions used across
the shell command modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "CommandResult",
    "HelmRelease",
    "ReleaseStatus",
    "ResourceRef",
    "PodStatus",
    "ClusterQueryError",
]


@dataclass
class CommandResult:
    """Outcome of a single shell command.

    Attributes:
        success: Whether the command exited with code 0
        stdout: Captured standard output
        stderr: Captured standard error
        returncode: Process exit code
    """

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    @property
    def output(self) -> str:
        """Best available diagnostic text (stderr first, then stdout)."""
        return (self.stderr or self.stdout).strip()


class ReleaseStatus(str, Enum):
    """Helm release status values we care about."""

    UNKNOWN = "unknown"
    PENDING = "pending"
    DEPLOYED = "deployed"
    FAILED = "failed"
    SUPERSEDED = "superseded"

    @classmethod
    def parse(cls, value: str | None) -> ReleaseStatus:
        """Map a raw helm status string onto a ReleaseStatus.

        Helm reports several pending flavours (pending-install,
        pending-upgrade, pending-rollback); all of them map to PENDING.
        """
        if not value:
            return cls.UNKNOWN
        value = value.lower()
        if value.startswith("pending"):
            return cls.PENDING
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass
class HelmRelease:
    """Information about a Helm release.

    Attributes:
        name: Release name
        namespace: Kubernetes namespace
        status: Release status (deployed, failed, pending, superseded)
        revision: Release revision number
        chart: Chart name and version as reported by helm
    """

    name: str
    namespace: str
    status: ReleaseStatus
    revision: int
    chart: str = ""

    @property
    def is_deployed(self) -> bool:
        return self.status is ReleaseStatus.DEPLOYED


@dataclass(frozen=True)
class ResourceRef:
    """A platform object discovered through a label selector."""

    kind: str
    name: str

    def __str__(self) -> str:
        return f"{self.kind.lower()}/{self.name}"


@dataclass
class PodStatus:
    """Readiness snapshot of a single pod."""

    name: str
    phase: str
    ready: bool
    restarts: int = 0
    containers: list[str] = field(default_factory=list)


class ClusterQueryError(Exception):
    """A read-only query failed for a reason other than NotFound.

    Attributes:
        command: Short description of the query that failed
        result: The failed command result
    """

    def __init__(self, command: str, result: CommandResult):
        self.command = command
        self.result = result
        super().__init__(f"{command} failed: {result.output or f'exit code {result.returncode}'}")
