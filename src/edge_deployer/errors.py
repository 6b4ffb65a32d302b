"""Error taxonomy for edge-deployer.

Fatal errors derive from DeploymentError and abort the current
invocation; each carries the stage it failed in so the final diagnostic
can name it. SecretOperationError and ResidualResourceWarning are
non-fatal: they are collected and reported in a summary. UserCancelled
signals a declined confirmation and maps to a clean exit.
"""

from __future__ import annotations

from enum import Enum

from .shell_commands.types import ResourceRef


class Stage(str, Enum):
    """Named stages of the install and uninstall flows."""

    CONFIGURATION = "configuration"
    PREFLIGHT = "preflight"
    DEPENDENCIES = "dependency resolution"
    VALIDATION = "validation"
    SECRETS = "secrets"
    APPLY = "apply"
    VERIFICATION = "verification"
    TEARDOWN = "teardown"


class DeploymentError(Exception):
    """Raised when a deployment operation fails."""

    stage: Stage = Stage.APPLY

    def __init__(self, message: str, details: str | None = None, stage: Stage | None = None):
        self.message = message
        self.details = details
        if stage is not None:
            self.stage = stage
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.stage.value}] {self.message}"


class ConfigurationError(DeploymentError):
    """Settings could not be loaded or failed validation."""

    stage = Stage.CONFIGURATION


class PreconditionFailure(DeploymentError):
    """A precondition checked before any mutating call does not hold."""

    stage = Stage.PREFLIGHT


class MissingTool(PreconditionFailure):
    """A required client tool is not on PATH."""


class ClusterUnreachable(PreconditionFailure):
    """The API server did not answer the liveness query."""


class NamespaceAbsent(PreconditionFailure):
    """The target namespace does not exist."""


class DependencyResolutionError(DeploymentError):
    """Chart dependencies could not be fetched or packaged."""

    stage = Stage.DEPENDENCIES


class ValidationError(DeploymentError):
    """The chart failed lint or could not be rendered."""

    stage = Stage.VALIDATION


class ApplyError(DeploymentError):
    """The atomic install/upgrade was rejected, timed out, or rolled back."""

    stage = Stage.APPLY


class SecretOperationError(Exception):
    """A single secret create/delete failed; the batch continues."""

    def __init__(self, secret_name: str, message: str):
        self.secret_name = secret_name
        self.message = message
        super().__init__(f"{secret_name}: {message}")


class ResidualResourceWarning(UserWarning):
    """Labeled resources or the release record survived teardown."""

    def __init__(self, message: str, resources: list[ResourceRef] | None = None):
        self.message = message
        self.resources = list(resources or [])
        super().__init__(message)


class UserCancelled(Exception):
    """The operator declined a destructive confirmation."""
