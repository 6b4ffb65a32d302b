"""In-memory plans resolved before any mutating call is issued.

Plans live for the duration of one invocation and are never persisted;
every run re-derives them from the cluster.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..shared.console import PromptKind

if TYPE_CHECKING:
    from ..config import DeployerSettings
    from ..shell_commands import HelmRelease, ResourceRef


class ApplyAction(str, Enum):
    """How the release will be submitted."""

    INSTALL = "install"
    UPGRADE = "upgrade"


@dataclass(frozen=True)
class InstallOptions:
    """Install flags from the command line."""

    skip_secrets: bool = False
    skip_dependencies: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class OperationPlan:
    """Resolved install actions for one invocation.

    Attributes:
        settings: Invocation settings
        action: Install a new release or upgrade the existing one
        current_revision: Deployed revision before the apply, if any
        secrets: Managed secrets to ensure (empty when skipped or dry-run)
        skip_dependencies: Skip `helm dependency update`
        dry_run: Render and print only
    """

    settings: DeployerSettings
    action: ApplyAction
    current_revision: int | None = None
    secrets: tuple[str, ...] = ()
    skip_dependencies: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class TeardownOptions:
    """Uninstall flags from the command line."""

    remove_secrets: bool = False
    remove_namespace: bool = False
    force: bool = False
    dry_run: bool = False

    @property
    def prompt_kind(self) -> PromptKind:
        """The most destructive action requested."""
        if self.remove_namespace:
            return PromptKind.NAMESPACE
        if self.remove_secrets:
            return PromptKind.RELEASE_AND_SECRETS
        return PromptKind.RELEASE


@dataclass(frozen=True)
class RemovalPlan:
    """Read-only snapshot of what teardown would touch.

    Attributes:
        namespace: Target namespace
        release_name: Target release
        label_selector: Release identity selector
        namespace_exists: Whether the namespace is present
        release: The release record, or None when absent
        resources: Labeled objects currently present
        secrets_present: Managed secrets currently present
    """

    namespace: str
    release_name: str
    label_selector: str
    namespace_exists: bool
    release: HelmRelease | None = None
    resources: tuple[ResourceRef, ...] = field(default_factory=tuple)
    secrets_present: tuple[str, ...] = field(default_factory=tuple)

    @property
    def nothing_to_do(self) -> bool:
        return not self.namespace_exists or self.release is None
