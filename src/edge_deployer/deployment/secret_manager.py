"""Managed secret lifecycle.

The orchestrator owns the *presence* of a fixed set of secrets, never
their content after creation. ``ensure`` creates a secret only when it is
absent; ``remove`` deletes it only when present. Both process the whole
set even when one secret fails.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from loguru import logger

from ..constants import DeploymentConstants
from ..errors import SecretOperationError
from ..shell_commands import ClusterQueryError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..config import DeployerSettings
    from ..shared.console import CLIConsole
    from ..shell_commands import ShellCommands


class SecretKind(str, Enum):
    """How a managed secret is created."""

    GENERIC = "generic"
    TLS = "tls"


@dataclass(frozen=True)
class SecretPayload:
    """Values used to create one secret."""

    kind: SecretKind
    literals: dict[str, str] = field(default_factory=dict)
    cert_file: Path | None = None
    key_file: Path | None = None


class SecretSource(Protocol):
    """Supplies the values for a managed secret at creation time."""

    def payload_for(self, name: str) -> SecretPayload: ...


class ConfiguredSecretSource:
    """SecretSource backed by DeployerSettings.

    Literals configured under ``secrets:`` are layered over placeholder
    defaults; the placeholders are meant to be replaced in production
    with ``kubectl edit secret``.
    """

    def __init__(
        self,
        settings: DeployerSettings,
        constants: DeploymentConstants | None = None,
    ) -> None:
        self.settings = settings
        self.constants = constants or DeploymentConstants()

    def _defaults(self) -> dict[str, dict[str, str]]:
        placeholder = self.constants.PLACEHOLDER_VALUE
        return {
            self.constants.PRIMARY_CONFIG_SECRET: {
                "api-key": placeholder,
                "datasource-url": "jdbc:postgresql://postgres:5432/edc",
                "datasource-username": "edc",
                "datasource-password": placeholder,
            },
            self.constants.SECONDARY_CONFIG_SECRET: {
                "api-key": "change-me-weather-api-key",
                "database-url": "postgresql://postgres:5432/weather",
                "database-username": "weather",
                "database-password": placeholder,
            },
        }

    def payload_for(self, name: str) -> SecretPayload:
        configured = self.settings.secrets.get(name)

        if name == self.constants.TLS_SECRET:
            if configured is None or configured.cert_file is None or configured.key_file is None:
                raise SecretOperationError(
                    name, "no certificate configured (set secrets.<name>.cert_file and key_file)"
                )
            return SecretPayload(
                kind=SecretKind.TLS,
                cert_file=configured.cert_file,
                key_file=configured.key_file,
            )

        literals = dict(self._defaults().get(name, {}))
        if configured is not None:
            literals.update(configured.literals)
        if not literals:
            raise SecretOperationError(name, "no literal values configured")
        return SecretPayload(kind=SecretKind.GENERIC, literals=literals)


@dataclass
class SecretBatchResult:
    """Per-secret outcome of an ensure or remove batch."""

    created: list[str] = field(default_factory=list)
    already_present: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)
    errors: list[SecretOperationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class SecretLifecycleManager:
    """Creates and deletes the managed secrets idempotently."""

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        source: SecretSource | None = None,
    ) -> None:
        """Initialize the secret manager.

        Args:
            commands: Shell command executor
            console: CLI console for output
            source: Value source used when a secret has to be created
        """
        self.commands = commands
        self.console = console
        self.source = source

    def _create(self, name: str, namespace: str) -> None:
        if self.source is None:
            raise SecretOperationError(name, "no secret value source configured")
        payload = self.source.payload_for(name)
        kubectl = self.commands.kubectl
        if payload.kind is SecretKind.TLS:
            if payload.cert_file is None or payload.key_file is None:
                raise SecretOperationError(name, "TLS payload needs both cert_file and key_file")
            result = kubectl.create_tls_secret(name, namespace, payload.cert_file, payload.key_file)
        else:
            result = kubectl.create_generic_secret(name, namespace, payload.literals)
        if not result.success:
            raise SecretOperationError(name, result.output or "kubectl create secret failed")

    def _exists(self, name: str, namespace: str) -> bool:
        try:
            return self.commands.kubectl.secret_exists(name, namespace)
        except ClusterQueryError as e:
            raise SecretOperationError(name, f"presence check failed: {e.result.output or e}") from e

    def ensure(self, names: Iterable[str], namespace: str) -> SecretBatchResult:
        """Create each secret that is absent; leave present ones untouched."""
        batch = SecretBatchResult()
        self.console.info("Ensuring managed secrets...")

        for name in names:
            try:
                if self._exists(name, namespace):
                    self.console.warn(f"Secret '{name}' already exists")
                    batch.already_present.append(name)
                    continue
                self._create(name, namespace)
            except SecretOperationError as e:
                logger.info("Secret {} not created: {}", name, e.message)
                self.console.error(f"Secret '{name}' could not be created: {e.message}")
                batch.errors.append(e)
                continue
            self.console.ok(f"Secret '{name}' created")
            batch.created.append(name)

        return batch

    def remove(self, names: Iterable[str], namespace: str) -> SecretBatchResult:
        """Delete each secret that is present; report absent ones."""
        batch = SecretBatchResult()
        self.console.info("Removing managed secrets...")

        for name in names:
            try:
                if not self._exists(name, namespace):
                    self.console.warn(f"Secret '{name}' not found")
                    batch.not_found.append(name)
                    continue
                result = self.commands.kubectl.delete_secret(name, namespace)
                if not result.success:
                    raise SecretOperationError(name, result.output or "kubectl delete secret failed")
            except SecretOperationError as e:
                self.console.error(f"Secret '{name}' could not be removed: {e.message}")
                batch.errors.append(e)
                continue
            self.console.ok(f"Secret '{name}' removed")
            batch.removed.append(name)

        return batch

    def present(self, names: Iterable[str], namespace: str) -> list[str]:
        """Return the subset of names that currently exist.

        Raises:
            ClusterQueryError: If a presence check fails
        """
        return [name for name in names if self.commands.kubectl.secret_exists(name, namespace)]
