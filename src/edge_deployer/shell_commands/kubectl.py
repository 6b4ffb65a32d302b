"""Kubectl command abstractions.

This module provides commands for Kubernetes resource management via
kubectl: cluster liveness, namespace lookups and deletion, secret
presence, label-selected resource discovery and bulk deletion, and pod
readiness snapshots.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

from .types import ClusterQueryError, CommandResult, PodStatus, ResourceRef

if TYPE_CHECKING:
    from .runner import CommandRunner


def _is_not_found(result: CommandResult) -> bool:
    return "NotFound" in result.stderr or "not found" in result.stderr


def _pod_status(item: dict[str, Any]) -> PodStatus:
    status = item.get("status", {})
    conditions = status.get("conditions") or []
    ready = any(c.get("type") == "Ready" and c.get("status") == "True" for c in conditions)
    container_statuses = status.get("containerStatuses") or []
    return PodStatus(
        name=item.get("metadata", {}).get("name", ""),
        phase=status.get("phase", "Unknown"),
        ready=ready,
        restarts=sum(int(c.get("restartCount", 0)) for c in container_statuses),
        containers=[c.get("name", "") for c in container_statuses],
    )


class KubectlCommands:
    """Kubectl-related shell commands.

    Provides operations for:
    - Cluster liveness checks
    - Namespace existence and deletion
    - Secret presence, creation and deletion
    - Resource discovery and deletion by label
    - Pod readiness queries
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize kubectl commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Cluster
    # =========================================================================

    def cluster_info(self, *, request_timeout: str = "10s") -> CommandResult:
        """Lightweight liveness query against the API server."""
        return self._runner.run(["kubectl", "cluster-info", f"--request-timeout={request_timeout}"])

    # =========================================================================
    # Namespace Management
    # =========================================================================

    def _exists(self, cmd: list[str]) -> bool:
        result = self._runner.run(cmd)
        if result.success:
            return True
        if _is_not_found(result):
            return False
        raise ClusterQueryError(" ".join(cmd), result)

    def namespace_exists(self, namespace: str) -> bool:
        """Check if a namespace exists.

        Raises:
            ClusterQueryError: If the lookup failed for a reason other than NotFound
        """
        return self._exists(["kubectl", "get", "namespace", namespace])

    def delete_namespace(self, namespace: str, *, timeout: str = "300s") -> CommandResult:
        """Delete a Kubernetes namespace and all its resources."""
        return self._runner.run(
            ["kubectl", "delete", "namespace", namespace, f"--timeout={timeout}"]
        )

    # =========================================================================
    # Secrets
    # =========================================================================

    def secret_exists(self, name: str, namespace: str) -> bool:
        """Check if a secret exists in a namespace.

        Raises:
            ClusterQueryError: If the lookup failed for a reason other than NotFound
        """
        return self._exists(["kubectl", "get", "secret", name, "--namespace", namespace])

    def create_generic_secret(
        self,
        name: str,
        namespace: str,
        literals: dict[str, str],
    ) -> CommandResult:
        """Create an Opaque secret from literal key/value pairs."""
        cmd = ["kubectl", "create", "secret", "generic", name, "--namespace", namespace]
        cmd.extend(f"--from-literal={key}={value}" for key, value in literals.items())
        return self._runner.run(cmd)

    def create_tls_secret(
        self,
        name: str,
        namespace: str,
        cert_file: Path,
        key_file: Path,
    ) -> CommandResult:
        """Create a kubernetes.io/tls secret from certificate and key files."""
        return self._runner.run(
            [
                "kubectl",
                "create",
                "secret",
                "tls",
                name,
                "--namespace",
                namespace,
                f"--cert={cert_file}",
                f"--key={key_file}",
            ]
        )

    def delete_secret(self, name: str, namespace: str) -> CommandResult:
        """Delete a secret by name."""
        return self._runner.run(["kubectl", "delete", "secret", name, "--namespace", namespace])

    # =========================================================================
    # Resources by Label
    # =========================================================================

    def list_resources(
        self,
        namespace: str,
        label_selector: str,
        *,
        resource_types: str = "all",
    ) -> list[ResourceRef]:
        """List resources matching a label selector.

        Returns:
            ResourceRef per matched object (empty on error)
        """
        result = self._runner.run(
            [
                "kubectl",
                "get",
                resource_types,
                "--namespace",
                namespace,
                "--selector",
                label_selector,
                "-o",
                "json",
            ]
        )
        if not result.success or not result.stdout:
            return []
        try:
            items = json.loads(result.stdout).get("items", [])
        except json.JSONDecodeError:
            logger.warning("Could not parse resource list for selector {}", label_selector)
            return []
        return [
            ResourceRef(kind=item.get("kind", ""), name=item.get("metadata", {}).get("name", ""))
            for item in items
        ]

    def delete_resources(
        self,
        namespace: str,
        label_selector: str,
        *,
        resource_types: str = "all",
        timeout: str = "300s",
    ) -> CommandResult:
        """Bulk delete resources matching a label selector."""
        return self._runner.run(
            [
                "kubectl",
                "delete",
                resource_types,
                "--namespace",
                namespace,
                "--selector",
                label_selector,
                f"--timeout={timeout}",
            ]
        )

    # =========================================================================
    # Pod Operations
    # =========================================================================

    def get_pods(self, namespace: str, label_selector: str) -> list[PodStatus]:
        """Get readiness snapshots for pods matching a selector."""
        result = self._runner.run(
            ["kubectl", "get", "pods", "--namespace", namespace, "--selector", label_selector, "-o", "json"]
        )
        if not result.success or not result.stdout:
            return []
        try:
            items = json.loads(result.stdout).get("items", [])
        except json.JSONDecodeError:
            logger.warning("Could not parse pod list for selector {}", label_selector)
            return []
        return [_pod_status(item) for item in items]
