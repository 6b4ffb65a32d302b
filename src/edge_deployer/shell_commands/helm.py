"""Helm command abstractions.

This module provides commands for Helm release management, including
chart dependency resolution, static validation, atomic install/upgrade,
uninstallation, and status queries.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

from .types import ClusterQueryError, CommandResult, HelmRelease, ReleaseStatus

if TYPE_CHECKING:
    from .runner import CommandRunner


def _parse_release(data: dict[str, Any]) -> HelmRelease:
    try:
        revision = int(data.get("revision") or data.get("version") or 0)
    except (TypeError, ValueError):
        revision = 0
    status = data.get("status")
    if isinstance(status, dict):
        # `helm status -o json` nests status under info
        status = status.get("status")
    return HelmRelease(
        name=data.get("name", ""),
        namespace=data.get("namespace", ""),
        status=ReleaseStatus.parse(status),
        revision=revision,
        chart=data.get("chart", ""),
    )


class HelmCommands:
    """Helm-related shell commands.

    Provides operations for:
    - Chart preparation (dependency update, lint, template)
    - Release management (install, upgrade, uninstall)
    - Status queries (list releases, single release lookup)
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize Helm commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Chart Preparation
    # =========================================================================

    def dependency_update(self, chart_path: Path) -> CommandResult:
        """Fetch and package all dependencies declared in Chart.yaml."""
        return self._runner.run(["helm", "dependency", "update", str(chart_path)])

    def lint(self, chart_path: Path, *, values_file: Path | None = None) -> CommandResult:
        """Lint a chart, optionally against a values file."""
        cmd = ["helm", "lint", str(chart_path)]
        if values_file is not None:
            cmd.extend(["--values", str(values_file)])
        return self._runner.run(cmd)

    def template(
        self,
        release_name: str,
        chart_path: Path,
        namespace: str,
        values_file: Path,
    ) -> CommandResult:
        """Render the chart locally without submitting anything.

        Returns:
            CommandResult whose stdout holds the rendered manifest
        """
        return self._runner.run(
            [
                "helm",
                "template",
                release_name,
                str(chart_path),
                "--namespace",
                namespace,
                "--values",
                str(values_file),
                "--debug",
            ]
        )

    # =========================================================================
    # Release Management
    # =========================================================================

    def _apply(
        self,
        verb: str,
        release_name: str,
        chart_path: Path,
        namespace: str,
        values_file: Path,
        timeout: str,
    ) -> CommandResult:
        cmd = [
            "helm",
            verb,
            release_name,
            str(chart_path),
            "--namespace",
            namespace,
            "--values",
            str(values_file),
            "--wait",
            "--atomic",  # Roll back to the last good revision on failure
            "--timeout",
            timeout,
            "-o",
            "json",
        ]
        return self._runner.run(cmd)

    def install(
        self,
        release_name: str,
        chart_path: Path,
        namespace: str,
        values_file: Path,
        *,
        timeout: str = "10m",
    ) -> CommandResult:
        """Install a new release atomically.

        Blocks until the workloads are ready or the timeout elapses; on
        failure helm removes the partially installed release.
        """
        return self._apply("install", release_name, chart_path, namespace, values_file, timeout)

    def upgrade(
        self,
        release_name: str,
        chart_path: Path,
        namespace: str,
        values_file: Path,
        *,
        timeout: str = "10m",
    ) -> CommandResult:
        """Upgrade an existing release atomically.

        On failure helm rolls back to the previously deployed revision.
        """
        return self._apply("upgrade", release_name, chart_path, namespace, values_file, timeout)

    def uninstall(
        self,
        release_name: str,
        namespace: str,
        *,
        wait: bool = True,
        timeout: str = "10m",
    ) -> CommandResult:
        """Uninstall a Helm release.

        Args:
            release_name: Name of the release to uninstall
            namespace: Kubernetes namespace
            wait: Whether to wait for resources to be deleted
            timeout: Maximum time to wait for deletion

        Returns:
            CommandResult with uninstall status
        """
        cmd = ["helm", "uninstall", release_name, "--namespace", namespace]
        if wait:
            cmd.append("--wait")
        cmd.extend(["--timeout", timeout])
        return self._runner.run(cmd)

    # =========================================================================
    # Status Queries
    # =========================================================================

    def list_releases(self, namespace: str) -> list[HelmRelease]:
        """List every Helm release in a namespace, whatever its state.

        Args:
            namespace: Kubernetes namespace to query

        Returns:
            List of HelmRelease objects (empty when helm prints nothing usable)

        Raises:
            ClusterQueryError: If helm could not query the release store
        """
        cmd = ["helm", "list", "--namespace", namespace, "--all", "-o", "json"]
        result = self._runner.run(cmd)
        if not result.success:
            raise ClusterQueryError(" ".join(cmd), result)
        if not result.stdout:
            return []

        try:
            return [_parse_release(r) for r in json.loads(result.stdout)]
        except json.JSONDecodeError:
            logger.warning("Could not parse helm list output for namespace {}", namespace)
            return []

    def get_release(self, release_name: str, namespace: str) -> HelmRelease | None:
        """Return the release record for an exact name, or None."""
        for release in self.list_releases(namespace):
            if release.name == release_name:
                return release
        return None

    def release_exists(self, release_name: str, namespace: str) -> bool:
        """Check whether a release with this exact name exists in the namespace."""
        return self.get_release(release_name, namespace) is not None

    @staticmethod
    def parse_revision(result: CommandResult) -> int | None:
        """Extract the revision number from install/upgrade JSON output."""
        if not result.stdout:
            return None
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict):
            return None
        try:
            return int(data["version"])
        except (KeyError, TypeError, ValueError):
            return None
