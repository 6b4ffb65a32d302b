"""Shared fixtures.

FakeCluster stands in for ShellCommands: it keeps releases, secrets,
namespaces and labeled resources in memory and records every call made
through its helm and kubectl facades, so tests can assert on exactly
which mutating operations were issued.
"""

from __future__ import annotations

import io
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from edge_deployer.config import DeployerSettings
from edge_deployer.deployment import ReleaseOrchestrator
from edge_deployer.shared.console import CLIConsole
from edge_deployer.shell_commands import (
    ClusterQueryError,
    CommandResult,
    HelmRelease,
    PodStatus,
    ReleaseStatus,
    ResourceRef,
)

MUTATING_CALLS = frozenset(
    {
        "install",
        "upgrade",
        "uninstall",
        "create_generic_secret",
        "create_tls_secret",
        "delete_secret",
        "delete_resources",
        "delete_namespace",
    }
)

RENDERED_MANIFEST = "---\napiVersion: v1\nkind: Service\nmetadata:\n  name: edc-connector\n"

DEFAULT_RESOURCES = (
    ResourceRef("Deployment", "edc-connector"),
    ResourceRef("Service", "edc-connector"),
    ResourceRef("Pod", "edc-connector-7d9f8-abcde"),
)


def _ok(stdout: str = "") -> CommandResult:
    return CommandResult(success=True, stdout=stdout)


def _failed(stderr: str) -> CommandResult:
    return CommandResult(success=False, stderr=stderr, returncode=1)


class FakeHelm:
    """In-memory stand-in for HelmCommands."""

    def __init__(self, cluster: FakeCluster) -> None:
        self._cluster = cluster

    def dependency_update(self, chart_path: Path) -> CommandResult:
        return self._cluster.record("dependency_update", chart_path) or _ok()

    def lint(self, chart_path: Path, *, values_file: Path | None = None) -> CommandResult:
        return self._cluster.record("lint", chart_path, values_file) or _ok("1 chart(s) linted")

    def template(self, release_name: str, chart_path: Path, namespace: str, values_file: Path) -> CommandResult:
        return self._cluster.record("template", release_name, namespace) or _ok(RENDERED_MANIFEST)

    def _apply(self, verb: str, release_name: str, namespace: str, timeout: str) -> CommandResult:
        failure = self._cluster.record(verb, release_name, namespace, timeout)
        if failure is not None:
            return failure
        cluster = self._cluster
        existing = cluster.releases.get((release_name, namespace))
        revision = existing.revision + 1 if existing else 1
        cluster.releases[(release_name, namespace)] = HelmRelease(
            name=release_name,
            namespace=namespace,
            status=cluster.status_after_apply,
            revision=revision,
            chart="construct-x-edge-0.1.0",
        )
        cluster.resources.setdefault(namespace, list(DEFAULT_RESOURCES))
        return _ok(json.dumps({"name": release_name, "version": revision}))

    def install(self, release_name, chart_path, namespace, values_file, *, timeout="10m") -> CommandResult:
        return self._apply("install", release_name, namespace, timeout)

    def upgrade(self, release_name, chart_path, namespace, values_file, *, timeout="10m") -> CommandResult:
        return self._apply("upgrade", release_name, namespace, timeout)

    def uninstall(self, release_name: str, namespace: str, *, wait: bool = True, timeout: str = "10m") -> CommandResult:
        failure = self._cluster.record("uninstall", release_name, namespace)
        if failure is not None:
            return failure
        cluster = self._cluster
        if (release_name, namespace) not in cluster.releases:
            return _failed(f"Error: uninstall: Release not loaded: {release_name}: release: not found")
        if not cluster.sticky_release:
            del cluster.releases[(release_name, namespace)]
        cluster.resources[namespace] = list(cluster.sticky_resources)
        return _ok(f'release "{release_name}" uninstalled')

    def list_releases(self, namespace: str) -> list[HelmRelease]:
        self._cluster.query("list_releases", namespace)
        return [r for (_, ns), r in self._cluster.releases.items() if ns == namespace]

    def get_release(self, release_name: str, namespace: str) -> HelmRelease | None:
        self._cluster.query("get_release", release_name, namespace)
        return self._cluster.releases.get((release_name, namespace))

    def release_exists(self, release_name: str, namespace: str) -> bool:
        self._cluster.query("release_exists", release_name, namespace)
        return (release_name, namespace) in self._cluster.releases

    @staticmethod
    def parse_revision(result: CommandResult) -> int | None:
        return int(json.loads(result.stdout)["version"])


class FakeKubectl:
    """In-memory stand-in for KubectlCommands."""

    def __init__(self, cluster: FakeCluster) -> None:
        self._cluster = cluster

    def cluster_info(self, *, request_timeout: str = "10s") -> CommandResult:
        failure = self._cluster.record("cluster_info")
        if failure is not None:
            return failure
        if not self._cluster.reachable:
            return _failed("The connection to the server localhost:8080 was refused")
        return _ok("Kubernetes control plane is running")

    def namespace_exists(self, namespace: str) -> bool:
        self._cluster.query("namespace_exists", namespace)
        return namespace in self._cluster.namespaces

    def delete_namespace(self, namespace: str, *, timeout: str = "300s") -> CommandResult:
        failure = self._cluster.record("delete_namespace", namespace, timeout)
        if failure is not None:
            return failure
        cluster = self._cluster
        cluster.namespaces.discard(namespace)
        cluster.resources.pop(namespace, None)
        cluster.secrets = {key: v for key, v in cluster.secrets.items() if key[1] != namespace}
        cluster.releases = {key: r for key, r in cluster.releases.items() if key[1] != namespace}
        return _ok(f'namespace "{namespace}" deleted')

    def secret_exists(self, name: str, namespace: str) -> bool:
        self._cluster.query("secret_exists", name, namespace)
        return (name, namespace) in self._cluster.secrets

    def create_generic_secret(self, name: str, namespace: str, literals: dict[str, str]) -> CommandResult:
        failure = self._cluster.record("create_generic_secret", name, namespace)
        if failure is not None:
            return failure
        if (name, namespace) in self._cluster.secrets:
            return _failed(f'Error from server (AlreadyExists): secrets "{name}" already exists')
        self._cluster.secrets[(name, namespace)] = dict(literals)
        return _ok(f"secret/{name} created")

    def create_tls_secret(self, name: str, namespace: str, cert_file: Path, key_file: Path) -> CommandResult:
        failure = self._cluster.record("create_tls_secret", name, namespace)
        if failure is not None:
            return failure
        self._cluster.secrets[(name, namespace)] = {"tls.crt": str(cert_file), "tls.key": str(key_file)}
        return _ok(f"secret/{name} created")

    def delete_secret(self, name: str, namespace: str) -> CommandResult:
        failure = self._cluster.record("delete_secret", name, namespace)
        if failure is not None:
            return failure
        self._cluster.secrets.pop((name, namespace), None)
        return _ok(f'secret "{name}" deleted')

    def list_resources(self, namespace: str, label_selector: str, *, resource_types: str = "all") -> list[ResourceRef]:
        self._cluster.record("list_resources", namespace, label_selector)
        return list(self._cluster.resources.get(namespace, []))

    def delete_resources(
        self,
        namespace: str,
        label_selector: str,
        *,
        resource_types: str = "all",
        timeout: str = "300s",
    ) -> CommandResult:
        failure = self._cluster.record("delete_resources", namespace, label_selector, timeout)
        if failure is not None:
            return failure
        self._cluster.resources[namespace] = list(self._cluster.undeletable)
        return _ok()

    def get_pods(self, namespace: str, label_selector: str) -> list[PodStatus]:
        self._cluster.record("get_pods", namespace, label_selector)
        snapshots = self._cluster.pod_snapshots
        if len(snapshots) > 1:
            return snapshots.pop(0)
        return list(snapshots[0]) if snapshots else []


class FakeCluster:
    """In-memory cluster exposing the ShellCommands surface.

    Attributes:
        tools: Executables resolvable on PATH
        reachable: Whether cluster-info succeeds
        namespaces: Existing namespaces
        releases: Helm releases keyed by (name, namespace)
        secrets: Secret data keyed by (name, namespace)
        resources: Labeled resources per namespace
        pod_snapshots: Successive get_pods answers; the last one repeats
        failures: Operation name (or "op:name") mapped to stderr to fail with;
            lookups raise ClusterQueryError instead of returning a result
        sticky_resources: Resources left behind by helm uninstall
        undeletable: Resources that survive the residual sweep
        sticky_release: The release record survives helm uninstall
        status_after_apply: Status recorded by a successful apply
        calls: Every call as (operation, *args)
    """

    def __init__(self) -> None:
        self.tools = {"kubectl", "helm"}
        self.reachable = True
        self.namespaces: set[str] = {"edc"}
        self.releases: dict[tuple[str, str], HelmRelease] = {}
        self.secrets: dict[tuple[str, str], dict[str, str]] = {}
        self.resources: dict[str, list[ResourceRef]] = {}
        self.pod_snapshots: list[list[PodStatus]] = [[PodStatus("edc-connector-7d9f8-abcde", "Running", True)]]
        self.failures: dict[str, str] = {}
        self.sticky_resources: list[ResourceRef] = []
        self.undeletable: list[ResourceRef] = []
        self.sticky_release = False
        self.status_after_apply = ReleaseStatus.DEPLOYED
        self.calls: list[tuple[Any, ...]] = []
        self.helm = FakeHelm(self)
        self.kubectl = FakeKubectl(self)

    def record(self, operation: str, *args: Any) -> CommandResult | None:
        """Record a call; return a failed result when one is configured."""
        self.calls.append((operation, *args))
        keyed = f"{operation}:{args[0]}" if args else operation
        stderr = self.failures.get(keyed, self.failures.get(operation))
        return _failed(stderr) if stderr is not None else None

    def query(self, operation: str, *args: Any) -> None:
        """Record a read-only lookup; raise when a failure is configured."""
        failure = self.record(operation, *args)
        if failure is not None:
            raise ClusterQueryError(operation, failure)

    def tool_available(self, tool: str) -> bool:
        self.record("tool_available", tool)
        return tool in self.tools

    def add_release(
        self,
        name: str = "construct-x-edge",
        namespace: str = "edc",
        *,
        revision: int = 1,
        status: ReleaseStatus = ReleaseStatus.DEPLOYED,
    ) -> HelmRelease:
        release = HelmRelease(name, namespace, status, revision, chart="construct-x-edge-0.1.0")
        self.releases[(name, namespace)] = release
        self.resources.setdefault(namespace, list(DEFAULT_RESOURCES))
        return release

    def add_secret(self, name: str, namespace: str = "edc", **data: str) -> None:
        self.secrets[(name, namespace)] = dict(data)

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]

    def mutating_calls(self) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    def count(self, operation: str) -> int:
        return self.operations().count(operation)


class FakeClock:
    """Monotonic clock advanced only by its own sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cli_console() -> CLIConsole:
    """Console writing into a buffer instead of the terminal."""
    return CLIConsole(Console(file=io.StringIO(), width=200))


@pytest.fixture
def output(cli_console: CLIConsole) -> Callable[[], str]:
    """Return everything printed to the buffered console so far."""
    return lambda: cli_console.console.file.getvalue()


@pytest.fixture
def values_file(tmp_path: Path) -> Path:
    path = tmp_path / "values.yaml"
    path.write_text("global:\n  domain: edge.example.com\n")
    return path


@pytest.fixture
def settings(tmp_path: Path, values_file: Path) -> DeployerSettings:
    return DeployerSettings(
        chart_path=tmp_path,
        values_file=values_file,
        ready_timeout=30,
        poll_interval=5,
        settle_delay=5,
    )


@pytest.fixture
def confirm() -> MagicMock:
    return MagicMock(return_value=True)


@pytest.fixture
def orchestrator(
    settings: DeployerSettings,
    cli_console: CLIConsole,
    cluster: FakeCluster,
    confirm: MagicMock,
    clock: FakeClock,
) -> ReleaseOrchestrator:
    return ReleaseOrchestrator(
        settings,
        cli_console,
        cluster,  # type: ignore[arg-type]
        confirm=confirm,
        clock=clock,
        sleep=clock.sleep,
    )
