"""Tests for the preflight checker."""

import pytest

from edge_deployer.deployment.preflight import PreflightChecker
from edge_deployer.errors import ClusterUnreachable, MissingTool, NamespaceAbsent, PreconditionFailure


class TestPreflightChecker:
    @pytest.fixture
    def checker(self, cluster, cli_console) -> PreflightChecker:
        return PreflightChecker(cluster, cli_console)

    def test_all_checks_pass(self, checker, cluster, settings) -> None:
        result = checker.check(settings)

        assert result.ready
        result.raise_for_failure()
        assert cluster.operations() == ["tool_available", "tool_available", "cluster_info", "namespace_exists"]

    @pytest.mark.parametrize("tool", ["kubectl", "helm"])
    def test_missing_tool_short_circuits(self, checker, cluster, settings, tool) -> None:
        cluster.tools.discard(tool)

        result = checker.check(settings)

        assert isinstance(result.failure, MissingTool)
        assert tool in result.failure.message
        assert "cluster_info" not in cluster.operations()

    def test_unreachable_cluster(self, checker, cluster, settings) -> None:
        cluster.reachable = False

        result = checker.check(settings)

        assert isinstance(result.failure, ClusterUnreachable)
        assert "refused" in result.failure.details
        assert "namespace_exists" not in cluster.operations()

    def test_absent_namespace(self, checker, cluster, settings) -> None:
        cluster.namespaces.clear()

        result = checker.check(settings)

        assert isinstance(result.failure, NamespaceAbsent)
        with pytest.raises(PreconditionFailure) as excinfo:
            result.raise_for_failure()
        assert excinfo.value.stage.value == "preflight"
        assert "kubectl create namespace edc" in excinfo.value.details

    def test_namespace_lookup_error_is_not_absence(self, checker, cluster, settings) -> None:
        cluster.failures["namespace_exists"] = "Unable to connect to the server: i/o timeout"

        result = checker.check(settings)

        assert isinstance(result.failure, ClusterUnreachable)
        assert "i/o timeout" in result.failure.details

    def test_namespace_not_required(self, checker, cluster, settings) -> None:
        cluster.namespaces.clear()

        assert checker.check(settings, require_namespace=False).ready
        assert "namespace_exists" not in cluster.operations()

    def test_preflight_never_mutates(self, checker, cluster, settings) -> None:
        cluster.namespaces.clear()
        checker.check(settings)

        assert cluster.mutating_calls() == []
