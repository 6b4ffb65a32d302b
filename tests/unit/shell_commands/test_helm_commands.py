"""Tests for Helm command construction and output parsing."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from edge_deployer.shell_commands.helm import HelmCommands
from edge_deployer.shell_commands.types import ClusterQueryError, CommandResult, ReleaseStatus


@pytest.fixture
def mock_runner() -> MagicMock:
    """Create a mock command runner."""
    runner = MagicMock()
    runner.run.return_value = CommandResult(success=True, stdout="", stderr="", returncode=0)
    return runner


@pytest.fixture
def helm_commands(mock_runner: MagicMock) -> HelmCommands:
    """Create HelmCommands instance with mock runner."""
    return HelmCommands(mock_runner)


class TestHelmApply:
    """Tests for atomic install and upgrade."""

    def test_install_is_atomic_and_waits(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        """Install should wait, roll back on failure and honor the timeout."""
        helm_commands.install("construct-x-edge", Path("."), "edc", Path("values.yaml"), timeout="10m")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[:4] == ["helm", "install", "construct-x-edge", "."]
        assert "--wait" in cmd
        assert "--atomic" in cmd
        assert cmd[cmd.index("--timeout") + 1] == "10m"
        assert cmd[cmd.index("--namespace") + 1] == "edc"
        assert cmd[cmd.index("--values") + 1] == "values.yaml"

    def test_upgrade_uses_upgrade_verb(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        """Upgrade should share the atomic flags with install."""
        helm_commands.upgrade("construct-x-edge", Path("."), "edc", Path("values.yaml"), timeout="5m")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[1] == "upgrade"
        assert "--atomic" in cmd
        assert "5m" in cmd

    def test_parse_revision_from_json_output(self) -> None:
        """The revision comes from the 'version' field of the JSON output."""
        result = CommandResult(success=True, stdout=json.dumps({"name": "r", "version": 4}))
        assert HelmCommands.parse_revision(result) == 4

    @pytest.mark.parametrize("stdout", ["", "not json", "[]", '{"name": "r"}'])
    def test_parse_revision_returns_none_on_unusable_output(self, stdout: str) -> None:
        """Unparseable output should not raise."""
        assert HelmCommands.parse_revision(CommandResult(success=True, stdout=stdout)) is None


class TestHelmUninstall:
    """Tests for Helm uninstall command."""

    def test_uninstall_waits_by_default(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.uninstall("construct-x-edge", "edc")

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[:3] == ["helm", "uninstall", "construct-x-edge"]
        assert "--wait" in cmd
        assert "10m" in cmd

    def test_uninstall_without_wait(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        """Uninstall with wait=False should not include --wait flag."""
        helm_commands.uninstall("construct-x-edge", "edc", wait=False, timeout="2m")

        cmd = mock_runner.run.call_args[0][0]
        assert "--wait" not in cmd
        assert "2m" in cmd


class TestHelmReleaseQueries:
    """Tests for release listing and lookup."""

    def test_list_releases_parses_json(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(
            success=True,
            stdout=json.dumps(
                [
                    {
                        "name": "construct-x-edge",
                        "namespace": "edc",
                        "revision": "3",
                        "status": "deployed",
                        "chart": "construct-x-edge-0.1.0",
                    },
                    {"name": "other", "namespace": "edc", "revision": "1", "status": "pending-install"},
                ]
            ),
        )

        releases = helm_commands.list_releases("edc")

        assert [r.name for r in releases] == ["construct-x-edge", "other"]
        assert releases[0].revision == 3
        assert releases[0].is_deployed
        assert releases[1].status is ReleaseStatus.PENDING
        cmd = mock_runner.run.call_args[0][0]
        assert "--all" in cmd

    def test_list_releases_failure_raises(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(
            success=False, stderr="Error: Kubernetes cluster unreachable", returncode=1
        )

        with pytest.raises(ClusterQueryError, match="cluster unreachable"):
            helm_commands.list_releases("edc")
        with pytest.raises(ClusterQueryError):
            helm_commands.get_release("construct-x-edge", "edc")

    def test_list_releases_empty_on_invalid_json(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(success=True, stdout="{not json")
        assert helm_commands.list_releases("edc") == []

    def test_release_exists_matches_exact_name(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        """A release whose name merely contains the target must not match."""
        mock_runner.run.return_value = CommandResult(
            success=True,
            stdout=json.dumps([{"name": "construct-x-edge-old", "namespace": "edc", "status": "deployed"}]),
        )

        assert helm_commands.release_exists("construct-x-edge", "edc") is False
        assert helm_commands.get_release("construct-x-edge-old", "edc") is not None


class TestChartPreparation:
    def test_lint_with_values_file(self, helm_commands: HelmCommands, mock_runner: MagicMock) -> None:
        helm_commands.lint(Path("chart"), values_file=Path("values.yaml"))

        assert mock_runner.run.call_args[0][0] == ["helm", "lint", "chart", "--values", "values.yaml"]

    def test_template_renders_with_namespace(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.template("construct-x-edge", Path("."), "edc", Path("values.yaml"))

        cmd = mock_runner.run.call_args[0][0]
        assert cmd[:3] == ["helm", "template", "construct-x-edge"]
        assert cmd[cmd.index("--namespace") + 1] == "edc"

    def test_dependency_update(self, helm_commands: HelmCommands, mock_runner: MagicMock) -> None:
        helm_commands.dependency_update(Path("."))

        assert mock_runner.run.call_args[0][0] == ["helm", "dependency", "update", "."]
