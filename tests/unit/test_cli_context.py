"""Tests for CLI context dependency injection."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest
import typer

from edge_deployer.context import CLIContext, build_cli_context, get_cli_context
from edge_deployer.shared.console import ConsoleConfirmer


def test_cli_context_is_immutable():
    """Commands must not be able to swap dependencies mid-run."""
    ctx = CLIContext(
        console=Mock(),
        working_dir=Path("/test"),
        commands=Mock(),
        constants=Mock(),
        confirm=Mock(),
    )

    with pytest.raises(AttributeError):
        ctx.console = Mock()  # type: ignore[misc]


def test_build_cli_context_creates_all_dependencies(tmp_path):
    ctx = build_cli_context(tmp_path)

    assert ctx.working_dir == tmp_path
    assert ctx.commands is not None
    assert ctx.constants.DEFAULT_NAMESPACE == "edc"
    assert isinstance(ctx.confirm, ConsoleConfirmer)


def test_get_cli_context_from_typer_context():
    """An injected context on ctx.obj wins."""
    mock_ctx_obj = CLIContext(
        console=Mock(),
        working_dir=Path("/test"),
        commands=Mock(),
        constants=Mock(),
        confirm=Mock(),
    )

    typer_ctx = Mock(spec=typer.Context)
    typer_ctx.obj = mock_ctx_obj

    assert get_cli_context(typer_ctx) is mock_ctx_obj


def test_get_cli_context_with_invalid_obj_falls_back():
    """Anything other than a CLIContext on ctx.obj is ignored."""
    typer_ctx = Mock(spec=typer.Context)
    typer_ctx.obj = "invalid"

    with patch("edge_deployer.context.build_cli_context") as mock_build:
        mock_build.return_value = Mock(spec=CLIContext)

        get_cli_context(typer_ctx)

        mock_build.assert_called_once()


@patch("click.get_current_context")
def test_get_cli_context_uses_click_context_as_fallback(mock_get_click_ctx):
    """Without an explicit ctx the current click context is consulted."""
    mock_ctx_obj = Mock(spec=CLIContext)
    mock_click_context = Mock()
    mock_click_context.obj = mock_ctx_obj
    mock_get_click_ctx.return_value = mock_click_context

    # Mock(spec=...) passes the isinstance check
    assert get_cli_context(None) is mock_ctx_obj
    mock_get_click_ctx.assert_called_once_with(silent=True)
