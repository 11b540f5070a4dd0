"""Tests for the ideaflow CLI (cli/main.py)."""

from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from backend.app.errors import StateConflictError
from cli.main import app

runner = CliRunner()


def _session_factory() -> MagicMock:
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = AsyncMock()
    return factory


def test_create_user_rejects_bad_email():
    with patch("backend.app.services.users.create_user", AsyncMock()) as mock_create:
        result = runner.invoke(app, ["create-user", "Ann", "not-an-email"])

    assert result.exit_code == 1
    assert "Invalid email" in result.output
    mock_create.assert_not_called()


def test_create_user_reports_duplicate_email():
    duplicate = StateConflictError("A user with email ann@example.com already exists")
    with (
        patch("backend.app.db.init_db", AsyncMock()),
        patch("backend.app.db.async_session", _session_factory()),
        patch("backend.app.services.users.create_user", AsyncMock(side_effect=duplicate)),
    ):
        result = runner.invoke(app, ["create-user", "Ann", "ann@example.com"])

    assert result.exit_code == 1
    assert "already exists" in result.output
    assert "Traceback" not in result.output


def test_create_user_prints_id():
    user = MagicMock(id="user-123")
    with (
        patch("backend.app.db.init_db", AsyncMock()),
        patch("backend.app.db.async_session", _session_factory()),
        patch("backend.app.services.users.create_user", AsyncMock(return_value=user)) as create,
    ):
        result = runner.invoke(
            app, ["create-user", "Ann", "Ann@Example.com", "--role", "manager"]
        )

    assert result.exit_code == 0
    assert result.output.strip() == "user-123"
    _, name, email, roles = create.call_args.args
    assert (name, roles) == ("Ann", ["manager"])
    assert email.lower() == "ann@example.com"
