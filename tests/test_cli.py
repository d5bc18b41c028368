"""
Tests for the Typer command line interface.
"""

import json

import pendulum
import pytest
from google.auth.exceptions import TransportError
from google.oauth2.credentials import Credentials
from keyring.errors import PasswordDeleteError
from typer.testing import CliRunner

from freecal import __version__
from freecal.adapters import google_authenticator
from freecal.cli import app as app_module
from freecal.cli.app import app

runner = CliRunner()

EXPIRED_TOKEN = {
    "token": "stale-access-token",
    "refresh_token": "refresh-token",
    "client_id": "client-id.apps.googleusercontent.com",
    "client_secret": "client-secret",
    "expiry": "2000-01-01T00:00:00Z",
}


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run every command without picking up a real ./config.yaml."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestFindCommand:
    """Tests for `freecal find`."""

    def test_mock_week(self):
        """Mock mode prints one Markdown line per day with slots."""
        result = runner.invoke(app, ["find", "--mock", "--start", "2025-01-13", "--end", "2025-01-19"])

        assert result.exit_code == 0, result.output
        assert "- 2025-01-13（月） 09:00~10:00, 11:15~17:00" in result.output
        assert "- 2025-01-15（水） 13:00~16:30" in result.output
        assert "- 2025-01-17（金） 09:00~17:00" in result.output
        assert "2025-01-14（火）" not in result.output
        assert "2025-01-18" not in result.output

    def test_overrides_change_window(self):
        """--workstart/--workend/--min override the defaults."""
        result = runner.invoke(
            app,
            [
                "find", "--mock",
                "--start", "2025-01-16", "--end", "2025-01-16",
                "--workstart", "10:00", "--workend", "15:00", "--min", "30",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "- 2025-01-16（木） 11:00~14:00, 14:30~15:00" in result.output

    def test_config_file(self, isolated_cwd):
        """Values from a config file are used."""
        config_path = isolated_cwd / "custom.yaml"
        config_path.write_text("calendar_id: team@example.com\n", encoding="utf-8")

        result = runner.invoke(
            app,
            ["find", "--mock", "--config", str(config_path), "--start", "2025-01-17", "--end", "2025-01-17"],
        )

        assert result.exit_code == 0, result.output
        assert "No free slots found" in result.output

    def test_invalid_clock_exits_with_error(self):
        """A malformed clock is reported, not raised."""
        result = runner.invoke(app, ["find", "--mock", "--workstart", "9am"])

        assert result.exit_code == 1
        assert "want HH:MM" in result.output

    def test_end_before_start(self):
        """A reversed range is rejected."""
        result = runner.invoke(app, ["find", "--mock", "--start", "2025-01-17", "--end", "2025-01-13"])

        assert result.exit_code == 1
        assert "--end is before --start" in result.output

    def test_invalid_date(self):
        """Malformed dates are rejected."""
        result = runner.invoke(app, ["find", "--mock", "--start", "13/01/2025"])

        assert result.exit_code == 1
        assert "invalid --start" in result.output

    def test_week_flags_are_exclusive(self):
        """--this-week and --next-week cannot be combined."""
        result = runner.invoke(app, ["find", "--mock", "--this-week", "--next-week"])

        assert result.exit_code == 1

    def test_missing_credentials(self):
        """Without mock mode a missing credentials file is an error."""
        result = runner.invoke(
            app,
            ["find", "--credentials", "missing.json", "--token", "missing-token.json",
             "--start", "2025-01-13", "--end", "2025-01-13"],
            env={"PYTHON_KEYRING_BACKEND": "keyring.backends.null.Keyring"},
        )

        assert result.exit_code == 1
        assert "unable to read credentials" in result.output

    @pytest.mark.parametrize(
        "flag, expected_range",
        [
            ("--this-week", "Range: 2025-01-15 - 2025-01-19"),
            ("--next-week", "Range: 2025-01-20 - 2025-01-26"),
        ],
    )
    def test_week_shortcuts(self, monkeypatch, flag, expected_range):
        """Week shortcuts resolve relative to today (a Wednesday here)."""
        monkeypatch.setattr(
            app_module.pendulum, "today", lambda tz="local": pendulum.datetime(2025, 1, 15, tz=tz)
        )

        result = runner.invoke(app, ["find", "--mock", flag])

        assert result.exit_code == 0, result.output
        assert expected_range in result.output

    def test_this_week_starts_today(self, monkeypatch):
        """--this-week does not report days before today."""
        monkeypatch.setattr(
            app_module.pendulum, "today", lambda tz="local": pendulum.datetime(2025, 1, 15, tz=tz)
        )

        result = runner.invoke(app, ["find", "--mock", "--this-week"])

        assert result.exit_code == 0, result.output
        assert "2025-01-13" not in result.output
        assert "- 2025-01-15（水） 13:00~16:30" in result.output

    def test_refresh_network_failure(self, isolated_cwd, monkeypatch):
        """A network error while refreshing the token exits cleanly."""
        def refresh(self, request):
            raise TransportError("connection refused")

        monkeypatch.setattr(Credentials, "refresh", refresh)
        (isolated_cwd / "config.yaml").write_text("use_keyring: false\n", encoding="utf-8")
        (isolated_cwd / "token.json").write_text(json.dumps(EXPIRED_TOKEN), encoding="utf-8")

        result = runner.invoke(app, ["find", "--start", "2025-01-13", "--end", "2025-01-13"])

        assert result.exit_code == 1
        assert "unable to refresh token" in result.output
        assert "Traceback" not in result.output


class StubAuthenticator:
    """Returns a fixed token and records force_refresh."""

    cache_backend = "keyring"
    insecure_storage_warning = None

    def __init__(self):
        self.force_refresh = None

    def get_access_token(self, force_refresh=False):
        self.force_refresh = force_refresh
        return "token-123"


class StubCalendarClient:
    """Returns fixed calendar metadata."""

    def __init__(self, access_token):
        self.access_token = access_token

    def test_connection(self, calendar_id="primary"):
        return {"id": calendar_id, "summary": "Team Calendar", "timeZone": "Europe/Berlin"}


class TestTestAuthCommand:
    """Tests for `freecal test-auth`."""

    def test_mock(self):
        """Mock mode checks the bundled calendar without authenticating."""
        result = runner.invoke(app, ["test-auth", "--mock"])

        assert result.exit_code == 0, result.output
        assert "Authentication successful" in result.output
        assert "Mock Calendar" in result.output

    def test_google(self, monkeypatch):
        """The authenticated client's calendar metadata is shown."""
        authenticator = StubAuthenticator()
        monkeypatch.setattr(app_module, "_build_authenticator", lambda config: authenticator)
        monkeypatch.setattr(app_module, "GoogleCalendarClient", StubCalendarClient)

        result = runner.invoke(app, ["test-auth", "--force"])

        assert result.exit_code == 0, result.output
        assert "Team Calendar" in result.output
        assert "Europe/Berlin" in result.output
        assert authenticator.force_refresh is True

    def test_missing_credentials(self):
        """Authentication failures exit with status 1."""
        result = runner.invoke(
            app,
            ["test-auth"],
            env={"PYTHON_KEYRING_BACKEND": "keyring.backends.null.Keyring"},
        )

        assert result.exit_code == 1
        assert "unable to read credentials" in result.output


class TestClearCacheCommand:
    """Tests for `freecal clear-cache`."""

    def test_removes_token_file(self, isolated_cwd, monkeypatch):
        """The token file is deleted and a missing keyring entry is fine."""
        def delete_password(service, username):
            raise PasswordDeleteError("not found")

        monkeypatch.setattr(google_authenticator.keyring, "delete_password", delete_password)
        token_path = isolated_cwd / "token.json"
        token_path.write_text(json.dumps(EXPIRED_TOKEN), encoding="utf-8")

        result = runner.invoke(app, ["clear-cache"])

        assert result.exit_code == 0, result.output
        assert not token_path.exists()
        assert "Token cache cleared" in result.output

def test_version():
    """The version command prints the package version."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output
