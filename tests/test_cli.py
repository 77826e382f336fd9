"""CLI tests — commands that work against the local session file only."""

import json

import pytest
from click.testing import CliRunner

from nimbus.cli.main import main


@pytest.fixture()
def session_file(tmp_path):
    return tmp_path / "session.json"


@pytest.fixture()
def runner(session_file):
    return CliRunner(
        env={
            "NIMBUS_CLIENT_SESSION_FILE": str(session_file),
            "NIMBUS_CLIENT_API_URL": "http://127.0.0.1:9",
        }
    )


def test_status_without_session(runner):
    result = runner.invoke(main, ["status"])
    assert result.exit_code == 0
    assert "Not logged in" in result.output


def test_status_with_stored_session(runner, session_file):
    session_file.write_text(json.dumps({"userToken": "tok-stored"}))
    result = runner.invoke(main, ["status"])
    assert result.exit_code == 0
    assert "Logged in" in result.output


def test_logout_forgets_token(runner, session_file):
    session_file.write_text(json.dumps({"userToken": "tok-stored"}))
    result = runner.invoke(main, ["logout"])
    assert result.exit_code == 0
    assert "userToken" not in json.loads(session_file.read_text())


def test_weather_requires_session(runner):
    result = runner.invoke(main, ["weather", "Paris"])
    assert result.exit_code == 1
    assert "not authenticated" in result.output


def test_register_rejects_short_password(runner):
    result = runner.invoke(
        main, ["register", "ada", "ada@x.com", "--password", "abc"]
    )
    assert result.exit_code == 1
    assert "at least 6 characters" in result.output


def test_login_unreachable_server(runner):
    result = runner.invoke(main, ["login", "ada@x.com", "--password", "secret1"])
    assert result.exit_code == 1
    assert "Error:" in result.output
