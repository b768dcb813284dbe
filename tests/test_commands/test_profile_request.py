"""Tests for the ``profile`` and ``request`` commands."""

from __future__ import annotations

import functools
import json

import httpx
import pytest

from cliauth.app import app
from cliauth.auth.manager import AuthSystem
from cliauth.client.sync_client import SyncClient
from cliauth.config import get_profile, load_settings, update_settings
from cliauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NO_HANDLER,
    EXIT_SUCCESS,
)
from cliauth.models import Credential, TokenPayload

FLAGS = ["--no-color", "--plain"]


def _invoke(cli_runner, system: AuthSystem, *args: str, **kwargs):
    return cli_runner.invoke(app, [*FLAGS, *args], obj={"auth": system}, **kwargs)


@pytest.fixture
def transport_log(monkeypatch: pytest.MonkeyPatch) -> list[httpx.Request]:
    """Route ``cliauth request`` through a mock transport and record requests."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/missing":
            return httpx.Response(404, json={"error": "missing"})
        return httpx.Response(200, json={"user": "me"})

    monkeypatch.setattr(
        "cliauth.commands.request.SyncClient",
        functools.partial(SyncClient, transport=httpx.MockTransport(handler)),
    )
    return seen


class TestProfileAdd:
    def test_add_default_profile(self, cli_runner, auth_system) -> None:
        result = _invoke(
            cli_runner, auth_system,
            "profile", "add", "prod", "--auth-server-name", "oidc", "--credentials-name", "work", "--default",
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert 'Profile "prod" saved (default).' in result.output
        settings = load_settings()
        assert settings.default_profile == "prod"
        assert settings.profiles["prod"].credentials_name == "work"

    def test_set_values(self, cli_runner, auth_system, make_handler) -> None:
        auth_system.register("partner", make_handler(keys=["location"]))

        result = _invoke(
            cli_runner, auth_system,
            "profile", "add", "keys", "--auth-server-name", "partner", "--set", "location=query",
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert get_profile("keys").model_extra == {"location": "query"}

    def test_prompts_for_missing_keys(self, cli_runner, auth_system, make_handler) -> None:
        auth_system.register("partner", make_handler(keys=["location", "key_name"]))

        result = _invoke(
            cli_runner, auth_system,
            "profile", "add", "keys", "--auth-server-name", "partner", "--set", "location=header",
            input="X-Token\n",
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert get_profile("keys").model_extra == {"location": "header", "key_name": "X-Token"}

    def test_bad_assignment(self, cli_runner, auth_system) -> None:
        result = _invoke(
            cli_runner, auth_system, "profile", "add", "p", "--auth-server-name", "oidc", "--set", "novalue",
        )
        assert result.exit_code == EXIT_INVALID_USAGE

    def test_no_handler(self, cli_runner, auth_system) -> None:
        result = _invoke(cli_runner, auth_system, "profile", "add", "p", "--auth-server-name", "nowhere")
        assert result.exit_code == EXIT_NO_HANDLER

    def test_list(self, cli_runner, auth_system) -> None:
        _invoke(cli_runner, auth_system, "profile", "add", "prod", "--auth-server-name", "oidc", "--default")

        result = _invoke(cli_runner, auth_system, "profile", "list")

        assert result.exit_code == EXIT_SUCCESS
        assert "prod *\toidc\t-" in result.stdout

    def test_list_empty(self, cli_runner, auth_system) -> None:
        result = _invoke(cli_runner, auth_system, "profile", "list")
        assert "No profiles configured." in result.output


class TestRequest:
    def _setup(self, system: AuthSystem) -> None:
        update_settings({"profiles.default.auth_server_name": "oidc"})
        system.credential_store.update_credentials_token(
            "work", Credential(auth_server_name="oidc", token_payload=TokenPayload(access_token="T"))
        )

    def test_authenticated_get(self, cli_runner, auth_system, transport_log) -> None:
        self._setup(auth_system)

        result = _invoke(cli_runner, auth_system, "request", "GET", "https://api.example.com/me")

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert transport_log[0].headers["Authorization"] == "Bearer T"
        assert "user\tme" in result.stdout
        assert "HTTP 200 OK" in result.output

    def test_post_json_with_header(self, cli_runner, auth_system, transport_log) -> None:
        self._setup(auth_system)

        result = _invoke(
            cli_runner, auth_system,
            "request", "POST", "https://api.example.com/items", "-d", '{"name": "x"}', "-H", "X-Trace: 1",
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        sent = transport_log[0]
        assert sent.method == "POST"
        assert json.loads(sent.content) == {"name": "x"}
        assert sent.headers["X-Trace"] == "1"

    def test_error_status_exits_nonzero(self, cli_runner, auth_system, transport_log) -> None:
        self._setup(auth_system)
        result = _invoke(cli_runner, auth_system, "request", "GET", "https://api.example.com/missing")
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "HTTP 404" in result.output

    def test_no_handler_never_sends(self, cli_runner, auth_system, transport_log) -> None:
        update_settings({"profiles.default.auth_server_name": "nowhere"})

        result = _invoke(cli_runner, auth_system, "request", "GET", "https://api.example.com/me")

        assert result.exit_code == EXIT_NO_HANDLER
        assert transport_log == []

    def test_missing_credential_never_sends(self, cli_runner, auth_system, transport_log) -> None:
        update_settings({"profiles.default.auth_server_name": "oidc"})

        result = _invoke(cli_runner, auth_system, "request", "GET", "https://api.example.com/me")

        assert result.exit_code == EXIT_AUTH_FAILURE
        assert transport_log == []

    def test_profile_flag_selects_profile(self, cli_runner, isolated_config, transport_log) -> None:
        update_settings({"profiles.ci.auth_server_name": "manual_token"})
        AuthSystem().credential_store.update_credentials_token(
            "ci-token",
            Credential(auth_server_name="manual_token", token_payload=TokenPayload(access_token="CI")),
        )

        result = cli_runner.invoke(
            app, [*FLAGS, "--profile", "ci", "request", "GET", "https://api.example.com/me"]
        )

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert transport_log[0].headers["Authorization"] == "Bearer CI"

    def test_unknown_profile_reports_profile(self, cli_runner, isolated_config, transport_log) -> None:
        result = cli_runner.invoke(
            app, [*FLAGS, "--profile", "ghost", "request", "GET", "https://api.example.com/me"]
        )

        assert result.exit_code == EXIT_NO_HANDLER
        assert "[profile ghost]" in result.output
        assert transport_log == []
