"""Tests for the AuthSystem registry and request-injection middleware."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import httpx
import pytest

from cliauth.auth.manager import AuthSystem, ProfileLogger, create_default_system
from cliauth.client.pipeline import RequestPipeline
from cliauth.client.sync_client import SyncClient
from cliauth.config import update_settings
from cliauth.exceptions import NoHandlerError, RequestAuthError
from cliauth.handlers import APIKeyHandler, ManualTokenHandler
from cliauth.models import Credential, TokenPayload


class CountingPipeline(RequestPipeline):
    """Pipeline that counts how often a hook is installed."""

    def __init__(self) -> None:
        super().__init__()
        self.installs = 0

    def use_request(self, hook) -> None:
        self.installs += 1
        super().use_request(hook)


def _bind_profile(name: str, auth_server_name: str, credentials_name: str = "") -> None:
    update_settings(
        {
            f"profiles.{name}": {
                "auth_server_name": auth_server_name,
                "credentials_name": credentials_name,
            },
            "default_profile": name,
        }
    )


def _store_credential(system: AuthSystem, name: str, auth_server_name: str, token: str) -> None:
    system.credential_store.update_credentials_token(
        name,
        Credential(auth_server_name=auth_server_name, token_payload=TokenPayload(access_token=token)),
    )


def _capture_transport(seen: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    return httpx.MockTransport(handler)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegister:
    def test_lookup_registered(self, make_handler) -> None:
        system = AuthSystem()
        handler = make_handler()
        system.register("oidc", handler)
        assert system.lookup("oidc") is handler
        assert system.lookup("saml") is None

    def test_last_registration_wins(self, make_handler) -> None:
        system = AuthSystem()
        first, second = make_handler("A"), make_handler("B")
        system.register("oidc", first)
        system.register("oidc", second)
        assert system.lookup("oidc") is second
        assert system.list_types() == ["oidc"]

    def test_middleware_installed_once(self, make_handler) -> None:
        pipeline = CountingPipeline()
        system = AuthSystem(pipeline=pipeline)
        for type_name in ("oidc", "saml", "oidc", ""):
            system.register(type_name, make_handler())
        assert pipeline.installs == 1
        assert len(pipeline.hooks) == 1

    def test_no_middleware_before_first_register(self) -> None:
        pipeline = CountingPipeline()
        AuthSystem(pipeline=pipeline)
        assert pipeline.installs == 0

    def test_concurrent_register_installs_once(self, make_handler) -> None:
        pipeline = CountingPipeline()
        system = AuthSystem(pipeline=pipeline)
        threads = [
            threading.Thread(target=system.register, args=(f"t{i}", make_handler()))
            for i in range(16)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert pipeline.installs == 1
        assert len(system.list_types()) == 16

    def test_blank_type_allowed(self, make_handler) -> None:
        system = AuthSystem()
        handler = make_handler()
        system.register("", handler)
        assert system.lookup("") is handler


class TestHandlerForServer:
    def test_server_type_first(self, isolated_config: Path, make_handler) -> None:
        update_settings(
            {
                "auth_servers.idp.issuer": "https://id",
                "auth_servers.idp.client_id": "c",
                "auth_servers.idp.type": "oidc",
            }
        )
        system = AuthSystem()
        by_type, by_name = make_handler(), make_handler()
        system.register("oidc", by_type)
        system.register("idp", by_name)
        assert system.handler_for_server("idp") is by_type

    def test_falls_back_to_server_name(self, isolated_config: Path, make_handler) -> None:
        system = AuthSystem()
        handler = make_handler()
        system.register("idp", handler)
        assert system.handler_for_server("idp") is handler

    def test_blank_type_serves_empty_server_name(self, isolated_config: Path, make_handler) -> None:
        system = AuthSystem()
        handler = make_handler()
        system.register("", handler)
        assert system.handler_for_server("") is handler

    def test_blank_type_is_not_a_fallback(self, isolated_config: Path, make_handler) -> None:
        system = AuthSystem()
        system.register("", make_handler())
        with pytest.raises(NoHandlerError, match="no handler for auth server 'anything'"):
            system.handler_for_server("anything")

    def test_missing_raises(self, isolated_config: Path, make_handler) -> None:
        system = AuthSystem()
        system.register("oidc", make_handler())
        with pytest.raises(NoHandlerError, match="no handler for auth server 'idp'"):
            system.handler_for_server("idp")


class TestDefaultSystem:
    def test_builtin_handlers(self, isolated_config: Path) -> None:
        system = create_default_system()
        assert isinstance(system.lookup("manual_token"), ManualTokenHandler)
        assert isinstance(system.lookup("api_key"), APIKeyHandler)
        assert system.lookup("") is None
        assert len(system.pipeline.hooks) == 1

    def test_profile_override(self, isolated_config: Path) -> None:
        assert create_default_system(profile_name="ci").profile_name == "ci"


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class TestRequestInjection:
    def test_request_decorated(self, auth_system: AuthSystem, stub_handler) -> None:
        update_settings(
            {
                "auth_servers.idp.issuer": "https://id",
                "auth_servers.idp.client_id": "c",
                "auth_servers.idp.type": "oidc",
            }
        )
        _bind_profile("work", "idp")
        _store_credential(auth_system, "w", "idp", "T")

        seen: list[httpx.Request] = []
        with SyncClient(auth_system.pipeline, transport=_capture_transport(seen)) as client:
            response = client.get("https://api.example.com/me")

        assert response.status_code == 200
        assert seen[0].headers["Authorization"] == "Bearer T"
        assert len(stub_handler.request_calls) == 1

    def test_credential_not_sent_to_redirect_target(self, auth_system: AuthSystem, stub_handler) -> None:
        _bind_profile("work", "oidc")
        _store_credential(auth_system, "w", "oidc", "SECRET")

        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.host == "api.example.com":
                return httpx.Response(302, headers={"Location": "https://elsewhere.example.net/x"})
            return httpx.Response(200)

        with SyncClient(auth_system.pipeline, transport=httpx.MockTransport(handler)) as client:
            client.get("https://api.example.com/me")

        assert len(seen) == 2
        assert seen[0].headers["Authorization"] == "Bearer SECRET"
        assert "Authorization" not in seen[1].headers
        assert len(stub_handler.request_calls) == 1

    def test_no_handler_blocks_send(self, isolated_config: Path, make_handler) -> None:
        system = AuthSystem()
        other = make_handler()
        system.register("saml", other)
        _bind_profile("work", "idp")

        seen: list[httpx.Request] = []
        with SyncClient(system.pipeline, transport=_capture_transport(seen)) as client:
            with pytest.raises(NoHandlerError):
                client.get("https://api.example.com/me")

        assert seen == []
        assert other.request_calls == []

    def test_blank_handler_does_not_serve_other_servers(self, isolated_config: Path, make_handler) -> None:
        system = AuthSystem()
        blank = make_handler()
        system.register("", blank)
        _bind_profile("work", "idp")

        seen: list[httpx.Request] = []
        with SyncClient(system.pipeline, transport=_capture_transport(seen)) as client:
            with pytest.raises(NoHandlerError):
                client.get("https://api.example.com/me")

        assert seen == []
        assert blank.request_calls == []

    def test_unknown_profile_fails_with_no_handler(self, isolated_config: Path, make_handler) -> None:
        system = AuthSystem(profile_name="ghost")
        system.register("oidc", make_handler())
        with SyncClient(system.pipeline, transport=_capture_transport([])) as client:
            with pytest.raises(NoHandlerError):
                client.get("https://api.example.com/me")

    def test_failing_handler_stops_chain(self, auth_system: AuthSystem) -> None:
        _bind_profile("work", "oidc")  # resolved by name; no credential stored
        later: list[httpx.Request] = []
        auth_system.pipeline.use_request(later.append)

        seen: list[httpx.Request] = []
        with SyncClient(auth_system.pipeline, transport=_capture_transport(seen)) as client:
            with pytest.raises(RequestAuthError):
                client.get("https://api.example.com/me")

        assert later == []
        assert seen == []

    def test_credentials_name_selects_credential(self, auth_system: AuthSystem) -> None:
        _store_credential(auth_system, "a", "oidc", "first")
        _store_credential(auth_system, "b", "oidc", "second")
        _bind_profile("work", "oidc", credentials_name="b")

        seen: list[httpx.Request] = []
        with SyncClient(auth_system.pipeline, transport=_capture_transport(seen)) as client:
            client.get("https://api.example.com/me")
        assert seen[0].headers["Authorization"] == "Bearer second"

    def test_first_matching_credential_by_name(self, auth_system: AuthSystem) -> None:
        _store_credential(auth_system, "z", "oidc", "late")
        _store_credential(auth_system, "m", "other", "wrong-server")
        _store_credential(auth_system, "c", "oidc", "early")
        _bind_profile("work", "oidc")

        context = auth_system.context_for(auth_system.get_profile())
        assert context.credential is not None
        assert context.credential.token_payload.access_token == "early"


class TestProfileLogger:
    def test_prefixes_profile(self, caplog: pytest.LogCaptureFixture) -> None:
        log = ProfileLogger(logging.getLogger("cliauth.handlers"), {"profile": "prod"})
        with caplog.at_level(logging.INFO, logger="cliauth.handlers"):
            log.info("hello")
        assert caplog.records[0].getMessage() == "[prod] hello"
        assert caplog.records[0].profile == "prod"
