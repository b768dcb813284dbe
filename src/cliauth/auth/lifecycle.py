"""Credential lifecycle operations behind the ``auth`` and ``profile`` commands.

Every function here raises :class:`~cliauth.exceptions.CliauthError`
subclasses instead of exiting, so the Typer layer in
:mod:`cliauth.commands` decides how failures are reported and which exit
code is used.

The lifecycle is:

1. :func:`add_server` records an auth server (issuer + client id).
2. :func:`add_credentials` runs a handler's acquisition flow and persists
   the token payload under a credential name.
3. :func:`add_profile` binds a profile to a server (and credential).
4. Every outgoing request is then decorated by the request-injection
   middleware of :class:`~cliauth.auth.manager.AuthSystem`.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from cliauth.auth.base import AuthContext
from cliauth.auth.manager import AuthSystem
from cliauth.config import get_profile, load_settings, update_settings
from cliauth.exceptions import (
    CliauthError,
    ConfigError,
    DuplicateNameError,
    FlowError,
    InvalidUsageError,
)
from cliauth.models import Credential, Profile, sanitize_name

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = ("name", "auth_server_name", "credentials_name")


def add_server(raw_name: str, issuer: str, client_id: str, type_name: str = "") -> str:
    """Record a new auth server definition.

    Args:
        raw_name: User-supplied name; dots are replaced by dashes.
        issuer: Issuer URL or identifier.
        client_id: Client identifier registered with the issuer.
        type_name: Optional handler type pinned to this server.

    Returns:
        The sanitized server name.

    Raises:
        InvalidUsageError: If *issuer* or *client_id* is empty.
        DuplicateNameError: If a server with the sanitized name exists.
    """
    name = sanitize_name(raw_name)
    if not issuer:
        raise InvalidUsageError("--issuer is required")
    if not client_id:
        raise InvalidUsageError("--client-id is required")
    if name in load_settings().auth_servers:
        raise DuplicateNameError("auth server", name)

    updates: dict[str, Any] = {
        f"auth_servers.{name}.issuer": issuer,
        f"auth_servers.{name}.client_id": client_id,
    }
    if type_name:
        updates[f"auth_servers.{name}.type"] = type_name
    update_settings(updates)
    logger.info("Added auth server '%s'", name)
    return name


def add_credentials(system: AuthSystem, raw_name: str, auth_server_name: str) -> str:
    """Acquire a credential through a handler flow and store it.

    The duplicate check happens before the handler is even resolved, so a
    rejected name never triggers an interactive flow.

    Args:
        system: The auth system holding the handlers and secrets store.
        raw_name: User-supplied credential name; dots become dashes.
        auth_server_name: The auth server the credential is for. Its
            existence is not verified.

    Returns:
        The sanitized credential name.

    Raises:
        DuplicateNameError: If the credential name is taken.
        NoHandlerError: If no handler serves *auth_server_name*.
        FlowError: If the handler's flow fails.
    """
    name = sanitize_name(raw_name)
    store = system.credential_store
    if store.exists(name):
        raise DuplicateNameError("credential", name)

    handler = system.handler_for_server(auth_server_name)
    context = AuthContext(
        profile=system.get_profile(),
        auth_server_name=auth_server_name,
        auth_server=load_settings().auth_servers.get(auth_server_name),
    )
    log = system.logger_for()
    try:
        token_payload = handler.execute_flow(log, context)
    except CliauthError:
        raise
    except Exception as exc:
        raise FlowError(f"Credential flow for {auth_server_name!r} failed: {exc}") from exc

    store.update_credentials_token(
        name, Credential(auth_server_name=auth_server_name, token_payload=token_payload)
    )
    log.info("Stored credential '%s'", name)
    return name


def list_servers() -> list[list[str]]:
    """Return ``[name, client_id, issuer]`` rows for every auth server, sorted by name."""
    servers = load_settings().auth_servers
    return [[name, servers[name].client_id, servers[name].issuer] for name in sorted(servers)]


def list_credentials(system: AuthSystem) -> list[list[str]]:
    """Return ``[name, client_id, issuer]`` rows for every credential, sorted by name."""
    credentials = system.credential_store.load().credentials
    rows = []
    for name in sorted(credentials):
        payload = credentials[name].token_payload
        rows.append([name, payload.client_id, payload.issuer])
    return rows


def add_profile(
    system: AuthSystem,
    name: str,
    auth_server_name: str,
    credentials_name: str = "",
    values: Optional[Mapping[str, str]] = None,
    make_default: bool = False,
) -> Profile:
    """Create or replace a profile binding.

    Args:
        system: Used to resolve the handler whose ``profile_keys`` are
            checked.
        name: Profile name; dots become dashes.
        auth_server_name: Auth server the profile uses.
        credentials_name: Credential to inject; empty selects the first
            credential for the server.
        values: Values for the handler's profile keys.
        make_default: Also set ``default_profile``.

    Returns:
        The stored profile.

    Raises:
        InvalidUsageError: If a value is given for a reserved field.
        ConfigError: If a handler profile key has no value.
        NoHandlerError: If no handler serves *auth_server_name*.
    """
    name = sanitize_name(name)
    values = dict(values or {})
    reserved = sorted(set(values) & set(_PROFILE_FIELDS))
    if reserved:
        raise InvalidUsageError(f"Reserved profile keys cannot be set: {', '.join(reserved)}")

    handler = system.handler_for_server(auth_server_name)
    missing = [key for key in handler.profile_keys() if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing profile values: {', '.join(missing)}")

    updates: dict[str, Any] = {
        f"profiles.{name}": {
            "name": name,
            "auth_server_name": auth_server_name,
            "credentials_name": sanitize_name(credentials_name),
            **values,
        }
    }
    if make_default:
        updates["default_profile"] = name
    update_settings(updates)
    return get_profile(name)


def list_profiles() -> list[list[str]]:
    """Return ``[name, auth_server_name, credentials_name]`` rows, sorted by name."""
    settings = load_settings()
    rows = []
    for name in sorted(settings.profiles):
        profile = settings.profiles[name]
        marker = " *" if name == settings.default_profile else ""
        rows.append([f"{name}{marker}", profile.auth_server_name, profile.credentials_name or "-"])
    return rows
