"""Canonical Pydantic models shared across all cliauth modules.

This is the single source of truth for data shapes in the project. The
models fall into two persisted documents:

**Settings** -- non-secret configuration in ``settings.json``:
    :class:`AuthServer` definitions and :class:`Profile` bindings.

**Secrets** -- sensitive material in ``secrets.json``:
    :class:`Credential` entries, each wrapping a :class:`TokenPayload`
    produced by an auth handler.

Both documents are read and written as plain JSON dicts and validated
through :meth:`~pydantic.BaseModel.model_validate`. Names used as keys in
either document are passed through :func:`sanitize_name` first.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def sanitize_name(raw: str) -> str:
    """Turn user input into a store key by replacing ``.`` with ``-``.

    Keys are addressed with dotted paths (``auth_servers.<name>.issuer``),
    so a key must never contain a dot itself. As a consequence ``"a.b"`` and
    ``"a-b"`` collapse to the same key.
    """
    return raw.replace(".", "-")


# --- Settings ---


class AuthServer(BaseModel):
    """A named authentication endpoint definition.

    Created by ``auth add-server`` and never updated afterwards. The
    ``type`` field optionally pins the auth handler used for this server;
    when empty, the handler is resolved by server name and then by the
    blank type (see :meth:`~cliauth.auth.manager.AuthSystem.handler_for_server`).
    """

    issuer: str
    client_id: str
    type: str = Field(default="", description="Auth handler type name")


class Profile(BaseModel):
    """The active operating context.

    A profile binds an invocation to one auth server and, optionally, to a
    named credential. Handlers may ask for further profile fields through
    :meth:`~cliauth.auth.base.AuthHandler.profile_keys`; those are kept as
    extra fields and exposed via ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    name: str = ""
    auth_server_name: str = ""
    credentials_name: str = ""


class Settings(BaseModel):
    """The non-secret settings document."""

    auth_servers: dict[str, AuthServer] = Field(default_factory=dict)
    profiles: dict[str, Profile] = Field(default_factory=dict)
    default_profile: Optional[str] = None


# --- Secrets ---


class TokenPayload(BaseModel):
    """Opaque credential material returned by a handler's acquisition flow.

    The core only reads :attr:`client_id` and :attr:`issuer` (for listing);
    everything else is interpreted by the handler that produced it.
    Handler-specific data goes into :attr:`extra`.
    """

    access_token: str
    token_type: str = "Bearer"
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    client_id: str = ""
    issuer: str = ""
    extra: dict[str, Any] = Field(default_factory=dict)


class Credential(BaseModel):
    """A named, persisted secret.

    ``auth_server_name`` is a reference to an :class:`AuthServer` by name.
    It is not checked for existence when the credential is created.
    """

    auth_server_name: str
    token_payload: TokenPayload


class Secrets(BaseModel):
    """The secrets document."""

    credentials: dict[str, Credential] = Field(default_factory=dict)
