"""Abstract base class for auth handlers.

This module defines the two foundational types of the auth subsystem:

- :class:`AuthContext` -- what a handler gets to see about the current
  invocation: the active profile, the auth server definition and the stored
  credential.
- :class:`AuthHandler` -- the abstract base class that every authentication
  scheme must extend.

To implement a new scheme, subclass :class:`AuthHandler` and implement
:meth:`~AuthHandler.execute_flow` and :meth:`~AuthHandler.on_request`.
Override :meth:`~AuthHandler.profile_keys` when the scheme needs extra
per-profile settings. Then register an instance with
:meth:`cliauth.auth.manager.AuthSystem.register`, or expose the class
through the ``cliauth.handlers`` entry-point group.

See Also:
    :mod:`cliauth.auth.manager` for registration and request injection.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Union

import httpx

from cliauth.exceptions import RequestAuthError
from cliauth.models import AuthServer, Credential, Profile, TokenPayload

HandlerLogger = Union[logging.Logger, logging.LoggerAdapter]


@dataclass
class AuthContext:
    """Invocation state handed to an :class:`AuthHandler`.

    Attributes:
        profile: The active profile.
        auth_server_name: Name of the auth server being used.
        auth_server: The auth server definition, or ``None`` when no server
            of that name has been added.
        credential: The credential selected for the profile. Always ``None``
            during :meth:`AuthHandler.execute_flow`.
    """

    profile: Profile = field(default_factory=Profile)
    auth_server_name: str = ""
    auth_server: Optional[AuthServer] = None
    credential: Optional[Credential] = None


class AuthHandler(ABC):
    """Base class for pluggable authentication schemes.

    A handler is stateless with respect to the stores: everything it needs
    is passed in through :class:`AuthContext`, and the token payload it
    returns from :meth:`execute_flow` is persisted by the caller.
    """

    @abstractmethod
    def execute_flow(self, log: HandlerLogger, context: AuthContext) -> TokenPayload:
        """Acquire a new credential.

        May be interactive (prompting, opening a browser) and may block for
        as long as the user takes.

        Args:
            log: Logger bound to the active profile.
            context: Invocation context. ``context.auth_server`` carries the
                issuer and client id when the server has been added.

        Returns:
            The token payload to persist.

        Raises:
            FlowError: If acquisition is cancelled, rejected, or fails.
        """
        ...

    def profile_keys(self) -> list[str]:
        """Return the names of extra profile fields this scheme requires.

        The core does not interpret these; ``cliauth profile add`` prompts
        for them and stores the answers on the profile.
        """
        return []

    @abstractmethod
    def on_request(self, log: HandlerLogger, request: httpx.Request, context: AuthContext) -> None:
        """Attach credentials to *request* in place.

        Called once per outgoing request, before it is sent.

        Args:
            log: Logger bound to the active profile.
            request: The outgoing request; mutate its headers or URL.
            context: Invocation context with the selected credential.

        Raises:
            RequestAuthError: If the credential is absent, invalid, or
                expired. The request is then never sent.
        """
        ...


def require_token(context: AuthContext) -> TokenPayload:
    """Return the token payload of ``context.credential`` or refuse the request.

    Shared by handlers whose ``on_request`` just forwards a stored token.

    Raises:
        RequestAuthError: If there is no credential, or it has expired.
    """
    if context.credential is None:
        wanted = context.profile.credentials_name or f"any credential for {context.auth_server_name!r}"
        raise RequestAuthError(f"No stored credential ({wanted}) for profile {context.profile.name!r}")
    payload = context.credential.token_payload
    if payload.expires_at is not None:
        expires = payload.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        if datetime.now(timezone.utc) >= expires:
            raise RequestAuthError(
                f"Credential for {context.auth_server_name!r} expired at {expires.isoformat()}"
            )
    return payload
