"""Manual token auth handler -- paste a token once, store it, reuse it.

This module provides :class:`ManualTokenHandler`, registered as the
``manual_token`` type. Its acquisition flow prompts for a token via
:func:`getpass.getpass` (input is hidden); the token is then sent as
``Authorization: <token_type> <token>`` on every request.

This is the simplest interactive flow -- suitable for long-lived personal
access tokens that are issued out of band.

See Also:
    :class:`cliauth.auth.base.AuthHandler` for the handler interface.
"""

from __future__ import annotations

import getpass
import sys

import httpx

from cliauth.auth.base import AuthContext, AuthHandler, HandlerLogger, require_token
from cliauth.exceptions import FlowError
from cliauth.models import TokenPayload


class ManualTokenHandler(AuthHandler):
    """Authenticate with a manually pasted bearer token."""

    def execute_flow(self, log: HandlerLogger, context: AuthContext) -> TokenPayload:
        """Prompt for a token and wrap it in a :class:`~cliauth.models.TokenPayload`.

        The issuer and client id of the auth server, when it exists, are
        copied onto the payload so ``auth list-credentials`` can show them.

        Raises:
            FlowError: If stdin is not a TTY or the user enters nothing.
        """
        if not sys.stdin.isatty():
            raise FlowError(
                "manual_token requires an interactive terminal to paste "
                "the token (stdin must be a TTY)"
            )
        if context.auth_server is None:
            log.warning("Auth server '%s' is not defined; storing token without issuer", context.auth_server_name)

        token = getpass.getpass("Paste token: ").strip()
        if not token:
            raise FlowError("No token provided")

        server = context.auth_server
        return TokenPayload(
            access_token=token,
            client_id=server.client_id if server else "",
            issuer=server.issuer if server else "",
        )

    def on_request(self, log: HandlerLogger, request: httpx.Request, context: AuthContext) -> None:
        payload = require_token(context)
        request.headers["Authorization"] = f"{payload.token_type} {payload.access_token}"
