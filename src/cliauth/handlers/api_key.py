"""API key auth handler.

This module provides :class:`APIKeyHandler`, registered as the ``api_key``
type. The key is pasted once during ``auth add-credentials`` and sent on
every request either as a header or as a query parameter, as configured on
the profile:

* ``location`` -- ``"header"`` (default) or ``"query"``.
* ``key_name`` -- header or parameter name (defaults ``X-API-Key`` /
  ``api_key``).

Both are declared through :meth:`APIKeyHandler.profile_keys`, so
``cliauth profile add`` asks for them.
"""

from __future__ import annotations

import getpass
import sys

import httpx

from cliauth.auth.base import AuthContext, AuthHandler, HandlerLogger, require_token
from cliauth.exceptions import FlowError, RequestAuthError
from cliauth.models import TokenPayload

_DEFAULT_NAMES = {"header": "X-API-Key", "query": "api_key"}


class APIKeyHandler(AuthHandler):
    """Authenticate via an API key in a header or query parameter."""

    def execute_flow(self, log: HandlerLogger, context: AuthContext) -> TokenPayload:
        """Prompt for the API key.

        Raises:
            FlowError: If stdin is not a TTY or the key is empty.
        """
        if not sys.stdin.isatty():
            raise FlowError("api_key requires an interactive terminal (stdin must be a TTY)")
        key = getpass.getpass("API key: ").strip()
        if not key:
            raise FlowError("No API key provided")
        server = context.auth_server
        return TokenPayload(
            access_token=key,
            token_type="ApiKey",
            client_id=server.client_id if server else "",
            issuer=server.issuer if server else "",
        )

    def profile_keys(self) -> list[str]:
        return ["location", "key_name"]

    def on_request(self, log: HandlerLogger, request: httpx.Request, context: AuthContext) -> None:
        """Place the key according to the profile's ``location``.

        Raises:
            RequestAuthError: If no key is stored or ``location`` is invalid.
        """
        payload = require_token(context)
        extras = context.profile.model_extra or {}
        location = extras.get("location") or "header"
        if location not in _DEFAULT_NAMES:
            raise RequestAuthError(
                f"Invalid api_key location {location!r}: must be 'header' or 'query'"
            )
        name = extras.get("key_name") or _DEFAULT_NAMES[location]

        if location == "query":
            request.url = request.url.copy_merge_params({name: payload.access_token})
        else:
            request.headers[name] = payload.access_token
        log.debug("Sent API key in %s '%s'", location, name)
