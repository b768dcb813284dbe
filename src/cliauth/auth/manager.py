"""Auth system -- handler registry and request-injection middleware.

The :class:`AuthSystem` is the central coordinator of the authentication
subsystem. It owns

- the mapping from handler type names (``"manual_token"``, ``"oidc"``,
  ...) to :class:`~cliauth.auth.base.AuthHandler` instances,
- the one-time installation of the request-injection middleware into the
  shared :class:`~cliauth.client.pipeline.RequestPipeline`,
- access to the active profile, the settings document and the
  :class:`~cliauth.auth.credential_store.CredentialStore`.

One ``AuthSystem`` is built at startup (see :func:`create_default_system`)
and handed to the command layer and the HTTP client; nothing in the
subsystem keeps global state.

See Also:
    :class:`~cliauth.auth.base.AuthHandler` -- the handler interface.
    :mod:`cliauth.auth.lifecycle` -- commands built on top of this registry.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import httpx

from cliauth.auth.base import AuthContext, AuthHandler
from cliauth.auth.credential_store import CredentialStore
from cliauth.client.pipeline import RequestPipeline
from cliauth.config import get_profile, load_settings, resolve_profile_name
from cliauth.exceptions import NoHandlerError
from cliauth.models import Credential, Profile, Secrets

logger = logging.getLogger(__name__)


class ProfileLogger(logging.LoggerAdapter):
    """Logger adapter that prefixes messages with the active profile name.

    The name is also attached to each record as ``record.profile``.
    """

    def process(self, msg, kwargs):  # noqa: ANN001, ANN201
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return f"[{self.extra['profile']}] {msg}", kwargs


class AuthSystem:
    """Registry of auth handlers plus the request-injection middleware.

    The middleware is installed into *pipeline* by the first call to
    :meth:`register` and never again, however many handlers follow.
    Registration is expected to finish during startup, before requests are
    in flight; it is nonetheless serialised by a lock so concurrent
    registration cannot double-install the middleware.

    Args:
        pipeline: The shared outgoing-request pipeline. A fresh one is
            created when omitted.
        credential_store: Secrets store. Defaults to the XDG location.
        profile_name: Active profile name. Resolved with
            :func:`~cliauth.config.resolve_profile_name` on first use when
            omitted.

    Example::

        system = AuthSystem()
        system.register("manual_token", ManualTokenHandler())
        with SyncClient(system.pipeline) as client:
            client.get("https://api.example.com/me")
    """

    def __init__(
        self,
        pipeline: Optional[RequestPipeline] = None,
        credential_store: Optional[CredentialStore] = None,
        profile_name: Optional[str] = None,
    ) -> None:
        self.pipeline = pipeline if pipeline is not None else RequestPipeline()
        self._credential_store = credential_store
        self._profile_name = profile_name
        self._handlers: dict[str, AuthHandler] = {}
        self._middleware_installed = False
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Registry
    # ------------------------------------------------------------------ #

    def register(self, type_name: str, handler: AuthHandler) -> None:
        """Register *handler* under *type_name*.

        A handler already registered under the same name is silently
        replaced. The blank type name ``""`` is allowed and serves profiles
        whose ``auth_server_name`` is empty.

        Args:
            type_name: The handler type identifier.
            handler: The handler instance.
        """
        with self._lock:
            if not self._middleware_installed:
                self.pipeline.use_request(self._inject_credentials)
                self._middleware_installed = True
                logger.debug("Installed auth middleware")
            self._handlers[type_name] = handler
        logger.debug("Registered auth handler '%s' (%s)", type_name, type(handler).__name__)

    def lookup(self, type_name: str) -> Optional[AuthHandler]:
        """Return the handler registered under *type_name*, or ``None``."""
        return self._handlers.get(type_name)

    def list_types(self) -> list[str]:
        """Return the registered type names, sorted."""
        return sorted(self._handlers)

    def handler_for_server(self, auth_server_name: str) -> AuthHandler:
        """Resolve the handler responsible for an auth server.

        Resolution order:

        1. the ``type`` recorded on the auth server definition, if any;
        2. a handler registered under the auth server name itself.

        The blank type ``""`` therefore only answers for an empty auth
        server name. It is never a fallback for other servers.

        Raises:
            NoHandlerError: If none of the above is registered.
        """
        server = load_settings().auth_servers.get(auth_server_name)
        candidates = []
        if server is not None and server.type:
            candidates.append(server.type)
        candidates.append(auth_server_name)
        for type_name in candidates:
            handler = self.lookup(type_name)
            if handler is not None:
                return handler
        raise NoHandlerError(auth_server_name)

    # ------------------------------------------------------------------ #
    # Stores and profile
    # ------------------------------------------------------------------ #

    @property
    def credential_store(self) -> CredentialStore:
        if self._credential_store is None:
            self._credential_store = CredentialStore()
        return self._credential_store

    @property
    def profile_name(self) -> str:
        if self._profile_name is None:
            self._profile_name = resolve_profile_name()
        return self._profile_name

    def get_profile(self) -> Profile:
        """Return the active profile (empty when not configured)."""
        return get_profile(self.profile_name)

    def logger_for(self, profile_name: Optional[str] = None) -> logging.LoggerAdapter:
        """Return a logger that tags every record with the profile name."""
        return ProfileLogger(
            logging.getLogger("cliauth.handlers"),
            {"profile": profile_name or self.profile_name},
        )

    def context_for(self, profile: Profile) -> AuthContext:
        """Build the :class:`AuthContext` used to decorate requests for *profile*."""
        server = load_settings().auth_servers.get(profile.auth_server_name)
        credential = _select_credential(self.credential_store.load(), profile)
        return AuthContext(
            profile=profile,
            auth_server_name=profile.auth_server_name,
            auth_server=server,
            credential=credential,
        )

    # ------------------------------------------------------------------ #
    # Middleware
    # ------------------------------------------------------------------ #

    def _inject_credentials(self, request: httpx.Request) -> None:
        """Pre-send hook: let the profile's handler decorate *request*.

        Raises:
            NoHandlerError: If the profile's auth server has no handler.
            Exception: Whatever the handler's ``on_request`` raised,
                unchanged.
        """
        profile = self.get_profile()
        handler = self.handler_for_server(profile.auth_server_name)
        log = self.logger_for(profile.name)
        log.debug("Authenticating %s %s via '%s'", request.method, request.url, profile.auth_server_name)
        handler.on_request(log, request, self.context_for(profile))


def _select_credential(secrets: Secrets, profile: Profile) -> Optional[Credential]:
    """Pick the credential for *profile*.

    The profile's ``credentials_name`` wins. Otherwise the first credential,
    by name, that references the profile's auth server is used.
    """
    if profile.credentials_name:
        return secrets.credentials.get(profile.credentials_name)
    for name in sorted(secrets.credentials):
        credential = secrets.credentials[name]
        if credential.auth_server_name == profile.auth_server_name:
            return credential
    return None


def create_default_system(profile_name: Optional[str] = None) -> AuthSystem:
    """Create an :class:`AuthSystem` pre-loaded with every available handler.

    The following built-in handlers are registered:

    - ``manual_token`` -- a pasted token sent as a bearer token.
    - ``api_key`` -- a pasted API key sent in a header or query parameter.

    Handlers published by other packages under the ``cliauth.handlers``
    entry-point group are registered afterwards and therefore win on name
    clashes.

    Args:
        profile_name: Active profile override (the ``--profile`` flag).

    Returns:
        A fully initialised :class:`AuthSystem`.
    """
    from cliauth.auth.discovery import discover_handlers
    from cliauth.handlers.api_key import APIKeyHandler
    from cliauth.handlers.manual_token import ManualTokenHandler

    system = AuthSystem(profile_name=profile_name)
    system.register("manual_token", ManualTokenHandler())
    system.register("api_key", APIKeyHandler())
    discover_handlers(system)
    return system
