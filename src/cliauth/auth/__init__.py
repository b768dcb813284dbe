"""Plugin-based authentication system for cliauth.

This package provides the pluggable core of cliauth: a registry of auth
handlers, the request-injection middleware, and the persisted credential
lifecycle.

The main entry points are:

- :class:`AuthHandler` -- abstract base class for implementing new auth schemes.
- :class:`AuthContext` -- invocation state passed to handlers.
- :class:`AuthSystem` -- registry that maps type names to handler instances
  and installs the request-injection middleware.
- :func:`create_default_system` -- factory that returns an :class:`AuthSystem`
  pre-loaded with the built-in and entry-point handlers.
- :class:`CredentialStore` -- the secrets document on disk.

Typical usage::

    from cliauth.auth import create_default_system
    from cliauth.client import SyncClient

    system = create_default_system()
    with SyncClient(system.pipeline) as client:
        response = client.get("https://api.example.com/me")
"""

from cliauth.auth.base import AuthContext, AuthHandler
from cliauth.auth.credential_store import CredentialStore
from cliauth.auth.manager import AuthSystem, create_default_system

__all__ = [
    "AuthContext",
    "AuthHandler",
    "AuthSystem",
    "CredentialStore",
    "create_default_system",
]
