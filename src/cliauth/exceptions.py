"""Exception hierarchy for cliauth.

All exceptions inherit from :class:`CliauthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`cliauth.exit_codes`.
Core operations raise these; only the command layer and
:func:`cliauth.app.main` turn them into process exit codes.

Subclass hierarchy::

    CliauthError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- FlowError           (exit 3)
    +-- RequestAuthError    (exit 3)
    +-- DuplicateNameError  (exit 4)
    +-- NoHandlerError      (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- ConfigError         (exit 1)
        +-- StoreReadError  (exit 1)
        +-- StoreWriteError (exit 1)
"""

from cliauth.exit_codes import (
    EXIT_ALREADY_EXISTS,
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NO_HANDLER,
)


class CliauthError(Exception):
    """Base exception for all cliauth errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`cliauth.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CliauthError):
    """Raised for invalid CLI arguments or missing required values."""

    exit_code = EXIT_INVALID_USAGE


class DuplicateNameError(CliauthError):
    """Raised when an auth server or credential name is already taken.

    Args:
        kind: What collided, e.g. ``"auth server"`` or ``"credential"``.
        name: The sanitized name that already exists.
    """

    exit_code = EXIT_ALREADY_EXISTS

    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind} {name!r} already exists")
        self.kind = kind
        self.name = name


class FlowError(CliauthError):
    """Raised when a handler's credential-acquisition flow cannot complete."""

    exit_code = EXIT_AUTH_FAILURE


class RequestAuthError(CliauthError):
    """Raised when a handler cannot attach credentials to an outgoing request."""

    exit_code = EXIT_AUTH_FAILURE


class NoHandlerError(CliauthError):
    """Raised when no auth handler is registered for an auth server.

    Args:
        auth_server_name: The auth server that has no handler.
    """

    exit_code = EXIT_NO_HANDLER

    def __init__(self, auth_server_name: str):
        super().__init__(f"no handler for auth server {auth_server_name!r}")
        self.auth_server_name = auth_server_name


class ConnectionError_(CliauthError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(CliauthError):
    """Raised for configuration problems (invalid JSON, unknown profile keys)."""

    exit_code = EXIT_GENERIC_FAILURE


class StoreReadError(ConfigError):
    """Raised when the settings or secrets document cannot be read or validated."""


class StoreWriteError(ConfigError):
    """Raised when the settings or secrets document cannot be written."""
