"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~cliauth.exceptions.CliauthError` subclass.
Shell wrappers can inspect the exit code to determine the failure class
without parsing stderr.

Example::

    $ cliauth auth add-server example.com --issuer https://id --client-id x
    $ cliauth auth add-server example.com --issuer https://id --client-id x
    $ echo $?
    4   # EXIT_ALREADY_EXISTS -- the server name is taken
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including settings/secrets I/O failures)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Credential acquisition or request authentication failed."""

EXIT_ALREADY_EXISTS = 4
"""An auth server or credential with the requested name already exists."""

EXIT_NO_HANDLER = 5
"""No auth handler is registered for the requested auth server."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
