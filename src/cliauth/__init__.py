"""cliauth -- pluggable authentication for command-line tools.

A tool author registers one or more *auth handlers* (pasted token, API key,
OAuth2, mutual TLS, ...) with an :class:`~cliauth.auth.AuthSystem`. The tool
then gets, for free:

* ``auth add-server`` / ``auth add-credentials`` commands that run a
  handler's acquisition flow and persist the resulting secret under a name,
* a request hook that injects the right credential into every outgoing
  request based on the active profile's auth server.

Typical workflow::

    cliauth auth add-server example.com --issuer https://id.example.com --client-id cli --type manual_token
    cliauth auth add-credentials work --auth-server-name example-com
    cliauth profile add default --auth-server-name example-com --credentials-name work
    cliauth request GET https://api.example.com/me

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for settings, secrets and profiles.
    config: XDG-aware settings store with dotted-path updates.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
