"""Profile commands -- bind profiles to auth servers and credentials.

A profile names the auth server (and optionally the credential) used for
outgoing requests. Handler-specific settings, such as where the API key
goes, live on the profile too::

    cliauth profile add prod --auth-server-name example-com --default
    cliauth profile add keys --auth-server-name partner --set location=query
    cliauth profile list

The active profile is chosen by ``--profile``, then ``CLIAUTH_PROFILE``,
then ``default_profile`` in the settings file.
"""

from __future__ import annotations

from typing import Optional

import typer

from cliauth.commands import get_system
from cliauth.exceptions import CliauthError, InvalidUsageError
from cliauth.output import error, get_output, info, success

profile_app = typer.Typer(no_args_is_help=True)


def _parse_assignments(items: list[str]) -> dict[str, str]:
    """Parse ``key=value`` strings from repeated ``--set`` options."""
    values: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise InvalidUsageError(f"Expected key=value, got {item!r}")
        values[key.strip()] = value
    return values


@profile_app.command("add")
def profile_add(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name."),
    auth_server_name: str = typer.Option(
        ..., "--auth-server-name", help="Auth server used by this profile."
    ),
    credentials_name: str = typer.Option(
        "", "--credentials-name", help="Credential to use (default: first for the server)."
    ),
    assignments: Optional[list[str]] = typer.Option(
        None, "--set", help="Handler-specific value as key=value (repeatable)."
    ),
    make_default: bool = typer.Option(
        False, "--default", help="Make this the default profile."
    ),
) -> None:
    """Create or replace a profile.

    Values the auth handler needs but that were not given with ``--set``
    are prompted for.
    """
    from cliauth.auth.lifecycle import add_profile

    system = get_system(ctx)
    try:
        values = _parse_assignments(assignments or [])
        handler = system.handler_for_server(auth_server_name)
        for key in handler.profile_keys():
            if not values.get(key):
                values[key] = typer.prompt(key)
        profile = add_profile(
            system,
            name,
            auth_server_name,
            credentials_name=credentials_name,
            values=values,
            make_default=make_default,
        )
    except CliauthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    suffix = " (default)" if make_default else ""
    success(f'Profile "{profile.name}" saved{suffix}.')


@profile_app.command("list")
def profile_list() -> None:
    """List configured profiles. The default profile is marked with ``*``."""
    from cliauth.auth.lifecycle import list_profiles

    try:
        rows = list_profiles()
    except CliauthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not rows:
        info("No profiles configured.")
        return
    get_output().print_table(["Name", "Auth Server", "Credential"], rows, title="Profiles")
