"""Built-in CLI sub-commands for cliauth.

This package groups the Typer sub-command modules that form the CLI's
command tree:

* :mod:`~cliauth.commands.auth` -- add auth servers and credentials, list them.
* :mod:`~cliauth.commands.profile` -- bind profiles to auth servers.
* :mod:`~cliauth.commands.request` -- send an authenticated request.

Each command resolves the shared :class:`~cliauth.auth.manager.AuthSystem`
through :func:`get_system`, so a tool embedding cliauth can hand in its
own system via ``ctx.obj["auth"]``.
"""

from __future__ import annotations

import typer

from cliauth.auth.manager import AuthSystem


def get_system(ctx: typer.Context) -> AuthSystem:
    """Return the :class:`AuthSystem` stored on the root context.

    The system is created with :func:`~cliauth.auth.manager.create_default_system`
    on first use when the caller did not provide one.
    """
    from cliauth.auth.manager import create_default_system

    root = ctx.find_root()
    root.ensure_object(dict)
    system = root.obj.get("auth")
    if system is None:
        system = create_default_system(profile_name=root.obj.get("profile"))
        root.obj["auth"] = system
    return system


def program_name(ctx: typer.Context) -> str:
    """Name the CLI was invoked as, for hint messages."""
    return ctx.find_root().info_name or "cliauth"
