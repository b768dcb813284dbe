"""Auth commands -- manage auth servers and credentials.

Provides the ``auth`` sub-command group:

* ``add-server`` -- record an auth server (issuer + client id).
* ``add-credentials`` -- run a handler's acquisition flow and store the result.
* ``list-servers`` / ``list-credentials`` -- tabular views of both stores.
* ``list-handlers`` -- registered handler types and the profile keys they need.

Typical workflow::

    cliauth auth add-server example.com --issuer https://id.example.com --client-id cli --type manual_token
    cliauth auth add-credentials work --auth-server-name example-com
    cliauth auth list-credentials

Tool authors embed the same group into their own CLI with
:func:`add_auth_commands`.
"""

from __future__ import annotations

from typing import Optional

import typer

from cliauth.auth.manager import AuthSystem
from cliauth.commands import get_system, program_name
from cliauth.exceptions import CliauthError
from cliauth.output import error, get_output, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


def add_auth_commands(parent: typer.Typer, system: Optional[AuthSystem] = None) -> None:
    """Attach the ``auth`` command group to *parent*.

    Handlers must be registered on *system* before the commands run. When
    *system* is given it is placed on the root context unless the caller
    already put one there; otherwise the default system is built on first
    use.

    Args:
        parent: The tool's root Typer application.
        system: The :class:`~cliauth.auth.manager.AuthSystem` to use.
    """

    def _install_system(ctx: typer.Context) -> None:
        if system is not None:
            root = ctx.find_root()
            root.ensure_object(dict)
            root.obj.setdefault("auth", system)

    parent.add_typer(
        auth_app, name="auth", help="Authentication settings.", callback=_install_system
    )


@auth_app.command("add-server")
def auth_add_server(
    ctx: typer.Context,
    name: str = typer.Argument(help="Auth server name ('.' is replaced by '-')."),
    client_id: str = typer.Option(..., "--client-id", help="Client identifier."),
    issuer: str = typer.Option(..., "--issuer", help="Issuer URL or identifier."),
    type_name: str = typer.Option(
        "", "--type", "-t", help="Auth handler type to use for this server."
    ),
) -> None:
    """Add a new authentication server.

    Example::

        cliauth auth add-server example.com --issuer https://id.example.com --client-id cli
    """
    from cliauth.auth.lifecycle import add_server

    try:
        server_name = add_server(name, issuer=issuer, client_id=client_id, type_name=type_name)
    except CliauthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    success(f'Auth server "{server_name}" added.')
    suggest(
        f"Add credentials: {program_name(ctx)} auth add-credentials <name> "
        f"--auth-server-name {server_name}"
    )


@auth_app.command("add-credentials")
def auth_add_credentials(
    ctx: typer.Context,
    name: str = typer.Argument(help="Credential name ('.' is replaced by '-')."),
    auth_server_name: str = typer.Option(
        ..., "--auth-server-name", help="Auth server the credential is for."
    ),
) -> None:
    """Add a new set of credentials.

    Runs the acquisition flow of the handler that serves the auth server
    and stores the resulting token. An existing credential name is
    rejected before the flow starts.

    Example::

        cliauth auth add-credentials work --auth-server-name example-com
    """
    from cliauth.auth.lifecycle import add_credentials

    system = get_system(ctx)
    try:
        credential_name = add_credentials(system, name, auth_server_name)
    except CliauthError as exc:
        error(f"[profile {system.profile_name}] {exc}")
        raise typer.Exit(code=exc.exit_code) from None

    success(f'Credential "{credential_name}" stored.')


@auth_app.command("list-servers")
def auth_list_servers(ctx: typer.Context) -> None:
    """List available authentication servers."""
    from cliauth.auth.lifecycle import list_servers

    try:
        rows = list_servers()
    except CliauthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not rows:
        info("No authentication servers configured.")
        suggest(f"Add one: {program_name(ctx)} auth add-server <name> --issuer <url> --client-id <id>")
        return
    get_output().print_table(["Name", "Client ID", "Issuer"], rows, title="Auth Servers")


@auth_app.command("list-credentials")
def auth_list_credentials(ctx: typer.Context) -> None:
    """List available credentials."""
    from cliauth.auth.lifecycle import list_credentials

    try:
        rows = list_credentials(get_system(ctx))
    except CliauthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not rows:
        info("No credentials configured.")
        suggest(f"Add one: {program_name(ctx)} auth add-credentials <name> --auth-server-name <server>")
        return
    get_output().print_table(["Name", "Client ID", "Issuer"], rows, title="Credentials")


@auth_app.command("list-handlers")
def auth_list_handlers(ctx: typer.Context) -> None:
    """List registered auth handler types and the profile keys they need."""
    system = get_system(ctx)
    rows = []
    for type_name in system.list_types():
        handler = system.lookup(type_name)
        keys = ", ".join(handler.profile_keys()) if handler else ""
        rows.append([type_name or "(blank)", keys or "-"])
    get_output().print_table(["Type", "Profile Keys"], rows, title="Auth Handlers")
