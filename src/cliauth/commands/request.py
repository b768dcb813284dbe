"""Request command -- send one HTTP request with the active profile's credential.

Handy for checking that a credential works::

    cliauth --profile prod request GET https://api.example.com/me
    cliauth request POST https://api.example.com/items -d '{"name": "x"}' -H "X-Trace: 1"

The status line goes to stderr and the body to stdout, so the output can
be piped into ``jq`` and friends.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx
import typer

from cliauth.client.sync_client import SyncClient
from cliauth.commands import get_system
from cliauth.exceptions import CliauthError, InvalidUsageError
from cliauth.exit_codes import EXIT_GENERIC_FAILURE
from cliauth.output import error, get_output


def _parse_headers(items: list[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for item in items:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Expected 'Name: value' header, got {item!r}")
        headers[name.strip()] = value.strip()
    return headers


def _response_data(response: httpx.Response) -> Any:
    """Decode the response body: JSON when possible, text otherwise, ``None`` if empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text


def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method, e.g. GET or POST."),
    url: str = typer.Argument(help="Absolute request URL."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra header as 'Name: value' (repeatable)."
    ),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request body. JSON text is sent as JSON."
    ),
    timeout: float = typer.Option(30, "--timeout", help="Timeout in seconds."),
) -> None:
    """Send an authenticated HTTP request and print the response."""
    output = get_output()
    system = get_system(ctx)

    json_body: Any = None
    body: Optional[str] = None
    if data is not None:
        try:
            json_body = json.loads(data)
        except json.JSONDecodeError:
            body = data

    try:
        headers = _parse_headers(header or [])
        with SyncClient(system.pipeline, timeout=timeout) as client:
            response = client.request(method, url, headers=headers, json_body=json_body, body=body)
    except CliauthError as exc:
        error(f"[profile {system.profile_name}] {exc}")
        raise typer.Exit(code=exc.exit_code) from None

    output.info(f"HTTP {response.status_code} {response.reason_phrase or ''}".rstrip())
    payload = _response_data(response)
    if payload is not None:
        output.format_response(payload, response.headers.get("content-type", "application/json"))
    if response.is_error:
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
