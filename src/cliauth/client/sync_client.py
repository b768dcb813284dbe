"""Synchronous HTTP client that routes every request through the pipeline.

This module provides :class:`SyncClient`, the blocking HTTP client used by
the ``cliauth request`` command and by tools embedding cliauth. It wraps
:class:`httpx.Client` and runs the shared
:class:`~cliauth.client.pipeline.RequestPipeline` once on each request before
it is sent. Redirect hops are not decorated again: httpx carries headers over
to a same-origin redirect and strips ``Authorization`` when the redirect leaves
the original origin, and that stripped header stays stripped.

A request is attempted exactly once, and a failure in the pipeline (for example a
:class:`~cliauth.exceptions.NoHandlerError`) propagates before anything is
written to the network.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from cliauth.client.pipeline import RequestPipeline
from cliauth.exceptions import ConnectionError_
from cliauth.output import get_output


class SyncClient:
    """Synchronous HTTP client for authenticated calls.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        pipeline: The shared request pipeline, usually
            ``AuthSystem.pipeline``.
        base_url: Optional base URL prepended to relative request paths.
        timeout: Request timeout in seconds.
        verify_ssl: Verify TLS certificates.
        transport: Optional custom httpx transport (tests use
            :class:`httpx.MockTransport`).

    Example::

        with SyncClient(system.pipeline) as client:
            response = client.get("https://api.example.com/users")
    """

    def __init__(
        self,
        pipeline: RequestPipeline,
        base_url: str = "",
        timeout: float = 30,
        verify_ssl: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._pipeline = pipeline
        self._base_url = base_url
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SyncClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            verify=self._verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        body: Optional[str] = None,
    ) -> httpx.Response:
        """Send one request through the pipeline.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            url: Absolute URL, or a path relative to ``base_url``.
            params: Query parameters.
            headers: Extra request headers.
            json_body: JSON-serialisable body (sets Content-Type automatically).
            body: Raw string body.

        Returns:
            The :class:`httpx.Response`, whatever its status code.

        Raises:
            NoHandlerError: If the active profile has no auth handler.
            RequestAuthError: If the handler could not decorate the request.
            ConnectionError_: On network or timeout errors.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        kwargs: dict[str, Any] = {
            "method": method.upper(),
            "url": url,
            "headers": {"Accept": "application/json", **(headers or {})},
            "params": params,
        }
        if json_body is not None:
            kwargs["json"] = json_body
        elif body is not None:
            kwargs["content"] = body

        request = self._client.build_request(**kwargs)
        self._pipeline.run(request)

        get_output().debug(f"{method.upper()} {url}")
        try:
            return self._client.send(request)
        except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
            raise ConnectionError_(f"Connection failed: {exc}") from exc

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send a GET request."""
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send a POST request."""
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send a PUT request."""
        return self.request("PUT", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send a PATCH request."""
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        """Send a DELETE request."""
        return self.request("DELETE", url, **kwargs)
