"""Outgoing request pipeline.

:class:`RequestPipeline` is the single interception point between the auth
subsystem and the transport. It holds an ordered list of pre-send hooks and
runs them against every request before it goes out on the wire.

The pipeline follows the same chain pattern as a middleware stack: each hook
receives the (possibly already modified) request; a hook that raises stops
the chain, and the exception propagates to the caller so the request is
never sent. :class:`~cliauth.client.sync_client.SyncClient` plugs
:meth:`RequestPipeline.run` into ``httpx``'s ``request`` event hook.
"""

from __future__ import annotations

from typing import Callable

import httpx

RequestHook = Callable[[httpx.Request], None]


class RequestPipeline:
    """Ordered chain of pre-send request hooks."""

    def __init__(self) -> None:
        self._hooks: list[RequestHook] = []

    @property
    def hooks(self) -> list[RequestHook]:
        """A copy of the installed hooks, in execution order."""
        return list(self._hooks)

    def use_request(self, hook: RequestHook) -> None:
        """Append *hook* to the chain.

        Args:
            hook: Callable receiving the outgoing :class:`httpx.Request`.
                It may mutate the request, and raises to abort it.
        """
        self._hooks.append(hook)

    def run(self, request: httpx.Request) -> None:
        """Run every hook against *request* in installation order.

        Raises:
            Exception: Whatever the first failing hook raised, unchanged.
        """
        for hook in self._hooks:
            hook(request)
