"""HTTP client module for cliauth.

Provides the outgoing :class:`RequestPipeline` that the auth middleware is
installed into, and a synchronous :class:`SyncClient` wrapping :mod:`httpx`
that runs every request through that pipeline.

Example::

    from cliauth.client import SyncClient

    with SyncClient(system.pipeline) as client:
        resp = client.get("https://api.example.com/users")
"""

from cliauth.client.pipeline import RequestPipeline
from cliauth.client.sync_client import SyncClient

__all__ = ["RequestPipeline", "SyncClient"]
