"""Handler discovery through Python entry points.

Third-party packages add auth schemes without touching cliauth by declaring
an entry point in the ``cliauth.handlers`` group. The entry-point name is
the handler type name; the object it points to is either an
:class:`~cliauth.auth.base.AuthHandler` subclass (instantiated with no
arguments) or a ready-made instance::

    [project.entry-points."cliauth.handlers"]
    oidc = "my_package.oidc:OIDCHandler"
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import TYPE_CHECKING

from cliauth.auth.base import AuthHandler

if TYPE_CHECKING:
    from cliauth.auth.manager import AuthSystem

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "cliauth.handlers"
"""The entry-point group name used for handler discovery."""


def discover_handlers(system: AuthSystem) -> list[str]:
    """Load every handler in the ``cliauth.handlers`` group into *system*.

    A handler that fails to import or instantiate is logged and skipped, so
    one broken package cannot take the whole CLI down.

    Args:
        system: The auth system to register discovered handlers with.

    Returns:
        The type names that were registered.
    """
    loaded: list[str] = []
    for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
        try:
            target = ep.load()
            handler = target() if isinstance(target, type) else target
        except Exception as exc:
            logger.warning("Failed to load auth handler '%s': %s", ep.name, exc)
            continue
        if not isinstance(handler, AuthHandler):
            logger.warning(
                "Entry point '%s' does not provide an AuthHandler (got %s), skipping",
                ep.name,
                type(handler).__name__,
            )
            continue
        system.register(ep.name, handler)
        loaded.append(ep.name)
    return loaded
