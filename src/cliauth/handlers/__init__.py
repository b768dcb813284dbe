"""Built-in auth handlers.

Each handler implements :class:`~cliauth.auth.base.AuthHandler` and is
registered by :func:`~cliauth.auth.manager.create_default_system`:

- :class:`~cliauth.handlers.manual_token.ManualTokenHandler` (``manual_token``)
- :class:`~cliauth.handlers.api_key.APIKeyHandler` (``api_key``)
"""

from cliauth.handlers.api_key import APIKeyHandler
from cliauth.handlers.manual_token import ManualTokenHandler

__all__ = ["APIKeyHandler", "ManualTokenHandler"]
