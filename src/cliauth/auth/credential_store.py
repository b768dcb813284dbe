"""Persistent secrets document holding named credentials.

Stores every credential in ``~/.local/share/cliauth/secrets.json`` (XDG) or
the platform-equivalent directory. The file is written atomically via
:func:`~cliauth.config.write_json_document` with ``0o600`` permissions so
that secrets are never world-readable, even momentarily.

The document maps credential names to :class:`~cliauth.models.Credential`
entries::

    {
      "credentials": {
        "work": {
          "auth_server_name": "example-com",
          "token_payload": {"access_token": "...", "client_id": "...", ...}
        }
      }
    }

See Also:
    :class:`~cliauth.auth.base.AuthHandler` -- handlers that produce token payloads.
    :mod:`cliauth.auth.lifecycle` -- the ``add-credentials`` operation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from cliauth.config import get_data_dir, read_json_document, write_json_document
from cliauth.exceptions import DuplicateNameError, StoreReadError
from cliauth.models import Credential, Secrets

logger = logging.getLogger(__name__)

_SECRETS_FILENAME = "secrets.json"
_SECRETS_MODE = 0o600


class CredentialStore:
    """Read/write the secrets document.

    All writes are atomic: content is written to a temporary file in the
    same directory, fsynced, then renamed into place.

    Args:
        path: Location of the secrets file. Defaults to
            ``get_data_dir() / "secrets.json"``.

    Example::

        store = CredentialStore()
        store.update_credentials_token("work", credential)
        assert "work" in store.load().credentials
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or get_data_dir() / _SECRETS_FILENAME

    @property
    def path(self) -> Path:
        """The filesystem path to the secrets file."""
        return self._path

    def load(self) -> Secrets:
        """Load the secrets document.

        Returns:
            The deserialised :class:`~cliauth.models.Secrets`, empty when
            the file does not exist yet.

        Raises:
            StoreReadError: If the file is unreadable, not JSON, or fails
                validation.
        """
        data = read_json_document(self._path)
        try:
            return Secrets.model_validate(data)
        except ValidationError as exc:
            raise StoreReadError(f"Invalid secrets at {self._path}: {exc}") from exc

    def get(self, name: str) -> Optional[Credential]:
        """Return the credential stored under *name*, if any."""
        return self.load().credentials.get(name)

    def exists(self, name: str) -> bool:
        return name in self.load().credentials

    def update_credentials_token(self, name: str, credential: Credential) -> None:
        """Insert *credential* under *name*, refusing to overwrite.

        The existence check and the write operate on the same freshly read
        document, and the write is a single atomic replace.

        Args:
            name: Sanitized credential name.
            credential: The credential to persist.

        Raises:
            DuplicateNameError: If *name* is already present.
            StoreReadError: If the current document cannot be read.
            StoreWriteError: If the file cannot be written.
        """
        secrets = self.load()
        if name in secrets.credentials:
            raise DuplicateNameError("credential", name)
        secrets.credentials[name] = credential
        write_json_document(self._path, secrets.model_dump(mode="json"), mode=_SECRETS_MODE)
        logger.debug("Stored credential '%s' for auth server '%s'", name, credential.auth_server_name)
