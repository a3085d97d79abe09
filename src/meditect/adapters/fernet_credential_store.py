"""Encrypted file-backed credential store."""

import hashlib
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from meditect.errors import CredentialStoreError
from meditect.services.auth import CredentialStore


@dataclass
class FernetCredentialStore(CredentialStore):
    """Stores each key as one Fernet-encrypted file, replaced atomically."""

    directory: Path
    fernet: Fernet

    @classmethod
    def create(cls, directory: Path, key: str) -> "FernetCredentialStore":
        """Create a store from a urlsafe base64 Fernet key."""
        try:
            fernet = Fernet(key.encode("ascii"))
        except ValueError as exc:
            raise CredentialStoreError("Invalid credential store key") from exc
        return cls(directory=directory, fernet=fernet)

    def get(self, key: str) -> str | None:
        """Return the decrypted value for a key, if present."""
        path = self._path(key)
        try:
            token = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CredentialStoreError(f"Failed to read {key!r}") from exc
        try:
            return self.fernet.decrypt(token).decode("utf-8")
        except InvalidToken as exc:
            raise CredentialStoreError(f"Stored value for {key!r} is unreadable") from exc

    def set(self, key: str, value: str) -> None:
        """Encrypt and write a value, replacing any previous one."""
        token = self.fernet.encrypt(value.encode("utf-8"))
        try:
            self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(token)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, self._path(key))
            except OSError:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise CredentialStoreError(f"Failed to write {key!r}") from exc

    def delete(self, key: str) -> None:
        """Remove a stored value; missing keys are ignored."""
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise CredentialStoreError(f"Failed to delete {key!r}") from exc

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.enc"
