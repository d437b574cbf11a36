"""Session storage for the bearer token attached to outbound requests.

The request decorator reads the current access token from a
:class:`SessionStore` once per attempt. Three implementations are
provided:

- :class:`InMemorySessionStore` for tokens obtained at runtime
- :class:`EnvironmentSessionStore` for a token supplied through
  configuration (``ZIMCERT_ACCESS_TOKEN``)
- :class:`FileSessionStore` for a token persisted between runs, with
  optional Fernet encryption at rest
"""

import base64
import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..exceptions import SessionStoreError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "zimcert_access_token"
DEFAULT_TOKEN_ENV_VAR = "ZIMCERT_ACCESS_TOKEN"


@dataclass
class SessionToken:
    """A stored access token with optional expiry."""

    value: str
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.now(timezone.utc)

    def is_expired(self, buffer_seconds: int = 0) -> bool:
        """Check if the token is expired or will expire within the buffer."""
        if self.expires_at is None:
            return False
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) >= expires_at - timedelta(seconds=buffer_seconds)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for storage."""
        return {
            "value": self.value,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionToken":
        """Deserialize from storage."""
        expires_at = data.get("expires_at")
        created_at = data.get("created_at")
        return cls(
            value=data["value"],
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            created_at=datetime.fromisoformat(created_at) if created_at else None,
        )


class SessionStore(ABC):
    """Abstract base class for session storage implementations."""

    @abstractmethod
    async def get_token(self) -> Optional[str]:
        """Return the current access token, or None when signed out.

        Expired tokens are reported as None.
        """
        pass

    @abstractmethod
    async def set_token(self, token: str, expires_at: Optional[datetime] = None) -> None:
        """Store a new access token."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Forget the current access token."""
        pass


class InMemorySessionStore(SessionStore):
    """Process-local session storage."""

    def __init__(self, token: Optional[str] = None):
        self._lock = threading.Lock()
        self._token: Optional[SessionToken] = SessionToken(token) if token else None

    async def get_token(self) -> Optional[str]:
        with self._lock:
            if self._token is None:
                return None
            if self._token.is_expired():
                logger.debug("Removed expired session token")
                self._token = None
                return None
            return self._token.value

    async def set_token(self, token: str, expires_at: Optional[datetime] = None) -> None:
        with self._lock:
            self._token = SessionToken(value=token, expires_at=expires_at)
        logger.debug("Stored session token in memory")

    async def clear(self) -> None:
        with self._lock:
            self._token = None


class EnvironmentSessionStore(SessionStore):
    """Read-only store for a token supplied by configuration.

    :param token: Explicit token, typically ``ClientSettings.access_token``
    :param env_var: Environment variable consulted when no token is given
    """

    def __init__(self, token: Optional[str] = None, env_var: str = DEFAULT_TOKEN_ENV_VAR):
        self._token = token
        self._env_var = env_var

    async def get_token(self) -> Optional[str]:
        return self._token or os.getenv(self._env_var) or None

    async def set_token(self, token: str, expires_at: Optional[datetime] = None) -> None:
        raise SessionStoreError(
            f"Environment session store is read-only; set {self._env_var} instead"
        )

    async def clear(self) -> None:
        self._token = None


class FileSessionStore(SessionStore):
    """Session storage persisted to a JSON file.

    The file holds a single entry under ``zimcert_access_token``. When
    an encryption key is given, the entry is encrypted with Fernet
    before it is written. Writes go to a temporary file first and are
    moved into place, and the file is restricted to its owner.

    The file is read on demand and re-read whenever its modification
    time changes, so a token refreshed by another process is picked up
    on the next read.

    :param path: Location of the session file
    :type path: Union[str, Path]
    :param encryption_key: Fernet key, or a passphrase to derive one from
    :type encryption_key: Optional[str]
    """

    def __init__(
        self,
        path: Union[str, Path],
        encryption_key: Optional[str] = None,
    ):
        self.path = Path(path).expanduser()
        self._fernet = _build_fernet(encryption_key) if encryption_key else None
        self._lock = threading.Lock()
        self._token: Optional[SessionToken] = None
        self._mtime_ns: Optional[int] = None

    @property
    def encrypted(self) -> bool:
        return self._fernet is not None

    async def get_token(self) -> Optional[str]:
        """Return the stored token if present and unexpired.

        :raises SessionStoreError: If the file cannot be read or decrypted
        """
        with self._lock:
            entry = self._current()
            if entry is None:
                return None
            if entry.is_expired():
                logger.info(f"Session token in {self.path} has expired")
                return None
            return entry.value

    async def set_token(self, token: str, expires_at: Optional[datetime] = None) -> None:
        entry = SessionToken(value=token, expires_at=expires_at)
        with self._lock:
            self._write(entry)
            self._token = entry
            self._mtime_ns = self._stat_mtime()

    async def clear(self) -> None:
        with self._lock:
            self._token = None
            self._mtime_ns = None
            if self.path.exists():
                self.path.unlink()
                logger.info(f"Cleared session file at {self.path}")

    def _current(self) -> Optional[SessionToken]:
        mtime_ns = self._stat_mtime()
        if mtime_ns is None:
            self._token, self._mtime_ns = None, None
        elif mtime_ns != self._mtime_ns:
            self._token = self._load()
            self._mtime_ns = mtime_ns
        return self._token

    def _stat_mtime(self) -> Optional[int]:
        try:
            return self.path.stat().st_mtime_ns
        except FileNotFoundError:
            return None
        except OSError as e:
            raise SessionStoreError(
                f"Failed to stat session file: {e}", path=str(self.path)
            ) from e

    def _load(self) -> Optional[SessionToken]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            entry = data.get(ACCESS_TOKEN_KEY)
            if entry is None:
                return None
            if self._fernet is not None:
                if not isinstance(entry, str):
                    raise SessionStoreError(
                        "Session file is not encrypted but an encryption key is configured",
                        path=str(self.path),
                    )
                entry = json.loads(self._fernet.decrypt(entry.encode()))
            elif not isinstance(entry, dict):
                raise SessionStoreError(
                    "Session file is encrypted but no encryption key is configured",
                    path=str(self.path),
                )
            return SessionToken.from_dict(entry)
        except SessionStoreError:
            raise
        except InvalidToken:
            raise SessionStoreError(
                "Could not decrypt session file; wrong encryption key?",
                path=str(self.path),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise SessionStoreError(
                f"Failed to load session file: {e}", path=str(self.path)
            ) from e

    def _write(self, entry: SessionToken) -> None:
        payload: Any = entry.to_dict()
        if self._fernet is not None:
            payload = self._fernet.encrypt(json.dumps(payload).encode()).decode()

        try:
            self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            temp_path = self.path.with_suffix(".tmp")
            with open(temp_path, "w") as f:
                json.dump({ACCESS_TOKEN_KEY: payload}, f, indent=2)
            temp_path.replace(self.path)
        except OSError as e:
            raise SessionStoreError(
                f"Failed to write session file: {e}", path=str(self.path)
            ) from e

        try:
            self.path.chmod(0o600)
        except OSError:
            logger.warning(f"Could not restrict permissions on {self.path}")
        logger.debug(f"Persisted session token to {self.path}")


def _build_fernet(key_input: str) -> Fernet:
    """Use ``key_input`` as a Fernet key, deriving one from it otherwise."""
    try:
        return Fernet(key_input.encode())
    except ValueError:
        pass

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=b"zimcert-client-session",
        iterations=100000,
    )
    return Fernet(base64.urlsafe_b64encode(kdf.derive(key_input.encode())))


def session_store_from_settings(settings: Any) -> Optional[SessionStore]:
    """Choose the session store implied by the client settings.

    A configured session file wins over a configured access token.

    :param settings: Client settings
    :type settings: ClientSettings
    :return: Session store, or None when no credentials are configured
    """
    if settings.session_file:
        return FileSessionStore(
            settings.session_file,
            encryption_key=settings.session_encryption_key,
        )
    if settings.access_token:
        return EnvironmentSessionStore(token=settings.access_token)
    return None
