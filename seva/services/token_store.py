"""
TokenStore - Persists the bearer credential between runs.

The token lives in a small JSON file when a path is configured, otherwise
only in memory. The file is read once; after that, and after any set or
clear, the in-memory value is authoritative. Storage problems never
propagate: an unreadable file reads as "no token", a failed write keeps
the token in memory.
"""

import json
import time
from pathlib import Path

from jose import JWTError, jwt
from loguru import logger

TOKEN_KEY = "access_token"


def is_token_expired(token: str, now: float | None = None) -> bool:
    """
    Check whether a bearer token is past its `exp` claim.

    The signature is not verified; only the claims segment is decoded.
    Anything that cannot be decoded, or carries no usable `exp`, counts
    as expired.
    """
    try:
        claims = jwt.get_unverified_claims(token)
        exp = float(claims["exp"])
    except (JWTError, KeyError, TypeError, ValueError, AttributeError):
        return True

    current = time.time() if now is None else now
    return exp < current


class TokenStore:
    """
    Bearer credential storage.

    Usage:
        store = TokenStore(Path("~/.seva/token.json").expanduser())
        store.set(response.access_token)

        token = store.get()
        if token and not store.is_expired(token):
            headers["Authorization"] = f"Bearer {token}"
    """

    def __init__(self, path: Path | None = None):
        self._path = path
        self._memory: str | None = None
        # memory wins once loaded, set or cleared in this process
        self._loaded = False

    @property
    def path(self) -> Path | None:
        return self._path

    def get(self) -> str | None:
        """Return the stored token, or None if nothing is stored."""
        if not self._loaded:
            self._memory = self._load()
            self._loaded = True
        return self._memory

    def _load(self) -> str | None:
        """Read the persisted token once; later reads use memory."""
        if self._path is None:
            return None

        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Token storage unreadable at {self._path}: {e}")
            return None

        token = payload.get(TOKEN_KEY) if isinstance(payload, dict) else None
        return token if isinstance(token, str) and token else None

    def set(self, token: str) -> None:
        """Store a token, replacing any previous one."""
        self._memory = token
        self._loaded = True
        if self._path is None:
            return

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(json.dumps({TOKEN_KEY: token}), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as e:
            logger.warning(f"Could not persist token to {self._path}: {e}")

    def clear(self) -> None:
        """Remove the stored token."""
        self._memory = None
        self._loaded = True
        if self._path is None:
            return

        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove token at {self._path}: {e}")

    def is_expired(self, token: str) -> bool:
        return is_token_expired(token)

    def valid_token(self) -> str | None:
        """Return the stored token only if it has not expired."""
        token = self.get()
        if token and not self.is_expired(token):
            return token
        return None
