"""Access token persistence."""

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from atat.core import get_token_path
from atat.exceptions import AtatError

logger = logging.getLogger(__name__)


class TokenStore(ABC):
    """Interface for access token persistence."""

    @abstractmethod
    def get(self) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, token: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemoryTokenStore(TokenStore):
    """Token store that keeps the token for the life of the process only."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore(TokenStore):
    """Token store backed by a file readable only by its owner."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else get_token_path()

    def get(self) -> Optional[str]:
        """Return the stored token, or None if nothing is stored."""
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise AtatError(f"Failed to read token file: {e}")
        return token or None

    def set(self, token: str) -> None:
        """Persist the token with 0600 permissions."""
        try:
            self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            # Owner-only from creation; chmod covers a pre-existing file
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(token)
            self.path.chmod(0o600)
        except OSError as e:
            raise AtatError(f"Failed to save token: {e}")
        logger.debug("Saved token to %s", self.path)

    def clear(self) -> None:
        """Delete the stored token if present."""
        try:
            self.path.unlink()
            logger.debug("Removed token file %s", self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise AtatError(f"Failed to delete token file: {e}")
