"""Project configuration stored in .atat/config.json."""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from atat.core import get_config_path
from atat.exceptions import (
    ConfigError,
    InvalidRepositoryFormatError,
    NoRepositoryConfiguredError,
    RepositoryNotFoundError,
)

logger = logging.getLogger(__name__)

# GitHub owners: alphanumerics and single inner hyphens, at most 39 chars
_OWNER_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}$")
_REPO_RE = re.compile(r"^[A-Za-z0-9._-]{1,100}$")


def validate_repository(value: str) -> str:
    """Validate an ``<owner>/<repo>`` string.

    Args:
        value: Repository as typed by the user.

    Returns:
        The repository with surrounding whitespace removed.

    Raises:
        InvalidRepositoryFormatError: If the value is not owner/repo.
    """
    repo = value.strip()
    parts = repo.split("/")
    if len(parts) != 2:
        raise InvalidRepositoryFormatError(value)

    owner, name = parts
    if not _OWNER_RE.match(owner) or not _REPO_RE.match(name) or name in (".", ".."):
        raise InvalidRepositoryFormatError(value)
    return repo


def parse_config(text: str) -> Dict[str, Any]:
    """Parse config file contents.

    Args:
        text: Raw file contents.

    Returns:
        Dict with the known keys only. Blank input gives an empty dict.

    Raises:
        ConfigError: If the contents are not a JSON object of the right shape.
    """
    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except ValueError as e:
        raise ConfigError(f"invalid JSON ({e})")
    if not isinstance(data, dict):
        raise ConfigError("expected a JSON object")

    config: Dict[str, Any] = {}
    if "repositories" in data:
        repositories = data["repositories"]
        if not isinstance(repositories, list) or not all(isinstance(r, str) for r in repositories):
            raise ConfigError("'repositories' must be a list of strings")
        config["repositories"] = list(repositories)
    return config


class ProjectConfig:
    """Repositories configured for the project in the working directory."""

    def __init__(self, path: Optional[Path] = None, repositories: Optional[List[str]] = None):
        self.path = Path(path) if path is not None else get_config_path()
        self._repositories: List[str] = list(repositories or [])

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ProjectConfig":
        """Load the config; a missing file gives an empty config."""
        config_path = Path(path) if path is not None else get_config_path()
        try:
            text = config_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return cls(config_path)
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(str(e))

        data = parse_config(text)
        return cls(config_path, data.get("repositories", []))

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps({"repositories": self._repositories}, indent=2) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            raise ConfigError(f"failed to write {self.path}: {e}")
        logger.debug("Saved project config to %s", self.path)

    @property
    def repositories(self) -> List[str]:
        return list(self._repositories)

    def add_repository(self, repo: str, client=None) -> bool:
        """Add a repository.

        The format is checked first, then (given a client) that the
        repository exists. Nothing is stored when either check fails.

        Args:
            repo: Repository in owner/repo form.
            client: Optional GitHubClient used for the existence check.

        Returns:
            True if added, False if it was already configured.

        Raises:
            InvalidRepositoryFormatError: If repo is malformed.
            RepositoryNotFoundError: If the repository is not accessible.
        """
        repo = validate_repository(repo)
        if client is not None and not client.repository_exists(repo):
            raise RepositoryNotFoundError(repo)
        if repo in self._repositories:
            return False
        self._repositories.append(repo)
        return True

    def remove_repository(self, repo: str) -> bool:
        """Remove a repository. Returns False if it was not configured."""
        repo = repo.strip()
        if repo not in self._repositories:
            return False
        self._repositories.remove(repo)
        return True

    def active_repository(self, override: Optional[str] = None) -> str:
        """Repository used by push and pull.

        Args:
            override: Repository given on the command line, if any.

        Raises:
            InvalidRepositoryFormatError: If override is malformed.
            NoRepositoryConfiguredError: If nothing is configured.
        """
        if override:
            return validate_repository(override)
        if not self._repositories:
            raise NoRepositoryConfiguredError()
        return self._repositories[0]
