"""Core paths and constants for atat."""

import os
from pathlib import Path
from typing import Optional


DEFAULT_DOCUMENT = "TODO.md"

# Project configuration lives next to the document
PROJECT_CONFIG_DIR = ".atat"
PROJECT_CONFIG_FILENAME = "config.json"

TOKEN_FILENAME = "token"


def get_config_path(start_path: Optional[Path] = None) -> Path:
    """Get the project configuration file path.

    Args:
        start_path: Project directory. Defaults to current working directory.

    Returns:
        Path to .atat/config.json inside the project directory.
    """
    root = Path.cwd() if start_path is None else Path(start_path)
    return root / PROJECT_CONFIG_DIR / PROJECT_CONFIG_FILENAME


def get_home_dir() -> Path:
    """Get the per-user atat directory.

    ATAT_HOME overrides the default of ~/.atat.

    Returns:
        Path to the per-user directory (not created).
    """
    override = os.environ.get("ATAT_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / PROJECT_CONFIG_DIR


def get_token_path() -> Path:
    """Get the path of the persisted access token."""
    return get_home_dir() / TOKEN_FILENAME


def get_document_path(document: Optional[str] = None) -> Path:
    """Resolve the checklist document path relative to the working directory."""
    return Path(document or DEFAULT_DOCUMENT)
