"""atat CLI tool.

Keeps a Markdown checklist (TODO.md) in sync with GitHub issues.
"""

__version__ = "0.1.0"

# Export exceptions for easy access
from atat.exceptions import (
    AtatError,
    AuthenticationRequiredError,
    AuthDeniedError,
    AuthExpiredError,
    DocumentNotFoundError,
    InvalidRepositoryFormatError,
    NetworkError,
    NoRepositoryConfiguredError,
    RateLimitError,
    RepositoryNotFoundError,
)

__all__ = [
    "__version__",
    "AtatError",
    "AuthenticationRequiredError",
    "AuthDeniedError",
    "AuthExpiredError",
    "DocumentNotFoundError",
    "InvalidRepositoryFormatError",
    "NetworkError",
    "NoRepositoryConfiguredError",
    "RateLimitError",
    "RepositoryNotFoundError",
]
