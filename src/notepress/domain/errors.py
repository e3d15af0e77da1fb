"""Error kinds shared across layers.

Recoverable conditions (theme load, field validation) are absorbed by the
service layer and reported through ServiceResult. InvariantViolation
signals a programming-contract bug and is never converted.
"""

from __future__ import annotations


class NotepressError(Exception):
    """Base exception for all notepress errors."""


class ThemeLoadError(NotepressError):
    """A theme bundle could not be read or parsed."""

    def __init__(self, theme_name: str, reason: str) -> None:
        super().__init__(f"Failed to load theme {theme_name!r}: {reason}")
        self.theme_name = theme_name
        self.reason = reason


class ValidationError(NotepressError):
    """One or more fields failed their rules.

    ``errors`` maps field name to the list of failed rule messages.
    """

    def __init__(self, errors: dict[str, list[str]], *, scope: str = "fields") -> None:
        details = "; ".join(f"{name}: {', '.join(msgs)}" for name, msgs in errors.items())
        super().__init__(f"Invalid {scope}: {details}")
        self.errors = errors
        self.scope = scope


class GenerationError(NotepressError):
    """A generation pass was aborted; no output is produced."""

    def __init__(self, message: str, *, page: str | None = None) -> None:
        super().__init__(f"[{page}] {message}" if page else message)
        self.page = page


class GitPublishError(NotepressError):
    """Base for failures reported by the git publish worker."""

    kind = "publish"


class AuthError(GitPublishError):
    """The remote rejected the provided credentials."""

    kind = "auth"


class NetworkError(GitPublishError):
    """The remote could not be reached or the transfer failed."""

    kind = "network"


class PublishCancelled(GitPublishError):
    """The publish was cancelled during the grace period."""

    kind = "cancelled"


class GitCommandError(GitPublishError):
    """A local git command failed."""

    kind = "git"


class InvariantViolation(NotepressError):
    """Expected session state is missing. Indicates a bug, not user error."""
