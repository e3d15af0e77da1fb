"""Messages exchanged with the git publish worker.

Everything crossing the process boundary is a plain dict produced by
``model_dump()``; neither side shares mutable objects with the other.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

WorkerOp = Literal["init_repo", "publish", "shutdown"]


class GitInfo(BaseModel):
    """Where the shadow tree lives and what it tracks."""

    model_config = {"frozen": True}

    url: str
    branch: str = "master"
    remote: str = "origin"
    dir: Path


class AuthInfo(BaseModel):
    """Credentials and commit identity. ``token`` is a password or PAT."""

    model_config = {"frozen": True}

    user_name: str = ""
    token: str = ""
    email: str = ""

    def __repr__(self) -> str:
        return f"AuthInfo(user_name={self.user_name!r}, token='***', email={self.email!r})"


class WorkerRequest(BaseModel):
    model_config = {"frozen": True}

    id: int
    op: WorkerOp
    git_info: GitInfo | None = None
    auth_info: AuthInfo | None = None
    files: list[str] = Field(default_factory=list)
    message: str = ""
    delay: float = 0.0


class ProgressEvent(BaseModel):
    """Proportional progress of a network phase (clone, push)."""

    model_config = {"frozen": True}

    kind: Literal["progress"] = "progress"
    request_id: int
    phase: str
    loaded: int
    total: int

    @property
    def percent(self) -> float:
        return 100.0 * self.loaded / self.total if self.total else 0.0


class MessageEvent(BaseModel):
    """A log line from git or the worker. Purely observational."""

    model_config = {"frozen": True}

    kind: Literal["message"] = "message"
    request_id: int
    message: str


class WorkerResult(BaseModel):
    """Final answer to a request: exactly one per request."""

    model_config = {"frozen": True}

    kind: Literal["result"] = "result"
    request_id: int
    ok: bool
    error_kind: str | None = None
    error_message: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


def parse_message(payload: dict[str, Any]) -> ProgressEvent | MessageEvent | WorkerResult:
    """Rebuild a worker message from its dict form."""
    kind = payload.get("kind")
    if kind == "progress":
        return ProgressEvent.model_validate(payload)
    if kind == "message":
        return MessageEvent.model_validate(payload)
    return WorkerResult.model_validate(payload)
