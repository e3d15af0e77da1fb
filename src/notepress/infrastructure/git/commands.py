"""Subprocess wrappers around the ``git`` binary.

Remote commands (clone, push) run with ``--progress``; their stderr is
parsed into progress and message callbacks while they run. Credentials are
sent as an HTTP basic ``Authorization`` header through ``-c`` so the token
never lands in ``.git/config`` or in the remote URL.
"""

from __future__ import annotations

import base64
import logging
import os
import re
import subprocess
from collections import deque
from collections.abc import Callable
from pathlib import Path

from notepress.domain.errors import AuthError, GitCommandError, NetworkError
from notepress.infrastructure.git.protocol import AuthInfo

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]
MessageCallback = Callable[[str], None]

_PROGRESS_RE = re.compile(
    r"^(?:remote:\s*)?(?P<phase>[A-Za-z][A-Za-z ]*?):\s+\d+% \((?P<loaded>\d+)/(?P<total>\d+)\)"
)

_AUTH_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "invalid username or password",
    "invalid credentials",
    "access denied",
    "terminal prompts disabled",
    "the requested url returned error: 401",
    "the requested url returned error: 403",
    "permission denied",
)


def _git_env() -> dict[str, str]:
    env = dict(os.environ)
    env["GIT_TERMINAL_PROMPT"] = "0"
    env["LC_ALL"] = "C"
    return env


def auth_config_args(auth: AuthInfo | None) -> list[str]:
    """``-c`` arguments carrying basic auth for HTTP(S) remotes."""
    if auth is None or not auth.token:
        return []
    raw = f"{auth.user_name}:{auth.token}".encode()
    header = base64.b64encode(raw).decode("ascii")
    return ["-c", f"http.extraHeader=Authorization: Basic {header}"]


def classify_remote_failure(output: str) -> type[AuthError] | type[NetworkError]:
    """Pick the error kind for a failed clone/push from git's stderr."""
    lowered = output.lower()
    if any(marker in lowered for marker in _AUTH_MARKERS):
        return AuthError
    return NetworkError


def _redact(args: list[str]) -> list[str]:
    return ["http.extraHeader=***" if a.startswith("http.extraHeader=") else a for a in args]


class GitRunner:
    """Run git commands inside one working directory."""

    def __init__(
        self,
        cwd: Path,
        *,
        on_progress: ProgressCallback | None = None,
        on_message: MessageCallback | None = None,
    ) -> None:
        self.cwd = cwd
        self._on_progress = on_progress
        self._on_message = on_message

    def run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        """Run a local git command. Raises :class:`GitCommandError` on failure."""
        logger.debug("git %s", " ".join(args))
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.cwd,
                capture_output=True,
                text=True,
                env=_git_env(),
                check=False,
            )
        except OSError as exc:
            msg = f"Cannot run git: {exc}"
            raise GitCommandError(msg) from exc
        if check and result.returncode != 0:
            msg = f"git {args[0]} failed: {result.stderr.strip() or result.stdout.strip()}"
            raise GitCommandError(msg)
        return result

    def run_remote(self, *args: str, auth: AuthInfo | None = None) -> None:
        """Run a network command, streaming progress.

        Raises :class:`AuthError` or :class:`NetworkError` on failure, with
        git's own output as the message. No retry happens here.
        """
        command = ["git", *auth_config_args(auth), *args]
        logger.debug("git %s", " ".join(_redact(command[1:])))
        try:
            proc = subprocess.Popen(
                command,
                cwd=self.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                env=_git_env(),
            )
        except OSError as exc:
            msg = f"Cannot run git: {exc}"
            raise GitCommandError(msg) from exc

        tail: deque[str] = deque(maxlen=40)
        assert proc.stderr is not None
        buffer = ""
        with proc.stderr:
            while chunk := proc.stderr.read1(4096):
                buffer += chunk.decode("utf-8", errors="replace")
                *complete, buffer = re.split(r"[\r\n]", buffer)
                for line in complete:
                    self._handle_line(line, tail)
        if buffer:
            self._handle_line(buffer, tail)

        if proc.wait() != 0:
            output = "\n".join(tail)
            error_cls = classify_remote_failure(output)
            raise error_cls(output or f"git {args[0]} exited with {proc.returncode}")

    def _handle_line(self, line: str, tail: deque[str]) -> None:
        line = line.strip()
        if not line:
            return
        match = _PROGRESS_RE.match(line)
        if match is not None:
            if self._on_progress is not None:
                self._on_progress(
                    match.group("phase"),
                    int(match.group("loaded")),
                    int(match.group("total")),
                )
            return
        tail.append(line)
        if self._on_message is not None:
            self._on_message(line)
