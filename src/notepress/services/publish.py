"""PublishService — push generated output to the configured git remote.

The shadow tree is owned by the git worker process. This service only
materializes the logical file set into it and then hands control to the
worker; the worker decides what to stage, delete, commit and push.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

from notepress.domain.errors import (
    AuthError,
    GitPublishError,
    NetworkError,
    PublishCancelled,
)
from notepress.infrastructure.filesystem import read_output_set, write_output_set
from notepress.infrastructure.git import AuthInfo, GitInfo, GitWorkerClient
from notepress.infrastructure.git.client import EventHandler
from notepress.services._helpers import now_iso
from notepress.services.base import BaseService
from notepress.services.result import ServiceResult

logger = logging.getLogger(__name__)

GIT_DIR_NAME = ".git"


def _error_code(exc: GitPublishError) -> str:
    if isinstance(exc, AuthError):
        return "AUTH_FAILED"
    if isinstance(exc, NetworkError):
        return "NETWORK_FAILED"
    if isinstance(exc, PublishCancelled):
        return "CANCELLED"
    return "PUBLISH_FAILED"


class PublishService(BaseService):
    """Clone the publish repository and push the generated site to it."""

    def _git_info(self) -> GitInfo | None:
        cfg = self._workspace.settings.git
        if not cfg.url:
            return None
        return GitInfo(
            url=cfg.url,
            branch=cfg.branch,
            remote=cfg.remote,
            dir=self._workspace.shadow_dir,
        )

    def _auth_info(self) -> AuthInfo:
        cfg = self._workspace.settings.git
        return AuthInfo(user_name=cfg.user_name, token=cfg.token, email=cfg.email)

    @contextmanager
    def _client(self, client: GitWorkerClient | None) -> Iterator[GitWorkerClient]:
        """Use *client* as-is, or run a private worker for the call."""
        if client is not None:
            yield client
            return
        with GitWorkerClient() as owned:
            yield owned

    def _not_configured(self, op: str) -> ServiceResult:
        return ServiceResult.failure(
            op,
            "NOT_CONFIGURED",
            "No git remote configured; set [git] url in notepress.toml",
        )

    def init_repo(
        self,
        *,
        client: GitWorkerClient | None = None,
        on_event: EventHandler | None = None,
    ) -> ServiceResult:
        """Wipe and re-clone the shadow repository."""
        git_info = self._git_info()
        if git_info is None:
            return self._not_configured("init_repo")
        try:
            with self._client(client) as worker:
                data = worker.init_repo(git_info, self._auth_info(), on_event=on_event)
        except GitPublishError as exc:
            logger.warning("git init failed: %s", exc)
            return ServiceResult.failure(
                "init_repo", _error_code(exc), str(exc), detail={"kind": exc.kind}
            )
        return ServiceResult(
            ok=True,
            op="init_repo",
            data={"dir": str(git_info.dir), "branch": git_info.branch, **data},
        )

    def publish(
        self,
        files: Mapping[str, bytes] | None = None,
        *,
        client: GitWorkerClient | None = None,
        on_event: EventHandler | None = None,
    ) -> ServiceResult:
        """Publish *files* (default: the generated output directory)."""
        git_info = self._git_info()
        if git_info is None:
            return self._not_configured("publish")

        if files is None:
            output_dir = self._workspace.output_dir
            if not output_dir.is_dir():
                return ServiceResult.failure(
                    "publish",
                    "NOT_FOUND",
                    f"No generated site in {output_dir}; run `notepress generate` first",
                )
            files = read_output_set(output_dir)

        cfg = self._workspace.settings.git
        message = cfg.commit_message.replace("{timestamp}", now_iso())
        warnings: list[str] = []
        try:
            with self._client(client) as worker:
                if not (git_info.dir / GIT_DIR_NAME).is_dir():
                    logger.info("Shadow repository missing; cloning %s", cfg.url)
                    worker.init_repo(git_info, self._auth_info(), on_event=on_event)
                write_output_set(git_info.dir, files, keep=frozenset({GIT_DIR_NAME}))
                data = worker.publish(
                    git_info,
                    self._auth_info(),
                    sorted(files),
                    message=message,
                    delay=cfg.publish_delay,
                    on_event=on_event,
                )
        except GitPublishError as exc:
            logger.warning("publish failed: %s", exc)
            return ServiceResult.failure(
                "publish", _error_code(exc), str(exc), detail={"kind": exc.kind}
            )

        self._notify(
            "post_publish",
            warnings,
            branch=git_info.branch,
            commit=data.get("commit"),
            file_count=len(files),
            deleted=list(data.get("deleted", [])),
        )
        logger.info("Published %d files to %s", len(files), git_info.branch)
        return ServiceResult(
            ok=True,
            op="publish",
            data={"branch": git_info.branch, "message": message, **data},
            warnings=warnings,
        )
