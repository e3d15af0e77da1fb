"""Git publish worker — runs in its own process and owns the shadow tree.

The host talks to it exclusively through three queues: requests in,
cancel controls in, events (progress, messages, one result per request)
out. No other component may touch the shadow working tree while the
worker is alive.

Publish sequence: grace delay (cancellable) → reset index to the branch
tree → stage everything → diff-delete paths absent from the logical file
set → commit when something is staged → force-push the branch. A failure
after staging leaves the tree in a state where re-running the whole
publish with the same files succeeds: the index is rebuilt from the branch
tree each time, and a commit left behind by a failed push is simply pushed
again.
"""

from __future__ import annotations

import queue
import shutil
import signal
import time
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any

from notepress.domain.errors import GitCommandError, GitPublishError, PublishCancelled
from notepress.infrastructure.git.commands import GitRunner
from notepress.infrastructure.git.protocol import (
    AuthInfo,
    GitInfo,
    MessageEvent,
    ProgressEvent,
    WorkerRequest,
    WorkerResult,
)

if TYPE_CHECKING:
    from multiprocessing.queues import Queue

DEFAULT_USER_NAME = "notepress"
DEFAULT_EMAIL = "notepress@localhost"
_RM_BATCH = 100


class GitPublishWorker:
    """Executes worker requests against the shadow working tree."""

    def __init__(self, controls: Queue[Any], events: Queue[Any]) -> None:
        self._controls = controls
        self._events = events
        self._request_id = 0

    # ------------------------------------------------------------------
    # Event emission
    # ------------------------------------------------------------------

    def _progress(self, phase: str, loaded: int, total: int) -> None:
        event = ProgressEvent(request_id=self._request_id, phase=phase, loaded=loaded, total=total)
        self._events.put(event.model_dump(mode="json"))

    def _message(self, message: str) -> None:
        event = MessageEvent(request_id=self._request_id, message=message)
        self._events.put(event.model_dump(mode="json"))

    def _runner(self, cwd: Path) -> GitRunner:
        return GitRunner(cwd, on_progress=self._progress, on_message=self._message)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle(self, request: WorkerRequest) -> WorkerResult:
        """Run one request; every failure becomes an error result."""
        self._request_id = request.id
        try:
            if request.git_info is None:
                msg = f"{request.op} requires git_info"
                raise GitCommandError(msg)
            auth = request.auth_info or AuthInfo()
            if request.op == "init_repo":
                data = self.init_repo(request.git_info, auth)
            elif request.op == "publish":
                data = self.publish(
                    request.git_info,
                    auth,
                    request.files,
                    message=request.message,
                    delay=request.delay,
                )
            else:
                msg = f"Unknown worker operation: {request.op}"
                raise GitCommandError(msg)
        except GitPublishError as exc:
            return WorkerResult(
                request_id=request.id,
                ok=False,
                error_kind=exc.kind,
                error_message=str(exc),
            )
        except Exception as exc:  # noqa: BLE001
            return WorkerResult(
                request_id=request.id,
                ok=False,
                error_kind=GitPublishError.kind,
                error_message=f"{type(exc).__name__}: {exc}",
            )
        return WorkerResult(request_id=request.id, ok=True, data=data)

    # ------------------------------------------------------------------
    # init_repo
    # ------------------------------------------------------------------

    def init_repo(self, git_info: GitInfo, auth: AuthInfo) -> dict[str, Any]:
        """Wipe the shadow tree and shallow-clone the remote into it."""
        repo_dir = git_info.dir
        if repo_dir.exists():
            shutil.rmtree(repo_dir)
        repo_dir.mkdir(parents=True)

        self._message(f"Cloning {git_info.url}")
        self._runner(repo_dir.parent).run_remote(
            "clone",
            "--progress",
            "--depth",
            "1",
            "--no-checkout",
            "--no-single-branch",
            "--origin",
            git_info.remote,
            git_info.url,
            str(repo_dir),
            auth=auth,
        )

        git = self._runner(repo_dir)
        branch_ref = f"refs/heads/{git_info.branch}"
        remote_ref = f"refs/remotes/{git_info.remote}/{git_info.branch}"
        created = False
        if not _ref_exists(git, branch_ref):
            if _ref_exists(git, remote_ref):
                git.run("branch", "--quiet", git_info.branch, remote_ref)
            else:
                created = True
                if _ref_exists(git, "HEAD"):
                    git.run("branch", "--quiet", git_info.branch, "HEAD")
        git.run("symbolic-ref", "HEAD", branch_ref)

        git.run("config", "user.name", auth.user_name or DEFAULT_USER_NAME)
        git.run("config", "user.email", auth.email or DEFAULT_EMAIL)
        return {"dir": str(repo_dir), "branch": git_info.branch, "created_branch": created}

    # ------------------------------------------------------------------
    # publish
    # ------------------------------------------------------------------

    def _wait_for_cancel(self, delay: float) -> None:
        """Sleep *delay* seconds; raise if a cancel for this request arrives."""
        deadline = time.monotonic() + delay
        while (remaining := deadline - time.monotonic()) > 0:
            try:
                control = self._controls.get(timeout=remaining)
            except queue.Empty:
                return
            if control.get("op") == "cancel" and control.get("request_id") == self._request_id:
                raise PublishCancelled("Publish cancelled before staging")

    def _drain_stale_controls(self) -> None:
        while True:
            try:
                control = self._controls.get_nowait()
            except queue.Empty:
                return
            if control.get("request_id") == self._request_id:
                # Cancel raced ahead of the grace period; honour it.
                raise PublishCancelled("Publish cancelled before staging")

    def publish(
        self,
        git_info: GitInfo,
        auth: AuthInfo,
        files: list[str],
        *,
        message: str,
        delay: float,
    ) -> dict[str, Any]:
        """Commit the shadow tree so the branch holds exactly *files*, then push."""
        repo_dir = git_info.dir
        self._drain_stale_controls()
        if delay > 0:
            self._message(f"Publishing in {delay:g}s")
            self._wait_for_cancel(delay)

        if not (repo_dir / ".git").is_dir():
            msg = f"Shadow repository is not initialized: {repo_dir}"
            raise GitCommandError(msg)

        git = self._runner(repo_dir)
        branch_ref = f"refs/heads/{git_info.branch}"
        has_branch = _ref_exists(git, branch_ref)

        if has_branch:
            git.run("read-tree", branch_ref)
        else:
            git.run("read-tree", "--empty")
        git.run("add", "--all", "--", ".")

        keep = {_relative_path(path, repo_dir) for path in files}
        tracked = set(_null_split(git.run("ls-files", "-z").stdout))
        if has_branch:
            listing = git.run("ls-tree", "-r", "-z", "--name-only", branch_ref).stdout
            tracked |= set(_null_split(listing))
        deleted = sorted(tracked - keep)
        for start in range(0, len(deleted), _RM_BATCH):
            batch = deleted[start : start + _RM_BATCH]
            git.run("rm", "--cached", "--quiet", "--ignore-unmatch", "--", *batch)
        if deleted:
            self._message(f"Removing {len(deleted)} file(s) absent from the site")

        staged = git.run("diff", "--cached", "--quiet", check=False).returncode != 0
        if staged:
            git.run("commit", "--quiet", "--no-verify", "-m", message)
        elif not has_branch:
            msg = "Nothing to publish: the file set is empty"
            raise GitCommandError(msg)
        else:
            self._message("No changes since the last commit; pushing the branch as is")

        commit = git.run("rev-parse", branch_ref).stdout.strip()
        self._message(f"Pushing {git_info.branch}")
        git.run_remote(
            "push",
            "--progress",
            "--force",
            git_info.url,
            f"{branch_ref}:{branch_ref}",
            auth=auth,
        )
        return {
            "commit": commit,
            "committed": staged,
            "deleted": deleted,
            "file_count": len(keep),
        }


def _ref_exists(git: GitRunner, ref: str) -> bool:
    return git.run("rev-parse", "--verify", "--quiet", ref, check=False).returncode == 0


def _null_split(output: str) -> list[str]:
    return [item for item in output.split("\0") if item]


def _relative_path(path: str, repo_dir: Path) -> str:
    """Normalize a file path to a repository-relative POSIX path."""
    candidate = Path(path)
    if candidate.is_absolute():
        candidate = candidate.relative_to(repo_dir)
    return PurePosixPath(candidate.as_posix()).as_posix()


def worker_main(requests: Queue[Any], controls: Queue[Any], events: Queue[Any]) -> None:
    """Process entry point: serve requests until a shutdown request arrives."""
    # Ctrl-C in the host terminal reaches the whole process group; the host
    # turns it into a cancel control message instead.
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    worker = GitPublishWorker(controls, events)
    while True:
        request = WorkerRequest.model_validate(requests.get())
        if request.op == "shutdown":
            return
        result = worker.handle(request)
        events.put(result.model_dump(mode="json"))
