"""Host-side handle on the git publish worker process.

Each call sends one request and blocks until its single result arrives,
relaying progress and message events to ``on_event`` as they come in.
Results that carry an error are raised again as the matching exception.
"""

from __future__ import annotations

import itertools
import logging
import multiprocessing
import queue
import threading
from collections.abc import Callable, Sequence
from types import TracebackType
from typing import Any, Self

from notepress.domain.errors import (
    AuthError,
    GitCommandError,
    GitPublishError,
    NetworkError,
    PublishCancelled,
)
from notepress.infrastructure.git.protocol import (
    AuthInfo,
    GitInfo,
    MessageEvent,
    ProgressEvent,
    WorkerRequest,
    WorkerResult,
    parse_message,
)
from notepress.infrastructure.git.worker import worker_main

logger = logging.getLogger(__name__)

EventHandler = Callable[[ProgressEvent | MessageEvent], None]

_ERROR_KINDS: dict[str, type[GitPublishError]] = {
    AuthError.kind: AuthError,
    NetworkError.kind: NetworkError,
    PublishCancelled.kind: PublishCancelled,
    GitCommandError.kind: GitCommandError,
}

_POLL_SECONDS = 0.5


class GitWorkerClient:
    """Spawn and talk to a :func:`worker_main` process.

    Usage::

        with GitWorkerClient() as client:
            client.init_repo(git_info, auth_info)
            client.publish(git_info, auth_info, files, message="Publish")
    """

    def __init__(self) -> None:
        self._ctx = multiprocessing.get_context("spawn")
        self._requests: Any = None
        self._controls: Any = None
        self._events: Any = None
        self._process: Any = None
        self._ids = itertools.count(1)
        self._active_request: int | None = None
        self._lock = threading.Lock()

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._requests = self._ctx.Queue()
        self._controls = self._ctx.Queue()
        self._events = self._ctx.Queue()
        self._process = self._ctx.Process(
            target=worker_main,
            args=(self._requests, self._controls, self._events),
            name="notepress-git-worker",
            daemon=True,
        )
        self._process.start()
        logger.debug("Started git worker pid=%s", self._process.pid)

    def close(self, timeout: float = 5.0) -> None:
        """Ask the worker to exit; terminate it if it does not."""
        if self._process is None:
            return
        if self._process.is_alive():
            shutdown = WorkerRequest(id=next(self._ids), op="shutdown")
            self._requests.put(shutdown.model_dump(mode="json"))
            self._process.join(timeout)
            if self._process.is_alive():
                logger.warning("Git worker did not exit; terminating")
                self._process.terminate()
                self._process.join(timeout)
        self._process = None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def init_repo(
        self,
        git_info: GitInfo,
        auth_info: AuthInfo,
        *,
        on_event: EventHandler | None = None,
    ) -> dict[str, Any]:
        """Wipe and re-clone the shadow tree. Raises AuthError/NetworkError."""
        request = WorkerRequest(
            id=next(self._ids),
            op="init_repo",
            git_info=git_info,
            auth_info=auth_info,
        )
        return self._call(request, on_event)

    def publish(
        self,
        git_info: GitInfo,
        auth_info: AuthInfo,
        files: Sequence[str],
        *,
        message: str,
        delay: float = 3.0,
        on_event: EventHandler | None = None,
    ) -> dict[str, Any]:
        """Stage, diff-delete, commit and push *files* already on the shadow tree."""
        request = WorkerRequest(
            id=next(self._ids),
            op="publish",
            git_info=git_info,
            auth_info=auth_info,
            files=list(files),
            message=message,
            delay=delay,
        )
        return self._call(request, on_event)

    def cancel(self) -> bool:
        """Cancel the in-flight publish. Only effective during the grace delay.

        Returns False when no request is active.
        """
        with self._lock:
            request_id = self._active_request
        if request_id is None or self._controls is None:
            return False
        self._controls.put({"op": "cancel", "request_id": request_id})
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _call(self, request: WorkerRequest, on_event: EventHandler | None) -> dict[str, Any]:
        self.start()
        with self._lock:
            self._active_request = request.id
        try:
            self._requests.put(request.model_dump(mode="json"))
            result = self._wait_result(request.id, on_event)
        finally:
            with self._lock:
                self._active_request = None

        if result.ok:
            return result.data
        error_cls = _ERROR_KINDS.get(result.error_kind or "", GitPublishError)
        raise error_cls(result.error_message or f"{request.op} failed")

    def _wait_result(self, request_id: int, on_event: EventHandler | None) -> WorkerResult:
        interrupted = False
        while True:
            try:
                payload = self._events.get(timeout=_POLL_SECONDS)
            except KeyboardInterrupt:
                # First Ctrl-C requests cancellation and keeps waiting for the
                # worker to report; a second one aborts the wait.
                if interrupted:
                    raise
                interrupted = True
                logger.info("Interrupted; cancelling request %s", request_id)
                self._controls.put({"op": "cancel", "request_id": request_id})
                continue
            except queue.Empty:
                if not self.is_running:
                    self._process = None
                    msg = "Git worker exited unexpectedly"
                    raise GitPublishError(msg) from None
                continue

            message = parse_message(payload)
            if message.request_id != request_id:
                logger.debug("Dropping stale worker message for request %s", message.request_id)
                continue
            if isinstance(message, WorkerResult):
                return message
            if on_event is not None:
                on_event(message)
