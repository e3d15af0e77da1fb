"""Rich progress display for git worker events (clone, push)."""

from __future__ import annotations

from types import TracebackType
from typing import TYPE_CHECKING, Self

from rich.progress import BarColumn, Progress, TaskID, TextColumn, TimeElapsedColumn
from rich.text import Text

from notepress.infrastructure.git import MessageEvent, ProgressEvent
from notepress.output.console import create_progress_console

if TYPE_CHECKING:
    from rich.console import Console


class GitProgress:
    """One progress bar per git phase; messages print above the bars.

    Usage::

        with GitProgress() as progress:
            svc.publish(on_event=progress.handle)
    """

    def __init__(self, console: Console | None = None, *, enabled: bool = True) -> None:
        self._enabled = enabled
        self._progress = Progress(
            TextColumn("[np.op]{task.description}"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=console or create_progress_console(),
            transient=True,
        )
        self._tasks: dict[str, TaskID] = {}

    def __enter__(self) -> Self:
        if self._enabled:
            self._progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._enabled:
            self._progress.stop()

    def handle(self, event: ProgressEvent | MessageEvent) -> None:
        if not self._enabled:
            return
        if isinstance(event, MessageEvent):
            self._progress.console.print(Text(event.message, style="np.key"))
            return
        task = self._tasks.get(event.phase)
        if task is None:
            task = self._progress.add_task(event.phase, total=event.total or None)
            self._tasks[event.phase] = task
        self._progress.update(task, completed=event.loaded, total=event.total or None)
