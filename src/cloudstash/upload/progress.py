"""Rich progress display for the upload orchestrator.

Two tiers:

* **Overall** -- percentage of files that reached a terminal state
* **Per file** -- phase progress (10/30/70/100) or a failure marker
"""

from __future__ import annotations

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
)

from cloudstash.constants import PROGRESS_DONE, PROGRESS_ERROR
from cloudstash.models import SelectedFile


class UploadProgressTracker:
    """Renders orchestrator progress events as Rich progress bars.

    Usage::

        tracker = UploadProgressTracker(files)
        with tracker:
            orchestrator = UploadOrchestrator(slots, transfer, progress=tracker)
            await orchestrator.start_upload(folder_id)

    The tracker keeps the last value seen per file in :attr:`file_values`
    so callers (and tests) can inspect it without a terminal.
    """

    def __init__(
        self, files: list[SelectedFile], console: Console | None = None
    ) -> None:
        self._files = list(files)
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TextColumn("{task.fields[status]}", style="dim"),
            console=console,
        )

        self._overall_task: TaskID | None = None
        self._file_tasks: dict[int, TaskID] = {}
        self.file_values: dict[int, int] = {}
        self.overall = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the Rich progress display."""
        self._progress.start()
        self._overall_task = self._progress.add_task(
            "[green]Overall", total=100, status=f"{len(self._files)} file(s)"
        )
        for index, file in enumerate(self._files):
            self._file_tasks[index] = self._progress.add_task(
                _truncate_name(file.name), total=100, status="queued"
            )

    def stop(self) -> None:
        """Stop the Rich progress display."""
        self._progress.stop()

    def __enter__(self) -> UploadProgressTracker:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Orchestrator events
    # ------------------------------------------------------------------

    def file_progress(self, index: int, value: int) -> None:
        """Record a per-file progress value or the error sentinel."""
        self.file_values[index] = value
        task = self._file_tasks.get(index)
        if task is None:
            return

        if value == PROGRESS_ERROR:
            self._progress.update(task, status="[red]FAILED[/red]")
        elif value == PROGRESS_DONE:
            self._progress.update(task, completed=value, status="[green]done[/green]")
        else:
            self._progress.update(task, completed=value, status=f"{value}%")

    def overall_progress(self, percent: int) -> None:
        """Record the overall batch percentage."""
        self.overall = percent
        if self._overall_task is not None:
            self._progress.update(self._overall_task, completed=percent)

    def reset(self) -> None:
        """Forget per-file values once the orchestrator clears its batch."""
        self.file_values.clear()
        self.overall = 0


def _truncate_name(name: str, max_len: int = 40) -> str:
    """Truncate a file name for display, keeping its extension visible."""
    if len(name) <= max_len:
        return name
    return "..." + name[-(max_len - 3) :]
