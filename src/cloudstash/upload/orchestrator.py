"""Multi-file upload orchestrator.

Owns the user's pending selection and turns it into a sequence of
:class:`~cloudstash.upload.task.UploadTask` runs:

* Files upload strictly one at a time, in the order they were added
* One file's failure never aborts the rest of the batch
* Overall progress moves only when a task reaches a terminal state
* A single summary is emitted per batch, then state is cleared and the
  refresh callback fires after a short delay

There is no cancellation and no timeout of its own.  A hung network call
stalls the whole batch until the HTTP layer gives up.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Iterable

from cloudstash.constants import DEFAULT_RESET_DELAY_SECONDS
from cloudstash.models import BatchResult, SelectedFile, UploadRecord
from cloudstash.upload.client import ObjectTransferClient, UploadSlotClient
from cloudstash.upload.exceptions import UploadInProgressError
from cloudstash.upload.task import UploadTask

logger = logging.getLogger(__name__)


class UploadOrchestrator:
    """Sequential upload engine for one user's file selection.

    Usage::

        orchestrator = UploadOrchestrator(slots, transfer, progress=tracker,
                                          on_refresh=reload_listing)
        orchestrator.add_files([SelectedFile.from_path("a.pdf")])
        result = await orchestrator.start_upload(destination_folder_id=42)

    Args:
        slot_client: Requests and confirms upload slots.
        transfer_client: Writes bytes to the object store.
        progress: Optional UI collaborator exposing
            ``file_progress(index, value)``, ``overall_progress(percent)``
            and ``reset()``.
        on_batch_complete: Called once per batch with the
            :class:`BatchResult`; ``result.summary`` is the user message.
        on_refresh: Called with no arguments after the reset delay so the
            caller can reload its file listing and reset its input.
        reset_delay_seconds: Delay between the summary and the reset.
    """

    def __init__(
        self,
        slot_client: UploadSlotClient,
        transfer_client: ObjectTransferClient,
        progress: Any | None = None,
        on_batch_complete: Callable[[BatchResult], Any] | None = None,
        on_refresh: Callable[[], Any] | None = None,
        reset_delay_seconds: float = DEFAULT_RESET_DELAY_SECONDS,
    ) -> None:
        self._slots = slot_client
        self._transfer = transfer_client
        self._progress = progress
        self._on_batch_complete = on_batch_complete
        self._on_refresh = on_refresh
        self._reset_delay = reset_delay_seconds

        self._pending: list[SelectedFile] = []
        self._records: list[UploadRecord] = []
        self._completed = 0
        self._overall = 0
        self._uploading = False

    # ------------------------------------------------------------------
    # Selection management
    # ------------------------------------------------------------------

    def add_files(self, selection: Iterable[SelectedFile]) -> None:
        """Append *selection* to the pending batch.

        Same-name files are kept; nothing is deduplicated.
        """
        self._ensure_idle("add files")
        files = list(selection)
        self._pending.extend(files)
        logger.debug("Added %d file(s), %d pending", len(files), len(self._pending))

    def remove_file(self, index: int) -> None:
        """Remove the pending file at *index*.

        An index outside the batch is ignored.
        """
        self._ensure_idle("remove files")
        if 0 <= index < len(self._pending):
            removed = self._pending.pop(index)
            logger.debug("Removed %s from pending batch", removed.name)

    @property
    def pending_files(self) -> list[SelectedFile]:
        return list(self._pending)

    @property
    def records(self) -> list[UploadRecord]:
        """Per-file records of the running (or just finished) batch."""
        return list(self._records)

    @property
    def overall_progress(self) -> int:
        return self._overall

    @property
    def is_uploading(self) -> bool:
        return self._uploading

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def start_upload(
        self, destination_folder_id: Any | None = None
    ) -> BatchResult | None:
        """Upload every pending file, one after another.

        1. Return ``None`` without touching the network if nothing is pending
        2. Reset per-file and overall progress
        3. Run each task to a terminal state before starting the next
        4. Recompute overall progress after each task
        5. Emit the batch summary
        6. After the reset delay, clear state and fire the refresh callback

        Returns:
            The :class:`BatchResult`, or ``None`` for an empty batch.
        """
        if not self._pending:
            return None
        self._ensure_idle("start another upload")

        self._uploading = True
        self._records = [
            UploadRecord(index=i, file=f) for i, f in enumerate(self._pending)
        ]
        self._completed = 0
        self._set_overall(0)

        total = len(self._records)
        result = BatchResult()
        logger.info("Starting upload of %d file(s) to folder %s", total, destination_folder_id)

        try:
            for record in self._records:
                task = UploadTask(
                    record,
                    self._slots,
                    self._transfer,
                    on_progress=self._file_progress,
                )
                outcome = await task.run(destination_folder_id)

                if outcome.success:
                    result.succeeded_count += 1
                else:
                    result.failed_count += 1
                    result.failed_file_names.append(outcome.file_name)

                self._completed += 1
                self._set_overall(overall_percent(self._completed, total))

            logger.info(
                "Upload batch complete: %d succeeded, %d failed",
                result.succeeded_count,
                result.failed_count,
            )
            await self._notify(self._on_batch_complete, result)

            await asyncio.sleep(self._reset_delay)
        finally:
            self._reset()

        await self._notify(self._on_refresh)
        return result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_idle(self, action: str) -> None:
        if self._uploading:
            raise UploadInProgressError(f"Cannot {action} while an upload is running")

    def _file_progress(self, index: int, value: int) -> None:
        if self._progress is not None:
            self._progress.file_progress(index, value)

    def _set_overall(self, percent: int) -> None:
        self._overall = percent
        if self._progress is not None:
            self._progress.overall_progress(percent)

    def _reset(self) -> None:
        """Clear the batch and all progress state."""
        self._pending = []
        self._records = []
        self._completed = 0
        self._overall = 0
        self._uploading = False
        if self._progress is not None:
            self._progress.reset()

    @staticmethod
    async def _notify(callback: Callable[..., Any] | None, *args: Any) -> None:
        """Invoke a sync or async callback."""
        if callback is None:
            return
        result = callback(*args)
        if inspect.isawaitable(result):
            await result


def overall_percent(completed: int, total: int) -> int:
    """Percentage of terminal tasks, rounded half-up.

    Stays at 99 or below until every task is terminal, so 100 always
    means the batch is finished.
    """
    if completed >= total:
        return 100
    return min(99, (200 * completed + total) // (2 * total))
