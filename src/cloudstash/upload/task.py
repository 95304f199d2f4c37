"""Single-file upload task.

Drives one :class:`~cloudstash.models.SelectedFile` through the
three network phases (slot request, transfer, confirm) and reports
progress on phase entry.  Every failure is captured into the returned
:class:`~cloudstash.models.TaskOutcome`; nothing escapes :meth:`UploadTask.run`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from cloudstash.constants import (
    PROGRESS_CONFIRMING,
    PROGRESS_DONE,
    PROGRESS_ERROR,
    PROGRESS_REQUESTING_SLOT,
    PROGRESS_TRANSFERRING,
)
from cloudstash.models import TaskOutcome, UploadRecord, UploadTaskState
from cloudstash.upload.client import ObjectTransferClient, UploadSlotClient
from cloudstash.upload.exceptions import TransferError, UploadError
from cloudstash.upload.fsm import create_fsm

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class UploadTask:
    """Per-file state machine: pending -> requesting_slot -> transferring
    -> confirming -> succeeded, or -> failed from any network phase.

    Args:
        record: The orchestrator-owned record this task updates.
        slot_client: Requests and confirms upload slots.
        transfer_client: Writes bytes to the object store.
        on_progress: Optional ``(index, value)`` callback fired on every
            progress change.
    """

    def __init__(
        self,
        record: UploadRecord,
        slot_client: UploadSlotClient,
        transfer_client: ObjectTransferClient,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._record = record
        self._slots = slot_client
        self._transfer = transfer_client
        self._on_progress = on_progress
        self._fsm = create_fsm()

    @property
    def state(self) -> UploadTaskState:
        return UploadTaskState(self._fsm.current_state.value)

    @property
    def record(self) -> UploadRecord:
        return self._record

    async def run(self, destination_folder_id: Any | None) -> TaskOutcome:
        """Run all three phases, stopping at the first failure."""
        file = self._record.file

        try:
            self._enter("request_slot", PROGRESS_REQUESTING_SLOT)
            slot = await self._slots.request(
                file.name, file.size_bytes, destination_folder_id
            )
            self._record.file_id = slot.file_id

            self._enter("start_transfer", PROGRESS_TRANSFERRING)
            try:
                content = file.read_bytes()
            except OSError as exc:
                raise TransferError(f"Could not read {file.name}: {exc}") from exc
            outcome = await self._transfer.transfer(
                content, slot.transfer_target, file.mime_type
            )
            if not outcome.ok:
                raise TransferError(f"Failed to upload {file.name} to object store")

            self._enter("start_confirm", PROGRESS_CONFIRMING)
            await self._slots.confirm(slot.file_id, file.mime_type)
        except UploadError as exc:
            return self._fail(str(exc))
        except Exception as exc:
            logger.exception("Unexpected error uploading %s", file.name)
            return self._fail(str(exc) or type(exc).__name__)

        # Confirmed server-side; nothing after this point can fail the task.
        self._enter("complete", PROGRESS_DONE)
        logger.info("Uploaded %s (file id %s)", file.name, self._record.file_id)
        return TaskOutcome(
            success=True, file_name=file.name, file_id=self._record.file_id
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _enter(self, event: str, progress: int) -> None:
        """Fire *event* on the FSM and publish the phase's progress value."""
        self._fsm.send(event)
        self._record.state = self.state
        logger.debug(
            "[%d] %s -> %s", self._record.index, self._record.file.name, self.state.value
        )
        self._set_progress(progress)

    def _fail(self, message: str) -> TaskOutcome:
        name = self._record.file.name
        logger.error("Upload failed for %s: %s", name, message)
        if not self.state.is_terminal:
            self._fsm.send("fail")
        self._record.state = UploadTaskState.FAILED
        self._record.error = message
        self._set_progress(PROGRESS_ERROR)
        return TaskOutcome(success=False, file_name=name, error_message=message)

    def _set_progress(self, value: int) -> None:
        """Store *value* on the record and notify the UI.

        A failing UI callback is logged and does not change the upload's
        outcome.
        """
        self._record.progress = value
        if self._on_progress is None:
            return
        try:
            self._on_progress(self._record.index, value)
        except Exception:
            logger.exception(
                "Progress callback failed for %s (value %d)",
                self._record.file.name,
                value,
            )
