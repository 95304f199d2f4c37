"""Exception hierarchy for the upload pipeline."""

from __future__ import annotations


class UploadError(Exception):
    """Base class for upload pipeline errors."""


class SlotRequestError(UploadError):
    """The storage service rejected the upload-slot request.

    Covers quota exhaustion, an invalid destination folder, auth failures
    and transport errors.  Not retried.
    """


class TransferError(UploadError):
    """The object store did not report success for the byte transfer."""


class ConfirmError(UploadError):
    """The storage service rejected finalization after a successful transfer.

    The transferred object may be left orphaned in the object store.
    """


class UploadInProgressError(UploadError):
    """The pending batch was modified while an upload was running."""


class StorageApiError(Exception):
    """Non-success HTTP response from the storage API."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
