"""Data models and enums for the cloudstash upload client."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from cloudstash.constants import DEFAULT_RESET_DELAY_SECONDS


class UploadTaskState(str, Enum):
    """Lifecycle state of a single file upload."""

    PENDING = "pending"
    REQUESTING_SLOT = "requesting_slot"
    TRANSFERRING = "transferring"
    CONFIRMING = "confirming"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadTaskState.SUCCEEDED, UploadTaskState.FAILED)


@dataclass(frozen=True, slots=True)
class SelectedFile:
    """A user-chosen file queued for upload.

    Content comes either from *path* (read lazily at transfer time) or
    from in-memory *content*.
    """

    name: str
    size_bytes: int
    mime_type: str = ""
    path: Path | None = None
    content: bytes | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("SelectedFile.name must be non-empty")
        if self.size_bytes < 0:
            raise ValueError("SelectedFile.size_bytes must be >= 0")
        if self.path is None and self.content is None:
            raise ValueError("SelectedFile needs either a path or content")

    @classmethod
    def from_path(cls, path: Path | str) -> SelectedFile:
        """Build a SelectedFile from a local file, guessing its MIME type."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            size_bytes=path.stat().st_size,
            mime_type=mime_type or "",
            path=path,
        )

    def read_bytes(self) -> bytes:
        """Return the full file content."""
        if self.content is not None:
            return self.content
        assert self.path is not None
        return self.path.read_bytes()


@dataclass(frozen=True, slots=True)
class UploadSlot:
    """Server-issued write location for one file.

    ``file_id`` is the durable handle used to confirm the upload and for
    every later operation on the file.
    """

    transfer_target: str
    file_id: Any
    object_key: str | None = None
    expires_in_minutes: int | None = None


@dataclass(frozen=True, slots=True)
class TransferOutcome:
    """Result of a direct object-store write."""

    ok: bool
    status_code: int | None = None


@dataclass(frozen=True, slots=True)
class TaskOutcome:
    """Terminal result of one UploadTask."""

    success: bool
    file_name: str
    file_id: Any = None
    error_message: str | None = None


@dataclass
class UploadRecord:
    """Per-file progress record owned by the orchestrator.

    Each UploadTask mutates only the record it was handed.
    """

    index: int
    file: SelectedFile
    state: UploadTaskState = UploadTaskState.PENDING
    progress: int = 0
    file_id: Any = None
    error: str | None = None


@dataclass
class BatchResult:
    """Aggregate outcome of one orchestrator run."""

    succeeded_count: int = 0
    failed_count: int = 0
    failed_file_names: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded_count + self.failed_count

    @property
    def summary(self) -> str:
        """Human-readable end-of-batch message."""
        if self.failed_count > 0:
            return (
                f"Upload completed: {self.succeeded_count} succeeded, "
                f"{self.failed_count} failed.\n"
                f"Failed files: {', '.join(self.failed_file_names)}"
            )
        return f"All {self.succeeded_count} files uploaded successfully!"

    def to_dict(self) -> dict[str, object]:
        return {
            "succeeded": self.succeeded_count,
            "failed": self.failed_count,
            "failed_files": list(self.failed_file_names),
        }


@dataclass
class UploadConfig:
    """Configuration for the upload client.

    Controls the storage API endpoint, authentication, HTTP timeouts and
    the delay before a finished batch is cleared.
    """

    api_base_url: str = "http://localhost:8080"
    api_token: str | None = None
    reset_delay_seconds: float = DEFAULT_RESET_DELAY_SECONDS
    request_timeout_seconds: float = 30.0
    transfer_timeout_seconds: float = 300.0
