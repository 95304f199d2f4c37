"""cloudstash -- upload client for a cloud-storage console."""

__version__ = "0.1.0"

from cloudstash.models import (
    BatchResult,
    SelectedFile,
    TaskOutcome,
    TransferOutcome,
    UploadConfig,
    UploadRecord,
    UploadSlot,
    UploadTaskState,
)

__all__ = [
    "BatchResult",
    "SelectedFile",
    "TaskOutcome",
    "TransferOutcome",
    "UploadConfig",
    "UploadRecord",
    "UploadSlot",
    "UploadTaskState",
    "__version__",
]
