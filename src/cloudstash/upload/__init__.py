"""Sequential multi-file upload pipeline.

Public API
----------
.. autoclass:: StorageApiClient
.. autoclass:: UploadSlotClient
.. autoclass:: ObjectTransferClient
.. autoclass:: UploadTask
.. autoclass:: UploadOrchestrator
.. autoclass:: UploadProgressTracker
"""

from cloudstash.upload.client import (
    ObjectTransferClient,
    StorageApiClient,
    UploadSlotClient,
)
from cloudstash.upload.exceptions import (
    ConfirmError,
    SlotRequestError,
    StorageApiError,
    TransferError,
    UploadError,
    UploadInProgressError,
)
from cloudstash.upload.fsm import UploadTaskSM, create_fsm
from cloudstash.upload.orchestrator import UploadOrchestrator
from cloudstash.upload.progress import UploadProgressTracker
from cloudstash.upload.task import UploadTask

__all__ = [
    "ConfirmError",
    "ObjectTransferClient",
    "SlotRequestError",
    "StorageApiClient",
    "StorageApiError",
    "TransferError",
    "UploadError",
    "UploadInProgressError",
    "UploadOrchestrator",
    "UploadProgressTracker",
    "UploadSlotClient",
    "UploadTask",
    "UploadTaskSM",
    "create_fsm",
]
