"""Shared pytest fixtures for cloudstash upload tests.

Provides fake phase clients with deterministic responses, a recording
progress collaborator, and a helper for building in-memory selections.
"""

from __future__ import annotations

import itertools
from unittest.mock import AsyncMock, MagicMock

import pytest

from cloudstash.models import SelectedFile, TransferOutcome, UploadSlot
from cloudstash.upload.client import ObjectTransferClient, UploadSlotClient


def make_files(*names: str) -> list[SelectedFile]:
    """Build in-memory SelectedFiles whose content is the file name."""
    return [
        SelectedFile(
            name=name,
            size_bytes=len(name.encode()),
            mime_type="application/octet-stream",
            content=name.encode(),
        )
        for name in names
    ]


class RecordingProgress:
    """UI collaborator that records every event in arrival order."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def file_progress(self, index: int, value: int) -> None:
        self.events.append(("file", index, value))

    def overall_progress(self, percent: int) -> None:
        self.events.append(("overall", percent))

    def reset(self) -> None:
        self.events.append(("reset",))

    def values_for(self, index: int) -> list[int]:
        return [e[2] for e in self.events if e[0] == "file" and e[1] == index]

    @property
    def overall_values(self) -> list[int]:
        return [e[1] for e in self.events if e[0] == "overall"]


@pytest.fixture
def slot_client():
    """Fake UploadSlotClient issuing sequential integer file ids.

    The transfer target embeds the file name so tests can key transfer
    behaviour on it.
    """
    client = MagicMock(spec=UploadSlotClient)
    ids = itertools.count(1)

    async def _request(file_name, size_bytes, folder_id):
        return UploadSlot(
            transfer_target=f"https://objects.example.com/{file_name}?sig=abc",
            file_id=next(ids),
        )

    client.request = AsyncMock(side_effect=_request)
    client.confirm = AsyncMock(return_value=None)
    return client


@pytest.fixture
def transfer_client():
    """Fake ObjectTransferClient that always succeeds."""
    client = MagicMock(spec=ObjectTransferClient)
    client.transfer = AsyncMock(return_value=TransferOutcome(ok=True, status_code=200))
    return client


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()
