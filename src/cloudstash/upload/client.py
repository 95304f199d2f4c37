"""Storage API and object-store clients.

Implements the three-call upload protocol:
  1. ``POST /api/files/upload-url`` -- reserve a file record and obtain a
     presigned object-store URL plus the file id
  2. ``PUT <uploadUrl>`` -- write the raw bytes straight to the object
     store, bypassing the storage API
  3. ``POST /api/files/upload/confirm`` -- finalize the file record

:class:`StorageApiClient` speaks HTTP.  :class:`UploadSlotClient` and
:class:`ObjectTransferClient` wrap it with the error contract the upload
task relies on.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from cloudstash.models import TransferOutcome, UploadSlot
from cloudstash.upload.exceptions import (
    ConfirmError,
    SlotRequestError,
    StorageApiError,
)

logger = logging.getLogger(__name__)

UPLOAD_URL_PATH = "/api/files/upload-url"
CONFIRM_PATH = "/api/files/upload/confirm"


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


class StorageApiClient:
    """Async HTTP client for the storage API and the backing object store.

    Object-store writes go through a separate ``httpx.AsyncClient`` that
    never sends the storage API's ``Authorization`` header; presigned URLs
    carry their own credentials.

    Usage::

        async with StorageApiClient("https://storage.example.com", token="...") as api:
            info = await api.generate_upload_url("report.pdf", 1024, None)
            await api.upload_to_object_store(data, info["uploadUrl"])
            await api.confirm_upload(info["fileId"], "application/pdf")
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transfer_timeout: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._api = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._object_store = httpx.AsyncClient(
            timeout=httpx.Timeout(transfer_timeout),
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Upload protocol
    # ------------------------------------------------------------------

    async def generate_upload_url(
        self, file_name: str, size_bytes: int, folder_id: Any | None
    ) -> dict[str, Any]:
        """Reserve a file record and return its presigned upload URL.

        Returns:
            Response body with ``uploadUrl``, ``fileId``, ``objectKey``
            and ``expiresInMinutes``.

        Raises:
            StorageApiError: On a non-2xx response.
        """
        return await self._request(
            "POST",
            UPLOAD_URL_PATH,
            json={"fileName": file_name, "fileSize": size_bytes, "folderId": folder_id},
        )

    async def upload_to_object_store(
        self, file_bytes: bytes, upload_url: str, content_type: str = ""
    ) -> dict[str, Any]:
        """PUT *file_bytes* to *upload_url*.

        A non-success response is reported through ``ok`` rather than
        raised.

        Returns:
            ``{"ok": bool, "status_code": int}``
        """
        headers = {"Content-Type": content_type} if content_type else {}
        response = await self._object_store.put(
            upload_url, content=file_bytes, headers=headers
        )
        logger.debug(
            "Object store PUT %s -> %d (%d bytes)",
            upload_url.split("?", 1)[0],
            response.status_code,
            len(file_bytes),
        )
        return {"ok": response.is_success, "status_code": response.status_code}

    async def confirm_upload(self, file_id: Any, mime_type: str) -> dict[str, Any]:
        """Mark *file_id* as finalized.

        Raises:
            StorageApiError: On a non-2xx response.
        """
        return await self._request(
            "POST",
            CONFIRM_PATH,
            json={"fileId": file_id, "contentType": mime_type or None},
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close both underlying HTTP clients."""
        await self._api.aclose()
        await self._object_store.aclose()

    async def __aenter__(self) -> StorageApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Send a storage API request and decode its JSON body.

        Raises:
            StorageApiError: On a non-2xx response, with the server's
                ``message`` field when it sent one.
        """
        response = await self._api.request(method, path, **kwargs)
        if not response.is_success:
            raise StorageApiError(response.status_code, _error_message(response))
        if not response.content:
            return {}
        return response.json()


def _error_message(response: httpx.Response) -> str:
    """Extract the ``message`` field from an error response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


# ---------------------------------------------------------------------------
# Phase clients
# ---------------------------------------------------------------------------


class UploadSlotClient:
    """Requests upload slots and confirms finished uploads.

    No local validation: names, sizes and folder ids go to the service
    exactly as given.
    """

    def __init__(self, api: StorageApiClient) -> None:
        self._api = api

    async def request(
        self, file_name: str, size_bytes: int, destination_folder_id: Any | None
    ) -> UploadSlot:
        """Obtain a write location for a new file.

        Raises:
            SlotRequestError: If the service rejects the request or the
                response lacks ``uploadUrl``/``fileId``.
        """
        try:
            data = await self._api.generate_upload_url(
                file_name, size_bytes, destination_folder_id
            )
        except StorageApiError as exc:
            raise SlotRequestError(
                f"Failed to get upload slot for {file_name}: {exc.message}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SlotRequestError(
                f"Failed to get upload slot for {file_name}: {exc}"
            ) from exc

        try:
            return UploadSlot(
                transfer_target=data["uploadUrl"],
                file_id=data["fileId"],
                object_key=data.get("objectKey"),
                expires_in_minutes=data.get("expiresInMinutes"),
            )
        except (KeyError, TypeError) as exc:
            raise SlotRequestError(
                f"Malformed upload slot response for {file_name}: missing {exc}"
            ) from exc

    async def confirm(self, file_id: Any, mime_type: str) -> None:
        """Finalize the file record for *file_id*.

        Raises:
            ConfirmError: If the id is unknown, already confirmed, or the
                service otherwise refuses.
        """
        try:
            await self._api.confirm_upload(file_id, mime_type)
        except StorageApiError as exc:
            raise ConfirmError(
                f"Failed to confirm upload {file_id}: {exc.message}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ConfirmError(f"Failed to confirm upload {file_id}: {exc}") from exc


class ObjectTransferClient:
    """Single-attempt byte transfer to a presigned object-store URL."""

    def __init__(self, api: StorageApiClient) -> None:
        self._api = api

    async def transfer(
        self, file_bytes: bytes, transfer_target: str, content_type: str = ""
    ) -> TransferOutcome:
        """Write the full content to *transfer_target*.

        Never raises for HTTP failures; a transport error or non-2xx
        response both yield ``ok=False``.
        """
        try:
            result = await self._api.upload_to_object_store(
                file_bytes, transfer_target, content_type
            )
        except httpx.HTTPError as exc:
            logger.warning("Object store transfer failed: %s", exc)
            return TransferOutcome(ok=False)
        return TransferOutcome(ok=result["ok"], status_code=result.get("status_code"))
