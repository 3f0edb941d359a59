"""
Asynchronous HTTP client for the reassembly / transcription backend.

Uses ``httpx.AsyncClient`` because every pipeline stage runs on one
asyncio event loop. Transport and status failures are translated into
``BackendError`` so callers only ever handle domain errors.
"""

import logging

import httpx
from pydantic import ValidationError

from src.core.config import get_settings
from src.core.exceptions import BackendError
from src.core.models import (
    ChunkAck,
    FileListResponse,
    TaskHandle,
    TaskStatus,
    TranscriptionStatus,
    UploadResponse,
)

logger = logging.getLogger(__name__)


class BackendClient:
    """Thin async wrapper around httpx for the backend's HTTP surface.

    All methods return parsed pydantic models (or dicts where the backend
    shape is open) or raise ``BackendError`` with a categorized message.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Backend base URL (falls back to settings).
            timeout: Default per-request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        settings = get_settings()
        self._base_url = (base_url or settings.backend_url).rstrip("/")
        self._upload_timeout = settings.upload_timeout
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout if timeout is not None else settings.http_timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with categorized error handling.

        Args:
            method: HTTP method name ("get", "post").
            path: Endpoint path relative to the backend base URL.
            **kwargs: Passed through to httpx (params, files, timeout, etc.).

        Returns:
            The httpx Response object with a successful status code.

        Raises:
            BackendError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = await self._client.request(method.upper(), path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError as exc:
            raise BackendError(
                f"Backend is not reachable at {self._base_url}: {exc}",
                category="connection",
            ) from exc
        except httpx.TimeoutException as exc:
            raise BackendError(
                f"Request to {path} timed out",
                category="timeout",
            ) from exc
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text or exc.response.reason_phrase
            logger.debug("Backend answered %s for %s: %s", exc.response.status_code, path, detail)
            raise BackendError(
                f"{exc.response.status_code} {exc.response.reason_phrase}: {detail}",
                category="http",
                response_status=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"Network error: {exc}", category="network") from exc

    @staticmethod
    def _parse(resp: httpx.Response, model):
        """Validate a JSON body against ``model``; malformed bodies are backend errors."""
        try:
            return model.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise BackendError(
                f"Unexpected response from {resp.request.url.path}: {exc}",
                category="http",
                response_status=resp.status_code,
            ) from exc

    # -- chunked recording --

    async def upload_chunk(
        self,
        session_id: str,
        chunk_number: int,
        payload: bytes,
        filename: str,
        mime_type: str,
    ) -> ChunkAck:
        resp = await self._request(
            "post",
            "/upload-chunk",
            params={"session_id": session_id, "chunk_number": chunk_number},
            files={"file": (filename, payload, mime_type)},
        )
        return self._parse(resp, ChunkAck)

    async def finish_recording(self, session_id: str) -> TaskHandle:
        resp = await self._request(
            "post", "/finish-recording", params={"session_id": session_id}
        )
        return self._parse(resp, TaskHandle)

    async def get_task_status(self, task_id: str) -> TaskStatus:
        resp = await self._request("get", f"/task-status/{task_id}")
        return self._parse(resp, TaskStatus)

    # -- transcription --

    async def start_transcription(self, file_key: str, segment_duration: int = 60) -> TaskHandle:
        resp = await self._request(
            "post",
            f"/transcribe/{file_key}",
            params={"segment_duration": segment_duration},
        )
        return self._parse(resp, TaskHandle)

    async def get_transcription_status(self, task_id: str) -> TranscriptionStatus:
        resp = await self._request("get", f"/transcription_status/{task_id}")
        return self._parse(resp, TranscriptionStatus)

    # -- catalog --

    async def list_files(self) -> FileListResponse:
        resp = await self._request("get", "/files")
        return self._parse(resp, FileListResponse)

    async def upload_file(self, filename: str, data: bytes, content_type: str) -> UploadResponse:
        """Upload one complete audio file (non-chunked path)."""
        resp = await self._request(
            "post",
            "/upload",
            files={"file": (filename, data, content_type)},
            timeout=self._upload_timeout,
        )
        return self._parse(resp, UploadResponse)

    async def get_summary(self, s3_key: str) -> dict:
        resp = await self._request("get", "/resumen/", params={"s3_key": s3_key})
        try:
            return resp.json()
        except ValueError as exc:
            raise BackendError(
                f"Summary response is not JSON: {exc}", category="http"
            ) from exc
