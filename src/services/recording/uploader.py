"""
Chunk delivery with bounded retries.

Each chunk is one multipart POST carrying ``session_id`` and
``chunk_number`` in the query string, so the backend can deduplicate and
order chunks regardless of arrival order. Transient failures are retried
with exponential backoff before the chunk is given up.
"""

import logging

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.core.config import get_settings
from src.core.exceptions import BackendError, ChunkUploadError
from src.core.models import ChunkAck
from src.services.api_client import BackendClient
from src.services.recording.session import Chunk

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {408, 429}


def _is_transient(exc: BaseException) -> bool:
    """Retry transport failures and server-side errors, not client rejections."""
    if not isinstance(exc, BackendError):
        return False
    if exc.category != "http":
        return True
    status = exc.response_status or 0
    return status >= 500 or status in _RETRYABLE_STATUS


class ChunkUploader:
    """Delivers single chunks to ``/upload-chunk``.

    Args:
        client: Backend HTTP client.
        max_attempts: Total tries per chunk (falls back to settings).
        min_wait: Lower backoff bound in seconds.
        max_wait: Upper backoff bound in seconds.
    """

    def __init__(
        self,
        client: BackendClient,
        max_attempts: int | None = None,
        min_wait: float | None = None,
        max_wait: float | None = None,
    ) -> None:
        settings = get_settings()
        self._client = client
        self._max_attempts = max(
            1, settings.chunk_upload_attempts if max_attempts is None else max_attempts
        )
        self._min_wait = settings.chunk_retry_min_wait if min_wait is None else min_wait
        self._max_wait = settings.chunk_retry_max_wait if max_wait is None else max_wait

    async def upload(self, chunk: Chunk) -> ChunkAck:
        """Upload one chunk, retrying transient failures.

        Returns:
            The parsed server acknowledgment.

        Raises:
            ChunkUploadError: Once every attempt has failed, or on a
                non-retryable rejection.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._min_wait, min=self._min_wait, max=self._max_wait),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    attempt_number = attempt.retry_state.attempt_number
                    if attempt_number > 1:
                        logger.info(
                            "Retrying chunk %s of session %s (attempt %s/%s)",
                            chunk.sequence_number,
                            chunk.session_id,
                            attempt_number,
                            self._max_attempts,
                        )
                    ack = await self._client.upload_chunk(
                        session_id=chunk.session_id,
                        chunk_number=chunk.sequence_number,
                        payload=chunk.payload,
                        filename=chunk.filename,
                        mime_type=chunk.mime_type,
                    )
        except BackendError as exc:
            raise ChunkUploadError(chunk.sequence_number, exc.detail) from exc

        logger.debug(
            "Chunk %s of session %s acknowledged (%s bytes)",
            chunk.sequence_number,
            chunk.session_id,
            len(chunk.payload),
        )
        return ack
