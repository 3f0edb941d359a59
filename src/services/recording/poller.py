"""
Bounded status polling for backend tasks.

Both pollers run an explicit ``for attempt in range(max_attempts)`` loop
with an ``asyncio.sleep`` between polls. Polls for one task are strictly
sequential, terminal states stop the loop immediately, and a wall-clock
deadline of ``max_attempts * interval`` caps a backend that never answers.
Transient poll errors are logged and consume an attempt.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Generic, TypeVar

from src.core.config import get_settings
from src.core.exceptions import BackendError, TaskFailedError, TaskTimeoutError
from src.core.models import (
    RecordingResult,
    TaskState,
    TranscriptionResult,
    TranscriptionState,
)
from src.services.api_client import BackendClient

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]
T = TypeVar("T")


class _BoundedPoller(ABC, Generic[T]):
    """Shared attempt/deadline handling; subclasses interpret one status."""

    def __init__(self, client: BackendClient, interval: float, max_attempts: int) -> None:
        self._client = client
        self._interval = max(0.0, interval)
        self._max_attempts = max(1, max_attempts)

    @property
    def deadline(self) -> float:
        """Upper bound on wall-clock time spent polling one task."""
        return self._interval * self._max_attempts

    async def await_completion(
        self, task_id: str, on_progress: ProgressCallback | None = None
    ) -> T:
        """Poll ``task_id`` until it succeeds, fails or the bound is hit.

        Args:
            task_id: Backend task to observe.
            on_progress: Called with a message for every in-progress status.

        Returns:
            The task result on success.

        Raises:
            TaskFailedError: The backend reported a terminal failure.
            TaskTimeoutError: No terminal state within the attempt bound.
        """
        try:
            async with asyncio.timeout(self.deadline or None):
                return await self._poll(task_id, on_progress)
        except TimeoutError as exc:
            logger.error("Task %s did not finish within %.1fs", task_id, self.deadline)
            raise TaskTimeoutError(task_id, self._max_attempts) from exc

    async def _poll(self, task_id: str, on_progress: ProgressCallback | None) -> T:
        for attempt in range(1, self._max_attempts + 1):
            try:
                result = await self._poll_once(task_id, on_progress)
            except BackendError as exc:
                logger.warning(
                    "Status poll %s/%s for task %s failed: %s",
                    attempt,
                    self._max_attempts,
                    task_id,
                    exc.detail,
                )
            else:
                if result is not None:
                    return result
            if attempt < self._max_attempts:
                await asyncio.sleep(self._interval)

        logger.error("Task %s still running after %s polls", task_id, self._max_attempts)
        raise TaskTimeoutError(task_id, self._max_attempts)

    @abstractmethod
    async def _poll_once(self, task_id: str, on_progress: ProgressCallback | None) -> T | None:
        """Issue one status request; return the result once terminal-successful."""


class TaskStatusPoller(_BoundedPoller[RecordingResult]):
    """Observes a reassembly task through ``/task-status/{task_id}``."""

    def __init__(
        self,
        client: BackendClient,
        interval: float | None = None,
        max_attempts: int | None = None,
    ) -> None:
        settings = get_settings()
        super().__init__(
            client,
            settings.task_poll_interval if interval is None else interval,
            settings.task_poll_max_attempts if max_attempts is None else max_attempts,
        )

    async def _poll_once(
        self, task_id: str, on_progress: ProgressCallback | None
    ) -> RecordingResult | None:
        status = await self._client.get_task_status(task_id)
        logger.debug("Task %s is %s", task_id, status.status)

        if status.status == TaskState.SUCCESS:
            if status.result is not None:
                return status.result
            logger.debug("Task %s reported SUCCESS without a result yet", task_id)
        elif status.status == TaskState.FAILURE:
            detail = status.result.message if status.result else ""
            raise TaskFailedError(task_id, detail)
        elif status.status == TaskState.PROGRESS and on_progress is not None:
            message = (status.result.message if status.result else "") or "Processing..."
            on_progress(message)
        return None


class TranscriptionPoller(_BoundedPoller[TranscriptionResult]):
    """Observes a transcription task through ``/transcription_status/{task_id}``."""

    def __init__(
        self,
        client: BackendClient,
        interval: float | None = None,
        max_attempts: int | None = None,
    ) -> None:
        settings = get_settings()
        super().__init__(
            client,
            settings.transcription_poll_interval if interval is None else interval,
            settings.transcription_poll_max_attempts if max_attempts is None else max_attempts,
        )

    async def _poll_once(
        self, task_id: str, on_progress: ProgressCallback | None
    ) -> TranscriptionResult | None:
        status = await self._client.get_transcription_status(task_id)
        logger.debug("Transcription %s is %s", task_id, status.state)

        if status.state == TranscriptionState.SUCCESS:
            if status.result is not None:
                return status.result
            logger.debug("Transcription %s reported SUCCESS without a result yet", task_id)
        elif status.state == TranscriptionState.FAILED:
            raise TaskFailedError(task_id, status.status or "transcription failed")
        elif status.state == TranscriptionState.PROGRESS and on_progress is not None:
            on_progress(status.status or "Transcribing...")
        return None
