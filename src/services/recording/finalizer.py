"""Signals the end of chunk emission for a session."""

import logging

from src.core.exceptions import BackendError, FinalizeError
from src.services.api_client import BackendClient

logger = logging.getLogger(__name__)


class SessionFinalizer:
    """Calls ``/finish-recording`` and returns the reassembly task id."""

    def __init__(self, client: BackendClient) -> None:
        self._client = client

    async def finish(self, session_id: str) -> str:
        """Finalize a session.

        Raises:
            FinalizeError: On any failure; without a task id nothing further
                can be observed, so this is fatal to the recording.
        """
        try:
            handle = await self._client.finish_recording(session_id)
        except BackendError as exc:
            logger.error("Finalize failed for session %s: %s", session_id, exc.detail)
            raise FinalizeError(session_id, exc.detail) from exc

        if not handle.task_id:
            raise FinalizeError(session_id, "backend returned no task id")
        logger.info("Session %s finalized, task %s", session_id, handle.task_id)
        return handle.task_id
