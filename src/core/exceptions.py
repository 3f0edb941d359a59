"""
chunkscribe exception hierarchy.

All application-specific exceptions inherit from ChunkScribeError,
enabling centralized error handling in the API middleware layer and a
single place in the orchestrator that flips records to ``Failed``.
"""

from datetime import UTC, datetime


class ChunkScribeError(Exception):
    """Base exception for all chunkscribe errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "CHUNKSCRIBE_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)

    @property
    def context(self) -> dict:
        """Machine-readable fields added to the API error envelope."""
        return {}


class BackendError(ChunkScribeError):
    """Transport-level failure talking to the backend.

    Categories: "connection", "timeout", "http", "network".
    ``response_status`` holds the HTTP status when the backend answered.
    """

    def __init__(
        self,
        detail: str,
        category: str = "network",
        response_status: int | None = None,
    ) -> None:
        self.category = category
        self.response_status = response_status
        super().__init__(detail=detail, code="BACKEND_ERROR", status_code=502)

    @property
    def context(self) -> dict:
        return {"category": self.category, "response_status": self.response_status}


class DeviceAccessError(ChunkScribeError):
    """Raised when the audio input device cannot be acquired."""

    def __init__(self, detail: str = "Audio input device is not available") -> None:
        super().__init__(detail=detail, code="DEVICE_ACCESS_ERROR", status_code=503)


class ChunkUploadError(ChunkScribeError):
    """Raised when one chunk could not be delivered."""

    def __init__(self, sequence_number: int, detail: str = "") -> None:
        self.sequence_number = sequence_number
        message = f"Chunk {sequence_number} upload failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(detail=message, code="CHUNK_UPLOAD_ERROR", status_code=502)

    @property
    def context(self) -> dict:
        return {"sequence_number": self.sequence_number}


class FinalizeError(ChunkScribeError):
    """Raised when a session could not be finalized."""

    def __init__(self, session_id: str, detail: str = "") -> None:
        self.session_id = session_id
        message = f"Could not finalize recording {session_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(detail=message, code="FINALIZE_ERROR", status_code=502)

    @property
    def context(self) -> dict:
        return {"session_id": self.session_id}


class IncompleteSessionError(ChunkScribeError):
    """Raised in strict mode when chunks are missing before finalize."""

    def __init__(self, session_id: str, missing: list[int]) -> None:
        self.session_id = session_id
        self.missing = missing
        super().__init__(
            detail=f"Recording {session_id} is missing chunks {missing}",
            code="INCOMPLETE_SESSION",
            status_code=409,
        )

    @property
    def context(self) -> dict:
        return {"session_id": self.session_id, "missing": self.missing}


class TaskFailedError(ChunkScribeError):
    """Raised when a backend task reports a terminal failure."""

    def __init__(self, task_id: str, detail: str = "") -> None:
        self.task_id = task_id
        message = f"Task {task_id} failed on the server"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(detail=message, code="TASK_FAILED", status_code=502)

    @property
    def context(self) -> dict:
        return {"task_id": self.task_id}


class TaskTimeoutError(ChunkScribeError):
    """Raised when polling exceeds its attempt bound."""

    def __init__(self, task_id: str, attempts: int) -> None:
        self.task_id = task_id
        self.attempts = attempts
        super().__init__(
            detail=f"Timed out waiting for task {task_id} after {attempts} polls",
            code="TASK_TIMEOUT",
            status_code=504,
        )

    @property
    def context(self) -> dict:
        return {"task_id": self.task_id, "attempts": self.attempts}


class CatalogQueryError(ChunkScribeError):
    """Raised when the file catalog cannot be listed."""

    def __init__(self, detail: str = "File catalog query failed") -> None:
        super().__init__(detail=detail, code="CATALOG_QUERY_ERROR", status_code=502)


class TranscriptionError(ChunkScribeError):
    """Raised when a transcription job cannot be started."""

    def __init__(self, detail: str = "Transcription failed") -> None:
        super().__init__(detail=detail, code="TRANSCRIPTION_ERROR", status_code=502)


class FileUploadError(ChunkScribeError):
    """Raised when a single-file upload is rejected."""

    def __init__(self, detail: str = "File upload failed") -> None:
        super().__init__(detail=detail, code="FILE_UPLOAD_ERROR", status_code=502)


class SummaryError(ChunkScribeError):
    """Raised when a summary cannot be fetched."""

    def __init__(self, detail: str = "Summary unavailable") -> None:
        super().__init__(detail=detail, code="SUMMARY_ERROR", status_code=502)


class RecordingAlreadyActiveError(ChunkScribeError):
    """Raised when trying to start a recording while one is already active."""

    def __init__(self) -> None:
        super().__init__(
            detail="A recording is already active",
            code="RECORDING_ALREADY_ACTIVE",
            status_code=409,
        )


class RecordingNotActiveError(ChunkScribeError):
    """Raised when stopping while nothing is recording."""

    def __init__(self) -> None:
        super().__init__(
            detail="No recording is active",
            code="RECORDING_NOT_ACTIVE",
            status_code=409,
        )


class RecordNotFoundError(ChunkScribeError):
    """Raised when a catalog record name does not exist."""

    def __init__(self, name: str) -> None:
        super().__init__(
            detail=f"Record not found: {name}",
            code="RECORD_NOT_FOUND",
            status_code=404,
        )
