"""
Pydantic v2 models shared by the backend client, the pipeline and the API.

Wire models mirror the backend's JSON. The two polled resources keep their
own state vocabularies (``TaskState`` / ``TranscriptionState``) because the
endpoints do not share one.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Reassembly task
# ---------------------------------------------------------------------------


class TaskState(StrEnum):
    """States reported by ``/task-status/{task_id}``."""

    PENDING = "PENDING"
    PROGRESS = "PROGRESS"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class ChunkAck(BaseModel):
    """Acknowledgment returned by ``/upload-chunk``; shape is backend-defined."""

    model_config = ConfigDict(extra="allow")

    message: str = ""


class TaskHandle(BaseModel):
    """``{ task_id }`` returned by finalize and transcribe calls."""

    task_id: str


class RecordingResult(BaseModel):
    """Result of a successful reassembly task."""

    session_id: str = ""
    final_audio_key: str = ""
    message: str = ""


class TaskStatus(BaseModel):
    """GET /task-status/{task_id} response."""

    task_id: str = ""
    status: TaskState
    result: RecordingResult | None = None


# ---------------------------------------------------------------------------
# Transcription task
# ---------------------------------------------------------------------------


class TranscriptionState(StrEnum):
    """States reported by ``/transcription_status/{task_id}``."""

    PENDING = "PENDING"
    PROGRESS = "PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class TranscriptionResult(BaseModel):
    """Payload of a finished transcription."""

    model_config = ConfigDict(extra="allow")

    message: str = ""
    transcription_file_url: str | None = None


class TranscriptionStatus(BaseModel):
    """GET /transcription_status/{task_id} response."""

    state: TranscriptionState
    status: str | None = None
    result: TranscriptionResult | None = None


# ---------------------------------------------------------------------------
# File catalog
# ---------------------------------------------------------------------------


class CatalogFile(BaseModel):
    """One stored artifact as listed by ``/files``."""

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(alias="Key")
    url: str = Field(default="", alias="URL")
    size: int = Field(default=0, alias="Size")
    last_modified: str | None = Field(default=None, alias="LastModified")
    content_type: str | None = Field(default=None, alias="ContentType")


class FileListResponse(BaseModel):
    """GET /files response."""

    files: list[CatalogFile] = Field(default_factory=list)


class UploadResponse(BaseModel):
    """POST /upload response for single-file uploads."""

    model_config = ConfigDict(extra="allow")

    message: str = ""
    file_info: CatalogFile | None = None


# ---------------------------------------------------------------------------
# UI catalog record
# ---------------------------------------------------------------------------


class AudioStatus(StrEnum):
    """Badge shown next to an uploaded or recorded audio."""

    pending = "Pending"
    processing = "Processing"
    completed = "Completed"
    failed = "Failed"


class UploadedAudioRecord(BaseModel):
    """UI-facing record derived from the pipeline's progress."""

    name: str
    status: AudioStatus = AudioStatus.pending
    transcript_link: str | None = None
    audio_link: str | None = None
    summary: str | None = None
    summary_url: str | None = None
    message: str | None = None
    session_id: str | None = None


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


class StartRecordingResponse(BaseModel):
    """POST /recordings/start response."""

    session_id: str
    record: UploadedAudioRecord


class ArtifactGroupResponse(BaseModel):
    """Audio, transcript and summary files sharing one artifact id."""

    artifact_id: str
    audio: CatalogFile | None = None
    transcript: CatalogFile | None = None
    summary: CatalogFile | None = None


class SummaryRequest(BaseModel):
    """POST /recordings/{name}/summary request body."""

    s3_key: str


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    detail: str
    code: str
    timestamp: str
    context: dict | None = None  # Domain fields such as task_id or category
