"""
Recording REST endpoints.

Thin layer over the orchestrator: start/stop a chunked recording, upload a
complete file, attach summaries and list the UI catalog. Long-running
processing is scheduled as a background task and observed through the
record's status. No business logic here.
"""

import asyncio
import logging

from fastapi import APIRouter, File, UploadFile, status

from src.core.models import (
    AudioStatus,
    StartRecordingResponse,
    SummaryRequest,
    UploadedAudioRecord,
)
from src.core.utils import recording_name
from src.services import orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recordings", tags=["recordings"])

# Strong references so background pipelines are not garbage-collected
_background: set[asyncio.Task] = set()


def _spawn(coro, label: str) -> asyncio.Task:
    """Run ``coro`` in the background; failures are already recorded on the record."""
    task = asyncio.create_task(coro)
    _background.add(task)

    def _done(t: asyncio.Task) -> None:
        _background.discard(t)
        if not t.cancelled() and t.exception() is not None:
            logger.info("Background %s ended with %s", label, type(t.exception()).__name__)

    task.add_done_callback(_done)
    return task


@router.get("", response_model=list[UploadedAudioRecord])
async def list_records():
    """List every recorded or uploaded audio with its status."""
    return orchestrator.get_orchestrator().store.list()


@router.post("/start", response_model=StartRecordingResponse)
async def start_recording():
    """Open the microphone and begin a chunked recording session."""
    orch = orchestrator.get_orchestrator()
    session = await orch.start()
    record = orch.store.get(recording_name(session.session_id))
    return StartRecordingResponse(session_id=session.session_id, record=record)


@router.post("/stop", response_model=UploadedAudioRecord, status_code=status.HTTP_202_ACCEPTED)
async def stop_recording():
    """Stop the active recording; finalize and transcription continue in the background."""
    orch = orchestrator.get_orchestrator()
    session = orch.claim_stop()
    _spawn(orch.stop_and_process(claimed=session), f"processing of session {session.session_id}")
    return orch.store.get(recording_name(session.session_id))


@router.post("/upload", response_model=UploadedAudioRecord, status_code=status.HTTP_202_ACCEPTED)
async def upload_audio(file: UploadFile = File(...)):
    """Upload a complete audio file and transcribe it in the background."""
    orch = orchestrator.get_orchestrator()
    filename = file.filename or "upload.mp3"
    data = await file.read()
    content_type = file.content_type or "application/octet-stream"
    record = orch.store.upsert(filename, status=AudioStatus.pending, message="Queued for upload")
    _spawn(orch.process_upload(filename, data, content_type), f"upload of {filename}")
    return record


@router.get("/{name}", response_model=UploadedAudioRecord)
async def get_record(name: str):
    """Return one record by name."""
    return orchestrator.get_orchestrator().store.get(name)


@router.post("/{name}/summary", response_model=UploadedAudioRecord)
async def attach_summary(name: str, body: SummaryRequest):
    """Fetch the stored summary for ``body.s3_key`` and attach it to the record."""
    return await orchestrator.get_orchestrator().attach_summary(name, body.s3_key)
