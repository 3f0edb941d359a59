"""End-to-end recording pipeline.

Sequences capture, chunk upload, finalize, reassembly polling and the
transcription post-step into one user-visible operation, and is the single
place that flips a catalog record to ``Failed``. A module-level singleton
ensures only one recorder owns the audio input per process.

Usage::

    from src.services.orchestrator import get_orchestrator

    orchestrator = get_orchestrator()
    await orchestrator.start()
    ...
    record = await orchestrator.stop_and_process()
"""

import asyncio
import logging
from collections.abc import Callable

from src.core.config import get_settings
from src.core.exceptions import (
    BackendError,
    ChunkScribeError,
    DeviceAccessError,
    FileUploadError,
    IncompleteSessionError,
    RecordingAlreadyActiveError,
    RecordingNotActiveError,
    SummaryError,
    TranscriptionError,
)
from src.core.models import AudioStatus, UploadedAudioRecord
from src.core.utils import key_basename, recording_name
from src.services.api_client import BackendClient
from src.services.audio import BaseAudioSource, create_audio_source
from src.services.catalog import RecordStore, TranscriptDeduper, get_record_store
from src.services.recording import (
    ChunkUploader,
    RecordingSession,
    SessionFinalizer,
    SessionRecorder,
    TaskStatusPoller,
    TranscriptionPoller,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class RecordingOrchestrator:
    """Drives recordings and uploads through the backend pipeline.

    Args:
        client: Backend HTTP client shared by every stage.
        store: Record store updated as the pipeline progresses.
        source: Audio input; created from settings on first recording.
        recorder: Pre-built recorder (tests); built from ``source`` otherwise.
        require_complete_session: Refuse finalize when chunks were dropped.
        settle_delay: Seconds to wait before querying the catalog after
            reassembly, giving the backend time to write derived files.
    """

    def __init__(
        self,
        client: BackendClient,
        store: RecordStore | None = None,
        source: BaseAudioSource | None = None,
        recorder: SessionRecorder | None = None,
        finalizer: SessionFinalizer | None = None,
        task_poller: TaskStatusPoller | None = None,
        transcription_poller: TranscriptionPoller | None = None,
        deduper: TranscriptDeduper | None = None,
        require_complete_session: bool | None = None,
        settle_delay: float | None = None,
    ) -> None:
        settings = get_settings()
        self._client = client
        self._store = store or get_record_store()
        self._source = source
        self._recorder = recorder
        self._finalizer = finalizer or SessionFinalizer(client)
        self._task_poller = task_poller or TaskStatusPoller(client)
        self._transcription_poller = transcription_poller or TranscriptionPoller(client)
        self._deduper = deduper or TranscriptDeduper(client)
        self._segment_duration = settings.transcription_segment_duration
        self._require_complete = (
            settings.require_complete_session
            if require_complete_session is None
            else require_complete_session
        )
        self._settle_delay = settings.catalog_settle_delay if settle_delay is None else settle_delay
        self._stopping: set[str] = set()

    @property
    def client(self) -> BackendClient:
        return self._client

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def active_session(self) -> RecordingSession | None:
        """The recording session that can still be stopped, if any."""
        session = self._recorder.session if self._recorder is not None else None
        if session is None or session.session_id in self._stopping:
            return None
        return session

    def _get_recorder(self) -> SessionRecorder:
        if self._recorder is None:
            settings = get_settings()
            source = self._source or create_audio_source(settings.audio_provider)
            self._recorder = SessionRecorder(source, ChunkUploader(self._client))
        return self._recorder

    # -- chunked recording --

    async def start(self) -> RecordingSession:
        """Begin a new recording and register its catalog record.

        Raises:
            RecordingAlreadyActiveError: If a session is already recording.
            DeviceAccessError: If the microphone cannot be acquired.
        """
        recorder = self._get_recorder()
        if recorder.is_recording:
            raise RecordingAlreadyActiveError()

        session = RecordingSession()
        name = recording_name(session.session_id)
        self._store.add(name, status=AudioStatus.pending, session_id=session.session_id)
        try:
            await recorder.start(session)
        except DeviceAccessError as exc:
            self._fail(name, exc)
            raise
        self._store.set_status(name, AudioStatus.pending, "Recording...")
        return session

    def claim_stop(self) -> RecordingSession:
        """Reserve the active session for stopping.

        Synchronous, so a second stop request issued before the first one
        has run is rejected instead of finalizing the session twice.

        Raises:
            RecordingNotActiveError: If nothing is recording or the session
                is already being stopped.
        """
        session = self.active_session
        if session is None:
            raise RecordingNotActiveError()
        self._stopping.add(session.session_id)
        return session

    async def stop_and_process(
        self,
        on_progress: ProgressCallback | None = None,
        claimed: RecordingSession | None = None,
    ) -> UploadedAudioRecord:
        """Stop the active recording and carry it through to a transcript.

        Args:
            on_progress: Called with every progress message.
            claimed: Session already reserved with ``claim_stop()``.

        Returns:
            The final catalog record.

        Raises:
            RecordingNotActiveError: If nothing is recording.
            ChunkScribeError: Any session-level failure, after the record has
                been marked ``Failed``.
        """
        session = claimed if claimed is not None else self.claim_stop()
        recorder = self._get_recorder()
        name = recording_name(session.session_id)

        try:
            await recorder.stop()
            await recorder.wait_for_uploads()
            self._check_chunks(session)

            self._store.set_status(name, AudioStatus.processing, "Finalizing recording...")
            task_id = await self._finalizer.finish(session.session_id)
            result = await self._task_poller.await_completion(
                task_id, self._progress(name, on_progress)
            )
            self._store.upsert(
                name,
                status=AudioStatus.completed,
                audio_link=result.final_audio_key,
                message=result.message or "Recording completed",
            )
            logger.info(
                "Session %s reassembled into %s", session.session_id, result.final_audio_key
            )

            await self._transcribe_if_needed(name, result.final_audio_key, on_progress)
        except ChunkScribeError as exc:
            self._fail(name, exc)
            raise
        finally:
            self._stopping.discard(session.session_id)

        return self._store.get(name)

    async def run(
        self, stop_event: asyncio.Event, on_progress: ProgressCallback | None = None
    ) -> UploadedAudioRecord:
        """Record until ``stop_event`` is set, then process the session."""
        await self.start()
        await stop_event.wait()
        return await self.stop_and_process(on_progress)

    def _check_chunks(self, session: RecordingSession) -> None:
        missing = session.missing_sequences()
        if not missing:
            return
        if self._require_complete:
            raise IncompleteSessionError(session.session_id, missing)
        logger.warning(
            "Finalizing session %s with %s of %s chunks dropped: %s",
            session.session_id,
            len(missing),
            session.emitted,
            missing,
        )

    # -- transcription --

    async def _transcribe_if_needed(
        self, name: str, audio_key: str, on_progress: ProgressCallback | None
    ) -> None:
        if self._settle_delay > 0:
            await asyncio.sleep(self._settle_delay)

        decision = await self._deduper.check(audio_key)
        if not decision.needed:
            existing = decision.existing
            self._store.upsert(
                name,
                status=AudioStatus.completed,
                transcript_link=existing.url or existing.key,
                message="Transcript already available",
            )
            return

        self._store.set_status(name, AudioStatus.processing, "Transcribing...")
        transcript_link = await self._transcribe(name, audio_key, on_progress)
        self._store.upsert(
            name,
            status=AudioStatus.completed,
            transcript_link=transcript_link,
            message="Transcription completed",
        )

    async def _transcribe(
        self, name: str, audio_key: str, on_progress: ProgressCallback | None
    ) -> str | None:
        file_key = key_basename(audio_key)
        if not file_key:
            raise TranscriptionError(f"Cannot derive a file name from {audio_key!r}")
        try:
            handle = await self._client.start_transcription(file_key, self._segment_duration)
        except BackendError as exc:
            raise TranscriptionError(f"Could not start transcription: {exc.detail}") from exc

        logger.info("Transcription of %s started as task %s", file_key, handle.task_id)
        result = await self._transcription_poller.await_completion(
            handle.task_id, self._progress(name, on_progress)
        )
        return result.transcription_file_url

    # -- single-file upload --

    async def process_upload(
        self,
        filename: str,
        data: bytes,
        content_type: str = "audio/mpeg",
        on_progress: ProgressCallback | None = None,
    ) -> UploadedAudioRecord:
        """Upload a complete audio file and transcribe it.

        Raises:
            ChunkScribeError: On any failure, after marking the record ``Failed``.
        """
        self._store.upsert(filename, status=AudioStatus.pending, message="Uploading file...")
        try:
            try:
                uploaded = await self._client.upload_file(filename, data, content_type)
            except BackendError as exc:
                raise FileUploadError(f"Could not upload {filename}: {exc.detail}") from exc
            if uploaded.file_info is None:
                raise FileUploadError(f"Backend did not store {filename}")

            stored = uploaded.file_info
            self._store.upsert(
                filename,
                status=AudioStatus.processing,
                audio_link=stored.url or stored.key,
                message="Transcribing...",
            )
            transcript_link = await self._transcribe(filename, stored.key, on_progress)
            self._store.upsert(
                filename,
                status=AudioStatus.completed,
                transcript_link=transcript_link,
                message="Transcription completed",
            )
        except ChunkScribeError as exc:
            self._fail(filename, exc)
            raise

        return self._store.get(filename)

    # -- summary --

    async def attach_summary(self, name: str, s3_key: str) -> UploadedAudioRecord:
        """Fetch the summary for ``s3_key`` and store it on the record.

        A missing summary leaves the record's status untouched.
        """
        self._store.get(name)
        try:
            data = await self._client.get_summary(s3_key)
        except BackendError as exc:
            logger.warning("Summary for %s unavailable: %s", s3_key, exc.detail)
            raise SummaryError(f"Could not fetch summary: {exc.detail}") from exc

        summary = data.get("summary") if isinstance(data, dict) else None
        if not isinstance(summary, str) or not summary:
            raise SummaryError(f"No summary returned for {s3_key}")
        return self._store.upsert(name, summary=summary, summary_url=data.get("summary_url"))

    # -- helpers --

    def _progress(self, name: str, on_progress: ProgressCallback | None) -> ProgressCallback:
        def report(message: str) -> None:
            self._store.upsert(name, message=message)
            if on_progress is not None:
                on_progress(message)

        return report

    def _fail(self, name: str, exc: ChunkScribeError) -> None:
        logger.error("Processing of %s failed: %s", name, exc.detail)
        self._store.set_status(name, AudioStatus.failed, exc.detail)

    async def cleanup(self) -> None:
        """Release the microphone if a recording is still open.

        Chunks already handed off are allowed to settle; the session is not
        finalized.
        """
        recorder = self._recorder
        if recorder is not None and recorder.is_recording:
            try:
                await recorder.stop()
            except DeviceAccessError:
                logger.warning("Recorder reported a device error during shutdown")
            await recorder.wait_for_uploads()


# ---------------------------------------------------------------------------
# Module-level singleton management
# ---------------------------------------------------------------------------

_orchestrator: RecordingOrchestrator | None = None


def get_orchestrator() -> RecordingOrchestrator:
    """Return the process-wide orchestrator, creating it on first use."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = RecordingOrchestrator(client=BackendClient())
    return _orchestrator


def set_orchestrator(orchestrator: RecordingOrchestrator | None) -> None:
    """Install a specific orchestrator (used by the API tests)."""
    global _orchestrator
    _orchestrator = orchestrator


async def cleanup() -> None:
    """Stop any open recording and close the HTTP client (app shutdown)."""
    global _orchestrator
    if _orchestrator is None:
        return
    orchestrator = _orchestrator
    _orchestrator = None
    await orchestrator.cleanup()
    await orchestrator.client.aclose()
