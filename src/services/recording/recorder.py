"""Live capture sliced into sequentially numbered chunks.

The capture loop runs as its own ``asyncio.Task``. Every full slice becomes
a ``Chunk`` and is handed to the uploader as a separate task, so recording
never waits on the network. Upload failures are collected on the session
and logged; they never stop the capture.

Usage::

    recorder = SessionRecorder(source, ChunkUploader(client))
    session = await recorder.start()
    ...
    await recorder.stop()
    await recorder.wait_for_uploads()
"""

import asyncio
import logging
from collections.abc import Callable

from src.core.config import get_settings
from src.core.exceptions import (
    ChunkUploadError,
    DeviceAccessError,
    RecordingAlreadyActiveError,
    RecordingNotActiveError,
)
from src.services.audio import AudioProcessor, AudioSlicer, BaseAudioSource
from src.services.recording.session import Chunk, RecordingSession
from src.services.recording.uploader import ChunkUploader

logger = logging.getLogger(__name__)


class SessionRecorder:
    """Owns the audio input for one session at a time.

    Args:
        source: Audio input to capture from.
        uploader: Delivers emitted chunks.
        segment_duration: Slice length in seconds (falls back to settings).
        on_chunk: Optional observer called with every emitted chunk.
    """

    def __init__(
        self,
        source: BaseAudioSource,
        uploader: ChunkUploader,
        segment_duration: float | None = None,
        on_chunk: Callable[[Chunk], None] | None = None,
    ) -> None:
        settings = get_settings()
        self._source = source
        self._uploader = uploader
        self._on_chunk = on_chunk
        self._mime_type = settings.chunk_mime_type
        self._processor = AudioProcessor(
            sample_rate=settings.sample_rate,
            sample_width=settings.sample_width,
            channels=settings.channels,
        )
        self._slicer = AudioSlicer(
            segment_duration=segment_duration or settings.chunk_duration,
            sample_rate=settings.sample_rate,
            sample_width=settings.sample_width,
            channels=settings.channels,
        )
        self._session: RecordingSession | None = None
        self._capture_task: asyncio.Task | None = None
        self._capture_error: BaseException | None = None
        self._starting = False
        self._stopping = False
        self._inflight: set[asyncio.Task] = set()

    @property
    def session(self) -> RecordingSession | None:
        """The session currently recording, if any."""
        return self._session

    @property
    def is_recording(self) -> bool:
        """True from the moment a start is claimed until stop has finished."""
        return self._starting or self._session is not None

    async def start(self, session: RecordingSession | None = None) -> RecordingSession:
        """Open the input device and begin slicing.

        Args:
            session: Pre-created session; a fresh one is made when omitted.

        Raises:
            RecordingAlreadyActiveError: If a session is already recording.
            DeviceAccessError: If the input device cannot be acquired.
        """
        if self.is_recording:
            raise RecordingAlreadyActiveError()

        # Claim before the first await; overlapping starts must not both open the device
        self._starting = True
        if session is None:
            session = RecordingSession()
        self._slicer.reset()
        self._capture_error = None
        try:
            await self._source.open()
        except BaseException:
            self._starting = False
            await self._source.close()
            raise

        self._starting = False
        self._session = session
        self._capture_task = asyncio.create_task(self._capture_loop(session))
        logger.info("Recording session %s started", session.session_id)
        return session

    async def stop(self) -> RecordingSession:
        """End capture, flush the last partial slice and release the device.

        Returns once the final chunk has been handed to the uploader, not
        when it is acknowledged.

        Raises:
            RecordingNotActiveError: If nothing is recording.
            DeviceAccessError: If the capture loop died on a device error.
        """
        session = self._session
        if session is None or self._stopping:
            raise RecordingNotActiveError()

        self._stopping = True
        try:
            await self._source.close()
            if self._capture_task is not None:
                await self._capture_task
        finally:
            self._capture_task = None
            await self._source.close()
            remainder = self._slicer.flush()
            if remainder is not None:
                self._emit(session, remainder)
            self._session = None
            self._stopping = False

        logger.info(
            "Recording session %s stopped after %s chunks", session.session_id, session.emitted
        )
        if self._capture_error is not None:
            raise DeviceAccessError(
                f"Audio capture failed: {self._capture_error}"
            ) from self._capture_error
        return session

    async def wait_for_uploads(self) -> None:
        """Wait until every chunk handed off so far has settled."""
        while True:
            pending = [task for task in self._inflight if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    async def _capture_loop(self, session: RecordingSession) -> None:
        try:
            while True:
                block = await self._source.read()
                if block is None:
                    break
                self._slicer.add_bytes(block)
                while (segment := self._slicer.pop_segment()) is not None:
                    self._emit(session, segment)
        except Exception as exc:
            logger.exception("Capture loop failed for session %s", session.session_id)
            self._capture_error = exc
            await self._source.close()

    def _emit(self, session: RecordingSession, pcm: bytes) -> None:
        chunk = session.next_chunk(self._processor.pcm_to_wav(pcm), self._mime_type)
        logger.debug(
            "Emitting chunk %s of session %s (%.1fs)",
            chunk.sequence_number,
            session.session_id,
            self._processor.duration_of(pcm),
        )
        if self._on_chunk is not None:
            self._on_chunk(chunk)
        task = asyncio.create_task(self._deliver(session, chunk))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _deliver(self, session: RecordingSession, chunk: Chunk) -> None:
        try:
            await self._uploader.upload(chunk)
        except ChunkUploadError as exc:
            logger.warning("Dropping chunk for session %s: %s", session.session_id, exc.detail)
            session.record_failure(exc)
            return
        session.record_ack(chunk.sequence_number)
