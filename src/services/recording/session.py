"""Recording session and chunk value objects.

A ``RecordingSession`` is passed explicitly through every pipeline stage
instead of living in module-level counters. Sequence numbers are assigned
only here, at the moment a chunk is ready to send.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from src.core.exceptions import ChunkUploadError
from src.core.utils import generate_session_id

_EXTENSIONS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
}


@dataclass(frozen=True)
class Chunk:
    """One time slice of a live capture, immutable once created."""

    session_id: str
    sequence_number: int
    payload: bytes
    mime_type: str = "audio/wav"

    @property
    def filename(self) -> str:
        ext = _EXTENSIONS.get(self.mime_type, "bin")
        return f"chunk-{self.sequence_number}.{ext}"


@dataclass
class RecordingSession:
    """State of one recording attempt.

    ``next_sequence`` doubles as the number of chunks emitted so far; the
    emitted set is therefore always the contiguous range ``[0, next_sequence)``.
    """

    session_id: str = field(default_factory=generate_session_id)
    next_sequence: int = 0
    acknowledged: set[int] = field(default_factory=set)
    failures: list[ChunkUploadError] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def emitted(self) -> int:
        """Number of chunks handed to the uploader."""
        return self.next_sequence

    @property
    def chunks_sent(self) -> int:
        """Number of chunks acknowledged by the server."""
        return len(self.acknowledged)

    def next_chunk(self, payload: bytes, mime_type: str = "audio/wav") -> Chunk:
        """Create the next chunk, consuming one sequence number."""
        chunk = Chunk(
            session_id=self.session_id,
            sequence_number=self.next_sequence,
            payload=payload,
            mime_type=mime_type,
        )
        self.next_sequence += 1
        return chunk

    def record_ack(self, sequence_number: int) -> None:
        self.acknowledged.add(sequence_number)

    def record_failure(self, error: ChunkUploadError) -> None:
        self.failures.append(error)

    def missing_sequences(self) -> list[int]:
        """Emitted sequence numbers the server has not acknowledged."""
        return [n for n in range(self.next_sequence) if n not in self.acknowledged]
