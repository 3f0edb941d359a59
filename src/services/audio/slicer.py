"""Time slicing of live PCM audio.

Accumulates incoming PCM bytes and yields back-to-back fixed-duration
segments. Unlike a transcription buffer there is no overlap: the backend
concatenates chunks by sequence number, so every byte is sent exactly once.
"""


class AudioSlicer:
    """Accumulates PCM audio bytes and yields fixed-duration segments."""

    def __init__(
        self,
        segment_duration: float = 15.0,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        if segment_duration <= 0:
            raise ValueError("segment_duration must be positive")
        self._segment_duration = segment_duration
        self._sample_rate = sample_rate
        self._frame_size = sample_width * channels
        self._buffer = bytearray()

    @property
    def segment_size_bytes(self) -> int:
        """Number of bytes in one full segment, aligned to whole frames."""
        frames = max(1, int(self._segment_duration * self._sample_rate))
        return frames * self._frame_size

    @property
    def buffered_duration(self) -> float:
        """Duration of currently buffered audio in seconds."""
        return len(self._buffer) / (self._sample_rate * self._frame_size)

    def add_bytes(self, data: bytes) -> None:
        """Append raw PCM bytes to the buffer."""
        self._buffer.extend(data)

    def has_segment(self) -> bool:
        """Check if enough data has accumulated for a full segment."""
        return len(self._buffer) >= self.segment_size_bytes

    def pop_segment(self) -> bytes | None:
        """Remove and return one full segment, or None if not enough data."""
        if not self.has_segment():
            return None
        size = self.segment_size_bytes
        segment = bytes(self._buffer[:size])
        del self._buffer[:size]
        return segment

    def flush(self) -> bytes | None:
        """Return the remaining partial segment and clear the buffer.

        The remainder is truncated to whole frames. Returns None when nothing
        usable is left, so a zero-byte segment is never produced.
        """
        usable = len(self._buffer) - (len(self._buffer) % self._frame_size)
        segment = bytes(self._buffer[:usable])
        self._buffer.clear()
        return segment or None

    def reset(self) -> None:
        """Clear the buffer."""
        self._buffer.clear()
