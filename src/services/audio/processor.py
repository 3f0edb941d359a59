"""Audio processing utilities for PCM data.

Wraps raw PCM segments in WAV containers so each uploaded chunk can be
decoded on its own.
"""

import io
import wave


class AudioProcessor:
    """Handles PCM audio framing and container encoding."""

    def __init__(
        self,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        """Initialize the audio processor.

        Args:
            sample_rate: Audio sample rate in Hz (default: 16 kHz).
            sample_width: Bytes per sample (2 = 16-bit signed PCM).
            channels: Number of audio channels (1 = mono).
        """
        self.sample_rate = sample_rate
        self.sample_width = sample_width
        self.channels = channels

    @property
    def frame_size(self) -> int:
        """Bytes per sample frame across all channels."""
        return self.sample_width * self.channels

    @property
    def bytes_per_second(self) -> int:
        return self.sample_rate * self.frame_size

    def duration_of(self, pcm_data: bytes) -> float:
        """Duration in seconds of a PCM byte string."""
        return len(pcm_data) / self.bytes_per_second

    def pcm_to_wav(self, pcm_data: bytes) -> bytes:
        """Encode raw PCM bytes as an in-memory WAV file.

        Args:
            pcm_data: Raw PCM bytes, frame-aligned.

        Returns:
            The complete WAV file as bytes.

        Raises:
            ValueError: If pcm_data is empty or not frame-aligned.
        """
        if not pcm_data:
            raise ValueError("Cannot encode empty PCM data to WAV")
        if len(pcm_data) % self.frame_size != 0:
            raise ValueError(
                f"PCM data length ({len(pcm_data)}) is not aligned to frame size ({self.frame_size})"
            )
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(self.sample_width)
            wf.setframerate(self.sample_rate)
            wf.writeframes(pcm_data)
        return buf.getvalue()
