"""
Abstract base class for audio input sources.

The recorder only talks to this interface, so the capture backend can be
swapped (or faked in tests) without touching the slicing/upload logic.
"""

from abc import ABC, abstractmethod


class BaseAudioSource(ABC):
    """Interface that every audio input must implement."""

    @abstractmethod
    async def open(self) -> None:
        """Acquire the input device and start capturing.

        Raises:
            DeviceAccessError: If the device cannot be acquired.
        """

    @abstractmethod
    async def read(self) -> bytes | None:
        """Return the next block of 16-bit PCM bytes.

        Returns:
            PCM bytes, or None once the source has been closed or ended.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the input device. Must be safe to call more than once."""
