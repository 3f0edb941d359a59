"""Microphone capture backed by sounddevice.

PortAudio invokes the stream callback on its own thread; blocks are handed
to the event loop with ``call_soon_threadsafe`` so the recorder can await
them like any other coroutine.
"""

import asyncio
import logging

import numpy as np
import sounddevice as sd

from src.core.config import get_settings
from src.core.exceptions import DeviceAccessError
from src.services.audio.base import BaseAudioSource

logger = logging.getLogger(__name__)


class SoundDeviceSource(BaseAudioSource):
    """Captures 16-bit PCM from a PortAudio input device.

    Args:
        device: Device name or index; None or "" selects the system default.
        sample_rate: Capture rate in Hz.
        channels: Number of input channels.
        blocksize: Frames per callback (0 lets PortAudio choose).
    """

    def __init__(
        self,
        device: str | int | None = None,
        sample_rate: int | None = None,
        channels: int | None = None,
        blocksize: int = 0,
    ) -> None:
        settings = get_settings()
        device = device if device is not None else settings.audio_device
        if isinstance(device, str) and device.isdigit():
            device = int(device)
        self._device = device or None
        self._sample_rate = sample_rate or settings.sample_rate
        self._channels = channels or settings.channels
        self._blocksize = blocksize
        self._stream: sd.InputStream | None = None
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._exhausted = False

    def _callback(self, indata: np.ndarray, frames: int, time_info, status) -> None:
        if status:
            logger.debug("Input stream status: %s", status)
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, indata.tobytes())

    async def open(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._exhausted = False
        try:
            stream = sd.InputStream(
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype="int16",
                device=self._device,
                blocksize=self._blocksize,
                callback=self._callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError) as exc:
            self._loop = None
            logger.error("Cannot open audio input %s: %s", self._device or "default", exc)
            raise DeviceAccessError(f"Cannot open audio input: {exc}") from exc
        self._stream = stream
        logger.info(
            "Audio capture started (device=%s, rate=%s, channels=%s)",
            self._device or "default",
            self._sample_rate,
            self._channels,
        )

    async def read(self) -> bytes | None:
        if self._loop is None or self._exhausted:
            return None
        block = await self._queue.get()
        if block is None:
            self._exhausted = True
        return block

    async def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        finally:
            # Queued behind blocks the callback already scheduled
            self._loop.call_soon(self._queue.put_nowait, None)
            logger.info("Audio capture stopped")
