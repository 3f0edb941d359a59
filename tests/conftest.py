"""Shared pytest fixtures for the chunkscribe test suite.

Provides a scripted audio source, PCM generators, and a fake backend that
speaks the chunk/finalize/status HTTP contract through
``httpx.MockTransport`` so the real ``BackendClient`` is exercised.
"""

import asyncio
import json
import math
import struct
from collections.abc import Callable

import httpx
import pytest

from src.core.config import get_settings
from src.core.exceptions import DeviceAccessError
from src.services.api_client import BackendClient
from src.services.audio.base import BaseAudioSource
from src.services.catalog import RecordStore

BACKEND_URL = "http://backend.test/api"

# 16 kHz, 16-bit, mono
BYTES_PER_SECOND = 32_000


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Pin settings that would otherwise come from a developer's .env."""
    monkeypatch.setenv("BACKEND_URL", BACKEND_URL)
    monkeypatch.setenv("CATALOG_SETTLE_DELAY", "0")
    monkeypatch.setenv("CHUNK_RETRY_MIN_WAIT", "0")
    monkeypatch.setenv("CHUNK_RETRY_MAX_WAIT", "0")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


def pcm_seconds(seconds: float) -> bytes:
    """Generate ``seconds`` of 440Hz sine-wave PCM (16kHz, 16-bit, mono)."""
    sample_rate = 16000
    amplitude = 16000
    samples = [
        struct.pack("<h", int(amplitude * math.sin(2 * math.pi * 440.0 * i / sample_rate)))
        for i in range(int(sample_rate * seconds))
    ]
    return b"".join(samples)


@pytest.fixture
def sample_pcm_bytes():
    """1 second of sine-wave PCM audio."""
    return pcm_seconds(1.0)


@pytest.fixture
def pcm():
    """Factory for sine-wave PCM of a given duration in seconds."""
    return pcm_seconds


class ScriptedAudioSource(BaseAudioSource):
    """Audio source that replays preset blocks, then waits until closed.

    ``fail_on_open`` simulates a denied microphone; ``fail_after`` raises
    from ``read()`` once that many blocks have been delivered.
    """

    def __init__(
        self,
        blocks: list[bytes] | None = None,
        fail_on_open: bool = False,
        fail_after: int | None = None,
    ) -> None:
        self._blocks = list(blocks or [])
        self._fail_on_open = fail_on_open
        self._fail_after = fail_after
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._delivered = 0
        self._queued = 0
        self.opened = 0
        self.closed = 0
        self.is_open = False

    async def open(self) -> None:
        self.opened += 1
        # Device acquisition suspends, like a real driver call
        await asyncio.sleep(0)
        if self._fail_on_open:
            raise DeviceAccessError("Permission denied")
        self.is_open = True
        for block in self._blocks:
            self.push(block)

    async def read(self) -> bytes | None:
        if self._fail_after is not None and self._delivered >= self._fail_after:
            raise OSError("input overflow")
        block = await self._queue.get()
        if block is not None:
            self._delivered += 1
        return block

    async def close(self) -> None:
        self.closed += 1
        if self.is_open:
            self.is_open = False
            self._queue.put_nowait(None)

    def push(self, block: bytes) -> None:
        self._queued += 1
        self._queue.put_nowait(block)

    async def drained(self) -> None:
        """Wait until every queued block has been read."""
        while self._delivered < self._queued:
            await asyncio.sleep(0)
        await asyncio.sleep(0)


@pytest.fixture
def scripted_source():
    """Factory for ScriptedAudioSource instances."""
    return ScriptedAudioSource


# ---------------------------------------------------------------------------
# Fake backend
# ---------------------------------------------------------------------------


class FakeBackend:
    """In-memory stand-in for the reassembly/transcription backend.

    ``task_statuses`` and ``transcription_statuses`` are consumed one per
    poll; the last entry repeats. ``fail_chunks`` maps a chunk number to
    the number of times it should answer 503 before succeeding (use a
    large number to fail it permanently).
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.chunks: dict[str, dict[int, bytes]] = {}
        self.fail_chunks: dict[int, int] = {}
        self.finish_status = 200
        self.finish_body: dict = {"task_id": "t1"}
        self.task_statuses: list[dict] = []
        self.transcription_statuses: list[dict] = []
        self.transcribe_status = 200
        self.files: list[dict] = []
        self.files_status = 200
        self.summary_body: dict = {"summary": "Short summary"}
        self.upload_body: dict = {
            "message": "File uploaded",
            "file_info": {"Key": "audio/meeting.mp3", "URL": "https://files.test/audio/meeting.mp3"},
        }

    def calls(self, path_prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith("/api" + path_prefix)]

    @staticmethod
    def _next(statuses: list[dict]) -> dict:
        return statuses.pop(0) if len(statuses) > 1 else statuses[0]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        params = request.url.params

        if path == "/upload-chunk":
            number = int(params["chunk_number"])
            remaining = self.fail_chunks.get(number, 0)
            if remaining:
                self.fail_chunks[number] = remaining - 1
                return httpx.Response(503, text="busy")
            self.chunks.setdefault(params["session_id"], {})[number] = request.content
            return httpx.Response(200, json={"message": f"chunk {number} stored"})
        if path == "/finish-recording":
            return httpx.Response(self.finish_status, json=self.finish_body)
        if path.startswith("/task-status/"):
            return httpx.Response(200, json=self._next(self.task_statuses))
        if path.startswith("/transcribe/"):
            return httpx.Response(self.transcribe_status, json={"task_id": "tr1"})
        if path.startswith("/transcription_status/"):
            return httpx.Response(200, json=self._next(self.transcription_statuses))
        if path == "/files":
            return httpx.Response(self.files_status, json={"files": self.files})
        if path == "/upload":
            return httpx.Response(200, json=self.upload_body)
        if path == "/resumen/":
            return httpx.Response(200, content=json.dumps(self.summary_body))
        return httpx.Response(404, text="not found")


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
async def backend_client(fake_backend):
    """Real BackendClient wired to the fake backend."""
    client = BackendClient(base_url=BACKEND_URL, transport=httpx.MockTransport(fake_backend))
    yield client
    await client.aclose()


@pytest.fixture
def make_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], BackendClient]:
    """Build a BackendClient around an arbitrary request handler."""

    def _make(handler):
        return BackendClient(base_url=BACKEND_URL, transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def store():
    return RecordStore()
