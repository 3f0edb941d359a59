"""Integration test fixtures for chunkscribe.

Provides an async HTTP client for the FastAPI app whose orchestrator is
wired to the fake backend and a scripted microphone.
"""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.api.routes import recording
from src.services.orchestrator import RecordingOrchestrator, set_orchestrator
from src.services.recording import (
    ChunkUploader,
    SessionRecorder,
    TaskStatusPoller,
    TranscriptionPoller,
)


@pytest.fixture
def app():
    """Create a fresh FastAPI application instance."""
    return create_app()


@pytest.fixture
def mic(scripted_source, pcm):
    """Scripted microphone delivering one second of audio per session."""
    return scripted_source([pcm(1.0)])


@pytest.fixture
def api_orchestrator(backend_client, store, mic):
    """Orchestrator installed as the process-wide singleton for the app."""
    uploader = ChunkUploader(backend_client, max_attempts=2, min_wait=0, max_wait=0)
    orch = RecordingOrchestrator(
        client=backend_client,
        store=store,
        recorder=SessionRecorder(mic, uploader, segment_duration=0.5),
        task_poller=TaskStatusPoller(backend_client, interval=0, max_attempts=5),
        transcription_poller=TranscriptionPoller(backend_client, interval=0, max_attempts=5),
        settle_delay=0,
    )
    set_orchestrator(orch)
    yield orch
    set_orchestrator(None)


@pytest.fixture
async def async_client(app, api_orchestrator):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    await api_orchestrator.cleanup()


@pytest.fixture
def background_done():
    """Await every pipeline the routes scheduled in the background."""

    async def _wait() -> None:
        while recording._background:
            await asyncio.gather(*recording._background, return_exceptions=True)

    return _wait
