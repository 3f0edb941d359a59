#!/usr/bin/env python3
"""
chunkscribe command-line recorder

Records from the default microphone in 15-second chunks, streams every
chunk to the backend, then finalizes the session and waits for the
reassembled audio and its transcript.

Usage:
    python scripts/record.py                 # Stop with Enter
    python scripts/record.py --seconds 90    # Stop after 90 seconds
    python scripts/record.py --upload a.mp3  # Upload and transcribe a file
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import sys
from pathlib import Path

# Ensure project root is on sys.path for ``src`` imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.core.config import get_settings  # noqa: E402
from src.core.exceptions import ChunkScribeError  # noqa: E402
from src.services.api_client import BackendClient  # noqa: E402
from src.services.orchestrator import RecordingOrchestrator  # noqa: E402



def _print_progress(message: str) -> None:
    print(f"  … {message}")


async def _wait_for_stop(seconds: float | None) -> None:
    if seconds:
        await asyncio.sleep(seconds)
        return
    print("Recording. Press Enter to stop.")
    await asyncio.get_running_loop().run_in_executor(None, sys.stdin.readline)


async def record(seconds: float | None) -> int:
    async with BackendClient() as client:
        orchestrator = RecordingOrchestrator(client=client)
        stop_event = asyncio.Event()

        async def stopper() -> None:
            await _wait_for_stop(seconds)
            stop_event.set()

        stop_task = asyncio.create_task(stopper())
        try:
            result = await orchestrator.run(stop_event, on_progress=_print_progress)
        except ChunkScribeError as exc:
            print(f"Recording failed: {exc.detail}", file=sys.stderr)
            return 1
        finally:
            stop_task.cancel()
            await orchestrator.cleanup()

    print()
    print(f"  Record:     {result.name}")
    print(f"  Status:     {result.status}")
    print(f"  Audio:      {result.audio_link or '-'}")
    print(f"  Transcript: {result.transcript_link or '-'}")
    return 0


async def upload(path: Path) -> int:
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    async with BackendClient() as client:
        orchestrator = RecordingOrchestrator(client=client)
        try:
            uploaded = await orchestrator.process_upload(
                path.name, path.read_bytes(), content_type, on_progress=_print_progress
            )
        except ChunkScribeError as exc:
            print(f"Upload failed: {exc.detail}", file=sys.stderr)
            return 1

    print(f"  {uploaded.name}: {uploaded.status} ({uploaded.transcript_link or 'no transcript'})")
    return 0


def main() -> int:
    """Entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(description="Record or upload audio for transcription")
    parser.add_argument(
        "--seconds",
        type=float,
        default=None,
        help="Stop recording automatically after this many seconds",
    )
    parser.add_argument(
        "--upload",
        type=Path,
        default=None,
        help="Upload an existing audio file instead of recording",
    )
    args = parser.parse_args()

    logging.basicConfig(level=get_settings().log_level.upper())
    if args.upload is not None:
        return asyncio.run(upload(args.upload))
    return asyncio.run(record(args.seconds))


if __name__ == "__main__":
    sys.exit(main())
