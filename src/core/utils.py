"""Shared utility functions for chunkscribe."""

import secrets
import time


def generate_session_id() -> str:
    """Return a new recording session id: millisecond timestamp + random suffix."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"


def key_basename(key: str) -> str:
    """Last path segment of a storage key (``audio/a.wav`` -> ``a.wav``)."""
    return key.rstrip("/").rsplit("/", 1)[-1]


def strip_extension(filename: str) -> str:
    """Drop the final extension, keeping dot-files intact."""
    stem, dot, _ext = filename.rpartition(".")
    if not dot or not stem:
        return filename
    return stem


def recording_name(session_id: str) -> str:
    """Catalog record name used for a chunked recording session."""
    return f"{session_id}_recording.mp3"
