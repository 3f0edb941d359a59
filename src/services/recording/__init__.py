"""
Recording module - chunked capture, upload, finalize and status polling.
"""

from .finalizer import SessionFinalizer
from .poller import TaskStatusPoller, TranscriptionPoller
from .recorder import SessionRecorder
from .session import Chunk, RecordingSession
from .uploader import ChunkUploader

__all__ = [
    "Chunk",
    "ChunkUploader",
    "RecordingSession",
    "SessionFinalizer",
    "SessionRecorder",
    "TaskStatusPoller",
    "TranscriptionPoller",
]
