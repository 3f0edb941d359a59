"""Process-wide store of UI-facing audio records.

Chunk callbacks, poll completions and API handlers all touch the same
records, so every mutation is a keyed read-modify-write under one lock.
Records are only ever status-transitioned, never removed by the pipeline.
"""

import logging
import threading
from collections.abc import Callable

from src.core.exceptions import RecordNotFoundError
from src.core.models import AudioStatus, UploadedAudioRecord

logger = logging.getLogger(__name__)


class RecordStore:
    """Keyed collection of ``UploadedAudioRecord`` in insertion order."""

    def __init__(self) -> None:
        self._records: dict[str, UploadedAudioRecord] = {}
        self._lock = threading.Lock()

    def add(self, name: str, **fields) -> UploadedAudioRecord:
        """Insert a record, or return the existing one untouched."""
        with self._lock:
            existing = self._records.get(name)
            if existing is not None:
                return existing
            record = UploadedAudioRecord(name=name, **fields)
            self._records[name] = record
            return record

    def update(
        self, name: str, fn: Callable[[UploadedAudioRecord], UploadedAudioRecord]
    ) -> UploadedAudioRecord:
        """Atomically replace a record with ``fn(record)``.

        Raises:
            RecordNotFoundError: If ``name`` is unknown.
        """
        with self._lock:
            current = self._records.get(name)
            if current is None:
                raise RecordNotFoundError(name)
            updated = fn(current)
            self._records[name] = updated
            return updated

    def upsert(self, name: str, **changes) -> UploadedAudioRecord:
        """Apply ``changes`` to the record, creating it if missing."""
        with self._lock:
            current = self._records.get(name)
            if current is None:
                record = UploadedAudioRecord(name=name, **changes)
            else:
                record = current.model_copy(update=changes)
            self._records[name] = record
            return record

    def set_status(
        self, name: str, status: AudioStatus, message: str | None = None
    ) -> UploadedAudioRecord:
        record = self.upsert(name, status=status, message=message)
        logger.debug("Record %s -> %s", name, status)
        return record

    def get(self, name: str) -> UploadedAudioRecord:
        with self._lock:
            record = self._records.get(name)
        if record is None:
            raise RecordNotFoundError(name)
        return record

    def list(self) -> list[UploadedAudioRecord]:
        with self._lock:
            return list(self._records.values())

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


_store: RecordStore | None = None


def get_record_store() -> RecordStore:
    """Return the process-wide record store."""
    global _store
    if _store is None:
        _store = RecordStore()
    return _store
