"""
Artifact index over the stored-file catalog.

Stored files follow naming conventions rather than carrying metadata: an
audio file ``audio/s1_final.wav`` produces ``s1_final.txt`` (or
``s1_final_transcription.txt``) and a summary such as
``Resumen_s1_final.txt``. Every key is reduced to an *artifact id* so that
related files land in the same bucket and lookups are dictionary hits
instead of scans over the whole listing.
"""

from dataclasses import dataclass
from enum import StrEnum

from src.core.models import CatalogFile
from src.core.utils import key_basename, strip_extension

AUDIO_EXTENSIONS = frozenset({"wav", "mp3", "m4a", "webm", "ogg", "flac", "aac", "mp4"})
TRANSCRIPT_EXTENSIONS = frozenset({"txt", "srt", "vtt"})

_SUMMARY_SUFFIXES = ("_summary", "_resumen")
_SUMMARY_PREFIXES = ("resumen_", "summary_")
_TRANSCRIPT_SUFFIXES = ("_transcription", "_transcript", "_transcripcion")


class ArtifactRole(StrEnum):
    audio = "audio"
    transcript = "transcript"
    summary = "summary"
    other = "other"


def _split(key: str) -> tuple[str, str]:
    """Return ``(stem, extension)`` of a key's basename, extension lower-cased."""
    name = key_basename(key)
    stem = strip_extension(name)
    ext = name[len(stem) + 1 :].lower() if stem != name else ""
    return stem, ext


def classify(file: CatalogFile) -> ArtifactRole:
    """Decide which role a stored file plays."""
    stem, ext = _split(file.key)
    lowered = stem.lower()
    if lowered.startswith(_SUMMARY_PREFIXES) or lowered.endswith(_SUMMARY_SUFFIXES):
        return ArtifactRole.summary
    if ext in TRANSCRIPT_EXTENSIONS:
        return ArtifactRole.transcript
    if ext in AUDIO_EXTENSIONS or (file.content_type or "").startswith("audio/"):
        return ArtifactRole.audio
    return ArtifactRole.other


def artifact_id(key: str) -> str:
    """Derive the id shared by an audio file and its derived artifacts.

    >>> artifact_id("audio/s1_final.wav")
    's1_final'
    >>> artifact_id("transcripts/Resumen_s1_final_transcription.txt")
    's1_final'
    """
    stem, _ext = _split(key)
    lowered = stem.lower()
    for prefix in _SUMMARY_PREFIXES:
        if lowered.startswith(prefix):
            stem, lowered = stem[len(prefix) :], lowered[len(prefix) :]
            break
    for suffix in _SUMMARY_SUFFIXES + _TRANSCRIPT_SUFFIXES:
        if lowered.endswith(suffix):
            stem, lowered = stem[: -len(suffix)], lowered[: -len(suffix)]
    return stem


@dataclass
class ArtifactGroup:
    """Files sharing one artifact id; the newest file wins per role."""

    artifact_id: str
    audio: CatalogFile | None = None
    transcript: CatalogFile | None = None
    summary: CatalogFile | None = None


class CatalogIndex:
    """Groups a ``/files`` listing by artifact id."""

    def __init__(self, files: list[CatalogFile]) -> None:
        self._groups: dict[str, ArtifactGroup] = {}
        for file in files:
            self._add(file)

    def _add(self, file: CatalogFile) -> None:
        role = classify(file)
        if role == ArtifactRole.other:
            return
        key = artifact_id(file.key)
        group = self._groups.setdefault(key, ArtifactGroup(artifact_id=key))
        current = getattr(group, role.value)
        if current is None or (file.last_modified or "") >= (current.last_modified or ""):
            setattr(group, role.value, file)

    def __len__(self) -> int:
        return len(self._groups)

    def get(self, key: str) -> ArtifactGroup | None:
        """Look up the group for any key belonging to it."""
        return self._groups.get(artifact_id(key))

    def transcript_for(self, audio_key: str) -> CatalogFile | None:
        """Return the stored transcript derived from ``audio_key``, if any."""
        group = self.get(audio_key)
        return group.transcript if group else None

    def groups(self) -> list[ArtifactGroup]:
        """All groups, sorted by artifact id."""
        return [self._groups[k] for k in sorted(self._groups)]
