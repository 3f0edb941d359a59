"""
Catalog module - UI record store and the stored-file artifact index.
"""

from .dedupe import DedupeDecision, TranscriptDeduper, load_index
from .index import ArtifactGroup, CatalogIndex, artifact_id
from .store import RecordStore, get_record_store

__all__ = [
    "ArtifactGroup",
    "CatalogIndex",
    "DedupeDecision",
    "RecordStore",
    "TranscriptDeduper",
    "artifact_id",
    "get_record_store",
    "load_index",
]
