"""Check-before-act guard against duplicate transcription.

Before a transcription job is submitted, the catalog is queried for a
transcript already derived from the same audio. The check and the later
submit are not atomic: a concurrent trigger between the two can still
start a second job, since the backend offers no compare-and-swap. On any
catalog error the guard answers "transcription needed".
"""

import logging
from dataclasses import dataclass

from src.core.exceptions import BackendError, CatalogQueryError
from src.core.models import CatalogFile
from src.services.api_client import BackendClient
from src.services.catalog.index import CatalogIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DedupeDecision:
    """Outcome of a transcript lookup."""

    needed: bool
    existing: CatalogFile | None = None


async def load_index(client: BackendClient) -> CatalogIndex:
    """List the catalog and index it.

    Raises:
        CatalogQueryError: If the listing cannot be fetched or parsed.
    """
    try:
        listing = await client.list_files()
    except BackendError as exc:
        raise CatalogQueryError(f"Could not list files: {exc.detail}") from exc
    return CatalogIndex(listing.files)


class TranscriptDeduper:
    """Decides whether an audio file still needs transcription."""

    def __init__(self, client: BackendClient) -> None:
        self._client = client

    async def check(self, final_audio_key: str) -> DedupeDecision:
        try:
            index = await load_index(self._client)
        except CatalogQueryError as exc:
            logger.warning(
                "Transcript lookup for %s failed, assuming transcription is needed: %s",
                final_audio_key,
                exc.detail,
            )
            return DedupeDecision(needed=True)

        existing = index.transcript_for(final_audio_key)
        if existing is not None:
            logger.info("Transcript %s already exists for %s", existing.key, final_audio_key)
            return DedupeDecision(needed=False, existing=existing)
        logger.info("No transcript found for %s", final_audio_key)
        return DedupeDecision(needed=True)
