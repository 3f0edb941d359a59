"""
Stored-file catalog endpoints.

Exposes the backend's ``/files`` listing grouped per artifact, so a UI can
show an audio file next to its transcript and summary.
"""

from fastapi import APIRouter

from src.core.models import ArtifactGroupResponse
from src.services import orchestrator
from src.services.catalog import load_index

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/groups", response_model=list[ArtifactGroupResponse])
async def list_groups():
    """Group stored files by artifact id (audio, transcript, summary)."""
    index = await load_index(orchestrator.get_orchestrator().client)
    return [
        ArtifactGroupResponse(
            artifact_id=group.artifact_id,
            audio=group.audio,
            transcript=group.transcript,
            summary=group.summary,
        )
        for group in index.groups()
    ]
