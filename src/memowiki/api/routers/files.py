"""Tracked file and wiki statistics endpoints."""

from fastapi import APIRouter, Depends

from memowiki.api.deps import get_artifact_store, get_cache, get_settings, get_summary_index
from memowiki.api.schemas import BackendIdentityModel, TrackedFile, TrackedFileList, WikiStats
from memowiki.cache.content_cache import ContentCache
from memowiki.config import Config
from memowiki.wiki.store import ArtifactCategory, ArtifactStore
from memowiki.wiki.summary_index import SummaryIndex

router = APIRouter(prefix="/api", tags=["files"])


@router.get("/files", response_model=TrackedFileList)
async def list_files(cache: ContentCache = Depends(get_cache)) -> TrackedFileList:
    """List every file with cached artifacts, sorted by path."""
    files = [
        TrackedFile.from_cache(path, entry) for path, entry in sorted(cache.entries().items())
    ]
    return TrackedFileList(files=files, total=len(files))


@router.get("/stats", response_model=WikiStats)
async def get_stats(
    settings: Config = Depends(get_settings),
    cache: ContentCache = Depends(get_cache),
    index: SummaryIndex = Depends(get_summary_index),
    store: ArtifactStore = Depends(get_artifact_store),
) -> WikiStats:
    """Counts of tracked files, summaries and artifacts, plus the active backend."""
    return WikiStats(
        tracked_files=len(cache.entries()),
        summaries=index.count_by_category(),
        artifacts={c.value: len(store.list_artifacts(c)) for c in ArtifactCategory},
        backend=BackendIdentityModel(**settings.backend_identity.to_dict()),
    )
