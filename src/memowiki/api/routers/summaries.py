"""Summary index endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from memowiki.api.deps import get_artifact_store, get_summary_index
from memowiki.api.schemas import SummaryDetail, SummaryItem, SummaryList
from memowiki.constants.search import DEFAULT_RECENT_LIMIT, DEFAULT_SEARCH_LIMIT
from memowiki.wiki.store import ArtifactCategory, ArtifactStore
from memowiki.wiki.summary_index import SummaryIndex, SummaryType

router = APIRouter(prefix="/api/summaries", tags=["summaries"])


def _to_list(entries) -> SummaryList:
    items = [SummaryItem.from_entry(e) for e in entries]
    return SummaryList(entries=items, total=len(items))


@router.get("", response_model=SummaryList)
async def list_summaries(
    category: SummaryType | None = Query(None, description="feature, bugfix or refactor"),
    file: str | None = Query(None, description="Substring of an involved file path"),
    linked_to: str | None = Query(None, description="Parent summary id"),
    index: SummaryIndex = Depends(get_summary_index),
) -> SummaryList:
    """List summaries, newest first."""
    return _to_list(index.get_entries(category=category, file=file, linked_to=linked_to))


@router.get("/recent", response_model=SummaryList)
async def recent_summaries(
    limit: int = Query(DEFAULT_RECENT_LIMIT, ge=1, le=100),
    index: SummaryIndex = Depends(get_summary_index),
) -> SummaryList:
    """Get the most recent summaries."""
    return _to_list(index.get_recent(limit))


@router.get("/search", response_model=SummaryList)
async def search_summaries(
    q: str = Query(..., min_length=1, description="Search query"),
    limit: int = Query(DEFAULT_SEARCH_LIMIT, ge=1, le=100),
    index: SummaryIndex = Depends(get_summary_index),
) -> SummaryList:
    """Search summary ids, files and tags."""
    return _to_list(index.search(q, limit=limit))


@router.get("/{summary_id}", response_model=SummaryDetail)
async def get_summary(
    summary_id: str,
    index: SummaryIndex = Depends(get_summary_index),
    store: ArtifactStore = Depends(get_artifact_store),
) -> SummaryDetail:
    """Get one summary with its artifact content."""
    entry = index.get(summary_id)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Summary not found: {summary_id}",
        )

    try:
        content = store.read(ArtifactCategory.SUMMARY, entry.id)
    except ValueError:
        content = None

    item = SummaryItem.from_entry(entry)
    return SummaryDetail(**item.model_dump(), content=content)
