"""Pydantic schemas for API responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from memowiki.cache.content_cache import CacheEntry
from memowiki.wiki.summary_index import SummaryEntry


class BackendIdentityModel(BaseModel):
    """Provider and model that generated an artifact."""

    provider: str
    model: str


class SummaryItem(BaseModel):
    """A summary index entry."""

    id: str
    timestamp: datetime
    category: str
    files: list[str]
    artifact_path: str
    linked_to: str | None = None
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_entry(cls, entry: SummaryEntry) -> "SummaryItem":
        return cls(
            id=entry.id,
            timestamp=entry.timestamp,
            category=entry.category.value,
            files=list(entry.files),
            artifact_path=entry.artifact_path,
            linked_to=entry.linked_to,
            tags=list(entry.tags),
        )


class SummaryList(BaseModel):
    """A list of summary entries, newest first."""

    entries: list[SummaryItem]
    total: int


class SummaryDetail(SummaryItem):
    """A summary entry with its artifact content."""

    content: str | None = None


class TrackedFile(BaseModel):
    """A file with cached artifacts."""

    path: str
    content_fingerprint: str
    backend: BackendIdentityModel
    generated_at: str
    artifacts: list[str]

    @classmethod
    def from_cache(cls, path: str, entry: CacheEntry) -> "TrackedFile":
        return cls(
            path=path,
            content_fingerprint=entry.content_fingerprint,
            backend=BackendIdentityModel(**entry.backend_identity.to_dict()),
            generated_at=entry.generated_at,
            artifacts=sorted(entry.artifacts),
        )


class TrackedFileList(BaseModel):
    """All files with cached artifacts."""

    files: list[TrackedFile]
    total: int


class WikiStats(BaseModel):
    """Overview counts for the wiki."""

    tracked_files: int
    summaries: dict[str, int]
    artifacts: dict[str, int]
    backend: BackendIdentityModel
