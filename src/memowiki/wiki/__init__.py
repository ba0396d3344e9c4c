"""Wiki directory persistence: artifacts and the summary index."""

from memowiki.wiki.store import ArtifactCategory, ArtifactStore
from memowiki.wiki.summary_index import (
    DuplicateSummaryError,
    SummaryEntry,
    SummaryIndex,
    SummaryType,
)

__all__ = [
    "ArtifactCategory",
    "ArtifactStore",
    "DuplicateSummaryError",
    "SummaryEntry",
    "SummaryIndex",
    "SummaryType",
]
