"""FastAPI dependency injection functions."""

from fastapi import Request

from memowiki.cache.content_cache import ContentCache
from memowiki.config import Config
from memowiki.wiki.store import ArtifactStore
from memowiki.wiki.summary_index import SummaryIndex


def get_settings(request: Request) -> Config:
    """Get the Config the application was created with."""
    return request.app.state.settings


def get_summary_index(request: Request) -> SummaryIndex:
    """Get a summary index for the workspace.

    The index reads from disk on every query, so a fresh instance per
    request always sees the latest log.
    """
    return SummaryIndex(get_settings(request).summary_index_file)


def get_artifact_store(request: Request) -> ArtifactStore:
    """Get the artifact store for the workspace."""
    return ArtifactStore(get_settings(request).wiki_path)


def get_cache(request: Request) -> ContentCache:
    """Get the content cache, loaded fresh for this request."""
    settings = get_settings(request)
    return ContentCache(settings.cache_file, settings.workspace_path)
