"""Content cache for incremental regeneration."""

from memowiki.cache.content_cache import CacheEntry, ContentCache, compute_fingerprint

__all__ = ["CacheEntry", "ContentCache", "compute_fingerprint"]
