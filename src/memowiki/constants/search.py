"""Semantic search configuration.

The vector index is an optional consumer of generated artifacts. It is
disabled unless explicitly enabled in configuration.
"""

# =============================================================================
# Result Limits
# =============================================================================
# Default number of results to return from search and recency queries.

DEFAULT_SEARCH_LIMIT = 10
DEFAULT_RECENT_LIMIT = 10

# =============================================================================
# Collection
# =============================================================================
# All artifacts share one ChromaDB collection, keyed by
# "<kind>:<file>[:<symbol>]".

COLLECTION_NAME = "memowiki_artifacts"
