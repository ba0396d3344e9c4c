"""Vector store module for semantic search."""

from memowiki.vectorstore.indexer import ArtifactIndexer
from memowiki.vectorstore.store import VectorStore

__all__ = ["ArtifactIndexer", "VectorStore"]
