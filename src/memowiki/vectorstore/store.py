"""ChromaDB vector store implementation."""

import gc
import logging
from pathlib import Path
from typing import Any

import chromadb
from chromadb.config import Settings

from memowiki.constants.search import COLLECTION_NAME, DEFAULT_SEARCH_LIMIT

logger = logging.getLogger(__name__)


class VectorStore:
    """Vector store wrapper for ChromaDB.

    Holds documentation and symbol descriptions for free-text search over
    generated artifacts. Nothing in the generation path depends on it.
    """

    def __init__(self, persist_path: Path, collection_name: str = COLLECTION_NAME) -> None:
        """Initialize vector store with persistent storage.

        Args:
            persist_path: Directory path for ChromaDB persistence.
            collection_name: Collection holding the artifacts.
        """
        self.collection_name = collection_name
        self._client = chromadb.PersistentClient(
            path=str(persist_path),
            settings=Settings(anonymized_telemetry=False),
        )
        self._collection = self._client.get_or_create_collection(name=collection_name)

    @property
    def collection(self) -> chromadb.Collection:
        """Get the underlying ChromaDB collection."""
        return self._collection

    def upsert_documents(
        self,
        ids: list[str],
        documents: list[str],
        metadatas: list[dict[str, Any]] | None = None,
    ) -> None:
        """Insert or replace documents.

        Re-indexing a path replaces its previous documents instead of
        failing on duplicate ids.

        Args:
            ids: Unique identifiers for each document.
            documents: Text content of each document.
            metadatas: Optional metadata dictionaries for each document.
        """
        if not ids:
            return
        self._collection.upsert(
            ids=ids,
            documents=documents,
            metadatas=metadatas,  # type: ignore[arg-type]
        )

    def query(
        self,
        query_text: str,
        n_results: int = DEFAULT_SEARCH_LIMIT,
        where: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Query the vector store for similar documents.

        Args:
            query_text: Text to search for.
            n_results: Maximum number of results to return.
            where: Optional metadata filter.

        Returns:
            Query results including ids, documents, metadatas, and distances.
        """
        result = self._collection.query(
            query_texts=[query_text],
            n_results=n_results,
            where=where,
        )
        return dict(result)

    def delete(self, ids: list[str]) -> None:
        """Delete documents by their IDs."""
        self._collection.delete(ids=ids)

    def count(self) -> int:
        return self._collection.count()

    def close(self) -> None:
        """Release the client so file handles are closed."""
        self._collection = None  # type: ignore[assignment]
        self._client = None  # type: ignore[assignment]
        gc.collect()
