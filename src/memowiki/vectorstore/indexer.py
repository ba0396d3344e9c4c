"""Feed generated artifacts into the vector store.

The indexer runs after a batch has been written. Indexing is best-effort:
any failure, including failure to open the store, is logged and dropped
so the generation results stand regardless.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

from memowiki.generation.orchestrator import PathResult, PathState
from memowiki.constants.search import DEFAULT_SEARCH_LIMIT
from memowiki.models import CodeStructure
from memowiki.vectorstore.store import VectorStore

logger = logging.getLogger(__name__)


def build_documents(
    result: PathResult, structure: CodeStructure | None
) -> tuple[list[str], list[str], list[dict[str, Any]]]:
    """Build vector-store documents for one processed path.

    Args:
        result: A cached or generated path result.
        structure: Structural summary of the path, if known.

    Returns:
        (ids, documents, metadatas) ready for upsert.
    """
    ids: list[str] = []
    documents: list[str] = []
    metadatas: list[dict[str, Any]] = []

    documentation = result.artifacts.get("documentation")
    if documentation:
        ids.append(f"doc:{result.path}")
        documents.append(documentation)
        metadatas.append({"path": result.path, "kind": "documentation"})

    if structure is None:
        return ids, documents, metadatas

    for cls in structure.classes:
        ids.append(f"class:{result.path}:{cls.name}")
        documents.append(
            f"Class {cls.name} in {result.path}. "
            f"Methods: {', '.join(cls.methods) or 'none'}. "
            f"Properties: {', '.join(cls.properties) or 'none'}."
        )
        metadatas.append({"path": result.path, "kind": "class", "name": cls.name})

    for func in structure.functions:
        ids.append(f"function:{result.path}:{func.name}")
        signature = f"{func.name}({', '.join(func.parameters)})"
        if func.return_type:
            signature += f" -> {func.return_type}"
        documents.append(f"Function {signature} in {result.path}.")
        metadatas.append({"path": result.path, "kind": "function", "name": func.name})

    return ids, documents, metadatas


class ArtifactIndexer:
    """Downstream subscriber that indexes batch results for semantic search."""

    def __init__(
        self,
        store: VectorStore | None = None,
        persist_path: Path | None = None,
        result_limit: int = DEFAULT_SEARCH_LIMIT,
    ):
        """Initialize the indexer.

        Args:
            store: Open vector store. If omitted, one is opened lazily at
                persist_path on first use.
            persist_path: ChromaDB directory used when store is omitted.
            result_limit: Hits returned by search when no limit is given.
        """
        if store is None and persist_path is None:
            raise ValueError("Either store or persist_path is required")
        self._store = store
        self.persist_path = persist_path
        self.result_limit = result_limit

    def _get_store(self) -> VectorStore:
        if self._store is None:
            self._store = VectorStore(self.persist_path)  # type: ignore[arg-type]
        return self._store

    def index_results(
        self,
        results: Iterable[PathResult],
        structures: Mapping[str, CodeStructure] | None = None,
    ) -> int:
        """Index every cached or generated result.

        Args:
            results: Batch results.
            structures: Structural summaries keyed by path.

        Returns:
            Number of documents written; 0 if indexing failed.
        """
        structures = structures or {}
        ids: list[str] = []
        documents: list[str] = []
        metadatas: list[dict[str, Any]] = []

        for result in results:
            if result.state is PathState.FAILED:
                continue
            doc_ids, docs, metas = build_documents(result, structures.get(result.path))
            ids.extend(doc_ids)
            documents.extend(docs)
            metadatas.extend(metas)

        if not ids:
            return 0

        try:
            self._get_store().upsert_documents(ids, documents, metadatas)
        except Exception as e:
            logger.warning(f"Vector indexing failed, search results may be stale: {e}")
            return 0

        logger.info(f"Indexed {len(ids)} documents for semantic search")
        return len(ids)

    def search(self, query: str, limit: int | None = None) -> list[dict[str, Any]]:
        """Free-text search over indexed artifacts.

        Returns:
            Hits with id, path, kind and distance; empty if the store fails.
        """
        try:
            raw = self._get_store().query(query, n_results=limit or self.result_limit)
        except Exception as e:
            logger.warning(f"Vector search failed: {e}")
            return []

        ids = (raw.get("ids") or [[]])[0]
        metadatas = (raw.get("metadatas") or [[]])[0]
        distances = (raw.get("distances") or [[]])[0]
        hits = []
        for i, doc_id in enumerate(ids):
            metadata = metadatas[i] if i < len(metadatas) and metadatas[i] else {}
            hits.append({
                "id": doc_id,
                "path": metadata.get("path", ""),
                "kind": metadata.get("kind", ""),
                "distance": distances[i] if i < len(distances) else None,
            })
        return hits
