"""Vector store and artifact indexer tests."""

from unittest.mock import MagicMock

import pytest

from memowiki.generation.orchestrator import PathResult, PathState
from memowiki.vectorstore import ArtifactIndexer, VectorStore
from memowiki.vectorstore.indexer import build_documents


def test_vectorstore_initializes(temp_vectorstore: VectorStore):
    """Vector store initializes and creates collection."""
    assert temp_vectorstore.collection is not None
    assert temp_vectorstore.count() == 0


def test_upsert_and_query_documents(temp_vectorstore: VectorStore):
    """Documents can be upserted and queried."""
    temp_vectorstore.upsert_documents(
        ids=["doc1", "doc2"],
        documents=[
            "The login function handles user authentication",
            "The database schema defines user tables",
        ],
        metadatas=[
            {"path": "auth.ts", "kind": "documentation"},
            {"path": "schema.ts", "kind": "documentation"},
        ],
    )

    results = temp_vectorstore.query("how does login work", n_results=1)

    assert results["ids"][0] == ["doc1"]


def test_upsert_replaces_existing_ids(temp_vectorstore: VectorStore):
    """Re-indexing the same id does not create duplicates."""
    temp_vectorstore.upsert_documents(ids=["doc1"], documents=["first"])
    temp_vectorstore.upsert_documents(ids=["doc1"], documents=["second"])

    assert temp_vectorstore.count() == 1


def test_upsert_nothing_is_a_noop(temp_vectorstore: VectorStore):
    """An empty batch is accepted."""
    temp_vectorstore.upsert_documents(ids=[], documents=[])

    assert temp_vectorstore.count() == 0


# =============================================================================
# Indexer Tests
# =============================================================================


def test_build_documents_for_structure(sample_structure):
    """Documentation plus one document per class and function."""
    result = PathResult(
        path="src/user-service.ts",
        state=PathState.GENERATED,
        artifacts={"documentation": "# Docs"},
    )

    ids, documents, metadatas = build_documents(result, sample_structure)

    assert ids == [
        "doc:src/user-service.ts",
        "class:src/user-service.ts:UserService",
        "function:src/user-service.ts:createService",
    ]
    assert documents[0] == "# Docs"
    assert "getUser, saveUser" in documents[1]
    assert "createService(db) -> UserService" in documents[2]
    assert metadatas[1] == {
        "path": "src/user-service.ts",
        "kind": "class",
        "name": "UserService",
    }


def test_indexer_requires_store_or_path():
    """An indexer needs somewhere to write."""
    with pytest.raises(ValueError):
        ArtifactIndexer()


def test_indexer_skips_failed_results():
    """Failed paths have no artifacts worth indexing."""
    store = MagicMock()
    indexer = ArtifactIndexer(store=store)
    results = [
        PathResult("a.ts", PathState.GENERATED, {"documentation": "A"}),
        PathResult("b.ts", PathState.FAILED, error="boom"),
        PathResult("c.ts", PathState.CACHED, {"documentation": "C"}),
    ]

    count = indexer.index_results(results)

    assert count == 2
    ids = store.upsert_documents.call_args.args[0]
    assert ids == ["doc:a.ts", "doc:c.ts"]


def test_indexer_swallows_store_errors(caplog):
    """Indexing failures are logged and reported as zero documents."""
    store = MagicMock()
    store.upsert_documents.side_effect = RuntimeError("disk full")

    count = ArtifactIndexer(store=store).index_results(
        [PathResult("a.ts", PathState.GENERATED, {"documentation": "A"})]
    )

    assert count == 0
    assert "Vector indexing failed" in caplog.text


def test_indexer_search_shapes_hits():
    """Query results are flattened into hit dictionaries."""
    store = MagicMock()
    store.query.return_value = {
        "ids": [["doc:a.ts"]],
        "metadatas": [[{"path": "a.ts", "kind": "documentation"}]],
        "distances": [[0.25]],
    }

    hits = ArtifactIndexer(store=store).search("login", limit=3)

    store.query.assert_called_once_with("login", n_results=3)
    assert hits == [{"id": "doc:a.ts", "path": "a.ts", "kind": "documentation", "distance": 0.25}]


def test_indexer_search_uses_configured_limit():
    """Without an explicit limit, search returns result_limit hits."""
    store = MagicMock()
    store.query.return_value = {"ids": [[]], "metadatas": [[]], "distances": [[]]}

    hits = ArtifactIndexer(store=store, result_limit=4).search("login")

    store.query.assert_called_once_with("login", n_results=4)
    assert hits == []


def test_indexer_end_to_end(temp_vectorstore: VectorStore, sample_structure):
    """Indexed artifacts are searchable."""
    indexer = ArtifactIndexer(store=temp_vectorstore)
    result = PathResult(
        path="src/user-service.ts",
        state=PathState.GENERATED,
        artifacts={"documentation": "Loads and saves users in the database"},
    )

    indexer.index_results([result], {"src/user-service.ts": sample_structure})
    hits = indexer.search("user persistence", limit=1)

    assert temp_vectorstore.count() == 3
    assert hits[0]["path"] == "src/user-service.ts"
