"""Summary and file API tests."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from memowiki.cache.content_cache import ContentCache
from memowiki.config import BackendIdentity, Config
from memowiki.main import create_app
from memowiki.wiki.store import ArtifactStore
from memowiki.wiki.summary_index import SummaryEntry, SummaryIndex, SummaryType

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def populated(config: Config) -> Config:
    """Workspace with three summaries and two cached files."""
    store = ArtifactStore(config.wiki_path)
    store.initialize()
    index = SummaryIndex(config.summary_index_file)

    for i, (entry_id, category, files) in enumerate(
        [
            ("login", SummaryType.FEATURE, ("src/auth/login.ts",)),
            ("fix-db", SummaryType.BUGFIX, ("src/db.ts",)),
            ("login-followup", SummaryType.FEATURE, ("src/auth/login.ts", "src/db.ts")),
        ]
    ):
        store.save_summary(entry_id, f"# {entry_id}\n")
        index.add_entry(
            SummaryEntry(
                id=entry_id,
                timestamp=T0 + timedelta(hours=i),
                category=category,
                files=files,
                artifact_path=f"summaries/{entry_id}.md",
                tags=("auth",) if "login" in entry_id else (),
            )
        )
    index.link_summaries("login", "login-followup")

    cache = ContentCache(config.cache_file, config.workspace_path)
    identity = BackendIdentity("mock", "v1")
    cache.store("src/db.ts", "d1", identity, {"documentation": "db", "diagram": "graph"})
    cache.store("src/auth/login.ts", "d2", identity, {"documentation": "login"})
    store.save_documentation("db", "db")
    return config


@pytest.fixture
async def client(populated: Config):
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=create_app(populated)),
        base_url="http://test",
    ) as client:
        yield client


# =============================================================================
# Summary Endpoint Tests
# =============================================================================


async def test_list_summaries_newest_first(client: AsyncClient):
    """All summaries are listed newest first."""
    response = await client.get("/api/summaries")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert [e["id"] for e in data["entries"]] == ["login-followup", "fix-db", "login"]


async def test_list_summaries_filters(client: AsyncClient):
    """Category, file and parent filters are applied."""
    by_category = (await client.get("/api/summaries", params={"category": "bugfix"})).json()
    by_file = (await client.get("/api/summaries", params={"file": "auth"})).json()
    by_parent = (await client.get("/api/summaries", params={"linked_to": "login"})).json()

    assert [e["id"] for e in by_category["entries"]] == ["fix-db"]
    assert [e["id"] for e in by_file["entries"]] == ["login-followup", "login"]
    assert [e["id"] for e in by_parent["entries"]] == ["login-followup"]


async def test_list_summaries_rejects_unknown_category(client: AsyncClient):
    """Unknown categories fail validation."""
    response = await client.get("/api/summaries", params={"category": "chore"})

    assert response.status_code == 422


async def test_recent_summaries(client: AsyncClient):
    """The recent endpoint honors its limit."""
    response = await client.get("/api/summaries/recent", params={"limit": 2})

    assert [e["id"] for e in response.json()["entries"]] == ["login-followup", "fix-db"]


async def test_search_summaries(client: AsyncClient):
    """Search matches tags case-insensitively."""
    response = await client.get("/api/summaries/search", params={"q": "AUTH"})

    assert [e["id"] for e in response.json()["entries"]] == ["login-followup", "login"]


async def test_search_requires_query(client: AsyncClient):
    """An empty query is rejected."""
    response = await client.get("/api/summaries/search", params={"q": ""})

    assert response.status_code == 422


async def test_get_summary_includes_content(client: AsyncClient):
    """A single summary carries its artifact text and back-reference."""
    response = await client.get("/api/summaries/login-followup")

    assert response.status_code == 200
    data = response.json()
    assert data["content"] == "# login-followup\n"
    assert data["linked_to"] == "login"
    assert data["artifact_path"] == "summaries/login-followup.md"
    assert data["files"] == ["src/auth/login.ts", "src/db.ts"]


async def test_get_missing_summary_returns_404(client: AsyncClient):
    """Unknown ids are 404s."""
    response = await client.get("/api/summaries/nope")

    assert response.status_code == 404
    assert "nope" in response.json()["detail"]


# =============================================================================
# File and Stats Endpoint Tests
# =============================================================================


async def test_list_files(client: AsyncClient):
    """Cached files are listed sorted by path with their backend."""
    response = await client.get("/api/files")

    data = response.json()
    assert data["total"] == 2
    assert [f["path"] for f in data["files"]] == ["src/auth/login.ts", "src/db.ts"]
    assert data["files"][1]["artifacts"] == ["diagram", "documentation"]
    assert data["files"][1]["backend"] == {"provider": "mock", "model": "v1"}


async def test_stats(client: AsyncClient, populated: Config):
    """Stats count files, summaries and artifacts."""
    response = await client.get("/api/stats")

    data = response.json()
    assert data["tracked_files"] == 2
    assert data["summaries"] == {"feature": 2, "bugfix": 1, "refactor": 0}
    assert data["artifacts"]["summary"] == 3
    assert data["artifacts"]["documentation"] == 1
    assert data["backend"] == populated.backend_identity.to_dict()
