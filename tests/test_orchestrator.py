"""Generation orchestrator tests."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from memowiki.cache.content_cache import ContentCache, compute_fingerprint
from memowiki.config import BackendIdentity, Config
from memowiki.generation.backends import MockBackend
from memowiki.generation.orchestrator import (
    BatchSummary,
    GenerationOrchestrator,
    PathResult,
    PathState,
    artifact_name,
)
from memowiki.generation.retry import RetryPolicy, TransientGenerationError
from memowiki.llm.client import LLMAuthenticationError
from memowiki.wiki.store import ArtifactCategory, ArtifactStore


def counting_backend(model: str = "v1") -> MockBackend:
    """Mock backend whose per-file calls are counted."""
    backend = MockBackend(model)
    backend.generate_documentation = AsyncMock(wraps=backend.generate_documentation)
    backend.generate_diagram = AsyncMock(wraps=backend.generate_diagram)
    return backend


@pytest.fixture
def cache(config: Config) -> ContentCache:
    return ContentCache(config.cache_file, config.workspace_path)


@pytest.fixture
def store(config: Config) -> ArtifactStore:
    artifact_store = ArtifactStore(config.wiki_path)
    artifact_store.initialize()
    return artifact_store


@pytest.fixture
def policy(config: Config) -> RetryPolicy:
    return RetryPolicy.from_config(config)


def make_orchestrator(backend, cache, store, policy) -> GenerationOrchestrator:
    return GenerationOrchestrator(backend=backend, cache=cache, store=store, retry_policy=policy)


def test_artifact_name_is_basename_stem():
    """Directories and extension are dropped from artifact names."""
    assert artifact_name("src/services/user-service.ts") == "user-service"


# =============================================================================
# Cache Behavior Tests
# =============================================================================


async def test_cache_hit_then_backend_switch(cache, store, policy, make_file):
    """Generated once, served from cache, regenerated for a new backend."""
    make_file("a.ts", "export const x=1")
    v1 = counting_backend("v1")

    first = await make_orchestrator(v1, cache, store, policy).process_path("a.ts")

    assert first.state is PathState.GENERATED
    assert v1.generate_documentation.await_count == 1
    entry = cache.get_entry("a.ts")
    assert entry.content_fingerprint == compute_fingerprint(b"export const x=1")
    assert entry.backend_identity == BackendIdentity("mock", "v1")

    second = await make_orchestrator(v1, cache, store, policy).process_path("a.ts")

    assert second.state is PathState.CACHED
    assert second.artifacts == first.artifacts
    assert v1.generate_documentation.await_count == 1
    assert v1.generate_diagram.await_count == 1

    v2 = counting_backend("v2")
    third = await make_orchestrator(v2, cache, store, policy).process_path("a.ts")

    assert third.state is PathState.GENERATED
    assert v2.generate_documentation.await_count == 1
    assert cache.get_entry("a.ts").backend_identity == BackendIdentity("mock", "v2")


async def test_content_change_invalidates(cache, store, policy, make_file):
    """Editing a file makes its cache entry stale."""
    make_file("a.ts", "export const x=1")
    backend = counting_backend()
    orchestrator = make_orchestrator(backend, cache, store, policy)
    await orchestrator.process_path("a.ts")

    make_file("a.ts", "export const x=2")
    result = await orchestrator.process_path("a.ts")

    assert result.state is PathState.GENERATED
    assert backend.generate_documentation.await_count == 2


async def test_artifacts_written_to_store(cache, store, policy, make_file, sample_structure):
    """Documentation and a normalized diagram land in the store."""
    make_file("src/user-service.ts", "export class UserService {}")
    orchestrator = make_orchestrator(MockBackend(), cache, store, policy)

    await orchestrator.process_path("src/user-service.ts", sample_structure)

    doc = store.read(ArtifactCategory.DOCUMENTATION, "user-service")
    diagram = store.read(ArtifactCategory.DIAGRAM, "user-service")
    assert doc.startswith("# Documentation for src/user-service.ts")
    assert diagram.startswith("classDiagram\n")
    assert "```" not in diagram


async def test_cached_path_restores_missing_artifacts(cache, store, policy, make_file):
    """A cache hit rewrites artifacts deleted from the store."""
    make_file("a.ts", "export const x=1")
    orchestrator = make_orchestrator(MockBackend(), cache, store, policy)
    await orchestrator.process_path("a.ts")
    store.path_for(ArtifactCategory.DOCUMENTATION, "a").unlink()

    result = await orchestrator.process_path("a.ts")

    assert result.state is PathState.CACHED
    assert store.exists(ArtifactCategory.DOCUMENTATION, "a")


# =============================================================================
# Failure Tests
# =============================================================================


async def test_retry_exhaustion_fails_path_without_cache_entry(
    cache, store, policy, make_file, config
):
    """Persistent transient failure makes exactly max_attempts calls and caches nothing."""
    make_file("a.ts", "export const x=1")
    backend = counting_backend()
    backend.generate_documentation.side_effect = TransientGenerationError("overloaded")

    result = await make_orchestrator(backend, cache, store, policy).process_path("a.ts")

    assert result.state is PathState.FAILED
    assert result.attempts == config.generation.max_attempts
    assert backend.generate_documentation.await_count == config.generation.max_attempts
    assert "overloaded" in result.error
    assert cache.get_entry("a.ts") is None
    assert not store.exists(ArtifactCategory.DOCUMENTATION, "a")


async def test_authentication_error_fails_on_first_attempt(cache, store, policy, make_file):
    """Non-transient errors are not retried."""
    make_file("a.ts", "x")
    backend = counting_backend()
    backend.generate_documentation.side_effect = LLMAuthenticationError("bad key")

    result = await make_orchestrator(backend, cache, store, policy).process_path("a.ts")

    assert result.state is PathState.FAILED
    assert result.attempts == 1
    assert backend.generate_documentation.await_count == 1


async def test_unreadable_path_fails(cache, store, policy):
    """A missing file is reported, not raised."""
    result = await make_orchestrator(MockBackend(), cache, store, policy).process_path("gone.ts")

    assert result.state is PathState.FAILED
    assert "Cannot read file" in result.error


async def test_one_failure_does_not_stop_the_batch(cache, store, policy, make_file):
    """Other paths are processed after a failure."""
    for name in ("a", "bad", "c"):
        make_file(f"src/{name}.ts", f"export const {name} = 1")
    backend = counting_backend()

    async def flaky(structure, change_set):
        if structure.file == "src/bad.ts":
            raise TransientGenerationError("always fails")
        return f"# {structure.file}"

    backend.generate_documentation.side_effect = flaky

    summary = await make_orchestrator(backend, cache, store, policy).run(
        ["src/a.ts", "src/bad.ts", "src/c.ts"]
    )

    assert [r.state for r in summary.results] == [
        PathState.GENERATED,
        PathState.FAILED,
        PathState.GENERATED,
    ]
    assert summary.describe() == "0 cached, 2 generated, 1 failed"
    assert [f.path for f in summary.failures] == ["src/bad.ts"]


# =============================================================================
# Batch Control Tests
# =============================================================================


async def test_progress_reported_per_path(cache, store, policy, make_file):
    """The callback sees every path with its step and state."""
    make_file("a.ts", "a")
    make_file("b.ts", "b")
    messages = []

    async def on_progress(progress):
        messages.append(progress.message)

    await make_orchestrator(MockBackend(), cache, store, policy).run(
        ["a.ts", "b.ts"], progress_callback=on_progress
    )

    assert messages == ["[1/2] a.ts: generated", "[2/2] b.ts: generated"]


async def test_stop_event_honored_between_paths(cache, store, policy, make_file):
    """Setting the stop event leaves the remaining paths unprocessed."""
    for name in ("a", "b", "c"):
        make_file(f"{name}.ts", name)
    stop = asyncio.Event()

    async def stop_after_first(progress):
        stop.set()

    summary = await make_orchestrator(MockBackend(), cache, store, policy).run(
        ["a.ts", "b.ts", "c.ts"], progress_callback=stop_after_first, stop_event=stop
    )

    assert summary.interrupted is True
    assert [r.path for r in summary.results] == ["a.ts"]
    assert summary.skipped == ["b.ts", "c.ts"]
    assert cache.get_entry("b.ts") is None
    assert "2 skipped" in summary.describe()


def test_batch_summary_counts():
    """Counts are derived from result states."""
    summary = BatchSummary(
        results=[
            PathResult("a", PathState.CACHED),
            PathResult("b", PathState.GENERATED),
            PathResult("c", PathState.CACHED),
        ]
    )

    assert (summary.cached, summary.generated, summary.failed) == (2, 1, 0)
    assert BatchSummary(up_to_date=True).describe().startswith("No changes detected")


# =============================================================================
# Project Artifact Tests
# =============================================================================


async def test_project_artifacts_written(cache, store, policy, sample_structure):
    """The overview and architecture flow are saved under fixed names."""
    orchestrator = make_orchestrator(MockBackend(), cache, store, policy)

    errors = await orchestrator.generate_project_artifacts([sample_structure])

    assert errors == []
    assert "Mock summary for 1 files." in store.read(ArtifactCategory.SUMMARY, "project-overview")
    assert store.read(ArtifactCategory.FLOW, "architecture").startswith("flowchart LR\n")


async def test_project_artifact_failure_is_reported(cache, store, policy, sample_structure):
    """A failing overview does not prevent the architecture flow."""
    backend = MockBackend()
    backend.generate_summary = AsyncMock(side_effect=TransientGenerationError("busy"))

    errors = await make_orchestrator(backend, cache, store, policy).generate_project_artifacts(
        [sample_structure]
    )

    assert len(errors) == 1
    assert errors[0].startswith("project summary:")
    assert store.exists(ArtifactCategory.FLOW, "architecture")
    assert not store.exists(ArtifactCategory.SUMMARY, "project-overview")
