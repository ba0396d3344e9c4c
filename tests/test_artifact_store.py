"""Artifact store tests."""

from datetime import datetime
from pathlib import Path

import pytest

from memowiki.wiki.store import (
    MANIFEST_CONTENT,
    ArtifactCategory,
    ArtifactStore,
    format_update_separator,
)


@pytest.fixture
def store(workspace: Path) -> ArtifactStore:
    """Initialized store under the workspace wiki directory."""
    artifact_store = ArtifactStore(workspace / ".codewiki")
    artifact_store.initialize()
    return artifact_store


# =============================================================================
# Layout Tests
# =============================================================================


def test_initialize_creates_category_directories(store: ArtifactStore):
    """Each category has its own directory."""
    for name in ("memory", "diagrams", "flows", "summaries"):
        assert (store.wiki_path / name).is_dir()


def test_manifest_written_once(store: ArtifactStore):
    """A second initialize keeps a manifest the user edited."""
    manifest = store.wiki_path / "index.md"
    assert manifest.read_text() == MANIFEST_CONTENT

    manifest.write_text("# My notes\n")
    store.initialize()

    assert manifest.read_text() == "# My notes\n"


@pytest.mark.parametrize(
    "category,expected",
    [
        (ArtifactCategory.DOCUMENTATION, "memory/a.md"),
        (ArtifactCategory.DIAGRAM, "diagrams/a.mmd"),
        (ArtifactCategory.FLOW, "flows/a.mmd"),
        (ArtifactCategory.SUMMARY, "summaries/a.md"),
    ],
)
def test_category_layout(store: ArtifactStore, category: ArtifactCategory, expected: str):
    """Categories map to a directory and suffix."""
    assert store.relative_path(category, "a") == expected


@pytest.mark.parametrize("name", ["", "..", "a/b", "a\\b"])
def test_invalid_name_rejected(store: ArtifactStore, name: str):
    """Names must be plain file names."""
    with pytest.raises(ValueError):
        store.save_documentation(name, "x")


def test_unknown_category_rejected(store: ArtifactStore):
    """Only the four categories exist."""
    with pytest.raises(ValueError):
        store.save("notes", "a", "x")


# =============================================================================
# Save Tests
# =============================================================================


def test_documentation_saved_verbatim(store: ArtifactStore):
    """Markdown is stored exactly as given."""
    content = "# Doc\n\n```ts\nconst x = 1\n```"
    store.save_documentation("a", content)

    assert store.read(ArtifactCategory.DOCUMENTATION, "a") == content


def test_fenced_and_bare_diagram_store_identically(store: ArtifactStore):
    """Saving a fenced diagram and the bare source yields the same file."""
    store.save_diagram("fenced", "```mermaid\nclassDiagram\n  class A\n```")
    store.save_diagram("bare", "classDiagram\n  class A")

    fenced = store.read(ArtifactCategory.DIAGRAM, "fenced")
    assert fenced == store.read(ArtifactCategory.DIAGRAM, "bare")
    assert fenced == "classDiagram\n  class A\n"


def test_invalid_diagram_still_saved_with_warning(store: ArtifactStore, caplog):
    """Diagram validation problems are logged, never fatal."""
    store.save_flow("broken", "not a diagram [")

    assert store.read(ArtifactCategory.FLOW, "broken") == "not a diagram [\n"
    assert "has issues" in caplog.text


def test_save_replaces(store: ArtifactStore):
    """Saving again overwrites the previous content."""
    store.save_summary("s", "first")
    store.save_summary("s", "second")

    assert store.read(ArtifactCategory.SUMMARY, "s") == "second"


def test_read_missing_returns_none(store: ArtifactStore):
    """A missing artifact reads as None."""
    assert store.read(ArtifactCategory.DOCUMENTATION, "nothing") is None
    assert not store.exists(ArtifactCategory.DOCUMENTATION, "nothing")


def test_list_artifacts(store: ArtifactStore):
    """Names are listed sorted and without suffix."""
    store.save_documentation("b", "x")
    store.save_documentation("a", "x")

    assert store.list_artifacts(ArtifactCategory.DOCUMENTATION) == ["a", "b"]
    assert store.list_artifacts(ArtifactCategory.FLOW) == []


# =============================================================================
# Append Tests
# =============================================================================


def test_append_to_missing_behaves_like_save(store: ArtifactStore):
    """The first append writes the content with no separator."""
    store.append_to_summary("log", "first")

    assert store.read(ArtifactCategory.SUMMARY, "log") == "first"


def test_append_keeps_prefix_and_adds_timestamped_separator(store: ArtifactStore):
    """Existing content is kept verbatim and followed by separator and new text."""
    store.save_summary("log", "first")
    store.append_to_summary("log", "second")

    content = store.read(ArtifactCategory.SUMMARY, "log")
    assert content.startswith("first\n\n---\n\n## Update: ")
    assert content.endswith("\n\nsecond")

    header = content.split("## Update: ", 1)[1].split("\n", 1)[0]
    assert datetime.fromisoformat(header).tzinfo is not None


def test_separator_embeds_given_time():
    """format_update_separator renders the ISO timestamp."""
    when = datetime.fromisoformat("2024-05-01T12:00:00+00:00")

    assert format_update_separator(when) == (
        "\n\n---\n\n## Update: 2024-05-01T12:00:00+00:00\n\n"
    )
