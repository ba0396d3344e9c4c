"""Shared pytest fixtures for all tests.

These fixtures properly clean up resources to prevent file descriptor leaks.
"""

import gc
from pathlib import Path

import pytest

from memowiki.config import Config, GenerationConfig
from memowiki.models import ClassInfo, CodeStructure, FunctionInfo, ImportInfo
from memowiki.vectorstore.store import VectorStore


@pytest.fixture(autouse=True)
def cleanup_after_test():
    """Clean up resources after each test to prevent file descriptor leaks.

    This runs automatically after every test to help garbage collect
    any lingering ChromaDB connections.
    """
    yield
    gc.collect()


@pytest.fixture
def temp_vectorstore(tmp_path):
    """Create a temporary vector store that cleans up properly."""
    index_path = tmp_path / "index"
    index_path.mkdir()
    store = VectorStore(index_path)
    yield store
    store.close()
    gc.collect()


@pytest.fixture
def workspace(tmp_path) -> Path:
    """Create an empty workspace directory."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def config(workspace: Path) -> Config:
    """Mock-provider configuration with instant retries."""
    return Config(
        workspace_path=workspace,
        generation=GenerationConfig(
            max_attempts=3, retry_delay=0.0, backoff_factor=1.0, temperature=0.3
        ),
    )


@pytest.fixture
def sample_structure() -> CodeStructure:
    """Structure of a small TypeScript service file."""
    return CodeStructure(
        file="src/user-service.ts",
        classes=[
            ClassInfo(name="UserService", methods=["getUser", "saveUser"], properties=["db"]),
        ],
        functions=[
            FunctionInfo(name="createService", parameters=["db"], return_type="UserService"),
        ],
        imports=[
            ImportInfo(module_specifier="express", named_imports=["Router"]),
            ImportInfo(module_specifier="./db", default_import="db"),
        ],
        exports=["UserService", "createService"],
    )


@pytest.fixture
def make_file(workspace: Path):
    """Return a helper that writes a file under the workspace."""

    def _make(relative: str, content: str) -> Path:
        path = workspace / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _make
