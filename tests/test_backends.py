"""Generation backend tests."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from memowiki.config import BackendIdentity, Config
from memowiki.generation.analysis import ImplementationAnalysis
from memowiki.generation.backends import LLMBackend, MockBackend, create_backend
from memowiki.generation.mermaid_validator import extract_mermaid, validate_mermaid
from memowiki.generation.prompts import SYSTEM_PROMPT
from memowiki.models import ChangeSet, CodeStructure, CommitInfo


@pytest.fixture
def change_set() -> ChangeSet:
    """Change set with a recent commit."""
    return ChangeSet(
        modified=["src/user-service.ts"],
        recent_commit=CommitInfo(
            hash="abc", date="2024-01-01", message="Add user service", author_name="Dev"
        ),
    )


# =============================================================================
# Mock Backend Tests
# =============================================================================


async def test_mock_backend_is_deterministic(sample_structure: CodeStructure, change_set):
    """Repeated calls produce byte-identical output."""
    backend = MockBackend()

    first = await backend.generate_documentation(sample_structure, change_set)
    second = await backend.generate_documentation(sample_structure, change_set)

    assert first == second
    assert first.startswith("# Documentation for src/user-service.ts")
    assert "UserService" in first
    assert "Add user service" in first


async def test_mock_backend_identity_tracks_model():
    """The configured model name is part of the identity."""
    assert MockBackend("v1").identity == BackendIdentity("mock", "v1")
    assert MockBackend("v1").identity != MockBackend("v2").identity


async def test_mock_diagrams_are_valid_mermaid(sample_structure: CodeStructure):
    """Mock diagrams pass validation once normalized."""
    backend = MockBackend()

    diagram = await backend.generate_diagram(sample_structure)
    architecture = await backend.generate_architecture_diagram([sample_structure], None)

    assert validate_mermaid(extract_mermaid(diagram)).valid
    assert validate_mermaid(extract_mermaid(architecture)).valid
    assert "class UserService" in diagram


async def test_mock_summary_counts_files(sample_structure: CodeStructure):
    """The project summary mentions how many files it covers."""
    summary = await MockBackend().generate_summary([sample_structure], None)

    assert "Mock summary for 1 files." in summary


async def test_mock_agent_summary(sample_structure: CodeStructure):
    """Implementation summaries name the category and files."""
    analysis = ImplementationAnalysis(todos=["a:1 - x"], completed=["Class: UserService"])

    summary = await MockBackend().generate_agent_summary([sample_structure], "bugfix", analysis)

    assert summary.startswith("# Implementation Summary (bugfix)")
    assert "src/user-service.ts" in summary
    assert "- TODOs: 1" in summary


# =============================================================================
# LLM Backend Tests
# =============================================================================


@pytest.fixture
def client() -> MagicMock:
    """LLM client double returning canned text."""
    mock = MagicMock()
    mock.provider = "openai"
    mock.model = "gpt-4o"
    mock.generate = AsyncMock(return_value="generated")
    return mock


async def test_llm_backend_identity_comes_from_client(client):
    """Identity mirrors the client's provider and model."""
    assert LLMBackend(client).identity == BackendIdentity("openai", "gpt-4o")


async def test_llm_backend_documentation_prompt(client, sample_structure, change_set):
    """Documentation calls send the structure and change context."""
    backend = LLMBackend(client, temperature=0.2)

    result = await backend.generate_documentation(sample_structure, change_set)

    assert result == "generated"
    kwargs = client.generate.call_args.kwargs
    assert kwargs["system_prompt"] == SYSTEM_PROMPT
    assert kwargs["temperature"] == 0.2
    assert "src/user-service.ts" in kwargs["prompt"]
    assert "UserService" in kwargs["prompt"]
    assert "Add user service" in kwargs["prompt"]


async def test_llm_backend_agent_summary_prompt(client, sample_structure):
    """The agent summary prompt carries every section of the analysis."""
    analysis = ImplementationAnalysis(
        todos=["src/user-service.ts:3 - wire cache"],
        integration_points=["External: express", "Internal: ./db"],
        next_steps=["Address 1 TODO item(s)"],
    )

    await LLMBackend(client).generate_agent_summary([sample_structure], "feature", analysis)

    prompt = client.generate.call_args.kwargs["prompt"]
    assert "wire cache" in prompt
    assert "feature" in prompt
    assert "- Integration Points: 2" in prompt
    assert "- External: express" in prompt
    assert "- Internal: ./db" in prompt
    assert "- Address 1 TODO item(s)" in prompt


async def test_llm_backend_propagates_client_errors(client, sample_structure):
    """Errors from the client are not swallowed by the backend."""
    client.generate.side_effect = RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await LLMBackend(client).generate_diagram(sample_structure)


# =============================================================================
# Factory Tests
# =============================================================================


def test_create_backend_mock(workspace: Path):
    """The mock provider needs no credentials."""
    backend = create_backend(Config(workspace_path=workspace, model="v1"))

    assert isinstance(backend, MockBackend)
    assert backend.identity == BackendIdentity("mock", "v1")


def test_create_backend_llm(workspace: Path):
    """Hosted providers get an LLMBackend wired with the config."""
    config = Config(
        workspace_path=workspace,
        provider="anthropic",
        model="claude-test",
        api_keys={"anthropic": "sk-test"},
    )

    backend = create_backend(config)

    assert isinstance(backend, LLMBackend)
    assert backend.identity == BackendIdentity("anthropic", "claude-test")
    assert backend.client.api_key == "sk-test"
    assert backend.client.log_path == config.llm_log_path
    assert backend.temperature == config.generation.temperature
