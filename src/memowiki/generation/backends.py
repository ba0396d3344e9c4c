"""Generation backends.

The orchestrator depends only on GenerationBackend. Which concrete variant
runs is a configuration value; create_backend() maps it to a class.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import PurePosixPath

from memowiki.config import BackendIdentity, Config
from memowiki.generation.analysis import ImplementationAnalysis
from memowiki.generation.mermaid_validator import sanitize_label, sanitize_node_id
from memowiki.generation.prompts import (
    SYSTEM_PROMPT,
    format_change_context,
    get_agent_summary_prompt,
    get_architecture_prompt,
    get_diagram_prompt,
    get_documentation_prompt,
    get_summary_prompt,
)
from memowiki.llm.client import LLMClient
from memowiki.models import ChangeSet, CodeStructure

logger = logging.getLogger(__name__)


class BackendProvider(str, Enum):
    """Supported backend families."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    OPENROUTER = "openrouter"
    OLLAMA = "ollama"
    MOCK = "mock"


class GenerationBackend(ABC):
    """Capability interface for turning structures into artifact text."""

    @property
    @abstractmethod
    def identity(self) -> BackendIdentity:
        """Provider and model, used as part of the cache key."""

    @abstractmethod
    async def generate_documentation(
        self, structure: CodeStructure, change_set: ChangeSet | None
    ) -> str:
        """Markdown documentation for one file."""

    @abstractmethod
    async def generate_diagram(self, structure: CodeStructure) -> str:
        """Mermaid class diagram for one file."""

    @abstractmethod
    async def generate_summary(
        self, structures: list[CodeStructure], change_set: ChangeSet | None
    ) -> str:
        """Markdown overview of the whole project."""

    @abstractmethod
    async def generate_architecture_diagram(
        self, structures: list[CodeStructure], change_set: ChangeSet | None
    ) -> str:
        """Mermaid flowchart of how the project's components connect."""

    @abstractmethod
    async def generate_agent_summary(
        self,
        structures: list[CodeStructure],
        category: str,
        analysis: ImplementationAnalysis,
    ) -> str:
        """Markdown summary of a unit of implementation work."""


class MockBackend(GenerationBackend):
    """Deterministic offline backend.

    Output depends only on the input structures, so repeated runs produce
    byte-identical artifacts. Useful for tests and for trying the pipeline
    without credentials.
    """

    def __init__(self, model: str = "mock-model"):
        self._identity = BackendIdentity(provider=BackendProvider.MOCK.value, model=model)

    @property
    def identity(self) -> BackendIdentity:
        return self._identity

    async def generate_documentation(
        self, structure: CodeStructure, change_set: ChangeSet | None
    ) -> str:
        lines = [
            f"# Documentation for {structure.file}",
            "",
            "## Overview",
            f"This file contains {len(structure.classes)} classes "
            f"and {len(structure.functions)} functions.",
            "",
            "## Classes",
        ]
        lines.extend(f"- **{c.name}**: {len(c.methods)} methods" for c in structure.classes)
        lines.extend(["", "## Functions"])
        lines.extend(
            f"- **{f.name}**: {', '.join(f.parameters)}" for f in structure.functions
        )
        lines.extend(["", "## Recent Changes", format_change_context(change_set), ""])
        return "\n".join(lines)

    async def generate_diagram(self, structure: CodeStructure) -> str:
        lines = ["```mermaid", "classDiagram"]
        for cls in structure.classes:
            lines.append(f"    class {sanitize_node_id(cls.name)} {{")
            lines.extend(f"        +{method}()" for method in cls.methods)
            lines.append("    }")
        lines.append("```")
        return "\n".join(lines)

    async def generate_summary(
        self, structures: list[CodeStructure], change_set: ChangeSet | None
    ) -> str:
        return f"# Project Summary\n\nMock summary for {len(structures)} files.\n"

    async def generate_architecture_diagram(
        self, structures: list[CodeStructure], change_set: ChangeSet | None
    ) -> str:
        lines = ["```mermaid", "flowchart LR"]
        for structure in structures:
            node = sanitize_node_id(structure.file) or "file"
            label = sanitize_label(PurePosixPath(structure.file).stem)
            lines.append(f'    {node}["{label}"]')
        lines.append("```")
        return "\n".join(lines)

    async def generate_agent_summary(
        self,
        structures: list[CodeStructure],
        category: str,
        analysis: ImplementationAnalysis,
    ) -> str:
        return (
            f"# Implementation Summary ({category})\n\n"
            f"Files: {', '.join(s.file for s in structures)}\n\n"
            f"- Completed: {len(analysis.completed)}\n"
            f"- Stubs: {len(analysis.stubs)}\n"
            f"- TODOs: {len(analysis.todos)}\n"
        )


class LLMBackend(GenerationBackend):
    """Backend that prompts a hosted or local model through LLMClient."""

    def __init__(self, client: LLMClient, temperature: float | None = None):
        """Initialize the backend.

        Args:
            client: Configured LLM client.
            temperature: Sampling temperature for every call. Defaults to
                the client's own default.
        """
        self.client = client
        self.temperature = temperature

    @property
    def identity(self) -> BackendIdentity:
        return BackendIdentity(provider=self.client.provider, model=self.client.model)

    async def _complete(self, prompt: str) -> str:
        return await self.client.generate(
            prompt=prompt,
            system_prompt=SYSTEM_PROMPT,
            temperature=self.temperature,
        )

    async def generate_documentation(
        self, structure: CodeStructure, change_set: ChangeSet | None
    ) -> str:
        return await self._complete(get_documentation_prompt(structure, change_set))

    async def generate_diagram(self, structure: CodeStructure) -> str:
        return await self._complete(get_diagram_prompt(structure))

    async def generate_summary(
        self, structures: list[CodeStructure], change_set: ChangeSet | None
    ) -> str:
        return await self._complete(get_summary_prompt(structures, change_set))

    async def generate_architecture_diagram(
        self, structures: list[CodeStructure], change_set: ChangeSet | None
    ) -> str:
        return await self._complete(get_architecture_prompt(structures, change_set))

    async def generate_agent_summary(
        self,
        structures: list[CodeStructure],
        category: str,
        analysis: ImplementationAnalysis,
    ) -> str:
        prompt = get_agent_summary_prompt(
            files=[s.file for s in structures],
            category=category,
            todos=analysis.todos,
            stubs=[str(stub) for stub in analysis.stubs],
            completed=analysis.completed,
            integration_points=analysis.integration_points,
            next_steps=analysis.next_steps,
        )
        return await self._complete(prompt)


def create_backend(config: Config) -> GenerationBackend:
    """Build the backend selected by the configuration.

    Args:
        config: Application configuration.

    Returns:
        MockBackend for the mock provider, otherwise an LLMBackend.
    """
    provider = BackendProvider(config.provider)
    if provider is BackendProvider.MOCK:
        return MockBackend(model=config.model)

    client = LLMClient(
        provider=provider.value,
        model=config.model,
        api_key=config.api_key,
        endpoint=config.llm_endpoint,
        log_path=config.llm_log_path,
        default_temperature=config.llm.default_temperature,
        max_tokens=config.llm.max_tokens,
    )
    logger.info(f"Using {provider.value} backend with model {config.model}")
    return LLMBackend(client, temperature=config.generation.temperature)
