"""Prompt templates for artifact generation."""

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any

from memowiki.models import ChangeSet, CodeStructure


@dataclass
class PromptTemplate:
    """A template for generating prompts with variable substitution."""

    template: str

    def render(self, **kwargs: Any) -> str:
        """Render the template with the given variables.

        Args:
            **kwargs: Variables to substitute into the template.

        Returns:
            The rendered template string.

        Raises:
            KeyError: If a required variable is missing.
        """
        return self.template.format(**kwargs)


# =============================================================================
# System Prompt
# =============================================================================

SYSTEM_PROMPT = """You are a technical documentation expert. Your task is to generate
clear, accurate, and helpful documentation for codebases. Follow these guidelines:

1. Be precise and factual - only document what exists in the code
2. Use clear, concise language appropriate for developers
3. Organize information logically with proper headings
4. Highlight important patterns, dependencies, and relationships
5. Note any potential issues, TODOs, or areas for improvement

Output your documentation in clean Markdown format."""


# =============================================================================
# Documentation Template
# =============================================================================

DOCUMENTATION_TEMPLATE = PromptTemplate(
    """Generate markdown documentation for the following code file.

File: {file_path}

## Code Structure
- Classes: {classes}
- Functions: {functions}
- Interfaces: {interfaces}
- Key Imports: {imports}

## Recent Changes
{change_context}

---

Include these sections:
1. **Overview**: What this file does and its role in the system
2. **Architecture & Patterns**: Design patterns and architectural decisions
3. **Key Components**: Responsibilities of the major classes and functions
4. **Dependencies**: How this module interacts with others
5. **Recent Changes**: Context for the recent changes, if any

Use clear headings and bullet points."""
)


# =============================================================================
# Diagram Template
# =============================================================================

DIAGRAM_TEMPLATE = PromptTemplate(
    """Generate a Mermaid class diagram for the following code structure.

File: {file_path}

## Classes
{classes}

## Interfaces
{interfaces}

---

Include class relationships (inheritance, composition) where they can be inferred.
Output ONLY the Mermaid source without markdown code fences.
Begin with 'classDiagram'."""
)


# =============================================================================
# Project Summary Template
# =============================================================================

SUMMARY_TEMPLATE = PromptTemplate(
    """Generate a high-level markdown overview of this codebase.

## Project Statistics
- Total Files: {file_count}
- Total Classes: {class_count}
- Total Functions: {function_count}

## Files
{file_list}

## Recent Changes
{change_context}

---

Include these sections:
1. **System Overview**: What the project does and the problem it solves
2. **Architecture**: High-level patterns and design decisions
3. **Key Components**: Main modules and their purposes
4. **Technology Stack**: Languages, frameworks and major dependencies
5. **Code Organization**: How the code is structured
6. **Recent Activity**: Direction suggested by the recent changes

Identify relationships and overall design rather than listing files."""
)


# =============================================================================
# Architecture Diagram Template
# =============================================================================

ARCHITECTURE_TEMPLATE = PromptTemplate(
    """Generate a Mermaid flowchart showing how the components of this system connect.

## Components
{components}

## Recent Changes
{change_context}

---

Show the main entry point, the core services and their relationships, the data
flow between components, and external integrations.
Use clear node labels and directional edges.
Output ONLY the Mermaid source without markdown code fences.
Begin with 'flowchart'."""
)


# =============================================================================
# Implementation Summary Template
# =============================================================================

AGENT_SUMMARY_TEMPLATE = PromptTemplate(
    """Generate an implementation summary for a unit of completed work.

Files Modified: {files}
Category: {category}

## Detected Analysis
- TODOs: {todo_count}
- Stubs: {stub_count}
- Completed Items: {completed_count}
- Integration Points: {integration_count}

### TODOs
{todos}

### Stubs
{stubs}

### Completed
{completed}

### Integration Points
{integration_points}

### Suggested Next Steps
{next_steps}

---

Create a concise markdown summary with these sections:
1. **What Was Implemented**: Fully functional features
2. **What Was Stubbed**: Placeholder or incomplete code
3. **Outstanding TODOs**: What still needs work
4. **Integration Points**: How this connects to the rest of the system
5. **Next Steps**: Suggested follow-up work

Be concise and actionable."""
)


# =============================================================================
# Helper Functions
# =============================================================================


def _format_names(names: list[str]) -> str:
    return ", ".join(names) if names else "None"


def _format_lines(lines: list[str], empty: str) -> str:
    if not lines:
        return empty
    return "\n".join(f"- {line}" for line in lines)


def format_change_context(change_set: ChangeSet | None) -> str:
    """Describe the latest commit and pending modifications.

    Args:
        change_set: Change set from version control, if any.

    Returns:
        One or two lines of context, or a placeholder.
    """
    if change_set is None or change_set.recent_commit is None:
        return "No recent commits."

    commit = change_set.recent_commit
    lines = [f'Last commit: "{commit.message}" by {commit.author_name}']
    if change_set.modified:
        lines.append(f"Modified files: {len(change_set.modified)}")
    return "\n".join(lines)


def get_documentation_prompt(structure: CodeStructure, change_set: ChangeSet | None) -> str:
    """Generate a prompt for documenting a single file.

    Args:
        structure: Structural summary of the file.
        change_set: Change context.

    Returns:
        The rendered prompt string.
    """
    return DOCUMENTATION_TEMPLATE.render(
        file_path=structure.file,
        classes=_format_names([f"{c.name} ({len(c.methods)} methods)" for c in structure.classes]),
        functions=_format_names([f.name for f in structure.functions]),
        interfaces=_format_names([i.name for i in structure.interfaces]),
        imports=_format_names([i.module_specifier for i in structure.imports[:5]]),
        change_context=format_change_context(change_set),
    )


def get_diagram_prompt(structure: CodeStructure) -> str:
    """Generate a prompt for a file's class diagram.

    Args:
        structure: Structural summary of the file.

    Returns:
        The rendered prompt string.
    """
    classes = [
        f"{c.name}: methods [{', '.join(c.methods)}], properties [{', '.join(c.properties)}]"
        for c in structure.classes
    ]
    interfaces = [f"{i.name}: properties [{', '.join(i.properties)}]" for i in structure.interfaces]
    return DIAGRAM_TEMPLATE.render(
        file_path=structure.file,
        classes=_format_lines(classes, "No classes."),
        interfaces=_format_lines(interfaces, "No interfaces."),
    )


def get_summary_prompt(structures: list[CodeStructure], change_set: ChangeSet | None) -> str:
    """Generate a prompt for the project overview.

    Args:
        structures: Structural summaries of every documented file.
        change_set: Change context.

    Returns:
        The rendered prompt string.
    """
    file_list = [
        f"{s.file}: {len(s.classes)} classes, {len(s.functions)} functions" for s in structures
    ]
    return SUMMARY_TEMPLATE.render(
        file_count=len(structures),
        class_count=sum(len(s.classes) for s in structures),
        function_count=sum(len(s.functions) for s in structures),
        file_list=_format_lines(file_list, "No files."),
        change_context=format_change_context(change_set),
    )


def get_architecture_prompt(structures: list[CodeStructure], change_set: ChangeSet | None) -> str:
    """Generate a prompt for the architecture flowchart.

    Args:
        structures: Structural summaries of every documented file.
        change_set: Change context.

    Returns:
        The rendered prompt string.
    """
    components = [
        f"{PurePosixPath(s.file).stem}: "
        f"{', '.join(c.name for c in s.classes) or 'utility functions'}"
        for s in structures
    ]
    return ARCHITECTURE_TEMPLATE.render(
        components=_format_lines(components, "No components."),
        change_context=format_change_context(change_set),
    )


def get_agent_summary_prompt(
    files: list[str],
    category: str,
    todos: list[str],
    stubs: list[str],
    completed: list[str],
    integration_points: list[str] | None = None,
    next_steps: list[str] | None = None,
) -> str:
    """Generate a prompt for an implementation summary.

    Args:
        files: Paths touched by the work.
        category: feature, bugfix or refactor.
        todos: Outstanding TODO markers.
        stubs: Descriptions of stubbed code.
        completed: Completed classes and functions.
        integration_points: Modules the work depends on.
        next_steps: Follow-up work suggested by the analysis.

    Returns:
        The rendered prompt string.
    """
    return AGENT_SUMMARY_TEMPLATE.render(
        files=", ".join(files),
        category=category,
        todo_count=len(todos),
        stub_count=len(stubs),
        completed_count=len(completed),
        todos=_format_lines(todos, "None."),
        stubs=_format_lines(stubs, "None."),
        completed=_format_lines(completed, "None."),
        integration_count=len(integration_points or []),
        integration_points=_format_lines(integration_points or [], "None."),
        next_steps=_format_lines(next_steps or [], "None."),
    )
