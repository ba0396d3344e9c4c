"""Static analysis of a unit of work for implementation summaries.

Scans the touched files for outstanding markers and stub code, and lists
what the structure extractor found as completed. Nothing here calls a
backend; the result feeds the agent summary prompt.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from memowiki.constants.generation import MAX_IMPORTS_PER_FILE
from memowiki.models import CodeStructure

logger = logging.getLogger(__name__)

# TODO/FIXME/XXX/HACK after a // or # comment leader.
_MARKER_RE = re.compile(r"(?://|#)\s*(TODO|FIXME|XXX|HACK):\s*(.+)", re.IGNORECASE)

_STUB_PATTERNS = [
    re.compile(r"""throw new Error\(['"]Not implemented['"]\)""", re.IGNORECASE),
    re.compile(r"return null;\s*//\s*stub", re.IGNORECASE),
    re.compile(r"//\s*TODO: implement", re.IGNORECASE),
    re.compile(r"""console\.log\(['"]Not implemented['"]\)""", re.IGNORECASE),
    re.compile(r"raise NotImplementedError\b.*", re.IGNORECASE),
    re.compile(r"pass\s*#\s*stub", re.IGNORECASE),
]

# Stub reasons are cut to this many characters.
_STUB_REASON_LENGTH = 50


@dataclass(frozen=True)
class StubInfo:
    """A stubbed piece of code found in a file."""

    file: str
    line: int
    reason: str

    def __str__(self) -> str:
        return f"{self.file}:{self.line}: {self.reason}"


@dataclass
class ImplementationAnalysis:
    """What a unit of work completed and left open.

    Attributes:
        todos: "path:line - text" for each outstanding marker.
        stubs: Stubbed code locations.
        completed: "Class: X" / "Function: y" for each declared symbol.
        integration_points: "External: pkg" / "Internal: ./mod", deduplicated.
        next_steps: Suggested follow-up work.
    """

    todos: list[str] = field(default_factory=list)
    stubs: list[StubInfo] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)
    integration_points: list[str] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)


class ImplementationAnalyzer:
    """Analyze files touched by a unit of work."""

    def __init__(self, workspace_path: Path):
        self.workspace_path = Path(workspace_path)

    def _read(self, path: str) -> str | None:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.workspace_path / candidate
        try:
            return candidate.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read {path} for analysis: {e}")
            return None

    def analyze(self, structures: list[CodeStructure]) -> ImplementationAnalysis:
        """Analyze the given files.

        Args:
            structures: Structural summaries of the touched files.

        Returns:
            Analysis covering every readable file.
        """
        analysis = ImplementationAnalysis()

        for structure in structures:
            content = self._read(structure.file)
            if content is not None:
                analysis.todos.extend(self.find_todos(structure.file, content))
                analysis.stubs.extend(self.find_stubs(structure.file, content))

            analysis.completed.extend(f"Class: {c.name}" for c in structure.classes)
            analysis.completed.extend(f"Function: {f.name}" for f in structure.functions)

        analysis.integration_points = self.integration_points(structures)
        analysis.next_steps = self.next_steps(analysis)
        return analysis

    @staticmethod
    def find_todos(file: str, content: str) -> list[str]:
        todos = []
        for lineno, line in enumerate(content.splitlines(), start=1):
            match = _MARKER_RE.search(line)
            if match:
                todos.append(f"{file}:{lineno} - {match.group(2).strip()}")
        return todos

    @staticmethod
    def find_stubs(file: str, content: str) -> list[StubInfo]:
        stubs = []
        for lineno, line in enumerate(content.splitlines(), start=1):
            for pattern in _STUB_PATTERNS:
                match = pattern.search(line)
                if match:
                    reason = match.group(0).strip()[:_STUB_REASON_LENGTH]
                    stubs.append(StubInfo(file=file, line=lineno, reason=reason))
                    break
        return stubs

    @staticmethod
    def integration_points(structures: list[CodeStructure]) -> list[str]:
        """List imported modules in first-seen order, deduplicated."""
        points: list[str] = []
        seen: set[str] = set()
        for structure in structures:
            for imp in structure.imports[:MAX_IMPORTS_PER_FILE]:
                if not imp.module_specifier:
                    continue
                kind = "External" if imp.is_external else "Internal"
                point = f"{kind}: {imp.module_specifier}"
                if point not in seen:
                    seen.add(point)
                    points.append(point)
        return points

    @staticmethod
    def next_steps(analysis: ImplementationAnalysis) -> list[str]:
        steps = []
        if analysis.stubs:
            steps.append(f"Complete {len(analysis.stubs)} stubbed implementation(s)")
        if analysis.todos:
            steps.append(f"Address {len(analysis.todos)} TODO item(s)")
        steps.append("Add comprehensive tests")
        steps.append("Update documentation")
        return steps
