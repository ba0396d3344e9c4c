"""Human-browsable artifact storage under the wiki directory."""

import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from memowiki.constants.files import CATEGORY_DIRS, CATEGORY_SUFFIXES, MANIFEST_FILENAME
from memowiki.generation.mermaid_validator import extract_mermaid, validate_mermaid
from memowiki.wiki.persistence import atomic_write_text

logger = logging.getLogger(__name__)

UPDATE_SEPARATOR = "\n\n---\n\n## Update: {timestamp}\n\n"

MANIFEST_CONTENT = """# CodeWiki

Persistent documentation for this codebase.

## Sections
- [Memory](./memory)
- [Diagrams](./diagrams)
- [Flows](./flows)
- [Summaries](./summaries)
"""


class ArtifactCategory(str, Enum):
    """Kinds of stored artifacts."""

    DOCUMENTATION = "documentation"
    DIAGRAM = "diagram"
    FLOW = "flow"
    SUMMARY = "summary"

    @property
    def directory(self) -> str:
        return CATEGORY_DIRS[self.value]

    @property
    def suffix(self) -> str:
        return CATEGORY_SUFFIXES[self.value]

    @property
    def is_diagram(self) -> bool:
        return self in (ArtifactCategory.DIAGRAM, ArtifactCategory.FLOW)


def format_update_separator(when: datetime | None = None) -> str:
    """Build the separator placed before appended content.

    Args:
        when: Timestamp to embed. Defaults to now (UTC).

    Returns:
        Separator text containing an ISO-8601 timestamp.
    """
    when = when or datetime.now(timezone.utc)
    return UPDATE_SEPARATOR.format(timestamp=when.isoformat())


class ArtifactStore:
    """Writes artifacts to <wiki>/<category dir>/<name><suffix>.

    Diagram and flow content is normalized with extract_mermaid before it
    is written. Documentation and summaries are stored verbatim.
    """

    def __init__(self, wiki_path: Path):
        self.wiki_path = Path(wiki_path)

    def initialize(self) -> None:
        """Create category directories and, once, the manifest page."""
        for category in ArtifactCategory:
            (self.wiki_path / category.directory).mkdir(parents=True, exist_ok=True)

        manifest = self.wiki_path / MANIFEST_FILENAME
        if not manifest.exists():
            atomic_write_text(manifest, MANIFEST_CONTENT)
            logger.info(f"Created wiki manifest at {manifest}")

    def path_for(self, category: ArtifactCategory | str, name: str) -> Path:
        """Resolve the file that holds an artifact.

        Raises:
            ValueError: If the category is unknown or the name is not a
                plain file name.
        """
        category = ArtifactCategory(category)
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ValueError(f"Invalid artifact name: {name!r}")
        return self.wiki_path / category.directory / f"{name}{category.suffix}"

    def relative_path(self, category: ArtifactCategory | str, name: str) -> str:
        """Path of an artifact relative to the wiki root, POSIX style."""
        return self.path_for(category, name).relative_to(self.wiki_path).as_posix()

    def _normalize(self, category: ArtifactCategory, name: str, content: str) -> str:
        if not category.is_diagram:
            return content
        normalized = extract_mermaid(content)
        result = validate_mermaid(normalized)
        if not result.valid:
            logger.warning(f"Stored {category.value} {name} has issues: {'; '.join(result.errors)}")
        return normalized

    def save(self, category: ArtifactCategory | str, name: str, content: str) -> Path:
        """Write an artifact, replacing any previous value.

        Args:
            category: Artifact category.
            name: Logical name without suffix.
            content: Artifact text.

        Returns:
            Path of the written file.
        """
        category = ArtifactCategory(category)
        path = self.path_for(category, name)
        atomic_write_text(path, self._normalize(category, name, content))
        return path

    def append(self, category: ArtifactCategory | str, name: str, content: str) -> Path:
        """Append to an artifact, or save it if it does not exist yet.

        Existing content is kept verbatim and followed by a timestamped
        separator and the new content.

        Args:
            category: Artifact category.
            name: Logical name without suffix.
            content: Text to add.

        Returns:
            Path of the written file.
        """
        category = ArtifactCategory(category)
        path = self.path_for(category, name)
        if not path.exists():
            return self.save(category, name, content)

        existing = path.read_text(encoding="utf-8")
        atomic_write_text(path, existing + format_update_separator() + content)
        return path

    def read(self, category: ArtifactCategory | str, name: str) -> str | None:
        """Return an artifact's content, or None if it does not exist."""
        path = self.path_for(category, name)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def exists(self, category: ArtifactCategory | str, name: str) -> bool:
        return self.path_for(category, name).exists()

    def list_artifacts(self, category: ArtifactCategory | str) -> list[str]:
        """List artifact names in a category, sorted."""
        category = ArtifactCategory(category)
        directory = self.wiki_path / category.directory
        if not directory.is_dir():
            return []
        return sorted(
            p.name[: -len(category.suffix)]
            for p in directory.iterdir()
            if p.is_file() and p.name.endswith(category.suffix)
        )

    def save_documentation(self, name: str, content: str) -> Path:
        return self.save(ArtifactCategory.DOCUMENTATION, name, content)

    def save_diagram(self, name: str, content: str) -> Path:
        return self.save(ArtifactCategory.DIAGRAM, name, content)

    def save_flow(self, name: str, content: str) -> Path:
        return self.save(ArtifactCategory.FLOW, name, content)

    def save_summary(self, name: str, content: str) -> Path:
        return self.save(ArtifactCategory.SUMMARY, name, content)

    def append_to_summary(self, name: str, content: str) -> Path:
        return self.append(ArtifactCategory.SUMMARY, name, content)
