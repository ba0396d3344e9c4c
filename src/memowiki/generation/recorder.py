"""Record implementation summaries into the wiki and the summary index."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Mapping

from memowiki.constants.generation import SUMMARY_NAME_PREFIX
from memowiki.generation.analysis import ImplementationAnalysis, ImplementationAnalyzer
from memowiki.generation.backends import GenerationBackend
from memowiki.generation.retry import RetryPolicy
from memowiki.models import CodeStructure
from memowiki.wiki.store import ArtifactCategory, ArtifactStore
from memowiki.wiki.summary_index import (
    DuplicateSummaryError,
    SummaryEntry,
    SummaryIndex,
    SummaryType,
)

logger = logging.getLogger(__name__)


@dataclass
class RecordedSummary:
    """Result of recording an implementation summary.

    Attributes:
        entry: Index entry for the summary. For an append to an already
            indexed name this is the existing entry.
        analysis: Static analysis the summary was built from.
        content: Text produced by the backend.
        appended: True if the text was appended to an existing artifact.
    """

    entry: SummaryEntry
    analysis: ImplementationAnalysis
    content: str
    appended: bool


def default_summary_name(now: datetime) -> str:
    """implementation-<YYYY-MM-DD> for the given moment."""
    return f"{SUMMARY_NAME_PREFIX}-{now.date().isoformat()}"


class SummaryRecorder:
    """Analyze touched files, summarize them with the backend, and index the result."""

    def __init__(
        self,
        backend: GenerationBackend,
        store: ArtifactStore,
        index: SummaryIndex,
        analyzer: ImplementationAnalyzer,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.backend = backend
        self.store = store
        self.index = index
        self.analyzer = analyzer
        self.retry_policy = retry_policy or RetryPolicy()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def record(
        self,
        files: Iterable[str],
        category: SummaryType | str = SummaryType.FEATURE,
        name: str | None = None,
        append: bool = False,
        structures: Mapping[str, CodeStructure] | None = None,
        tags: Iterable[str] = (),
        parent_id: str | None = None,
    ) -> RecordedSummary:
        """Record a summary of work touching the given files.

        Args:
            files: Paths touched by the work.
            category: feature, bugfix or refactor.
            name: Artifact name. Defaults to implementation-<date>; without
                append, a millisecond suffix keeps generated names unique.
            append: Append to an existing summary of the same name.
            structures: Structural summaries keyed by path.
            tags: Free-form tags stored on the index entry.
            parent_id: Summary this one follows up on.

        Returns:
            RecordedSummary describing what was written.

        Raises:
            ValueError: If files is empty or the category is unknown.
            RetryExhaustedError: If the backend kept failing.
            DuplicateSummaryError: If an explicit name is already indexed
                and append is False.
        """
        files = list(files)
        if not files:
            raise ValueError("At least one file is required to record a summary")
        category = SummaryType(category)
        structures = structures or {}
        now = self.clock()

        if name is None:
            name = default_summary_name(now)
            if not append:
                name = f"{name}-{int(now.timestamp() * 1000)}"

        existing = self.index.get(name)
        if existing is not None and not append:
            raise DuplicateSummaryError(f"Summary {name!r} already exists")

        targets = [structures.get(f) or CodeStructure(file=f) for f in files]
        analysis = self.analyzer.analyze(targets)

        content = await self.retry_policy.run(
            self.backend.generate_agent_summary,
            targets,
            category.value,
            analysis,
            label=f"Implementation summary for {len(files)} file(s)",
        )

        appended = append and self.store.exists(ArtifactCategory.SUMMARY, name)
        if append:
            self.store.append_to_summary(name, content)
        else:
            self.store.save_summary(name, content)

        if existing is not None:
            entry = existing
            logger.info(f"Appended to summary {name}")
        else:
            entry = SummaryEntry(
                id=name,
                timestamp=now,
                category=category,
                files=tuple(files),
                artifact_path=self.store.relative_path(ArtifactCategory.SUMMARY, name),
                tags=tuple(tags),
            )
            self.index.add_entry(entry)
            logger.info(f"Recorded summary {name} for {len(files)} file(s)")

        if parent_id is not None and self.index.link_summaries(parent_id, entry.id):
            entry = self.index.get(entry.id) or entry

        return RecordedSummary(entry=entry, analysis=analysis, content=content, appended=appended)
