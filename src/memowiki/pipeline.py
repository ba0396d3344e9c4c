"""End-to-end update and record flows.

UpdatePipeline owns one instance of each component, all built from one
Config value:

    candidates -> ChangeSetResolver -> ContentCache.filter_unchanged
               -> GenerationOrchestrator -> ArtifactStore
               -> (optional) project artifacts -> (optional) ArtifactIndexer
"""

import asyncio
import logging
from typing import Iterable, Mapping

from memowiki.cache.content_cache import ContentCache
from memowiki.config import Config
from memowiki.generation.analysis import ImplementationAnalyzer
from memowiki.generation.backends import GenerationBackend, create_backend
from memowiki.generation.orchestrator import (
    BatchSummary,
    GenerationOrchestrator,
    PathResult,
    PathState,
    ProgressCallback,
)
from memowiki.generation.recorder import RecordedSummary, SummaryRecorder
from memowiki.generation.retry import RetryPolicy
from memowiki.models import ChangeSet, CodeStructure
from memowiki.repo.change_set import ChangeSetResolver
from memowiki.repo.file_filter import FileFilter
from memowiki.vectorstore.indexer import ArtifactIndexer
from memowiki.wiki.store import ArtifactStore
from memowiki.wiki.summary_index import SummaryIndex, SummaryType

logger = logging.getLogger(__name__)


class UpdatePipeline:
    """Incremental documentation pipeline for one workspace."""

    def __init__(
        self,
        config: Config,
        backend: GenerationBackend,
        indexer: ArtifactIndexer | None = None,
    ):
        """Initialize the pipeline.

        Args:
            config: Application configuration.
            backend: Generation backend.
            indexer: Optional vector-index subscriber.
        """
        self.config = config
        self.backend = backend
        self.indexer = indexer

        self.file_filter = FileFilter(config.workspace_path, ignore_path=config.ignore_path)
        self.resolver = ChangeSetResolver(self.file_filter)
        self.cache = ContentCache(config.cache_file, config.workspace_path)
        self.store = ArtifactStore(config.wiki_path)
        self.summary_index = SummaryIndex(config.summary_index_file)
        self.retry_policy = RetryPolicy.from_config(config)
        self.orchestrator = GenerationOrchestrator(
            backend=backend,
            cache=self.cache,
            store=self.store,
            retry_policy=self.retry_policy,
        )
        self.recorder = SummaryRecorder(
            backend=backend,
            store=self.store,
            index=self.summary_index,
            analyzer=ImplementationAnalyzer(config.workspace_path),
            retry_policy=self.retry_policy,
        )

    @classmethod
    def from_config(cls, config: Config) -> "UpdatePipeline":
        """Build a pipeline with the configured backend and, if enabled, the indexer."""
        indexer = None
        if config.search.enable_semantic_search:
            indexer = ArtifactIndexer(
                persist_path=config.chroma_path, result_limit=config.search.result_limit
            )
        return cls(config, create_backend(config), indexer=indexer)

    def _select(self, resolved: list[str], full: bool) -> tuple[list[str], list[PathResult]]:
        """Split resolved paths into work and already-current results.

        A path is current when it is readable, its content is unchanged and
        its cache entry came from the active backend. Unreadable paths stay
        in the work list so the orchestrator reports them as failed. Cached
        artifacts missing from the wiki are written back for current paths.
        Full mode treats every path as work; the orchestrator's lookup still
        serves valid entries from cache.
        """
        if full:
            return list(resolved), []

        changed = set(self.cache.filter_unchanged(resolved))
        identity = self.backend.identity
        work: list[str] = []
        current: list[PathResult] = []
        for path in resolved:
            entry = self.cache.get_entry(path)
            if path in changed or entry is None or entry.backend_identity != identity:
                work.append(path)
                continue
            try:
                self.cache.fingerprint_file(path)
            except OSError:
                work.append(path)
                continue

            artifacts = {k: str(v) for k, v in entry.artifacts.items()}
            try:
                self.orchestrator.restore_missing(path, artifacts)
            except (OSError, ValueError) as e:
                logger.warning(f"Could not restore artifacts for {path}: {e}")
                current.append(
                    PathResult(path=path, state=PathState.FAILED, artifacts=artifacts, error=str(e))
                )
                continue
            current.append(PathResult(path=path, state=PathState.CACHED, artifacts=artifacts))
        return work, current

    def _project_structures(
        self, resolved: list[str], structures: Mapping[str, CodeStructure]
    ) -> list[CodeStructure]:
        eligible = [
            s for path, s in sorted(structures.items()) if self.file_filter.is_eligible(path)
        ]
        if eligible:
            return eligible
        return [CodeStructure(file=path) for path in resolved]

    async def update(
        self,
        change_set: ChangeSet | None = None,
        structures: Mapping[str, CodeStructure] | None = None,
        full: bool = False,
        candidates: Iterable[str] | None = None,
        project_artifacts: bool = True,
        progress_callback: ProgressCallback | None = None,
        stop_event: asyncio.Event | None = None,
    ) -> BatchSummary:
        """Bring the wiki up to date.

        Args:
            change_set: Change set from version control. Its modified,
                created and renamed paths are the candidates unless
                candidates is given.
            structures: Structural summaries keyed by path.
            full: Consider every eligible file in the workspace and skip the
                unchanged-content filter.
            candidates: Explicit candidate paths.
            project_artifacts: Also regenerate the project overview and
                architecture flowchart after the batch.
            progress_callback: Optional async callback for progress updates.
            stop_event: Optional event that requests a stop between paths.

        Returns:
            BatchSummary. up_to_date is set when nothing needed work.
        """
        structures = structures or {}
        self.store.initialize()

        if candidates is None:
            if full:
                candidates = self.file_filter.get_files()
            elif change_set is not None:
                candidates = change_set.candidate_paths()
            else:
                candidates = []

        resolved = self.resolver.resolve(candidates)
        work, current = self._select(resolved, full)

        if not work and not full:
            if any(r.state is PathState.FAILED for r in current):
                return BatchSummary(results=current)
            logger.info("No changes detected. Documentation is up to date.")
            return BatchSummary(results=current, up_to_date=True)

        logger.info(
            f"Processing {len(work)} of {len(resolved)} eligible paths "
            f"({len(current)} unchanged)"
        )
        summary = await self.orchestrator.run(
            work,
            structures,
            change_set,
            progress_callback=progress_callback,
            stop_event=stop_event,
        )
        summary.results = current + summary.results

        if project_artifacts and not summary.interrupted:
            summary.project_errors = await self.orchestrator.generate_project_artifacts(
                self._project_structures(resolved, structures), change_set
            )

        if self.indexer is not None:
            self.indexer.index_results(summary.results, structures)

        return summary

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
        """Record an implementation summary. See SummaryRecorder.record."""
        self.store.initialize()
        return await self.recorder.record(
            files,
            category=category,
            name=name,
            append=append,
            structures=structures,
            tags=tags,
            parent_id=parent_id,
        )
