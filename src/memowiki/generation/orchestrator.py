"""Generation orchestrator for the incremental artifact pipeline.

Each path goes through a small state machine with three terminal states:

1. Cached - the content cache holds artifacts for this content and backend
2. Generated - the backend produced fresh artifacts, which were cached
3. Failed - the backend (after retries) or the filesystem raised

Artifacts are written to the artifact store in the first two cases.
Paths are processed one at a time; a failure affects only its own path.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Callable, Coroutine, Iterable, Mapping

from memowiki.cache.content_cache import ContentCache
from memowiki.constants.files import ARCHITECTURE_FLOW_NAME, PROJECT_SUMMARY_NAME
from memowiki.generation.backends import GenerationBackend
from memowiki.generation.retry import RetryExhaustedError, RetryPolicy
from memowiki.models import ChangeSet, CodeStructure
from memowiki.wiki.store import ArtifactCategory, ArtifactStore

logger = logging.getLogger(__name__)


class PathState(Enum):
    """Terminal states of a processed path."""

    CACHED = "cached"
    GENERATED = "generated"
    FAILED = "failed"


@dataclass
class PathResult:
    """Outcome of processing one path.

    Attributes:
        path: The processed path.
        state: Terminal state.
        artifacts: Artifact text by kind ("documentation", "diagram").
        error: Failure description when state is FAILED.
        attempts: Backend attempts spent before failing, if known.
    """

    path: str
    state: PathState
    artifacts: dict[str, str] = field(default_factory=dict)
    error: str | None = None
    attempts: int = 0


@dataclass
class BatchSummary:
    """Outcome of a batch run.

    Attributes:
        results: One result per processed path, in processing order.
        skipped: Paths left unprocessed because the batch was interrupted.
        interrupted: True if a stop was requested before the batch finished.
        project_errors: Failures while generating project-level artifacts.
        up_to_date: True if there was nothing to process.
    """

    results: list[PathResult] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    interrupted: bool = False
    project_errors: list[str] = field(default_factory=list)
    up_to_date: bool = False

    def _count(self, state: PathState) -> int:
        return sum(1 for r in self.results if r.state is state)

    @property
    def cached(self) -> int:
        return self._count(PathState.CACHED)

    @property
    def generated(self) -> int:
        return self._count(PathState.GENERATED)

    @property
    def failed(self) -> int:
        return self._count(PathState.FAILED)

    @property
    def failures(self) -> list[PathResult]:
        return [r for r in self.results if r.state is PathState.FAILED]

    def describe(self) -> str:
        """One-line human-readable summary."""
        if self.up_to_date:
            return "No changes detected. Documentation is up to date."
        text = f"{self.cached} cached, {self.generated} generated, {self.failed} failed"
        if self.interrupted:
            text += f", {len(self.skipped)} skipped (interrupted)"
        return text


@dataclass
class GenerationProgress:
    """Progress update emitted after each processed path.

    Attributes:
        step: Number of paths processed so far.
        total_steps: Paths in the batch.
        path: Path just processed.
        state: Its terminal state.
        timestamp: Time of the update.
    """

    step: int
    total_steps: int
    path: str
    state: PathState
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def message(self) -> str:
        return f"[{self.step}/{self.total_steps}] {self.path}: {self.state.value}"


# Type alias for progress callback
ProgressCallback = Callable[[GenerationProgress], Coroutine[Any, Any, None]]


def artifact_name(path: str) -> str:
    """Logical artifact name for a source path: its basename without extension."""
    return PurePosixPath(path).stem


class GenerationOrchestrator:
    """Drive cache lookups, backend calls and artifact writes for a batch."""

    def __init__(
        self,
        backend: GenerationBackend,
        cache: ContentCache,
        store: ArtifactStore,
        retry_policy: RetryPolicy | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            backend: Generation capability. Its identity is part of every cache key.
            cache: Content cache consulted before and updated after generation.
            store: Artifact store receiving every successful result.
            retry_policy: Retry policy for backend calls. Defaults to RetryPolicy().
        """
        self.backend = backend
        self.cache = cache
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()

    async def _emit_progress(
        self,
        callback: ProgressCallback | None,
        progress: GenerationProgress,
    ) -> None:
        if callback:
            await callback(progress)

    async def _generate(
        self, path: str, structure: CodeStructure, change_set: ChangeSet | None
    ) -> dict[str, str]:
        documentation = await self.retry_policy.run(
            self.backend.generate_documentation,
            structure,
            change_set,
            label=f"Documentation for {path}",
        )
        diagram = await self.retry_policy.run(
            self.backend.generate_diagram,
            structure,
            label=f"Diagram for {path}",
        )
        return {"documentation": documentation, "diagram": diagram}

    def _save_artifacts(self, path: str, artifacts: Mapping[str, Any]) -> None:
        name = artifact_name(path)
        if "documentation" in artifacts:
            self.store.save_documentation(name, str(artifacts["documentation"]))
        if "diagram" in artifacts:
            self.store.save_diagram(name, str(artifacts["diagram"]))

    def restore_missing(self, path: str, artifacts: Mapping[str, Any]) -> list[str]:
        """Re-save cached artifacts whose files were removed from the wiki.

        Existing files are left untouched.

        Returns:
            Artifact kinds that were written back.
        """
        name = artifact_name(path)
        missing = {
            kind: content
            for kind, content in artifacts.items()
            if kind in ("documentation", "diagram")
            and not self.store.exists(ArtifactCategory(kind), name)
        }
        if missing:
            logger.info(f"Restoring {', '.join(missing)} for {path} from cache")
            self._save_artifacts(path, missing)
        return list(missing)

    async def process_path(
        self,
        path: str,
        structure: CodeStructure | None = None,
        change_set: ChangeSet | None = None,
    ) -> PathResult:
        """Bring one path's artifacts up to date.

        Args:
            path: Path relative to the workspace.
            structure: Structural summary of the file. An empty structure is
                used when the extractor supplied none.
            change_set: Change context handed to the backend.

        Returns:
            PathResult in state CACHED, GENERATED or FAILED. Never raises
            for backend or filesystem errors.
        """
        if structure is None:
            structure = CodeStructure(file=path)
        identity = self.backend.identity

        try:
            digest = self.cache.fingerprint_file(path)
        except OSError as e:
            logger.warning(f"Cannot read {path}: {e}")
            return PathResult(path=path, state=PathState.FAILED, error=f"Cannot read file: {e}")

        entry = self.cache.lookup(path, digest, identity)
        if entry is not None:
            artifacts = {k: str(v) for k, v in entry.artifacts.items()}
            state = PathState.CACHED
        else:
            try:
                artifacts = await self._generate(path, structure, change_set)
            except RetryExhaustedError as e:
                logger.warning(f"Giving up on {path}: {e}")
                return PathResult(
                    path=path, state=PathState.FAILED, error=str(e), attempts=e.attempts
                )
            except Exception as e:
                logger.warning(f"Generation failed for {path}: {e}")
                return PathResult(path=path, state=PathState.FAILED, error=str(e), attempts=1)

            try:
                self.cache.store(path, digest, identity, artifacts)
            except OSError as e:
                logger.warning(f"Could not cache artifacts for {path}: {e}")
                return PathResult(
                    path=path, state=PathState.FAILED, artifacts=artifacts, error=str(e)
                )
            state = PathState.GENERATED

        try:
            self._save_artifacts(path, artifacts)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not save artifacts for {path}: {e}")
            return PathResult(path=path, state=PathState.FAILED, artifacts=artifacts, error=str(e))

        return PathResult(path=path, state=state, artifacts=artifacts)

    async def run(
        self,
        paths: Iterable[str],
        structures: Mapping[str, CodeStructure] | None = None,
        change_set: ChangeSet | None = None,
        progress_callback: ProgressCallback | None = None,
        stop_event: asyncio.Event | None = None,
    ) -> BatchSummary:
        """Process a batch of paths sequentially.

        A stop request is honored between paths. The path in flight, retries
        included, always runs to completion first.

        Args:
            paths: Paths to process, in order.
            structures: Structural summaries keyed by path.
            change_set: Change context handed to the backend.
            progress_callback: Optional async callback for progress updates.
            stop_event: Optional event that requests a stop when set.

        Returns:
            BatchSummary with one result per processed path.
        """
        pending = list(paths)
        structures = structures or {}
        summary = BatchSummary()

        for index, path in enumerate(pending):
            if stop_event is not None and stop_event.is_set():
                summary.interrupted = True
                summary.skipped = pending[index:]
                logger.info(f"Stop requested, leaving {len(summary.skipped)} paths unprocessed")
                break

            result = await self.process_path(path, structures.get(path), change_set)
            summary.results.append(result)
            await self._emit_progress(
                progress_callback,
                GenerationProgress(
                    step=index + 1, total_steps=len(pending), path=path, state=result.state
                ),
            )

        logger.info(f"Batch finished: {summary.describe()}")
        for failure in summary.failures:
            logger.warning(f"Failed: {failure.path}: {failure.error}")
        return summary

    async def generate_project_artifacts(
        self,
        structures: list[CodeStructure],
        change_set: ChangeSet | None = None,
    ) -> list[str]:
        """Generate the project overview and the architecture flowchart.

        These are not cached; they describe the whole project and are
        rebuilt on every call.

        Args:
            structures: Structural summaries of every eligible file.
            change_set: Change context handed to the backend.

        Returns:
            Error messages, empty if both artifacts were written.
        """
        errors: list[str] = []
        jobs = [
            (
                "project summary",
                self.backend.generate_summary,
                self.store.save_summary,
                PROJECT_SUMMARY_NAME,
            ),
            (
                "architecture diagram",
                self.backend.generate_architecture_diagram,
                self.store.save_flow,
                ARCHITECTURE_FLOW_NAME,
            ),
        ]

        for label, generate, save, name in jobs:
            try:
                content = await self.retry_policy.run(
                    generate, structures, change_set, label=label.capitalize()
                )
                save(name, content)
            except Exception as e:
                logger.warning(f"Could not generate {label}: {e}")
                errors.append(f"{label}: {e}")

        return errors
