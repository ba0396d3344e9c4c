"""Content-addressed cache of generated artifacts.

The cache answers one question: can the artifacts stored for a file be
reused? An entry is valid for a (path, fingerprint, backend identity)
triple only when all three match. The whole store is rewritten on every
mutation so a crash never leaves a partially written entry behind.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Mapping

from memowiki.config import BackendIdentity
from memowiki.wiki.persistence import atomic_write_json, read_json

logger = logging.getLogger(__name__)


def compute_fingerprint(data: bytes) -> str:
    """Compute the SHA-256 digest of raw file bytes.

    Args:
        data: File content.

    Returns:
        Hex digest; identical bytes always give the identical digest.
    """
    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    """Artifacts generated for one file.

    Attributes:
        content_fingerprint: Digest of the file bytes the artifacts describe.
        backend_identity: Provider and model that generated them.
        generated_at: ISO-8601 UTC timestamp of generation.
        artifacts: Opaque payload, e.g. {"documentation": ..., "diagram": ...}.
    """

    content_fingerprint: str
    backend_identity: BackendIdentity
    generated_at: str
    artifacts: Mapping[str, Any] = field(default_factory=dict)

    def matches(self, digest: str, identity: BackendIdentity) -> bool:
        """True when the entry is valid for this content and backend."""
        return self.content_fingerprint == digest and self.backend_identity == identity

    def to_dict(self) -> dict[str, Any]:
        return {
            "contentFingerprint": self.content_fingerprint,
            "generatedAt": self.generated_at,
            "backendIdentity": self.backend_identity.to_dict(),
            "artifacts": dict(self.artifacts),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CacheEntry":
        artifacts = data.get("artifacts", {})
        if not isinstance(artifacts, dict):
            raise ValueError("artifacts must be an object")
        return cls(
            content_fingerprint=str(data["contentFingerprint"]),
            backend_identity=BackendIdentity.from_dict(data["backendIdentity"]),
            generated_at=str(data["generatedAt"]),
            artifacts=artifacts,
        )


class ContentCache:
    """Persistent mapping of file path to CacheEntry.

    The store is loaded once at construction. ``store`` writes a complete
    snapshot before updating the in-memory view, so a failed write leaves
    both the file and memory at the previous state.
    """

    def __init__(self, cache_file: Path, workspace_path: Path):
        """Initialize the cache.

        Args:
            cache_file: Location of cache.json.
            workspace_path: Root that relative file paths are resolved against.
        """
        self.cache_file = Path(cache_file)
        self.workspace_path = Path(workspace_path)
        self._entries: dict[str, CacheEntry] = self._load()

    def _load(self) -> dict[str, CacheEntry]:
        """Load the store from disk, resetting to empty on any corruption."""
        data = read_json(self.cache_file)
        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Cache file {self.cache_file} is not an object, starting fresh")
            return {}

        entries: dict[str, CacheEntry] = {}
        for path, raw in data.items():
            try:
                entries[path] = CacheEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Cache entry for {path} is malformed, starting fresh: {e}")
                return {}
        return entries

    def _save(self, entries: dict[str, CacheEntry]) -> None:
        payload = {path: entry.to_dict() for path, entry in sorted(entries.items())}
        atomic_write_json(self.cache_file, payload)

    def _resolve(self, path: str) -> Path:
        candidate = Path(path)
        return candidate if candidate.is_absolute() else self.workspace_path / candidate

    fingerprint = staticmethod(compute_fingerprint)

    def fingerprint_file(self, path: str) -> str:
        """Fingerprint the current content of a file.

        Raises:
            OSError: If the file cannot be read.
        """
        return compute_fingerprint(self._resolve(path).read_bytes())

    def lookup(self, path: str, digest: str, identity: BackendIdentity) -> CacheEntry | None:
        """Return the entry for path only if content and backend both match.

        Args:
            path: Cache key.
            digest: Fingerprint of the current content.
            identity: Backend that would generate new artifacts.

        Returns:
            The matching entry, or None on any mismatch.
        """
        entry = self._entries.get(path)
        if entry is not None and entry.matches(digest, identity):
            return entry
        return None

    def get_entry(self, path: str) -> CacheEntry | None:
        """Return the stored entry for path regardless of validity."""
        return self._entries.get(path)

    def entries(self) -> dict[str, CacheEntry]:
        """Return a snapshot of all entries."""
        return dict(self._entries)

    def store(
        self,
        path: str,
        digest: str,
        identity: BackendIdentity,
        artifacts: Mapping[str, Any],
    ) -> CacheEntry:
        """Replace the entry for path and persist the whole store.

        Args:
            path: Cache key.
            digest: Fingerprint of the content the artifacts describe.
            identity: Backend that generated the artifacts.
            artifacts: Generated artifacts.

        Returns:
            The committed entry.
        """
        entry = CacheEntry(
            content_fingerprint=digest,
            backend_identity=identity,
            generated_at=datetime.now(timezone.utc).isoformat(),
            artifacts=dict(artifacts),
        )
        updated = dict(self._entries)
        updated[path] = entry
        self._save(updated)
        self._entries = updated
        return entry

    def filter_unchanged(self, paths: Iterable[str]) -> list[str]:
        """Return the paths whose content differs from the stored fingerprint.

        Backend identity is not considered here; ``lookup`` catches backend
        changes at generation time. Unreadable paths are skipped.

        Args:
            paths: Candidate paths.

        Returns:
            Paths with no entry or a different fingerprint, in input order.
        """
        changed: list[str] = []
        for path in paths:
            try:
                digest = self.fingerprint_file(path)
            except OSError as e:
                logger.warning(f"Cannot read {path}, skipping: {e}")
                continue
            entry = self._entries.get(path)
            if entry is None or entry.content_fingerprint != digest:
                changed.append(path)
        return changed
