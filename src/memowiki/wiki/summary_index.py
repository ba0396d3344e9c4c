"""Append-only log of implementation summaries."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from memowiki.wiki.persistence import atomic_write_json, read_json

logger = logging.getLogger(__name__)


class DuplicateSummaryError(Exception):
    """Raised when adding an entry whose id is already in the index."""

    pass


class SummaryType(str, Enum):
    """Kind of work a summary records."""

    FEATURE = "feature"
    BUGFIX = "bugfix"
    REFACTOR = "refactor"


@dataclass(frozen=True)
class SummaryEntry:
    """One recorded summary.

    Entries are immutable; link_summaries sets linked_to by replacing the
    entry in the log.
    """

    id: str
    timestamp: datetime
    category: SummaryType
    files: tuple[str, ...]
    artifact_path: str
    linked_to: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "category": self.category.value,
            "files": list(self.files),
            "artifactPath": self.artifact_path,
        }
        if self.linked_to is not None:
            data["linkedTo"] = self.linked_to
        if self.tags:
            data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SummaryEntry":
        timestamp = datetime.fromisoformat(data["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        files = data.get("files", [])
        tags = data.get("tags") or []
        if not isinstance(files, list) or not isinstance(tags, list):
            raise ValueError("files and tags must be lists")
        return cls(
            id=str(data["id"]),
            timestamp=timestamp,
            category=SummaryType(data["category"]),
            files=tuple(str(f) for f in files),
            artifact_path=str(data["artifactPath"]),
            linked_to=data.get("linkedTo"),
            tags=tuple(str(t) for t in tags),
        )


class SummaryIndex:
    """JSON-backed summary log at <wiki>/summaries/index.json.

    Every operation loads the log from disk; every mutation rewrites the
    whole file atomically. Queries return newest entries first.
    """

    def __init__(self, index_file: Path):
        self.index_file = Path(index_file)

    def _load(self) -> list[SummaryEntry]:
        data = read_json(self.index_file)
        if data is None:
            return []
        if not isinstance(data, dict) or not isinstance(data.get("entries"), list):
            logger.warning(f"Summary index {self.index_file} has no entry list, starting fresh")
            return []
        try:
            return [SummaryEntry.from_dict(raw) for raw in data["entries"]]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Summary index {self.index_file} is malformed, starting fresh: {e}")
            return []

    def _save(self, entries: list[SummaryEntry]) -> None:
        atomic_write_json(self.index_file, {"entries": [e.to_dict() for e in entries]})

    @staticmethod
    def _newest_first(entries: list[SummaryEntry]) -> list[SummaryEntry]:
        # Later log position wins ties so equal timestamps still come out newest first.
        ordered = sorted(
            enumerate(entries), key=lambda item: (item[1].timestamp, item[0]), reverse=True
        )
        return [entry for _, entry in ordered]

    def add_entry(self, entry: SummaryEntry) -> None:
        """Append an entry and persist the log.

        Raises:
            DuplicateSummaryError: If an entry with the same id exists.
        """
        entries = self._load()
        if any(existing.id == entry.id for existing in entries):
            raise DuplicateSummaryError(f"Summary {entry.id!r} already exists")
        entries.append(entry)
        self._save(entries)

    def get(self, entry_id: str) -> SummaryEntry | None:
        for entry in self._load():
            if entry.id == entry_id:
                return entry
        return None

    def get_entries(
        self,
        category: SummaryType | str | None = None,
        file: str | None = None,
        linked_to: str | None = None,
    ) -> list[SummaryEntry]:
        """Query the log.

        Args:
            category: Only entries of this category.
            file: Only entries with a file path containing this substring.
            linked_to: Only entries whose back-reference is this id.

        Returns:
            Matching entries, newest first.
        """
        entries = self._load()
        if category is not None:
            wanted = SummaryType(category)
            entries = [e for e in entries if e.category is wanted]
        if file:
            entries = [e for e in entries if any(file in f for f in e.files)]
        if linked_to:
            entries = [e for e in entries if e.linked_to == linked_to]
        return self._newest_first(entries)

    def get_recent(self, limit: int = 10) -> list[SummaryEntry]:
        """Return the newest entries, at most limit of them."""
        if limit <= 0:
            return []
        return self._newest_first(self._load())[:limit]

    def get_by_file(self, file: str) -> list[SummaryEntry]:
        return self.get_entries(file=file)

    def get_by_category(self, category: SummaryType | str) -> list[SummaryEntry]:
        return self.get_entries(category=category)

    def search(self, query: str, limit: int | None = None) -> list[SummaryEntry]:
        """Case-insensitive substring search over ids, files and tags.

        Args:
            query: Text to look for.
            limit: Maximum number of results.

        Returns:
            Matching entries, newest first.
        """
        needle = query.strip().lower()
        if not needle:
            return []
        matches = [
            e
            for e in self._load()
            if needle in e.id.lower()
            or any(needle in f.lower() for f in e.files)
            or any(needle in t.lower() for t in e.tags)
        ]
        matches = self._newest_first(matches)
        return matches[:limit] if limit is not None else matches

    def link_summaries(self, parent_id: str, child_id: str) -> bool:
        """Point the child entry's back-reference at the parent.

        A back-reference is set at most once. Linking a missing child, or a
        child that is already linked, changes nothing.

        Returns:
            True if the link was recorded.
        """
        entries = self._load()
        for i, entry in enumerate(entries):
            if entry.id != child_id:
                continue
            if entry.linked_to is not None:
                logger.warning(
                    f"Summary {child_id} is already linked to {entry.linked_to}, not relinking"
                )
                return False
            entries[i] = replace(entry, linked_to=parent_id)
            self._save(entries)
            return True

        logger.debug(f"Summary {child_id} not found, nothing to link")
        return False

    def count_by_category(self) -> dict[str, int]:
        counts = {t.value: 0 for t in SummaryType}
        for entry in self._load():
            counts[entry.category.value] += 1
        return counts
