"""Resolve a change set into the ordered list of paths to consider."""

import logging
from typing import Iterable

from memowiki.models import ChangeSet
from memowiki.repo.file_filter import FileFilter

logger = logging.getLogger(__name__)


class ChangeSetResolver:
    """Compose candidate lists with the eligibility filter.

    The output keeps the first occurrence of each path in input order and
    drops everything the filter rejects.
    """

    def __init__(self, file_filter: FileFilter):
        self.file_filter = file_filter

    def resolve(self, candidates: Iterable[str]) -> list[str]:
        """Return eligible candidates, deduplicated, in input order.

        Args:
            candidates: Raw candidate paths (absolute or repo-relative).

        Returns:
            Eligible repo-relative paths.
        """
        seen: set[str] = set()
        resolved: list[str] = []
        for path in self.file_filter.filter_files(candidates):
            if path in seen:
                continue
            seen.add(path)
            resolved.append(path)
        return resolved

    def resolve_change_set(self, change_set: ChangeSet) -> list[str]:
        """Resolve the candidates named by a change set.

        Args:
            change_set: Change set from the version-control observer.

        Returns:
            Eligible repo-relative paths.
        """
        candidates = change_set.candidate_paths()
        resolved = self.resolve(candidates)
        logger.debug(f"Resolved {len(resolved)} of {len(candidates)} changed paths")
        return resolved
