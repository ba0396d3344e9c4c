"""File eligibility with default excludes and .memowikiignore support."""

import logging
import re
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional

from memowiki.constants.files import DEFAULT_EXCLUDED_DIRS, SUPPORTED_EXTENSIONS

logger = logging.getLogger(__name__)

# Characters with glob meaning in other dialects that this grammar does not support.
_UNSUPPORTED_GLOB_CHARS = frozenset("[]{}!")


def compile_ignore_pattern(pattern: str) -> re.Pattern[str] | None:
    """Compile an ignore pattern to an anchored regular expression.

    Grammar:
        ``*`` matches any run of characters within one path segment.
        ``**`` matches across segments; ``**/`` also matches zero segments.
        ``?`` matches exactly one character other than ``/``.
        A trailing ``/`` matches everything beneath that directory.

    Args:
        pattern: Pattern relative to the project root.

    Returns:
        Compiled pattern, or None if the pattern uses unsupported syntax.
    """
    if any(ch in _UNSUPPORTED_GLOB_CHARS for ch in pattern):
        return None

    if pattern.endswith("/"):
        pattern += "**"
    pattern = pattern.lstrip("/")

    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1

    try:
        return re.compile("^" + "".join(parts) + "$")
    except re.error:
        return None


def load_ignore_patterns(ignore_path: Path) -> list[str]:
    """Read patterns from an ignore file, skipping blanks and comments.

    Args:
        ignore_path: Path to the ignore file.

    Returns:
        List of raw patterns; empty if the file is missing or unreadable.
    """
    try:
        content = ignore_path.read_text(encoding="utf-8")
    except OSError:
        return []

    patterns = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            patterns.append(line)
    return patterns


class FileFilter:
    """Decide which paths are subject to documentation at all.

    A path is eligible when its extension is supported, none of its
    segments is a default exclusion, and no user ignore pattern matches
    it relative to the project root. The configuration is fixed at
    construction; ``is_eligible`` is a pure predicate.
    """

    def __init__(
        self,
        repo_path: Path,
        extra_excludes: Iterable[str] | None = None,
        ignore_path: Optional[Path] = None,
        extensions: Iterable[str] | None = None,
    ):
        """Initialize file filter.

        Args:
            repo_path: Path to repository root.
            extra_excludes: Additional ignore patterns.
            ignore_path: Path to ignore file. Defaults to repo_path/.memowikiignore.
            extensions: Allowed extensions. Defaults to SUPPORTED_EXTENSIONS.
        """
        self.repo_path = Path(repo_path)
        self.extensions = frozenset(extensions) if extensions is not None else SUPPORTED_EXTENSIONS
        self.excluded_dirs = DEFAULT_EXCLUDED_DIRS

        if ignore_path is None:
            ignore_path = self.repo_path / ".memowikiignore"

        raw_patterns = load_ignore_patterns(ignore_path)
        if extra_excludes:
            raw_patterns.extend(extra_excludes)

        self.ignore_patterns: list[re.Pattern[str]] = []
        for raw in raw_patterns:
            compiled = compile_ignore_pattern(raw)
            if compiled is None:
                logger.warning(f"Ignoring malformed pattern {raw!r} in {ignore_path.name}")
                continue
            self.ignore_patterns.append(compiled)

    def _relative(self, path: str | Path) -> str:
        """Return the path relative to the repo root in POSIX form."""
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.relative_to(self.repo_path)
            except ValueError:
                pass
        return PurePosixPath(*candidate.parts).as_posix() if candidate.parts else ""

    def _is_excluded(self, relative: str) -> bool:
        """Check if a relative path hits a default exclusion or ignore pattern."""
        for segment in relative.split("/"):
            if segment in self.excluded_dirs:
                return True
        return any(pattern.match(relative) for pattern in self.ignore_patterns)

    def is_eligible(self, path: str | Path) -> bool:
        """Check whether a path should be processed.

        Args:
            path: Absolute path, or path relative to the repo root.

        Returns:
            True if the path passes every eligibility rule.
        """
        relative = self._relative(path)
        if not relative:
            return False
        if PurePosixPath(relative).suffix not in self.extensions:
            return False
        return not self._is_excluded(relative)

    def filter_files(self, files: Iterable[str | Path]) -> list[str]:
        """Filter paths down to the eligible ones, preserving order.

        Args:
            files: Candidate paths.

        Returns:
            Eligible paths, relative to the repo root.
        """
        return [self._relative(f) for f in files if self.is_eligible(f)]

    def get_files(self) -> list[str]:
        """Walk the repository and list every eligible file.

        Returns:
            Sorted list of relative file paths.
        """
        files = []
        for file_path in self.repo_path.rglob("*"):
            if not file_path.is_file():
                continue
            if self.is_eligible(file_path):
                files.append(self._relative(file_path))
        return sorted(files)
