"""Candidate path selection."""

from memowiki.repo.change_set import ChangeSetResolver
from memowiki.repo.file_filter import FileFilter, compile_ignore_pattern

__all__ = [
    "ChangeSetResolver",
    "FileFilter",
    "compile_ignore_pattern",
]
