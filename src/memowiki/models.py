"""Data models consumed from external collaborators.

The structure extractor supplies a CodeStructure per file and the
version-control observer supplies a ChangeSet. Both are treated as
read-only values by the pipeline.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ClassInfo:
    """A class declared in a source file."""

    name: str
    methods: list[str] = field(default_factory=list)
    properties: list[str] = field(default_factory=list)


@dataclass
class FunctionInfo:
    """A top-level function declared in a source file."""

    name: str
    parameters: list[str] = field(default_factory=list)
    return_type: str = ""


@dataclass
class InterfaceInfo:
    """An interface declared in a source file."""

    name: str
    properties: list[str] = field(default_factory=list)


@dataclass
class ImportInfo:
    """An import declaration."""

    module_specifier: str
    named_imports: list[str] = field(default_factory=list)
    default_import: str | None = None

    @property
    def is_external(self) -> bool:
        """True for package imports, False for relative ones."""
        return not self.module_specifier.startswith(".")


@dataclass
class CodeStructure:
    """Structural summary of a single source file."""

    file: str
    classes: list[ClassInfo] = field(default_factory=list)
    functions: list[FunctionInfo] = field(default_factory=list)
    interfaces: list[InterfaceInfo] = field(default_factory=list)
    imports: list[ImportInfo] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CodeStructure":
        """Build a structure from extractor JSON output.

        Accepts both snake_case and the extractor's camelCase keys.
        """
        return cls(
            file=data["file"],
            classes=[
                ClassInfo(
                    name=c["name"],
                    methods=list(c.get("methods", [])),
                    properties=list(c.get("properties", [])),
                )
                for c in data.get("classes", [])
            ],
            functions=[
                FunctionInfo(
                    name=f["name"],
                    parameters=list(f.get("parameters", [])),
                    return_type=f.get("return_type", f.get("returnType", "")),
                )
                for f in data.get("functions", [])
            ],
            interfaces=[
                InterfaceInfo(name=i["name"], properties=list(i.get("properties", [])))
                for i in data.get("interfaces", [])
            ],
            imports=[
                ImportInfo(
                    module_specifier=i.get("module_specifier", i.get("moduleSpecifier", "")),
                    named_imports=list(i.get("named_imports", i.get("namedImports", []))),
                    default_import=i.get("default_import", i.get("defaultImport")),
                )
                for i in data.get("imports", [])
            ],
            exports=list(data.get("exports", [])),
        )


@dataclass(frozen=True)
class RenamedPath:
    """A rename reported by version control."""

    from_path: str
    to_path: str


@dataclass(frozen=True)
class CommitInfo:
    """Metadata of the most recent commit."""

    hash: str
    date: str
    message: str
    author_name: str


@dataclass(frozen=True)
class BranchInfo:
    """Branch tracking information."""

    current: str
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0


@dataclass
class ChangeSet:
    """Change set supplied by the version-control observer.

    Attributes:
        modified: Paths with modified content.
        created: Newly added paths.
        deleted: Removed paths.
        renamed: Renames as (from, to) pairs.
        diff: Raw working-tree diff.
        recent_commit: Latest commit, or None for an empty repository.
        branch: Branch tracking info, if known.
        conflicts: Paths with unresolved merge conflicts.
    """

    modified: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    renamed: list[RenamedPath] = field(default_factory=list)
    diff: str = ""
    recent_commit: CommitInfo | None = None
    branch: BranchInfo | None = None
    conflicts: list[str] = field(default_factory=list)

    def candidate_paths(self) -> list[str]:
        """Paths that may need regeneration, in observer order.

        Deleted paths and rename sources are excluded since they no longer
        exist in the working tree.
        """
        return [
            *self.modified,
            *self.created,
            *(rename.to_path for rename in self.renamed),
        ]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChangeSet":
        """Build a change set from observer JSON output.

        Accepts the nested ``{"status": {...}, "recentCommit": {...}}`` shape
        as well as a flat one.
        """
        status = data.get("status", data)
        commit = data.get("recent_commit", data.get("recentCommit"))
        branch = data.get("branch")

        renamed = []
        for item in status.get("renamed", []):
            if isinstance(item, dict):
                renamed.append(
                    RenamedPath(
                        from_path=item.get("from_path", item.get("from", "")),
                        to_path=item.get("to_path", item.get("to", "")),
                    )
                )
            else:
                from_path, to_path = item
                renamed.append(RenamedPath(from_path=from_path, to_path=to_path))

        return cls(
            modified=list(status.get("modified", [])),
            created=list(status.get("created", [])),
            deleted=list(status.get("deleted", [])),
            renamed=renamed,
            diff=data.get("diff", ""),
            recent_commit=(
                CommitInfo(
                    hash=commit.get("hash", ""),
                    date=commit.get("date", ""),
                    message=commit.get("message", ""),
                    author_name=commit.get("author_name", ""),
                )
                if commit
                else None
            ),
            branch=(
                BranchInfo(
                    current=branch.get("current", ""),
                    upstream=branch.get("upstream"),
                    ahead=int(branch.get("ahead", 0)),
                    behind=int(branch.get("behind", 0)),
                )
                if isinstance(branch, dict)
                else None
            ),
            conflicts=list(data.get("conflicts", [])),
        )
