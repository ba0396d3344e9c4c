"""File eligibility and wiki layout constants.

These settings control which source files are documented and where the
generated artifacts land inside the wiki directory.
"""

# =============================================================================
# Supported Extensions
# =============================================================================
# Only files with these extensions are handed to the structure extractor and
# the generation backend. Everything else is ignored before any I/O happens.

SUPPORTED_EXTENSIONS = frozenset([".ts", ".tsx", ".js", ".jsx"])

# =============================================================================
# Default Exclusions
# =============================================================================
# A path is skipped when any of its segments equals one of these names. They
# cover dependency folders, build outputs, and version-control metadata, plus
# the wiki directory itself so generated artifacts are never re-documented.

DEFAULT_EXCLUDED_DIRS = frozenset([
    "node_modules",
    "dist",
    "build",
    "coverage",
    ".git",
    ".next",
    ".nuxt",
    ".angular",
    "out",
    "target",
    "bin",
    "obj",
    "__pycache__",
    ".venv",
    "venv",
    ".codewiki",
])

# =============================================================================
# Artifact Layout
# =============================================================================
# Each artifact category maps to a subdirectory of the wiki and a file suffix.
# Diagram categories hold raw Mermaid source; the others hold Markdown.

CATEGORY_DIRS = {
    "documentation": "memory",
    "diagram": "diagrams",
    "flow": "flows",
    "summary": "summaries",
}

CATEGORY_SUFFIXES = {
    "documentation": ".md",
    "diagram": ".mmd",
    "flow": ".mmd",
    "summary": ".md",
}

CACHE_FILENAME = "cache.json"
SUMMARY_INDEX_FILENAME = "index.json"
MANIFEST_FILENAME = "index.md"

PROJECT_SUMMARY_NAME = "project-overview"
ARCHITECTURE_FLOW_NAME = "architecture"
