"""Mermaid diagram normalization and syntax validation."""

import re
from dataclasses import dataclass, field


@dataclass
class ValidationResult:
    """Result of Mermaid diagram validation.

    Attributes:
        valid: True if the diagram syntax is valid.
        errors: List of human-readable error messages.
        line_numbers: Lines where errors were found.
    """

    valid: bool
    errors: list[str] = field(default_factory=list)
    line_numbers: list[int] = field(default_factory=list)


# Diagram kinds written to diagrams/ and flows/, lowercased.
DIAGRAM_TYPES = ("classdiagram", "flowchart", "graph", "sequencediagram", "statediagram")

_BRACKETS = {"[": "]", "(": ")", "{": "}"}
_CLOSERS = frozenset(_BRACKETS.values())
_QUOTED_RE = re.compile(r'"[^"]*"')
_BLOCK_RE = re.compile(r"^(subgraph|loop|alt|opt|par|critical|break|rect)\b", re.IGNORECASE)
_END_RE = re.compile(r"^end\b", re.IGNORECASE)

# First fenced block; the info string (e.g. "mermaid") is optional.
_FENCE_RE = re.compile(r"```[ \t]*[\w-]*[ \t]*\r?\n(.*?)\r?\n?[ \t]*```", re.DOTALL)


def extract_mermaid(content: str) -> str:
    """Normalize diagram text for storage.

    If the content contains a fenced code block, only the interior of the
    first block is kept; otherwise the content is kept as-is. The result
    always ends with exactly the content plus one trailing newline if it
    did not already end with one.

    Args:
        content: Raw backend output.

    Returns:
        Diagram source suitable for a .mmd file.
    """
    match = _FENCE_RE.search(content)
    body = match.group(1) if match else content
    if not body.endswith("\n"):
        body += "\n"
    return body


def _meaningful_lines(content: str) -> list[tuple[int, str]]:
    """Non-blank lines with %% comments removed, with 1-based line numbers."""
    lines = []
    for number, raw in enumerate(content.splitlines(), start=1):
        line = raw.split("%%", 1)[0].strip()
        if line:
            lines.append((number, line))
    return lines


def validate_mermaid(content: str) -> ValidationResult:
    """Check diagram text before it is stored.

    The first meaningful line must declare one of DIAGRAM_TYPES. Brackets
    outside quoted labels must close in order, and every subgraph (or
    sequence block such as loop/alt) needs a matching end. Problems are
    reported, not raised; the store keeps the diagram either way.

    Args:
        content: Normalized diagram source.

    Returns:
        ValidationResult with validity status, errors and offending lines.
    """
    lines = _meaningful_lines(content)
    if not lines:
        return ValidationResult(valid=False, errors=["Empty diagram"], line_numbers=[0])

    errors: list[str] = []
    line_numbers: list[int] = []

    def report(message: str, number: int) -> None:
        errors.append(message)
        line_numbers.append(number)

    first_number, first_line = lines[0]
    if not first_line.lower().startswith(DIAGRAM_TYPES):
        report(
            f"Missing diagram type on line {first_number}: expected classDiagram, "
            "flowchart, graph, sequenceDiagram or stateDiagram",
            first_number,
        )

    open_brackets: list[tuple[str, int]] = []
    open_blocks: list[tuple[str, int]] = []
    for number, line in lines:
        block = _BLOCK_RE.match(line)
        if block:
            open_blocks.append((block.group(1).lower(), number))
        elif _END_RE.match(line):
            if open_blocks:
                open_blocks.pop()
            else:
                report(f"'end' on line {number} closes nothing", number)

        for char in _QUOTED_RE.sub("", line):
            if char in _BRACKETS:
                open_brackets.append((char, number))
            elif char in _CLOSERS:
                if open_brackets and _BRACKETS[open_brackets[-1][0]] == char:
                    open_brackets.pop()
                else:
                    report(f"Unbalanced bracket '{char}' on line {number}", number)

    for char, number in open_brackets:
        report(f"Unclosed bracket '{char}' opened on line {number}", number)
    for keyword, number in open_blocks:
        report(f"Unmatched {keyword} on line {number}: missing end", number)

    return ValidationResult(valid=not errors, errors=errors, line_numbers=line_numbers)


def sanitize_label(text: str, max_length: int = 40) -> str:
    """Make text safe inside a double-quoted node label such as A["label"].

    Whitespace collapses to single spaces, quotes and backticks become
    apostrophes and angle brackets are dropped. Brackets are kept since
    the label is quoted.
    """
    result = " ".join(text.split())
    result = result.replace('"', "'").replace("`", "'")
    result = result.replace("<", "").replace(">", "")

    if len(result) > max_length:
        result = result[: max_length - 3] + "..."
    return result


def sanitize_node_id(text: str) -> str:
    """Turn a file path or symbol name into a Mermaid node ID.

    Runs of characters outside [A-Za-z0-9] become one underscore. IDs never
    start with a digit and never equal the reserved word "end".
    """
    result = re.sub(r"[^A-Za-z0-9]+", "_", text).strip("_")
    if result and result[0].isdigit():
        result = "n" + result
    if result.lower() == "end":
        result += "_node"
    return result
