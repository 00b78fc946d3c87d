"""Classification of bundler results.

This module handles:
- Cleaning raw bundler error/warning messages into readable text
- Splitting a compiler run into errors and warnings
- Deciding the stage outcome (success, warning, failure)

Only the first error survives classification: one precise error is more
useful than a dump of every follow-on failure.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from frontbuild.builds.compiler import CompilerStats
from frontbuild.types import BuildOutcome

SYNTAX_ERROR_LABEL = "Syntax error:"

WARNING_HINT = (
    "\nSearch for the keywords to learn more about each warning.\n"
    "To ignore, add // eslint-disable-next-line to the line before.\n"
)

_LOADER_NOISE = re.compile(r"Module [A-Za-z ]+\(from")
_PARSING_ERROR = re.compile(r"Line (\d+):(?:(\d+):)?\s*Parsing error: (.+)$")
_STACK_FRAME = re.compile(r"^\s*at\s((?!webpack:).)*:\d+:\d+[\s)]*(\n|$)", re.MULTILINE)
_ANONYMOUS_FRAME = re.compile(r"^\s*at\s<anonymous>(\n|$)", re.MULTILINE)
_PREFIXES = (
    "Module build failed: ",
    "Module Error: ",
    "Module Warning: ",
    "(Emitted value instead of an instance of Error) ",
)


@dataclass
class ClassifiedMessages:
    """Errors and warnings of one compiler run, both empty on success."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return not self.errors and not self.warnings

    def to_outcome(self) -> BuildOutcome:
        """Collapse into a stage outcome."""
        if self.errors:
            return BuildOutcome.failure(self.errors)
        if self.warnings:
            return BuildOutcome.warning(self.warnings)
        return BuildOutcome.success()


def _strip_prefixes(line: str) -> str:
    changed = True
    while changed:
        changed = False
        for prefix in _PREFIXES:
            if line.startswith(prefix):
                line = line[len(prefix) :]
                changed = True
    return line


def _friendly_parsing_error(line: str) -> str:
    matched = _PARSING_ERROR.search(line)
    if not matched:
        return line
    error_line, error_column, error_message = matched.groups()
    location = error_line if error_column is None else f"{error_line}:{error_column}"
    return f"{SYNTAX_ERROR_LABEL} {error_message} ({location})"


def format_message(message: str) -> str:
    """Clean one raw bundler message.

    Args:
        message: Message text as reported by the bundler.

    Returns:
        Message with loader noise, internal stack frames and repeated
        blank lines removed.
    """
    lines = [line for line in message.split("\n") if not _LOADER_NOISE.search(line)]
    lines = [_friendly_parsing_error(_strip_prefixes(line)) for line in lines]

    # Drop leading blank lines
    while lines and not lines[0].strip():
        lines.pop(0)

    # "Module not found: Error: Cannot find file: x" -> "Cannot find file: x"
    if len(lines) > 1 and lines[1].startswith("Module not found: "):
        rewritten = lines[1].replace("Module not found: ", "", 1)
        lines[1] = rewritten.replace("Error: ", "", 1)

    text = "\n".join(lines)
    text = _STACK_FRAME.sub("", text)
    text = _ANONYMOUS_FRAME.sub("", text)

    collapsed: list[str] = []
    for line in text.split("\n"):
        if collapsed and not line.strip() and not collapsed[-1].strip():
            continue
        collapsed.append(line)
    return "\n".join(collapsed).strip("\n")


def is_likely_syntax_error(message: str) -> bool:
    return SYNTAX_ERROR_LABEL in message


def format_messages(stats: CompilerStats) -> ClassifiedMessages:
    """Clean every error and warning of a compiler run.

    When any error looks like a syntax error, only syntax errors are kept.
    """
    errors = [format_message(m) for m in stats.errors]
    warnings = [format_message(m) for m in stats.warnings]
    if any(is_likely_syntax_error(e) for e in errors):
        errors = [e for e in errors if is_likely_syntax_error(e)]
    return ClassifiedMessages(errors=errors, warnings=warnings)


def classify_stats(stats: CompilerStats) -> ClassifiedMessages:
    """Classify a compiler run.

    Args:
        stats: Statistics delivered by the compiler.

    Returns:
        ClassifiedMessages; ``errors`` holds at most one entry.
    """
    classified = format_messages(stats)
    if classified.errors:
        del classified.errors[1:]
    return classified


def render_warnings(warnings: list[str]) -> str:
    """Render every warning followed by the suppression hint."""
    return "\n\n".join(warnings) + "\n" + WARNING_HINT


__all__ = [
    "ClassifiedMessages",
    "SYNTAX_ERROR_LABEL",
    "WARNING_HINT",
    "classify_stats",
    "format_message",
    "format_messages",
    "is_likely_syntax_error",
    "render_warnings",
]
