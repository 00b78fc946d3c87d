"""Rendering of build failures.

Minifier failures embed the offending source location as
``[<file>:<line>,<column>][<bundle>:<line>,<column>]`` in their trace;
when present it is turned into a ``file:line[:column]`` pointer.
"""

from __future__ import annotations

import re
import traceback
from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape

MINIFIER_MARKER = "from UglifyJs"
MINIFIER_HELP_URL = "http://bit.ly/2tRViJ9"

_MINIFIER_TRACE = re.compile(r"(.+)\[(.+):(.+),(.+)\]\[.+\]")


class BuildError(Exception):
    """A classified compiler error.

    Attributes:
        message: Error text.
        trace: Text searched for minifier locations; defaults to the message.
    """

    def __init__(
        self,
        message: str,
        trace: str | None = None,
        code: str = "build_failed",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.trace = trace if trace is not None else message
        self.code = code


@dataclass(frozen=True)
class MinifierLocation:
    """Source location extracted from a minifier trace."""

    path: str
    line: str
    column: str

    def __str__(self) -> str:
        if self.column != "0":
            return f"{self.path}:{self.line}:{self.column}"
        return f"{self.path}:{self.line}"


def parse_minifier_trace(trace: str) -> MinifierLocation | None:
    """Extract the source location from a minifier trace.

    Args:
        trace: Error trace text.

    Returns:
        MinifierLocation, or None when the trace has no location.
    """
    matched = _MINIFIER_TRACE.search(trace)
    if not matched:
        return None
    return MinifierLocation(
        path=matched.group(2),
        line=matched.group(3),
        column=matched.group(4),
    )


def _message_and_trace(err: BaseException | str) -> tuple[str | None, str | None]:
    if isinstance(err, BuildError):
        return err.message, err.trace
    if isinstance(err, BaseException):
        message = str(err) or None
        trace = "".join(traceback.format_exception(err))
        return message, trace
    return None, None


def describe_build_error(err: BaseException | str) -> list[str]:
    """Render a build failure as lines of plain text.

    Args:
        err: Classified error, transport exception, or bare error text.

    Returns:
        Lines to print, ending with an empty line.
    """
    message, trace = _message_and_trace(err)
    lines: list[str] = []

    if trace and message is not None and MINIFIER_MARKER in message:
        location = parse_minifier_trace(trace)
        if location is not None:
            lines.append("Failed to minify the code from this file:")
            lines.append("")
            lines.append(f"\t{location}")
            lines.append("")
        else:
            lines.append(f"Failed to minify the bundle. {message}")
        lines.append(f"Read more here: {MINIFIER_HELP_URL}")
    else:
        lines.append(f"{message or err}")
        lines.append("")

    lines.append("")
    return lines


def print_build_error(err: BaseException | str, console: Console) -> None:
    """Print a build failure to the console.

    The minifier location, when found, is highlighted.
    """
    for line in describe_build_error(err):
        if line.startswith("\t"):
            console.print(f"[yellow]{escape(line)}[/yellow]")
        else:
            console.print(escape(line))


__all__ = [
    "BuildError",
    "MINIFIER_HELP_URL",
    "MINIFIER_MARKER",
    "MinifierLocation",
    "describe_build_error",
    "parse_minifier_trace",
    "print_build_error",
]
