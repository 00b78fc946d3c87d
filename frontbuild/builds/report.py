"""Terminal reporting for build runs.

Every compiler completion goes through ``settle_compile_result`` exactly
once: it is classified, the outcome line is printed, and a failure is
rendered by the error formatter.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.markup import escape

from frontbuild.builds.compiler import CompileResult
from frontbuild.builds.errors import BuildError, print_build_error
from frontbuild.builds.messages import classify_stats, render_warnings
from frontbuild.types import BuildOutcome, Stage

logger = logging.getLogger(__name__)

STAGE_LABELS: dict[Stage, dict[str, str | None]] = {
    Stage.VENDOR: {
        "success": None,
        "failure": "Compile library failed!",
        "warning": "Library Compiled with warnings.",
    },
    Stage.MAIN: {
        "success": "Compile successfully!",
        "failure": "Compile failed!",
        "warning": "Compiled with warnings.",
    },
}


class BuildReporter:
    """Prints build progress and outcomes.

    Status lines follow the spinner convention: ``start`` once, then one of
    ``succeed``, ``warn`` or ``fail`` per stage.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def info(self, text: str) -> None:
        self.console.print(text)

    def start(self, text: str) -> None:
        self.console.print(f"[cyan]…[/cyan] {text}")

    def succeed(self, text: str) -> None:
        self.console.print(f"[green]✔ {text}[/green]")

    def warn(self, text: str) -> None:
        self.console.print(f"[yellow]⚠ {text}[/yellow]")

    def fail(self, text: str) -> None:
        self.console.print(f"[red]✖ {text}[/red]")

    def goodbye(self) -> None:
        self.console.print("[bold]GoodBye![/bold]")

    def warnings(self, messages: list[str]) -> None:
        """Print every warning, then the suppression hint."""
        self.console.print(escape(render_warnings(messages)))

    def error(self, err: BaseException | str) -> None:
        print_build_error(err, self.console)


def settle_compile_result(
    result: CompileResult,
    stage: Stage,
    reporter: BuildReporter,
) -> BuildOutcome:
    """Classify and report one compiler completion.

    Args:
        result: Completion delivered by the compiler.
        stage: Stage the compiler ran for (selects the status lines).
        reporter: Where to print.

    Returns:
        The stage outcome.
    """
    labels = STAGE_LABELS[stage]

    if result.error is not None or result.stats is None:
        err = result.error or BuildError("Compiler finished without statistics")
        logger.error("%s stage: compiler error: %s", stage.value, err)
        reporter.fail(labels["failure"] or "Compile failed!")
        reporter.error(err)
        return BuildOutcome.failure([str(err)])

    stats = result.stats
    logger.info(
        "%s stage: %d asset(s) emitted in %s ms (hash %s)",
        stage.value,
        len(stats.assets),
        stats.time if stats.time is not None else "?",
        stats.hash or "-",
    )
    if stats.assets:
        logger.debug("%s stage assets: %s", stage.value, ", ".join(stats.assets))

    classified = classify_stats(stats)
    outcome = classified.to_outcome()

    if classified.errors:
        logger.info("%s stage failed", stage.value)
        reporter.fail(labels["failure"] or "Compile failed!")
        reporter.error(BuildError("\n\n".join(classified.errors)))
    elif classified.warnings:
        logger.info(
            "%s stage finished with %d warning(s)",
            stage.value,
            len(classified.warnings),
        )
        reporter.warn(labels["warning"] or "Compiled with warnings.")
        reporter.warnings(classified.warnings)
    else:
        logger.info("%s stage succeeded", stage.value)
        if labels["success"]:
            reporter.succeed(labels["success"])

    return outcome


__all__ = ["BuildReporter", "STAGE_LABELS", "settle_compile_result"]
