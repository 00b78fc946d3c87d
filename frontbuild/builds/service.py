"""Build service module.

This module provides the high-level build API:
- run_build(): sequence one build of an application or a module
- Module selection and purging of previous output
- Entry resolution with a fail-fast check for empty builds
- Vendor stage, then main stage, stopping after a non-clean vendor stage
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from frontbuild.builds.assemble import run_main_stage
from frontbuild.builds.compiler import Compiler, SubprocessCompiler
from frontbuild.builds.report import BuildReporter
from frontbuild.builds.vendor import (
    VendorManifest,
    load_existing_manifest,
    run_vendor_stage,
    vendor_applies,
)
from frontbuild.project.io import ConfigurationError, load_build_configuration
from frontbuild.project.pages import EntryMap, PageDirectory, get_entry, get_page_html
from frontbuild.project.schema import BuildConfiguration, validate_module_name
from frontbuild.types import BuildKind, BuildReport

if TYPE_CHECKING:
    from frontbuild.config import Settings

logger = logging.getLogger(__name__)


class NoEntriesError(Exception):
    """Raised when the selected modules have nothing to build."""

    def __init__(self, modules: Sequence[str], code: str = "no_entries") -> None:
        super().__init__(
            f"No file to build in modules: {', '.join(modules) or '(none)'}"
        )
        self.modules = list(modules)
        self.code = code


@dataclass(frozen=True)
class ResolvedBuild:
    """Facts discovered while preparing a build.

    Attributes:
        config: Build configuration, as loaded.
        modules: Modules selected for this run.
        entry: Entry map of the selected modules.
        pages: HTML pages of the selected modules.
    """

    config: BuildConfiguration
    modules: tuple[str, ...]
    entry: EntryMap = field(default_factory=dict)
    pages: PageDirectory = field(default_factory=dict)


def select_modules(
    config: BuildConfiguration,
    explicit: Sequence[str] | None = None,
) -> list[str]:
    """Choose the modules to build.

    Applications build the explicitly requested modules, or all of their
    modules when none are requested. A module build always builds just
    that module.

    Raises:
        ConfigurationError: If an explicitly requested name is not a valid
            module name.
    """
    if config.kind == BuildKind.MODULE and config.module is not None:
        if explicit:
            logger.debug("Ignoring module selection for a module build: %s", explicit)
        return [config.module]

    if not explicit:
        return list(config.application.modules)

    for name in explicit:
        try:
            validate_module_name(name)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
    return list(dict.fromkeys(explicit))


def purge_module_outputs(config: BuildConfiguration, modules: Sequence[str]) -> list[Path]:
    """Remove the previous output of each module.

    Directories that do not exist, or that resolve outside the output
    root, are skipped.

    Returns:
        Directories that were removed.
    """
    output_root = config.output_path.resolve()
    removed: list[Path] = []
    for module in modules:
        module_output = config.output_path / module
        if not module_output.exists():
            continue
        resolved = module_output.resolve()
        if resolved == output_root or not resolved.is_relative_to(output_root):
            logger.warning("Not removing %s: outside the output directory", module_output)
            continue
        logger.debug("Removing previous output: %s", module_output)
        shutil.rmtree(module_output)
        removed.append(module_output)
    return removed


def resolve_build(
    config: BuildConfiguration,
    modules: Sequence[str],
    page_directory: str,
) -> ResolvedBuild:
    """Discover entries and pages of the selected modules.

    Raises:
        NoEntriesError: If no selected module has an entry point.
    """
    entry = get_entry(config, modules, page_directory)
    if not entry:
        raise NoEntriesError(modules)
    return ResolvedBuild(
        config=config,
        modules=tuple(modules),
        entry=entry,
        pages=get_page_html(config, modules, page_directory),
    )


def run_build(
    config: BuildConfiguration,
    modules: Sequence[str] | None = None,
    *,
    settings: Settings,
    compiler: Compiler,
    reporter: BuildReporter,
) -> BuildReport:
    """Build an application or a module.

    Args:
        config: Build configuration of the target directory.
        modules: Explicit module selection (applications only).
        settings: Runtime settings.
        compiler: Compiler used for every stage.
        reporter: Where to print.

    Returns:
        BuildReport of the stages that ran.

    Raises:
        NoEntriesError: If there is nothing to build. No compiler has run.
    """
    if config.kind == BuildKind.NONE:
        reporter.fail("Build error, the current directory is not an app or a module!")
        reporter.goodbye()
        return BuildReport(kind=BuildKind.NONE)

    selected = select_modules(config, modules)
    if config.kind == BuildKind.APP:
        reporter.info(f"Current building modules [bold]{' '.join(selected)}[/bold]!")
    else:
        reporter.info(f"Current building module [bold]{selected[0]}[/bold]!")
    report = BuildReport(kind=config.kind, modules=selected)

    reporter.start("Starting build, please wait...")
    purge_module_outputs(config, selected)

    try:
        resolved = resolve_build(config, selected, settings.page_directory)
    except NoEntriesError:
        reporter.fail(
            "No file to build, please check if the [bold]page[/bold] directories are empty!"
        )
        reporter.goodbye()
        raise

    manifest: VendorManifest | None = None
    if vendor_applies(config):
        vendor = run_vendor_stage(config, compiler, reporter)
        report.vendor = vendor.outcome
        if not vendor.proceed:
            logger.info("Vendor stage did not finish cleanly, main stage skipped")
            return report
        manifest = vendor.manifest
    elif config.kind == BuildKind.MODULE:
        manifest = load_existing_manifest(config)

    report.main = run_main_stage(
        config,
        resolved.entry,
        resolved.pages,
        settings.sitemap_template,
        compiler,
        reporter,
        manifest=manifest,
    )
    return report


def build_directory(
    target_dir: Path,
    modules: Sequence[str] | None,
    settings: Settings,
    compiler: Compiler | None = None,
    reporter: BuildReporter | None = None,
) -> BuildReport:
    """Load the configuration of ``target_dir`` and build it.

    Uses a SubprocessCompiler built from the settings when no compiler
    is given.
    """
    config = load_build_configuration(target_dir, settings)
    if compiler is None:
        compiler = SubprocessCompiler(
            settings.compiler_command,
            cwd=config.app_path,
            keep_config=settings.keep_compiler_config,
        )
    return run_build(
        config,
        modules,
        settings=settings,
        compiler=compiler,
        reporter=reporter or BuildReporter(),
    )


__all__ = [
    "NoEntriesError",
    "ResolvedBuild",
    "build_directory",
    "purge_module_outputs",
    "resolve_build",
    "run_build",
    "select_modules",
]
