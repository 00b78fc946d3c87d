"""Entry point and HTML page discovery.

Each module of an application keeps its pages below
``<app>/<module>/page/<page>/``. A page folder holds the page's entry
script (``<page>.js`` or ``index.js``, extension depending on the
framework) and, optionally, its HTML template (``<page>.html`` or
``index.html``).

Both functions here only read the filesystem.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from frontbuild.project.schema import BuildConfiguration, PageInfo

logger = logging.getLogger(__name__)

DEFAULT_PAGE_DIRECTORY = "page"

# Entry script extensions per framework, in lookup order
ENTRY_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "react": (".js", ".jsx", ".ts", ".tsx"),
    "nerv": (".js", ".jsx", ".ts", ".tsx"),
    "vue": (".js", ".ts"),
    "base": (".js",),
}

EntryMap = dict[str, list[str]]
PageDirectory = dict[str, dict[str, PageInfo]]


def entry_name(module: str, page: str) -> str:
    """Return the qualified entry (and chunk) name of a page."""
    return f"{module}/{page}"


def _page_dirs(
    config: BuildConfiguration,
    module: str,
    page_directory: str,
) -> list[Path]:
    """List the page folders of a module, sorted by name."""
    module_dir = config.root / module
    if not module_dir.is_dir():
        logger.warning("Module directory does not exist: %s", module_dir)
        return []
    pages_root = module_dir / page_directory
    if not pages_root.is_dir():
        logger.debug("Module %s has no %s directory", module, page_directory)
        return []
    return sorted(p for p in pages_root.iterdir() if p.is_dir())


def find_entry_script(page_dir: Path, framework: str) -> Path | None:
    """Find the entry script of a page folder.

    Args:
        page_dir: Page folder.
        framework: Application framework, selects the candidate extensions.

    Returns:
        Path to the entry script, or None if the folder has none.
    """
    extensions = ENTRY_EXTENSIONS.get(framework, ENTRY_EXTENSIONS["base"])
    for stem in (page_dir.name, "index"):
        for ext in extensions:
            candidate = page_dir / f"{stem}{ext}"
            if candidate.is_file():
                return candidate
    return None


def find_page_template(page_dir: Path) -> Path | None:
    """Find the HTML template of a page folder."""
    for stem in (page_dir.name, "index"):
        candidate = page_dir / f"{stem}.html"
        if candidate.is_file():
            return candidate
    return None


def get_entry(
    config: BuildConfiguration,
    modules: Sequence[str],
    page_directory: str = DEFAULT_PAGE_DIRECTORY,
) -> EntryMap:
    """Compute the bundler entry map for the selected modules.

    Args:
        config: Build configuration of the application.
        modules: Modules selected for this run.
        page_directory: Folder inside each module that holds pages.

    Returns:
        Mapping of ``module/page`` to the page's source files. Empty if no
        selected module has a page with an entry script.
    """
    framework = config.application.framework
    entry: EntryMap = {}
    for module in modules:
        for page_dir in _page_dirs(config, module, page_directory):
            script = find_entry_script(page_dir, framework)
            if script is None:
                logger.debug("Skipping page without entry script: %s", page_dir)
                continue
            entry[entry_name(module, page_dir.name)] = [str(script)]
    return entry


def get_page_html(
    config: BuildConfiguration,
    modules: Sequence[str],
    page_directory: str = DEFAULT_PAGE_DIRECTORY,
) -> PageDirectory:
    """Compute the HTML pages of the selected modules.

    Only pages that have both an entry script and a template produce an
    HTML page; modules without any such page are left out.

    Args:
        config: Build configuration of the application.
        modules: Modules selected for this run.
        page_directory: Folder inside each module that holds pages.

    Returns:
        Mapping of module to page name to PageInfo.
    """
    framework = config.application.framework
    pages: PageDirectory = {}
    for module in modules:
        module_pages: dict[str, PageInfo] = {}
        for page_dir in _page_dirs(config, module, page_directory):
            if find_entry_script(page_dir, framework) is None:
                continue
            template = find_page_template(page_dir)
            if template is None:
                logger.debug("Page %s/%s has no HTML template", module, page_dir.name)
                continue
            module_pages[page_dir.name] = PageInfo(
                filename=f"{page_dir.name}.html",
                filepath=str(template),
            )
        if module_pages:
            pages[module] = module_pages
    return pages


__all__ = [
    "DEFAULT_PAGE_DIRECTORY",
    "ENTRY_EXTENSIONS",
    "EntryMap",
    "PageDirectory",
    "entry_name",
    "find_entry_script",
    "find_page_template",
    "get_entry",
    "get_page_html",
]
