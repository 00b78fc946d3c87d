"""Main application bundle configuration and compilation.

The main configuration is the merge of the base, production and user
override layers, completed with the entry map, the output location, one
sitemap page, an optional vendor library reference and one HTML page per
(module, page) pair.
"""

from __future__ import annotations

import logging
from pathlib import Path

from frontbuild.builds.compiler import BundleConfig, Compiler, compile_once
from frontbuild.builds.directives import HtmlPageDirective, VendorReferenceDirective
from frontbuild.builds.layers import base_layer, merge_layers, production_layer
from frontbuild.builds.report import BuildReporter, settle_compile_result
from frontbuild.builds.vendor import VendorManifest, vendor_urls
from frontbuild.project.pages import EntryMap, PageDirectory, entry_name
from frontbuild.project.schema import BuildConfiguration
from frontbuild.types import BuildOutcome, Stage

logger = logging.getLogger(__name__)

SITEMAP_FILENAME = "index.html"


def html_page_directives(
    pages: PageDirectory,
    vendor_files: list[str],
) -> list[HtmlPageDirective]:
    """One HTML page per (module, page), each limited to its own chunk."""
    directives: list[HtmlPageDirective] = []
    for module, module_pages in pages.items():
        for page, info in module_pages.items():
            directives.append(
                HtmlPageDirective(
                    filename=f"{module}/{info.filename}",
                    template=info.filepath,
                    always_write_to_disk=True,
                    chunks=[entry_name(module, page)],
                    vendor_files=list(vendor_files),
                )
            )
    return directives


def assemble_main_config(
    config: BuildConfiguration,
    entry: EntryMap,
    pages: PageDirectory,
    sitemap_template: Path,
    manifest: VendorManifest | None = None,
) -> BundleConfig:
    """Assemble the main bundler configuration.

    Args:
        config: Build configuration of the application.
        entry: Entry map of the selected modules.
        pages: HTML pages of the selected modules.
        sitemap_template: Template of the site-level index page.
        manifest: Vendor library to reference instead of re-bundling it.

    Returns:
        Complete bundler configuration.
    """
    app = config.application
    build = app.build

    layer_args = (config.root, build, app.template, app.platform, app.framework)
    bundle = merge_layers(
        base_layer(*layer_args),
        production_layer(*layer_args),
        build.overrides,
    )
    bundle.setdefault("plugins", [])

    bundle["entry"] = entry
    bundle["output"] = {
        "path": str(config.output_path),
        "filename": "[name].js",
        "publicPath": build.public_path,
        "chunkFilename": f"{build.chunk_directory}/[name].chunk.js",
    }
    bundle["plugins"].append(
        HtmlPageDirective(
            title=app.app,
            filename=SITEMAP_FILENAME,
            template=str(sitemap_template),
            always_write_to_disk=True,
            data={
                "htmlPages": {
                    module: {page: info.model_dump() for page, info in module_pages.items()}
                    for module, module_pages in pages.items()
                }
            },
        )
    )

    if manifest is not None:
        bundle["plugins"].append(
            VendorReferenceDirective(
                context=str(manifest.context),
                manifest_path=str(manifest.manifest_path),
                manifest=manifest.content,
            )
        )

    bundle["plugins"].extend(
        html_page_directives(pages, vendor_urls(manifest, build.public_path))
    )
    return bundle


def run_main_stage(
    config: BuildConfiguration,
    entry: EntryMap,
    pages: PageDirectory,
    sitemap_template: Path,
    compiler: Compiler,
    reporter: BuildReporter,
    manifest: VendorManifest | None = None,
) -> BuildOutcome:
    """Assemble the main configuration, compile it once and report.

    Returns:
        Outcome of the main stage.
    """
    bundle = assemble_main_config(config, entry, pages, sitemap_template, manifest)
    logger.info(
        "Compiling %d entries, %d pages%s",
        len(entry),
        sum(len(p) for p in pages.values()),
        " with vendor library" if manifest is not None else "",
    )
    result = compile_once(compiler, bundle)
    return settle_compile_result(result, Stage.MAIN, reporter)


__all__ = [
    "SITEMAP_FILENAME",
    "assemble_main_config",
    "html_page_directives",
    "run_main_stage",
]
