"""Shared vendor library pre-build.

This module handles:
- Building the vendor library bundle and its manifest in isolation
- Reading the manifest and the emitted library bundles after a clean build
- Reusing a manifest left by an earlier application build

The main stage only runs after a clean vendor build: errors and warnings
both block it.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from frontbuild.builds.compiler import Compiler, compile_once
from frontbuild.builds.layers import vendor_layer
from frontbuild.builds.report import BuildReporter, settle_compile_result
from frontbuild.project.schema import BuildConfiguration, LibrarySchema
from frontbuild.types import BuildKind, BuildOutcome, Stage

logger = logging.getLogger(__name__)

# Emitted shared library bundles are named "<name>.dll.js"
LIBRARY_BUNDLE_PATTERN = re.compile(r"dll\.js$")


class VendorManifestError(Exception):
    """Raised when the vendor manifest cannot be read."""

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        code: str = "vendor_manifest_error",
    ) -> None:
        super().__init__(message)
        self.path = path
        self.code = code


@dataclass(frozen=True)
class VendorManifest:
    """Output of a clean vendor build.

    Attributes:
        name: Library name.
        directory: Library directory relative to the output root.
        context: Absolute library directory.
        manifest_path: Manifest file.
        content: Manifest content (library name and module-id table).
        asset_files: Library bundle file names, sorted.
    """

    name: str
    directory: str
    context: Path
    manifest_path: Path
    content: dict[str, Any] = field(default_factory=dict)
    asset_files: tuple[str, ...] = ()


@dataclass
class VendorStageResult:
    """Outcome of the vendor stage; ``manifest`` is set only on success."""

    outcome: BuildOutcome
    manifest: VendorManifest | None = None

    @property
    def proceed(self) -> bool:
        return self.outcome.ok and self.manifest is not None


def url_join(*parts: str) -> str:
    """Join URL path segments with single slashes."""
    joined = "/".join(p.strip("/") for p in parts if p and p.strip("/"))
    if parts and parts[0].startswith("/"):
        joined = "/" + joined
    return joined


def library_context(config: BuildConfiguration, library: LibrarySchema) -> Path:
    """Absolute directory the vendor library is emitted to."""
    return config.output_path / library.directory


def vendor_applies(config: BuildConfiguration) -> bool:
    """True when this run must pre-build the vendor library."""
    return config.kind == BuildKind.APP and config.build.has_library


def collect_library_bundles(lib_context: Path) -> tuple[str, ...]:
    """List the library bundle files of a library directory, sorted."""
    if not lib_context.is_dir():
        return ()
    return tuple(
        sorted(
            p.name
            for p in lib_context.iterdir()
            if p.is_file() and LIBRARY_BUNDLE_PATTERN.search(p.name)
        )
    )


def read_vendor_manifest(lib_context: Path, library: LibrarySchema) -> VendorManifest:
    """Read the manifest and bundle list of a built vendor library.

    Args:
        lib_context: Library directory.
        library: Library settings.

    Returns:
        VendorManifest for the library.

    Raises:
        VendorManifestError: If the manifest is missing or not valid JSON.
    """
    manifest_path = lib_context / library.manifest_filename
    try:
        with manifest_path.open(encoding="utf-8") as f:
            content = json.load(f)
    except FileNotFoundError as e:
        raise VendorManifestError(
            f"Vendor manifest not found: {manifest_path}", path=manifest_path
        ) from e
    except (OSError, json.JSONDecodeError) as e:
        raise VendorManifestError(
            f"Cannot read vendor manifest {manifest_path}: {e}", path=manifest_path
        ) from e
    if not isinstance(content, dict):
        raise VendorManifestError(
            f"Vendor manifest is not a JSON object: {manifest_path}",
            path=manifest_path,
        )

    return VendorManifest(
        name=library.name,
        directory=library.directory,
        context=lib_context,
        manifest_path=manifest_path,
        content=content,
        asset_files=collect_library_bundles(lib_context),
    )


def vendor_urls(manifest: VendorManifest | None, public_path: str) -> list[str]:
    """Script URLs of the vendor library bundles.

    Args:
        manifest: Vendor manifest, or None when no vendor library is used.
        public_path: Public path assets are served from.

    Returns:
        ``public_path`` followed by ``<directory>/<file>`` per bundle.
    """
    if manifest is None:
        return []
    return [f"{public_path}{url_join(manifest.directory, f)}" for f in manifest.asset_files]


def run_vendor_stage(
    config: BuildConfiguration,
    compiler: Compiler,
    reporter: BuildReporter,
) -> VendorStageResult:
    """Pre-build the vendor library.

    Args:
        config: Build configuration with non-empty library settings.
        compiler: Compiler to run.
        reporter: Where to print.

    Returns:
        VendorStageResult. Its manifest is set only for a clean build.

    Raises:
        ValueError: If the configuration has no library settings.
    """
    library = config.build.library
    if library is None:
        raise ValueError("vendor stage requires library settings")
    lib_context = library_context(config, library)
    lib_context.mkdir(parents=True, exist_ok=True)

    logger.info(
        "Building vendor library %s (%d modules) into %s",
        library.name,
        len(library.modules),
        lib_context,
    )
    result = compile_once(compiler, vendor_layer(lib_context, config.build, library))
    outcome = settle_compile_result(result, Stage.VENDOR, reporter)
    if not outcome.ok:
        return VendorStageResult(outcome=outcome)

    try:
        manifest = read_vendor_manifest(lib_context, library)
    except VendorManifestError as e:
        logger.error("%s", e)
        reporter.fail("Compile library failed!")
        reporter.error(e)
        return VendorStageResult(outcome=BuildOutcome.failure([str(e)]))

    logger.info("Vendor library bundles: %s", ", ".join(manifest.asset_files) or "(none)")
    return VendorStageResult(outcome=outcome, manifest=manifest)


def load_existing_manifest(config: BuildConfiguration) -> VendorManifest | None:
    """Reuse the vendor manifest left by an earlier application build.

    Args:
        config: Build configuration (any kind).

    Returns:
        VendorManifest, or None when no library is configured or none
        has been built yet.
    """
    library = config.build.library
    if library is None or library.is_empty:
        return None
    lib_context = library_context(config, library)
    try:
        return read_vendor_manifest(lib_context, library)
    except VendorManifestError as e:
        logger.info("No usable vendor library for this build: %s", e)
        return None


__all__ = [
    "LIBRARY_BUNDLE_PATTERN",
    "VendorManifest",
    "VendorManifestError",
    "VendorStageResult",
    "collect_library_bundles",
    "library_context",
    "load_existing_manifest",
    "read_vendor_manifest",
    "run_vendor_stage",
    "url_join",
    "vendor_applies",
    "vendor_urls",
]
