"""Shared fixtures for frontbuild tests.

Provides a recording fake compiler and a factory for application trees
on disk.
"""

import io
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml
from rich.console import Console

from frontbuild.builds.compiler import CompileCallback, CompilerStats
from frontbuild.builds.directives import LibraryManifestDirective
from frontbuild.builds.report import BuildReporter
from frontbuild.config import Settings


class RecordingCompiler:
    """Fake compiler that records configurations and replays canned results.

    Each run pops the next result: a CompilerStats is delivered as stats,
    an exception as a transport error. With no results left the run is
    clean. ``on_run`` is called with the configuration before completing.
    """

    def __init__(
        self,
        results: list[CompilerStats | BaseException] | None = None,
        on_run: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.results = list(results or [])
        self.on_run = on_run
        self.configs: list[dict[str, Any]] = []

    def run(self, config: dict[str, Any], callback: CompileCallback) -> None:
        self.configs.append(config)
        if self.on_run is not None:
            self.on_run(config)
        result = self.results.pop(0) if self.results else CompilerStats()
        if isinstance(result, BaseException):
            callback(result, None)
        else:
            callback(None, result)


VENDOR_MANIFEST = {
    "name": "vendor_library",
    "content": {"./node_modules/react/index.js": {"id": 1}},
}


def write_vendor_output(config: dict[str, Any]) -> None:
    """Emit what a real bundler writes for a vendor library configuration."""
    if not any(isinstance(p, LibraryManifestDirective) for p in config.get("plugins", [])):
        return
    out = Path(config["output"]["path"])
    name = next(iter(config["entry"]))
    (out / f"{name}-manifest.json").write_text(json.dumps(VENDOR_MANIFEST))
    (out / f"{name}.dll.js").write_text("var vendor_library;")


@pytest.fixture
def settings() -> Settings:
    """Default settings."""
    return Settings()


@pytest.fixture
def reporter() -> BuildReporter:
    """Reporter printing into a string buffer (see ``output``)."""
    return BuildReporter(Console(file=io.StringIO(), width=200))


@pytest.fixture
def output(reporter: BuildReporter) -> Callable[[], str]:
    """Return everything the reporter printed so far."""

    def _output() -> str:
        buffer = reporter.console.file
        assert isinstance(buffer, io.StringIO)
        return buffer.getvalue()

    return _output


@pytest.fixture
def make_app(tmp_path: Path) -> Callable[..., Path]:
    """Create an application tree and return its root.

    Pages get an entry script ``<page>.js`` and, unless ``html`` is False,
    a template ``<page>.html``.
    """

    def _make(
        modules: dict[str, list[str]] | None = None,
        library: dict[str, Any] | None = None,
        overrides: dict[str, Any] | None = None,
        framework: str = "react",
        platform: str = "pc",
        public_path: str = "/",
        html: bool = True,
    ) -> Path:
        if modules is None:
            modules = {"home": ["index"]}
        app_dir = tmp_path / "app"
        app_dir.mkdir(exist_ok=True)

        build: dict[str, Any] = {
            "output_root": "dist",
            "public_path": public_path,
            "chunk_directory": "chunk",
        }
        if library is not None:
            build["library"] = library
        if overrides is not None:
            build["overrides"] = overrides
        data = {
            "app": "demo",
            "framework": framework,
            "platform": platform,
            "modules": list(modules),
            "build": build,
        }
        (app_dir / "app.yaml").write_text(yaml.safe_dump(data))

        for module, pages in modules.items():
            module_dir = app_dir / module
            module_dir.mkdir(exist_ok=True)
            (module_dir / "module.yaml").write_text(f"module: {module}\n")
            for page in pages:
                page_dir = module_dir / "page" / page
                page_dir.mkdir(parents=True, exist_ok=True)
                (page_dir / f"{page}.js").write_text("console.log('page')\n")
                if html:
                    (page_dir / f"{page}.html").write_text("<html></html>\n")
        return app_dir

    return _make
