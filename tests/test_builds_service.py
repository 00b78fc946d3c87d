"""Tests for builds/service.py module.

Tests the two-stage build sequencing end to end with a fake compiler.
"""

import json
from unittest.mock import patch

import pytest
from conftest import VENDOR_MANIFEST, RecordingCompiler, write_vendor_output

from frontbuild.builds.compiler import CompilerStats
from frontbuild.builds.directives import (
    HtmlPageDirective,
    LibraryManifestDirective,
    VendorReferenceDirective,
)
from frontbuild.builds.errors import BuildError
from frontbuild.builds.service import (
    NoEntriesError,
    build_directory,
    purge_module_outputs,
    resolve_build,
    run_build,
    select_modules,
)
from frontbuild.project.io import ConfigurationError, load_build_configuration
from frontbuild.types import BuildKind, OutcomeStatus

LIBRARY = {"name": "vendor", "directory": "lib", "modules": ["react"]}


def _vendor_configs(compiler):
    return [
        c
        for c in compiler.configs
        if any(isinstance(p, LibraryManifestDirective) for p in c.get("plugins", []))
    ]


class TestSelectModules:
    """Tests for select_modules function."""

    def test_app_defaults_to_all(self, make_app, settings):
        config = load_build_configuration(make_app({"a": ["x"], "b": ["y"]}), settings)
        assert select_modules(config) == ["a", "b"]

    def test_app_explicit_deduplicated(self, make_app, settings):
        config = load_build_configuration(make_app({"a": ["x"], "b": ["y"]}), settings)
        assert select_modules(config, ["b", "a", "b"]) == ["b", "a"]

    def test_module_builds_itself(self, make_app, settings):
        app_dir = make_app({"a": ["x"], "b": ["y"]})
        config = load_build_configuration(app_dir / "b", settings)
        assert select_modules(config, ["a"]) == ["b"]

    @pytest.mark.parametrize("name", ["..", ".", "[/bold]", "a/../.."])
    def test_invalid_explicit_name_rejected(self, make_app, settings, name):
        config = load_build_configuration(make_app({"a": ["x"]}), settings)
        with pytest.raises(ConfigurationError):
            select_modules(config, ["a", name])


class TestPurgeModuleOutputs:
    """Tests for purge_module_outputs function."""

    def test_removes_only_selected(self, make_app, settings):
        app_dir = make_app({"a": ["x"], "b": ["y"]})
        config = load_build_configuration(app_dir, settings)
        for module in ("a", "b"):
            (app_dir / "dist" / module).mkdir(parents=True)
            (app_dir / "dist" / module / "x.js").write_text("")

        removed = purge_module_outputs(config, ["a"])

        assert removed == [app_dir.resolve() / "dist" / "a"]
        assert not (app_dir / "dist" / "a").exists()
        assert (app_dir / "dist" / "b" / "x.js").exists()

    def test_idempotent(self, make_app, settings):
        """Purging twice, or purging nothing, does not fail."""
        app_dir = make_app({"a": ["x"]})
        config = load_build_configuration(app_dir, settings)
        (app_dir / "dist" / "a").mkdir(parents=True)

        purge_module_outputs(config, ["a"])
        assert purge_module_outputs(config, ["a"]) == []
        assert purge_module_outputs(config, ["missing"]) == []

    @pytest.mark.parametrize("name", ["..", ".", "../.."])
    def test_never_leaves_output_directory(self, make_app, settings, name):
        """Targets resolving to or above the output root are left alone."""
        app_dir = make_app({"a": ["x"]})
        config = load_build_configuration(app_dir, settings)
        (app_dir / "dist" / "a").mkdir(parents=True)

        assert purge_module_outputs(config, [name]) == []
        assert (app_dir / "app.yaml").exists()
        assert (app_dir / "dist" / "a").is_dir()


class TestResolveBuild:
    """Tests for resolve_build function."""

    def test_resolves_entries_and_pages(self, make_app, settings):
        config = load_build_configuration(make_app({"a": ["x", "y"]}), settings)

        resolved = resolve_build(config, ["a"], "page")

        assert set(resolved.entry) == {"a/x", "a/y"}
        assert set(resolved.pages["a"]) == {"x", "y"}
        assert resolved.modules == ("a",)

    def test_no_entries(self, make_app, settings):
        config = load_build_configuration(make_app({"a": []}), settings)

        with pytest.raises(NoEntriesError) as exc_info:
            resolve_build(config, ["a"], "page")
        assert exc_info.value.modules == ["a"]
        assert exc_info.value.code == "no_entries"


class TestRunBuild:
    """Tests for run_build function."""

    def test_unknown_directory(self, tmp_path, settings, reporter, output):
        config = load_build_configuration(tmp_path, settings)
        compiler = RecordingCompiler()

        report = run_build(config, settings=settings, compiler=compiler, reporter=reporter)

        assert report.kind == BuildKind.NONE
        assert report.succeeded is False
        assert compiler.configs == []
        text = output()
        assert "not an app or a module" in text
        assert "GoodBye!" in text

    def test_no_entries_never_compiles(self, make_app, settings, reporter, output):
        """An empty build fails before any compiler run."""
        config = load_build_configuration(make_app({"a": []}, library=LIBRARY), settings)
        compiler = RecordingCompiler()

        with pytest.raises(NoEntriesError):
            run_build(config, settings=settings, compiler=compiler, reporter=reporter)

        assert compiler.configs == []
        text = output()
        assert "No file to build" in text
        assert "GoodBye!" in text

    def test_parent_directory_selection_keeps_application(
        self, make_app, settings, reporter
    ):
        """Selecting '..' fails before anything is removed or compiled."""
        app_dir = make_app({"a": ["x"]})
        (app_dir / "dist").mkdir()
        config = load_build_configuration(app_dir, settings)
        compiler = RecordingCompiler()

        with pytest.raises(ConfigurationError):
            run_build(config, [".."], settings=settings, compiler=compiler, reporter=reporter)

        assert (app_dir / "app.yaml").exists()
        assert (app_dir / "a" / "page" / "x" / "x.js").exists()
        assert (app_dir / "dist").is_dir()
        assert compiler.configs == []

    def test_app_without_library(self, make_app, settings, reporter, output):
        config = load_build_configuration(make_app({"a": ["x"], "b": ["y"]}), settings)
        compiler = RecordingCompiler()

        report = run_build(config, settings=settings, compiler=compiler, reporter=reporter)

        assert report.succeeded is True
        assert report.vendor is None
        assert report.main.status == OutcomeStatus.SUCCESS
        assert report.modules == ["a", "b"]
        assert len(compiler.configs) == 1
        assert _vendor_configs(compiler) == []
        text = output()
        assert "Current building modules a b!" in text
        assert "Compile successfully!" in text

    def test_selected_modules_only(self, make_app, settings, reporter):
        config = load_build_configuration(make_app({"a": ["x"], "b": ["y"]}), settings)
        compiler = RecordingCompiler()

        run_build(config, ["b"], settings=settings, compiler=compiler, reporter=reporter)

        assert list(compiler.configs[0]["entry"]) == ["b/y"]

    def test_purges_previous_output(self, make_app, settings, reporter):
        app_dir = make_app({"a": ["x"]})
        stale = app_dir / "dist" / "a" / "stale.js"
        stale.parent.mkdir(parents=True)
        stale.write_text("")
        config = load_build_configuration(app_dir, settings)

        run_build(config, settings=settings, compiler=RecordingCompiler(), reporter=reporter)

        assert not stale.exists()

    def test_vendor_then_main(self, make_app, settings, reporter):
        """A clean vendor build feeds its manifest and bundles to the main build."""
        config = load_build_configuration(
            make_app({"a": ["x", "y"]}, library=LIBRARY, public_path="/static/"), settings
        )
        compiler = RecordingCompiler(on_run=write_vendor_output)

        report = run_build(config, settings=settings, compiler=compiler, reporter=reporter)

        assert report.vendor.status == OutcomeStatus.SUCCESS
        assert report.main.status == OutcomeStatus.SUCCESS
        assert len(compiler.configs) == 2
        vendor_config, main_config = compiler.configs
        assert vendor_config["entry"] == {"vendor": ["react"]}

        refs = [p for p in main_config["plugins"] if isinstance(p, VendorReferenceDirective)]
        assert len(refs) == 1
        assert refs[0].manifest == VENDOR_MANIFEST
        pages = [
            p
            for p in main_config["plugins"]
            if isinstance(p, HtmlPageDirective) and p.chunks is not None
        ]
        assert len(pages) == 2
        for page in pages:
            assert page.vendor_files == ["/static/lib/vendor.dll.js"]

    @pytest.mark.parametrize(
        "stats, status",
        [
            (CompilerStats(warnings=["deprecated api"]), OutcomeStatus.WARNING),
            (CompilerStats(errors=["cannot resolve react"]), OutcomeStatus.FAILURE),
        ],
    )
    def test_vendor_not_clean_stops(self, make_app, settings, reporter, stats, status):
        """Vendor warnings and errors both stop before the main build."""
        config = load_build_configuration(make_app(library=LIBRARY), settings)
        compiler = RecordingCompiler([stats], on_run=write_vendor_output)

        report = run_build(config, settings=settings, compiler=compiler, reporter=reporter)

        assert len(compiler.configs) == 1
        assert report.vendor.status == status
        assert report.main is None
        assert report.succeeded is False

    def test_main_reports_first_error_only(self, make_app, settings, reporter, output):
        config = load_build_configuration(make_app(), settings)
        compiler = RecordingCompiler([CompilerStats(errors=["first error", "second error"])])

        with patch("frontbuild.builds.report.print_build_error") as mock_print:
            report = run_build(config, settings=settings, compiler=compiler, reporter=reporter)

        assert report.main.status == OutcomeStatus.FAILURE
        assert report.succeeded is False
        mock_print.assert_called_once()
        err = mock_print.call_args.args[0]
        assert isinstance(err, BuildError)
        assert "first error" in err.message
        assert "second error" not in err.message
        assert "Compile failed!" in output()

    def test_main_warnings_still_succeed(self, make_app, settings, reporter):
        config = load_build_configuration(make_app(), settings)
        compiler = RecordingCompiler([CompilerStats(warnings=["unused var"])])

        report = run_build(config, settings=settings, compiler=compiler, reporter=reporter)

        assert report.main.status == OutcomeStatus.WARNING
        assert report.succeeded is True

    def test_module_reuses_existing_library(self, make_app, settings, reporter, output):
        """A module build skips the vendor stage but references an earlier library."""
        app_dir = make_app({"a": ["x"], "b": ["y"]}, library=LIBRARY)
        lib_dir = app_dir / "dist" / "lib"
        lib_dir.mkdir(parents=True)
        (lib_dir / "vendor-manifest.json").write_text(json.dumps(VENDOR_MANIFEST))
        (lib_dir / "vendor.dll.js").write_text("")
        config = load_build_configuration(app_dir / "a", settings)
        compiler = RecordingCompiler()

        report = run_build(config, settings=settings, compiler=compiler, reporter=reporter)

        assert report.kind == BuildKind.MODULE
        assert report.vendor is None
        assert len(compiler.configs) == 1
        main_config = compiler.configs[0]
        assert list(main_config["entry"]) == ["a/x"]
        assert any(isinstance(p, VendorReferenceDirective) for p in main_config["plugins"])
        assert "Current building module a!" in output()

    def test_module_without_library_build(self, make_app, settings, reporter):
        app_dir = make_app({"a": ["x"]}, library=LIBRARY)
        config = load_build_configuration(app_dir / "a", settings)
        compiler = RecordingCompiler()

        report = run_build(config, settings=settings, compiler=compiler, reporter=reporter)

        assert report.succeeded is True
        assert not any(
            isinstance(p, VendorReferenceDirective) for p in compiler.configs[0]["plugins"]
        )


class TestBuildDirectory:
    """Tests for build_directory function."""

    def test_uses_given_compiler(self, make_app, settings, reporter):
        compiler = RecordingCompiler()

        report = build_directory(make_app(), None, settings, compiler=compiler, reporter=reporter)

        assert report.succeeded is True
        assert len(compiler.configs) == 1

    def test_default_compiler_from_settings(self, make_app, settings, reporter):
        app_dir = make_app()
        fake = RecordingCompiler()

        with patch(
            "frontbuild.builds.service.SubprocessCompiler", return_value=fake
        ) as mock_cls:
            build_directory(app_dir, None, settings, reporter=reporter)

        mock_cls.assert_called_once_with(
            settings.compiler_command,
            cwd=app_dir.resolve(),
            keep_config=settings.keep_compiler_config,
        )
        assert len(fake.configs) == 1
