"""Thin CLI wrapper for frontbuild.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from frontbuild import __version__
from frontbuild.config import Settings, get_settings, print_settings_json

app = typer.Typer(
    name="frontbuild",
    help="frontbuild - build multi-module front-end applications",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"frontbuild version {__version__}")
        raise typer.Exit()


def _configure_logging(settings: Settings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """frontbuild - build multi-module front-end applications."""


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(
            print_settings_json(settings), soft_wrap=True, markup=False, highlight=False
        )
    else:
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Bundler:[/bold]")
        console.print(f"  Compiler command:    {settings.compiler_command}")
        console.print(f"  Keep config file:    {settings.keep_compiler_config}")
        console.print()
        console.print("[bold]Project layout:[/bold]")
        console.print(f"  App config file:     {settings.app_config_file}")
        console.print(f"  Module config file:  {settings.module_config_file}")
        console.print(f"  Page directory:      {settings.page_directory}")
        console.print(f"  Sitemap template:    {settings.sitemap_template}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Log level:           {settings.log_level}")


@app.command()
def build(
    modules: Annotated[
        list[str] | None,
        typer.Argument(help="Modules to build (applications only; default: all)"),
    ] = None,
    path: Annotated[
        Path,
        typer.Option("--path", "-p", help="Application or module directory"),
    ] = Path("."),
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Build an application (all or selected modules) or a single module."""
    from frontbuild.builds.report import BuildReporter
    from frontbuild.builds.service import NoEntriesError, build_directory
    from frontbuild.project.io import ConfigurationError

    settings = get_settings()
    _configure_logging(settings, verbose)

    try:
        report = build_directory(
            path,
            modules,
            settings,
            reporter=BuildReporter(console),
        )
    except ConfigurationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None
    except NoEntriesError:
        raise typer.Exit(code=1) from None

    if not report.succeeded:
        raise typer.Exit(code=1)


@app.command()
def pages(
    modules: Annotated[
        list[str] | None,
        typer.Argument(help="Modules to inspect (applications only; default: all)"),
    ] = None,
    path: Annotated[
        Path,
        typer.Option("--path", "-p", help="Application or module directory"),
    ] = Path("."),
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show the entries and pages a build would compile, without building."""
    from frontbuild.builds.service import select_modules
    from frontbuild.project.io import ConfigurationError, load_build_configuration
    from frontbuild.project.pages import get_entry, get_page_html
    from frontbuild.types import BuildKind

    settings = get_settings()
    try:
        build_config = load_build_configuration(path, settings)
        if build_config.kind == BuildKind.NONE:
            console.print("[red]The directory is not an app or a module[/red]")
            raise typer.Exit(code=1)
        selected = select_modules(build_config, modules)
    except ConfigurationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    entry = get_entry(build_config, selected, settings.page_directory)
    html_pages = get_page_html(build_config, selected, settings.page_directory)

    if json_output:
        output = {
            "kind": build_config.kind.value,
            "modules": selected,
            "entry": entry,
            "pages": {
                module: {page: info.model_dump() for page, info in module_pages.items()}
                for module, module_pages in html_pages.items()
            },
        }
        console.print(
            json.dumps(output, indent=2), soft_wrap=True, markup=False, highlight=False
        )
        return

    if not entry:
        console.print("[yellow]No entries found[/yellow]")
        return

    console.print(f"[bold]Found {len(entry)} entr{'y' if len(entry) == 1 else 'ies'}:[/bold]")
    for name, files in entry.items():
        console.print(f"  [green]{name}[/green]")
        for file in files:
            console.print(f"    {file}")
        module, _, page = name.partition("/")
        info = html_pages.get(module, {}).get(page)
        if info is not None:
            console.print(f"    Page: {module}/{info.filename} (from {info.filepath})")


if __name__ == "__main__":
    app()
