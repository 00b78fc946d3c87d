"""Bundler plugin directives.

Directives are plain data attached to the ``plugins`` list of an assembled
bundler configuration. The bundler driver maps each ``kind`` to the
matching plugin of the underlying engine.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class HtmlPageDirective(BaseModel):
    """Produce one HTML file from a template.

    Attributes:
        filename: Output file, relative to the output root.
        template: Template path.
        title: Page title, if any.
        chunks: Chunks injected into the page; None injects every chunk.
        always_write_to_disk: Write even when unchanged since the last run.
        vendor_files: Vendor library script URLs injected before the chunks.
        data: Extra template data.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["html-page"] = "html-page"
    filename: str
    template: str
    title: str | None = None
    chunks: list[str] | None = None
    always_write_to_disk: bool = True
    vendor_files: list[str] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)


class VendorReferenceDirective(BaseModel):
    """Resolve vendor modules through a pre-built library manifest."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["vendor-reference"] = "vendor-reference"
    context: str
    manifest_path: str
    manifest: dict[str, Any]


class LibraryManifestDirective(BaseModel):
    """Emit a library manifest next to a vendor library bundle."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["library-manifest"] = "library-manifest"
    context: str
    path: str
    name: str


__all__ = [
    "HtmlPageDirective",
    "LibraryManifestDirective",
    "VendorReferenceDirective",
]
