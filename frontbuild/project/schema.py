"""Pydantic models for application and module configuration.

An application root holds an ``app.yaml`` describing the application and
how it is built; every module directory below it may hold a ``module.yaml``
naming the module. These models validate both files and produce the
immutable ``BuildConfiguration`` handed to the orchestrator.
"""

import re
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from frontbuild.types import BuildKind

# Module names become directory names and entry-name prefixes
MODULE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.\-]*$")

SUPPORTED_FRAMEWORKS = {"base", "react", "nerv", "vue"}
SUPPORTED_PLATFORMS = {"pc", "mobile"}


def validate_module_name(v: str) -> str:
    """Validate a module name.

    Names start with a letter or digit, so ``.`` and ``..`` never name
    a module.

    Raises:
        ValueError: If the name is not a valid module name.
    """
    if not MODULE_NAME_PATTERN.match(v):
        raise ValueError(
            "module name must start with a letter or digit and contain only "
            f"letters, digits, '_', '.' or '-', got '{v}'"
        )
    return v


class LibrarySchema(BaseModel):
    """Schema for the shared vendor library.

    Attributes:
        name: Library bundle name; also names the manifest file.
        directory: Output directory below the output root.
        modules: Packages bundled into the library.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(default="vendor", min_length=1)
    directory: str = Field(default="lib", min_length=1)
    modules: tuple[str, ...] = Field(default=(), description="Bundled packages")

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to pre-build."""
        return not self.modules

    @property
    def manifest_filename(self) -> str:
        return f"{self.name}-manifest.json"


class BuildSettingsSchema(BaseModel):
    """Schema for per-application output settings.

    Attributes:
        output_root: Output directory, relative to the application root.
        public_path: URL prefix the emitted assets are served from.
        chunk_directory: Directory (below the output root) for split chunks.
        library: Optional shared vendor library settings.
        overrides: Bundler configuration merged over the generated layers.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    output_root: str = Field(default="dist", min_length=1)
    public_path: str = Field(default="/")
    chunk_directory: str = Field(default="chunk", min_length=1)
    library: LibrarySchema | None = Field(default=None)
    overrides: dict[str, Any] = Field(default_factory=dict)

    @property
    def has_library(self) -> bool:
        return self.library is not None and not self.library.is_empty


class AppConfigSchema(BaseModel):
    """Schema for ``app.yaml``.

    Attributes:
        app: Application name, used as the sitemap title.
        template: Project template the application was created from.
        framework: UI framework (base, react, nerv, vue).
        platform: Target platform (pc, mobile).
        modules: Every module of the application, in build order.
        build: Output settings.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    app: Annotated[str, Field(min_length=1, max_length=255)]
    template: str = Field(default="simple")
    framework: str = Field(default="react")
    platform: str = Field(default="pc")
    modules: tuple[str, ...] = Field(default=())
    build: BuildSettingsSchema = Field(default_factory=BuildSettingsSchema)

    @field_validator("framework")
    @classmethod
    def validate_framework(cls, v: str) -> str:
        """Validate framework is supported."""
        if v not in SUPPORTED_FRAMEWORKS:
            raise ValueError(
                f"framework must be one of {sorted(SUPPORTED_FRAMEWORKS)}, got '{v}'"
            )
        return v

    @field_validator("platform")
    @classmethod
    def validate_platform(cls, v: str) -> str:
        """Validate platform is supported."""
        if v not in SUPPORTED_PLATFORMS:
            raise ValueError(
                f"platform must be one of {sorted(SUPPORTED_PLATFORMS)}, got '{v}'"
            )
        return v

    @field_validator("modules")
    @classmethod
    def validate_modules(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Validate module names and drop duplicates, keeping order."""
        seen: list[str] = []
        for name in v:
            validate_module_name(name)
            if name not in seen:
                seen.append(name)
        return tuple(seen)


class ModuleConfigSchema(BaseModel):
    """Schema for ``module.yaml``."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    module: Annotated[str, Field(min_length=1, max_length=255)]
    description: str | None = Field(default=None)

    @field_validator("module")
    @classmethod
    def validate_module(cls, v: str) -> str:
        return validate_module_name(v)


class BuildConfiguration(BaseModel):
    """Immutable per-invocation build configuration.

    Attributes:
        kind: Whether the target is an application, a module, or neither.
        app_path: Application root directory (None for kind NONE).
        app: Parsed application configuration (None for kind NONE).
        module: Module being built when kind is MODULE.
    """

    model_config = ConfigDict(frozen=True)

    kind: BuildKind
    app_path: Path | None = None
    app: AppConfigSchema | None = None
    module: str | None = None

    @model_validator(mode="after")
    def check_kind(self) -> "BuildConfiguration":
        """Applications and modules carry an application; only modules name a module."""
        if self.kind == BuildKind.NONE:
            if self.app_path is not None or self.app is not None or self.module is not None:
                raise ValueError("an unknown target carries no application or module")
            return self
        if self.app_path is None or self.app is None:
            raise ValueError(f"a {self.kind.value} target requires app_path and app")
        if self.kind == BuildKind.MODULE and self.module is None:
            raise ValueError("a module target requires module")
        if self.kind == BuildKind.APP and self.module is not None:
            raise ValueError("an app target does not name a module")
        return self

    @property
    def application(self) -> AppConfigSchema:
        if self.app is None:
            raise ValueError("application settings are not available for an unknown target")
        return self.app

    @property
    def root(self) -> Path:
        """Application root directory."""
        if self.app_path is None:
            raise ValueError("application root is not available for an unknown target")
        return self.app_path

    @property
    def build(self) -> BuildSettingsSchema:
        return self.application.build

    @property
    def output_path(self) -> Path:
        """Absolute output root of the application."""
        return self.root / self.build.output_root


class PageInfo(BaseModel):
    """One HTML page of a module.

    Attributes:
        filename: Output file name, relative to the module output directory.
        filepath: Template the page is rendered from.
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    filepath: str


__all__ = [
    "AppConfigSchema",
    "BuildConfiguration",
    "BuildSettingsSchema",
    "LibrarySchema",
    "ModuleConfigSchema",
    "PageInfo",
    "SUPPORTED_FRAMEWORKS",
    "SUPPORTED_PLATFORMS",
    "validate_module_name",
]
