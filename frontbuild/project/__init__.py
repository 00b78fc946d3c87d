"""Application project module.

This module handles:
- Validation of app and module configuration files (YAML/JSON)
- Detecting whether a directory is an app, a module, or neither
- Entry point and HTML page discovery
"""

from frontbuild.project.io import ConfigurationError, load_build_configuration
from frontbuild.project.pages import get_entry, get_page_html
from frontbuild.project.schema import (
    AppConfigSchema,
    BuildConfiguration,
    BuildSettingsSchema,
    LibrarySchema,
    ModuleConfigSchema,
    PageInfo,
)

__all__ = [
    "AppConfigSchema",
    "BuildConfiguration",
    "BuildSettingsSchema",
    "ConfigurationError",
    "LibrarySchema",
    "ModuleConfigSchema",
    "PageInfo",
    "get_entry",
    "get_page_html",
    "load_build_configuration",
]
