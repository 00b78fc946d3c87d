"""Loading application and module configuration from disk.

This module finds out whether a directory is an application root, a module
inside an application, or neither, and loads the matching configuration
files into an immutable ``BuildConfiguration``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, ValidationError

from frontbuild.project.schema import (
    AppConfigSchema,
    BuildConfiguration,
    ModuleConfigSchema,
)
from frontbuild.types import BuildKind

if TYPE_CHECKING:
    from frontbuild.config import Settings

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a configuration file cannot be loaded or validated."""

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        code: str = "invalid_configuration",
    ) -> None:
        super().__init__(message)
        self.path = path
        self.code = code


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content as a dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping, got {type(data).__name__}")
    return data


def load_json(path: Path) -> dict[str, Any]:
    """Load a JSON file and return its contents as a dict.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed JSON content as a dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the document is not an object.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _load_model(path: Path, model: type[BaseModel]) -> Any:
    """Load a YAML or JSON file and validate it against ``model``.

    Raises:
        ConfigurationError: If the file cannot be read, parsed or validated.
    """
    try:
        if path.suffix.lower() == ".json":
            data = load_json(path)
        else:
            data = load_yaml(path)
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid {path.name}: {e}", path=path) from e
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}", path=path) from e


def load_app_config(path: Path) -> AppConfigSchema:
    """Load and validate an application configuration file."""
    result: AppConfigSchema = _load_model(path, AppConfigSchema)
    return result


def load_module_config(path: Path) -> ModuleConfigSchema:
    """Load and validate a module configuration file."""
    result: ModuleConfigSchema = _load_model(path, ModuleConfigSchema)
    return result


def load_build_configuration(
    target_dir: Path,
    settings: Settings,
) -> BuildConfiguration:
    """Detect what ``target_dir`` is and load its configuration.

    An application root contains the app configuration file. A module
    directory contains the module configuration file and sits directly
    inside an application root. Anything else is kind NONE.

    Args:
        target_dir: Directory the build was started from.
        settings: Runtime settings (configuration file names).

    Returns:
        BuildConfiguration for the directory.

    Raises:
        ConfigurationError: If a configuration file exists but is invalid.
    """
    target_dir = target_dir.resolve()
    app_file = target_dir / settings.app_config_file
    module_file = target_dir / settings.module_config_file

    if app_file.is_file():
        logger.debug("Found application configuration: %s", app_file)
        return BuildConfiguration(
            kind=BuildKind.APP,
            app_path=target_dir,
            app=load_app_config(app_file),
        )

    if module_file.is_file():
        parent_app_file = target_dir.parent / settings.app_config_file
        if not parent_app_file.is_file():
            logger.warning(
                "Module %s is not inside an application (no %s in %s)",
                target_dir.name,
                settings.app_config_file,
                target_dir.parent,
            )
            return BuildConfiguration(kind=BuildKind.NONE)
        logger.debug("Found module configuration: %s", module_file)
        module_conf = load_module_config(module_file)
        return BuildConfiguration(
            kind=BuildKind.MODULE,
            app_path=target_dir.parent,
            app=load_app_config(parent_app_file),
            module=module_conf.module,
        )

    logger.debug("No configuration found in %s", target_dir)
    return BuildConfiguration(kind=BuildKind.NONE)


__all__ = [
    "ConfigurationError",
    "load_app_config",
    "load_build_configuration",
    "load_json",
    "load_module_config",
    "load_yaml",
]
