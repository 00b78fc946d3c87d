"""Generated bundler configuration layers.

This module handles:
- The base layer (framework and platform defaults)
- The production layer (optimisation settings)
- The vendor library layer used by the pre-build stage
- Deterministic merging of layers with user overrides
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from frontbuild.builds.directives import LibraryManifestDirective
from frontbuild.project.schema import BuildSettingsSchema, LibrarySchema

BundleLayer = dict[str, Any]

FRAMEWORK_EXTENSIONS: dict[str, list[str]] = {
    "react": [".js", ".jsx", ".ts", ".tsx", ".json"],
    "nerv": [".js", ".jsx", ".ts", ".tsx", ".json"],
    "vue": [".js", ".ts", ".vue", ".json"],
    "base": [".js", ".json"],
}

FRAMEWORK_ALIASES: dict[str, dict[str, str]] = {
    "nerv": {"react": "nervjs", "react-dom": "nervjs"},
    "vue": {"vue$": "vue/dist/vue.esm.js"},
}

# Design width the mobile pxtorem transform converts against
MOBILE_ROOT_VALUE = 40


def merge_layers(*layers: Mapping[str, Any]) -> BundleLayer:
    """Deep-merge configuration layers, later layers winning.

    Mappings merge key by key, lists concatenate in layer order, and any
    other value is replaced. Inputs are not modified.

    Args:
        *layers: Layers in increasing precedence.

    Returns:
        New merged layer.
    """
    merged: BundleLayer = {}
    for layer in layers:
        for key, value in layer.items():
            if key not in merged:
                merged[key] = copy.deepcopy(value)
                continue
            current = merged[key]
            if isinstance(current, dict) and isinstance(value, Mapping):
                merged[key] = merge_layers(current, value)
            elif isinstance(current, list) and isinstance(value, list):
                merged[key] = current + copy.deepcopy(value)
            else:
                merged[key] = copy.deepcopy(value)
    return merged


def _script_rule(framework: str) -> dict[str, Any]:
    presets: list[Any] = [["@babel/preset-env", {"modules": False}]]
    plugins: list[Any] = []
    if framework in ("react", "nerv"):
        presets.append("@babel/preset-react")
    if framework == "nerv":
        plugins.append(["@babel/plugin-transform-react-jsx", {"pragma": "Nerv.createElement"}])
    return {
        "test": r"\.(js|jsx|ts|tsx)$",
        "exclude": r"node_modules",
        "use": [
            {
                "loader": "babel-loader",
                "options": {"presets": presets, "plugins": plugins},
            }
        ],
    }


def _style_rule(platform: str) -> dict[str, Any]:
    postcss_plugins: list[Any] = ["autoprefixer"]
    if platform == "mobile":
        postcss_plugins.append(
            ["postcss-pxtorem", {"rootValue": MOBILE_ROOT_VALUE, "propList": ["*"]}]
        )
    return {
        "test": r"\.(css|scss|sass)$",
        "use": [
            "style-loader",
            "css-loader",
            {"loader": "postcss-loader", "options": {"plugins": postcss_plugins}},
            "sass-loader",
        ],
    }


def _asset_rule(chunk_directory: str) -> dict[str, Any]:
    return {
        "test": r"\.(png|jpe?g|gif|svg|woff2?|eot|ttf)$",
        "loader": "url-loader",
        "options": {"limit": 2000, "name": f"{chunk_directory}/[name].[hash:8].[ext]"},
    }


def base_layer(
    app_path: Path,
    build: BuildSettingsSchema,
    template: str,
    platform: str,
    framework: str,
) -> BundleLayer:
    """Framework and platform defaults shared by every build.

    Args:
        app_path: Application root.
        build: Output settings.
        template: Project template name.
        platform: Target platform (pc, mobile).
        framework: UI framework.

    Returns:
        Base configuration layer.
    """
    rules = [_script_rule(framework), _style_rule(platform), _asset_rule(build.chunk_directory)]
    if framework == "vue":
        rules.insert(0, {"test": r"\.vue$", "loader": "vue-loader"})

    return {
        "mode": "none",
        "context": str(app_path),
        "target": "web",
        "resolve": {
            "extensions": list(FRAMEWORK_EXTENSIONS.get(framework, FRAMEWORK_EXTENSIONS["base"])),
            "alias": dict(FRAMEWORK_ALIASES.get(framework, {})),
            "modules": [str(app_path / "node_modules"), "node_modules"],
        },
        "module": {"rules": rules},
        "define": {
            "process.env.TEMPLATE": json.dumps(template),
            "process.env.PLATFORM": json.dumps(platform),
            "process.env.FRAMEWORK": json.dumps(framework),
        },
        "plugins": [],
    }


def production_layer(
    app_path: Path,
    build: BuildSettingsSchema,
    template: str,
    platform: str,
    framework: str,
) -> BundleLayer:
    """Optimisation settings for production bundles."""
    return {
        "mode": "production",
        "devtool": False,
        "bail": False,
        "optimization": {
            "minimize": True,
            "splitChunks": {"chunks": "async"},
        },
        "extractCss": {
            "filename": "[name].css",
            "chunkFilename": f"{build.chunk_directory}/[name].chunk.css",
        },
        "define": {"process.env.NODE_ENV": json.dumps("production")},
    }


def vendor_layer(
    lib_context: Path,
    build: BuildSettingsSchema,
    library: LibrarySchema,
) -> BundleLayer:
    """Configuration that pre-builds the shared vendor library.

    The library's modules are bundled into ``<name>.dll.js`` and described
    by ``<name>-manifest.json``, both inside ``lib_context``.
    """
    return {
        "mode": "production",
        "context": str(lib_context),
        "entry": {library.name: list(library.modules)},
        "output": {
            "path": str(lib_context),
            "filename": "[name].dll.js",
            "library": "[name]_library",
        },
        "optimization": {"minimize": True},
        "define": {"process.env.NODE_ENV": json.dumps("production")},
        "plugins": [
            LibraryManifestDirective(
                context=str(lib_context),
                path=str(lib_context / "[name]-manifest.json"),
                name="[name]_library",
            )
        ],
    }


__all__ = [
    "BundleLayer",
    "FRAMEWORK_ALIASES",
    "FRAMEWORK_EXTENSIONS",
    "base_layer",
    "merge_layers",
    "production_layer",
    "vendor_layer",
]
