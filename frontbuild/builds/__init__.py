"""Build orchestration module.

This module handles:
- Configuration layers and directive assembly
- The optional vendor library pre-build
- The main application bundle
- Classification and rendering of bundler results
"""

from frontbuild.builds.service import NoEntriesError, build_directory, run_build

__all__ = ["NoEntriesError", "build_directory", "run_build"]
