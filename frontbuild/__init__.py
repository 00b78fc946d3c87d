"""frontbuild - two-stage build orchestration for multi-module front-end apps.

This package drives an external bundler through an optional shared vendor
library pre-build followed by the main application bundle, and turns the
bundler's results into actionable terminal output.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
