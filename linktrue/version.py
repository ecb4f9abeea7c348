"""
linktrue.version — semantic version string.

Tiny and dependency-free so it can be imported very early (CLI startup,
packaging).
"""

# Bump this when making a tagged release. Use semver (major.minor.patch).
__version__ = "0.3.0"

__all__ = ["__version__"]
