"""
linktrue.cli — command-line front end for a local registry state file.

Entry point: `linktrue` → linktrue.cli.main:main
"""

from .main import app

__all__ = ["app"]
