"""
linktrue.state — state subsystem (store, journal, events, snapshots).

Common symbols are lazily re-exported from their submodules on first access.

Submodules:
- store:     ProfileStore, the indexes and their mutation primitives
- journal:   journaling writes, checkpoints, revert/commit
- events:    event sink backends
- snapshot:  JSON export/import of a whole store
"""

from __future__ import annotations

from importlib import import_module as _imp
from typing import Any, Dict, Tuple

# Map of public attributes → (submodule, symbol)
_exports: Dict[str, Tuple[str, str]] = {
    "ProfileStore": ("store", "ProfileStore"),
    "Journal": ("journal", "Journal"),
    "EventRecord": ("events", "EventRecord"),
    "EventSink": ("events", "EventSink"),
    "InMemoryEventSink": ("events", "InMemoryEventSink"),
    "JsonlEventSink": ("events", "JsonlEventSink"),
    "NullEventSink": ("events", "NullEventSink"),
    "export_state": ("snapshot", "export_state"),
    "import_state": ("snapshot", "import_state"),
}

__all__ = tuple(_exports.keys())


def __getattr__(name: str) -> Any:
    """
    Lazy attribute loader to avoid import-time dependency tangles.
    """
    if name in _exports:
        submod, symbol = _exports[name]
        mod = _imp(f"{__name__}.{submod}")
        return getattr(mod, symbol)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover
    return sorted(list(globals().keys()) + list(__all__))
