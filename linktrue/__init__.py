"""
linktrue — on-chain style username & link-profile registry.

Each address may claim one username and attach an ordered, bounded set of
key/value links to it. The common entry points are lazily re-exported so that
`import linktrue` stays cheap:

    from linktrue import ProfileRegistry
    reg = ProfileRegistry()
    reg.register_user_profile(alice, "alice", ["github"], ["https://github.com/alice"])
    reg.get_profile("alice")   # ['github', 'https://github.com/alice', 'alice']
"""

from __future__ import annotations

from importlib import import_module as _imp
from typing import Any, Dict, Tuple

from .version import __version__

# Map of public attributes → (submodule, symbol)
_exports: Dict[str, Tuple[str, str]] = {
    "ProfileRegistry": ("registry", "ProfileRegistry"),
    "ProfileStore": ("state.store", "ProfileStore"),
    "Profile": ("types.profile", "Profile"),
    "Item": ("types.profile", "Item"),
    "Address": ("types.address", "Address"),
    "ZERO_ADDRESS": ("types.address", "ZERO_ADDRESS"),
    "validate_username": ("validate", "validate_username"),
    "is_valid_username": ("validate", "is_valid_username"),
    "RegistryConfig": ("config", "RegistryConfig"),
    "load_config": ("config", "load_config"),
    "ProfileError": ("errors", "ProfileError"),
}

__all__ = tuple(["__version__", *_exports.keys()])


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
