"""
linktrue.config — runtime configuration for the profile registry.

This module centralizes knobs for:
  • Limits (items per profile, username length)
  • Reserved usernames (exact names and forbidden substrings)
  • Paths (CLI state file, optional JSONL event log)
  • Logging (level, format)

Configuration may be provided via environment variables. Defaults match the
deployed registry so a local run behaves identically out of the box.

Environment variables (all optional):
  LINKTRUE_MAX_ITEMS             -> integer (default: 50)
  LINKTRUE_MAX_USERNAME_LENGTH   -> integer (default: 30)
  LINKTRUE_RESERVED_NAMES        -> comma list (default: admin,system,linktrue)
  LINKTRUE_RESERVED_SUBSTRINGS   -> comma list (default: link_true,link__true)
  LINKTRUE_EVENT_LOG             -> path of a JSONL event log (default: unset)
  LINKTRUE_STATE_FILE            -> CLI state file (default: ~/.linktrue/state.json)
  LINKTRUE_LOG_LEVEL             -> DEBUG/INFO/... (default: INFO)
  LINKTRUE_LOG_FORMAT            -> json|text (default: auto)

Programmatic usage:
    from linktrue.config import get_config
    cfg = get_config()
    if len(items) > cfg.limits.max_items:
        ...
"""

from __future__ import annotations

import os
import re
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, FrozenSet, Mapping, Optional, Tuple, Union

DEFAULT_MAX_ITEMS = 50
DEFAULT_MAX_USERNAME_LENGTH = 30
DEFAULT_RESERVED_NAMES: Tuple[str, ...] = ("admin", "system", "linktrue")
DEFAULT_RESERVED_SUBSTRINGS: Tuple[str, ...] = ("link_true", "link__true")
DEFAULT_STATE_FILE = Path.home() / ".linktrue" / "state.json"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}
_TOKEN_RE = re.compile(r"^[a-z0-9_]+$")

# ----------------------------- helpers -------------------------------------


def _int_env(value: Union[str, int, None], default: int, *, name: str) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    v = value.strip()
    if v == "":
        return default
    try:
        return int(v, 10)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _list_env(value: Optional[str], default: Tuple[str, ...]) -> Tuple[str, ...]:
    """Split a comma list; empty entries are dropped, order is kept."""
    if value is None:
        return default
    out = []
    for part in value.split(","):
        token = part.strip()
        if token and token not in out:
            out.append(token)
    return tuple(out)


# ------------------------------ dataclasses ---------------------------------


@dataclass(frozen=True)
class Limits:
    max_items: int = DEFAULT_MAX_ITEMS
    max_username_length: int = DEFAULT_MAX_USERNAME_LENGTH


@dataclass(frozen=True)
class ReservedNames:
    exact: FrozenSet[str] = field(default_factory=lambda: frozenset(DEFAULT_RESERVED_NAMES))
    substrings: Tuple[str, ...] = DEFAULT_RESERVED_SUBSTRINGS

    def matches(self, name: str) -> bool:
        if name in self.exact:
            return True
        return any(s in name for s in self.substrings)


@dataclass(frozen=True)
class RegistryConfig:
    limits: Limits = field(default_factory=Limits)
    reserved: ReservedNames = field(default_factory=ReservedNames)
    state_file: Path = DEFAULT_STATE_FILE
    event_log_path: Optional[Path] = None
    log_level: str = "INFO"
    log_format: Optional[str] = None  # None = auto

    def to_dict(self) -> Dict[str, object]:
        d = asdict(self)
        d["reserved"] = {
            "exact": sorted(self.reserved.exact),
            "substrings": list(self.reserved.substrings),
        }
        d["state_file"] = str(self.state_file)
        d["event_log_path"] = str(self.event_log_path) if self.event_log_path else None
        return d


# ------------------------------ loader --------------------------------------


def _validate(cfg: RegistryConfig) -> RegistryConfig:
    l = cfg.limits
    if l.max_items <= 0:
        raise ValueError("max_items must be > 0")
    if l.max_username_length <= 0:
        raise ValueError("max_username_length must be > 0")
    for token in (*cfg.reserved.exact, *cfg.reserved.substrings):
        if not _TOKEN_RE.match(token):
            raise ValueError(f"reserved token {token!r} must match [a-z0-9_]+")
    if cfg.log_level not in _LOG_LEVELS:
        raise ValueError(f"unknown log level: {cfg.log_level!r}")
    if cfg.log_format not in (None, "json", "text"):
        raise ValueError(f"log format must be json or text, got {cfg.log_format!r}")
    return cfg


def load_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    overrides: Optional[Mapping[str, object]] = None,
) -> RegistryConfig:
    """
    Build a RegistryConfig from environment and optional overrides.

    Args:
        env: mapping to read variables from (default: os.environ)
        overrides: explicit field overrides; keys support:
          'max_items', 'max_username_length', 'reserved_names',
          'reserved_substrings', 'state_file', 'event_log_path',
          'log_level', 'log_format'
    """
    env = os.environ if env is None else env
    overrides = dict(overrides or {})

    limits = Limits(
        max_items=_int_env(
            overrides.get("max_items", env.get("LINKTRUE_MAX_ITEMS")),  # type: ignore[arg-type]
            DEFAULT_MAX_ITEMS,
            name="LINKTRUE_MAX_ITEMS",
        ),
        max_username_length=_int_env(
            overrides.get("max_username_length", env.get("LINKTRUE_MAX_USERNAME_LENGTH")),  # type: ignore[arg-type]
            DEFAULT_MAX_USERNAME_LENGTH,
            name="LINKTRUE_MAX_USERNAME_LENGTH",
        ),
    )

    if "reserved_names" in overrides:
        exact = tuple(overrides["reserved_names"])  # type: ignore[arg-type]
    else:
        exact = _list_env(env.get("LINKTRUE_RESERVED_NAMES"), DEFAULT_RESERVED_NAMES)
    if "reserved_substrings" in overrides:
        subs = tuple(overrides["reserved_substrings"])  # type: ignore[arg-type]
    else:
        subs = _list_env(env.get("LINKTRUE_RESERVED_SUBSTRINGS"), DEFAULT_RESERVED_SUBSTRINGS)

    state_file = Path(
        overrides.get("state_file", env.get("LINKTRUE_STATE_FILE") or DEFAULT_STATE_FILE)  # type: ignore[arg-type]
    ).expanduser()

    event_log = overrides.get("event_log_path", env.get("LINKTRUE_EVENT_LOG") or None)
    event_log_path = Path(event_log).expanduser() if event_log else None  # type: ignore[arg-type]

    log_level = str(overrides.get("log_level", env.get("LINKTRUE_LOG_LEVEL", "INFO"))).strip().upper()
    fmt = overrides.get("log_format", env.get("LINKTRUE_LOG_FORMAT"))
    log_format = str(fmt).strip().lower() if fmt else None

    return _validate(
        RegistryConfig(
            limits=limits,
            reserved=ReservedNames(exact=frozenset(exact), substrings=subs),
            state_file=state_file,
            event_log_path=event_log_path,
            log_level=log_level,
            log_format=log_format,
        )
    )


@lru_cache(maxsize=1)
def get_config() -> RegistryConfig:
    """
    Cached global config. Suitable for application bootstraps and module-level consumers.
    """
    return load_config()


def reset_config_cache() -> None:
    """Forget the cached config (tests that tweak the environment)."""
    get_config.cache_clear()


def summary(cfg: Optional[RegistryConfig] = None) -> str:
    """
    Return a human-friendly one-line summary of the registry knobs.
    """
    cfg = cfg or get_config()
    l = cfg.limits
    return (
        "linktrue{"
        f"items={l.max_items}, name_len={l.max_username_length}, "
        f"reserved={','.join(sorted(cfg.reserved.exact))}, "
        f"reserved_sub={','.join(cfg.reserved.substrings)}, "
        f"state={cfg.state_file}, events={cfg.event_log_path or '-'}"
        "}"
    )


__all__ = [
    "Limits",
    "ReservedNames",
    "RegistryConfig",
    "load_config",
    "get_config",
    "reset_config_cache",
    "summary",
]
