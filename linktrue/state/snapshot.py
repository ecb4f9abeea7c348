"""
linktrue.state.snapshot — export/import of the whole store.

A snapshot is a plain JSON-compatible document:

    {
      "version": 1,
      "seq": 12,
      "profiles": [
        {"address": "0x…", "username": "alice", "items": [["x", "1"], ...]},
        ...
      ]
    }

Profiles are listed in address order so identical states export identically.
Emptied profiles (no username, no items) are kept: a profile, once created,
is never destroyed. `seq` is the registry's committed-operation counter.

Loading rebuilds the store through its primitives and then re-checks every
index invariant, so a hand-edited document that would, for example, give one
username to two addresses, or that carries a username the validator would
refuse, is rejected with StateError.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ..config import RegistryConfig
from ..errors import ProfileError, StateError
from ..types.address import to_address
from ..validate import validate_username
from .store import ProfileStore

SNAPSHOT_VERSION = 1


def export_state(store: ProfileStore, *, seq: int = 0) -> Dict[str, Any]:
    profiles = []
    for addr, p in store.iter_profiles():
        d = p.to_dict()
        profiles.append({"address": addr, **d})
    return {"version": SNAPSHOT_VERSION, "seq": int(seq), "profiles": profiles}


def import_state(
    doc: Dict[str, Any], *, config: Optional[RegistryConfig] = None
) -> Tuple[ProfileStore, int]:
    """
    Build a fresh ProfileStore from `doc`. Returns (store, seq).

    Raises:
        StateError: unsupported version, malformed entries, or broken invariants.
    """
    version = doc.get("version")
    if version != SNAPSHOT_VERSION:
        raise StateError(f"unsupported snapshot version: {version!r}", reason="BAD_SNAPSHOT")

    store = ProfileStore(config=config)
    try:
        with store.transaction():
            for entry in doc.get("profiles", []):
                addr = to_address(entry["address"])
                store.create_or_get_profile(addr)
                username = entry.get("username", "")
                if username:
                    validate_username(username, config=store.config)
                    store.bind_username(addr, username)
                for key, value in entry.get("items", []):
                    store.insert_item(addr, str(key), str(value))
            store.check_invariants()
    except ProfileError as e:
        raise StateError(f"invalid snapshot: {e.message}", reason="BAD_SNAPSHOT", data=e.to_dict()) from e
    except (KeyError, TypeError, ValueError) as e:
        raise StateError(f"malformed snapshot: {e}", reason="BAD_SNAPSHOT") from e

    return store, int(doc.get("seq", 0))


def save(store: ProfileStore, path: str | os.PathLike[str], *, seq: int = 0) -> Path:
    """Write a snapshot atomically (temp file + rename)."""
    p = Path(path).expanduser()
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_suffix(p.suffix + ".tmp")
    tmp.write_text(json.dumps(export_state(store, seq=seq), indent=2), encoding="utf-8")
    os.replace(tmp, p)
    return p


def load(
    path: str | os.PathLike[str], *, config: Optional[RegistryConfig] = None
) -> Tuple[ProfileStore, int]:
    """Read a snapshot file; a missing file yields an empty store."""
    p = Path(path).expanduser()
    if not p.exists():
        return ProfileStore(config=config), 0
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise StateError(f"state file is not valid JSON: {p}", reason="BAD_SNAPSHOT") from e
    if not isinstance(doc, dict):
        raise StateError(f"state file must hold a JSON object: {p}", reason="BAD_SNAPSHOT")
    return import_state(doc, config=config)


__all__ = ["SNAPSHOT_VERSION", "export_state", "import_state", "save", "load"]
