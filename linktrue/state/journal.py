"""
linktrue.state.journal — journaling writes, checkpoints, revert/commit.

A deterministic, in-memory write journal layered over the two registry
indexes:

    profiles : address  → Profile
    names    : username → address

It supports nested checkpoints via a stack of overlays. Writes go to the top
overlay; reads consult overlays from top → base. `commit()` merges the top
overlay into the next layer (or the base mappings if it is the last layer).
`revert()` discards the top overlay. With no open checkpoint, writes go
straight to the base.

Key properties
--------------
- Pure Python, no I/O.
- Copy-on-write for profiles (Profile objects are copied into overlays).
- Name overlay with explicit deletion markers (`None`).
- Nested checkpoints with O(changes) merge cost.

Intended usage
--------------
    j = Journal(profiles, names)
    j.begin()
    p = j.ensure_profile_for_write(addr)
    p.username = "alice"
    j.name_set("alice", addr)
    j.commit()          # or j.revert()

Notes
-----
- The journal does not enforce registry rules; ProfileStore validates before
  writing.
- Profiles are never deleted, only emptied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, MutableMapping, Optional, Set, Tuple

from ..types.profile import Profile

# =============================================================================
# Overlay model
# =============================================================================


@dataclass
class _Overlay:
    """
    A single journal layer.

    - `profiles`: copies of Profile objects modified/created in this layer.
    - `names`: staged reverse-index changes. `None` means deletion.
    """

    profiles: Dict[str, Profile] = field(default_factory=dict)
    names: Dict[str, Optional[str]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.profiles or self.names)


# =============================================================================
# Journal
# =============================================================================


class Journal:
    """
    A copy-on-write write journal with nested checkpoints.

    Parameters
    ----------
    profiles : MutableMapping[str, Profile]
        The base address → profile mapping.
    names : MutableMapping[str, str]
        The base username → address mapping.

    API highlights
    --------------
    - begin() / commit() / revert()
    - commit_to(marker) / revert_to(marker)
    - get_profile(), get_profile_for_write(), ensure_profile_for_write()
    - name_get(), name_set(), name_delete()
    """

    def __init__(
        self,
        profiles: MutableMapping[str, Profile],
        names: MutableMapping[str, str],
    ) -> None:
        self._base_profiles = profiles
        self._base_names = names
        self._layers: List[_Overlay] = []

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of open checkpoints (0 = writes go to base)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the depth *before* it (a revert marker)."""
        marker = len(self._layers)
        self._layers.append(_Overlay())
        return marker

    def commit(self) -> None:
        """Merge the top overlay into its parent, or into the base if it is the last one."""
        if not self._layers:
            raise RuntimeError("commit without an open checkpoint")
        top = self._layers.pop()
        if self._layers:
            self._merge_layers(self._layers[-1], top)
        else:
            self._apply_to_base(top)

    def revert(self) -> None:
        """Discard the top overlay."""
        if not self._layers:
            raise RuntimeError("revert without an open checkpoint")
        self._layers.pop()

    def commit_to(self, marker: int) -> None:
        if marker < 0:
            raise ValueError("marker must be >= 0")
        while len(self._layers) > marker:
            self.commit()

    def revert_to(self, marker: int) -> None:
        if marker < 0:
            raise ValueError("marker must be >= 0")
        while len(self._layers) > marker:
            self.revert()

    # --------------------------------------------------------------------- #
    # Profiles
    # --------------------------------------------------------------------- #

    def get_profile(self, address: str) -> Optional[Profile]:
        """Readonly lookup (do not mutate the result)."""
        for layer in reversed(self._layers):
            p = layer.profiles.get(address)
            if p is not None:
                return p
        return self._base_profiles.get(address)

    def get_profile_for_write(self, address: str) -> Optional[Profile]:
        """
        Fetch a Profile suitable for **mutation**:
        - inside a checkpoint, a copy is promoted to the top overlay;
        - outside, the base object itself is returned.
        Returns None if the address has no profile.
        """
        if not self._layers:
            return self._base_profiles.get(address)
        top = self._layers[-1]
        if address in top.profiles:
            return top.profiles[address]
        src = self.get_profile(address)
        if src is None:
            return None
        cp = src.copy()
        top.profiles[address] = cp
        return cp

    def ensure_profile_for_write(self, address: str) -> Profile:
        """Like get_profile_for_write, creating an empty profile when absent."""
        p = self.get_profile_for_write(address)
        if p is not None:
            return p
        p = Profile()
        if self._layers:
            self._layers[-1].profiles[address] = p
        else:
            self._base_profiles[address] = p
        return p

    def iter_profiles(self) -> Iterator[Tuple[str, Profile]]:
        """Visible (address, profile) pairs, sorted by address."""
        seen: Set[str] = set(self._base_profiles.keys())
        for layer in self._layers:
            seen.update(layer.profiles.keys())
        for addr in sorted(seen):
            p = self.get_profile(addr)
            if p is not None:
                yield addr, p

    def profile_count(self) -> int:
        seen: Set[str] = set(self._base_profiles.keys())
        for layer in self._layers:
            seen.update(layer.profiles.keys())
        return len(seen)

    # --------------------------------------------------------------------- #
    # Reverse index
    # --------------------------------------------------------------------- #

    def name_get(self, username: str) -> Optional[str]:
        for layer in reversed(self._layers):
            if username in layer.names:
                return layer.names[username]
        return self._base_names.get(username)

    def name_set(self, username: str, address: str) -> None:
        if self._layers:
            self._layers[-1].names[username] = address
        else:
            self._base_names[username] = address

    def name_delete(self, username: str) -> None:
        if self._layers:
            self._layers[-1].names[username] = None
        else:
            self._base_names.pop(username, None)

    def iter_names(self) -> Iterator[Tuple[str, str]]:
        """Visible (username, address) bindings, sorted by username."""
        visible: Dict[str, str] = dict(self._base_names)
        for layer in self._layers:
            for name, addr in layer.names.items():
                if addr is None:
                    visible.pop(name, None)
                else:
                    visible[name] = addr
        for name in sorted(visible):
            yield name, visible[name]

    # --------------------------------------------------------------------- #
    # Internal merge/apply
    # --------------------------------------------------------------------- #

    @staticmethod
    def _merge_layers(dst: _Overlay, src: _Overlay) -> None:
        # src is discarded after this, so its profile copies can move as-is.
        dst.profiles.update(src.profiles)
        dst.names.update(src.names)

    def _apply_to_base(self, layer: _Overlay) -> None:
        for addr, p in layer.profiles.items():
            self._base_profiles[addr] = p
        for name, addr in layer.names.items():
            if addr is None:
                self._base_names.pop(name, None)
            else:
                self._base_names[name] = addr

    # --------------------------------------------------------------------- #
    # Debug/Introspection
    # --------------------------------------------------------------------- #

    def pending_changes(self) -> int:
        """Total number of staged entries across layers."""
        return sum(len(l.profiles) + len(l.names) for l in self._layers)


__all__ = ["Journal"]
