"""
linktrue.types.profile — Profile and Item records.

A `Profile` is the per-address record: the username it currently claims (the
empty string when unregistered) and an ordered list of `Item` links. Keys are
unique within a profile; insertion order is preserved.

Profiles handed out by the store are *copies*; mutating them never touches
registry state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Item:
    key: str
    value: str


@dataclass
class Profile:
    """
    Attributes:
        username: current username; "" denotes an unregistered/emptied profile
        items:    ordered key/value links
    """

    username: str = ""
    items: List[Item] = field(default_factory=list)

    # --- queries ---

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Item]:
        return iter(self.items)

    def keys(self) -> List[str]:
        return [it.key for it in self.items]

    def index_of(self, key: str) -> int:
        """Position of `key`, or -1."""
        for i, it in enumerate(self.items):
            if it.key == key:
                return i
        return -1

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        i = self.index_of(key)
        return default if i < 0 else self.items[i].value

    def flatten(self) -> List[str]:
        """`[k1, v1, …, kn, vn, username]`, the flat shape returned by profile lookups."""
        out: List[str] = []
        for it in self.items:
            out.append(it.key)
            out.append(it.value)
        out.append(self.username)
        return out

    def copy(self) -> "Profile":
        # Items are frozen, a shallow list copy is enough.
        return Profile(username=self.username, items=list(self.items))

    # --- (de)serialization ---

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "items": [[it.key, it.value] for it in self.items],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Profile":
        return cls(
            username=str(d.get("username", "")),
            items=[Item(str(k), str(v)) for k, v in d.get("items", [])],
        )

    @classmethod
    def from_pairs(cls, username: str, pairs: Sequence[Tuple[str, str]]) -> "Profile":
        return cls(username=username, items=[Item(k, v) for k, v in pairs])


__all__ = ["Item", "Profile"]
