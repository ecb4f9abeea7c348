"""
linktrue.types.events — notification payloads emitted by the registry.

Events describe *committed* state changes; a rejected operation emits nothing.

    Registered(username)
    ProfileUpdated(key, value)          value == "" means the key was removed
    UsernameTransferred(username, new_address)
    UsernameChanged(old_username, new_username)

Every event is a frozen dataclass with a class-level `name` and a JSON-friendly
`to_dict()`; `event_from_dict()` is the inverse used by the JSONL sink.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, Type


@dataclass(frozen=True)
class ProfileEvent:
    name: ClassVar[str] = "ProfileEvent"

    def args(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name, "args": self.args()}


@dataclass(frozen=True)
class Registered(ProfileEvent):
    name: ClassVar[str] = "Registered"
    username: str


@dataclass(frozen=True)
class ProfileUpdated(ProfileEvent):
    name: ClassVar[str] = "ProfileUpdated"
    key: str
    value: str

    @property
    def is_deletion(self) -> bool:
        return self.value == ""


@dataclass(frozen=True)
class UsernameTransferred(ProfileEvent):
    name: ClassVar[str] = "UsernameTransferred"
    username: str
    new_address: str


@dataclass(frozen=True)
class UsernameChanged(ProfileEvent):
    name: ClassVar[str] = "UsernameChanged"
    old_username: str
    new_username: str


_BY_NAME: Dict[str, Type[ProfileEvent]] = {
    cls.name: cls
    for cls in (Registered, ProfileUpdated, UsernameTransferred, UsernameChanged)
}


def event_from_dict(d: Dict[str, Any]) -> ProfileEvent:
    try:
        cls = _BY_NAME[d["event"]]
    except KeyError:
        raise ValueError(f"unknown event: {d.get('event')!r}") from None
    return cls(**d.get("args", {}))


__all__ = [
    "ProfileEvent",
    "Registered",
    "ProfileUpdated",
    "UsernameTransferred",
    "UsernameChanged",
    "event_from_dict",
]
