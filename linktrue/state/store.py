"""
linktrue.state.store — the profile state container.

`ProfileStore` owns the registry's two indexes and every profile's ordered
item collection:

    addressToProfile : address  → Profile(username, items)
    usernameToAddress: username → address

and exposes the only primitives allowed to change them. Each primitive checks
its preconditions first and either fully applies or leaves every index
unchanged. Multi-step operations group primitives in `transaction()`, which
commits them together or reverts all of them.

Invariants kept here
--------------------
- every address with a non-empty username is what the reverse index maps
  that username to.
- the reverse index holds exactly the claimed usernames.
- keys are unique within a profile.
- a profile holds at most `limits.max_items` items.
- one username per address, one address per username.

`check_invariants()` re-verifies all of them from scratch.

This module does no authorization, no username syntax checks and no logging;
those belong to `linktrue.registry`.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from ..config import RegistryConfig, get_config
from ..errors import (MSG_ALREADY_REGISTERED, MSG_DUPLICATE_KEY,
                      MSG_KEY_NOT_FOUND, MSG_NOTHING_TO_TRANSFER,
                      MSG_TARGET_HAS_USERNAME, MSG_TOO_MANY_ITEMS,
                      MSG_USERNAME_EMPTY, MSG_USERNAME_TAKEN, ConflictError,
                      LimitError, NotFoundError, StateError, ValidationError)
from ..types.address import Address, AddressLike, to_address
from ..types.profile import Item, Profile
from .journal import Journal


class ProfileStore:
    """
    Address-keyed profiles plus the username reverse index.

    Reads return copies; writes go through the primitives below.
    """

    def __init__(self, *, config: Optional[RegistryConfig] = None) -> None:
        self._config = config or get_config()
        self._profiles: Dict[str, Profile] = {}
        self._names: Dict[str, str] = {}
        self._journal = Journal(self._profiles, self._names)

    @property
    def config(self) -> RegistryConfig:
        return self._config

    @property
    def max_items(self) -> int:
        return self._config.limits.max_items

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #

    @contextmanager
    def transaction(self) -> Iterator["ProfileStore"]:
        """
        Group primitives into one atomic unit. Nested use is allowed; only the
        outermost commit becomes visible in the base indexes.
        """
        marker = self._journal.begin()
        try:
            yield self
        except BaseException:
            self._journal.revert_to(marker)
            raise
        else:
            self._journal.commit_to(marker)

    def in_transaction(self) -> bool:
        return self._journal.depth() > 0

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def has_profile(self, address: AddressLike) -> bool:
        return self._journal.get_profile(to_address(address)) is not None

    def get_profile(self, address: AddressLike) -> Profile:
        """A copy of the address' profile (empty if it never had one)."""
        p = self._journal.get_profile(to_address(address))
        return Profile() if p is None else p.copy()

    def username_of(self, address: AddressLike) -> str:
        p = self._journal.get_profile(to_address(address))
        return "" if p is None else p.username

    def address_of(self, username: str) -> Optional[Address]:
        addr = self._journal.name_get(username)
        return None if addr is None else Address(addr)

    def items_of(self, address: AddressLike) -> List[Item]:
        p = self._journal.get_profile(to_address(address))
        return [] if p is None else list(p.items)

    def has_key(self, address: AddressLike, key: str) -> bool:
        p = self._journal.get_profile(to_address(address))
        return p is not None and p.index_of(key) >= 0

    def item_count(self, address: AddressLike) -> int:
        p = self._journal.get_profile(to_address(address))
        return 0 if p is None else len(p.items)

    def profile_count(self) -> int:
        return self._journal.profile_count()

    def username_count(self) -> int:
        return sum(1 for _ in self._journal.iter_names())

    def iter_profiles(self) -> Iterator[Tuple[Address, Profile]]:
        """(address, profile copy) pairs sorted by address."""
        for addr, p in self._journal.iter_profiles():
            yield Address(addr), p.copy()

    def iter_bindings(self) -> Iterator[Tuple[str, Address]]:
        """(username, address) pairs sorted by username."""
        for name, addr in self._journal.iter_names():
            yield name, Address(addr)

    # ------------------------------------------------------------------ #
    # Primitives
    # ------------------------------------------------------------------ #

    def create_or_get_profile(self, address: AddressLike) -> Profile:
        """Idempotent; returns a copy of the existing or freshly created profile."""
        return self._journal.ensure_profile_for_write(to_address(address)).copy()

    def bind_username(self, address: AddressLike, username: str) -> None:
        addr = to_address(address)
        if not username:
            raise ValidationError(MSG_USERNAME_EMPTY, reason="USERNAME_EMPTY")
        if self._journal.name_get(username) is not None:
            raise ConflictError(MSG_USERNAME_TAKEN, reason="USERNAME_TAKEN", data={"username": username})
        cur = self._journal.get_profile(addr)
        if cur is not None and cur.username:
            raise ConflictError(MSG_ALREADY_REGISTERED, reason="ALREADY_REGISTERED", data={"address": addr})

        p = self._journal.ensure_profile_for_write(addr)
        p.username = username
        self._journal.name_set(username, addr)

    def unbind_username(self, address: AddressLike) -> None:
        """Release the address' username; no-op when it has none."""
        addr = to_address(address)
        cur = self._journal.get_profile(addr)
        if cur is None or not cur.username:
            return
        p = self._journal.get_profile_for_write(addr)
        assert p is not None
        self._journal.name_delete(p.username)
        p.username = ""

    def insert_item(self, address: AddressLike, key: str, value: str) -> None:
        addr = to_address(address)
        cur = self._journal.get_profile(addr)
        if cur is not None:
            if cur.index_of(key) >= 0:
                raise ConflictError(MSG_DUPLICATE_KEY, reason="DUPLICATE_KEY", data={"key": key})
            if len(cur.items) >= self.max_items:
                raise LimitError(MSG_TOO_MANY_ITEMS.format(limit=self.max_items), limit=self.max_items)
        p = self._journal.ensure_profile_for_write(addr)
        p.items.append(Item(key, value))

    def update_item(self, address: AddressLike, key: str, value: str) -> None:
        addr = to_address(address)
        cur = self._journal.get_profile(addr)
        i = -1 if cur is None else cur.index_of(key)
        if i < 0:
            raise NotFoundError(MSG_KEY_NOT_FOUND, reason="KEY_NOT_FOUND", data={"key": key})
        p = self._journal.get_profile_for_write(addr)
        assert p is not None
        p.items[i] = Item(key, value)

    def remove_item(self, address: AddressLike, key: str) -> None:
        addr = to_address(address)
        cur = self._journal.get_profile(addr)
        i = -1 if cur is None else cur.index_of(key)
        if i < 0:
            raise NotFoundError(MSG_KEY_NOT_FOUND, reason="KEY_NOT_FOUND", data={"key": key})
        p = self._journal.get_profile_for_write(addr)
        assert p is not None
        del p.items[i]

    def move_profile(self, source: AddressLike, target: AddressLike) -> str:
        """
        Move username and items from `source` to `target`, leaving `source`
        empty. Returns the moved username.
        """
        src = to_address(source)
        dst = to_address(target)
        cur = self._journal.get_profile(src)
        if cur is None or not cur.username:
            raise StateError(MSG_NOTHING_TO_TRANSFER, reason="NOTHING_TO_TRANSFER", data={"address": src})
        if self.username_of(dst):
            raise StateError(MSG_TARGET_HAS_USERNAME, reason="TARGET_HAS_USERNAME", data={"address": dst})

        p_src = self._journal.get_profile_for_write(src)
        assert p_src is not None
        p_dst = self._journal.ensure_profile_for_write(dst)
        username = p_src.username

        p_dst.username = username
        p_dst.items = list(p_src.items)
        p_src.username = ""
        p_src.items = []
        self._journal.name_set(username, dst)
        return username

    # ------------------------------------------------------------------ #
    # Consistency
    # ------------------------------------------------------------------ #

    def check_invariants(self) -> None:
        """Raise StateError if any index invariant is broken."""
        claimed: Dict[str, str] = {}
        for addr, p in self._journal.iter_profiles():
            keys = p.keys()
            if len(set(keys)) != len(keys):
                raise StateError("duplicate keys in profile", reason="INVARIANT", data={"address": addr})
            if len(keys) > self.max_items:
                raise StateError("profile exceeds item limit", reason="INVARIANT", data={"address": addr})
            if not p.username:
                continue
            if p.username in claimed:
                raise StateError(
                    "username claimed by two addresses",
                    reason="INVARIANT",
                    data={"username": p.username, "addresses": [claimed[p.username], addr]},
                )
            claimed[p.username] = addr
            if self._journal.name_get(p.username) != addr:
                raise StateError("reverse index out of sync", reason="INVARIANT", data={"username": p.username})

        for name, addr in self._journal.iter_names():
            if claimed.get(name) != addr:
                raise StateError("orphaned reverse index entry", reason="INVARIANT", data={"username": name})


__all__ = ["ProfileStore"]
