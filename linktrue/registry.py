"""
linktrue.registry — the public profile registry.

`ProfileRegistry` is the orchestration layer on top of `ProfileStore`:

    operation(caller, ...)
      → normalize caller, check input shape and preconditions
      → open a store transaction, apply primitives
      → commit
      → hand the operation's events to the sink

A failure anywhere before commit reverts the transaction, so no partial write
is ever visible and no event is emitted. Every operation runs under one
re-entrant lock: writes are strictly sequential.

Example
-------
    from linktrue.registry import ProfileRegistry

    reg = ProfileRegistry()
    reg.register_user_profile(alice, "alice", ["github"], ["https://github.com/alice"])
    reg.add_items(alice, ["x"], ["https://x.com/alice"])
    reg.get_profile("alice")
    # ['github', 'https://github.com/alice', 'x', 'https://x.com/alice', 'alice']
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Sequence

from . import logging as llog
from .config import RegistryConfig, get_config
from .errors import (MSG_ADDRESS_NOT_FOUND, MSG_ALREADY_REGISTERED,
                     MSG_EMPTY_KEY, MSG_EMPTY_NEW_VALUE, MSG_EMPTY_VALUE,
                     MSG_INVALID_CALLER, MSG_INVALID_NEW_ADDRESS,
                     MSG_LENGTH_MISMATCH, MSG_NOTHING_TO_TRANSFER,
                     MSG_TARGET_HAS_USERNAME, MSG_TOO_MANY_ITEMS,
                     MSG_USERNAME_NOT_FOUND, MSG_USERNAME_TAKEN,
                     ConflictError, LimitError, NotFoundError, ProfileError,
                     StateError, ValidationError)
from .state.events import EventRecord, EventSink, NullEventSink
from .state.store import ProfileStore
from .types.address import (ZERO_ADDRESS, Address, AddressLike,
                            looks_like_address, to_address)
from .types.events import (ProfileEvent, ProfileUpdated, Registered,
                           UsernameChanged, UsernameTransferred)
from .types.profile import Profile
from .validate import is_valid_username, validate_username

log = llog.get_logger("linktrue.registry")


def _check_pairs(keys: Sequence[str], values: Sequence[str]) -> None:
    if len(keys) != len(values):
        raise ValidationError(
            MSG_LENGTH_MISMATCH,
            reason="LENGTH_MISMATCH",
            data={"keys": len(keys), "values": len(values)},
        )
    for i, (key, value) in enumerate(zip(keys, values)):
        if not key:
            raise ValidationError(MSG_EMPTY_KEY, reason="EMPTY_KEY", data={"index": i})
        if not value:
            raise ValidationError(MSG_EMPTY_VALUE, reason="EMPTY_VALUE", data={"index": i})


class ProfileRegistry:
    """
    Username/profile registry.

    Parameters
    ----------
    store : ProfileStore | None
        State to operate on. A fresh empty store when omitted.
    config : RegistryConfig | None
        Limits and reserved names. Defaults to the store's config, then to
        `get_config()`.
    sink : EventSink | None
        Receives one EventRecord per emitted event. NullEventSink by default.
    seq : int
        Number of write operations already committed against `store`
        (non-zero when resuming from a snapshot).
    """

    def __init__(
        self,
        store: Optional[ProfileStore] = None,
        *,
        config: Optional[RegistryConfig] = None,
        sink: Optional[EventSink] = None,
        seq: int = 0,
    ) -> None:
        if config is None:
            config = store.config if store is not None else get_config()
        self._config = config
        self._store = store if store is not None else ProfileStore(config=config)
        self._sink: EventSink = sink if sink is not None else NullEventSink()
        self._lock = threading.RLock()
        self._seq = int(seq)

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> RegistryConfig:
        return self._config

    @property
    def store(self) -> ProfileStore:
        return self._store

    @property
    def sink(self) -> EventSink:
        return self._sink

    @property
    def seq(self) -> int:
        """Count of committed write operations."""
        return self._seq

    def events(self, **filters) -> List[EventRecord]:
        """Records from the sink; `filters` are passed to `EventSink.get_events`."""
        return list(self._sink.get_events(**filters))

    def check_invariants(self) -> None:
        with self._lock:
            self._store.check_invariants()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    @staticmethod
    def _caller(caller: AddressLike) -> Address:
        try:
            addr = to_address(caller)
        except (TypeError, ValueError):
            raise ValidationError(MSG_INVALID_CALLER, reason="INVALID_CALLER", data={"caller": repr(caller)}) from None
        if addr == ZERO_ADDRESS:
            raise ValidationError(MSG_INVALID_CALLER, reason="INVALID_CALLER", data={"caller": addr})
        return addr

    @contextmanager
    def _operation(self, op: str, caller: Address) -> Iterator[List[ProfileEvent]]:
        """
        Run one write operation: lock, transaction, then event delivery.
        The body appends the events it wants emitted to the yielded list.
        Sink I/O errors after commit are logged, not raised.
        """
        with self._lock, llog.scope(op=op, caller=caller):
            pending: List[ProfileEvent] = []
            try:
                with self._store.transaction():
                    yield pending
            except ProfileError as e:
                log.debug("%s rejected: %s", op, e.message, extra={"code": e.code, "reason": e.reason})
                raise

            self._seq += 1
            with llog.scope(seq=self._seq):
                for i, ev in enumerate(pending):
                    try:
                        self._sink.append(ev, seq=self._seq, log_index=i, caller=caller)
                    except (OSError, ValueError):
                        # state is already committed; a sink failure does not undo it
                        log.exception("%s: event sink rejected %s", op, ev.name)
                log.info("%s committed", op, extra={"events": [ev.name for ev in pending]})

    def _require_username(self, addr: Address) -> str:
        username = self._store.username_of(addr)
        if not username:
            raise NotFoundError(MSG_USERNAME_NOT_FOUND, reason="USERNAME_NOT_FOUND", data={"address": addr})
        return username

    def _check_capacity(self, current: int, adding: int) -> None:
        limit = self._store.max_items
        if current + adding > limit:
            raise LimitError(
                MSG_TOO_MANY_ITEMS.format(limit=limit),
                limit=limit,
                data={"current": current, "adding": adding},
            )

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def register_user_profile(
        self,
        caller: AddressLike,
        username: str,
        keys: Sequence[str],
        values: Sequence[str],
    ) -> None:
        """
        Claim `username` for `caller` and attach the given items in order.

        Raises:
            ValidationError: keys/values shape, empty pair, bad username
            ConflictError:   caller already registered, username taken, duplicate key
            LimitError:      more items than the configured cap
        """
        addr = self._caller(caller)
        keys, values = list(keys), list(values)
        with self._operation("register", addr) as events:
            _check_pairs(keys, values)
            if self._store.username_of(addr):
                raise ConflictError(MSG_ALREADY_REGISTERED, reason="ALREADY_REGISTERED", data={"address": addr})
            validate_username(username, config=self._config)
            if self._store.address_of(username) is not None:
                raise ConflictError(MSG_USERNAME_TAKEN, reason="USERNAME_TAKEN", data={"username": username})
            self._check_capacity(self._store.item_count(addr), len(keys))

            self._store.create_or_get_profile(addr)
            self._store.bind_username(addr, username)
            for key, value in zip(keys, values):
                self._store.insert_item(addr, key, value)
            events.append(Registered(username))

    def add_items(self, caller: AddressLike, keys: Sequence[str], values: Sequence[str]) -> None:
        """Append items to the caller's profile; all of them or none."""
        addr = self._caller(caller)
        keys, values = list(keys), list(values)
        with self._operation("add_items", addr):
            self._require_username(addr)
            _check_pairs(keys, values)
            self._check_capacity(self._store.item_count(addr), len(keys))
            for key, value in zip(keys, values):
                self._store.insert_item(addr, key, value)

    def edit_item(self, caller: AddressLike, key: str, new_value: str) -> None:
        addr = self._caller(caller)
        with self._operation("edit_item", addr) as events:
            if not new_value:
                raise ValidationError(MSG_EMPTY_NEW_VALUE, reason="EMPTY_VALUE", data={"key": key})
            self._store.update_item(addr, key, new_value)
            events.append(ProfileUpdated(key, new_value))

    def remove_item(self, caller: AddressLike, key: str) -> None:
        addr = self._caller(caller)
        with self._operation("remove_item", addr) as events:
            self._store.remove_item(addr, key)
            events.append(ProfileUpdated(key, ""))

    def remove_items(self, caller: AddressLike, keys: Iterable[str]) -> None:
        """
        Remove several keys as one unit. A missing key, including one that
        appears twice in `keys`, aborts the whole batch.
        """
        addr = self._caller(caller)
        keys = list(keys)
        with self._operation("remove_items", addr) as events:
            for key in keys:
                self._store.remove_item(addr, key)
                events.append(ProfileUpdated(key, ""))

    def change_username(self, caller: AddressLike, new_username: str) -> None:
        """Rename the caller's profile; items are untouched."""
        addr = self._caller(caller)
        with self._operation("change_username", addr) as events:
            old = self._require_username(addr)
            validate_username(new_username, config=self._config)
            if self._store.address_of(new_username) is not None:
                raise ConflictError(MSG_USERNAME_TAKEN, reason="USERNAME_TAKEN", data={"username": new_username})

            self._store.unbind_username(addr)
            self._store.bind_username(addr, new_username)
            events.append(UsernameChanged(old, new_username))

    def transfer_username(self, caller: AddressLike, new_address: AddressLike) -> None:
        """
        Move the caller's username and items to `new_address`; the caller is
        left with an empty profile and may register again.
        """
        addr = self._caller(caller)
        with self._operation("transfer_username", addr) as events:
            try:
                dst = to_address(new_address)
            except (TypeError, ValueError):
                dst = ZERO_ADDRESS
            if dst == ZERO_ADDRESS:
                raise StateError(MSG_INVALID_NEW_ADDRESS, reason="INVALID_ADDRESS", data={"new_address": str(new_address)})
            if not self._store.username_of(addr):
                raise StateError(MSG_NOTHING_TO_TRANSFER, reason="NOTHING_TO_TRANSFER", data={"address": addr})
            if self._store.username_of(dst):
                raise StateError(MSG_TARGET_HAS_USERNAME, reason="TARGET_HAS_USERNAME", data={"address": dst})

            username = self._store.move_profile(addr, dst)
            events.append(UsernameTransferred(username, dst))

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_profile_by_username(self, username: str) -> List[str]:
        """`[k1, v1, …, kn, vn, username]` for a claimed username."""
        with self._lock:
            addr = self._store.address_of(username)
            if addr is None:
                raise NotFoundError(MSG_USERNAME_NOT_FOUND, reason="USERNAME_NOT_FOUND", data={"username": username})
            return self._store.get_profile(addr).flatten()

    def get_profile_by_address(self, address: AddressLike) -> List[str]:
        """
        Items and username of `address`. An address without a profile yields
        `[""]`; only the zero address (or unparseable input) is rejected.
        """
        with self._lock:
            try:
                addr = to_address(address)
            except (TypeError, ValueError):
                addr = ZERO_ADDRESS
            if addr == ZERO_ADDRESS:
                raise NotFoundError(MSG_ADDRESS_NOT_FOUND, reason="ADDRESS_NOT_FOUND", data={"address": str(address)})
            return self._store.get_profile(addr).flatten()

    def get_profile(self, query: AddressLike) -> List[str]:
        """Look `query` up by address if it parses as one, by username otherwise."""
        if looks_like_address(query):
            return self.get_profile_by_address(query)
        return self.get_profile_by_username(query)  # type: ignore[arg-type]

    def profile_of(self, query: AddressLike) -> Profile:
        """Like `get_profile`, but returns a Profile copy."""
        with self._lock:
            if looks_like_address(query):
                addr = to_address(query)
                if addr == ZERO_ADDRESS:
                    raise NotFoundError(MSG_ADDRESS_NOT_FOUND, reason="ADDRESS_NOT_FOUND", data={"address": addr})
                return self._store.get_profile(addr)
            found = self._store.address_of(query)  # type: ignore[arg-type]
            if found is None:
                raise NotFoundError(MSG_USERNAME_NOT_FOUND, reason="USERNAME_NOT_FOUND", data={"username": query})
            return self._store.get_profile(found)

    def username_of(self, address: AddressLike) -> str:
        with self._lock:
            return self._store.username_of(address)

    def address_of(self, username: str) -> Optional[Address]:
        with self._lock:
            return self._store.address_of(username)

    def is_available(self, username: str) -> bool:
        """True if `username` passes validation and nobody holds it."""
        with self._lock:
            return (
                is_valid_username(username, config=self._config)
                and self._store.address_of(username) is None
            )


__all__ = ["ProfileRegistry"]
