# -*- coding: utf-8 -*-
"""
Stateful property test for the registry.

Random sequences of register / add / edit / remove / rename / transfer are run
against ProfileRegistry and a plain-dict model. After every step:

- the store's own invariant check passes (reverse index consistent, unique
  keys, item cap, one username per address)
- every profile matches the model exactly, including item order
- a rejected operation changed nothing
"""
from __future__ import annotations

from typing import Dict, List, Tuple

from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, rule

from linktrue.config import load_config
from linktrue.errors import ProfileError
from linktrue.registry import ProfileRegistry
from linktrue.state.events import InMemoryEventSink
from linktrue.tests import link_keys, usernames

ADDRS = ["0x" + f"{i:02x}" * 20 for i in (1, 2, 3, 4)]
MAX_ITEMS = 4

addresses = st.sampled_from(ADDRS)
names = st.one_of(usernames(max_size=4), st.sampled_from(["admin", "A", ""]))
values = st.text(alphabet="xyz", min_size=0, max_size=3)
pairs = st.lists(st.tuples(link_keys(max_size=2), values), max_size=MAX_ITEMS + 1)


class RegistryMachine(RuleBasedStateMachine):
    def __init__(self) -> None:
        super().__init__()
        self.sink = InMemoryEventSink()
        self.reg = ProfileRegistry(
            config=load_config(env={}, overrides={"max_items": MAX_ITEMS}),
            sink=self.sink,
        )
        # address -> (username, [(key, value), ...])
        self.model: Dict[str, Tuple[str, List[Tuple[str, str]]]] = {}

    # --- helpers ---

    def _snapshot(self):
        return [(a, self.reg.get_profile_by_address(a)) for a in ADDRS], self.reg.seq, len(self.sink)

    def _attempt(self, fn, *args) -> bool:
        before = self._snapshot()
        try:
            fn(*args)
        except ProfileError:
            assert self._snapshot() == before
            return False
        return True

    def _name(self, addr: str) -> str:
        return self.model.get(addr, ("", []))[0]

    def _items(self, addr: str) -> List[Tuple[str, str]]:
        return list(self.model.get(addr, ("", []))[1])

    # --- rules ---

    @rule(addr=addresses, name=names, items=pairs)
    def register(self, addr, name, items):
        keys = [k for k, _ in items]
        vals = [v for _, v in items]
        if self._attempt(self.reg.register_user_profile, addr, name, keys, vals):
            assert not self._name(addr)
            assert all(self._name(a) != name for a in ADDRS)
            self.model[addr] = (name, list(items))

    @rule(addr=addresses, items=pairs)
    def add(self, addr, items):
        keys = [k for k, _ in items]
        vals = [v for _, v in items]
        if self._attempt(self.reg.add_items, addr, keys, vals):
            cur = self._items(addr)
            assert len(cur) + len(items) <= MAX_ITEMS
            self.model[addr] = (self._name(addr), cur + list(items))

    @rule(addr=addresses, key=link_keys(max_size=2), value=values)
    def edit(self, addr, key, value):
        if self._attempt(self.reg.edit_item, addr, key, value):
            cur = self._items(addr)
            i = [k for k, _ in cur].index(key)
            cur[i] = (key, value)
            self.model[addr] = (self._name(addr), cur)

    @rule(addr=addresses, keys=st.lists(link_keys(max_size=2), max_size=3))
    def remove(self, addr, keys):
        if self._attempt(self.reg.remove_items, addr, keys):
            cur = self._items(addr)
            for key in keys:
                cur = [(k, v) for k, v in cur if k != key]
            self.model[addr] = (self._name(addr), cur)

    @rule(addr=addresses, name=names)
    def rename(self, addr, name):
        if self._attempt(self.reg.change_username, addr, name):
            self.model[addr] = (name, self._items(addr))

    @rule(src=addresses, dst=addresses)
    def transfer(self, src, dst):
        if self._attempt(self.reg.transfer_username, src, dst):
            assert self._name(src) and not self._name(dst)
            self.model[dst] = self.model[src]
            self.model[src] = ("", [])

    # --- invariants ---

    @invariant()
    def store_invariants_hold(self):
        self.reg.check_invariants()

    @invariant()
    def matches_model(self):
        for addr in ADDRS:
            name, items = self.model.get(addr, ("", []))
            flat: List[str] = []
            for k, v in items:
                flat += [k, v]
            assert self.reg.get_profile_by_address(addr) == flat + [name]
            if name:
                assert self.reg.address_of(name) == addr
                assert self.reg.get_profile(name) == flat + [name]

    @invariant()
    def usernames_are_injective(self):
        claimed = [self.reg.username_of(a) for a in ADDRS if self.reg.username_of(a)]
        assert len(claimed) == len(set(claimed))


TestRegistryMachine = RegistryMachine.TestCase
