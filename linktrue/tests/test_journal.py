# -*- coding: utf-8 -*-
"""
Journal revert/commit laws:

- checkpoint → writes → revert  ⇒ state equals baseline
- checkpoint → writes → commit  ⇒ writes visible in base (last-wins)
- nested checkpoints behave as a stack (inner revert keeps outer writes)
"""
from __future__ import annotations

from typing import Dict

import pytest

from linktrue.state.journal import Journal
from linktrue.tests import given, link_keys, st
from linktrue.types.profile import Item, Profile

A = "0x" + "aa" * 20
B = "0x" + "bb" * 20


def _fresh():
    profiles: Dict[str, Profile] = {}
    names: Dict[str, str] = {}
    return profiles, names, Journal(profiles, names)


def test_writes_without_checkpoint_go_to_base():
    profiles, names, j = _fresh()
    p = j.ensure_profile_for_write(A)
    p.username = "a"
    j.name_set("a", A)
    assert profiles[A].username == "a"
    assert names == {"a": A}
    assert j.depth() == 0


def test_revert_restores_baseline():
    profiles, names, j = _fresh()
    j.ensure_profile_for_write(A).username = "a"
    j.name_set("a", A)

    j.begin()
    p = j.get_profile_for_write(A)
    p.username = ""
    p.items.append(Item("k", "v"))
    j.name_delete("a")
    assert j.name_get("a") is None
    assert j.get_profile(A).items == [Item("k", "v")]
    j.revert()

    assert profiles[A] == Profile(username="a")
    assert names == {"a": A}
    assert j.pending_changes() == 0


def test_commit_applies_deletions_to_base():
    profiles, names, j = _fresh()
    names["old"] = A
    j.begin()
    j.name_delete("old")
    j.name_set("new", A)
    assert dict(j.iter_names()) == {"new": A}
    j.commit()
    assert names == {"new": A}


def test_nested_inner_revert_keeps_outer_writes():
    profiles, names, j = _fresh()
    outer = j.begin()
    j.ensure_profile_for_write(A).username = "a"
    j.name_set("a", A)
    inner = j.begin()
    assert inner == outer + 1
    j.ensure_profile_for_write(B).username = "b"
    j.name_set("b", B)
    j.revert_to(inner)
    assert j.get_profile(B) is None
    j.commit_to(outer)
    assert set(profiles) == {A}
    assert names == {"a": A}


def test_copy_on_write_does_not_touch_base_until_commit():
    profiles, _, j = _fresh()
    profiles[A] = Profile(username="a", items=[Item("k", "1")])
    j.begin()
    j.get_profile_for_write(A).items.append(Item("k2", "2"))
    assert profiles[A].items == [Item("k", "1")]
    j.commit()
    assert profiles[A].items == [Item("k", "1"), Item("k2", "2")]


def test_commit_and_revert_need_open_checkpoint():
    _, _, j = _fresh()
    with pytest.raises(RuntimeError):
        j.commit()
    with pytest.raises(RuntimeError):
        j.revert()
    with pytest.raises(ValueError):
        j.revert_to(-1)


def test_iter_profiles_sorted_across_layers():
    profiles, _, j = _fresh()
    profiles[B] = Profile(username="b")
    j.begin()
    j.ensure_profile_for_write(A)
    assert [addr for addr, _ in j.iter_profiles()] == [A, B]
    assert j.profile_count() == 2


@given(
    base=st.dictionaries(link_keys(), st.text(min_size=1, max_size=4), max_size=8),
    writes=st.dictionaries(link_keys(), st.text(min_size=1, max_size=4), min_size=1, max_size=8),
)
def test_revert_is_identity(base, writes):
    profiles, names, j = _fresh()
    profiles[A] = Profile(username="a", items=[Item(k, v) for k, v in base.items()])
    names["a"] = A
    before = profiles[A].copy()

    j.begin()
    p = j.get_profile_for_write(A)
    for k, v in writes.items():
        p.items.append(Item(k + "_w", v))
    j.name_set("w", B)
    j.revert()

    assert profiles[A] == before
    assert names == {"a": A}


@given(
    writes=st.lists(st.tuples(link_keys(), st.text(min_size=1, max_size=4)), min_size=1, max_size=12),
)
def test_commit_is_last_wins(writes):
    profiles, names, j = _fresh()
    j.begin()
    for k, v in writes:
        j.name_set(k, v)
    j.commit()
    expected: Dict[str, str] = {}
    for k, v in writes:
        expected[k] = v
    assert names == expected
