from __future__ import annotations

import pytest

from token_ledger.journal import Journal

K1 = ("bal", b"a")
K2 = ("bal", b"b")
KA = ("allow", b"a", b"b")


def test_reads_fall_through_to_base():
    base = {K1: 5}
    j = Journal(base)
    assert j.get(K1) == 5
    assert j.get(K2) == 0
    assert j.depth() == 1


def test_nested_commit_and_revert():
    base = {K1: 10}
    j = Journal(base)

    j.begin()
    j.set(K1, 7)
    j.begin()
    j.set(K2, 3)
    assert j.get(K2) == 3
    j.revert()
    assert j.get(K2) == 0
    assert j.get(K1) == 7
    j.commit()  # depth 2 -> 1
    assert base == {K1: 10}
    j.commit()  # root -> base
    assert base == {K1: 7}
    assert j.depth() == 1


def test_revert_to_marker():
    j = Journal()
    m = j.begin()
    j.set(K1, 1)
    j.begin()
    j.begin()
    j.set(K1, 9)
    j.revert_to(m)
    assert j.depth() == m
    assert j.get(K1) == 1
    with pytest.raises(ValueError):
        j.revert_to(0)


def test_transaction_commits_to_base():
    base = {}
    j = Journal(base)
    with j.transaction():
        j.set(K1, 4)
        j.set(KA, 2)
    assert base == {K1: 4, KA: 2}
    assert j.depth() == 1


def test_transaction_reverts_on_error():
    base = {K1: 4}
    j = Journal(base)

    class Boom(Exception):
        pass

    with pytest.raises(Boom):
        with j.transaction():
            j.set(K1, 0)
            j.set(K2, 4)
            raise Boom()
    assert base == {K1: 4}
    assert j.get(K2) == 0
    assert j.depth() == 1


def test_nested_transaction_failure_keeps_outer_writes():
    base = {}
    j = Journal(base)
    with j.transaction():
        j.set(K1, 1)
        with pytest.raises(RuntimeError):
            with j.transaction():
                j.set(K2, 2)
                raise RuntimeError("inner")
        assert j.get(K2) == 0
    assert base == {K1: 1}


def test_zero_writes_delete_and_are_hidden():
    base = {K1: 5, K2: 1}
    j = Journal(base)
    with j.transaction():
        j.set(K1, 0)
        assert dict(j.items()) == {K2: 1}
    assert base == {K2: 1}


def test_items_prefix_and_overlay_precedence():
    base = {K1: 1, KA: 3}
    j = Journal(base)
    j.begin()
    j.set(K2, 2)
    j.set(K1, 8)
    assert dict(j.items("bal")) == {K1: 8, K2: 2}
    assert dict(j.items("allow")) == {KA: 3}
