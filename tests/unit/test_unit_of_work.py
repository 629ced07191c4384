"""Unit tests for the all-or-nothing transaction."""
from __future__ import annotations

from typing import Any

import pytest

from flashlev.execution import Transaction, TransactionError


class Counter:
    def __init__(self) -> None:
        self.value = 0

    def snapshot(self) -> Any:
        return self.value

    def restore(self, state: Any) -> None:
        self.value = state


class TestTransaction:
    def test_commit(self) -> None:
        counter = Counter()
        with Transaction([counter], name="inc") as tx:
            counter.value += 1
        assert tx.committed
        assert counter.value == 1

    def test_exception_rolls_back_all(self) -> None:
        a, b = Counter(), Counter()
        with pytest.raises(RuntimeError):
            with Transaction([a, b]):
                a.value = 5
                b.value = 7
                raise RuntimeError("boom")
        assert (a.value, b.value) == (0, 0)

    def test_failed_post_check(self) -> None:
        counter = Counter()
        with pytest.raises(TransactionError):
            with Transaction([counter], post_check=lambda: counter.value < 0):
                counter.value = 3
        assert counter.value == 0

    def test_passing_post_check(self) -> None:
        counter = Counter()
        with Transaction([counter], post_check=lambda: counter.value == 3) as tx:
            counter.value = 3
        assert tx.committed

    def test_not_committed_after_rollback(self) -> None:
        tx = Transaction([Counter()])
        with pytest.raises(ValueError):
            with tx:
                raise ValueError("x")
        assert not tx.committed
