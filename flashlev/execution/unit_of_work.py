"""All-or-nothing unit of work over in-process state.

Participants expose ``snapshot()`` and ``restore(state)``. Entering a
transaction snapshots every participant; an exception inside the block (or a
failed post-check) restores all of them before the error propagates.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, Protocol

logger = logging.getLogger(__name__)


class Stateful(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class TransactionError(Exception):
    pass


class Transaction:
    def __init__(
        self,
        participants: Iterable[Stateful],
        name: Optional[str] = None,
        post_check: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.participants = list(participants)
        self.name = name or "tx"
        self.post_check = post_check
        self._snapshots: list[Any] = []
        self.committed = False

    def __enter__(self) -> Transaction:
        self._snapshots = [p.snapshot() for p in self.participants]
        logger.debug("Transaction %s started", self.name)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self._rollback()
            logger.warning("Transaction %s rolled back: %s", self.name, exc)
            return False

        if self.post_check and not self.post_check():
            self._rollback()
            raise TransactionError(f"Post-check failed for transaction {self.name}")

        self.committed = True
        logger.debug("Transaction %s committed", self.name)
        return False

    def _rollback(self) -> None:
        for participant, state in zip(self.participants, self._snapshots):
            participant.restore(state)
