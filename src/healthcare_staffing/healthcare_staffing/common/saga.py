from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Tuple

logger = logging.getLogger(__name__)


class Saga:
    """Ordered list of completed steps and the actions that undo them.

    Used where one use case writes several documents (a leave plus the shifts
    it touches) and the store offers no multi-document transaction.
    """

    def __init__(self, name: str):
        self.name = name
        self._compensations: List[Tuple[str, Callable[[], None]]] = []

    def __len__(self) -> int:
        return len(self._compensations)

    def step(self, label: str, action: Callable[[], None], compensate: Callable[[], None]) -> None:
        action()
        self._compensations.append((label, compensate))

    def compensate(self) -> None:
        for label, undo in reversed(self._compensations):
            try:
                undo()
            except Exception:
                # Keep undoing the remaining steps; the original error is re-raised by the caller.
                logger.exception("saga %s: compensation for %r failed", self.name, label)
        self._compensations.clear()


@contextmanager
def saga(name: str) -> Iterator[Saga]:
    s = Saga(name)
    try:
        yield s
    except Exception:
        logger.warning("saga %s failed, compensating %d step(s)", name, len(s))
        s.compensate()
        raise
