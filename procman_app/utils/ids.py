"""Collision-checked monotonic id allocation."""

from typing import Iterable


class IdAllocator:
    """Hands out integer ids above every id it has seen.

    Explicit ids (e.g. user-chosen plot ids) are folded in through
    ``observe`` so later allocations never collide with them.
    """

    def __init__(self, start: int = 1) -> None:
        self._next = start

    def observe(self, ids: Iterable[int]) -> None:
        """Raise the high-water mark past every id in ``ids``."""
        highest = max(ids, default=None)
        if highest is not None and highest >= self._next:
            self._next = highest + 1

    def allocate(self, existing: Iterable[int]) -> int:
        """Return a fresh id not present in ``existing``."""
        taken = set(existing)
        self.observe(taken)

        candidate = self._next
        while candidate in taken:
            candidate += 1

        self._next = candidate + 1
        return candidate

    @property
    def next_id(self) -> int:
        return self._next
