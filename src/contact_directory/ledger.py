# ledger.py
# Bounded undo history.
#
# Newest entry at the tail. Pushing onto a full ledger silently drops the
# oldest entry first, regardless of operation or entity kind. Entries are
# never modified once pushed; they leave only by eviction or pop().

from collections import deque

from contact_directory.models import Operation

DEFAULT_CAPACITY = 10


class UndoLedger:
    """
    Fixed-capacity LIFO of Operation entries, owned by exactly one session.

    Backed by a deque so push-with-eviction, peek and pop are all O(1).
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("Undo ledger capacity must be at least 1.")
        self._entries: deque[Operation] = deque()
        self._capacity = capacity

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def push(self, op: Operation) -> Operation | None:
        """Append `op`. Returns the evicted oldest entry when the ledger was full."""
        evicted = None
        if len(self._entries) >= self._capacity:
            evicted = self._entries.popleft()
        self._entries.append(op)
        return evicted

    def pop(self) -> Operation | None:
        if not self._entries:
            return None
        return self._entries.pop()

    def clear(self) -> None:
        self._entries.clear()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def peek(self) -> Operation | None:
        if not self._entries:
            return None
        return self._entries[-1]

    def history(self) -> list[str]:
        """Descriptions oldest-first. Reverse for most-recent-first display."""
        return [op.description for op in self._entries]

    def entries(self) -> tuple[Operation, ...]:
        return tuple(self._entries)

    def can_undo(self) -> bool:
        return bool(self._entries)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return len(self._entries) == self._capacity

    def __len__(self) -> int:
        return len(self._entries)
