"""Identifier generation for conversations and messages."""

from __future__ import annotations


class IdGenerator:
    """Monotonic integer ids, injected wherever identities are minted."""

    def __init__(self, start: int = 1) -> None:
        self._next = start

    def next_id(self) -> int:
        value = self._next
        self._next += 1
        return value

    def reserve_through(self, value: int) -> None:
        """Make sure later ids are greater than ``value`` (e.g. ids loaded from storage)."""

        self._next = max(self._next, value + 1)
