from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class Move:
    """A neighbourhood move on an item order, keyed by the items it touches.

    ``swap`` stores the two swapped item ids (smallest first); ``insert``
    stores the moved item id and its target position.
    """

    kind: Literal["swap", "insert"]
    first: int
    second: int

    @classmethod
    def swap(cls, item_a: int, item_b: int) -> "Move":
        return cls("swap", min(item_a, item_b), max(item_a, item_b))

    @classmethod
    def insert(cls, item: int, position: int) -> "Move":
        return cls("insert", item, position)


class TabuList:
    """Fixed-tenure memory of recently applied moves.

    The oldest move is forgotten once ``tenure`` moves are stored. A tenure of
    zero disables the memory.
    """

    def __init__(self, tenure: int) -> None:
        if tenure < 0:
            raise ValueError("tenure must be >= 0")
        self.tenure: int = tenure
        self._queue: deque[Move] = deque()
        self._members: set[Move] = set()

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, move: object) -> bool:
        return move in self._members

    def push(self, move: Move) -> None:
        if self.tenure == 0:
            return
        if move in self._members:
            self._queue.remove(move)
        while len(self._queue) >= self.tenure:
            old = self._queue.popleft()
            self._members.discard(old)
        self._queue.append(move)
        self._members.add(move)

    def clear(self) -> None:
        self._queue.clear()
        self._members.clear()
