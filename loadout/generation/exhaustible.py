from __future__ import annotations

from typing import TYPE_CHECKING, Generic, Iterable, List, TypeVar

if TYPE_CHECKING:
    from game_rng import GameRNG

T = TypeVar("T")


class ExhaustibleArray(Generic[T]):
    """Random draws without replacement over a private copy of ``values``."""

    def __init__(self, values: Iterable[T], rng: "GameRNG"):
        self._pool: List[T] = list(values)
        self._rng = rng

    def __len__(self) -> int:
        return len(self._pool)

    def has_values(self) -> bool:
        return bool(self._pool)

    def get_random_value(self) -> T | None:
        if not self._pool:
            return None
        index = self._rng.get_int(0, len(self._pool) - 1)
        # swap-remove keeps each draw O(1)
        self._pool[index], self._pool[-1] = self._pool[-1], self._pool[index]
        return self._pool.pop()
