"""Seeded random source for loadout generation.

Every random decision of an assembly call (spawn rolls, exhaustible draws,
armor class weighting, fresh item ids) goes through one ``GameRNG`` so the call
can be replayed from its seed, or from a saved state.

A ``GameRNG`` is not thread safe; concurrent callers should each own one.
"""

from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np


class GameRNG:
    def __init__(self, seed: Optional[int] = None) -> None:
        self.reset(seed)

    def reset(self, seed: Optional[int] = None) -> None:
        self.initial_seed = seed if seed is not None else random.randint(0, 2**32 - 1)
        self.rng = np.random.default_rng(self.initial_seed)

    # --- Draws ---

    def get_int(self, a: int, b: int) -> int:
        """Uniform integer in ``[a, b]``, both ends included."""
        if a > b:
            raise ValueError(f"empty range [{a}, {b}]")
        return int(self.rng.integers(a, b, endpoint=True))

    def get_float(self, a: float = 0.0, b: float = 1.0) -> float:
        if a > b:
            raise ValueError(f"empty range [{a}, {b}]")
        return float(self.rng.uniform(a, b))

    def roll_chance(self, chance_percent: float | None) -> bool:
        """True with ``chance_percent`` percent probability.

        ``None`` counts as 0%. Chances of 100 or more succeed without
        consuming a draw, so forcing a slot never shifts later draws.
        """
        if not chance_percent or chance_percent <= 0:
            return False
        if chance_percent >= 100:
            return True
        return self.get_int(1, 100) <= chance_percent

    def weighted_choice(self, items: Sequence[Any], weights: Sequence[float]) -> Any:
        if not items:
            raise ValueError("nothing to choose from")
        if len(items) != len(weights):
            raise ValueError(f"{len(items)} items but {len(weights)} weights")
        p = np.asarray(weights, dtype=float)
        total = p.sum()
        if total <= 0 or (p < 0).any():
            raise ValueError("weights must be non-negative with a positive sum")
        return items[int(self.rng.choice(len(items), p=p / total))]

    def weighted_key(self, table: Mapping[Any, float]) -> Any:
        """A key of ``table``, weighted by its value."""
        return self.weighted_choice(list(table), [float(w) for w in table.values()])

    def hex_id(self, length: int = 24) -> str:
        """Fresh hexadecimal id, 24 characters like catalog ids."""
        if length <= 0:
            raise ValueError("length must be positive")
        return self.rng.bytes((length + 1) // 2).hex()[:length]

    # --- Replay ---

    def get_state(self) -> Dict[str, Any]:
        return {"seed": self.initial_seed, "bit_generator": self.rng.bit_generator.state}

    def set_state(self, state: Dict[str, Any]) -> None:
        self.reset(state.get("seed", self.initial_seed))
        if "bit_generator" in state:
            self.rng.bit_generator.state = state["bit_generator"]

    def save_state(self, path: Path) -> None:
        Path(path).write_text(json.dumps(self.get_state(), indent=2), encoding="utf-8")

    def load_state(self, path: Path) -> None:
        self.set_state(json.loads(Path(path).read_text(encoding="utf-8")))


__all__ = ["GameRNG"]
