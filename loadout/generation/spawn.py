from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Mapping

import structlog

from loadout.constants import AMMO_CONTAINERS
from loadout.generation.models import SpawnDecision

if TYPE_CHECKING:
    from game_rng import GameRNG

log = structlog.get_logger(__name__)


def is_ammo_container(slot_name: str) -> bool:
    return slot_name.lower() in AMMO_CONTAINERS


def decide_spawn(
    slot_name: str,
    spawn_chance: float | None,
    is_required: bool,
    rng: "GameRNG",
    force_required: Iterable[str] = (),
) -> SpawnDecision:
    """Roll whether a slot gets an item.

    Ammo-carrying slots always spawn. A failed roll on a required slot (by
    template or by the role's force-required list) becomes ``DEFAULT_MOD``.
    """
    if is_ammo_container(slot_name):
        return SpawnDecision.SPAWN

    if rng.roll_chance(spawn_chance):
        return SpawnDecision.SPAWN

    if is_required or slot_name.lower() in {s.lower() for s in force_required}:
        log.debug("Spawn roll failed on required slot, using default", slot=slot_name)
        return SpawnDecision.DEFAULT_MOD

    return SpawnDecision.SKIP


def chance_for(spawn_chances: Mapping[str, float], slot_name: str) -> float | None:
    """Spawn chance of a slot, matching keys case-insensitively."""
    if slot_name in spawn_chances:
        return spawn_chances[slot_name]
    return spawn_chances.get(slot_name.lower())


__all__ = ["chance_for", "decide_spawn", "is_ammo_container"]
