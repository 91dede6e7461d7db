"""Deterministic processing order for a parent's slots.

Later choices depend on earlier ones (an optic decides the gas block profile,
a mount decides scope chances), so structurally load-bearing slots go first.
"""

from typing import Iterable, List, Sequence

from loadout.constants import SCOPE_SLOTS

WEAPON_SLOT_PRIORITY: tuple[str, ...] = (
    "mod_handguard",
    "mod_barrel",
    "mod_mount_001",
    "mod_reciever",
    "mod_pistol_grip",
    "mod_gas_block",
    "mod_stock",
    "mod_mount",
    "mod_scope",
)


def _is_mount_slot(slot_name: str) -> bool:
    return slot_name == "mod_mount" or slot_name.startswith("mod_mount_")


def _pull_in_priority(slot_names: List[str], priority: Sequence[str]) -> List[str]:
    ordered = [name for name in priority if name in slot_names]
    ordered.extend(name for name in slot_names if name not in ordered)
    return ordered


def sort_mod_slots(slot_names: Iterable[str], mount_parent: bool = False) -> List[str]:
    """Reorder ``slot_names``; never drops or adds a slot."""
    names = list(slot_names)
    if len(names) <= 1:
        return names

    if mount_parent:
        scopes = [n for n in names if n in SCOPE_SLOTS]
        scopes.sort(key=SCOPE_SLOTS.index)
        mounts = [n for n in names if n not in scopes and _is_mount_slot(n)]
        rest = [n for n in names if n not in scopes and n not in mounts]
        return scopes + mounts + rest

    return _pull_in_priority(names, WEAPON_SLOT_PRIORITY)


__all__ = ["WEAPON_SLOT_PRIORITY", "sort_mod_slots"]
