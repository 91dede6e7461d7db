"""Item-family rules layered on top of plain slot filling.

Armor plates, scope mounts, muzzle adapters, iron sights, handguards, stocks and
cylinder magazines each adjust the remaining work of an assembly call once one
of them has been chosen.  Everything here mutates the ``GenerationRequest`` it
is handed; nothing keeps state between calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Mapping

import structlog

from loadout.config import EquipmentBlacklist, EquipmentRoleConfig, GenerationConfig
from loadout.constants import (
    CAMORA_PREFIX,
    MUZZLE_FORCED_CHANCE,
    MUZZLE_SLOTS,
    REMOVABLE_PLATE_SLOTS,
    SCOPE_CAPABLE_SLOTS,
    SCOPE_SLOTS,
    SIGHT_SLOTS,
    STOCK_SLOTS,
    BaseClasses,
)
from loadout.generation.exhaustible import ExhaustibleArray
from loadout.generation.models import FailureKind, GenerationRequest, ModPool
from loadout.items.catalog import ItemCatalog, ItemTemplate
from loadout.items.presets import PresetRegistry
from loadout.items.tree import AssembledItem

if TYPE_CHECKING:
    from game_rng import GameRNG
    from loadout.generation.pool_service import ModPoolService
    from loadout.generation.selector import CandidateSelector

log = structlog.get_logger(__name__)


# ----------------------------------------------------------------------
# armor plates
# ----------------------------------------------------------------------
class PlateFilterOutcome(Enum):
    SUCCESS = auto()
    NOT_PLATE_HOLDING_SLOT = auto()
    LACKS_PLATE_WEIGHTS = auto()
    NO_DEFAULT_FILTER = auto()
    UNKNOWN_FAILURE = auto()


@dataclass
class PlateFilterResult:
    outcome: PlateFilterOutcome
    plates: List[str] = field(default_factory=list)

    @property
    def usable(self) -> bool:
        return self.outcome not in (
            PlateFilterOutcome.NO_DEFAULT_FILTER,
            PlateFilterOutcome.UNKNOWN_FAILURE,
        )


def is_removable_plate_slot(slot_name: str) -> bool:
    return slot_name.lower() in REMOVABLE_PLATE_SLOTS


def filter_plates_by_level(
    slot_name: str,
    pool: List[str],
    armor: ItemTemplate,
    role_config: EquipmentRoleConfig,
    level: int,
    catalog: ItemCatalog,
    presets: PresetRegistry,
    rng: "GameRNG",
) -> PlateFilterResult:
    """Narrow a plate pool to one armor class drawn from the level's weights.

    If no plate of the drawn class is in the pool, the armor's own default
    plate for the slot is used, then the default preset's plate.
    """
    slot_key = slot_name.lower()
    if not is_removable_plate_slot(slot_key):
        return PlateFilterResult(PlateFilterOutcome.NOT_PLATE_HOLDING_SLOT, list(pool))

    weighting = role_config.plate_weighting_for_level(level)
    weights = weighting.for_slot(slot_key) if weighting else None
    weights = {armor_class: w for armor_class, w in (weights or {}).items() if w > 0}
    if not weights:
        return PlateFilterResult(PlateFilterOutcome.LACKS_PLATE_WEIGHTS, list(pool))

    armor_class = rng.weighted_key(weights)
    matching = []
    for tpl in pool:
        template = catalog.get_template(tpl)
        if template is not None and template.armor_class == armor_class:
            matching.append(tpl)
    if matching:
        return PlateFilterResult(PlateFilterOutcome.SUCCESS, matching)

    log.debug(
        "Plate filter too restrictive, falling back to default plate",
        armor=armor.id,
        slot=slot_name,
        armor_class=armor_class,
    )
    slot = armor.get_slot(slot_key)
    if slot is not None and slot.default_plate:
        return PlateFilterResult(PlateFilterOutcome.SUCCESS, [slot.default_plate])

    preset = presets.get_default_preset(armor.id)
    preset_item = preset.item_for_slot(slot_key) if preset else None
    if preset_item is not None:
        return PlateFilterResult(PlateFilterOutcome.SUCCESS, [preset_item.template_id])

    return PlateFilterResult(PlateFilterOutcome.NO_DEFAULT_FILTER)


# ----------------------------------------------------------------------
# spawn chance adjustments
# ----------------------------------------------------------------------
def mod_slot_can_hold_scope(slot_name: str, parent_class_id: str | None) -> bool:
    return slot_name.lower() in SCOPE_CAPABLE_SLOTS and parent_class_id == BaseClasses.MOUNT


def mod_slot_can_hold_muzzle_devices(slot_name: str) -> bool:
    return slot_name.lower() in MUZZLE_SLOTS


def mod_is_front_or_rear_sight(
    slot_name: str, template_id: str, front_sight_gas_blocks: Iterable[str] = ()
) -> bool:
    if slot_name == "mod_gas_block" and template_id in front_sight_gas_blocks:
        return True
    return slot_name in SIGHT_SLOTS


def adjust_slot_spawn_chances(
    spawn_chances: Dict[str, float], slot_names: Iterable[str], percent: float
) -> None:
    for slot_name in slot_names:
        spawn_chances[slot_name] = percent


def add_compatible_mods_for_provided_mod(
    slot_fragment: str,
    template: ItemTemplate,
    mod_pool: ModPool,
    blacklist: EquipmentBlacklist | None,
    pool_service: "ModPoolService",
) -> List[str]:
    """Give ``template`` a pool for its first slot containing ``slot_fragment``."""
    slot = next((s for s in template.slots if slot_fragment in s.name), None)
    if slot is None or not slot.allowed:
        return []

    candidates = list(slot.allowed)
    filtered = pool_service.filter_blacklisted(candidates, blacklist, slot_fragment)
    if not filtered:
        log.warning(
            "Every compatible mod is blacklisted, using them anyway",
            slot=slot.name,
            template_id=template.id,
        )
        filtered = candidates

    mod_pool.setdefault(template.id, {})[slot.name] = filtered
    return filtered


def apply_attachment_rules(
    slot_name: str,
    template: ItemTemplate,
    request: GenerationRequest,
    role_config: EquipmentRoleConfig,
    config: GenerationConfig,
    add_scope_pool: Callable[[ItemTemplate], object] | None = None,
) -> None:
    """Adjust spawn chances for the rest of the call after ``template`` is chosen.

    ``add_scope_pool`` is called for mounts placed in randomisable slots.
    """
    chances = request.spawn_chances

    if mod_slot_can_hold_scope(slot_name, template.parent):
        adjust_slot_spawn_chances(chances, SCOPE_SLOTS, 100)
        if add_scope_pool is not None:
            add_scope_pool(template)

    if mod_slot_can_hold_muzzle_devices(slot_name):
        adjust_slot_spawn_chances(chances, MUZZLE_SLOTS, MUZZLE_FORCED_CHANCE)

    if mod_is_front_or_rear_sight(slot_name, template.id, config.front_sight_gas_blocks):
        adjust_slot_spawn_chances(chances, SIGHT_SLOTS, 100)

    if (
        slot_name == "mod_handguard"
        and any(s.name == "mod_handguard" for s in template.slots)
        and not request.has_item_in_slot("mod_launcher")
    ):
        chances["mod_handguard"] = 100

    if slot_name == "mod_stock" and (
        template.has_slot_named("mod_stock") or role_config.force_stock
    ):
        adjust_slot_spawn_chances(chances, STOCK_SLOTS, 100)


def update_weapon_stats(
    slot_name: str, template: ItemTemplate, request: GenerationRequest, catalog: ItemCatalog
) -> None:
    stats = request.weapon_stats
    if catalog.is_of_base_class(template.id, BaseClasses.IRON_SIGHT):
        if slot_name == "mod_sight_front":
            stats.has_front_iron_sight = True
        elif slot_name == "mod_sight_rear":
            stats.has_rear_iron_sight = True
    elif not stats.has_optic and catalog.is_of_base_class(template.id, BaseClasses.SIGHTS):
        stats.has_optic = True


# ----------------------------------------------------------------------
# cylinder magazines
# ----------------------------------------------------------------------
def merge_camora_pools(camora_pools: Mapping[str, Iterable[str]]) -> List[str]:
    merged: Dict[str, None] = {}
    for pool in camora_pools.values():
        for tpl in pool:
            merged.setdefault(tpl)
    return list(merged)


def fill_camora(
    magazine_id: str,
    magazine: ItemTemplate,
    request: GenerationRequest,
    selector: "CandidateSelector",
    id_factory: Callable[[], str],
    rng: "GameRNG",
) -> List[AssembledItem]:
    """Load every camora slot of a cylinder magazine with the same cartridge."""

    magazine_pool = request.mod_pool.get(magazine.id)
    if not magazine_pool:
        log.warning(
            "Cylinder magazine has no mod pool, building one from its camoras",
            template_id=magazine.id,
            name=magazine.name,
        )
        magazine_pool = {
            slot.name: list(slot.allowed or ()) for slot in magazine.camora_slots
        }
        request.mod_pool[magazine.id] = magazine_pool

    if "cartridges" in magazine_pool:
        pool_slot = "cartridges"
        candidates = list(magazine_pool["cartridges"])
    elif f"{CAMORA_PREFIX}_000" in magazine_pool:
        pool_slot = f"{CAMORA_PREFIX}_000"
        candidates = merge_camora_pools(
            {k: v for k, v in magazine_pool.items() if k.startswith(CAMORA_PREFIX)}
        )
    else:
        log.error("Cylinder magazine has no cartridge slot", template_id=magazine.id)
        request.record_failure(
            FailureKind.UNRESOLVABLE_CAMORA, magazine.id, "cartridges", "no cartridge pool"
        )
        return []

    chosen = None
    draws = ExhaustibleArray(candidates, rng)
    while draws.has_values():
        tpl = draws.get_random_value()
        if selector.incompatibility_reason(tpl, request) is None:
            chosen = tpl
            break

    if chosen is None:
        log.error("No compatible camora ammo found", template_id=magazine.id, slot=pool_slot)
        request.record_failure(
            FailureKind.UNRESOLVABLE_CAMORA, magazine.id, pool_slot, "no compatible cartridge"
        )
        return []

    cartridge = selector.catalog.get_template(chosen)
    created = []
    for slot in magazine.camora_slots:
        item = AssembledItem(
            id=id_factory(), template_id=chosen, parent_id=magazine_id, slot_id=slot.name
        )
        request.items.append(item)
        created.append(item)
    if cartridge is not None:
        selector.record_attachment(cartridge, request)
    return created


__all__ = [
    "PlateFilterOutcome",
    "PlateFilterResult",
    "add_compatible_mods_for_provided_mod",
    "adjust_slot_spawn_chances",
    "apply_attachment_rules",
    "fill_camora",
    "filter_plates_by_level",
    "is_removable_plate_slot",
    "merge_camora_pools",
    "mod_is_front_or_rear_sight",
    "mod_slot_can_hold_muzzle_devices",
    "mod_slot_can_hold_scope",
    "update_weapon_stats",
]
