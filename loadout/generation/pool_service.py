from __future__ import annotations

"""Dynamic mod pool hydration and equipment filtering.

Builds candidate pools straight from the catalog's slot filters for slots a bot
profile marks as randomisable, and serves the per-role blacklists and sight
whitelists from the generation config.
"""

from typing import Dict, List, Self, Sequence, Tuple

import structlog

from loadout.config import EquipmentBlacklist, GenerationConfig
from loadout.items.catalog import ItemCatalog

log = structlog.get_logger(__name__)


class ModPoolService:
    def __init__(self: Self, catalog: ItemCatalog, config: GenerationConfig):
        self.catalog = catalog
        self.config = config
        self._slot_pool_cache: Dict[Tuple[str, str], Tuple[str, ...]] = {}

    def get_dynamic_pool(self: Self, parent_id: str, slot_name: str) -> List[str]:
        """Every known item the parent's slot filter accepts."""
        key = (parent_id, slot_name.lower())
        cached = self._slot_pool_cache.get(key)
        if cached is None:
            parent = self.catalog.get_template(parent_id)
            slot = parent.get_slot(slot_name) if parent else None
            if slot is None or slot.allowed is None:
                log.debug(
                    "No slot filter to build dynamic pool from",
                    parent_id=parent_id,
                    slot=slot_name,
                )
                cached = ()
            else:
                cached = tuple(tpl for tpl in slot.allowed if self.catalog.get_item(tpl)[0])
            self._slot_pool_cache[key] = cached
        return list(cached)

    def get_mods_for_item(self: Self, template_id: str) -> Dict[str, List[str]]:
        """Slot -> candidates for every slot of ``template_id`` that has any."""
        template = self.catalog.get_template(template_id)
        if template is None:
            return {}
        pools: Dict[str, List[str]] = {}
        for slot in template.slots:
            pool = self.get_dynamic_pool(template_id, slot.name)
            if pool:
                pools[slot.name] = pool
        return pools

    def get_blacklist(
        self: Self, equipment_role: str, level: int
    ) -> EquipmentBlacklist | None:
        return self.config.equipment_for(equipment_role).blacklist_for_level(level)

    def get_sight_whitelist(self: Self, equipment_role: str) -> Dict[str, List[str]]:
        return self.config.equipment_for(equipment_role).weapon_sight_whitelist

    def filter_blacklisted(
        self: Self,
        pool: Sequence[str],
        blacklist: EquipmentBlacklist | None,
        slot_name: str,
    ) -> List[str]:
        """Remove globally blacklisted items and the role's items for this slot."""
        blocked = set(self.config.item_blacklist)
        if blacklist is not None:
            blocked.update(blacklist.equipment.get(slot_name, []))
        return [tpl for tpl in pool if tpl not in blocked]


__all__ = ["ModPoolService"]
