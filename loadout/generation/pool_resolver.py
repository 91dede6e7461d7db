"""Builds the list of candidate templates for one (parent, slot) pair."""

from __future__ import annotations

from typing import Callable, Dict, List, Self, Sequence

import structlog

from loadout.config import EquipmentBlacklist, EquipmentRoleConfig, GenerationConfig
from loadout.constants import BaseClasses
from loadout.generation.models import GenerationRequest, SpawnDecision
from loadout.generation.pool_service import ModPoolService
from loadout.items.catalog import ItemCatalog, ItemTemplate
from loadout.items.presets import Preset, PresetRegistry

log = structlog.get_logger(__name__)

PRIMARY_SCOPE_SLOTS = ("mod_scope", "mod_scope_000")


class CandidatePoolResolver:
    def __init__(
        self: Self,
        catalog: ItemCatalog,
        presets: PresetRegistry,
        pool_service: ModPoolService,
        config: GenerationConfig,
    ):
        self.catalog = catalog
        self.presets = presets
        self.pool_service = pool_service
        self.config = config

    # ------------------------------------------------------------------
    # base pool
    # ------------------------------------------------------------------
    def resolve(
        self: Self,
        parent: ItemTemplate,
        slot_name: str,
        decision: SpawnDecision,
        request: GenerationRequest,
        is_randomisable: bool = False,
        blacklist: EquipmentBlacklist | None = None,
    ) -> List[str]:
        declared = list(request.mod_pool.get(parent.id, {}).get(slot_name, []))

        if decision is SpawnDecision.DEFAULT_MOD:
            return self.default_mod_pool(parent, slot_name, declared, request)

        if is_randomisable:
            dynamic = self.pool_service.get_dynamic_pool(parent.id, slot_name)
            if not dynamic:
                log.debug(
                    "Dynamic pool empty, using declared pool",
                    parent=parent.id,
                    slot=slot_name,
                )
                return declared
            filtered = self.filter_by_blacklist(dynamic, blacklist, slot_name)
            if not filtered:
                log.warning(
                    "Every dynamic candidate is blacklisted, ignoring blacklist",
                    parent=parent.id,
                    slot=slot_name,
                )
                return dynamic
            return filtered

        return declared

    def filter_by_blacklist(
        self: Self,
        pool: List[str],
        blacklist: EquipmentBlacklist | None,
        slot_name: str,
    ) -> List[str]:
        return self.pool_service.filter_blacklisted(pool, blacklist, slot_name)

    def get_matching_preset(self: Self, root_tpl: str, parent_tpl: str) -> Preset | None:
        """Default preset of the root item, unless the parent has an override."""
        override_id = self.config.preset_overrides.get(parent_tpl)
        if override_id:
            preset = self.presets.get_preset(override_id)
            if preset is not None:
                return preset
            log.warning(
                "Preset override points at unknown preset",
                parent=parent_tpl,
                preset_id=override_id,
            )
        return self.presets.get_default_preset(root_tpl)

    def default_mod_pool(
        self: Self,
        parent: ItemTemplate,
        slot_name: str,
        declared: List[str],
        request: GenerationRequest,
    ) -> List[str]:
        preset = self.get_matching_preset(request.root.template_id, parent.id)
        preset_item = preset.item_for_slot(slot_name) if preset else None
        parent_slot = parent.get_slot(slot_name)

        if preset_item is not None:
            default_tpl = preset_item.template_id
            if default_tpl in declared:
                return [default_tpl]

            # A default outside the declared pool has no sub-pool of its own,
            # so it is only usable when it has no children to fill.
            default_template = self.catalog.get_template(default_tpl)
            if (
                default_template is not None
                and not default_template.slots
                and parent_slot is not None
                and parent_slot.allows(default_tpl)
                and default_tpl not in request.conflicts
            ):
                return [default_tpl]

        if declared:
            if len(declared) > 1:
                log.debug(
                    "No usable default mod, using existing pool",
                    slot=slot_name,
                    root=request.root.template_id,
                    pool_size=len(declared),
                )
            return declared

        if parent_slot is None or parent_slot.allowed is None:
            return []
        return [tpl for tpl in parent_slot.allowed if tpl not in request.conflicts]

    # ------------------------------------------------------------------
    # narrowing
    # ------------------------------------------------------------------
    def narrow_pool(
        self: Self,
        pool: List[str],
        slot_name: str,
        request: GenerationRequest,
        role_config: EquipmentRoleConfig,
        sight_whitelist: Dict[str, List[str]] | None = None,
    ) -> List[str]:
        """Apply every narrowing that concerns ``slot_name``."""
        if "mod_scope" in slot_name and sight_whitelist and len(pool) > 1:
            pool = self.filter_sights_by_weapon_type(
                request.root.template_id, pool, sight_whitelist
            )
        if slot_name == "mod_gas_block" and len(pool) > 1:
            pool = self.filter_gas_blocks(pool, request)
        if slot_name == "mod_magazine" and role_config.min_magazine_capacity:
            pool = self.filter_magazines_by_capacity(
                pool, role_config.min_magazine_capacity
            )
        return pool

    @staticmethod
    def _narrow(
        pool: List[str], keep: Callable[[str], bool], reason: str, **context
    ) -> List[str]:
        narrowed = [tpl for tpl in pool if keep(tpl)]
        if not narrowed:
            log.debug("Narrowing would empty pool, keeping it unfiltered", reason=reason, **context)
            return pool
        return narrowed

    def filter_sights_by_weapon_type(
        self: Self,
        weapon_tpl: str,
        scopes: List[str],
        sight_whitelist: Dict[str, List[str]],
    ) -> List[str]:
        weapon = self.catalog.get_template(weapon_tpl)
        weapon_class = weapon.parent if weapon else None
        allowed_classes = sight_whitelist.get(weapon_class or "")
        if not allowed_classes:
            log.debug(
                "No sight whitelist for weapon type, skipping sight filtering",
                weapon=weapon_tpl,
                weapon_class=weapon_class,
            )
            return scopes

        def keep(tpl: str) -> bool:
            if self.catalog.is_of_base_classes(tpl, allowed_classes):
                return True
            return self._mount_forwards_to_allowed_sights(tpl, allowed_classes)

        return self._narrow(scopes, keep, "sight whitelist", weapon=weapon_tpl)

    def _mount_forwards_to_allowed_sights(
        self: Self, tpl: str, allowed_classes: Sequence[str]
    ) -> bool:
        template = self.catalog.get_template(tpl)
        if (
            template is None
            or not template.slots
            or not self.catalog.is_of_base_class(tpl, BaseClasses.MOUNT)
        ):
            return False
        scope_slots = [s for s in template.slots if s.name in PRIMARY_SCOPE_SLOTS]
        return all(
            all(
                self.catalog.is_of_base_classes(child, allowed_classes)
                or self.catalog.is_of_base_class(child, BaseClasses.MOUNT)
                for child in slot.allowed or ()
            )
            for slot in scope_slots
        )

    def filter_gas_blocks(self: Self, pool: List[str], request: GenerationRequest) -> List[str]:
        low_profile = set(self.config.low_profile_gas_block_tpls)
        stats = request.weapon_stats
        if stats.has_optic:
            return self._narrow(pool, lambda tpl: tpl in low_profile, "low profile gas block")
        if stats.has_rear_iron_sight:
            return self._narrow(
                pool, lambda tpl: tpl not in low_profile, "high profile gas block"
            )
        return pool

    def filter_magazines_by_capacity(self: Self, pool: List[str], minimum: int) -> List[str]:
        def keep(tpl: str) -> bool:
            template = self.catalog.get_template(tpl)
            return template is not None and template.ammo_capacity >= minimum

        return self._narrow(pool, keep, "magazine capacity", minimum=minimum)


__all__ = ["CandidatePoolResolver"]
