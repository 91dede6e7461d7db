# loadout/generation/assembler.py

"""
Drives one assembly call: walks a root item's slots depth first, deciding,
resolving, selecting and attaching a child for each, and descending into every
child that has a mod pool of its own.

Traversal uses an explicit stack of frames instead of recursion. The visiting
order matches plain recursive descent: a child's whole subtree is finished
before the parent's next slot is looked at, so spawn chance and conflict
updates made deep in one branch are visible to every slot processed later.
"""

import copy
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Callable, Dict, FrozenSet, Iterator, List, Self

import structlog
from structlog.contextvars import bound_contextvars

from loadout.config import (
    EquipmentBlacklist,
    EquipmentRoleConfig,
    GenerationConfig,
)
from loadout.constants import BaseClasses
from loadout.generation.mod_limits import ModLimitTracker
from loadout.generation.models import (
    BotContext,
    FailureKind,
    Found,
    GenerationRequest,
    ModPool,
    NotFound,
    NotFoundReason,
    SpawnDecision,
)
from loadout.generation.pool_resolver import CandidatePoolResolver
from loadout.generation.pool_service import ModPoolService
from loadout.generation.selector import CandidateSelector
from loadout.generation.slot_order import sort_mod_slots
from loadout.generation.spawn import chance_for, decide_spawn, is_ammo_container
from loadout.generation.special_cases import (
    PlateFilterOutcome,
    add_compatible_mods_for_provided_mod,
    apply_attachment_rules,
    fill_camora,
    filter_plates_by_level,
    is_removable_plate_slot,
    update_weapon_stats,
)
from loadout.items.catalog import ItemCatalog, ItemTemplate, SlotDefinition
from loadout.items.presets import PresetRegistry
from loadout.items.tree import AssembledItem

if TYPE_CHECKING:
    from game_rng import GameRNG

log = structlog.get_logger(__name__)


@dataclass
class _Frame:
    """One parent whose slots are still being filled."""

    parent_id: str
    template: ItemTemplate
    slots: Iterator[str]
    # template ids from the root down to (and including) this parent
    path: FrozenSet[str]
    depth: int = 0
    force_spawn: bool = False


@dataclass
class _WeaponContext:
    role_config: EquipmentRoleConfig
    blacklist: EquipmentBlacklist | None
    sight_whitelist: Dict[str, List[str]]
    randomisable_slots: FrozenSet[str] = field(default_factory=frozenset)


class LoadoutAssembler:
    def __init__(
        self: Self,
        catalog: ItemCatalog,
        presets: PresetRegistry,
        pool_service: ModPoolService,
        config: GenerationConfig,
        rng: "GameRNG",
        id_factory: Callable[[], str] | None = None,
    ):
        self.catalog = catalog
        self.presets = presets
        self.pool_service = pool_service
        self.config = config
        self.rng = rng
        self.id_factory: Callable[[], str] = id_factory or rng.hex_id
        self.resolver = CandidatePoolResolver(catalog, presets, pool_service, config)
        self.selector = CandidateSelector(catalog, rng, config)

    # --- Request construction ---

    def _new_request(
        self: Self,
        root_tpl: str,
        bot: BotContext,
        mod_pool: ModPool,
        spawn_chances: Dict[str, float],
        ammo_tpl: str | None = None,
    ) -> GenerationRequest:
        root = AssembledItem(id=self.id_factory(), template_id=root_tpl)
        return GenerationRequest(
            items=[root],
            mod_pool=copy.deepcopy(mod_pool),
            spawn_chances=dict(spawn_chances),
            bot=bot,
            ammo_tpl=ammo_tpl,
        )

    def generate_weapon(
        self: Self,
        weapon_tpl: str,
        bot: BotContext,
        mod_pool: ModPool,
        spawn_chances: Dict[str, float],
        ammo_tpl: str | None = None,
    ) -> GenerationRequest:
        """Assemble a weapon and every mod on it.

        The caller's mod pool and spawn chances are copied, never mutated.
        """
        request = self._new_request(weapon_tpl, bot, mod_pool, spawn_chances, ammo_tpl)
        self.generate_mods_for_weapon(request)
        log.debug("Weapon assembled", **request.summary())
        return request

    def generate_equipment(
        self: Self,
        equipment_tpl: str,
        bot: BotContext,
        mod_pool: ModPool,
        spawn_chances: Dict[str, float],
    ) -> GenerationRequest:
        """Assemble an armor or headwear item with its plates and mods."""
        request = self._new_request(equipment_tpl, bot, mod_pool, spawn_chances)
        self.generate_mods_for_equipment(request)
        log.debug("Equipment assembled", **request.summary())
        return request

    # --- Shared helpers ---

    def _child_frame(
        self: Self,
        item: AssembledItem,
        template: ItemTemplate,
        parent: _Frame,
        request: GenerationRequest,
        slot_order: Callable[[ItemTemplate, GenerationRequest], List[str]],
        force_spawn: bool = False,
    ) -> _Frame | None:
        if template.id in parent.path:
            log.warning(
                "Template already on the active path, not expanding",
                template_id=template.id,
                slot=item.slot_id,
            )
            request.record_failure(
                FailureKind.CYCLE_DETECTED, parent.template.id, item.slot_id or "", template.id
            )
            return None
        if parent.depth + 1 > self.config.max_depth:
            log.warning(
                "Maximum assembly depth reached, not expanding",
                template_id=template.id,
                max_depth=self.config.max_depth,
            )
            request.record_failure(
                FailureKind.MAX_DEPTH_REACHED, parent.template.id, item.slot_id or "", template.id
            )
            return None
        return _Frame(
            parent_id=item.id,
            template=template,
            slots=iter(slot_order(template, request)),
            path=parent.path | {template.id},
            depth=parent.depth + 1,
            force_spawn=force_spawn,
        )

    def _attach(
        self: Self,
        template: ItemTemplate,
        parent_id: str,
        slot_name: str,
        request: GenerationRequest,
    ) -> AssembledItem:
        item = AssembledItem(
            id=self.id_factory(),
            template_id=template.id,
            parent_id=parent_id,
            slot_id=slot_name,
        )
        request.items.append(item)
        self.selector.record_attachment(template, request)
        return item

    def _slot_definition(
        self: Self, parent: ItemTemplate, slot_name: str, request: GenerationRequest
    ) -> SlotDefinition | None:
        slot = parent.get_slot(slot_name)
        if slot is None:
            log.error(
                "Mod slot missing from parent template",
                slot=slot_name,
                parent=parent.id,
                parent_name=parent.name,
            )
            request.record_failure(FailureKind.MISSING_SLOT_TEMPLATE, parent.id, slot_name)
            return None
        if slot.is_malformed:
            log.error(
                "Slot has no filter list, treating it as unfillable",
                slot=slot_name,
                parent=parent.id,
                required=slot.required,
            )
            request.record_failure(FailureKind.MALFORMED_CATALOG_ENTRY, parent.id, slot_name)
            return None
        return slot

    def _valid_template(
        self: Self,
        template_id: str,
        parent: ItemTemplate,
        slot: SlotDefinition,
        request: GenerationRequest,
    ) -> ItemTemplate | None:
        found, template = self.catalog.get_item(template_id)
        if found and template is not None:
            return template
        if slot.required:
            log.warning(
                "Unable to add invalid mod to required slot",
                template_id=template_id,
                slot=slot.name,
                parent=parent.id,
            )
        else:
            log.error("No item template found for mod", template_id=template_id, slot=slot.name)
        request.record_failure(FailureKind.INVALID_MOD, parent.id, slot.name, template_id)
        return None

    def _resolve_failed_selection(
        self: Self,
        result: NotFound,
        parent: ItemTemplate,
        slot: SlotDefinition,
        slot_name: str,
        request: GenerationRequest,
    ) -> str | None:
        """Required slots retry against the whole slot filter; others give up."""
        if not slot.required:
            kind = (
                FailureKind.ALL_CONFLICTING
                if result.reason is NotFoundReason.ALL_CONFLICTING
                else FailureKind.NO_CANDIDATES
            )
            log.debug("No compatible mod for optional slot", slot=slot_name, reason=result.detail)
            request.record_failure(kind, parent.id, slot_name, result.detail)
            return None

        fallback = self.selector.select_from_allowed_filter(slot, request, slot_name)
        if isinstance(fallback, Found):
            return fallback.template_id

        log.warning(
            "Required slot unable to be filled",
            slot=slot_name,
            parent=parent.id,
            parent_name=parent.name,
            root=request.root.template_id,
            reason=result.detail,
        )
        request.record_failure(
            FailureKind.REQUIRED_SLOT_UNFILLABLE, parent.id, slot_name, result.detail
        )
        return None

    # --- Weapons ---

    def _weapon_slot_order(
        self: Self, template: ItemTemplate, request: GenerationRequest
    ) -> List[str]:
        return sort_mod_slots(
            request.mod_pool.get(template.id, {}).keys(),
            mount_parent=self.catalog.is_of_base_class(template.id, BaseClasses.MOUNT),
        )

    def _weapon_context(self: Self, request: GenerationRequest) -> _WeaponContext:
        bot = request.bot
        role_config = self.config.equipment_for(bot.equipment_role)
        randomisation = role_config.randomisation_for_level(bot.level)
        return _WeaponContext(
            role_config=role_config,
            blacklist=self.pool_service.get_blacklist(bot.equipment_role, bot.level),
            sight_whitelist=self.pool_service.get_sight_whitelist(bot.equipment_role),
            randomisable_slots=frozenset(
                randomisation.randomised_weapon_mod_slots if randomisation else ()
            ),
        )

    def generate_mods_for_weapon(self: Self, request: GenerationRequest) -> List[AssembledItem]:
        root = request.root
        root_template = self.catalog.get_template(root.template_id)
        if root_template is None or not root_template.has_attachment_points:
            log.error(
                "Unable to add mods to weapon without slots, chambers or cartridges",
                weapon=root.template_id,
                role=request.bot.role,
            )
            return request.items
        if root_template.id not in request.mod_pool:
            log.warning(
                "Bot lacks a mod pool for weapon", weapon=root.template_id, role=request.bot.role
            )
            return request.items

        ctx = self._weapon_context(request)
        if request.mod_limits is None:
            request.mod_limits = ModLimitTracker(
                self.catalog,
                ctx.role_config.weapon_mod_limits,
                self.config.backup_mount_tpls,
                role=request.bot.equipment_role,
            )

        with bound_contextvars(
            bot_role=request.bot.role, root_tpl=root.template_id
        ):
            stack = [
                _Frame(
                    parent_id=root.id,
                    template=root_template,
                    slots=iter(self._weapon_slot_order(root_template, request)),
                    path=frozenset({root_template.id}),
                )
            ]
            while stack:
                frame = stack[-1]
                slot_name = next(frame.slots, None)
                if slot_name is None:
                    stack.pop()
                    continue
                child = self._fill_weapon_slot(frame, slot_name, request, ctx)
                if child is not None:
                    stack.append(child)
        return request.items

    def _choose_weapon_mod(
        self: Self,
        parent: ItemTemplate,
        slot: SlotDefinition,
        slot_name: str,
        decision: SpawnDecision,
        is_randomisable: bool,
        request: GenerationRequest,
        ctx: _WeaponContext,
    ) -> str | None:
        if is_ammo_container(slot_name) and slot_name != "mod_magazine" and request.ammo_tpl:
            return request.ammo_tpl

        pool = self.resolver.resolve(
            parent, slot_name, decision, request, is_randomisable, ctx.blacklist
        )
        if not pool and not slot.required:
            log.debug("Mod pool for slot was empty, skipping", slot=slot_name, parent=parent.id)
            request.record_failure(FailureKind.NO_CANDIDATES, parent.id, slot_name)
            return None

        pool = self.resolver.narrow_pool(
            pool, slot_name, request, ctx.role_config, ctx.sight_whitelist
        )
        result = self.selector.select(pool, request, slot_name, slot, decision)
        if isinstance(result, Found):
            return result.template_id
        return self._resolve_failed_selection(result, parent, slot, slot_name, request)

    def _fill_weapon_slot(
        self: Self,
        frame: _Frame,
        slot_name: str,
        request: GenerationRequest,
        ctx: _WeaponContext,
    ) -> _Frame | None:
        parent = frame.template
        slot = self._slot_definition(parent, slot_name, request)
        if slot is None:
            return None

        decision = decide_spawn(
            slot_name,
            chance_for(request.spawn_chances, slot_name),
            slot.required,
            self.rng,
            ctx.role_config.weapon_slot_ids_to_make_required,
        )
        if decision is SpawnDecision.SKIP:
            return None

        is_randomisable = slot_name in ctx.randomisable_slots
        template_id = self._choose_weapon_mod(
            parent, slot, slot_name, decision, is_randomisable, request, ctx
        )
        if template_id is None:
            return None
        template = self._valid_template(template_id, parent, slot, request)
        if template is None:
            return None

        if request.mod_limits is not None and request.mod_limits.has_reached_limit(
            template, parent, request.attached_template_ids()
        ):
            log.debug("Mod type limit reached, skipping", slot=slot_name, template_id=template.id)
            return None

        add_scope_pool = None
        if is_randomisable:
            add_scope_pool = partial(
                add_compatible_mods_for_provided_mod,
                "mod_scope",
                mod_pool=request.mod_pool,
                blacklist=ctx.blacklist,
                pool_service=self.pool_service,
            )
        apply_attachment_rules(
            slot_name, template, request, ctx.role_config, self.config, add_scope_pool
        )
        update_weapon_stats(slot_name, template, request, self.catalog)

        item = self._attach(template, frame.parent_id, slot_name, request)

        if self.catalog.is_cylinder_magazine(template.id):
            fill_camora(item.id, template, request, self.selector, self.id_factory, self.rng)
            return None

        if is_randomisable and template.id not in request.mod_pool and template.slots:
            hydrated = self.pool_service.get_mods_for_item(template.id)
            if hydrated:
                request.mod_pool[template.id] = hydrated

        if template.id not in request.mod_pool:
            return None
        return self._child_frame(item, template, frame, request, self._weapon_slot_order)

    # --- Armor and headwear ---

    @staticmethod
    def _equipment_slot_order(template: ItemTemplate, request: GenerationRequest) -> List[str]:
        return list(request.mod_pool.get(template.id, {}).keys())

    def generate_mods_for_equipment(
        self: Self, request: GenerationRequest
    ) -> List[AssembledItem]:
        root = request.root
        root_template = self.catalog.get_template(root.template_id)
        if root_template is None:
            log.error("Unknown equipment template", template_id=root.template_id)
            return request.items

        role_config = self.config.equipment_for(request.bot.equipment_role)
        with bound_contextvars(
            bot_role=request.bot.role, root_tpl=root.template_id
        ):
            stack = [
                _Frame(
                    parent_id=root.id,
                    template=root_template,
                    slots=iter(self._equipment_slot_order(root_template, request)),
                    path=frozenset({root_template.id}),
                )
            ]
            if root_template.id not in request.mod_pool:
                log.warning(
                    "Bot lacks a mod slot pool for item",
                    template_id=root_template.id,
                    name=root_template.name,
                    role=request.bot.role,
                )
            while stack:
                frame = stack[-1]
                slot_name = next(frame.slots, None)
                if slot_name is None:
                    stack.pop()
                    continue
                child = self._fill_equipment_slot(frame, slot_name, request, role_config)
                if child is not None:
                    stack.append(child)
        return request.items

    def _equipment_pool(
        self: Self,
        parent: ItemTemplate,
        slot_name: str,
        request: GenerationRequest,
        role_config: EquipmentRoleConfig,
    ) -> List[str] | None:
        pool = list(request.mod_pool.get(parent.id, {}).get(slot_name, []))
        if not (role_config.filter_plates_by_level and is_removable_plate_slot(slot_name)):
            return pool

        outcome = filter_plates_by_level(
            slot_name,
            pool,
            parent,
            role_config,
            request.bot.level,
            self.catalog,
            self.presets,
            self.rng,
        )
        if not outcome.usable:
            log.debug(
                "Plate slot selection failed, skipping",
                slot=slot_name,
                armor=parent.id,
                outcome=outcome.outcome.name,
            )
            request.record_failure(
                FailureKind.UNRESOLVABLE_PLATE, parent.id, slot_name, outcome.outcome.name
            )
            return None
        if outcome.outcome is PlateFilterOutcome.LACKS_PLATE_WEIGHTS:
            log.warning(
                "Plate slot lacks weights, using existing plate pool",
                slot=slot_name,
                armor=parent.id,
                level=request.bot.level,
            )
        return outcome.plates

    def _fill_equipment_slot(
        self: Self,
        frame: _Frame,
        slot_name: str,
        request: GenerationRequest,
        role_config: EquipmentRoleConfig,
    ) -> _Frame | None:
        parent = frame.template
        slot = self._slot_definition(parent, slot_name, request)
        if slot is None:
            return None

        decision = decide_spawn(
            slot_name.lower(),
            chance_for(request.spawn_chances, slot_name),
            slot.required,
            self.rng,
            role_config.weapon_slot_ids_to_make_required,
        )
        if decision is SpawnDecision.SKIP and not frame.force_spawn:
            return None

        # nvg mounts and everything on them spawn together; sibling slots of
        # mod_nvg keep their own rolls
        force_children = frame.force_spawn or slot_name == "mod_nvg"

        pool = self._equipment_pool(parent, slot_name, request, role_config)
        if pool is None:
            return None

        result = self.selector.select_compatible(pool, request, slot_name)
        if isinstance(result, Found):
            template_id = result.template_id
        else:
            template_id = self._resolve_failed_selection(result, parent, slot, slot_name, request)
        if template_id is None:
            return None

        template = self._valid_template(template_id, parent, slot, request)
        if template is None:
            return None

        item = self._attach(template, frame.parent_id, slot_name, request)
        if template.id not in request.mod_pool:
            return None
        return self._child_frame(
            item,
            template,
            frame,
            request,
            self._equipment_slot_order,
            force_spawn=force_children,
        )


__all__ = ["LoadoutAssembler"]
