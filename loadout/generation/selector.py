"""Picks one compatible template out of a candidate pool."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Self, Sequence

import structlog

from loadout.config import GenerationConfig
from loadout.generation.exhaustible import ExhaustibleArray
from loadout.generation.models import (
    Found,
    GenerationRequest,
    NotFound,
    NotFoundReason,
    SelectionResult,
    SpawnDecision,
)
from loadout.items.catalog import ItemCatalog, ItemTemplate, SlotDefinition

if TYPE_CHECKING:
    from game_rng import GameRNG

log = structlog.get_logger(__name__)


class CandidateSelector:
    def __init__(self: Self, catalog: ItemCatalog, rng: "GameRNG", config: GenerationConfig):
        self.catalog = catalog
        self.rng = rng
        self.config = config

    def incompatibility_reason(
        self: Self, template_id: str, request: GenerationRequest
    ) -> str | None:
        """Why ``template_id`` cannot join the tree, or None if it can."""
        if template_id in request.conflicts:
            return f"{template_id} is in the conflict set"

        found, candidate = self.catalog.get_item(template_id)
        if not found or candidate is None:
            return f"{template_id} does not exist in the catalog"

        attached = request.attached_template_ids()
        for attached_tpl in attached:
            attached_template = self.catalog.get_template(attached_tpl)
            if attached_template and template_id in attached_template.conflicting_items:
                return f"{template_id} blocked by attached {attached_tpl}"
            if attached_tpl in candidate.conflicting_items:
                return f"{template_id} blocks attached {attached_tpl}"
            for pair in self.config.never_compatible:
                if pair.matches(attached_tpl, template_id):
                    return f"{template_id} is never compatible with {attached_tpl}"
        return None

    def select(
        self: Self,
        pool: Sequence[str],
        request: GenerationRequest,
        slot_name: str,
        parent_slot: SlotDefinition,
        decision: SpawnDecision = SpawnDecision.SPAWN,
    ) -> SelectionResult:
        """Draw without replacement until a compatible candidate turns up.

        Draws outside the parent slot's filter are dropped silently. Every
        conflicting draw counts against a budget of ``max_retry_ratio`` of the
        pool size; going over it gives up with ``ALL_CONFLICTING``.

        The budget is checked before a blocked draw is counted, so
        ``round(len(pool) * max_retry_ratio) + 1`` conflicts are tolerated
        before giving up. At the default 0.75 a pool of 8 is drawn to the end.
        """
        if not pool:
            return NotFound(NotFoundReason.NO_CANDIDATES, f"empty pool for {slot_name}")

        draws = ExhaustibleArray(pool, self.rng)
        max_blocked = round(len(pool) * self.config.max_retry_ratio)
        blocked = 0
        last_reason = ""
        single_default = decision is SpawnDecision.DEFAULT_MOD and len(pool) == 1

        while draws.has_values():
            template_id = draws.get_random_value()
            if not single_default and not parent_slot.allows(template_id):
                continue

            reason = self.incompatibility_reason(template_id, request)
            if reason is None:
                return Found(template_id)

            last_reason = reason
            if blocked > max_blocked:
                log.debug(
                    "Gave up on slot after too many blocked draws",
                    slot=slot_name,
                    attempts=blocked,
                    pool_size=len(pool),
                )
                break
            blocked += 1

        if blocked:
            return NotFound(NotFoundReason.ALL_CONFLICTING, last_reason)
        return NotFound(
            NotFoundReason.NO_CANDIDATES, f"no pool entry fits the {slot_name} filter"
        )

    def select_compatible(
        self: Self, pool: Sequence[str], request: GenerationRequest, slot_name: str
    ) -> SelectionResult:
        """Draw until a compatible candidate turns up, with no retry budget."""
        if not pool:
            return NotFound(NotFoundReason.NO_CANDIDATES, f"empty pool for {slot_name}")
        draws = ExhaustibleArray(pool, self.rng)
        while draws.has_values():
            template_id = draws.get_random_value()
            if self.incompatibility_reason(template_id, request) is None:
                return Found(template_id)
        return NotFound(
            NotFoundReason.ALL_CONFLICTING, f"every {slot_name} candidate conflicts"
        )

    def select_from_allowed_filter(
        self: Self,
        parent_slot: SlotDefinition,
        request: GenerationRequest,
        slot_name: str,
    ) -> SelectionResult:
        """Last resort for required slots: any legal item from the slot filter."""
        allowed: List[str] = [
            tpl for tpl in parent_slot.allowed or () if self.catalog.get_item(tpl)[0]
        ]
        result = self.select_compatible(allowed, request, slot_name)
        if isinstance(result, Found):
            return result
        return NotFound(
            NotFoundReason.REQUIRED_BUT_MISSING,
            f"no compatible item in the {slot_name} filter",
        )

    @staticmethod
    def record_attachment(template: ItemTemplate, request: GenerationRequest) -> None:
        # Applies to the whole tree, including branches not yet visited.
        request.conflicts.update(template.conflicting_items)


__all__ = ["CandidateSelector"]
