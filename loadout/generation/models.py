"""Data model shared by the assembly steps.

``SpawnDecision`` and ``SelectionResult`` are closed sum types: callers branch on
every member, so adding a variant shows up as an unhandled case in review and
in type checking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Dict, List, Union

from loadout.items.tree import AssembledItem

if TYPE_CHECKING:
    from loadout.generation.mod_limits import ModLimitTracker

ModPool = Dict[str, Dict[str, List[str]]]


class SpawnDecision(Enum):
    SPAWN = auto()
    DEFAULT_MOD = auto()
    SKIP = auto()


class NotFoundReason(Enum):
    NO_CANDIDATES = auto()
    ALL_CONFLICTING = auto()
    REQUIRED_BUT_MISSING = auto()


@dataclass(frozen=True)
class Found:
    template_id: str


@dataclass(frozen=True)
class NotFound:
    reason: NotFoundReason
    detail: str = ""


SelectionResult = Union[Found, NotFound]


class FailureKind(Enum):
    MISSING_SLOT_TEMPLATE = auto()
    NO_CANDIDATES = auto()
    REQUIRED_SLOT_UNFILLABLE = auto()
    ALL_CONFLICTING = auto()
    MALFORMED_CATALOG_ENTRY = auto()
    UNRESOLVABLE_PLATE = auto()
    UNRESOLVABLE_CAMORA = auto()
    INVALID_MOD = auto()
    CYCLE_DETECTED = auto()
    MAX_DEPTH_REACHED = auto()


@dataclass(frozen=True)
class SlotFailure:
    """A slot that ended up empty (or unexpanded), kept for callers and tests."""

    kind: FailureKind
    parent_tpl: str
    slot: str
    detail: str = ""


@dataclass
class BotContext:
    role: str
    equipment_role: str
    level: int = 1


@dataclass
class WeaponStats:
    has_optic: bool = False
    has_front_iron_sight: bool = False
    has_rear_iron_sight: bool = False


@dataclass
class GenerationRequest:
    """Mutable state of one assembly call.

    ``items`` starts with the root node and grows as attachments are made.
    ``spawn_chances`` and ``conflicts`` are read and written by every slot in
    processing order, so slot order decides which mutations later slots see.
    """

    items: List[AssembledItem]
    mod_pool: ModPool
    spawn_chances: Dict[str, float]
    bot: BotContext
    conflicts: set[str] = field(default_factory=set)
    weapon_stats: WeaponStats = field(default_factory=WeaponStats)
    ammo_tpl: str | None = None
    mod_limits: "ModLimitTracker | None" = None
    failures: List[SlotFailure] = field(default_factory=list)

    @property
    def root(self) -> AssembledItem:
        return self.items[0]

    def attached_template_ids(self) -> List[str]:
        return [item.template_id for item in self.items]

    def has_item_in_slot(self, slot_id: str) -> bool:
        return any(item.slot_id == slot_id for item in self.items)

    def record_failure(
        self, kind: FailureKind, parent_tpl: str, slot: str, detail: str = ""
    ) -> SlotFailure:
        failure = SlotFailure(kind=kind, parent_tpl=parent_tpl, slot=slot, detail=detail)
        self.failures.append(failure)
        return failure

    def failures_of(self, kind: FailureKind) -> List[SlotFailure]:
        return [f for f in self.failures if f.kind == kind]

    def summary(self) -> Dict[str, Any]:
        return {
            "root_tpl": self.root.template_id,
            "items": len(self.items),
            "conflicts": len(self.conflicts),
            "failures": len(self.failures),
        }


__all__ = [
    "BotContext",
    "FailureKind",
    "Found",
    "GenerationRequest",
    "ModPool",
    "NotFound",
    "NotFoundReason",
    "SelectionResult",
    "SlotFailure",
    "SpawnDecision",
    "WeaponStats",
]
