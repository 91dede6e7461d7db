from .assembler import LoadoutAssembler
from .models import (
    BotContext,
    FailureKind,
    Found,
    GenerationRequest,
    NotFound,
    NotFoundReason,
    SlotFailure,
    SpawnDecision,
    WeaponStats,
)
from .pool_service import ModPoolService

__all__ = [
    "BotContext",
    "FailureKind",
    "Found",
    "GenerationRequest",
    "LoadoutAssembler",
    "ModPoolService",
    "NotFound",
    "NotFoundReason",
    "SlotFailure",
    "SpawnDecision",
    "WeaponStats",
]
