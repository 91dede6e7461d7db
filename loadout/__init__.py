"""Procedural weapon and equipment mod assembly."""

from .errors import CatalogError, ConfigError, LoadoutError
from .generation import BotContext, GenerationRequest, LoadoutAssembler, ModPoolService

__all__ = [
    "BotContext",
    "CatalogError",
    "ConfigError",
    "GenerationRequest",
    "LoadoutAssembler",
    "LoadoutError",
    "ModPoolService",
]
