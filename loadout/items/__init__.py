"""Catalog, preset and assembled-tree data types."""

from .catalog import ItemCatalog, ItemTemplate, SlotDefinition
from .presets import Preset, PresetRegistry
from .tree import AssembledItem, find_tree_problems, items_to_frame

__all__ = [
    "AssembledItem",
    "ItemCatalog",
    "ItemTemplate",
    "Preset",
    "PresetRegistry",
    "SlotDefinition",
    "find_tree_problems",
    "items_to_frame",
]
