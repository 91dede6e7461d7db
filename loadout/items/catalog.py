# loadout/items/catalog.py
"""Read-only compatibility catalog.

Templates are loaded once from YAML (``templates:`` mapping of id -> definition)
and parsed into frozen :class:`ItemTemplate` objects.  Base classes are ordinary
templates flagged ``node: true``; ``parent`` links every template to its class
so :meth:`ItemCatalog.is_of_base_class` can walk the chain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Self, Tuple

import structlog

from loadout.config import load_yaml_file
from loadout.constants import CAMORA_PREFIX, CYLINDER_MAGAZINE_CLASS_NAMES
from loadout.errors import CatalogError

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SlotDefinition:
    """A named attachment point on a template."""

    name: str
    required: bool = False
    # None when the catalog entry has no filter list at all
    allowed: Tuple[str, ...] | None = ()
    default_plate: str | None = None
    max_count: int = 0

    @property
    def is_malformed(self) -> bool:
        return self.allowed is None

    def allows(self, template_id: str) -> bool:
        return self.allowed is not None and template_id in self.allowed

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SlotDefinition":
        raw_filter = data.get("filter")
        return cls(
            name=str(data["name"]),
            required=bool(data.get("required", False)),
            allowed=tuple(str(t) for t in raw_filter) if raw_filter is not None else None,
            default_plate=data.get("plate"),
            max_count=int(data.get("max_count", 0)),
        )


@dataclass(frozen=True)
class ItemTemplate:
    """Immutable catalog entry."""

    id: str
    name: str
    parent: str | None = None
    node: bool = False
    slots: Tuple[SlotDefinition, ...] = ()
    chambers: Tuple[SlotDefinition, ...] = ()
    cartridges: Tuple[SlotDefinition, ...] = ()
    conflicting_items: frozenset[str] = frozenset()
    props: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def get_slot(self, slot_name: str) -> SlotDefinition | None:
        """Find a slot, chamber or cartridge entry by (case-insensitive) name."""
        wanted = slot_name.lower()
        if wanted.startswith("patron_in_weapon"):
            return next((c for c in self.chambers if wanted in c.name.lower()), None)
        if wanted == "cartridges":
            return next((c for c in self.cartridges if c.name.lower() == wanted), None)
        return next((s for s in self.slots if s.name.lower() == wanted), None)

    def has_slot_named(self, fragment: str) -> bool:
        return any(fragment in s.name for s in self.slots)

    @property
    def has_attachment_points(self) -> bool:
        return bool(self.slots or self.chambers or self.cartridges)

    @property
    def camora_slots(self) -> list[SlotDefinition]:
        return [s for s in self.slots if s.name.startswith(CAMORA_PREFIX)]

    @property
    def armor_class(self) -> int | None:
        value = self.props.get("armor_class")
        return int(value) if value is not None else None

    @property
    def ammo_capacity(self) -> int:
        """Rounds the item holds: first cartridge slot, else its camora count."""
        if self.cartridges and self.cartridges[0].max_count:
            return self.cartridges[0].max_count
        return len(self.camora_slots)

    @classmethod
    def from_dict(cls, template_id: str, data: Mapping[str, Any]) -> "ItemTemplate":
        def _slots(key: str) -> Tuple[SlotDefinition, ...]:
            return tuple(SlotDefinition.from_dict(s) for s in data.get(key) or [])

        return cls(
            id=template_id,
            name=str(data.get("name", template_id)),
            parent=data.get("parent"),
            node=bool(data.get("node", False)),
            slots=_slots("slots"),
            chambers=_slots("chambers"),
            cartridges=_slots("cartridges"),
            conflicting_items=frozenset(data.get("conflicting_items") or []),
            props=MappingProxyType(dict(data.get("props") or {})),
        )


class ItemCatalog:
    def __init__(self: Self, item_templates: Dict[str, dict]):
        self.templates: Dict[str, ItemTemplate] = {}
        for template_id, definition in item_templates.items():
            if not isinstance(definition, dict):
                log.error("Skipping malformed catalog entry", template_id=template_id)
                continue
            try:
                self.templates[str(template_id)] = ItemTemplate.from_dict(
                    str(template_id), definition
                )
            except (KeyError, TypeError, ValueError) as e:
                log.error(
                    "Skipping malformed catalog entry",
                    template_id=template_id,
                    error=str(e),
                )
        log.debug("ItemCatalog initialized", templates_loaded=len(self.templates))

    @classmethod
    def from_yaml(cls, path: Path) -> "ItemCatalog":
        data = load_yaml_file(path, "Item catalog", error_cls=CatalogError)
        templates = data.get("templates")
        if not isinstance(templates, dict):
            raise CatalogError(f"Item catalog has no 'templates' mapping: {path}")
        return cls(templates)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self.templates

    def __len__(self) -> int:
        return len(self.templates)

    def get_template(self: Self, template_id: str | None) -> ItemTemplate | None:
        """Safely retrieve a template definition."""
        if template_id is None:
            return None
        return self.templates.get(template_id)

    def get_item(self: Self, template_id: str | None) -> Tuple[bool, ItemTemplate | None]:
        """Look up a template; the flag is False when it is unknown or a class node."""
        template = self.get_template(template_id)
        if template is None:
            return False, None
        return not template.node, template

    def is_of_base_class(self: Self, template_id: str, class_id: str) -> bool:
        return self.is_of_base_classes(template_id, (class_id,))

    def is_of_base_classes(self: Self, template_id: str, class_ids: Iterable[str]) -> bool:
        """True if the template or any of its ancestors is one of ``class_ids``."""
        wanted = set(class_ids)
        seen: set[str] = set()
        current = self.templates.get(template_id)
        while current is not None and current.id not in seen:
            if current.id in wanted:
                return True
            seen.add(current.id)
            current = self.templates.get(current.parent) if current.parent else None
        return False

    def parent_name(self: Self, template_id: str) -> str | None:
        template = self.templates.get(template_id)
        if template is None or template.parent is None:
            return None
        parent = self.templates.get(template.parent)
        return parent.name if parent else None

    def is_cylinder_magazine(self: Self, template_id: str) -> bool:
        return self.parent_name(template_id) in CYLINDER_MAGAZINE_CLASS_NAMES


__all__ = ["ItemCatalog", "ItemTemplate", "SlotDefinition"]
