from __future__ import annotations

"""Registry of known-good default configurations ("presets").

A preset is a flat item list whose first parentless entry is the root item.
The assembler consults presets when a required slot rolls ``DEFAULT_MOD`` and
when an armor plate filter leaves nothing to choose from.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Self, Tuple

import structlog

from loadout.config import load_yaml_file
from loadout.errors import CatalogError
from loadout.items.tree import AssembledItem

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Preset:
    id: str
    root_tpl: str
    is_default: bool = False
    name: str = ""
    items: Tuple[AssembledItem, ...] = field(default_factory=tuple)

    def item_for_slot(self, slot_name: str) -> AssembledItem | None:
        wanted = slot_name.lower()
        return next(
            (i for i in self.items if i.slot_id and i.slot_id.lower() == wanted), None
        )


def _parse_preset(preset_id: str, data: Dict[str, Any]) -> Preset:
    raw_items: List[Dict[str, Any]] = data.get("items") or []
    items = tuple(
        AssembledItem(
            id=str(raw.get("id", f"{preset_id}_{index}")),
            template_id=str(raw["tpl"]),
            parent_id=raw.get("parent_id"),
            slot_id=raw.get("slot_id"),
        )
        for index, raw in enumerate(raw_items)
    )
    root_tpl = data.get("root")
    if root_tpl is None:
        root = next((i for i in items if i.parent_id is None), None)
        if root is None:
            raise KeyError("root")
        root_tpl = root.template_id
    return Preset(
        id=preset_id,
        root_tpl=str(root_tpl),
        is_default=bool(data.get("default", False)),
        name=str(data.get("name", "")),
        items=items,
    )


class PresetRegistry:
    """Lookup of presets by id and default presets by root template."""

    def __init__(self: Self, presets: Dict[str, Dict[str, Any]] | None = None):
        self.presets: Dict[str, Preset] = {}
        self.default_presets: Dict[str, Preset] = {}
        for preset_id, data in (presets or {}).items():
            try:
                preset = _parse_preset(str(preset_id), data)
            except (KeyError, TypeError, AttributeError) as e:
                log.error("Skipping malformed preset", preset_id=preset_id, error=str(e))
                continue
            self.presets[preset.id] = preset
            if preset.is_default:
                if preset.root_tpl in self.default_presets:
                    log.warning(
                        "Multiple default presets for template, keeping first",
                        template_id=preset.root_tpl,
                        ignored=preset.id,
                    )
                    continue
                self.default_presets[preset.root_tpl] = preset
        log.debug(
            "PresetRegistry initialized",
            presets=len(self.presets),
            defaults=len(self.default_presets),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "PresetRegistry":
        data = load_yaml_file(path, "Presets", error_cls=CatalogError)
        return cls(data.get("presets") or {})

    def get_preset(self: Self, preset_id: str) -> Preset | None:
        return self.presets.get(preset_id)

    def get_default_preset(self: Self, template_id: str) -> Preset | None:
        """Retrieve the default preset for a root template, if one exists."""
        return self.default_presets.get(template_id)
