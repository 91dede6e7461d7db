"""Per-weapon caps on scopes and lights/lasers."""

from __future__ import annotations

from typing import Iterable, Self

import structlog

from loadout.config import WeaponModLimits
from loadout.constants import (
    LIGHT_LASER_CLASSES,
    LONG_RANGE_SCOPE_CLASSES,
    SCOPE_LIMIT_CLASSES,
    BaseClasses,
)
from loadout.items.catalog import ItemCatalog, ItemTemplate

log = structlog.get_logger(__name__)


class ModLimitTracker:
    """Counts limited mods on one weapon as they are attached.

    ``has_reached_limit`` counts an accepted scope or light immediately, so it
    must only be asked about a mod that is about to be attached.
    """

    def __init__(
        self: Self,
        catalog: ItemCatalog,
        limits: WeaponModLimits,
        backup_mount_tpls: Iterable[str] = (),
        role: str = "",
    ):
        self.catalog = catalog
        self.scope_limit = limits.scope_limit
        self.light_laser_limit = limits.light_laser_limit
        self.backup_mount_tpls = frozenset(backup_mount_tpls)
        self.role = role
        self.scope_count = 0
        self.light_laser_count = 0

    @property
    def scope_limit_reached(self) -> bool:
        return bool(self.scope_limit) and self.scope_count >= self.scope_limit

    def _is_lone_slot_mount(self: Self, template: ItemTemplate, slot_name: str) -> bool:
        return (
            len(template.slots) == 1
            and self.catalog.is_of_base_class(template.id, BaseClasses.MOUNT)
            and template.slots[0].name == slot_name
        )

    def has_reached_limit(
        self: Self,
        template: ItemTemplate,
        parent: ItemTemplate,
        attached_template_ids: Iterable[str],
    ) -> bool:
        if template.id in self.backup_mount_tpls or parent.id in self.backup_mount_tpls:
            has_long_range_scope = any(
                self.catalog.is_of_base_classes(tpl, LONG_RANGE_SCOPE_CLASSES)
                for tpl in attached_template_ids
            )
            return not has_long_range_scope

        is_scope = self.catalog.is_of_base_classes(template.id, SCOPE_LIMIT_CLASSES)
        if is_scope and self.catalog.is_of_base_classes(parent.id, SCOPE_LIMIT_CLASSES):
            # mini sights riding on top of another sight
            return False

        if is_scope:
            if not self.scope_limit:
                return False
            if self.scope_count >= self.scope_limit:
                log.debug(
                    "Scope limit reached",
                    role=self.role,
                    template_id=template.id,
                    count=self.scope_count,
                )
                return True
            self.scope_count += 1
            return False

        if (
            self.scope_limit_reached
            and self._is_lone_slot_mount(template, "mod_scope")
            and not self.catalog.is_of_base_class(parent.id, BaseClasses.MOUNT)
        ):
            return True

        if self.catalog.is_of_base_classes(template.id, LIGHT_LASER_CLASSES):
            if not self.light_laser_limit:
                return False
            if self.light_laser_count >= self.light_laser_limit:
                log.debug(
                    "Light/laser limit reached",
                    role=self.role,
                    template_id=template.id,
                    count=self.light_laser_count,
                )
                return True
            self.light_laser_count += 1
            return False

        # lone flashlight mounts follow the scope limit
        return self.scope_limit_reached and self._is_lone_slot_mount(
            template, "mod_flashlight"
        )


__all__ = ["ModLimitTracker"]
