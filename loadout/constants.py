"""Slot names and base-class ids shared across the assembler."""

from enum import StrEnum


class BaseClasses(StrEnum):
    """Catalog ids of the item base classes the assembler cares about."""

    WEAPON = "5422acb9af1c889c16000029"
    ASSAULT_RIFLE = "5447b5f14bdc2d61278b4567"
    ASSAULT_CARBINE = "5447b5fc4bdc2d87278b4567"
    SMG = "5447b5e04bdc2d62278b4567"
    SNIPER_RIFLE = "5447b6254bdc2dc3278b4568"
    MARKSMAN_RIFLE = "5447b6194bdc2d67278b4567"
    SHOTGUN = "5447b6094bdc2dc3278b4567"
    PISTOL = "5447b5cf4bdc2d65278b4567"
    REVOLVER = "617f1ef5e8b54b0998387733"
    MOD = "5448fe124bdc2da5018b4567"
    MOUNT = "55818b224bdc2dde698b456f"
    SIGHTS = "5448fe7a4bdc2d6f028b456b"
    IRON_SIGHT = "55818ac54bdc2d5b648b456e"
    COLLIMATOR = "55818ad54bdc2ddc698b4569"
    COMPACT_COLLIMATOR = "55818acf4bdc2dde698b456b"
    ASSAULT_SCOPE = "55818add4bdc2d5b648b456f"
    OPTIC_SCOPE = "55818ae44bdc2dde698b456c"
    SPECIAL_SCOPE = "55818aeb4bdc2ddc698b456a"
    MUZZLE = "5448fe394bdc2d0d028b456c"
    MUZZLE_COMBO = "550aa4dd4bdc2dc9348b4569"
    FLASH_HIDER = "550aa4bf4bdc2dd6348b456b"
    SILENCER = "550aa4cd4bdc2dd8348b456c"
    HANDGUARD = "55818a104bdc2db9688b4569"
    BARREL = "555ef6e44bdc2de9068b457e"
    GAS_BLOCK = "56ea9461d2720b67698b456f"
    RECEIVER = "55818a304bdc2db5418b457d"
    STOCK = "55818a594bdc2db9688b456a"
    PISTOL_GRIP = "55818a684bdc2ddd698b456d"
    MAGAZINE = "5448bc234bdc2d3c308b4569"
    CYLINDER_MAGAZINE = "610720f290b75a49ff2e5e25"
    SPRING_DRIVEN_CYLINDER = "627a137bf21bc425b06ab944"
    AMMO = "5485a8684bdc2da71d8b4567"
    UBGL = "55818b014bdc2ddc698b456b"
    FLASHLIGHT = "55818b084bdc2d5b648b4571"
    TACTICAL_COMBO = "55818b164bdc2ddc698b456c"
    PORTABLE_RANGE_FINDER = "61605ddea09d851a0a0c1bbc"
    ARMOR = "5448e54d4bdc2dcc718b4568"
    ARMORED_EQUIPMENT = "57bef4c42459772e8d35a53b"
    HEADWEAR = "5a341c4086f77401f2541505"
    BUILT_IN_INSERTS = "65649eb40bf0ed77b8044453"
    ARMOR_PLATE = "644120aa86ffbe10ee032b6f"
    NIGHT_VISION = "5a2c3a9486f774688b05e574"


# Slots whose contents are ammunition; always spawned.
AMMO_CONTAINERS: tuple[str, ...] = (
    "mod_magazine",
    "patron_in_weapon",
    "patron_in_weapon_000",
    "patron_in_weapon_001",
    "cartridges",
)

SCOPE_SLOTS: tuple[str, ...] = (
    "mod_scope",
    "mod_scope_000",
    "mod_scope_001",
    "mod_scope_002",
    "mod_scope_003",
)

# Slots a mount-class item must occupy to trigger scope forcing.
SCOPE_CAPABLE_SLOTS: tuple[str, ...] = SCOPE_SLOTS + ("mod_mount", "mod_mount_000")

MUZZLE_SLOTS: tuple[str, ...] = ("mod_muzzle", "mod_muzzle_000", "mod_muzzle_001")

STOCK_SLOTS: tuple[str, ...] = ("mod_stock", "mod_stock_000", "mod_stock_akms")

SIGHT_SLOTS: tuple[str, ...] = ("mod_sight_front", "mod_sight_rear")

REMOVABLE_PLATE_SLOTS: tuple[str, ...] = (
    "front_plate",
    "back_plate",
    "left_side_plate",
    "right_side_plate",
)

# Parent class names of magazines filled through camora slots.
CYLINDER_MAGAZINE_CLASS_NAMES: tuple[str, ...] = (
    "CylinderMagazine",
    "SpringDrivenCylinder",
)

CAMORA_PREFIX = "camora"

SCOPE_LIMIT_CLASSES: tuple[str, ...] = (
    BaseClasses.OPTIC_SCOPE,
    BaseClasses.ASSAULT_SCOPE,
    BaseClasses.COLLIMATOR,
    BaseClasses.COMPACT_COLLIMATOR,
    BaseClasses.SPECIAL_SCOPE,
)

LONG_RANGE_SCOPE_CLASSES: tuple[str, ...] = (
    BaseClasses.ASSAULT_SCOPE,
    BaseClasses.OPTIC_SCOPE,
    BaseClasses.SPECIAL_SCOPE,
)

LIGHT_LASER_CLASSES: tuple[str, ...] = (
    BaseClasses.TACTICAL_COMBO,
    BaseClasses.FLASHLIGHT,
    BaseClasses.PORTABLE_RANGE_FINDER,
)

MUZZLE_FORCED_CHANCE: int = 95

__all__ = [
    "BaseClasses",
    "AMMO_CONTAINERS",
    "SCOPE_SLOTS",
    "SCOPE_CAPABLE_SLOTS",
    "MUZZLE_SLOTS",
    "STOCK_SLOTS",
    "SIGHT_SLOTS",
    "REMOVABLE_PLATE_SLOTS",
    "CYLINDER_MAGAZINE_CLASS_NAMES",
    "CAMORA_PREFIX",
    "SCOPE_LIMIT_CLASSES",
    "LONG_RANGE_SCOPE_CLASSES",
    "LIGHT_LASER_CLASSES",
    "MUZZLE_FORCED_CHANCE",
]
