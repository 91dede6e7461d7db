from pathlib import Path
from typing import Any, Dict, Iterable

import pytest

from loadout.config import EquipmentRoleConfig, GenerationConfig
from loadout.constants import BaseClasses
from loadout.generation import BotContext, LoadoutAssembler, ModPoolService
from loadout.items import ItemCatalog, PresetRegistry

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

ITEM_ROOT = "54009119af1c881c07000029"

BASE_TEMPLATES: Dict[str, Dict[str, Any]] = {
    ITEM_ROOT: {"name": "Item", "node": True},
    BaseClasses.WEAPON: {"name": "Weapon", "parent": ITEM_ROOT, "node": True},
    BaseClasses.ASSAULT_RIFLE: {"name": "AssaultRifle", "parent": BaseClasses.WEAPON, "node": True},
    BaseClasses.SMG: {"name": "Smg", "parent": BaseClasses.WEAPON, "node": True},
    BaseClasses.MOD: {"name": "Mod", "parent": ITEM_ROOT, "node": True},
    BaseClasses.MOUNT: {"name": "Mount", "parent": BaseClasses.MOD, "node": True},
    BaseClasses.SIGHTS: {"name": "Sights", "parent": BaseClasses.MOD, "node": True},
    BaseClasses.IRON_SIGHT: {"name": "IronSight", "parent": BaseClasses.SIGHTS, "node": True},
    BaseClasses.COLLIMATOR: {"name": "Collimator", "parent": BaseClasses.SIGHTS, "node": True},
    BaseClasses.ASSAULT_SCOPE: {"name": "AssaultScope", "parent": BaseClasses.SIGHTS, "node": True},
    BaseClasses.OPTIC_SCOPE: {"name": "OpticScope", "parent": BaseClasses.SIGHTS, "node": True},
    BaseClasses.MUZZLE: {"name": "Muzzle", "parent": BaseClasses.MOD, "node": True},
    BaseClasses.HANDGUARD: {"name": "Handguard", "parent": BaseClasses.MOD, "node": True},
    BaseClasses.GAS_BLOCK: {"name": "Gasblock", "parent": BaseClasses.MOD, "node": True},
    BaseClasses.STOCK: {"name": "Stock", "parent": BaseClasses.MOD, "node": True},
    BaseClasses.FLASHLIGHT: {"name": "Flashlight", "parent": BaseClasses.MOD, "node": True},
    BaseClasses.MAGAZINE: {"name": "Magazine", "parent": BaseClasses.MOD, "node": True},
    BaseClasses.CYLINDER_MAGAZINE: {
        "name": "CylinderMagazine",
        "parent": BaseClasses.MAGAZINE,
        "node": True,
    },
    BaseClasses.AMMO: {"name": "Ammo", "parent": ITEM_ROOT, "node": True},
    BaseClasses.ARMOR: {"name": "Armor", "parent": ITEM_ROOT, "node": True},
    BaseClasses.ARMOR_PLATE: {"name": "ArmorPlate", "parent": ITEM_ROOT, "node": True},
    BaseClasses.HEADWEAR: {"name": "Headwear", "parent": ITEM_ROOT, "node": True},
}


def slot(name: str, allowed: Iterable[str] | None, required: bool = False, **extra) -> Dict[str, Any]:
    data: Dict[str, Any] = {"name": name, "required": required}
    if allowed is not None:
        data["filter"] = list(allowed)
    data.update(extra)
    return data


class FirstPickRNG:
    """Deterministic stand-in for GameRNG: every draw takes the lower bound.

    Spawn rolls therefore succeed for any chance of at least 1 percent, and
    exhaustible draws come out as pool[0], pool[-1], pool[-2], ...
    """

    def __init__(self):
        self.issued = 0

    def get_int(self, a, b):
        return a

    def roll_chance(self, chance_percent):
        return bool(chance_percent) and chance_percent >= 1

    def weighted_key(self, table):
        return next(iter(table))

    def hex_id(self, length=24):
        self.issued += 1
        return f"item{self.issued:04d}"


class FailRollRNG(FirstPickRNG):
    """Every roll below 100 percent fails."""

    def roll_chance(self, chance_percent):
        return bool(chance_percent) and chance_percent >= 100


@pytest.fixture
def rng():
    return FirstPickRNG()


@pytest.fixture
def make_catalog():
    def _make(items: Dict[str, Dict[str, Any]]) -> ItemCatalog:
        data = dict(BASE_TEMPLATES)
        data.update(items)
        return ItemCatalog(data)

    return _make


@pytest.fixture
def bot():
    return BotContext(role="assault", equipment_role="assault", level=10)


@pytest.fixture
def make_assembler(rng):
    def _make(
        catalog: ItemCatalog,
        config: GenerationConfig | None = None,
        presets: PresetRegistry | None = None,
        rng_override=None,
        role_config: EquipmentRoleConfig | None = None,
    ) -> LoadoutAssembler:
        config = config or GenerationConfig(
            equipment={"assault": role_config or EquipmentRoleConfig()}
        )
        return LoadoutAssembler(
            catalog,
            presets or PresetRegistry({}),
            ModPoolService(catalog, config),
            config,
            rng_override or rng,
        )

    return _make


@pytest.fixture(scope="session")
def sample_catalog():
    return ItemCatalog.from_yaml(CONFIG_DIR / "catalog.yaml")


@pytest.fixture(scope="session")
def sample_presets():
    return PresetRegistry.from_yaml(CONFIG_DIR / "presets.yaml")
