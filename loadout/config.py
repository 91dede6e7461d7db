"""Generation configuration.

Settings live in ``config/bot_generation.yaml`` and are parsed into the
dataclasses below.  The layout of the YAML file mirrors the dataclass fields;
level-bracketed sections carry a ``level_range: {min, max}`` mapping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Type

import structlog
import yaml

from loadout.errors import ConfigError, LoadoutError

log = structlog.get_logger(__name__)

DEFAULT_ROLE = "default"


def load_yaml_file(
    path: Path, config_name: str, error_cls: Type[LoadoutError] = ConfigError
) -> Dict[str, Any]:
    """Loads a YAML file, raising ``error_cls`` if it is missing or unparsable."""
    path = Path(path)
    if not path.is_file():
        log.error(f"{config_name} file not found", path=str(path))
        raise error_cls(f"{config_name} file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        log.error(
            f"Error parsing YAML for {config_name}",
            path=str(path),
            error=str(e),
            exc_info=True,
        )
        raise error_cls(f"Unable to parse {config_name}: {path}") from e
    if data is None:
        log.warning(f"{config_name} file is empty.", path=str(path))
        return {}
    if not isinstance(data, dict):
        raise error_cls(f"{config_name} must be a mapping at the top level: {path}")
    log.info(f"{config_name} loaded", path=str(path))
    return data


@dataclass(frozen=True)
class LevelRange:
    min: int = 0
    max: int = 100

    def contains(self, level: int) -> bool:
        return self.min <= level <= self.max

    @classmethod
    def from_dict(cls, data: Dict[str, Any] | None) -> "LevelRange":
        data = data or {}
        return cls(min=int(data.get("min", 0)), max=int(data.get("max", 100)))


@dataclass
class ArmorPlateWeighting:
    """Per plate-slot armor class weights for one level bracket."""

    level_range: LevelRange
    weights: Dict[str, Dict[int, float]] = field(default_factory=dict)

    def for_slot(self, slot_name: str) -> Dict[int, float] | None:
        return self.weights.get(slot_name.lower())


@dataclass
class RandomisationDetails:
    level_range: LevelRange
    randomised_weapon_mod_slots: List[str] = field(default_factory=list)


@dataclass
class EquipmentBlacklist:
    """Items a bot may not receive, keyed by slot name."""

    level_range: LevelRange
    equipment: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class WeaponModLimits:
    scope_limit: int | None = None
    light_laser_limit: int | None = None


@dataclass
class EquipmentRoleConfig:
    filter_plates_by_level: bool = False
    armor_plate_weighting: List[ArmorPlateWeighting] = field(default_factory=list)
    randomisation: List[RandomisationDetails] = field(default_factory=list)
    weapon_slot_ids_to_make_required: List[str] = field(default_factory=list)
    force_stock: bool = False
    weapon_sight_whitelist: Dict[str, List[str]] = field(default_factory=dict)
    blacklist: List[EquipmentBlacklist] = field(default_factory=list)
    weapon_mod_limits: WeaponModLimits = field(default_factory=WeaponModLimits)
    min_magazine_capacity: int | None = None

    def plate_weighting_for_level(self, level: int) -> ArmorPlateWeighting | None:
        return next(
            (w for w in self.armor_plate_weighting if w.level_range.contains(level)),
            None,
        )

    def randomisation_for_level(self, level: int) -> RandomisationDetails | None:
        return next(
            (r for r in self.randomisation if r.level_range.contains(level)), None
        )

    def blacklist_for_level(self, level: int) -> EquipmentBlacklist | None:
        return next((b for b in self.blacklist if b.level_range.contains(level)), None)


@dataclass(frozen=True)
class NeverCompatiblePair:
    """Two templates that must never share a tree, whatever the catalog says."""

    first: str
    second: str

    def matches(self, attached_tpl: str, candidate_tpl: str) -> bool:
        return (attached_tpl, candidate_tpl) in (
            (self.first, self.second),
            (self.second, self.first),
        )


@dataclass
class GenerationConfig:
    equipment: Dict[str, EquipmentRoleConfig] = field(default_factory=dict)
    item_blacklist: List[str] = field(default_factory=list)
    low_profile_gas_block_tpls: List[str] = field(default_factory=list)
    front_sight_gas_blocks: List[str] = field(default_factory=list)
    never_compatible: List[NeverCompatiblePair] = field(default_factory=list)
    preset_overrides: Dict[str, str] = field(default_factory=dict)
    backup_mount_tpls: List[str] = field(default_factory=list)
    max_retry_ratio: float = 0.75
    max_depth: int = 12

    def equipment_for(self, equipment_role: str) -> EquipmentRoleConfig:
        """Role settings, falling back to the ``default`` role (or empty settings)."""
        role_config = self.equipment.get(equipment_role)
        if role_config is not None:
            return role_config
        fallback = self.equipment.get(DEFAULT_ROLE)
        log.warning(
            "Missing equipment settings for role, using defaults",
            equipment_role=equipment_role,
            has_default=fallback is not None,
        )
        return fallback if fallback is not None else EquipmentRoleConfig()


def _parse_plate_weights(raw: Dict[str, Any]) -> Dict[str, Dict[int, float]]:
    weights: Dict[str, Dict[int, float]] = {}
    for slot_name, table in raw.items():
        if not isinstance(table, dict):
            raise ConfigError(f"Plate weights for {slot_name} must be a mapping")
        parsed = {int(armor_class): float(weight) for armor_class, weight in table.items()}
        if any(weight < 0 for weight in parsed.values()):
            raise ConfigError(f"Plate weights for {slot_name} must not be negative")
        if parsed and sum(parsed.values()) <= 0:
            raise ConfigError(f"Plate weights for {slot_name} need a positive total")
        weights[str(slot_name).lower()] = parsed
    return weights


def _parse_role(role: str, raw: Dict[str, Any]) -> EquipmentRoleConfig:
    limits = raw.get("weapon_mod_limits") or {}
    try:
        return EquipmentRoleConfig(
            filter_plates_by_level=bool(raw.get("filter_plates_by_level", False)),
            armor_plate_weighting=[
                ArmorPlateWeighting(
                    level_range=LevelRange.from_dict(entry.get("level_range")),
                    weights=_parse_plate_weights(entry.get("weights") or {}),
                )
                for entry in raw.get("armor_plate_weighting") or []
            ],
            randomisation=[
                RandomisationDetails(
                    level_range=LevelRange.from_dict(entry.get("level_range")),
                    randomised_weapon_mod_slots=list(
                        entry.get("randomised_weapon_mod_slots") or []
                    ),
                )
                for entry in raw.get("randomisation") or []
            ],
            weapon_slot_ids_to_make_required=list(
                raw.get("weapon_slot_ids_to_make_required") or []
            ),
            force_stock=bool(raw.get("force_stock", False)),
            weapon_sight_whitelist={
                str(k): list(v)
                for k, v in (raw.get("weapon_sight_whitelist") or {}).items()
            },
            blacklist=[
                EquipmentBlacklist(
                    level_range=LevelRange.from_dict(entry.get("level_range")),
                    equipment={
                        str(k): list(v)
                        for k, v in (entry.get("equipment") or {}).items()
                    },
                )
                for entry in raw.get("blacklist") or []
            ],
            weapon_mod_limits=WeaponModLimits(
                scope_limit=limits.get("scope_limit"),
                light_laser_limit=limits.get("light_laser_limit"),
            ),
            min_magazine_capacity=raw.get("min_magazine_capacity"),
        )
    except (AttributeError, TypeError, ValueError) as e:
        log.error("Invalid equipment role settings", role=role, error=str(e))
        raise ConfigError(f"Invalid settings for equipment role '{role}'") from e


def parse_generation_config(data: Dict[str, Any]) -> GenerationConfig:
    """Build a :class:`GenerationConfig` from already-loaded YAML data."""
    equipment = {
        str(role): _parse_role(str(role), raw or {})
        for role, raw in (data.get("equipment") or {}).items()
    }
    pairs = []
    for entry in data.get("never_compatible") or []:
        if isinstance(entry, dict):
            pairs.append(NeverCompatiblePair(str(entry["first"]), str(entry["second"])))
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            pairs.append(NeverCompatiblePair(str(entry[0]), str(entry[1])))
        else:
            raise ConfigError(f"Invalid never_compatible entry: {entry!r}")

    max_retry_ratio = float(data.get("max_retry_ratio", 0.75))
    if not 0 < max_retry_ratio <= 1:
        raise ConfigError("max_retry_ratio must be in (0, 1]")

    return GenerationConfig(
        equipment=equipment,
        item_blacklist=list(data.get("item_blacklist") or []),
        low_profile_gas_block_tpls=list(data.get("low_profile_gas_block_tpls") or []),
        front_sight_gas_blocks=list(data.get("front_sight_gas_blocks") or []),
        never_compatible=pairs,
        preset_overrides={
            str(k): str(v) for k, v in (data.get("preset_overrides") or {}).items()
        },
        backup_mount_tpls=list(data.get("backup_mount_tpls") or []),
        max_retry_ratio=max_retry_ratio,
        max_depth=int(data.get("max_depth", 12)),
    )


def load_generation_config(path: Path) -> GenerationConfig:
    return parse_generation_config(load_yaml_file(path, "Generation config"))


@dataclass
class BotModData:
    """Declared mod pool and spawn chances for one bot role."""

    mod_pool: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)
    weapon_mod_chances: Dict[str, float] = field(default_factory=dict)
    equipment_mod_chances: Dict[str, float] = field(default_factory=dict)


def _parse_chances(role: str, raw: Dict[str, Any] | None) -> Dict[str, float]:
    try:
        return {str(slot): float(chance) for slot, chance in (raw or {}).items()}
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid spawn chance for role '{role}'") from e


def load_bot_mod_data(path: Path) -> Dict[str, BotModData]:
    """Role -> declared mod pools and spawn chances."""
    data = load_yaml_file(path, "Mod pools")
    roles: Dict[str, BotModData] = {}
    for role, raw in (data.get("roles") or {}).items():
        raw = raw or {}
        mod_pool = {
            str(parent): {str(slot): [str(t) for t in tpls or []] for slot, tpls in slots.items()}
            for parent, slots in (raw.get("mod_pool") or {}).items()
        }
        roles[str(role)] = BotModData(
            mod_pool=mod_pool,
            weapon_mod_chances=_parse_chances(str(role), raw.get("weapon_mod_chances")),
            equipment_mod_chances=_parse_chances(str(role), raw.get("equipment_mod_chances")),
        )
    log.debug("Bot mod data parsed", roles=list(roles))
    return roles


__all__ = [
    "ArmorPlateWeighting",
    "BotModData",
    "EquipmentBlacklist",
    "EquipmentRoleConfig",
    "GenerationConfig",
    "LevelRange",
    "NeverCompatiblePair",
    "RandomisationDetails",
    "WeaponModLimits",
    "load_bot_mod_data",
    "load_generation_config",
    "load_yaml_file",
    "parse_generation_config",
]
