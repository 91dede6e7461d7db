# main.py
"""
Assemble one weapon or piece of equipment for a bot and print the result.

Usage:
    loadout-assemble --item m4a1 --role pmc --level 20 --seed 7
    loadout-assemble --item plate_carrier --mode equipment --role pmc --level 30
    loadout-assemble --item mts255 --ammo ammo_12g_slug --log-level debug
"""
import argparse
import sys
import tomllib  # Standard in Python 3.11+
from pathlib import Path
from typing import Any, Dict, List

import polars as pl
import structlog

from game_rng import GameRNG
from loadout.config import load_bot_mod_data, load_generation_config
from loadout.errors import LoadoutError
from loadout.generation import BotContext, GenerationRequest, LoadoutAssembler, ModPoolService
from loadout.items import ItemCatalog, PresetRegistry, find_tree_problems, items_to_frame
from utils.logging_utils import parse_log_level, setup_logging

# --- Paths relative to this script's location ---
SCRIPT_DIR = Path(__file__).parent.resolve()
CONFIG_DIR = SCRIPT_DIR / "config"
SETTINGS_FILE = CONFIG_DIR / "settings.toml"
# --- End Paths ---

log = structlog.get_logger()


def load_toml_config(config_path: Path, config_name: str) -> Dict[str, Any]:
    """Loads a TOML configuration file, returning {} when it is missing or broken."""
    if not config_path.is_file():
        log.warning(f"{config_name} config file not found", path=str(config_path))
        return {}
    try:
        with config_path.open("rb") as f:  # tomllib requires bytes mode
            config_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        log.error(
            f"Error parsing TOML for {config_name}",
            path=str(config_path),
            error=str(e),
        )
        return {}
    log.debug(f"{config_name} config loaded", path=str(config_path))
    return config_data


def _config_path(settings: Dict[str, Any], key: str, default: str) -> Path:
    return CONFIG_DIR / settings.get("paths", {}).get(key, default)


def build_parser(settings: Dict[str, Any]) -> argparse.ArgumentParser:
    bot_defaults = settings.get("bot", {})
    parser = argparse.ArgumentParser(
        description="Assemble a weapon or equipment item with randomised mods"
    )
    parser.add_argument("--item", required=True, help="Template id of the root item")
    parser.add_argument(
        "--mode",
        choices=["weapon", "equipment"],
        default="weapon",
        help="Weapon mods or armor/headwear mods (default: weapon)",
    )
    parser.add_argument(
        "--role", default=bot_defaults.get("role", "pmc"), help="Bot role to generate for"
    )
    parser.add_argument(
        "--equipment-role",
        default=None,
        help="Equipment settings to use (default: same as --role)",
    )
    parser.add_argument(
        "--level", type=int, default=int(bot_defaults.get("level", 1)), help="Bot level"
    )
    parser.add_argument("--seed", type=int, default=None, help="RNG seed")
    parser.add_argument("--ammo", default=None, help="Cartridge template for chambers")
    parser.add_argument(
        "--catalog", type=Path, default=_config_path(settings, "catalog", "catalog.yaml")
    )
    parser.add_argument(
        "--presets", type=Path, default=_config_path(settings, "presets", "presets.yaml")
    )
    parser.add_argument(
        "--mod-pools",
        type=Path,
        default=_config_path(settings, "mod_pools", "mod_pools.yaml"),
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=_config_path(settings, "generation", "bot_generation.yaml"),
        help="Generation settings YAML",
    )
    parser.add_argument(
        "--log-level",
        default=settings.get("logging", {}).get("level", "INFO"),
        help="debug, info, warning or error",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=bool(settings.get("logging", {}).get("json", False)),
        help="Emit logs as JSON lines",
    )
    return parser


def assemble(args: argparse.Namespace) -> GenerationRequest:
    catalog = ItemCatalog.from_yaml(args.catalog)
    presets = PresetRegistry.from_yaml(args.presets)
    config = load_generation_config(args.config)
    bot_data = load_bot_mod_data(args.mod_pools)
    if args.role not in bot_data:
        raise LoadoutError(f"No mod pools for role '{args.role}' in {args.mod_pools}")
    role_data = bot_data[args.role]

    rng = GameRNG(seed=args.seed)
    log.info("Assembling", item=args.item, mode=args.mode, role=args.role, seed=rng.initial_seed)
    assembler = LoadoutAssembler(catalog, presets, ModPoolService(catalog, config), config, rng)
    bot = BotContext(
        role=args.role,
        equipment_role=args.equipment_role or args.role,
        level=args.level,
    )
    if args.mode == "equipment":
        request = assembler.generate_equipment(
            args.item, bot, role_data.mod_pool, role_data.equipment_mod_chances
        )
    else:
        request = assembler.generate_weapon(
            args.item, bot, role_data.mod_pool, role_data.weapon_mod_chances, args.ammo
        )

    for problem in find_tree_problems(request.items, catalog):
        log.warning("Assembled tree problem", problem=problem)
    return request


def print_request(request: GenerationRequest) -> None:
    frame = items_to_frame(request.items)
    with pl.Config(tbl_rows=-1, fmt_str_lengths=40):
        print(frame.select("depth", "slot_id", "template_id", "item_id", "parent_id"))
    if request.failures:
        failures = pl.DataFrame(
            {
                "kind": [f.kind.name for f in request.failures],
                "parent_tpl": [f.parent_tpl for f in request.failures],
                "slot": [f.slot for f in request.failures],
                "detail": [f.detail for f in request.failures],
            }
        )
        print(failures)


def main(argv: List[str] | None = None) -> int:
    settings = load_toml_config(SETTINGS_FILE, "Settings")
    args = build_parser(settings).parse_args(argv)
    try:
        setup_logging(parse_log_level(args.log_level), json_output=args.json_logs)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        request = assemble(args)
    except LoadoutError as e:
        log.error("Assembly failed", error=str(e))
        return 1

    print_request(request)
    return 0


if __name__ == "__main__":
    sys.exit(main())
