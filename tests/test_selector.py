import pytest
from conftest import FirstPickRNG, slot

from loadout.config import GenerationConfig, NeverCompatiblePair
from loadout.constants import BaseClasses
from loadout.generation import BotContext, GenerationRequest
from loadout.generation.models import Found, NotFound, NotFoundReason, SpawnDecision
from loadout.generation.selector import CandidateSelector
from loadout.items import AssembledItem, SlotDefinition

PARTS = [f"part_{i}" for i in range(8)]


@pytest.fixture
def catalog(make_catalog):
    items = {
        "rifle": {
            "name": "Rifle",
            "parent": BaseClasses.ASSAULT_RIFLE,
            "slots": [slot("mod_tactical", PARTS + ["light", "laser"])],
        },
        "light": {
            "name": "Light",
            "parent": BaseClasses.FLASHLIGHT,
            "conflicting_items": ["laser"],
        },
        "laser": {"name": "Laser", "parent": BaseClasses.FLASHLIGHT},
        "picky": {
            "name": "Picky",
            "parent": BaseClasses.MOD,
            "conflicting_items": ["rifle"],
        },
    }
    for tpl in PARTS:
        items[tpl] = {"name": tpl, "parent": BaseClasses.MOD}
    return make_catalog(items)


def make_request(*attached, conflicts=()):
    items = [AssembledItem("w", "rifle")]
    items += [
        AssembledItem(f"c{i}", tpl, parent_id="w", slot_id="mod_tactical")
        for i, tpl in enumerate(attached)
    ]
    return GenerationRequest(
        items=items,
        mod_pool={},
        spawn_chances={},
        bot=BotContext("assault", "assault", 10),
        conflicts=set(conflicts),
    )


def make_selector(catalog, **config):
    return CandidateSelector(catalog, FirstPickRNG(), GenerationConfig(**config))


def any_slot(catalog):
    return catalog.get_template("rifle").get_slot("mod_tactical")


def test_select_takes_first_compatible_draw(catalog):
    selector = make_selector(catalog)
    result = selector.select(["part_0", "part_1"], make_request(), "mod_tactical", any_slot(catalog))
    assert result == Found("part_0")


def test_select_empty_pool(catalog):
    result = make_selector(catalog).select([], make_request(), "mod_tactical", any_slot(catalog))
    assert isinstance(result, NotFound)
    assert result.reason is NotFoundReason.NO_CANDIDATES


def test_select_skips_conflict_set_members(catalog):
    selector = make_selector(catalog)
    request = make_request(conflicts=["part_0"])
    result = selector.select(["part_0", "part_1"], request, "mod_tactical", any_slot(catalog))
    assert result == Found("part_1")


def test_retry_budget_gives_up_before_last_candidate(catalog):
    # draw order is part_0, part_7, part_6, ... part_1
    request = make_request(conflicts=PARTS[:1] + PARTS[2:])
    selector = make_selector(catalog, max_retry_ratio=0.25)
    result = selector.select(PARTS, request, "mod_tactical", any_slot(catalog))
    assert isinstance(result, NotFound)
    assert result.reason is NotFoundReason.ALL_CONFLICTING


def test_full_retry_budget_reaches_last_candidate(catalog):
    request = make_request(conflicts=PARTS[:1] + PARTS[2:])
    selector = make_selector(catalog, max_retry_ratio=1.0)
    result = selector.select(PARTS, request, "mod_tactical", any_slot(catalog))
    assert result == Found("part_1")


def test_default_retry_budget_tolerates_one_extra_conflict(catalog):
    # round(8 * 0.75) == 6, yet the seven conflicting draws are all tolerated
    request = make_request(conflicts=PARTS[:1] + PARTS[2:])
    selector = make_selector(catalog)
    result = selector.select(PARTS, request, "mod_tactical", any_slot(catalog))
    assert result == Found("part_1")


def test_attached_item_blocks_candidate(catalog):
    selector = make_selector(catalog)
    reason = selector.incompatibility_reason("laser", make_request("light"))
    assert reason is not None and "blocked by attached light" in reason


def test_candidate_blocks_attached_item(catalog):
    selector = make_selector(catalog)
    reason = selector.incompatibility_reason("light", make_request("laser"))
    assert reason is not None and "blocks attached laser" in reason
    assert selector.incompatibility_reason("picky", make_request()) is not None


def test_never_compatible_pair_is_symmetric(catalog):
    selector = make_selector(
        catalog, never_compatible=[NeverCompatiblePair("part_0", "part_1")]
    )
    assert selector.incompatibility_reason("part_1", make_request("part_0")) is not None
    assert selector.incompatibility_reason("part_0", make_request("part_1")) is not None
    assert selector.incompatibility_reason("part_2", make_request("part_0")) is None


def test_unknown_or_class_templates_are_incompatible(catalog):
    selector = make_selector(catalog)
    assert selector.incompatibility_reason("missing", make_request()) is not None
    assert selector.incompatibility_reason(BaseClasses.MOD, make_request()) is not None


def test_draws_outside_slot_filter_are_dropped(catalog):
    selector = make_selector(catalog)
    result = selector.select(["picky"], make_request(), "mod_tactical", any_slot(catalog))
    assert isinstance(result, NotFound)
    assert result.reason is NotFoundReason.NO_CANDIDATES


def test_single_default_mod_ignores_slot_filter(catalog):
    selector = make_selector(catalog)
    narrow = SlotDefinition("mod_tactical", allowed=("part_0",))
    result = selector.select(
        ["part_3"], make_request(), "mod_tactical", narrow, SpawnDecision.DEFAULT_MOD
    )
    assert result == Found("part_3")


def test_default_mod_still_checks_conflicts(catalog):
    selector = make_selector(catalog)
    result = selector.select(
        ["laser"], make_request("light"), "mod_tactical", any_slot(catalog), SpawnDecision.DEFAULT_MOD
    )
    assert isinstance(result, NotFound)
    assert result.reason is NotFoundReason.ALL_CONFLICTING


def test_select_compatible_has_no_budget(catalog):
    request = make_request(conflicts=PARTS[:1] + PARTS[2:])
    result = make_selector(catalog, max_retry_ratio=0.1).select_compatible(
        PARTS, request, "mod_tactical"
    )
    assert result == Found("part_1")


def test_allowed_filter_fallback(catalog):
    selector = make_selector(catalog)
    parent_slot = SlotDefinition("mod_tactical", required=True, allowed=("light", "laser", "ghost"))
    result = selector.select_from_allowed_filter(parent_slot, make_request(conflicts=["light"]), "mod_tactical")
    assert result == Found("laser")

    result = selector.select_from_allowed_filter(
        parent_slot, make_request(conflicts=["light", "laser"]), "mod_tactical"
    )
    assert isinstance(result, NotFound)
    assert result.reason is NotFoundReason.REQUIRED_BUT_MISSING


def test_record_attachment_extends_conflicts(catalog):
    request = make_request()
    CandidateSelector.record_attachment(catalog.get_template("light"), request)
    assert "laser" in request.conflicts
