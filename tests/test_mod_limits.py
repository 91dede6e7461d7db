import pytest
from conftest import slot

from loadout.config import WeaponModLimits
from loadout.constants import BaseClasses
from loadout.generation.mod_limits import ModLimitTracker


@pytest.fixture
def catalog(make_catalog):
    return make_catalog(
        {
            "rifle": {"name": "Rifle", "parent": BaseClasses.ASSAULT_RIFLE},
            "red_dot": {"name": "Red dot", "parent": BaseClasses.COLLIMATOR},
            "mini_dot": {"name": "Mini dot", "parent": BaseClasses.COLLIMATOR},
            "acog": {"name": "ACOG", "parent": BaseClasses.ASSAULT_SCOPE},
            "light": {"name": "Light", "parent": BaseClasses.FLASHLIGHT},
            "scope_ring": {
                "name": "Scope ring",
                "parent": BaseClasses.MOUNT,
                "slots": [slot("mod_scope", ["red_dot"])],
            },
            "light_clamp": {
                "name": "Light clamp",
                "parent": BaseClasses.MOUNT,
                "slots": [slot("mod_flashlight", ["light"])],
            },
            "rail": {
                "name": "Rail",
                "parent": BaseClasses.MOUNT,
                "slots": [slot("mod_scope", ["scope_ring"]), slot("mod_tactical", ["light"])],
            },
            "offset_mount": {
                "name": "Offset mount",
                "parent": BaseClasses.MOUNT,
                "slots": [slot("mod_scope", ["red_dot"])],
            },
        }
    )


def tracker(catalog, scope_limit=None, light_laser_limit=None, backup=()):
    return ModLimitTracker(
        catalog,
        WeaponModLimits(scope_limit=scope_limit, light_laser_limit=light_laser_limit),
        backup_mount_tpls=backup,
        role="assault",
    )


def check(limits, catalog, tpl, parent="rifle", attached=("rifle",)):
    return limits.has_reached_limit(
        catalog.get_template(tpl), catalog.get_template(parent), list(attached)
    )


def test_scope_limit_counts_accepted_scopes(catalog):
    limits = tracker(catalog, scope_limit=2)
    assert not check(limits, catalog, "red_dot")
    assert not check(limits, catalog, "acog")
    assert limits.scope_count == 2
    assert limits.scope_limit_reached
    assert check(limits, catalog, "red_dot")
    assert limits.scope_count == 2


def test_no_limit_configured(catalog):
    limits = tracker(catalog)
    for _ in range(5):
        assert not check(limits, catalog, "red_dot")
        assert not check(limits, catalog, "light")
    assert limits.scope_count == 0


def test_sight_on_sight_is_not_counted(catalog):
    limits = tracker(catalog, scope_limit=1)
    assert not check(limits, catalog, "acog")
    assert not check(limits, catalog, "mini_dot", parent="acog")
    assert limits.scope_count == 1


def test_light_laser_limit(catalog):
    limits = tracker(catalog, light_laser_limit=1)
    assert not check(limits, catalog, "light")
    assert check(limits, catalog, "light")
    assert limits.light_laser_count == 1


def test_lone_scope_mount_refused_once_scopes_are_full(catalog):
    limits = tracker(catalog, scope_limit=1)
    assert not check(limits, catalog, "scope_ring")
    assert not check(limits, catalog, "red_dot")
    assert check(limits, catalog, "scope_ring")
    # on another mount it is still allowed
    assert not check(limits, catalog, "scope_ring", parent="rail")
    # multi-slot mounts are never refused
    assert not check(limits, catalog, "rail")


def test_lone_flashlight_mount_follows_scope_limit(catalog):
    limits = tracker(catalog, scope_limit=1, light_laser_limit=3)
    assert not check(limits, catalog, "light_clamp")
    check(limits, catalog, "red_dot")
    assert check(limits, catalog, "light_clamp")


def test_backup_mount_needs_long_range_scope(catalog):
    limits = tracker(catalog, scope_limit=3, backup=["offset_mount"])
    assert check(limits, catalog, "offset_mount", attached=("rifle", "red_dot"))
    assert not check(limits, catalog, "offset_mount", attached=("rifle", "acog"))
    # children of a backup mount are held to the same rule
    assert check(limits, catalog, "red_dot", parent="offset_mount", attached=("rifle",))
