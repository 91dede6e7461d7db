from loadout.generation.slot_order import sort_mod_slots


def test_priority_slots_come_first_in_fixed_order():
    slots = ["mod_scope", "mod_charge", "mod_stock", "mod_handguard", "mod_reciever"]
    assert sort_mod_slots(slots) == [
        "mod_handguard",
        "mod_reciever",
        "mod_stock",
        "mod_scope",
        "mod_charge",
    ]


def test_unknown_slots_keep_their_relative_order():
    slots = ["mod_tactical", "mod_foregrip", "mod_barrel", "mod_muzzle"]
    assert sort_mod_slots(slots) == ["mod_barrel", "mod_tactical", "mod_foregrip", "mod_muzzle"]


def test_mount_parent_puts_scopes_then_mounts_first():
    slots = ["mod_tactical", "mod_mount_001", "mod_scope_001", "mod_mount", "mod_scope"]
    assert sort_mod_slots(slots, mount_parent=True) == [
        "mod_scope",
        "mod_scope_001",
        "mod_mount_001",
        "mod_mount",
        "mod_tactical",
    ]


def test_sorting_is_a_permutation_and_leaves_input_alone():
    slots = ["mod_gas_block", "patron_in_weapon", "mod_barrel", "mod_mount_001"]
    original = list(slots)
    result = sort_mod_slots(slots)
    assert sorted(result) == sorted(original)
    assert slots == original


def test_single_slot_is_returned_unchanged():
    assert sort_mod_slots(["mod_magazine"]) == ["mod_magazine"]
    assert sort_mod_slots([]) == []
