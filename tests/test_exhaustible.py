from conftest import FirstPickRNG

from game_rng import GameRNG
from loadout.generation.exhaustible import ExhaustibleArray


def test_draws_every_value_exactly_once():
    source = ["a", "b", "c", "d", "e"]
    pool = ExhaustibleArray(source, GameRNG(seed=3))
    drawn = []
    while pool.has_values():
        drawn.append(pool.get_random_value())
    assert sorted(drawn) == source
    assert pool.get_random_value() is None


def test_source_list_is_not_consumed():
    source = ["a", "b"]
    pool = ExhaustibleArray(source, FirstPickRNG())
    pool.get_random_value()
    assert source == ["a", "b"]
    assert len(pool) == 1


def test_swap_remove_draw_order_with_lower_bound_rng():
    pool = ExhaustibleArray(["a", "b", "c"], FirstPickRNG())
    assert [pool.get_random_value() for _ in range(3)] == ["a", "c", "b"]
