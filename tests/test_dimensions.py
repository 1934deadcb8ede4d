import pytest

from rtta.bot import ConfigError, HeuristicConfig, LookaheadConfig
from rtta.orchestration import DIMENSIONS, apply_dimensions, dimension_key, ordered_dimension_ids
from rtta.orchestration.dimensions import HEURISTIC_DIMENSIONS, LOOKAHEAD_DIMENSIONS, dimension_power_set


def test_scale_dimension_multiplies_and_rounds():
    config = apply_dimensions("heuristic", ["foodAggressive", "skullAverse"])
    assert config.production_weights.food == 3.2
    assert config.production_weights.skulls == -10.8
    assert config.production_weights.goods == 6.0


def test_repeated_application_clamps_to_bounds():
    config = HeuristicConfig()
    for _ in range(10):
        config = apply_dimensions("heuristic", ["foodAggressive"], base=config)
    assert config.production_weights.food == 30.0

    for _ in range(40):
        config = apply_dimensions("heuristic", ["skullAverse"], base=config)
    assert config.production_weights.skulls == -40.0


def test_application_order_does_not_matter():
    first = apply_dimensions("heuristic", ["monumentBias", "exchangeFirst", "goodsAggressive"])
    second = apply_dimensions("heuristic", ["goodsAggressive", "monumentBias", "exchangeFirst", "monumentBias"])
    assert first == second
    assert first.prefer_exchange_before_development is True


def test_base_config_is_not_mutated():
    base = HeuristicConfig()
    apply_dimensions("heuristic", ["forceFoodReroll"], base=base)
    assert base.food_policy_weights.force_reroll_on_food_shortage is False


def test_lookahead_dimensions_round_to_integers():
    config = apply_dimensions("lookahead", ["lookaheadDeeper", "lookaheadMoreEvaluations", "lookaheadWiderActions"])
    assert isinstance(config, LookaheadConfig)
    assert config.depth == 3
    assert config.max_evaluations == 1800
    assert config.max_actions_per_node == 14

    for _ in range(5):
        config = apply_dimensions("lookahead", ["lookaheadDeeper"], base=config)
    assert config.depth == 4


def test_heuristic_dimensions_reach_the_lookahead_fallback():
    config = apply_dimensions("lookahead", ["foodAggressive"])
    assert config.heuristic_fallback_config.production_weights.food == 3.2
    assert config.depth == 2


def test_lookahead_only_dimension_rejected_for_heuristic():
    with pytest.raises(ConfigError):
        apply_dimensions("heuristic", ["lookaheadDeeper"])
    with pytest.raises(ConfigError):
        apply_dimensions("heuristic", ["noSuchDimension"])


def test_expansion_order_per_bot_type():
    heuristic = ordered_dimension_ids("heuristic")
    lookahead = ordered_dimension_ids("lookahead")
    assert len(heuristic) == len(HEURISTIC_DIMENSIONS) == 16
    assert lookahead[: len(LOOKAHEAD_DIMENSIONS)] == [d.id for d in LOOKAHEAD_DIMENSIONS]
    assert lookahead[len(LOOKAHEAD_DIMENSIONS):] == heuristic
    assert not any(DIMENSIONS[dimension_id].lookahead_only for dimension_id in heuristic)


def test_dimension_key_is_order_free():
    assert dimension_key(["b", "a"]) == dimension_key(["a", "b"]) == "a+b"
    assert dimension_key([]) == ""


def test_power_set_in_bitmask_order():
    ids = ["foodAggressive", "goodsAggressive"]
    assert list(dimension_power_set(ids)) == [
        (0, []),
        (1, ["foodAggressive"]),
        (2, ["goodsAggressive"]),
        (3, ["foodAggressive", "goodsAggressive"]),
    ]
    assert [index for index, _ in dimension_power_set(ids, include_baseline=False)] == [0, 1, 2]
    with pytest.raises(ConfigError):
        list(dimension_power_set(["bogus"]))
