"""Named config mutations used to derive candidates from the standard configs.

Each dimension owns a getter/setter pair bound to exactly one config field,
so a set of dimensions can be applied in any order with the same result.
Heuristic dimensions act on the heuristic config itself, or on the embedded
fallback config when the target is a lookahead config.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from rtta.bot.config import (
    BOT_TYPES,
    ConfigError,
    HeuristicConfig,
    LookaheadConfig,
    StrategyConfig,
    clone_config,
    default_heuristic_config,
    default_lookahead_config,
)

Getter = Callable[[StrategyConfig], Any]
Setter = Callable[[StrategyConfig, Any], None]


@dataclass(frozen=True)
class Dimension:
    id: str
    kind: str
    get: Getter
    set: Setter
    lookahead_only: bool = False
    factor: float = 1.0
    min: float = -math.inf
    max: float = math.inf
    integer: bool = False

    def applies_to(self, bot_type: str) -> bool:
        return bot_type == "lookahead" or not self.lookahead_only

    def apply(self, config: StrategyConfig) -> None:
        current = self.get(config)
        if self.kind == "flip":
            self.set(config, not current)
            return
        value = min(self.max, max(self.min, current * self.factor))
        if self.integer:
            self.set(config, max(1, int(_round_half_up(value))))
        else:
            self.set(config, _round_half_up(value * 100) / 100)


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def _heuristic_of(config: StrategyConfig) -> HeuristicConfig:
    if isinstance(config, LookaheadConfig):
        return config.heuristic_fallback_config
    return config


def _heuristic_field(group: Callable[[HeuristicConfig], Any], attr: str):
    def get(config: StrategyConfig) -> Any:
        return getattr(group(_heuristic_of(config)), attr)

    def set_(config: StrategyConfig, value: Any) -> None:
        setattr(group(_heuristic_of(config)), attr, value)

    return get, set_


def _lookahead_field(group: Callable[[LookaheadConfig], Any], attr: str):
    def get(config: StrategyConfig) -> Any:
        if not isinstance(config, LookaheadConfig):
            raise ConfigError(f"{attr} exists only on lookahead configs")
        return getattr(group(config), attr)

    def set_(config: StrategyConfig, value: Any) -> None:
        setattr(group(config), attr, value)

    return get, set_


def _production(config: HeuristicConfig):
    return config.production_weights


def _development(config: HeuristicConfig):
    return config.development_weights


def _food_policy(config: HeuristicConfig):
    return config.food_policy_weights


def _build(config: HeuristicConfig):
    return config.build_weights


def _itself(config):
    return config


def _utility(config: LookaheadConfig):
    return config.utility_weights


def _scale(dimension_id: str, accessors, factor: float, low: float, high: float, **kwargs) -> Dimension:
    get, set_ = accessors
    return Dimension(dimension_id, "scale", get, set_, factor=factor, min=low, max=high, **kwargs)


def _flip(dimension_id: str, accessors) -> Dimension:
    get, set_ = accessors
    return Dimension(dimension_id, "flip", get, set_)


HEURISTIC_DIMENSIONS: List[Dimension] = [
    _scale("foodAggressive", _heuristic_field(_production, "food"), 1.6, 0, 30),
    _scale("goodsAggressive", _heuristic_field(_production, "goods"), 1.4, 0, 40),
    _scale("workerAggressive", _heuristic_field(_production, "workers"), 1.5, 0, 30),
    _scale("skullAverse", _heuristic_field(_production, "skulls"), 1.35, -40, -0.1),
    _scale("starvationAverse", _heuristic_field(_food_policy, "starvation_penalty_per_unit"), 1.6, 0, 200),
    _scale("monumentBias", _heuristic_field(_build, "monument_points"), 1.5, 0, 30),
    _scale("monumentProgressBias", _heuristic_field(_build, "monument_progress"), 1.6, 0, 10),
    _scale("monumentWorkersBias", _heuristic_field(_build, "monument_workers_used"), 1.8, 0, 5),
    _scale("monumentEffectBias", _heuristic_field(_build, "monument_special_effect"), 1.7, 0, 10),
    _scale("cityDieBias", _heuristic_field(_build, "city_extra_die_future_value"), 1.8, 0, 10),
    _scale("cityDeferredBuildBias", _heuristic_field(_build, "city_deferred_completion_value_scale"), 1.6, 0, 3),
    _scale("devPointsBias", _heuristic_field(_development, "points"), 1.7, 0, 20),
    _flip("exchangeFirst", _heuristic_field(_itself, "prefer_exchange_before_development")),
    _scale(
        "monumentDeferredBias", _heuristic_field(_build, "monument_deferred_completion_value_scale"), 1.5, 0, 3
    ),
    _scale(
        "monumentLongHorizon", _heuristic_field(_build, "monument_deferred_max_turns_to_complete"), 1.5, 0.5, 6
    ),
    _flip("forceFoodReroll", _heuristic_field(_food_policy, "force_reroll_on_food_shortage")),
]

LOOKAHEAD_DIMENSIONS: List[Dimension] = [
    _scale("lookaheadDeeper", _lookahead_field(_itself, "depth"), 1.5, 1, 4, integer=True, lookahead_only=True),
    _scale(
        "lookaheadWiderActions",
        _lookahead_field(_itself, "max_actions_per_node"),
        1.4,
        4,
        20,
        integer=True,
        lookahead_only=True,
    ),
    _scale(
        "lookaheadMoreEvaluations",
        _lookahead_field(_itself, "max_evaluations"),
        1.5,
        200,
        5000,
        integer=True,
        lookahead_only=True,
    ),
    _scale("lookaheadUtilityVpHeavy", _lookahead_field(_utility, "score_total"), 1.25, 1, 300, lookahead_only=True),
    _scale(
        "lookaheadUtilityFoodSafety",
        _lookahead_field(_utility, "food_risk_penalty"),
        1.35,
        0,
        10,
        lookahead_only=True,
    ),
    _scale(
        "lookaheadUtilityResourceNow",
        _lookahead_field(_utility, "turn_resource_position"),
        1.25,
        0,
        10,
        lookahead_only=True,
    ),
]

DIMENSIONS: Dict[str, Dimension] = {
    dimension.id: dimension for dimension in HEURISTIC_DIMENSIONS + LOOKAHEAD_DIMENSIONS
}


def get_dimension(dimension_id: str) -> Dimension:
    try:
        return DIMENSIONS[dimension_id]
    except KeyError:
        raise ConfigError(f"Unknown dimension id: {dimension_id}") from None


def ordered_dimension_ids(bot_type: str) -> List[str]:
    """Dimension ids in expansion order; lookahead-native ones come first."""
    if bot_type not in BOT_TYPES:
        raise ConfigError(f"Unknown bot type {bot_type!r}")
    heuristic = [dimension.id for dimension in HEURISTIC_DIMENSIONS]
    if bot_type == "heuristic":
        return heuristic
    return [dimension.id for dimension in LOOKAHEAD_DIMENSIONS] + heuristic


def dimension_key(dimension_ids: Iterable[str]) -> str:
    return "+".join(sorted(dimension_ids))


def apply_dimensions(
    bot_type: str,
    dimension_ids: Iterable[str],
    base: Optional[StrategyConfig] = None,
) -> StrategyConfig:
    """Derive a config by applying ``dimension_ids`` to a copy of ``base``.

    ``base`` defaults to the standard config for ``bot_type``. Duplicate ids
    are applied once.
    """
    if base is None:
        if bot_type == "lookahead":
            config: StrategyConfig = default_lookahead_config()
        elif bot_type == "heuristic":
            config = default_heuristic_config()
        else:
            raise ConfigError(f"Unknown bot type {bot_type!r}")
    else:
        config = clone_config(base)
    for dimension_id in sorted(set(dimension_ids)):
        dimension = get_dimension(dimension_id)
        if not dimension.applies_to(bot_type):
            raise ConfigError(f"Dimension {dimension_id} does not apply to {bot_type} bots")
        dimension.apply(config)
    return config


def dimension_power_set(dimension_ids: Sequence[str], include_baseline: bool = True) -> Iterator[Tuple[int, List[str]]]:
    """Yield ``(index, ids)`` for every subset of ``dimension_ids``.

    Subsets follow bitmask order; the empty subset is yielded first as index 0
    only with ``include_baseline``.
    """
    for dimension_id in dimension_ids:
        get_dimension(dimension_id)
    if include_baseline:
        yield 0, []
    for mask in range(1, 1 << len(dimension_ids)):
        active = [dimension_id for bit, dimension_id in enumerate(dimension_ids) if mask & (1 << bit)]
        yield (mask if include_baseline else mask - 1), active
