"""Strategy configuration dataclasses and their JSON patch format.

Candidate files store configs as camelCase JSON objects. Each weight group
has an explicit key table; a patch only touches the fields it names and every
other field keeps the value of the base config it is merged over.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Union

logger = logging.getLogger(__name__)

BOT_TYPES = ("heuristic", "lookahead")


class ConfigError(ValueError):
    """Raised for malformed strategy configuration payloads."""


@dataclass
class ProductionWeights:
    workers: float = 2.0
    coins: float = 1.0
    food: float = 2.0
    goods: float = 6.0
    skulls: float = -8.0


@dataclass
class DevelopmentWeights:
    points: float = 1.0
    cost: float = 0.01


@dataclass
class FoodPolicyWeights:
    food_deficit_priority_per_unit: float = 3.0
    starvation_penalty_per_unit: float = 20.0
    force_reroll_on_food_shortage: bool = False
    force_reroll_shortage_threshold: float = 1.0


@dataclass
class BuildWeights:
    city_extra_die_future_value: float = 4.0
    city_deferred_completion_value_scale: float = 0.5
    monument_points: float = 2.0
    monument_point_efficiency: float = 1.0
    monument_progress: float = 1.0
    monument_workers_used: float = 0.5
    monument_special_effect: float = 1.0
    monument_first_completion_bonus: float = 1.0
    monument_deferred_completion_value_scale: float = 0.5
    monument_deferred_max_turns_to_complete: float = 2.0


@dataclass
class HeuristicConfig:
    production_weights: ProductionWeights = field(default_factory=ProductionWeights)
    development_weights: DevelopmentWeights = field(default_factory=DevelopmentWeights)
    food_policy_weights: FoodPolicyWeights = field(default_factory=FoodPolicyWeights)
    build_weights: BuildWeights = field(default_factory=BuildWeights)
    build_priority: List[str] = field(default_factory=lambda: ["city", "monument"])
    prefer_exchange_before_development: bool = False


@dataclass
class UtilityWeights:
    score_total: float = 20.0
    completed_cities: float = 6.0
    city_progress: float = 2.0
    monument_progress: float = 3.0
    goods_value: float = 0.5
    food: float = 1.5
    turn_resource_position: float = 1.0
    food_risk_penalty: float = 1.0


@dataclass
class LookaheadConfig:
    depth: int = 2
    max_enumerated_roll_dice: int = 4
    max_chance_outcomes_per_action: int = 216
    max_actions_per_node: int = 10
    max_evaluations: int = 1200
    utility_weights: UtilityWeights = field(default_factory=UtilityWeights)
    heuristic_fallback_config: HeuristicConfig = field(default_factory=HeuristicConfig)


StrategyConfig = Union[HeuristicConfig, LookaheadConfig]

_PRODUCTION_KEYS = {
    "workers": "workers",
    "coins": "coins",
    "food": "food",
    "goods": "goods",
    "skulls": "skulls",
}
_DEVELOPMENT_KEYS = {"points": "points", "cost": "cost"}
_FOOD_POLICY_KEYS = {
    "foodDeficitPriorityPerUnit": "food_deficit_priority_per_unit",
    "starvationPenaltyPerUnit": "starvation_penalty_per_unit",
    "forceRerollOnFoodShortage": "force_reroll_on_food_shortage",
    "forceRerollShortageThreshold": "force_reroll_shortage_threshold",
}
_BUILD_KEYS = {
    "cityExtraDieFutureValue": "city_extra_die_future_value",
    "cityDeferredCompletionValueScale": "city_deferred_completion_value_scale",
    "monumentPoints": "monument_points",
    "monumentPointEfficiency": "monument_point_efficiency",
    "monumentProgress": "monument_progress",
    "monumentWorkersUsed": "monument_workers_used",
    "monumentSpecialEffect": "monument_special_effect",
    "monumentFirstCompletionBonus": "monument_first_completion_bonus",
    "monumentDeferredCompletionValueScale": "monument_deferred_completion_value_scale",
    "monumentDeferredMaxTurnsToComplete": "monument_deferred_max_turns_to_complete",
}
_UTILITY_KEYS = {
    "scoreTotal": "score_total",
    "completedCities": "completed_cities",
    "cityProgress": "city_progress",
    "monumentProgress": "monument_progress",
    "goodsValue": "goods_value",
    "food": "food",
    "turnResourcePosition": "turn_resource_position",
    "foodRiskPenalty": "food_risk_penalty",
}
_LOOKAHEAD_KEYS = {
    "depth": "depth",
    "maxEnumeratedRollDice": "max_enumerated_roll_dice",
    "maxChanceOutcomesPerAction": "max_chance_outcomes_per_action",
    "maxActionsPerNode": "max_actions_per_node",
    "maxEvaluations": "max_evaluations",
}
_BOOLEAN_FIELDS = {"force_reroll_on_food_shortage"}
_INTEGER_FIELDS = set(_LOOKAHEAD_KEYS.values())


def default_heuristic_config() -> HeuristicConfig:
    return HeuristicConfig()


def default_lookahead_config() -> LookaheadConfig:
    return LookaheadConfig()


def _coerce(attr: str, value: Any, group: str) -> Any:
    if attr in _BOOLEAN_FIELDS:
        if not isinstance(value, bool):
            raise ConfigError(f"{group}.{attr} must be a boolean, got {value!r}")
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{group}.{attr} must be a number, got {value!r}")
    if attr in _INTEGER_FIELDS:
        return int(value)
    return float(value)


def _patch_group(base, data: Any, keys: Mapping[str, str], group: str):
    if data is None:
        return replace(base)
    if not isinstance(data, Mapping):
        raise ConfigError(f"{group} must be an object")
    values = {}
    for key, value in data.items():
        attr = keys.get(key)
        if attr is None:
            logger.debug("Ignoring unknown %s key %s", group, key)
            continue
        values[attr] = _coerce(attr, value, group)
    return replace(base, **values)


def merge_heuristic_config(base: HeuristicConfig, patch: Optional[Mapping[str, Any]]) -> HeuristicConfig:
    patch = patch or {}
    if not isinstance(patch, Mapping):
        raise ConfigError("Heuristic config must be an object")
    build_priority = list(base.build_priority)
    if "buildPriority" in patch:
        raw = patch["buildPriority"]
        if not isinstance(raw, list) or any(item not in ("city", "monument") for item in raw):
            raise ConfigError("buildPriority must be a list of 'city'/'monument'")
        build_priority = list(raw)
    prefer_exchange = base.prefer_exchange_before_development
    if "preferExchangeBeforeDevelopment" in patch:
        raw = patch["preferExchangeBeforeDevelopment"]
        if not isinstance(raw, bool):
            raise ConfigError("preferExchangeBeforeDevelopment must be a boolean")
        prefer_exchange = raw
    return HeuristicConfig(
        production_weights=_patch_group(
            base.production_weights, patch.get("productionWeights"), _PRODUCTION_KEYS, "productionWeights"
        ),
        development_weights=_patch_group(
            base.development_weights, patch.get("developmentWeights"), _DEVELOPMENT_KEYS, "developmentWeights"
        ),
        food_policy_weights=_patch_group(
            base.food_policy_weights, patch.get("foodPolicyWeights"), _FOOD_POLICY_KEYS, "foodPolicyWeights"
        ),
        build_weights=_patch_group(base.build_weights, patch.get("buildWeights"), _BUILD_KEYS, "buildWeights"),
        build_priority=build_priority,
        prefer_exchange_before_development=prefer_exchange,
    )


def merge_lookahead_config(base: LookaheadConfig, patch: Optional[Mapping[str, Any]]) -> LookaheadConfig:
    patch = patch or {}
    if not isinstance(patch, Mapping):
        raise ConfigError("Lookahead config must be an object")
    scalars = _patch_group(
        base,
        {key: value for key, value in patch.items() if key in _LOOKAHEAD_KEYS},
        _LOOKAHEAD_KEYS,
        "lookahead",
    )
    return LookaheadConfig(
        depth=scalars.depth,
        max_enumerated_roll_dice=scalars.max_enumerated_roll_dice,
        max_chance_outcomes_per_action=scalars.max_chance_outcomes_per_action,
        max_actions_per_node=scalars.max_actions_per_node,
        max_evaluations=scalars.max_evaluations,
        utility_weights=_patch_group(
            base.utility_weights, patch.get("utilityWeights"), _UTILITY_KEYS, "utilityWeights"
        ),
        heuristic_fallback_config=merge_heuristic_config(
            base.heuristic_fallback_config, patch.get("heuristicFallbackConfig")
        ),
    )


def merge_config(bot_type: str, patch: Optional[Mapping[str, Any]]) -> StrategyConfig:
    """Merge a partial JSON config over the standard config for ``bot_type``."""
    if bot_type == "heuristic":
        return merge_heuristic_config(default_heuristic_config(), patch)
    if bot_type == "lookahead":
        return merge_lookahead_config(default_lookahead_config(), patch)
    raise ConfigError(f"Unknown bot type {bot_type!r}; expected one of {', '.join(BOT_TYPES)}")


def _group_to_dict(group, keys: Mapping[str, str]) -> Dict[str, Any]:
    return {key: getattr(group, attr) for key, attr in keys.items()}


def heuristic_config_to_dict(config: HeuristicConfig) -> Dict[str, Any]:
    return {
        "productionWeights": _group_to_dict(config.production_weights, _PRODUCTION_KEYS),
        "developmentWeights": _group_to_dict(config.development_weights, _DEVELOPMENT_KEYS),
        "foodPolicyWeights": _group_to_dict(config.food_policy_weights, _FOOD_POLICY_KEYS),
        "buildWeights": _group_to_dict(config.build_weights, _BUILD_KEYS),
        "buildPriority": list(config.build_priority),
        "preferExchangeBeforeDevelopment": config.prefer_exchange_before_development,
    }


def config_to_dict(config: StrategyConfig) -> Dict[str, Any]:
    if isinstance(config, HeuristicConfig):
        return heuristic_config_to_dict(config)
    payload = _group_to_dict(config, _LOOKAHEAD_KEYS)
    payload["utilityWeights"] = _group_to_dict(config.utility_weights, _UTILITY_KEYS)
    payload["heuristicFallbackConfig"] = heuristic_config_to_dict(config.heuristic_fallback_config)
    return payload


def bot_type_of(config: StrategyConfig) -> str:
    return "lookahead" if isinstance(config, LookaheadConfig) else "heuristic"


def clone_config(config: StrategyConfig) -> StrategyConfig:
    return deepcopy(config)
