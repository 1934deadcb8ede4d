"""Weighted-feature strategy.

Each phase scores its candidate actions with a linear combination of the
weights in :class:`~rtta.bot.config.HeuristicConfig` and takes the best one.
Ties keep the first enumerated action so the choice is deterministic.

Dice are valued in production-weight units. In the roll phase a die is kept
when it beats the average face, the unlocked dice are rolled when they fall
short of it, and a city is worth the weighted output of the die it adds over
the turns left. A config that values no resource therefore sees no reason to
keep dice or to build cities.
"""

from __future__ import annotations

import math
from typing import Callable, List, Optional, Sequence

from rtta.core import GamePhase, GameState, LockDecision, ResourceProduction, goods_value
from rtta.core.rules import (
    available_developments,
    calculate_dice_production,
    disaster_hits_active_player,
    goods_spend_value,
    is_first_to_complete_monument,
    owned_effects,
    remaining_city_workers,
    remaining_monument_workers,
    single_die_rerolls_remaining,
    total_goods_value,
    triggered_disaster,
)
from rtta.core.state import DieState

from .actions import (
    ApplyExchange,
    BotAction,
    BuildCity,
    BuildMonument,
    BuyDevelopment,
    DiscardGoods,
    KeepDie,
    RerollSingleDie,
    ResolveProduction,
    RollDice,
    SelectProduction,
)
from .adapter import apply_bot_action
from .config import HeuristicConfig, ProductionWeights

SHORTAGE_FOOD_WEIGHT_PER_UNIT = 4.0
SPENT_GOODS_PENALTY = 0.001
WORKERS_PER_DIE = 1.0


def _best_by(actions: Sequence[BotAction], score: Callable[[BotAction], float]) -> Optional[BotAction]:
    best = None
    best_score = -math.inf
    for action in actions:
        value = score(action)
        if value > best_score:
            best = action
            best_score = value
    return best


def production_score(resources: ResourceProduction, weights: ProductionWeights, food_weight: float) -> float:
    return (
        resources.workers * weights.workers
        + resources.coins * weights.coins
        + resources.food * food_weight
        + resources.goods * weights.goods
        + resources.skulls * weights.skulls
    )


def food_deficit(game: GameState) -> int:
    player = game.active_player
    return max(0, player.completed_cities() - player.food)


def food_urgency_weight(game: GameState, config: HeuristicConfig) -> float:
    policy = config.food_policy_weights
    return config.production_weights.food + food_deficit(game) * policy.food_deficit_priority_per_unit


def projected_shortage(game: GameState, dice: Optional[Sequence[DieState]] = None) -> int:
    player = game.active_player
    produced = calculate_dice_production(game, dice).food
    return max(0, player.completed_cities() - player.food - produced)


def fill_best_choices(game: GameState, dice: Sequence[DieState], config: HeuristicConfig) -> List[DieState]:
    """Return a copy of ``dice`` with every pending choice set to its best option."""
    filled = [DieState(die.face_index, die.production_index, die.lock) for die in dice]
    food_weight = food_urgency_weight(game, config)
    for die in filled:
        if not die.choice_pending:
            continue
        face = game.settings.dice_faces[die.face_index]
        scores = [production_score(option, config.production_weights, food_weight) for option in face.production]
        die.production_index = scores.index(max(scores))
    return filled


def resolved_utility(game: GameState, config: HeuristicConfig, dice: Optional[Sequence[DieState]] = None) -> float:
    """Value of resolving ``dice`` now, including the starvation penalty."""
    dice = game.turn.dice if dice is None else dice
    shortage = projected_shortage(game, dice)
    food_weight = food_urgency_weight(game, config) + shortage * SHORTAGE_FOOD_WEIGHT_PER_UNIT
    production = calculate_dice_production(game, dice)
    penalty = shortage * config.food_policy_weights.starvation_penalty_per_unit
    return production_score(production, config.production_weights, food_weight) - penalty


def turn_resource_score(game: GameState, config: HeuristicConfig) -> float:
    if game.phase in (GamePhase.ROLL_DICE, GamePhase.DECIDE_DICE, GamePhase.RESOLVE_PRODUCTION):
        return resolved_utility(game, config, fill_best_choices(game, game.turn.dice, config))
    weights = config.production_weights
    production = game.turn.production
    return production.workers * weights.workers + production.coins * weights.coins


def _face_score(game: GameState, face_index: int, config: HeuristicConfig, food_weight: float) -> float:
    face = game.settings.dice_faces[face_index]
    return max(production_score(option, config.production_weights, food_weight) for option in face.production)


def _die_score(game: GameState, die: DieState, config: HeuristicConfig, food_weight: float) -> float:
    face = game.settings.dice_faces[die.face_index]
    if die.choice_pending:
        return _face_score(game, die.face_index, config, food_weight)
    return production_score(face.production[die.production_index], config.production_weights, food_weight)


def average_face_score(game: GameState, config: HeuristicConfig, food_weight: float) -> float:
    """Expected weighted production of one freshly rolled die."""
    faces = range(len(game.settings.dice_faces))
    return sum(_face_score(game, index, config, food_weight) for index in faces) / len(faces)


def _disaster_cost(game: GameState, skulls: int, config: HeuristicConfig) -> float:
    disaster = triggered_disaster(skulls, game.settings)
    if disaster is None or not disaster_hits_active_player(game, disaster):
        return 0.0
    weights = config.production_weights
    cost = abs(disaster.points_delta) * max(0.0, -weights.skulls)
    if disaster.clears_goods:
        cost += game.active_player.total_goods() * max(0.0, weights.goods)
    return cost


def disaster_risk(game: GameState, config: HeuristicConfig, rerolled: int) -> float:
    """Expected extra disaster cost of rerolling ``rerolled`` skull-free dice.

    Disasters hit in tiers, so the cost of one more skull depends on how many
    are already locked. Tiers that strike opponents cost nothing.
    """
    if rerolled <= 0:
        return 0.0
    faces = game.settings.dice_faces
    chance = sum(1 for face in faces if face.has_skull) / len(faces)
    skulls = calculate_dice_production(game).skulls
    expected = 0.0
    for extra in range(rerolled + 1):
        probability = math.comb(rerolled, extra) * chance**extra * (1 - chance) ** (rerolled - extra)
        expected += probability * _disaster_cost(game, skulls + extra, config)
    return expected - _disaster_cost(game, skulls, config)


def _choose_production(game: GameState, actions: Sequence[BotAction], config: HeuristicConfig) -> Optional[BotAction]:
    choices = [action for action in actions if isinstance(action, SelectProduction)]
    if not choices:
        return None

    def score(action: SelectProduction) -> float:
        dice = [DieState(die.face_index, die.production_index, die.lock) for die in game.turn.dice]
        dice[action.die_index].production_index = action.production_index
        return resolved_utility(game, config, fill_best_choices(game, dice, config))

    return _best_by(choices, score)


def _choose_roll_phase(game: GameState, actions: Sequence[BotAction], config: HeuristicConfig) -> BotAction:
    production = _choose_production(game, actions, config)
    if production is not None:
        return production

    dice = game.turn.dice
    shortage = projected_shortage(game, fill_best_choices(game, dice, config))
    policy = config.food_policy_weights
    roll = next((action for action in actions if isinstance(action, RollDice)), None)
    if roll is not None and policy.force_reroll_on_food_shortage and shortage >= policy.force_reroll_shortage_threshold:
        return roll

    food_weight = food_urgency_weight(game, config) + shortage * SHORTAGE_FOOD_WEIGHT_PER_UNIT
    average = average_face_score(game, config, food_weight)
    scores = [_die_score(game, die, config, food_weight) for die in dice]
    unlocked = [index for index, die in enumerate(dice) if die.lock == LockDecision.UNLOCKED]
    single_risk = disaster_risk(game, config, 1)

    def reroll_value(die_index: int) -> float:
        return average - scores[die_index] - single_risk

    # Keeping the last unlocked die while a single-die reroll is left forces
    # that reroll, so the keep carries the best reroll it will have to take.
    forced_reroll = 0.0
    if len(unlocked) == 1 and single_die_rerolls_remaining(game) > 0:
        forced_reroll = max(
            reroll_value(index) for index, die in enumerate(dice) if die.lock != LockDecision.SKULL
        )

    def value(action: BotAction) -> float:
        if isinstance(action, RollDice):
            gain = sum(average - scores[index] for index in unlocked)
            return gain - disaster_risk(game, config, len(unlocked))
        if isinstance(action, KeepDie):
            return scores[action.die_index] - average + forced_reroll
        if isinstance(action, RerollSingleDie):
            return reroll_value(action.die_index)
        return -math.inf

    choices = [
        action
        for action in actions
        if not isinstance(action, RerollSingleDie) or reroll_value(action.die_index) > 0
    ]
    if not choices:
        # Every die is locked and the engine insists on the reroll.
        choices = list(actions)
    return _best_by(choices, value) or actions[0]


def extra_die_value(game: GameState, config: HeuristicConfig) -> float:
    """Weighted output of one more die per turn, less the food its city eats."""
    weights = config.production_weights
    return average_face_score(game, config, weights.food) - weights.food


def _horizon_turns(game: GameState) -> int:
    return max(1, game.settings.end_condition.num_rounds - game.round + 1)


def _turns_to_finish(remaining: int, cities: int) -> float:
    per_turn = max(1.0, cities * WORKERS_PER_DIE)
    return math.ceil(remaining / per_turn)


def score_city(game: GameState, action: BuildCity, config: HeuristicConfig) -> float:
    """Value of the extra die over the turns it will be rolled.

    ``city_extra_die_future_value`` scales the die's weighted output per turn
    by the share of the game still ahead. Unfinished cities only count the
    turns after they are expected to be done, discounted by
    ``city_deferred_completion_value_scale`` and the share of the remaining
    cost paid now.
    """
    weights = config.build_weights
    player = game.active_player
    die_value = extra_die_value(game, config)
    if die_value <= 0:
        return 0.0
    rounds = max(1, game.settings.end_condition.num_rounds)
    needed = remaining_city_workers(player, action.city_index, game.settings)
    used = min(game.turn.production.workers, needed)
    turns_after = _horizon_turns(game) - 1
    if used >= needed:
        return weights.city_extra_die_future_value * die_value * turns_after / rounds
    turns_after -= _turns_to_finish(needed - used, player.completed_cities())
    if turns_after <= 0:
        return 0.0
    fraction = used / max(1, needed)
    value = weights.city_extra_die_future_value * die_value * turns_after / rounds
    return value * weights.city_deferred_completion_value_scale * fraction


def _opponent_turns_to_finish(game: GameState, monument_id: str) -> float:
    active = game.active_player
    best = math.inf
    for player in game.players:
        if player.id == active.id:
            continue
        remaining = remaining_monument_workers(player, monument_id, game.settings)
        if remaining <= 0:
            continue
        best = min(best, _turns_to_finish(remaining, player.completed_cities()))
    return best


def score_monument(game: GameState, action: BuildMonument, config: HeuristicConfig) -> float:
    weights = config.build_weights
    settings = game.settings
    player = game.active_player
    definition = settings.monument(action.monument_id)
    progress = player.monuments[action.monument_id]
    needed = remaining_monument_workers(player, action.monument_id, settings)
    used = min(game.turn.production.workers, needed)
    first = is_first_to_complete_monument(game, player, action.monument_id)
    points = definition.first_points if first else definition.later_points
    efficiency = points / definition.worker_cost
    special = sum(
        effect.points
        for effect in owned_effects(player, settings, "bonusPointsPer")
        if effect.entity == "monument"
    )
    progress_after = (progress.workers_committed + used) / definition.worker_cost

    score = weights.monument_progress * progress_after + weights.monument_workers_used * used
    score += weights.monument_point_efficiency * efficiency * used
    if used >= needed:
        score += weights.monument_points * points
        score += weights.monument_special_effect * special
        if first:
            score += weights.monument_first_completion_bonus * (definition.first_points - definition.later_points)
        return score

    turns = _turns_to_finish(needed - used, player.completed_cities())
    if turns > weights.monument_deferred_max_turns_to_complete or turns > _horizon_turns(game):
        return score
    race = 1.0 if turns < _opponent_turns_to_finish(game, action.monument_id) else 0.5
    deferred = weights.monument_points * points + weights.monument_special_effect * special
    score += deferred * weights.monument_deferred_completion_value_scale * progress_after * race
    return score


def _choose_build(game: GameState, actions: Sequence[BotAction], config: HeuristicConfig) -> Optional[BotAction]:
    priority = {kind: rank for rank, kind in enumerate(config.build_priority)}
    best = None
    best_key = None
    for index, action in enumerate(actions):
        if isinstance(action, BuildCity):
            value, kind = score_city(game, action, config), "city"
        elif isinstance(action, BuildMonument):
            value, kind = score_monument(game, action, config), "monument"
        else:
            continue
        sort_key = (-value, priority.get(kind, len(priority)), index)
        if best_key is None or sort_key < best_key:
            best, best_key = action, sort_key
    return best


def _development_value(game: GameState, config: HeuristicConfig) -> float:
    weights = config.development_weights
    power = game.turn.production.coins + total_goods_value(game.active_player, game.settings)
    values = [
        development.points * weights.points + development.cost * weights.cost
        for development in available_developments(game)
        if development.cost <= power
    ]
    return max(values, default=0.0)


def _resource_weight(resource: str, config: HeuristicConfig) -> float:
    weights = config.production_weights
    key = resource.lower()
    if key == "food":
        return weights.food
    if key == "coins":
        return weights.coins
    if key == "workers":
        return weights.workers
    return weights.goods


def _exchange_score(game: GameState, action: ApplyExchange, config: HeuristicConfig) -> float:
    applied, after, _ = apply_bot_action(game, action)
    if not applied:
        return -math.inf
    gain = _development_value(after, config) - _development_value(game, config)
    if after.phase == GamePhase.BUILD:
        gain += action.amount * config.production_weights.workers
    loss = action.amount * _resource_weight(action.source, config) * 0.1
    if action.source.lower() == "food":
        player = after.active_player
        if player.food < player.completed_cities():
            loss += config.food_policy_weights.starvation_penalty_per_unit
    return gain - loss


def _choose_exchange(game: GameState, actions: Sequence[BotAction], config: HeuristicConfig) -> Optional[BotAction]:
    exchanges = [action for action in actions if isinstance(action, ApplyExchange)]
    if not exchanges:
        return None
    scored = [(action, _exchange_score(game, action, config)) for action in exchanges]
    best, best_score = None, 0.0
    for action, value in scored:
        if value > best_score:
            best, best_score = action, value
    return best


def _choose_purchase(game: GameState, actions: Sequence[BotAction], config: HeuristicConfig) -> Optional[BotAction]:
    purchases = [action for action in actions if isinstance(action, BuyDevelopment)]
    if not purchases:
        return None
    weights = config.development_weights
    player = game.active_player

    def score(action: BuyDevelopment) -> float:
        development = game.settings.development(action.development_id)
        spent = goods_spend_value(player, action.goods_type_names, game.settings)
        return development.points * weights.points + development.cost * weights.cost - spent * SPENT_GOODS_PENALTY

    return _best_by(purchases, score)


def _choose_development(game: GameState, actions: Sequence[BotAction], config: HeuristicConfig) -> BotAction:
    if config.prefer_exchange_before_development:
        exchange = _choose_exchange(game, actions, config)
        if exchange is not None:
            return exchange
    purchase = _choose_purchase(game, actions, config)
    if purchase is not None:
        return purchase
    exchange = _choose_exchange(game, actions, config)
    if exchange is not None:
        return exchange
    for action in actions:
        if action.kind == "skipDevelopment":
            return action
    return actions[0]


def _choose_discard(game: GameState, actions: Sequence[BotAction]) -> Optional[BotAction]:
    discards = [action for action in actions if isinstance(action, DiscardGoods)]
    if not discards:
        return None
    settings = game.settings

    def kept_value(action: DiscardGoods) -> float:
        keep = action.keep_map()
        return sum(goods_value(settings.goods_type(name), amount) for name, amount in keep.items())

    return _best_by(discards, kept_value)


def choose_heuristic_action(
    game: GameState,
    actions: Sequence[BotAction],
    config: HeuristicConfig,
) -> Optional[BotAction]:
    if not actions:
        return None
    phase = game.phase
    if phase == GamePhase.ROLL_DICE:
        return _choose_roll_phase(game, actions, config)
    if phase in (GamePhase.DECIDE_DICE, GamePhase.RESOLVE_PRODUCTION):
        production = _choose_production(game, actions, config)
        if production is not None:
            return production
        for action in actions:
            if isinstance(action, ResolveProduction):
                return action
        return actions[0]
    if phase == GamePhase.BUILD:
        return _choose_build(game, actions, config) or actions[0]
    if phase == GamePhase.DEVELOPMENT:
        return _choose_development(game, actions, config)
    if phase == GamePhase.DISCARD_GOODS:
        return _choose_discard(game, actions) or actions[0]
    return actions[0]
