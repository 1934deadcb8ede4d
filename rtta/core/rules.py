from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .definitions import (
    MAX_AUTO_ADVANCE_STEPS,
    DevelopmentDefinition,
    DevelopmentEffect,
    DiceFace,
    DisasterDefinition,
    GameSettings,
    PlayerConfig,
    ResourceProduction,
    create_game_settings,
    goods_value,
)
from .state import (
    Construction,
    DieState,
    GamePhase,
    GameState,
    LockDecision,
    PlayerState,
    TurnProduction,
    TurnState,
)


class RuleError(ValueError):
    """Raised when an engine operation is not allowed in the current state."""


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def create_player_state(player_id: str, settings: GameSettings) -> PlayerState:
    cities = [Construction(0, True) for _ in range(settings.starting_cities)]
    cities.extend(
        Construction(0, False)
        for _ in range(settings.max_cities - settings.starting_cities)
    )
    return PlayerState(
        id=player_id,
        food=settings.starting_food,
        goods={goods_type.name: 0 for goods_type in settings.goods_types},
        cities=cities,
        developments=[],
        monuments={monument.id: Construction() for monument in settings.monuments},
    )


def create_game(players: Sequence[PlayerConfig], seed: int = 0) -> GameState:
    if not players:
        raise RuleError("At least one player is required.")
    ids = [player.id for player in players]
    if len(set(ids)) != len(ids):
        raise RuleError("Player ids must be unique.")

    settings = create_game_settings(players)
    game = GameState(
        settings=settings,
        players=[create_player_state(player.id, settings) for player in players],
        active_player_index=0,
        round=1,
        phase=GamePhase.ROLL_DICE,
        turn=TurnState(active_player_id=players[0].id),
        dice_seed=abs(int(seed)),
        roll_counter=0,
    )
    _start_turn(game)
    return game


def _draw_faces(game: GameState, count: int) -> List[int]:
    rng = np.random.default_rng([game.dice_seed, game.roll_counter])
    game.roll_counter += 1
    faces = rng.integers(0, len(game.settings.dice_faces), size=count)
    return [int(face) for face in faces]


def make_die(face_index: int, face: DiceFace, previous: Optional[LockDecision] = None) -> DieState:
    lock = LockDecision.SKULL if face.has_skull else (previous or LockDecision.UNLOCKED)
    production_index = -1 if face.has_choice else 0
    return DieState(face_index=face_index, production_index=production_index, lock=lock)


def _start_turn(game: GameState) -> None:
    player = game.active_player
    dice_count = player.completed_cities()
    faces = _draw_faces(game, dice_count)
    dice = [make_die(index, game.settings.dice_faces[index]) for index in faces]
    game.turn = TurnState(
        active_player_id=player.id,
        rolls_used=1,
        dice=dice,
        pending_choices=count_pending_choices(dice),
    )
    game.phase = GamePhase.ROLL_DICE


# ---------------------------------------------------------------------------
# Dice
# ---------------------------------------------------------------------------


def count_pending_choices(dice: Sequence[DieState]) -> int:
    return sum(1 for die in dice if die.choice_pending)


def owned_effects(player: PlayerState, settings: GameSettings, kind: str) -> List[DevelopmentEffect]:
    effects = []
    for development_id in player.developments:
        development = settings.development(development_id)
        if development is not None and development.effect.kind == kind:
            effects.append(development.effect)
    return effects


def single_die_rerolls_allowed(game: GameState) -> int:
    return sum(effect.count for effect in owned_effects(game.active_player, game.settings, "diceReroll"))


def single_die_rerolls_remaining(game: GameState) -> int:
    return max(0, single_die_rerolls_allowed(game) - game.turn.single_die_rerolls_used)


def max_rolls_allowed(game: GameState) -> int:
    return game.settings.max_dice_rolls


def can_roll(game: GameState) -> bool:
    if game.phase != GamePhase.ROLL_DICE:
        return False
    if game.turn.rolls_used >= max_rolls_allowed(game):
        return False
    return any(die.lock == LockDecision.UNLOCKED for die in game.turn.dice)


def _finish_roll(game: GameState) -> None:
    game.turn.pending_choices = count_pending_choices(game.turn.dice)
    all_locked = all(die.lock != LockDecision.UNLOCKED for die in game.turn.dice)
    if all_locked or game.turn.rolls_used >= max_rolls_allowed(game):
        game.phase = GamePhase.DECIDE_DICE


def unlocked_dice(game: GameState) -> List[int]:
    return [i for i, die in enumerate(game.turn.dice) if die.lock == LockDecision.UNLOCKED]


def apply_roll_outcome(
    game: GameState,
    die_indices: Sequence[int],
    faces: Sequence[int],
    *,
    single_die: bool = False,
) -> GameState:
    """Place known faces on the given dice as if they had just been rolled."""
    game = game.copy()
    for index, face_index in zip(die_indices, faces):
        previous = game.turn.dice[index].lock if single_die else None
        game.turn.dice[index] = make_die(face_index, game.settings.dice_faces[face_index], previous)
    if single_die:
        game.turn.single_die_rerolls_used += 1
        game.turn.pending_choices = count_pending_choices(game.turn.dice)
    else:
        game.turn.rolls_used += 1
        _finish_roll(game)
    return game


def perform_roll(game: GameState) -> GameState:
    if not can_roll(game):
        raise RuleError("Roll not allowed.")
    game = game.copy()
    unlocked = unlocked_dice(game)
    faces = _draw_faces(game, len(unlocked))
    return apply_roll_outcome(game, unlocked, faces)


def can_reroll_single_die(game: GameState, die_index: int) -> bool:
    if game.phase != GamePhase.ROLL_DICE:
        return False
    if single_die_rerolls_remaining(game) <= 0:
        return False
    if not 0 <= die_index < len(game.turn.dice):
        return False
    return game.turn.dice[die_index].lock != LockDecision.SKULL


def perform_single_die_reroll(game: GameState, die_index: int) -> GameState:
    if not can_reroll_single_die(game, die_index):
        raise RuleError("Single-die reroll not allowed.")
    game = game.copy()
    faces = _draw_faces(game, 1)
    return apply_roll_outcome(game, [die_index], faces, single_die=True)


def keep_die(game: GameState, die_index: int) -> GameState:
    if game.phase != GamePhase.ROLL_DICE:
        raise RuleError("Keep die only allowed in roll phase.")
    if not 0 <= die_index < len(game.turn.dice):
        raise RuleError("Die index out of range.")
    if game.turn.dice[die_index].lock != LockDecision.UNLOCKED:
        raise RuleError("Die is not unlocked.")
    game = game.copy()
    game.turn.dice[die_index].lock = LockDecision.KEPT
    return game


def select_production(game: GameState, die_index: int, option_index: int) -> GameState:
    if game.phase not in (GamePhase.ROLL_DICE, GamePhase.DECIDE_DICE, GamePhase.RESOLVE_PRODUCTION):
        raise RuleError("Production choice not allowed in current phase.")
    if not 0 <= die_index < len(game.turn.dice):
        raise RuleError("Die index out of range.")
    die = game.turn.dice[die_index]
    face = game.settings.dice_faces[die.face_index]
    if not die.choice_pending:
        raise RuleError("Production choice is not pending for this die.")
    if not 0 <= option_index < len(face.production):
        raise RuleError("Production option out of range.")
    game = game.copy()
    game.turn.dice[die_index].production_index = option_index
    game.turn.pending_choices = count_pending_choices(game.turn.dice)
    return game


def die_production(die: DieState, face: DiceFace) -> ResourceProduction:
    return face.production[max(0, die.production_index)]


def calculate_dice_production(game: GameState, dice: Optional[Sequence[DieState]] = None) -> ResourceProduction:
    dice = game.turn.dice if dice is None else dice
    bonuses = owned_effects(game.active_player, game.settings, "resourceProductionBonus")
    totals = {"goods": 0, "food": 0, "workers": 0, "coins": 0, "skulls": 0}
    for die in dice:
        base = die_production(die, game.settings.dice_faces[die.face_index])
        for key in totals:
            amount = getattr(base, key)
            totals[key] += amount
            if amount > 0:
                totals[key] += sum(getattr(effect.bonus, key) for effect in bonuses)
    return ResourceProduction(**totals)


def count_skulls(game: GameState) -> int:
    return calculate_dice_production(game).skulls


# ---------------------------------------------------------------------------
# Goods
# ---------------------------------------------------------------------------


def has_no_goods_limit(player: PlayerState, settings: GameSettings) -> bool:
    return bool(owned_effects(player, settings, "noGoodsLimit"))


def goods_limit(player: PlayerState, settings: GameSettings) -> float:
    return math.inf if has_no_goods_limit(player, settings) else settings.max_goods


def goods_overflow(player: PlayerState, settings: GameSettings) -> int:
    limit = goods_limit(player, settings)
    if limit == math.inf:
        return 0
    return max(0, player.total_goods() - int(limit))


def total_goods_value(player: PlayerState, settings: GameSettings) -> int:
    return sum(
        goods_value(goods_type, player.goods.get(goods_type.name, 0))
        for goods_type in settings.goods_types
    )


def validate_keep_goods(player: PlayerState, keep: Dict[str, int], settings: GameSettings) -> Optional[str]:
    """Return ``None`` when the keep map is legal, else the reason it is not."""
    limit = goods_limit(player, settings)
    total = 0
    for name, amount in keep.items():
        if settings.goods_type(name) is None:
            return f"Unknown goods type {name}"
        if amount < 0:
            return f"Cannot keep negative {name}"
        owned = player.goods.get(name, 0)
        if amount > owned:
            return f"Cannot keep {amount} {name}, only have {owned}"
        total += amount
    if total > limit:
        return f"Cannot keep {total} goods, limit is {int(limit)}"
    return None


def _allocate_goods(player: PlayerState, amount: int, settings: GameSettings) -> None:
    bonuses = owned_effects(player, settings, "goodsProductionBonus")
    types = settings.goods_types
    for i in range(amount):
        goods_type = types[i % len(types)]
        current = player.goods.get(goods_type.name, 0)
        if current >= goods_type.max_quantity:
            continue
        bonus = sum(
            effect.goods_bonus
            for effect in bonuses
            if effect.goods_type and effect.goods_type.lower() == goods_type.name.lower()
        )
        player.goods[goods_type.name] = current + min(1 + bonus, goods_type.max_quantity - current)


# ---------------------------------------------------------------------------
# Production and disasters
# ---------------------------------------------------------------------------


def triggered_disaster(skulls: int, settings: GameSettings) -> Optional[DisasterDefinition]:
    worst = None
    for disaster in settings.disasters:
        if skulls >= disaster.skulls and (worst is None or disaster.skulls > worst.skulls):
            worst = disaster
    return worst


def is_immune(player: PlayerState, disaster_id: str, settings: GameSettings) -> bool:
    return any(
        effect.disaster_id == disaster_id
        for effect in owned_effects(player, settings, "disasterImmunity")
    )


def _disaster_targets(game: GameState, disaster: DisasterDefinition) -> List[PlayerState]:
    active = game.active_player
    settings = game.settings
    affected = disaster.affected_players
    for effect in owned_effects(active, settings, "rewriteDisasterTargeting"):
        if effect.disaster_id == disaster.id and effect.target_players:
            affected = effect.target_players
    if affected == "self":
        if is_immune(active, disaster.id, settings):
            return []
        return [active]
    return [
        player
        for player in game.players
        if player.id != active.id and not is_immune(player, disaster.id, settings)
    ]


def disaster_hits_active_player(game: GameState, disaster: DisasterDefinition) -> bool:
    active_id = game.active_player.id
    return any(player.id == active_id for player in _disaster_targets(game, disaster))


def _apply_disaster(game: GameState, skulls: int) -> None:
    disaster = triggered_disaster(skulls, game.settings)
    if disaster is None:
        return
    for player in _disaster_targets(game, disaster):
        if disaster.points_delta < 0:
            player.disaster_penalties += abs(disaster.points_delta)
        if disaster.clears_goods:
            for name in player.goods:
                player.goods[name] = 0


def resolve_production_phase(game: GameState) -> GameState:
    if count_pending_choices(game.turn.dice) > 0:
        raise RuleError("Production choices are still pending.")
    game = game.copy()
    player = game.active_player
    production = calculate_dice_production(game)

    food = player.food + production.food - player.completed_cities()
    shortage = 0
    if food < 0:
        shortage = -food
        player.food = 0
        player.disaster_penalties += shortage
    else:
        player.food = min(food, game.settings.max_food)

    _allocate_goods(player, production.goods, game.settings)
    _apply_disaster(game, production.skulls)

    game.turn.production = TurnProduction(
        goods=0,
        food=production.food,
        workers=production.workers,
        coins=production.coins,
        skulls=production.skulls,
    )
    game.turn.pending_choices = 0
    game.turn.food_shortage = shortage
    if game.turn.production.workers > 0:
        game.phase = GamePhase.BUILD
    else:
        game.phase = next_post_development_phase(game)
    return game


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


def remaining_city_workers(player: PlayerState, city_index: int, settings: GameSettings) -> int:
    city = player.cities[city_index]
    if city.completed:
        return 0
    return max(0, settings.city_cost(city_index) - city.workers_committed)


def remaining_monument_workers(player: PlayerState, monument_id: str, settings: GameSettings) -> int:
    monument = settings.monument(monument_id)
    progress = player.monuments.get(monument_id)
    if monument is None or progress is None or progress.completed:
        return 0
    return max(0, monument.worker_cost - progress.workers_committed)


def available_monuments(settings: GameSettings):
    count = len(settings.players)
    return [m for m in settings.monuments if m.min_players is None or count >= m.min_players]


def monument_completed_by_anyone(game: GameState, monument_id: str) -> bool:
    return any(
        player.monuments.get(monument_id, Construction()).completed
        for player in game.players
    )


def is_first_to_complete_monument(game: GameState, player: PlayerState, monument_id: str) -> bool:
    return not any(
        other.monuments.get(monument_id, Construction()).completed
        for other in game.players
        if other.id != player.id
    )


def get_build_options(game: GameState) -> Tuple[List[int], List[str]]:
    player = game.active_player
    cities = [
        index
        for index in range(len(player.cities))
        if remaining_city_workers(player, index, game.settings) > 0
    ]
    monuments = [
        monument.id
        for monument in available_monuments(game.settings)
        if not monument_completed_by_anyone(game, monument.id)
        and remaining_monument_workers(player, monument.id, game.settings) > 0
    ]
    return cities, monuments


def _after_build(game: GameState, spent: int) -> None:
    game.turn.production.workers = max(0, game.turn.production.workers - spent)
    if game.turn.production.workers > 0:
        game.phase = GamePhase.BUILD
    else:
        game.phase = next_post_development_phase(game)


def build_city(game: GameState, city_index: int) -> GameState:
    if game.phase != GamePhase.BUILD:
        raise RuleError("Build only allowed in build phase.")
    cities, _ = get_build_options(game)
    if city_index not in cities or game.turn.production.workers <= 0:
        raise RuleError("City is not currently buildable.")
    game = game.copy()
    player = game.active_player
    needed = remaining_city_workers(player, city_index, game.settings)
    spent = min(game.turn.production.workers, needed)
    city = player.cities[city_index]
    city.workers_committed += spent
    if city.workers_committed >= game.settings.city_cost(city_index):
        city.completed = True
        city.workers_committed = 0
    _after_build(game, spent)
    return game


def build_monument(game: GameState, monument_id: str) -> GameState:
    if game.phase != GamePhase.BUILD:
        raise RuleError("Build only allowed in build phase.")
    _, monuments = get_build_options(game)
    if monument_id not in monuments or game.turn.production.workers <= 0:
        raise RuleError("Monument is not currently buildable.")
    game = game.copy()
    player = game.active_player
    definition = game.settings.monument(monument_id)
    needed = remaining_monument_workers(player, monument_id, game.settings)
    spent = min(game.turn.production.workers, needed)
    progress = player.monuments[monument_id]
    progress.workers_committed += spent
    if progress.workers_committed >= definition.worker_cost:
        progress.completed = True
        progress.workers_committed = definition.worker_cost
    _after_build(game, spent)
    return game


# ---------------------------------------------------------------------------
# Developments and exchanges
# ---------------------------------------------------------------------------


def available_developments(game: GameState) -> List[DevelopmentDefinition]:
    owned = set(game.active_player.developments)
    return [d for d in game.settings.developments if d.id not in owned]


def goods_spend_value(player: PlayerState, names: Sequence[str], settings: GameSettings) -> int:
    total = 0
    for name in names:
        goods_type = settings.goods_type(name)
        if goods_type is not None:
            total += goods_value(goods_type, player.goods.get(goods_type.name, 0))
    return total


def purchase_error(game: GameState, development_id: str, goods_names: Sequence[str]) -> Optional[str]:
    if game.phase not in (GamePhase.BUILD, GamePhase.DEVELOPMENT):
        return "Development purchase not allowed in current phase."
    if game.turn.development_purchased:
        return "Development already purchased this turn."
    development = game.settings.development(development_id)
    if development is None:
        return f"Unknown development {development_id}."
    player = game.active_player
    if development.id in player.developments:
        return "Development already owned."
    if len(set(goods_names)) != len(goods_names):
        return "Goods types must not repeat."
    for name in goods_names:
        goods_type = game.settings.goods_type(name)
        if goods_type is None or player.goods.get(goods_type.name, 0) <= 0:
            return f"No {name} available to spend."
    power = game.turn.production.coins + goods_spend_value(player, goods_names, game.settings)
    if power < development.cost:
        return "Insufficient coins and goods for development."
    return None


def purchase_development(game: GameState, development_id: str, goods_names: Sequence[str]) -> GameState:
    error = purchase_error(game, development_id, goods_names)
    if error is not None:
        raise RuleError(error)
    game = game.copy()
    player = game.active_player
    development = game.settings.development(development_id)
    coins_spent = min(game.turn.production.coins, development.cost)
    game.turn.production.coins -= coins_spent
    for name in goods_names:
        player.goods[game.settings.goods_type(name).name] = 0
    player.developments.append(development.id)
    game.turn.development_purchased = True
    game.phase = post_development_completion_phase(game)
    return game


def skip_development(game: GameState) -> GameState:
    if game.phase != GamePhase.DEVELOPMENT:
        raise RuleError("Skip development only allowed in development phase.")
    game = game.copy()
    game.phase = post_development_completion_phase(game)
    return game


def get_exchange_options(game: GameState) -> List[DevelopmentEffect]:
    return owned_effects(game.active_player, game.settings, "exchange")


def exchange_resource_amount(game: GameState, resource: str) -> int:
    key = resource.lower()
    if key == "food":
        return game.active_player.food
    if key == "coins":
        return game.turn.production.coins
    if key == "workers":
        return game.turn.production.workers
    goods_type = game.settings.goods_type(resource)
    if goods_type is None:
        return 0
    return game.active_player.goods.get(goods_type.name, 0)


def _adjust_resource(game: GameState, resource: str, delta: int) -> None:
    key = resource.lower()
    if key == "food":
        game.active_player.food += delta
    elif key == "coins":
        game.turn.production.coins += delta
    elif key == "workers":
        game.turn.production.workers += delta
    else:
        name = game.settings.goods_type(resource).name
        game.active_player.goods[name] = game.active_player.goods.get(name, 0) + delta


def find_exchange(game: GameState, source: str, target: str) -> Optional[DevelopmentEffect]:
    for effect in get_exchange_options(game):
        if effect.source.lower() == source.lower() and effect.target.lower() == target.lower():
            return effect
    return None


def exchange_error(game: GameState, source: str, target: str, amount: int) -> Optional[str]:
    if game.phase not in (GamePhase.BUILD, GamePhase.DEVELOPMENT):
        return "Exchange not allowed in current phase."
    effect = find_exchange(game, source, target)
    if effect is None:
        return "Exchange not available."
    if amount <= 0:
        return "Exchange amount must be positive."
    if exchange_resource_amount(game, source) < amount:
        return f"Not enough {source} to exchange."
    if target.lower() == "food":
        if game.active_player.food + amount * effect.rate > game.settings.max_food:
            return "Exchange would exceed food capacity."
    return None


def apply_exchange(game: GameState, source: str, target: str, amount: int) -> GameState:
    error = exchange_error(game, source, target, amount)
    if error is not None:
        raise RuleError(error)
    effect = find_exchange(game, source, target)
    game = game.copy()
    _adjust_resource(game, source, -amount)
    _adjust_resource(game, target, amount * effect.rate)
    cities, monuments = get_build_options(game)
    if game.turn.production.workers > 0 and (cities or monuments):
        game.phase = GamePhase.BUILD
    else:
        game.phase = next_post_development_phase(game)
    return game


def discard_goods(game: GameState, keep: Dict[str, int]) -> GameState:
    if game.phase != GamePhase.DISCARD_GOODS:
        raise RuleError("Discard is not allowed in current phase.")
    error = validate_keep_goods(game.active_player, keep, game.settings)
    if error is not None:
        raise RuleError(error)
    game = game.copy()
    player = game.active_player
    for name in player.goods:
        player.goods[name] = int(keep.get(name, 0))
    game.phase = GamePhase.END_TURN
    return game


# ---------------------------------------------------------------------------
# Phase flow
# ---------------------------------------------------------------------------


def exchange_coin_gain(game: GameState) -> int:
    return sum(
        exchange_resource_amount(game, effect.source) * effect.rate
        for effect in get_exchange_options(game)
        if effect.target.lower() == "coins"
    )


def next_post_development_phase(game: GameState) -> GamePhase:
    player = game.active_player
    gain = exchange_coin_gain(game)
    power = game.turn.production.coins + total_goods_value(player, game.settings) + gain
    if any(d.cost <= power for d in available_developments(game)) or gain > 0:
        return GamePhase.DEVELOPMENT
    return post_development_completion_phase(game)


def post_development_completion_phase(game: GameState) -> GamePhase:
    if goods_overflow(game.active_player, game.settings) > 0:
        return GamePhase.DISCARD_GOODS
    return GamePhase.END_TURN


def has_roll_phase_choices(game: GameState) -> bool:
    if can_roll(game):
        return True
    dice = game.turn.dice
    if any(die.lock == LockDecision.UNLOCKED for die in dice):
        return True
    if single_die_rerolls_remaining(game) > 0 and any(die.lock != LockDecision.SKULL for die in dice):
        return True
    return count_pending_choices(dice) > 0


def auto_advance_forced_phases(game: GameState) -> GameState:
    """Move through phases that offer no decision for the active player."""
    game = game.copy()
    for _ in range(MAX_AUTO_ADVANCE_STEPS):
        if is_game_over(game):
            break
        phase = game.phase
        if phase == GamePhase.ROLL_DICE:
            if has_roll_phase_choices(game):
                break
            game.phase = GamePhase.DECIDE_DICE
        elif phase in (GamePhase.DECIDE_DICE, GamePhase.RESOLVE_PRODUCTION):
            pending = count_pending_choices(game.turn.dice)
            if pending > 0:
                game.turn.pending_choices = pending
                break
            game = resolve_production_phase(game)
        elif phase == GamePhase.BUILD:
            cities, monuments = get_build_options(game)
            if game.turn.production.workers > 0 and (cities or monuments):
                break
            game.phase = next_post_development_phase(game)
        elif phase == GamePhase.DEVELOPMENT:
            if game.turn.development_purchased:
                game.phase = post_development_completion_phase(game)
                continue
            following = next_post_development_phase(game)
            if following == GamePhase.DEVELOPMENT:
                break
            game.phase = following
        elif phase == GamePhase.DISCARD_GOODS:
            if goods_overflow(game.active_player, game.settings) > 0:
                break
            game.phase = GamePhase.END_TURN
        else:
            break
    return game


def end_turn(game: GameState) -> GameState:
    """Score the board, pass play to the next seat and roll its first dice."""
    game = game.copy()
    _update_scores(game)
    next_index = (game.active_player_index + 1) % len(game.players)
    if next_index == 0:
        game.round += 1
    game.active_player_index = next_index
    _start_turn(game)
    return game


def is_game_over(game: GameState) -> bool:
    end = game.settings.end_condition
    if end.num_rounds and game.round > end.num_rounds:
        return True
    for player in game.players:
        if end.num_developments and len(player.developments) >= end.num_developments:
            return True
        if end.num_monuments and player.completed_monuments() >= end.num_monuments:
            return True
    return False


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_breakdown(game: GameState, player: PlayerState) -> Dict[str, int]:
    settings = game.settings
    monuments = 0
    for monument in settings.monuments:
        progress = player.monuments.get(monument.id)
        if progress is None or not progress.completed:
            continue
        first = is_first_to_complete_monument(game, player, monument.id)
        monuments += monument.first_points if first else monument.later_points
    developments = sum(
        settings.development(dev_id).points
        for dev_id in player.developments
        if settings.development(dev_id) is not None
    )
    bonuses = 0
    for effect in owned_effects(player, settings, "bonusPointsPer"):
        if effect.entity == "monument":
            bonuses += player.completed_monuments() * effect.points
        elif effect.entity == "city":
            bonuses += player.completed_cities() * effect.points
    penalties = player.disaster_penalties
    return {
        "monuments": monuments,
        "developments": developments,
        "bonuses": bonuses,
        "penalties": penalties,
        "total": monuments + developments + bonuses - penalties,
    }


def _update_scores(game: GameState) -> None:
    for player in game.players:
        player.score = score_breakdown(game, player)["total"]


def update_all_scores(game: GameState) -> GameState:
    game = game.copy()
    _update_scores(game)
    return game


def determine_winners(game: GameState) -> List[PlayerState]:
    scored = update_all_scores(game)
    best = max(player.score for player in scored.players)
    return [player for player in scored.players if player.score == best]


def headless_score_summary(game: GameState) -> List[Dict[str, object]]:
    settings = game.settings
    summary = []
    for player in game.players:
        breakdown = score_breakdown(game, player)
        goods = [
            {
                "name": goods_type.name,
                "quantity": player.goods.get(goods_type.name, 0),
                "value": goods_value(goods_type, player.goods.get(goods_type.name, 0)),
            }
            for goods_type in settings.goods_types
        ]
        summary.append(
            {
                "playerId": player.id,
                "playerName": game.player_name(player.id),
                "total": breakdown["total"],
                "breakdown": breakdown,
                "citiesBuilt": player.completed_cities(),
                "citiesTotal": len(player.cities),
                "resources": {
                    "food": player.food,
                    "goods": goods,
                    "totalGoodsValue": total_goods_value(player, settings),
                },
                "developments": list(player.developments),
                "monuments": [
                    monument_id
                    for monument_id, progress in player.monuments.items()
                    if progress.completed
                ],
            }
        )
    return summary
