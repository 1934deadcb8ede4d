from __future__ import annotations

import math
from typing import List, Tuple

from rtta.core import GamePhase, GameState, LockDecision
from rtta.core.rules import (
    available_developments,
    can_roll,
    count_pending_choices,
    exchange_resource_amount,
    get_build_options,
    get_exchange_options,
    goods_limit,
    goods_overflow,
    is_game_over,
    purchase_error,
    single_die_rerolls_remaining,
    total_goods_value,
    validate_keep_goods,
)

from .actions import (
    ApplyExchange,
    BotAction,
    BuildCity,
    BuildMonument,
    BuyDevelopment,
    DiscardGoods,
    EndTurn,
    KeepDie,
    RerollSingleDie,
    ResolveProduction,
    RollDice,
    SelectProduction,
    SkipDevelopment,
)


def _pending_production_actions(game: GameState) -> List[BotAction]:
    actions: List[BotAction] = []
    for die_index, die in enumerate(game.turn.dice):
        face = game.settings.dice_faces[die.face_index]
        if face.has_choice and die.choice_pending:
            for option in range(len(face.production)):
                actions.append(SelectProduction(die_index, option))
    return actions


def _roll_phase_actions(game: GameState) -> List[BotAction]:
    actions: List[BotAction] = []
    dice = game.turn.dice
    if can_roll(game):
        actions.append(RollDice())
    if single_die_rerolls_remaining(game) > 0:
        for die_index, die in enumerate(dice):
            if die.lock != LockDecision.SKULL:
                actions.append(RerollSingleDie(die_index))
    for die_index, die in enumerate(dice):
        if die.lock == LockDecision.UNLOCKED:
            actions.append(KeepDie(die_index))
        face = game.settings.dice_faces[die.face_index]
        if face.has_choice and die.choice_pending:
            for option in range(len(face.production)):
                actions.append(SelectProduction(die_index, option))
    return actions


def _build_actions(game: GameState) -> List[BotAction]:
    if game.turn.production.workers <= 0:
        return []
    cities, monuments = get_build_options(game)
    actions: List[BotAction] = [BuildCity(index) for index in cities]
    actions.extend(BuildMonument(monument_id) for monument_id in monuments)
    return actions


def _purchase_combinations(game: GameState, development_id: str) -> List[Tuple[str, ...]]:
    player = game.active_player
    owned = [
        goods_type.name
        for goods_type in game.settings.goods_types
        if player.goods.get(goods_type.name, 0) > 0
    ]
    combos = []
    for mask in range(1, 1 << len(owned)):
        names = tuple(owned[i] for i in range(len(owned)) if mask & (1 << i))
        if purchase_error(game, development_id, names) is None:
            combos.append(names)
    combos.sort(key=lambda names: (len(names), ",".join(names)))
    return combos


def _exchange_actions(game: GameState) -> List[BotAction]:
    actions: List[BotAction] = []
    player = game.active_player
    for effect in get_exchange_options(game):
        available = exchange_resource_amount(game, effect.source)
        cap = available
        if effect.target.lower() == "food" and effect.rate > 0:
            cap = min(available, (game.settings.max_food - player.food) // effect.rate)
        for amount in range(1, cap + 1):
            actions.append(ApplyExchange(effect.source, effect.target, amount))
    return actions


def _development_actions(game: GameState) -> List[BotAction]:
    actions: List[BotAction] = []
    if not game.turn.development_purchased:
        coins = game.turn.production.coins
        power = coins + total_goods_value(game.active_player, game.settings)
        for development in available_developments(game):
            if coins >= development.cost:
                actions.append(BuyDevelopment(development.id, ()))
            elif power >= development.cost:
                for names in _purchase_combinations(game, development.id):
                    actions.append(BuyDevelopment(development.id, names))
    actions.extend(_exchange_actions(game))
    actions.append(SkipDevelopment())
    return actions


def _discard_actions(game: GameState) -> List[BotAction]:
    player = game.active_player
    settings = game.settings
    if goods_overflow(player, settings) <= 0:
        return []
    limit = goods_limit(player, settings)
    types = settings.goods_types
    actions: List[BotAction] = []

    def walk(index: int, kept: List[Tuple[str, int]], total: int) -> None:
        if total > limit:
            return
        if index == len(types):
            keep = dict(kept)
            if validate_keep_goods(player, keep, settings) is None:
                actions.append(DiscardGoods(tuple(kept)))
            return
        goods_type = types[index]
        quantity = player.goods.get(goods_type.name, 0)
        upper = quantity if limit == math.inf else min(quantity, goods_type.max_quantity)
        for amount in range(upper + 1):
            walk(index + 1, kept + [(goods_type.name, amount)], total + amount)

    walk(0, [], 0)
    return actions


def get_legal_bot_actions(game: GameState) -> List[BotAction]:
    """Enumerate every action the engine would accept in the current phase.

    The list is empty only when the game is over or when the phase offers no
    decision at all (the runner auto-advances such phases before asking).
    """
    if is_game_over(game):
        return []
    phase = game.phase
    if phase == GamePhase.ROLL_DICE:
        return _roll_phase_actions(game)
    if phase in (GamePhase.DECIDE_DICE, GamePhase.RESOLVE_PRODUCTION):
        actions = _pending_production_actions(game)
        if count_pending_choices(game.turn.dice) == 0:
            actions.append(ResolveProduction())
        return actions
    if phase == GamePhase.BUILD:
        return _build_actions(game)
    if phase == GamePhase.DEVELOPMENT:
        return _development_actions(game)
    if phase == GamePhase.DISCARD_GOODS:
        return _discard_actions(game)
    if phase == GamePhase.END_TURN:
        return [EndTurn()]
    return []
