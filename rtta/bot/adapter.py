from __future__ import annotations

from typing import Optional, Tuple

from rtta.core import GamePhase, GameState, RuleError
from rtta.core import rules

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

ApplyResult = Tuple[bool, GameState, Optional[str]]


def _dispatch(game: GameState, action: BotAction) -> GameState:
    if isinstance(action, RollDice):
        return rules.perform_roll(game)
    if isinstance(action, RerollSingleDie):
        return rules.perform_single_die_reroll(game, action.die_index)
    if isinstance(action, KeepDie):
        return rules.keep_die(game, action.die_index)
    if isinstance(action, SelectProduction):
        return rules.select_production(game, action.die_index, action.production_index)
    if isinstance(action, ResolveProduction):
        if game.phase not in (GamePhase.DECIDE_DICE, GamePhase.RESOLVE_PRODUCTION):
            raise RuleError("Resolve production not allowed in current phase.")
        return rules.resolve_production_phase(game)
    if isinstance(action, BuildCity):
        return rules.build_city(game, action.city_index)
    if isinstance(action, BuildMonument):
        return rules.build_monument(game, action.monument_id)
    if isinstance(action, BuyDevelopment):
        return rules.purchase_development(game, action.development_id, action.goods_type_names)
    if isinstance(action, ApplyExchange):
        return rules.apply_exchange(game, action.source, action.target, action.amount)
    if isinstance(action, DiscardGoods):
        return rules.discard_goods(game, action.keep_map())
    if isinstance(action, SkipDevelopment):
        return rules.skip_development(game)
    if isinstance(action, EndTurn):
        if game.phase != GamePhase.END_TURN:
            raise RuleError("End turn not allowed in current phase.")
        return rules.end_turn(game)
    raise TypeError(f"Unsupported bot action {action!r}")


def apply_bot_action(game: GameState, action: BotAction) -> ApplyResult:
    """Replay ``action`` on the engine.

    Returns ``(applied, game, error)``. When the engine rejects the move the
    original state is returned untouched together with the rule message.
    """
    try:
        updated = _dispatch(game, action)
    except RuleError as exc:
        return False, game, str(exc)
    return True, updated, None
