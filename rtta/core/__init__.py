"""Core game rules for Roll Through the Ages."""

from .definitions import (
    DEVELOPMENTS,
    DICE_FACES,
    DISASTERS,
    GOODS_TYPES,
    MONUMENTS,
    DevelopmentDefinition,
    DiceFace,
    GameSettings,
    GoodsType,
    MonumentDefinition,
    PlayerConfig,
    ResourceProduction,
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
from .rules import (
    RuleError,
    apply_exchange,
    auto_advance_forced_phases,
    build_city,
    build_monument,
    can_roll,
    create_game,
    determine_winners,
    discard_goods,
    end_turn,
    get_build_options,
    goods_overflow,
    headless_score_summary,
    is_game_over,
    keep_die,
    perform_roll,
    perform_single_die_reroll,
    purchase_development,
    resolve_production_phase,
    score_breakdown,
    select_production,
    skip_development,
    total_goods_value,
    update_all_scores,
)

__all__ = [
    "DEVELOPMENTS",
    "DICE_FACES",
    "DISASTERS",
    "GOODS_TYPES",
    "MONUMENTS",
    "DevelopmentDefinition",
    "DiceFace",
    "GameSettings",
    "GoodsType",
    "MonumentDefinition",
    "PlayerConfig",
    "ResourceProduction",
    "goods_value",
    "Construction",
    "DieState",
    "GamePhase",
    "GameState",
    "LockDecision",
    "PlayerState",
    "TurnProduction",
    "TurnState",
    "RuleError",
    "apply_exchange",
    "auto_advance_forced_phases",
    "build_city",
    "build_monument",
    "can_roll",
    "create_game",
    "determine_winners",
    "discard_goods",
    "end_turn",
    "get_build_options",
    "goods_overflow",
    "headless_score_summary",
    "is_game_over",
    "keep_die",
    "perform_roll",
    "perform_single_die_reroll",
    "purchase_development",
    "resolve_production_phase",
    "score_breakdown",
    "select_production",
    "skip_development",
    "total_goods_value",
    "update_all_scores",
]
