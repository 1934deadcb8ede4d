"""Bot decision engine: legal actions, strategies and the turn runner."""

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
    action_key,
)
from .adapter import apply_bot_action
from .candidates import get_legal_bot_actions
from .config import (
    BOT_TYPES,
    BuildWeights,
    ConfigError,
    DevelopmentWeights,
    FoodPolicyWeights,
    HeuristicConfig,
    LookaheadConfig,
    ProductionWeights,
    StrategyConfig,
    UtilityWeights,
    bot_type_of,
    config_to_dict,
    default_heuristic_config,
    default_lookahead_config,
    merge_config,
)
from .heuristic import choose_heuristic_action
from .lookahead import choose_lookahead_action, static_utility
from .metrics import BotMetrics
from .runner import IllegalBotActionError, StepTrace, TurnResult, run_bot_step, run_bot_turn
from .strategy import (
    HEURISTIC_STANDARD_BOT,
    LOOKAHEAD_STANDARD_BOT,
    BotStrategy,
    HeuristicBot,
    LookaheadBot,
    create_bot_strategy,
    create_heuristic_bot,
    create_lookahead_bot,
)

__all__ = [
    "ApplyExchange",
    "BotAction",
    "BuildCity",
    "BuildMonument",
    "BuyDevelopment",
    "DiscardGoods",
    "EndTurn",
    "KeepDie",
    "RerollSingleDie",
    "ResolveProduction",
    "RollDice",
    "SelectProduction",
    "SkipDevelopment",
    "action_key",
    "apply_bot_action",
    "get_legal_bot_actions",
    "BOT_TYPES",
    "BuildWeights",
    "ConfigError",
    "DevelopmentWeights",
    "FoodPolicyWeights",
    "HeuristicConfig",
    "LookaheadConfig",
    "ProductionWeights",
    "StrategyConfig",
    "UtilityWeights",
    "bot_type_of",
    "config_to_dict",
    "default_heuristic_config",
    "default_lookahead_config",
    "merge_config",
    "choose_heuristic_action",
    "choose_lookahead_action",
    "static_utility",
    "BotMetrics",
    "IllegalBotActionError",
    "StepTrace",
    "TurnResult",
    "run_bot_step",
    "run_bot_turn",
    "HEURISTIC_STANDARD_BOT",
    "LOOKAHEAD_STANDARD_BOT",
    "BotStrategy",
    "HeuristicBot",
    "LookaheadBot",
    "create_bot_strategy",
    "create_heuristic_bot",
    "create_lookahead_bot",
]
