"""Roll Through the Ages bots: rule engine, strategies, tournaments and beam search."""

from . import bot, core, evaluation, orchestration
from .bot import (
    BotAction,
    BotMetrics,
    BotStrategy,
    HeuristicConfig,
    LookaheadConfig,
    create_bot_strategy,
    get_legal_bot_actions,
    merge_config,
    run_bot_turn,
)
from .core import GameState, PlayerConfig, create_game
from .evaluation import (
    EvaluationSummary,
    evaluate_candidate,
    run_headless_bot_evaluation,
    run_headless_bot_match,
)
from .orchestration import (
    BeamSearchOptions,
    TournamentOptions,
    run_beam_search,
    run_tournament,
)

__all__ = [
    "bot",
    "core",
    "evaluation",
    "orchestration",
    "BotAction",
    "BotMetrics",
    "BotStrategy",
    "HeuristicConfig",
    "LookaheadConfig",
    "create_bot_strategy",
    "get_legal_bot_actions",
    "merge_config",
    "run_bot_turn",
    "GameState",
    "PlayerConfig",
    "create_game",
    "EvaluationSummary",
    "evaluate_candidate",
    "run_headless_bot_evaluation",
    "run_headless_bot_match",
    "BeamSearchOptions",
    "TournamentOptions",
    "run_beam_search",
    "run_tournament",
]
