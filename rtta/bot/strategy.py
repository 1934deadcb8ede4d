from __future__ import annotations

from typing import Optional, Sequence

from rtta.core import GameState

from .actions import BotAction
from .config import (
    HeuristicConfig,
    LookaheadConfig,
    StrategyConfig,
    default_heuristic_config,
    default_lookahead_config,
)
from .heuristic import choose_heuristic_action
from .lookahead import choose_lookahead_action
from .metrics import BotMetrics


class BotStrategy:
    """Strategy interface choosing one action out of the enumerated legal set."""

    def __init__(self, strategy_id: str, name: str) -> None:
        self.id = strategy_id
        self.name = name

    def choose_action(
        self,
        game: GameState,
        actions: Sequence[BotAction],
        metrics: Optional[BotMetrics] = None,
    ) -> Optional[BotAction]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class HeuristicBot(BotStrategy):
    def __init__(self, config: HeuristicConfig, strategy_id: str, name: str) -> None:
        super().__init__(strategy_id, name)
        self.config = config

    def choose_action(
        self,
        game: GameState,
        actions: Sequence[BotAction],
        metrics: Optional[BotMetrics] = None,
    ) -> Optional[BotAction]:
        return choose_heuristic_action(game, actions, self.config)


class LookaheadBot(BotStrategy):
    """Search-based bot; a plain heuristic config makes it play heuristically."""

    def __init__(self, config: StrategyConfig, strategy_id: str, name: str) -> None:
        super().__init__(strategy_id, name)
        self.config = config

    def choose_action(
        self,
        game: GameState,
        actions: Sequence[BotAction],
        metrics: Optional[BotMetrics] = None,
    ) -> Optional[BotAction]:
        if not isinstance(self.config, LookaheadConfig):
            if metrics is not None:
                metrics.record("lookahead.heuristic_fallbacks", strategy_id=self.id)
            return choose_heuristic_action(game, actions, self.config)
        return choose_lookahead_action(game, actions, self.config, metrics=metrics, strategy_id=self.id)


def create_heuristic_bot(
    config: Optional[HeuristicConfig] = None,
    *,
    strategy_id: str = "heuristic-standard",
    name: str = "Heuristic Standard",
) -> HeuristicBot:
    return HeuristicBot(config or default_heuristic_config(), strategy_id, name)


def create_lookahead_bot(
    config: Optional[StrategyConfig] = None,
    *,
    strategy_id: str = "lookahead-standard",
    name: str = "Lookahead Standard",
) -> LookaheadBot:
    return LookaheadBot(config or default_lookahead_config(), strategy_id, name)


def create_bot_strategy(bot_type: str, config: StrategyConfig, *, strategy_id: str, name: str) -> BotStrategy:
    if bot_type == "lookahead":
        return create_lookahead_bot(config, strategy_id=strategy_id, name=name)
    if bot_type == "heuristic":
        if not isinstance(config, HeuristicConfig):
            raise ValueError("Heuristic bots need a heuristic config")
        return create_heuristic_bot(config, strategy_id=strategy_id, name=name)
    raise ValueError(f"Unknown bot type {bot_type!r}")


HEURISTIC_STANDARD_BOT = create_heuristic_bot()
LOOKAHEAD_STANDARD_BOT = create_lookahead_bot()
