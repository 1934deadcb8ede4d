from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from rtta.core import GamePhase, GameState
from rtta.core.rules import auto_advance_forced_phases, end_turn, is_game_over

from .actions import BotAction
from .adapter import apply_bot_action
from .candidates import get_legal_bot_actions
from .metrics import BotMetrics
from .strategy import BotStrategy

logger = logging.getLogger(__name__)

NO_ACTIONS_ERROR = "No legal bot actions available."
DEFAULT_MAX_TURN_STEPS = 200


class IllegalBotActionError(AssertionError):
    """A strategy answered with an action outside the enumerated legal set."""


@dataclass
class StepTrace:
    phase_before: GamePhase
    phase_after: GamePhase
    requested_action: Optional[BotAction] = None
    applied_action: Optional[BotAction] = None
    error: Optional[str] = None


@dataclass
class StepResult:
    applied: bool
    game: GameState
    trace: StepTrace


@dataclass
class TurnResult:
    completed_turn: bool
    game: GameState
    steps: int
    traces: List[StepTrace] = field(default_factory=list)
    ended_without_actions: bool = False


def run_bot_step(
    game: GameState,
    strategy: BotStrategy,
    *,
    metrics: Optional[BotMetrics] = None,
    actor: Optional[str] = None,
) -> StepResult:
    """Advance forced phases, then ask ``strategy`` for one action and apply it."""
    metrics = metrics if metrics is not None else BotMetrics()
    metrics.record("run_bot_step_calls", strategy_id=strategy.id, actor=actor)
    game = auto_advance_forced_phases(game)
    phase_before = game.phase
    actions = get_legal_bot_actions(game)
    if not actions:
        metrics.record("empty_action_sets", strategy_id=strategy.id, actor=actor)
        return StepResult(False, game, StepTrace(phase_before, phase_before, error=NO_ACTIONS_ERROR))

    started = time.perf_counter()
    action = strategy.choose_action(game, actions, metrics)
    metrics.record(
        "choose_action_ms_total",
        (time.perf_counter() - started) * 1000.0,
        strategy_id=strategy.id,
        actor=actor,
    )
    if action is None or action not in actions:
        raise IllegalBotActionError(
            f"Strategy {strategy.id} chose {action.key() if action else None} "
            f"which is not legal in phase {phase_before.value}"
        )

    applied, next_game, error = apply_bot_action(game, action)
    if not applied:
        metrics.record("apply_errors", strategy_id=strategy.id, actor=actor)
        logger.warning("Engine rejected enumerated action %s: %s", action.key(), error)
        trace = StepTrace(phase_before, game.phase, action, None, error)
        return StepResult(False, game, trace)

    metrics.record("actions_applied", strategy_id=strategy.id, actor=actor)
    return StepResult(True, next_game, StepTrace(phase_before, next_game.phase, action, action))


def _turn_marker(game: GameState):
    return game.active_player_index, game.active_player.id, game.round


def run_bot_turn(
    game: GameState,
    strategy: BotStrategy,
    *,
    max_steps: int = DEFAULT_MAX_TURN_STEPS,
    metrics: Optional[BotMetrics] = None,
    actor: Optional[str] = None,
) -> TurnResult:
    """Play the active seat's turn until it passes play or ``max_steps`` runs out.

    An empty action set is a legitimate end of turn: the seat is passed on
    without error. A turn that is still unfinished after ``max_steps`` steps is
    returned with ``completed_turn=False`` and the caller decides how to
    recover.
    """
    metrics = metrics if metrics is not None else BotMetrics()
    metrics.record("run_bot_turn_calls", strategy_id=strategy.id, actor=actor)
    start = _turn_marker(game)
    traces: List[StepTrace] = []
    steps = 0
    ended_without_actions = False

    while steps < max_steps and not is_game_over(game) and _turn_marker(game) == start:
        result = run_bot_step(game, strategy, metrics=metrics, actor=actor)
        steps += 1
        traces.append(result.trace)
        game = result.game
        if result.applied:
            continue
        if result.trace.requested_action is None and not is_game_over(game):
            game = end_turn(game)
            ended_without_actions = True
        break

    completed = is_game_over(game) or _turn_marker(game) != start
    if completed:
        metrics.record("turns_completed", strategy_id=strategy.id, actor=actor)
    else:
        metrics.record("turns_stalled", strategy_id=strategy.id, actor=actor)
    return TurnResult(completed, game, steps, traces, ended_without_actions)
