from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from rtta.bot import HEURISTIC_STANDARD_BOT, BotMetrics, BotStrategy, run_bot_turn
from rtta.bot.runner import StepTrace
from rtta.core import GameState, PlayerConfig
from rtta.core.rules import create_game, determine_winners, end_turn, is_game_over, update_all_scores

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 500
DEFAULT_MAX_STEPS_PER_TURN = 300
TURN_CAP_REASON = "Reached turn cap before game over."


@dataclass
class HeadlessMatchResult:
    completed: bool
    turns_played: int
    final_game: GameState
    winners: List[str]
    stall_reason: Optional[str]
    action_log: List[str] = field(default_factory=list)
    scores: Dict[str, int] = field(default_factory=dict)
    stall_reasons: List[str] = field(default_factory=list)


def validate_bot_players(players: Sequence[PlayerConfig]) -> None:
    if len(players) < 2:
        raise ValueError("Headless matches need at least two players.")
    if any(player.controller != "bot" for player in players):
        raise ValueError("Headless matches require bot-only players.")


def format_trace(name: str, trace: StepTrace) -> str:
    if trace.error is not None:
        return f"[{name}] {trace.phase_before.value}: ERROR {trace.error}"
    return f"[{name}] {trace.phase_before.value} -> {trace.phase_after.value}: {trace.applied_action.key()}"


def run_headless_bot_match(
    players: Sequence[PlayerConfig],
    *,
    max_turns: int = DEFAULT_MAX_TURNS,
    max_steps_per_turn: int = DEFAULT_MAX_STEPS_PER_TURN,
    strategy_by_player_id: Optional[Mapping[str, BotStrategy]] = None,
    seed: int = 0,
    metrics: Optional[BotMetrics] = None,
    record_log: bool = True,
) -> HeadlessMatchResult:
    """Play a full game between bots without any user interaction.

    A turn that exhausts ``max_steps_per_turn`` is a stall: its reason is
    recorded, the seat is passed on with a forced end of turn and the match
    is reported as incomplete.
    """
    validate_bot_players(players)
    strategies = dict(strategy_by_player_id or {})
    metrics = metrics if metrics is not None else BotMetrics()
    metrics.record("headless.matches")

    game = create_game(players, seed=seed)
    turns_played = 0
    action_log: List[str] = []
    stall_reasons: List[str] = []

    while not is_game_over(game) and turns_played < max_turns:
        player_id = game.active_player.id
        name = game.player_name(player_id)
        strategy = strategies.get(player_id, HEURISTIC_STANDARD_BOT)
        turn = run_bot_turn(
            game,
            strategy,
            max_steps=max_steps_per_turn,
            metrics=metrics,
            actor=player_id,
        )
        if record_log:
            action_log.extend(format_trace(name, trace) for trace in turn.traces)
        game = turn.game
        turns_played += 1
        metrics.record("headless.turns")
        if turn.completed_turn:
            continue

        errors = [trace.error for trace in turn.traces if trace.error]
        reason = errors[-1] if errors else f"Bot turn did not complete for player {player_id}."
        stall_reasons.append(reason)
        metrics.record("headless.stalls", actor=player_id)
        logger.warning("Stall in round %d for %s: %s", game.round, player_id, reason)
        game = end_turn(game)

    completed = is_game_over(game) and not stall_reasons
    stall_reason = None
    if not completed:
        stall_reason = stall_reasons[0] if stall_reasons else TURN_CAP_REASON

    final_game = update_all_scores(game)
    winners = [final_game.player_name(player.id) for player in determine_winners(final_game)]
    return HeadlessMatchResult(
        completed=completed,
        turns_played=turns_played,
        final_game=final_game,
        winners=winners,
        stall_reason=stall_reason,
        action_log=action_log,
        scores={player.id: player.score for player in final_game.players},
        stall_reasons=stall_reasons,
    )
