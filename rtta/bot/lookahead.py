"""Bounded forward search over bot actions.

The search alternates max nodes (the root player's turn) and min nodes
(opponent turns). Dice rolls are chance nodes: small rolls enumerate every
face combination, larger ones use a per-die expectation around the current
dice. A single evaluation budget is shared by the whole decision; once it is
spent every remaining branch is scored with the static utility.
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from rtta.core import GamePhase, GameState, PlayerState
from rtta.core.rules import (
    apply_roll_outcome,
    auto_advance_forced_phases,
    is_game_over,
    remaining_city_workers,
    score_breakdown,
    total_goods_value,
    unlocked_dice,
)

from .actions import BotAction, RerollSingleDie, RollDice
from .adapter import apply_bot_action
from .candidates import get_legal_bot_actions
from .config import LookaheadConfig
from .heuristic import (
    choose_heuristic_action,
    fill_best_choices,
    projected_shortage,
    turn_resource_score,
)
from .metrics import BotMetrics

logger = logging.getLogger(__name__)


class EvaluationBudget:
    def __init__(self, total: int) -> None:
        self.remaining = max(0, int(total))

    def take(self) -> bool:
        if self.remaining <= 0:
            return False
        self.remaining -= 1
        return True

    @property
    def exhausted(self) -> bool:
        return self.remaining <= 0


@dataclass
class ScoredAction:
    action: BotAction
    key: str
    value: float


def _city_progress(player: PlayerState, game: GameState) -> float:
    progress = 0.0
    for index, city in enumerate(player.cities):
        if city.completed:
            continue
        cost = game.settings.city_cost(index)
        remaining = remaining_city_workers(player, index, game.settings)
        if cost > 0:
            progress += (cost - remaining) / cost
    return progress


def _monument_progress(player: PlayerState, game: GameState) -> float:
    progress = 0.0
    for monument in game.settings.monuments:
        state = player.monuments.get(monument.id)
        if state is None or state.completed:
            continue
        progress += state.workers_committed / monument.worker_cost
    return progress


def position_value(game: GameState, player: PlayerState, config: LookaheadConfig) -> float:
    weights = config.utility_weights
    heuristic = config.heuristic_fallback_config
    active = player.id == game.active_player.id
    cities = player.completed_cities()
    if active and game.phase in (GamePhase.ROLL_DICE, GamePhase.DECIDE_DICE, GamePhase.RESOLVE_PRODUCTION):
        shortage = projected_shortage(game, fill_best_choices(game, game.turn.dice, heuristic))
    else:
        shortage = max(0, cities - player.food)
    value = weights.score_total * score_breakdown(game, player)["total"]
    value += weights.completed_cities * cities
    value += weights.city_progress * _city_progress(player, game)
    value += weights.monument_progress * _monument_progress(player, game)
    value += weights.goods_value * total_goods_value(player, game.settings)
    value += weights.food * player.food
    if active:
        value += weights.turn_resource_position * turn_resource_score(game, heuristic)
    value -= weights.food_risk_penalty * shortage * heuristic.food_policy_weights.starvation_penalty_per_unit
    return value


def static_utility(game: GameState, root_player_id: str, config: LookaheadConfig) -> float:
    """Root player's position minus the mean opponent position."""
    root_value = 0.0
    opponents: List[float] = []
    for player in game.players:
        value = position_value(game, player, config)
        if player.id == root_player_id:
            root_value = value
        else:
            opponents.append(value)
    if not opponents:
        return root_value
    return root_value - sum(opponents) / len(opponents)


class LookaheadSearch:
    def __init__(
        self,
        config: LookaheadConfig,
        root_player_id: str,
        *,
        metrics: Optional[BotMetrics] = None,
        strategy_id: Optional[str] = None,
    ) -> None:
        self.config = config
        self.root_player_id = root_player_id
        self.metrics = metrics
        self.strategy_id = strategy_id
        self.evaluations = 0

    def _evaluate(self, game: GameState) -> float:
        self.evaluations += 1
        return static_utility(game, self.root_player_id, self.config)

    def _leaf(self, game: GameState, budget: EvaluationBudget) -> float:
        budget.take()
        return self._evaluate(game)

    def _chance_outcomes(self, game: GameState, action: BotAction) -> Tuple[List[int], bool]:
        if isinstance(action, RollDice):
            return unlocked_dice(game), False
        return [action.die_index], True

    def _roll_value(self, game: GameState, action: BotAction, depth: int, budget: EvaluationBudget) -> float:
        indices, single = self._chance_outcomes(game, action)
        face_count = len(game.settings.dice_faces)
        outcomes = face_count ** len(indices)
        enumerate_all = (
            len(indices) <= self.config.max_enumerated_roll_dice
            and outcomes <= self.config.max_chance_outcomes_per_action
        )

        def outcome_value(faces: Sequence[int]) -> float:
            after = apply_roll_outcome(game, indices, faces, single_die=single)
            return self._search(auto_advance_forced_phases(after), depth, budget)

        if self.metrics is not None:
            self.metrics.record("lookahead.chance_outcomes", outcomes if enumerate_all else 1 + face_count * len(indices))
        if budget.exhausted:
            return self._evaluate(game)
        if enumerate_all:
            total = 0.0
            seen = 0
            for faces in itertools.product(range(face_count), repeat=len(indices)):
                total += outcome_value(faces)
                seen += 1
                if budget.exhausted:
                    break
            return total / seen

        current = [game.turn.dice[index].face_index for index in indices]
        base = outcome_value(current)
        value = base
        for position in range(len(indices)):
            deltas = 0.0
            for face in range(face_count):
                faces = list(current)
                faces[position] = face
                deltas += outcome_value(faces) - base
            value += deltas / face_count
        return value

    def action_value(self, game: GameState, action: BotAction, depth: int, budget: EvaluationBudget) -> float:
        """Value of playing ``action`` with ``depth`` plies left after it."""
        if isinstance(action, (RollDice, RerollSingleDie)):
            return self._roll_value(game, action, depth, budget)
        applied, after, error = apply_bot_action(game, action)
        if not applied:
            raise ValueError(f"Lookahead produced an inapplicable action {action.key()}: {error}")
        return self._search(auto_advance_forced_phases(after), depth, budget)

    def _prescore(self, game: GameState, actions: Sequence[BotAction], budget: EvaluationBudget) -> List[ScoredAction]:
        return [
            ScoredAction(action, action.key(), self.action_value(game, action, 0, budget))
            for action in actions
        ]

    def _ordered(self, scored: List[ScoredAction], maximize: bool) -> List[ScoredAction]:
        if maximize:
            return sorted(scored, key=lambda item: (-item.value, item.key))
        return sorted(scored, key=lambda item: (item.value, item.key))

    def _candidates(self, game: GameState, actions: Sequence[BotAction], scored: List[ScoredAction]) -> List[BotAction]:
        maximize = game.active_player.id == self.root_player_id
        ordered = self._ordered(scored, maximize)
        limit = max(1, self.config.max_actions_per_node)
        chosen = [item.action for item in ordered[:limit]]
        policy = self.config.heuristic_fallback_config
        guided = choose_heuristic_action(game, actions, policy)
        if guided is not None and guided not in chosen:
            chosen[-1] = guided
        return chosen

    def _search(self, game: GameState, depth: int, budget: EvaluationBudget) -> float:
        if depth <= 0 or budget.exhausted or is_game_over(game):
            return self._leaf(game, budget)
        actions = get_legal_bot_actions(game)
        if not actions:
            return self._leaf(game, budget)
        maximize = game.active_player.id == self.root_player_id
        scored = self._prescore(game, actions, budget)
        if depth == 1:
            values = [item.value for item in scored]
        else:
            values = []
            for action in self._candidates(game, actions, scored):
                if budget.exhausted:
                    break
                values.append(self.action_value(game, action, depth - 1, budget))
        if not values:
            return self._leaf(game, budget)
        return max(values) if maximize else min(values)

    def choose(self, game: GameState, actions: Sequence[BotAction]) -> Optional[BotAction]:
        if not actions:
            return None
        budget = EvaluationBudget(self.config.max_evaluations)
        if budget.exhausted:
            return choose_heuristic_action(game, actions, self.config.heuristic_fallback_config)
        depth = max(1, self.config.depth)
        scored: List[ScoredAction] = []
        for position, action in enumerate(actions):
            share = max(1, budget.remaining // (len(actions) - position))
            branch = EvaluationBudget(share)
            value = self.action_value(game, action, depth - 1, branch)
            budget.remaining = max(0, budget.remaining - (share - branch.remaining))
            scored.append(ScoredAction(action, action.key(), value))
        if self.metrics is not None and budget.exhausted:
            self.metrics.record("lookahead.budget_exhausted", strategy_id=self.strategy_id)
        return self._ordered(scored, maximize=True)[0].action


def choose_lookahead_action(
    game: GameState,
    actions: Sequence[BotAction],
    config: LookaheadConfig,
    *,
    metrics: Optional[BotMetrics] = None,
    strategy_id: Optional[str] = None,
) -> Optional[BotAction]:
    started = time.perf_counter()
    search = LookaheadSearch(config, game.active_player.id, metrics=metrics, strategy_id=strategy_id)
    action = search.choose(game, actions)
    if metrics is not None:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        metrics.record("lookahead.choose_action_calls", strategy_id=strategy_id)
        metrics.record("lookahead.choose_action_ms_total", elapsed_ms, strategy_id=strategy_id)
        metrics.record("lookahead.evaluations", search.evaluations, strategy_id=strategy_id)
    logger.debug(
        "lookahead chose %s after %d evaluations",
        action.key() if action is not None else None,
        search.evaluations,
    )
    return action
