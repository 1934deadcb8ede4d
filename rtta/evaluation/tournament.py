"""Head-to-head evaluation of a candidate config against a baseline config.

Seats alternate between label A (the candidate) and label B (the baseline)
and the round-robin evaluator rotates them every game, so neither side keeps
the starting seat. A game is won by the label with the strictly higher
average seat score. Incomplete games count as ties and so never enter the
decisive game denominator.
"""

from __future__ import annotations

import logging
import math
import time
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from rtta.bot import BotMetrics, StrategyConfig, bot_type_of, create_bot_strategy
from rtta.core import PlayerConfig

from .evaluator import GameRecord, run_headless_bot_evaluation
from .gating import DEFAULT_MIN_VP_DELTA, DEFAULT_MIN_WIN_RATE, has_clear_margin
from .match import DEFAULT_MAX_STEPS_PER_TURN, DEFAULT_MAX_TURNS

logger = logging.getLogger(__name__)

LABEL_A = "A"
LABEL_B = "B"
UNKNOWN_STALL_REASON = "Unknown stall reason"


@dataclass
class MatchOptions:
    players: int = 2
    max_turns: int = DEFAULT_MAX_TURNS
    max_steps_per_turn: int = DEFAULT_MAX_STEPS_PER_TURN
    min_win_rate: float = DEFAULT_MIN_WIN_RATE
    min_vp_delta: float = DEFAULT_MIN_VP_DELTA
    seed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "players": self.players,
            "maxTurns": self.max_turns,
            "maxStepsPerTurn": self.max_steps_per_turn,
            "minWinRate": self.min_win_rate,
            "minVpDelta": self.min_vp_delta,
            "seed": self.seed,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchOptions":
        return cls(
            players=int(data["players"]),
            max_turns=int(data["maxTurns"]),
            max_steps_per_turn=int(data["maxStepsPerTurn"]),
            min_win_rate=float(data["minWinRate"]),
            min_vp_delta=float(data["minVpDelta"]),
            seed=int(data.get("seed", 0)),
        )


@dataclass
class TournamentProfile:
    total_ms: float = 0.0
    candidate_load_ms: float = 0.0
    run_headless_ms: float = 0.0
    score_summary_ms: float = 0.0
    quick_round_ms: float = 0.0
    final_round_ms: float = 0.0
    games_simulated: int = 0
    evaluate_single_game_calls: int = 0

    def merge(self, other: "TournamentProfile") -> None:
        for name, value in asdict(other).items():
            setattr(self, name, getattr(self, name) + value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalMs": self.total_ms,
            "candidateLoadMs": self.candidate_load_ms,
            "runHeadlessMs": self.run_headless_ms,
            "scoreSummaryMs": self.score_summary_ms,
            "quickRoundMs": self.quick_round_ms,
            "finalRoundMs": self.final_round_ms,
            "gamesSimulated": self.games_simulated,
            "evaluateSingleGameCalls": self.evaluate_single_game_calls,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TournamentProfile":
        return cls(
            total_ms=float(data.get("totalMs", 0.0)),
            candidate_load_ms=float(data.get("candidateLoadMs", 0.0)),
            run_headless_ms=float(data.get("runHeadlessMs", 0.0)),
            score_summary_ms=float(data.get("scoreSummaryMs", 0.0)),
            quick_round_ms=float(data.get("quickRoundMs", 0.0)),
            final_round_ms=float(data.get("finalRoundMs", 0.0)),
            games_simulated=int(data.get("gamesSimulated", 0)),
            evaluate_single_game_calls=int(data.get("evaluateSingleGameCalls", 0)),
        )


@dataclass
class LabeledGame:
    """One finished game reduced to what the summary needs."""

    avg_score_a: float
    avg_score_b: float
    completed: bool
    turns_played: int
    round: int = 1
    rotation: int = 0
    stall_reason: Optional[str] = None

    @property
    def delta(self) -> float:
        return self.avg_score_a - self.avg_score_b

    @property
    def winner(self) -> Optional[str]:
        if not self.completed or self.avg_score_a == self.avg_score_b:
            return None
        return LABEL_A if self.avg_score_a > self.avg_score_b else LABEL_B


@dataclass
class StallOccurrence:
    round: int
    rotation: int
    reason: str


@dataclass
class EvaluationSummary:
    wins_a: int = 0
    wins_b: int = 0
    ties: int = 0
    decisive_games: int = 0
    win_rate_a: float = 0.0
    mean_delta: float = 0.0
    avg_score_a: float = 0.0
    avg_score_b: float = 0.0
    avg_turns: float = 0.0
    incomplete_games: int = 0
    total_games: int = 0
    clear_margin_for_a: bool = False
    stall_reasons: Dict[str, int] = field(default_factory=dict)
    stall_occurrences: List[StallOccurrence] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winsA": self.wins_a,
            "winsB": self.wins_b,
            "ties": self.ties,
            "decisiveGames": self.decisive_games,
            "winRateA": self.win_rate_a,
            "meanDelta": self.mean_delta,
            "avgScoreA": self.avg_score_a,
            "avgScoreB": self.avg_score_b,
            "avgTurns": self.avg_turns,
            "incompleteGames": self.incomplete_games,
            "totalGames": self.total_games,
            "clearMarginForA": self.clear_margin_for_a,
            "stallReasons": dict(self.stall_reasons),
            "stallOccurrences": [asdict(item) for item in self.stall_occurrences],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EvaluationSummary":
        return cls(
            wins_a=int(data["winsA"]),
            wins_b=int(data["winsB"]),
            ties=int(data["ties"]),
            decisive_games=int(data["decisiveGames"]),
            win_rate_a=float(data["winRateA"]),
            mean_delta=float(data["meanDelta"]),
            avg_score_a=float(data["avgScoreA"]),
            avg_score_b=float(data["avgScoreB"]),
            avg_turns=float(data["avgTurns"]),
            incomplete_games=int(data["incompleteGames"]),
            total_games=int(data["totalGames"]),
            clear_margin_for_a=bool(data["clearMarginForA"]),
            stall_reasons={str(key): int(value) for key, value in data.get("stallReasons", {}).items()},
            stall_occurrences=[
                StallOccurrence(int(item["round"]), int(item["rotation"]), str(item["reason"]))
                for item in data.get("stallOccurrences", [])
            ],
        )


def _mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def summarize_games(
    games: Sequence[LabeledGame],
    *,
    min_win_rate: float = DEFAULT_MIN_WIN_RATE,
    min_vp_delta: float = DEFAULT_MIN_VP_DELTA,
) -> EvaluationSummary:
    wins_a = sum(1 for game in games if game.winner == LABEL_A)
    wins_b = sum(1 for game in games if game.winner == LABEL_B)
    total = len(games)
    decisive = wins_a + wins_b
    win_rate_a = wins_a / decisive if decisive else 0.0
    mean_delta = _mean([game.delta for game in games])

    occurrences = [
        StallOccurrence(game.round, game.rotation, game.stall_reason or UNKNOWN_STALL_REASON)
        for game in games
        if not game.completed
    ]
    counts = Counter(item.reason for item in occurrences)
    return EvaluationSummary(
        wins_a=wins_a,
        wins_b=wins_b,
        ties=total - decisive,
        decisive_games=decisive,
        win_rate_a=win_rate_a,
        mean_delta=mean_delta,
        avg_score_a=_mean([game.avg_score_a for game in games]),
        avg_score_b=_mean([game.avg_score_b for game in games]),
        avg_turns=_mean([game.turns_played for game in games]),
        incomplete_games=len(occurrences),
        total_games=total,
        clear_margin_for_a=has_clear_margin(
            win_rate_a, mean_delta, min_win_rate=min_win_rate, min_vp_delta=min_vp_delta
        ),
        stall_reasons=dict(sorted(counts.items(), key=lambda item: (-item[1], item[0]))),
        stall_occurrences=occurrences,
    )


def seat_players(player_count: int, rotation: int = 0) -> List[PlayerConfig]:
    """Seat ``player_count`` players, alternating labels with ``rotation``."""
    players = []
    for index in range(player_count):
        label = LABEL_A if (index + rotation) % 2 == 0 else LABEL_B
        players.append(PlayerConfig(id=f"{label.lower()}-{index + 1}", name=f"{label} Bot {index + 1}"))
    return players


def label_of(player: PlayerConfig) -> str:
    return player.id.split("-", 1)[0].upper()


def label_game(record: GameRecord) -> LabeledGame:
    scores_a = [seat.score for seat in record.seats if seat.participant_key == LABEL_A]
    scores_b = [seat.score for seat in record.seats if seat.participant_key == LABEL_B]
    return LabeledGame(
        avg_score_a=_mean(scores_a),
        avg_score_b=_mean(scores_b),
        completed=record.completed,
        turns_played=record.turns_played,
        round=record.round,
        rotation=record.rotation,
        stall_reason=record.stall_reason,
    )


def evaluate_candidate(
    candidate: StrategyConfig,
    baseline: StrategyConfig,
    games: int,
    options: Optional[MatchOptions] = None,
    *,
    candidate_id: Any = 0,
    candidate_name: str = "candidate",
    baseline_id: Any = 0,
    baseline_name: str = "baseline",
    metrics: Optional[BotMetrics] = None,
    profile: Optional[TournamentProfile] = None,
) -> EvaluationSummary:
    """Play ``games`` games of ``candidate`` (label A) against ``baseline`` (label B).

    ``ceil(games / players)`` rounds of every seat rotation are played and the
    game list is truncated to ``games``. Game seeds depend only on
    ``options.seed`` and the round, so every candidate evaluated with the same
    options meets the same dice, and both seatings of a round share them.
    """
    options = options or MatchOptions()
    if games < 1:
        raise ValueError("games must be a positive integer")
    profile = profile if profile is not None else TournamentProfile()

    strategy_a = create_bot_strategy(
        bot_type_of(candidate),
        candidate,
        strategy_id=f"candidate-a-{candidate_id}",
        name=candidate_name,
    )
    strategy_b = create_bot_strategy(
        bot_type_of(baseline),
        baseline,
        strategy_id=f"baseline-b-{baseline_id}",
        name=baseline_name,
    )
    players = seat_players(options.players)
    strategies = {player.id: strategy_a if label_of(player) == LABEL_A else strategy_b for player in players}

    started = time.perf_counter()
    report = run_headless_bot_evaluation(
        players,
        rounds=math.ceil(games / options.players),
        rotate_seats=True,
        max_turns=options.max_turns,
        max_steps_per_turn=options.max_steps_per_turn,
        strategy_by_player_id=strategies,
        participant_key_by_player_id={player.id: label_of(player) for player in players},
        participant_label_by_key={LABEL_A: f"A:{candidate_name}", LABEL_B: f"B:{baseline_name}"},
        seed=options.seed,
        metrics=metrics,
    )
    profile.run_headless_ms += (time.perf_counter() - started) * 1000.0

    started = time.perf_counter()
    records = report.games[:games]
    summary = summarize_games(
        [label_game(record) for record in records],
        min_win_rate=options.min_win_rate,
        min_vp_delta=options.min_vp_delta,
    )
    profile.score_summary_ms += (time.perf_counter() - started) * 1000.0
    profile.evaluate_single_game_calls += len(records)
    profile.games_simulated += report.total_games

    logger.debug(
        "A:%s vs B:%s: %d-%d-%d over %d games",
        candidate_name,
        baseline_name,
        summary.wins_a,
        summary.wins_b,
        summary.ties,
        summary.total_games,
    )
    return summary


@dataclass
class CandidateResult:
    id: str
    name: str
    path: str
    bot_type: str
    quick: EvaluationSummary
    final: Optional[EvaluationSummary] = None
    dimensions: List[str] = field(default_factory=list)
    quick_ms: float = 0.0
    final_ms: float = 0.0

    @property
    def ranking_summary(self) -> EvaluationSummary:
        return self.final if self.final is not None else self.quick

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "botType": self.bot_type,
            "dimensions": list(self.dimensions),
            "quick": self.quick.to_dict(),
            "final": self.final.to_dict() if self.final is not None else None,
            "timingsMs": {"quick": self.quick_ms, "final": self.final_ms},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CandidateResult":
        timings = data.get("timingsMs", {})
        final = data.get("final")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            path=str(data["path"]),
            bot_type=str(data["botType"]),
            quick=EvaluationSummary.from_dict(data["quick"]),
            final=EvaluationSummary.from_dict(final) if final is not None else None,
            dimensions=list(data.get("dimensions", [])),
            quick_ms=float(timings.get("quick", 0.0)),
            final_ms=float(timings.get("final", 0.0)),
        )


def rank_candidate_results(results: Sequence[CandidateResult]) -> List[CandidateResult]:
    """Order by win rate, then mean delta, then name.

    Finalists are ranked on their final-round summary and everyone else on the
    quick round, so a non-finalist with strong quick numbers can outrank a
    finalist whose larger sample regressed.
    """
    return sorted(
        results,
        key=lambda item: (-item.ranking_summary.win_rate_a, -item.ranking_summary.mean_delta, item.name),
    )
