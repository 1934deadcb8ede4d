"""Headless matches, round-robin standings and head-to-head summaries."""

from .evaluator import (
    EvaluationReport,
    GameRecord,
    ParticipantStanding,
    game_seed,
    run_headless_bot_evaluation,
)
from .gating import ClearMarginDecision, clear_margin_winner, gate_candidate, has_clear_margin
from .match import HeadlessMatchResult, run_headless_bot_match
from .tournament import (
    CandidateResult,
    EvaluationSummary,
    LabeledGame,
    MatchOptions,
    StallOccurrence,
    TournamentProfile,
    evaluate_candidate,
    rank_candidate_results,
    summarize_games,
)

__all__ = [
    "EvaluationReport",
    "GameRecord",
    "ParticipantStanding",
    "game_seed",
    "run_headless_bot_evaluation",
    "ClearMarginDecision",
    "clear_margin_winner",
    "gate_candidate",
    "has_clear_margin",
    "HeadlessMatchResult",
    "run_headless_bot_match",
    "CandidateResult",
    "EvaluationSummary",
    "LabeledGame",
    "MatchOptions",
    "StallOccurrence",
    "TournamentProfile",
    "evaluate_candidate",
    "rank_candidate_results",
    "summarize_games",
]
