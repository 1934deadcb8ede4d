"""Candidate tournament: a quick round for everyone, a final round for the best.

Jobs cross the pool as plain dicts (candidate path, serialized baseline,
game count and match options) so thread and process workers behave the same.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from rtta.evaluation import (
    CandidateResult,
    EvaluationSummary,
    MatchOptions,
    TournamentProfile,
    evaluate_candidate,
    rank_candidate_results,
)
from rtta.evaluation.gating import DEFAULT_MIN_VP_DELTA, DEFAULT_MIN_WIN_RATE
from rtta.evaluation.match import DEFAULT_MAX_STEPS_PER_TURN, DEFAULT_MAX_TURNS

from .candidate_files import LoadedCandidate, PathLike, parse_candidate_file
from .pool import EXECUTORS, run_pool

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
MAX_PLAYERS = 4


@dataclass
class TournamentOptions:
    players: int = 2
    games: int = 20
    final_games: int = 30
    top: int = 3
    max_turns: int = DEFAULT_MAX_TURNS
    max_steps_per_turn: int = DEFAULT_MAX_STEPS_PER_TURN
    min_win_rate: float = DEFAULT_MIN_WIN_RATE
    min_vp_delta: float = DEFAULT_MIN_VP_DELTA
    workers: Union[int, str] = "auto"
    executor: str = "process"
    seed: int = 0

    def validate(self) -> None:
        if not MIN_PLAYERS <= self.players <= MAX_PLAYERS:
            raise ValueError(f"players must be an integer from {MIN_PLAYERS} to {MAX_PLAYERS}.")
        for name in ("games", "final_games", "top", "max_turns", "max_steps_per_turn"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer.")
        if not 0 < self.min_win_rate < 1:
            raise ValueError("min_win_rate must be between 0 and 1 (exclusive).")
        if self.min_vp_delta < 0:
            raise ValueError("min_vp_delta must be >= 0.")
        if self.executor not in EXECUTORS:
            raise ValueError(f"executor must be one of {', '.join(EXECUTORS)}.")

    def match_options(self) -> MatchOptions:
        return MatchOptions(
            players=self.players,
            max_turns=self.max_turns,
            max_steps_per_turn=self.max_steps_per_turn,
            min_win_rate=self.min_win_rate,
            min_vp_delta=self.min_vp_delta,
            seed=self.seed,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "players": self.players,
            "games": self.games,
            "finalGames": self.final_games,
            "top": self.top,
            "maxTurns": self.max_turns,
            "maxStepsPerTurn": self.max_steps_per_turn,
            "minWinRate": self.min_win_rate,
            "minVpDelta": self.min_vp_delta,
            "workers": self.workers,
            "executor": self.executor,
            "seed": self.seed,
        }


@dataclass
class TournamentOutcome:
    results: List[CandidateResult]
    profile: TournamentProfile = field(default_factory=TournamentProfile)

    @property
    def winner(self) -> Optional[CandidateResult]:
        return self.results[0] if self.results else None


def tournament_worker(job: Dict[str, Any]) -> Dict[str, Any]:
    """Evaluate one candidate file against the serialized baseline."""
    profile = TournamentProfile()
    started = time.perf_counter()
    candidate = parse_candidate_file(job["candidatePath"])
    baseline = LoadedCandidate.from_job_dict(job["baseline"])
    profile.candidate_load_ms += (time.perf_counter() - started) * 1000.0

    summary = evaluate_candidate(
        candidate.config,
        baseline.config,
        int(job["games"]),
        MatchOptions.from_dict(job["options"]),
        candidate_id=candidate.id,
        candidate_name=candidate.name,
        baseline_id=baseline.id,
        baseline_name=baseline.name,
        profile=profile,
    )
    return {
        "id": candidate.id,
        "name": candidate.name,
        "path": candidate.source,
        "botType": candidate.bot_type,
        "dimensions": list(candidate.dimensions),
        "summary": summary.to_dict(),
        "elapsedMs": (time.perf_counter() - started) * 1000.0,
        "profile": profile.to_dict(),
    }


def _run_round(
    paths: Sequence[str],
    baseline: LoadedCandidate,
    games: int,
    options: TournamentOptions,
    profile: TournamentProfile,
) -> List[Dict[str, Any]]:
    jobs = [
        {
            "candidatePath": path,
            "baseline": baseline.to_job_dict(),
            "games": games,
            "options": options.match_options().to_dict(),
        }
        for path in paths
    ]
    pool = run_pool(jobs, tournament_worker, workers=options.workers, executor=options.executor)
    for result in pool.results:
        profile.merge(TournamentProfile.from_dict(result["profile"]))
    return pool.results


def run_tournament(
    candidate_files: Sequence[PathLike],
    baseline: LoadedCandidate,
    options: Optional[TournamentOptions] = None,
) -> TournamentOutcome:
    """Rank ``candidate_files`` against ``baseline``.

    Every candidate plays ``options.games`` games. When ``final_games`` is
    larger, the ``top`` candidates of the quick ranking replay with
    ``final_games`` games and are ranked on that summary instead.
    """
    options = options or TournamentOptions()
    options.validate()
    if not candidate_files:
        raise ValueError("No .json candidate files found.")
    started = time.perf_counter()
    profile = TournamentProfile()

    round_started = time.perf_counter()
    quick = _run_round([str(path) for path in candidate_files], baseline, options.games, options, profile)
    profile.quick_round_ms = (time.perf_counter() - round_started) * 1000.0
    results = [
        CandidateResult(
            id=str(item["id"]),
            name=item["name"],
            path=item["path"],
            bot_type=item["botType"],
            dimensions=list(item["dimensions"]),
            quick=EvaluationSummary.from_dict(item["summary"]),
            quick_ms=float(item["elapsedMs"]),
        )
        for item in quick
    ]
    ranked = rank_candidate_results(results)
    logger.info("Quick round done for %d candidates in %.0f ms", len(ranked), profile.quick_round_ms)

    finalists = ranked[: min(options.top, len(ranked))]
    if options.final_games > options.games and finalists:
        round_started = time.perf_counter()
        final = _run_round([item.path for item in finalists], baseline, options.final_games, options, profile)
        for finalist, item in zip(finalists, final):
            finalist.final = EvaluationSummary.from_dict(item["summary"])
            finalist.final_ms = float(item["elapsedMs"])
        profile.final_round_ms = (time.perf_counter() - round_started) * 1000.0
        logger.info("Final round done for %d finalists in %.0f ms", len(finalists), profile.final_round_ms)
        ranked = rank_candidate_results(ranked)

    profile.total_ms = (time.perf_counter() - started) * 1000.0
    return TournamentOutcome(results=ranked, profile=profile)


def write_tournament_output(
    path: PathLike,
    options: TournamentOptions,
    outcome: TournamentOutcome,
    extra_options: Optional[Dict[str, Any]] = None,
) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "options": {**options.to_dict(), **(extra_options or {})},
        "generatedAt": datetime.now(timezone.utc).isoformat(),
        "results": [result.to_dict() for result in outcome.results],
        "profile": outcome.profile.to_dict(),
    }
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return target
