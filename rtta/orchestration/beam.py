"""Beam search over dimension sets.

Each iteration expands every beam member by one extra dimension, writes the
resulting candidates to ``iter-N/``, runs a tournament against the baseline
and keeps the best ``beam_width`` candidates as the next beam.
"""

from __future__ import annotations

import json
import logging
import math
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar, Union

from tqdm import tqdm

from rtta.bot.config import BOT_TYPES
from rtta.evaluation import CandidateResult
from rtta.evaluation.gating import DEFAULT_MIN_VP_DELTA, DEFAULT_MIN_WIN_RATE
from rtta.evaluation.match import DEFAULT_MAX_STEPS_PER_TURN, DEFAULT_MAX_TURNS

from .candidate_files import list_candidate_files, parse_candidate_file, write_candidate_file
from .dimensions import apply_dimensions, dimension_key, ordered_dimension_ids
from .tournament import TournamentOptions, run_tournament, write_tournament_output

logger = logging.getLogger(__name__)

T = TypeVar("T")

ITERATION_SEED_STRIDE = 10007
PARENT_SEED_STRIDE = 7919
SUMMARY_FILE = "beam-summary.json"
RESULTS_FILE = "tournament-results.json"


def xorshift32(seed: int) -> Callable[[], float]:
    """Portable xorshift32 generator returning floats in [0, 1)."""
    state = (int(seed) & 0xFFFFFFFF) or 1

    def next_value() -> float:
        nonlocal state
        state ^= (state << 13) & 0xFFFFFFFF
        state ^= state >> 17
        state ^= (state << 5) & 0xFFFFFFFF
        return state / 4294967296

    return next_value


def seeded_shuffle(items: Sequence[T], rng: Callable[[], float]) -> List[T]:
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = math.floor(rng() * (i + 1))
        result[i], result[j] = result[j], result[i]
    return result


def expansion_seed(seed: int, iteration: int, parent_id: int) -> int:
    return seed + iteration * ITERATION_SEED_STRIDE + parent_id * PARENT_SEED_STRIDE


@dataclass
class BeamSearchOptions:
    out_dir: str = "output/bot-beam"
    bot_type: str = "heuristic"
    seed: int = 1
    iterations: int = 5
    beam_width: int = 8
    children_per_parent: int = 4
    players: int = 2
    games: int = 20
    final_games: int = 20
    workers: Union[int, str] = "auto"
    executor: str = "process"
    max_turns: int = DEFAULT_MAX_TURNS
    max_steps_per_turn: int = DEFAULT_MAX_STEPS_PER_TURN
    min_win_rate: float = DEFAULT_MIN_WIN_RATE
    min_vp_delta: float = DEFAULT_MIN_VP_DELTA

    def validate(self) -> None:
        if self.bot_type not in BOT_TYPES:
            raise ValueError('bot_type must be "heuristic" or "lookahead".')
        if isinstance(self.seed, bool) or not isinstance(self.seed, int) or self.seed < 0:
            raise ValueError("seed must be a non-negative integer.")
        for name in ("iterations", "beam_width", "children_per_parent"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer.")
        self.tournament_options().validate()

    def tournament_options(self) -> TournamentOptions:
        return TournamentOptions(
            players=self.players,
            games=self.games,
            final_games=self.final_games,
            top=self.beam_width,
            max_turns=self.max_turns,
            max_steps_per_turn=self.max_steps_per_turn,
            min_win_rate=self.min_win_rate,
            min_vp_delta=self.min_vp_delta,
            workers=self.workers,
            executor=self.executor,
            seed=self.seed,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outDir": self.out_dir,
            "botType": self.bot_type,
            "seed": self.seed,
            "iterations": self.iterations,
            "beamWidth": self.beam_width,
            "childrenPerParent": self.children_per_parent,
            "players": self.players,
            "games": self.games,
            "finalGames": self.final_games,
            "workers": self.workers,
            "executor": self.executor,
            "maxTurns": self.max_turns,
            "maxStepsPerTurn": self.max_steps_per_turn,
            "minWinRate": self.min_win_rate,
            "minVpDelta": self.min_vp_delta,
        }


@dataclass
class BeamCandidate:
    id: int
    key: str
    dimensions: List[str]
    path: str


@dataclass
class BeamSearchResult:
    summary_path: Path
    baseline_path: str
    iterations: List[Dict[str, Any]] = field(default_factory=list)
    beam: List[BeamCandidate] = field(default_factory=list)


def candidate_name(dimensions: Sequence[str], bot_type: str) -> str:
    return "+".join(dimensions) if dimensions else f"{bot_type}-baseline"


def write_beam_candidate(directory: Path, candidate_id: int, dimensions: Sequence[str], bot_type: str) -> BeamCandidate:
    config = apply_dimensions(bot_type, dimensions)
    path = write_candidate_file(
        directory / f"{candidate_id}.json",
        candidate_id,
        candidate_name(dimensions, bot_type),
        config,
        dimensions,
    )
    return BeamCandidate(candidate_id, dimension_key(dimensions), list(dimensions), str(path.resolve()))


def _pct(numerator: float, denominator: float) -> float:
    return math.floor(numerator / max(1, denominator) * 10000 + 0.5) / 100


def _round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def winner_record(winner: Optional[CandidateResult]) -> Optional[Dict[str, Any]]:
    if winner is None:
        return None
    summary = winner.ranking_summary
    return {
        "name": winner.name,
        "path": winner.path,
        "gamesWon": summary.wins_a,
        "gamesLost": summary.wins_b,
        "ties": summary.ties,
        "decisiveGames": summary.decisive_games,
        "totalGames": summary.total_games,
        "winRatePct": _pct(summary.wins_a, summary.total_games),
        "winRateDecisivePct": _pct(summary.wins_a, summary.decisive_games),
        "avgScore": _round2(summary.avg_score_a),
        "opponentAvgScore": _round2(summary.avg_score_b),
    }


class _IterationPool:
    """Candidates of one iteration, deduplicated by dimension key."""

    def __init__(self, directory: Path, bot_type: str, next_id: int) -> None:
        self.directory = directory
        self.bot_type = bot_type
        self.next_id = next_id
        self.by_key: Dict[str, BeamCandidate] = {}

    def ensure(self, dimensions: Sequence[str]) -> None:
        key = dimension_key(dimensions)
        if key in self.by_key:
            return
        self.by_key[key] = write_beam_candidate(self.directory, self.next_id, sorted(dimensions), self.bot_type)
        self.next_id += 1


def expand_beam(
    beam: Sequence[BeamCandidate],
    pool: _IterationPool,
    ordered_ids: Sequence[str],
    seed: int,
    iteration: int,
    children_per_parent: int,
) -> None:
    pool.ensure([])
    for parent in beam:
        pool.ensure(parent.dimensions)
        available = [dimension_id for dimension_id in ordered_ids if dimension_id not in parent.dimensions]
        rng = xorshift32(expansion_seed(seed, iteration, parent.id))
        for added in seeded_shuffle(available, rng)[:children_per_parent]:
            pool.ensure([*parent.dimensions, added])


def write_beam_summary(
    path: Path, options: BeamSearchOptions, baseline_path: str, history: Sequence[Dict[str, Any]]
) -> None:
    """Rewrite the summary with every iteration finished so far."""
    payload = {
        "options": options.to_dict(),
        "generatedAt": datetime.now(timezone.utc).isoformat(),
        "baselinePath": baseline_path,
        "iterations": list(history),
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def run_beam_search(options: Optional[BeamSearchOptions] = None, *, progress: bool = False) -> BeamSearchResult:
    options = options or BeamSearchOptions()
    options.validate()
    out_dir = Path(options.out_dir).resolve()
    if out_dir.exists():
        shutil.rmtree(out_dir)
    out_dir.mkdir(parents=True)

    baseline = write_beam_candidate(out_dir / "baseline", 0, [], options.bot_type)
    baseline_candidate = parse_candidate_file(baseline.path)
    next_id = 1
    beam: List[BeamCandidate] = [baseline]
    ordered_ids = ordered_dimension_ids(options.bot_type)
    tournament_options = options.tournament_options()
    history: List[Dict[str, Any]] = []
    summary_path = out_dir / SUMMARY_FILE

    iterations = range(1, options.iterations + 1)
    for iteration in tqdm(iterations, desc="beam", unit="iter", disable=not progress):
        iter_dir = out_dir / f"iter-{iteration}"
        iter_dir.mkdir(parents=True)
        pool = _IterationPool(iter_dir, options.bot_type, next_id)
        expand_beam(beam, pool, ordered_ids, options.seed, iteration, options.children_per_parent)
        next_id = pool.next_id

        outcome = run_tournament(list_candidate_files(iter_dir), baseline_candidate, tournament_options)
        write_tournament_output(iter_dir / RESULTS_FILE, tournament_options, outcome)
        selected = outcome.results[: options.beam_width]

        beam = []
        for result in selected:
            loaded = parse_candidate_file(result.path)
            beam.append(BeamCandidate(int(loaded.id), dimension_key(loaded.dimensions), loaded.dimensions, result.path))

        winner = selected[0] if selected else None
        history.append(
            {
                "iteration": iteration,
                "candidateCount": len(pool.by_key),
                "winner": winner_record(winner),
                "beam": [{"name": result.name, "path": result.path} for result in selected],
            }
        )
        logger.info("Beam iteration %d: candidates=%d, kept=%d", iteration, len(pool.by_key), len(beam))
        if winner is not None:
            summary = winner.ranking_summary
            logger.info(
                "  winner=%s, record=%d-%d-%d, winRate=%.2f%%, decisiveWinRate=%.2f%%",
                winner.name,
                summary.wins_a,
                summary.wins_b,
                summary.ties,
                summary.wins_a / max(1, summary.total_games) * 100,
                summary.win_rate_a * 100,
            )
        write_beam_summary(summary_path, options, baseline.path, history)
        if not beam:
            break

    logger.info("Wrote summary: %s", summary_path)
    return BeamSearchResult(summary_path=summary_path, baseline_path=baseline.path, iterations=history, beam=beam)
