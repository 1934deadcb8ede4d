from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from rtta.bot import HEURISTIC_STANDARD_BOT, BotMetrics, BotStrategy
from rtta.core import PlayerConfig

from .match import (
    DEFAULT_MAX_STEPS_PER_TURN,
    DEFAULT_MAX_TURNS,
    run_headless_bot_match,
    validate_bot_players,
)

logger = logging.getLogger(__name__)


def game_seed(base_seed: int, round_index: int) -> int:
    """Seed for every game of a round.

    All seat rotations of a round replay the same dice, so participants are
    compared on equal luck and identical strategies split each round evenly.
    """
    return abs(int(base_seed)) * 1_000_003 + round_index * 1_009


@dataclass
class SeatResult:
    player_id: str
    player_name: str
    participant_key: str
    score: int
    top_finish: bool


@dataclass
class GameRecord:
    round: int
    rotation: int
    seats: List[SeatResult]
    completed: bool
    turns_played: int
    winners: List[str]
    stall_reason: Optional[str] = None


@dataclass
class ParticipantStanding:
    key: str
    label: str
    appearances: int = 0
    total_vp: float = 0.0
    top_finishes: int = 0
    win_share: float = 0.0

    @property
    def avg_vp(self) -> float:
        return self.total_vp / max(1, self.appearances)

    @property
    def top_finish_rate(self) -> float:
        return self.top_finishes / max(1, self.appearances)

    @property
    def win_share_rate(self) -> float:
        return self.win_share / max(1, self.appearances)

    def to_dict(self) -> Dict[str, object]:
        return {
            "key": self.key,
            "label": self.label,
            "appearances": self.appearances,
            "totalVp": self.total_vp,
            "avgVp": self.avg_vp,
            "topFinishes": self.top_finishes,
            "topFinishRate": self.top_finish_rate,
            "winShare": self.win_share,
            "winShareRate": self.win_share_rate,
        }


@dataclass
class EvaluationReport:
    total_games: int
    games: List[GameRecord] = field(default_factory=list)
    standings: List[ParticipantStanding] = field(default_factory=list)


def sort_standings(standings: Sequence[ParticipantStanding]) -> List[ParticipantStanding]:
    return sorted(
        standings,
        key=lambda s: (-s.win_share_rate, -s.avg_vp, -s.top_finish_rate, s.label),
    )


def run_headless_bot_evaluation(
    players: Sequence[PlayerConfig],
    *,
    rounds: int = 10,
    rotate_seats: bool = True,
    max_turns: int = DEFAULT_MAX_TURNS,
    max_steps_per_turn: int = DEFAULT_MAX_STEPS_PER_TURN,
    strategy_by_player_id: Optional[Mapping[str, BotStrategy]] = None,
    participant_key_by_player_id: Optional[Mapping[str, str]] = None,
    participant_label_by_key: Optional[Mapping[str, str]] = None,
    seed: int = 0,
    metrics: Optional[BotMetrics] = None,
) -> EvaluationReport:
    """Play ``rounds`` rounds and rank the participants.

    With ``rotate_seats`` every round plays one game per seat rotation, so
    each participant occupies every seat once per round.
    """
    validate_bot_players(players)
    if rounds < 1:
        raise ValueError("rounds must be a positive integer")
    strategies = dict(strategy_by_player_id or {})
    keys = {player.id: (participant_key_by_player_id or {}).get(player.id, player.id) for player in players}
    labels = dict(participant_label_by_key or {})
    metrics = metrics if metrics is not None else BotMetrics()

    standings: Dict[str, ParticipantStanding] = {}
    for player in players:
        key = keys[player.id]
        if key not in standings:
            standings[key] = ParticipantStanding(key=key, label=labels.get(key, key))

    count = len(players)
    rotations = count if rotate_seats else 1
    games: List[GameRecord] = []
    for round_index in range(rounds):
        for rotation in range(rotations):
            assigned = [players[(seat + rotation) % count] for seat in range(count)]
            seat_strategies = {
                players[seat].id: strategies.get(assigned[seat].id, HEURISTIC_STANDARD_BOT)
                for seat in range(count)
            }
            result = run_headless_bot_match(
                players,
                max_turns=max_turns,
                max_steps_per_turn=max_steps_per_turn,
                strategy_by_player_id=seat_strategies,
                seed=game_seed(seed, round_index),
                metrics=metrics,
                record_log=False,
            )
            top = max(result.scores.values())
            top_count = sum(1 for score in result.scores.values() if score == top)
            seats = []
            for seat, player in enumerate(players):
                score = result.scores[player.id]
                key = keys[assigned[seat].id]
                standing = standings[key]
                standing.appearances += 1
                standing.total_vp += score
                if score == top:
                    standing.top_finishes += 1
                    standing.win_share += 1.0 / top_count
                seats.append(SeatResult(player.id, player.name, key, score, score == top))
            games.append(
                GameRecord(
                    round=round_index + 1,
                    rotation=rotation,
                    seats=seats,
                    completed=result.completed,
                    turns_played=result.turns_played,
                    winners=result.winners,
                    stall_reason=result.stall_reason,
                )
            )
            logger.debug("Evaluation round %d rotation %d done", round_index + 1, rotation)

    return EvaluationReport(
        total_games=len(games),
        games=games,
        standings=sort_standings(list(standings.values())),
    )
