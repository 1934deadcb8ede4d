from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .tournament import EvaluationSummary

DEFAULT_MIN_WIN_RATE = 0.6
DEFAULT_MIN_VP_DELTA = 3.0


@dataclass
class ClearMarginDecision:
    clear_margin: bool
    win_rate: float
    mean_delta: float
    min_win_rate: float
    min_vp_delta: float


def has_clear_margin(win_rate: float, mean_delta: float, *, min_win_rate: float, min_vp_delta: float) -> bool:
    return win_rate >= min_win_rate and mean_delta >= min_vp_delta


def clear_margin_winner(
    summary: "EvaluationSummary",
    *,
    min_win_rate: float = DEFAULT_MIN_WIN_RATE,
    min_vp_delta: float = DEFAULT_MIN_VP_DELTA,
) -> Optional[str]:
    """Return "A" or "B" for a clear-margin winner, else None."""
    if has_clear_margin(summary.win_rate_a, summary.mean_delta, min_win_rate=min_win_rate, min_vp_delta=min_vp_delta):
        return "A"
    win_rate_b = summary.wins_b / summary.decisive_games if summary.decisive_games else 0.0
    if has_clear_margin(win_rate_b, -summary.mean_delta, min_win_rate=min_win_rate, min_vp_delta=min_vp_delta):
        return "B"
    return None


def gate_candidate(
    summary: "EvaluationSummary",
    *,
    min_win_rate: float = DEFAULT_MIN_WIN_RATE,
    min_vp_delta: float = DEFAULT_MIN_VP_DELTA,
) -> ClearMarginDecision:
    """Decide whether label A beat label B by a clear margin."""
    return ClearMarginDecision(
        clear_margin=has_clear_margin(
            summary.win_rate_a,
            summary.mean_delta,
            min_win_rate=min_win_rate,
            min_vp_delta=min_vp_delta,
        ),
        win_rate=summary.win_rate_a,
        mean_delta=summary.mean_delta,
        min_win_rate=min_win_rate,
        min_vp_delta=min_vp_delta,
    )
