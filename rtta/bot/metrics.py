from __future__ import annotations

from collections import defaultdict
from typing import Dict, Optional

CORE_METRIC_KEYS = (
    "run_bot_step_calls",
    "run_bot_turn_calls",
    "actions_applied",
    "apply_errors",
    "empty_action_sets",
    "turns_completed",
    "turns_stalled",
    "choose_action_ms_total",
)


class BotMetrics:
    """Counters collected while bots play.

    One instance belongs to one run (a match, an evaluation or a worker), so
    nothing here is shared between threads or processes.
    """

    def __init__(self) -> None:
        self.totals: Dict[str, float] = defaultdict(float)
        self.by_strategy: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
        self.by_actor: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))

    def record(
        self,
        key: str,
        amount: float = 1.0,
        *,
        strategy_id: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> None:
        self.totals[key] += amount
        if strategy_id is not None:
            self.by_strategy[strategy_id][key] += amount
        if actor is not None:
            self.by_actor[actor][key] += amount

    def get(self, key: str) -> float:
        return self.totals.get(key, 0.0)

    def reset(self) -> None:
        self.totals.clear()
        self.by_strategy.clear()
        self.by_actor.clear()

    def merge(self, other: "BotMetrics") -> None:
        for key, value in other.totals.items():
            self.totals[key] += value
        for strategy_id, counters in other.by_strategy.items():
            for key, value in counters.items():
                self.by_strategy[strategy_id][key] += value
        for actor, counters in other.by_actor.items():
            for key, value in counters.items():
                self.by_actor[actor][key] += value

    def snapshot(self) -> Dict[str, object]:
        totals = {key: self.totals.get(key, 0.0) for key in CORE_METRIC_KEYS}
        totals.update({key: value for key, value in sorted(self.totals.items())})
        return {
            "totals": totals,
            "byStrategy": {sid: dict(sorted(c.items())) for sid, c in sorted(self.by_strategy.items())},
            "byActor": {actor: dict(sorted(c.items())) for actor, c in sorted(self.by_actor.items())},
        }
