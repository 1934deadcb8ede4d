from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional

from .definitions import GameSettings, ResourceProduction


class GamePhase(str, Enum):
    ROLL_DICE = "rollDice"
    DECIDE_DICE = "decideDice"
    RESOLVE_PRODUCTION = "resolveProduction"
    BUILD = "build"
    DEVELOPMENT = "development"
    DISCARD_GOODS = "discardGoods"
    END_TURN = "endTurn"


class LockDecision(str, Enum):
    UNLOCKED = "unlocked"
    KEPT = "kept"
    SKULL = "skull"


@dataclass
class Construction:
    workers_committed: int = 0
    completed: bool = False

    def copy(self) -> "Construction":
        return Construction(self.workers_committed, self.completed)


@dataclass
class PlayerState:
    id: str
    food: int
    goods: Dict[str, int]
    cities: List[Construction]
    developments: List[str] = field(default_factory=list)
    monuments: Dict[str, Construction] = field(default_factory=dict)
    disaster_penalties: int = 0
    score: int = 0

    def copy(self) -> "PlayerState":
        return PlayerState(
            id=self.id,
            food=self.food,
            goods=dict(self.goods),
            cities=[city.copy() for city in self.cities],
            developments=list(self.developments),
            monuments={key: value.copy() for key, value in self.monuments.items()},
            disaster_penalties=self.disaster_penalties,
            score=self.score,
        )

    def completed_cities(self) -> int:
        return sum(1 for city in self.cities if city.completed)

    def completed_monuments(self) -> int:
        return sum(1 for progress in self.monuments.values() if progress.completed)

    def total_goods(self) -> int:
        return sum(self.goods.values())


@dataclass
class DieState:
    face_index: int
    production_index: int = 0
    lock: LockDecision = LockDecision.UNLOCKED

    @property
    def choice_pending(self) -> bool:
        return self.production_index < 0


@dataclass
class TurnProduction:
    goods: int = 0
    food: int = 0
    workers: int = 0
    coins: int = 0
    skulls: int = 0

    @staticmethod
    def from_resources(resources: ResourceProduction) -> "TurnProduction":
        return TurnProduction(
            goods=resources.goods,
            food=resources.food,
            workers=resources.workers,
            coins=resources.coins,
            skulls=resources.skulls,
        )


@dataclass
class TurnState:
    active_player_id: str
    rolls_used: int = 0
    single_die_rerolls_used: int = 0
    dice: List[DieState] = field(default_factory=list)
    pending_choices: int = 0
    food_shortage: int = 0
    development_purchased: bool = False
    production: TurnProduction = field(default_factory=TurnProduction)

    def copy(self) -> "TurnState":
        return TurnState(
            active_player_id=self.active_player_id,
            rolls_used=self.rolls_used,
            single_die_rerolls_used=self.single_die_rerolls_used,
            dice=[replace(die) for die in self.dice],
            pending_choices=self.pending_choices,
            food_shortage=self.food_shortage,
            development_purchased=self.development_purchased,
            production=replace(self.production),
        )


@dataclass
class GameState:
    """Full game snapshot.

    Engine functions treat instances as values: they copy before changing
    anything and return the new state. ``dice_seed`` and ``roll_counter``
    make dice outcomes a pure function of the state.
    """

    settings: GameSettings
    players: List[PlayerState]
    active_player_index: int
    round: int
    phase: GamePhase
    turn: TurnState
    dice_seed: int = 0
    roll_counter: int = 0

    def copy(self) -> "GameState":
        return GameState(
            settings=self.settings,
            players=[player.copy() for player in self.players],
            active_player_index=self.active_player_index,
            round=self.round,
            phase=self.phase,
            turn=self.turn.copy(),
            dice_seed=self.dice_seed,
            roll_counter=self.roll_counter,
        )

    @property
    def active_player(self) -> PlayerState:
        return self.players[self.active_player_index]

    def player_name(self, player_id: str) -> str:
        for config in self.settings.players:
            if config.id == player_id:
                return config.name
        return player_id

    def player_index(self, player_id: str) -> Optional[int]:
        for index, player in enumerate(self.players):
            if player.id == player_id:
                return index
        return None
