from __future__ import annotations

import json
from dataclasses import dataclass
from typing import ClassVar, Dict, Tuple


@dataclass(frozen=True)
class BotAction:
    """Base class for every move a bot can request.

    Variants are frozen so they compare and hash by value, which lets the
    runner check membership in the enumerated legal set directly.
    """

    kind: ClassVar[str] = ""

    def key(self) -> str:
        return self.kind


@dataclass(frozen=True)
class RollDice(BotAction):
    kind: ClassVar[str] = "rollDice"


@dataclass(frozen=True)
class RerollSingleDie(BotAction):
    die_index: int
    kind: ClassVar[str] = "rerollSingleDie"

    def key(self) -> str:
        return f"{self.kind}:{self.die_index}"


@dataclass(frozen=True)
class KeepDie(BotAction):
    die_index: int
    kind: ClassVar[str] = "keepDie"

    def key(self) -> str:
        return f"{self.kind}:{self.die_index}"


@dataclass(frozen=True)
class SelectProduction(BotAction):
    die_index: int
    production_index: int
    kind: ClassVar[str] = "selectProduction"

    def key(self) -> str:
        return f"{self.kind}:{self.die_index}:{self.production_index}"


@dataclass(frozen=True)
class ResolveProduction(BotAction):
    kind: ClassVar[str] = "resolveProduction"


@dataclass(frozen=True)
class BuildCity(BotAction):
    city_index: int
    kind: ClassVar[str] = "buildCity"

    def key(self) -> str:
        return f"{self.kind}:{self.city_index}"


@dataclass(frozen=True)
class BuildMonument(BotAction):
    monument_id: str
    kind: ClassVar[str] = "buildMonument"

    def key(self) -> str:
        return f"{self.kind}:{self.monument_id}"


@dataclass(frozen=True)
class BuyDevelopment(BotAction):
    development_id: str
    goods_type_names: Tuple[str, ...] = ()
    kind: ClassVar[str] = "buyDevelopment"

    def key(self) -> str:
        return f"{self.kind}:{self.development_id}:{','.join(self.goods_type_names)}"


@dataclass(frozen=True)
class ApplyExchange(BotAction):
    source: str
    target: str
    amount: int
    kind: ClassVar[str] = "applyExchange"

    def key(self) -> str:
        return f"{self.kind}:{self.source}:{self.target}:{self.amount}"


@dataclass(frozen=True)
class DiscardGoods(BotAction):
    keep: Tuple[Tuple[str, int], ...]
    kind: ClassVar[str] = "discardGoods"

    def keep_map(self) -> Dict[str, int]:
        return dict(self.keep)

    def key(self) -> str:
        return f"{self.kind}:{json.dumps(self.keep_map(), separators=(',', ':'))}"


@dataclass(frozen=True)
class SkipDevelopment(BotAction):
    kind: ClassVar[str] = "skipDevelopment"


@dataclass(frozen=True)
class EndTurn(BotAction):
    kind: ClassVar[str] = "endTurn"


def action_key(action: BotAction) -> str:
    return action.key()
