from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

STARTING_FOOD = 3
STARTING_CITIES = 3
MAX_CITIES = 7
MAX_FOOD = 15
MAX_GOODS = 6
MAX_DICE_ROLLS = 3
MAX_AUTO_ADVANCE_STEPS = 20


@dataclass(frozen=True)
class GoodsType:
    name: str
    values: Tuple[int, ...]

    @property
    def max_quantity(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class ResourceProduction:
    goods: int = 0
    food: int = 0
    workers: int = 0
    coins: int = 0
    skulls: int = 0


@dataclass(frozen=True)
class DiceFace:
    label: str
    production: Tuple[ResourceProduction, ...]

    @property
    def has_choice(self) -> bool:
        return len(self.production) > 1

    @property
    def has_skull(self) -> bool:
        return any(option.skulls > 0 for option in self.production)


@dataclass(frozen=True)
class MonumentDefinition:
    id: str
    name: str
    worker_cost: int
    first_points: int
    later_points: int
    min_players: Optional[int] = None


@dataclass(frozen=True)
class DevelopmentEffect:
    """Special effect granted by an owned development.

    ``kind`` is one of ``diceReroll``, ``disasterImmunity``,
    ``resourceProductionBonus``, ``goodsProductionBonus``, ``noGoodsLimit``,
    ``rewriteDisasterTargeting``, ``exchange`` or ``bonusPointsPer``.
    """

    kind: str
    count: int = 0
    disaster_id: Optional[str] = None
    bonus: ResourceProduction = field(default_factory=ResourceProduction)
    goods_type: Optional[str] = None
    goods_bonus: int = 0
    target_players: Optional[str] = None
    source: Optional[str] = None
    target: Optional[str] = None
    rate: int = 0
    entity: Optional[str] = None
    points: int = 0


@dataclass(frozen=True)
class DevelopmentDefinition:
    id: str
    name: str
    cost: int
    points: int
    description: str
    effect: DevelopmentEffect


@dataclass(frozen=True)
class DisasterDefinition:
    id: str
    name: str
    skulls: int
    points_delta: int
    clears_goods: bool
    affected_players: str


@dataclass(frozen=True)
class EndCondition:
    num_developments: int = 5
    num_monuments: int = 7
    num_rounds: int = 10


@dataclass(frozen=True)
class PlayerConfig:
    id: str
    name: str
    controller: str = "bot"


GOODS_TYPES: Tuple[GoodsType, ...] = (
    GoodsType("Wood", (1, 3, 6, 10, 15, 21, 28, 36)),
    GoodsType("Stone", (2, 6, 12, 20, 30, 42, 56)),
    GoodsType("Ceramic", (3, 9, 18, 30, 45, 63)),
    GoodsType("Fabric", (4, 12, 24, 40, 60)),
    GoodsType("Spearhead", (5, 15, 30, 50)),
)

DICE_FACES: Tuple[DiceFace, ...] = (
    DiceFace("1 Good", (ResourceProduction(goods=1),)),
    DiceFace("2 Goods + Skull", (ResourceProduction(goods=2, skulls=1),)),
    DiceFace(
        "2 Food OR 2 Workers",
        (ResourceProduction(food=2), ResourceProduction(workers=2)),
    ),
    DiceFace("3 Workers", (ResourceProduction(workers=3),)),
    DiceFace("7 Coins", (ResourceProduction(coins=7),)),
    DiceFace("3 Food", (ResourceProduction(food=3),)),
)

CITY_WORKER_COSTS: Tuple[int, ...] = (3, 4, 5, 6)

MONUMENTS: Tuple[MonumentDefinition, ...] = (
    MonumentDefinition("stepPyramid", "Step Pyramid", 3, 1, 0),
    MonumentDefinition("stoneCircle", "Stone Circle", 5, 2, 1),
    MonumentDefinition("temple", "Temple", 7, 4, 3, min_players=2),
    MonumentDefinition("obelisk", "Obelisk", 9, 6, 4),
    MonumentDefinition("hangingGardens", "Hanging Gardens", 11, 8, 5, min_players=4),
    MonumentDefinition("greatWall", "Great Wall", 13, 10, 6),
    MonumentDefinition("greatPyramid", "Great Pyramid", 15, 12, 8, min_players=3),
)

DEVELOPMENTS: Tuple[DevelopmentDefinition, ...] = (
    DevelopmentDefinition(
        "leadership", "Leadership", 10, 2, "Re-roll one die",
        DevelopmentEffect("diceReroll", count=1),
    ),
    DevelopmentDefinition(
        "irrigation", "Irrigation", 10, 2, "Drought has no effect",
        DevelopmentEffect("disasterImmunity", disaster_id="drought"),
    ),
    DevelopmentDefinition(
        "agriculture", "Agriculture", 15, 3, "+1 Food per food die",
        DevelopmentEffect("resourceProductionBonus", bonus=ResourceProduction(food=1)),
    ),
    DevelopmentDefinition(
        "quarrying", "Quarrying", 15, 3, "+1 Stone when producing stone",
        DevelopmentEffect("goodsProductionBonus", goods_type="Stone", goods_bonus=1),
    ),
    DevelopmentDefinition(
        "medicine", "Medicine", 20, 4, "Pestilence has no effect",
        DevelopmentEffect("disasterImmunity", disaster_id="pestilence"),
    ),
    DevelopmentDefinition(
        "coinage", "Coinage", 20, 4, "Money die is worth +5",
        DevelopmentEffect("resourceProductionBonus", bonus=ResourceProduction(coins=5)),
    ),
    DevelopmentDefinition(
        "caravans", "Caravans", 20, 4, "No goods limit",
        DevelopmentEffect("noGoodsLimit"),
    ),
    DevelopmentDefinition(
        "religion", "Religion", 25, 7, "Revolt affects opponents",
        DevelopmentEffect("rewriteDisasterTargeting", disaster_id="revolt", target_players="opponents"),
    ),
    DevelopmentDefinition(
        "granaries", "Granaries", 30, 6, "Convert food to 6 coins",
        DevelopmentEffect("exchange", source="food", target="coins", rate=6),
    ),
    DevelopmentDefinition(
        "masonry", "Masonry", 30, 6, "+1 Worker per worker die",
        DevelopmentEffect("resourceProductionBonus", bonus=ResourceProduction(workers=1)),
    ),
    DevelopmentDefinition(
        "engineering", "Engineering", 40, 6, "Convert stone to 3 workers",
        DevelopmentEffect("exchange", source="stone", target="workers", rate=3),
    ),
    DevelopmentDefinition(
        "architecture", "Architecture", 60, 8, "+2 points per monument",
        DevelopmentEffect("bonusPointsPer", entity="monument", points=2),
    ),
    DevelopmentDefinition(
        "empire", "Empire", 70, 10, "+1 point per city",
        DevelopmentEffect("bonusPointsPer", entity="city", points=1),
    ),
)

DISASTERS: Tuple[DisasterDefinition, ...] = (
    DisasterDefinition("drought", "Drought", 2, -2, False, "self"),
    DisasterDefinition("pestilence", "Pestilence", 3, -3, False, "opponents"),
    DisasterDefinition("invasion", "Invasion", 4, -4, False, "self"),
    DisasterDefinition("revolt", "Revolt", 5, 0, True, "self"),
)


@dataclass(frozen=True)
class GameSettings:
    players: Tuple[PlayerConfig, ...]
    end_condition: EndCondition = field(default_factory=EndCondition)
    dice_faces: Tuple[DiceFace, ...] = DICE_FACES
    goods_types: Tuple[GoodsType, ...] = GOODS_TYPES
    developments: Tuple[DevelopmentDefinition, ...] = DEVELOPMENTS
    monuments: Tuple[MonumentDefinition, ...] = MONUMENTS
    city_worker_costs: Tuple[int, ...] = CITY_WORKER_COSTS
    disasters: Tuple[DisasterDefinition, ...] = DISASTERS
    max_dice_rolls: int = MAX_DICE_ROLLS
    max_food: int = MAX_FOOD
    max_goods: int = MAX_GOODS
    starting_food: int = STARTING_FOOD
    starting_cities: int = STARTING_CITIES
    max_cities: int = MAX_CITIES

    def goods_type(self, name: str) -> Optional[GoodsType]:
        lowered = name.lower()
        for goods_type in self.goods_types:
            if goods_type.name.lower() == lowered:
                return goods_type
        return None

    def development(self, development_id: str) -> Optional[DevelopmentDefinition]:
        for development in self.developments:
            if development.id == development_id:
                return development
        return None

    def monument(self, monument_id: str) -> Optional[MonumentDefinition]:
        for monument in self.monuments:
            if monument.id == monument_id:
                return monument
        return None

    def city_cost(self, city_index: int) -> int:
        offset = city_index - self.starting_cities
        if 0 <= offset < len(self.city_worker_costs):
            return self.city_worker_costs[offset]
        return 0


def create_game_settings(players: Sequence[PlayerConfig]) -> GameSettings:
    return GameSettings(players=tuple(players))


def goods_value(goods_type: GoodsType, quantity: int) -> int:
    if quantity <= 0:
        return 0
    index = min(quantity - 1, len(goods_type.values) - 1)
    return goods_type.values[index]
