import pytest

from rtta.core import (
    DieState,
    GamePhase,
    LockDecision,
    PlayerConfig,
    RuleError,
    build_city,
    create_game,
    determine_winners,
    discard_goods,
    end_turn,
    is_game_over,
    keep_die,
    perform_roll,
    purchase_development,
    resolve_production_phase,
    score_breakdown,
    select_production,
)
from rtta.core.rules import auto_advance_forced_phases, calculate_dice_production, purchase_error

# Face indices: 0 one good, 1 two goods + skull, 2 food-or-workers,
# 3 three workers, 4 seven coins, 5 three food.


def two_player_game(seed: int = 1):
    return create_game([PlayerConfig("p1", "P1"), PlayerConfig("p2", "P2")], seed=seed)


def with_dice(game, faces, lock=LockDecision.KEPT, phase=GamePhase.DECIDE_DICE):
    game = game.copy()
    game.turn.dice = [
        DieState(face, -1 if face == 2 else 0, LockDecision.SKULL if face == 1 else lock) for face in faces
    ]
    game.phase = phase
    return game


def test_create_game_starts_first_seat_rolling():
    game = two_player_game()
    assert game.phase == GamePhase.ROLL_DICE
    assert game.round == 1
    assert game.active_player.id == "p1"
    assert game.turn.rolls_used == 1
    assert len(game.turn.dice) == 3
    assert game.active_player.food == 3
    assert game.active_player.completed_cities() == 3


def test_create_game_rejects_duplicate_ids():
    with pytest.raises(RuleError):
        create_game([PlayerConfig("p1", "A"), PlayerConfig("p1", "B")])


def test_keep_die_survives_reroll_and_dice_are_seeded():
    game = with_dice(two_player_game(), [3, 4, 5], lock=LockDecision.UNLOCKED, phase=GamePhase.ROLL_DICE)
    game = keep_die(game, 0)
    assert game.turn.dice[0].lock == LockDecision.KEPT

    rolled = perform_roll(game)
    again = perform_roll(game)
    assert rolled.turn.rolls_used == 2
    assert rolled.turn.dice[0].face_index == 3
    assert [die.face_index for die in rolled.turn.dice] == [die.face_index for die in again.turn.dice]
    assert game.turn.rolls_used == 1

    with pytest.raises(RuleError):
        keep_die(rolled, 0)


def test_roll_limit_moves_to_decide_phase():
    game = with_dice(two_player_game(), [3, 4, 5], lock=LockDecision.UNLOCKED, phase=GamePhase.ROLL_DICE)
    game.turn.rolls_used = 2
    game = perform_roll(game)
    assert game.turn.rolls_used == 3
    assert game.phase == GamePhase.DECIDE_DICE
    with pytest.raises(RuleError):
        perform_roll(game)


def test_pending_choice_blocks_resolution_until_selected():
    game = with_dice(two_player_game(), [2, 3, 4])
    assert game.turn.dice[0].choice_pending
    with pytest.raises(RuleError):
        resolve_production_phase(game)

    game = select_production(game, 0, 1)
    assert game.turn.dice[0].production_index == 1
    assert game.turn.pending_choices == 0
    assert calculate_dice_production(game).workers == 5


def test_resolve_production_then_build_city():
    game = with_dice(two_player_game(), [3, 5, 4])
    game = resolve_production_phase(game)
    player = game.active_player
    assert player.food == 3
    assert game.turn.production.workers == 3
    assert game.turn.production.coins == 7
    assert game.phase == GamePhase.BUILD

    game = build_city(game, 3)
    assert game.active_player.cities[3].completed
    assert game.turn.production.workers == 0
    assert game.phase == GamePhase.END_TURN


def test_food_shortage_becomes_penalty():
    game = with_dice(two_player_game(), [4, 4, 4])
    game.active_player.food = 1
    game = resolve_production_phase(game)
    assert game.active_player.food == 0
    assert game.active_player.disaster_penalties == 2
    assert game.turn.food_shortage == 2


def test_two_skulls_bring_drought_to_active_player():
    game = with_dice(two_player_game(), [1, 1, 4])
    game = resolve_production_phase(game)
    player = game.active_player
    assert player.disaster_penalties == 2
    assert player.goods == {"Wood": 1, "Stone": 1, "Ceramic": 1, "Fabric": 1, "Spearhead": 0}
    assert game.phase == GamePhase.DEVELOPMENT


def test_three_skulls_bring_pestilence_to_opponents():
    game = with_dice(two_player_game(), [1, 1, 1])
    game.active_player.food = 6
    game = resolve_production_phase(game)
    assert game.players[0].disaster_penalties == 0
    assert game.players[1].disaster_penalties == 3


def test_purchase_development_spends_coins_and_goods():
    game = resolve_production_phase(with_dice(two_player_game(), [1, 1, 4]))
    assert purchase_error(game, "agriculture", ["Wood"]) is not None
    assert purchase_error(game, "leadership", ["Stone", "Stone"]) is not None

    game = purchase_development(game, "leadership", ["Stone", "Fabric"])
    player = game.active_player
    assert "leadership" in player.developments
    assert game.turn.production.coins == 0
    assert player.goods["Stone"] == 0
    assert player.goods["Fabric"] == 0
    assert player.goods["Wood"] == 1
    assert game.phase == GamePhase.END_TURN

    with pytest.raises(RuleError):
        purchase_development(game, "irrigation", [])


def test_discard_enforces_goods_limit():
    game = two_player_game().copy()
    game.active_player.goods.update({"Wood": 4, "Stone": 3})
    game.phase = GamePhase.DISCARD_GOODS

    with pytest.raises(RuleError):
        discard_goods(game, {"Wood": 4, "Stone": 3})
    kept = discard_goods(game, {"Wood": 4, "Stone": 2})
    assert kept.active_player.goods["Stone"] == 2
    assert kept.phase == GamePhase.END_TURN


def test_end_turn_passes_play_and_counts_rounds():
    game = end_turn(two_player_game())
    assert game.active_player.id == "p2"
    assert game.round == 1
    assert game.turn.rolls_used == 1
    assert len(game.turn.dice) == 3

    game = end_turn(game)
    assert game.active_player.id == "p1"
    assert game.round == 2


def test_game_over_conditions():
    game = two_player_game()
    assert not is_game_over(game)

    late = game.copy()
    late.round = 11
    assert is_game_over(late)

    developed = game.copy()
    developed.players[1].developments = ["leadership", "irrigation", "agriculture", "quarrying", "medicine"]
    assert is_game_over(developed)


def test_score_breakdown_and_winners():
    game = two_player_game().copy()
    player = game.players[0]
    player.monuments["stepPyramid"].completed = True
    player.developments.append("architecture")
    player.disaster_penalties = 1

    breakdown = score_breakdown(game, player)
    assert breakdown == {"monuments": 1, "developments": 8, "bonuses": 2, "penalties": 1, "total": 10}
    assert [winner.id for winner in determine_winners(game)] == ["p1"]


def test_auto_advance_resolves_all_skull_roll():
    game = with_dice(two_player_game(), [1, 1, 1], phase=GamePhase.ROLL_DICE)
    game.active_player.food = 6
    game = auto_advance_forced_phases(game)
    assert game.turn.production.skulls == 3
    assert game.phase in (GamePhase.DEVELOPMENT, GamePhase.END_TURN)
