import pytest

from rtta.bot import (
    HEURISTIC_STANDARD_BOT,
    BotMetrics,
    BotStrategy,
    BuildCity,
    BuildMonument,
    EndTurn,
    IllegalBotActionError,
    KeepDie,
    LookaheadConfig,
    RerollSingleDie,
    ResolveProduction,
    RollDice,
    SelectProduction,
    apply_bot_action,
    choose_heuristic_action,
    choose_lookahead_action,
    create_bot_strategy,
    default_heuristic_config,
    get_legal_bot_actions,
    merge_config,
    run_bot_step,
    run_bot_turn,
)
from rtta.core import DieState, GamePhase, LockDecision, PlayerConfig, create_game, is_game_over
from rtta.core.rules import auto_advance_forced_phases


def two_player_game(seed: int = 1):
    return create_game([PlayerConfig("p1", "P1"), PlayerConfig("p2", "P2")], seed=seed)


def small_lookahead() -> LookaheadConfig:
    return LookaheadConfig(
        depth=1,
        max_enumerated_roll_dice=2,
        max_chance_outcomes_per_action=36,
        max_actions_per_node=4,
        max_evaluations=40,
    )


class EndTurnAlways(BotStrategy):
    def choose_action(self, game, actions, metrics=None):
        return EndTurn()


def test_every_enumerated_action_is_accepted_by_the_engine():
    for seed in range(3):
        game = two_player_game(seed)
        for _ in range(120):
            if is_game_over(game):
                break
            game = auto_advance_forced_phases(game)
            actions = get_legal_bot_actions(game)
            assert len({action.key() for action in actions}) == len(actions)
            for action in actions:
                applied, _, error = apply_bot_action(game, action)
                assert applied, f"{action.key()} rejected in {game.phase.value}: {error}"
            result = run_bot_step(game, HEURISTIC_STANDARD_BOT)
            game = result.game


def test_end_turn_phase_offers_only_end_turn():
    game = two_player_game().copy()
    game.phase = GamePhase.END_TURN
    assert get_legal_bot_actions(game) == [EndTurn()]


def test_rejected_action_leaves_state_untouched():
    game = two_player_game()
    applied, after, error = apply_bot_action(game, ResolveProduction())
    assert not applied
    assert after is game
    assert error


def test_heuristic_prefers_food_when_starving():
    game = two_player_game().copy()
    game.turn.dice = [
        DieState(2, -1, LockDecision.KEPT),
        DieState(3, 0, LockDecision.KEPT),
        DieState(4, 0, LockDecision.KEPT),
    ]
    game.phase = GamePhase.DECIDE_DICE
    game.active_player.food = 0

    actions = get_legal_bot_actions(game)
    assert actions == [SelectProduction(0, 0), SelectProduction(0, 1)]
    assert choose_heuristic_action(game, actions, default_heuristic_config()) == SelectProduction(0, 0)


def test_heuristic_choice_is_always_legal():
    game = auto_advance_forced_phases(two_player_game(seed=7))
    for _ in range(60):
        actions = get_legal_bot_actions(game)
        if not actions:
            break
        choice = choose_heuristic_action(game, actions, default_heuristic_config())
        assert choice in actions
        _, game, _ = apply_bot_action(game, choice)
        game = auto_advance_forced_phases(game)


def test_lookahead_choice_is_legal_and_deterministic():
    game = auto_advance_forced_phases(two_player_game(seed=3))
    actions = get_legal_bot_actions(game)
    metrics = BotMetrics()

    first = choose_lookahead_action(game, actions, small_lookahead(), metrics=metrics, strategy_id="look")
    second = choose_lookahead_action(game, actions, small_lookahead())
    assert first in actions
    assert first == second
    assert metrics.get("lookahead.choose_action_calls") == 1
    assert metrics.get("lookahead.evaluations") > 0


def test_lookahead_bot_with_heuristic_config_plays_heuristically():
    bot = create_bot_strategy("lookahead", default_heuristic_config(), strategy_id="fallback", name="Fallback")
    game = auto_advance_forced_phases(two_player_game(seed=3))
    actions = get_legal_bot_actions(game)
    metrics = BotMetrics()
    assert bot.choose_action(game, actions, metrics) == choose_heuristic_action(
        game, actions, default_heuristic_config()
    )
    assert metrics.by_strategy["fallback"]["lookahead.heuristic_fallbacks"] == 1


def test_create_bot_strategy_rejects_mismatched_config():
    with pytest.raises(ValueError):
        create_bot_strategy("heuristic", small_lookahead(), strategy_id="x", name="x")
    with pytest.raises(ValueError):
        create_bot_strategy("random", default_heuristic_config(), strategy_id="x", name="x")


def test_run_bot_turn_passes_play():
    game = two_player_game(seed=2)
    metrics = BotMetrics()
    result = run_bot_turn(game, HEURISTIC_STANDARD_BOT, metrics=metrics, actor="p1")
    assert result.completed_turn
    assert result.game.active_player.id == "p2"
    assert result.steps == len(result.traces)
    assert metrics.get("turns_completed") == 1
    assert metrics.get("apply_errors") == 0
    assert metrics.by_actor["p1"]["run_bot_turn_calls"] == 1


def test_run_bot_turn_is_deterministic():
    first = run_bot_turn(two_player_game(seed=4), HEURISTIC_STANDARD_BOT)
    second = run_bot_turn(two_player_game(seed=4), HEURISTIC_STANDARD_BOT)
    assert [t.applied_action for t in first.traces] == [t.applied_action for t in second.traces]
    assert first.game.players[0] == second.game.players[0]


def test_run_bot_turn_reports_stall_when_steps_run_out():
    game = two_player_game().copy()
    game.turn.dice = [DieState(3), DieState(4), DieState(5)]
    game.turn.rolls_used = 1
    result = run_bot_turn(game, HEURISTIC_STANDARD_BOT, max_steps=1)
    assert not result.completed_turn
    assert result.steps == 1
    assert result.game.active_player.id == "p1"
    assert isinstance(result.traces[0].applied_action, (RollDice, KeepDie))


def test_strategy_answering_outside_legal_set_is_a_bug():
    game = two_player_game().copy()
    game.turn.dice = [DieState(3), DieState(4), DieState(5)]
    with pytest.raises(IllegalBotActionError):
        run_bot_turn(game, EndTurnAlways("rogue", "Rogue"))


def test_metrics_merge_and_snapshot():
    first = BotMetrics()
    first.record("actions_applied", strategy_id="a", actor="p1")
    second = BotMetrics()
    second.record("actions_applied", 2, strategy_id="a")
    second.record("custom.counter")

    first.merge(second)
    snapshot = first.snapshot()
    assert snapshot["totals"]["actions_applied"] == 3
    assert snapshot["totals"]["turns_stalled"] == 0
    assert snapshot["totals"]["custom.counter"] == 1
    assert snapshot["byStrategy"]["a"]["actions_applied"] == 3
    assert snapshot["byActor"]["p1"]["actions_applied"] == 1


def zeroed_production_config():
    return merge_config(
        "heuristic",
        {"productionWeights": {"workers": 0, "coins": 0, "food": 0, "goods": 0, "skulls": 0}},
    )


def rolling_game(dice, developments=()):
    game = two_player_game().copy()
    game.phase = GamePhase.ROLL_DICE
    game.turn.rolls_used = 1
    game.turn.dice = dice
    game.active_player.developments.extend(developments)
    return game


def building_game(round_number=1, workers=3):
    game = two_player_game().copy()
    game.phase = GamePhase.BUILD
    game.round = round_number
    game.turn.production.workers = workers
    return game


def test_heuristic_builds_a_city_it_can_complete_early():
    game = building_game()
    actions = get_legal_bot_actions(game)
    assert BuildCity(3) in actions
    assert choose_heuristic_action(game, actions, default_heuristic_config()) == BuildCity(3)


def test_heuristic_prefers_monuments_once_cities_cannot_pay_off():
    game = building_game(round_number=10)
    actions = get_legal_bot_actions(game)
    assert choose_heuristic_action(game, actions, default_heuristic_config()) == BuildMonument("stepPyramid")


def test_config_without_production_weights_skips_cities():
    game = building_game()
    actions = get_legal_bot_actions(game)
    assert choose_heuristic_action(game, actions, zeroed_production_config()) == BuildMonument("stepPyramid")


def test_heuristic_keeps_dice_above_the_average_face():
    game = rolling_game([DieState(4), DieState(3), DieState(0)])
    actions = get_legal_bot_actions(game)
    assert actions == [RollDice(), KeepDie(0), KeepDie(1), KeepDie(2)]
    assert choose_heuristic_action(game, actions, default_heuristic_config()) == KeepDie(0)
    assert choose_heuristic_action(game, actions, zeroed_production_config()) == RollDice()


def test_production_weights_steer_the_choice_of_option():
    game = two_player_game().copy()
    game.turn.dice = [
        DieState(2, -1, LockDecision.KEPT),
        DieState(4, 0, LockDecision.KEPT),
        DieState(4, 0, LockDecision.KEPT),
    ]
    game.phase = GamePhase.DECIDE_DICE
    game.active_player.food = 1
    actions = get_legal_bot_actions(game)

    assert choose_heuristic_action(game, actions, default_heuristic_config()) == SelectProduction(0, 0)
    workers_first = merge_config("heuristic", {"productionWeights": {"workers": 40}})
    assert choose_heuristic_action(game, actions, workers_first) == SelectProduction(0, 1)


def test_leadership_reroll_is_not_spent_on_good_dice():
    game = rolling_game(
        [DieState(4, 0, LockDecision.KEPT), DieState(3), DieState(5)],
        developments=["leadership"],
    )
    actions = get_legal_bot_actions(game)
    assert RerollSingleDie(1) in actions
    assert choose_heuristic_action(game, actions, default_heuristic_config()) == KeepDie(1)


def test_leadership_rerolls_the_weakest_locked_die():
    game = rolling_game(
        [DieState(2, 0, LockDecision.KEPT), DieState(4, 0, LockDecision.KEPT), DieState(3, 0, LockDecision.KEPT)],
        developments=["leadership"],
    )
    actions = get_legal_bot_actions(game)
    assert actions == [RerollSingleDie(0), RerollSingleDie(1), RerollSingleDie(2)]
    assert choose_heuristic_action(game, actions, default_heuristic_config()) == RerollSingleDie(0)


def test_forced_reroll_falls_on_the_least_damaging_die():
    game = rolling_game(
        [DieState(4, 0, LockDecision.KEPT), DieState(4, 0, LockDecision.KEPT), DieState(3, 0, LockDecision.KEPT)],
        developments=["leadership"],
    )
    actions = get_legal_bot_actions(game)
    assert choose_heuristic_action(game, actions, default_heuristic_config()) == RerollSingleDie(2)
