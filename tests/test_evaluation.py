import pytest

from rtta.bot import BotMetrics, LookaheadConfig, create_bot_strategy, default_heuristic_config, merge_config
from rtta.core import PlayerConfig, is_game_over
from rtta.evaluation import (
    CandidateResult,
    EvaluationSummary,
    LabeledGame,
    MatchOptions,
    evaluate_candidate,
    game_seed,
    rank_candidate_results,
    run_headless_bot_evaluation,
    run_headless_bot_match,
    summarize_games,
)
from rtta.evaluation.match import TURN_CAP_REASON


def players(count: int = 2):
    return [PlayerConfig(f"p{i + 1}", f"Player {i + 1}") for i in range(count)]


def test_headless_match_completes_without_engine_rejections():
    metrics = BotMetrics()
    result = run_headless_bot_match(players(), seed=3, metrics=metrics)
    assert result.completed
    assert result.stall_reason is None
    assert is_game_over(result.final_game)
    assert set(result.scores) == {"p1", "p2"}
    assert result.winners
    assert result.action_log
    assert metrics.get("apply_errors") == 0
    assert metrics.get("headless.turns") == result.turns_played


def test_headless_match_is_deterministic_for_a_seed():
    first = run_headless_bot_match(players(3), seed=11)
    second = run_headless_bot_match(players(3), seed=11)
    assert first.action_log
    assert first.action_log == second.action_log
    assert first.scores == second.scores
    assert first.turns_played == second.turns_played


def test_match_without_log_records_no_actions():
    result = run_headless_bot_match(players(), seed=11, record_log=False)
    assert result.action_log == []
    assert result.completed


def test_turn_cap_marks_match_incomplete():
    result = run_headless_bot_match(players(), max_turns=2, seed=1)
    assert not result.completed
    assert result.turns_played == 2
    assert result.stall_reason == TURN_CAP_REASON


def test_stalled_turns_are_forced_to_end():
    result = run_headless_bot_match(players(), max_turns=6, max_steps_per_turn=1, seed=1)
    assert not result.completed
    assert result.turns_played == 6
    assert result.stall_reasons
    assert result.stall_reason == result.stall_reasons[0]


def test_match_rejects_bad_player_lists():
    with pytest.raises(ValueError):
        run_headless_bot_match(players(1))
    with pytest.raises(ValueError):
        run_headless_bot_match([PlayerConfig("a", "A"), PlayerConfig("b", "B", controller="human")])


def test_lookahead_bots_play_a_short_match():
    config = LookaheadConfig(depth=1, max_actions_per_node=3, max_evaluations=20)
    strategies = {
        "p1": create_bot_strategy("lookahead", config, strategy_id="look", name="Look"),
    }
    metrics = BotMetrics()
    result = run_headless_bot_match(players(), max_turns=4, strategy_by_player_id=strategies, metrics=metrics)
    assert result.turns_played == 4
    assert metrics.get("lookahead.choose_action_calls") > 0
    assert metrics.get("apply_errors") == 0


def test_round_robin_standings_share_each_win():
    roster = players(2)
    strategies = {
        "p1": create_bot_strategy("heuristic", default_heuristic_config(), strategy_id="x", name="X"),
        "p2": create_bot_strategy("heuristic", default_heuristic_config(), strategy_id="y", name="Y"),
    }
    report = run_headless_bot_evaluation(
        roster,
        rounds=1,
        max_turns=40,
        strategy_by_player_id=strategies,
        participant_key_by_player_id={"p1": "X", "p2": "Y"},
        participant_label_by_key={"X": "Config X"},
        seed=2,
    )
    assert report.total_games == 2
    assert [game.rotation for game in report.games] == [0, 1]
    by_key = {standing.key: standing for standing in report.standings}
    assert by_key["X"].label == "Config X"
    assert by_key["Y"].label == "Y"
    assert by_key["X"].appearances == 2
    assert sum(standing.win_share for standing in report.standings) == pytest.approx(2.0)
    for game in report.games:
        assert sorted(seat.participant_key for seat in game.seats) == ["X", "Y"]


def test_game_seed_depends_on_base_and_round():
    assert game_seed(0, 0) == 0
    assert game_seed(2, 1) == 2 * 1_000_003 + 1_009
    assert game_seed(-2, 1) == game_seed(2, 1)
    assert game_seed(2, 0) != game_seed(2, 1)


def test_summary_counts_incomplete_games_as_ties():
    games = [
        LabeledGame(10, 5, True, 20),
        LabeledGame(5, 10, True, 20),
        LabeledGame(7, 7, True, 20),
        LabeledGame(20, 0, False, 500, round=2, rotation=1, stall_reason=None),
        LabeledGame(9, 1, False, 500, round=3, rotation=0, stall_reason="No legal bot actions available."),
    ]
    summary = summarize_games(games, min_win_rate=0.6, min_vp_delta=3.0)
    assert summary.wins_a == 1
    assert summary.wins_b == 1
    assert summary.ties == 3
    assert summary.decisive_games == 2
    assert summary.wins_a + summary.wins_b + summary.ties == summary.total_games == 5
    assert summary.win_rate_a == 0.5
    assert summary.mean_delta == pytest.approx(28 / 5)
    assert summary.incomplete_games == 2
    assert summary.stall_reasons == {"No legal bot actions available.": 1, "Unknown stall reason": 1}
    assert [(item.round, item.rotation) for item in summary.stall_occurrences] == [(2, 1), (3, 0)]
    assert not summary.clear_margin_for_a


def test_summary_of_no_games_is_empty():
    summary = summarize_games([])
    assert summary.total_games == 0
    assert summary.win_rate_a == 0.0
    assert summary.mean_delta == 0.0


def test_evaluate_candidate_plays_requested_games():
    options = MatchOptions(players=2, max_turns=30, seed=5)
    summary = evaluate_candidate(default_heuristic_config(), default_heuristic_config(), 3, options)
    assert summary.total_games == 3
    assert summary.wins_a + summary.wins_b + summary.ties == 3

    again = evaluate_candidate(default_heuristic_config(), default_heuristic_config(), 3, options)
    assert again.to_dict() == summary.to_dict()
    assert EvaluationSummary.from_dict(summary.to_dict()) == summary

    with pytest.raises(ValueError):
        evaluate_candidate(default_heuristic_config(), default_heuristic_config(), 0, options)


def make_summary(wins_a: int, wins_b: int, mean_delta: float) -> EvaluationSummary:
    decisive = wins_a + wins_b
    return EvaluationSummary(
        wins_a=wins_a,
        wins_b=wins_b,
        decisive_games=decisive,
        win_rate_a=wins_a / decisive if decisive else 0.0,
        mean_delta=mean_delta,
        total_games=decisive,
    )


def test_ranking_uses_final_summary_when_present():
    steady = CandidateResult("1", "steady", "1.json", "heuristic", quick=make_summary(6, 4, 2.0))
    tied_quick = CandidateResult("2", "alpha", "2.json", "heuristic", quick=make_summary(6, 4, 2.0))
    regressed = CandidateResult(
        "3",
        "regressed",
        "3.json",
        "heuristic",
        quick=make_summary(9, 1, 8.0),
        final=make_summary(5, 5, 0.0),
    )
    sharper = CandidateResult("4", "sharper", "4.json", "heuristic", quick=make_summary(6, 4, 5.0))

    ranked = rank_candidate_results([regressed, steady, sharper, tied_quick])
    assert [result.name for result in ranked] == ["sharper", "alpha", "steady", "regressed"]
    assert CandidateResult.from_dict(regressed.to_dict()).final == regressed.final


def test_seatings_of_a_round_share_their_dice():
    roster = players(2)
    report = run_headless_bot_evaluation(roster, rounds=2, max_turns=40, seed=6)
    for first, second in zip(report.games[::2], report.games[1::2]):
        assert first.round == second.round
        assert [seat.score for seat in first.seats] == [seat.score for seat in second.seats]
        assert [seat.participant_key for seat in first.seats] == [
            seat.participant_key for seat in reversed(second.seats)
        ]


def test_baseline_against_itself_splits_evenly():
    options = MatchOptions(players=2, seed=4)
    summary = evaluate_candidate(default_heuristic_config(), default_heuristic_config(), 20, options)
    assert summary.total_games == 20
    assert summary.wins_a == summary.wins_b
    assert summary.decisive_games > 0
    assert summary.win_rate_a == 0.5
    assert summary.mean_delta == 0.0
    assert not summary.clear_margin_for_a


def test_config_that_values_no_production_loses_to_the_baseline():
    zeroed = merge_config(
        "heuristic",
        {"productionWeights": {"workers": 0, "coins": 0, "food": 0, "goods": 0, "skulls": 0}},
    )
    summary = evaluate_candidate(zeroed, default_heuristic_config(), 20, MatchOptions(players=2, seed=9))
    assert summary.total_games == 20
    assert summary.wins_b > summary.wins_a
    assert summary.win_rate_a < 0.35
    assert summary.mean_delta < 0
    assert summary.avg_score_a < summary.avg_score_b
    assert not summary.clear_margin_for_a


def test_stalled_games_in_an_evaluation_are_reported():
    options = MatchOptions(players=2, max_turns=6, max_steps_per_turn=1, seed=3)
    summary = evaluate_candidate(default_heuristic_config(), default_heuristic_config(), 4, options)
    assert summary.total_games == 4
    assert summary.incomplete_games == 4
    assert summary.ties == 4
    assert summary.decisive_games == 0
    assert sum(summary.stall_reasons.values()) == 4
    assert len(summary.stall_occurrences) == 4
