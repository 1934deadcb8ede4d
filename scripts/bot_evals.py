#!/usr/bin/env python3
"""Evaluate bot configs: round-robin standings or an A/B pair comparison."""

import argparse
import json
import logging
from pathlib import Path

import yaml

from rtta.bot import BotMetrics, create_bot_strategy
from rtta.core import PlayerConfig
from rtta.evaluation import (
    MatchOptions,
    clear_margin_winner,
    evaluate_candidate,
    run_headless_bot_evaluation,
)
from rtta.orchestration import CandidateFileError, load_baseline, parse_candidate_file


def pick(args, cfg, name, default):
    value = getattr(args, name)
    return value if value is not None else cfg.get(name, default)


def positive(parser, name, value):
    if value <= 0:
        parser.error(f"--{name.replace('_', '-')} must be a positive integer.")
    return value


def run_round_robin(args, cfg, parser, metrics):
    try:
        candidates = [parse_candidate_file(path) for path in pick(args, cfg, "configs", [])]
    except CandidateFileError as exc:
        parser.error(str(exc))
    players_count = pick(args, cfg, "players", len(candidates))
    if not 2 <= players_count <= 4:
        parser.error("--players must be an integer from 2 to 4.")

    players = []
    strategies = {}
    keys = {}
    labels = {}
    for seat in range(players_count):
        candidate = candidates[seat % len(candidates)]
        player = PlayerConfig(id=f"seat-{seat + 1}", name=f"Seat {seat + 1}")
        players.append(player)
        strategies[player.id] = create_bot_strategy(
            candidate.bot_type, candidate.config, strategy_id=f"config-{candidate.id}", name=candidate.name
        )
        keys[player.id] = candidate.source
        labels[candidate.source] = candidate.name

    report = run_headless_bot_evaluation(
        players,
        rounds=positive(parser, "rounds", pick(args, cfg, "rounds", 10)),
        rotate_seats=True,
        max_turns=positive(parser, "max_turns", pick(args, cfg, "max_turns", 500)),
        max_steps_per_turn=positive(parser, "max_steps_per_turn", pick(args, cfg, "max_steps_per_turn", 300)),
        strategy_by_player_id=strategies,
        participant_key_by_player_id=keys,
        participant_label_by_key=labels,
        seed=pick(args, cfg, "seed", 0),
        metrics=metrics,
    )

    print("=== Bot Config Standings ===")
    print(f"Games: {report.total_games}  Players per game: {players_count}")
    print()
    print("Config                           WinShare   AvgVP    TopRate  Games")
    print("-" * 70)
    for standing in report.standings:
        print(
            f"{standing.label:<31} {standing.win_share_rate * 100:>7.1f}% {standing.avg_vp:>8.2f} "
            f"{standing.top_finish_rate * 100:>7.1f}% {standing.appearances:>6}"
        )
    incomplete = [game for game in report.games if not game.completed]
    if incomplete:
        print()
        print(f"Incomplete games: {len(incomplete)}/{report.total_games}")
        print(f"Sample stall reason: {incomplete[0].stall_reason}")
    return {
        "mode": "round-robin",
        "totalGames": report.total_games,
        "standings": [standing.to_dict() for standing in report.standings],
    }


def run_pair(args, cfg, parser, metrics):
    min_win_rate = pick(args, cfg, "min_win_rate", 0.6)
    min_vp_delta = pick(args, cfg, "min_vp_delta", 3.0)
    if not 0 < min_win_rate < 1:
        parser.error("--min-win-rate must be between 0 and 1 (exclusive).")
    if min_vp_delta < 0:
        parser.error("--min-vp-delta must be >= 0.")
    players_count = pick(args, cfg, "players", 2)
    if not 2 <= players_count <= 4:
        parser.error("--players must be an integer from 2 to 4.")
    try:
        config_a = load_baseline(pick(args, cfg, "config_a", None))
        config_b = load_baseline(pick(args, cfg, "config_b", None))
    except CandidateFileError as exc:
        parser.error(str(exc))

    options = MatchOptions(
        players=players_count,
        max_turns=positive(parser, "max_turns", pick(args, cfg, "max_turns", 500)),
        max_steps_per_turn=positive(parser, "max_steps_per_turn", pick(args, cfg, "max_steps_per_turn", 300)),
        min_win_rate=min_win_rate,
        min_vp_delta=min_vp_delta,
        seed=pick(args, cfg, "seed", 0),
    )
    games = positive(parser, "games", pick(args, cfg, "games", 20))
    summary = evaluate_candidate(
        config_a.config,
        config_b.config,
        games,
        options,
        candidate_id=config_a.id,
        candidate_name=config_a.name,
        baseline_id=config_b.id,
        baseline_name=config_b.name,
        metrics=metrics,
    )
    winner = clear_margin_winner(summary, min_win_rate=min_win_rate, min_vp_delta=min_vp_delta)

    print("=== Bot Config Evaluation ===")
    print(f"Games: {summary.total_games}  Players per game: {players_count}")
    print(f"Config A: {config_a.source}")
    print(f"Config B: {config_b.source}")
    print()
    print(f"Wins A: {summary.wins_a}")
    print(f"Wins B: {summary.wins_b}")
    print(f"Ties: {summary.ties}")
    print(f"Win rate A (decisive games): {summary.win_rate_a * 100:.1f}%")
    print(f"Average VP A: {summary.avg_score_a:.2f}")
    print(f"Average VP B: {summary.avg_score_b:.2f}")
    print(f"Mean VP delta (A - B): {summary.mean_delta:.2f}")
    print(f"Average turns: {summary.avg_turns:.2f}")
    print(f"Incomplete games: {summary.incomplete_games}/{summary.total_games}")
    print()
    print(
        f"Clear-margin rule: win rate >= {min_win_rate * 100:.1f}% and |mean VP delta| >= {min_vp_delta:.2f}"
    )
    if winner is None:
        print("Result: No clear-margin winner yet.")
    else:
        print(f"Result: Config {winner} wins by a clear margin.")
    if summary.stall_occurrences:
        print(f"Sample stall reason: {summary.stall_occurrences[0].reason}")
    return {"mode": "pair", "summary": summary.to_dict(), "clearMarginWinner": winner}


def main() -> None:
    parser = argparse.ArgumentParser(description="Evaluate bot configs headlessly.")
    parser.add_argument("--config", type=str, help="YAML file supplying defaults for the options below")
    parser.add_argument("--configs", nargs="+", help="Config files for round-robin standings")
    parser.add_argument("--config-a", dest="config_a", help="Config A for pair mode (default: standard)")
    parser.add_argument("--config-b", dest="config_b", help="Config B for pair mode (default: standard)")
    parser.add_argument("--players", type=int, help="Players per game, 2-4")
    parser.add_argument("--rounds", type=int, help="Round-robin rounds (default: 10)")
    parser.add_argument("--games", type=int, help="Pair mode games (default: 20)")
    parser.add_argument("--max-turns", dest="max_turns", type=int)
    parser.add_argument("--max-steps-per-turn", dest="max_steps_per_turn", type=int)
    parser.add_argument("--min-win-rate", dest="min_win_rate", type=float)
    parser.add_argument("--min-vp-delta", dest="min_vp_delta", type=float)
    parser.add_argument("--seed", type=int)
    parser.add_argument("--instrumentation-json", dest="instrumentation_json", help="Write results and bot metrics")
    parser.add_argument(
        "--log-level", dest="log_level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = {}
    if args.config:
        cfg = yaml.safe_load(Path(args.config).read_text()) or {}

    metrics = BotMetrics()
    if pick(args, cfg, "configs", None):
        output = run_round_robin(args, cfg, parser, metrics)
    else:
        output = run_pair(args, cfg, parser, metrics)

    instrumentation = pick(args, cfg, "instrumentation_json", None)
    if instrumentation:
        output["metrics"] = metrics.snapshot()
        path = Path(instrumentation)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(output, indent=2), encoding="utf-8")
        print(f"Wrote instrumentation: {path.resolve()}")


if __name__ == "__main__":
    main()
