#!/usr/bin/env python3
"""Rank candidate bot configs against a baseline config."""

import argparse
import logging
from pathlib import Path

import yaml

from rtta.orchestration import (
    CandidateFileError,
    TournamentOptions,
    list_candidate_files,
    load_baseline,
    parse_candidate_file,
    run_tournament,
    write_tournament_output,
)

DEFAULT_OUTPUT = "output/bot-tournament-results.json"


def parse_workers(value: str):
    if value.lower() == "auto":
        return "auto"
    try:
        workers = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"--workers must be a positive integer or 'auto', got {value!r}")
    if workers <= 0:
        raise argparse.ArgumentTypeError("--workers must be a positive integer or 'auto'")
    return workers


def pick(args, cfg, name, default):
    value = getattr(args, name)
    return value if value is not None else cfg.get(name, default)


def format_pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def print_round(title, results, pick_final: bool) -> None:
    print()
    print(title)
    print("Candidate                        WinRateA   VP Delta   AvgA     AvgB     Incomplete")
    print("-" * 79)
    for result in results:
        summary = result.final if pick_final and result.final is not None else result.quick
        incomplete = f"{summary.incomplete_games}/{summary.total_games}"
        print(
            f"{result.name:<31} {format_pct(summary.win_rate_a):>8} {summary.mean_delta:>9.2f} "
            f"{summary.avg_score_a:>8.2f} {summary.avg_score_b:>8.2f} {incomplete:>10}"
        )

    stalled = [
        result
        for result in results
        if (result.final if pick_final and result.final is not None else result.quick).stall_occurrences
    ]
    if stalled:
        print()
        print("Stall Reasons (All Occurrences)")
        for result in stalled:
            summary = result.final if pick_final and result.final is not None else result.quick
            print(f"- {result.name}:")
            for index, stall in enumerate(summary.stall_occurrences, start=1):
                print(f"  {index}. round={stall.round}, rotation={stall.rotation}, reason={stall.reason}")
            for reason, count in summary.stall_reasons.items():
                print(f"  summary: {count}x {reason}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a bot config tournament against a baseline.")
    parser.add_argument("--config", type=str, help="YAML file supplying defaults for the options below")
    parser.add_argument("--candidates-dir", dest="candidates_dir", help="Directory containing candidate *.json configs")
    parser.add_argument("--baseline", help="Baseline config JSON (default: standard heuristic config)")
    parser.add_argument("--players", type=int, help="Player count 2-4 (default: 2)")
    parser.add_argument("--games", type=int, help="Quick games per candidate (default: 20)")
    parser.add_argument("--final-games", dest="final_games", type=int, help="Games per finalist (default: 30)")
    parser.add_argument("--top", type=int, help="Number of finalists (default: 3)")
    parser.add_argument("--max-turns", dest="max_turns", type=int, help="Max turns per game (default: 500)")
    parser.add_argument(
        "--max-steps-per-turn", dest="max_steps_per_turn", type=int, help="Max bot steps per turn (default: 300)"
    )
    parser.add_argument("--min-win-rate", dest="min_win_rate", type=float, help="Clear margin win rate (default: 0.6)")
    parser.add_argument("--min-vp-delta", dest="min_vp_delta", type=float, help="Clear margin VP delta (default: 3)")
    parser.add_argument("--workers", type=parse_workers, help="Worker count or 'auto' (default: auto)")
    parser.add_argument("--executor", choices=["process", "thread"], help="Worker pool kind (default: process)")
    parser.add_argument("--seed", type=int, help="Base seed for game dice (default: 0)")
    parser.add_argument("--output-json", dest="output_json", help=f"Results JSON path (default: {DEFAULT_OUTPUT})")
    parser.add_argument(
        "--log-level", dest="log_level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = {}
    if args.config:
        cfg = yaml.safe_load(Path(args.config).read_text()) or {}

    candidates_dir = pick(args, cfg, "candidates_dir", None)
    if not candidates_dir:
        parser.error("--candidates-dir is required.")
    options = TournamentOptions(
        players=pick(args, cfg, "players", 2),
        games=pick(args, cfg, "games", 20),
        final_games=pick(args, cfg, "final_games", 30),
        top=pick(args, cfg, "top", 3),
        max_turns=pick(args, cfg, "max_turns", 500),
        max_steps_per_turn=pick(args, cfg, "max_steps_per_turn", 300),
        min_win_rate=pick(args, cfg, "min_win_rate", 0.6),
        min_vp_delta=pick(args, cfg, "min_vp_delta", 3.0),
        workers=pick(args, cfg, "workers", "auto"),
        executor=pick(args, cfg, "executor", "process"),
        seed=pick(args, cfg, "seed", 0),
    )
    try:
        options.validate()
    except ValueError as exc:
        parser.error(str(exc))

    try:
        baseline = load_baseline(pick(args, cfg, "baseline", None))
        candidate_files = list_candidate_files(candidates_dir)
        for path in candidate_files:
            parse_candidate_file(path)
    except CandidateFileError as exc:
        parser.error(str(exc))
    if not candidate_files:
        parser.error(f"No .json candidate files found in {Path(candidates_dir).resolve()}.")

    print("=== Bot Config Tournament ===")
    print(f"Candidates directory: {Path(candidates_dir).resolve()}")
    print(f"Baseline: {baseline.source}")
    print(f"Players: {options.players}")
    print(f"Quick games: {options.games}")
    print(f"Final games: {options.final_games}")
    print(f"Top finalists: {options.top}")

    outcome = run_tournament(candidate_files, baseline, options)
    has_final = any(result.final is not None for result in outcome.results)
    quick_ranked = sorted(outcome.results, key=lambda r: (-r.quick.win_rate_a, -r.quick.mean_delta, r.name))
    print_round("Quick Round Ranking", quick_ranked, False)
    if has_final:
        print_round("Final Round Ranking", outcome.results, True)

    winner = outcome.winner
    summary = winner.ranking_summary
    print()
    print(f"Winner: {winner.name}")
    print(f"Clear margin vs baseline: {'Yes' if summary.clear_margin_for_a else 'No'}")
    if summary.stall_occurrences:
        print("Winner run stall reasons:")
        for reason, count in summary.stall_reasons.items():
            print(f"- {count}x {reason}")

    output = write_tournament_output(
        pick(args, cfg, "output_json", DEFAULT_OUTPUT),
        options,
        outcome,
        extra_options={"candidatesDir": str(Path(candidates_dir).resolve()), "baselinePath": baseline.source},
    )
    print(f"Wrote JSON: {output.resolve()}")


if __name__ == "__main__":
    main()
