#!/usr/bin/env python3
"""Beam search over config dimensions, scored by bot tournaments."""

import argparse
import json
import logging
from pathlib import Path

import yaml

from rtta.orchestration import BeamSearchOptions, run_beam_search


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


def main() -> None:
    parser = argparse.ArgumentParser(description="Search config dimensions with a tournament-scored beam.")
    parser.add_argument("--config", type=str, help="YAML file supplying defaults for the options below")
    parser.add_argument("--out-dir", dest="out_dir", help="Output directory (default: output/bot-beam)")
    parser.add_argument("--bot-type", dest="bot_type", choices=["heuristic", "lookahead"])
    parser.add_argument("--seed", type=int, help="Seed for expansion shuffles (default: 1)")
    parser.add_argument("--iterations", type=int, help="Beam iterations (default: 5)")
    parser.add_argument("--beam-width", dest="beam_width", type=int, help="Candidates kept per iteration (default: 8)")
    parser.add_argument(
        "--children-per-parent", dest="children_per_parent", type=int, help="New expansions per parent (default: 4)"
    )
    parser.add_argument("--players", type=int, help="Tournament player count 2-4 (default: 2)")
    parser.add_argument("--games", type=int, help="Quick games per candidate (default: 20)")
    parser.add_argument("--final-games", dest="final_games", type=int, help="Final games for finalists (default: 20)")
    parser.add_argument("--workers", type=parse_workers, help="Tournament workers (default: auto)")
    parser.add_argument("--executor", choices=["process", "thread"])
    parser.add_argument("--max-turns", dest="max_turns", type=int, help="Max turns per game (default: 500)")
    parser.add_argument("--max-steps-per-turn", dest="max_steps_per_turn", type=int)
    parser.add_argument("--min-win-rate", dest="min_win_rate", type=float)
    parser.add_argument("--min-vp-delta", dest="min_vp_delta", type=float)
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    parser.add_argument(
        "--log-level", dest="log_level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = {}
    if args.config:
        cfg = yaml.safe_load(Path(args.config).read_text()) or {}

    defaults = BeamSearchOptions()
    values = {}
    for name in defaults.__dataclass_fields__:
        value = getattr(args, name, None)
        values[name] = value if value is not None else cfg.get(name, getattr(defaults, name))
    options = BeamSearchOptions(**values)
    try:
        options.validate()
    except ValueError as exc:
        parser.error(str(exc))

    result = run_beam_search(options, progress=not args.no_progress)
    output = {
        "summary": str(result.summary_path),
        "baseline": result.baseline_path,
        "iterations": len(result.iterations),
        "finalBeam": [candidate.path for candidate in result.beam],
        "winner": result.iterations[-1]["winner"] if result.iterations else None,
    }
    print(json.dumps(output, indent=2))


if __name__ == "__main__":
    main()
