#!/usr/bin/env python3
"""Write the power set of heuristic dimensions as candidate config files."""

import argparse
import json
import logging
from pathlib import Path

import yaml
from tqdm import tqdm

from rtta.bot.config import ConfigError
from rtta.orchestration.candidate_files import candidate_record, power_set_file_name
from rtta.orchestration.dimensions import apply_dimensions, dimension_power_set, ordered_dimension_ids

MAX_DIMENSIONS = 20


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate heuristic candidate configs from dimension subsets.")
    parser.add_argument("--config", type=str, help="YAML file supplying defaults for the options below")
    parser.add_argument("--out-dir", dest="out_dir", help="Output directory (default: output/bot-candidates)")
    parser.add_argument(
        "--dimensions",
        help="Comma-separated dimension ids to power-set (default: every heuristic dimension)",
    )
    parser.add_argument("--no-baseline", dest="no_baseline", action="store_true", help="Skip cfg-000-baseline.json")
    parser.add_argument("--overwrite", action="store_true", help="Replace existing files")
    parser.add_argument(
        "--log-level", dest="log_level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = {}
    if args.config:
        cfg = yaml.safe_load(Path(args.config).read_text()) or {}

    out_dir = Path(args.out_dir or cfg.get("out_dir", "output/bot-candidates")).resolve()
    raw_dimensions = args.dimensions if args.dimensions is not None else cfg.get("dimensions")
    if raw_dimensions is None:
        dimensions = ordered_dimension_ids("heuristic")
    elif isinstance(raw_dimensions, str):
        dimensions = [item.strip() for item in raw_dimensions.split(",") if item.strip()]
    else:
        dimensions = list(raw_dimensions)
    if not dimensions:
        parser.error("--dimensions must include at least one dimension id.")
    unknown = [item for item in dimensions if item not in ordered_dimension_ids("heuristic")]
    if unknown:
        parser.error(f"Unknown dimensions: {', '.join(unknown)}")
    if len(dimensions) > MAX_DIMENSIONS:
        parser.error("Too many dimensions requested; would generate too many configs.")
    include_baseline = not (args.no_baseline or cfg.get("no_baseline", False))
    overwrite = args.overwrite or cfg.get("overwrite", False)

    out_dir.mkdir(parents=True, exist_ok=True)
    mode = "w" if overwrite else "x"
    written = 0
    total = (1 << len(dimensions)) - (0 if include_baseline else 1)
    try:
        for index, active in tqdm(dimension_power_set(dimensions, include_baseline), total=total, unit="cfg"):
            config = apply_dimensions("heuristic", active)
            name = "+".join(active) if active else "baseline"
            path = out_dir / power_set_file_name(index, active)
            with open(path, mode, encoding="utf-8") as handle:
                handle.write(json.dumps(candidate_record(index, name, config, active), indent=2))
            written += 1
    except FileExistsError as exc:
        parser.error(f"{exc.filename} already exists; pass --overwrite to replace it.")
    except ConfigError as exc:
        parser.error(str(exc))
    except OSError as exc:
        parser.error(f"Cannot write configs to {out_dir}: {exc}")

    print(f"Generated {written} configs in {out_dir}")
    print(f"Dimensions ({len(dimensions)}): {', '.join(dimensions)}")
    print(f"Power-set size (non-empty subsets): {(1 << len(dimensions)) - 1}")


if __name__ == "__main__":
    main()
