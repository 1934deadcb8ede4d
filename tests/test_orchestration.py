import json

import pytest

from rtta.orchestration import (
    BeamSearchOptions,
    TournamentOptions,
    apply_dimensions,
    load_baseline,
    ordered_dimension_ids,
    parse_candidate_file,
    partition_round_robin,
    resolve_worker_count,
    run_beam_search,
    run_pool,
    run_tournament,
    seeded_shuffle,
    write_candidate_file,
    write_tournament_output,
    xorshift32,
)
from rtta.orchestration import beam as beam_module
from rtta.orchestration.beam import SUMMARY_FILE, expansion_seed
from rtta.orchestration.candidate_files import power_set_file_name


def double(job):
    return {"value": job["value"] * 2}


def explode(job):
    if job["value"] == 3:
        raise RuntimeError("worker failed")
    return {"value": job["value"]}


def test_resolve_worker_count():
    assert resolve_worker_count("auto", 1) == 1
    assert 1 <= resolve_worker_count("auto", 100) <= 8
    assert resolve_worker_count(4, 2) == 2
    assert resolve_worker_count(3, 0) == 1
    with pytest.raises(ValueError):
        resolve_worker_count(0, 5)
    with pytest.raises(ValueError):
        resolve_worker_count("many", 5)


def test_partition_round_robin_keeps_positions():
    assert partition_round_robin(list("abcde"), 2) == [
        [(0, "a"), (2, "c"), (4, "e")],
        [(1, "b"), (3, "d")],
    ]
    assert len(partition_round_robin(["x", "y"], 4)) == 2


@pytest.mark.parametrize("workers", [1, 3])
def test_run_pool_returns_results_in_job_order(workers):
    jobs = [{"value": value} for value in range(7)]
    pool = run_pool(jobs, double, workers=workers, executor="thread")
    assert [result["value"] for result in pool.results] == [value * 2 for value in range(7)]
    assert pool.workers == workers
    assert len(pool.batch_ms) == workers


def test_run_pool_propagates_worker_errors():
    jobs = [{"value": value} for value in range(5)]
    with pytest.raises(RuntimeError):
        run_pool(jobs, explode, workers=2, executor="thread")


def test_run_pool_rejects_unknown_executor():
    with pytest.raises(ValueError):
        run_pool([{"value": 1}, {"value": 2}], double, workers=2, executor="fiber")


def test_tournament_quick_and_final_rounds(tmp_path):
    paths = [
        write_candidate_file(tmp_path / f"{index}.json", index, name, apply_dimensions("heuristic", [name]))
        for index, name in enumerate(["goodsAggressive", "skullAverse"], start=1)
    ]
    options = TournamentOptions(games=2, final_games=3, top=1, max_turns=20, workers=2, executor="thread", seed=4)
    outcome = run_tournament(paths, load_baseline(), options)

    assert len(outcome.results) == 2
    finalists = [result for result in outcome.results if result.final is not None]
    assert len(finalists) == 1
    assert finalists[0].final.total_games == 3
    assert all(result.quick.total_games == 2 for result in outcome.results)
    assert outcome.winner is outcome.results[0]
    assert outcome.profile.evaluate_single_game_calls == 7
    assert outcome.profile.games_simulated == 8

    target = write_tournament_output(tmp_path / "out" / "results.json", options, outcome, {"candidatesDir": "x"})
    payload = json.loads(target.read_text())
    assert set(payload) == {"options", "generatedAt", "results", "profile"}
    assert payload["options"]["finalGames"] == 3
    assert payload["options"]["candidatesDir"] == "x"
    assert [item["name"] for item in payload["results"]] == [result.name for result in outcome.results]


def test_tournament_is_reproducible(tmp_path):
    path = write_candidate_file(tmp_path / "1.json", 1, "monumentBias", apply_dimensions("heuristic", ["monumentBias"]))
    options = TournamentOptions(games=2, final_games=2, max_turns=20, workers=1, executor="thread")
    first = run_tournament([path], load_baseline(), options)
    second = run_tournament([path], load_baseline(), options)
    assert first.results[0].quick == second.results[0].quick
    assert first.results[0].final is None


def test_tournament_options_validation(tmp_path):
    with pytest.raises(ValueError):
        TournamentOptions(players=5).validate()
    with pytest.raises(ValueError):
        TournamentOptions(min_win_rate=1.0).validate()
    with pytest.raises(ValueError):
        TournamentOptions(games=0).validate()
    with pytest.raises(ValueError):
        run_tournament([], load_baseline(), TournamentOptions(executor="thread"))


def test_xorshift32_sequence():
    rng = xorshift32(1)
    assert rng() == 270369 / 4294967296
    zero = xorshift32(0)
    assert zero() == 270369 / 4294967296
    values = [rng() for _ in range(100)]
    assert all(0 <= value < 1 for value in values)


def test_seeded_shuffle_is_a_deterministic_permutation():
    items = list(range(10))
    first = seeded_shuffle(items, xorshift32(42))
    second = seeded_shuffle(items, xorshift32(42))
    assert first == second
    assert sorted(first) == items
    assert items == list(range(10))
    assert expansion_seed(1, 2, 3) == 1 + 2 * 10007 + 3 * 7919


def test_beam_search_single_iteration(tmp_path):
    options = BeamSearchOptions(
        out_dir=str(tmp_path / "beam"),
        iterations=1,
        beam_width=1,
        children_per_parent=2,
        games=2,
        final_games=2,
        workers=1,
        executor="thread",
        max_turns=20,
    )
    result = run_beam_search(options)

    iter_dir = tmp_path / "beam" / "iter-1"
    files = sorted(iter_dir.glob("*.json"))
    candidates = [parse_candidate_file(path) for path in files if path.name != "tournament-results.json"]
    assert len(candidates) == 3
    assert sorted(len(candidate.dimensions) for candidate in candidates) == [0, 1, 1]
    assert len({tuple(candidate.dimensions) for candidate in candidates}) == 3

    results = json.loads((iter_dir / "tournament-results.json").read_text())
    assert len(results["results"]) == 3

    summary = json.loads(result.summary_path.read_text())
    assert summary["options"]["beamWidth"] == 1
    assert summary["baselinePath"] == result.baseline_path
    assert summary["iterations"][0]["candidateCount"] == 3
    assert summary["iterations"][0]["winner"]["totalGames"] == 2
    assert len(result.beam) == 1
    assert (tmp_path / "beam" / "baseline" / "0.json").exists()


def test_beam_search_rejects_bad_options(tmp_path):
    with pytest.raises(ValueError):
        run_beam_search(BeamSearchOptions(out_dir=str(tmp_path / "b"), beam_width=0))
    with pytest.raises(ValueError):
        run_beam_search(BeamSearchOptions(out_dir=str(tmp_path / "b"), bot_type="random"))


def small_beam_options(out_dir, **overrides):
    values = dict(
        out_dir=str(out_dir),
        iterations=2,
        beam_width=2,
        children_per_parent=2,
        games=2,
        final_games=2,
        workers=1,
        executor="thread",
        max_turns=12,
    )
    values.update(overrides)
    return BeamSearchOptions(**values)


def test_beam_winner_comes_from_its_iteration_and_beam_stays_narrow(tmp_path):
    result = run_beam_search(small_beam_options(tmp_path / "beam"))

    assert len(result.iterations) == 2
    assert len(result.beam) <= 2
    for record in result.iterations:
        iter_dir = tmp_path / "beam" / f"iter-{record['iteration']}"
        paths = {str(path.resolve()) for path in iter_dir.glob("*.json") if path.name != "tournament-results.json"}
        assert len(paths) == record["candidateCount"]
        assert record["winner"]["path"] in paths
        assert len(record["beam"]) <= 2
        assert {entry["path"] for entry in record["beam"]} <= paths
    assert {candidate.path for candidate in result.beam} <= {
        entry["path"] for entry in result.iterations[-1]["beam"]
    }


def test_beam_summary_is_saved_after_each_iteration(tmp_path, monkeypatch):
    calls = []
    real_run_tournament = beam_module.run_tournament

    def failing_second_iteration(*args, **kwargs):
        calls.append(1)
        if len(calls) == 2:
            raise RuntimeError("tournament crashed")
        return real_run_tournament(*args, **kwargs)

    monkeypatch.setattr(beam_module, "run_tournament", failing_second_iteration)
    with pytest.raises(RuntimeError):
        run_beam_search(small_beam_options(tmp_path / "beam", beam_width=1))

    summary = json.loads((tmp_path / "beam" / SUMMARY_FILE).read_text())
    assert [record["iteration"] for record in summary["iterations"]] == [1]
    assert summary["iterations"][0]["winner"] is not None


def test_power_set_file_names_stay_short():
    assert power_set_file_name(0, []) == "cfg-000-baseline.json"
    assert power_set_file_name(3, ["foodAggressive", "goodsAggressive"]) == (
        "cfg-003-foodAggressive__goodsAggressive.json"
    )

    every = ordered_dimension_ids("heuristic")
    name = power_set_file_name(65535, every)
    assert len(name) < 255
    assert name.startswith("cfg-65535-16dims-")
    assert name != power_set_file_name(65535, every[:-1])
