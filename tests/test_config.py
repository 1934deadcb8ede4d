import json

import pytest

from rtta.bot import ConfigError, HeuristicConfig, LookaheadConfig, config_to_dict, merge_config
from rtta.orchestration import (
    CandidateFileError,
    LoadedCandidate,
    apply_dimensions,
    list_candidate_files,
    load_baseline,
    parse_candidate_file,
    write_candidate_file,
)


def test_merge_config_overrides_only_given_fields():
    config = merge_config(
        "heuristic",
        {
            "productionWeights": {"food": 5},
            "buildPriority": ["monument", "city"],
            "unknownGroup": {"ignored": True},
        },
    )
    assert isinstance(config, HeuristicConfig)
    assert config.production_weights.food == 5.0
    assert config.production_weights.goods == 6.0
    assert config.build_priority == ["monument", "city"]
    assert config.prefer_exchange_before_development is False


def test_merge_config_rejects_bad_values():
    with pytest.raises(ConfigError):
        merge_config("heuristic", {"productionWeights": {"food": "lots"}})
    with pytest.raises(ConfigError):
        merge_config("heuristic", {"foodPolicyWeights": {"forceRerollOnFoodShortage": 1}})
    with pytest.raises(ConfigError):
        merge_config("heuristic", {"buildPriority": ["castle"]})
    with pytest.raises(ConfigError):
        merge_config("random", {})


def test_merge_lookahead_config_coerces_integers_and_nests_fallback():
    config = merge_config(
        "lookahead",
        {
            "depth": 3.0,
            "utilityWeights": {"scoreTotal": 30},
            "heuristicFallbackConfig": {"productionWeights": {"skulls": -12}},
        },
    )
    assert isinstance(config, LookaheadConfig)
    assert config.depth == 3
    assert isinstance(config.depth, int)
    assert config.utility_weights.score_total == 30.0
    assert config.heuristic_fallback_config.production_weights.skulls == -12.0
    assert merge_config("lookahead", config_to_dict(config)) == config


def test_candidate_record_file(tmp_path):
    config = apply_dimensions("heuristic", ["foodAggressive"])
    path = write_candidate_file(tmp_path / "7.json", 7, "foodAggressive", config, ["foodAggressive"])

    payload = json.loads(path.read_text())
    assert set(payload) == {"id", "name", "botType", "dimensions", "config"}

    candidate = parse_candidate_file(path)
    assert candidate.id == "7"
    assert candidate.name == "foodAggressive"
    assert candidate.bot_type == "heuristic"
    assert candidate.dimensions == ["foodAggressive"]
    assert candidate.config == config
    assert candidate.source == str(path.resolve())


def test_raw_config_file_falls_back_to_heuristic(tmp_path):
    path = tmp_path / "cfg-001-foodAggressive.json"
    path.write_text(json.dumps({"productionWeights": {"food": 3.2}}))

    candidate = parse_candidate_file(path)
    assert candidate.id == "cfg-001-foodAggressive"
    assert candidate.name == "cfg-001-foodAggressive"
    assert candidate.bot_type == "heuristic"
    assert candidate.config.production_weights.food == 3.2
    assert candidate.dimensions == []


def test_unreadable_candidate_files(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(CandidateFileError):
        parse_candidate_file(broken)

    wrong = tmp_path / "wrong.json"
    wrong.write_text(json.dumps({"id": 1, "name": "x", "botType": "random", "config": {}}))
    with pytest.raises(CandidateFileError):
        parse_candidate_file(wrong)

    with pytest.raises(CandidateFileError):
        parse_candidate_file(tmp_path / "missing.json")


def test_lookahead_candidate_survives_job_payload(tmp_path):
    config = apply_dimensions("lookahead", ["lookaheadDeeper", "goodsAggressive"])
    path = write_candidate_file(tmp_path / "3.json", 3, "deep", config, ["goodsAggressive", "lookaheadDeeper"])
    candidate = parse_candidate_file(path)
    assert candidate.bot_type == "lookahead"

    rebuilt = LoadedCandidate.from_job_dict(json.loads(json.dumps(candidate.to_job_dict())))
    assert rebuilt.config == candidate.config
    assert rebuilt.dimensions == candidate.dimensions


def test_standard_baseline_and_listing(tmp_path):
    baseline = load_baseline()
    assert baseline.id == "standard"
    assert baseline.name == "heuristic-standard"
    assert baseline.config == HeuristicConfig()
    assert load_baseline(bot_type="lookahead").config == LookaheadConfig()

    (tmp_path / "b.json").write_text("{}")
    (tmp_path / "a.json").write_text("{}")
    (tmp_path / "notes.txt").write_text("skip")
    assert [path.name for path in list_candidate_files(tmp_path)] == ["a.json", "b.json"]

    with pytest.raises(CandidateFileError):
        list_candidate_files(tmp_path / "absent")
