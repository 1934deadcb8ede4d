"""Candidate files, worker pool, tournaments and beam search."""

from .beam import BeamSearchOptions, BeamSearchResult, run_beam_search, seeded_shuffle, xorshift32
from .candidate_files import (
    CandidateFileError,
    LoadedCandidate,
    list_candidate_files,
    load_baseline,
    parse_candidate_file,
    write_candidate_file,
)
from .dimensions import DIMENSIONS, apply_dimensions, dimension_key, ordered_dimension_ids
from .pool import partition_round_robin, resolve_worker_count, run_pool
from .tournament import (
    TournamentOptions,
    TournamentOutcome,
    run_tournament,
    tournament_worker,
    write_tournament_output,
)

__all__ = [
    "BeamSearchOptions",
    "BeamSearchResult",
    "run_beam_search",
    "seeded_shuffle",
    "xorshift32",
    "CandidateFileError",
    "LoadedCandidate",
    "list_candidate_files",
    "load_baseline",
    "parse_candidate_file",
    "write_candidate_file",
    "DIMENSIONS",
    "apply_dimensions",
    "dimension_key",
    "ordered_dimension_ids",
    "partition_round_robin",
    "resolve_worker_count",
    "run_pool",
    "TournamentOptions",
    "TournamentOutcome",
    "run_tournament",
    "tournament_worker",
    "write_tournament_output",
]
