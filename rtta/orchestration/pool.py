from __future__ import annotations

import logging
import os
import time
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

MAX_AUTO_WORKERS = 8
EXECUTORS = ("process", "thread")

Job = Dict[str, Any]
WorkerFn = Callable[[Job], Dict[str, Any]]


@dataclass
class PoolResult:
    results: List[Dict[str, Any]]
    workers: int
    batch_ms: List[float] = field(default_factory=list)
    wall_ms: float = 0.0


def detected_parallelism() -> int:
    return os.cpu_count() or 1


def resolve_worker_count(requested: Union[int, str, None], job_count: int) -> int:
    """Resolve ``requested`` (an int or ``"auto"``) to a usable worker count."""
    if requested is None or requested == "auto":
        workers = min(detected_parallelism(), MAX_AUTO_WORKERS)
    else:
        try:
            workers = int(requested)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"workers must be a positive integer or 'auto', got {requested!r}") from exc
        if workers < 1:
            raise ValueError(f"workers must be a positive integer or 'auto', got {requested!r}")
    return max(1, min(workers, max(1, job_count)))


def partition_round_robin(items: Sequence[Any], workers: int) -> List[List[Tuple[int, Any]]]:
    """Deal ``items`` to ``workers`` batches, keeping each item's position."""
    batches: List[List[Tuple[int, Any]]] = [[] for _ in range(max(1, workers))]
    for index, item in enumerate(items):
        batches[index % len(batches)].append((index, item))
    return [batch for batch in batches if batch]


def run_batch(worker_fn: WorkerFn, batch: List[Tuple[int, Job]]) -> Tuple[List[Tuple[int, Dict[str, Any]]], float]:
    started = time.perf_counter()
    results = [(index, worker_fn(job)) for index, job in batch]
    return results, (time.perf_counter() - started) * 1000.0


def _make_executor(kind: str, workers: int) -> Executor:
    if kind == "process":
        return ProcessPoolExecutor(max_workers=workers)
    if kind == "thread":
        return ThreadPoolExecutor(max_workers=workers)
    raise ValueError(f"Unknown executor {kind!r}; expected one of {', '.join(EXECUTORS)}")


def run_pool(
    jobs: Sequence[Job],
    worker_fn: WorkerFn,
    workers: Union[int, str, None] = "auto",
    executor: str = "process",
) -> PoolResult:
    """Run every job through ``worker_fn`` and return results in job order.

    Jobs and results must be plain picklable data. Each worker walks its batch
    sequentially; the call returns only after every batch has finished, and
    the first worker exception is re-raised here.
    """
    started = time.perf_counter()
    count = resolve_worker_count(workers, len(jobs))
    results: List[Dict[str, Any]] = [{} for _ in jobs]
    batch_ms: List[float] = []
    if not jobs:
        return PoolResult(results=[], workers=count)

    batches = partition_round_robin(jobs, count)
    if count <= 1:
        for batch in batches:
            pairs, elapsed = run_batch(worker_fn, batch)
            batch_ms.append(elapsed)
            for index, result in pairs:
                results[index] = result
    else:
        logger.debug("Dispatching %d jobs to %d %s workers", len(jobs), count, executor)
        with _make_executor(executor, count) as pool:
            futures = [pool.submit(run_batch, worker_fn, batch) for batch in batches]
            for future in futures:
                pairs, elapsed = future.result()
                batch_ms.append(elapsed)
                for index, result in pairs:
                    results[index] = result
    return PoolResult(
        results=results,
        workers=count,
        batch_ms=batch_ms,
        wall_ms=(time.perf_counter() - started) * 1000.0,
    )
