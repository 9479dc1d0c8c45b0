# crunch/aggregator.py
"""Joins per-worker BlockResults once every worker has finished."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Tuple

from .contracts import BlockResult
from .telemetry import Emitter, emit as default_emit


@dataclass(frozen=True)
class SearchSummary:
    workers: int
    candidates: int
    total_iterations: int
    max_iterations: int
    interesting: Tuple[int, ...]

    @property
    def average_iterations(self) -> float:
        if self.candidates == 0:
            return 0.0
        return self.total_iterations / self.candidates


def aggregate(results: Iterable[BlockResult]) -> SearchSummary:
    """
    Sum totals, take the max of maxes, concatenate interesting seeds.
    Order across workers follows the input; order within one worker is kept.
    """
    workers = 0
    candidates = 0
    total = 0
    best = 0
    interesting = []
    for r in results:
        workers += 1
        candidates += r.candidates
        total += r.total_iterations
        best = max(best, r.max_iterations)
        interesting.extend(r.interesting)
    return SearchSummary(
        workers=workers,
        candidates=candidates,
        total_iterations=total,
        max_iterations=best,
        interesting=tuple(interesting),
    )


def report(summary: SearchSummary, emit: Emitter = default_emit) -> None:
    emit(f"\n{'=' * 50}")
    emit(f"  WORKERS:     {summary.workers}")
    emit(f"  CANDIDATES:  {summary.candidates}")
    emit(f"  TOTAL ITER:  {summary.total_iterations}")
    emit(f"  MAX ITER:    {summary.max_iterations}")
    emit(f"  AVG/TEST:    {summary.average_iterations:.6f}")
    emit(f"  INTERESTING: {list(summary.interesting)}")
    emit(f"{'=' * 50}")
