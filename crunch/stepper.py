# crunch/stepper.py
"""
Single-seed Collatz stepper.

Runs n -> n/2 (even) or n -> 3n+1 (odd) from n = seed until the trajectory
drops below the seed (normal) or lands exactly on it (a cycle). Python ints
are arbitrary precision, so the 3n+1 step never overflows.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from .telemetry import Emitter, emit as default_emit

TRIVIAL_CYCLE_SEED = 1


class IterationLimitExceeded(RuntimeError):
    def __init__(self, seed: int, limit: int):
        super().__init__(f"seed {seed} did not settle within {limit} iterations")
        self.seed = seed
        self.limit = limit


@dataclass(frozen=True)
class StepperConfig:
    # Seed 1 always returns to itself through 4 -> 2 -> 1.
    ignore_trivial_cycle: bool = True
    max_iterations: Optional[int] = None


DEFAULT_STEPPER = StepperConfig()


def iterate(
    seed: int,
    config: StepperConfig = DEFAULT_STEPPER,
    emit: Emitter = default_emit,
) -> Tuple[bool, int]:
    """
    Returns (interesting, iterations).

    interesting is True only when the trajectory comes back to exactly
    `seed` before going below it. iterations counts every transition
    applied, including the one that ended the walk, so it is always >= 1.
    """
    if not isinstance(seed, int) or isinstance(seed, bool) or seed <= 0 or not seed & 1:
        raise ValueError(f"seed must be a positive odd int, got {seed!r}")

    limit = config.max_iterations
    n = seed
    count = 0
    while True:
        count += 1
        if n & 1:
            n = 3 * n + 1
        else:
            n >>= 1
        if n == seed:
            if config.ignore_trivial_cycle and seed == TRIVIAL_CYCLE_SEED:
                return False, count
            emit(f"Found a loop back to starting value: {n}")
            return True, count
        if n < seed:
            return False, count
        if limit is not None and count >= limit:
            raise IterationLimitExceeded(seed, limit)
