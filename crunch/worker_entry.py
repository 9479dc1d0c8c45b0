# crunch/worker_entry.py
"""
Worker engine: a "dumb" producer.

Scans every odd seed of one packet, accumulates evidence and the seeds that
cycled back to themselves. The worker never touches another worker's state;
it hands a BlockResult back to whoever started it.
"""
from __future__ import annotations
from typing import List
import time

from .contracts import BlockResult, WorkPacket, utc_now
from .stepper import DEFAULT_STEPPER, StepperConfig, iterate
from .telemetry import Emitter, calc_rate, emit as default_emit

PROGRESS_EVERY = 10_000_000


def run_block(
    packet: WorkPacket,
    worker_id: int,
    stepper: StepperConfig = DEFAULT_STEPPER,
    progress_every: int = PROGRESS_EVERY,
    emit: Emitter = default_emit,
) -> BlockResult:
    """
    Scan [packet.starting_value, packet.ending_value) in steps of 2.

    Progress lines are emitted every `progress_every` seeds and never affect
    the result.
    """
    if progress_every < 1:
        raise ValueError(f"progress_every must be >= 1, got {progress_every}")

    started_on = utc_now()
    t_start = time.monotonic()
    start = packet.starting_value
    end = packet.ending_value

    total_iterations = 0
    max_iterations = 0
    interesting: List[int] = []
    counter = 0
    current = start

    while current < end:
        counter += 1
        if counter == progress_every:
            rate = calc_rate(start, current, t_start, time.monotonic())
            emit(f"{worker_id:04d}: bitlen {current.bit_length()} testing {current}, "
                 f"totalIterations {total_iterations}, rate {rate:.5f}")
            counter = 0

        found, count = iterate(current, stepper, emit)
        total_iterations += count
        if count > max_iterations:
            max_iterations = count
        if found:
            interesting.append(current)
        current += 2

    rate = calc_rate(start, end, t_start, time.monotonic())
    last = current - 2 if current > start else None
    emit(f"{worker_id:04d}: Block completed.")
    emit(f"{worker_id:04d}:    Starting: {start}")
    emit(f"{worker_id:04d}:      Ending: {end}")
    emit(f"{worker_id:04d}:        last: {last}")
    emit(f"{worker_id:04d}:        Rate: {rate:.5f}")
    emit(f"{worker_id:04d}: Interesting: {interesting}")

    return BlockResult(
        worker_id=worker_id,
        packet_id=packet.id,
        total_iterations=total_iterations,
        max_iterations=max_iterations,
        interesting=tuple(interesting),
        candidates=packet.candidates,
        started_on=started_on,
        completed_on=utc_now(),
    )
