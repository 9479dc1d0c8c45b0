"""
Progress and diagnostic output.

Every line goes to stdout, flushed, so interleaved worker processes stay
readable. Output is advisory: a broken stdout never stops a scan.
"""
from __future__ import annotations

from typing import Callable

Emitter = Callable[[str], None]


def emit(line: str) -> None:
    try:
        print(line, flush=True)
    except (OSError, ValueError):
        # closed or broken pipe
        pass


def calc_rate(start: int, current: int, t_start: float, t_now: float) -> float:
    """Integers processed per second between start and current."""
    duration = t_now - t_start
    if duration <= 0:
        return 0.0
    return float(current - start) / duration


def banner(title: str, rows: list, width: int = 46) -> None:
    emit(f"+{'=' * width}+")
    emit(f"|  {title:<{width - 2}}|")
    for r in rows:
        emit(f"|  {r:<{width - 2}}|")
    emit(f"+{'=' * width}+")


