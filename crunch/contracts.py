# crunch/contracts.py
"""
Typed contracts for the range-partitioned Collatz search.
Every unit of work and every report passes through these shapes.

Laws:
  - A WorkPacket never leaves construction unvalidated.
  - Ranges are half-open: [starting_value, ending_value).
  - Packets, evidence and authenticators are immutable once built.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class WorkPacketError(ValueError):
    """Malformed packet or partition request."""


class WorkStatus(str, Enum):
    PENDING = "pending"      # in our work list, not yet started
    RUNNING = "running"      # currently on a worker
    ABANDONED = "abandoned"  # we no longer wish to work on this
    COMPLETED = "completed"  # evidence is final


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class WorkPacket:
    """Immutable range of seeds assigned to one worker."""
    id: str
    nonce: str
    starting_value: int
    ending_value: int
    assigned_on: datetime = field(default_factory=utc_now)
    expiry: Optional[datetime] = None

    def __post_init__(self) -> None:
        for name in ("starting_value", "ending_value"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise WorkPacketError(f"{name} must be an int, got {type(v).__name__}")
        if self.starting_value <= 0 or self.starting_value % 2 == 0:
            raise WorkPacketError(
                f"starting_value must be odd and positive, got {self.starting_value}"
            )
        if self.ending_value < self.starting_value:
            raise WorkPacketError(
                f"ending_value {self.ending_value} < starting_value {self.starting_value}"
            )

    @property
    def candidates(self) -> int:
        """Number of odd seeds in [starting_value, ending_value)."""
        return (self.ending_value - self.starting_value + 1) // 2

    def seeds(self):
        return range(self.starting_value, self.ending_value, 2)


@dataclass(frozen=True)
class WorkEvidence:
    """Proof-of-work statistics. Zero for anything but a completed report."""
    total_iterations: int = 0
    max_iterations: int = 0

    def __post_init__(self) -> None:
        if self.total_iterations < 0 or self.max_iterations < 0:
            raise ValueError("evidence counters must be non-negative")


@dataclass(frozen=True)
class UserCredentials:
    """
    user_secret is the only confidential field. user_secret_version allows
    rotating it while authenticators signed with older secrets stay
    distinguishable.
    """
    user_id: str
    user_secret_version: str
    user_secret: str = field(repr=False)


@dataclass(frozen=True)
class WorkAuthenticator:
    authenticator_version: str
    user_secret_version: str
    authenticator: str


@dataclass(frozen=True)
class NodeInfo:
    """Host and CPU description, embedded as-is in reports."""
    host_info: Dict[str, Any]
    cpu_info: List[Dict[str, Any]]
    workers: int


@dataclass(frozen=True)
class BlockResult:
    """What one Worker Engine returns after scanning its packet."""
    worker_id: int
    packet_id: str
    total_iterations: int
    max_iterations: int
    interesting: Tuple[int, ...]
    candidates: int
    started_on: datetime
    completed_on: datetime

    @property
    def evidence(self) -> WorkEvidence:
        return WorkEvidence(self.total_iterations, self.max_iterations)


@dataclass(frozen=True)
class WorkProgressReport:
    """
    Status update for one packet. Only COMPLETED carries real evidence;
    every other status carries zero evidence and an authenticator computed
    over the in-progress sentinel.
    """
    work: WorkPacket
    node_info: NodeInfo
    worker_id: int
    status: WorkStatus
    evidence: WorkEvidence
    authenticator: WorkAuthenticator
    started_on: Optional[datetime] = None
    completed_on: Optional[datetime] = None
