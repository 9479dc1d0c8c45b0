# crunch/partitioner.py
"""
Splits a global starting point into equal contiguous blocks, one per worker.

Packet k covers [initial + k*B, initial + (k+1)*B). B must be even so that
every packet starts on an odd seed.
"""
from __future__ import annotations
from datetime import datetime, timedelta
from typing import List, Optional
import secrets
import uuid

from .contracts import WorkPacket, WorkPacketError, utc_now

BLOCK_SIZE = 100_000_000
DEFAULT_INITIAL = (1 << 40) | 1


def new_packet_id() -> str:
    return str(uuid.uuid4())


def new_nonce() -> str:
    return secrets.token_hex(16)


def partition(
    initial: int,
    workers: int,
    block_size: int = BLOCK_SIZE,
    *,
    assigned_on: Optional[datetime] = None,
    ttl: Optional[timedelta] = None,
) -> List[WorkPacket]:
    """Build exactly `workers` non-overlapping packets in increasing order."""
    if not isinstance(workers, int) or workers < 1:
        raise WorkPacketError(f"workers must be >= 1, got {workers!r}")
    if not isinstance(block_size, int) or block_size < 2 or block_size % 2:
        raise WorkPacketError(f"block_size must be an even int >= 2, got {block_size!r}")
    if not isinstance(initial, int) or initial <= 0 or initial % 2 == 0:
        raise WorkPacketError(f"initial must be odd and positive, got {initial!r}")

    assigned_on = assigned_on or utc_now()
    expiry = assigned_on + ttl if ttl is not None else None

    packets: List[WorkPacket] = []
    for k in range(workers):
        start = initial + k * block_size
        packets.append(WorkPacket(
            id=new_packet_id(),
            nonce=new_nonce(),
            starting_value=start,
            ending_value=start + block_size,
            assigned_on=assigned_on,
            expiry=expiry,
        ))
    return packets
