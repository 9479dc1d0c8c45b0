from __future__ import annotations

import pytest

from crunch.contracts import (
    BlockResult, UserCredentials, WorkEvidence, WorkPacket, WorkPacketError,
    WorkStatus, utc_now,
)


def test_packet_counts_odd_candidates_half_open():
    p = WorkPacket(id="p", nonce="n", starting_value=3, ending_value=103)
    assert p.candidates == 50
    assert list(p.seeds())[:3] == [3, 5, 7]
    assert list(p.seeds())[-1] == 101


def test_empty_packet_is_allowed():
    p = WorkPacket(id="p", nonce="n", starting_value=7, ending_value=7)
    assert p.candidates == 0
    assert list(p.seeds()) == []


@pytest.mark.parametrize("start, end", [(4, 10), (0, 10), (-1, 10), (11, 9)])
def test_malformed_packets_are_rejected(start, end):
    with pytest.raises(WorkPacketError):
        WorkPacket(id="p", nonce="n", starting_value=start, ending_value=end)


def test_packet_values_must_be_ints():
    with pytest.raises(WorkPacketError):
        WorkPacket(id="p", nonce="n", starting_value=3.0, ending_value=10)


def test_packet_is_immutable():
    p = WorkPacket(id="p", nonce="n", starting_value=3, ending_value=10)
    with pytest.raises(AttributeError):
        p.starting_value = 5


def test_evidence_must_be_non_negative():
    with pytest.raises(ValueError):
        WorkEvidence(total_iterations=-1)


def test_secret_is_not_in_repr():
    c = UserCredentials("u", "v1", "top-secret")
    assert "top-secret" not in repr(c)


def test_status_values():
    assert [s.value for s in WorkStatus] == ["pending", "running", "abandoned", "completed"]


def test_block_result_evidence():
    now = utc_now()
    r = BlockResult(0, "p", 60, 30, (), 10, now, now)
    assert r.evidence == WorkEvidence(60, 30)
