from __future__ import annotations

import base64
import dataclasses

import pytest

from crunch.contracts import (
    UserCredentials, WorkAuthenticator, WorkEvidence, WorkPacket, WorkStatus,
)
from crunch.evidence import (
    AUTHENTICATOR_VERSION, IN_PROGRESS, UnknownAuthenticatorVersion,
    authenticate, build_report, canonical_string, verify,
)


@pytest.fixture
def packet():
    start = (1 << 40) + 1
    return WorkPacket(id="id-of-packet", nonce="nonce-of-packet",
                      starting_value=start, ending_value=start + 100)


def test_canonical_string_layout(creds, packet):
    s = canonical_string(creds, packet, WorkEvidence(60, 30))
    assert s == ("id-of-packet:nonce-of-packet:1099511627777:1099511627877:"
                 "user-1:s1:hunter2:60:30")


def test_in_progress_marker_replaces_counters(creds, packet):
    s = canonical_string(creds, packet, IN_PROGRESS)
    assert s.endswith(":hunter2:in-progress")


def test_authenticator_shape(creds, packet):
    auth = authenticate(creds, packet, WorkEvidence(60, 30))
    assert auth.authenticator_version == AUTHENTICATOR_VERSION == "v1-blake3"
    assert auth.user_secret_version == "s1"
    assert len(base64.b64decode(auth.authenticator)) == 32


def test_authenticator_is_deterministic(creds, packet):
    ev = WorkEvidence(60, 30)
    assert authenticate(creds, packet, ev) == authenticate(creds, packet, ev)


@pytest.mark.parametrize("change", [
    lambda c, p, e: (c, p, WorkEvidence(e.total_iterations + 1, e.max_iterations)),
    lambda c, p, e: (c, p, WorkEvidence(e.total_iterations, e.max_iterations + 1)),
    lambda c, p, e: (c, dataclasses.replace(p, nonce="other"), e),
    lambda c, p, e: (c, dataclasses.replace(p, id="other"), e),
    lambda c, p, e: (c, dataclasses.replace(p, ending_value=p.ending_value + 2), e),
    lambda c, p, e: (dataclasses.replace(c, user_secret="other"), p, e),
    lambda c, p, e: (dataclasses.replace(c, user_id="other"), p, e),
    lambda c, p, e: (dataclasses.replace(c, user_secret_version="s2"), p, e),
])
def test_any_field_change_changes_digest(creds, packet, change):
    ev = WorkEvidence(60, 30)
    base = authenticate(creds, packet, ev).authenticator
    assert authenticate(*change(creds, packet, ev)).authenticator != base


def test_in_progress_differs_from_zero_evidence(creds, packet):
    a = authenticate(creds, packet, IN_PROGRESS)
    b = authenticate(creds, packet, WorkEvidence(0, 0))
    assert a.authenticator != b.authenticator


def test_unknown_evidence_marker_rejected(creds, packet):
    with pytest.raises(TypeError):
        authenticate(creds, packet, "done")


def test_verify_round_trip(creds, packet):
    ev = WorkEvidence(60, 30)
    auth = authenticate(creds, packet, ev)
    assert verify(creds, packet, ev, auth)
    assert not verify(creds, packet, WorkEvidence(61, 30), auth)


def test_verify_rejects_rotated_secret(creds, packet):
    ev = WorkEvidence(60, 30)
    auth = authenticate(creds, packet, ev)
    rotated = UserCredentials(creds.user_id, "s2", creds.user_secret)
    assert not verify(rotated, packet, ev, auth)


def test_verify_unknown_version(creds, packet):
    auth = WorkAuthenticator("v9-md5", "s1", "AAAA")
    with pytest.raises(UnknownAuthenticatorVersion):
        verify(creds, packet, WorkEvidence(), auth)


def test_completed_report_signs_evidence(creds, packet, node):
    ev = WorkEvidence(60, 30)
    rep = build_report(creds, packet, node, 1, WorkStatus.COMPLETED, evidence=ev)
    assert rep.status is WorkStatus.COMPLETED
    assert rep.evidence == ev
    assert rep.authenticator == authenticate(creds, packet, ev)


@pytest.mark.parametrize("status", ["pending", "running", "abandoned"])
def test_non_completed_reports_use_placeholder(creds, packet, node, status):
    rep = build_report(creds, packet, node, 0, status, evidence=WorkEvidence(60, 30))
    assert rep.status.value == status
    assert rep.evidence == WorkEvidence(0, 0)
    assert rep.completed_on is None
    assert rep.authenticator == authenticate(creds, packet, IN_PROGRESS)


def test_completed_report_needs_evidence(creds, packet, node):
    with pytest.raises(ValueError):
        build_report(creds, packet, node, 0, WorkStatus.COMPLETED)
