# crunch/evidence.py
"""
Work authenticators.

An authenticator binds a packet, the performer's credentials and the
resulting evidence:

    id:nonce:start:end:user_id:user_secret_version:user_secret:total:max

hashed with BLAKE3-256 over UTF-8 and base64 encoded. Non-completed reports
replace `total:max` with the literal `in-progress` so they can never collide
with a completed one.

The version string lets a verifier dispatch to the right scheme once it
evolves.
"""
from __future__ import annotations
from datetime import datetime
from typing import Callable, Dict, Optional, Union
import base64
import hmac

import blake3

from .contracts import (
    NodeInfo, UserCredentials, WorkAuthenticator, WorkEvidence,
    WorkPacket, WorkProgressReport, WorkStatus,
)

AUTHENTICATOR_VERSION = "v1-blake3"
IN_PROGRESS = "in-progress"

EvidenceLike = Union[WorkEvidence, str]


class UnknownAuthenticatorVersion(ValueError):
    pass


def _evidence_field(evidence: EvidenceLike) -> str:
    if isinstance(evidence, WorkEvidence):
        return f"{evidence.total_iterations}:{evidence.max_iterations}"
    if evidence == IN_PROGRESS:
        return IN_PROGRESS
    raise TypeError(f"evidence must be WorkEvidence or {IN_PROGRESS!r}, got {evidence!r}")


def canonical_string(
    credentials: UserCredentials,
    packet: WorkPacket,
    evidence: EvidenceLike,
) -> str:
    return ":".join((
        packet.id,
        packet.nonce,
        str(packet.starting_value),
        str(packet.ending_value),
        credentials.user_id,
        credentials.user_secret_version,
        credentials.user_secret,
        _evidence_field(evidence),
    ))


def _digest_v1(credentials: UserCredentials, packet: WorkPacket, evidence: EvidenceLike) -> str:
    s = canonical_string(credentials, packet, evidence)
    digest = blake3.blake3(s.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


SCHEMES: Dict[str, Callable[[UserCredentials, WorkPacket, EvidenceLike], str]] = {
    AUTHENTICATOR_VERSION: _digest_v1,
}


def authenticate(
    credentials: UserCredentials,
    packet: WorkPacket,
    evidence: EvidenceLike,
) -> WorkAuthenticator:
    """Deterministic: identical inputs always give an identical authenticator."""
    return WorkAuthenticator(
        authenticator_version=AUTHENTICATOR_VERSION,
        user_secret_version=credentials.user_secret_version,
        authenticator=_digest_v1(credentials, packet, evidence),
    )


def verify(
    credentials: UserCredentials,
    packet: WorkPacket,
    evidence: EvidenceLike,
    auth: WorkAuthenticator,
) -> bool:
    scheme = SCHEMES.get(auth.authenticator_version)
    if scheme is None:
        raise UnknownAuthenticatorVersion(auth.authenticator_version)
    if auth.user_secret_version != credentials.user_secret_version:
        return False
    expected = scheme(credentials, packet, evidence)
    return hmac.compare_digest(expected, auth.authenticator)


def build_report(
    credentials: UserCredentials,
    packet: WorkPacket,
    node_info: NodeInfo,
    worker_id: int,
    status: WorkStatus,
    evidence: Optional[WorkEvidence] = None,
    started_on: Optional[datetime] = None,
    completed_on: Optional[datetime] = None,
) -> WorkProgressReport:
    """Only COMPLETED reports carry (and sign) real evidence."""
    status = WorkStatus(status)
    if status is WorkStatus.COMPLETED:
        if evidence is None:
            raise ValueError("a completed report needs evidence")
        auth = authenticate(credentials, packet, evidence)
    else:
        evidence = WorkEvidence()
        auth = authenticate(credentials, packet, IN_PROGRESS)
        completed_on = None
    return WorkProgressReport(
        work=packet,
        node_info=node_info,
        worker_id=worker_id,
        status=status,
        evidence=evidence,
        authenticator=auth,
        started_on=started_on,
        completed_on=completed_on,
    )
