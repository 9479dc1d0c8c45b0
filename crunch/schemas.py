"""
Wire shapes for a future coordinator.

Field names follow the coordinator's camelCase JSON. Arbitrary-precision
integers travel as decimal strings; timestamps as ISO-8601 UTC. The user
secret has no wire shape at all.
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .aggregator import SearchSummary
from .contracts import (
    NodeInfo, WorkAuthenticator, WorkEvidence, WorkPacket,
    WorkProgressReport, WorkStatus,
)


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


def _decimal(v: Any) -> str:
    if isinstance(v, bool):
        raise ValueError("expected a decimal integer")
    if isinstance(v, int):
        return str(v)
    if isinstance(v, str) and v.isascii() and v.isdigit():
        return v
    raise ValueError(f"expected a decimal integer, got {v!r}")


class WorkPacketSchema(_Wire):
    id: str
    nonce: str
    starting_value: str = Field(alias="startingValue")
    ending_value: str = Field(alias="endingValue")
    assigned_on: datetime = Field(alias="assignedOn")
    expiry: Optional[datetime] = None

    @field_validator("starting_value", "ending_value", mode="before")
    @classmethod
    def _big_int(cls, v: Any) -> str:
        return _decimal(v)

    @classmethod
    def from_packet(cls, p: WorkPacket) -> "WorkPacketSchema":
        return cls(
            id=p.id,
            nonce=p.nonce,
            starting_value=str(p.starting_value),
            ending_value=str(p.ending_value),
            assigned_on=p.assigned_on,
            expiry=p.expiry,
        )

    def to_packet(self) -> WorkPacket:
        """Raises WorkPacketError when the range is malformed."""
        return WorkPacket(
            id=self.id,
            nonce=self.nonce,
            starting_value=int(self.starting_value),
            ending_value=int(self.ending_value),
            assigned_on=self.assigned_on,
            expiry=self.expiry,
        )


class WorkEvidenceSchema(_Wire):
    total_iterations: int = Field(0, ge=0, alias="totalIterations")
    max_iterations: int = Field(0, ge=0, alias="maxIterations")


class WorkAuthenticatorSchema(_Wire):
    authenticator_version: str = Field(alias="authenticatorVersion")
    user_secret_version: str = Field(alias="userSecretVersion")
    authenticator: str


class NodeInfoSchema(_Wire):
    host_info: Dict[str, Any] = Field(default_factory=dict, alias="hostInfo")
    cpu_info: List[Dict[str, Any]] = Field(default_factory=list, alias="cpuInfo")
    workers: int = Field(ge=1)


class WorkProgressReportSchema(_Wire):
    work: WorkPacketSchema
    node_info: NodeInfoSchema = Field(alias="nodeInfo")
    worker_id: int = Field(alias="workerID")
    status: WorkStatus = WorkStatus.PENDING
    started_on: Optional[datetime] = Field(None, alias="startedOn")
    completed_on: Optional[datetime] = Field(None, alias="completedOn")
    evidence: WorkEvidenceSchema = Field(default_factory=WorkEvidenceSchema)
    authenticator: WorkAuthenticatorSchema

    @classmethod
    def from_report(cls, r: WorkProgressReport) -> "WorkProgressReportSchema":
        return cls(
            work=WorkPacketSchema.from_packet(r.work),
            node_info=NodeInfoSchema(
                host_info=r.node_info.host_info,
                cpu_info=r.node_info.cpu_info,
                workers=r.node_info.workers,
            ),
            worker_id=r.worker_id,
            status=r.status,
            started_on=r.started_on,
            completed_on=r.completed_on,
            evidence=WorkEvidenceSchema(
                total_iterations=r.evidence.total_iterations,
                max_iterations=r.evidence.max_iterations,
            ),
            authenticator=WorkAuthenticatorSchema(
                authenticator_version=r.authenticator.authenticator_version,
                user_secret_version=r.authenticator.user_secret_version,
                authenticator=r.authenticator.authenticator,
            ),
        )

    def to_report(self) -> WorkProgressReport:
        return WorkProgressReport(
            work=self.work.to_packet(),
            node_info=NodeInfo(
                host_info=dict(self.node_info.host_info),
                cpu_info=list(self.node_info.cpu_info),
                workers=self.node_info.workers,
            ),
            worker_id=self.worker_id,
            status=self.status,
            evidence=WorkEvidence(self.evidence.total_iterations, self.evidence.max_iterations),
            authenticator=WorkAuthenticator(
                authenticator_version=self.authenticator.authenticator_version,
                user_secret_version=self.authenticator.user_secret_version,
                authenticator=self.authenticator.authenticator,
            ),
            started_on=self.started_on,
            completed_on=self.completed_on,
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class SearchSummarySchema(_Wire):
    workers: int = Field(ge=0)
    candidates: int = Field(ge=0)
    total_iterations: int = Field(ge=0, alias="totalIterations")
    max_iterations: int = Field(ge=0, alias="maxIterations")
    average_iterations: float = Field(ge=0, alias="averageIterations")
    interesting: List[str] = Field(default_factory=list)

    @field_validator("interesting", mode="before")
    @classmethod
    def _big_ints(cls, v: Any) -> List[str]:
        return [_decimal(x) for x in v]

    @classmethod
    def from_summary(cls, s: SearchSummary) -> "SearchSummarySchema":
        return cls(
            workers=s.workers,
            candidates=s.candidates,
            total_iterations=s.total_iterations,
            max_iterations=s.max_iterations,
            average_iterations=s.average_iterations,
            interesting=list(s.interesting),
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
