# crunch/orchestrator.py
"""
One search session: partition -> fan out -> join -> aggregate.

Architecture invariants:
  1. ONE PACKET PER WORKER: each worker owns its packet and accumulators.
  2. NO SHARED STATE: workers only ever push one message to the out queue.
  3. SINGLE BARRIER: aggregation starts after every worker has reported.
  4. ALL OR NOTHING: one failed worker fails the session; nothing partial
     is reported.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
import multiprocessing as mp
import queue

from .aggregator import SearchSummary, aggregate, report
from .config import CrunchConfig
from .contracts import BlockResult, NodeInfo, WorkPacket, WorkProgressReport, WorkStatus
from .evidence import build_report
from .partitioner import partition
from .schemas import WorkProgressReportSchema
from .stepper import StepperConfig
from .telemetry import Emitter, emit as default_emit
from .worker_entry import run_block


class SearchFailed(RuntimeError):
    def __init__(self, errors: Dict[int, str]):
        lines = ", ".join(f"worker {w:04d}: {e}" for w, e in sorted(errors.items()))
        super().__init__(f"search failed ({lines})")
        self.errors = errors


def worker_proc(
    worker_id: int,
    packet: WorkPacket,
    stepper: StepperConfig,
    progress_every: int,
    out_q: "mp.Queue",
) -> None:
    """
    Worker process: scans its packet, pushes exactly one message.
    NEVER aggregates. Only pushes to out_q.
    """
    try:
        result = run_block(packet, worker_id, stepper, progress_every, default_emit)
        out_q.put({"kind": "RESULT", "worker_id": worker_id, "result": result})
    except Exception as e:
        out_q.put({"kind": "ERROR", "worker_id": worker_id, "error": repr(e)})


class SearchOrchestrator:
    """
    Single search session over `node.workers` contiguous packets.

    run_mode="process" starts one OS process per packet; "inline" scans the
    same packets one after another in this process.
    """

    def __init__(
        self,
        config: CrunchConfig,
        node: NodeInfo,
        emit: Emitter = default_emit,
        poll_timeout: float = 5.0,
    ):
        self.config = config
        self.node = node
        self.emit = emit
        self.poll_timeout = poll_timeout
        self.packets: List[WorkPacket] = []
        self.results: List[BlockResult] = []

    # ─────────────── planning ───────────────
    def plan(self) -> List[WorkPacket]:
        self.packets = partition(
            self.config.initial,
            self.node.workers,
            self.config.block_size,
            ttl=self.config.packet_ttl,
        )
        for wid, p in enumerate(self.packets):
            self.emit(f"[JOBS] {wid:04d}: [{p.starting_value}, {p.ending_value}) id={p.id}")
        return self.packets

    # ─────────────── execution ───────────────
    def _run_inline(self) -> List[BlockResult]:
        results: List[BlockResult] = []
        for wid, p in enumerate(self.packets):
            try:
                results.append(run_block(
                    p, wid, self.config.stepper, self.config.progress_every, self.emit,
                ))
            except Exception as e:
                raise SearchFailed({wid: repr(e)}) from e
        return results

    def _run_processes(self) -> List[BlockResult]:
        out_q: mp.Queue = mp.Queue()
        procs: Dict[int, mp.Process] = {}
        for wid, packet in enumerate(self.packets):
            p = mp.Process(
                target=worker_proc,
                args=(wid, packet, self.config.stepper, self.config.progress_every, out_q),
                daemon=True,
            )
            p.start()
            procs[wid] = p

        results: Dict[int, BlockResult] = {}
        errors: Dict[int, str] = {}
        pending = set(procs)
        while pending:
            try:
                msg: Dict[str, Any] = out_q.get(timeout=self.poll_timeout)
            except queue.Empty:
                # A worker that died without reporting never will.
                dead = {w for w in pending if not procs[w].is_alive()}
                for w in dead:
                    errors[w] = f"exited with code {procs[w].exitcode} before reporting"
                pending -= dead
                continue

            wid = int(msg["worker_id"])
            pending.discard(wid)
            if msg["kind"] == "RESULT":
                results[wid] = msg["result"]
                self.emit(f"  [EXIT] Worker {wid:04d} finished")
            else:
                errors[wid] = str(msg.get("error", "unknown"))
                self.emit(f"  [FAIL] Worker {wid:04d}: {errors[wid]}")

        for p in procs.values():
            p.join()

        if errors:
            raise SearchFailed(errors)
        return [results[w] for w in sorted(results)]

    def run(self) -> SearchSummary:
        """Blocks until every worker has finished its packet."""
        if not self.packets:
            self.plan()
        if self.config.run_mode == "inline":
            self.results = self._run_inline()
        else:
            self.results = self._run_processes()

        for r in self.results:
            self.emit(f"{r.worker_id:04d}: totalIterations: {r.total_iterations}")
            self.emit(f"{r.worker_id:04d}: found: {list(r.interesting)}")
            avg = r.total_iterations / r.candidates if r.candidates else 0.0
            self.emit(f"{r.worker_id:04d}: Average iterations per test: {avg:.6f}")
            self.emit(f"{r.worker_id:04d}:   max {r.max_iterations}")

        summary = aggregate(self.results)
        report(summary, self.emit)
        return summary

    # ─────────────── evidence ───────────────
    def build_reports(self) -> List[WorkProgressReport]:
        """
        Completed, signed reports for every finished packet; running
        reports for packets still without a result. Empty without
        credentials.
        """
        creds = self.config.credentials
        if creds is None:
            return []
        done = {r.worker_id: r for r in self.results}
        reports: List[WorkProgressReport] = []
        for wid, packet in enumerate(self.packets):
            r: Optional[BlockResult] = done.get(wid)
            if r is None:
                reports.append(build_report(
                    creds, packet, self.node, wid, WorkStatus.RUNNING,
                ))
            else:
                reports.append(build_report(
                    creds, packet, self.node, wid, WorkStatus.COMPLETED,
                    evidence=r.evidence,
                    started_on=r.started_on,
                    completed_on=r.completed_on,
                ))
        return reports

    def emit_reports(self) -> int:
        reports = self.build_reports()
        for rep in reports:
            self.emit("[REPORT] " + WorkProgressReportSchema.from_report(rep).to_json())
        return len(reports)
