from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import List, Optional

from crunch.config import CrunchConfig, parse_int
from crunch.contracts import WorkEvidence, WorkPacketError, WorkStatus
from crunch.evidence import IN_PROGRESS, UnknownAuthenticatorVersion, build_report, verify
from crunch.node_info import NodeInfoError, describe_node
from crunch.orchestrator import SearchFailed
from crunch.partitioner import partition
from crunch.run_orchestrator import run_search
from crunch.schemas import NodeInfoSchema, WorkPacketSchema, WorkProgressReportSchema

# =============================================================================
# Helpers
# =============================================================================

def _big_int(raw: str) -> int:
    try:
        return parse_int(raw, "value")
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def _overrides(args: argparse.Namespace) -> dict:
    kw = {}
    for attr in ("initial", "block_size", "workers", "progress_every", "max_iterations"):
        v = getattr(args, attr, None)
        if v is not None:
            kw[attr] = v
    if getattr(args, "mode", None):
        kw["run_mode"] = args.mode
    if getattr(args, "include_trivial_cycle", False):
        kw["ignore_trivial_cycle"] = False
    return kw


NO_CREDENTIALS = "ERROR: set CRUNCH_USER_ID, CRUNCH_USER_SECRET_VERSION and CRUNCH_USER_SECRET"


def _load_json(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))

# =============================================================================
# Commands
# =============================================================================

def cmd_run(cfg: CrunchConfig) -> int:
    try:
        run_search(cfg)
    except (NodeInfoError, SearchFailed) as e:
        print(f"FATAL: {e}")
        return 1
    return 0


def cmd_node(workers: Optional[int]) -> int:
    try:
        node = describe_node(workers)
    except NodeInfoError as e:
        print(f"FATAL: {e}")
        return 1
    schema = NodeInfoSchema(host_info=node.host_info, cpu_info=node.cpu_info, workers=node.workers)
    print(json.dumps(schema.model_dump(by_alias=True), indent=2))
    return 0


def cmd_plan(cfg: CrunchConfig) -> int:
    workers = cfg.workers
    if workers is None:
        try:
            workers = describe_node().workers
        except NodeInfoError as e:
            print(f"FATAL: {e}")
            return 1
    try:
        packets = partition(cfg.initial, workers, cfg.block_size, ttl=cfg.packet_ttl)
    except WorkPacketError as e:
        print(f"ERROR: {e}")
        return 2
    for p in packets:
        print(WorkPacketSchema.from_packet(p).model_dump_json(by_alias=True))
    return 0


def cmd_report(cfg: CrunchConfig, packet_path: str, status: str, worker_id: int,
               total: int, maximum: int) -> int:
    creds = cfg.credentials
    if creds is None:
        print(NO_CREDENTIALS)
        return 2
    try:
        packet = WorkPacketSchema.model_validate(_load_json(packet_path)).to_packet()
        evidence = WorkEvidence(total, maximum)
        node = describe_node(cfg.workers)
    except (ValueError, OSError, NodeInfoError) as e:
        print(f"ERROR: {e}")
        return 2
    rep = build_report(
        creds, packet, node, worker_id, WorkStatus(status), evidence=evidence,
    )
    print(WorkProgressReportSchema.from_report(rep).to_json())
    return 0


def cmd_verify(cfg: CrunchConfig, report_path: str) -> int:
    """Exit codes: 0 (OK), 1 (MISMATCH), 2 (UNKNOWN_VERSION / bad input)."""
    creds = cfg.credentials
    if creds is None:
        print(NO_CREDENTIALS)
        return 2
    try:
        rep = WorkProgressReportSchema.model_validate(_load_json(report_path)).to_report()
    except (ValueError, OSError) as e:
        print(f"ERROR: cannot read report: {e}")
        return 2
    evidence = rep.evidence if rep.status is WorkStatus.COMPLETED else IN_PROGRESS
    try:
        ok = verify(creds, rep.work, evidence, rep.authenticator)
    except UnknownAuthenticatorVersion as e:
        print(f"UNKNOWN_VERSION: {e}")
        return 2
    if ok:
        print(f"OK: authenticator verified for packet {rep.work.id} ({rep.status.value})")
        return 0
    print(f"MISMATCH: authenticator does not match packet {rep.work.id}")
    return 1

# =============================================================================
# CLI Main
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Collatz Crunch Operational Suite")
    subparsers = parser.add_subparsers(dest="cmd")

    def _range_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--initial", type=_big_int, help="First odd seed (accepts 0x/0b)")
        p.add_argument("--block-size", type=_big_int, help="Seeds span per worker")
        p.add_argument("--workers", type=int, help="Worker count (default: cpu count)")

    # (1) Run
    run_p = subparsers.add_parser("run", help="Run a search session")
    _range_args(run_p)
    run_p.add_argument("--mode", choices=["process", "inline"])
    run_p.add_argument("--progress-every", type=int)
    run_p.add_argument("--max-iterations", type=int)
    run_p.add_argument("--include-trivial-cycle", action="store_true",
                       help="Report seed 1 returning to itself as interesting")

    # (2) Node
    node_p = subparsers.add_parser("node", help="Print node description")
    node_p.add_argument("--workers", type=int)

    # (3) Plan
    plan_p = subparsers.add_parser("plan", help="Print work packets as JSONL")
    _range_args(plan_p)

    # (4) Report
    rep_p = subparsers.add_parser("report", help="Build a signed progress report")
    rep_p.add_argument("--packet", required=True, help="WorkPacket JSON file")
    rep_p.add_argument("--status", default="completed", choices=[s.value for s in WorkStatus])
    rep_p.add_argument("--worker-id", type=int, default=0)
    rep_p.add_argument("--total", type=int, default=0)
    rep_p.add_argument("--max", type=int, default=0)

    # (5) Verify
    ver_p = subparsers.add_parser("verify", help="Verify a report's authenticator")
    ver_p.add_argument("--report", required=True, help="WorkProgressReport JSON file")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.cmd:
        parser.print_help()
        return 0

    try:
        cfg = dataclasses.replace(CrunchConfig.from_env(), **_overrides(args))
    except ValueError as e:
        print(f"ERROR: bad configuration: {e}")
        return 2

    if args.cmd == "run":
        return cmd_run(cfg)
    elif args.cmd == "node":
        return cmd_node(args.workers)
    elif args.cmd == "plan":
        return cmd_plan(cfg)
    elif args.cmd == "report":
        return cmd_report(cfg, args.packet, args.status, args.worker_id, args.total, args.max)
    elif args.cmd == "verify":
        return cmd_verify(cfg, args.report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
