# crunch/run_orchestrator.py
"""
Execution harness: describe node -> N workers -> join -> summary.

Configuration comes from CRUNCH_* environment variables (see config.py).

Usage:
    python -m crunch.run_orchestrator
"""
from __future__ import annotations
import sys

from .aggregator import SearchSummary
from .config import CrunchConfig
from .node_info import NodeInfoError, describe_node
from .orchestrator import SearchFailed, SearchOrchestrator
from .schemas import NodeInfoSchema, SearchSummarySchema
from .telemetry import banner, emit


def run_search(config: CrunchConfig) -> SearchSummary:
    """Raises NodeInfoError before any packet exists, SearchFailed after."""
    node = describe_node(config.workers)
    emit("[NODE] " + NodeInfoSchema(
        host_info=node.host_info, cpu_info=node.cpu_info, workers=node.workers,
    ).model_dump_json(by_alias=True))

    banner("COLLATZ CRUNCH / RANGE-PARTITIONED SEARCH", [
        f"Workers: {node.workers}  |  Mode: {config.run_mode}",
        f"Block:   {config.block_size}",
        f"Start:   {config.initial} (bitlen {config.initial.bit_length()})",
    ])

    orch = SearchOrchestrator(config, node)
    orch.plan()
    summary = orch.run()
    emit("[SUMMARY] " + SearchSummarySchema.from_summary(summary).to_json())
    n = orch.emit_reports()
    if n:
        emit(f"[REPORT] {n} signed reports emitted")
    return summary


def main() -> int:
    try:
        config = CrunchConfig.from_env()
    except ValueError as e:
        emit(f"ERROR: bad configuration: {e}")
        return 2
    try:
        run_search(config)
    except NodeInfoError as e:
        emit(f"FATAL: {e}")
        return 1
    except SearchFailed as e:
        emit(f"FATAL: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
