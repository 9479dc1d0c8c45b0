from __future__ import annotations

import json

import pytest

from crunch.config import CrunchConfig
from crunch.contracts import NodeInfo, WorkStatus
from crunch.evidence import authenticate, verify
from crunch.orchestrator import SearchFailed, SearchOrchestrator

BIT_FORTY = (1 << 40) | 1


def _node(workers):
    return NodeInfo(host_info={"hostname": "t"}, cpu_info=[], workers=workers)


def _config(**kw):
    base = dict(initial=BIT_FORTY, block_size=100, run_mode="inline")
    base.update(kw)
    return CrunchConfig(**base)


def test_end_to_end_bit_forty_two_workers(lines):
    orch = SearchOrchestrator(_config(), _node(2), emit=lines.emit)
    a, b = orch.plan()
    assert (a.starting_value, a.ending_value) == (BIT_FORTY, BIT_FORTY + 100)
    assert (b.starting_value, b.ending_value) == (BIT_FORTY + 100, BIT_FORTY + 200)

    summary = orch.run()
    assert summary.workers == 2
    assert summary.candidates == 100
    assert summary.total_iterations > 0
    assert summary.interesting == ()
    assert [r.worker_id for r in orch.results] == [0, 1]
    assert all(r.total_iterations > 0 for r in orch.results)
    assert summary.total_iterations == sum(r.total_iterations for r in orch.results)
    assert summary.max_iterations == max(r.max_iterations for r in orch.results)
    assert any(ln.startswith("0001: Average iterations per test:") for ln in lines)


def test_run_plans_when_needed(lines):
    orch = SearchOrchestrator(_config(initial=3, block_size=100), _node(1), emit=lines.emit)
    summary = orch.run()
    assert summary.total_iterations == 756
    assert summary.max_iterations == 96


def test_process_mode_matches_inline(lines):
    inline = SearchOrchestrator(_config(initial=3, block_size=40), _node(3), emit=lines.emit)
    procs = SearchOrchestrator(
        _config(initial=3, block_size=40, run_mode="process"), _node(3), emit=lines.emit,
    )
    procs.packets = inline.plan()
    want = inline.run()
    got = procs.run()
    assert got == want
    assert sum(1 for ln in lines if "[EXIT]" in ln) == 3


def test_worker_failure_fails_session_in_process_mode(lines):
    cfg = _config(initial=27, block_size=2, max_iterations=5, run_mode="process")
    orch = SearchOrchestrator(cfg, _node(1), emit=lines.emit)
    with pytest.raises(SearchFailed) as exc:
        orch.run()
    assert 0 in exc.value.errors
    assert "IterationLimitExceeded" in exc.value.errors[0]


def test_worker_failure_fails_session_inline(lines):
    cfg = _config(initial=27, block_size=2, max_iterations=5)
    orch = SearchOrchestrator(cfg, _node(1), emit=lines.emit)
    with pytest.raises(SearchFailed):
        orch.run()


def test_no_reports_without_credentials(lines):
    orch = SearchOrchestrator(_config(), _node(1), emit=lines.emit)
    orch.run()
    assert orch.build_reports() == []
    assert orch.emit_reports() == 0


def test_completed_reports_are_signed(lines):
    cfg = _config(user_id="u", user_secret_version="v1", user_secret="s3cret")
    orch = SearchOrchestrator(cfg, _node(2), emit=lines.emit)
    orch.run()
    reports = orch.build_reports()
    assert [r.status for r in reports] == [WorkStatus.COMPLETED, WorkStatus.COMPLETED]
    for rep, res in zip(reports, orch.results):
        assert rep.evidence == res.evidence
        assert verify(cfg.credentials, rep.work, rep.evidence, rep.authenticator)

    assert orch.emit_reports() == 2
    emitted = [json.loads(ln[len("[REPORT] "):]) for ln in lines if ln.startswith("[REPORT] ")]
    assert len(emitted) == 2
    assert all("s3cret" not in json.dumps(e) for e in emitted)


def test_unfinished_packets_report_running(lines):
    cfg = _config(user_id="u", user_secret_version="v1", user_secret="s3cret")
    orch = SearchOrchestrator(cfg, _node(2), emit=lines.emit)
    orch.plan()
    reports = orch.build_reports()
    assert [r.status for r in reports] == [WorkStatus.RUNNING, WorkStatus.RUNNING]
    assert reports[0].authenticator == authenticate(cfg.credentials, orch.packets[0], "in-progress")
