# tests/core/traceability/test_manifest_step_updates.py
"""
Testes de atualização incremental de steps no Manifest.

Os testes asseguram que:
- `step_started` marca o step como running e registra o tipo do step
- `step_finished`, `step_halted` e `step_failed` fecham o step com
  timestamps e duração derivada
- `operation_finished` preenche o desfecho da chamada

Decisões arquiteturais:
    - Timestamps são fornecidos externamente (nunca gerados pelo Manifest)
    - Cada transição emite exatamente um evento
"""

from datetime import datetime, timezone

import pytest

try:
    from atlas_operation.core.traceability.manifest import (
        STATUS_FAILED,
        STATUS_FINISHED,
        STATUS_HALTED,
        STATUS_RUNNING,
        create_manifest,
        operation_finished,
        step_failed,
        step_finished,
        step_halted,
        step_started,
    )
except Exception as e:  # noqa: BLE001
    create_manifest = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing traceability step update APIs. Implement:\n"
            "- step_started(manifest, step_id, kind, ts)\n"
            "- step_finished / step_halted / step_failed\n"
            "- operation_finished(manifest, ts, status, executed)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _ts(second):
    return datetime(2026, 1, 16, 12, 0, second, tzinfo=timezone.utc)


def _create():
    return create_manifest(
        run_id="run-001",
        operation="users.create",
        started_at=_ts(0),
        engine_version="0.1.0",
        config_hash="c" * 64,
        input_hash="d" * 64,
    )


def test_started_then_finished():
    """
    Verifica o ciclo normal de um step.

    Invariantes:
        - `duration_ms` é derivado dos timestamps informados
        - o Event Log recebe step_started e step_finished, nessa ordem
    """
    _require_imports()
    m = _create()

    step_started(m, step_id="normalize", kind="transform", ts=_ts(1))
    assert m.steps["normalize"]["status"] == STATUS_RUNNING

    step_finished(m, step_id="normalize", ts=_ts(3))
    s = m.steps["normalize"]

    assert s["status"] == STATUS_FINISHED
    assert s["kind"] == "transform"
    assert s["duration_ms"] == 2000
    assert [e["event_type"] for e in m.events] == ["step_started", "step_finished"]


def test_halted_step_keeps_reason():
    _require_imports()
    m = _create()
    step_started(m, step_id="users.create.validate", kind="validation", ts=_ts(1))
    step_halted(m, step_id="users.create.validate", ts=_ts(1), reason="validation")

    s = m.steps["users.create.validate"]
    assert s["status"] == STATUS_HALTED
    assert s["reason"] == "validation"
    assert m.events[-1]["payload"]["reason"] == "validation"


def test_failed_step_records_error_payload():
    _require_imports()
    m = _create()
    error = {"type": "STEP_FAILURE_UNHANDLED", "message": "x", "details": {}, "hint": None}

    step_started(m, step_id="charge", kind="transform", ts=_ts(1))
    step_failed(m, step_id="charge", ts=_ts(2), error=error)

    assert m.steps["charge"]["status"] == STATUS_FAILED
    assert m.steps["charge"]["error"] == error
    assert m.events[-1]["payload"] == {"error": error}


def test_failed_without_start_still_closes_step():
    _require_imports()
    m = _create()
    step_failed(m, step_id="ghost", ts=_ts(2), error={"type": "X"})
    assert m.steps["ghost"]["duration_ms"] == 0


def test_operation_finished_sets_outcome():
    _require_imports()
    m = _create()
    operation_finished(m, ts=_ts(5), status=STATUS_HALTED, executed=["a", "b"], halted_at="b", reason="step_failure")

    assert m.outcome == {
        "status": STATUS_HALTED,
        "finished_at": "2026-01-16T12:00:05+00:00",
        "duration_ms": 5000,
        "executed": ["a", "b"],
        "halted_at": "b",
        "reason": "step_failure",
    }
    assert m.events[-1] == {
        "event_type": "operation_finished",
        "timestamp": "2026-01-16T12:00:05+00:00",
        "payload": {"status": STATUS_HALTED},
    }
