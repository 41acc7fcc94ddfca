# tests/core/engine/test_executor_traceability.py
"""
Testes da rastreabilidade produzida pelo Executor.

Este módulo valida o Event Log mantido no ExecutionState e o Manifest
opcional criado por chamada.

Os testes asseguram que:
- eventos são emitidos em ordem, com identidade da chamada
- `engine.record_events: false` desliga o Event Log
- paradas e falhas fatais deixam registro estruturado (ErrorPayload)
- o Manifest é persistido em `<dir>/<operação>/<run_id>.json`

Limites explícitos:
    - Não valida a API do Manifest isoladamente (ver tests/core/traceability)
"""

import json

import pytest

try:
    from atlas_operation.core.config import resolve_engine_config
    from atlas_operation.core.engine import Executor
    from atlas_operation.core.errors import AUTHORIZATION_DENIED, STEP_FAILURE_UNHANDLED, VALIDATION_FAILED
    from atlas_operation.core.exceptions import AuthorizationFailure, UnhandledStepFailure
    from atlas_operation.core.operation import define, fail
    from atlas_operation.core.traceability import load_manifest
except Exception as e:  # noqa: BLE001
    Executor = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing traceability support. Implement:\n"
            "- src/atlas_operation/core/operation/context.py (ExecutionState.log)\n"
            "- src/atlas_operation/core/traceability/manifest.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _manifest_config(tmp_path=None):
    return {"engine": {"manifest": {"enabled": True, "dir": str(tmp_path) if tmp_path else None}}}


def _two_steps():
    return define("users.create").step("a", lambda s, o: s).step("b", lambda s, o: s).build()


def test_event_order_for_completed_call():
    _require_imports()
    outcome = Executor(_two_steps()).run({})

    assert [(e["message"], e["step_id"]) for e in outcome.events] == [
        ("operation_started", None),
        ("step_started", "a"),
        ("step_finished", "a"),
        ("step_started", "b"),
        ("step_finished", "b"),
        ("operation_finished", None),
    ]
    assert {e["run_id"] for e in outcome.events} == {outcome.run_id}
    assert outcome.events_named("operation_finished")[0]["status"] == "finished"


def test_record_events_false_keeps_log_empty():
    _require_imports()
    outcome = Executor(_two_steps(), config={"engine": {"record_events": False}}).run({})
    assert outcome.events == []
    assert outcome.completed is True


def test_validation_halt_is_logged_with_payload(signup_schema):
    _require_imports()
    definition = define("users.create").schema(signup_schema).validate(required=("email",)).build()
    outcome = Executor(definition).run({"name": "Sam"})

    failed = outcome.events_named("validation_failed")
    assert len(failed) == 1
    assert failed[0]["level"] == "warning"
    assert failed[0]["error"]["type"] == VALIDATION_FAILED
    assert failed[0]["error"]["details"]["errors"] == {"email": ["is required"]}
    assert outcome.events_named("step_halted")[0]["reason"] == "validation"
    assert outcome.events_named("operation_finished")[0]["status"] == "halted"


def test_manifest_disabled_by_default():
    _require_imports()
    assert Executor(_two_steps()).run({}).manifest is None


def test_manifest_tracks_steps_and_outcome():
    """
    Verifica o Manifest de uma chamada concluída.

    Invariantes:
        - `run` carrega run_id, operação e dry run
        - `inputs` carrega hashes da configuração e do input
        - cada step termina `finished` e `outcome.executed` segue a ordem real
    """
    _require_imports()
    config = resolve_engine_config(_manifest_config())
    outcome = Executor(_two_steps(), config=config).run({"x": 1})
    manifest = outcome.manifest

    assert manifest.run["run_id"] == outcome.run_id
    assert manifest.run["operation"] == "users.create"
    assert manifest.run["dry_run"] is False
    assert manifest.inputs["config_hash"] == config.config_hash
    assert len(manifest.inputs["input_hash"]) == 64
    assert {k: v["status"] for k, v in manifest.steps.items()} == {"a": "finished", "b": "finished"}
    assert manifest.outcome["status"] == "finished"
    assert manifest.outcome["executed"] == ["a", "b"]
    assert manifest.events[0]["event_type"] == "operation_started"
    assert manifest.events[-1]["event_type"] == "operation_finished"


def test_manifest_saved_under_operation_dir(tmp_path):
    _require_imports()
    outcome = Executor(_two_steps(), config=_manifest_config(tmp_path)).run({})

    path = tmp_path / "users.create" / f"{outcome.run_id}.json"
    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8"))["outcome"]["status"] == "finished"
    assert load_manifest(path).to_dict() == outcome.manifest.to_dict()


def test_manifest_records_handled_halt(tmp_path):
    _require_imports()
    definition = (
        define("orders.pay")
        .step("charge", lambda s, o: fail(s))
        .on_failure("charge", lambda state: "declined")
        .build()
    )
    outcome = Executor(definition, config=_manifest_config(tmp_path)).run({})

    assert outcome.manifest.steps["charge"]["status"] == "halted"
    assert outcome.manifest.steps["charge"]["reason"] == "step_failure"
    assert outcome.manifest.outcome["halted_at"] == "charge"


@pytest.mark.parametrize(
    "build, exc_type, code",
    [
        (lambda AdminPolicy: define("users.create").policy(AdminPolicy, "create").build(), AuthorizationFailure, AUTHORIZATION_DENIED),
        (lambda AdminPolicy: define("users.create").step("boom", lambda s, o: fail(s)).build(), UnhandledStepFailure, STEP_FAILURE_UNHANDLED),
    ],
)
def test_fatal_error_saved_as_failed_manifest(tmp_path, AdminPolicy, build, exc_type, code):
    """
    Verifica que falhas fatais deixam Manifest persistido antes de propagar.

    Invariantes:
        - a exceção original chega ao chamador
        - o step termina `failed` com o código estável do erro
        - `outcome.status == "failed"`
    """
    _require_imports()
    with pytest.raises(exc_type):
        Executor(build(AdminPolicy), config=_manifest_config(tmp_path)).run({}, actor={"role": "guest"})

    [path] = list((tmp_path / "users.create").glob("*.json"))
    manifest = load_manifest(path)
    [failed] = [s for s in manifest.steps.values() if s["status"] == "failed"]

    assert failed["error"]["type"] == code
    assert manifest.outcome["status"] == "failed"


def test_manifest_input_hash_with_mixed_keys():
    _require_imports()
    outcome = Executor(_two_steps(), config=_manifest_config()).run({1: "x", "b": 2})
    assert outcome.completed is True
    assert len(outcome.manifest.inputs["input_hash"]) == 64
