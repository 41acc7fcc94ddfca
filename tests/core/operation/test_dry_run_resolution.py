# tests/core/operation/test_dry_run_resolution.py
"""
Testes de resolução da sequência de dry run (tempo de definição).

Os testes asseguram que:
- `step(name)` reutiliza o descritor principal
- `step(name, handler)` cria override TRANSFORM com o mesmo nome
- steps omitidos não entram na sequência
- gates só entram quando re-listados explicitamente
- referências malformadas falham no build
"""

import pytest

try:
    from atlas_operation.core.exceptions import MalformedDryRunReferenceError, OperationConfigurationError
    from atlas_operation.core.operation import StepKind, define
except Exception as e:  # noqa: BLE001
    define = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing DryRunBuilder. Implement:\n"
            "- src/atlas_operation/core/operation/dry_run.py (DryRunBuilder)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _identity(state, original):
    return state


def _builder():
    builder = define("users.create")
    builder.step("normalize", _identity)
    builder.validate(required=("email",))
    builder.step("persist", _identity)
    builder.step("notify", _identity)
    return builder


def test_reuse_override_and_omission():
    """
    Verifica reuso, override e omissão na mesma sequência de dry run.

    Invariantes:
        - O step reutilizado é o mesmo descritor da sequência principal
        - O override preserva o nome e troca o handler
        - `notify` (omitido) não aparece
        - O gate de validação só aparece porque foi re-listado
    """
    _require_imports()

    def fake_persist(state, original):
        return state

    builder = _builder()
    builder.dry_run().step("normalize").validation().step("persist", fake_persist)
    definition = builder.build()

    assert definition.has_dry_run
    assert definition.dry_run_step_names == ["normalize", "users.create.validate", "persist"]
    assert definition.dry_run_steps[0] is definition.step("normalize")
    assert definition.dry_run_steps[1] is definition.step("users.create.validate")
    assert definition.dry_run_steps[2].handler is fake_persist
    assert definition.dry_run_steps[2].kind == StepKind.TRANSFORM
    assert definition.step("persist").handler is _identity


def test_gates_are_not_implicit():
    _require_imports()
    builder = _builder()
    builder.dry_run().step("normalize")
    definition = builder.build()
    assert definition.dry_run_step_names == ["normalize"]


def test_unknown_step_is_rejected():
    _require_imports()
    builder = _builder()
    builder.dry_run().step("persit")
    with pytest.raises(MalformedDryRunReferenceError):
        builder.build()


def test_duplicate_entry_is_rejected():
    _require_imports()
    builder = _builder()
    builder.dry_run().step("normalize").step("normalize")
    with pytest.raises(MalformedDryRunReferenceError):
        builder.build()


def test_missing_gate_is_rejected():
    _require_imports()
    builder = _builder()
    builder.dry_run().policy()
    with pytest.raises(MalformedDryRunReferenceError):
        builder.build()


def test_gate_override_is_rejected():
    _require_imports()
    builder = _builder()
    builder.dry_run().step("users.create.validate", _identity)
    with pytest.raises(MalformedDryRunReferenceError):
        builder.build()


def test_sequence_without_dry_run_declaration():
    _require_imports()
    definition = _builder().build()
    assert not definition.has_dry_run
    assert definition.dry_run_step_names is None
    with pytest.raises(OperationConfigurationError):
        definition.sequence(dry_run=True)


def test_bypass_representer_flag():
    _require_imports()
    builder = _builder()
    builder.dry_run().step("normalize").bypass_representer()
    assert builder.build().dry_run_bypasses_representer is True
