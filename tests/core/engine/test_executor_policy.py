# tests/core/engine/test_executor_policy.py
"""
Testes do gate de autorização.

Os testes asseguram que:
- um ator autorizado segue normalmente pela sequência
- um ator negado interrompe a chamada com `AuthorizationFailure`
- a exceção carrega a instância do checker (introspecção dos motivos)
- o checker avalia o estado CORRENTE no ponto do gate
"""

import pytest

try:
    from atlas_operation.core.engine import Executor
    from atlas_operation.core.exceptions import AuthorizationFailure
    from atlas_operation.core.operation import define
    from atlas_operation.core.policy import Policy, authorize, check
except Exception as e:  # noqa: BLE001
    Executor = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing policy gate. Implement:\n"
            "- src/atlas_operation/core/policy.py (Policy, check, authorize)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _definition(AdminPolicy, after):
    return (
        define("users.create")
        .step("normalize", lambda s, o: s)
        .policy(AdminPolicy, "create")
        .step("persist", after)
        .build()
    )


def test_authorized_actor_passes(AdminPolicy):
    _require_imports()
    outcome = Executor(_definition(AdminPolicy, lambda s, o: "persisted")).run({}, actor={"role": "admin"})
    assert outcome.result == "persisted"
    assert outcome.executed == ("normalize", "users.create.policy", "persist")


def test_denied_actor_raises_with_checker(AdminPolicy):
    """
    Verifica a negação de autorização.

    Invariantes:
        - A exceção é AuthorizationFailure (nunca retorno silencioso)
        - `checker` é a instância usada na avaliação
        - `persist` não executa
    """
    _require_imports()
    persisted = []

    definition = _definition(AdminPolicy, lambda s, o: persisted.append(s) or s)
    with pytest.raises(AuthorizationFailure) as exc_info:
        Executor(definition).run({}, actor={"role": "guest"})

    err = exc_info.value
    assert isinstance(err.checker, AdminPolicy)
    assert err.checker.reasons == ["actor is not an admin"]
    assert err.predicate == "create"
    assert persisted == []


def test_missing_actor_is_denied(AdminPolicy):
    _require_imports()
    with pytest.raises(AuthorizationFailure):
        Executor(_definition(AdminPolicy, lambda s, o: s)).run({})


def test_checker_sees_current_state():
    _require_imports()

    class OwnerPolicy(Policy):
        def update(self):
            return self.state.owner_id == self.actor

    definition = (
        define("posts.update")
        .step("assign_owner", lambda s, o: _with_owner(s, 7))
        .policy(OwnerPolicy, "update")
        .build()
    )
    assert Executor(definition).run({}, actor=7).halted is False
    with pytest.raises(AuthorizationFailure):
        Executor(definition).run({}, actor=8)


def _with_owner(state, owner_id):
    state.owner_id = owner_id
    return state


def test_boolean_attribute_predicate_and_helpers():
    """O predicado pode ser atributo booleano em vez de método."""
    _require_imports()

    class Flag(Policy):
        def __init__(self, actor, state):
            super().__init__(actor, state)
            self.allowed = bool(actor)

    assert check(Flag, True, None, "allowed") is True
    assert check(Flag, False, None, "allowed") is False
    assert isinstance(authorize(Flag, True, None, "allowed"), Flag)
    with pytest.raises(AuthorizationFailure):
        authorize(Flag, False, None, "allowed")
