# tests/core/engine/test_executor_middleware.py
"""
Testes de steps MIDDLEWARE (delegação resolvida em tempo de chamada).

Os testes asseguram que:
- o identificador é calculado a partir do estado CORRENTE
- a implementação registrada recebe o estado e seu retorno vira `current`
- identificador desconhecido ou método ausente é MiddlewareResolutionError
- sinais de falha da implementação seguem a tabela de handlers
"""

import pytest

try:
    from atlas_operation.core.engine import Executor
    from atlas_operation.core.exceptions import MiddlewareResolutionError, OperationConfigurationError
    from atlas_operation.core.middleware import MiddlewareRegistry
    from atlas_operation.core.operation import Operation, define, fail
except Exception as e:  # noqa: BLE001
    Executor = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing middleware support. Implement:\n"
            "- src/atlas_operation/core/middleware.py (MiddlewareRegistry)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _by_method(state):
    return state.method


def test_dispatch_uses_current_state(payment_registry):
    """
    Verifica que a resolução usa o estado corrente, não o input original.

    Invariantes:
        - Um step anterior altera `method`; a implementação escolhida segue
          o valor alterado
    """
    _require_imports()

    def prefer_pix(state, original):
        state.method = "pix"
        return state

    definition = (
        define("payments.charge")
        .step("prefer_pix", prefer_pix)
        .middleware("charge")
        .middleware_resolver(_by_method, payment_registry)
        .build()
    )
    state = Executor(definition).run({"method": "card"}).result
    assert state.charged_with == "pix"


@pytest.mark.parametrize("method", ["card", "pix"])
def test_each_identifier_routes_to_its_implementation(payment_registry, method):
    _require_imports()
    definition = define("payments.charge").middleware("charge").middleware_resolver(_by_method, payment_registry).build()
    assert Executor(definition).run({"method": method}).result.charged_with == method


def test_unknown_identifier_is_fatal(payment_registry):
    _require_imports()
    definition = define("payments.charge").middleware("charge").middleware_resolver(_by_method, payment_registry).build()
    with pytest.raises(MiddlewareResolutionError) as exc_info:
        Executor(definition).run({"method": "boleto"})
    assert isinstance(exc_info.value, OperationConfigurationError)
    assert exc_info.value.details["known"] == ["card", "pix"]


def test_missing_method_is_fatal():
    _require_imports()
    registry = MiddlewareRegistry([("card", object())])
    definition = define("payments.refund").middleware("refund").middleware_resolver(lambda s: "card", registry).build()
    with pytest.raises(MiddlewareResolutionError):
        Executor(definition).run({})


def test_failure_signal_from_delegate_uses_handler():
    _require_imports()
    registry = MiddlewareRegistry()

    class Declining:
        def charge(self, state):
            return fail(state, "declined")

    registry.register("card", Declining())
    definition = (
        define("payments.charge")
        .middleware("charge")
        .middleware_resolver(lambda s: "card", registry)
        .on_failure("charge", lambda state, extra: {"error": extra})
        .build()
    )
    assert Executor(definition).run({}).result == {"error": "declined"}


def test_registry_rejects_duplicates_and_empty_ids():
    _require_imports()
    registry = MiddlewareRegistry([("card", object())])
    with pytest.raises(ValueError):
        registry.register("card", object())
    with pytest.raises(ValueError):
        registry.register("", object())
    assert "card" in registry
    assert registry.list_ids() == ["card"]


def test_class_with_plain_method_is_instantiated_once():
    """
    Verifica o registro de implementações declaradas como classe.

    Invariantes:
        - métodos de instância comuns recebem apenas o estado
        - a mesma instância atende chamadas sucessivas
    """
    _require_imports()
    registry = MiddlewareRegistry()

    @registry.implementation("card")
    class CardPayment:
        def __init__(self):
            self.calls = 0

        def charge(self, state):
            self.calls += 1
            state.charged_with = "card"
            return state

    definition = define("payments.charge").middleware("charge").middleware_resolver(lambda s: "card", registry).build()
    op = Operation(definition)

    assert op.call({}).charged_with == "card"
    op.call({})
    assert isinstance(registry.resolve("card"), CardPayment)
    assert registry.resolve("card").calls == 2


def test_resolver_error_becomes_resolution_error():
    _require_imports()
    registry = MiddlewareRegistry([("card", object())])
    definition = (
        define("payments.charge")
        .middleware("charge")
        .middleware_resolver(lambda s: s["kind"], registry)
        .build()
    )
    with pytest.raises(MiddlewareResolutionError) as exc_info:
        Executor(definition).run({})

    err = exc_info.value
    assert err.details["step"] == "charge"
    assert err.details["exc_type"] == "KeyError"
    assert isinstance(err.__cause__, KeyError)
