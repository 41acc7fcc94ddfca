"""
Checagem de autorização consumida pelo gate de política.

Contrato:
    - o checker é construído a partir de (ator, estado corrente)
    - o predicado é um método sem argumentos (ou atributo booleano) do checker
    - predicado falso → AuthorizationFailure, nunca retorno silencioso

A exceção carrega a instância do checker para introspecção pelo chamador
(ex.: motivos de negação expostos pelo próprio checker).
"""

from __future__ import annotations

from typing import Any, Tuple

from .exceptions import AuthorizationFailure, OperationConfigurationError


class Policy:
    """Base opcional para checkers: guarda `actor` e `state`."""

    def __init__(self, actor: Any, state: Any) -> None:
        self.actor = actor
        self.state = state


def ensure_predicate(checker_type: type, predicate: str) -> None:
    """Validação de definição: o predicado precisa existir no tipo do checker."""
    if not isinstance(checker_type, type):
        raise OperationConfigurationError(
            message="Policy checker must be a class",
            details={"checker": repr(checker_type)},
        )
    if not isinstance(predicate, str) or not predicate.strip():
        raise OperationConfigurationError(message="Policy predicate must be a non-empty string")
    if not hasattr(checker_type, predicate):
        raise OperationConfigurationError(
            message=f"Policy {checker_type.__name__} has no predicate {predicate!r}",
            details={"checker": checker_type.__name__, "predicate": predicate},
        )


def evaluate(checker_type: type, actor: Any, state: Any, predicate: str) -> Tuple[Any, bool]:
    checker = checker_type(actor, state)
    outcome = getattr(checker, predicate)
    if callable(outcome):
        outcome = outcome()
    return checker, bool(outcome)


def check(checker_type: type, actor: Any, state: Any, predicate: str) -> bool:
    _, allowed = evaluate(checker_type, actor, state, predicate)
    return allowed


def authorize(checker_type: type, actor: Any, state: Any, predicate: str) -> Any:
    """Retorna o checker quando autorizado; levanta AuthorizationFailure caso contrário."""
    checker, allowed = evaluate(checker_type, actor, state, predicate)
    if not allowed:
        raise AuthorizationFailure(
            message=f"Not authorized: {checker_type.__name__}.{predicate}",
            details={"checker": checker_type.__name__, "predicate": predicate},
            checker=checker,
            predicate=predicate,
        )
    return checker
