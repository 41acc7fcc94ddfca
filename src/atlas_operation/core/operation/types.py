"""
Tipos canônicos de uma operação do Atlas Operation.

Este módulo define as estruturas imutáveis que descrevem uma sequência
de steps e os resultados discriminados que o Executor inspeciona:

    - StepKind        → discriminante do descritor (transform, middleware,
                        validation, policy)
    - StepDescriptor  → unidade declarada de comportamento (união etiquetada)
    - Fail / fail()   → sinal de falha local devolvido por um handler
    - Continue / Halt / Fatal → desfecho de um step para o Executor

Decisões arquiteturais:
    - O descritor é uma dataclass congelada única com `kind`; campos que não
      pertencem à variante ficam None
    - Steps MIDDLEWARE são ligados ao resolver/registry da definição que os
      declarou no momento do build, para que a continuação não dependa de
      indireção em tempo de chamada
    - Falhas locais são valores, não desenrolamento de pilha: o handler
      devolve `fail(state, extra)` e o Executor decide pelo discriminante

Limites explícitos:
    - Não executa steps
    - Não valida unicidade de nomes (ver `registry`)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union

from atlas_operation.core.exceptions import NO_EXTRA
from atlas_operation.core.middleware import MiddlewareRegistry
from atlas_operation.core.validation import ValidationRules


TransformHandler = Callable[[Any, Any], Any]
ErrorHandler = Callable[..., Any]
MiddlewareResolver = Callable[[Any], Any]


class StepKind(str, Enum):
    """
    Variantes de StepDescriptor.

    Os valores são strings para facilitar serialização em eventos e no
    Manifest.
    """
    TRANSFORM = "transform"
    MIDDLEWARE = "middleware"
    VALIDATION = "validation"
    POLICY = "policy"


@dataclass(frozen=True)
class StepDescriptor:
    """
    Descritor imutável de um step.

    Variantes:
        - TRANSFORM:  `handler(state, original) -> novo_estado`
        - MIDDLEWARE: `name` é também o método invocado na implementação
                      resolvida; `resolver`/`registry` ligados no build
        - VALIDATION: `rules`
        - POLICY:     `checker` (tipo) + `predicate` (nome)
    """
    name: str
    kind: StepKind
    handler: Optional[TransformHandler] = None
    resolver: Optional[MiddlewareResolver] = None
    registry: Optional[MiddlewareRegistry] = None
    rules: Optional[ValidationRules] = None
    checker: Optional[type] = None
    predicate: Optional[str] = None

    @property
    def is_gate(self) -> bool:
        return self.kind in (StepKind.VALIDATION, StepKind.POLICY)

    @classmethod
    def transform(cls, name: str, handler: TransformHandler) -> "StepDescriptor":
        if not callable(handler):
            raise TypeError(f"handler for step {name!r} must be callable")
        return cls(name=name, kind=StepKind.TRANSFORM, handler=handler)

    @classmethod
    def middleware(cls, name: str) -> "StepDescriptor":
        return cls(name=name, kind=StepKind.MIDDLEWARE)

    @classmethod
    def validation(cls, name: str, rules: ValidationRules) -> "StepDescriptor":
        return cls(name=name, kind=StepKind.VALIDATION, rules=rules)

    @classmethod
    def policy(cls, name: str, checker: type, predicate: str) -> "StepDescriptor":
        return cls(name=name, kind=StepKind.POLICY, checker=checker, predicate=predicate)


# ---------------------------------------------------------------------------
# Sinal de falha local
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Fail:
    """Sinal devolvido por um handler: aborta o step e aciona seu on_failure."""
    state: Any
    extra: Any = NO_EXTRA

    @property
    def has_extra(self) -> bool:
        return self.extra is not NO_EXTRA


def fail(state: Any, extra: Any = NO_EXTRA) -> Fail:
    return Fail(state=state, extra=extra)


# ---------------------------------------------------------------------------
# Desfecho de um step
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Continue:
    state: Any


@dataclass(frozen=True)
class Halt:
    result: Any
    reason: str


@dataclass(frozen=True)
class Fatal:
    error: BaseException


StepOutcome = Union[Continue, Halt, Fatal]

HALT_VALIDATION = "validation"
HALT_STEP_FAILURE = "step_failure"
