"""
Atlas Operation — Canonical Exceptions (v1)

Este módulo define as exceções tipadas do Atlas Operation.

Objetivo:
- Permitir que builder/Executor levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para ErrorPayload
- Evitar ValueError/RuntimeError genéricos em falhas de configuração

Famílias:
- OperationConfigurationError: definição inconsistente (fatal, sem retry)
- AuthorizationFailure: política negou a chamada (carrega o checker)
- UnhandledStepFailure: sinal de falha sem handler associado

`StepFailure` não pertence à hierarquia: é o sinal de controle local de um
step e só tem significado na fronteira do step que o levantou.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


# Marca a ausência de payload secundário num sinal de falha.
NO_EXTRA: Any = object()


@dataclass(eq=False)
class OperationException(Exception):
    """Base class para exceções internas do Atlas Operation.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuração (definição da operação)
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class OperationConfigurationError(OperationException):
    """Definição de operação inválida ou inconsistente."""


@dataclass(eq=False)
class DuplicateStepNameError(OperationConfigurationError):
    """Dois steps com o mesmo nome na mesma operação."""


@dataclass(eq=False)
class UnknownStepError(OperationConfigurationError):
    """Declaração referencia um step que não existe na operação."""


@dataclass(eq=False)
class DuplicateGateError(OperationConfigurationError):
    """Segunda declaração de um gate que admite uma única posição."""


@dataclass(eq=False)
class MalformedDryRunReferenceError(OperationConfigurationError):
    """Sequência de dry run referencia steps de forma inválida."""


@dataclass(eq=False)
class MiddlewareResolutionError(OperationConfigurationError):
    """Identificador ou método de middleware não resolvível em tempo de chamada."""


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class AuthorizationFailure(OperationException):
    """Política negou a chamada. `checker` é a instância construída para (ator, estado)."""

    checker: Any = None
    predicate: Optional[str] = None


@dataclass(eq=False)
class UnhandledStepFailure(OperationException):
    """Sinal de falha levantado por um step sem handler associado."""

    step: Optional[str] = None
    state: Any = None
    extra: Any = NO_EXTRA


class StepFailure(Exception):
    """Sinal explícito de falha local de um step.

    Forma "raise" do sinal, útil quando a falha é detectada em funções
    auxiliares chamadas pelo handler. O Executor a converte no mesmo
    resultado discriminado produzido por `fail(...)`.
    """

    def __init__(self, state: Any, extra: Any = NO_EXTRA) -> None:
        super().__init__("step failure signal")
        self.state = state
        self.extra = extra

    @property
    def has_extra(self) -> bool:
        return self.extra is not NO_EXTRA
