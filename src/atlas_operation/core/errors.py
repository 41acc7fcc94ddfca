"""
Atlas Operation — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do Atlas Operation.
Falhas fatais de uma chamada são convertidas em payloads estruturados
antes de propagarem, para que o Event Log e o Manifest registrem o
motivo da interrupção de forma:

- explícita
- serializável
- rastreável
- acionável

Nenhuma decisão implícita é permitida: converter uma exceção em payload
não a silencia. O Executor registra o payload e relança a exceção original.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .exceptions import (
    AuthorizationFailure,
    MiddlewareResolutionError,
    OperationConfigurationError,
    OperationException,
    UnhandledStepFailure,
)


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do Atlas Operation.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao autor da operação (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

VALIDATION_FAILED = "VALIDATION_FAILED"
STEP_FAILURE_UNHANDLED = "STEP_FAILURE_UNHANDLED"
AUTHORIZATION_DENIED = "AUTHORIZATION_DENIED"
MIDDLEWARE_UNRESOLVED = "MIDDLEWARE_UNRESOLVED"
OPERATION_CONFIGURATION_ERROR = "OPERATION_CONFIGURATION_ERROR"
OPERATION_EXECUTION_ERROR = "OPERATION_EXECUTION_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def validation_failed(
    *,
    operation: str,
    step: Optional[str],
    errors: Dict[str, List[str]],
    hint: str = "Inspecione o coletor de erros do estado retornado; a chamada não foi interrompida por exceção.",
) -> ErrorPayload:
    return ErrorPayload(
        type=VALIDATION_FAILED,
        message="Validação do estado falhou",
        details={
            "operation": operation,
            "step": step,
            "errors": errors,
        },
        hint=hint,
    )


def operation_execution_error(
    *,
    step: Optional[str] = None,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique o stacktrace do handler. Nenhum retry ou fallback é aplicado pelo engine.",
) -> ErrorPayload:
    return ErrorPayload(
        type=OPERATION_EXECUTION_ERROR,
        message="Falha inesperada durante a execução da operação",
        details={
            "step": step,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )


def exception_to_error(exc: BaseException, *, step: Optional[str] = None) -> ErrorPayload:
    """Converte exceções em ErrorPayload (serializável, acionável).

    Regras:
    - Exceções do engine mapeiam para o código estável da sua família.
    - Outras exceções: encapsular como OPERATION_EXECUTION_ERROR sem expor stack trace.
    """
    if isinstance(exc, OperationException):
        if isinstance(exc, UnhandledStepFailure):
            code = STEP_FAILURE_UNHANDLED
        elif isinstance(exc, AuthorizationFailure):
            code = AUTHORIZATION_DENIED
        elif isinstance(exc, MiddlewareResolutionError):
            code = MIDDLEWARE_UNRESOLVED
        elif isinstance(exc, OperationConfigurationError):
            code = OPERATION_CONFIGURATION_ERROR
        else:
            code = OPERATION_EXECUTION_ERROR

        details = dict(exc.details or {})
        if step is not None:
            details.setdefault("step", step)
        return ErrorPayload(
            type=code,
            message=exc.message or "Erro de execução",
            details=details,
            hint=exc.hint,
        )

    return operation_execution_error(
        step=step,
        exc_type=exc.__class__.__name__,
        exc_message=str(exc) or None,
    )
