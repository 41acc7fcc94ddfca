"""
Definição de operações do Atlas Operation.

Este pacote reúne tudo o que acontece em tempo de definição:
    - types       → StepKind, StepDescriptor, sinal `fail`, desfechos
    - registry    → StepRegistry (ordem + unicidade de nomes)
    - dry_run     → DryRunBuilder (reuso, override e omissão de steps)
    - builder     → OperationBuilder / define (gates, continuação, handlers)
    - definition  → OperationDefinition imutável
    - context     → ExecutionState efêmero de uma chamada
    - operation   → fachada `Operation` (call / dry_run / run)

Limites explícitos:
    - A execução em si pertence a `core.engine`
"""

from .builder import OperationBuilder, define
from .context import ExecutionState
from .definition import OperationDefinition
from .dry_run import DryRunBuilder
from .operation import Operation
from .registry import StepRegistry
from .types import (
    HALT_STEP_FAILURE,
    HALT_VALIDATION,
    Continue,
    Fail,
    Fatal,
    Halt,
    StepDescriptor,
    StepKind,
    StepOutcome,
    fail,
)

__all__ = [
    "OperationBuilder",
    "define",
    "ExecutionState",
    "OperationDefinition",
    "DryRunBuilder",
    "Operation",
    "StepRegistry",
    "HALT_STEP_FAILURE",
    "HALT_VALIDATION",
    "Continue",
    "Fail",
    "Fatal",
    "Halt",
    "StepDescriptor",
    "StepKind",
    "StepOutcome",
    "fail",
]
