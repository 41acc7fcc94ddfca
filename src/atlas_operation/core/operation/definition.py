"""
Definição imutável de uma operação.

Produzida uma única vez por `OperationBuilder.build()` e compartilhada,
somente leitura, por todas as chamadas. Nenhum código de chamada altera
`steps`, `dry_run_steps` ou `error_handlers`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Tuple

from atlas_operation.core.exceptions import OperationConfigurationError
from atlas_operation.core.middleware import MiddlewareRegistry
from atlas_operation.core.validation import ValidationRules

from .types import ErrorHandler, MiddlewareResolver, StepDescriptor, StepKind


def _empty_handlers() -> Mapping[str, ErrorHandler]:
    return MappingProxyType({})


@dataclass(frozen=True, eq=False)
class OperationDefinition:
    """
    Configuração nomeada de um pipeline.

    Campos:
        - name: identificador da operação
        - steps: sequência principal (ordem de execução)
        - schema: consumido pela fábrica de estado
        - validation_rules: regras do gate de validação (se houver)
        - policy: (checker, predicado) do gate de política (se houver)
        - middleware_resolver / middleware_registry: delegação tardia
        - dry_run_steps: sequência alternativa (None = sem dry run)
        - dry_run_bypasses_representer: dry run devolve o estado cru
        - representer: envolve o resultado terminal
        - continues_from: nome da operação prefixada (informativo)
        - error_handlers: tabela nome do step → handler de falha

    Igualdade e hash são por identidade: definições podem ser chaves de
    dicionário mesmo carregando tabelas somente leitura.
    """

    name: str
    steps: Tuple[StepDescriptor, ...]
    schema: Any = None
    validation_rules: Optional[ValidationRules] = None
    policy: Optional[Tuple[type, str]] = None
    middleware_resolver: Optional[MiddlewareResolver] = None
    middleware_registry: Optional[MiddlewareRegistry] = None
    dry_run_steps: Optional[Tuple[StepDescriptor, ...]] = None
    dry_run_bypasses_representer: bool = False
    representer: Optional[Callable[[Any], Any]] = None
    continues_from: Optional[str] = None
    error_handlers: Mapping[str, ErrorHandler] = field(default_factory=_empty_handlers)

    @property
    def step_names(self) -> List[str]:
        return [s.name for s in self.steps]

    @property
    def dry_run_step_names(self) -> Optional[List[str]]:
        if self.dry_run_steps is None:
            return None
        return [s.name for s in self.dry_run_steps]

    @property
    def has_dry_run(self) -> bool:
        return self.dry_run_steps is not None

    def step(self, name: str) -> StepDescriptor:
        for s in self.steps:
            if s.name == name:
                return s
        raise KeyError(name)

    def sequence(self, *, dry_run: bool = False) -> Tuple[StepDescriptor, ...]:
        if not dry_run:
            return self.steps
        if self.dry_run_steps is None:
            raise OperationConfigurationError(
                message=f"Operation {self.name!r} declares no dry-run sequence",
                details={"operation": self.name},
                hint="Declare builder.dry_run() antes do build.",
            )
        return self.dry_run_steps

    def gates(self) -> List[StepDescriptor]:
        return [s for s in self.steps if s.kind in (StepKind.VALIDATION, StepKind.POLICY)]
