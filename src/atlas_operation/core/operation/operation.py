"""
Fachada pública de uma operação construída.

Uma `Operation` associa uma `OperationDefinition` imutável a um Executor
(fábrica de estado + configuração do engine). É segura para reutilização
entre chamadas e threads: cada chamada cria o próprio `ExecutionState`.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from atlas_operation.core.config import EngineConfig
from atlas_operation.core.engine.executor import Executor
from atlas_operation.core.engine.result import ExecutionResult
from atlas_operation.core.state import StateFactory

from .builder import OperationBuilder
from .definition import OperationDefinition


class Operation:
    def __init__(
        self,
        definition: OperationDefinition,
        *,
        state_factory: Optional[StateFactory] = None,
        config: Union[EngineConfig, Mapping[str, Any], None] = None,
    ) -> None:
        if isinstance(definition, OperationBuilder):
            definition = definition.build()
        if not isinstance(definition, OperationDefinition):
            raise TypeError("Operation expects an OperationDefinition")
        self.definition = definition
        self._executor = Executor(definition, state_factory=state_factory, config=config)

    @property
    def name(self) -> str:
        return self.definition.name

    def run(self, raw_input: Any, actor: Any = None, dry_run: bool = False) -> ExecutionResult:
        return self._executor.run(raw_input, actor=actor, dry_run=dry_run)

    def call(self, raw_input: Any, actor: Any = None) -> Any:
        """Executa a sequência principal e devolve o resultado final."""
        return self.run(raw_input, actor=actor).result

    def dry_run(self, raw_input: Any, actor: Any = None) -> Any:
        """Executa a sequência de dry run (OperationConfigurationError se não declarada)."""
        return self.run(raw_input, actor=actor, dry_run=True).result

    def __repr__(self) -> str:
        return f"Operation({self.name!r}, steps={self.definition.step_names!r})"
