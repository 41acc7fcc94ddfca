"""
Registro ordenado de steps de uma operação.

O `StepRegistry` acumula StepDescriptors durante a definição da operação
e valida a integridade estrutural antes que qualquer chamada aconteça:
    - cada step possui um nome válido
    - não existem nomes duplicados (necessário para referência por nome no
      dry run e para associação de handlers de falha)
    - a ordem de declaração é a ordem de execução

Decisões arquiteturais:
    - A validação ocorre no momento do registro (tempo de definição)
    - Erros estruturais são falhas fatais de configuração
    - `freeze()` entrega uma tupla: após o build nada mais é registrado

Limites explícitos:
    - Não executa steps
    - Não insere gates por conta própria (responsabilidade do builder)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from atlas_operation.core.exceptions import DuplicateStepNameError, UnknownStepError

from .types import StepDescriptor


@dataclass
class StepRegistry:
    """
    Registro canônico de steps, na ordem de declaração.

    Invariantes:
        - Cada `step.name` é único no registry
        - `list()` reflete exatamente a ordem de registro
        - Um registry congelado não aceita novos steps
    """

    operation: str = ""
    _steps: Dict[str, StepDescriptor] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)
    _frozen: bool = field(default=False, init=False, repr=False)

    def add(self, step: StepDescriptor) -> None:
        if self._frozen:
            raise RuntimeError(f"step registry of {self.operation!r} is frozen")

        name = getattr(step, "name", None)
        if not isinstance(name, str) or not name.strip():
            raise ValueError("step.name must be a non-empty string")

        if name in self._steps:
            raise DuplicateStepNameError(
                message=f"Duplicate step name: {name}",
                details={"operation": self.operation, "step": name},
                hint="Nomes de step devem ser únicos, inclusive entre steps herdados via continues_from.",
            )

        self._steps[name] = step
        self._order.append(name)

    def extend(self, steps: Iterable[StepDescriptor]) -> None:
        for step in steps:
            self.add(step)

    def get(self, name: str) -> StepDescriptor:
        if name not in self._steps:
            raise UnknownStepError(
                message=f"Unknown step: {name}",
                details={"operation": self.operation, "step": name, "known": list(self._order)},
            )
        return self._steps[name]

    def __contains__(self, name: object) -> bool:
        return name in self._steps

    def names(self) -> List[str]:
        return list(self._order)

    def list(self) -> List[StepDescriptor]:
        return [self._steps[n] for n in self._order]

    def freeze(self) -> Tuple[StepDescriptor, ...]:
        self._frozen = True
        return tuple(self.list())
