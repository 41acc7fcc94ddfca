# src/atlas_operation/core/engine/result.py
"""Resultado agregado de uma chamada de operação."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from atlas_operation.core.traceability.manifest import OperationManifest


@dataclass(frozen=True)
class ExecutionResult:
    """
    ExecutionResult v1.

    `result` é o valor entregue ao chamador (já envolvido pelo representer,
    quando aplicável); `state` é o valor terminal cru, antes do representer.
    Uma chamada interrompida (`halted=True`) não é um erro: validação que
    falhou ou handler de falha que assumiu o resultado.
    """

    operation: str
    run_id: str
    result: Any
    state: Any
    halted: bool = False
    halted_at: Optional[str] = None
    halt_reason: Optional[str] = None
    dry_run: bool = False
    executed: Tuple[str, ...] = ()
    events: List[Dict[str, Any]] = field(default_factory=list)
    manifest: Optional[OperationManifest] = None

    @property
    def completed(self) -> bool:
        return not self.halted

    def events_named(self, message: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("message") == message]
