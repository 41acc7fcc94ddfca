"""
Estado de execução de uma chamada.

Este módulo define o `ExecutionState`, a estrutura efêmera criada pelo
Executor a cada chamada e descartada ao final dela.

O ExecutionState concentra:
    - identidade da chamada (run_id, operação, dry run)
    - `current`: valor que flui entre steps, substituído a cada retorno
    - `original`: valor produzido pela fábrica de estado, nunca reatribuído
    - controle de parada (`halted`, `halted_at`, `halt_reason`, `result`)
    - log estruturado de eventos da chamada

Invariantes:
    - Cada chamada possui um ExecutionState exclusivo
    - `original` referencia o mesmo objeto criado pela fábrica (sem cópia);
      mutações in-place feitas por steps ficam visíveis através dele
    - Eventos sempre incluem `run_id`, `operation` e `step_id`

Limites explícitos:
    - Não executa steps
    - Não persiste dados (ver traceability)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class ExecutionState:
    """Contexto mutável e exclusivo de uma chamada em andamento."""

    run_id: str
    operation: str
    current: Any
    original: Any
    dry_run: bool = False
    record_events: bool = True

    halted: bool = field(default=False, init=False)
    halted_at: Optional[str] = field(default=None, init=False)
    halt_reason: Optional[str] = field(default=None, init=False)
    result: Any = field(default=None, init=False)
    executed: List[str] = field(default_factory=list, init=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False)

    @property
    def errors(self) -> Any:
        """Coletor de erros do objeto corrente (None se o estado não tiver um)."""
        return getattr(self.current, "errors", None)

    def advance(self, step_name: str, new_state: Any) -> None:
        self.executed.append(step_name)
        self.current = new_state

    def halt(self, *, step_name: str, result: Any, reason: str) -> None:
        self.executed.append(step_name)
        self.halted = True
        self.halted_at = step_name
        self.halt_reason = reason
        self.result = result

    def complete(self) -> None:
        if not self.halted:
            self.result = self.current

    # -----------------------------
    # Logging
    # -----------------------------
    def log(self, *, step_id: Optional[str], level: str, message: str, **extra: Any) -> None:
        if not self.record_events:
            return
        event = {
            "run_id": self.run_id,
            "operation": self.operation,
            "step_id": step_id,
            "level": level,
            "message": message,
            "dry_run": self.dry_run,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)
