# src/atlas_operation/core/traceability/__init__.py
"""
Pacote de rastreabilidade do Atlas Operation — Manifest v1.

API pública exposta:
    - OperationManifest   → estrutura canônica do Manifest de uma chamada
    - create_manifest     → criação explícita do Manifest
    - add_event           → registro explícito de eventos no Event Log
    - step_started        → marca início de um step
    - step_finished       → conclusão normal de um step
    - step_halted         → parada normal da chamada (validação / on_failure)
    - step_failed         → falha fatal de um step
    - operation_finished  → desfecho da chamada
    - save_manifest       → persistência em JSON
    - load_manifest       → restauração determinística

Limites explícitos:
    - Não executa operações
    - Não decide políticas de execução
"""

from .manifest import (
    OperationManifest,
    create_manifest,
    add_event,
    step_started,
    step_finished,
    step_halted,
    step_failed,
    operation_finished,
    save_manifest,
    load_manifest,
)

__all__ = [
    "OperationManifest",
    "create_manifest",
    "add_event",
    "step_started",
    "step_finished",
    "step_halted",
    "step_failed",
    "operation_finished",
    "save_manifest",
    "load_manifest",
]
