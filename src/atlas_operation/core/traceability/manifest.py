# src/atlas_operation/core/traceability/manifest.py
"""
Manifest v1 — rastreabilidade de chamadas de operações.

O Manifest consolida, por chamada:
    - metadados da chamada (run_id, operação, dry run, início)
    - hashes semânticos das entradas (configuração do engine e input cru)
    - estado incremental de cada step (running → finished | halted | failed)
    - Event Log ordenado de eventos explícitos
    - desfecho da chamada (`outcome`)

Princípios:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - A ordem do Event Log reflete a ordem real de execução
    - O Manifest é serializável e reconstruível (round-trip JSON)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - A API aceita o Manifest como objeto ou como dict serializado
    - O Manifest não conhece Executor, builder ou estado de domínio

Limites explícitos:
    - Não executa operações
    - Não serializa o estado de domínio (apenas hashes e nomes de steps)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union


STATUS_RUNNING = "running"
STATUS_FINISHED = "finished"
STATUS_HALTED = "halted"
STATUS_FAILED = "failed"


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps sem timezone são assumidos como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class OperationManifest:
    """
    Registro de uma chamada de operação.

    Campos:
        - run: run_id, operation, started_at, dry_run, engine_version
        - inputs: config_hash, input_hash
        - steps: estado incremental indexado pelo nome do step
        - events: Event Log ordenado
        - outcome: desfecho da chamada (vazio até `operation_finished`)

    Invariantes:
        - `steps` é sempre um dicionário indexado pelo nome do step
        - `events` é sempre uma lista ordenada
        - A estrutura completa é serializável em JSON
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    steps: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)
    outcome: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Cópia serializável; alterações no retorno não afetam o Manifest."""
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "steps": {k: dict(v) for k, v in self.steps.items()},
            "events": [dict(e) for e in self.events],
            "outcome": dict(self.outcome),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OperationManifest":
        """Reconstrução permissiva: campos ausentes iniciam vazios."""
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            steps={k: dict(v) for k, v in (data.get("steps", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
            outcome=dict(data.get("outcome", {}) or {}),
        )


ManifestLike = Union[OperationManifest, Dict[str, Any]]


def create_manifest(
    *,
    run_id: str,
    operation: str,
    started_at: datetime,
    engine_version: str,
    config_hash: str,
    input_hash: str,
    dry_run: bool = False,
) -> OperationManifest:
    """
    Cria o Manifest inicial de uma chamada.

    ⚠️ Importante: esta função **não emite eventos implicitamente**.
    O Event Log inicia vazio e só é preenchido por chamadas explícitas.

    Args:
        run_id (str): Identificador único da chamada.
        operation (str): Nome da operação executada.
        started_at (datetime): Início da chamada.
        engine_version (str): Versão do Atlas Operation.
        config_hash (str): Hash da configuração efetiva do engine.
        input_hash (str): Hash canônico do input cru.
        dry_run (bool): Se a chamada executa a sequência de dry run.

    Returns:
        OperationManifest: Manifest com `steps` e `events` vazios.
    """
    return OperationManifest(
        run={
            "run_id": run_id,
            "operation": operation,
            "started_at": _iso(started_at),
            "dry_run": bool(dry_run),
            "engine_version": engine_version,
        },
        inputs={
            "config_hash": config_hash,
            "input_hash": input_hash,
        },
    )


def _get_manifest(manifest: ManifestLike) -> Tuple[OperationManifest, bool]:
    if isinstance(manifest, OperationManifest):
        return manifest, False
    return OperationManifest.from_dict(manifest), True


def _sync(manifest: ManifestLike, m: OperationManifest, is_dict: bool) -> None:
    if is_dict:
        manifest.clear()
        manifest.update(m.to_dict())


def add_event(
    manifest: ManifestLike,
    *,
    event_type: str,
    ts: datetime,
    step_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Adiciona exatamente um evento ao Event Log, na ordem de chamada."""
    m, is_dict = _get_manifest(manifest)

    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if step_id is not None:
        ev["step_id"] = step_id
    if payload is not None:
        ev["payload"] = payload

    m.events.append(ev)
    _sync(manifest, m, is_dict)


def step_started(manifest: ManifestLike, *, step_id: str, kind: str, ts: datetime) -> None:
    """Marca o step como `running` e registra `step_started`."""
    m, is_dict = _get_manifest(manifest)

    m.steps.setdefault(step_id, {})
    m.steps[step_id].update(
        {
            "step_id": step_id,
            "kind": kind,
            "status": STATUS_RUNNING,
            "started_at": _iso(ts),
        }
    )

    add_event(m, event_type="step_started", ts=ts, step_id=step_id, payload={"kind": kind})
    _sync(manifest, m, is_dict)


def _close_step(m: OperationManifest, step_id: str, ts: datetime, status: str) -> Dict[str, Any]:
    s = m.steps.setdefault(step_id, {"step_id": step_id})
    started_iso = s.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts
    s.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
        }
    )
    return s


def step_finished(manifest: ManifestLike, *, step_id: str, ts: datetime) -> None:
    """Conclusão normal: o estado retornado segue para o próximo step."""
    m, is_dict = _get_manifest(manifest)
    s = _close_step(m, step_id, ts, STATUS_FINISHED)
    add_event(
        m,
        event_type="step_finished",
        ts=ts,
        step_id=step_id,
        payload={"status": STATUS_FINISHED, "duration_ms": s["duration_ms"]},
    )
    _sync(manifest, m, is_dict)


def step_halted(manifest: ManifestLike, *, step_id: str, ts: datetime, reason: str) -> None:
    """
    Registra a interrupção normal da chamada no step.

    Uma parada (validação falhou, ou handler de falha assumiu o resultado)
    não é erro: a chamada retorna normalmente. O motivo fica em `reason`.
    """
    m, is_dict = _get_manifest(manifest)
    s = _close_step(m, step_id, ts, STATUS_HALTED)
    s["reason"] = reason
    add_event(
        m,
        event_type="step_halted",
        ts=ts,
        step_id=step_id,
        payload={"reason": reason, "duration_ms": s["duration_ms"]},
    )
    _sync(manifest, m, is_dict)


def step_failed(manifest: ManifestLike, *, step_id: str, ts: datetime, error: Dict[str, Any]) -> None:
    """Registra a falha fatal do step com o `ErrorPayload` serializado."""
    m, is_dict = _get_manifest(manifest)
    s = _close_step(m, step_id, ts, STATUS_FAILED)
    s["error"] = dict(error)
    add_event(m, event_type="step_failed", ts=ts, step_id=step_id, payload={"error": dict(error)})
    _sync(manifest, m, is_dict)


def operation_finished(
    manifest: ManifestLike,
    *,
    ts: datetime,
    status: str,
    executed: List[str],
    halted_at: Optional[str] = None,
    reason: Optional[str] = None,
) -> None:
    """Fecha a chamada: preenche `outcome` e registra `operation_finished`."""
    m, is_dict = _get_manifest(manifest)
    started_iso = m.run.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts
    m.outcome = {
        "status": status,
        "finished_at": _iso(ts),
        "duration_ms": _ms_between(started_dt, ts),
        "executed": list(executed),
        "halted_at": halted_at,
        "reason": reason,
    }
    add_event(m, event_type="operation_finished", ts=ts, payload={"status": status})
    _sync(manifest, m, is_dict)


def save_manifest(manifest: ManifestLike, path: Path) -> None:
    """
    Persiste o Manifest em JSON determinístico (`sort_keys=True`).

    Diretórios intermediários são criados automaticamente.

    Raises:
        OSError: falha ao criar diretórios ou escrever o arquivo.
        TypeError: conteúdo não serializável em JSON.
    """
    data = manifest.to_dict() if isinstance(manifest, OperationManifest) else manifest
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")


def load_manifest(path: Path) -> OperationManifest:
    data = json.loads(path.read_text(encoding="utf-8"))
    return OperationManifest.from_dict(data)
