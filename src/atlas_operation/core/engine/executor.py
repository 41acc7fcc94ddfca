# src/atlas_operation/core/engine/executor.py
"""
Executor de operações do Atlas Operation.

O Executor percorre a sequência de uma `OperationDefinition` (principal ou
de dry run) em ordem estrita, threading `current` e `original` por cada
step e inspecionando o desfecho discriminado de cada um:

    - Continue(state)  → `current` passa a ser `state`
    - Halt(result)     → a chamada termina normalmente com `result`
    - Fatal(error)     → o erro é registrado e relançado ao chamador

Comportamento por variante de step:
    - VALIDATION: `validate(rules, current)`; falha → Halt(current)
    - POLICY:     `authorize(...)`; negação → AuthorizationFailure (fatal)
    - TRANSFORM:  `handler(current, original)`
    - MIDDLEWARE: `registry.invoke(resolver(current), step.name, current)`

Sinais de falha local (`Fail` devolvido ou `StepFailure` levantado) são
tratados somente na fronteira do step que os produziu: com handler em
`error_handlers` → Halt(retorno do handler); sem handler →
Fatal(UnhandledStepFailure).

Rastreabilidade:
    - eventos estruturados no `ExecutionState` (`engine.record_events`)
    - Manifest opcional por chamada (`engine.manifest.enabled`), persistido
      em `<engine.manifest.dir>/<operação>/<run_id>.json` quando configurado
    - falhas fatais viram `ErrorPayload` antes de propagar; a exceção
      original é relançada sem encapsulamento

Limites explícitos:
    - Sem retry, timeout ou cancelamento
    - Nenhuma garantia de pureza em dry run
    - Não interpreta o estado de domínio além do coletor de erros
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union
from uuid import uuid4

from atlas_operation.core.config import EngineConfig, canonical_hash, resolve_engine_config
from atlas_operation.core.errors import exception_to_error, validation_failed
from atlas_operation.core.exceptions import NO_EXTRA, MiddlewareResolutionError, StepFailure, UnhandledStepFailure
from atlas_operation.core.operation.context import ExecutionState
from atlas_operation.core.operation.definition import OperationDefinition
from atlas_operation.core.operation.types import (
    HALT_STEP_FAILURE,
    HALT_VALIDATION,
    Continue,
    Fail,
    Fatal,
    Halt,
    StepDescriptor,
    StepKind,
    StepOutcome,
)
from atlas_operation.core.policy import authorize
from atlas_operation.core.representer import represent
from atlas_operation.core.state import SchemaStateFactory, StateFactory
from atlas_operation.core.traceability import manifest as mf
from atlas_operation.core.validation import validate

from .result import ExecutionResult


ENGINE_VERSION = "0.1.0"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _errors_dict(errors: Any) -> Dict[str, Any]:
    if errors is not None and hasattr(errors, "to_dict"):
        return dict(errors.to_dict())
    return {}


class Executor:
    """Executor canônico: uma instância por definição, reutilizável entre chamadas."""

    def __init__(
        self,
        definition: OperationDefinition,
        *,
        state_factory: Optional[StateFactory] = None,
        config: Union[EngineConfig, Mapping[str, Any], None] = None,
    ):
        self.definition = definition
        self.state_factory: StateFactory = state_factory or SchemaStateFactory()
        self.config: EngineConfig = config if isinstance(config, EngineConfig) else resolve_engine_config(config)

    # ------------------------------------------------------------------
    # Desfecho de um step
    # ------------------------------------------------------------------

    def _handle_failure(self, step: StepDescriptor, state: Any, extra: Any) -> StepOutcome:
        handler = self.definition.error_handlers.get(step.name)
        if handler is None:
            return Fatal(
                UnhandledStepFailure(
                    message=f"Unhandled failure signal in step {step.name!r}",
                    details={"operation": self.definition.name, "step": step.name},
                    hint="Declare on_failure para o step ou trate a falha dentro do próprio handler.",
                    step=step.name,
                    state=state,
                    extra=extra,
                )
            )

        if extra is NO_EXTRA:
            return Halt(handler(state), HALT_STEP_FAILURE)
        return Halt(handler(state, extra), HALT_STEP_FAILURE)

    def _guard(self, step: StepDescriptor, call: Callable[[], Any]) -> StepOutcome:
        try:
            value = call()
        except StepFailure as signal:
            return self._handle_failure(step, signal.state, signal.extra)

        if isinstance(value, Fail):
            return self._handle_failure(step, value.state, value.extra)
        return Continue(value)

    def _resolve_identifier(self, step: StepDescriptor, current: Any) -> Any:
        try:
            return step.resolver(current)
        except Exception as exc:
            raise MiddlewareResolutionError(
                message=f"Middleware resolver failed for step {step.name!r}: {exc}",
                details={"operation": self.definition.name, "step": step.name, "exc_type": type(exc).__name__},
                hint="O resolver deve calcular o identificador a partir do estado corrente.",
            ) from exc

    def _run_step(self, step: StepDescriptor, st: ExecutionState, actor: Any) -> StepOutcome:
        if step.kind == StepKind.VALIDATION:
            if validate(step.rules, st.current):
                return Continue(st.current)
            return Halt(st.current, HALT_VALIDATION)

        if step.kind == StepKind.POLICY:
            authorize(step.checker, actor, st.current, step.predicate)
            return Continue(st.current)

        if step.kind == StepKind.MIDDLEWARE:
            identifier = self._resolve_identifier(step, st.current)
            current = st.current
            return self._guard(step, lambda: step.registry.invoke(identifier, step.name, current))

        current, original = st.current, st.original
        return self._guard(step, lambda: step.handler(current, original))

    # ------------------------------------------------------------------
    # Rastreabilidade
    # ------------------------------------------------------------------

    def _create_manifest(self, st: ExecutionState, raw_input: Any) -> Optional[mf.OperationManifest]:
        if not self.config.manifest_enabled:
            return None
        manifest = mf.create_manifest(
            run_id=st.run_id,
            operation=st.operation,
            started_at=_now(),
            engine_version=ENGINE_VERSION,
            config_hash=self.config.config_hash,
            input_hash=canonical_hash(raw_input),
            dry_run=st.dry_run,
        )
        mf.add_event(manifest, event_type="operation_started", ts=_now())
        return manifest

    def _finish_manifest(self, manifest: Optional[mf.OperationManifest], st: ExecutionState, status: str) -> None:
        if manifest is None:
            return
        mf.operation_finished(
            manifest,
            ts=_now(),
            status=status,
            executed=st.executed,
            halted_at=st.halted_at,
            reason=st.halt_reason,
        )
        if self.config.manifest_dir:
            path = Path(self.config.manifest_dir) / st.operation / f"{st.run_id}.json"
            mf.save_manifest(manifest, path)

    def _record_halt(self, step: StepDescriptor, st: ExecutionState, manifest: Optional[mf.OperationManifest], reason: str) -> None:
        if reason == HALT_VALIDATION:
            payload = validation_failed(
                operation=st.operation,
                step=step.name,
                errors=_errors_dict(st.errors),
            )
            st.log(step_id=step.name, level="warning", message="validation_failed", error=payload.to_dict())
        st.log(step_id=step.name, level="info", message="step_halted", reason=reason)
        if manifest is not None:
            mf.step_halted(manifest, step_id=step.name, ts=_now(), reason=reason)

    def _record_fatal(self, step: StepDescriptor, st: ExecutionState, manifest: Optional[mf.OperationManifest], error: BaseException) -> None:
        payload = exception_to_error(error, step=step.name).to_dict()
        st.log(step_id=step.name, level="error", message="step_failed", error=payload)
        if manifest is not None:
            mf.step_failed(manifest, step_id=step.name, ts=_now(), error=payload)
        self._finish_manifest(manifest, st, mf.STATUS_FAILED)

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------

    def run(self, raw_input: Any, *, actor: Any = None, dry_run: bool = False) -> ExecutionResult:
        definition = self.definition
        sequence = definition.sequence(dry_run=dry_run)

        initial = self.state_factory.build(definition.schema, raw_input)
        st = ExecutionState(
            run_id=uuid4().hex,
            operation=definition.name,
            current=initial,
            original=initial,
            dry_run=dry_run,
            record_events=self.config.record_events,
        )
        manifest = self._create_manifest(st, raw_input)
        st.log(step_id=None, level="info", message="operation_started", steps=[s.name for s in sequence])

        for step in sequence:
            st.log(step_id=step.name, level="info", message="step_started", kind=step.kind.value)
            if manifest is not None:
                mf.step_started(manifest, step_id=step.name, kind=step.kind.value, ts=_now())

            try:
                outcome = self._run_step(step, st, actor)
            except Exception as exc:
                outcome = Fatal(exc)

            if isinstance(outcome, Fatal):
                self._record_fatal(step, st, manifest, outcome.error)
                raise outcome.error

            if isinstance(outcome, Halt):
                st.halt(step_name=step.name, result=outcome.result, reason=outcome.reason)
                self._record_halt(step, st, manifest, outcome.reason)
                break

            st.advance(step.name, outcome.state)
            st.log(step_id=step.name, level="info", message="step_finished")
            if manifest is not None:
                mf.step_finished(manifest, step_id=step.name, ts=_now())

        st.complete()
        status = mf.STATUS_HALTED if st.halted else mf.STATUS_FINISHED
        st.log(step_id=None, level="info", message="operation_finished", status=status, executed=list(st.executed))
        self._finish_manifest(manifest, st, status)

        result = st.result
        bypass = dry_run and definition.dry_run_bypasses_representer
        if definition.representer is not None and not bypass:
            result = represent(definition.representer, result)

        return ExecutionResult(
            operation=definition.name,
            run_id=st.run_id,
            result=result,
            state=st.result,
            halted=st.halted,
            halted_at=st.halted_at,
            halt_reason=st.halt_reason,
            dry_run=dry_run,
            executed=tuple(st.executed),
            events=list(st.events),
            manifest=manifest,
        )


def execute(
    definition: OperationDefinition,
    raw_input: Any,
    *,
    actor: Any = None,
    dry_run: bool = False,
    state_factory: Optional[StateFactory] = None,
    config: Union[EngineConfig, Mapping[str, Any], None] = None,
) -> ExecutionResult:
    """Atalho: `Executor(definition, ...).run(raw_input, ...)`."""
    return Executor(definition, state_factory=state_factory, config=config).run(
        raw_input, actor=actor, dry_run=dry_run
    )
