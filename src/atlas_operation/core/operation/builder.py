"""
Builder declarativo de operações.

O `OperationBuilder` acumula declarações (steps, gates, handlers de falha,
dry run, continuação) e produz uma `OperationDefinition` imutável em
`build()`. Toda a composição acontece aqui, em tempo de definição:

    - steps são registrados na ordem textual das declarações
    - o gate de validação ocupa a posição da PRIMEIRA declaração
      `validate`/`custom_validation`; as seguintes dobram regras no mesmo
      conjunto, sem criar novas posições
    - o gate de política ocupa a posição da sua (única) declaração
    - `continues_from` prefixa os steps já resolvidos da operação anterior
      (gates e middlewares ligados inclusos) antes das declarações próprias
    - steps MIDDLEWARE são ligados ao resolver/registry desta operação
    - handlers de falha e a sequência de dry run são validados contra a
      sequência final

Exemplo:

    builder = define("users.create")
    builder.schema({"email": "string", "name": "string", "age": "integer"})
    builder.step("normalize_email", normalize_email)
    builder.validate(required=("name", "email"))
    builder.step("create_user", create_user)
    builder.on_failure("create_user", lambda state, err: state)
    builder.dry_run().step("normalize_email").step("create_user", fake_create)
    definition = builder.build()

Erros de configuração são detectados aqui, nunca durante chamadas.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from atlas_operation.core.exceptions import (
    DuplicateGateError,
    OperationConfigurationError,
    UnknownStepError,
)
from atlas_operation.core.middleware import MiddlewareRegistry
from atlas_operation.core.policy import ensure_predicate
from atlas_operation.core.state import Schema, load_schema
from atlas_operation.core.validation import ValidationRules, build_rules, custom as custom_rule

from .definition import OperationDefinition
from .dry_run import DryRunBuilder
from .registry import StepRegistry
from .types import ErrorHandler, MiddlewareResolver, StepDescriptor, StepKind, TransformHandler


_VALIDATION_SLOT = "__validation__"
_POLICY_SLOT = "__policy__"

Declaration = Union[StepDescriptor, str]


class OperationBuilder:
    """Acumulador de declarações de uma operação (tempo de definição)."""

    def __init__(self, name: str) -> None:
        if not isinstance(name, str) or not name.strip():
            raise ValueError("operation name must be a non-empty string")
        self.name = name
        self._declared: List[Declaration] = []
        self._schema: Any = None
        self._rules: Optional[ValidationRules] = None
        self._policy: Optional[Tuple[type, str]] = None
        self._resolver: Optional[MiddlewareResolver] = None
        self._registry: Optional[MiddlewareRegistry] = None
        self._handlers: Dict[str, ErrorHandler] = {}
        self._dry_run: Optional[DryRunBuilder] = None
        self._representer: Optional[Callable[[Any], Any]] = None
        self._prior: Optional[OperationDefinition] = None

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    @property
    def validation_gate_name(self) -> str:
        return f"{self.name}.validate"

    @property
    def policy_gate_name(self) -> str:
        return f"{self.name}.policy"

    def _fold_rules(self, rules: ValidationRules) -> None:
        if self._rules is None:
            self._rules = rules
            self._declared.append(_VALIDATION_SLOT)
        else:
            self._rules = self._rules.merge(rules)

    def validate(
        self,
        rules: Optional[ValidationRules] = None,
        *,
        required: Iterable[str] = (),
    ) -> "OperationBuilder":
        combined = build_rules(required_fields=required)
        if rules is not None:
            combined = combined.merge(rules)
        self._fold_rules(combined)
        return self

    def custom_validation(self, fn: Callable[[Any], Any]) -> "OperationBuilder":
        if not callable(fn):
            raise TypeError("custom validation must be callable")
        self._fold_rules(custom_rule(fn))
        return self

    def policy(self, checker: type, predicate: str) -> "OperationBuilder":
        if self._policy is not None:
            raise DuplicateGateError(
                message=f"Operation {self.name!r} already declares a policy",
                details={"operation": self.name, "checker": getattr(checker, "__name__", repr(checker))},
            )
        ensure_predicate(checker, predicate)
        self._policy = (checker, predicate)
        self._declared.append(_POLICY_SLOT)
        return self

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def step(self, name: str, handler: Optional[TransformHandler] = None) -> Any:
        """Declara um step TRANSFORM. Sem handler, funciona como decorator."""
        if handler is None:
            def decorator(fn: TransformHandler) -> TransformHandler:
                self._declared.append(StepDescriptor.transform(name, fn))
                return fn
            return decorator

        self._declared.append(StepDescriptor.transform(name, handler))
        return self

    def middleware(self, name: str) -> "OperationBuilder":
        self._declared.append(StepDescriptor.middleware(name))
        return self

    def middleware_resolver(self, resolver: MiddlewareResolver, registry: MiddlewareRegistry) -> "OperationBuilder":
        if not callable(resolver):
            raise TypeError("middleware resolver must be callable")
        if not isinstance(registry, MiddlewareRegistry):
            raise TypeError("registry must be a MiddlewareRegistry")
        self._resolver = resolver
        self._registry = registry
        return self

    def on_failure(self, step_name: str, handler: Optional[ErrorHandler] = None) -> Any:
        """Associa um handler de falha ao step. Sem handler, funciona como decorator."""
        if handler is None:
            def decorator(fn: ErrorHandler) -> ErrorHandler:
                self._handlers[step_name] = fn
                return fn
            return decorator

        if not callable(handler):
            raise TypeError(f"failure handler for {step_name!r} must be callable")
        self._handlers[step_name] = handler
        return self

    # ------------------------------------------------------------------
    # Demais declarações
    # ------------------------------------------------------------------

    def schema(self, schema: Any) -> "OperationBuilder":
        if isinstance(schema, (str, Path)):
            schema = load_schema(schema)
        elif isinstance(schema, Mapping):
            schema = Schema.from_dict(schema)
        self._schema = schema
        return self

    def representer(self, representer: Callable[[Any], Any]) -> "OperationBuilder":
        if not callable(representer):
            raise TypeError("representer must be callable")
        self._representer = representer
        return self

    def dry_run(self) -> DryRunBuilder:
        if self._dry_run is None:
            self._dry_run = DryRunBuilder(self.name)
        return self._dry_run

    def continues_from(self, prior: Any) -> "OperationBuilder":
        if self._prior is not None:
            raise OperationConfigurationError(
                message=f"Operation {self.name!r} already continues from {self._prior.name!r}",
                details={"operation": self.name},
            )
        definition = getattr(prior, "definition", prior)
        if not isinstance(definition, OperationDefinition):
            raise TypeError("continues_from expects an OperationDefinition or Operation")
        self._prior = definition
        return self

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def _bind_middleware(self, step: StepDescriptor) -> StepDescriptor:
        if self._resolver is None or self._registry is None:
            raise OperationConfigurationError(
                message=f"Middleware step {step.name!r} requires a middleware resolver",
                details={"operation": self.name, "step": step.name},
                hint="Declare builder.middleware_resolver(resolver, registry).",
            )
        return replace(step, resolver=self._resolver, registry=self._registry)

    def _resolve_declaration(self, item: Declaration) -> StepDescriptor:
        if item == _VALIDATION_SLOT and self._rules is not None:
            return StepDescriptor.validation(self.validation_gate_name, self._rules)
        if item == _POLICY_SLOT and self._policy is not None:
            checker, predicate = self._policy
            return StepDescriptor.policy(self.policy_gate_name, checker, predicate)
        if isinstance(item, str):
            raise OperationConfigurationError(
                message=f"Gate slot {item!r} has no declaration to resolve",
                details={"operation": self.name, "slot": item},
            )
        if item.kind == StepKind.MIDDLEWARE:
            return self._bind_middleware(item)
        return item

    def _resolve_handlers(self, registry: StepRegistry) -> Dict[str, ErrorHandler]:
        handlers: Dict[str, ErrorHandler] = dict(self._prior.error_handlers) if self._prior else {}
        for step_name, handler in self._handlers.items():
            if step_name not in registry:
                raise UnknownStepError(
                    message=f"on_failure references unknown step: {step_name}",
                    details={"operation": self.name, "step": step_name},
                )
            if registry.get(step_name).is_gate:
                raise OperationConfigurationError(
                    message=f"on_failure cannot be attached to gate {step_name}",
                    details={"operation": self.name, "step": step_name},
                    hint="Falhas de validação retornam o estado; falhas de política propagam.",
                )
            handlers[step_name] = handler
        return handlers

    def build(self) -> OperationDefinition:
        registry = StepRegistry(operation=self.name)
        if self._prior is not None:
            registry.extend(self._prior.steps)

        for item in self._declared:
            registry.add(self._resolve_declaration(item))

        steps = registry.freeze()
        handlers = self._resolve_handlers(registry)

        dry_run_steps = None
        if self._dry_run is not None:
            dry_run_steps = self._dry_run.resolve(
                steps,
                validation_gate=self.validation_gate_name if self._rules is not None else None,
                policy_gate=self.policy_gate_name if self._policy is not None else None,
            )

        schema = self._schema
        if schema is None and self._prior is not None:
            schema = self._prior.schema

        return OperationDefinition(
            name=self.name,
            steps=steps,
            schema=schema,
            validation_rules=self._rules,
            policy=self._policy,
            middleware_resolver=self._resolver,
            middleware_registry=self._registry,
            dry_run_steps=dry_run_steps,
            dry_run_bypasses_representer=bool(self._dry_run and self._dry_run.bypasses_representer),
            representer=self._representer,
            continues_from=self._prior.name if self._prior is not None else None,
            error_handlers=MappingProxyType(handlers),
        )


def define(name: str) -> OperationBuilder:
    return OperationBuilder(name)
