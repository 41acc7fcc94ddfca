"""
Regras de validação avaliadas pelo gate de validação.

Uma operação possui no máximo um conjunto de regras (`ValidationRules`).
Declarações sucessivas (`validate`, `custom_validation`) são dobradas no
mesmo conjunto pelo builder; o gate ocupa uma única posição na sequência.

Contrato consumido pelo Executor:

    validate(rules, state) -> bool

    - executa todas as regras contra `state`
    - registra falhas em `state.errors`
    - retorna True quando o coletor termina vazio

Regras suportadas (v1):
    - required: campo ausente, None, string em branco ou coleção vazia
    - rule(field, predicate, message): predicado sobre o valor (ignorado se None)
    - custom(fn): `fn(state)` registra erros diretamente em `state.errors`

Campos aninhados são referenciados por caminho pontuado (`address.zip`).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Mapping, Tuple

from .exceptions import OperationConfigurationError


REQUIRED_MESSAGE = "is required"
_MISSING = object()


@dataclass(frozen=True)
class FieldRule:
    field: str
    predicate: Callable[[Any], bool]
    message: str = "is invalid"


@dataclass(frozen=True)
class ValidationRules:
    """Conjunto imutável de regras de uma operação."""

    required: Tuple[str, ...] = ()
    rules: Tuple[FieldRule, ...] = ()
    custom: Tuple[Callable[[Any], Any], ...] = ()

    def merge(self, other: "ValidationRules") -> "ValidationRules":
        required = self.required + tuple(n for n in other.required if n not in self.required)
        return replace(
            self,
            required=required,
            rules=self.rules + other.rules,
            custom=self.custom + other.custom,
        )

    def is_empty(self) -> bool:
        return not (self.required or self.rules or self.custom)


def required(*names: str) -> ValidationRules:
    return ValidationRules(required=tuple(names))


def rule(field_name: str, predicate: Callable[[Any], bool], message: str = "is invalid") -> ValidationRules:
    return ValidationRules(rules=(FieldRule(field_name, predicate, message),))


def custom(fn: Callable[[Any], Any]) -> ValidationRules:
    return ValidationRules(custom=(fn,))


def build_rules(
    *,
    required_fields: Iterable[str] = (),
    rules: Iterable[FieldRule] = (),
    custom_validators: Iterable[Callable[[Any], Any]] = (),
) -> ValidationRules:
    return ValidationRules(
        required=tuple(required_fields),
        rules=tuple(rules),
        custom=tuple(custom_validators),
    )


def _lookup(state: Any, path: str) -> Any:
    value = state
    for part in path.split("."):
        if value is None:
            return _MISSING
        if isinstance(value, Mapping):
            value = value.get(part, _MISSING)
        else:
            value = getattr(value, part, _MISSING)
        if value is _MISSING:
            return _MISSING
    return value


def _is_blank(value: Any) -> bool:
    if value is _MISSING or value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


def validate(rules: ValidationRules, state: Any) -> bool:
    """Executa `rules` contra `state`, populando `state.errors`."""
    errors = getattr(state, "errors", None)
    if errors is None or not hasattr(errors, "add"):
        raise OperationConfigurationError(
            message="Validation requires a state exposing an error collector",
            details={"state_type": type(state).__name__},
            hint="O step anterior ao gate deve retornar um estado com `errors`.",
        )

    for name in rules.required:
        if _is_blank(_lookup(state, name)):
            errors.add(name, REQUIRED_MESSAGE)

    for field_rule in rules.rules:
        value = _lookup(state, field_rule.field)
        if value is _MISSING or value is None:
            continue
        if not field_rule.predicate(value):
            errors.add(field_rule.field, field_rule.message)

    for fn in rules.custom:
        fn(state)

    return not errors
