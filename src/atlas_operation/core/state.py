"""
Estado de operação e fábrica de estado padrão.

O Executor consome apenas a interface `StateFactory.build(schema, raw_input)`
e exige do objeto produzido:
    - campos nomeados (acesso por atributo)
    - um coletor de erros mutável em `errors` (usado por validações)
    - serialização (`to_dict` / `as_json`)

Este módulo fornece a implementação padrão dessa interface:
    - ErrorCollector     → erros por campo, na ordem de inserção
    - OperationState     → contêiner duck-typed de campos + coletor
    - FieldSpec / Schema → tipos declarativos com subestruturas e definições
    - SchemaStateFactory → coerção de input bruto para OperationState
    - load_schema        → schema a partir de YAML/JSON (PyYAML)

Política de coerção (v1):
    - Campos não declarados no schema são descartados
    - Campos ausentes (ou None) recebem o default declarado (cópia profunda)
    - Falhas de coerção NÃO levantam exceção: o erro é registrado no coletor
      com o caminho do campo (ex.: `address.zip`, `tags[2]`) e o valor bruto
      é mantido, deixando a decisão para o gate de validação

Limites explícitos:
    - Não executa regras de validação (ver `validation`)
    - Não conhece steps, gates ou o Executor
    - Esta implementação evita dependências externas (ex.: Pydantic)
"""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, Tuple, Union, runtime_checkable

from .config.loader import load_mapping_file
from .exceptions import OperationConfigurationError


SCALAR_TYPES = {"string", "integer", "float", "boolean", "mapping"}
_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


class SchemaError(OperationConfigurationError):
    """Schema de estado estruturalmente inválido."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message)


class ErrorCollector:
    """Coletor mutável de erros indexados por campo."""

    def __init__(self) -> None:
        self._errors: Dict[str, List[str]] = {}

    def add(self, field_name: str, message: str) -> None:
        self._errors.setdefault(field_name, []).append(message)

    def on(self, field_name: str) -> List[str]:
        return list(self._errors.get(field_name, []))

    def clear(self) -> None:
        self._errors.clear()

    def is_empty(self) -> bool:
        return not self._errors

    def to_dict(self) -> Dict[str, List[str]]:
        return {k: list(v) for k, v in self._errors.items()}

    def full_messages(self) -> List[str]:
        return [f"{name} {msg}" for name, msgs in self._errors.items() for msg in msgs]

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._errors

    def __len__(self) -> int:
        return sum(len(v) for v in self._errors.values())

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __iter__(self) -> Iterator[Tuple[str, List[str]]]:
        return iter((k, list(v)) for k, v in self._errors.items())

    def __repr__(self) -> str:
        return f"ErrorCollector({self._errors!r})"


class OperationState:
    """
    Contêiner de estado que flui entre os steps.

    Campos são acessíveis por atributo e por chave. Atribuir um atributo
    público cria/atualiza o campo correspondente, o que permite handlers no
    estilo "tap" (mutar e devolver o mesmo objeto).

    Importante: o Executor não copia o estado. Mutações in-place feitas por
    um step são visíveis também através de `original`.
    """

    def __init__(self, fields: Optional[Mapping[str, Any]] = None, *, errors: Optional[ErrorCollector] = None) -> None:
        object.__setattr__(self, "_fields", dict(fields or {}))
        object.__setattr__(self, "errors", errors if errors is not None else ErrorCollector())

    def __getattr__(self, name: str) -> Any:
        fields = self.__dict__.get("_fields", {})
        if name in fields:
            return fields[name]
        raise AttributeError(f"{type(self).__name__} has no field {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "errors" or name.startswith("_"):
            object.__setattr__(self, name, value)
        else:
            self._fields[name] = value

    def __getitem__(self, name: str) -> Any:
        return self._fields[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._fields[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def get(self, name: str, default: Any = None) -> Any:
        return self._fields.get(name, default)

    def keys(self) -> List[str]:
        return list(self._fields)

    def to_dict(self) -> Dict[str, Any]:
        return {k: _plain(v) for k, v in self._fields.items()}

    def as_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._fields!r})"


def _plain(value: Any) -> Any:
    if isinstance(value, OperationState):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldSpec:
    """Declaração de um campo: tipo escalar, lista (`of`) ou subestrutura (`schema`)."""

    name: str
    type: str = "string"
    default: Any = None
    of: Optional[Union[str, "Schema"]] = None
    schema: Optional["Schema"] = None


@dataclass(frozen=True)
class Schema:
    """Conjunto ordenado de FieldSpec consumido pela SchemaStateFactory."""

    fields: Tuple[FieldSpec, ...] = field(default_factory=tuple)

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Schema":
        """
        Materializa um Schema a partir de sua forma declarativa.

        Formato aceito:

            definitions:            # opcional, tipos reutilizáveis
              address:
                street: string
                zip: integer
            fields:
              email: string
              age: {type: integer, default: 0}
              home: address
              tags: {type: list, of: string}
              billing:
                type: mapping
                fields: {city: string}

        Um mapeamento sem `fields`/`definitions` é tratado como a própria
        seção `fields`. Definições só podem referenciar definições
        declaradas antes delas.
        """
        _expect(isinstance(data, Mapping), "schema must be a mapping")
        if "fields" in data or "definitions" in data:
            raw_defs = data.get("definitions") or {}
            raw_fields = data.get("fields") or {}
        else:
            raw_defs, raw_fields = {}, data

        _expect(isinstance(raw_defs, Mapping), "definitions must be a mapping")
        definitions: Dict[str, Schema] = {}
        for def_name, def_fields in raw_defs.items():
            _expect(_is_non_empty_str(def_name), "definition names must be non-empty strings")
            _expect(def_name not in SCALAR_TYPES and def_name != "list", f"definition name shadows a builtin type: {def_name}")
            definitions[def_name] = _parse_fields(def_fields, definitions, path=def_name)

        return _parse_fields(raw_fields, definitions, path="fields")


def _is_non_empty_str(x: Any) -> bool:
    return isinstance(x, str) and bool(x.strip())


def _expect(cond: bool, msg: str) -> None:
    if not cond:
        raise SchemaError(msg)


def _parse_fields(raw: Any, definitions: Mapping[str, Schema], *, path: str) -> Schema:
    _expect(isinstance(raw, Mapping), f"{path} must be a mapping")
    specs = [_parse_field(name, spec, definitions, path=f"{path}.{name}") for name, spec in raw.items()]
    return Schema(fields=tuple(specs))


def _resolve_type(type_name: Any, definitions: Mapping[str, Schema], *, path: str) -> Union[str, Schema]:
    _expect(_is_non_empty_str(type_name), f"{path}: type must be a non-empty string")
    if type_name in SCALAR_TYPES or type_name == "list":
        return type_name
    _expect(type_name in definitions, f"{path}: unknown type or definition {type_name!r}")
    return definitions[type_name]


def _parse_field(name: Any, spec: Any, definitions: Mapping[str, Schema], *, path: str) -> FieldSpec:
    _expect(_is_non_empty_str(name), f"{path}: field names must be non-empty strings")

    if isinstance(spec, str):
        spec = {"type": spec}
    _expect(isinstance(spec, Mapping), f"{path} must be a type name or a mapping")

    if "fields" in spec:
        nested = _parse_fields(spec["fields"], definitions, path=f"{path}.fields")
        return FieldSpec(name=name, type="mapping", default=spec.get("default"), schema=nested)

    resolved = _resolve_type(spec.get("type", "string"), definitions, path=path)
    if isinstance(resolved, Schema):
        return FieldSpec(name=name, type="mapping", default=spec.get("default"), schema=resolved)

    of: Optional[Union[str, Schema]] = None
    if resolved == "list":
        _expect("of" in spec, f"{path}: list fields must declare 'of'")
        of = _resolve_type(spec["of"], definitions, path=f"{path}.of")
        _expect(of != "list", f"{path}: nested lists are not supported")
    else:
        _expect("of" not in spec, f"{path}: 'of' is only valid for list fields")

    return FieldSpec(name=name, type=resolved, default=spec.get("default"), of=of)


def load_schema(path: Union[str, Path]) -> Schema:
    """Carrega um Schema de arquivo YAML/JSON."""
    return Schema.from_dict(load_mapping_file(Path(path)))


# ---------------------------------------------------------------------------
# Fábrica
# ---------------------------------------------------------------------------

@runtime_checkable
class StateFactory(Protocol):
    """Interface consumida pelo Executor para produzir o estado inicial."""

    def build(self, schema: Any, raw_input: Mapping[str, Any]) -> Any:
        ...


class _CoercionError(ValueError):
    pass


def _coerce_scalar(type_name: str, value: Any) -> Any:
    if type_name == "string":
        if isinstance(value, (dict, list, tuple)):
            raise _CoercionError("must be a string")
        return value if isinstance(value, str) else str(value)

    if type_name == "integer":
        if isinstance(value, bool):
            raise _CoercionError("must be an integer")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                pass
        raise _CoercionError("must be an integer")

    if type_name == "float":
        if isinstance(value, bool):
            raise _CoercionError("must be a number")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                pass
        raise _CoercionError("must be a number")

    if type_name == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise _CoercionError("must be a boolean")

    if type_name == "mapping":
        if not isinstance(value, Mapping):
            raise _CoercionError("must be a mapping")
        return dict(value)

    raise _CoercionError(f"unsupported type {type_name}")  # pragma: no cover


class SchemaStateFactory:
    """
    Implementação padrão de StateFactory.

    Sem schema, o input bruto é copiado (raso) para um OperationState.
    Com schema, cada campo declarado é coergido; subestruturas viram
    OperationState aninhados e erros de coerção vão para o coletor raiz.
    """

    def build(self, schema: Optional[Schema], raw_input: Mapping[str, Any]) -> OperationState:
        if not isinstance(raw_input, Mapping):
            raise TypeError(f"raw input must be a mapping, got {type(raw_input).__name__}")

        if schema is None:
            return OperationState(dict(raw_input))

        errors = ErrorCollector()
        return self._build_nested(schema, raw_input, errors, prefix="")

    def _build_nested(self, schema: Schema, raw: Mapping[str, Any], errors: ErrorCollector, *, prefix: str) -> OperationState:
        values: Dict[str, Any] = {}
        for spec in schema.fields:
            path = f"{prefix}{spec.name}"
            raw_value = raw.get(spec.name)
            if raw_value is None:
                values[spec.name] = deepcopy(spec.default)
                continue
            values[spec.name] = self._coerce(spec, raw_value, errors, path=path)
        return OperationState(values, errors=errors)

    def _coerce(self, spec: FieldSpec, value: Any, errors: ErrorCollector, *, path: str) -> Any:
        if spec.schema is not None:
            return self._coerce_structure(spec.schema, value, errors, path=path)

        if spec.type == "list":
            if not isinstance(value, (list, tuple)):
                errors.add(path, "must be a list")
                return value
            return [self._coerce_item(spec.of, item, errors, path=f"{path}[{i}]") for i, item in enumerate(value)]

        try:
            return _coerce_scalar(spec.type, value)
        except _CoercionError as e:
            errors.add(path, str(e))
            return value

    def _coerce_item(self, of: Any, item: Any, errors: ErrorCollector, *, path: str) -> Any:
        if isinstance(of, Schema):
            return self._coerce_structure(of, item, errors, path=path)
        try:
            return _coerce_scalar(of, item)
        except _CoercionError as e:
            errors.add(path, str(e))
            return item

    def _coerce_structure(self, schema: Schema, value: Any, errors: ErrorCollector, *, path: str) -> Any:
        if not isinstance(value, Mapping):
            errors.add(path, "must be a mapping")
            return value
        nested = self._build_nested(schema, value, errors, prefix=f"{path}.")
        # erros de coerção ficam no coletor raiz; o aninhado começa vazio
        nested.errors = ErrorCollector()
        return nested
