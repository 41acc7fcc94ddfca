"""
Declaração da sequência de dry run.

A sequência de dry run é independente da principal, mas resolvida contra
ela no build:
    - `step(name)`            → reutiliza o step principal (mesmo handler)
    - `step(name, handler)`   → override inline com o mesmo nome
    - steps omitidos          → não executam em dry run
    - `validation()`/`policy()` → re-listam explicitamente os gates da
      própria operação (gates nunca entram implicitamente)

O engine não garante pureza: evitar efeitos colaterais é contrato do autor
da operação, cumprido pela escolha de overrides.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from atlas_operation.core.exceptions import MalformedDryRunReferenceError

from .types import StepDescriptor, TransformHandler


_VALIDATION_GATE = "validation"
_POLICY_GATE = "policy"


class DryRunBuilder:
    """Acumula referências da sequência de dry run até o build da operação."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        self._entries: List[Tuple[Optional[str], Optional[TransformHandler], Optional[str]]] = []
        self._bypass_representer = False

    def step(self, name: str, handler: Optional[TransformHandler] = None) -> "DryRunBuilder":
        if handler is not None and not callable(handler):
            raise TypeError(f"dry-run override for {name!r} must be callable")
        self._entries.append((name, handler, None))
        return self

    def validation(self) -> "DryRunBuilder":
        self._entries.append((None, None, _VALIDATION_GATE))
        return self

    def policy(self) -> "DryRunBuilder":
        self._entries.append((None, None, _POLICY_GATE))
        return self

    def bypass_representer(self) -> "DryRunBuilder":
        self._bypass_representer = True
        return self

    @property
    def bypasses_representer(self) -> bool:
        return self._bypass_representer

    def _malformed(self, message: str, **details: Any) -> MalformedDryRunReferenceError:
        return MalformedDryRunReferenceError(
            message=message,
            details={"operation": self.operation, **details},
            hint="Steps de dry run devem referenciar steps existentes da sequência principal.",
        )

    def resolve(
        self,
        primary: Sequence[StepDescriptor],
        *,
        validation_gate: Optional[str],
        policy_gate: Optional[str],
    ) -> Tuple[StepDescriptor, ...]:
        by_name: Dict[str, StepDescriptor] = {s.name: s for s in primary}
        resolved: List[StepDescriptor] = []
        seen = set()

        for name, handler, gate in self._entries:
            if gate is not None:
                name = validation_gate if gate == _VALIDATION_GATE else policy_gate
                if name is None:
                    raise self._malformed(f"Operation declares no {gate} gate to re-list", gate=gate)

            if name not in by_name:
                raise self._malformed(f"Unknown step in dry run: {name}", step=name)
            if name in seen:
                raise self._malformed(f"Step listed twice in dry run: {name}", step=name)
            seen.add(name)

            original = by_name[name]
            if handler is None:
                resolved.append(original)
            elif original.is_gate:
                raise self._malformed(f"Gate {name} cannot be overridden in dry run", step=name)
            else:
                resolved.append(StepDescriptor.transform(name, handler))

        return tuple(resolved)
