"""
Representers: visão alternativa do resultado terminal de uma operação.

O Executor só precisa saber se há um representer configurado e, nesse
caso, aplicá-lo ao resultado final (`represent`). Qualquer callable
`(estado) -> representação` é aceito; `Representer` é a base opcional
com serialização pronta.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Optional, Tuple


class Representer:
    """Envolve o estado final e expõe `to_dict` / `to_json`.

    Subclasses podem restringir os campos expostos via `fields`.
    """

    fields: Optional[Tuple[str, ...]] = None

    def __init__(self, represented: Any) -> None:
        self.represented = represented

    def to_dict(self) -> Dict[str, Any]:
        data = _as_dict(self.represented)
        if self.fields is None:
            return data
        return {k: data.get(k) for k in self.fields}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.represented!r})"


def _as_dict(value: Any) -> Dict[str, Any]:
    if hasattr(value, "to_dict"):
        return dict(value.to_dict())
    if hasattr(value, "as_json"):
        raw = value.as_json()
        return json.loads(raw) if isinstance(raw, str) else dict(raw)
    if isinstance(value, dict):
        return dict(value)
    raise TypeError(f"cannot represent {type(value).__name__}")


def represent(representer: Callable[[Any], Any], result: Any) -> Any:
    return representer(result)
