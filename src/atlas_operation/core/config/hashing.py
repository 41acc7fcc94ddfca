# src/atlas_operation/core/config/hashing.py
"""
Hashing canônico para rastreabilidade.

Usado pelo Manifest para identificar, por chamada:
    - a configuração efetiva do engine
    - o input bruto recebido pela operação

Política (v1): JSON canônico (chaves ordenadas, separadores compactos,
UTF-8) + SHA-256. Valores não serializáveis em JSON (ex.: datetime,
objetos de domínio no input) entram no hash pela sua representação `str`;
chaves de dicionário são convertidas para `str` antes da ordenação, então
inputs com chaves de tipos mistos também produzem hash.
"""

import hashlib
import json
from typing import Any, Dict, Mapping


def _stringify_keys(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {str(k): _stringify_keys(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_stringify_keys(v) for v in data]
    return data


def canonical_hash(data: Any) -> str:
    """Computa SHA-256 hexadecimal (64 caracteres) de `data` em JSON canônico."""
    canonical_json = json.dumps(
        _stringify_keys(data),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera o hash determinístico da configuração efetiva do engine.

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )
    return canonical_hash(config)
