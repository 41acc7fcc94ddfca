# src/atlas_operation/core/config/engine.py
"""
Configuração efetiva do Executor.

Chaves reconhecidas (v1):

    engine:
      record_events: true     # mantém o Event Log estruturado no ExecutionState
      manifest:
        enabled: false        # cria um OperationManifest por chamada
        dir: null             # se definido, persiste <dir>/<operação>/<run_id>.json

Qualquer configuração recebida é mesclada sobre `DEFAULT_ENGINE_CONFIG`
via `deep_merge`; chaves fora da seção `engine` são preservadas mas
ignoradas pelo Executor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidEngineConfigError
from .hashing import compute_config_hash
from .loader import PathLike, load_config
from .merge import deep_merge


DEFAULT_ENGINE_CONFIG: Dict[str, Any] = {
    "engine": {
        "record_events": True,
        "manifest": {
            "enabled": False,
            "dir": None,
        },
    },
}


@dataclass(frozen=True)
class EngineConfig:
    """Visão tipada e imutável da seção `engine` resolvida."""

    record_events: bool = True
    manifest_enabled: bool = False
    manifest_dir: Optional[str] = None
    config_hash: str = ""


def _expect_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidEngineConfigError(f"{key} must be a bool, got {type(value).__name__}")
    return value


def resolve_engine_config(config: Optional[Mapping[str, Any]] = None) -> EngineConfig:
    """Mescla `config` sobre os defaults do engine e valida os tipos."""
    effective = deep_merge(DEFAULT_ENGINE_CONFIG, dict(config or {}))

    engine = effective.get("engine")
    if not isinstance(engine, dict):
        raise InvalidEngineConfigError("engine must be a mapping")

    manifest = engine.get("manifest") or {}
    if not isinstance(manifest, dict):
        raise InvalidEngineConfigError("engine.manifest must be a mapping")

    manifest_dir = manifest.get("dir")
    if manifest_dir is not None and not isinstance(manifest_dir, str):
        raise InvalidEngineConfigError("engine.manifest.dir must be a string or null")

    return EngineConfig(
        record_events=_expect_bool(engine.get("record_events", True), "engine.record_events"),
        manifest_enabled=_expect_bool(manifest.get("enabled", False), "engine.manifest.enabled"),
        manifest_dir=manifest_dir,
        config_hash=compute_config_hash(effective),
    )


def load_engine_config(
    *,
    defaults_path: PathLike,
    local_path: Optional[PathLike] = None,
) -> EngineConfig:
    """Atalho: `load_config` + `resolve_engine_config`."""
    return resolve_engine_config(load_config(defaults_path=defaults_path, local_path=local_path))
