# src/atlas_operation/core/config/__init__.py
"""
Camada de configuração do Atlas Operation.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução de configuração final via deep-merge determinístico
    - Validação da seção `engine` consumida pelo Executor
    - Geração de hash canônico para rastreabilidade (Manifest)

Limites explícitos:
    - Não define operações
    - Não executa operações
"""

from .engine import (
    DEFAULT_ENGINE_CONFIG,
    EngineConfig,
    load_engine_config,
    resolve_engine_config,
)
from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidEngineConfigError,
    UnsupportedConfigFormatError,
)
from .hashing import canonical_hash, compute_config_hash
from .loader import load_config, load_mapping_file
from .merge import deep_merge

__all__ = [
    "DEFAULT_ENGINE_CONFIG",
    "EngineConfig",
    "load_engine_config",
    "resolve_engine_config",
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "InvalidEngineConfigError",
    "UnsupportedConfigFormatError",
    "canonical_hash",
    "compute_config_hash",
    "load_config",
    "load_mapping_file",
    "deep_merge",
]
