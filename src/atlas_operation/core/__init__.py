# src/atlas_operation/core/__init__.py
"""
Core do Atlas Operation.

Este pacote contém a implementação canônica do engine de operações:
pipelines nomeados de steps, declarados uma vez e executados por chamada.

Componentes principais:
    - operation    → definição (builder, registry, dry run, continuação)
    - engine       → execução controlada da sequência (Executor)
    - state        → fábrica de estado orientada a schema + coletor de erros
    - validation   → regras do gate de validação
    - policy       → checagem do gate de autorização
    - middleware   → resolução tardia de implementações delegadas
    - representer  → visão alternativa do resultado terminal
    - config       → configuração do engine (merge, validação, hashing)
    - traceability → Manifest e Event Log de cada chamada

Princípios fundamentais:
    - Erros de configuração são detectados no build, nunca numa chamada
    - Nenhuma decisão silenciosa: falhas fatais são registradas e propagadas
    - Definições são imutáveis; cada chamada possui estado próprio
"""

# operation antes de engine: operation.Operation depende do Executor
from .operation import (
    Operation,
    OperationBuilder,
    OperationDefinition,
    StepDescriptor,
    StepKind,
    define,
    fail,
)
from .engine import ExecutionResult, Executor, execute

__all__ = [
    "Operation",
    "OperationBuilder",
    "OperationDefinition",
    "StepDescriptor",
    "StepKind",
    "define",
    "fail",
    "ExecutionResult",
    "Executor",
    "execute",
]
