# src/atlas_operation/core/engine/__init__.py
"""
Engine de execução do Atlas Operation.

API pública exposta:
    - Executor         → percorre a sequência de uma OperationDefinition
    - execute          → atalho funcional para uma única chamada
    - ExecutionResult  → resultado agregado (resultado, estado, eventos, Manifest)
"""

from .executor import ENGINE_VERSION, Executor, execute
from .result import ExecutionResult

__all__ = ["ENGINE_VERSION", "Executor", "execute", "ExecutionResult"]
