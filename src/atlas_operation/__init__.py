# src/atlas_operation/__init__.py
"""
Atlas Operation — engine declarativo de operações de negócio.

Uma operação é um pipeline nomeado de steps (transformações, middlewares
delegados, gates de validação e de autorização) declarado uma única vez e
executado a cada chamada sobre um estado construído a partir do input cru.

Princípios centrais:
    - A ordem de declaração é a ordem de execução
    - Falhas locais são sinais tratados na fronteira do step
    - Validação que falha é retorno normal; autorização negada é exceção
    - Dry run é uma sequência explícita, independente da principal
    - Rastreabilidade (Event Log + Manifest) é parte do engine

Exemplo:

    from atlas_operation import Operation, define, fail

    builder = define("users.create")
    builder.schema({"email": "string", "name": "string", "age": "integer"})
    builder.step("normalize_email", lambda state, original: state)
    builder.validate(required=("email", "name"))
    create_user = Operation(builder.build())
    result = create_user.call({"email": "a@b.c", "name": "Ana", "age": "30"})

Limites explícitos:
    - Não persiste estado de domínio
    - Não executa retry, timeout ou cancelamento
"""

from .core.operation import (
    DryRunBuilder,
    Fail,
    Operation,
    OperationBuilder,
    OperationDefinition,
    StepDescriptor,
    StepKind,
    define,
    fail,
)
from .core.engine import ENGINE_VERSION, ExecutionResult, Executor, execute
from .core.exceptions import (
    AuthorizationFailure,
    DuplicateGateError,
    DuplicateStepNameError,
    MalformedDryRunReferenceError,
    MiddlewareResolutionError,
    OperationConfigurationError,
    OperationException,
    StepFailure,
    UnhandledStepFailure,
    UnknownStepError,
)
from .core.middleware import MiddlewareRegistry
from .core.policy import Policy
from .core.representer import Representer
from .core.state import ErrorCollector, OperationState, Schema, SchemaStateFactory
from .core.validation import ValidationRules, custom, required, rule

__version__ = ENGINE_VERSION

__all__ = [
    "DryRunBuilder",
    "Fail",
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
    "AuthorizationFailure",
    "DuplicateGateError",
    "DuplicateStepNameError",
    "MalformedDryRunReferenceError",
    "MiddlewareResolutionError",
    "OperationConfigurationError",
    "OperationException",
    "StepFailure",
    "UnhandledStepFailure",
    "UnknownStepError",
    "MiddlewareRegistry",
    "Policy",
    "Representer",
    "ErrorCollector",
    "OperationState",
    "Schema",
    "SchemaStateFactory",
    "ValidationRules",
    "custom",
    "required",
    "rule",
    "__version__",
]
