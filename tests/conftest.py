# tests/conftest.py
"""
Fixtures compartilhados para testes do Atlas Operation.

Este módulo define fixtures reutilizáveis que fornecem:
- YAMLs de configuração do engine (defaults + overrides locais)
- o schema canônico de cadastro (`{email, name, age}`)
- inputs crus determinísticos
- checkers de política e implementações de middleware mínimas

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Dados retornados são determinísticos e isolados
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture executa operação real
    - Nenhuma fixture realiza I/O
    - Todas as fixtures são seguras para execução em paralelo

Limites explícitos:
    - Não substituir testes de integração
    - Não acoplar testes a operações de domínio concretas

Este módulo existe como infraestrutura de teste e não
como validação funcional do engine.
"""

import pytest


# =====================================================
# Config fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de configuração padrão (defaults) semelhante ao uso real do projeto.

    Decisões arquiteturais:
        - Configuração fornecida como string para evitar I/O no fixture
        - Defaults sempre representam a base completa e estável

    Returns:
        str: Conteúdo YAML representando configuração padrão (defaults).
    """
    return """\
engine:
  record_events: true
  manifest:
    enabled: false
    dir: null
operations:
  users.create:
    notify: true
  users.update:
    notify: true
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """YAML de override local: habilita o Manifest e desliga uma notificação."""
    return """\
engine:
  manifest:
    enabled: true
operations:
  users.update:
    notify: false
"""


# =====================================================
# State fixtures
# =====================================================

@pytest.fixture
def signup_schema() -> dict:
    """
    Schema canônico de cadastro usado nos cenários de ponta a ponta.

    Invariantes:
        - `email` e `name` são strings; `age` é inteiro
        - Nenhum campo possui default

    Returns:
        dict: Forma declarativa aceita por `Schema.from_dict`.
    """
    return {"email": "string", "name": "string", "age": "integer"}


@pytest.fixture
def signup_input() -> dict:
    """Input cru válido (email ainda não normalizado, idade como string)."""
    return {"email": "  Ana@Example.COM ", "name": "Ana", "age": "30"}


# =====================================================
# Policy / middleware fixtures
# =====================================================

@pytest.fixture
def AdminPolicy():
    """
    Fixture factory que fornece um checker de política mínimo.

    O checker expõe:
    - `create`: predicado verdadeiro somente para atores com `role == "admin"`
    - `reasons`: motivos de negação acumulados (introspecção pelo chamador)

    Returns:
        type: Classe _AdminPolicy, instanciada pelo engine com (ator, estado).
    """
    from atlas_operation.core.policy import Policy

    class _AdminPolicy(Policy):
        def __init__(self, actor, state):
            super().__init__(actor, state)
            self.reasons = []

        def create(self):
            allowed = (self.actor or {}).get("role") == "admin"
            if not allowed:
                self.reasons.append("actor is not an admin")
            return allowed

    return _AdminPolicy


@pytest.fixture
def payment_registry():
    """
    Registry com duas implementações delegadas do step `charge`.

    O identificador é resolvido a partir de `state.method` pelo resolver
    declarado em cada teste.
    """
    from atlas_operation.core.middleware import MiddlewareRegistry

    registry = MiddlewareRegistry()

    @registry.implementation("card")
    class CardPayment:
        @staticmethod
        def charge(state):
            state.charged_with = "card"
            return state

    @registry.implementation("pix")
    class PixPayment:
        @staticmethod
        def charge(state):
            state.charged_with = "pix"
            return state

    return registry
