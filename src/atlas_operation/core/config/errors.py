# src/atlas_operation/core/config/errors.py
"""
Exceções canônicas da camada de configuração do Atlas Operation.

Este módulo define a hierarquia oficial de exceções utilizadas durante
o carregamento, validação estrutural e resolução de configuração do engine.

As exceções aqui definidas representam **violações explícitas de
configuração**, e não erros de definição de operação ou de execução.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa erro de domínio ou execução de step

Limites explícitos:
    - Não executa operações
    - Não realiza fallback ou recovery
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do Atlas Operation.

    Esta hierarquia permite:
        - captura genérica de erros de configuração
        - distinção clara entre falhas de configuração do engine e
          falhas de definição de operações
    """


class DefaultsNotFoundError(ConfigError):
    """
    Exceção levantada quando o arquivo de configuração base (defaults)
    não é encontrado no caminho especificado.

    Decisões arquiteturais:
        - O arquivo de defaults é obrigatório quando informado ao loader
        - Não há criação implícita de defaults em disco
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando o formato do arquivo de configuração
    não é suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Exceção levantada quando o conteúdo raiz da configuração
    não é um dicionário (`dict`).
    """


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"engine": {"record_events": true}}
        - override: {"engine": "DEBUG"}

    Decisões arquiteturais:
        - O deep-merge é estritamente tipado por chave
        - Conflitos estruturais são tratados como erro fatal
    """


class InvalidEngineConfigError(ConfigError):
    """
    Exceção levantada quando a seção `engine` resolvida possui valores
    de tipo incompatível com o esperado pelo Executor.

    Exemplo:
        - engine.record_events: "yes"   (esperado: bool)
        - engine.manifest.dir: 42       (esperado: str ou null)
    """
