"""
MiddlewareRegistry v1 — resolução tardia de implementações delegadas.

Um step do tipo MIDDLEWARE não possui handler inline. Em tempo de chamada:

    identifier = resolver(estado_corrente)
    implementation = registry.resolve(identifier)
    novo_estado = getattr(implementation, step.name)(estado_corrente)

Implementações registradas como classe são instanciadas uma única vez no
registro (construtor sem argumentos); instâncias são guardadas como estão.
O registry é populado na inicialização do processo e apenas lido durante
chamadas. Extensibilidade é explícita: implementações entram via
`register()` (ou o decorator `registry.implementation(identifier)`);
não há discovery automático.

Falhas de resolução (resolver que levanta, identificador desconhecido,
método ausente) são MiddlewareResolutionError: defeito de configuração,
nunca retentado.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .exceptions import MiddlewareResolutionError


class MiddlewareRegistry:
    """Mapa identificador → instância da implementação."""

    def __init__(self, entries: Optional[Iterable[Tuple[str, Any]]] = None):
        self._entries: Dict[str, Any] = {}
        for identifier, implementation in entries or ():
            self.register(identifier, implementation)

    def register(self, identifier: str, implementation: Any) -> None:
        if not isinstance(identifier, str) or not identifier.strip():
            raise ValueError("middleware identifier must be a non-empty string")
        if identifier in self._entries:
            raise ValueError(f"middleware already registered: {identifier}")
        if isinstance(implementation, type):
            implementation = implementation()
        self._entries[identifier] = implementation

    def implementation(self, identifier: str) -> Callable[[Any], Any]:
        """Decorator de registro: `@registry.implementation("card")`."""

        def decorator(impl: Any) -> Any:
            self.register(identifier, impl)
            return impl

        return decorator

    def list_ids(self) -> List[str]:
        return sorted(self._entries)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries

    def resolve(self, identifier: Any) -> Any:
        if identifier not in self._entries:
            raise MiddlewareResolutionError(
                message=f"Unknown middleware identifier: {identifier!r}",
                details={"identifier": repr(identifier), "known": self.list_ids()},
                hint="Registre a implementação na inicialização ou corrija o resolver.",
            )
        return self._entries[identifier]

    def invoke(self, identifier: Any, method: str, state: Any) -> Any:
        implementation = self.resolve(identifier)
        target = getattr(implementation, method, None)
        if not callable(target):
            raise MiddlewareResolutionError(
                message=f"Middleware {identifier!r} does not implement {method!r}",
                details={"identifier": repr(identifier), "method": method},
                hint="Implemente um método com o nome do step delegado.",
            )
        return target(state)
