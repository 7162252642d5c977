"""
Contratos que deben implementar los providers de recursos.

El core solo define interfaces; la implementación vive en faro/providers/*.
"""

from typing import Any, FrozenSet, List, Optional, Protocol

from faro.core.recipe.models import Action, ResourceKind
from faro.core.runtime.context import RunContext
from faro.core.runtime.state import ResourceState, StateDiff


class ChangeRecord:
    """Resultado de converger un recurso: qué se hizo y si el estado cambió realmente."""
    def __init__(
        self,
        resource_id: str,
        action: str,
        changed: bool,
        diffs: Optional[List[StateDiff]] = None,
        state: Optional[ResourceState] = None,
        error_kind: Optional[str] = None,
        error_message: Optional[str] = None,
    ):
        self.resource_id = resource_id
        self.action = action
        self.changed = changed
        self.diffs = diffs or []
        if state is None:
            state = ResourceState.CHANGED if changed else ResourceState.UNCHANGED
        self.state = state
        self.error_kind = error_kind
        self.error_message = error_message

    @classmethod
    def failure(cls, resource_id: str, action: str, error: Exception) -> "ChangeRecord":
        return cls(
            resource_id,
            action,
            changed=False,
            state=ResourceState.FAILED,
            error_kind=getattr(error, "kind", type(error).__name__),
            error_message=str(error),
        )

    @property
    def failed(self) -> bool:
        return self.state == ResourceState.FAILED

    def __repr__(self):
        return f"ChangeRecord({self.resource_id!r}, {self.action!r}, state={self.state.value})"

    def to_dict(self) -> dict:
        return {
            "resource": self.resource_id,
            "action": self.action,
            "state": self.state.value,
            "changed": self.changed,
            "diffs": [d.to_dict() for d in self.diffs],
            "error_kind": self.error_kind,
            "error_message": self.error_message,
        }


class ProviderContract(Protocol):
    """
    Contrato mínimo de un provider (user, directory, file, service).
    check() solo inspecciona; apply() muta; converge() combina ambos.
    """
    kind: ResourceKind
    notified_actions: FrozenSet[str]

    def check(self, spec: Any, context: RunContext, action: Action = Action.CREATE) -> List[StateDiff]:
        """Diferencias entre el estado deseado y el real (sin ejecutar)."""
        ...

    def apply(self, spec: Any, context: RunContext, action: Action, diffs: List[StateDiff]) -> None:
        """Aplica los cambios necesarios para resolver `diffs`."""
        ...

    def converge(self, spec: Any, context: RunContext, action: Action = Action.CREATE) -> ChangeRecord:
        """Inspecciona y aplica. Idempotente: la segunda llamada no produce cambios."""
        ...

    def notify(self, spec: Any, action: str, context: RunContext) -> None:
        """Ejecuta una acción notificada (p. ej. restart)."""
        ...
