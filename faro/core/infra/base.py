"""
Base para providers: implementa converge() sobre check()/apply() y valida acciones notificadas.

Los providers pueden heredar de aquí o implementar solo el contrato (Protocol).
"""

from typing import Any, FrozenSet, List

from faro.core.errors import ValidationError
from faro.core.infra.contracts import ChangeRecord
from faro.core.recipe.models import Action, ResourceKind
from faro.core.runtime.context import RunContext
from faro.core.runtime.state import StateDiff


class BaseProvider:
    """Base de providers; las subclases implementan los pares diff/apply por acción."""

    kind: ResourceKind
    notified_actions: FrozenSet[str] = frozenset()

    def identify(self, spec: Any) -> str:
        """Referencia tipo[identificador] del recurso para diffs y registros."""
        return f"{self.kind.value}[{getattr(spec, 'name', None) or getattr(spec, 'path', '?')}]"

    def check(self, spec: Any, context: RunContext, action: Action = Action.CREATE) -> List[StateDiff]:
        if action == Action.CREATE:
            return self.diff_create(spec, context)
        if action == Action.DELETE:
            return self.diff_delete(spec, context)
        return []

    def apply(self, spec: Any, context: RunContext, action: Action, diffs: List[StateDiff]) -> None:
        if not diffs:
            return
        if action == Action.CREATE:
            self.apply_create(spec, context, diffs)
        elif action == Action.DELETE:
            self.apply_delete(spec, context, diffs)

    def converge(self, spec: Any, context: RunContext, action: Action = Action.CREATE) -> ChangeRecord:
        diffs = self.check(spec, context, action)
        if diffs and not context.why_run:
            self.apply(spec, context, action, diffs)
        return ChangeRecord(self.identify(spec), action.value, changed=bool(diffs), diffs=diffs)

    def notify(self, spec: Any, action: str, context: RunContext) -> None:
        raise ValidationError(f"{self.identify(spec)}: acción notificada no soportada: {action!r}")

    def diff_create(self, spec: Any, context: RunContext) -> List[StateDiff]:
        raise NotImplementedError

    def apply_create(self, spec: Any, context: RunContext, diffs: List[StateDiff]) -> None:
        raise NotImplementedError

    def diff_delete(self, spec: Any, context: RunContext) -> List[StateDiff]:
        raise NotImplementedError

    def apply_delete(self, spec: Any, context: RunContext, diffs: List[StateDiff]) -> None:
        raise NotImplementedError
