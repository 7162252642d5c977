"""
Provider de servicios: declara el estado deseado en el supervisor.

No implementa supervisión; solo "asegurar registrado" y el "restart" notificado.
"""

from typing import List, Optional

from faro.core.infra.base import BaseProvider
from faro.core.recipe.models import ResourceKind, ServiceSpec
from faro.core.runtime.context import RunContext
from faro.core.runtime.state import StateDiff
from faro.providers.supervision import RunitSupervisor, Supervisor
from faro.providers.host import require_privilege


class ServiceProvider(BaseProvider):
    kind = ResourceKind.SERVICE
    notified_actions = frozenset({"restart"})

    def __init__(self, supervisor: Optional[Supervisor] = None):
        self.supervisor = supervisor or RunitSupervisor()

    def diff_create(self, spec: ServiceSpec, context: RunContext) -> List[StateDiff]:
        return self.supervisor.check(spec, context)

    def apply_create(self, spec: ServiceSpec, context: RunContext, diffs: List[StateDiff]) -> None:
        require_privilege(context, f"registrar el servicio {spec.name}")
        self.supervisor.ensure_registered(spec, context)

    def diff_delete(self, spec: ServiceSpec, context: RunContext) -> List[StateDiff]:
        if not self.supervisor.is_registered(spec.name, context):
            return []
        return [StateDiff(self.identify(spec), "registered", False, True)]

    def apply_delete(self, spec: ServiceSpec, context: RunContext, diffs: List[StateDiff]) -> None:
        require_privilege(context, f"eliminar el servicio {spec.name}")
        self.supervisor.unregister(spec.name, context)

    def notify(self, spec: ServiceSpec, action: str, context: RunContext) -> None:
        if action != "restart":
            super().notify(spec, action, context)
            return
        require_privilege(context, f"reiniciar el servicio {spec.name}")
        self.supervisor.restart(spec.name, context)
