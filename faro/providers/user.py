"""
Provider de usuarios: crea la cuenta solo si falta.

Nunca modifica atributos de una cuenta existente (shell, home, etc. pueden
haberse cambiado fuera de banda).
"""

import logging
from typing import List, Optional

from faro.core.infra.base import BaseProvider
from faro.core.recipe.models import ResourceKind, UserSpec
from faro.core.runtime.context import RunContext
from faro.core.runtime.state import StateDiff
from faro.providers.host import LocalHost, require_privilege

_logger = logging.getLogger(__name__)


class UserProvider(BaseProvider):
    kind = ResourceKind.USER

    def __init__(self, host: Optional[LocalHost] = None):
        self.host = host or LocalHost()

    def diff_create(self, spec: UserSpec, context: RunContext) -> List[StateDiff]:
        if self.host.user_exists(spec.name, context.root):
            return []
        return [StateDiff(self.identify(spec), "exists", True, False)]

    def apply_create(self, spec: UserSpec, context: RunContext, diffs: List[StateDiff]) -> None:
        require_privilege(context, f"crear el usuario {spec.name}")
        self.host.create_user(spec, context.root)
        _logger.info("%s: usuario creado (system=%s)", spec.name, spec.is_system_account)

    def diff_delete(self, spec: UserSpec, context: RunContext) -> List[StateDiff]:
        if not self.host.user_exists(spec.name, context.root):
            return []
        return [StateDiff(self.identify(spec), "exists", False, True)]

    def apply_delete(self, spec: UserSpec, context: RunContext, diffs: List[StateDiff]) -> None:
        require_privilege(context, f"eliminar el usuario {spec.name}")
        self.host.delete_user(spec.name, context.root)
        _logger.info("%s: usuario eliminado", spec.name)
