"""
Motor de convergencia.

Procesa las declaraciones en el orden en que fueron escritas:
- valida todo antes de mutar nada (ValidationError sale del motor);
- un recurso cuya dependencia falló no se intenta (DependencyError);
- PermissionDeniedError aborta la ejecución: el resto queda Failed (Aborted);
- las notificaciones se ejecutan al final, solo si el recurso observado terminó Changed,
  una vez por (suscriptor, acción).

No hay reintentos automáticos; reintentar es volver a ejecutar la convergencia completa.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from faro.core.errors import (
    AbortedError,
    DependencyError,
    FaroError,
    PermissionDeniedError,
    ProviderError,
    ValidationError,
)
from faro.core.infra.contracts import ChangeRecord, ProviderContract
from faro.core.recipe.detector import dependency_map
from faro.core.recipe.models import ResourceDeclaration, ResourceKind, parse_reference
from faro.core.recipe.validator import validate_declarations
from faro.core.report import NotificationRecord, RunReport
from faro.core.runtime.context import RunContext
from faro.core.runtime.state import ResourceState, can_transition

_logger = logging.getLogger(__name__)


class ConvergenceEngine:
    """Ejecuta declaraciones contra los providers registrados por tipo."""

    def __init__(self, providers: Mapping[ResourceKind, ProviderContract]):
        self.providers = dict(providers)
        self._states: Dict[str, ResourceState] = {}

    def notified_actions(self) -> Dict[ResourceKind, Set[str]]:
        return {kind: set(p.notified_actions) for kind, p in self.providers.items()}

    def validate(self, declarations: List[ResourceDeclaration]) -> None:
        missing = sorted({d.kind.value for d in declarations if d.kind not in self.providers})
        if missing:
            raise ValidationError(f"Sin provider registrado para: {', '.join(missing)}")
        validate_declarations(declarations, self.notified_actions())

    def run(
        self,
        declarations: Iterable[ResourceDeclaration],
        context: RunContext,
        recipe: Optional[str] = None,
    ) -> RunReport:
        declarations = list(declarations)
        self.validate(declarations)
        deps = dependency_map(declarations)
        report = RunReport(context.host, recipe=recipe, why_run=context.why_run)
        self._states = {d.ref: ResourceState.PENDING for d in declarations}
        aborted: Optional[FaroError] = None

        for decl in declarations:
            if aborted is not None:
                error = AbortedError(f"no ejecutado: la ejecución se abortó ({aborted.kind})")
                report.add(self._fail(decl, error))
                continue
            failed_deps = [ref for ref in deps[decl.ref] if self._states[ref] == ResourceState.FAILED]
            if failed_deps:
                error = DependencyError(f"depende de recursos fallidos: {', '.join(failed_deps)}")
                report.add(self._fail(decl, error))
                continue
            record = self._converge_one(decl, context)
            report.add(record)
            if record.failed and record.error_kind == PermissionDeniedError.kind:
                aborted = PermissionDeniedError(record.error_message or "")
                _logger.error("Ejecución abortada por falta de privilegios en %s", decl.ref)

        if aborted is None:
            self._fire_notifications(declarations, context, report)
        return report

    def state_of(self, ref: str) -> ResourceState:
        return self._states[ref]

    def _transition(self, ref: str, target: ResourceState) -> None:
        current = self._states[ref]
        if not can_transition(current, target):
            raise RuntimeError(f"Transición inválida para {ref}: {current.value} → {target.value}")
        self._states[ref] = target

    def _fail(self, decl: ResourceDeclaration, error: Exception) -> ChangeRecord:
        self._transition(decl.ref, ResourceState.FAILED)
        _logger.error("%s: %s: %s", decl.ref, getattr(error, "kind", type(error).__name__), error)
        return ChangeRecord.failure(decl.ref, decl.action.value, error)

    def _converge_one(self, decl: ResourceDeclaration, context: RunContext) -> ChangeRecord:
        provider = self.providers[decl.kind]
        spec = decl.spec()
        try:
            diffs = provider.check(spec, context, decl.action)
            self._transition(decl.ref, ResourceState.CHECKED)
            if not diffs:
                self._transition(decl.ref, ResourceState.UNCHANGED)
                _logger.debug("%s: sin cambios", decl.ref)
                return ChangeRecord(decl.ref, decl.action.value, changed=False)
            if not context.why_run:
                provider.apply(spec, context, decl.action, diffs)
        except FaroError as e:
            return self._fail(decl, e)
        except PermissionError as e:
            return self._fail(decl, PermissionDeniedError(str(e)))
        except OSError as e:
            return self._fail(decl, ProviderError(str(e)))
        except Exception as e:
            _logger.exception("%s: error inesperado del provider", decl.ref)
            return self._fail(decl, ProviderError(f"{type(e).__name__}: {e}"))
        self._transition(decl.ref, ResourceState.CHANGED)
        _logger.info("%s: %s", decl.ref, ", ".join(d.field for d in diffs))
        return ChangeRecord(decl.ref, decl.action.value, changed=True, diffs=diffs)

    def _fire_notifications(
        self,
        declarations: List[ResourceDeclaration],
        context: RunContext,
        report: RunReport,
    ) -> None:
        fired: Set[Tuple[str, str]] = set()
        for decl in declarations:
            if self._states[decl.ref] == ResourceState.FAILED:
                continue
            for sub in decl.subscribes:
                kind, identifier = parse_reference(sub.resource)
                source = f"{kind.value}[{identifier}]"
                if self._states[source] != ResourceState.CHANGED:
                    continue
                if (decl.ref, sub.action) in fired:
                    continue
                fired.add((decl.ref, sub.action))
                report.add_notification(self._notify(decl, sub.action, source, context))

    def _notify(self, decl: ResourceDeclaration, action: str, source: str, context: RunContext) -> NotificationRecord:
        if context.why_run:
            return NotificationRecord(decl.ref, action, source, fired=False)
        provider = self.providers[decl.kind]
        try:
            provider.notify(decl.spec(), action, context)
        except Exception as e:
            kind = getattr(e, "kind", type(e).__name__)
            _logger.error("%s: %s falló (notificado por %s): %s", decl.ref, action, source, e)
            return NotificationRecord(decl.ref, action, source, error_kind=kind, error_message=str(e))
        _logger.info("%s: %s (notificado por %s)", decl.ref, action, source)
        return NotificationRecord(decl.ref, action, source)
