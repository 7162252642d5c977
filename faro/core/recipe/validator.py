"""
Validación de declaraciones (lógica pura).

Sin I/O; se ejecuta completa antes de cualquier mutación del host.
"""

from typing import Dict, Iterable, List, Optional, Set

from faro.core.errors import ValidationError
from faro.core.recipe.models import ResourceDeclaration, ResourceKind, parse_reference


def collect_errors(
    declarations: Iterable[ResourceDeclaration],
    notified_actions: Optional[Dict[ResourceKind, Set[str]]] = None,
) -> List[str]:
    """
    Valida una secuencia de declaraciones.
    Devuelve lista de mensajes de error; si vacía, es válida.
    """
    errors: List[str] = []
    declarations = list(declarations)
    seen: Set[str] = set()
    for decl in declarations:
        if decl.ref in seen:
            errors.append(f"{decl.ref}: identificador duplicado para el tipo {decl.kind.value}")
        seen.add(decl.ref)
        try:
            decl.spec()
        except ValidationError as e:
            errors.append(str(e))

    order = {d.ref: i for i, d in enumerate(declarations)}
    for decl in declarations:
        for reference in decl.requires:
            problems = _check_reference(decl, reference, seen)
            if not problems and order[_normalize(reference)] > order[decl.ref]:
                problems = [f"{decl.ref}: requiere un recurso declarado después: {reference}"]
            errors.extend(problems)
        for sub in decl.subscribes:
            errors.extend(_check_reference(decl, sub.resource, seen))
            if notified_actions is not None and sub.action not in notified_actions.get(decl.kind, set()):
                errors.append(f"{decl.ref}: acción notificada no soportada: {sub.action!r}")
    return errors


def _check_reference(decl: ResourceDeclaration, reference: str, known: Set[str]) -> List[str]:
    try:
        kind, identifier = parse_reference(reference)
    except ValidationError as e:
        return [f"{decl.ref}: {e}"]
    normalized = f"{kind.value}[{identifier}]"
    if normalized == decl.ref:
        return [f"{decl.ref}: un recurso no puede referenciarse a sí mismo"]
    if normalized not in known:
        return [f"{decl.ref}: referencia a recurso no declarado: {reference}"]
    return []


def validate_declarations(
    declarations: Iterable[ResourceDeclaration],
    notified_actions: Optional[Dict[ResourceKind, Set[str]]] = None,
) -> None:
    """Lanza ValidationError con todos los errores encontrados."""
    errors = collect_errors(declarations, notified_actions)
    if errors:
        raise ValidationError("Declaraciones inválidas:\n" + "\n".join(f"  - {e}" for e in errors))


def _normalize(reference: str) -> str:
    kind, identifier = parse_reference(reference)
    return f"{kind.value}[{identifier}]"
