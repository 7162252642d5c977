"""
Planificación: convierte diferencias en acciones legibles sin ejecutar nada.

Lo usa el modo why-run (`faro plan`).
"""

from typing import List

from faro.core.runtime.state import StateDiff


def plan_from_diffs(diffs: List[StateDiff]) -> List[str]:
    """
    Convierte una lista de StateDiff en acciones legibles (para mostrar en CLI).
    No ejecuta nada.
    """
    actions: List[str] = []
    for d in diffs:
        data = d.to_dict()
        if d.field == "exists":
            verb = "Crear" if d.desired else "Eliminar"
            actions.append(f"{verb} {d.resource_id}")
        elif d.field == "content":
            actions.append(f"Reescribir contenido de {d.resource_id}")
        elif d.desired != d.actual:
            actions.append(f"Actualizar {d.resource_id}.{d.field}: {data['actual']} → {data['desired']}")
    return actions
