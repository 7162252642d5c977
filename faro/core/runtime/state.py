"""
Estado de un recurso durante la convergencia y diferencias deseado/real.

Máquina de estados por recurso:
    PENDING -> CHECKED -> {UNCHANGED | CHANGED | FAILED}
"""

from enum import Enum
from typing import Any


class ResourceState(str, Enum):
    PENDING = "pending"
    CHECKED = "checked"
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    FAILED = "failed"

    @property
    def is_final(self) -> bool:
        return self in (ResourceState.UNCHANGED, ResourceState.CHANGED, ResourceState.FAILED)


_TRANSITIONS = {
    ResourceState.PENDING: {ResourceState.CHECKED, ResourceState.FAILED},
    ResourceState.CHECKED: {ResourceState.UNCHANGED, ResourceState.CHANGED, ResourceState.FAILED},
}


def can_transition(current: ResourceState, target: ResourceState) -> bool:
    """PENDING puede ir directo a FAILED (dependencia fallida o ejecución abortada)."""
    return target in _TRANSITIONS.get(current, set())


class StateDiff:
    """Diferencia entre estado deseado y real de un recurso."""
    def __init__(self, resource_id: str, field: str, desired: Any, actual: Any):
        self.resource_id = resource_id
        self.field = field
        self.desired = desired
        self.actual = actual

    def __repr__(self):
        return f"StateDiff({self.resource_id!r}, {self.field!r}, {self.desired!r}, {self.actual!r})"

    def __eq__(self, other):
        if not isinstance(other, StateDiff):
            return NotImplemented
        return (self.resource_id, self.field, self.desired, self.actual) == (
            other.resource_id, other.field, other.desired, other.actual
        )

    def to_dict(self) -> dict:
        return {
            "resource": self.resource_id,
            "field": self.field,
            "desired": _printable(self.field, self.desired),
            "actual": _printable(self.field, self.actual),
        }


def _printable(field: str, value: Any) -> Any:
    if field == "mode" and isinstance(value, int):
        return format(value, "04o")
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)
