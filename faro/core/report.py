"""
Reporte de ejecución: registros en orden de procesamiento, notificaciones y resumen.
"""

from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from faro.core.infra.contracts import ChangeRecord
from faro.core.runtime.state import ResourceState


class NotificationRecord:
    """Una notificación evaluada al final de la ejecución."""
    def __init__(
        self,
        subscriber: str,
        action: str,
        source: str,
        fired: bool = True,
        error_kind: Optional[str] = None,
        error_message: Optional[str] = None,
    ):
        self.subscriber = subscriber
        self.action = action
        self.source = source
        self.fired = fired
        self.error_kind = error_kind
        self.error_message = error_message

    @property
    def failed(self) -> bool:
        return self.error_kind is not None

    def to_dict(self) -> dict:
        return {
            "subscriber": self.subscriber,
            "action": self.action,
            "source": self.source,
            "fired": self.fired,
            "error_kind": self.error_kind,
            "error_message": self.error_message,
        }


class RunReport:
    """Acumula ChangeRecords; la ejecución falla si algún registro o notificación falló."""

    def __init__(self, host: str, recipe: Optional[str] = None, why_run: bool = False):
        self.host = host
        self.recipe = recipe
        self.why_run = why_run
        self.records: List[ChangeRecord] = []
        self.notifications: List[NotificationRecord] = []

    def add(self, record: ChangeRecord) -> None:
        self.records.append(record)

    def add_notification(self, notification: NotificationRecord) -> None:
        self.notifications.append(notification)

    def record_for(self, resource_id: str) -> Optional[ChangeRecord]:
        for record in self.records:
            if record.resource_id == resource_id:
                return record
        return None

    def summary(self) -> Dict[str, int]:
        counts = {state.value: 0 for state in (ResourceState.UNCHANGED, ResourceState.CHANGED, ResourceState.FAILED)}
        for record in self.records:
            counts[record.state.value] += 1
        return counts

    @property
    def failed_records(self) -> List[ChangeRecord]:
        return [r for r in self.records if r.failed]

    @property
    def failed(self) -> bool:
        return bool(self.failed_records) or any(n.failed for n in self.notifications)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def to_dict(self) -> dict:
        return {
            "host": self.host,
            "recipe": self.recipe,
            "why_run": self.why_run,
            "summary": self.summary(),
            "failed": self.failed,
            "resources": [r.to_dict() for r in self.records],
            "notifications": [n.to_dict() for n in self.notifications],
        }

    def render(self, console: Console) -> None:
        """Muestra el reporte en formato legible (las referencias tipo[id] se escapan del markup)"""
        title = f"Convergencia: {self.recipe or '-'} @ {self.host}"
        if self.why_run:
            title += " (why-run)"
        table = Table(title=escape(title), show_header=True, header_style="bold cyan")
        table.add_column("Recurso", style="cyan")
        table.add_column("Acción", style="dim")
        table.add_column("Estado")
        table.add_column("Detalles", style="yellow")

        for record in self.records:
            state_style = {
                ResourceState.UNCHANGED: "[green]UNCHANGED[/green]",
                ResourceState.CHANGED: "[yellow]CHANGED[/yellow]",
                ResourceState.FAILED: "[red]FAILED[/red]",
            }.get(record.state, record.state.value)
            if record.failed:
                details = escape(f"{record.error_kind}: {record.error_message}")
            else:
                details = escape(", ".join(d.field for d in record.diffs)) or "[dim]-[/dim]"
            table.add_row(escape(record.resource_id), record.action, state_style, details)
        console.print(table)

        for n in self.notifications:
            line = f"{escape(n.subscriber)} {n.action} (por {escape(n.source)})"
            if n.failed:
                console.print(f"[red]✘ {line}: {escape(f'{n.error_kind}: {n.error_message}')}[/red]")
            elif n.fired:
                console.print(f"[cyan]↻ {line}[/cyan]")
            else:
                console.print(f"[dim]↻ {line} se ejecutaría[/dim]")

        counts = self.summary()
        console.print(
            f"\n[bold]Resumen:[/bold] {counts['changed']} changed, "
            f"{counts['unchanged']} unchanged, {counts['failed']} failed"
        )
