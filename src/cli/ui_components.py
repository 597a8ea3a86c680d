"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import LookupStatus, PrepareAction, PrepareOutcome

_STATUS_STYLE = {
    LookupStatus.FOUND: "green",
    LookupStatus.NOT_FOUND: "yellow",
    LookupStatus.QUERY_FAILED: "red",
}


def build_outcome_table(outcome: PrepareOutcome) -> Table:
    """Resumen de una ejecución de `prepare`."""

    table = Table(title="AppVeyor image")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    status = outcome.lookup.status
    table.add_row("Dependency version", outcome.dependency_version)
    table.add_row("Build cloud", outcome.build_cloud_id)
    table.add_row("Image", outcome.image)
    table.add_row("Lookup", Text(status.value, style=_STATUS_STYLE[status]))
    if outcome.lookup.error:
        table.add_row("Lookup error", Text(outcome.lookup.error, style="red"))

    action = "use existing image" if outcome.action is PrepareAction.USE_IMAGE else "bake new image"
    table.add_row("Action", action)
    table.add_row(
        "Written",
        str(outcome.written_path) if outcome.written_path else Text("nothing written", style="dim"),
    )
    return table


def build_trigger_panel(response: dict[str, Any]) -> Panel:
    """Panel con la respuesta de `POST /builds`."""

    body = Text()
    for key in ("buildId", "version", "status", "branch", "commitId"):
        if key in response:
            body.append(f"{key}: ", style="bold")
            body.append(f"{response[key]}\n")
    if not body.plain:
        body.append("AppVeyor accepted the build request.", style="dim")
    return Panel(body, title=Text("AppVeyor build", style="bold yellow"), border_style="yellow")

