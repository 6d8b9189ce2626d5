"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import EstimateOutcome
from core.domain.numeric import format_number


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - Permite desactivar banner en modos no interactivos (JSON/pipelines).
    """

    title = Text("carbonleg", style="bold green")
    subtitle = Text("Emisiones por tramo • Aire • Mar • Camión", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="green", padding=(1, 4)))


def _fmt(value: float | None, unit: str = "") -> str:
    if value is None:
        return "-"
    text = format_number(round(value, 3))
    return f"{text} {unit}".rstrip()


def build_result_table(outcome: EstimateOutcome) -> Table:
    """Tabla con las métricas principales del cálculo."""

    result = outcome.result
    emissions = result.emissions_kg

    table = Table(title=f"CO2e estimate ({outcome.mode.value})")
    table.add_column("Metric", style="green", no_wrap=True)
    table.add_column("Value", style="white", justify="right")

    table.add_row("CO2e estimate", _fmt(outcome.co2_estimate, "kg"))
    table.add_row("Distance", _fmt(result.km, "km"))
    table.add_row("Tonne-km", _fmt(result.tkm, "tkm"))
    if result.shipment_found:
        table.add_row("Total (TOT)", _fmt(emissions.tot, "kg"))
        table.add_row("Operations (OPS)", _fmt(emissions.ops, "kg"))
        table.add_row("Energy (ENE)", _fmt(emissions.ene, "kg"))
        table.add_row("Intensity", _fmt(emissions.tot_ei_gr_per_tkm, "g/tkm"))
    else:
        table.add_row("Shipment", "[yellow]not found in response[/yellow]")
    if result.report_url:
        table.add_row("Report", result.report_url)
    if outcome.calculation_id:
        table.add_row("Calculation id", outcome.calculation_id)
    return table


def build_warnings_panel(warnings: list[str]) -> Panel:
    body = Text()
    for index, warning in enumerate(warnings):
        if index:
            body.append("\n")
        body.append(f"- {warning}")
    return Panel(body, title=Text("Warnings", style="bold yellow"), border_style="yellow")
