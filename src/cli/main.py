"""CLI principal (Typer).

Comandos:
- `estimate`: calcula las emisiones de un tramo y las muestra (o exporta).
- `serve`: levanta la API HTTP con uvicorn.
- `doctor`: diagnóstico de configuración.

Por qué la CLI no hace lógica:
- Solo arma el body (los mismos campos camelCase que acepta la API) y delega
  en `EmissionsPipeline`; así CLI y HTTP no divergen.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from adapters.json_exporter import export_outcome_json
from cli import doctor
from cli.ui_components import build_result_table, build_warnings_panel, print_banner
from core.config import AppSettings
from core.domain.errors import EmissionsError
from core.domain.models import AirType, Mode, TruckType
from core.logging_config import configure_logging
from core.services.emissions_pipeline import build_pipeline

app = typer.Typer(
    name="carbonleg",
    help="Estimate CO2e for air, sea and truck freight legs via CarbonCare.",
    no_args_is_help=True,
)
app.add_typer(doctor.app, name="doctor")

console = Console()
error_console = Console(stderr=True)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable DEBUG logs (request XML, metrics)."),
) -> None:
    configure_logging(verbose=verbose, settings=AppSettings(), console=error_console)


def build_request_body(
    *,
    mode: str,
    weight: float | None = None,
    origin: str | None = None,
    destination: str | None = None,
    origin_text: str | None = None,
    destination_text: str | None = None,
    origin_country: str | None = None,
    destination_country: str | None = None,
    origin_city: str | None = None,
    destination_city: str | None = None,
    origin_street: str | None = None,
    destination_street: str | None = None,
    quote_flag: bool = False,
    cooling: bool = False,
    air_type: AirType | None = None,
    truck_type: TruckType | None = None,
    load_factor: float | None = None,
    quote_id: str | None = None,
    bid_id: str | None = None,
    user_id: str | None = None,
) -> dict[str, Any]:
    """Traduce las opciones de la CLI al body camelCase de la API.

    `origin`/`destination` son el código del modo: IATA (air), UN/LOCODE
    (sea) o código postal (truck).
    """

    body: dict[str, Any] = {"mode": mode, "quote": quote_flag, "cooling": cooling}
    if weight is not None:
        body["weightKg"] = weight

    parsed_mode = Mode.parse(mode)
    if parsed_mode is Mode.AIR:
        keys = ("originAirport", "destinationAirport")
    elif parsed_mode is Mode.SEA:
        keys = ("originSeaport", "destinationSeaport")
    else:
        keys = ("originPostalCode", "destinationPostalCode")

    optional: dict[str, Any] = {
        keys[0]: origin,
        keys[1]: destination,
        "originText": origin_text,
        "destinationText": destination_text,
        "airType": air_type.value if air_type else None,
        "truckType": truck_type.value if truck_type else None,
        "loadFactor": load_factor,
    }
    if parsed_mode is Mode.TRUCK:
        optional.update(
            {
                "originCountry": origin_country,
                "destinationCountry": destination_country,
                "originCity": origin_city,
                "destinationCity": destination_city,
                "originStreet": origin_street,
                "destinationStreet": destination_street,
            }
        )
    else:
        # En aire/mar el país solo sirve de pista para resolver texto libre.
        optional.update(
            {
                "originCountryHint": origin_country,
                "destinationCountryHint": destination_country,
            }
        )
    body.update({key: value for key, value in optional.items() if value is not None})

    context = {"quoteId": quote_id, "bidId": bid_id, "calculatedByUserId": user_id}
    context = {key: value for key, value in context.items() if value}
    if context:
        body["context"] = context
    return body


@app.command()
def estimate(
    mode: str = typer.Option(..., "--mode", "-m", help="air | sea | truck"),
    weight: float | None = typer.Option(None, "--weight", "-w", help="Weight in kg (defaults to 20)."),
    origin: str | None = typer.Option(None, "--from", help="Origin code: IATA, UN/LOCODE or postal code."),
    destination: str | None = typer.Option(None, "--to", help="Destination code: IATA, UN/LOCODE or postal code."),
    origin_text: str | None = typer.Option(None, "--from-text", help="Free-text origin to resolve."),
    destination_text: str | None = typer.Option(None, "--to-text", help="Free-text destination to resolve."),
    origin_country: str | None = typer.Option(None, "--from-country", help="ISO2 country (truck) or hint (air/sea)."),
    destination_country: str | None = typer.Option(None, "--to-country", help="ISO2 country (truck) or hint (air/sea)."),
    origin_city: str | None = typer.Option(None, "--from-city"),
    destination_city: str | None = typer.Option(None, "--to-city"),
    origin_street: str | None = typer.Option(None, "--from-street"),
    destination_street: str | None = typer.Option(None, "--to-street"),
    quote_flag: bool = typer.Option(False, "--quote-flag", help="Mark the shipment as a quote in CarbonCare."),
    cooling: bool = typer.Option(False, "--cooling", help="Refrigerated cargo."),
    air_type: AirType | None = typer.Option(None, "--air-type", case_sensitive=False),
    truck_type: TruckType | None = typer.Option(None, "--truck-type", case_sensitive=False),
    load_factor: float | None = typer.Option(None, "--load-factor", help="Truck load factor, clamped to [0, 1]."),
    quote_id: str | None = typer.Option(None, "--quote-id", help="Persist against this quote."),
    bid_id: str | None = typer.Option(None, "--bid-id", help="Persist against this bid."),
    user_id: str | None = typer.Option(None, "--user-id", help="User recorded as calculated_by."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON payload."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the JSON payload to this path."),
) -> None:
    """Estimate emissions for one freight leg."""

    try:
        body = build_request_body(
            mode=mode,
            weight=weight,
            origin=origin,
            destination=destination,
            origin_text=origin_text,
            destination_text=destination_text,
            origin_country=origin_country,
            destination_country=destination_country,
            origin_city=origin_city,
            destination_city=destination_city,
            origin_street=origin_street,
            destination_street=destination_street,
            quote_flag=quote_flag,
            cooling=cooling,
            air_type=air_type,
            truck_type=truck_type,
            load_factor=load_factor,
            quote_id=quote_id,
            bid_id=bid_id,
            user_id=user_id,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--mode") from exc

    try:
        pipeline = build_pipeline(AppSettings())
        outcome = asyncio.run(pipeline.estimate(body))
    except EmissionsError as exc:
        error_console.print(f"[red]Error:[/red] {exc.message}")
        raise typer.Exit(code=1) from exc

    if output is not None:
        path = export_outcome_json(outcome=outcome, output_path=output)
        if not as_json:
            console.print(f"[green]Saved JSON to:[/green] {path}")

    if as_json:
        typer.echo(json.dumps(outcome.to_payload(), ensure_ascii=False, indent=2))
        return

    print_banner(console)
    console.print(build_result_table(outcome))
    if outcome.warnings:
        console.print(build_warnings_panel(outcome.warnings))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload (development)."),
) -> None:
    """Run the HTTP API (`POST /api/emissions`)."""

    import uvicorn  # noqa: PLC0415

    uvicorn.run("api.app:create_default_app", factory=True, host=host, port=port, reload=reload)


def run() -> None:
    app()
