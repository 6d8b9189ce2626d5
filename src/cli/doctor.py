"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from core.config import ENV_PREFIX, AppSettings, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings | None = None) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


def build_diagnostics_table(settings: AppSettings, *, check_network: bool = True) -> Table:
    table = Table(title="carbonleg Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    if (settings.carboncare_api_key or "").strip():
        table.add_row("CarbonCare API key", "OK", "Key configured")
    else:
        table.add_row("CarbonCare API key", "FAIL", f"Set {ENV_PREFIX}CARBONCARE_API_KEY or run `doctor setup-api-key`")
    table.add_row("CarbonCare endpoint", "OK", settings.carboncare_endpoint)
    table.add_row("API version", "OK", settings.carboncare_api_version)

    if settings.persistence_configured:
        table.add_row("Supabase", "OK", f"{settings.supabase_url} -> {settings.calculations_table}")
    else:
        table.add_row("Supabase", "OPTIONAL", "Not configured -> requests with quote/bid context will fail")

    table.add_row("Geocoder", "OK", settings.nominatim_endpoint)

    # Connectivity (best-effort)
    if check_network:
        ok_http, detail_http = asyncio.run(_check_http(settings.carboncare_endpoint, settings))
        table.add_row("CarbonCare connectivity", "OK" if ok_http else "FAIL", detail_http)

    return table


@app.command()
def run(
    offline: bool = typer.Option(False, "--offline", help="Skip connectivity checks."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    _console.print(build_diagnostics_table(settings, check_network=not offline))


@app.command(name="setup-api-key")
def setup_api_key() -> None:
    """Interactive CarbonCare setup (stores config in the user config .env).

    No manual .env editing needed.
    """

    api_key = typer.prompt("CarbonCare API key", hide_input=True, confirmation_prompt=False).strip()
    if not api_key:
        raise typer.BadParameter("API key is required")

    endpoint = typer.prompt(
        "CarbonCare endpoint",
        default=AppSettings.model_fields["carboncare_endpoint"].default,
        show_default=True,
    ).strip()

    env_path = write_user_env_vars(
        {
            f"{ENV_PREFIX}CARBONCARE_API_KEY": api_key,
            f"{ENV_PREFIX}CARBONCARE_ENDPOINT": endpoint,
        }
    )

    _console.print(f"[green]Saved CarbonCare config to:[/green] {env_path}")
