"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (CarbonCare/Supabase/Nominatim) lean config de
  forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.errors import ConfigurationError

ENV_PREFIX = "CARBONLEG_"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "carbonleg"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "carbonleg"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "carbonleg"
    return Path.home() / ".config" / "carbonleg"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# carbonleg user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - La API key se inyecta en el pipeline al construirlo; no hay constantes
      globales mutables.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    carboncare_api_key: str | None = Field(
        default=None,
        description="API key de CarbonCare (va en texto plano dentro del sobre XML).",
    )
    carboncare_endpoint: str = Field(
        default="https://api.carboncare.ch/xml/calc",
        min_length=8,
        description="Endpoint XML de cálculo de CarbonCare.",
    )
    carboncare_api_version: str = Field(
        default="3.2",
        min_length=1,
        description="Atributo Version del sobre CarbonCareApi.",
    )
    http_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Timeout por request (segundos). Vacío = default del transporte.",
    )
    user_agent: str = Field(
        default="carbonleg/0.1 (+https://local)",
        min_length=1,
        description="User-Agent para peticiones salientes.",
    )
    debug: bool = Field(
        default=False,
        description="Logs DEBUG (incluye el XML enviado con la API key redactada).",
    )

    supabase_url: str | None = Field(
        default=None,
        description="URL base del proyecto Supabase (PostgREST en /rest/v1).",
    )
    supabase_service_key: str | None = Field(
        default=None,
        description="Service role key para insertar cálculos.",
    )
    calculations_table: str = Field(
        default="carbon_calculations",
        min_length=1,
        description="Tabla donde se guardan los cálculos.",
    )
    promote_function: str = Field(
        default="set_primary_carbon_calculation",
        min_length=1,
        description="RPC que marca un cálculo como primario para su bid/quote.",
    )

    nominatim_endpoint: str = Field(
        default="https://nominatim.openstreetmap.org/search",
        min_length=8,
        description="Endpoint de geocoding para resolver direcciones de camión.",
    )
    nominatim_user_agent: str = Field(
        default="carbonleg-geocoder/0.1 (+https://local)",
        min_length=1,
        description="Nominatim exige un User-Agent identificable.",
    )
    geocode_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Intentos por variante de dirección ante 429/5xx.",
    )
    geocode_backoff_seconds: float = Field(
        default=0.75,
        ge=0,
        description="Backoff lineal: espera = backoff * intento.",
    )
    resolver_candidate_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Número de candidatos pedidos al resolver de ubicaciones.",
    )

    cors_allow_origins: list[str] = Field(
        default_factory=list,
        description="Orígenes permitidos para la API HTTP.",
    )

    @property
    def persistence_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)

    def require_carboncare_api_key(self) -> str:
        """Valida (una vez, al construir el pipeline) que hay API key."""

        key = (self.carboncare_api_key or "").strip()
        if not key:
            raise ConfigurationError(
                f"Missing {ENV_PREFIX}CARBONCARE_API_KEY environment variable"
            )
        return key
