"""Construcción del payload XML de CarbonCare.

Por qué Jinja2:
- El sobre (ApiKey, unidades, Quote/Weight/Cooling) es común a los tres
  modos; cada leg extiende `envelope.xml.j2` con su bloque.
- `finalize` pasa cada expresión interpolada por `escape_xml`, así ningún
  texto del usuario entra sin escapar.

Transformación pura y determinista: nunca falla con un `NormalizedInput`
válido.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import pycountry
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from core.domain.models import AirLegInput, SeaLegInput, TruckLegInput
from core.domain.numeric import format_number

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)

_API_KEY_RE = re.compile(r"<ApiKey>[^<]*</ApiKey>")


def escape_xml(value: str) -> str:
    out = str(value)
    for raw, entity in _XML_ESCAPES:
        out = out.replace(raw, entity)
    return out


def _render_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return escape_xml(str(value.value))
    if isinstance(value, (int, float)):
        return format_number(value)
    return escape_xml(str(value))


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def country_name_from_iso2(code: str | None) -> str:
    """Nombre en inglés del país; si no se reconoce, el código en mayúsculas."""

    if not code:
        return ""
    upper = code.strip().upper()
    try:
        country = pycountry.countries.get(alpha_2=upper)
    except (KeyError, LookupError):
        country = None
    if country is None:
        return upper
    return getattr(country, "common_name", None) or country.name


def redact_api_key(xml: str) -> str:
    return _API_KEY_RE.sub("<ApiKey>***</ApiKey>", xml, count=1)


@dataclass(frozen=True)
class _AddressView:
    postal_code: str
    country_code: str
    country_name: str
    city: str
    street: str


def _address(*, postal_code: str, country: str, city: str | None, street: str | None) -> _AddressView:
    return _AddressView(
        postal_code=postal_code,
        country_code=country,
        country_name=country_name_from_iso2(country),
        city=city or "",
        street=street or "",
    )


def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=False,
        finalize=_render_value,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )


class CarbonCareRequestBuilder:
    """Genera el XML de un leg (air/sea/truck) dentro del sobre común."""

    def __init__(self, *, api_key: str, api_version: str = "3.2") -> None:
        self._api_key = api_key
        self._api_version = api_version
        self._env = _get_env()

    def build(self, leg: AirLegInput | SeaLegInput | TruckLegInput) -> str:
        if isinstance(leg, AirLegInput):
            return self.build_air(leg)
        if isinstance(leg, SeaLegInput):
            return self.build_sea(leg)
        if isinstance(leg, TruckLegInput):
            return self.build_truck(leg)
        raise TypeError(f"Unsupported leg input: {type(leg).__name__}")

    def build_air(self, leg: AirLegInput) -> str:
        return self._render("air.xml.j2", leg=leg)

    def build_sea(self, leg: SeaLegInput) -> str:
        return self._render("sea.xml.j2", leg=leg)

    def build_truck(self, leg: TruckLegInput) -> str:
        origin = _address(
            postal_code=leg.origin_postal_code,
            country=leg.origin_country,
            city=leg.origin_city,
            street=leg.origin_street,
        )
        destination = _address(
            postal_code=leg.destination_postal_code,
            country=leg.destination_country,
            city=leg.destination_city,
            street=leg.destination_street,
        )
        return self._render(
            "truck.xml.j2",
            leg=leg,
            origin=origin,
            destination=destination,
            load_factor=clamp(float(leg.load_factor), 0.0, 1.0),
        )

    def _render(self, template_name: str, **context: Any) -> str:
        template = self._env.get_template(template_name)
        return template.render(
            api_key=self._api_key,
            api_version=self._api_version,
            **context,
        )
