"""Resolver de ubicaciones en texto libre.

Estrategia:
- Aire/mar: se extrae el código del propio texto ("London Heathrow (LHR)",
  "Port of Hamburg DEHAM"). Sin código reconocible -> `ResolutionError`.
- Camión: geocoding con Nominatim para obtener código postal, país y ciudad.
  Reintenta 429/5xx con backoff lineal y, si no hay resultados, amplía la
  búsqueda quitando los segmentos más específicos de la dirección.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable

import httpx
import pycountry

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import ResolutionError
from core.domain.models import (
    ResolvedAddress,
    ResolvedAirports,
    ResolvedSeaports,
    ResolvedTruckRoute,
)

logger = logging.getLogger(__name__)

RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})
MAX_SEGMENT_DROPS = 3

_IATA_PARENS_RE = re.compile(r"\(([A-Za-z]{3})\)")
_IATA_TOKEN_RE = re.compile(r"\b([A-Z]{3})\b")
_LOCODE_RE = re.compile(r"\b([A-Z]{2})\s?([A-Z2-9]{3})\b")


def generate_address_variants(address: str) -> list[str]:
    """"a, b, c, d" -> ["a, b, c, d", "b, c, d", "c, d", "d"] (máx. 3 recortes)."""

    parts = [part.strip() for part in address.strip().split(",") if part.strip()]
    if not parts:
        return []

    variants: list[str] = []
    max_drops = min(len(parts) - 1, MAX_SEGMENT_DROPS)
    for drop in range(max_drops + 1):
        variant = ", ".join(parts[drop:])
        if variant and variant not in variants:
            variants.append(variant)
    return variants


def _normalize_hint(hint: str | None) -> str | None:
    if not hint:
        return None
    value = hint.strip().upper()
    return value if len(value) == 2 and value.isalpha() else None


def _is_iso_country(code: str) -> bool:
    try:
        return pycountry.countries.get(alpha_2=code) is not None
    except (KeyError, LookupError):
        return False


def extract_airport_code(text: str, *, limit: int = 5) -> str | None:
    """Código IATA: "(lhr)" en cualquier caja o un token en mayúsculas ("LHR").

    Palabras sueltas como "Rio" no cuentan como código.
    """

    stripped = text.strip()
    match = _IATA_PARENS_RE.search(stripped)
    if match:
        return match.group(1).upper()
    candidates = _IATA_TOKEN_RE.findall(stripped)[:limit]
    return candidates[0] if candidates else None


def extract_seaport_code(text: str, *, country_hint: str | None = None, limit: int = 5) -> str | None:
    """UN/LOCODE en mayúsculas ("DEHAM", "DE HAM") con país ISO 3166 válido.

    "Genoa" o "Tokyo" no son códigos aunque tengan cinco letras.
    """

    hint = _normalize_hint(country_hint)
    candidates = ["".join(groups) for groups in _LOCODE_RE.findall(text.strip())][:limit]
    for code in candidates:
        if not _is_iso_country(code[:2]):
            continue
        if hint is None or code.startswith(hint):
            return code
    return None


class HeuristicLocationResolver:
    """Implementa `LocationResolver` sin base de datos propia de códigos."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport
        self._sleep = sleep

    async def resolve_air(
        self,
        *,
        origin_text: str,
        destination_text: str,
        origin_country_hint: str | None = None,
        destination_country_hint: str | None = None,
        limit: int = 5,
    ) -> ResolvedAirports:
        """Extrae los códigos IATA del texto.

        Las pistas de país se ignoran en aire: un código IATA no lleva país y
        no hay tabla local de aeropuertos con la que filtrarlos.
        """

        origin = extract_airport_code(origin_text, limit=limit)
        if origin is None:
            raise ResolutionError(f"Could not resolve an airport code for origin: {origin_text!r}")
        destination = extract_airport_code(destination_text, limit=limit)
        if destination is None:
            raise ResolutionError(f"Could not resolve an airport code for destination: {destination_text!r}")
        return ResolvedAirports(origin_airport=origin, destination_airport=destination)

    async def resolve_sea(
        self,
        *,
        origin_text: str,
        destination_text: str,
        origin_country_hint: str | None = None,
        destination_country_hint: str | None = None,
        limit: int = 5,
    ) -> ResolvedSeaports:
        origin = extract_seaport_code(origin_text, country_hint=origin_country_hint, limit=limit)
        if origin is None:
            raise ResolutionError(f"Could not resolve a seaport code for origin: {origin_text!r}")
        destination = extract_seaport_code(
            destination_text,
            country_hint=destination_country_hint,
            limit=limit,
        )
        if destination is None:
            raise ResolutionError(f"Could not resolve a seaport code for destination: {destination_text!r}")
        return ResolvedSeaports(origin_seaport=origin, destination_seaport=destination)

    async def resolve_truck(
        self,
        *,
        origin_text: str,
        destination_text: str,
        origin_country_hint: str | None = None,
        destination_country_hint: str | None = None,
        limit: int = 5,
    ) -> ResolvedTruckRoute:
        async with build_async_client(
            self._settings,
            extra_headers={
                "User-Agent": self._settings.nominatim_user_agent,
                "Accept": "application/json",
            },
            transport=self._transport,
        ) as client:
            origin = await self._geocode(client, origin_text, country_hint=origin_country_hint, limit=limit)
            destination = await self._geocode(
                client,
                destination_text,
                country_hint=destination_country_hint,
                limit=limit,
            )

        if origin is None:
            raise ResolutionError(f"Could not resolve a postal address for origin: {origin_text!r}")
        if destination is None:
            raise ResolutionError(f"Could not resolve a postal address for destination: {destination_text!r}")
        return ResolvedTruckRoute(origin=origin, destination=destination)

    async def _geocode(
        self,
        client: httpx.AsyncClient,
        text: str,
        *,
        country_hint: str | None,
        limit: int,
    ) -> ResolvedAddress | None:
        hint = _normalize_hint(country_hint)
        for variant in generate_address_variants(text):
            params: dict[str, Any] = {
                "q": variant,
                "format": "json",
                "limit": str(limit),
                "addressdetails": "1",
            }
            if hint:
                params["countrycodes"] = hint.lower()

            results = await self._search(client, params)
            if results is None:
                # Reintentos agotados: probamos una variante más amplia.
                continue
            address = _pick_address(results)
            if address is not None:
                return address
        return None

    async def _search(self, client: httpx.AsyncClient, params: dict[str, Any]) -> list[Any] | None:
        max_attempts = self._settings.geocode_max_attempts
        for attempt in range(1, max_attempts + 1):
            try:
                response = await client.get(self._settings.nominatim_endpoint, params=params)
            except httpx.HTTPError as exc:
                logger.debug("Nominatim request failed (attempt %d/%d): %s", attempt, max_attempts, exc)
                if attempt < max_attempts:
                    await self._sleep(self._settings.geocode_backoff_seconds * attempt)
                    continue
                return None

            if response.status_code in RETRY_STATUSES:
                logger.debug("Nominatim HTTP %s (attempt %d/%d)", response.status_code, attempt, max_attempts)
                if attempt < max_attempts:
                    await self._sleep(self._settings.geocode_backoff_seconds * attempt)
                    continue
                return None

            if not response.is_success:
                raise ResolutionError(f"Nominatim request failed with status {response.status_code}")

            try:
                payload = response.json()
            except ValueError:
                return []
            return payload if isinstance(payload, list) else []
        return None


def _pick_address(results: list[Any]) -> ResolvedAddress | None:
    for item in results:
        if not isinstance(item, dict):
            continue
        details = item.get("address")
        if not isinstance(details, dict):
            continue
        postal_code = details.get("postcode") or details.get("zip")
        country_code = details.get("country_code")
        if not postal_code or not country_code:
            continue
        city = details.get("city") or details.get("town") or details.get("village") or details.get("municipality")
        return ResolvedAddress(
            postal_code=str(postal_code),
            country=str(country_code).upper(),
            city=str(city) if city else None,
        )
    return None
