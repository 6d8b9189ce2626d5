"""Contrato del resolver de ubicaciones (texto libre -> códigos).

Por qué Protocol:
- El Core no sabe si los códigos salen de una base local, de Nominatim o de
  un servicio interno; solo exige estas tres operaciones.
- Los tests sustituyen el resolver por un stub sin red.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import ResolvedAirports, ResolvedSeaports, ResolvedTruckRoute


@runtime_checkable
class LocationResolver(Protocol):
    """Resuelve texto libre a códigos por modo.

    Reglas de diseño:
    - Si no hay coincidencia se lanza `ResolutionError`; nunca se devuelve
      un resultado parcial.
    - `limit` es el número de candidatos a considerar por extremo.
    """

    async def resolve_air(
        self,
        *,
        origin_text: str,
        destination_text: str,
        origin_country_hint: str | None = None,
        destination_country_hint: str | None = None,
        limit: int = 5,
    ) -> ResolvedAirports: ...

    async def resolve_sea(
        self,
        *,
        origin_text: str,
        destination_text: str,
        origin_country_hint: str | None = None,
        destination_country_hint: str | None = None,
        limit: int = 5,
    ) -> ResolvedSeaports: ...

    async def resolve_truck(
        self,
        *,
        origin_text: str,
        destination_text: str,
        origin_country_hint: str | None = None,
        destination_country_hint: str | None = None,
        limit: int = 5,
    ) -> ResolvedTruckRoute: ...
