"""Normalización del request de emisiones.

Convierte el body crudo (códigos o texto libre) en un `NormalizedInput`
concreto: peso positivo, modo válido y códigos ya resueltos. El texto libre se
delega al `LocationResolver`; sus errores no se reintentan ni se ocultan.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.domain.errors import ResolutionError, ValidationError
from core.domain.models import (
    AirLegInput,
    AirType,
    EmissionsRequest,
    Mode,
    SeaLegInput,
    TruckLegInput,
    TruckType,
)
from core.interfaces.location_resolver import LocationResolver

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT_KG = 20.0
DEFAULT_RESOLVER_LIMIT = 5
WEIGHT_DEFAULTED_WARNING = "weightKg missing or invalid; defaulted to 20kg for emissions request."

_MISSING_LOCATIONS = {
    Mode.AIR: "Provide either originAirport/destinationAirport or originText/destinationText for air mode",
    Mode.SEA: "Provide either originSeaport/destinationSeaport or originText/destinationText for sea mode",
    Mode.TRUCK: "Provide either postal codes/countries or originText/destinationText for truck mode",
}


@dataclass
class NormalizedRequest:
    """Resultado de normalizar: request validado, leg concreto y avisos."""

    request: EmissionsRequest
    normalized: AirLegInput | SeaLegInput | TruckLegInput
    body: dict[str, Any]
    warnings: list[str] = field(default_factory=list)


def is_valid_weight(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def _describe_validation_error(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "__root__")
    message = first.get("msg", "invalid value")
    return f"Invalid {location}: {message}" if location else message


def _build(model: type[BaseModel], **fields: Any) -> Any:
    try:
        return model(**fields)
    except PydanticValidationError as exc:
        raise ValidationError(_describe_validation_error(exc)) from exc


async def normalize_request(
    body: Mapping[str, Any] | None,
    *,
    resolver: LocationResolver | None,
    limit: int = DEFAULT_RESOLVER_LIMIT,
) -> NormalizedRequest:
    """Valida y completa el request.

    - `mode` obligatorio (ValidationError si falta o no es air/sea/truck).
    - `weightKg` ausente o <= 0 -> 20 kg + aviso.
    - Códigos presentes -> se pasan tal cual; texto libre -> resolver.
    """

    if not isinstance(body, Mapping):
        raise ValidationError("Invalid JSON body")

    data = dict(body)
    warnings: list[str] = []

    raw_mode = data.get("mode")
    if raw_mode is None or raw_mode == "":
        raise ValidationError("Missing mode")
    try:
        data["mode"] = Mode.parse(raw_mode).value
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    if not is_valid_weight(data.get("weightKg")):
        logger.debug("weightKg missing/invalid (%r), defaulting to %s", data.get("weightKg"), DEFAULT_WEIGHT_KG)
        data["weightKg"] = DEFAULT_WEIGHT_KG
        warnings.append(WEIGHT_DEFAULTED_WARNING)

    try:
        request = EmissionsRequest.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_describe_validation_error(exc)) from exc

    if request.mode is Mode.AIR:
        normalized = await _normalize_air(request, resolver=resolver, limit=limit)
    elif request.mode is Mode.SEA:
        normalized = await _normalize_sea(request, resolver=resolver, limit=limit)
    else:
        normalized = await _normalize_truck(request, resolver=resolver, limit=limit)

    return NormalizedRequest(request=request, normalized=normalized, body=data, warnings=warnings)


def _require_resolver(resolver: LocationResolver | None, mode: Mode) -> LocationResolver:
    if resolver is None:
        raise ResolutionError(f"No location resolver configured for free-text {mode.value} locations")
    return resolver


def _free_text_kwargs(request: EmissionsRequest, limit: int) -> dict[str, Any]:
    return {
        "origin_text": request.origin_text,
        "destination_text": request.destination_text,
        "origin_country_hint": request.origin_country_hint,
        "destination_country_hint": request.destination_country_hint,
        "limit": limit,
    }


async def _normalize_air(
    request: EmissionsRequest,
    *,
    resolver: LocationResolver | None,
    limit: int,
) -> AirLegInput:
    if request.origin_airport and request.destination_airport:
        origin, destination = request.origin_airport, request.destination_airport
    elif request.has_free_text:
        resolved = await _require_resolver(resolver, Mode.AIR).resolve_air(**_free_text_kwargs(request, limit))
        origin, destination = resolved.origin_airport, resolved.destination_airport
    else:
        raise ValidationError(_MISSING_LOCATIONS[Mode.AIR])

    return _build(
        AirLegInput,
        weight_kg=request.weight_kg,
        origin_airport=origin,
        destination_airport=destination,
        air_type=request.air_type or AirType.ABB,
        quote=request.quote,
        cooling=request.cooling,
    )


async def _normalize_sea(
    request: EmissionsRequest,
    *,
    resolver: LocationResolver | None,
    limit: int,
) -> SeaLegInput:
    if request.origin_seaport and request.destination_seaport:
        origin, destination = request.origin_seaport, request.destination_seaport
    elif request.has_free_text:
        resolved = await _require_resolver(resolver, Mode.SEA).resolve_sea(**_free_text_kwargs(request, limit))
        origin, destination = resolved.origin_seaport, resolved.destination_seaport
    else:
        raise ValidationError(_MISSING_LOCATIONS[Mode.SEA])

    return _build(
        SeaLegInput,
        weight_kg=request.weight_kg,
        origin_seaport=origin,
        destination_seaport=destination,
        quote=request.quote,
        cooling=request.cooling,
    )


async def _normalize_truck(
    request: EmissionsRequest,
    *,
    resolver: LocationResolver | None,
    limit: int,
) -> TruckLegInput:
    coded = (
        request.origin_postal_code
        and request.origin_country
        and request.destination_postal_code
        and request.destination_country
    )
    if coded:
        addresses = {
            "origin_postal_code": request.origin_postal_code,
            "origin_country": request.origin_country,
            "origin_city": request.origin_city,
            "destination_postal_code": request.destination_postal_code,
            "destination_country": request.destination_country,
            "destination_city": request.destination_city,
        }
    elif request.has_free_text:
        route = await _require_resolver(resolver, Mode.TRUCK).resolve_truck(**_free_text_kwargs(request, limit))
        addresses = {
            "origin_postal_code": route.origin.postal_code,
            "origin_country": route.origin.country,
            "origin_city": route.origin.city or None,
            "destination_postal_code": route.destination.postal_code,
            "destination_country": route.destination.country,
            "destination_city": route.destination.city or None,
        }
    else:
        raise ValidationError(_MISSING_LOCATIONS[Mode.TRUCK])

    return _build(
        TruckLegInput,
        weight_kg=request.weight_kg,
        origin_street=request.origin_street,
        destination_street=request.destination_street,
        truck_type=request.truck_type or TruckType.R18D,
        load_factor=request.load_factor if request.load_factor is not None else 0.0,
        quote=request.quote,
        cooling=request.cooling,
        **addresses,
    )
