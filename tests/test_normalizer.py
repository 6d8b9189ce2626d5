from __future__ import annotations

import pytest

from core.domain.errors import ResolutionError, ValidationError
from core.domain.models import AirLegInput, AirType, Mode, SeaLegInput, TruckLegInput, TruckType
from core.services.normalizer import WEIGHT_DEFAULTED_WARNING, normalize_request


@pytest.mark.asyncio
async def test_missing_weight_defaults_to_twenty_kg():
    prepared = await normalize_request(
        {"mode": "air", "originAirport": "LHR", "destinationAirport": "JFK"},
        resolver=None,
    )

    assert isinstance(prepared.normalized, AirLegInput)
    assert prepared.normalized.weight_kg == 20
    assert prepared.normalized.air_type is AirType.ABB
    assert WEIGHT_DEFAULTED_WARNING in prepared.warnings


@pytest.mark.asyncio
@pytest.mark.parametrize("weight", [0, -5, "heavy", None, True])
async def test_invalid_weight_is_defaulted(weight):
    prepared = await normalize_request(
        {"mode": "sea", "weightKg": weight, "originSeaport": "DEHAM", "destinationSeaport": "USNYC"},
        resolver=None,
    )

    assert prepared.normalized.weight_kg == 20
    assert prepared.warnings == [WEIGHT_DEFAULTED_WARNING]


@pytest.mark.asyncio
async def test_valid_weight_has_no_warning():
    prepared = await normalize_request(
        {"mode": "AIR", "weightKg": 250, "originAirport": "LHR", "destinationAirport": "JFK"},
        resolver=None,
    )

    assert prepared.normalized.mode is Mode.AIR
    assert prepared.normalized.weight_kg == 250
    assert prepared.warnings == []


@pytest.mark.asyncio
async def test_missing_mode():
    with pytest.raises(ValidationError, match="Missing mode"):
        await normalize_request({"weightKg": 10}, resolver=None)


@pytest.mark.asyncio
async def test_unknown_mode():
    with pytest.raises(ValidationError, match="Unsupported mode"):
        await normalize_request({"mode": "rail"}, resolver=None)


@pytest.mark.asyncio
async def test_non_mapping_body():
    with pytest.raises(ValidationError, match="Invalid JSON body"):
        await normalize_request([{"mode": "air"}], resolver=None)  # type: ignore[arg-type]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("mode", "message"),
    [
        ("air", "originAirport/destinationAirport"),
        ("sea", "originSeaport/destinationSeaport"),
        ("truck", "postal codes/countries"),
    ],
)
async def test_missing_locations(mode, message):
    with pytest.raises(ValidationError, match=message):
        await normalize_request({"mode": mode, "weightKg": 10}, resolver=None)


@pytest.mark.asyncio
async def test_invalid_air_type_is_a_validation_error():
    with pytest.raises(ValidationError):
        await normalize_request(
            {"mode": "air", "weightKg": 10, "originAirport": "LHR", "destinationAirport": "JFK", "airType": "XYZ"},
            resolver=None,
        )


@pytest.mark.asyncio
async def test_truck_defaults_and_passthrough():
    prepared = await normalize_request(
        {
            "mode": "truck",
            "weightKg": 500,
            "originPostalCode": 8001,
            "originCountry": "CH",
            "destinationPostalCode": "20095",
            "destinationCountry": "DE",
            "destinationCity": "Hamburg",
        },
        resolver=None,
    )

    leg = prepared.normalized
    assert isinstance(leg, TruckLegInput)
    assert leg.origin_postal_code == "8001"
    assert leg.destination_city == "Hamburg"
    assert leg.truck_type is TruckType.R18D
    assert leg.load_factor == 0.0


@pytest.mark.asyncio
async def test_free_text_goes_through_resolver(fake_resolver):
    prepared = await normalize_request(
        {
            "mode": "sea",
            "weightKg": 100,
            "originText": "Port of Hamburg",
            "destinationText": "New York",
            "originCountryHint": "DE",
        },
        resolver=fake_resolver,
        limit=3,
    )

    assert isinstance(prepared.normalized, SeaLegInput)
    assert prepared.normalized.origin_seaport == "DEHAM"
    kind, kwargs = fake_resolver.calls[0]
    assert kind == "sea"
    assert kwargs["origin_text"] == "Port of Hamburg"
    assert kwargs["origin_country_hint"] == "DE"
    assert kwargs["limit"] == 3


@pytest.mark.asyncio
async def test_codes_take_precedence_over_free_text(fake_resolver):
    prepared = await normalize_request(
        {
            "mode": "air",
            "weightKg": 5,
            "originAirport": "ZRH",
            "destinationAirport": "SIN",
            "originText": "London",
            "destinationText": "New York",
        },
        resolver=fake_resolver,
    )

    assert prepared.normalized.origin_airport == "ZRH"
    assert fake_resolver.calls == []


@pytest.mark.asyncio
async def test_truck_free_text_uses_resolved_addresses(fake_resolver):
    prepared = await normalize_request(
        {"mode": "truck", "weightKg": 5, "originText": "Zürich", "destinationText": "Hamburg"},
        resolver=fake_resolver,
    )

    assert prepared.normalized.origin_country == "CH"
    assert prepared.normalized.destination_postal_code == "20095"


@pytest.mark.asyncio
async def test_free_text_without_resolver():
    with pytest.raises(ResolutionError):
        await normalize_request(
            {"mode": "air", "weightKg": 5, "originText": "London", "destinationText": "New York"},
            resolver=None,
        )
