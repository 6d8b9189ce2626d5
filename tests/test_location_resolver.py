from __future__ import annotations

import httpx
import pytest

from adapters.location_resolver import (
    HeuristicLocationResolver,
    extract_airport_code,
    extract_seaport_code,
    generate_address_variants,
)
from conftest import RecordingTransport
from core.domain.errors import ResolutionError


def test_address_variants_drop_up_to_three_segments():
    assert generate_address_variants("Dock 4, Hafenstrasse 1, Hamburg, 20095, Germany") == [
        "Dock 4, Hafenstrasse 1, Hamburg, 20095, Germany",
        "Hafenstrasse 1, Hamburg, 20095, Germany",
        "Hamburg, 20095, Germany",
        "20095, Germany",
    ]
    assert generate_address_variants("Zürich") == ["Zürich"]
    assert generate_address_variants("  ") == []


@pytest.mark.parametrize(
    ("text", "code"),
    [
        ("LHR", "LHR"),
        ("Rio", None),
        ("lhr", None),
        ("London Heathrow (lhr)", "LHR"),
        ("JFK New York", "JFK"),
        ("somewhere", None),
    ],
)
def test_extract_airport_code(text, code):
    assert extract_airport_code(text) == code


def test_extract_seaport_code_uses_country_hint():
    assert extract_seaport_code("DEHAM") == "DEHAM"
    assert extract_seaport_code("Hamburg DE HAM") == "DEHAM"
    assert extract_seaport_code("NLRTM or DEHAM", country_hint="de") == "DEHAM"
    assert extract_seaport_code("NLRTM", country_hint="DE") is None


@pytest.mark.parametrize("text", ["Genoa", "Miami", "Dover", "Tokyo", "deham", "XXABC"])
def test_plain_words_are_not_seaport_codes(text):
    assert extract_seaport_code(text) is None


@pytest.mark.asyncio
async def test_resolve_sea_city_names_raise(settings):
    resolver = HeuristicLocationResolver(settings)

    with pytest.raises(ResolutionError, match="Genoa"):
        await resolver.resolve_sea(origin_text="Genoa", destination_text="Miami")


@pytest.mark.asyncio
async def test_resolve_air_short_city_name_raises(settings):
    resolver = HeuristicLocationResolver(settings)

    with pytest.raises(ResolutionError, match="Rio"):
        await resolver.resolve_air(origin_text="Rio", destination_text="JFK")


@pytest.mark.asyncio
async def test_resolve_air_from_text(settings):
    resolver = HeuristicLocationResolver(settings)

    resolved = await resolver.resolve_air(origin_text="London (LHR)", destination_text="JFK")

    assert resolved.origin_airport == "LHR"
    assert resolved.destination_airport == "JFK"


@pytest.mark.asyncio
async def test_resolve_sea_without_code_fails(settings):
    resolver = HeuristicLocationResolver(settings)

    with pytest.raises(ResolutionError, match="seaport"):
        await resolver.resolve_sea(origin_text="Port of Hamburg", destination_text="USNYC")


def _nominatim_hit(postcode: str, country_code: str, **extra: str) -> list[dict]:
    return [{"display_name": "x", "address": {"postcode": postcode, "country_code": country_code, **extra}}]


@pytest.mark.asyncio
async def test_resolve_truck_retries_and_broadens(settings):
    responses = {
        "Dock 4, Hamburg": [httpx.Response(429), httpx.Response(200, json=[])],
        "Hamburg": [httpx.Response(200, json=_nominatim_hit("20095", "de", city="Hamburg"))],
        "Zürich": [httpx.Response(200, json=_nominatim_hit("8001", "ch", town="Zürich"))],
    }

    def _handler(request: httpx.Request) -> httpx.Response:
        return responses[request.url.params["q"]].pop(0)

    sleeps: list[float] = []

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    transport = RecordingTransport(_handler)
    resolver = HeuristicLocationResolver(
        settings.model_copy(update={"geocode_backoff_seconds": 0.5}),
        transport=transport,
        sleep=_sleep,
    )

    route = await resolver.resolve_truck(
        origin_text="Zürich",
        destination_text="Dock 4, Hamburg",
        destination_country_hint="DE",
    )

    assert route.origin.postal_code == "8001"
    assert route.origin.country == "CH"
    assert route.origin.city == "Zürich"
    assert route.destination.postal_code == "20095"
    assert route.destination.country == "DE"
    assert sleeps == [0.5]
    assert transport.requests[1].url.params["countrycodes"] == "de"
    assert transport.requests[0].headers["user-agent"] == settings.nominatim_user_agent


@pytest.mark.asyncio
async def test_resolve_truck_gives_up_after_max_attempts(settings):
    transport = RecordingTransport(lambda request: httpx.Response(503))
    resolver = HeuristicLocationResolver(settings, transport=transport)

    with pytest.raises(ResolutionError, match="origin"):
        await resolver.resolve_truck(origin_text="Nowhere", destination_text="Hamburg")

    # origin: 3 attempts, destination: 3 attempts
    assert len(transport.requests) == 6


@pytest.mark.asyncio
async def test_resolve_truck_non_retryable_status(settings):
    transport = RecordingTransport(lambda request: httpx.Response(403))
    resolver = HeuristicLocationResolver(settings, transport=transport)

    with pytest.raises(ResolutionError, match="403"):
        await resolver.resolve_truck(origin_text="Zürich", destination_text="Hamburg")
