from __future__ import annotations

import httpx
import pytest

from adapters.carboncare.client import CarbonCareClient
from conftest import CARBONCARE_URL, SAMPLE_RESPONSE_XML, RecordingTransport, xml_transport
from core.domain.errors import ExternalServiceError


@pytest.mark.asyncio
async def test_posts_xml_and_parses_response(settings):
    transport = xml_transport()
    client = CarbonCareClient(settings, transport=transport)

    result = await client.calculate("<CarbonCareApi/>")

    assert result.emissions_kg.tot == 812.5
    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == CARBONCARE_URL
    assert request.headers["content-type"] == "application/xml"
    assert request.content == b"<CarbonCareApi/>"


@pytest.mark.asyncio
async def test_non_2xx_becomes_external_service_error(settings):
    client = CarbonCareClient(settings, transport=xml_transport("Internal failure", status_code=500))

    with pytest.raises(ExternalServiceError) as excinfo:
        await client.submit("<CarbonCareApi/>")

    assert excinfo.value.status_code == 500
    assert excinfo.value.body == "Internal failure"
    assert excinfo.value.message == "CarbonCare API error 500: Internal failure"


@pytest.mark.asyncio
async def test_transport_error_becomes_external_service_error(settings):
    def _boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = CarbonCareClient(settings, transport=RecordingTransport(_boom))

    with pytest.raises(ExternalServiceError, match="request failed"):
        await client.submit("<CarbonCareApi/>")


@pytest.mark.asyncio
async def test_submit_returns_body_text(settings):
    client = CarbonCareClient(settings, transport=xml_transport())

    assert await client.submit("<x/>") == SAMPLE_RESPONSE_XML
