"""Fixtures compartidos: settings aislados, fakes de puertos y respuestas XML."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from core.config import AppSettings
from core.domain.errors import PersistenceError
from core.domain.models import (
    CalculationRecord,
    PersistedCalculation,
    ResolvedAddress,
    ResolvedAirports,
    ResolvedSeaports,
    ResolvedTruckRoute,
)

CARBONCARE_URL = "https://carboncare.test/xml/calc"
SUPABASE_URL = "https://project.supabase.test"
NOMINATIM_URL = "https://nominatim.test/search"

SAMPLE_RESPONSE_XML = """<?xml version="1.0" encoding="utf-8"?>
<CarbonCareApi xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" Version="3.2">
  <Response>
    <Shipments>
      <Shipment Id="cc-shipment-1">
        <DbId>4711</DbId>
        <Status>
          <IsError>false</IsError>
          <ErrorCode>0</ErrorCode>
          <ErrorMessage></ErrorMessage>
        </Status>
        <KM Unit="km">5540.5</KM>
        <TKM>1385.125</TKM>
        <Emmissions>
          <TOT>812.5</TOT>
          <OPS>640.25</OPS>
          <ENE>172.25</ENE>
          <TOT_EI>586.6</TOT_EI>
        </Emmissions>
        <ReportUrl>https://carboncare.test/report/cc-shipment-1</ReportUrl>
      </Shipment>
    </Shipments>
  </Response>
</CarbonCareApi>
"""

NO_SHIPMENT_RESPONSE_XML = """<?xml version="1.0" encoding="utf-8"?>
<CarbonCareApi Version="3.2">
  <Response>
    <Message>nothing to report</Message>
  </Response>
</CarbonCareApi>
"""


def make_settings(**overrides: object) -> AppSettings:
    values: dict[str, object] = {
        "carboncare_api_key": "test-key",
        "carboncare_endpoint": CARBONCARE_URL,
        "nominatim_endpoint": NOMINATIM_URL,
        "geocode_backoff_seconds": 0.0,
    }
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


@pytest.fixture
def settings() -> AppSettings:
    return make_settings()


@pytest.fixture
def supabase_settings() -> AppSettings:
    return make_settings(supabase_url=SUPABASE_URL, supabase_service_key="service-key")


class RecordingTransport(httpx.MockTransport):
    """MockTransport que guarda las peticiones recibidas."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_handler)


def xml_transport(body: str = SAMPLE_RESPONSE_XML, status_code: int = 200) -> RecordingTransport:
    return RecordingTransport(lambda request: httpx.Response(status_code, text=body))


class FakeStore:
    def __init__(
        self,
        *,
        calculation_id: str | None = "calc-1",
        emissions_tot: float | str | None = 812.5,
        insert_error: Exception | None = None,
        promote_error: Exception | None = None,
    ) -> None:
        self.calculation_id = calculation_id
        self.emissions_tot = emissions_tot
        self.insert_error = insert_error
        self.promote_error = promote_error
        self.records: list[CalculationRecord] = []
        self.promoted: list[str] = []

    async def insert_calculation(self, record: CalculationRecord) -> PersistedCalculation:
        self.records.append(record)
        if self.insert_error is not None:
            raise self.insert_error
        return PersistedCalculation(id=self.calculation_id, emissions_tot=self.emissions_tot)

    async def set_primary(self, calculation_id: str) -> None:
        self.promoted.append(calculation_id)
        if self.promote_error is not None:
            raise self.promote_error


class FakeResolver:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, object]]] = []

    async def resolve_air(self, **kwargs: object) -> ResolvedAirports:
        self.calls.append(("air", kwargs))
        return ResolvedAirports(origin_airport="LHR", destination_airport="JFK")

    async def resolve_sea(self, **kwargs: object) -> ResolvedSeaports:
        self.calls.append(("sea", kwargs))
        return ResolvedSeaports(origin_seaport="DEHAM", destination_seaport="USNYC")

    async def resolve_truck(self, **kwargs: object) -> ResolvedTruckRoute:
        self.calls.append(("truck", kwargs))
        return ResolvedTruckRoute(
            origin=ResolvedAddress(postal_code="8001", country="CH", city="Zürich"),
            destination=ResolvedAddress(postal_code="20095", country="DE", city="Hamburg"),
        )


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def failing_store() -> FakeStore:
    return FakeStore(insert_error=PersistenceError("duplicate key value violates unique constraint"))
