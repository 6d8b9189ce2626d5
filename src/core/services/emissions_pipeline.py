"""Emissions estimation orchestration.

This module sequences the whole flow for one freight leg:
normalize -> build XML -> call CarbonCare -> parse -> persist -> promote.
Entry-points (FastAPI, CLI, tests) only deal with `EmissionsPipeline.estimate`,
which keeps side-effects such as HTTP status mapping or terminal output out of
the core logic.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from adapters.carboncare import CarbonCareClient, CarbonCareRequestBuilder, redact_api_key
from adapters.location_resolver import HeuristicLocationResolver
from adapters.supabase_store import SupabaseCalculationStore
from core.config import AppSettings
from core.domain.models import EstimateOutcome, PersistedCalculation
from core.domain.numeric import extract_numeric
from core.interfaces.calculation_store import CalculationStore
from core.interfaces.location_resolver import LocationResolver
from core.services.normalizer import normalize_request
from core.services.persistence import (
    MISSING_ID_WARNING,
    NO_CONTEXT_WARNING,
    build_calculation_record,
    persist_calculation,
    promote_calculation,
)

logger = logging.getLogger(__name__)


class WarningLog:
    """Ordered warnings with exact-string deduplication."""

    def __init__(self) -> None:
        self._items: list[str] = []

    def add(self, message: str | None) -> None:
        if message and message not in self._items:
            self._items.append(message)

    def extend(self, messages: Iterable[str]) -> None:
        for message in messages:
            self.add(message)

    def as_list(self) -> list[str]:
        return list(self._items)


class EmissionsPipeline:
    """Runs one estimation request end to end.

    The API key is validated here, once, when the pipeline is constructed.
    """

    def __init__(
        self,
        *,
        settings: AppSettings,
        resolver: LocationResolver | None = None,
        store: CalculationStore | None = None,
        client: CarbonCareClient | None = None,
        builder: CarbonCareRequestBuilder | None = None,
    ) -> None:
        api_key = settings.require_carboncare_api_key()
        self._settings = settings
        self._resolver = resolver
        self._store = store
        self._client = client or CarbonCareClient(settings)
        self._builder = builder or CarbonCareRequestBuilder(
            api_key=api_key,
            api_version=settings.carboncare_api_version,
        )

    async def estimate(self, body: Mapping[str, Any] | None) -> EstimateOutcome:
        warnings = WarningLog()

        prepared = await normalize_request(
            body,
            resolver=self._resolver,
            limit=self._settings.resolver_candidate_limit,
        )
        warnings.extend(prepared.warnings)

        context = prepared.request.context
        if context is not None:
            warnings.extend(context.warnings)

        normalized = prepared.normalized
        logger.debug("normalized input: %s", normalized.model_dump(mode="json", by_alias=True))

        xml = self._builder.build(normalized)
        logger.debug("request XML: %s", redact_api_key(xml)[:1200])

        result = await self._client.calculate(xml)
        if not result.shipment_found:
            logger.warning("CarbonCare response had no recognizable Shipment node; emissions zeroed")
        logger.debug("CarbonCare extracted metrics: %s", result.emissions_kg)

        status = result.status
        if status is not None and status.is_error:
            code = f" {status.error_code}" if status.error_code is not None else ""
            warnings.add(f"CarbonCare reported shipment error{code}: {status.error_message or 'unknown error'}")

        persisted: PersistedCalculation | None = None
        if context is not None and context.has_target:
            record = build_calculation_record(
                normalized=normalized,
                result=result,
                request_body=prepared.body,
                context=context,
            )
            persisted = await persist_calculation(self._store, record)
            if persisted.id:
                # store is not None here: persist_calculation would have raised
                warnings.add(await promote_calculation(self._store, persisted.id))  # type: ignore[arg-type]
            else:
                warnings.add(MISSING_ID_WARNING)
        else:
            warnings.add(NO_CONTEXT_WARNING)

        persisted_total = extract_numeric(persisted.emissions_tot) if persisted else None
        co2_estimate = persisted_total if persisted_total is not None else result.computed_total()

        return EstimateOutcome(
            mode=normalized.mode,
            inputs=normalized,
            result=result,
            calculation_id=persisted.id if persisted else None,
            co2_estimate=co2_estimate,
            warnings=warnings.as_list(),
        )


def build_pipeline(settings: AppSettings | None = None) -> EmissionsPipeline:
    """Pipeline con los adaptadores por defecto.

    Sin Supabase configurado no hay store: las peticiones con quote/bid
    fallarán con `PersistenceError` y el resto funciona igual.
    """

    settings = settings or AppSettings()
    store = SupabaseCalculationStore(settings) if settings.persistence_configured else None
    return EmissionsPipeline(
        settings=settings,
        resolver=HeuristicLocationResolver(settings),
        store=store,
    )
