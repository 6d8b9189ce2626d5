"""Persistencia y promoción de cálculos.

- Persistir es obligatorio cuando hay contexto de quote/bid: un fallo se
  propaga como `PersistenceError`.
- Promover (marcar como primario) es best-effort: un fallo se convierte en
  aviso y el cálculo sigue siendo válido, aunque no primario.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel

from core.domain.errors import PersistenceError
from core.domain.models import (
    CalculationRecord,
    EmissionsContext,
    EmissionsResult,
    PersistedCalculation,
    ShipmentStatus,
)
from core.interfaces.calculation_store import CalculationStore

logger = logging.getLogger(__name__)

NO_CONTEXT_WARNING = "No bid or quote context supplied; skipping carbon calculation persistence."
MISSING_ID_WARNING = "Carbon calculation persisted without identifier; skipping promotion to primary."


def clone_for_json(value: Any) -> Any:
    """Copia JSON-safe; si no se puede serializar se conserva el original."""

    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError):
        return value


def build_calculation_record(
    *,
    normalized: BaseModel,
    result: EmissionsResult,
    request_body: Any,
    context: EmissionsContext,
) -> CalculationRecord:
    found = result.shipment_found
    emissions = result.emissions_kg
    status = result.status or ShipmentStatus()
    return CalculationRecord(
        quote_id=context.quote_id,
        bid_id=context.bid_id,
        distance_km=result.km,
        emissions_tot=emissions.tot if found else None,
        emissions_ops=emissions.ops if found else None,
        emissions_ene=emissions.ene if found else None,
        emissions_tot_ei=emissions.tot_ei_gr_per_tkm if found else None,
        emissions_tkm=result.tkm,
        carboncare_shipment_id=result.carboncare_shipment_id,
        carboncare_db_id=result.carboncare_db_id,
        carboncare_report_url=result.report_url,
        status_is_error=status.is_error,
        status_error_code=status.error_code,
        status_error_message=status.error_message,
        api_request={
            "body": clone_for_json(request_body),
            "normalized": clone_for_json(normalized),
        },
        api_response=clone_for_json(result.raw),
        calculated_by=context.calculated_by_user_id,
    )


async def persist_calculation(
    store: CalculationStore | None,
    record: CalculationRecord,
) -> PersistedCalculation:
    if store is None:
        raise PersistenceError("Carbon calculation store is not configured; cannot persist calculation")
    try:
        persisted = await store.insert_calculation(record)
    except PersistenceError:
        raise
    except Exception as exc:
        raise PersistenceError(str(exc) or "Failed to persist carbon calculation") from exc
    logger.info("Persisted carbon calculation %s (bid=%s quote=%s)", persisted.id, record.bid_id, record.quote_id)
    return persisted


async def promote_calculation(store: CalculationStore, calculation_id: str) -> str | None:
    """Marca el cálculo como primario. Devuelve un aviso si falla."""

    try:
        await store.set_primary(calculation_id)
    except Exception as exc:
        logger.warning("set_primary failed for calculation %s: %s", calculation_id, exc)
        return f"Failed to promote carbon calculation: {exc}"
    return None
