"""Persistencia de cálculos en Supabase (PostgREST).

Por qué PostgREST directo (httpx) y no un SDK:
- Solo necesitamos dos operaciones: insertar devolviendo la fila y llamar a
  la RPC de promoción.
- Reutiliza el mismo cliente httpx (timeouts/headers) que el resto de
  adaptadores.
"""

from __future__ import annotations

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import ConfigurationError, PersistenceError
from core.domain.models import CalculationRecord, PersistedCalculation


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error") or payload.get("hint")
        if isinstance(message, str) and message.strip():
            return message.strip()
    text = response.text.strip()
    return text or f"{fallback} (HTTP {response.status_code})"


class SupabaseCalculationStore:
    """Implementa `CalculationStore` sobre `/rest/v1`."""

    def __init__(
        self,
        settings: AppSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not settings.persistence_configured:
            raise ConfigurationError(
                "Supabase persistence requires CARBONLEG_SUPABASE_URL and CARBONLEG_SUPABASE_SERVICE_KEY"
            )
        self._settings = settings
        self._transport = transport
        self._base_url = str(settings.supabase_url).rstrip("/") + "/rest/v1"

    def _headers(self) -> dict[str, str]:
        key = str(self._settings.supabase_service_key)
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    async def insert_calculation(self, record: CalculationRecord) -> PersistedCalculation:
        url = f"{self._base_url}/{self._settings.calculations_table}"
        headers = {
            **self._headers(),
            "Prefer": "return=representation",
            # Una sola fila como objeto (equivalente a `.single()`).
            "Accept": "application/vnd.pgrst.object+json",
        }
        try:
            async with build_async_client(self._settings, transport=self._transport) as client:
                response = await client.post(
                    url,
                    params={"select": "id,emissions_tot"},
                    json=record.model_dump(mode="json"),
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            raise PersistenceError(f"Failed to persist carbon calculation: {exc}") from exc

        if not response.is_success:
            raise PersistenceError(_error_message(response, "Failed to persist carbon calculation"))

        try:
            payload = response.json()
        except ValueError as exc:
            raise PersistenceError("Failed to persist carbon calculation: invalid JSON response") from exc
        if isinstance(payload, list):
            payload = payload[0] if payload else {}
        if not isinstance(payload, dict):
            raise PersistenceError("Failed to persist carbon calculation: unexpected response shape")
        return PersistedCalculation.model_validate(payload)

    async def set_primary(self, calculation_id: str) -> None:
        url = f"{self._base_url}/rpc/{self._settings.promote_function}"
        try:
            async with build_async_client(self._settings, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json={"p_calculation_id": calculation_id},
                    headers=self._headers(),
                )
        except httpx.HTTPError as exc:
            raise PersistenceError(f"set_primary_carbon_calculation failed: {exc}") from exc
        if not response.is_success:
            raise PersistenceError(_error_message(response, "set_primary_carbon_calculation failed"))
