"""Cliente HTTP de CarbonCare.

Una única llamada POST bloqueante (para quien la espera) por request:
- Sin reintentos: un fallo se propaga como `ExternalServiceError` con el
  status y el body tal cual, para diagnóstico.
- Sin timeout propio salvo `http_timeout_seconds` en la config.
"""

from __future__ import annotations

import logging

import httpx

from adapters.carboncare.response_parser import parse_emissions_response
from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import ExternalServiceError
from core.domain.models import EmissionsResult

logger = logging.getLogger(__name__)

XML_HEADERS = {
    "Content-Type": "application/xml",
    "Accept": "application/xml",
}


class CarbonCareClient:
    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return self._settings.carboncare_endpoint

    async def submit(self, payload: str) -> str:
        """Envía el XML y devuelve el texto de la respuesta 2xx."""

        try:
            async with build_async_client(self._settings, transport=self._transport) as client:
                response = await client.post(
                    self.endpoint,
                    content=payload.encode("utf-8"),
                    headers=XML_HEADERS,
                )
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"CarbonCare API request failed: {exc}") from exc

        logger.debug("CarbonCare responded HTTP %s (%d bytes)", response.status_code, len(response.content))

        if not response.is_success:
            body = response.text
            raise ExternalServiceError(
                f"CarbonCare API error {response.status_code}: {body}",
                status_code=response.status_code,
                body=body,
            )
        return response.text

    async def calculate(self, payload: str) -> EmissionsResult:
        return parse_emissions_response(await self.submit(payload))
