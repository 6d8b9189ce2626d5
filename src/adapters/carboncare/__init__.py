"""Adaptador CarbonCare (XML sobre HTTPS).

Por qué un paquete:
- Agrupa builder (request), cliente (transporte) y parser (respuesta).
- El Core solo ve `NormalizedInput` -> `EmissionsResult`.
"""

from adapters.carboncare.client import CarbonCareClient
from adapters.carboncare.response_parser import (
    ShipmentMatch,
    parse_emissions_response,
    resolve_shipment,
)
from adapters.carboncare.xml_builder import CarbonCareRequestBuilder, escape_xml, redact_api_key

__all__ = [
    "CarbonCareClient",
    "CarbonCareRequestBuilder",
    "ShipmentMatch",
    "escape_xml",
    "parse_emissions_response",
    "redact_api_key",
    "resolve_shipment",
]
