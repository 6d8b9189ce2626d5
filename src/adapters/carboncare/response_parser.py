"""Parser defensivo de respuestas CarbonCare.

Por qué defensivo:
- El servicio varía el anidamiento del sobre (con o sin `Response`) y devuelve
  `Shipment` como objeto o como lista de un elemento.
- Los números llegan como texto, a veces con atributos (`<KM Unit="km">`).

Un shape no reconocido NO es un error: el resultado lleva solo `raw` y
emisiones a cero (`shipment_found=False`).
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any

from core.domain.errors import ExternalServiceError
from core.domain.models import (
    EmissionsBreakdown,
    EmissionsResult,
    ShipmentShape,
    ShipmentStatus,
)
from core.domain.numeric import extract_numeric

# Orden de prioridad; las rutas son relativas a la raíz `CarbonCareApi`
# (o al documento si esa raíz no existe).
_SHIPMENT_PATHS: tuple[tuple[ShipmentShape, tuple[str, ...]], ...] = (
    (ShipmentShape.ENVELOPE, ("Response", "Shipments", "Shipment")),
    (ShipmentShape.ENVELOPE_WITHOUT_RESPONSE, ("Shipments", "Shipment")),
    (ShipmentShape.RESPONSE_ONLY, ("Response", "Shipment")),
    (ShipmentShape.BARE, ("Shipment",)),
)


@dataclass(frozen=True)
class ShipmentMatch:
    shape: ShipmentShape
    node: dict[str, Any]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def _element_to_node(element: ET.Element) -> Any:
    children = list(element)
    attributes = {_local_name(key): value for key, value in element.attrib.items()}
    text = (element.text or "").strip()

    if not children and not attributes:
        return text

    node: dict[str, Any] = dict(attributes)
    for child in children:
        key = _local_name(child.tag)
        value = _element_to_node(child)
        if key not in node:
            node[key] = value
        elif isinstance(node[key], list):
            node[key].append(value)
        else:
            node[key] = [node[key], value]

    if text:
        node["#text"] = text
    return node


def parse_xml_tree(xml_text: str) -> dict[str, Any]:
    """XML -> árbol genérico (dicts, listas y strings)."""

    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise ExternalServiceError(
            f"CarbonCare API returned an unparseable response: {exc}",
            status_code=None,
            body=xml_text,
        ) from exc
    return {_local_name(root.tag): _element_to_node(root)}


def _first_dict(value: Any) -> dict[str, Any] | None:
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, dict) else None


def _walk(root: dict[str, Any], path: tuple[str, ...]) -> Any:
    current: Any = root
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def resolve_shipment(tree: Any) -> ShipmentMatch | None:
    """Prueba cada shape conocido en orden y devuelve el primer Shipment."""

    if not isinstance(tree, dict):
        return None
    root = _first_dict(tree.get("CarbonCareApi")) or tree
    for shape, path in _SHIPMENT_PATHS:
        node = _first_dict(_walk(root, path))
        if node is not None:
            return ShipmentMatch(shape=shape, node=node)
    return None


def _text(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("#text")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _integer(value: Any) -> int | None:
    number = extract_numeric(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _status(node: Any) -> ShipmentStatus | None:
    status = _first_dict(node)
    if status is None:
        return None
    is_error = (_text(status.get("IsError")) or "").lower() == "true"
    return ShipmentStatus(
        is_error=is_error,
        error_code=_integer(status.get("ErrorCode")),
        error_message=_text(status.get("ErrorMessage")),
    )


def build_result(tree: dict[str, Any]) -> EmissionsResult:
    match = resolve_shipment(tree)
    if match is None:
        return EmissionsResult(raw=tree)

    shipment = match.node
    emissions = _first_dict(shipment.get("Emmissions")) or _first_dict(shipment.get("Emissions")) or {}

    tkm = extract_numeric(emissions.get("TKM"))
    if tkm is None:
        tkm = extract_numeric(shipment.get("TKM"))

    return EmissionsResult(
        km=extract_numeric(shipment.get("KM")),
        tkm=tkm,
        emissions_kg=EmissionsBreakdown(
            tot=extract_numeric(emissions.get("TOT")) or 0.0,
            ops=extract_numeric(emissions.get("OPS")) or 0.0,
            ene=extract_numeric(emissions.get("ENE")) or 0.0,
            tot_ei_gr_per_tkm=extract_numeric(emissions.get("TOT_EI")) or 0.0,
        ),
        raw=tree,
        shipment_found=True,
        shape=match.shape,
        status=_status(shipment.get("Status")),
        report_url=_text(shipment.get("ReportUrl")),
        carboncare_shipment_id=_text(shipment.get("Id")),
        carboncare_db_id=_integer(shipment.get("DbId")),
    )


def parse_emissions_response(xml_text: str) -> EmissionsResult:
    return build_result(parse_xml_tree(xml_text))
