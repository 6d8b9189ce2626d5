"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta del request (modo, tipos enumerados, peso positivo) sin
  acoplar el Core a FastAPI ni a la CLI.
- Alias camelCase en el borde (`weightKg`, `originAirport`) y snake_case en
  Python, con una única definición.

Nota:
- Estos modelos describen *qué* es un cálculo de emisiones, no *cómo* se
  obtiene (XML/HTTP viven en `adapters/`).
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


class Mode(str, Enum):
    """Modo de transporte de un leg."""

    AIR = "air"
    SEA = "sea"
    TRUCK = "truck"

    @classmethod
    def parse(cls, value: object) -> "Mode":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValueError(f"Unsupported mode: {value!r}")


class AirType(str, Enum):
    """Tipo de servicio aéreo (CarbonCare `AirType`)."""

    ABA = "ABA"
    ABB = "ABB"
    ABC = "ABC"


class TruckType(str, Enum):
    """Tipo de vehículo (CarbonCare `Truck/Type`)."""

    R3_5D = "R3.5D"
    R7_5D = "R7.5D"
    R18D = "R18D"


class ShipmentShape(str, Enum):
    """Variantes conocidas de anidamiento del nodo Shipment en la respuesta."""

    ENVELOPE = "envelope"
    ENVELOPE_WITHOUT_RESPONSE = "envelope_without_response"
    RESPONSE_ONLY = "response_only"
    BARE = "bare"


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class EmissionsContext(_WireModel):
    """Contexto de negociación (quote/bid) que decide si se persiste.

    Claves adicionales (selectedModes, weightBreakdown, requestedAt...) se
    conservan tal cual para el snapshot del request.
    """

    model_config = ConfigDict(extra="allow")

    quote_id: str | None = Field(default=None, description="Quote al que pertenece el cálculo.")
    bid_id: str | None = Field(default=None, description="Bid al que pertenece el cálculo.")
    calculated_by_user_id: str | None = Field(
        default=None,
        description="Usuario que solicitó el cálculo (auditoría).",
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Avisos previos del llamador que se reenvían en la respuesta.",
    )

    @field_validator("warnings", mode="before")
    @classmethod
    def _keep_text_warnings(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str) and item]

    @property
    def has_target(self) -> bool:
        return bool(self.quote_id or self.bid_id)


class EmissionsRequest(_WireModel):
    """Request tal como llega (códigos o texto libre), ya con peso saneado."""

    model_config = ConfigDict(extra="allow")

    mode: Mode
    weight_kg: float = Field(..., gt=0, description="Peso del envío en kg.")

    origin_airport: str | None = None
    destination_airport: str | None = None
    air_type: AirType | None = None

    origin_seaport: str | None = None
    destination_seaport: str | None = None

    origin_postal_code: str | None = None
    origin_country: str | None = None
    origin_city: str | None = None
    origin_street: str | None = None
    destination_postal_code: str | None = None
    destination_country: str | None = None
    destination_city: str | None = None
    destination_street: str | None = None
    truck_type: TruckType | None = None
    load_factor: float | None = None

    origin_text: str | None = None
    destination_text: str | None = None
    origin_country_hint: str | None = None
    destination_country_hint: str | None = None

    quote: bool = False
    cooling: bool = False
    context: EmissionsContext | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def _parse_mode(cls, value: Any) -> Mode:
        return Mode.parse(value)

    @property
    def has_free_text(self) -> bool:
        return bool(self.origin_text and self.destination_text)


class _LegInput(_WireModel):
    weight_kg: float = Field(..., gt=0)
    quote: bool = False
    cooling: bool = False


class AirLegInput(_LegInput):
    mode: Literal[Mode.AIR] = Mode.AIR
    origin_airport: str = Field(..., min_length=1, description="Código IATA, p.ej. LHR.")
    destination_airport: str = Field(..., min_length=1, description="Código IATA, p.ej. JFK.")
    air_type: AirType = AirType.ABB


class SeaLegInput(_LegInput):
    mode: Literal[Mode.SEA] = Mode.SEA
    origin_seaport: str = Field(..., min_length=1, description="UN/LOCODE, p.ej. DEHAM.")
    destination_seaport: str = Field(..., min_length=1, description="UN/LOCODE, p.ej. USNYC.")


class TruckLegInput(_LegInput):
    mode: Literal[Mode.TRUCK] = Mode.TRUCK
    origin_postal_code: str = Field(..., min_length=1)
    origin_country: str = Field(..., min_length=1, description="ISO 3166-1 alpha-2.")
    origin_city: str | None = None
    origin_street: str | None = None
    destination_postal_code: str = Field(..., min_length=1)
    destination_country: str = Field(..., min_length=1, description="ISO 3166-1 alpha-2.")
    destination_city: str | None = None
    destination_street: str | None = None
    truck_type: TruckType = TruckType.R18D
    load_factor: float = 0.0


NormalizedInput = Annotated[
    Union[AirLegInput, SeaLegInput, TruckLegInput],
    Field(discriminator="mode"),
]


class ResolvedAirports(BaseModel):
    origin_airport: str
    destination_airport: str


class ResolvedSeaports(BaseModel):
    origin_seaport: str
    destination_seaport: str


class ResolvedAddress(BaseModel):
    postal_code: str
    country: str
    city: str | None = None


class ResolvedTruckRoute(BaseModel):
    origin: ResolvedAddress
    destination: ResolvedAddress


class EmissionsBreakdown(_WireModel):
    """Emisiones en kg CO2e; siempre numéricas (0 si no disponibles)."""

    tot: float = 0.0
    ops: float = 0.0
    ene: float = 0.0
    tot_ei_gr_per_tkm: float = Field(default=0.0, description="g CO2e por tonelada-km.")


class ShipmentStatus(_WireModel):
    is_error: bool = False
    error_code: int | None = None
    error_message: str | None = None


class EmissionsResult(_WireModel):
    """Resultado normalizado de CarbonCare.

    `km`/`tkm` pueden faltar: "no calculable" no es lo mismo que "cero".
    """

    km: float | None = None
    tkm: float | None = None
    emissions_kg: EmissionsBreakdown = Field(default_factory=EmissionsBreakdown)
    raw: Any = None
    shipment_found: bool = False
    shape: ShipmentShape | None = None
    status: ShipmentStatus | None = None
    report_url: str | None = None
    carboncare_shipment_id: str | None = None
    carboncare_db_id: int | None = None

    def computed_total(self) -> float | None:
        return self.emissions_kg.tot if self.shipment_found else None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        payload["raw"] = self.raw
        return payload


class CalculationRecord(BaseModel):
    """Fila para la tabla `carbon_calculations` (nombres de columna)."""

    quote_id: str | None = None
    bid_id: str | None = None
    distance_km: float | None = None
    distance_unit: str = "km"
    emissions_tot: float | None = None
    emissions_ops: float | None = None
    emissions_ene: float | None = None
    emissions_tot_ei: float | None = None
    emissions_tkm: float | None = None
    carboncare_shipment_id: str | None = None
    carboncare_db_id: int | None = None
    carboncare_report_url: str | None = None
    status_is_error: bool = False
    status_error_code: int | None = None
    status_error_message: str | None = None
    api_request: dict[str, Any] = Field(default_factory=dict)
    api_response: Any = None
    calculated_by: str | None = None


class PersistedCalculation(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str | None = None
    emissions_tot: float | str | None = None


class EstimateOutcome(BaseModel):
    """Salida del orquestador; `to_payload` es el cuerpo HTTP 200."""

    mode: Mode
    inputs: NormalizedInput
    result: EmissionsResult
    calculation_id: str | None = None
    co2_estimate: float | None = None
    warnings: list[str] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "ok": True,
            "mode": self.mode.value,
            "inputs": self.inputs.model_dump(mode="json", by_alias=True, exclude_none=True),
            "result": self.result.to_payload(),
            "calculationId": self.calculation_id,
            "co2Estimate": self.co2_estimate,
            "warnings": list(self.warnings),
        }
