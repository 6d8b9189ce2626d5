"""Contrato de persistencia de cálculos.

Dos escrituras independientes (insertar, luego promover): un cálculo puede
quedar "persistido pero no primario" y los lectores deben tolerarlo.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import CalculationRecord, PersistedCalculation


@runtime_checkable
class CalculationStore(Protocol):
    async def insert_calculation(self, record: CalculationRecord) -> PersistedCalculation:
        """Inserta una fila y devuelve al menos `id` y `emissions_tot`."""

        ...

    async def set_primary(self, calculation_id: str) -> None:
        """Marca el cálculo como primario para su bid/quote."""

        ...
