"""Extracción numérica tolerante.

El servicio externo devuelve números como escalares, como listas o como nodos
con atributos (`{"#text": "12.5", "Unit": "km"}`). Estas funciones son totales:
devuelven un número o `None`, nunca lanzan.
"""

from __future__ import annotations

import math
from typing import Any


def _to_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def extract_numeric(value: Any) -> float | None:
    """Devuelve el primer número interpretable dentro de `value`.

    Reglas:
    - escalar (int/float/str numérico) -> su valor
    - lista -> primer elemento que produzca un número (recursivo)
    - dict con `#text` o `value` -> el número de esa clave
    - cualquier otra cosa (None, dict vacío, texto no numérico) -> None
    """

    if value is None:
        return None
    if isinstance(value, list):
        for item in value:
            number = extract_numeric(item)
            if number is not None:
                return number
        return None
    if isinstance(value, dict):
        if "#text" in value:
            return _to_float(value["#text"])
        if "value" in value:
            return _to_float(value["value"])
        return None
    return _to_float(value)


def format_number(value: float) -> str:
    """Formato estable para el XML: `250` en vez de `250.0`."""

    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
