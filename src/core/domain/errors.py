"""Errores del dominio.

Por qué una jerarquía propia:
- La frontera HTTP y la CLI solo necesitan capturar `EmissionsError` para
  responder con un mensaje legible (400 / exit 1).
- Cada subtipo conserva el contexto de diagnóstico de su fase (status, body).
"""

from __future__ import annotations


class EmissionsError(Exception):
    """Base de todos los fallos visibles para quien llama al pipeline."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(EmissionsError):
    """Falta configuración obligatoria (p.ej. la API key de CarbonCare)."""


class ValidationError(EmissionsError):
    """Body ilegible, `mode` ausente o campos con tipo inválido."""


class ResolutionError(EmissionsError):
    """Texto libre que no se pudo convertir en códigos (aeropuerto/puerto/dirección)."""


class ExternalServiceError(EmissionsError):
    """Respuesta no exitosa (o ilegible) del servicio de emisiones."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class PersistenceError(EmissionsError):
    """No se pudo guardar la fila de cálculo cuando había contexto de bid/quote."""
