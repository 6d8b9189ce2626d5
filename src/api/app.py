"""Aplicación FastAPI.

Contrato HTTP:
- `POST /api/emissions` -> 200 con el resultado, o 400 `{ok: false, error}`
  ante cualquier fallo (validación, resolución, CarbonCare o persistencia).
- `GET /api/health` -> `{ok: true}`.
- CORS/OPTIONS los resuelve `CORSMiddleware`.
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.body import parse_request_body
from core.config import AppSettings
from core.domain.errors import EmissionsError
from core.logging_config import configure_logging
from core.services.emissions_pipeline import EmissionsPipeline, build_pipeline

logger = logging.getLogger(__name__)


def _error_response(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"ok": False, "error": message})


def create_app(
    pipeline: EmissionsPipeline | None = None,
    settings: AppSettings | None = None,
    *,
    pipeline_factory: Callable[[AppSettings], EmissionsPipeline] = build_pipeline,
) -> FastAPI:
    """Construye la app.

    El pipeline se crea en la primera petición (y se reutiliza): así una API
    key ausente se devuelve como 400 en vez de impedir el arranque.
    """

    settings = settings or AppSettings()
    app = FastAPI(
        title="carbonleg",
        description="Freight-leg CO2e estimation backed by CarbonCare",
        version="0.1.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins or ["*"],
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.state.pipeline = pipeline

    def _get_pipeline() -> EmissionsPipeline:
        if app.state.pipeline is None:
            app.state.pipeline = pipeline_factory(settings)
        return app.state.pipeline

    @app.get("/api/health")
    async def health() -> dict[str, bool]:
        return {"ok": True}

    @app.post("/api/emissions")
    async def estimate_emissions(request: Request) -> JSONResponse:
        try:
            raw = await request.body()
            body = parse_request_body(raw, request.headers.get("content-type"))
            outcome = await _get_pipeline().estimate(body)
        except EmissionsError as exc:
            logger.info("emissions request rejected: %s", exc.message)
            return _error_response(exc.message)
        except Exception as exc:
            logger.exception("emissions request failed unexpectedly")
            return _error_response(str(exc) or exc.__class__.__name__)
        return JSONResponse(status_code=200, content=outcome.to_payload())

    return app


def create_default_app() -> FastAPI:
    """Factory para `uvicorn --factory api.app:create_default_app`."""

    settings = AppSettings()
    configure_logging(settings=settings)
    return create_app(settings=settings)
