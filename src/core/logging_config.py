"""Configuración de logging compartida por la CLI y la API.

Por qué aquí:
- `CARBONLEG_DEBUG` debe valer igual bajo `carbonleg estimate` que bajo
  `carbonleg serve` (uvicorn importa la app sin pasar por la CLI).
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from core.config import AppSettings


def configure_logging(
    *,
    verbose: bool = False,
    settings: AppSettings | None = None,
    console: Console | None = None,
) -> None:
    debug = verbose or bool(settings and settings.debug)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console or Console(stderr=True),
                rich_tracebacks=True,
                show_path=False,
            )
        ],
        force=True,
    )
    # httpx/httpcore son muy verbosos en DEBUG.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
