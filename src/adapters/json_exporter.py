"""Exportación JSON del resultado de un cálculo.

Por qué JSON:
- Es el mismo cuerpo que devuelve `POST /api/emissions`, así que el fichero
  sirve para comparar CLI y API o para reimportarlo en otros pipelines.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import EstimateOutcome


def export_outcome_json(*, outcome: EstimateOutcome, output_path: Path) -> Path:
    """Exporta `EstimateOutcome` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = outcome.to_payload()
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
