from __future__ import annotations

import json

from adapters.json_exporter import export_outcome_json
from core.domain.models import AirLegInput, EmissionsBreakdown, EmissionsResult, EstimateOutcome, Mode


def test_export_outcome_json(tmp_path):
    outcome = EstimateOutcome(
        mode=Mode.AIR,
        inputs=AirLegInput(weight_kg=250, origin_airport="LHR", destination_airport="JFK"),
        result=EmissionsResult(km=5540.5, emissions_kg=EmissionsBreakdown(tot=812.5), shipment_found=True),
        co2_estimate=812.5,
        warnings=["No bid or quote context supplied; skipping carbon calculation persistence."],
    )

    path = export_outcome_json(outcome=outcome, output_path=tmp_path / "nested" / "outcome.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["ok"] is True
    assert data["inputs"]["originAirport"] == "LHR"
    assert data["result"]["emissionsKg"]["tot"] == 812.5
    assert data["result"]["raw"] is None
    assert data["calculationId"] is None
