from __future__ import annotations

import json

import pytest

from defectstat.api import AnalysisOptions, analyze_defects


def test_analyze_defects_returns_json_artifact(sample_csv, tmp_path, monkeypatch):
    monkeypatch.delenv("ENABLE_AI_SUGGESTIONS", raising=False)
    options = AnalysisOptions(
        defects_csv=sample_csv,
        output_dir=tmp_path / "api_out",
        simulations=100,
        seed=5,
    )
    artifacts = analyze_defects(options)

    assert set(artifacts) == {"json"}
    payload = json.loads(artifacts["json"].read_text(encoding="utf-8"))
    assert payload["recordCount"] == 6
    assert len(payload["monteCarlo"]) == 4


def test_analyze_defects_raises_on_failure(tmp_path):
    options = AnalysisOptions(defects_csv=tmp_path / "missing.csv", output_dir=tmp_path)
    with pytest.raises(RuntimeError, match="code 2"):
        analyze_defects(options)
