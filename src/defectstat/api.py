from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, Optional

from .cli import run as run_pipeline
from .config import load_config


@dataclass
class AnalysisOptions:
    defects_csv: Path
    output_dir: Optional[Path] = None
    histogram_bins: Optional[int] = None
    simulate: bool = True
    simulations: Optional[int] = None
    seed: Optional[int] = None
    charts: bool = False
    disable_ai: bool = True


def analyze_defects(options: AnalysisOptions) -> Dict[str, Path]:
    """Programmatic interface to run the analysis and return artifact paths.

    Returns a dict with keys: json, and charts_dir when charts were requested.
    """

    env = dict(os.environ)
    env["DEFECTS_CSV"] = str(options.defects_csv)
    if options.output_dir:
        env["OUTPUT_DIR"] = str(options.output_dir)
    if options.histogram_bins:
        env["HISTOGRAM_BINS"] = str(options.histogram_bins)
    if options.simulations:
        env["MC_SIMULATIONS"] = str(options.simulations)
    if options.seed is not None:
        env["MC_SEED"] = str(options.seed)
    if options.disable_ai:
        env["DISABLE_OPENAI"] = "1"
    else:
        env["ENABLE_AI_SUGGESTIONS"] = "1"

    cli_flags = SimpleNamespace(simulate=options.simulate, json=True, charts=options.charts)
    cfg = load_config(env, cli_flags)
    rc = run_pipeline(runtime_config=cfg)
    if rc != 0:
        raise RuntimeError(f"Defect analysis failed with code {rc}")
    artifacts = {"json": cfg.output_dir / "analysis.json"}
    if options.charts:
        artifacts["charts_dir"] = cfg.output_dir / "charts"
    return artifacts
