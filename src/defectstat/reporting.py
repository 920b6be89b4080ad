from __future__ import annotations

from typing import Dict, Hashable, List, Sequence, Tuple

import pandas as pd

from .analysis import DefectAnalysis
from .models import MonteCarloResult, NoMode, SingleMode


def top_categories(freq: Dict[Hashable, int], limit: int = 10) -> List[Tuple[Hashable, int]]:
    ranked = sorted(freq.items(), key=lambda item: item[1], reverse=True)
    return ranked[: max(0, limit)]


def _format_mode(analysis: DefectAnalysis) -> str:
    stats = analysis.cost_stats
    if stats is None or isinstance(stats.mode, NoMode):
        return "n/a"
    if isinstance(stats.mode, SingleMode):
        values = [stats.mode.value]
    else:
        values = stats.mode.to_json()
    return ", ".join(f"${v:,.2f}" if isinstance(v, (int, float)) else str(v) for v in values)


def make_summary_text(analysis: DefectAnalysis) -> str:
    if analysis.record_count == 0:
        return "No defect data loaded yet. Import manufacturing defect records to run the analysis.\n"

    lines = [f"Analysis of {analysis.record_count} defect records:"]
    stats = analysis.cost_stats
    if stats is not None:
        lines.append(
            f"- Repair costs: mean ${stats.mean:,.2f}, median ${stats.median:,.2f}, "
            f"std dev ${stats.std_dev:,.2f}. Range from ${stats.min:,.2f} to ${stats.max:,.2f}."
        )
        lines.append(f"- Quartiles: Q1 ${stats.q1:,.2f}, Q3 ${stats.q3:,.2f} (IQR ${stats.iqr:,.2f}); mode {_format_mode(analysis)}.")
    else:
        lines.append("- Repair cost statistics could not be computed.")

    defect_types = analysis.frequencies.get("defect_type", {})
    severities = analysis.frequencies.get("severity", {})
    lines.append(f"- {len(defect_types)} unique defect types observed.")
    lines.append(f"- {len(severities)} unique severity levels observed.")
    top = top_categories(defect_types, limit=3)
    if top:
        lines.append("- Most frequent defect types: " + ", ".join(f"{name} ({count})" for name, count in top) + ".")
    return "\n".join(lines) + "\n"


def format_simulation_table(results: Sequence[MonteCarloResult]) -> str:
    if not results:
        return "No simulation results."
    table = pd.DataFrame(
        [
            {
                "SCENARIO": r.scenario,
                "MEAN_COST": round(r.mean_cost, 2),
                "STD_DEV": round(r.std_dev_cost, 2),
                "P5": round(r.percentiles.p5, 2),
                "P50": round(r.percentiles.p50, 2),
                "P95": round(r.percentiles.p95, 2),
                "EXPECTED_SAVINGS": "" if r.expected_savings is None else round(r.expected_savings, 2),
            }
            for r in results
        ]
    )
    return table.to_string(index=False)


__all__ = ["format_simulation_table", "make_summary_text", "top_categories"]
