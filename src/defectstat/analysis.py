from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Sequence

from .defects_io import CATEGORICAL_FIELDS
from .models import DefectRecord, HistogramBin, NumericalStats
from .statistics import DEFAULT_NUM_BINS, descriptive_stats, frequency_distribution, histogram


@dataclass(frozen=True)
class DefectAnalysis:
    """Descriptive summary of an imported defect collection."""

    record_count: int
    cost_stats: Optional[NumericalStats]
    cost_histogram: List[HistogramBin]
    frequencies: Dict[str, Dict[Hashable, int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recordCount": self.record_count,
            "repairCost": self.cost_stats.to_dict() if self.cost_stats else None,
            "histogram": [b.to_dict() for b in self.cost_histogram],
            "frequencies": {
                name: {str(key): count for key, count in dist.items()}
                for name, dist in self.frequencies.items()
            },
        }


def repair_costs(records: Sequence[DefectRecord]) -> List[float]:
    return [record.repair_cost for record in records]


def analyze(records: Sequence[DefectRecord], num_bins: int = DEFAULT_NUM_BINS) -> DefectAnalysis:
    """Recompute every descriptive statistic for ``records``."""

    costs = repair_costs(records)
    frequencies = {
        name: frequency_distribution([getattr(record, name) for record in records])
        for name in CATEGORICAL_FIELDS
    }
    return DefectAnalysis(
        record_count=len(records),
        cost_stats=descriptive_stats(costs),
        cost_histogram=histogram(costs, num_bins),
        frequencies=frequencies,
    )


__all__ = ["DefectAnalysis", "analyze", "repair_costs"]
