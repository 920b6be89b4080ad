from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Union

import numpy as np

ModeValue = Union[float, int, str]


@dataclass(frozen=True)
class DefectRecord:
    """One observed manufacturing defect as imported from CSV."""

    id: str
    defect_type: str
    severity: str
    defect_location: str
    inspection_method: str
    repair_cost: float


@dataclass(frozen=True)
class NoMode:
    """Every value occurs equally often (or there are no values)."""

    def to_json(self) -> Any:
        return None


@dataclass(frozen=True)
class SingleMode:
    value: ModeValue

    def to_json(self) -> Any:
        return self.value


@dataclass(frozen=True)
class TiedModes:
    values: FrozenSet[ModeValue]

    def to_json(self) -> Any:
        return sorted(self.values, key=lambda v: (isinstance(v, str), v))


Mode = Union[NoMode, SingleMode, TiedModes]


@dataclass(frozen=True)
class NumericalStats:
    """Summary of one numeric column."""

    mean: float
    median: float
    mode: Mode
    std_dev: float
    variance: float
    min: float
    max: float
    range: float
    q1: float
    q3: float
    iqr: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mean": self.mean,
            "median": self.median,
            "mode": self.mode.to_json(),
            "stdDev": self.std_dev,
            "variance": self.variance,
            "min": self.min,
            "max": self.max,
            "range": self.range,
            "q1": self.q1,
            "q3": self.q3,
            "iqr": self.iqr,
        }


@dataclass(frozen=True)
class HistogramBin:
    label: str
    count: int
    lower: Optional[float] = None
    upper: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "count": self.count}


@dataclass(frozen=True)
class Percentiles:
    p5: float
    p50: float
    p95: float


@dataclass(frozen=True)
class MonteCarloResult:
    """Normalized view of one simulated reduction scenario."""

    scenario: str
    reduction: float
    mean_cost: float
    std_dev_cost: float
    percentiles: Percentiles
    expected_savings: Optional[float] = None
    total_costs: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "scenario": self.scenario,
            "meanCost": self.mean_cost,
            "stdDevCost": self.std_dev_cost,
            "percentiles": {
                "p5": self.percentiles.p5,
                "p50": self.percentiles.p50,
                "p95": self.percentiles.p95,
            },
        }
        if self.expected_savings is not None:
            payload["expectedSavings"] = self.expected_savings
        return payload
