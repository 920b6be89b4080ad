"""Descriptive statistics, frequency counts and histograms for defect data."""

from __future__ import annotations

import math
from typing import Dict, Hashable, List, Optional, Sequence

import numpy as np
import pandas as pd

from .models import HistogramBin, Mode, ModeValue, NoMode, NumericalStats, SingleMode, TiedModes

DEFAULT_NUM_BINS = 10


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float).ravel()


def _native(value: Hashable) -> Hashable:
    if isinstance(value, np.generic):
        return value.item()
    return value


def _normalize_mode_value(value: Hashable) -> ModeValue:
    if not isinstance(value, str):
        return value  # type: ignore[return-value]
    text = value.strip()
    if not text:
        return value
    try:
        numeric = float(text)
    except ValueError:
        return value
    if not math.isfinite(numeric):
        return value
    return numeric


def mean(values: Sequence[float]) -> float:
    data = _as_array(values)
    if data.size == 0:
        return 0.0
    return float(data.mean())


def median(values: Sequence[float]) -> float:
    data = _as_array(values)
    if data.size == 0:
        return 0.0
    ordered = np.sort(data)
    mid = ordered.size // 2
    if ordered.size % 2:
        return float(ordered[mid])
    return float((ordered[mid - 1] + ordered[mid]) / 2)


def frequency_distribution(values: Sequence[Hashable]) -> Dict[Hashable, int]:
    """Count occurrences of each distinct value.

    Works for categorical strings as well as numbers; keys come back as plain
    Python objects rather than numpy scalars.
    """

    if len(values) == 0:
        return {}
    counts = pd.Series(list(values), dtype=object).value_counts(sort=False, dropna=False)
    return {_native(key): int(count) for key, count in counts.items()}


def mode(values: Sequence[Hashable]) -> Mode:
    """Most frequent value(s) of ``values``.

    Returns :class:`NoMode` when every value is unique, :class:`SingleMode`
    when one value wins outright and :class:`TiedModes` for a partial tie.
    Tied values given as numeric-looking strings are converted to numbers.
    """

    freq = frequency_distribution(values)
    if not freq:
        return NoMode()
    max_freq = max(freq.values())
    modes = [key for key, count in freq.items() if count == max_freq]
    if len(modes) == len(values):
        return NoMode()
    if len(modes) == 1:
        return SingleMode(modes[0])  # type: ignore[arg-type]
    return TiedModes(frozenset(_normalize_mode_value(key) for key in modes))


def variance(values: Sequence[float]) -> float:
    """Sample variance (n - 1 denominator); 0 for fewer than two values."""

    data = _as_array(values)
    if data.size < 2:
        return 0.0
    if data.min() == data.max():
        return 0.0
    return float(np.var(data, ddof=1))


def std_dev(values: Sequence[float]) -> float:
    data = _as_array(values)
    if data.size < 2:
        return 0.0
    return math.sqrt(variance(data))


def min_max_range(values: Sequence[float]) -> Dict[str, float]:
    data = _as_array(values)
    if data.size == 0:
        return {"min": 0.0, "max": 0.0, "range": 0.0}
    lo = float(data.min())
    hi = float(data.max())
    return {"min": lo, "max": hi, "range": hi - lo}


def _interpolated_quantile(ordered: np.ndarray, p: float) -> float:
    pos = (ordered.size - 1) * p
    base = math.floor(pos)
    rest = pos - base
    if base + 1 >= ordered.size:
        return float(ordered[base])
    return float(ordered[base] + rest * (ordered[base + 1] - ordered[base]))


def quartiles(values: Sequence[float]) -> Dict[str, float]:
    """First and third quartiles using linear interpolation between ranks.

    Parameters
    ----------
    values:
        Numeric observations in any order.

    Returns
    -------
    dict
        ``q1``, ``q3`` and ``iqr``; all zero for empty input.
    """

    data = _as_array(values)
    if data.size == 0:
        return {"q1": 0.0, "q3": 0.0, "iqr": 0.0}
    ordered = np.sort(data)
    q1 = _interpolated_quantile(ordered, 0.25)
    q3 = _interpolated_quantile(ordered, 0.75)
    return {"q1": q1, "q3": q3, "iqr": q3 - q1}


def descriptive_stats(values: Sequence[float]) -> Optional[NumericalStats]:
    """Bundle every summary statistic for ``values``; ``None`` when empty."""

    data = _as_array(values)
    if data.size == 0:
        return None
    spread = min_max_range(data)
    quarts = quartiles(data)
    return NumericalStats(
        mean=mean(data),
        median=median(data),
        mode=mode([float(v) for v in data]),
        std_dev=std_dev(data),
        variance=variance(data),
        min=spread["min"],
        max=spread["max"],
        range=spread["range"],
        q1=quarts["q1"],
        q3=quarts["q3"],
        iqr=quarts["iqr"],
    )


def histogram(values: Sequence[float], num_bins: int = DEFAULT_NUM_BINS) -> List[HistogramBin]:
    """Equal-width histogram of ``values`` ordered from lowest to highest bin.

    The maximum value is counted in the last bin. A column of identical
    values collapses into one bin labelled with that value.
    """

    if num_bins < 1:
        raise ValueError(f"num_bins must be at least 1, got {num_bins}")
    data = _as_array(values)
    if data.size == 0:
        return []
    lo = float(data.min())
    hi = float(data.max())
    if lo == hi:
        return [HistogramBin(label=f"{lo:.2f}", count=int(data.size))]

    bin_size = (hi - lo) / num_bins
    if bin_size == 0 or not math.isfinite(bin_size):
        return [HistogramBin(label=f"{lo:.2f} - {hi:.2f}", count=int(data.size), lower=lo, upper=hi)]

    indices = np.floor((data - lo) / bin_size).astype(int)
    indices = np.clip(indices, 0, num_bins - 1)
    counts = np.bincount(indices, minlength=num_bins)

    bins: List[HistogramBin] = []
    for i in range(num_bins):
        lower = lo + i * bin_size
        upper = lo + (i + 1) * bin_size
        bins.append(
            HistogramBin(
                label=f"{lower:.2f}-{upper:.2f}",
                count=int(counts[i]),
                lower=lower,
                upper=upper,
            )
        )
    return bins


__all__ = [
    "DEFAULT_NUM_BINS",
    "mean",
    "median",
    "mode",
    "variance",
    "std_dev",
    "min_max_range",
    "quartiles",
    "descriptive_stats",
    "frequency_distribution",
    "histogram",
]
