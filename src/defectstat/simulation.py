"""
Monte Carlo estimate of total repair cost under defect-reduction scenarios.

Each scenario assumes a fraction of defects is eliminated and bootstraps the
remaining repair costs: ``sample_size`` costs are drawn with replacement from
the observed column and summed, ``simulations`` times per scenario.  The
sorted totals yield mean, sample standard deviation and nearest-rank
percentiles; every non-baseline scenario reports its savings against the
0% reduction mean.

The work is CPU bound (scenarios x simulations x records draws), so it is
split into batches.  Between batches progress is reported and an optional
cancel event is honoured; callers driving a user interface should run it on
a worker thread (see :mod:`defectstat.worker`).
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import replace
from typing import Callable, List, Optional, Sequence

import numpy as np

from .models import MonteCarloResult, Percentiles

logger = logging.getLogger(__name__)

REDUCTION_SCENARIOS: Sequence[float] = (0.0, 0.10, 0.20, 0.30)
SIMULATIONS_PER_SCENARIO = 10000
PERCENTILE_POINTS = (0.05, 0.50, 0.95)
MAX_DRAWS_PER_BATCH = 2_000_000

ProgressCallback = Callable[[int], None]


class InsufficientDataError(ValueError):
    """Raised when a simulation is requested without any repair costs."""


class SimulationCancelled(RuntimeError):
    """Raised when a running simulation observes its cancel event."""


def scenario_label(reduction: float) -> str:
    pct = round(reduction * 100, 6)
    return f"{pct:g}% Reduction"


def _nearest_rank(ordered: np.ndarray, p: float) -> float:
    if ordered.size == 0:
        return 0.0
    index = min(int(math.floor(ordered.size * p)), ordered.size - 1)
    return float(ordered[index])


class MonteCarloSimulator:
    """
    Bootstrap simulator for repair-cost totals.

    Args:
        scenarios: Fractional defect reductions, simulated in order.
        simulations: Resampled totals per scenario.
        seed: Seed for :func:`numpy.random.default_rng` (None = fresh entropy).
    """

    def __init__(
        self,
        scenarios: Sequence[float] = REDUCTION_SCENARIOS,
        simulations: int = SIMULATIONS_PER_SCENARIO,
        seed: Optional[int] = None,
    ) -> None:
        if simulations < 1:
            raise ValueError(f"simulations must be positive, got {simulations}")
        for reduction in scenarios:
            if not 0.0 <= reduction <= 1.0:
                raise ValueError(f"reduction must be between 0 and 1, got {reduction}")
        self.scenarios = tuple(float(r) for r in scenarios)
        self.simulations = int(simulations)
        self.seed = seed
        self.batch_size = max(1, self.simulations // 100)

    def run(
        self,
        costs: Sequence[float],
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[MonteCarloResult]:
        """
        Simulate every scenario against ``costs``.

        Args:
            costs: Observed repair costs (must not be empty).
            progress: Called with integer percentages, strictly increasing,
                ending at exactly 100.
            cancel: Checked between batches; when set the run aborts with
                :class:`SimulationCancelled`.

        Returns:
            One :class:`MonteCarloResult` per scenario in configured order.
        """
        pool = np.asarray(costs, dtype=float).ravel()
        if pool.size == 0:
            raise InsufficientDataError("cannot run Monte Carlo simulation without repair cost data")

        rng = np.random.default_rng(self.seed)
        total_steps = len(self.scenarios) * self.simulations
        completed = 0
        last_reported = -1

        def report(pct: int) -> None:
            nonlocal last_reported
            if progress is not None and pct > last_reported:
                progress(pct)
            last_reported = max(last_reported, pct)

        logger.info(
            "Running Monte Carlo: %d scenarios x %d simulations over %d costs",
            len(self.scenarios),
            self.simulations,
            pool.size,
        )
        report(0)

        results: List[MonteCarloResult] = []
        for reduction in self.scenarios:
            sample_size = int(math.floor(pool.size * (1 - reduction)))
            batch_limit = min(self.batch_size, max(1, MAX_DRAWS_PER_BATCH // max(1, sample_size)))
            totals = np.empty(self.simulations, dtype=float)
            done = 0
            while done < self.simulations:
                if cancel is not None and cancel.is_set():
                    raise SimulationCancelled("Monte Carlo simulation cancelled")
                batch = min(batch_limit, self.simulations - done)
                picks = rng.integers(0, pool.size, size=(batch, sample_size))
                totals[done:done + batch] = pool[picks].sum(axis=1)
                done += batch
                completed += batch
                # Hold 100 back until every scenario has been summarised.
                report(min(99, (completed * 100) // total_steps))

            results.append(self._summarise(reduction, totals))

        self._apply_savings(results)
        report(100)
        logger.info("Monte Carlo simulation finished (%d scenarios)", len(results))
        return results

    def _summarise(self, reduction: float, totals: np.ndarray) -> MonteCarloResult:
        ordered = np.sort(totals)
        n = ordered.size
        mean_cost = float(ordered.mean())
        denom = n - 1 if n > 1 else 1
        variance = float(np.sum((ordered - mean_cost) ** 2) / denom)
        percentiles = Percentiles(*(_nearest_rank(ordered, p) for p in PERCENTILE_POINTS))
        label = scenario_label(reduction)
        logger.debug(
            "%s: mean=%.2f std=%.2f p5=%.2f p50=%.2f p95=%.2f",
            label,
            mean_cost,
            math.sqrt(variance),
            percentiles.p5,
            percentiles.p50,
            percentiles.p95,
        )
        return MonteCarloResult(
            scenario=label,
            reduction=reduction,
            mean_cost=mean_cost,
            std_dev_cost=math.sqrt(variance),
            percentiles=percentiles,
            total_costs=ordered,
        )

    @staticmethod
    def _apply_savings(results: List[MonteCarloResult]) -> None:
        baseline = next((r for r in results if r.reduction == 0.0), None)
        if baseline is None:
            return
        for idx, result in enumerate(results):
            if result is baseline:
                continue
            results[idx] = replace(result, expected_savings=baseline.mean_cost - result.mean_cost)


def run_monte_carlo(
    costs: Sequence[float],
    progress: Optional[ProgressCallback] = None,
    *,
    simulations: int = SIMULATIONS_PER_SCENARIO,
    seed: Optional[int] = None,
    cancel: Optional[threading.Event] = None,
) -> List[MonteCarloResult]:
    """Run the standard reduction scenarios over ``costs``."""

    simulator = MonteCarloSimulator(simulations=simulations, seed=seed)
    return simulator.run(costs, progress=progress, cancel=cancel)


__all__ = [
    "REDUCTION_SCENARIOS",
    "SIMULATIONS_PER_SCENARIO",
    "InsufficientDataError",
    "SimulationCancelled",
    "MonteCarloSimulator",
    "run_monte_carlo",
    "scenario_label",
]
